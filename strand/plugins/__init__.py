"""Plugins: spec models, directory reset and concurrent installation."""

from strand.plugins.directory import ensure_empty_dir, remove_path
from strand.plugins.installer import (
    FailurePolicy,
    InstallResult,
    InstallSummary,
    PluginInstaller,
    install_plugins,
)
from strand.plugins.models import (
    DEFAULT_GIT_REF,
    URL_TEMPLATES,
    ArchivePlugin,
    GitProvider,
    GitRepo,
    PluginSpec,
    plugin_from_dict,
    plugin_to_dict,
    resolve_url,
)

__all__ = [
    "ArchivePlugin",
    "DEFAULT_GIT_REF",
    "FailurePolicy",
    "GitProvider",
    "GitRepo",
    "InstallResult",
    "InstallSummary",
    "PluginInstaller",
    "PluginSpec",
    "URL_TEMPLATES",
    "ensure_empty_dir",
    "install_plugins",
    "plugin_from_dict",
    "plugin_to_dict",
    "remove_path",
    "resolve_url",
]
