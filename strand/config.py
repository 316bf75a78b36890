"""
Strand Configuration Management.

Handles loading and saving ``config.yaml``:

    plugin_dir: ~/.local/share/strand/plugins
    plugins:
      - provider: github
        user: someuser
        repo: somerepo
        git_ref: main
      - url: https://example.com/archive.tar.gz

``plugin_dir`` is expanded to an absolute path on every load. The form
it was written in is remembered, so saving does not replace a ``~``
shorthand with the expanded path.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from strand.exceptions import ConfigLoadError, ConfigSaveError
from strand.paths import expand_path
from strand.plugins.models import PluginSpec, plugin_from_dict, plugin_to_dict

logger = logging.getLogger(__name__)

DEFAULT_PLUGIN_DIR = "~/.local/share/strand/plugins"


@dataclass
class StrandConfig:
    """Root configuration: where plugins go and which ones to install.

    Attributes:
        plugin_dir: Absolute plugin directory
        plugins: Plugin specs in file order
        plugin_dir_source: ``plugin_dir`` exactly as read from the file
    """

    plugin_dir: Path
    plugins: list[PluginSpec] = field(default_factory=list)
    plugin_dir_source: Optional[str] = None

    def stored_plugin_dir(self) -> str:
        """Return the ``plugin_dir`` value to write to disk.

        The loaded form is kept while it still points at ``plugin_dir``;
        otherwise the absolute path is written.
        """
        if self.plugin_dir_source is not None:
            if expand_path(self.plugin_dir_source) == self.plugin_dir:
                return self.plugin_dir_source
        return str(self.plugin_dir)


def default_config(plugin_dir: str = DEFAULT_PLUGIN_DIR) -> StrandConfig:
    """Get a configuration with no plugins."""
    return StrandConfig(
        plugin_dir=expand_path(plugin_dir),
        plugin_dir_source=plugin_dir,
    )


def _parse_config(data: Any, path: Path) -> StrandConfig:
    """Build a StrandConfig from parsed YAML data."""
    if not isinstance(data, dict):
        raise ConfigLoadError(
            "configuration must be a mapping",
            details={"path": str(path)},
        )

    plugin_dir = data.get("plugin_dir")
    if not isinstance(plugin_dir, str) or not plugin_dir.strip():
        raise ConfigLoadError(
            "'plugin_dir' is required and must be a path",
            details={"path": str(path)},
        )

    raw_plugins = data.get("plugins")
    if raw_plugins is None:
        raw_plugins = []
    if not isinstance(raw_plugins, list):
        raise ConfigLoadError(
            "'plugins' must be a list",
            details={"path": str(path)},
        )

    plugins = [
        plugin_from_dict(entry, index=i) for i, entry in enumerate(raw_plugins)
    ]

    return StrandConfig(
        plugin_dir=expand_path(plugin_dir),
        plugins=plugins,
        plugin_dir_source=plugin_dir,
    )


def load_config(config_path: Path) -> StrandConfig:
    """
    Load configuration from a YAML file.

    Args:
        config_path: Path to ``config.yaml``

    Returns:
        Loaded configuration with ``plugin_dir`` expanded

    Raises:
        ConfigLoadError: If the file cannot be read or is malformed
    """
    try:
        text = config_path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ConfigLoadError(
            "configuration file not found",
            details={"path": str(config_path)},
        ) from e
    except OSError as e:
        raise ConfigLoadError(
            f"could not read configuration file: {e.strerror or e}",
            details={"path": str(config_path)},
        ) from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigLoadError(
            f"invalid YAML: {e}",
            details={"path": str(config_path)},
        ) from e

    config = _parse_config(data, config_path)
    logger.debug(
        f"Loaded {len(config.plugins)} plugin(s) from {config_path}, "
        f"plugin_dir={config.plugin_dir}"
    )
    return config


def _config_to_dict(config: StrandConfig) -> dict[str, Any]:
    return {
        "plugin_dir": config.stored_plugin_dir(),
        "plugins": [plugin_to_dict(p) for p in config.plugins],
    }


def export_config_yaml(config: StrandConfig) -> str:
    """Render configuration as YAML text."""
    return yaml.safe_dump(
        _config_to_dict(config),
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
    )


def save_config(config: StrandConfig, config_path: Path) -> None:
    """
    Save configuration to a YAML file.

    Args:
        config: Configuration to save
        config_path: Destination file; parent directories are created

    Raises:
        ConfigSaveError: If the file cannot be written
    """
    try:
        content = export_config_yaml(config)
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(content, encoding="utf-8")
    except (OSError, yaml.YAMLError) as e:
        raise ConfigSaveError(
            f"could not write configuration file: {e}",
            details={"path": str(config_path)},
        ) from e
    logger.debug(f"Saved {len(config.plugins)} plugin(s) to {config_path}")


def add_plugin(config: StrandConfig, plugin: PluginSpec) -> StrandConfig:
    """Append a plugin; existing entries are never reordered or deduplicated."""
    config.plugins.append(plugin)
    return config


def init_config(
    config_path: Path,
    plugin_dir: str = DEFAULT_PLUGIN_DIR,
    force: bool = False,
) -> StrandConfig:
    """Write a starter configuration file.

    Args:
        config_path: Where to create ``config.yaml``
        plugin_dir: Plugin directory to record (``~`` allowed)
        force: Overwrite an existing file

    Raises:
        ConfigSaveError: If the file exists and ``force`` is False, or
            cannot be written
    """
    if config_path.exists() and not force:
        raise ConfigSaveError(
            "configuration file already exists (use --force to overwrite)",
            details={"path": str(config_path)},
        )
    config = default_config(plugin_dir)
    save_config(config, config_path)
    return config
