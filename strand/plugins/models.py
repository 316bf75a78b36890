"""Plugin spec data models and download URL rendering.

A plugin is either a repository on a git host (``GitRepo``) or a plain
tarball (``ArchivePlugin``). Both render to the URL of a ``.tar.gz``
archive via ``resolve_url``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from strand.exceptions import AmbiguousPluginError, ConfigLoadError

logger = logging.getLogger(__name__)

DEFAULT_GIT_REF = "master"


class GitProvider(str, Enum):
    """Supported git hosting providers."""

    GITHUB = "github"
    BITBUCKET = "bitbucket"

    @classmethod
    def parse(cls, value: str) -> GitProvider:
        """Parse a provider name case-insensitively.

        Raises:
            ValueError: If the provider is not recognised
        """
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(
                f"Git provider {value!r} not recognised "
                f"-- try 'github' or 'bitbucket' instead"
            ) from None


# Tarball URL shape per provider
URL_TEMPLATES: dict[GitProvider, str] = {
    GitProvider.GITHUB: "https://codeload.github.com/{user}/{repo}/tar.gz/{ref}",
    GitProvider.BITBUCKET: "https://bitbucket.org/{user}/{repo}/get/{ref}.tar.gz",
}


@dataclass(frozen=True)
class GitRepo:
    """A plugin hosted in a git repository.

    Attributes:
        provider: Hosting provider
        user: Repository owner's username
        repo: Repository name
        git_ref: Branch, tag or commit; ``master`` when not set
    """

    provider: GitProvider
    user: str
    repo: str
    git_ref: str | None = None

    @property
    def ref(self) -> str:
        return self.git_ref or DEFAULT_GIT_REF

    @property
    def url(self) -> str:
        template = URL_TEMPLATES[self.provider]
        return template.format(user=self.user, repo=self.repo, ref=self.ref)

    def __str__(self) -> str:
        return f"{self.provider.value}:{self.user}/{self.repo}@{self.ref}"


@dataclass(frozen=True)
class ArchivePlugin:
    """A plugin downloaded from a ``.tar.gz`` URL."""

    url: str

    def __str__(self) -> str:
        return self.url


PluginSpec = Union[GitRepo, ArchivePlugin]

_GIT_KEYS = ("provider", "user", "repo", "git_ref")
_ARCHIVE_KEYS = ("url",)


def resolve_url(plugin: PluginSpec) -> str:
    """Return the download URL for a plugin."""
    return plugin.url


def plugin_from_dict(data: Any, index: int | None = None) -> PluginSpec:
    """Build a plugin spec from one entry of the ``plugins`` list.

    The entry shape decides the variant: ``url`` alone is an archive,
    ``provider``/``user``/``repo`` (plus optional ``git_ref``) is a git
    repository. Entries matching both or neither are rejected.

    Args:
        data: Parsed YAML entry
        index: Position in the ``plugins`` list, for error messages

    Raises:
        AmbiguousPluginError: If the entry shape matches neither or both variants
        ConfigLoadError: If a git entry is incomplete or invalid
    """
    where = {"entry": index} if index is not None else {}

    if not isinstance(data, dict):
        raise ConfigLoadError(
            f"plugin entry must be a mapping, got {type(data).__name__}",
            details=where,
        )

    has_git = any(key in data for key in _GIT_KEYS)
    has_archive = any(key in data for key in _ARCHIVE_KEYS)

    if has_git and has_archive:
        raise AmbiguousPluginError(
            "ambiguous plugin entry: 'url' cannot be combined with git fields",
            details=where,
        )
    if not has_git and not has_archive:
        raise AmbiguousPluginError(
            "ambiguous plugin entry: expected 'url' or 'provider'/'user'/'repo'",
            details=where,
        )

    known = _GIT_KEYS if has_git else _ARCHIVE_KEYS
    unknown = sorted(str(key) for key in data if key not in known)
    if unknown:
        logger.warning(f"Ignoring unknown plugin keys: {', '.join(unknown)}")

    if has_archive:
        url = data["url"]
        if not isinstance(url, str) or not url:
            raise ConfigLoadError("plugin 'url' must be a non-empty string", details=where)
        return ArchivePlugin(url=url)

    missing = [key for key in ("provider", "user", "repo") if not data.get(key)]
    if missing:
        raise ConfigLoadError(
            f"git plugin entry is missing: {', '.join(missing)}",
            details=where,
        )

    try:
        provider = GitProvider.parse(str(data["provider"]))
    except ValueError as e:
        raise ConfigLoadError(str(e), details=where) from e

    git_ref = data.get("git_ref")
    return GitRepo(
        provider=provider,
        user=str(data["user"]),
        repo=str(data["repo"]),
        git_ref=str(git_ref) if git_ref is not None else None,
    )


def plugin_to_dict(plugin: PluginSpec) -> dict[str, str]:
    """Serialize a plugin spec for the configuration file."""
    if isinstance(plugin, ArchivePlugin):
        return {"url": plugin.url}

    result = {
        "provider": plugin.provider.value,
        "user": plugin.user,
        "repo": plugin.repo,
    }
    if plugin.git_ref is not None:
        result["git_ref"] = plugin.git_ref
    return result
