"""Home and configuration directory resolution.

Paths in the configuration file may start with ``~``; ``expand_path`` turns
them into absolute paths. The configuration directory follows the host
platform's convention:

- ``$STRAND_CONFIG_DIR`` when set
- macOS: ``$XDG_CONFIG_HOME/strand`` or ``~/config/strand``
- Windows: ``%APPDATA%\\strand``
- everything else: ``$XDG_CONFIG_HOME/strand`` or ``~/.config/strand``
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path, PurePath

from strand.exceptions import DirectoryResolutionError

logger = logging.getLogger(__name__)

APP_DIR_NAME = "strand"
CONFIG_FILE = "config.yaml"
CONFIG_DIR_ENV = "STRAND_CONFIG_DIR"

HOME_MARKER = "~"


def get_home_dir() -> Path:
    """Return the current user's home directory.

    Raises:
        DirectoryResolutionError: If the home directory cannot be determined
    """
    try:
        home = Path.home()
    except (RuntimeError, KeyError) as e:
        raise DirectoryResolutionError(
            "could not locate home directory"
        ) from e

    # Path.home() falls back to "~" itself when nothing is known
    if not str(home) or str(home) == HOME_MARKER:
        raise DirectoryResolutionError("could not locate home directory")
    return home


def expand_path(path: str | PurePath) -> Path:
    """Replace a leading ``~`` component with the home directory.

    Works on path components, so ``~foo/bar`` is left alone while
    ``~/foo/bar`` becomes ``<home>/foo/bar``. Any other path is returned
    unchanged.

    Args:
        path: Path as written by the user

    Returns:
        The expanded path
    """
    path = Path(path)
    parts = path.parts
    if not parts or parts[0] != HOME_MARKER:
        return path
    return get_home_dir().joinpath(*parts[1:])


def _platform_config_root() -> Path:
    if sys.platform == "darwin":
        xdg = os.environ.get("XDG_CONFIG_HOME")
        return Path(xdg) if xdg else get_home_dir() / "config"

    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        if not appdata:
            raise DirectoryResolutionError("could not locate config directory")
        return Path(appdata)

    # relative XDG values are invalid and ignored
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg and os.path.isabs(xdg):
        return Path(xdg)
    return get_home_dir() / ".config"


def get_config_dir() -> Path:
    """Return the directory holding strand's configuration file.

    Raises:
        DirectoryResolutionError: If no configuration directory can be found
    """
    if env_dir := os.environ.get(CONFIG_DIR_ENV):
        logger.debug(f"Using config directory from ${CONFIG_DIR_ENV}: {env_dir}")
        return expand_path(env_dir)
    return _platform_config_root() / APP_DIR_NAME


def get_config_path() -> Path:
    """Return the full path of ``config.yaml``."""
    return get_config_dir() / CONFIG_FILE
