"""Plugin directory reset.

Every install run starts from an empty plugin directory so that plugins
removed from the configuration, or left half-extracted by an earlier
failed run, leave nothing behind.
"""

import logging
import shutil
from pathlib import Path

from strand.exceptions import PluginDirectoryError

logger = logging.getLogger(__name__)


def remove_path(path: Path) -> None:
    """Remove a file, symlink or directory tree."""
    # Symlinks are unlinked, never followed into their target
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


def ensure_empty_dir(path: Path) -> None:
    """Make ``path`` an existing, empty directory.

    Anything already at ``path`` is removed first. This is not atomic: if
    the process dies between removal and creation the directory is left
    absent, which the next run repairs.

    Args:
        path: Plugin directory to reset

    Raises:
        PluginDirectoryError: If the path cannot be removed or created
    """
    try:
        if path.exists() or path.is_symlink():
            logger.debug(f"Removing existing plugin directory {path}")
            remove_path(path)
        path.mkdir(parents=True)
    except OSError as e:
        raise PluginDirectoryError(
            f"could not reset plugin directory: {e.strerror or e}",
            details={"path": str(path)},
        ) from e
