"""Exceptions raised by strand.

Every failure in the install pipeline is raised as a ``StrandError``
subclass carrying the exit code the CLI should terminate with. Leaf code
never exits the process itself; ``strand.cli.error_handler`` maps these
errors to exit codes at the top level.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from strand.cli.exit_codes import ExitCode

if TYPE_CHECKING:
    from strand.plugins.installer import InstallSummary


class StrandError(Exception):
    """Base exception for strand.
    
    Attributes:
        message: Error message
        exit_code: Exit code to use when exiting
        details: Optional dictionary of additional error details
    """
    
    exit_code: int = ExitCode.GENERAL_ERROR
    
    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if exit_code is not None:
            self.exit_code = exit_code
        self.details = details or {}
    
    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class DirectoryResolutionError(StrandError):
    """The home or configuration directory could not be located."""
    
    exit_code = ExitCode.GENERAL_ERROR


class ConfigLoadError(StrandError):
    """The configuration file is unreadable or malformed.
    
    Examples:
        - File does not exist
        - Invalid YAML
        - Missing ``plugin_dir``
    """
    
    exit_code = ExitCode.CONFIGURATION_ERROR


class AmbiguousPluginError(ConfigLoadError):
    """A plugin entry matches neither or both plugin shapes."""
    pass


class ConfigSaveError(StrandError):
    """The configuration could not be written back to disk."""
    
    exit_code = ExitCode.CONFIGURATION_ERROR


class FetchError(StrandError):
    """Downloading a plugin archive failed.
    
    Raised for connection failures as well as HTTP error statuses.
    """
    
    exit_code = ExitCode.GENERAL_ERROR
    
    def __init__(
        self,
        message: str,
        url: str,
        status_code: int | None = None,
    ) -> None:
        details: dict[str, Any] = {"url": url}
        if status_code is not None:
            details["status"] = status_code
        super().__init__(message, details=details)
        self.url = url
        self.status_code = status_code


class ExtractionError(StrandError):
    """A downloaded archive could not be unpacked."""
    
    exit_code = ExitCode.INSTALL_ERROR


class InstallError(StrandError):
    """One or more plugins failed while installing with ``--keep-going``."""
    
    exit_code = ExitCode.INSTALL_ERROR
    
    def __init__(self, message: str, summary: InstallSummary) -> None:
        failed = [str(r.plugin) for r in summary.failed]
        super().__init__(message, details={"failed": ", ".join(failed)})
        self.summary = summary


class PluginDirectoryError(StrandError):
    """The plugin directory could not be reset."""
    
    exit_code = ExitCode.STORAGE_ERROR
