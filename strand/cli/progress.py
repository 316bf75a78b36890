"""Status messages for the strand CLI.

Install notices are printed as each plugin finishes, so they appear in
completion order rather than configuration order.
"""

from rich.console import Console

from strand.plugins.installer import InstallResult, InstallSummary

# Default console for notices
console = Console()


def status_message(message: str, status: str = "info") -> None:
    """Print a status message with an appropriate icon.
    
    Args:
        message: The message to display
        status: Status type - one of: info, success, warning, error
    """
    icons = {
        "info": "[blue]ℹ[/blue]",
        "success": "[green]✓[/green]",
        "warning": "[yellow]⚠[/yellow]",
        "error": "[red]✗[/red]",
    }
    
    icon = icons.get(status, "[blue]ℹ[/blue]")
    console.print(f"{icon} {message}")


def format_file_size(size_bytes: int) -> str:
    """Format file size in human-readable format.
    
    Example:
        format_file_size(1024)  # Returns "1.00 KB"
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.2f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.2f} MB"
    else:
        return f"{size_bytes / (1024 * 1024 * 1024):.2f} GB"


def plugin_installed(result: InstallResult) -> None:
    """Print the success notice for one plugin.

    The archive's top-level folders are listed so archives whose folder
    name differs from the repo name can be found in the plugin directory.
    """
    into = f" -> {', '.join(result.roots)}" if result.roots else ""
    console.print(
        f"  [green]✓[/green] Installed {result.plugin}{into} "
        f"[dim]({format_file_size(result.size)})[/dim]",
        highlight=False,
    )


def plugin_failed(result: InstallResult) -> None:
    """Print the failure notice for one plugin."""
    reason = result.error.message if result.error else "unknown error"
    console.print(
        f"  [red]✗[/red] {result.plugin} [dim]- {reason}[/dim]",
        highlight=False,
    )


def install_summary(summary: InstallSummary) -> None:
    """Print a one-line summary after an install run."""
    total = len(summary.results)
    if total == 0:
        status_message("No plugins configured", "warning")
    elif summary.all_successful:
        status_message(f"{total} plugin(s) installed", "success")
    else:
        status_message(
            f"{len(summary.succeeded)} of {total} plugin(s) installed",
            "error",
        )
