"""Main CLI entry point for strand."""

import logging
import sys
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console

from strand import __app_name__, __version__
from strand.cli import progress
from strand.cli.error_handler import handle_errors
from strand.cli.exit_codes import ExitCode
from strand.config import (
    DEFAULT_PLUGIN_DIR,
    StrandConfig,
    add_plugin,
    init_config,
    load_config,
    save_config,
)
from strand.exceptions import InstallError
from strand.paths import expand_path, get_config_path
from strand.plugins import (
    ArchivePlugin,
    FailurePolicy,
    GitProvider,
    GitRepo,
    PluginSpec,
    ensure_empty_dir,
    install_plugins,
)

app = typer.Typer(
    name=__app_name__,
    help="Strand - a declarative plugin manager.",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()

# Global state for CLI options
_global_state: dict[str, Any] = {
    "verbose": False,
    "debug": False,
    "quiet": False,
    "config_file": None,
    "max_concurrent": None,
    "keep_going": False,
    "timeout": None,
}


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"{__app_name__} v{__version__}")
        raise typer.Exit(code=ExitCode.SUCCESS)


def _setup_logging(
    verbose: bool = False,
    debug: bool = False,
    quiet: bool = False,
    log_file: Optional[Path] = None,
) -> None:
    """Set up logging configuration based on CLI options.

    Args:
        verbose: Enable INFO level logging
        debug: Enable DEBUG level logging
        quiet: Suppress non-error output
        log_file: Optional log file path
    """
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING

    if debug:
        format_str = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
    else:
        format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    handlers: list[logging.Handler] = []

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)  # Always log debug to file
        handlers.append(file_handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    handlers.append(console_handler)

    logging.basicConfig(
        level=logging.DEBUG if log_file else level,
        format=format_str,
        handlers=handlers,
        force=True,
    )

    # httpx logs every request at INFO
    if not debug:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.debug(f"Logging configured: level={logging.getLevelName(level)}, debug={debug}")


def _config_path() -> Path:
    """Path of the configuration file for this invocation."""
    config_file = _global_state.get("config_file")
    if config_file is not None:
        return expand_path(config_file)
    return get_config_path()


def _reinstall(config: StrandConfig) -> None:
    """Reset the plugin directory and install every configured plugin."""
    ensure_empty_dir(config.plugin_dir)

    policy = FailurePolicy.COLLECT if _global_state["keep_going"] else FailurePolicy.FAIL_FAST
    try:
        summary = install_plugins(
            config.plugins,
            config.plugin_dir,
            max_concurrent=_global_state["max_concurrent"],
            policy=policy,
            timeout=_global_state["timeout"],
            on_installed=progress.plugin_installed,
            on_failed=progress.plugin_failed,
        )
    except InstallError as e:
        progress.install_summary(e.summary)
        raise

    progress.install_summary(summary)


def _append_and_reinstall(plugin: PluginSpec) -> None:
    """Add a plugin to the configuration, save it, then reinstall everything."""
    config_path = _config_path()
    config = load_config(config_path)
    add_plugin(config, plugin)
    save_config(config, config_path)
    progress.status_message(f"Added {plugin} to {config_path}")

    _reinstall(config)


@app.callback(invoke_without_command=True)
@handle_errors
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    config_location: bool = typer.Option(
        False,
        "--config-location",
        help="Print the config file location and exit.",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Use this config file instead of the default location.",
    ),
    max_concurrent: Optional[int] = typer.Option(
        None,
        "--max-concurrent",
        "-j",
        min=1,
        help="Maximum number of plugins installed at once (default: all).",
    ),
    keep_going: bool = typer.Option(
        False,
        "--keep-going",
        "-k",
        help="Install remaining plugins when one fails, then report all failures.",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        min=0.1,
        help="HTTP timeout in seconds for each download (default: none).",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-V",
        help="Enable verbose output (INFO level logging).",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug mode (DEBUG level logging).",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress non-error output.",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Log to file (logs DEBUG level regardless of console settings).",
    ),
) -> None:
    """Strand - a declarative plugin manager.

    Plugins listed in the config file are downloaded as tarballs and
    extracted into the plugin directory. Every run wipes the plugin
    directory and installs all plugins again.

    [bold]Examples:[/bold]

        strand
        strand install-git --provider github --user acme --repo tools
        strand install-tar --url https://example.com/plugin.tar.gz
        strand --config-location
    """
    if quiet and (verbose or debug):
        console.print("[red]Error:[/red] --quiet cannot be combined with --verbose or --debug")
        raise typer.Exit(code=ExitCode.INVALID_ARGUMENT)

    _setup_logging(verbose=verbose, debug=debug, quiet=quiet, log_file=log_file)

    _global_state.update(
        verbose=verbose,
        debug=debug,
        quiet=quiet,
        config_file=config_file,
        max_concurrent=max_concurrent,
        keep_going=keep_going,
        timeout=timeout,
    )
    progress.console.quiet = quiet

    # Resolving the location never needs the config file itself
    if config_location:
        typer.echo(str(_config_path()))
        raise typer.Exit(code=ExitCode.SUCCESS)

    if ctx.invoked_subcommand is None:
        _reinstall(load_config(_config_path()))


@app.command("install-git")
@handle_errors
def install_git(
    provider: GitProvider = typer.Option(
        ...,
        "--provider",
        "-p",
        case_sensitive=False,
        help="The Git repo hosting provider.",
    ),
    user: str = typer.Option(
        ...,
        "--user",
        "-u",
        help="The Git repo owner's username.",
    ),
    repo: str = typer.Option(
        ...,
        "--repo",
        "-r",
        help="The Git repo's name.",
    ),
    git_ref: Optional[str] = typer.Option(
        None,
        "--git-ref",
        "-g",
        help="Branch name, tag name or commit hash (default: master).",
    ),
) -> None:
    """Install a Git plugin and append it to the config file."""
    _append_and_reinstall(
        GitRepo(provider=provider, user=user, repo=repo, git_ref=git_ref)
    )


@app.command("install-tar")
@handle_errors
def install_tar(
    url: str = typer.Option(
        ...,
        "--url",
        help="URL of a .tar.gz archive.",
    ),
) -> None:
    """Install a tar.gz plugin and append it to the config file."""
    _append_and_reinstall(ArchivePlugin(url=url))


@app.command("init")
@handle_errors
def init(
    plugin_dir: str = typer.Option(
        DEFAULT_PLUGIN_DIR,
        "--plugin-dir",
        help="Directory plugins are installed into.",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite an existing config file.",
    ),
) -> None:
    """Create a config file with no plugins."""
    config_path = _config_path()
    init_config(config_path, plugin_dir=plugin_dir, force=force)
    progress.status_message(f"Created {config_path}", "success")


if __name__ == "__main__":
    app()
