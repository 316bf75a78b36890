"""Global exception handling for the strand CLI.

Leaf code raises ``StrandError`` subclasses; this module is the single
place where they become messages on stderr and process exit codes.
"""

from functools import wraps
from typing import Callable, TypeVar, Any
import logging

import typer
from rich.console import Console

from strand.cli.exit_codes import ExitCode
from strand.exceptions import StrandError

# Console for error output (stderr)
console = Console(stderr=True)

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def report_error(error: StrandError) -> None:
    """Print a StrandError and its details to stderr."""
    console.print(f"[red]Error:[/red] {error.message}", highlight=False)
    for key, value in error.details.items():
        console.print(f"  [dim]{key}:[/dim] {value}", highlight=False)


def handle_errors(func: F) -> F:
    """Decorator for consistent error handling across CLI commands.
    
    - StrandError subclasses: message, details, and the error's exit code
    - KeyboardInterrupt: cancellation message with exit code 130
    - Other exceptions: generic error with exit code 1
    
    Example:
        @app.command()
        @handle_errors
        def my_command():
            raise ConfigLoadError("Invalid config")
    """
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except StrandError as e:
            logger.error(
                f"{type(e).__name__}: {e.message}",
                extra={"exit_code": e.exit_code, "details": e.details},
            )
            report_error(e)
            raise typer.Exit(code=e.exit_code)
            
        except KeyboardInterrupt:
            console.print("\n[yellow]Operation cancelled by user.[/yellow]")
            logger.info("Operation cancelled by user (KeyboardInterrupt)")
            raise typer.Exit(code=ExitCode.CANCELLED)
            
        except typer.Exit:
            raise
            
        except Exception as e:
            logger.exception("Unexpected error occurred")
            console.print(f"[red]Unexpected error:[/red] {e}")
            console.print("[dim]Run with --verbose for more details[/dim]")
            raise typer.Exit(code=ExitCode.GENERAL_ERROR)
    
    return wrapper  # type: ignore[return-value]

