import sys
import traceback
from functools import wraps

from rich.console import Console
from rich.markup import escape
from rich.theme import Theme

from sqlmigrate.errors import MigrationError

custom_theme = Theme({
    "info": "cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "bold green",
})

console = Console(theme=custom_theme, soft_wrap=True)


def print_step(message: str) -> None:
    console.print(f"[info]{escape(message)}[/info]", highlight=False)


def print_success(message: str) -> None:
    console.print(f"[success]✔ {escape(message)}[/success]", highlight=False)


def print_error(message: str) -> None:
    console.print(f"[error]✘ {escape(message)}[/error]", highlight=False)


def handle_cli_errors(func):
    """
    Decorator to wrap CLI commands with unified error handling.

    - MigrationError / FileNotFoundError: Prints a clean red error message.
    - KeyboardInterrupt: Exits with the SIGINT code.
    - Unexpected Exception: Prints the stack trace and error.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (MigrationError, FileNotFoundError) as e:
            print_error(str(e))
            sys.exit(1)
        except KeyboardInterrupt:
            console.print("\n[warning]Operation cancelled by user.[/warning]")
            sys.exit(130)
        except Exception as e:
            print_error(f"Unexpected Error: {e}")
            console.print(traceback.format_exc(), markup=False)
            sys.exit(1)

    return wrapper
