import logging
import shlex
from typing import Dict, Iterable, List, Optional

import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.prompt import IntPrompt, Prompt
from rich.table import Table

from library_catalog.config import settings
from library_catalog.errors import InvalidArgumentError, LibraryError
from library_catalog.library import SEARCH_FIELDS, Library
from library_catalog.models import Book, Loan, User
from library_catalog.ui_helpers import (
    OUTPUT_MODES,
    print_books,
    print_loans,
    print_stats_result,
    print_user,
    set_output_mode,
)

console = Console()


def configure_logging() -> None:
    level = logging.DEBUG if settings.debug else getattr(logging, settings.log_level, logging.WARNING)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


# Process-wide Library instance. State lives only as long as the process, so
# the menu and the script runner are the only front ends that hold a session.
class LibraryManager:
    _instance: Optional[Library] = None

    @classmethod
    def get_instance(cls) -> Library:
        """Get the Library singleton, creating it on first use."""
        if cls._instance is None:
            cls._instance = Library()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        cls._instance = None


# --- Script commands ---
def _to_int(value: str):
    # Leave non-numeric text alone so the service reports it
    try:
        return int(value)
    except ValueError:
        return value


def _print_result(result) -> None:
    if isinstance(result, Book):
        print_books([result])
    elif isinstance(result, User):
        print_user(result)
    elif isinstance(result, Loan):
        print_loans([result])


def _script_add(lib: Library, title, author, genre=None, year=None):
    return lib.add_book(title, author, genre, _to_int(year) if year is not None else None)


def _script_search(lib: Library, term, field="title"):
    print_books(lib.search_books(term, field), empty_message="No books matched the search.")


def _script_lend(lib: Library, book_id, user_id, days=None):
    return lib.lend_book(book_id, user_id, _to_int(days) if days is not None else settings.default_loan_days)


def _script_loans(lib: Library, user_id):
    print_loans(lib.loans_for_user(user_id), empty_message=f"User {user_id} has no loans.")


def _script_reset(lib: Library):
    lib.reset_state()
    print("Library state cleared.")


# name -> (handler, min args, max args)
SCRIPT_COMMANDS = {
    "add": (_script_add, 2, 4),
    "search": (_script_search, 1, 2),
    "list": (lambda lib: print_books(lib.list_books()), 0, 0),
    "register": (lambda lib, name, email: lib.register_user(name, email), 2, 2),
    "lend": (_script_lend, 2, 3),
    "return": (lambda lib, loan_id: lib.return_book(loan_id), 1, 1),
    "loans": (_script_loans, 1, 1),
    "stats": (lambda lib: print_stats_result(lib.get_statistics()), 0, 0),
    "reset": (_script_reset, 0, 0),
}

BINDABLE_COMMANDS = ("add", "register", "lend", "return")


def run_script(lines: Iterable[str], lib: Library) -> int:
    """Run script lines against one Library and return the number of failed lines.

    Each line is ``command arg...`` (shell quoting applies). ``name = command
    arg...`` binds the id of the created record to ``$name`` for later lines.
    Blank lines and lines starting with ``#`` are skipped.
    """
    variables: Dict[str, str] = {}
    failed_count = 0

    for number, raw in enumerate(lines, 1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        try:
            result, target = _dispatch(lib, _split(line), variables)
        except LibraryError as e:
            failed_count += 1
            print(f"Error (line {number}): {e}")
            continue

        _print_result(result)
        if target:
            variables[target] = result.id
    return failed_count


def _split(line: str) -> List[str]:
    try:
        return shlex.split(line)
    except ValueError as e:
        raise InvalidArgumentError(f"Cannot parse line: {e}") from e


def _dispatch(lib: Library, tokens: List[str], variables: Dict[str, str]):
    target = None
    if len(tokens) >= 2 and tokens[1] == "=":
        target, tokens = tokens[0], tokens[2:]
    if not tokens:
        raise InvalidArgumentError("Missing command.")

    name, args = tokens[0], tokens[1:]
    if name not in SCRIPT_COMMANDS:
        raise InvalidArgumentError(f"Unknown command: {name}")
    if target and name not in BINDABLE_COMMANDS:
        raise InvalidArgumentError(f"{name} does not create a record to bind to ${target}.")
    handler, min_args, max_args = SCRIPT_COMMANDS[name]
    if not min_args <= len(args) <= max_args:
        raise InvalidArgumentError(f"{name} takes {min_args} to {max_args} arguments, got {len(args)}.")

    resolved = []
    for arg in args:
        if arg.startswith("$"):
            if arg[1:] not in variables:
                raise InvalidArgumentError(f"Unknown variable: {arg}")
            arg = variables[arg[1:]]
        resolved.append(arg)
    return handler(lib, *resolved), target


# --- Typer CLI application ---
app = typer.Typer(help=f"{settings.app_name} CLI")


@app.callback(invoke_without_command=True)
def _global_options(
    ctx: typer.Context,
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help=f"Output format: {' | '.join(OUTPUT_MODES)} (default: plain)",
    ),
):
    """Global options (e.g. output mode). Without a command, opens the menu."""
    configure_logging()
    if output:
        try:
            set_output_mode(output)
        except ValueError as e:
            raise typer.BadParameter(str(e), param_hint="'--output'")
    if ctx.invoked_subcommand is None:
        run_menu()


@app.command("run")
def cli_run(
    script: typer.FileText = typer.Argument(..., encoding="utf-8", help="Script file, or '-' for stdin"),
):
    """Run a script of catalog commands in one session.

    Commands: add TITLE AUTHOR [GENRE] [YEAR], search TERM [FIELD], list,
    register NAME EMAIL, lend BOOK_ID USER_ID [DAYS], return LOAN_ID,
    loans USER_ID, stats, reset. Prefix with 'name =' to keep the new id
    as $name.
    """
    failed_count = run_script(script, LibraryManager.get_instance())
    if failed_count:
        print(f"{failed_count} command(s) failed.")
        raise typer.Exit(code=1)


@app.command("menu")
def cli_menu():
    """Open the interactive menu."""
    run_menu()


# --- Interactive menu ---
def _menu_add() -> None:
    title = Prompt.ask("Title")
    author = Prompt.ask("Author")
    genre = Prompt.ask("Genre (optional)", default="")
    year = IntPrompt.ask("Publication year (0 = unknown)", default=0)
    book = LibraryManager.get_instance().add_book(title, author, genre, year)
    print_books([book])


def _menu_search() -> None:
    term = Prompt.ask("Search term")
    field = Prompt.ask("Field", choices=list(SEARCH_FIELDS), default="title")
    print_books(LibraryManager.get_instance().search_books(term, field), "No books matched the search.")


def _menu_register() -> None:
    name = Prompt.ask("Name")
    email = Prompt.ask("Email")
    print_user(LibraryManager.get_instance().register_user(name, email))


def _menu_lend() -> None:
    book_id = Prompt.ask("Book id")
    user_id = Prompt.ask("User id")
    days = IntPrompt.ask("Loan days", default=settings.default_loan_days)
    print_loans([LibraryManager.get_instance().lend_book(book_id, user_id, days)])


def _menu_return() -> None:
    loan_id = Prompt.ask("Loan id")
    print_loans([LibraryManager.get_instance().return_book(loan_id)])


def _menu_loans() -> None:
    user_id = Prompt.ask("User id")
    print_loans(LibraryManager.get_instance().loans_for_user(user_id))


MENU_ITEMS = [
    ("1", "List all books", lambda: print_books(LibraryManager.get_instance().list_books())),
    ("2", "Add a book", _menu_add),
    ("3", "Search books", _menu_search),
    ("4", "Register a user", _menu_register),
    ("5", "Lend a book", _menu_lend),
    ("6", "Return a book", _menu_return),
    ("7", "Show a user's loans", _menu_loans),
    ("8", "Show statistics", lambda: print_stats_result(LibraryManager.get_instance().get_statistics())),
    ("0", "Exit", None),
]


def run_menu() -> None:
    """Simple interactive menu over the shared Library instance."""

    def render_menu() -> None:
        table = Table.grid(padding=(0, 2))
        table.add_column(justify="right", style="bold cyan", width=4)
        table.add_column(justify="left", style="white")
        for key, label, _ in MENU_ITEMS:
            table.add_row(f"[reverse]{key}[/]", label)
        console.print(Panel(table, title=settings.app_name, border_style="cyan", box=box.HEAVY, padding=(1, 2)))

    actions = {key: action for key, _, action in MENU_ITEMS}
    while True:
        render_menu()
        choice = Prompt.ask("Choose an option", choices=list(actions), default="1").strip()
        action = actions[choice]
        if action is None:
            console.print("[green]Goodbye![/]")
            break
        try:
            action()
        except LibraryError as e:
            console.print(f"[bold red]Error:[/] {e}")
        print()


def run() -> None:
    app()


if __name__ == "__main__":
    run()
