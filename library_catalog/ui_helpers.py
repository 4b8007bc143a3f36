import json
import os
from typing import Any, Dict, List, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from library_catalog.models import Book, Loan, User

# Environment variable to control CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "LIBRARY_CLI_OUTPUT"
OUTPUT_MODES = ("plain", "json", "rich")

_console = Console()


def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode not in OUTPUT_MODES:
        raise ValueError(f"Unknown output mode {mode!r}, expected one of: {', '.join(OUTPUT_MODES)}")
    os.environ[OUTPUT_MODE_ENV] = mode


def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False))


def print_books(books: Sequence[Book], empty_message: str = "No books in library.") -> None:
    """Print books according to the current output mode.
    - plain: 'id - Title by Author [genre, year] (available|on loan)' lines
    - json: JSON array of book dicts
    - rich: Rich table
    """
    mode = get_output_mode()
    if mode == "json":
        _print_json([b.to_dict() for b in books])
        return
    if not books:
        print(empty_message)
        return

    if mode == "rich":
        table = Table(title="Books", show_lines=True, header_style="bold cyan")
        table.add_column("ID", style="magenta", no_wrap=True)
        table.add_column("Title", style="white")
        table.add_column("Author", style="white")
        table.add_column("Genre", style="white")
        table.add_column("Year", justify="right")
        table.add_column("Available", justify="center")
        for b in books:
            table.add_row(
                b.id,
                b.title,
                b.author,
                b.genre,
                str(b.publication_year or "-"),
                "[green]yes[/]" if b.available else "[red]no[/]",
            )
        _console.print(table)
    else:
        for b in books:
            year = b.publication_year or "-"
            state = "available" if b.available else "on loan"
            print(f"{b.id} - {b.title} by {b.author} [{b.genre}, {year}] ({state})")


def print_user(user: User) -> None:
    mode = get_output_mode()
    if mode == "json":
        _print_json(user.to_dict())
    elif mode == "rich":
        content = (
            f"[bold]ID:[/] {user.id}\n[bold]Name:[/] {user.name}\n"
            f"[bold]Email:[/] {user.email}\n[bold]Registered:[/] {user.registered_at:%Y-%m-%d %H:%M}"
        )
        _console.print(Panel.fit(content, title="User", border_style="green"))
    else:
        print(f"{user.id} - {user.name} <{user.email}>")


def print_loans(loans: List[Loan], empty_message: str = "No loans found.") -> None:
    mode = get_output_mode()
    if mode == "json":
        _print_json([loan.to_dict() for loan in loans])
        return
    if not loans:
        print(empty_message)
        return

    if mode == "rich":
        table = Table(title="Loans", show_lines=True, header_style="bold cyan")
        table.add_column("ID", style="magenta", no_wrap=True)
        table.add_column("Book")
        table.add_column("User")
        table.add_column("Loaned")
        table.add_column("Due")
        table.add_column("Status")
        for loan in loans:
            status = "[green]RETURNED[/]" if loan.returned else "[yellow]BORROWED[/]"
            table.add_row(
                loan.id,
                loan.book_id,
                loan.user_id,
                f"{loan.loan_date:%Y-%m-%d}",
                f"{loan.due_date:%Y-%m-%d}",
                status,
            )
        _console.print(table)
    else:
        for loan in loans:
            print(
                f"{loan.id} - book {loan.book_id} to user {loan.user_id}, "
                f"due {loan.due_date:%Y-%m-%d} ({loan.status})"
            )


def print_stats_result(stats: Dict[str, Any]) -> None:
    """Print statistics according to the current output mode."""
    mode = get_output_mode()
    labels = {
        "total_books": "Total Books",
        "available_books": "Available Books",
        "total_users": "Users",
        "total_loans": "Loans",
        "open_loans": "Open Loans",
        "overdue_loans": "Overdue Loans",
    }

    if mode == "json":
        _print_json(stats)
    elif mode == "rich":
        content = "\n".join(f"[bold]{label}:[/] {stats.get(key, 0)}" for key, label in labels.items())
        _console.print(Panel.fit(content, title="Stats", border_style="blue"))
    else:
        for key, label in labels.items():
            print(f"{label}: {stats.get(key, 0)}")
