"""Data models for the library catalog.

Books, users and loans are plain dataclasses held in memory by
:class:`library_catalog.library.LibraryStore`. The service hands callers
copies of these records, so mutating a returned object never changes the
catalog.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from datetime import datetime
from typing import Optional


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass
class Book:
    """A single book in the catalog."""

    id: str
    title: str
    author: str
    genre: str
    publication_year: Optional[int] = None
    available: bool = True

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.title} by {self.author} ({self.id})"

    def copy(self) -> "Book":
        return replace(self)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class User:
    """A registered library member."""

    id: str
    name: str
    email: str
    registered_at: datetime
    active: bool = True

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.name} <{self.email}> ({self.id})"

    def copy(self) -> "User":
        return replace(self)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["registered_at"] = _iso(self.registered_at)
        return data


@dataclass
class Loan:
    """A borrowing transaction between a user and a book.

    Attributes:
        book_id: id of the lent book.
        user_id: id of the borrowing user.
        loan_date: when the book was lent.
        due_date: ``loan_date`` plus the agreed number of whole days.
        returned: set exactly once, when the book comes back.
        returned_at: when the book came back, or None while the loan is open.
    """

    id: str
    book_id: str
    user_id: str
    loan_date: datetime
    due_date: datetime
    returned: bool = False
    returned_at: Optional[datetime] = None

    @property
    def status(self) -> str:
        """Human readable status: BORROWED or RETURNED."""
        return "RETURNED" if self.returned else "BORROWED"

    def is_overdue(self, now: Optional[datetime] = None) -> bool:
        """Return True if the loan is still open and its due date has passed."""
        if self.returned:
            return False
        return self.due_date < (now or datetime.now())

    def copy(self) -> "Loan":
        return replace(self)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["loan_date"] = _iso(self.loan_date)
        data["due_date"] = _iso(self.due_date)
        data["returned_at"] = _iso(self.returned_at)
        data["status"] = self.status
        return data
