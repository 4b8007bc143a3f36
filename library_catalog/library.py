import logging
import random
import string
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from library_catalog.config import Settings, settings as default_settings
from library_catalog.errors import ConflictError, NotFoundError
from library_catalog.models import Book, Loan, User
from library_catalog.validators import EmailValidator, NumberValidator, TextValidator

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ("title", "author", "genre")
DEFAULT_LOAN_DAYS = 14

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_id(length: int = 7) -> str:
    """Short pseudo-random base-36 token. Not guaranteed unique."""
    return "".join(random.choices(_ID_ALPHABET, k=length))


@dataclass
class LibraryStore:
    """The three in-memory collections, kept in insertion order."""

    books: List[Book] = field(default_factory=list)
    users: List[User] = field(default_factory=list)
    loans: List[Loan] = field(default_factory=list)

    def reset(self) -> None:
        self.books.clear()
        self.users.clear()
        self.loans.clear()

    def find_book(self, book_id: str) -> Optional[Book]:
        for book in self.books:
            if book.id == book_id:
                return book
        return None

    def find_user(self, user_id: str) -> Optional[User]:
        for user in self.users:
            if user.id == user_id:
                return user
        return None

    def find_user_by_email(self, email: str) -> Optional[User]:
        for user in self.users:
            if user.email == email:
                return user
        return None

    def find_loan(self, loan_id: str) -> Optional[Loan]:
        for loan in self.loans:
            if loan.id == loan_id:
                return loan
        return None


class Library:
    """Manages the book catalog, registered users and loans.

    Every operation checks its arguments first, then resolves the records it
    refers to, then checks domain rules, and only then mutates the store. A
    failing call therefore leaves the store untouched.
    """

    def __init__(
        self,
        store: Optional[LibraryStore] = None,
        *,
        clock: Optional[Callable[[], datetime]] = None,
        id_factory: Optional[Callable[[], str]] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.settings = settings or default_settings
        self.store = store if store is not None else LibraryStore()
        self._clock = clock or datetime.now
        self._id_factory = id_factory or (lambda: generate_id(self.settings.id_length))

    # ------------------------- Books ------------------------- #
    def add_book(
        self,
        title: str,
        author: str,
        genre: Optional[str] = None,
        publication_year: Optional[int] = None,
    ) -> Book:
        """Add a book to the catalog. Falsy genre/year fall back to the defaults."""
        TextValidator.require_text(title, "Title")
        TextValidator.require_text(author, "Author")
        TextValidator.require_optional_text(genre, "Genre")
        NumberValidator.require_optional_non_negative_int(publication_year, "Publication year")

        book = Book(
            id=self._id_factory(),
            title=title,
            author=author,
            genre=genre or self.settings.default_genre,
            publication_year=publication_year or None,
        )
        self.store.books.append(book)
        logger.info(f"Book added: id={book.id}, title={book.title!r}")
        return book.copy()

    def search_books(self, term: str, field: str = "title") -> List[Book]:
        """Case-insensitive substring search on title, author or genre."""
        TextValidator.require_text(term, "Search term")
        TextValidator.require_choice(field, SEARCH_FIELDS, "Search field")

        needle = term.lower()
        return [book.copy() for book in self.store.books if needle in getattr(book, field).lower()]

    def list_books(self) -> List[Book]:
        return [book.copy() for book in self.store.books]

    def get_book(self, book_id: str) -> Book:
        TextValidator.require_text(book_id, "Book id")
        return self._require_book(book_id).copy()

    # ------------------------- Users ------------------------- #
    def register_user(self, name: str, email: str) -> User:
        """Register a new, active user. Emails are unique (exact match)."""
        TextValidator.require_text(name, "Name")
        EmailValidator.require_email(email)

        if self.store.find_user_by_email(email):
            raise ConflictError(f"Email already registered: {email}")

        user = User(id=self._id_factory(), name=name, email=email, registered_at=self._clock())
        self.store.users.append(user)
        logger.info(f"User registered: id={user.id}, email={user.email}")
        return user.copy()

    def list_users(self) -> List[User]:
        return [user.copy() for user in self.store.users]

    def get_user(self, user_id: str) -> User:
        TextValidator.require_text(user_id, "User id")
        return self._require_user(user_id).copy()

    # ------------------------- Loans ------------------------- #
    def lend_book(self, book_id: str, user_id: str, loan_days: int = DEFAULT_LOAN_DAYS) -> Loan:
        """Lend an available book to an active user for ``loan_days`` whole days."""
        TextValidator.require_text(book_id, "Book id")
        TextValidator.require_text(user_id, "User id")
        NumberValidator.require_positive_int(loan_days, "Loan days")

        book = self._require_book(book_id)
        if not book.available:
            raise ConflictError(f"Book is not available: {book_id}")
        user = self._require_user(user_id)
        if not user.active:
            raise ConflictError(f"User is not active: {user_id}")

        loan_date = self._clock()
        loan = Loan(
            id=self._id_factory(),
            book_id=book_id,
            user_id=user_id,
            loan_date=loan_date,
            due_date=loan_date + timedelta(days=loan_days),
        )
        book.available = False
        self.store.loans.append(loan)
        logger.info(f"Loan created: id={loan.id}, book={book_id}, user={user_id}, days={loan_days}")
        return loan.copy()

    def return_book(self, loan_id: str) -> Loan:
        """Close an open loan and make its book available again."""
        TextValidator.require_text(loan_id, "Loan id")

        loan = self._require_loan(loan_id)
        if loan.returned:
            raise ConflictError(f"Book already returned for loan: {loan_id}")
        book = self.store.find_book(loan.book_id)
        if book is None:
            raise NotFoundError(f"Book referenced by loan {loan_id} does not exist: {loan.book_id}")

        loan.returned = True
        loan.returned_at = self._clock()
        book.available = True
        logger.info(f"Loan returned: id={loan.id}, book={book.id}")
        return loan.copy()

    def loans_for_user(self, user_id: str) -> List[Loan]:
        """All loans of a user, open and returned, in the order they were made."""
        TextValidator.require_text(user_id, "User id")
        self._require_user(user_id)
        return [loan.copy() for loan in self.store.loans if loan.user_id == user_id]

    def list_loans(self) -> List[Loan]:
        return [loan.copy() for loan in self.store.loans]

    def get_loan(self, loan_id: str) -> Loan:
        TextValidator.require_text(loan_id, "Loan id")
        return self._require_loan(loan_id).copy()

    # ------------------------- Maintenance ------------------------- #
    def get_statistics(self) -> Dict[str, Any]:
        """Get catalog statistics."""
        now = self._clock()
        open_loans = [loan for loan in self.store.loans if not loan.returned]
        return {
            "total_books": len(self.store.books),
            "available_books": sum(1 for book in self.store.books if book.available),
            "total_users": len(self.store.users),
            "total_loans": len(self.store.loans),
            "open_loans": len(open_loans),
            "overdue_loans": sum(1 for loan in open_loans if loan.is_overdue(now)),
        }

    def reset_state(self) -> None:
        """Clear every collection. Meant for test isolation."""
        self.store.reset()
        logger.info("Library state reset")

    # ------------------------- Lookups ------------------------- #
    def _require_book(self, book_id: str) -> Book:
        book = self.store.find_book(book_id)
        if book is None:
            raise NotFoundError(f"Book does not exist: {book_id}")
        return book

    def _require_user(self, user_id: str) -> User:
        user = self.store.find_user(user_id)
        if user is None:
            raise NotFoundError(f"User does not exist: {user_id}")
        return user

    def _require_loan(self, loan_id: str) -> Loan:
        loan = self.store.find_loan(loan_id)
        if loan is None:
            raise NotFoundError(f"Loan does not exist: {loan_id}")
        return loan
