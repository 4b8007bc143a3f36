"""Library Catalog - in-memory library management

This package contains:
- Library service and its in-memory store (library.py)
- Data models for books, users and loans (models.py)
- Error taxonomy (errors.py)
- Argument validators (validators.py)
- CLI interface (main.py)
"""

from library_catalog.errors import ConflictError, InvalidArgumentError, LibraryError, NotFoundError
from library_catalog.library import Library, LibraryStore
from library_catalog.models import Book, Loan, User

__all__ = [
    "Book",
    "ConflictError",
    "InvalidArgumentError",
    "Library",
    "LibraryError",
    "LibraryStore",
    "Loan",
    "NotFoundError",
    "User",
]
