class LibraryError(Exception):
    """Base class for every failure raised by the library service."""


class InvalidArgumentError(LibraryError, ValueError):
    """A caller-supplied value failed a shape, type or range check."""


class NotFoundError(LibraryError, LookupError):
    """An identifier did not resolve to a stored record."""


class ConflictError(LibraryError):
    """The request is well-formed but breaks a domain rule."""
