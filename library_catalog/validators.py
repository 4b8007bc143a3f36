from typing import Any, Iterable

from library_catalog.errors import InvalidArgumentError


class TextValidator:
    """Shape checks for caller-supplied text."""

    @staticmethod
    def is_non_empty_text(value: Any) -> bool:
        return isinstance(value, str) and bool(value)

    @staticmethod
    def require_text(value: Any, label: str) -> str:
        if not TextValidator.is_non_empty_text(value):
            raise InvalidArgumentError(f"{label} is required and must be a non-empty string.")
        return value

    @staticmethod
    def require_optional_text(value: Any, label: str) -> None:
        # Falsy values count as "not supplied"
        if value and not isinstance(value, str):
            raise InvalidArgumentError(f"{label} must be a string.")

    @staticmethod
    def require_choice(value: Any, choices: Iterable[str], label: str) -> str:
        choices = tuple(choices)
        if value not in choices:
            raise InvalidArgumentError(f"{label} must be one of: {', '.join(choices)}.")
        return value


class EmailValidator:
    @staticmethod
    def is_valid_email(email: Any) -> bool:
        return TextValidator.is_non_empty_text(email) and "@" in email

    @staticmethod
    def require_email(email: Any) -> str:
        TextValidator.require_text(email, "Email")
        if not EmailValidator.is_valid_email(email):
            raise InvalidArgumentError(f"Email must be a valid address: {email}")
        return email


class NumberValidator:
    """Integer range checks. ``bool`` is never accepted as a number."""

    @staticmethod
    def is_int(value: Any) -> bool:
        return isinstance(value, int) and not isinstance(value, bool)

    @staticmethod
    def require_optional_non_negative_int(value: Any, label: str) -> None:
        if value and (not NumberValidator.is_int(value) or value < 0):
            raise InvalidArgumentError(f"{label} must be a non-negative integer.")

    @staticmethod
    def require_positive_int(value: Any, label: str) -> int:
        if not NumberValidator.is_int(value) or value <= 0:
            raise InvalidArgumentError(f"{label} must be a positive integer.")
        return value
