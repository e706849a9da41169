from __future__ import annotations


class TodoError(Exception):
    """
    Base class for domain errors raised by the List Store and the Task Ordering Service.

    Each subclass carries the HTTP status the transport maps it to.
    """

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# PUBLIC_INTERFACE
class ValidationError(TodoError):
    """A required field is missing or empty."""

    status_code = 400


# PUBLIC_INTERFACE
class NotFoundError(TodoError):
    """A list or task identifier does not resolve."""

    status_code = 404


# PUBLIC_INTERFACE
class ConflictError(TodoError):
    """The aggregate changed in the store since it was loaded."""

    status_code = 409


# PUBLIC_INTERFACE
class StoreError(TodoError):
    """The persistence backend failed."""

    status_code = 500


def require_text(value: object, field: str) -> str:
    """
    Return value stripped of surrounding whitespace, or raise ValidationError
    when it is missing, not a string, or blank.
    """
    if not isinstance(value, str):
        raise ValidationError(f"{field} is required")
    s = value.strip()
    if not s:
        raise ValidationError(f"{field} must not be empty")
    return s
