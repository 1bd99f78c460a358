"""Domain-specific exceptions for the kakeibo core services."""

from typing import Iterable, List, Optional


class ValidationError(ValueError):
    """Raised when provided data does not meet validation requirements."""

    def __init__(self, message: str, errors: Optional[Iterable[str]] = None) -> None:
        super().__init__(message)
        self.errors: List[str] = list(errors) if errors is not None else [message]


class RecordNotFoundError(LookupError):
    """Raised when an expense or category cannot be located."""


class PersistenceError(IOError):
    """Raised when the persistence layer encounters unrecoverable issues."""


class MalformedDocumentError(ValidationError):
    """Raised when an import document cannot be parsed into a state snapshot."""
