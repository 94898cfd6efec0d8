"""Custom exceptions for Cascade."""

from __future__ import annotations


class CascadeError(Exception):
    """Base exception for all Cascade errors."""

    pass


class ValidationError(CascadeError):
    """Raised when plan or calendar validation fails."""

    pass


class CyclicDependencyError(ValidationError):
    """Raised when the dependency edges contain a cycle.

    The ``path`` attribute holds the closed cycle, e.g. ``["A", "B", "C", "A"]``.
    """

    def __init__(self, path: list[str]):
        self.path = list(path)
        super().__init__(f"Circular dependency detected: {' -> '.join(self.path)}")


class MissingReferenceError(ValidationError):
    """Raised when a referenced node ID does not exist."""

    pass


class InvalidCalendarError(ValidationError):
    """Raised when a working calendar cannot be used for date arithmetic."""

    pass


class InvalidDurationError(ValidationError):
    """Raised when a duration is negative or otherwise unusable."""

    pass


class ParseError(CascadeError):
    """Raised when input rows or config files cannot be parsed."""

    pass
