"""Errors raised by tables.

All of them are contract violations: fatal, raised where detected, never
retried.
"""


class ArithmetizationError(Exception):
    """Base class. Carries the offending table's name and expected/actual values."""

    def __init__(self, message: str, table: str = None, expected=None, actual=None):
        self.table = table
        self.expected = expected
        self.actual = actual
        details = message
        if expected is not None or actual is not None:
            details = f"{details} (expected {expected}, got {actual})"
        if table is not None:
            details = f"{table}: {details}"
        super().__init__(details)


class ShapeMismatch(ArithmetizationError, ValueError):
    """Widths, heights or initial counts disagree with the declared shape."""


class DomainMismatch(ArithmetizationError, ValueError):
    """Two domains that must coincide do not."""


class InvalidUsage(ArithmetizationError, RuntimeError):
    """Operation not allowed in the table's current state."""
