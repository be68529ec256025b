"""
Error taxonomy for the fermentation core.

Validation helpers raise :class:`InvalidInputError`; the prediction layer
catches it and reports the affected sub-result as :class:`Unavailable`, so a
bad field never escapes as an exception nor leaks a NaN into a series.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    DEGENERATE_FIT = "degenerate_fit"
    DATE_ERROR = "date_error"


class InvalidInputError(ValueError):
    """A required numeric input is missing, non-finite or out of contract."""


@dataclass(frozen=True)
class Unavailable:
    """Marker for a sub-result that could not be produced."""
    kind: ErrorKind
    message: str

    def __bool__(self) -> bool:
        return False
