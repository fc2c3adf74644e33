"""Validation helpers shared across buffer services."""

from __future__ import annotations

from .state import Range
from .sync import BufferValidationError, TextSource


def ensure_range(source: TextSource, q0: int, q1: int) -> Range:
    if q0 < 0 or q1 < q0:
        raise BufferValidationError("Malformed range", range=Range(q0, q1))
    if q1 > len(source):
        raise BufferValidationError("Range past end of buffer", range=Range(q0, q1))
    return Range(q0, q1)
