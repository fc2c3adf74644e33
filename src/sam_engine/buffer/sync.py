"""Boundary types shared with hosts and with the search layer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from .state import Range


class TextSource(Protocol):
    """Read access the search and address layers need from a buffer."""

    def __len__(self) -> int:
        ...

    def read_char(self, q: int) -> str:
        """Return the character at offset ``q``."""
        ...

    def view(self, q0: int, q1: int) -> str:
        """Return the text of ``[q0, q1)``."""
        ...


@dataclass(slots=True)
class BufferMirror:
    """Host-friendly snapshot describing the current buffer state."""

    name: str
    text: str
    dot: Range
    dirty: bool = False
    version: int = 0


class BufferValidationError(RuntimeError):
    """Raised when a caller hands the buffer layer an out-of-bounds range."""

    def __init__(self, message: str, *, range: Optional[Range] = None) -> None:
        super().__init__(message)
        self.range = range
