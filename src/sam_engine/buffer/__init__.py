"""Buffers, dot, pending edit logs and undo history."""

from .buffer import Buffer, Transaction
from .document import BufferDocument
from .elog import Elog, ElogEntry, ElogKind
from .state import NO_RANGE, BufferState, Range
from .sync import BufferMirror, BufferValidationError, TextSource
from .undo import UndoEntry, UndoTimeline
from .validation import ensure_range

__all__ = [
    "Buffer",
    "BufferDocument",
    "BufferMirror",
    "BufferState",
    "BufferValidationError",
    "Elog",
    "ElogEntry",
    "ElogKind",
    "NO_RANGE",
    "Range",
    "TextSource",
    "Transaction",
    "UndoEntry",
    "UndoTimeline",
    "ensure_range",
]
