"""Buffer façade combining document, dot, edit log and undo history."""

from __future__ import annotations

import os
from contextlib import AbstractContextManager
from typing import ContextManager, Optional, Tuple

from sam_engine.runtime import telemetry

from .document import BufferDocument
from .elog import Elog
from .state import BufferState, Range
from .sync import BufferMirror
from .undo import UndoEntry, UndoTimeline
from .validation import ensure_range


class Buffer:
    """Named text plus everything the interpreter tracks per buffer.

    Commands never write the document directly; they append to ``elog`` and
    the driver calls ``commit`` once the whole command has succeeded.
    """

    def __init__(
        self,
        *,
        name: str = "",
        document: Optional[BufferDocument] = None,
        state: Optional[BufferState] = None,
        undo: Optional[UndoTimeline] = None,
        dirty: bool = False,
        trace: bool = False,
    ) -> None:
        self.name = name
        self.document = document or BufferDocument()
        self.state = state or BufferState()
        self.undo = undo or UndoTimeline()
        self.elog = Elog(trace=trace)
        self.disk_mtime: Optional[float] = None
        self.edit_clean = False
        self.pins = 0
        self.closed = False
        self._clean_seq = -1 if dirty else self.undo.seq
        self._undo_mark: Optional[Tuple[int, str, Range]] = None

    @classmethod
    def from_text(cls, text: str, *, name: str = "", dirty: bool = False) -> "Buffer":
        return cls(name=name, document=BufferDocument.from_text(text), dirty=dirty)

    @classmethod
    def from_file(cls, path: str) -> "Buffer":
        buffer = cls(name=path)
        if os.path.isfile(path):
            with open(path, encoding="utf-8", errors="replace") as handle:
                buffer.document = BufferDocument.from_text(handle.read())
            buffer.disk_mtime = os.path.getmtime(path)
        return buffer

    def __repr__(self) -> str:
        return f"Buffer(name={self.name!r}, len={len(self)}, dot={self.dot})"

    # text access

    def __len__(self) -> int:
        return len(self.document)

    def read_char(self, q: int) -> str:
        return self.document.read_char(q)

    def view(self, q0: int, q1: int) -> str:
        return self.document.view(q0, q1)

    @property
    def text(self) -> str:
        return self.document.text

    # dot

    @property
    def dot(self) -> Range:
        return self.state.dot

    def set_dot(self, q0: int, q1: int) -> None:
        self.state.set_dot(q0, q1)

    def constrain(self, q0: int, q1: int) -> Tuple[int, int]:
        size = len(self)
        return min(q0, size), min(q1, size)

    # file status

    @property
    def dirty(self) -> bool:
        return self.undo.seq != self._clean_seq

    @property
    def saveable_and_dirty(self) -> bool:
        return bool(self.name) and self.dirty

    def mark_clean(self) -> None:
        self._clean_seq = self.undo.seq

    def mark_dirty(self) -> None:
        self._clean_seq = -1

    def rename(self, name: str) -> None:
        if self.name and name != self.name:
            self.mark_dirty()
        self.name = name

    def directory(self) -> str:
        if not self.name:
            return ""
        if os.path.isdir(self.name):
            return self.name
        return os.path.dirname(self.name)

    # low-level mutation, only reached through Elog.apply

    def insert(self, q0: int, text: str) -> None:
        ensure_range(self, q0, q0)
        self.document.insert(q0, text)
        n = len(text)
        dot = self.dot
        q1 = dot.q1 + n if q0 < dot.q1 else dot.q1
        start = dot.q0 + n if q0 < dot.q0 else dot.q0
        self.state.set_dot(start, q1)

    def delete(self, q0: int, q1: int) -> None:
        ensure_range(self, q0, q1)
        self.document.delete(q0, q1)
        n = q1 - q0
        dot = self.dot
        start = dot.q0 - min(n, dot.q0 - q0) if q0 < dot.q0 else dot.q0
        end = dot.q1 - min(n, dot.q1 - q0) if q0 < dot.q1 else dot.q1
        self.state.set_dot(start, end)

    # commit and undo

    def commit(self, seq: int) -> bool:
        """Apply the pending edit log as one undoable change tagged ``seq``."""

        self._undo_mark = None
        if self.elog.empty():
            return False
        with Transaction(self, "commit", seq=seq) as tx:
            tx.add_metadata("entries", len(self.elog))
            self.elog.apply(self)
            tx.add_metadata("version", self.document.version)
        if self.edit_clean:
            self.mark_clean()
        self.edit_clean = False
        return True

    def rollback(self) -> None:
        """Drop pending edits and undo moves made by a command that failed."""

        self.elog.term()
        if self._undo_mark is None:
            return
        position, text, dot = self._undo_mark
        self._undo_mark = None
        self.undo.seek(position)
        self.document.reset(text)
        self.state.dot = dot

    def _mark_undo(self) -> None:
        if self._undo_mark is None:
            self._undo_mark = (self.undo.position, self.text, self.dot)

    def undo_step(self) -> bool:
        self._mark_undo()
        entry = self.undo.undo()
        if entry is None:
            return False
        self.document.reset(entry.before_text)
        self.state.dot = entry.dot_before
        return True

    def redo_step(self) -> bool:
        self._mark_undo()
        entry = self.undo.redo()
        if entry is None:
            return False
        self.document.reset(entry.after_text)
        self.state.dot = entry.dot_after
        return True

    def mirror(self) -> BufferMirror:
        return BufferMirror(
            name=self.name,
            text=self.text,
            dot=self.dot,
            dirty=self.dirty,
            version=self.document.version,
        )


class Transaction(AbstractContextManager["Transaction"]):
    """Profiled change that lands on the undo timeline when the block succeeds."""

    def __init__(self, buffer: Buffer, label: str, *, seq: int) -> None:
        self.buffer = buffer
        self.label = label
        self.seq = seq
        self._span_cm: Optional[ContextManager[telemetry.SpanHandle]] = None
        self._handle: Optional[telemetry.SpanHandle] = None
        self._before_text = ""
        self._before_dot = Range(0, 0)

    def __enter__(self) -> "Transaction":
        self._before_text = self.buffer.text
        self._before_dot = self.buffer.dot
        self._span_cm = telemetry.span(
            name=f"buffer::{self.label}",
            component=True,
            metadata={"buffer": self.buffer.name or "<unnamed>", "seq": self.seq},
        )
        self._handle = self._span_cm.__enter__()
        return self

    def add_metadata(self, key: str, value: object) -> None:
        if self._handle is not None:
            self._handle.add_metadata(key, value)

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            self.buffer.undo.push(
                UndoEntry(
                    seq=self.seq,
                    label=self.label,
                    before_text=self._before_text,
                    after_text=self.buffer.text,
                    dot_before=self._before_dot,
                    dot_after=self.buffer.dot,
                )
            )
        if self._span_cm is not None:
            self._span_cm.__exit__(exc_type, exc, tb)
        return False


__all__ = ["Buffer", "Transaction"]
