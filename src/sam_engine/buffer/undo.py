"""Linear undo/redo history keyed by edit command sequence numbers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from .state import Range


@dataclass(slots=True)
class UndoEntry:
    seq: int
    label: str
    before_text: str
    after_text: str
    dot_before: Range
    dot_after: Range


class UndoTimeline:
    """Snapshots pushed once per committed command; redo is cut on push."""

    def __init__(self) -> None:
        self._entries: List[UndoEntry] = []
        self._index: int = -1

    def push(self, entry: UndoEntry) -> None:
        del self._entries[self._index + 1 :]
        self._entries.append(entry)
        self._index = len(self._entries) - 1

    @property
    def position(self) -> int:
        return self._index

    def seek(self, position: int) -> None:
        self._index = max(-1, min(position, len(self._entries) - 1))

    @property
    def seq(self) -> int:
        """Sequence number of the newest change still applied (0 if none)."""

        if self._index < 0:
            return 0
        return self._entries[self._index].seq

    def can_undo(self) -> bool:
        return self._index >= 0

    def can_redo(self) -> bool:
        return self._index < len(self._entries) - 1

    def undo(self) -> Optional[UndoEntry]:
        if not self.can_undo():
            return None
        entry = self._entries[self._index]
        self._index -= 1
        return entry

    def redo(self) -> Optional[UndoEntry]:
        if not self.can_redo():
            return None
        self._index += 1
        return self._entries[self._index]

    def __len__(self) -> int:
        return len(self._entries)
