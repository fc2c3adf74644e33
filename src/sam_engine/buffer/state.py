"""Ranges and the mutable dot tracked for every buffer."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Range:
    """Half-open ``[q0, q1)`` span of character offsets."""

    q0: int
    q1: int

    def __len__(self) -> int:
        return max(0, self.q1 - self.q0)

    @property
    def empty(self) -> bool:
        return self.q0 == self.q1


NO_RANGE = Range(-1, -1)


@dataclass(slots=True)
class BufferState:
    """Dot, the current selection."""

    dot: Range = Range(0, 0)

    def set_dot(self, q0: int, q1: int) -> None:
        self.dot = Range(q0, q1)
