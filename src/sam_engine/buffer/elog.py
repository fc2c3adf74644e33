"""Pending edit log: changes recorded during a command, applied in one go."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Protocol, Tuple

from sam_engine.runtime import telemetry

from .state import Range

WARN_SEQUENCE = "warning: changes out of sequence"
WARN_SEQUENCE_DIRE = "warning: changes out of sequence, edit result probably wrong"


class ElogKind(str, Enum):
    NULL = "-"
    INSERT = "i"
    DELETE = "d"
    REPLACE = "r"


@dataclass(slots=True)
class ElogEntry:
    kind: ElogKind
    q0: int
    nd: int = 0
    text: str = ""


class ElogTarget(Protocol):
    """What ``Elog.apply`` needs from a buffer."""

    @property
    def dot(self) -> Range:
        ...

    def set_dot(self, q0: int, q1: int) -> None:
        ...

    def constrain(self, q0: int, q1: int) -> Tuple[int, int]:
        ...

    def insert(self, q0: int, text: str) -> None:
        ...

    def delete(self, q0: int, q1: int) -> None:
        ...


def _join(first: Optional[str], second: str) -> str:
    return f"{first}\n{second}" if first else second


class Elog:
    """Ordered Insert/Delete/Replace records against unmodified offsets.

    Entries are expected in increasing offset order. Out-of-order entries are
    kept but reported once through the returned warning text; applying plays
    the log back to front so earlier offsets stay valid.
    """

    def __init__(self, *, trace: bool = False) -> None:
        self._entries: List[ElogEntry] = [ElogEntry(ElogKind.NULL, 0)]
        self._warned = False
        self.trace = trace

    def __len__(self) -> int:
        return len(self._entries) - 1

    def entries(self) -> Tuple[ElogEntry, ...]:
        return tuple(self._entries[1:])

    def empty(self) -> bool:
        return len(self._entries) == 1

    def term(self) -> None:
        """Drop every pending entry and re-arm the sequence warning."""

        del self._entries[1:]
        self._warned = False

    def _last(self) -> ElogEntry:
        return self._entries[-1]

    def _check_order(self, q0: int, limit: int) -> Optional[str]:
        if q0 < limit and not self._warned:
            self._warned = True
            return WARN_SEQUENCE
        return None

    def _append(self, entry: ElogEntry, warning: Optional[str]) -> Optional[str]:
        self._entries.append(entry)
        if entry.q0 < self._entries[-2].q0:
            self._warned = True
            warning = _join(warning, WARN_SEQUENCE_DIRE)
        if warning:
            telemetry.record_event(
                "elog.out_of_sequence",
                level="warning",
                data={"kind": entry.kind.value, "q0": entry.q0},
            )
        return warning

    def replace(self, q0: int, q1: int, text: str) -> Optional[str]:
        if q0 == q1 and not text:
            return None
        warning = self._check_order(q0, self._last().q0)
        return self._append(ElogEntry(ElogKind.REPLACE, q0, q1 - q0, text), warning)

    def insert(self, q0: int, text: str) -> Optional[str]:
        if not text:
            return None
        last = self._last()
        warning = self._check_order(q0, last.q0)
        if last.kind is ElogKind.INSERT and last.q0 == q0:
            last.text += text
            return warning
        return self._append(ElogEntry(ElogKind.INSERT, q0, 0, text), warning)

    def delete(self, q0: int, q1: int) -> Optional[str]:
        if q0 == q1:
            return None
        last = self._last()
        warning = self._check_order(q0, last.q0 + last.nd)
        if last.kind is ElogKind.DELETE and last.q0 + last.nd == q0:
            last.nd += q1 - q0
            return warning
        return self._append(ElogEntry(ElogKind.DELETE, q0, q1 - q0), warning)

    def apply(self, target: ElogTarget) -> None:
        """Play the log into ``target`` last entry first, then reset it."""

        for entry in reversed(self._entries[1:]):
            if self.trace:
                telemetry.record_event(
                    "elog.apply",
                    level="debug",
                    data={
                        "kind": entry.kind.value,
                        "q0": entry.q0,
                        "nd": entry.nd,
                        "dot": target.dot,
                    },
                )
            if entry.kind is ElogKind.DELETE:
                tq0, tq1 = target.constrain(entry.q0, entry.q0 + entry.nd)
                target.delete(tq0, tq1)
                continue
            if entry.kind is ElogKind.REPLACE:
                tq0, tq1 = target.constrain(entry.q0, entry.q0 + entry.nd)
                target.delete(tq0, tq1)
            else:
                tq0, _ = target.constrain(entry.q0, entry.q0)
            target.insert(tq0, entry.text)
            dot = target.dot
            # an empty dot at the change point grows to cover the new text
            if dot.q0 == entry.q0 and dot.q1 == entry.q0:
                target.set_dot(dot.q0, dot.q1 + len(entry.text))
        self.term()


__all__ = [
    "Elog",
    "ElogEntry",
    "ElogKind",
    "ElogTarget",
    "WARN_SEQUENCE",
    "WARN_SEQUENCE_DIRE",
]
