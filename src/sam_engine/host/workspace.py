"""The set of open buffers an edit command can reach."""

from __future__ import annotations

import os
import threading
from contextlib import contextmanager
from typing import Iterable, Iterator, List, Optional

from sam_engine.buffer import Buffer
from sam_engine.runtime import telemetry


class Workspace:
    """Ordered buffers plus the coarse lock held for a whole edit command.

    Buffers pinned by a running ``X``/``Y`` loop stay listed after ``close``
    until the loop releases them.
    """

    def __init__(
        self, buffers: Iterable[Buffer] = (), *, directory: Optional[str] = None
    ) -> None:
        self.buffers: List[Buffer] = list(buffers)
        self.directory = directory or os.getcwd()
        self.lock = threading.Lock()
        self._late_pins: Optional[List[Buffer]] = None

    def __iter__(self) -> Iterator[Buffer]:
        return iter(list(self.buffers))

    def __len__(self) -> int:
        return len(self.buffers)

    def __contains__(self, buffer: object) -> bool:
        return any(candidate is buffer for candidate in self.buffers)

    def add(self, buffer: Buffer) -> Buffer:
        self.buffers.append(buffer)
        if self._late_pins is not None:
            buffer.pins += 1
            self._late_pins.append(buffer)
        telemetry.record_event("workspace.add", level="debug", data={"name": buffer.name})
        return buffer

    def lookup(self, name: str) -> Optional[Buffer]:
        for buffer in self.buffers:
            if buffer.name == name and not buffer.closed:
                return buffer
        return None

    def open(self, path: str) -> Buffer:
        """Return the buffer named ``path``, loading it from disk if needed."""

        existing = self.lookup(path)
        if existing is not None:
            return existing
        return self.add(Buffer.from_file(path))

    def close(self, buffer: Buffer) -> None:
        buffer.closed = True
        if buffer.pins == 0:
            self._remove(buffer)

    def _remove(self, buffer: Buffer) -> None:
        self.buffers = [candidate for candidate in self.buffers if candidate is not buffer]
        telemetry.record_event(
            "workspace.close", level="debug", data={"name": buffer.name}
        )

    def unpin(self, buffer: Buffer) -> None:
        buffer.pins -= 1
        if buffer.pins <= 0 and buffer.closed:
            self._remove(buffer)

    @contextmanager
    def pinned(self, buffers: Iterable[Buffer]) -> Iterator[List[Buffer]]:
        """Pin ``buffers`` and anything opened inside the block."""

        held = list(buffers)
        for buffer in held:
            buffer.pins += 1
        self._late_pins = []
        try:
            yield held
        finally:
            late, self._late_pins = self._late_pins, None
            for buffer in held + late:
                self.unpin(buffer)

    def truncate_all(self) -> None:
        for buffer in self.buffers:
            buffer.rollback()

    @contextmanager
    def released(self) -> Iterator[None]:
        """Drop the command lock while blocking on something external."""

        held = self.lock.locked()
        if held:
            self.lock.release()
        try:
            yield
        finally:
            if held:
                self.lock.acquire()


__all__ = ["Workspace"]
