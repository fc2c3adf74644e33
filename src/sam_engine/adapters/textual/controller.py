"""Minimal Textual adapter that runs edit commands and refreshes UI callbacks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from sam_engine.buffer import BufferMirror
from sam_engine.errors import EditError
from sam_engine.interpreter import EditSession, run_edit


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


@dataclass(slots=True)
class TextualUIHooks:
    """Callbacks invoked by the adapter to update Textual widgets."""

    update_buffer: Callable[[BufferMirror], None]
    update_status: Callable[[str], None] = _noop
    show_warnings: Callable[[List[str]], None] = _noop
    # Optional realtime log callback a host may use to surface debug lines
    log: Callable[[str], None] = _noop


class TextualEditAdapter:
    """Bridges an ``EditSession`` to a Textual-friendly surface."""

    def __init__(self, session: EditSession, hooks: TextualUIHooks) -> None:
        self.session = session
        self.hooks = hooks
        self.session.diagnostics.bus.subscribe("edit.error", self._handle_error)
        self._refresh_buffer()

    def submit(self, command: str) -> Optional[EditError]:
        """Run ``command`` against the current buffer and surface the outcome."""

        self._log_state("command ->", text=command)
        failure = run_edit(self.session, self.session.current, command)
        warnings = self.session.diagnostics.drain()
        if warnings:
            self.hooks.show_warnings(warnings)
        if failure is None:
            self.hooks.update_status(self._status_line())
        self._refresh_buffer()
        self._log_state("result <-", error=str(failure) if failure else None)
        return failure

    def _handle_error(self, payload: object) -> None:
        self.hooks.update_status(f"Edit: {payload}")

    def _status_line(self) -> str:
        buffer = self.session.current
        if buffer is None:
            return "no current buffer"
        dirty = "'" if buffer.saveable_and_dirty else ""
        return f"{dirty}{buffer.name or '<unnamed>'} #{buffer.dot.q0},#{buffer.dot.q1}"

    def _refresh_buffer(self) -> None:
        buffer = self.session.current
        if buffer is not None:
            self.hooks.update_buffer(buffer.mirror())

    def _log_state(self, prefix: str, **fields: object) -> None:
        snapshot = self._state_metadata()
        snapshot.update({k: v for k, v in fields.items() if v is not None})
        parts = [prefix]
        for key, value in snapshot.items():
            parts.append(f"{key}={value!r}")
        self.hooks.log(" ".join(parts))

    def _state_metadata(self) -> Dict[str, object]:
        buffer = self.session.current
        return {
            "seq": self.session.seq,
            "buffers": len(self.session.workspace),
            "buffer": buffer.name if buffer else None,
            "dot": (buffer.dot.q0, buffer.dot.q1) if buffer else None,
        }


__all__ = ["TextualEditAdapter", "TextualUIHooks"]
