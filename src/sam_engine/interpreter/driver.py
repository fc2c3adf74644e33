"""Top-level entry point: parse and run one edit command atomically."""

from __future__ import annotations

from typing import Optional

from sam_engine.buffer import Buffer
from sam_engine.commands.parser import CommandParser
from sam_engine.errors import EditError, EvalError
from sam_engine.runtime import telemetry

from .executor import Executor
from .session import EditSession

WARN_TOO_LONG = "string too long\n"


def run_edit(session: EditSession, buffer: Optional[Buffer], text: str) -> Optional[EditError]:
    """Run ``text`` against ``buffer`` and commit every touched buffer.

    Any ``EditError`` discards the pending edits of every buffer, is reported
    as an ``Edit:`` warning and returned; nothing is applied in that case.
    """

    if not text:
        return None
    if len(text) > session.settings.max_command:
        session.diagnostics.warning(WARN_TOO_LONG)
        return None

    workspace = session.workspace
    for candidate in workspace:
        candidate.edit_clean = False
        candidate.elog.trace = session.settings.trace
    session.seq += 1
    session.reset()
    session.current = buffer

    parser = CommandParser.for_command(text, session.patterns)
    executor = Executor(session)
    failure: Optional[EditError] = None
    with workspace.lock:
        try:
            with telemetry.span(
                "edit::command",
                metadata={"seq": session.seq, "buffer": buffer.name if buffer else ""},
            ):
                if buffer is not None and buffer not in workspace:
                    raise EvalError("buffer is not open in this workspace")
                while True:
                    cmd = parser.parse_command()
                    if cmd is None or not executor.execute(session.current, cmd):
                        break
        except EditError as exc:
            failure = exc
            workspace.truncate_all()
            telemetry.record_event(
                "edit.error",
                level="warning",
                data={"error": str(exc), "kind": type(exc).__name__},
            )
            session.diagnostics.warning(f"Edit: {exc}\n")
            session.diagnostics.bus.emit("edit.error", exc)
        for candidate in workspace:
            candidate.commit(session.seq)
    return failure


__all__ = ["WARN_TOO_LONG", "run_edit"]
