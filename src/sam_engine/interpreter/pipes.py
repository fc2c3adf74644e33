"""Shell pipe commands ``<``, ``|`` and ``>`` plus ``<cmd`` file lists."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sam_engine.addressing.resolver import Address
from sam_engine.buffer import Buffer
from sam_engine.commands.models import Cmd
from sam_engine.errors import EvalError
from sam_engine.host.process import PipeResult, ProcessFailure
from sam_engine.runtime import telemetry

if TYPE_CHECKING:
    from .executor import Executor


def run_command(
    executor: "Executor",
    buffer: Optional[Buffer],
    command: str,
    stdin: Optional[str],
) -> PipeResult:
    """Run ``command`` with the workspace lock released while it works."""

    session = executor.session
    directory = session.directory(buffer)
    telemetry.record_event(
        "pipe.run",
        level="info",
        data={"command": command, "directory": directory, "input": stdin is not None},
    )
    try:
        completion = session.runner.run(command, stdin=stdin, directory=directory)
        with session.workspace.released():
            result = completion.wait()
    except ProcessFailure as exc:
        raise EvalError(str(exc)) from exc
    if result.errors:
        executor.warn(result.errors if result.errors.endswith("\n") else result.errors + "\n")
    if result.status != 0:
        telemetry.record_event(
            "pipe.exit",
            level="warning",
            data={"command": command, "status": result.status},
        )
    return result


def file_list(executor: "Executor", buffer: Optional[Buffer], text: str) -> str:
    """Argument of ``B``/``D``; ``<cmd`` means the names ``cmd`` prints."""

    names = text.lstrip(" \t")
    if not names.startswith("<"):
        return names
    command = names[1:].lstrip(" \t")
    if not command:
        raise EvalError("no command specified for <")
    return run_command(executor, buffer, command, None).output


def handle_pipe(executor: "Executor", buffer: Buffer, cmd: Cmd, addr: Address) -> bool:
    """``<`` replaces dot with output, ``|`` filters dot, ``>`` sends dot out."""

    command = cmd.text.lstrip(" \t")
    if not command:
        raise EvalError(f"no command specified for {cmd.cmdc}")
    buffer.set_dot(addr.q0, addr.q1)
    stdin = buffer.view(addr.q0, addr.q1) if cmd.cmdc in ("|", ">") else None
    with telemetry.span("edit::pipe", metadata={"command": cmd.cmdc + command}):
        result = run_command(executor, buffer, command, stdin)
    if cmd.cmdc == ">":
        if result.output:
            executor.warn(result.output)
        return True
    executor.log_warning(buffer.elog.replace(addr.q0, addr.q1, result.output))
    return True


__all__ = ["file_list", "handle_pipe", "run_command"]
