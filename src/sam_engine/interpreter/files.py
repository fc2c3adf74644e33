"""File and buffer commands: ``b B D e r f w``."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Optional

from sam_engine.addressing.resolver import Address, menu_line
from sam_engine.buffer import Buffer
from sam_engine.commands.models import Cmd
from sam_engine.errors import EvalError
from sam_engine.runtime import telemetry

from .pipes import file_list

if TYPE_CHECKING:
    from .executor import Executor

ERR_NO_NAME = "no file name given"


def _dir_name(buffer: Optional[Buffer], name: str) -> str:
    directory = buffer.directory() if buffer is not None else ""
    return os.path.normpath(os.path.join(directory, name) if directory else name)


def to_buffer(executor: "Executor", text: str) -> Buffer:
    name = text.strip(" \t\n")
    buffer = executor.session.workspace.lookup(name)
    if buffer is None:
        raise EvalError(f'no such file "{name}"')
    return buffer


def command_name(executor: "Executor", buffer: Buffer, text: str, set_name: bool) -> str:
    """Name a command refers to, renaming ``buffer`` when ``set_name`` applies.

    An empty argument means the buffer's own name. An unnamed buffer always
    takes the name it is given.
    """

    if not text:
        return buffer.name
    stripped = text.lstrip(" \t")
    name = ""
    if stripped:
        name = stripped if os.path.isabs(stripped) else _dir_name(buffer, stripped)
        for other in executor.session.workspace:
            if other is not buffer and other.name == name:
                executor.warn(f'warning: duplicate file name "{name}"\n')
        if not buffer.name:
            set_name = True
    if set_name and name != buffer.name:
        buffer.rename(name)
    return name


def handle_switch(executor: "Executor", buffer: Optional[Buffer], cmd: Cmd, addr: None) -> bool:
    target = to_buffer(executor, cmd.text)
    if executor.session.nest == 0:
        executor.warn(menu_line(executor.session, target))
    executor.session.current = target
    return True


def handle_open(executor: "Executor", buffer: Optional[Buffer], cmd: Cmd, addr: None) -> bool:
    names = file_list(executor, buffer, cmd.text)
    if not names:
        raise EvalError(ERR_NO_NAME)
    workspace = executor.session.workspace
    for name in names.split():
        path = name if os.path.isabs(name) else _dir_name(buffer, name)
        workspace.open(path)
    return True


def _close(executor: "Executor", target: Buffer) -> None:
    if target.saveable_and_dirty:
        executor.warn(f"{target.name} modified\n")
        # a second D closes it
        target.mark_clean()
        return
    executor.session.workspace.close(target)
    if executor.session.current is target:
        executor.session.current = None


def handle_close(executor: "Executor", buffer: Optional[Buffer], cmd: Cmd, addr: None) -> bool:
    names = file_list(executor, buffer, cmd.text)
    if not names:
        if buffer is not None:
            _close(executor, buffer)
        return True
    workspace = executor.session.workspace
    for name in names.split():
        path = name if os.path.isabs(name) else _dir_name(buffer, name)
        target = workspace.lookup(path)
        if target is None:
            raise EvalError(f'no such file "{path}"')
        _close(executor, target)
    return True


def _refuse_if_dirty(buffer: Buffer) -> None:
    if not buffer.dirty:
        return
    if buffer.name:
        message = f"{buffer.name} modified"
    elif len(buffer) >= 100:
        message = "unnamed file modified"
    else:
        return
    # a second e goes ahead
    buffer.mark_clean()
    raise EvalError(message)


def _read_text(name: str) -> str:
    if os.path.isdir(name):
        raise EvalError(f"{name} is a directory")
    try:
        with open(name, "rb") as handle:
            data = handle.read()
    except OSError as exc:
        raise EvalError(f"can't open {name}: {exc.strerror or exc}") from exc
    return data.decode("utf-8", errors="replace")


def handle_read(executor: "Executor", buffer: Buffer, cmd: Cmd, addr: Optional[Address]) -> bool:
    """``e`` replaces the whole buffer with a file, ``r`` replaces dot."""

    if cmd.cmdc == "e":
        _refuse_if_dirty(buffer)
        q0, q1 = 0, len(buffer)
    else:
        q0, q1 = addr.q0, addr.q1
    whole = q0 == 0 and q1 == len(buffer)
    name = command_name(executor, buffer, cmd.text, cmd.cmdc == "e")
    if not name:
        raise EvalError(ERR_NO_NAME)
    same_name = name == buffer.name
    text = _read_text(name)
    nulls = "\x00" in text
    if nulls:
        text = text.replace("\x00", "")
    executor.log_warning(buffer.elog.replace(q0, q1, text))
    if nulls:
        executor.warn(f"{name}: NUL bytes elided\n")
    elif whole and same_name:
        buffer.edit_clean = True
        buffer.disk_mtime = os.path.getmtime(name)
    return True


def handle_name(executor: "Executor", buffer: Buffer, cmd: Cmd, addr: None) -> bool:
    command_name(executor, buffer, cmd.text, True)
    executor.warn(menu_line(executor.session, buffer))
    return True


def _put_file(executor: "Executor", buffer: Buffer, q0: int, q1: int, name: str) -> None:
    if os.path.exists(name) and name == buffer.name:
        mtime = os.path.getmtime(name)
        if buffer.disk_mtime is None or mtime - buffer.disk_mtime > 0.001:
            first_time = buffer.disk_mtime is None
            # the next w overwrites
            buffer.disk_mtime = mtime
            if first_time:
                executor.warn(f"{name} not written; file already exists\n")
            else:
                executor.warn(f"{name} modified since last read\n")
            return
    try:
        with open(name, "w", encoding="utf-8") as handle:
            handle.write(buffer.view(q0, q1))
    except OSError as exc:
        executor.warn(f"can't create file {name}: {exc.strerror or exc}\n")
        return
    telemetry.record_event(
        "buffer.write", level="debug", data={"name": name, "q0": q0, "q1": q1}
    )
    if name != buffer.name:
        return
    if q0 != 0 or q1 != len(buffer):
        buffer.mark_dirty()
    else:
        buffer.disk_mtime = os.path.getmtime(name)
        buffer.mark_clean()


def handle_write(executor: "Executor", buffer: Buffer, cmd: Cmd, addr: Address) -> bool:
    if not buffer.elog.empty():
        raise EvalError("can't write file with pending modifications")
    name = command_name(executor, buffer, cmd.text, False)
    if not name:
        raise EvalError("no name specified for 'w' command")
    _put_file(executor, buffer, addr.q0, addr.q1, name)
    return True


__all__ = [
    "command_name",
    "handle_close",
    "handle_name",
    "handle_open",
    "handle_read",
    "handle_switch",
    "handle_write",
    "to_buffer",
]
