"""Table-driven execution of parsed commands against workspace buffers."""

from __future__ import annotations

from functools import partial
from typing import Callable, Dict, List, Optional, Tuple

from sam_engine.addressing.resolver import (
    Address,
    AddressResolver,
    line_address,
    mkaddr,
)
from sam_engine.buffer import NO_RANGE, Buffer, Range
from sam_engine.commands.models import DOT, FILE, WHOLE, Addr, Cmd
from sam_engine.commands.table import WINDOWLESS, DefaultAddress, lookup
from sam_engine.errors import BadRegexp, EvalError, InvalidCommandError, InvariantViolation
from sam_engine.search.regex import CompiledRegex, RangeSet

from . import files, loops, pipes
from .session import EditSession

CommandHandler = Callable[["Executor", Optional[Buffer], Cmd, Optional[Address]], bool]


class Executor:
    """Runs one ``Cmd`` tree at a time for an ``EditSession``."""

    def __init__(self, session: EditSession) -> None:
        self.session = session
        self.resolver = AddressResolver(session)

    def warn(self, message: str) -> None:
        self.session.diagnostics.warning(message)

    def log_warning(self, warning: Optional[str]) -> None:
        """Report an edit-log ordering warning, if there was one."""

        if warning:
            self.warn(warning + "\n")

    def compile(self, pattern: str, cmdc: str) -> CompiledRegex:
        try:
            return self.session.patterns.compile(pattern)
        except BadRegexp as exc:
            raise EvalError(f"bad regexp in {cmdc} command") from exc

    def execute(self, buffer: Optional[Buffer], cmd: Cmd) -> bool:
        """Resolve ``cmd``'s address relative to ``buffer`` and dispatch it."""

        if (
            buffer is None
            and (cmd.addr is None or cmd.addr.typ != FILE)
            and cmd.cmdc not in WINDOWLESS
            and not (cmd.cmdc == "D" and cmd.text)
        ):
            self.session.diagnostics.raise_edit_error("no current window")

        spec = lookup(cmd.cmdc)
        addr: Optional[Address] = None
        if spec is not None and spec.takes_address:
            default = WHOLE if spec.defaddr is DefaultAddress.ALL else DOT
            ap = cmd.addr
            if ap is None and cmd.cmdc != "\n":
                ap = cmd.addr = Addr(default)
            elif ap is not None and ap.typ == FILE and ap.next is None and cmd.cmdc != "\n":
                ap.next = Addr(default)
            if ap is not None:
                start = mkaddr(buffer) if buffer is not None else Address(Range(0, 0), None)
                addr = self.resolver.resolve(ap, start)
                buffer = addr.buffer

        if cmd.cmdc == "{":
            return self._group(buffer, cmd)
        handler = _COMMAND_HANDLERS.get(cmd.cmdc) if spec is not None else None
        if handler is None:
            raise InvalidCommandError(cmd.cmdc)
        return handler(self, buffer, cmd, addr)

    def _group(self, buffer: Optional[Buffer], cmd: Cmd) -> bool:
        dot = mkaddr(buffer) if buffer is not None else Address(Range(0, 0), None)
        if cmd.addr is not None:
            dot = self.resolver.resolve(cmd.addr, dot)
        target = dot.buffer
        for child in cmd.children():
            if dot.q1 > len(target):
                raise InvariantViolation("dot extends past end of buffer during { command")
            target.set_dot(dot.q0, dot.q1)
            self.execute(target, child)
        return True

    def run_each(self, buffer: Buffer, cmd: Optional[Cmd], ranges: List[Range]) -> None:
        """Run ``cmd`` once per range, with dot set to that range."""

        for r in ranges:
            buffer.set_dot(r.q0, r.q1)
            self.execute(buffer, cmd)


def _handle_append(
    executor: Executor,
    buffer: Buffer,
    cmd: Cmd,
    addr: Address,
    *,
    before: bool = False,
) -> bool:
    p = addr.q0 if before else addr.q1
    if cmd.text:
        executor.log_warning(buffer.elog.insert(p, cmd.text))
    buffer.set_dot(p, p)
    return True


def _handle_change(executor: Executor, buffer: Buffer, cmd: Cmd, addr: Address) -> bool:
    executor.log_warning(buffer.elog.replace(addr.q0, addr.q1, cmd.text))
    buffer.set_dot(addr.q0, addr.q1)
    return True


def _handle_delete(executor: Executor, buffer: Buffer, cmd: Cmd, addr: Address) -> bool:
    if addr.q1 > addr.q0:
        executor.log_warning(buffer.elog.delete(addr.q0, addr.q1))
    buffer.set_dot(addr.q0, addr.q0)
    return True


def _copy(executor: Executor, addr: Address, dest: Address) -> None:
    text = addr.buffer.view(addr.q0, addr.q1)
    executor.log_warning(dest.buffer.elog.insert(dest.q1, text))


def _move(executor: Executor, addr: Address, dest: Address) -> None:
    if addr.buffer is not dest.buffer or addr.q1 <= dest.q0:
        executor.log_warning(addr.buffer.elog.delete(addr.q0, addr.q1))
        _copy(executor, addr, dest)
    elif addr.q0 >= dest.q1:
        _copy(executor, addr, dest)
        executor.log_warning(addr.buffer.elog.delete(addr.q0, addr.q1))
    elif addr.r == dest.r:
        return
    else:
        raise EvalError("move overlaps itself")


def _handle_transfer(
    executor: Executor,
    buffer: Buffer,
    cmd: Cmd,
    addr: Address,
    *,
    move: bool,
) -> bool:
    dest = executor.resolver.resolve(cmd.mtaddr, mkaddr(buffer))
    if move:
        _move(executor, addr, dest)
    else:
        _copy(executor, addr, dest)
    return True


def _handle_print(executor: Executor, buffer: Buffer, cmd: Cmd, addr: Address) -> bool:
    q1 = min(addr.q1, len(buffer))
    if addr.q0 < q1:
        executor.warn(buffer.view(addr.q0, q1))
    buffer.set_dot(addr.q0, addr.q1)
    return True


def _expand_replacement(template: str, sel: RangeSet, buffer: Buffer) -> str:
    """Expand ``&`` and ``\\1``..``\\9``; any other escaped character is literal."""

    out: List[str] = []
    i = 0
    while i < len(template):
        c = template[i]
        if c == "\\" and i < len(template) - 1:
            i += 1
            c = template[i]
            if "1" <= c <= "9":
                group = int(c)
                if group < len(sel) and sel[group] != NO_RANGE:
                    out.append(buffer.view(sel[group].q0, sel[group].q1))
            else:
                out.append(c)
        elif c == "&":
            out.append(buffer.view(sel[0].q0, sel[0].q1))
        else:
            out.append(c)
        i += 1
    return "".join(out)


def _handle_substitute(executor: Executor, buffer: Buffer, cmd: Cmd, addr: Address) -> bool:
    compiled = executor.compile(cmd.re, "s")
    global_flag = cmd.flag == "g"
    n = cmd.num
    selected: List[RangeSet] = []
    previous = -1
    p1 = addr.q0
    while p1 <= addr.q1:
        found = compiled.execute(buffer, p1, addr.q1, 1)
        if not found:
            break
        sel = found[0]
        whole = sel[0]
        if whole.empty:
            if whole.q0 == previous:
                p1 += 1
                continue
            p1 = whole.q1 + 1
        else:
            p1 = whole.q1
        previous = whole.q1
        n -= 1
        if n > 0:
            continue
        selected.append(sel)
        if not global_flag:
            break

    # every replacement is computed before the first one is logged
    replacements = [
        (sel[0], _expand_replacement(cmd.text, sel, buffer)) for sel in selected
    ]
    for whole, text in replacements:
        executor.log_warning(buffer.elog.replace(whole.q0, whole.q1, text))
    if not replacements and executor.session.nest == 0:
        raise EvalError("no substitution")
    buffer.set_dot(addr.q0, addr.q1)
    return True


def _handle_undo(executor: Executor, buffer: Buffer, cmd: Cmd, addr: None) -> bool:
    n = cmd.num
    step = buffer.undo_step if n >= 0 else buffer.redo_step
    remaining = abs(n)
    while remaining > 0 and step():
        remaining -= 1
    return True


def _count_lines(buffer: Buffer, q0: int, q1: int) -> Tuple[int, int]:
    """Newlines in ``[q0, q1)`` and the characters after the last one."""

    text = buffer.view(q0, q1)
    return text.count("\n"), len(text) - (text.rfind("\n") + 1)


def _position(buffer: Buffer, addr: Address, mode: str) -> str:
    q0, q1 = addr.q0, addr.q1
    if mode == "#":
        text = f"#{q0}"
        if q1 != q0:
            text += f",#{q1}"
        return text
    if mode == "+":
        l1, r1 = _count_lines(buffer, 0, q0)
        l1 += 1
        l2, r2 = _count_lines(buffer, q0, q1)
        l2 += l1
        if l2 == l1:
            r2 += r1
        text = f"{l1}+#{r1}"
        if l2 != l1:
            text += f",{l2}+#{r2}"
        return text
    l1 = _count_lines(buffer, 0, q0)[0] + 1
    l2 = _count_lines(buffer, q0, q1)[0] + l1
    # a range ending in a newline does not reach the following line
    if q1 > q0 and buffer.read_char(q1 - 1) == "\n":
        l2 -= 1
    text = f"{l1}"
    if l2 != l1:
        text += f",{l2}"
    return text


def _handle_position(executor: Executor, buffer: Buffer, cmd: Cmd, addr: Address) -> bool:
    if len(cmd.text) > 1:
        raise EvalError("newline expected")
    prefix = f"{buffer.name}:" if buffer.name else ""
    executor.warn(f"{prefix}{_position(buffer, addr, cmd.text)}\n")
    return True


def _handle_newline(
    executor: Executor, buffer: Buffer, cmd: Cmd, addr: Optional[Address]
) -> bool:
    if addr is None:
        # extend dot to whole lines, or step to the next line if it already is
        a = mkaddr(buffer)
        target = Range(line_address(0, a, -1).q0, line_address(0, a, 1).q1)
        if target == buffer.dot:
            target = line_address(1, a, 1).r
    else:
        target = addr.r
    buffer.set_dot(target.q0, target.q1)
    return True


_COMMAND_HANDLERS: Dict[str, CommandHandler] = {
    "\n": _handle_newline,
    "a": _handle_append,
    "i": partial(_handle_append, before=True),
    "c": _handle_change,
    "d": _handle_delete,
    "m": partial(_handle_transfer, move=True),
    "t": partial(_handle_transfer, move=False),
    "p": _handle_print,
    "s": _handle_substitute,
    "u": _handle_undo,
    "=": _handle_position,
    "g": loops.handle_guard,
    "v": loops.handle_guard,
    "x": loops.handle_extract,
    "y": loops.handle_extract,
    "X": loops.handle_files,
    "Y": loops.handle_files,
    "b": files.handle_switch,
    "B": files.handle_open,
    "D": files.handle_close,
    "e": files.handle_read,
    "r": files.handle_read,
    "f": files.handle_name,
    "w": files.handle_write,
    "<": pipes.handle_pipe,
    "|": pipes.handle_pipe,
    ">": pipes.handle_pipe,
}


__all__ = ["CommandHandler", "Executor"]
