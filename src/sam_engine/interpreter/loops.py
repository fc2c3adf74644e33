"""Looping commands: ``g v`` guards, ``x y`` range loops and ``X Y`` buffer loops."""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

from sam_engine.addressing.resolver import Address, ranges_between
from sam_engine.buffer import Buffer, Range
from sam_engine.commands.models import Cmd
from sam_engine.errors import ReentrancyError

if TYPE_CHECKING:
    from .executor import Executor


def handle_guard(executor: "Executor", buffer: Buffer, cmd: Cmd, addr: Address) -> bool:
    """``g`` runs its command when the range matches, ``v`` when it does not."""

    compiled = executor.compile(cmd.re, cmd.cmdc)
    matched = bool(compiled.execute(buffer, addr.q0, addr.q1, 1))
    if matched != (cmd.cmdc == "v"):
        buffer.set_dot(addr.q0, addr.q1)
        return executor.execute(buffer, cmd.cmd)
    return True


def match_ranges(executor: "Executor", buffer: Buffer, cmd: Cmd, whole: Range) -> List[Range]:
    """Ranges an ``x`` (matches) or ``y`` (gaps) loop visits inside ``whole``."""

    compiled = executor.compile(cmd.re, cmd.cmdc)
    matches = [sel[0] for sel in compiled.execute(buffer, whole.q0, whole.q1, -1)]
    if cmd.cmdc == "x":
        return matches
    return ranges_between(whole, matches)


def line_ranges(buffer: Buffer, whole: Range) -> List[Range]:
    """Lines of ``whole``, each without its newline and clipped to the range."""

    text = buffer.view(whole.q0, whole.q1)
    ranges: List[Range] = []
    p = 0
    while p < len(text):
        end = text.find("\n", p)
        if end < 0:
            end = len(text)
        ranges.append(Range(whole.q0 + p, whole.q0 + end))
        p = end + 1
    return ranges


def handle_extract(executor: "Executor", buffer: Buffer, cmd: Cmd, addr: Address) -> bool:
    """Collect every range first, then run the loop body once per range."""

    session = executor.session
    session.nest += 1
    try:
        if cmd.re:
            ranges = match_ranges(executor, buffer, cmd, addr.r)
        else:
            ranges = line_ranges(buffer, addr.r)
        executor.run_each(buffer, cmd.cmd, ranges)
    finally:
        session.nest -= 1
    return True


def loop_candidates(executor: "Executor", cmd: Cmd) -> List[Buffer]:
    """Snapshot of the buffers an ``X`` (matching) or ``Y`` (not matching) loop visits."""

    want = cmd.cmdc == "X"
    candidates: List[Buffer] = []
    for buffer in executor.session.workspace:
        if not cmd.re:
            # without a pattern only named buffers are visited
            if buffer.name:
                candidates.append(buffer)
        elif executor.resolver.file_matches(buffer, cmd.re) == want:
            candidates.append(buffer)
    return candidates


def handle_files(
    executor: "Executor", buffer: Optional[Buffer], cmd: Cmd, addr: None
) -> bool:
    session = executor.session
    if session.glooping:
        raise ReentrancyError(cmd.cmdc)
    session.glooping += 1
    session.nest += 1
    try:
        candidates = loop_candidates(executor, cmd)
        with session.workspace.pinned(candidates):
            for target in candidates:
                executor.execute(target, cmd.cmd)
    finally:
        session.glooping -= 1
        session.nest -= 1
    return True


__all__ = [
    "handle_extract",
    "handle_files",
    "handle_guard",
    "line_ranges",
    "loop_candidates",
    "match_ranges",
]
