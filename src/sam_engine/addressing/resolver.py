"""Resolution of parsed ``Addr`` trees into buffer ranges for the executor."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional

from sam_engine.buffer import Buffer
from sam_engine.buffer.state import Range
from sam_engine.commands.models import Addr
from sam_engine.errors import BadRegexp, EvalError
from sam_engine.search.regex import CompiledRegex, RangeSet

if TYPE_CHECKING:
    from sam_engine.interpreter.session import EditSession


@dataclass(frozen=True, slots=True)
class Address:
    """A resolved range inside a particular buffer.

    ``buffer`` is ``None`` only while a ``"file"`` address has yet to pick one.
    """

    r: Range
    buffer: Optional[Buffer]

    @property
    def q0(self) -> int:
        return self.r.q0

    @property
    def q1(self) -> int:
        return self.r.q1


def mkaddr(buffer: Buffer) -> Address:
    return Address(buffer.dot, buffer)


def char_address(n: int, addr: Address, sign: int) -> Address:
    if sign == 0:
        r = Range(n, n)
    elif sign < 0:
        q = addr.q0 - n
        r = Range(q, q)
    else:
        q = addr.q1 + n
        r = Range(q, q)
    if r.q0 < 0 or r.q1 > len(addr.buffer):
        raise EvalError("address out of range")
    return Address(r, addr.buffer)


def line_address(n: int, addr: Address, sign: int) -> Address:
    """Line ``n`` counted from ``addr`` (absolute when ``sign`` is 0).

    The resulting range covers the line including its newline.
    """

    buffer = addr.buffer
    size = len(buffer)
    if sign >= 0:
        if n == 0:
            if sign == 0 or addr.q1 == 0:
                return Address(Range(0, 0), buffer)
            q0 = addr.q1
            p = addr.q1 - 1
        else:
            if sign == 0 or addr.q1 == 0:
                p, count = 0, 1
            else:
                p = addr.q1 - 1
                count = 1 if buffer.read_char(p) == "\n" else 0
                p += 1
            while count < n:
                if p >= size:
                    raise EvalError("address out of range")
                if buffer.read_char(p) == "\n":
                    count += 1
                p += 1
            q0 = p
        while p < size:
            p += 1
            if buffer.read_char(p - 1) == "\n":
                break
        return Address(Range(q0, p), buffer)

    p = addr.q0
    if n == 0:
        q1 = addr.q0
    else:
        count = 0
        while count < n:
            if p == 0:
                count += 1
                if count != n:
                    raise EvalError("address out of range")
            else:
                # only newlines count as line steps
                if buffer.read_char(p - 1) == "\n":
                    count += 1
                    if count == n:
                        continue
                p -= 1
        q1 = p
        if p > 0:
            p -= 1
    while p > 0 and buffer.read_char(p - 1) != "\n":
        p -= 1
    return Address(Range(p, q1), buffer)


def menu_line(session: "EditSession", buffer: Buffer) -> str:
    """The ``'+. name`` line ``X``, ``Y``, ``f`` and ``b`` show for a buffer."""

    dirty = "'" if buffer.saveable_and_dirty else " "
    current = "." if session.current is buffer else " "
    return f"{dirty}+{current} {buffer.name}\n"


class AddressResolver:
    """Walks ``Addr`` chains for one interpreter session."""

    def __init__(self, session: "EditSession") -> None:
        self.session = session

    def _compile(self, pattern: str, context: str) -> CompiledRegex:
        try:
            return self.session.patterns.compile(pattern)
        except BadRegexp as exc:
            raise EvalError(f"bad regexp in {context}") from exc

    def next_match(self, buffer: Buffer, pattern: str, p: int, sign: int) -> RangeSet:
        """Search from ``p`` forward (or backward), wrapping around the buffer."""

        compiled = self._compile(pattern, "command address")
        size = len(buffer)
        if sign >= 0:
            found = compiled.execute(buffer, p, None, 2) or compiled.execute(
                buffer, 0, p, 1
            )
            if not found:
                raise EvalError("no match for regexp")
            sel = found[0]
            if sel[0].empty and sel[0].q0 == p:
                if len(found) == 2:
                    return found[1]
                p = p + 1 if p + 1 <= size else 0
                found = compiled.execute(buffer, p, None, 1)
                if not found:
                    raise EvalError("address")
                sel = found[0]
            return sel

        found = compiled.bexecute(buffer, p, 1) or compiled.bexecute(
            buffer, size, 1, lower=p
        )
        if not found:
            raise EvalError("no match for regexp")
        sel = found[0]
        if sel[0].empty and sel[0].q1 == p:
            p = p - 1 if p > 0 else size
            found = compiled.bexecute(buffer, p, 1)
            if not found:
                raise EvalError("address")
            sel = found[0]
        return sel

    def file_matches(self, buffer: Buffer, pattern: str) -> bool:
        compiled = self._compile(pattern, "file match")
        line = menu_line(self.session, buffer)
        return bool(compiled.execute(line, 0, len(line), 1))

    def match_file(self, pattern: str) -> Buffer:
        match: Optional[Buffer] = None
        for buffer in self.session.workspace:
            if not self.file_matches(buffer, pattern):
                continue
            if match is not None:
                raise EvalError(f'too many files match "{pattern}"')
            match = buffer
        if match is None:
            raise EvalError(f'no file matches "{pattern}"')
        return match

    def resolve(self, ap: Optional[Addr], a: Address, sign: int = 0) -> Address:
        """Evaluate the chain starting at ``ap`` relative to ``a``."""

        buffer = a.buffer
        node = ap
        while node is not None:
            typ = node.typ
            if typ == "l":
                a = line_address(node.num, a, sign)
            elif typ == "#":
                a = char_address(node.num, a, sign)
            elif typ == ".":
                a = mkaddr(buffer)
            elif typ == "$":
                a = Address(Range(len(buffer), len(buffer)), buffer)
            elif typ == "'":
                raise EvalError("can't handle '")
            elif typ in ("/", "?"):
                if typ == "?":
                    sign = -sign or -1
                anchor = a.q1 if sign >= 0 else a.q0
                sel = self.next_match(buffer, node.re, anchor, sign)
                a = Address(sel[0], buffer)
            elif typ == '"':
                buffer = self.match_file(node.re)
                a = mkaddr(buffer)
            elif typ == "*":
                a = Address(Range(0, len(buffer)), buffer)
            elif typ in (",", ";"):
                return self._compound(node, a)
            elif typ in ("+", "-"):
                sign = 1 if typ == "+" else -1
                if node.next is None or node.next.typ in ("+", "-"):
                    a = line_address(1, a, sign)
            else:
                raise EvalError(f"bad address type {typ!r}")
            node = node.next
        return a

    def _compound(self, node: Addr, a: Address) -> Address:
        if node.left is not None:
            a1 = self.resolve(node.left, a, 0)
        else:
            a1 = Address(Range(0, 0), a.buffer)
        if node.typ == ";":
            # the right side sees the left side as dot
            a = a1
            a1.buffer.set_dot(a1.q0, a1.q1)
        if node.next is not None:
            a2 = self.resolve(node.next, a, 0)
        else:
            a2 = Address(Range(0, len(a.buffer)), a.buffer)
        if a1.buffer is not a2.buffer:
            raise EvalError("addresses in different files")
        if a2.q1 < a1.q0:
            raise EvalError("addresses out of order")
        return Address(Range(a1.q0, a2.q1), a1.buffer)


def ranges_between(whole: Range, matches: List[Range]) -> List[Range]:
    """Gaps of ``whole`` not covered by the ordered ``matches``."""

    gaps: List[Range] = []
    start = whole.q0
    for match in matches:
        gaps.append(Range(start, match.q0))
        start = match.q1
    gaps.append(Range(start, whole.q1))
    return gaps


__all__ = [
    "Address",
    "AddressResolver",
    "char_address",
    "line_address",
    "menu_line",
    "mkaddr",
    "ranges_between",
]
