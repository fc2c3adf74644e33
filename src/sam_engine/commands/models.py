"""Parsed address and command trees."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional

# Address node types.
LINE = "l"
CHAR = "#"
DOT = "."
END = "$"
MARK = "'"
FORWARD = "/"
BACKWARD = "?"
FILE = '"'
PLUS = "+"
MINUS = "-"
COMMA = ","
SEMICOLON = ";"
WHOLE = "*"


@dataclass(slots=True)
class Addr:
    """One address node; ``next`` chains simple addresses left to right.

    ``,`` and ``;`` nodes keep their left operand in ``left`` and the right
    one in ``next``.
    """

    typ: str
    re: str = ""
    num: int = 0
    left: Optional["Addr"] = None
    next: Optional["Addr"] = None

    def chain(self) -> Iterator["Addr"]:
        node: Optional[Addr] = self
        while node is not None:
            yield node
            node = node.next


@dataclass(slots=True)
class Cmd:
    """One command; ``cmd`` holds a loop body or the first of a ``{}`` group."""

    cmdc: str
    addr: Optional[Addr] = None
    re: str = ""
    text: str = ""
    mtaddr: Optional[Addr] = None
    num: int = 0
    flag: str = ""
    cmd: Optional["Cmd"] = None
    next: Optional["Cmd"] = None

    def children(self) -> Iterator["Cmd"]:
        node = self.cmd
        while node is not None:
            yield node
            node = node.next


__all__ = [
    "Addr",
    "Cmd",
    "BACKWARD",
    "CHAR",
    "COMMA",
    "DOT",
    "END",
    "FILE",
    "FORWARD",
    "LINE",
    "MARK",
    "MINUS",
    "PLUS",
    "SEMICOLON",
    "WHOLE",
]
