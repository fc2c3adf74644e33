"""Declarative per-letter command table shared by parser and executor."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

# Token terminators.
LINEX = "\n"
WORDX = "\t\n"


class DefaultAddress(str, Enum):
    NONE = "none"
    DOT = "dot"
    ALL = "all"


class CountType(str, Enum):
    NONE = "none"
    UNSIGNED = "unsigned"
    SIGNED = "signed"


@dataclass(frozen=True, slots=True)
class CommandSpec:
    """Argument shape and defaults of one command letter."""

    cmdc: str
    text: bool = False
    regexp: bool = False
    addr: bool = False
    defcmd: str = ""
    defaddr: DefaultAddress = DefaultAddress.DOT
    count: CountType = CountType.NONE
    token: str = ""

    def __post_init__(self) -> None:
        if len(self.cmdc) != 1:
            raise ValueError(f"command letter must be one character: {self.cmdc!r}")
        if self.text and self.token:
            raise ValueError(f"{self.cmdc!r} cannot take both text and a token")

    @property
    def takes_address(self) -> bool:
        return self.defaddr is not DefaultAddress.NONE


def _index(specs: Iterable[CommandSpec]) -> Mapping[str, CommandSpec]:
    table: dict[str, CommandSpec] = {}
    for spec in specs:
        if spec.cmdc in table:
            raise ValueError(f"duplicate command {spec.cmdc!r}")
        table[spec.cmdc] = spec
    return MappingProxyType(table)


_NO_ADDR = DefaultAddress.NONE
_ALL = DefaultAddress.ALL

COMMAND_TABLE: Mapping[str, CommandSpec] = _index(
    (
        CommandSpec("\n"),
        CommandSpec("a", text=True),
        CommandSpec("b", defaddr=_NO_ADDR, token=LINEX),
        CommandSpec("c", text=True),
        CommandSpec("d"),
        CommandSpec("e", defaddr=_NO_ADDR, token=WORDX),
        CommandSpec("f", defaddr=_NO_ADDR, token=WORDX),
        CommandSpec("g", regexp=True, defcmd="p"),
        CommandSpec("i", text=True),
        CommandSpec("m", addr=True),
        CommandSpec("p"),
        CommandSpec("r", token=WORDX),
        CommandSpec("s", regexp=True, count=CountType.UNSIGNED),
        CommandSpec("t", addr=True),
        CommandSpec("u", defaddr=_NO_ADDR, count=CountType.SIGNED),
        CommandSpec("v", regexp=True, defcmd="p"),
        CommandSpec("w", defaddr=_ALL, token=WORDX),
        CommandSpec("x", regexp=True, defcmd="p"),
        CommandSpec("y", regexp=True, defcmd="p"),
        CommandSpec("=", token=LINEX),
        CommandSpec("B", defaddr=_NO_ADDR, token=LINEX),
        CommandSpec("D", defaddr=_NO_ADDR, token=LINEX),
        CommandSpec("X", regexp=True, defcmd="f", defaddr=_NO_ADDR),
        CommandSpec("Y", regexp=True, defcmd="f", defaddr=_NO_ADDR),
        CommandSpec("<", token=LINEX),
        CommandSpec("|", token=LINEX),
        CommandSpec(">", token=LINEX),
    )
)

# Commands that make sense with no current buffer.
WINDOWLESS = frozenset("bBXY")


def lookup(cmdc: str) -> Optional[CommandSpec]:
    return COMMAND_TABLE.get(cmdc)


__all__ = [
    "COMMAND_TABLE",
    "CommandSpec",
    "CountType",
    "DefaultAddress",
    "LINEX",
    "WINDOWLESS",
    "WORDX",
    "lookup",
]
