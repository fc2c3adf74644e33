"""Recursive-descent parser turning command text into ``Cmd`` trees."""

from __future__ import annotations

from typing import Optional

from sam_engine.errors import (
    ERR_ADDR_MISSING,
    ERR_ADDR_NOT_REQUIRED,
    ERR_BAD_ADDR,
    ERR_BAD_ADDR_SYNTAX,
    ERR_BAD_RHS,
    ERR_COMMAND_MISSING,
    ERR_LEFT_BRACE_MISSING,
    ERR_REGEXP_MISSING,
    BadDelimiterError,
    InvalidCommandError,
    ParseError,
)
from sam_engine.runtime.telemetry import span
from sam_engine.search.history import PatternHistory

from .models import CHAR, COMMA, FILE, LINE, PLUS, SEMICOLON, Addr, Cmd
from .table import CountType, DefaultAddress, lookup

EOF = ""
BLANKS = (" ", "\t")


def _is_digit(c: str) -> bool:
    return "0" <= c <= "9" and c != EOF


def okdelim(c: str) -> bool:
    return c != EOF and c != "\\" and not c.isalnum()


class CommandParser:
    """Reads commands one at a time from ``text``.

    ``patterns`` supplies and records the last regular expression, so an
    empty ``//`` reuses whatever the session searched for last.
    """

    def __init__(self, text: str, patterns: Optional[PatternHistory] = None) -> None:
        self.buf = text
        self.pos = 0
        self.patterns = patterns or PatternHistory()

    @classmethod
    def for_command(
        cls, text: str, patterns: Optional[PatternHistory] = None
    ) -> "CommandParser":
        if not text.endswith("\n"):
            text += "\n"
        return cls(text, patterns)

    # character stream

    def getch(self) -> str:
        if self.pos >= len(self.buf):
            return EOF
        c = self.buf[self.pos]
        self.pos += 1
        return c

    def nextc(self) -> str:
        if self.pos >= len(self.buf):
            return EOF
        return self.buf[self.pos]

    def ungetch(self) -> None:
        if self.pos == 0:
            raise ParseError("ungetch at start of command")
        self.pos -= 1

    def skipbl(self) -> str:
        """Skip blanks and return (without consuming) the next character."""

        c = self.getch()
        while c in BLANKS:
            c = self.getch()
        if c != EOF:
            self.ungetch()
        return c

    def atnl(self) -> None:
        self.skipbl()
        c = self.getch()
        if c != "\n":
            raise ParseError(f"newline expected (saw {c or 'EOF'})")

    def getnum(self, signed: bool) -> int:
        sign = 1
        if signed and self.nextc() == "-":
            sign = -1
            self.getch()
        if not _is_digit(self.nextc()):
            return sign
        n = 0
        while _is_digit(self.nextc()):
            n = n * 10 + int(self.getch())
        return sign * n

    # arguments

    def collect_token(self, end: str) -> str:
        """Collect up to a character in ``end``; leading blanks are kept."""

        chars: list[str] = []
        while self.nextc() in BLANKS:
            chars.append(self.getch())
        c = self.getch()
        while c != EOF and c not in end:
            chars.append(c)
            c = self.getch()
        if c != "\n":
            self.atnl()
        return "".join(chars)

    def collect_text(self) -> str:
        """Read ``a``/``c``/``i`` text: ``/text/`` or lines ended by a lone ``.``."""

        if self.skipbl() != "\n":
            delim = self.getch()
            if not okdelim(delim):
                raise BadDelimiterError(delim)
            text = self.get_rhs(delim, "a")
            if self.nextc() == delim:
                self.getch()
            self.atnl()
            return text

        self.getch()
        chars: list[str] = []
        while True:
            begline = len(chars)
            c = self.getch()
            while c != EOF and c != "\n":
                chars.append(c)
                c = self.getch()
            chars.append("\n")
            if c == EOF:
                return "".join(chars)
            if chars[begline] == "." and chars[begline + 1] == "\n":
                return "".join(chars[:-2])

    def get_rhs(self, delim: str, cmdc: str) -> str:
        """Read replacement or inserted text up to ``delim`` or newline."""

        chars: list[str] = []
        c = self.getch()
        while c != EOF and c != delim and c != "\n":
            if c == "\\":
                c = self.getch()
                if c == EOF:
                    raise ParseError(ERR_BAD_RHS)
                if c == "\n":
                    self.ungetch()
                    c = "\\"
                elif c == "n":
                    c = "\n"
                elif c != delim and (cmdc == "s" or c != "\\"):
                    # keep the escape; s interprets \1..\9 itself
                    chars.append("\\")
            chars.append(c)
            c = self.getch()
        if c != EOF:
            self.ungetch()
        return "".join(chars)

    def get_regexp(self, delim: str) -> str:
        chars: list[str] = []
        while True:
            c = self.getch()
            if c == "\\":
                if self.nextc() == delim:
                    c = self.getch()
                elif self.nextc() == "\\":
                    chars.append(c)
                    c = self.getch()
            elif c == delim or c == "\n" or c == EOF:
                break
            chars.append(c)
        if c == "\n":
            self.ungetch()
        pattern = self.patterns.remember("".join(chars))
        if not pattern:
            raise ParseError(ERR_REGEXP_MISSING)
        return pattern

    # addresses

    def simple_address(self) -> Optional[Addr]:
        c = self.skipbl()
        if c == CHAR:
            self.getch()
            addr = Addr(CHAR, num=self.getnum(False))
        elif _is_digit(c):
            addr = Addr(LINE, num=self.getnum(False))
        elif c in ("/", "?", FILE):
            self.getch()
            addr = Addr(c, re=self.get_regexp(c))
        elif c in (".", "$", "+", "-", "'"):
            addr = Addr(self.getch())
        else:
            return None

        following = self.simple_address()
        if following is None:
            return addr
        if following.typ in (".", "$", "'"):
            if addr.typ != FILE:
                raise ParseError(ERR_BAD_ADDR_SYNTAX)
        elif following.typ == FILE:
            raise ParseError(ERR_BAD_ADDR_SYNTAX)
        elif following.typ in (LINE, CHAR) and addr.typ == FILE:
            pass
        elif following.typ in (LINE, CHAR, "/", "?"):
            if addr.typ not in ("+", "-"):
                following = Addr(PLUS, next=following)
        addr.next = following
        return addr

    def compound_address(self) -> Optional[Addr]:
        left = self.simple_address()
        typ = self.skipbl()
        if typ not in (COMMA, SEMICOLON):
            return left
        self.getch()
        right = self.compound_address()
        if right is not None and right.typ in (COMMA, SEMICOLON) and right.left is None:
            raise ParseError(ERR_BAD_ADDR_SYNTAX)
        return Addr(typ, left=left, next=right)

    # commands

    def parse_command(self) -> Optional[Cmd]:
        """Parse the next top-level command, or return ``None`` at the end."""

        with span("parser::parse", metadata={"offset": self.pos}) as handle:
            cmd = self.parse(0)
            handle.add_metadata("command", cmd.cmdc if cmd else "<end>")
        return cmd

    def parse(self, nest: int = 0) -> Optional[Cmd]:
        addr = self.compound_address()
        if self.skipbl() == EOF:
            return None
        cmdc = self.getch()
        if cmdc == "c" and self.nextc() == "d":
            self.getch()
            cmdc = "cd"
        cmd = Cmd(cmdc=cmdc, addr=addr)

        spec = lookup(cmdc)
        if spec is None:
            if cmdc == "{":
                self._parse_group(cmd, nest)
                return cmd
            if cmdc == "}":
                self.atnl()
                if nest == 0:
                    raise ParseError(ERR_LEFT_BRACE_MISSING)
                return None
            raise InvalidCommandError(cmdc)

        if cmdc == "\n":
            return cmd
        if spec.defaddr is DefaultAddress.NONE and addr is not None:
            raise ParseError(ERR_ADDR_NOT_REQUIRED)
        if spec.count is not CountType.NONE:
            cmd.num = self.getnum(spec.count is CountType.SIGNED)
        if spec.regexp:
            self._parse_regexp(cmd)
        if spec.addr:
            cmd.mtaddr = self.simple_address()
            if cmd.mtaddr is None:
                raise ParseError(ERR_BAD_ADDR)

        if spec.defcmd:
            if self.skipbl() == "\n":
                self.getch()
                cmd.cmd = Cmd(cmdc=spec.defcmd)
            else:
                cmd.cmd = self.parse(nest)
                if cmd.cmd is None:
                    raise ParseError(ERR_COMMAND_MISSING)
        elif spec.text:
            cmd.text = self.collect_text()
        elif spec.token:
            cmd.text = self.collect_token(spec.token)
        else:
            self.atnl()
        return cmd

    def _parse_regexp(self, cmd: Cmd) -> None:
        # x and X may omit the pattern entirely
        if cmd.cmdc in ("x", "X") and self.nextc() in (" ", "\t", "\n"):
            return
        self.skipbl()
        delim = self.getch()
        if delim in ("\n", EOF):
            raise ParseError(ERR_ADDR_MISSING)
        if not okdelim(delim):
            raise BadDelimiterError(delim)
        cmd.re = self.get_regexp(delim)
        if cmd.cmdc != "s":
            return
        cmd.text = self.get_rhs(delim, "s")
        if self.nextc() == delim:
            self.getch()
            if self.nextc() == "g":
                cmd.flag = self.getch()

    def _parse_group(self, cmd: Cmd, nest: int) -> None:
        tail: Optional[Cmd] = None
        while True:
            if self.skipbl() == "\n":
                self.getch()
            child = self.parse(nest + 1)
            if child is None:
                return
            if tail is None:
                cmd.cmd = child
            else:
                tail.next = child
            tail = child


__all__ = ["CommandParser", "EOF", "okdelim"]
