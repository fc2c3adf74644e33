"""Exception hierarchy raised while parsing and executing edit commands."""

from __future__ import annotations

from typing import Optional

ERR_BAD_ADDR = "bad address"
ERR_BAD_ADDR_SYNTAX = "bad address syntax"
ERR_ADDR_MISSING = "no address"
ERR_ADDR_NOT_REQUIRED = "command takes no address"
ERR_REGEXP_MISSING = "no regular expression defined"
ERR_LEFT_BRACE_MISSING = "right brace with no left brace"
ERR_BAD_RHS = "bad right hand side"
ERR_COMMAND_MISSING = "command expected"


class EditError(RuntimeError):
    """Aborts the current top-level edit command.

    Only the driver catches it; pending edit-log entries of every buffer are
    discarded before the message is reported.
    """


class ParseError(EditError):
    """Malformed command or address text."""


class InvalidCommandError(ParseError):
    def __init__(self, command: str) -> None:
        super().__init__(f"unknown command {command}")
        self.command = command


class BadDelimiterError(ParseError):
    def __init__(self, delimiter: str) -> None:
        super().__init__(f"bad delimiter {delimiter}")
        self.delimiter = delimiter


class EvalError(EditError):
    """An address or command could not be carried out."""


class ReentrancyError(EditError):
    """A buffer loop was started inside another buffer loop."""

    def __init__(self, command: str) -> None:
        super().__init__(f"can't nest {command} command")
        self.command = command


class InvariantViolation(EditError):
    """Internal consistency check failed while running a command."""


class BadRegexp(EditError):
    """A pattern failed to compile."""

    def __init__(self, message: str, *, pattern: Optional[str] = None) -> None:
        super().__init__(message)
        self.pattern = pattern


__all__ = [
    "BadDelimiterError",
    "BadRegexp",
    "EditError",
    "EvalError",
    "InvalidCommandError",
    "InvariantViolation",
    "ParseError",
    "ReentrancyError",
    "ERR_ADDR_MISSING",
    "ERR_ADDR_NOT_REQUIRED",
    "ERR_BAD_ADDR",
    "ERR_BAD_ADDR_SYNTAX",
    "ERR_BAD_RHS",
    "ERR_COMMAND_MISSING",
    "ERR_LEFT_BRACE_MISSING",
    "ERR_REGEXP_MISSING",
]
