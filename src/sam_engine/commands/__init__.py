"""Command language: address and command trees, the command table and the parser."""

from .models import Addr, Cmd
from .parser import CommandParser
from .table import COMMAND_TABLE, CommandSpec, CountType, DefaultAddress, lookup

__all__ = [
    "Addr",
    "COMMAND_TABLE",
    "Cmd",
    "CommandParser",
    "CommandSpec",
    "CountType",
    "DefaultAddress",
    "lookup",
]
