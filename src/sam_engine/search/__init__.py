"""Pattern compilation and range searches."""

from .history import PatternHistory
from .regex import NRANGE, CompiledRegex, RangeSet, compile_regex

__all__ = ["CompiledRegex", "NRANGE", "PatternHistory", "RangeSet", "compile_regex"]
