"""Last-pattern memory shared by the parser, the evaluators and the loops."""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field

from sam_engine.runtime.settings import DEFAULT_BACKWARD_WINDOW

from .regex import CompiledRegex, compile_regex

CACHE_SIZE = 64


@dataclass(slots=True)
class PatternHistory:
    """Remembers the last non-empty pattern and caches compiled forms.

    The cache keeps the ``cache_size`` most recently used patterns.
    """

    last: str = ""
    window: int = DEFAULT_BACKWARD_WINDOW
    cache_size: int = CACHE_SIZE
    _compiled: "OrderedDict[str, CompiledRegex]" = field(default_factory=OrderedDict)

    def remember(self, pattern: str) -> str:
        """Record ``pattern`` if non-empty and return the pattern in effect."""

        if pattern:
            self.last = pattern
        return self.last

    def compile(self, pattern: str) -> CompiledRegex:
        compiled = self._compiled.get(pattern)
        if compiled is not None:
            self._compiled.move_to_end(pattern)
            return compiled
        compiled = compile_regex(pattern, window=self.window)
        self._compiled[pattern] = compiled
        while len(self._compiled) > max(1, self.cache_size):
            self._compiled.popitem(last=False)
        return compiled


__all__ = ["CACHE_SIZE", "PatternHistory"]
