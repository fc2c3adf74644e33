"""Compiled patterns with forward and backward search over buffer text.

Patterns use Python ``re`` syntax in multi-line mode, so ``^`` and ``$``
match at line boundaries. Searches may be bounded to a window of the text;
the bare patterns ``^`` and ``$`` are re-checked against the real text so a
window edge that is not a line boundary never produces a match.
"""

from __future__ import annotations

import re
from typing import List, Optional, Tuple, Union

from sam_engine.buffer.state import Range
from sam_engine.buffer.sync import TextSource
from sam_engine.errors import BadRegexp
from sam_engine.runtime.settings import DEFAULT_BACKWARD_WINDOW

# Whole match plus capture groups 1..9.
NRANGE = 10

RangeSet = Tuple[Range, ...]
Searchable = Union[str, TextSource]


def _text_of(source: Searchable) -> str:
    if isinstance(source, str):
        return source
    text = getattr(source, "text", None)
    if isinstance(text, str):
        return text
    return source.view(0, len(source))


class CompiledRegex:
    """A compiled pattern plus the line-anchor exception marker."""

    __slots__ = ("pattern", "window", "_re", "_anchor")

    def __init__(
        self,
        pattern: str,
        compiled: "re.Pattern[str]",
        *,
        window: int = DEFAULT_BACKWARD_WINDOW,
    ) -> None:
        self.pattern = pattern
        self.window = window
        self._re = compiled
        self._anchor: Optional[str] = pattern if pattern in ("^", "$") else None

    def __repr__(self) -> str:
        return f"CompiledRegex({self.pattern!r})"

    @property
    def groups(self) -> int:
        return self._re.groups

    def _on_line_boundary(self, text: str, q: int) -> bool:
        if self._anchor == "^":
            return q == 0 or text[q - 1] == "\n"
        if self._anchor == "$":
            return q == len(text) or text[q] == "\n"
        return True

    @staticmethod
    def _range_set(match: "re.Match[str]") -> RangeSet:
        count = min(match.re.groups, NRANGE - 1)
        return tuple(Range(*match.span(i)) for i in range(count + 1))

    def execute(
        self,
        source: Searchable,
        start: int,
        end: Optional[int] = None,
        nmax: int = -1,
    ) -> List[RangeSet]:
        """Return up to ``nmax`` matches in ``[start, end]``, leftmost first.

        ``end`` of ``None`` (or negative) means the end of the text and a
        negative ``nmax`` means no limit. An empty match that begins where the
        previous match ended is skipped.
        """

        text = _text_of(source)
        size = len(text)
        if end is None or end < 0 or end > size:
            end = size
        found: List[RangeSet] = []
        pos = start
        prev_end = -1
        while pos <= end and (nmax < 0 or len(found) < nmax):
            match = self._re.search(text, pos, end)
            if match is None:
                break
            q0, q1 = match.span()
            accept = True
            if q1 == pos:
                accept = q0 != prev_end
                pos += 1
            else:
                pos = q1
            prev_end = q1
            if accept and self._on_line_boundary(text, q0):
                found.append(self._range_set(match))
        return found

    def _nearest_before(
        self, text: str, limit: int, lower: int, skip: int
    ) -> Optional["re.Match[str]"]:
        best: Optional["re.Match[str]"] = None
        top = limit
        width = self.window
        while True:
            lo = max(lower, limit - width)
            while lo > lower and text[lo - 1] != "\n":
                lo -= 1
            for q in range(top, lo - 1, -1):
                match = self._re.match(text, q, limit)
                if match is None or not self._on_line_boundary(text, q):
                    continue
                if match.start() == match.end() == skip:
                    continue
                # Equal ends: the lower start wins, so the longer match.
                if best is None or match.end() >= best.end():
                    best = match
            if best is not None or lo == lower:
                return best
            top = lo - 1
            width *= 2

    def bexecute(
        self,
        source: Searchable,
        start: int,
        nmax: int = 1,
        *,
        lower: int = 0,
    ) -> List[RangeSet]:
        """Return matches ending at or before ``start``, nearest first.

        Every start position before the limit is tried, in windows that grow
        back from the limit and are widened to a line start, and the match
        whose end is closest to the limit is kept. Later matches end at or
        before the start of the previous one. An empty match where the
        previous match began is skipped.
        """

        text = _text_of(source)
        limit = max(lower, min(start, len(text)))
        found: List[RangeSet] = []
        skip = -1
        while nmax < 0 or len(found) < nmax:
            match = self._nearest_before(text, limit, lower, skip)
            if match is None:
                break
            found.append(self._range_set(match))
            skip = limit = match.start()
        return found

    def search(
        self, source: Searchable, start: int, end: Optional[int] = None
    ) -> Optional[RangeSet]:
        found = self.execute(source, start, end, 1)
        return found[0] if found else None


def compile_regex(pattern: str, *, window: int = DEFAULT_BACKWARD_WINDOW) -> CompiledRegex:
    """Compile ``pattern`` or raise ``BadRegexp``."""

    try:
        compiled = re.compile(pattern, re.MULTILINE)
    except re.error as exc:
        raise BadRegexp(f"bad regexp: {exc}", pattern=pattern) from exc
    return CompiledRegex(pattern, compiled, window=window)


__all__ = ["CompiledRegex", "NRANGE", "RangeSet", "Searchable", "compile_regex"]
