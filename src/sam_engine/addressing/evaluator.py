"""Single-pass evaluation of raw address text such as ``2;/foo/+-``.

This is the evaluator hosts use for ``file:address`` style references. It
reads the text one character at a time with one character of lookahead,
never raises, and reports failure through the ``evaluated`` flag.
"""

from __future__ import annotations

from typing import Optional, Tuple

from sam_engine.buffer.state import Range
from sam_engine.buffer.sync import TextSource
from sam_engine.errors import BadRegexp
from sam_engine.host.diagnostics import Diagnostics
from sam_engine.runtime import telemetry
from sam_engine.search.history import PatternHistory

NONE = ""
FORE = "+"
BACK = "-"

LINE = "line"
CHAR = "char"

WARN_RANGE = "address out of range\n"
WARN_NO_MATCH = "no match for regexp\n"
WARN_NO_PATTERN = "no previous regular expression\n"


def _is_digit(c: str) -> bool:
    return "0" <= c <= "9"


class AddressEvaluator:
    """Resolves address text against a ``TextSource`` and an ambient dot."""

    def __init__(self, patterns: PatternHistory, diagnostics: Diagnostics) -> None:
        self.patterns = patterns
        self.diagnostics = diagnostics

    def _warn(self, show_errors: bool, message: str) -> None:
        if show_errors:
            self.diagnostics.warning(message)

    def number(
        self,
        show_errors: bool,
        source: TextSource,
        r: Range,
        line: int,
        direction: str,
        size: str,
    ) -> Tuple[Range, bool]:
        """Move ``line`` lines (or characters) from ``r`` in ``direction``."""

        nc = len(source)
        if size == CHAR:
            if direction == FORE:
                line = r.q1 + line
            elif direction == BACK:
                start = nc if r.q0 == 0 and line > 0 else r.q0
                line = start - line
            if line < 0 or line > nc:
                self._warn(show_errors, WARN_RANGE)
                return r, False
            return Range(line, line), True

        q0, q1 = r.q0, r.q1
        if direction == BACK:
            if q0 < nc:
                while q0 > 0 and source.read_char(q0 - 1) != "\n":
                    q0 -= 1
            q1 = q0
            while line > 0 and q0 > 0:
                if source.read_char(q0 - 1) == "\n":
                    line -= 1
                    if line >= 0:
                        q1 = q0
                q0 -= 1
            # :1-1 is line 0, :1-2 is an error
            if line > 1:
                self._warn(show_errors, WARN_RANGE)
                return r, False
            while q0 > 0 and source.read_char(q0 - 1) != "\n":
                q0 -= 1
            return Range(q0, q1), True

        if direction == FORE:
            if q1 > 0:
                while q1 < nc and source.read_char(q1 - 1) != "\n":
                    q1 += 1
            q0 = q1
        else:
            q0 = q1 = 0
        while line > 0 and q1 < nc:
            if source.read_char(q1) == "\n":
                line -= 1
                if line > 0:
                    q0 = q1 + 1
            q1 += 1
        # one line past the last one lands on EOF
        if line > 0 and not (line == 1 and q1 == nc):
            self._warn(show_errors, WARN_RANGE)
            return r, False
        return Range(q0, q1), True

    def search(
        self,
        show_errors: bool,
        source: TextSource,
        limits: Range,
        r: Range,
        pattern: str,
        direction: str,
    ) -> Tuple[Range, bool]:
        """Find ``pattern`` after ``r`` (or before it when ``direction`` is back).

        An empty pattern reuses the last one. Forward searches stop at
        ``limits.q1`` unless ``limits.q0`` is negative.
        """

        effective = pattern or self.patterns.last
        if not effective:
            self._warn(show_errors, WARN_NO_PATTERN)
            return r, False
        try:
            compiled = self.patterns.compile(effective)
        except BadRegexp as exc:
            telemetry.record_event(
                "address.bad_regexp",
                level="warning",
                data={"pattern": effective, "error": str(exc)},
            )
            return r, False
        self.patterns.remember(pattern)

        if direction == BACK:
            found = compiled.bexecute(source, r.q0, 1)
        else:
            end = None if limits.q0 < 0 else limits.q1
            found = compiled.execute(source, r.q1, end, 1)
        if not found:
            self._warn(show_errors, WARN_NO_MATCH)
            return r, False
        return found[0][0], True

    def address(
        self,
        show_errors: bool,
        source: Optional[TextSource],
        limits: Range,
        dot: Range,
        text: str,
        q0: int,
        q1: int,
        evaluate: bool,
    ) -> Tuple[Range, bool, int]:
        """Evaluate ``text[q0:q1]`` relative to ``dot``.

        Returns the resulting range, whether evaluation is still valid, and
        the offset in ``text`` where parsing stopped.
        """

        r = ar = dot
        q = q0
        direction = NONE
        size = LINE
        c = ""
        while q < q1:
            prevc = c
            c = text[q]
            q += 1

            if c in ";,":
                if c == ";":
                    ar = r
                if prevc == "":
                    r = Range(0, r.q1)
                if q >= q1 and source is not None:
                    r = Range(r.q0, len(source))
                else:
                    nr, evaluate, q = self.address(
                        show_errors, source, limits, ar, text, q, q1, evaluate
                    )
                    r = Range(r.q0, nr.q1)
                return r, evaluate, q

            if c in "+-":
                if evaluate and prevc in (FORE, BACK):
                    nc = text[q] if q < q1 else ""
                    if nc not in ("#", "/", "?"):
                        # the previous sign still owes its default of one line
                        r, evaluate = self.number(
                            show_errors, source, r, 1, prevc, LINE
                        )
                direction = c
                continue

            if c in ".$":
                if q != q0 + 1:
                    return r, evaluate, q - 1
                if evaluate:
                    r = ar if c == "." else Range(len(source), len(source))
                direction = FORE if q < q1 else NONE
                continue

            if c == "#" or _is_digit(c):
                if c == "#":
                    if q == q1:
                        return r, evaluate, q - 1
                    c = text[q]
                    q += 1
                    if not _is_digit(c):
                        return r, evaluate, q - 1
                    size = CHAR
                n = int(c)
                while q < q1:
                    # the lookahead stays in ``c`` and becomes the next prevc
                    c = text[q]
                    q += 1
                    if not _is_digit(c):
                        q -= 1
                        break
                    n = n * 10 + int(c)
                if evaluate:
                    r, evaluate = self.number(show_errors, source, r, n, direction, size)
                direction = NONE
                size = LINE
                continue

            if c in "/?":
                delimiter = c
                if c == "?":
                    direction = BACK
                chars: list[str] = []
                while q < q1:
                    c = text[q]
                    q += 1
                    if c == "\n":
                        q -= 1
                        break
                    if c == "\\":
                        chars.append(c)
                        if q == q1:
                            break
                        c = text[q]
                        q += 1
                    elif c == delimiter:
                        break
                    chars.append(c)
                if evaluate:
                    r, evaluate = self.search(
                        show_errors, source, limits, r, "".join(chars), direction
                    )
                direction = NONE
                size = LINE
                continue

            return r, evaluate, q - 1

        if evaluate and direction != NONE:
            r, evaluate = self.number(show_errors, source, r, 1, direction, LINE)
        return r, evaluate, q


__all__ = ["AddressEvaluator", "BACK", "CHAR", "FORE", "LINE", "NONE"]
