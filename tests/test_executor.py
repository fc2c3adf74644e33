from __future__ import annotations

from typing import List, Optional, Tuple

import pytest

from sam_engine.buffer import Buffer, Range
from sam_engine.commands import Cmd
from sam_engine.errors import EvalError, InvariantViolation
from sam_engine.host import PipeResult, ProcessFailure, Workspace
from sam_engine.interpreter import EditSession, Executor, run_edit
from sam_engine.interpreter import executor as executor_module
from sam_engine.interpreter.loops import match_ranges

CONTENTS = "This is a\nshort text\nto try addressing\n"


class FakeCompletion:
    def __init__(self, runner: "FakeRunner", result: PipeResult) -> None:
        self._runner = runner
        self._result = result

    def wait(self) -> PipeResult:
        self._runner.locked_while_waiting.append(self._runner.workspace.lock.locked())
        return self._result


class FakeRunner:
    """Process runner that answers every command with canned output."""

    def __init__(
        self,
        output: str = "",
        *,
        errors: str = "",
        status: int = 0,
        failure: Optional[str] = None,
        upper: bool = False,
    ) -> None:
        self.output = output
        self.errors = errors
        self.status = status
        self.failure = failure
        self.upper = upper
        self.workspace: Workspace = Workspace()
        self.calls: List[Tuple[str, Optional[str]]] = []
        self.locked_while_waiting: List[bool] = []

    def run(self, command: str, *, stdin: Optional[str], directory: str) -> FakeCompletion:
        self.calls.append((command, stdin))
        if self.failure is not None:
            raise ProcessFailure(self.failure)
        output = stdin.upper() if self.upper and stdin is not None else self.output
        return FakeCompletion(self, PipeResult(output, self.errors, self.status))


def make_buffer(
    text: str = CONTENTS, *, name: str = "test", dot: Range = Range(0, 0)
) -> Buffer:
    buffer = Buffer.from_text(text, name=name)
    buffer.set_dot(dot.q0, dot.q1)
    return buffer


def make_session(*buffers: Buffer, runner: Optional[FakeRunner] = None) -> EditSession:
    workspace = Workspace(buffers)
    if runner is not None:
        runner.workspace = workspace
    return EditSession(workspace=workspace, runner=runner)


def run(dot: Range, command: str, text: str = CONTENTS) -> Tuple[Buffer, str]:
    buffer = make_buffer(text, dot=dot)
    session = make_session(buffer)
    run_edit(session, buffer, command)
    return buffer, session.diagnostics.text()


TEXT_EDITS = [
    (Range(0, 0), "a/junk", "junk" + CONTENTS),
    (Range(7, 12), "a/junk", "This is a\nshjunkort text\nto try addressing\n"),
    (Range(0, 0), "/This/a/junk", "Thisjunk is a\nshort text\nto try addressing\n"),
    (Range(0, 0), "/^/a/junk", "This is a\njunkshort text\nto try addressing\n"),
    (Range(0, 0), "/$/a/junk", "This is ajunk\nshort text\nto try addressing\n"),
    (Range(2, 6), "i/junk", "Thjunkis is a\nshort text\nto try addressing\n"),
    (Range(0, 0), "/text/i/junk", "This is a\nshort junktext\nto try addressing\n"),
    (Range(2, 6), "c/junk", "Thjunks a\nshort text\nto try addressing\n"),
    (Range(0, 0), "/text/c/junk", "This is a\nshort junk\nto try addressing\n"),
    (Range(2, 6), "d", "Ths a\nshort text\nto try addressing\n"),
    (Range(0, 0), "/text/d", "This is a\nshort \nto try addressing\n"),
    (Range(0, 0), "2d", "This is a\nto try addressing\n"),
    (Range(0, 12), "g/This/d", "ort text\nto try addressing\n"),
    (Range(0, 12), "v/This/d", CONTENTS),
    (Range(0, 3), "v/This/d", "s is a\nshort text\nto try addressing\n"),
    (Range(0, 4), "m/try/", " is a\nshort text\nto tryThis addressing\n"),
    (Range(0, 3), "t/try/", "This is a\nshort text\nto tryThi addressing\n"),
    (Range(1, 3), "m0", "hiTs is a\nshort text\nto try addressing\n"),
    (Range(4, 8), "m.", CONTENTS),
    (Range(0, 0), ",s/short/long/", "This is a\nlong text\nto try addressing\n"),
    (Range(0, 0), ",s/(i.)/!\\1!/g", "Th!is! !is! a\nshort text\nto try address!in!g\n"),
    (Range(0, 0), ",s2/t/T/", "This is a\nshort Text\nto try addressing\n"),
    (Range(0, 0), ",s/short/[&]/", "This is a\n[short] text\nto try addressing\n"),
]


@pytest.mark.parametrize("dot, command, expected", TEXT_EDITS)
def test_text_edits(dot: Range, command: str, expected: str) -> None:
    buffer, _ = run(dot, command)

    assert buffer.text == expected


LOOPS = [
    (",x/$/ a/@/", "This is a@\nshort text@\nto try addressing@\n@"),
    (",x a/@/", "This is a@\nshort text@\nto try addressing@\n"),
    (",x {\n i/@/ \n a/%/\n }", "@This is a%\n@short text%\n@to try addressing%\n"),
    (",x/t/ c/T/", "This is a\nshorT TexT\nTo Try addressing\n"),
    (",x g/short/ d", "This is a\n\nto try addressing\n"),
    (",x v/short/ d", "\nshort text\n\n"),
]


@pytest.mark.parametrize("command, expected", LOOPS)
def test_loops(command: str, expected: str) -> None:
    buffer, _ = run(Range(0, 0), command)

    assert buffer.text == expected


def test_y_visits_the_gaps_between_matches() -> None:
    buffer, _ = run(Range(0, 0), ",y/ / c/_/", text="ab cd\n")

    assert buffer.text == "_ _"


def test_x_without_pattern_visits_empty_lines() -> None:
    buffer, _ = run(Range(0, 0), ",x a/@/", text="one\n\ntwo\n")

    assert buffer.text == "one@\n@\ntwo@\n"


POSITIONS = [
    (Range(1, 3), "=", "test:1\n"),
    (Range(1, 3), "=+", "test:1+#1\n"),
    (Range(1, 3), "=#", "test:#1,#3\n"),
    (Range(0, 21), "=", "test:1,2\n"),
    (Range(0, 0), "0,$=#", "test:#0,#39\n"),
    (Range(0, 4), "p", "This"),
    (Range(0, 0), "2p", "short text\n"),
    (Range(0, 0), "2,3p", "short text\nto try addressing\n"),
    (Range(0, 0), "$-1p", "to try addressing\n"),
    (Range(25, 25), "-p", "short text\n"),
    (Range(25, 25), "-2p", "This is a\n"),
]


@pytest.mark.parametrize("dot, command, expected", POSITIONS)
def test_position_and_print(dot: Range, command: str, expected: str) -> None:
    buffer, warnings = run(dot, command)

    assert warnings == expected
    assert buffer.text == CONTENTS


def test_position_rejects_trailing_text() -> None:
    _, warnings = run(Range(0, 0), "=xy")

    assert warnings == "Edit: newline expected\n"


def test_newline_command_selects_whole_lines() -> None:
    buffer, _ = run(Range(12, 12), "\n")
    assert buffer.dot == Range(10, 21)

    buffer, _ = run(Range(10, 21), "\n")
    assert buffer.dot == Range(21, 39)


def test_substitution_must_match_outside_loops() -> None:
    buffer, warnings = run(Range(0, 0), ",s/zzz/y/")

    assert warnings == "Edit: no substitution\n"
    assert buffer.text == CONTENTS


def test_substitution_misses_are_fine_inside_loops() -> None:
    buffer, warnings = run(Range(0, 0), ",x s/short/long/")

    assert warnings == ""
    assert buffer.text == "This is a\nlong text\nto try addressing\n"


def test_bad_regexp_is_reported_with_the_command() -> None:
    buffer, warnings = run(Range(0, 0), ",x/(/ d")

    assert warnings == "Edit: bad regexp in x command\n"
    assert buffer.text == CONTENTS


def test_error_discards_every_pending_change() -> None:
    buffer, warnings = run(Range(0, 0), ",x/short/ c/long/\n/nothing here/d")

    assert warnings.startswith("Edit: ")
    assert buffer.text == CONTENTS
    assert buffer.elog.empty()


def test_overlapping_move_fails() -> None:
    buffer, warnings = run(Range(0, 9), "m/is/")

    assert warnings == "Edit: move overlaps itself\n"
    assert buffer.text == CONTENTS


def test_group_runs_each_command_on_the_same_dot() -> None:
    buffer, warnings = run(Range(0, 0), ",{\nd\nd\n}")

    assert buffer.text == ""
    assert warnings == "warning: changes out of sequence\n"


def test_group_fails_when_dot_runs_past_the_end() -> None:
    buffer = make_buffer("abc\n")
    session = make_session(buffer)
    run_edit(session, buffer, "a/more text/")
    edited = buffer.text

    failure = run_edit(session, buffer, ",{\nu\np\n}")

    assert isinstance(failure, InvariantViolation)
    assert session.diagnostics.text() == (
        "Edit: dot extends past end of buffer during { command\n"
    )
    assert buffer.text == edited
    assert buffer.elog.empty()

    run_edit(session, buffer, "u")

    assert buffer.text == "abc\n"


def test_undo_and_redo() -> None:
    buffer = make_buffer()
    session = make_session(buffer)
    run_edit(session, buffer, "a/hello/")
    assert buffer.text == "hello" + CONTENTS

    run_edit(session, buffer, "1,$p\nu")

    assert session.diagnostics.text() == "hello" + CONTENTS
    assert buffer.text == CONTENTS

    run_edit(session, buffer, "u-1")

    assert buffer.text == "hello" + CONTENTS


def test_each_command_is_one_undo_step() -> None:
    buffer = make_buffer()
    session = make_session(buffer)
    run_edit(session, buffer, "0a/one/")
    run_edit(session, buffer, ",x/short/ c/long/\n$a/end/")

    assert buffer.text == "one" + CONTENTS.replace("short", "long") + "end"

    run_edit(session, buffer, "u")

    assert buffer.text == "one" + CONTENTS


def test_pipe_filters_dot_through_a_command() -> None:
    buffer = make_buffer(dot=Range(0, 4))
    runner = FakeRunner(upper=True)
    session = make_session(buffer, runner=runner)

    run_edit(session, buffer, "| tr a-z A-Z")

    assert buffer.text == "THIS is a\nshort text\nto try addressing\n"
    assert runner.calls == [("tr a-z A-Z", "This")]
    assert runner.locked_while_waiting == [False]
    assert not session.workspace.lock.locked()


def test_pipe_in_replaces_dot_without_input() -> None:
    buffer = make_buffer(dot=Range(0, 4))
    runner = FakeRunner("That")
    session = make_session(buffer, runner=runner)

    run_edit(session, buffer, "< echo That")

    assert buffer.text == "That is a\nshort text\nto try addressing\n"
    assert runner.calls == [("echo That", None)]


def test_pipe_out_reports_output_as_a_warning() -> None:
    buffer = make_buffer(dot=Range(0, 4))
    runner = FakeRunner("4\n", errors="note")
    session = make_session(buffer, runner=runner)

    run_edit(session, buffer, "> wc -c")

    assert buffer.text == CONTENTS
    assert session.diagnostics.text() == "note\n4\n"


def test_pipe_failure_leaves_the_buffer_alone() -> None:
    buffer = make_buffer(dot=Range(0, 4))
    runner = FakeRunner(failure="sh: not found")
    session = make_session(buffer, runner=runner)

    failure = run_edit(session, buffer, "| nope")

    assert failure is not None
    assert session.diagnostics.text() == "Edit: sh: not found\n"
    assert buffer.text == CONTENTS


def test_pipe_needs_a_command() -> None:
    _, warnings = run(Range(0, 0), "|")

    assert warnings == "Edit: no command specified for |\n"


def test_commands_need_a_current_buffer() -> None:
    session = make_session(make_buffer())

    run_edit(session, None, "d")

    assert session.diagnostics.text() == "Edit: no current window\n"


def test_unregistered_buffer_is_refused() -> None:
    buffer = make_buffer("hello\n")
    session = make_session()

    failure = run_edit(session, buffer, ",d")

    assert isinstance(failure, EvalError)
    assert session.diagnostics.text() == "Edit: buffer is not open in this workspace\n"
    assert buffer.text == "hello\n"
    assert buffer.elog.empty()


def test_command_returning_false_stops_the_rest(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setitem(executor_module._COMMAND_HANDLERS, "=", lambda *args: False)
    buffer, _ = run(Range(0, 0), "=\na/junk/")

    assert buffer.text == CONTENTS


def test_backward_search_selects_the_nearest_match() -> None:
    buffer, _ = run(Range(3, 3), "?aa?c/X/", text="aaa\n")

    assert buffer.text == "aX\n"


def test_overlong_commands_are_refused() -> None:
    buffer = make_buffer()
    session = make_session(buffer)
    session.settings.max_command = 4

    failure = run_edit(session, buffer, "a/hello/")

    assert failure is None
    assert session.diagnostics.text() == "string too long\n"
    assert buffer.text == CONTENTS


def test_errors_are_published_on_the_bus() -> None:
    buffer = make_buffer()
    session = make_session(buffer)
    seen: List[object] = []
    session.diagnostics.bus.subscribe("edit.error", seen.append)

    failure = run_edit(session, buffer, "j")

    assert seen == [failure]
    assert str(failure) == "unknown command j"


def test_identity_substitution_keeps_text() -> None:
    buffer, warnings = run(Range(0, 0), ",s/t/t/g")

    assert buffer.text == CONTENTS
    assert warnings == ""


def test_x_and_y_ranges_cover_the_whole_range() -> None:
    buffer = make_buffer()
    session = make_session(buffer)
    executor = Executor(session)
    whole = Range(0, len(buffer))
    matches = match_ranges(executor, buffer, Cmd(cmdc="x", re="s+"), whole)
    gaps = match_ranges(executor, buffer, Cmd(cmdc="y", re="s+"), whole)

    pieces = sorted(matches + gaps, key=lambda r: (r.q0, r.q1))

    assert "".join(buffer.view(r.q0, r.q1) for r in pieces) == CONTENTS
    assert len(gaps) == len(matches) + 1
