from __future__ import annotations

from pathlib import Path
from typing import Tuple

import pytest

from sam_engine.buffer import Buffer
from sam_engine.host import Workspace
from sam_engine.interpreter import EditSession, run_edit

CONTENTS = "This is a\nshort text\nto try addressing\n"
ALT_CONTENTS = "A different text\nWith other contents\nSo there!\n"


def make_buffer(
    text: str = CONTENTS, *, name: str = "test", dirty: bool = False
) -> Buffer:
    return Buffer.from_text(text, name=name, dirty=dirty)


def make_session(*, alt_dirty: bool = False) -> Tuple[EditSession, Buffer, Buffer]:
    buffer = make_buffer()
    alt = make_buffer(ALT_CONTENTS, name="alt_example_2", dirty=alt_dirty)
    session = EditSession(workspace=Workspace([buffer, alt]))
    session.current = buffer
    return session, buffer, alt


def test_x_loop_over_every_buffer() -> None:
    session, buffer, alt = make_session()

    run_edit(session, buffer, "X/.*/ ,x i/@/")

    assert buffer.text == "@This is a\n@short text\n@to try addressing\n"
    assert alt.text == "@A different text\n@With other contents\n@So there!\n"


def test_x_loop_position_report() -> None:
    session, buffer, _ = make_session()

    run_edit(session, buffer, "X/.*/=")

    assert session.diagnostics.text() == "test:1\nalt_example_2:1\n"


def test_y_loop_skips_matching_buffers() -> None:
    session, buffer, _ = make_session()

    run_edit(session, buffer, "Y/alt.*/=")

    assert session.diagnostics.text() == "test:1\n"


def test_x_loop_defaults_to_listing_buffers() -> None:
    session, buffer, _ = make_session(alt_dirty=True)

    run_edit(session, buffer, "X")

    assert session.diagnostics.text() == " +. test\n'+  alt_example_2\n"


def test_x_loop_closes_matching_buffers() -> None:
    session, buffer, alt = make_session()

    run_edit(session, buffer, "X/alt.*/D")

    assert list(session.workspace) == [buffer]
    assert alt.closed


def test_buffer_loops_do_not_nest() -> None:
    session, buffer, _ = make_session()

    failure = run_edit(session, buffer, "X/.*/ Y/.*/ =")

    assert str(failure) == "can't nest Y command"
    assert session.diagnostics.text() == "Edit: can't nest Y command\n"
    assert session.glooping == 0


def test_switch_buffer_prints_menu_line() -> None:
    session, buffer, alt = make_session(alt_dirty=True)

    run_edit(session, buffer, "b alt_example_2\ni/new/")

    assert session.diagnostics.text() == "'+  alt_example_2\n"
    assert session.current is alt
    assert alt.text == "new" + ALT_CONTENTS
    assert buffer.text == CONTENTS


def test_switch_to_unknown_buffer() -> None:
    session, buffer, _ = make_session()

    run_edit(session, buffer, "b nowhere")

    assert session.diagnostics.text() == 'Edit: no such file "nowhere"\n'


def test_out_of_sequence_changes_in_another_buffer() -> None:
    session, buffer, alt = make_session()

    run_edit(session, buffer, "b alt_example_2\n2 i/2/\n1 i/1/\n")

    assert alt.text == "1A different text2\nWith other contents\nSo there!\n"
    assert session.diagnostics.text().endswith(
        "warning: changes out of sequence\n"
        "warning: changes out of sequence, edit result probably wrong\n"
    )


def test_file_address_picks_a_buffer() -> None:
    session, buffer, alt = make_session()

    run_edit(session, buffer, '"alt.*" 2d')

    assert alt.text == "A different text\nSo there!\n"
    assert buffer.text == CONTENTS


def test_file_address_must_be_unique() -> None:
    session, buffer, _ = make_session()

    run_edit(session, buffer, '"t" =')

    assert session.diagnostics.text() == 'Edit: too many files match "t"\n'


def test_close_dirty_buffer_twice() -> None:
    session, buffer, alt = make_session(alt_dirty=True)

    run_edit(session, buffer, "D alt_example_2")

    assert session.diagnostics.text() == "alt_example_2 modified\n"
    assert alt in session.workspace

    run_edit(session, buffer, "D alt_example_2")

    assert alt not in session.workspace


def test_close_current_buffer() -> None:
    session, buffer, _ = make_session()

    run_edit(session, buffer, "D")

    assert buffer not in session.workspace
    assert session.current is None


def test_open_files(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "f1").write_text("first\n")
    (tmp_path / "f2").write_text("second\n")
    monkeypatch.chdir(tmp_path)
    session, buffer, _ = make_session()

    run_edit(session, buffer, "B f1 f2")

    opened = session.workspace.lookup("f1")
    assert opened is not None and opened.text == "first\n"
    assert session.workspace.lookup("f2") is not None
    assert len(session.workspace) == 4


def test_open_needs_a_name() -> None:
    session, buffer, _ = make_session()

    run_edit(session, buffer, "B")

    assert session.diagnostics.text() == "Edit: no file name given\n"


def test_write_refuses_to_clobber_then_writes(tmp_path: Path) -> None:
    target = tmp_path / "out.txt"
    target.write_text("on disk\n")
    buffer = make_buffer(name=str(target))
    session = EditSession(workspace=Workspace([buffer]))

    run_edit(session, buffer, "w")

    assert session.diagnostics.text() == f"{target} not written; file already exists\n"
    assert target.read_text() == "on disk\n"

    run_edit(session, buffer, "w")

    assert target.read_text() == CONTENTS
    assert not buffer.dirty


def test_write_part_to_another_file(tmp_path: Path) -> None:
    target = tmp_path / "part.txt"
    session, buffer, _ = make_session()

    run_edit(session, buffer, f"2w {target}")

    assert target.read_text() == "short text\n"
    assert buffer.name == "test"


def test_write_with_pending_changes() -> None:
    session, buffer, _ = make_session()

    run_edit(session, buffer, "a/x/\nw")

    assert session.diagnostics.text() == "Edit: can't write file with pending modifications\n"
    assert buffer.text == CONTENTS


def test_edit_replaces_buffer_and_stays_clean(tmp_path: Path) -> None:
    source = tmp_path / "doc.txt"
    source.write_text("fresh\n")
    buffer = make_buffer("stale\n", name=str(source))
    session = EditSession(workspace=Workspace([buffer]))

    run_edit(session, buffer, "e")

    assert buffer.text == "fresh\n"
    assert not buffer.dirty


def test_edit_refuses_dirty_buffer_once(tmp_path: Path) -> None:
    source = tmp_path / "doc.txt"
    source.write_text("fresh\n")
    buffer = make_buffer("stale\n", name=str(source), dirty=True)
    session = EditSession(workspace=Workspace([buffer]))

    run_edit(session, buffer, "e")

    assert session.diagnostics.text() == f"Edit: {source} modified\n"
    assert buffer.text == "stale\n"

    run_edit(session, buffer, "e")

    assert buffer.text == "fresh\n"


def test_read_into_dot_and_whole_buffer(tmp_path: Path) -> None:
    source = tmp_path / "doc.txt"
    source.write_text("abc\n")
    buffer = Buffer.from_file(str(source))
    session = EditSession(workspace=Workspace([buffer]))

    run_edit(session, buffer, "r")

    assert buffer.text == "abc\nabc\n"
    assert buffer.dirty

    run_edit(session, buffer, ",r")

    assert buffer.text == "abc\n"
    assert not buffer.dirty


def test_read_missing_file(tmp_path: Path) -> None:
    session, buffer, _ = make_session()
    missing = tmp_path / "missing.txt"

    run_edit(session, buffer, f"r {missing}")

    assert session.diagnostics.text().startswith(f"Edit: can't open {missing}: ")
    assert buffer.text == CONTENTS


def test_name_command_renames_buffer() -> None:
    session, buffer, _ = make_session()

    run_edit(session, buffer, "f renamed")

    assert buffer.name == "renamed"
    assert session.diagnostics.text() == "'+. renamed\n"


def test_duplicate_name_warns() -> None:
    session, buffer, _ = make_session()

    run_edit(session, buffer, "f alt_example_2")

    assert session.diagnostics.text().startswith(
        'warning: duplicate file name "alt_example_2"\n'
    )


def test_x_loop_switch_is_silent() -> None:
    session, buffer, alt = make_session()

    run_edit(session, buffer, "X/alt.*/ b alt_example_2")

    assert session.diagnostics.text() == ""
    assert session.current is alt


def test_failed_command_leaves_no_undo_step() -> None:
    session, buffer, _ = make_session()

    run_edit(session, buffer, ",x/short/ c/long/\nj")

    assert buffer.text == CONTENTS
    assert len(buffer.undo) == 0
