from __future__ import annotations

import pytest

from sam_engine.buffer import Buffer, BufferValidationError, Range, Transaction


def make_buffer(text: str = "one\ntwo\n", *, dirty: bool = False) -> Buffer:
    return Buffer.from_text(text, name="notes.txt", dirty=dirty)


def test_commit_without_pending_changes_is_a_no_op() -> None:
    buffer = make_buffer()

    assert buffer.commit(1) is False
    assert len(buffer.undo) == 0
    assert not buffer.dirty


def test_commit_applies_and_records_one_undo_entry() -> None:
    buffer = make_buffer()
    buffer.elog.insert(0, "zero\n")
    buffer.elog.delete(4, 8)

    assert buffer.commit(7) is True

    assert buffer.text == "zero\none\n"
    assert buffer.undo.seq == 7
    assert len(buffer.undo) == 1
    assert buffer.dirty


def test_undo_and_redo_restore_text_and_dot() -> None:
    buffer = make_buffer()
    buffer.set_dot(4, 7)
    buffer.elog.replace(4, 7, "TWO")
    buffer.commit(1)

    assert buffer.undo_step() is True
    assert buffer.text == "one\ntwo\n"
    assert buffer.dot == Range(4, 7)
    assert not buffer.dirty

    assert buffer.redo_step() is True
    assert buffer.text == "one\nTWO\n"
    assert buffer.dirty
    assert buffer.redo_step() is False


def test_new_commit_cuts_redo() -> None:
    buffer = make_buffer()
    buffer.elog.insert(0, "a")
    buffer.commit(1)
    buffer.undo_step()

    buffer.elog.insert(0, "b")
    buffer.commit(2)

    assert not buffer.undo.can_redo()
    assert buffer.text == "bone\ntwo\n"


def test_rollback_restores_undo_moves_and_drops_pending_edits() -> None:
    buffer = make_buffer()
    buffer.elog.insert(0, "a")
    buffer.commit(1)

    buffer.undo_step()
    buffer.elog.insert(0, "b")
    buffer.rollback()

    assert buffer.text == "aone\ntwo\n"
    assert buffer.undo.seq == 1
    assert buffer.elog.empty()
    assert buffer.undo_step() is True
    assert buffer.text == "one\ntwo\n"


def test_commit_keeps_undo_moves() -> None:
    buffer = make_buffer()
    buffer.elog.insert(0, "a")
    buffer.commit(1)

    buffer.undo_step()
    buffer.commit(2)
    buffer.rollback()

    assert buffer.text == "one\ntwo\n"
    assert buffer.undo.seq == 0


def test_edit_clean_marks_the_commit_clean() -> None:
    buffer = make_buffer(dirty=True)
    buffer.elog.replace(0, len(buffer), "fresh\n")
    buffer.edit_clean = True

    buffer.commit(3)

    assert not buffer.dirty
    assert buffer.edit_clean is False


def test_rename_marks_a_named_buffer_dirty() -> None:
    buffer = make_buffer()

    buffer.rename("other.txt")

    assert buffer.dirty
    assert buffer.saveable_and_dirty


def test_unnamed_buffer_is_never_saveable() -> None:
    buffer = Buffer.from_text("text", dirty=True)

    assert buffer.dirty
    assert not buffer.saveable_and_dirty


def test_transaction_skips_undo_entry_on_error() -> None:
    buffer = make_buffer()

    with pytest.raises(ValueError):
        with Transaction(buffer, "broken", seq=1):
            buffer.insert(0, "x")
            raise ValueError("boom")

    assert len(buffer.undo) == 0


def test_insert_and_delete_move_dot() -> None:
    buffer = make_buffer()
    buffer.set_dot(4, 7)

    buffer.insert(0, ">>")
    assert buffer.dot == Range(6, 9)

    buffer.delete(0, 5)
    assert buffer.dot == Range(1, 4)


def test_out_of_bounds_ranges_are_rejected() -> None:
    buffer = make_buffer()

    with pytest.raises(BufferValidationError):
        buffer.delete(3, 100)
    with pytest.raises(BufferValidationError):
        buffer.insert(-1, "x")


def test_mirror_reports_document_version() -> None:
    buffer = make_buffer()
    before = buffer.mirror()

    buffer.elog.insert(0, "x")
    buffer.commit(1)
    after = buffer.mirror()

    assert before.version == 0
    assert after.version > before.version
    assert after.text == "xone\ntwo\n"
    assert after.dirty
