from __future__ import annotations

from sam_engine.buffer import Buffer, Elog, ElogKind, Range
from sam_engine.buffer.elog import WARN_SEQUENCE, WARN_SEQUENCE_DIRE


def make_buffer(text: str = "hello world", dot: Range = Range(0, 0)) -> Buffer:
    buffer = Buffer.from_text(text, name="scratch")
    buffer.set_dot(dot.q0, dot.q1)
    return buffer


def test_empty_changes_are_not_recorded() -> None:
    elog = Elog()

    assert elog.insert(3, "") is None
    assert elog.delete(4, 4) is None
    assert elog.replace(5, 5, "") is None
    assert elog.empty()


def test_inserts_at_the_same_offset_merge() -> None:
    elog = Elog()

    elog.insert(5, "ab")
    elog.insert(5, "cd")

    (entry,) = elog.entries()
    assert entry.kind is ElogKind.INSERT
    assert (entry.q0, entry.text) == (5, "abcd")


def test_adjacent_deletes_merge() -> None:
    elog = Elog()

    elog.delete(0, 2)
    elog.delete(2, 4)

    (entry,) = elog.entries()
    assert entry.kind is ElogKind.DELETE
    assert (entry.q0, entry.nd) == (0, 4)


def test_replace_never_merges() -> None:
    elog = Elog()

    elog.replace(0, 1, "x")
    elog.replace(1, 2, "y")

    assert len(elog) == 2


def test_out_of_sequence_warns_once_then_only_dire() -> None:
    elog = Elog()

    assert elog.insert(10, "x") is None
    assert elog.insert(2, "y") == f"{WARN_SEQUENCE}\n{WARN_SEQUENCE_DIRE}"
    assert elog.insert(1, "z") == WARN_SEQUENCE_DIRE
    assert len(elog) == 3


def test_term_rearms_the_warning() -> None:
    elog = Elog()
    elog.insert(10, "x")
    elog.insert(2, "y")

    elog.term()

    assert elog.empty()
    elog.insert(10, "x")
    assert elog.insert(2, "y") == f"{WARN_SEQUENCE}\n{WARN_SEQUENCE_DIRE}"


def test_apply_uses_original_offsets() -> None:
    buffer = make_buffer()
    elog = buffer.elog

    elog.replace(0, 5, "HELLO")
    elog.delete(5, 6)
    elog.insert(11, "!")
    elog.apply(buffer)

    assert buffer.text == "HELLOworld!"
    assert elog.empty()


def test_apply_grows_an_empty_dot_over_inserted_text() -> None:
    buffer = make_buffer(dot=Range(3, 3))

    buffer.elog.insert(3, "abc")
    buffer.elog.apply(buffer)

    assert buffer.text == "helabclo world"
    assert buffer.dot == Range(3, 6)


def test_apply_shifts_dot_after_the_change() -> None:
    buffer = make_buffer(dot=Range(6, 11))

    buffer.elog.delete(0, 6)
    buffer.elog.apply(buffer)

    assert buffer.text == "world"
    assert buffer.dot == Range(0, 5)


def test_apply_clamps_offsets_to_the_buffer() -> None:
    buffer = make_buffer("abc")

    buffer.elog.delete(1, 10)
    buffer.elog.apply(buffer)

    assert buffer.text == "a"
