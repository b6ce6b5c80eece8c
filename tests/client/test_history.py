"""Undo/redo history behaviour."""

from client.history import VersionHistory


def test_empty_history():
    history = VersionHistory()

    assert history.cursor == -1
    assert history.current is None
    assert history.can_undo is False
    assert history.can_redo is False
    assert history.undo() is None
    assert history.redo() is None


def test_push_moves_cursor_to_new_entry():
    history = VersionHistory()
    history.push("A")
    history.push("B")

    assert history.entries == ["A", "B"]
    assert history.cursor == 1
    assert history.current == "B"
    assert history.can_undo is True
    assert history.can_redo is False


def test_push_after_undo_truncates_branch():
    history = VersionHistory()
    for code in ("A", "B", "C"):
        history.push(code)

    assert history.undo() == "B"
    history.push("D")

    assert history.entries == ["A", "B", "D"]
    assert history.cursor == 2
    assert history.can_redo is False


def test_undo_stops_at_first_entry():
    history = VersionHistory("A")
    history.push("B")

    assert history.undo() == "A"
    assert history.undo() is None
    assert history.cursor == 0
    assert history.current == "A"


def test_redo_walks_forward_and_stops_at_end():
    history = VersionHistory("A")
    history.push("B")
    history.push("C")
    history.undo()
    history.undo()

    assert history.can_redo is True
    assert history.redo() == "B"
    assert history.redo() == "C"
    assert history.redo() is None
    assert history.cursor == 2


def test_flags_track_bounds():
    history = VersionHistory("A")
    history.push("B")

    assert (history.can_undo, history.can_redo) == (True, False)
    history.undo()
    assert (history.can_undo, history.can_redo) == (False, True)


def test_entries_is_a_copy():
    history = VersionHistory("A")
    history.entries.append("tampered")

    assert history.entries == ["A"]
    assert len(history) == 1


def test_reset():
    history = VersionHistory("A")
    history.push("B")

    history.reset("start")
    assert history.entries == ["start"]
    assert history.cursor == 0

    history.reset()
    assert history.cursor == -1
    assert len(history) == 0
