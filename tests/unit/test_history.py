import random

from retouchkit.domain.operations.operation import Operation
from retouchkit.domain.services.history import OperationHistory


def _ops(n):
    return [Operation.adjustment("brightness", i) for i in range(n)]


def test_empty_history():
    h = OperationHistory()
    assert h.cursor == -1
    assert len(h) == 0
    assert not h.can_undo()
    assert not h.can_redo()
    assert h.active_operations() == ()
    # no-ops, never raise
    h.undo()
    h.redo()
    assert h.cursor == -1


def test_append_moves_cursor_to_end():
    h = OperationHistory()
    a, b = _ops(2)
    h.append(a)
    h.append(b)
    assert h.cursor == 1
    assert h.active_operations() == (a, b)
    assert h.can_undo()
    assert not h.can_redo()


def test_undo_then_redo_restores_prefix():
    h = OperationHistory()
    ops = _ops(3)
    for op in ops:
        h.append(op)
    h.undo()
    assert h.active_operations() == tuple(ops[:2])
    assert h.can_redo()
    h.redo()
    assert h.active_operations() == tuple(ops)
    h.redo()
    assert h.cursor == 2


def test_append_after_undo_drops_redo_branch():
    h = OperationHistory()
    a, b, c = _ops(3)
    h.append(a)
    h.append(b)
    h.undo()
    h.append(c)
    assert h.all_operations() == (a, c)
    assert h.active_operations() == (a, c)
    assert not h.can_redo()


def test_undo_to_start():
    h = OperationHistory()
    for op in _ops(2):
        h.append(op)
    h.undo()
    h.undo()
    h.undo()
    assert h.cursor == -1
    assert h.active_operations() == ()
    assert len(h) == 2


def test_reset_keeps_storage():
    h = OperationHistory()
    ops = _ops(2)
    for op in ops:
        h.append(op)
    h.reset()
    assert h.active_operations() == ()
    assert h.all_operations() == tuple(ops)
    h.redo()
    assert h.active_operations() == (ops[0],)


def test_clear_empties_storage():
    h = OperationHistory()
    for op in _ops(2):
        h.append(op)
    h.clear()
    assert len(h) == 0
    assert h.cursor == -1
    assert not h.can_redo()


def test_random_walk_keeps_cursor_in_bounds():
    rng = random.Random(20240611)
    h = OperationHistory()
    stored, cursor = [], -1
    for step in range(500):
        action = rng.choice(["append", "append", "undo", "redo", "reset", "clear"])
        if action == "append":
            op = Operation.adjustment("brightness", step % 100)
            h.append(op)
            stored = stored[: cursor + 1] + [op]
            cursor = len(stored) - 1
        elif action == "undo":
            h.undo()
            cursor = max(-1, cursor - 1)
        elif action == "redo":
            h.redo()
            cursor = min(len(stored) - 1, cursor + 1)
        elif action == "reset":
            h.reset()
            cursor = -1
        else:
            h.clear()
            stored, cursor = [], -1

        assert -1 <= h.cursor <= len(h) - 1, (step, action)
        assert h.cursor == cursor
        assert h.all_operations() == tuple(stored)
        assert h.active_operations() == tuple(stored[: cursor + 1])
        assert h.can_undo() == (cursor >= 0)
        assert h.can_redo() == (cursor < len(stored) - 1)
