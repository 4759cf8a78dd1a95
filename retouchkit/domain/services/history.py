from __future__ import annotations

from retouchkit.domain.operations.operation import Operation


class OperationHistory:
    """Linear undo/redo stack: a list of operations and a cursor.

    The cursor is the index of the last active operation, -1 when none are
    active. Appending while the cursor is behind the end discards the redo
    branch. Nothing here validates or raises.
    """

    def __init__(self) -> None:
        self._operations: list[Operation] = []
        self._cursor = -1

    @property
    def cursor(self) -> int:
        return self._cursor

    def __len__(self) -> int:
        return len(self._operations)

    def append(self, op: Operation) -> None:
        del self._operations[self._cursor + 1 :]
        self._operations.append(op)
        self._cursor = len(self._operations) - 1

    def undo(self) -> None:
        if self._cursor >= 0:
            self._cursor -= 1

    def redo(self) -> None:
        if self._cursor < len(self._operations) - 1:
            self._cursor += 1

    def can_undo(self) -> bool:
        return self._cursor >= 0

    def can_redo(self) -> bool:
        return self._cursor < len(self._operations) - 1

    def active_operations(self) -> tuple[Operation, ...]:
        return tuple(self._operations[: self._cursor + 1])

    def all_operations(self) -> tuple[Operation, ...]:
        return tuple(self._operations)

    def reset(self) -> None:
        # storage kept so redo can walk forward again
        self._cursor = -1

    def clear(self) -> None:
        self._operations.clear()
        self._cursor = -1
