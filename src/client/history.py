"""Linear undo/redo history of accepted code versions."""

from __future__ import annotations


class VersionHistory:
    """Ordered list of code versions plus a cursor at the displayed one.

    The cursor is ``-1`` only while the history is empty. Pushing after an
    undo discards everything after the cursor, the usual editor behaviour.
    """

    def __init__(self, initial: str | None = None) -> None:
        self._entries: list[str] = []
        self._cursor = -1
        if initial is not None:
            self.push(initial)

    @property
    def entries(self) -> list[str]:
        return list(self._entries)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def current(self) -> str | None:
        if self._cursor < 0:
            return None
        return self._entries[self._cursor]

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._entries) - 1

    def push(self, code: str) -> None:
        del self._entries[self._cursor + 1 :]
        self._entries.append(code)
        self._cursor = len(self._entries) - 1

    def undo(self) -> str | None:
        if not self.can_undo:
            return None
        self._cursor -= 1
        return self._entries[self._cursor]

    def redo(self) -> str | None:
        if not self.can_redo:
            return None
        self._cursor += 1
        return self._entries[self._cursor]

    def reset(self, initial: str | None = None) -> None:
        self._entries.clear()
        self._cursor = -1
        if initial is not None:
            self.push(initial)

    def __len__(self) -> int:
        return len(self._entries)
