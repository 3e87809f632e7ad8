"""Ring buffer of previously entered lines."""

from __future__ import annotations


class HistoryController:
    """Keeps the last *size* entered lines and a browsing cursor.

    Empty entries and consecutive duplicates are never stored. The cursor
    ranges over ``[0, len(entries)]`` where ``len(entries)`` means "past the
    newest entry".
    """

    def __init__(self, size: int = 10) -> None:
        self._size = size
        self._entries: list[str] = []
        self._cursor = 0

    def push(self, entry: str) -> None:
        """Append *entry*, evicting the oldest one when the buffer is full."""
        if entry.strip() == "":
            return

        if self._entries and self._entries[-1] == entry:
            return

        self._entries.append(entry)
        if len(self._entries) > self._size:
            self._entries.pop(0)
        self._cursor = len(self._entries)

    def rewind(self) -> None:
        """Move the browsing cursor back past the newest entry."""
        self._cursor = len(self._entries)

    def get_previous(self) -> str | None:
        """Step back one entry and return it (``None`` if empty)."""
        self._cursor = max(0, self._cursor - 1)
        return self._entry_at_cursor()

    def get_next(self) -> str | None:
        """Step forward one entry and return it (``None`` past the newest)."""
        self._cursor = min(len(self._entries), self._cursor + 1)
        return self._entry_at_cursor()

    def _entry_at_cursor(self) -> str | None:
        if self._cursor < len(self._entries):
            return self._entries[self._cursor]
        return None

    @property
    def entries(self) -> tuple[str, ...]:
        return tuple(self._entries)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def size(self) -> int:
        return self._size

    def __len__(self) -> int:
        return len(self._entries)
