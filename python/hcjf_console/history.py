"""In-memory command history with up/down recall."""

from __future__ import annotations

from typing import List, Optional


class History:
    """Append-only list of completed lines plus a recall cursor.

    ``position`` is 1-based over ``entries``; ``len(entries) + 1`` means
    "one past the newest entry", i.e. nothing recalled.  Navigation only moves
    the cursor; it never changes the entries.
    """

    def __init__(self, *, limit: Optional[int] = None) -> None:
        self.limit = max(1, int(limit)) if limit else None
        self.entries: List[str] = []
        self.position = 1

    def __len__(self) -> int:
        return len(self.entries)

    def __bool__(self) -> bool:
        return bool(self.entries)

    def append(self, line: str) -> None:
        self.entries.append(line)
        if self.limit is not None and len(self.entries) > self.limit:
            self.entries = self.entries[-self.limit :]
        self.reset()

    def reset(self) -> None:
        self.position = len(self.entries) + 1

    @property
    def at_newest(self) -> bool:
        return self.position >= len(self.entries)

    def previous(self) -> Optional[str]:
        """Step toward the oldest entry (clamped) and return it."""
        if not self.entries:
            return None
        if self.position > 1:
            self.position -= 1
        return self.entries[self.position - 1]

    def next(self) -> Optional[str]:
        """Step toward the newest entry.

        Returns ``None`` once the newest entry was already showing, which the
        editor takes as "back to an empty line".
        """
        if not self.entries:
            return None
        if self.at_newest:
            self.reset()
            return None
        self.position += 1
        return self.entries[self.position - 1]

    def snapshot(self) -> List[str]:
        return list(self.entries)
