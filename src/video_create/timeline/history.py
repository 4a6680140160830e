"""Undo/redo snapshots for composition edits."""

from __future__ import annotations

from dataclasses import dataclass

from video_create.timeline.models import TimelineItem


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    """Item list and selection captured before an edit.

    Items are immutable, so keeping the tuple itself is a safe snapshot. The
    selected id may be stale after restore; the store validates it.
    """

    label: str
    items: tuple[TimelineItem, ...]
    selected_id: str | None = None


class HistoryManager:
    def __init__(self, limit: int = 100) -> None:
        self.limit = max(1, int(limit))
        self._undo: list[HistoryEntry] = []
        self._redo: list[HistoryEntry] = []

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()

    def can_undo(self) -> bool:
        return bool(self._undo)

    def can_redo(self) -> bool:
        return bool(self._redo)

    def peek_undo_label(self) -> str:
        return self._undo[-1].label if self._undo else ""

    def record(self, entry: HistoryEntry) -> None:
        """Record an undo step. Call before applying the edit; clears redo."""
        self._undo.append(entry)
        if len(self._undo) > self.limit:
            self._undo = self._undo[-self.limit :]
        self._redo.clear()

    def discard_last(self) -> HistoryEntry | None:
        """Drop the newest undo step without touching redo; returns it."""
        return self._undo.pop() if self._undo else None

    def undo(self, current: HistoryEntry) -> HistoryEntry | None:
        if not self._undo:
            return None
        entry = self._undo.pop()
        self._redo.append(HistoryEntry(label=entry.label, items=current.items, selected_id=current.selected_id))
        return entry

    def redo(self, current: HistoryEntry) -> HistoryEntry | None:
        if not self._redo:
            return None
        entry = self._redo.pop()
        self._undo.append(HistoryEntry(label=entry.label, items=current.items, selected_id=current.selected_id))
        if len(self._undo) > self.limit:
            self._undo = self._undo[-self.limit :]
        return entry
