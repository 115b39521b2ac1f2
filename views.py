import logging
from datetime import date as date_type
from typing import Any, Dict, List, Optional, Set
from uuid import UUID

from schemas import ColorValue, MoodEntry
from store import EntryStore

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


def date_label(value: date_type) -> str:
    """Short circle label, e.g. "Oct 19"."""
    return f"{value:%b} {value.day}"


class DetailEditModel:
    """
    Edits one entry in place.

    Only the entry id is held; every access goes through the owning store so
    changes are visible in the collection straight away. Nothing is persisted
    until close().
    """

    def __init__(self, store: EntryStore, entry_id: UUID):
        self.store = store
        self.entry_id = entry_id

    @property
    def entry(self) -> MoodEntry:
        entry = self.store.get(self.entry_id)
        if entry is None:
            raise KeyError(self.entry_id)
        return entry

    def set_date(self, value: date_type) -> None:
        # date-only picker: keep the time of day
        current = self.entry.date
        self.entry.date = current.replace(year=value.year, month=value.month, day=value.day)

    def set_gradient_start(self, color: Any) -> None:
        self.entry.color_gradient_start = ColorValue.from_color(color)

    def set_gradient_end(self, color: Any) -> None:
        self.entry.color_gradient_end = ColorValue.from_color(color)

    def set_rating(self, value: int) -> None:
        self.entry.rating = min(max(int(value), MIN_RATING), MAX_RATING)

    def increment_rating(self) -> None:
        self.set_rating(self.entry.rating + 1)

    def decrement_rating(self) -> None:
        self.set_rating(self.entry.rating - 1)

    def set_notes(self, text: str) -> None:
        self.entry.notes = text

    def close(self) -> None:
        self.store.save()
        self.store.save_entry(self.entry_id)
        logger.debug("Closed editor for %s", self.entry_id)


class GridViewModel:
    """Date-sorted grid of entries with edit mode, multi-select and detail editing."""

    def __init__(self, store: EntryStore):
        self.store = store
        self.is_editing = False
        self.selection: Set[UUID] = set()
        self.detail: Optional[DetailEditModel] = None

    def sorted_entries(self) -> List[MoodEntry]:
        # sorted() is stable: equal dates keep collection order
        return sorted(self.store.entries, key=lambda e: e.date)

    def average_rating(self) -> float:
        entries = self.store.entries
        if not entries:
            return 0.0
        return sum(e.rating for e in entries) / len(entries)

    def average_label(self) -> str:
        return f"Avg: {self.average_rating():.2f}"

    def toggle_edit_mode(self) -> bool:
        self.is_editing = not self.is_editing
        self.selection.clear()
        return self.is_editing

    def toggle_selection(self, entry_id: UUID) -> bool:
        if entry_id in self.selection:
            self.selection.remove(entry_id)
            return False
        self.selection.add(entry_id)
        return True

    def is_selected(self, entry_id: UUID) -> bool:
        return entry_id in self.selection

    def add_new_entry(self) -> MoodEntry:
        self.store.add_entry(MoodEntry.new())
        return self.store.entries[-1]

    def delete_selected(self) -> int:
        count = len(self.selection)
        _, self.selection = self.store.delete_entries(self.selection)
        return count

    def open_detail(self, entry_id: UUID) -> DetailEditModel:
        if self.store.get(entry_id) is None:
            raise KeyError(entry_id)
        # one editor at a time; the previous one saves on its way out
        self.close_detail()
        self.detail = DetailEditModel(self.store, entry_id)
        return self.detail

    def close_detail(self) -> None:
        if self.detail is not None:
            self.detail.close()
            self.detail = None

    def tap(self, entry_id: UUID) -> Optional[DetailEditModel]:
        if self.is_editing:
            self.toggle_selection(entry_id)
            return None
        return self.open_detail(entry_id)

    def circles(self) -> List[Dict[str, Any]]:
        return [
            {
                "id": str(e.id),
                "label": date_label(e.date),
                "rating": e.rating,
                "gradient": [e.color_gradient_start.to_hex(), e.color_gradient_end.to_hex()],
                "selected": self.is_selected(e.id),
            }
            for e in self.sorted_entries()
        ]
