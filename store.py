import logging
import os
from typing import Iterable, List, Optional, Set, Tuple
from uuid import UUID

from pydantic import TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError

from schemas import MoodEntry

logger = logging.getLogger(__name__)

ENTRIES_KEY = "MoodEntries"
WRITE_ENTRY_KEYS = os.getenv("WRITE_ENTRY_KEYS", "1").lower() not in ("0", "false", "no")

_entries_adapter = TypeAdapter(List[MoodEntry])


def encode_entries(entries: List[MoodEntry]) -> bytes:
    return _entries_adapter.dump_json(entries, by_alias=True)


def decode_entries(data: bytes) -> List[MoodEntry]:
    return _entries_adapter.validate_json(data)


def encode_entry(entry: MoodEntry) -> bytes:
    return entry.model_dump_json(by_alias=True).encode("utf-8")


class EntryStore:
    """
    Owns the mood entry collection and persists it as one blob.

    Persistence is best effort: an absent or undecodable blob loads as an
    empty collection and a failed encode skips the write. Neither raises.
    """

    def __init__(self, blobs, key: str = ENTRIES_KEY, write_entry_keys: bool = WRITE_ENTRY_KEYS):
        self.blobs = blobs
        self.key = key
        self.write_entry_keys = write_entry_keys
        self.entries: List[MoodEntry] = []

    def load(self) -> List[MoodEntry]:
        data = self.blobs.get(self.key)
        if data is None:
            logger.info("No saved entries under %s", self.key)
            self.entries = []
            return self.entries
        try:
            self.entries = decode_entries(data)
        except (ValidationError, ValueError, TypeError) as e:
            logger.warning("Could not decode saved entries, starting empty: %s", e)
            self.entries = []
        else:
            logger.info("Loaded %d entries", len(self.entries))
        return self.entries

    def save(self) -> bool:
        try:
            data = encode_entries(self.entries)
        except (PydanticSerializationError, ValueError, TypeError) as e:
            logger.warning("Could not encode entries, skipping save: %s", e)
            return False
        self.blobs.set(self.key, data)
        logger.debug("Saved %d entries", len(self.entries))
        return True

    def add_entry(self, entry: Optional[MoodEntry] = None) -> List[MoodEntry]:
        if entry is None:
            entry = MoodEntry.new()
        self.entries.append(entry)
        logger.info("Added entry %s", entry.id)
        self.save()
        return self.entries

    def delete_entries(self, ids: Iterable[UUID]) -> Tuple[List[MoodEntry], Set[UUID]]:
        """Remove every entry whose id is in ``ids``; returns the collection and an empty selection."""
        doomed = set(ids)
        before = len(self.entries)
        self.entries = [e for e in self.entries if e.id not in doomed]
        logger.info("Deleted %d entries", before - len(self.entries))
        self.save()
        return self.entries, set()

    def index_of(self, entry_id: UUID) -> Optional[int]:
        for i, entry in enumerate(self.entries):
            if entry.id == entry_id:
                return i
        return None

    def get(self, entry_id: UUID) -> Optional[MoodEntry]:
        i = self.index_of(entry_id)
        return None if i is None else self.entries[i]

    def save_entry(self, entry_id: UUID) -> bool:
        """Write one entry under its own id, alongside the collection blob."""
        if not self.write_entry_keys:
            return False
        entry = self.get(entry_id)
        if entry is None:
            return False
        try:
            data = encode_entry(entry)
        except (PydanticSerializationError, ValueError, TypeError) as e:
            logger.warning("Could not encode entry %s, skipping save: %s", entry_id, e)
            return False
        self.blobs.set(str(entry_id), data)
        return True
