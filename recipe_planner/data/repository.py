"""
Base class for collections persisted as one JSON array under a store key.
"""

import asyncio
import logging
from datetime import date
from typing import Callable, List, Optional

from .database import KeyValueStore, StorageError

logger = logging.getLogger(__name__)


class CollectionRepository:
    """
    Owns one collection (week plans or shopping lists).

    Each mutation loads the full collection, changes it and writes it back.
    Mutations are serialized with a lock because the whole array is rewritten.
    """

    key: str = ""
    model = None

    def __init__(self, store: KeyValueStore, today: Optional[Callable[[], date]] = None):
        """
        Args:
            store: Key-value store
            today: Clock used to resolve the current week (defaults to date.today)
        """
        self.store = store
        self.today = today or date.today
        self._lock = asyncio.Lock()

    async def load(self) -> List:
        """Read the whole collection (raises StorageError)."""
        data = await self.store.get_json(self.key)
        return [self.model.from_dict(entry) for entry in (data or [])]

    async def save(self, entries: List):
        """Write the whole collection (raises StorageError)."""
        await self.store.set_json(self.key, [entry.to_dict() for entry in entries])

    async def get_all(self) -> List:
        try:
            return await self.load()
        except StorageError as e:
            logger.error(f"Error loading {self.key}: {e}")
            return []

    async def get(self, entry_id: str):
        for entry in await self.get_all():
            if entry.id == entry_id:
                return entry
        return None

    @staticmethod
    def _find(entries: List, entry_id: str):
        return next((e for e in entries if e.id == entry_id), None)
