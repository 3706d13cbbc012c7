"""
Preference Store: persists the user's dietary profile.
"""

import asyncio
import logging
from typing import Dict, Optional

from .database import KeyValueStore, StorageError, USER_PREFERENCES_KEY
from .models import UserPreferences

logger = logging.getLogger(__name__)


class PreferenceStore:
    """
    Load/save the single UserPreferences record.

    Writes and read-modify-write changes are serialized with one lock.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store
        self._lock = asyncio.Lock()

    async def load(self) -> Optional[UserPreferences]:
        """
        Load the stored profile.

        Returns:
            UserPreferences, or None if nothing is stored or it cannot be read
        """
        try:
            data = await self.store.get_json(USER_PREFERENCES_KEY)
        except StorageError as e:
            logger.error(f"Error loading user preferences: {e}")
            return None
        return UserPreferences.from_dict(data) if data else None

    async def save(self, preferences: UserPreferences) -> bool:
        async with self._lock:
            return await self._write(preferences)

    async def _write(self, preferences: UserPreferences) -> bool:
        try:
            await self.store.set_json(USER_PREFERENCES_KEY, preferences.to_dict())
        except StorageError as e:
            logger.error(f"Error saving user preferences: {e}")
            return False
        logger.info(f"Saved user preferences: {preferences.to_dict()}")
        return True

    async def update(self, changes: Dict) -> bool:
        """Replace the given preference lists, keeping the others."""
        async with self._lock:
            current = await self.load() or UserPreferences()
            merged = {**current.to_dict(), **changes}
            return await self._write(UserPreferences.from_dict(merged))

    async def has_preferences(self) -> bool:
        """True when a non-empty profile is stored."""
        preferences = await self.load()
        return preferences is not None and not preferences.is_empty()

    async def add_preference(self, preference_type: str, value: str) -> Optional[UserPreferences]:
        """Add one tag; returns the updated profile or None on storage failure."""
        async with self._lock:
            preferences = await self.load() or UserPreferences()
            if preferences.add(preference_type, value):
                if not await self._write(preferences):
                    return None
            return preferences

    async def remove_preference(self, preference_type: str, value: str) -> Optional[UserPreferences]:
        """Remove one tag; returns the updated profile or None on storage failure."""
        async with self._lock:
            preferences = await self.load() or UserPreferences()
            if preferences.remove(preference_type, value):
                if not await self._write(preferences):
                    return None
            return preferences
