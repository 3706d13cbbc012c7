"""
Key-value persistence for the Recipe Planner.

Every collection is stored as one JSON document under a fixed key and is
read and written wholesale:
- shopping_lists: list of ShoppingList
- week_plans: list of WeekPlan
- user_food_preferences: UserPreferences
- current_recipe: Recipe shown on the cooking screen
"""

import asyncio
import json
import logging
import sqlite3
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

SHOPPING_LISTS_KEY = "shopping_lists"
WEEK_PLANS_KEY = "week_plans"
USER_PREFERENCES_KEY = "user_food_preferences"
CURRENT_RECIPE_KEY = "current_recipe"


class StorageError(Exception):
    """Raised when the underlying store cannot be read or written."""
    pass


class KeyValueStore(ABC):
    """Async get/set-by-key store holding text values."""

    @abstractmethod
    async def get_item(self, key: str) -> Optional[str]:
        """Return the stored value or None."""
        pass

    @abstractmethod
    async def set_item(self, key: str, value: str):
        """Store a value, replacing any previous one."""
        pass

    @abstractmethod
    async def remove_item(self, key: str):
        pass

    @abstractmethod
    async def clear(self):
        """Wipe every key."""
        pass

    async def get_json(self, key: str) -> Any:
        """Load and decode a JSON value (None when missing)."""
        raw = await self.get_item(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageError(f"Corrupt value stored under '{key}': {e}") from e

    async def set_json(self, key: str, value: Any):
        await self.set_item(key, json.dumps(value, ensure_ascii=False))


class InMemoryKeyValueStore(KeyValueStore):
    """Dict-backed store for tests and throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    async def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set_item(self, key: str, value: str):
        self._data[key] = value

    async def remove_item(self, key: str):
        self._data.pop(key, None)

    async def clear(self):
        self._data.clear()


class SQLiteKeyValueStore(KeyValueStore):
    """SQLite-backed store; blocking calls run in a worker thread."""

    def __init__(self, db_dir: str = "data", filename: str = "recipe_planner.db"):
        """
        Initialize the store.

        Args:
            db_dir: Directory holding the database file
            filename: Database file name
        """
        self.db_dir = Path(db_dir)
        self.db_dir.mkdir(parents=True, exist_ok=True)
        self.db_path = self.db_dir / filename

        self._init_database()

    def _init_database(self):
        """Create the key-value table."""
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.commit()
        logger.debug(f"Key-value store ready at {self.db_path}")

    def _get(self, key: str) -> Optional[str]:
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
            row = cursor.fetchone()
            return row[0] if row else None

    def _set(self, key: str, value: str):
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT OR REPLACE INTO kv_store (key, value, updated_at)
                VALUES (?, ?, ?)
                """,
                (key, value, datetime.now().isoformat()),
            )
            conn.commit()

    def _remove(self, key: str):
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            conn.commit()

    def _clear(self):
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("DELETE FROM kv_store")
            conn.commit()

    async def _run(self, func, *args):
        try:
            return await asyncio.to_thread(func, *args)
        except sqlite3.Error as e:
            raise StorageError(f"SQLite error: {e}") from e

    async def get_item(self, key: str) -> Optional[str]:
        return await self._run(self._get, key)

    async def set_item(self, key: str, value: str):
        await self._run(self._set, key, value)

    async def remove_item(self, key: str):
        await self._run(self._remove, key)

    async def clear(self):
        await self._run(self._clear)
        logger.info("Key-value store wiped")
