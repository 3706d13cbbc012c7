"""
Shopping List Engine: categorized shopping lists, one per calendar week.

Ingredients are grouped by category. Re-adding an item with the same name
(case-insensitive) in the same category updates the stored item instead of
duplicating it; how amounts combine is decided by the MergePolicy.
"""

import logging
from datetime import date
from typing import Callable, List, Optional

from .database import KeyValueStore, StorageError, SHOPPING_LISTS_KEY
from .models import Ingredient, MergePolicy, ShoppingList
from .repository import CollectionRepository
from .weeks import available_weeks, target_date, week_key_for, week_name

logger = logging.getLogger(__name__)


class ShoppingListRepository(CollectionRepository):
    """Manages the persisted list of shopping lists."""

    key = SHOPPING_LISTS_KEY
    model = ShoppingList

    def __init__(
        self,
        store: KeyValueStore,
        merge_policy: MergePolicy = MergePolicy.OVERWRITE,
        today: Optional[Callable[[], date]] = None,
    ):
        super().__init__(store, today=today)
        self.merge_policy = merge_policy

    async def get_shopping_lists(self) -> List[ShoppingList]:
        return await self.get_all()

    async def get_shopping_list(self, list_id: str) -> Optional[ShoppingList]:
        return await self.get(list_id)

    def get_available_weeks(self, count: int = 5) -> List[dict]:
        """Weeks offered when creating a list (this week and the next ones)."""
        return available_weeks(self.today(), count)

    def _get_or_create(self, lists: List[ShoppingList], weeks_ahead: int) -> tuple:
        day = target_date(self.today(), weeks_ahead)
        key = week_key_for(day)

        for shopping_list in lists:
            if shopping_list.week_number == key.week_number and shopping_list.year == key.year:
                return shopping_list, False

        shopping_list = ShoppingList(
            id=key.id,
            name=week_name(day),
            week_number=key.week_number,
            year=key.year,
            date=day.isoformat(),
        )
        lists.insert(0, shopping_list)
        return shopping_list, True

    async def add_new_shopping_list(self, weeks_ahead: int = 0) -> Optional[ShoppingList]:
        """Create the list for a week, or return the existing one."""
        async with self._lock:
            try:
                lists = await self.load()
                shopping_list, created = self._get_or_create(lists, weeks_ahead)
                if created:
                    await self.save(lists)
                    logger.info(f"Created shopping list {shopping_list.id}")
                return shopping_list
            except StorageError as e:
                logger.error(f"Error creating shopping list: {e}")
                return None

    async def add_to_shopping_list(
        self,
        ingredients: List[Ingredient],
        list_id: Optional[str] = None,
    ) -> Optional[ShoppingList]:
        """
        Add recipe ingredients to a shopping list.

        Args:
            ingredients: Ingredients to add
            list_id: Target list; when missing or unknown the current
                week's list is used (created if needed)

        Returns:
            Updated ShoppingList, or None if the store failed
        """
        async with self._lock:
            try:
                lists = await self.load()
                shopping_list = self._find(lists, list_id) if list_id else None
                if shopping_list is None:
                    if list_id:
                        logger.warning(f"Shopping list {list_id} not found, using current week")
                    shopping_list, _ = self._get_or_create(lists, 0)

                shopping_list.add_ingredients(ingredients, self.merge_policy)
                await self.save(lists)
            except StorageError as e:
                logger.error(f"Error adding to shopping list: {e}")
                return None

        logger.info(f"Added {len(ingredients)} ingredient(s) to {shopping_list.id}")
        return shopping_list

    async def add_item(
        self,
        list_id: str,
        name: str,
        amount: str = "",
        category: Optional[str] = None,
        unit: Optional[str] = None,
    ) -> Optional[ShoppingList]:
        """Add a manually entered item to an existing list."""
        async with self._lock:
            try:
                lists = await self.load()
                shopping_list = self._find(lists, list_id)
                if shopping_list is None:
                    return None
                shopping_list.add_item(name, amount, category, unit, policy=self.merge_policy)
                await self.save(lists)
                return shopping_list
            except StorageError as e:
                logger.error(f"Error adding item to {list_id}: {e}")
                return None

    async def _mutate(self, list_id: str, action: Callable[[ShoppingList], bool]) -> bool:
        """Load, apply action to one list, save when it reports a change."""
        async with self._lock:
            try:
                lists = await self.load()
                shopping_list = self._find(lists, list_id)
                if shopping_list is None or not action(shopping_list):
                    return False
                await self.save(lists)
                return True
            except StorageError as e:
                logger.error(f"Error updating shopping list {list_id}: {e}")
                return False

    async def toggle_item_check(self, list_id: str, category: str, item_id: str) -> bool:
        return await self._mutate(
            list_id, lambda sl: sl.toggle_item(category, item_id)
        )

    async def delete_item(self, list_id: str, category: str, item_id: str) -> bool:
        return await self._mutate(
            list_id, lambda sl: sl.remove_item(category, item_id) is not None
        )

    async def delete_all_items(self, list_id: str) -> bool:
        def clear(shopping_list: ShoppingList) -> bool:
            shopping_list.clear()
            return True

        return await self._mutate(list_id, clear)

    async def move_item_to_category(
        self,
        list_id: str,
        old_category: str,
        item_id: str,
        new_category: str,
    ) -> bool:
        return await self._mutate(
            list_id,
            lambda sl: sl.move_item(old_category, item_id, new_category, self.merge_policy),
        )
