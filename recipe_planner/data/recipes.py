"""
Recipe Repository.

There is no recipe table: the recipes a user has seen are the ones stored in
their week plans. This module derives that set and tracks the recipe
currently opened for cooking.
"""

import logging
from typing import List, Optional

from .database import KeyValueStore, StorageError, CURRENT_RECIPE_KEY
from .models import Recipe
from .week_plans import WeekPlanRepository

logger = logging.getLogger(__name__)


class RecipeRepository:
    """Read access to known recipes plus the current-recipe pointer."""

    def __init__(self, store: KeyValueStore, week_plans: WeekPlanRepository):
        self.store = store
        self.week_plans = week_plans

    async def get_all_recipes(self) -> List[Recipe]:
        """Distinct recipes across all week plans (first occurrence wins)."""
        seen = set()
        recipes = []
        for plan in await self.week_plans.get_week_plans():
            for recipe in plan.all_recipes():
                if recipe.id not in seen:
                    seen.add(recipe.id)
                    recipes.append(recipe)
        return recipes

    async def get_recipe_by_id(self, recipe_id: str) -> Optional[Recipe]:
        return next(
            (r for r in await self.get_all_recipes() if r.id == recipe_id),
            None,
        )

    async def search_recipes(self, query: str) -> List[Recipe]:
        """Match query against titles and ingredient names."""
        recipes = await self.get_all_recipes()
        if not query or not query.strip():
            return recipes

        needle = query.strip().lower()
        return [
            r for r in recipes
            if needle in r.title.lower()
            or any(needle in i.name.lower() for i in r.ingredients)
        ]

    async def set_current_recipe(self, recipe: Recipe) -> bool:
        try:
            await self.store.set_json(CURRENT_RECIPE_KEY, recipe.to_dict())
        except StorageError as e:
            logger.error(f"Error saving current recipe: {e}")
            return False
        return True

    async def get_current_recipe(self) -> Optional[Recipe]:
        try:
            data = await self.store.get_json(CURRENT_RECIPE_KEY)
        except StorageError as e:
            logger.error(f"Error loading current recipe: {e}")
            return None
        return Recipe.from_dict(data) if data else None
