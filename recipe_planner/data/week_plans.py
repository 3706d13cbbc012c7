"""
Week Plan Engine: weekday -> recipes plans, one per calendar week.
"""

import logging
from typing import List, Optional, Union

from .database import StorageError, WEEK_PLANS_KEY
from .models import Recipe, WeekPlan
from .repository import CollectionRepository
from .weeks import target_date, week_key_for, week_name

logger = logging.getLogger(__name__)


class WeekPlanRepository(CollectionRepository):
    """Manages the persisted list of week plans."""

    key = WEEK_PLANS_KEY
    model = WeekPlan

    async def get_week_plans(self) -> List[WeekPlan]:
        return await self.get_all()

    async def get_week_plan(self, week_id: str) -> Optional[WeekPlan]:
        return await self.get(week_id)

    def _get_or_create(self, plans: List[WeekPlan], weeks_ahead: int) -> tuple:
        """Return (plan, created) for the week `weeks_ahead` from today."""
        day = target_date(self.today(), weeks_ahead)
        key = week_key_for(day)

        for plan in plans:
            if plan.week_number == key.week_number and plan.year == key.year:
                return plan, False

        plan = WeekPlan(
            id=key.id,
            name=week_name(day),
            week_number=key.week_number,
            year=key.year,
            date=day.isoformat(),
        )
        plans.insert(0, plan)
        return plan, True

    async def add_new_week_plan(self, weeks_ahead: int = 0) -> Optional[WeekPlan]:
        """
        Create the plan for a week, or return the existing one.

        Args:
            weeks_ahead: 0 for the current week, 1 for next week, ...

        Returns:
            WeekPlan, or None if the store failed
        """
        async with self._lock:
            try:
                plans = await self.load()
                plan, created = self._get_or_create(plans, weeks_ahead)
                if created:
                    await self.save(plans)
                    logger.info(f"Created week plan {plan.id}")
                return plan
            except StorageError as e:
                logger.error(f"Error creating week plan: {e}")
                return None

    async def move_recipe(
        self,
        week_id: str,
        from_day: str,
        to_day: str,
        recipe: Union[Recipe, str],
    ) -> bool:
        """
        Move a recipe between days of one plan.

        Args:
            week_id: Plan id
            from_day: Source weekday
            to_day: Target weekday
            recipe: Recipe (or its id) to move

        Returns:
            False if the plan or the recipe on the source day is missing
        """
        recipe_id = recipe.id if isinstance(recipe, Recipe) else recipe

        async with self._lock:
            try:
                plans = await self.load()
                plan = self._find(plans, week_id)
                if plan is None:
                    return False

                plan.get_day(to_day)  # validate before removing anything
                moved = plan.remove_recipe(from_day, recipe_id)
                if moved is None:
                    return False

                plan.get_day(to_day).append(moved)
                await self.save(plans)
            except StorageError as e:
                logger.error(f"Error moving recipe {recipe_id}: {e}")
                return False

        logger.info(f"Moved recipe {recipe_id} from {from_day} to {to_day} in {week_id}")
        return True

    async def delete_recipe(self, week_id: str, day: str, recipe_id: str) -> bool:
        """Remove a recipe from one day of a plan."""
        async with self._lock:
            try:
                plans = await self.load()
                plan = self._find(plans, week_id)
                if plan is None or plan.remove_recipe(day, recipe_id) is None:
                    return False
                await self.save(plans)
            except StorageError as e:
                logger.error(f"Error deleting recipe {recipe_id}: {e}")
                return False
        return True

    async def add_recipes_to_week_plan(
        self,
        week_id: str,
        recipes: List[Recipe],
        wrap: bool = False,
    ) -> Optional[WeekPlan]:
        """
        Spread recipes over the plan, one per day starting Monday.

        Args:
            week_id: Plan id
            recipes: Recipes to place (copied into the plan)
            wrap: Start again on Monday once Sunday is filled

        Returns:
            Updated WeekPlan, or None if the plan is missing or the store failed
        """
        async with self._lock:
            try:
                plans = await self.load()
                plan = self._find(plans, week_id)
                if plan is None:
                    return None

                skipped = plan.distribute(recipes, wrap=wrap)
                if skipped:
                    logger.warning(
                        f"{len(skipped)} recipe(s) not placed in {week_id}: "
                        f"only one recipe per day without wrap"
                    )
                await self.save(plans)
                return plan
            except StorageError as e:
                logger.error(f"Error adding recipes to {week_id}: {e}")
                return None
