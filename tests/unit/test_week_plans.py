"""
Unit tests for the week plan repository.
"""

import logging

import pytest

from recipe_planner.data.models import Recipe


class TestWeekPlanCreation:
    @pytest.mark.asyncio
    async def test_create_is_idempotent(self, week_plans):
        first = await week_plans.add_new_week_plan(0)
        second = await week_plans.add_new_week_plan(0)

        assert first.id == second.id == "week-11-2025"
        assert len(await week_plans.get_week_plans()) == 1

    @pytest.mark.asyncio
    async def test_next_week(self, week_plans):
        plan = await week_plans.add_new_week_plan(1)

        assert plan.id == "week-12-2025"
        assert plan.name == "Week 12 (17.03.2025 - 23.03.2025)"
        assert await week_plans.get_week_plan("week-12-2025") == plan


class TestAddRecipes:
    """Test distribution of recipes over a stored plan."""

    @pytest.mark.asyncio
    async def test_three_recipes_monday_to_wednesday(self, week_plans, sample_recipes):
        plan = await week_plans.add_new_week_plan(0)

        updated = await week_plans.add_recipes_to_week_plan(plan.id, sample_recipes)

        assert [r.title for r in updated.days["monday"]] == ["Tomato Pasta"]
        assert [r.title for r in updated.days["tuesday"]] == ["Chickpea Curry"]
        assert [r.title for r in updated.days["wednesday"]] == ["Greek Salad"]
        for day in ("thursday", "friday", "saturday", "sunday"):
            assert updated.days[day] == []

    @pytest.mark.asyncio
    async def test_overflow_is_logged(self, week_plans, caplog):
        plan = await week_plans.add_new_week_plan(0)
        recipes = [Recipe(id=str(n), title=f"R{n}") for n in range(8)]

        with caplog.at_level(logging.WARNING):
            updated = await week_plans.add_recipes_to_week_plan(plan.id, recipes)

        assert sum(len(r) for r in updated.days.values()) == 7
        assert "not placed" in caplog.text

    @pytest.mark.asyncio
    async def test_unknown_plan(self, week_plans, sample_recipes):
        assert await week_plans.add_recipes_to_week_plan("week-1-1990", sample_recipes) is None


class TestMoveAndDelete:
    @pytest.mark.asyncio
    async def test_move_monday_to_friday(self, week_plans, sample_recipes):
        plan = await week_plans.add_new_week_plan(0)
        await week_plans.add_recipes_to_week_plan(plan.id, sample_recipes[:1])

        assert await week_plans.move_recipe(plan.id, "monday", "friday", sample_recipes[0])

        stored = await week_plans.get_week_plan(plan.id)
        assert stored.days["monday"] == []
        assert stored.days["friday"] == [sample_recipes[0]]

    @pytest.mark.asyncio
    async def test_move_by_id(self, week_plans, sample_recipes):
        plan = await week_plans.add_new_week_plan(0)
        await week_plans.add_recipes_to_week_plan(plan.id, sample_recipes)

        assert await week_plans.move_recipe(plan.id, "tuesday", "sunday", "r2")

        stored = await week_plans.get_week_plan(plan.id)
        assert [r.id for r in stored.days["sunday"]] == ["r2"]

    @pytest.mark.asyncio
    async def test_move_missing_recipe(self, week_plans):
        plan = await week_plans.add_new_week_plan(0)

        assert not await week_plans.move_recipe(plan.id, "monday", "friday", "nope")
        assert not await week_plans.move_recipe("week-1-1990", "monday", "friday", "nope")

    @pytest.mark.asyncio
    async def test_delete_only_touches_given_day(self, week_plans, sample_recipes):
        plan = await week_plans.add_new_week_plan(0)
        await week_plans.add_recipes_to_week_plan(plan.id, sample_recipes)
        await week_plans.add_recipes_to_week_plan(plan.id, sample_recipes[:1])  # r1 on monday twice

        assert not await week_plans.delete_recipe(plan.id, "tuesday", "r1")
        assert await week_plans.delete_recipe(plan.id, "monday", "r1")

        stored = await week_plans.get_week_plan(plan.id)
        assert [r.id for r in stored.days["monday"]] == ["r1"]
        assert [r.id for r in stored.days["tuesday"]] == ["r2"]
