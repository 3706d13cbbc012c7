"""
Week plan routes for the FastAPI application.

Provides endpoints for:
- Listing and creating week plans
- Placing, moving and deleting recipes
"""
import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ...data.models import Recipe
from ...main import RecipePlanningAssistant
from ..dependencies import get_assistant

logger = logging.getLogger(__name__)

router = APIRouter()


class CreateWeekPlanRequest(BaseModel):
    weeks_ahead: int = Field(0, ge=0)


class MoveRecipeRequest(BaseModel):
    from_day: str
    to_day: str
    recipe_id: str


class AddRecipesRequest(BaseModel):
    """Recipes as returned by the chat (`recipes` of the session state)."""
    recipes: List[Dict[str, Any]]
    wrap: bool = False


@router.get("/week-plans")
async def list_week_plans(assistant: RecipePlanningAssistant = Depends(get_assistant)):
    plans = await assistant.week_plans.get_week_plans()
    return {"week_plans": [p.to_dict() for p in plans]}


@router.post("/week-plans")
async def create_week_plan(
    plan_request: CreateWeekPlanRequest,
    assistant: RecipePlanningAssistant = Depends(get_assistant),
):
    """Create the plan for a week (returns the existing one if present)."""
    plan = await assistant.week_plans.add_new_week_plan(plan_request.weeks_ahead)
    if plan is None:
        raise HTTPException(status_code=500, detail="Week plan could not be stored")
    return plan.to_dict()


@router.get("/week-plans/{week_id}")
async def get_week_plan(week_id: str, assistant: RecipePlanningAssistant = Depends(get_assistant)):
    plan = await assistant.week_plans.get_week_plan(week_id)
    if plan is None:
        raise HTTPException(status_code=404, detail="Week plan not found")
    return plan.to_dict()


@router.post("/week-plans/{week_id}/recipes")
async def add_recipes(
    week_id: str,
    add_request: AddRecipesRequest,
    assistant: RecipePlanningAssistant = Depends(get_assistant),
):
    """Spread recipes over the plan, one per day starting Monday."""
    try:
        recipes = [Recipe.from_dict(r) for r in add_request.recipes]
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    plan = await assistant.week_plans.add_recipes_to_week_plan(week_id, recipes, wrap=add_request.wrap)
    if plan is None:
        raise HTTPException(status_code=404, detail="Week plan not found")
    return plan.to_dict()


@router.post("/week-plans/{week_id}/move")
async def move_recipe(
    week_id: str,
    move_request: MoveRecipeRequest,
    assistant: RecipePlanningAssistant = Depends(get_assistant),
):
    try:
        moved = await assistant.week_plans.move_recipe(
            week_id, move_request.from_day, move_request.to_day, move_request.recipe_id
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not moved:
        raise HTTPException(status_code=404, detail="Week plan or recipe not found")
    return (await assistant.week_plans.get_week_plan(week_id)).to_dict()


@router.delete("/week-plans/{week_id}/days/{day}/recipes/{recipe_id}")
async def delete_recipe(
    week_id: str,
    day: str,
    recipe_id: str,
    assistant: RecipePlanningAssistant = Depends(get_assistant),
):
    try:
        deleted = await assistant.week_plans.delete_recipe(week_id, day, recipe_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not deleted:
        raise HTTPException(status_code=404, detail="Week plan or recipe not found")
    return {"status": "deleted", "recipe_id": recipe_id}
