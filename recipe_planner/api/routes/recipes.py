"""
Recipe routes for the FastAPI application.

Known recipes are the ones placed in week plans; the current recipe is the
one opened for cooking.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ...main import RecipePlanningAssistant
from ..dependencies import get_assistant

logger = logging.getLogger(__name__)

router = APIRouter()


class CurrentRecipeRequest(BaseModel):
    recipe_id: str


@router.get("/recipes")
async def list_recipes(q: Optional[str] = None, assistant: RecipePlanningAssistant = Depends(get_assistant)):
    """All known recipes, optionally filtered by title or ingredient."""
    if q:
        recipes = await assistant.recipes.search_recipes(q)
    else:
        recipes = await assistant.recipes.get_all_recipes()
    return {"recipes": [r.to_dict() for r in recipes]}


@router.get("/recipes/current")
async def get_current_recipe(assistant: RecipePlanningAssistant = Depends(get_assistant)):
    recipe = await assistant.recipes.get_current_recipe()
    if recipe is None:
        raise HTTPException(status_code=404, detail="No recipe selected")
    return recipe.to_dict()


@router.put("/recipes/current")
async def set_current_recipe(
    current_request: CurrentRecipeRequest,
    assistant: RecipePlanningAssistant = Depends(get_assistant),
):
    recipe = await assistant.recipes.get_recipe_by_id(current_request.recipe_id)
    if recipe is None:
        raise HTTPException(status_code=404, detail="Recipe not found")
    if not await assistant.recipes.set_current_recipe(recipe):
        raise HTTPException(status_code=500, detail="Current recipe could not be stored")
    return recipe.to_dict()


@router.get("/recipes/{recipe_id}")
async def get_recipe(recipe_id: str, assistant: RecipePlanningAssistant = Depends(get_assistant)):
    recipe = await assistant.recipes.get_recipe_by_id(recipe_id)
    if recipe is None:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return recipe.to_dict()
