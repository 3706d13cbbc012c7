"""
Shop routes for the FastAPI application.

Provides endpoints for:
- Creating and reading shopping lists
- Adding ingredients and manual items
- Checking, moving and deleting items
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ...data.models import Ingredient
from ...main import RecipePlanningAssistant
from ..dependencies import get_assistant

logger = logging.getLogger(__name__)

router = APIRouter()


class CreateShoppingListRequest(BaseModel):
    """Request body for creating a shopping list."""
    weeks_ahead: int = Field(0, ge=0)


class IngredientPayload(BaseModel):
    name: str = Field(..., min_length=1)
    amount: str = ""
    category: Optional[str] = None


class AddIngredientsRequest(BaseModel):
    """Recipe ingredients; an unknown list id falls back to the current week."""
    ingredients: List[IngredientPayload]


class AddItemRequest(BaseModel):
    name: str = Field(..., min_length=1)
    amount: str = ""
    category: Optional[str] = None
    unit: Optional[str] = None


class MoveItemRequest(BaseModel):
    old_category: str
    new_category: str


def _not_found():
    return HTTPException(status_code=404, detail="Shopping list or item not found")


@router.get("/shopping-lists")
async def list_shopping_lists(assistant: RecipePlanningAssistant = Depends(get_assistant)):
    lists = await assistant.shopping_lists.get_shopping_lists()
    return {"shopping_lists": [s.to_dict() for s in lists]}


@router.get("/shopping-lists/weeks")
async def available_weeks(count: int = 5, assistant: RecipePlanningAssistant = Depends(get_assistant)):
    """Weeks a new list can be created for."""
    return {"weeks": assistant.shopping_lists.get_available_weeks(count)}


@router.post("/shopping-lists")
async def create_shopping_list(
    shop_request: CreateShoppingListRequest,
    assistant: RecipePlanningAssistant = Depends(get_assistant),
):
    shopping_list = await assistant.shopping_lists.add_new_shopping_list(shop_request.weeks_ahead)
    if shopping_list is None:
        raise HTTPException(status_code=500, detail="Shopping list could not be stored")
    return shopping_list.to_dict()


@router.get("/shopping-lists/{list_id}")
async def get_shopping_list(list_id: str, assistant: RecipePlanningAssistant = Depends(get_assistant)):
    shopping_list = await assistant.shopping_lists.get_shopping_list(list_id)
    if shopping_list is None:
        raise HTTPException(status_code=404, detail="Shopping list not found")
    return shopping_list.to_dict()


@router.post("/shopping-lists/{list_id}/ingredients")
async def add_ingredients(
    list_id: str,
    add_request: AddIngredientsRequest,
    assistant: RecipePlanningAssistant = Depends(get_assistant),
):
    ingredients = [
        Ingredient(name=i.name, amount=i.amount, category=i.category)
        for i in add_request.ingredients
    ]
    shopping_list = await assistant.shopping_lists.add_to_shopping_list(ingredients, list_id)
    if shopping_list is None:
        raise HTTPException(status_code=500, detail="Shopping list could not be stored")
    return shopping_list.to_dict()


@router.post("/shopping-lists/{list_id}/items")
async def add_item(
    list_id: str,
    item_request: AddItemRequest,
    assistant: RecipePlanningAssistant = Depends(get_assistant),
):
    """Add a manually entered item."""
    shopping_list = await assistant.shopping_lists.add_item(
        list_id,
        item_request.name,
        item_request.amount,
        item_request.category,
        item_request.unit,
    )
    if shopping_list is None:
        raise HTTPException(status_code=404, detail="Shopping list not found")
    return shopping_list.to_dict()


@router.post("/shopping-lists/{list_id}/items/{item_id}/toggle")
async def toggle_item(
    list_id: str,
    item_id: str,
    category: str,
    assistant: RecipePlanningAssistant = Depends(get_assistant),
):
    if not await assistant.shopping_lists.toggle_item_check(list_id, category, item_id):
        raise _not_found()
    return (await assistant.shopping_lists.get_shopping_list(list_id)).to_dict()


@router.post("/shopping-lists/{list_id}/items/{item_id}/move")
async def move_item(
    list_id: str,
    item_id: str,
    move_request: MoveItemRequest,
    assistant: RecipePlanningAssistant = Depends(get_assistant),
):
    moved = await assistant.shopping_lists.move_item_to_category(
        list_id, move_request.old_category, item_id, move_request.new_category
    )
    if not moved:
        raise _not_found()
    return (await assistant.shopping_lists.get_shopping_list(list_id)).to_dict()


@router.delete("/shopping-lists/{list_id}/items/{item_id}")
async def delete_item(
    list_id: str,
    item_id: str,
    category: str,
    assistant: RecipePlanningAssistant = Depends(get_assistant),
):
    if not await assistant.shopping_lists.delete_item(list_id, category, item_id):
        raise _not_found()
    return (await assistant.shopping_lists.get_shopping_list(list_id)).to_dict()


@router.delete("/shopping-lists/{list_id}/items")
async def delete_all_items(list_id: str, assistant: RecipePlanningAssistant = Depends(get_assistant)):
    if not await assistant.shopping_lists.delete_all_items(list_id):
        raise HTTPException(status_code=404, detail="Shopping list not found")
    return (await assistant.shopping_lists.get_shopping_list(list_id)).to_dict()
