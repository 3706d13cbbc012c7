"""
Dietary preference routes for the FastAPI application.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ...main import RecipePlanningAssistant
from ...onboarding import format_preferences_summary
from ..dependencies import get_assistant

logger = logging.getLogger(__name__)

router = APIRouter()


class UpdatePreferencesRequest(BaseModel):
    """Lists to replace; omitted lists are kept."""
    habits: Optional[List[str]] = None
    favorites: Optional[List[str]] = None
    allergies: Optional[List[str]] = None
    trends: Optional[List[str]] = None


class PreferenceValueRequest(BaseModel):
    value: str = Field(..., min_length=1)


def _response(preferences):
    if preferences is None:
        return {"preferences": None, "summary": None}
    return {
        "preferences": preferences.to_dict(),
        "summary": format_preferences_summary(preferences),
    }


@router.get("/preferences")
async def get_preferences(assistant: RecipePlanningAssistant = Depends(get_assistant)):
    return _response(await assistant.preferences.load())


@router.put("/preferences")
async def update_preferences(
    update_request: UpdatePreferencesRequest,
    assistant: RecipePlanningAssistant = Depends(get_assistant),
):
    changes = update_request.model_dump(exclude_none=True)
    if not await assistant.preferences.update(changes):
        raise HTTPException(status_code=500, detail="Preferences could not be stored")
    return _response(await assistant.preferences.load())


@router.post("/preferences/{preference_type}")
async def add_preference(
    preference_type: str,
    value_request: PreferenceValueRequest,
    assistant: RecipePlanningAssistant = Depends(get_assistant),
):
    try:
        preferences = await assistant.preferences.add_preference(preference_type, value_request.value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if preferences is None:
        raise HTTPException(status_code=500, detail="Preferences could not be stored")
    return _response(preferences)


@router.delete("/preferences/{preference_type}/{value}")
async def remove_preference(
    preference_type: str,
    value: str,
    assistant: RecipePlanningAssistant = Depends(get_assistant),
):
    try:
        preferences = await assistant.preferences.remove_preference(preference_type, value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if preferences is None:
        raise HTTPException(status_code=500, detail="Preferences could not be stored")
    return _response(preferences)
