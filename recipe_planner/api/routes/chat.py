"""
Chat routes for the FastAPI application.

Provides endpoints for:
- Opening, reading and closing chat sessions
- Sending free text
- Picking offered options (recipe count, servings, surprise me)
- Triggering actions on generated recipes
"""
import logging
from typing import Any, Dict, Literal, Optional, Union

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ...chatbot_modules.messages import ActionKind
from ..dependencies import get_chat_service
from ..services.chat_service import ChatService, ChatSession, SessionNotFound

logger = logging.getLogger(__name__)

router = APIRouter()


class CreateSessionRequest(BaseModel):
    """Request body for opening a chat."""
    weekly: bool = False
    session_id: Optional[str] = None


class MessageRequest(BaseModel):
    """Free text typed by the user."""
    message: str = Field(..., min_length=1)
    wait: bool = False


class RecipeCountRequest(BaseModel):
    count: int


class ServingsRequest(BaseModel):
    servings: Union[int, Literal["custom"]]
    wait: bool = False


class ActionRequest(BaseModel):
    """Action on the generated recipes."""
    action: ActionKind
    weeks_ahead: int = 0
    wrap: bool = False
    recipe_id: Optional[str] = None
    list_id: Optional[str] = None


async def _session(service: ChatService, session_id: str) -> ChatSession:
    try:
        return await service.get_session(session_id)
    except SessionNotFound:
        raise HTTPException(status_code=404, detail="Session not found")


@router.post("/chat/sessions")
async def create_session(
    create_request: CreateSessionRequest,
    service: ChatService = Depends(get_chat_service),
):
    """Open a chat; the transcript holds the opening question."""
    session = await service.create_session(
        weekly=create_request.weekly,
        session_id=create_request.session_id,
    )
    return service.session_state(session)


@router.get("/chat/sessions/{session_id}")
async def get_session(session_id: str, service: ChatService = Depends(get_chat_service)):
    """
    Get the current state of a chat session.

    Poll this while `is_generating` is true to follow the progress message.
    """
    session = await _session(service, session_id)
    return service.session_state(session)


@router.delete("/chat/sessions/{session_id}")
async def delete_session(session_id: str, service: ChatService = Depends(get_chat_service)):
    """Close a chat session and cancel its running generation."""
    if not await service.close_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return {"status": "deleted", "session_id": session_id}


@router.post("/chat/sessions/{session_id}/messages")
async def send_message(
    session_id: str,
    message_request: MessageRequest,
    service: ChatService = Depends(get_chat_service),
):
    """
    Send free text to the chat.

    Messages sent while recipes are being generated are ignored.
    With `wait`, the call returns once a started generation has settled.
    """
    session = await _session(service, session_id)
    async with session.lock:
        await session.chatbot.handle_message(message_request.message)
    if message_request.wait:
        await session.chatbot.wait_for_generation()
    return service.session_state(session)


@router.post("/chat/sessions/{session_id}/recipe-count")
async def select_recipe_count(
    session_id: str,
    count_request: RecipeCountRequest,
    service: ChatService = Depends(get_chat_service),
):
    session = await _session(service, session_id)
    async with session.lock:
        try:
            await session.chatbot.select_recipe_count(count_request.count)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    return service.session_state(session)


@router.post("/chat/sessions/{session_id}/servings")
async def select_servings(
    session_id: str,
    servings_request: ServingsRequest,
    service: ChatService = Depends(get_chat_service),
):
    """Pick servings (or "custom"); starts the generation."""
    session = await _session(service, session_id)
    async with session.lock:
        try:
            await session.chatbot.select_servings(servings_request.servings)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    if servings_request.wait:
        await session.chatbot.wait_for_generation()
    return service.session_state(session)


@router.post("/chat/sessions/{session_id}/surprise")
async def surprise_me(session_id: str, service: ChatService = Depends(get_chat_service)):
    session = await _session(service, session_id)
    async with session.lock:
        await session.chatbot.surprise_me()
    return service.session_state(session)


@router.post("/chat/sessions/{session_id}/actions")
async def run_action(
    session_id: str,
    action_request: ActionRequest,
    service: ChatService = Depends(get_chat_service),
):
    """
    Run an action offered after a generation.

    Returns the session state plus the affected entity under `result`.
    """
    session = await _session(service, session_id)
    async with session.lock:
        result = await _apply_action(session, action_request)

    logger.info(f"Session {session_id}: {action_request.action.value}")
    state = service.session_state(session)
    state["result"] = result
    return state


async def _apply_action(session: ChatSession, action_request: ActionRequest) -> Optional[Dict[str, Any]]:
    chatbot = session.chatbot
    action = action_request.action

    if not chatbot.generated_recipes:
        raise HTTPException(status_code=409, detail="No generated recipes in this session")

    if action in (ActionKind.ADD_TO_SHOPPING_LIST, ActionKind.OPEN_SHOPPING_LIST):
        if action == ActionKind.ADD_TO_SHOPPING_LIST:
            shopping_list = await chatbot.add_to_shopping_list(action_request.list_id)
        else:
            shopping_list = await chatbot.shopping_lists.add_new_shopping_list(0)
        if shopping_list is None:
            raise HTTPException(status_code=500, detail="Shopping list could not be updated")
        return shopping_list.to_dict()

    if action == ActionKind.ADD_TO_WEEK_PLAN:
        plan = await chatbot.add_to_week_plan(action_request.weeks_ahead, wrap=action_request.wrap)
        if plan is None:
            raise HTTPException(status_code=500, detail="Week plan could not be updated")
        return plan.to_dict()

    if action == ActionKind.START_COOKING:
        if not action_request.recipe_id:
            raise HTTPException(status_code=400, detail="recipe_id is required for start_cooking")
        recipe = await chatbot.start_cooking(action_request.recipe_id)
        if recipe is None:
            raise HTTPException(status_code=404, detail="Recipe not found in this session")
        return recipe.to_dict()

    return None
