"""
Request dependencies shared by the route modules.
"""
from fastapi import Request

from ..main import RecipePlanningAssistant
from .services.chat_service import ChatService


def get_assistant(request: Request) -> RecipePlanningAssistant:
    """Dependency to get the assistant created in the lifespan."""
    return request.app.state.assistant


def get_chat_service(request: Request) -> ChatService:
    """Dependency to get the chat session service."""
    return request.app.state.chat_service
