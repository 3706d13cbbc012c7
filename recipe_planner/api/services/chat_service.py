"""
Chat session service for the API.

Keeps one RecipeChatbot per session id. All chatbots share the assistant's
repositories, so concurrent sessions write through the same collection locks.
"""
import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ...chatbot import RecipeChatbot
from ...main import RecipePlanningAssistant

logger = logging.getLogger(__name__)


class SessionNotFound(KeyError):
    """No chat session with the given id."""
    pass


@dataclass
class ChatSession:
    """Represents an active chat session."""
    session_id: str
    chatbot: RecipeChatbot
    weekly: bool = False
    # Held around every chatbot call so requests on one session run one at a time
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)


class ChatService:
    """
    Session registry around RecipeChatbot.

    - Session isolation (each client gets its own chatbot instance)
    - Sessions are closed (running generations cancelled) on delete/shutdown
    """

    def __init__(self, assistant: RecipePlanningAssistant):
        self.assistant = assistant
        self._sessions: Dict[str, ChatSession] = {}
        self._lock = asyncio.Lock()

    async def create_session(self, weekly: bool = False, session_id: Optional[str] = None) -> ChatSession:
        """
        Open a new chat.

        Args:
            weekly: Plan for the whole week
            session_id: Optional id (generated when missing); an existing
                session with that id is restarted

        Returns:
            ChatSession instance
        """
        session_id = session_id or str(uuid.uuid4())

        async with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                logger.info(f"Creating new chat session: {session_id}")
                session = ChatSession(
                    session_id=session_id,
                    chatbot=self.assistant.create_chatbot(),
                    weekly=weekly,
                )
                self._sessions[session_id] = session
            session.weekly = weekly

        async with session.lock:
            await session.chatbot.start(weekly=weekly)
        return session

    async def get_session(self, session_id: str) -> ChatSession:
        async with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return session

    async def close_session(self, session_id: str) -> bool:
        async with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        await session.chatbot.close()
        logger.info(f"Closed chat session: {session_id}")
        return True

    async def close_all(self):
        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            await session.chatbot.close()
        if sessions:
            logger.info(f"Closed {len(sessions)} chat session(s)")

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    @staticmethod
    def session_state(session: ChatSession) -> Dict[str, Any]:
        """Serializable snapshot of a session."""
        chatbot = session.chatbot
        return {
            "session_id": session.session_id,
            "weekly": session.weekly,
            "stage": chatbot.stage.value,
            "is_generating": chatbot.is_generating,
            "recipe_request": chatbot.recipe_request,
            "recipe_count": chatbot.recipe_count,
            "servings": chatbot.servings,
            "messages": [m.to_dict() for m in chatbot.messages],
            "recipes": [r.to_dict() for r in chatbot.generated_recipes],
        }
