"""
FastAPI application for the Recipe Planner.

- Chat sessions driving recipe generation
- Week plan, shopping list, recipe and preference endpoints
- One shared assistant (store + repositories) per process
"""
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from ..config import Settings, configure_logging
from ..main import RecipePlanningAssistant
from .routes import chat, plan, preferences, recipes, shop
from .services.chat_service import ChatService

logger = logging.getLogger(__name__)


def create_app(assistant: Optional[RecipePlanningAssistant] = None) -> FastAPI:
    """
    Build the application.

    Args:
        assistant: Preconfigured assistant; built from the environment at
            startup when missing
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Create the assistant on startup, close chat sessions on shutdown."""
        logger.info("Starting Recipe Planner API...")
        app.state.assistant = assistant or RecipePlanningAssistant()
        app.state.chat_service = ChatService(app.state.assistant)

        yield

        await app.state.chat_service.close_all()
        logger.info("Recipe Planner API shutdown complete")

    app = FastAPI(
        title="Recipe Planner API",
        description="AI-powered recipe chat with week plans and shopping lists",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=os.getenv("CORS_ORIGINS", "*").split(","),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check(request: Request):
        """Health check endpoint for load balancers."""
        state = request.app.state
        return {
            "status": "healthy",
            "llm": "null" if state.assistant.provider.is_null else "anthropic",
            "sessions": state.chat_service.session_count,
        }

    app.include_router(chat.router, prefix="/api", tags=["chat"])
    app.include_router(plan.router, prefix="/api", tags=["planning"])
    app.include_router(shop.router, prefix="/api", tags=["shopping"])
    app.include_router(recipes.router, prefix="/api", tags=["recipes"])
    app.include_router(preferences.router, prefix="/api", tags=["preferences"])

    return app


app = create_app()


def run():
    """Serve the API with uvicorn."""
    import uvicorn

    settings = Settings.from_env()
    configure_logging(settings.log_level)

    port = int(os.getenv("PORT", 8000))
    uvicorn.run(
        "recipe_planner.api.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
