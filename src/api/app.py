"""
FastAPI application factory.

``create_app()`` assembles the application with CORS, error handlers,
routers, and the health endpoint. The module-level ``app`` instance
allows ``uvicorn src.api.app:app --reload``.
"""

import logging
from datetime import UTC, datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.middleware.error_handler import register_error_handlers
from src.api.routes import notes
from src.core.config import Settings, get_settings
from src.core.models import HealthResponse


def provider_configured(settings: Settings) -> bool:
    """True when every secret the configured providers need is present."""
    if settings.stt_provider == "groq" and not settings.groq_api_key.strip():
        return False
    if settings.llm_provider == "groq":
        return bool(settings.groq_api_key.strip())
    if settings.llm_provider == "claude":
        return bool(settings.claude_api_key.strip())
    return settings.llm_provider == "ollama"


def create_app() -> FastAPI:
    """Build and return a fully configured FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Audio Notes",
        description="Voice notes with AI transcription, insight extraction, and titles.",
        version="0.1.0",
    )

    # -- CORS --
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -- Error handlers --
    register_error_handlers(app)

    # -- Health check (root-level, not under /api) --
    @app.get("/health", response_model=HealthResponse, tags=["system"])
    async def health() -> HealthResponse:
        return HealthResponse(
            timestamp=datetime.now(UTC),
            provider_configured=provider_configured(get_settings()),
        )

    # -- REST routes --
    app.include_router(notes.router, prefix="/api")

    return app


logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app()
