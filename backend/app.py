import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from backend.config import Settings
from backend.routes import router
from parlor.characters import CharacterLoader
from parlor.llm import ChatBackend, EchoChat, GeminiClient
from parlor.session import RetryPolicy, SessionRegistry
from parlor.speech import SpeechClient

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"


def build_chat_client(settings: Settings) -> ChatBackend:
    if settings.echo_chat:
        logger.info("PARLOR_ECHO_CHAT is set; replies will echo the user message")
        return EchoChat()
    return GeminiClient(
        api_key=settings.gemini_api_key,
        base_url=settings.gemini_api_url,
        timeout=settings.gemini_timeout,
    )


def create_app(
    settings: Settings | None = None,
    chat: ChatBackend | None = None,
    speech: SpeechClient | None = None,
    retry: RetryPolicy | None = None,
) -> FastAPI:
    """Build the app and its services. Every service lives on app.state."""
    settings = settings or Settings.from_env()

    characters = CharacterLoader(settings.characters_dir)
    chat = chat or build_chat_client(settings)
    speech = speech or SpeechClient(
        client_email=settings.google_client_email,
        private_key=settings.google_private_key,
        project_id=settings.google_project_id,
    )
    retry = retry or RetryPolicy(attempts=settings.retry_attempts, delay=settings.retry_delay)

    app = FastAPI(title="Persona Parlor")
    app.state.settings = settings
    app.state.characters = characters
    app.state.chat = chat
    app.state.speech = speech
    app.state.sessions = SessionRegistry(
        characters,
        chat,
        retry=retry,
        max_sessions=settings.max_sessions,
        idle_ttl=settings.session_idle_ttl,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    app.include_router(router, prefix="/api")

    if STATIC_DIR.exists():
        app.mount("/assets", StaticFiles(directory=STATIC_DIR / "assets"), name="assets")

        # SPA fallback: all non-API routes serve index.html
        @app.get("/{path:path}")
        async def spa_fallback(path: str):
            return FileResponse(STATIC_DIR / "index.html")

    return app


# Default app instance for uvicorn (reads settings from the environment)
app = create_app()
