"""FastAPI API endpoints under /api.

Endpoint groups: health/settings, chat proxy, text-to-speech proxy, character
catalogue, and chat sessions. Services (character loader, chat client, speech
client, session registry) are read from request.app.state, set up by
backend.app.create_app().
"""

from fastapi import APIRouter

from .characters import router as characters_router
from .chat import router as chat_router
from .health import router as health_router
from .sessions import router as sessions_router
from .tts import router as tts_router

router = APIRouter()
router.include_router(health_router)
router.include_router(chat_router)
router.include_router(tts_router)
router.include_router(characters_router)
router.include_router(sessions_router)
