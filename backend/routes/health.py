"""Health check and configuration summary endpoints."""

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health():
    """Health check."""
    return {"status": "ok"}


@router.get("/settings")
async def get_settings(request: Request):
    """Which services are configured. Never returns credential values."""
    settings = request.app.state.settings
    return {
        "chat": {
            "configured": bool(settings.gemini_api_key) or settings.echo_chat,
            "echo": settings.echo_chat,
            "retry_attempts": settings.retry_attempts,
            "retry_delay": settings.retry_delay,
        },
        "tts": request.app.state.speech.credential_status(),
        "sessions": len(request.app.state.sessions),
    }
