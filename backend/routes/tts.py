"""Text-to-speech proxy and credential check."""

import logging

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse

from parlor.errors import ConfigurationError, ParlorError

from .models import TextToSpeechBody

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/tts")
async def text_to_speech(body: TextToSpeechBody, request: Request):
    """Synthesize text and return MP3 bytes."""
    if not body.text.strip():
        return JSONResponse({"error": "Text is required"}, status_code=400)

    try:
        audio = await request.app.state.speech.synthesize(body.text)
    except ParlorError as e:
        logger.exception("tts proxy failed text_len=%d", len(body.text))
        return JSONResponse(
            {"error": "Failed to convert text to speech", "details": str(e)},
            status_code=500,
        )

    return Response(content=audio, media_type="audio/mpeg")


@router.api_route("/tts", methods=["GET", "PUT", "PATCH", "DELETE"], include_in_schema=False)
async def text_to_speech_wrong_method():
    return JSONResponse({"error": "Method not allowed"}, status_code=405)


@router.get("/tts/test")
async def text_to_speech_check(request: Request):
    """Report credential presence and verify access by listing voices."""
    speech = request.app.state.speech
    status = speech.credential_status()
    try:
        voices = await speech.list_voices()
    except ConfigurationError:
        return JSONResponse(
            {"error": "Missing credentials", "details": status}, status_code=500
        )
    except ParlorError as e:
        logger.exception("tts access check failed")
        return JSONResponse(
            {"error": "Failed to access Text-to-Speech API", "details": str(e)},
            status_code=500,
        )
    return {
        "success": True,
        "message": "Text-to-Speech API access verified",
        "voicesCount": len(voices),
        "credentials": status,
    }
