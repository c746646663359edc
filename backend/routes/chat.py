"""Stateless chat proxy: one Gemini call per request, no retry."""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from parlor.errors import ParlorError

from .models import ChatProxyBody

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/chat")
async def chat(body: ChatProxyBody, request: Request):
    """Forward a message plus persona context to the chat backend."""
    if not (body.message.strip() and body.character_id.strip() and body.context.strip()):
        return JSONResponse({"error": "Missing required fields"}, status_code=400)

    try:
        text = await request.app.state.chat.send(body.message, body.context)
    except ParlorError as e:
        logger.exception("chat proxy failed character=%s", body.character_id)
        return JSONResponse(
            {"error": "Failed to get response from AI", "details": str(e)},
            status_code=500,
        )

    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}
