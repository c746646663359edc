"""Chat session endpoints.

A session tracks the selected character, the tone, and the per-character
message history for one browser tab. Sessions live in memory only.
"""

from fastapi import APIRouter, HTTPException, Request

from parlor.errors import CharacterNotFound, InvalidCharacter, SessionBusyError, SessionNotFound
from parlor.session import ChatSession

from .models import CreateSession, SelectCharacter, SendMessage, SetTone

router = APIRouter()


def _session(request: Request, sid: str) -> ChatSession:
    try:
        return request.app.state.sessions.get(sid)
    except SessionNotFound:
        raise HTTPException(404, "Session not found")


def _select(session: ChatSession, character_id: str) -> None:
    try:
        session.select_character(character_id)
    except CharacterNotFound:
        raise HTTPException(404, "Character not found")
    except InvalidCharacter as e:
        raise HTTPException(500, str(e))


@router.post("/sessions", status_code=201)
async def create_session(request: Request, body: CreateSession | None = None):
    """Start a session, optionally with a character and tone already chosen."""
    registry = request.app.state.sessions
    session = registry.create()
    if body and body.tone:
        session.set_tone(body.tone)
    if body and body.character_id:
        try:
            _select(session, body.character_id)
        except HTTPException:
            registry.drop(session.id)
            raise
    return session.snapshot()


@router.get("/sessions/{sid}")
async def get_session(sid: str, request: Request):
    """Current character, tone, loading flag and visible messages."""
    return _session(request, sid).snapshot()


@router.delete("/sessions/{sid}")
async def delete_session(sid: str, request: Request):
    """Discard a session and all of its history."""
    try:
        request.app.state.sessions.drop(sid)
    except SessionNotFound:
        raise HTTPException(404, "Session not found")
    return {"ok": True}


@router.put("/sessions/{sid}/character")
async def select_character(sid: str, body: SelectCharacter, request: Request):
    """Switch character. The new character's conversation starts empty."""
    session = _session(request, sid)
    _select(session, body.character_id)
    return session.snapshot()


@router.put("/sessions/{sid}/tone")
async def set_tone(sid: str, body: SetTone, request: Request):
    """Change the tone used for subsequent messages."""
    session = _session(request, sid)
    session.set_tone(body.tone)
    return session.snapshot()


@router.post("/sessions/{sid}/messages")
async def send_message(sid: str, body: SendMessage, request: Request):
    """Send a message and wait for the reply (or the apology on failure)."""
    session = _session(request, sid)
    if not body.content.strip():
        raise HTTPException(400, "Message content is required")
    if session.character is None:
        raise HTTPException(409, "Select a character first")
    try:
        reply = await session.send_message(body.content)
    except SessionBusyError:
        raise HTTPException(409, "A message is already being sent")
    return {
        "message": reply.model_dump() if reply else None,
        "messages": [m.model_dump() for m in session.messages],
    }


@router.delete("/sessions/{sid}/messages")
async def clear_messages(sid: str, request: Request):
    """Start a new chat with the current character."""
    session = _session(request, sid)
    session.clear_messages()
    return session.snapshot()
