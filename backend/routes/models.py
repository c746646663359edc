"""Pydantic request/response models for API endpoints."""

from pydantic import BaseModel, ConfigDict, Field

from parlor.models import ToneType


class ChatProxyBody(BaseModel):
    """Fields are optional so missing ones produce our 400, not FastAPI's 422."""

    model_config = ConfigDict(populate_by_name=True)

    message: str = ""
    character_id: str = Field(default="", alias="characterId")
    context: str = ""


class TextToSpeechBody(BaseModel):
    text: str = ""


class CreateSession(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    character_id: str | None = Field(default=None, alias="characterId")
    tone: ToneType | None = None


class SelectCharacter(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    character_id: str = Field(alias="characterId")


class SetTone(BaseModel):
    tone: ToneType


class SendMessage(BaseModel):
    content: str
