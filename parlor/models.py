"""Core domain models.

Characters are loaded once from JSON and never mutated; chat messages are
appended to a per-character sequence and never edited.
Pydantic is used for validation and serialisation at every data boundary.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ToneType = Literal["original", "genZ"]

DEFAULT_TONE: ToneType = "original"

Role = Literal["user", "assistant"]


class Personality(BaseModel):
    model_config = ConfigDict(frozen=True)

    traits: list[str] = Field(default_factory=list)
    speaking_style: str = ""
    background_context: str = ""


class Character(BaseModel):
    """A historical persona the user can talk to."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    name: str
    title: str
    description: str = ""
    image_url: str | None = Field(default=None, alias="imageUrl")
    era: str
    expertise: list[str] = Field(default_factory=list)
    personality: Personality = Field(default_factory=Personality)
    chat_context: str
    tone_modifiers: dict[ToneType, str] = Field(default_factory=dict, alias="toneModifiers")

    def context_for(self, tone: ToneType) -> str:
        """Base chat context with the tone modifier appended, if the persona has one."""
        modifier = self.tone_modifiers.get(tone, "")
        if not modifier:
            return self.chat_context
        return f"{self.chat_context}\n\n{modifier}"

    def matches(self, query: str) -> bool:
        """Case-insensitive match on name, title, or any expertise tag."""
        q = query.strip().lower()
        if not q:
            return True
        return (
            q in self.name.lower()
            or q in self.title.lower()
            or any(q in tag.lower() for tag in self.expertise)
        )


class ChatMessage(BaseModel):
    """One entry in a character's append-only conversation."""

    model_config = ConfigDict(frozen=True)

    id: str
    role: Role
    content: str
    timestamp: int  # milliseconds since the epoch
