"""Environment-driven settings.

Values come from the process environment, with a `.env` file at the repo root
loaded first (existing environment variables win). Build once with
Settings.from_env() and pass the result to create_app().
"""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel

from parlor.llm import DEFAULT_GEMINI_URL

ROOT = Path(__file__).parent.parent
DEFAULT_CHARACTERS_DIR = ROOT / "presets" / "characters"

_TRUTHY = ("1", "true", "yes", "on")


def _optional_float(value: str | None) -> float | None:
    if value is None or not value.strip():
        return None
    return float(value)


class Settings(BaseModel):
    gemini_api_key: str = ""
    gemini_api_url: str = DEFAULT_GEMINI_URL
    gemini_timeout: float | None = None
    echo_chat: bool = False

    google_client_email: str | None = None
    google_private_key: str | None = None
    google_project_id: str | None = None

    characters_dir: Path = DEFAULT_CHARACTERS_DIR

    retry_attempts: int = 3
    retry_delay: float = 1.0

    max_sessions: int = 1000
    session_idle_ttl: float = 3600.0

    @classmethod
    def from_env(cls, env_file: Path | None = None) -> "Settings":
        load_dotenv(env_file or ROOT / ".env")
        return cls(
            gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
            gemini_api_url=os.getenv("GEMINI_API_URL", "") or DEFAULT_GEMINI_URL,
            gemini_timeout=_optional_float(os.getenv("GEMINI_TIMEOUT")),
            echo_chat=os.getenv("PARLOR_ECHO_CHAT", "").lower() in _TRUTHY,
            google_client_email=os.getenv("GOOGLE_CLOUD_CLIENT_EMAIL") or None,
            google_private_key=os.getenv("GOOGLE_CLOUD_PRIVATE_KEY") or None,
            google_project_id=os.getenv("GOOGLE_CLOUD_PROJECT_ID") or None,
            characters_dir=Path(os.getenv("CHARACTERS_DIR", str(DEFAULT_CHARACTERS_DIR))),
            retry_attempts=int(os.getenv("CHAT_RETRY_ATTEMPTS", "3")),
            retry_delay=float(os.getenv("CHAT_RETRY_DELAY", "1.0")),
            max_sessions=int(os.getenv("MAX_SESSIONS", "1000")),
            session_idle_ttl=float(os.getenv("SESSION_IDLE_TTL", "3600")),
        )
