"""Speech client: Google Cloud Text-to-Speech through google-cloud-texttospeech.

Authenticates with a service-account triple (client email, private key,
project id) turned into google-auth credentials. TextToSpeechAsyncClient
makes the calls; synthesize() returns the raw MP3 bytes.
"""

from __future__ import annotations

import logging
from typing import Any

from google.api_core.exceptions import GoogleAPICallError, RetryError
from google.auth.exceptions import GoogleAuthError
from google.cloud import texttospeech
from google.oauth2 import service_account

from .credentials import describe_key, format_private_key
from .errors import ConfigurationError, EmptyAudioError, UpstreamError

logger = logging.getLogger(__name__)

DEFAULT_TTS_ENDPOINT = "texttospeech.googleapis.com"
TOKEN_URI = "https://oauth2.googleapis.com/token"
SCOPES = ["https://www.googleapis.com/auth/cloud-platform"]

DEFAULT_VOICE = texttospeech.VoiceSelectionParams(
    language_code="en-US",
    ssml_gender=texttospeech.SsmlVoiceGender.NEUTRAL,
)
DEFAULT_AUDIO_CONFIG = texttospeech.AudioConfig(
    audio_encoding=texttospeech.AudioEncoding.MP3,
    sample_rate_hertz=24000,
    effects_profile_id=["small-bluetooth-speaker-class-device"],
)


class SpeechClient:
    """Async Text-to-Speech client.

    Missing credentials are not an error at construction time: the app still
    boots without TTS configured. The first synthesize() or list_voices() call
    raises ConfigurationError instead, before touching the network.
    """

    def __init__(
        self,
        client_email: str | None,
        private_key: str | None,
        project_id: str | None,
        endpoint: str = DEFAULT_TTS_ENDPOINT,
        timeout: float = 30.0,
    ) -> None:
        self._client_email = client_email or None
        self._private_key = format_private_key(private_key)
        self._project_id = project_id or None
        self._endpoint = endpoint
        self._timeout = timeout
        self._credentials: service_account.Credentials | None = None

    def credential_status(self) -> dict[str, bool]:
        return {
            "hasPrivateKey": self._private_key is not None,
            "hasClientEmail": self._client_email is not None,
            "hasProjectId": self._project_id is not None,
        }

    def _require_credentials(self) -> None:
        status = self.credential_status()
        if not all(status.values()):
            missing = [name for name, present in status.items() if not present]
            logger.error(
                "tts credentials incomplete missing=%s key=%s",
                ",".join(missing),
                describe_key(self._private_key),
            )
            raise ConfigurationError("Missing required Google Cloud credentials")

    def _service_account(self) -> service_account.Credentials:
        if self._credentials is None:
            info = {
                "type": "service_account",
                "client_email": self._client_email,
                "private_key": self._private_key,
                "project_id": self._project_id,
                "token_uri": TOKEN_URI,
            }
            try:
                self._credentials = service_account.Credentials.from_service_account_info(
                    info, scopes=SCOPES
                ).with_quota_project(self._project_id)
            except ValueError as e:
                raise ConfigurationError(
                    f"Google Cloud private key is unusable ({describe_key(self._private_key)})"
                ) from e
        return self._credentials

    def _client(self) -> texttospeech.TextToSpeechAsyncClient:
        """Build an async client bound to the running event loop."""
        self._require_credentials()
        return texttospeech.TextToSpeechAsyncClient(
            credentials=self._service_account(),
            client_options={"api_endpoint": self._endpoint},
        )

    async def synthesize(self, text: str) -> bytes:
        """Convert text to MP3 audio."""
        logger.debug("tts synthesize text_len=%d", len(text))
        try:
            async with self._client() as client:
                response = await client.synthesize_speech(
                    input=texttospeech.SynthesisInput(text=text),
                    voice=DEFAULT_VOICE,
                    audio_config=DEFAULT_AUDIO_CONFIG,
                    timeout=self._timeout,
                )
        except (GoogleAPICallError, RetryError, GoogleAuthError) as e:
            raise _upstream_error(e) from e

        audio = response.audio_content
        if not audio:
            raise EmptyAudioError("No audio content received")
        logger.debug("tts synthesize audio_bytes=%d", len(audio))
        return audio

    async def list_voices(self) -> list[dict[str, Any]]:
        """List the voices the service account can use. Doubles as an access check."""
        try:
            async with self._client() as client:
                response = await client.list_voices(timeout=self._timeout)
        except (GoogleAPICallError, RetryError, GoogleAuthError) as e:
            raise _upstream_error(e) from e
        return [texttospeech.Voice.to_dict(voice) for voice in response.voices]


def _upstream_error(e: Exception) -> UpstreamError:
    # HTTP-mapped status for API errors; auth and retry failures have none
    status = e.code if isinstance(e, GoogleAPICallError) and isinstance(e.code, int) else None
    if status is None:
        return UpstreamError(f"Text-to-Speech API call failed: {e}")
    return UpstreamError(f"Text-to-Speech API returned HTTP {status}: {e.message}", status=status)
