"""Error types shared by the chat, speech, catalogue and session layers.

Clients raise these and never swallow them. The session controller retries
on everything except ConfigurationError and swallows after the last attempt;
routes turn them into JSON error bodies.
"""

from __future__ import annotations


class ParlorError(RuntimeError):
    """Base class for every error raised by this package."""


# ---------------------------------------------------------------------------
# Remote service errors
# ---------------------------------------------------------------------------

class ConfigurationError(ParlorError):
    """A required credential is missing or unusable. Raised before any network call."""


class UpstreamError(ParlorError):
    """A remote service answered with a non-success status or could not be reached.

    `status` is None for transport failures (connection refused, timeout).
    """

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class MalformedResponse(ParlorError):
    """The remote service answered 2xx but the body did not match the expected shape."""


class EmptyAudioError(ParlorError):
    """Speech synthesis succeeded but returned no audio."""


# ---------------------------------------------------------------------------
# Catalogue errors
# ---------------------------------------------------------------------------

class CharacterNotFound(ParlorError):
    """No character definition exists for the requested id."""


class InvalidCharacter(ParlorError):
    """A character definition exists but fails validation."""


# ---------------------------------------------------------------------------
# Session errors
# ---------------------------------------------------------------------------

class SessionBusyError(ParlorError):
    """A message is already being sent in this session."""


class SessionNotFound(ParlorError):
    """No live session has the requested id."""


class RetryExhausted(ParlorError):
    """Every attempt allowed by a RetryPolicy failed."""

    def __init__(self, last_error: BaseException, attempts: int) -> None:
        super().__init__(f"Gave up after {attempts} attempt(s): {last_error}")
        self.last_error = last_error
        self.attempts = attempts
