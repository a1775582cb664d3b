"""
Audio Notes exception hierarchy.

All application-specific exceptions inherit from AudioNotesError,
enabling centralized error handling in the API middleware layer and
lossless re-raising on the HTTP client side (see ``error_from_envelope``).
"""

import re
from datetime import UTC, datetime


class AudioNotesError(Exception):
    """Base exception for all Audio Notes errors."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred",
        code: str = "AUDIO_NOTES_ERROR",
        status_code: int = 500,
    ) -> None:
        self.detail = detail
        self.code = code
        self.status_code = status_code
        self.timestamp = datetime.now(UTC).isoformat()
        super().__init__(detail)


# ---------------------------------------------------------------------------
# Input validation (4xx)
# ---------------------------------------------------------------------------


class ValidationError(AudioNotesError):
    """Raised when a required input is missing or unusable."""

    def __init__(self, detail: str = "Invalid input", code: str = "VALIDATION_ERROR") -> None:
        super().__init__(detail=detail, code=code, status_code=400)


class AudioTooLargeError(ValidationError):
    """Raised when an audio blob exceeds the provider's upload limit."""

    def __init__(self, size: int | None = None, limit: int | None = None) -> None:
        if size is not None and limit is not None:
            detail = (
                f"Audio file too large ({size} bytes). "
                f"Maximum size is {limit // (1024 * 1024)}MB."
            )
        else:
            detail = "Audio file too large."
        self.size = size
        self.limit = limit
        super().__init__(detail=detail, code="AUDIO_TOO_LARGE")


class UnsupportedAudioTypeError(ValidationError):
    """Raised when an uploaded file is not audio."""

    def __init__(self, content_type: str | None) -> None:
        self.content_type = content_type
        super().__init__(
            detail=f"Unsupported file type: {content_type or 'unknown'}. Expected audio/*.",
            code="UNSUPPORTED_AUDIO_TYPE",
        )


# ---------------------------------------------------------------------------
# Provider failures (5xx)
# ---------------------------------------------------------------------------


class ProviderError(AudioNotesError):
    """Raised when the upstream AI provider fails or returns a non-success status.

    ``provider_status`` and ``provider_body`` keep the raw upstream answer
    for diagnostics.
    """

    def __init__(
        self,
        detail: str = "Provider request failed",
        provider_status: int | None = None,
        provider_body: str = "",
        code: str = "PROVIDER_ERROR",
    ) -> None:
        self.provider_status = provider_status
        self.provider_body = provider_body
        super().__init__(detail=detail, code=code, status_code=500)


class NetworkError(ProviderError):
    """Raised when the provider could not be reached at all."""

    def __init__(self, detail: str = "Could not reach provider") -> None:
        super().__init__(detail=detail, code="NETWORK_ERROR")


class MalformedResponseError(AudioNotesError):
    """Raised when the provider answered successfully but the content is unusable."""

    def __init__(
        self,
        detail: str = "Provider returned a malformed response",
        raw_text: str = "",
        code: str = "MALFORMED_RESPONSE",
    ) -> None:
        self.raw_text = raw_text
        super().__init__(detail=detail, code=code, status_code=500)


class EmptyResultError(MalformedResponseError):
    """Raised when the provider returned nothing but whitespace."""

    def __init__(self, detail: str = "Provider returned an empty result") -> None:
        super().__init__(detail=detail, code="EMPTY_RESULT")


class ConfigurationError(AudioNotesError):
    """Raised when a required secret or provider setting is missing."""

    def __init__(self, detail: str = "API configuration error") -> None:
        super().__init__(detail=detail, code="CONFIGURATION_ERROR", status_code=500)


# ---------------------------------------------------------------------------
# Note store
# ---------------------------------------------------------------------------


class NoteNotFoundError(AudioNotesError):
    """Raised when a note ID does not exist."""

    def __init__(self, note_id: str) -> None:
        self.note_id = note_id
        super().__init__(
            detail=f"Note not found: {note_id}",
            code="NOTE_NOT_FOUND",
            status_code=404,
        )


class NoteStoreCorruptError(AudioNotesError):
    """Raised at startup when the persisted notes cannot be decoded."""

    def __init__(self, detail: str = "Saved notes could not be read") -> None:
        super().__init__(detail=detail, code="STORAGE_CORRUPT", status_code=500)


# ---------------------------------------------------------------------------
# Capture and pipeline state
# ---------------------------------------------------------------------------


class CaptureAlreadyActiveError(AudioNotesError):
    """Raised when trying to start a capture while one is already active."""

    def __init__(self) -> None:
        super().__init__(
            detail="A capture is already active",
            code="CAPTURE_ALREADY_ACTIVE",
            status_code=409,
        )


class CaptureNotActiveError(AudioNotesError):
    """Raised when stopping a capture that is not running."""

    def __init__(self) -> None:
        super().__init__(
            detail="No active capture for this handle",
            code="CAPTURE_NOT_ACTIVE",
            status_code=409,
        )


class PipelineStateError(AudioNotesError):
    """Raised when a pipeline step is requested out of order."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail=detail, code="INVALID_PIPELINE_STATE", status_code=409)


class PipelineBusyError(AudioNotesError):
    """Raised when a pipeline operation is already in flight."""

    def __init__(self) -> None:
        super().__init__(
            detail="Another operation is still in progress",
            code="PIPELINE_BUSY",
            status_code=409,
        )


def error_from_envelope(status_code: int, body: dict) -> AudioNotesError:
    """Rebuild a typed exception from an API error envelope.

    Used by the HTTP client so callers see the same exception classes
    whether the pipeline runs in-process or over HTTP.

    Args:
        status_code: HTTP status of the error response.
        body: Decoded ``{detail, code, timestamp}`` envelope.

    Returns:
        The matching ``AudioNotesError`` subclass instance.
    """
    detail = str(body.get("detail") or f"Request failed with status {status_code}")
    code = body.get("code", "")

    if code == "AUDIO_TOO_LARGE":
        size = re.search(r"\((\d+) bytes\)", detail)
        limit = re.search(r"Maximum size is (\d+)MB", detail)
        exc: AudioNotesError = AudioTooLargeError(
            size=int(size.group(1)) if size else None,
            limit=int(limit.group(1)) * 1024 * 1024 if limit else None,
        )
    elif code == "UNSUPPORTED_AUDIO_TYPE":
        content_type = re.search(r"Unsupported file type: (\S+)\.", detail)
        exc = UnsupportedAudioTypeError(content_type.group(1) if content_type else None)
    elif code == "VALIDATION_ERROR" or 400 <= status_code < 500:
        exc = ValidationError(detail=detail, code=code or "VALIDATION_ERROR")
    elif code == "CONFIGURATION_ERROR":
        exc = ConfigurationError(detail=detail)
    elif code == "NETWORK_ERROR":
        exc = NetworkError(detail=detail)
    elif code == "EMPTY_RESULT":
        exc = EmptyResultError(detail=detail)
    elif code == "MALFORMED_RESPONSE":
        exc = MalformedResponseError(detail=detail)
    else:
        exc = ProviderError(detail=detail, provider_status=status_code)
    exc.detail = detail
    exc.args = (detail,)
    exc.status_code = status_code
    return exc
