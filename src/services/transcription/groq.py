"""Groq Whisper STT implementation.

Uploads the whole blob as one multipart request to Groq's
OpenAI-compatible ``/audio/transcriptions`` endpoint. Model, response
format and language are fixed by settings; callers only pass the blob.
"""

import logging

import httpx

from src.core.config import get_settings
from src.core.exceptions import AudioTooLargeError
from src.core.models import AudioBlob
from src.core.utils import provider_post, require_api_key
from src.services.transcription.base import BaseSTT

logger = logging.getLogger(__name__)


class GroqSTT(BaseSTT):
    """Speech-to-text provider backed by Groq's hosted Whisper models.

    Args:
        api_key: Groq API key (falls back to settings).
        model: Transcription model, e.g. ``whisper-large-v3-turbo``.
        language: ISO 639-1 language code sent with every request.
        max_bytes: Upload ceiling; larger blobs are rejected locally.
        transport: Optional httpx transport (tests inject ``httpx.MockTransport``).
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        language: str | None = None,
        max_bytes: int | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self._api_key = api_key if api_key is not None else settings.groq_api_key
        self._model = model or settings.groq_transcription_model
        self._language = language or settings.transcription_language
        self._max_bytes = max_bytes or settings.max_audio_bytes
        self._base_url = (base_url or settings.groq_base_url).rstrip("/")
        self._timeout = timeout or settings.request_timeout
        self._transport = transport

    async def transcribe(self, blob: AudioBlob, **kwargs) -> str:
        """Send *blob* for transcription and return the response body verbatim.

        Raises:
            AudioTooLargeError: Blob exceeds the upload ceiling (no request made).
            ConfigurationError: No API key configured.
            ProviderError: Groq answered with a non-success status.
            NetworkError: Groq could not be reached.
        """
        if blob.size > self._max_bytes:
            logger.info("Rejecting audio blob of %d bytes (limit %d)", blob.size, self._max_bytes)
            raise AudioTooLargeError(size=blob.size, limit=self._max_bytes)

        api_key = require_api_key(self._api_key, "GROQ_API_KEY")

        logger.info(
            "Transcribing %d bytes of %s with %s", blob.size, blob.mime_type, self._model
        )
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            response = await provider_post(
                client,
                f"{self._base_url}/audio/transcriptions",
                provider="Groq",
                headers={"Authorization": f"Bearer {api_key}"},
                files={"file": (blob.filename, blob.data, blob.mime_type)},
                data={
                    "model": self._model,
                    "response_format": "text",
                    "language": self._language,
                },
            )

        text = response.text
        logger.debug("Transcription received: %s", text[:100])
        return text
