"""
Async HTTP client for the Audio Notes backend API.

Implements :class:`~src.services.orchestrator.PipelineBackend`, so the
orchestrator runs the same way against the API as it does in-process.
Error envelopes are turned back into the typed exceptions they came from.
"""

import logging

import httpx
import streamlit as st

from src.core.exceptions import NetworkError, error_from_envelope
from src.core.models import Analysis, AudioBlob, KeyPoint
from src.services.orchestrator import PipelineBackend

logger = logging.getLogger(__name__)


class APIClient(PipelineBackend):
    """Thin async wrapper around httpx for calling the FastAPI backend.

    A fresh ``httpx.AsyncClient`` is opened per request because Streamlit
    drives every action through its own short-lived event loop.

    Args:
        base_url: Base URL of the Audio Notes FastAPI backend.
        timeout: Request timeout in seconds.
        transport: Optional httpx transport (tests pass ``ASGITransport``).
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Execute an HTTP request, mapping failures onto domain errors.

        Raises:
            NetworkError: The backend could not be reached.
            AudioNotesError: The matching subclass for an error envelope.
        """
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                resp = await client.request(method, path, **kwargs)
        except httpx.ConnectError:
            raise NetworkError(
                detail="Backend server is not running. "
                "Start it with: `uvicorn src.api.app:app --reload --port 8000`"
            ) from None
        except httpx.TimeoutException:
            raise NetworkError(detail="Request timed out. The server may be overloaded.") from None
        except httpx.HTTPError as exc:
            raise NetworkError(detail=f"Network error: {exc}") from None

        if resp.is_error:
            try:
                body = resp.json()
            except ValueError:
                body = {}
            if not isinstance(body, dict):
                body = {}
            body.setdefault("detail", resp.text)
            logger.warning("%s %s -> %s %s", method, path, resp.status_code, body.get("code"))
            raise error_from_envelope(resp.status_code, body)
        return resp

    # -- health --

    async def health_check(self) -> dict:
        resp = await self._request("GET", "/health")
        return resp.json()

    async def check_connection(self) -> tuple[bool, str]:
        """Check if the backend is reachable. Returns (ok, message)."""
        try:
            health = await self.health_check()
        except NetworkError as exc:
            return False, exc.detail
        if not health.get("providerConfigured", False):
            return True, "Connected (provider key missing)"
        return True, "Connected"

    # -- pipeline --

    async def transcribe(self, blob: AudioBlob) -> str:
        resp = await self._request(
            "POST",
            "/api/transcribe",
            files={"audio": (blob.filename, blob.data, blob.mime_type)},
        )
        return resp.json()["transcription"]

    async def analyze(self, text: str, region_hint: str | None = None) -> Analysis:
        # The server derives the region from its own request headers
        resp = await self._request("POST", "/api/analyze", json={"text": text})
        return Analysis.model_validate(resp.json())

    async def generate_title(self, transcript: str, key_points: list[KeyPoint]) -> str:
        body = {
            "transcription": transcript,
            "keyPoints": [kp.model_dump(by_alias=True) for kp in key_points],
        }
        resp = await self._request("POST", "/api/generate-title", json=body)
        return resp.json()["title"]


@st.cache_resource
def get_api_client(base_url: str = "http://localhost:8000") -> APIClient:
    """Return a cached APIClient, keyed by base_url."""
    return APIClient(base_url=base_url)
