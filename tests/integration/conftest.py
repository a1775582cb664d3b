"""Integration test fixtures for Audio Notes.

Provides an async HTTP client for the FastAPI app whose provider clients
talk to a fake Groq API served by ``httpx.MockTransport``.
"""

import json
from unittest.mock import patch

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from src.api.app import create_app
from src.services.llm.groq import GroqLLM
from src.services.transcription.groq import GroqSTT

GROQ_URL = "https://api.groq.test/openai/v1"


class FakeGroq:
    """Minimal stand-in for Groq's transcription and chat endpoints.

    Attributes are set per test to change the canned answers.
    """

    def __init__(self, analysis_reply: str) -> None:
        self.transcript = "I want to open a repair cafe in my town.\n"
        self.analysis_reply = analysis_reply
        self.title_reply = "Repair Cafe Plan"
        self.status = 200
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status != 200:
            return httpx.Response(self.status, text='{"error": "upstream failure"}')
        if request.url.path.endswith("/audio/transcriptions"):
            return httpx.Response(200, text=self.transcript)
        prompt = json.loads(request.content)["messages"][-1]["content"]
        if "concise, descriptive title" in prompt:
            content = self.title_reply
        else:
            content = self.analysis_reply
        return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})

    def chat_prompts(self) -> list[str]:
        return [
            json.loads(r.content)["messages"][-1]["content"]
            for r in self.requests
            if r.url.path.endswith("/chat/completions")
        ]


@pytest.fixture
def fake_groq(analysis_reply):
    return FakeGroq(analysis_reply)


@pytest.fixture
def groq_providers(fake_groq):
    """Route the API's provider factories to Groq clients backed by ``fake_groq``."""
    transport = httpx.MockTransport(fake_groq)

    def make_stt(provider, **kwargs):
        return GroqSTT(api_key="gsk-test", base_url=GROQ_URL, transport=transport)

    def make_llm(provider, **kwargs):
        return GroqLLM(api_key="gsk-test", base_url=GROQ_URL, transport=transport)

    with patch("src.api.routes.notes.create_stt", side_effect=make_stt):
        with patch("src.api.routes.notes.create_llm", side_effect=make_llm):
            yield fake_groq


@pytest.fixture
def app():
    """Create a fresh FastAPI application instance."""
    return create_app()


@pytest.fixture
def asgi_transport(app):
    return ASGITransport(app=app, raise_app_exceptions=False)


@pytest.fixture
async def async_client(asgi_transport, groq_providers):
    """AsyncClient for the app with providers pointed at the fake Groq API."""
    async with AsyncClient(transport=asgi_transport, base_url="http://test") as c:
        yield c
