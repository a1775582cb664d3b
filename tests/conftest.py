"""Shared pytest fixtures for the Audio Notes test suite.

Provides mock LLM/STT providers, sample audio, analysis payloads, and an
in-memory SQLite engine for the slot storage.
"""

import asyncio
import json
import struct
from unittest.mock import AsyncMock

import pytest

from src.core.models import Analysis, AudioBlob, KeyPoint
from src.services.storage.slots import SlotBackend

# ---------------------------------------------------------------------------
# Analysis payloads
# ---------------------------------------------------------------------------

PROJECT_IDEA_REPLY = {
    "keyPoints": [
        {"title": "Neighborhood tool library", "description": "Lend tools between neighbors"},
        {"title": "Deposit model", "description": "Refundable deposit per borrowed tool"},
        {"title": "Pickup lockers", "description": "Self-service lockers at the library"},
    ],
    "projectAnalysis": "A sharing-economy idea with clear local demand.",
    "constraintQuestions": [
        "Who insures a power tool that breaks while borrowed?",
        "How many lockers does one neighborhood need at launch?",
    ],
}


@pytest.fixture
def analysis_reply() -> str:
    """A valid model reply for a project-idea transcript."""
    return json.dumps(PROJECT_IDEA_REPLY)


@pytest.fixture
def sample_analysis() -> Analysis:
    return Analysis.model_validate(PROJECT_IDEA_REPLY)


@pytest.fixture
def sample_key_points() -> list[KeyPoint]:
    return [KeyPoint(title="First"), KeyPoint(title="Second")]


# ---------------------------------------------------------------------------
# LLM Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_llm(analysis_reply):
    """Create a mock LLM provider for unit testing.

    Returns:
        AsyncMock: A mock implementing the BaseLLM interface whose
        ``generate`` returns a valid analysis reply.
    """
    from src.services.llm.base import BaseLLM

    llm = AsyncMock(spec=BaseLLM)
    llm.generate.return_value = analysis_reply
    return llm


# ---------------------------------------------------------------------------
# STT Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_stt():
    """Create a mock STT provider returning a plain transcript."""
    from src.services.transcription.base import BaseSTT

    stt = AsyncMock(spec=BaseSTT)
    stt.transcribe.return_value = "I want to start a tool library for my street.\n"
    return stt


# ---------------------------------------------------------------------------
# Audio Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_pcm_bytes():
    """Generate 0.1 seconds of 440Hz sine-wave PCM audio (16kHz, 16-bit, mono)."""
    import math

    sample_rate = 16000
    samples = []
    for i in range(sample_rate // 10):
        value = int(16000 * math.sin(2 * math.pi * 440.0 * i / sample_rate))
        samples.append(struct.pack("<h", value))
    return b"".join(samples)


@pytest.fixture
def audio_blob(sample_pcm_bytes) -> AudioBlob:
    from src.services.audio import pcm_to_wav

    return AudioBlob(data=pcm_to_wav(sample_pcm_bytes, 16000), mime_type="audio/wav")


# ---------------------------------------------------------------------------
# Database Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite async engine with tables, dispose after test."""
    from sqlalchemy.ext.asyncio import create_async_engine

    from src.services.storage import models_db  # noqa: F401
    from src.services.storage.database import Base

    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def use_db_engine(db_engine):
    """Inject the in-memory engine into the database module for one test."""
    from src.services.storage import database

    database._engine = db_engine
    database._session_factory = None
    yield db_engine
    database.reset_engine()


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeStream:
    """Stands in for ``sounddevice.InputStream``; chunks are pushed by the test."""

    def __init__(self, sample_rate, channels, on_chunk, fail_on_stop=False):
        self.sample_rate = sample_rate
        self.channels = channels
        self.push = on_chunk
        self.fail_on_stop = fail_on_stop
        self.started = False
        self.stopped = False
        self.closed = False

    def start(self):
        self.started = True

    def stop(self):
        self.stopped = True
        if self.fail_on_stop:
            raise RuntimeError("device vanished")

    def close(self):
        self.closed = True


@pytest.fixture
def streams():
    """Every FakeStream opened during the test, in order."""
    return []


@pytest.fixture
def make_stream_factory(streams):
    """Return a builder for stream factories that record their streams."""

    def make(fail_on_stop: bool = False):
        def factory(sample_rate, channels, on_chunk):
            stream = FakeStream(sample_rate, channels, on_chunk, fail_on_stop=fail_on_stop)
            streams.append(stream)
            return stream

        return factory

    return make


class MemorySlots(SlotBackend):
    """In-memory slot backend; ``fail_writes`` makes every write raise."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.values = dict(initial or {})
        self.writes = 0
        self.fail_writes = False

    async def read(self, key):
        return self.values.get(key)

    async def write(self, key, value):
        if self.fail_writes:
            raise OSError("storage unavailable")
        # Yield so concurrent mutations would interleave without the store's lock
        await asyncio.sleep(0)
        self.writes += 1
        self.values[key] = value


@pytest.fixture
def make_slots():
    """Return the in-memory slot backend class."""
    return MemorySlots
