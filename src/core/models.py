"""
Pydantic v2 request / response and domain models.

Wire JSON (API bodies and the persisted notes slot) uses camelCase field
names; Python code uses snake_case attributes. ``populate_by_name`` lets
either spelling be used when constructing models.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(CamelModel):
    """GET /health response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: datetime
    provider_configured: bool = False


# ---------------------------------------------------------------------------
# Audio
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AudioBlob:
    """Opaque audio bytes captured from a microphone or an upload."""

    data: bytes
    mime_type: str
    filename: str = field(default="recording.wav")

    @property
    def size(self) -> int:
        return len(self.data)


# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------


class KeyPoint(CamelModel):
    """One extracted insight. Missing fields default to empty strings."""

    title: str = ""
    description: str = ""

    @field_validator("title", "description", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value


class Analysis(CamelModel):
    """Structured insights extracted from one transcript."""

    key_points: list[KeyPoint] = Field(min_length=1)
    project_analysis: str | None = None
    constraint_questions: list[str] | None = None

    @field_validator("project_analysis", mode="before")
    @classmethod
    def _blank_analysis_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("constraint_questions", mode="before")
    @classmethod
    def _drop_non_string_questions(cls, value):
        if isinstance(value, list):
            return [q for q in value if isinstance(q, str) and q.strip()]
        return value


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------


class Note(CamelModel):
    """A saved voice note."""

    id: str
    title: str
    transcription: str
    analysis: Analysis
    created_at: datetime


# ---------------------------------------------------------------------------
# Pipeline state
# ---------------------------------------------------------------------------


class PipelineState(StrEnum):
    """Stages of one in-flight note."""

    idle = "idle"
    capturing = "capturing"
    captured = "captured"
    transcribing = "transcribing"
    transcribed = "transcribed"
    analyzing = "analyzing"
    analyzed = "analyzed"
    title_generating = "title_generating"
    saved = "saved"


# ---------------------------------------------------------------------------
# API bodies
# ---------------------------------------------------------------------------


class TranscriptionResponse(CamelModel):
    """POST /api/transcribe response."""

    transcription: str


class AnalyzeRequest(CamelModel):
    """POST /api/analyze request body."""

    text: str | None = None


class GenerateTitleRequest(CamelModel):
    """POST /api/generate-title request body."""

    transcription: str | None = None
    key_points: list[KeyPoint] | None = None


class TitleResponse(CamelModel):
    """POST /api/generate-title response."""

    title: str


class ErrorResponse(BaseModel):
    """Standard error envelope returned by the API."""

    detail: str
    code: str
    timestamp: str
