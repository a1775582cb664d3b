"""
Note pipeline REST endpoints.

``/transcribe``, ``/analyze`` and ``/generate-title`` each make one
provider call and hold the provider secret server-side. Errors propagate
as ``AudioNotesError`` subclasses and are rendered by the error handlers.
"""

import logging
from urllib.parse import unquote

from fastapi import APIRouter, File, Request, UploadFile

from src.core.config import get_settings
from src.core.exceptions import AudioTooLargeError, ValidationError
from src.core.models import (
    Analysis,
    AnalyzeRequest,
    AudioBlob,
    GenerateTitleRequest,
    TitleResponse,
    TranscriptionResponse,
)
from src.services.analysis import InsightExtractor, TitleGenerator
from src.services.llm import create_llm
from src.services.transcription import create_stt

logger = logging.getLogger(__name__)

router = APIRouter(tags=["notes"])


def region_hint_from_headers(request: Request) -> str | None:
    """Build a "City, Region, Country" hint from edge geolocation headers.

    Returns ``None`` when no geolocation header is present.
    """
    headers = request.headers
    country = headers.get("x-vercel-ip-country") or headers.get("cf-ipcountry")
    if country and country.upper() in ("XX", "T1"):
        # Cloudflare's markers for unknown and Tor traffic
        country = None
    parts = [
        unquote(headers.get("x-vercel-ip-city", "")),
        headers.get("x-vercel-ip-country-region", ""),
        country or "",
    ]
    hint = ", ".join(p.strip() for p in parts if p and p.strip())
    return hint or None


@router.post("/transcribe", response_model=TranscriptionResponse)
async def transcribe_audio(audio: UploadFile | None = File(None)):
    """Transcribe one uploaded audio file."""
    if audio is None:
        raise ValidationError(detail="No audio file provided")

    settings = get_settings()
    data = await audio.read()
    if not data:
        raise ValidationError(detail="Uploaded audio file is empty")
    if len(data) > settings.max_audio_bytes:
        raise AudioTooLargeError(size=len(data), limit=settings.max_audio_bytes)

    blob = AudioBlob(
        data=data,
        mime_type=audio.content_type or "audio/webm",
        filename=audio.filename or "recording.webm",
    )
    logger.info("Transcribing %s (%d bytes, %s)", blob.filename, blob.size, blob.mime_type)

    stt = create_stt(provider=settings.stt_provider)
    transcription = await stt.transcribe(blob)
    return TranscriptionResponse(transcription=transcription)


@router.post(
    "/analyze",
    response_model=Analysis,
    response_model_exclude_none=True,
)
async def analyze_text(body: AnalyzeRequest, request: Request):
    """Extract key points and project insights from a transcript."""
    if not body.text or not body.text.strip():
        raise ValidationError(detail="No text provided for analysis")

    settings = get_settings()
    region_hint = region_hint_from_headers(request)
    if region_hint:
        logger.debug("Analyzing with region hint %r", region_hint)

    extractor = InsightExtractor(create_llm(provider=settings.llm_provider))
    return await extractor.extract(body.text, region_hint=region_hint)


@router.post("/generate-title", response_model=TitleResponse)
async def generate_title(body: GenerateTitleRequest):
    """Generate a short title from a transcript and its key points."""
    if not body.transcription or not body.transcription.strip():
        raise ValidationError(detail="No transcription provided")

    settings = get_settings()
    titler = TitleGenerator(create_llm(provider=settings.llm_provider))
    title = await titler.generate_title(body.transcription, body.key_points or [])
    return TitleResponse(title=title)
