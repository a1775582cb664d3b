"""Pipeline orchestrator for one in-flight voice note.

Sequences capture -> transcription -> analysis, and on save
title generation -> note store append. The orchestrator owns the
pipeline state; the UI only renders it and calls these methods.

Usage::

    from src.services.orchestrator import PipelineOrchestrator, create_direct_backend

    pipeline = PipelineOrchestrator(create_direct_backend(), store)
    pipeline.accept_upload(data, "audio/webm", "memo.webm")
    await pipeline.process_audio()
    note = await pipeline.save_note()
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager

from src.core.config import get_settings
from src.core.exceptions import (
    AudioNotesError,
    EmptyResultError,
    PipelineBusyError,
    PipelineStateError,
)
from src.core.models import Analysis, AudioBlob, KeyPoint, Note, PipelineState
from src.services.analysis import InsightExtractor, TitleGenerator
from src.services.audio import AudioCapture, CaptureHandle
from src.services.audio import accept_upload as make_upload_blob
from src.services.llm import create_llm
from src.services.llm.base import BaseLLM
from src.services.storage.note_store import NoteStore
from src.services.transcription import create_stt
from src.services.transcription.base import BaseSTT

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------------


class PipelineBackend(ABC):
    """The three provider-facing calls the pipeline depends on."""

    @abstractmethod
    async def transcribe(self, blob: AudioBlob) -> str:
        """Return the transcript of *blob*."""

    @abstractmethod
    async def analyze(self, text: str, region_hint: str | None = None) -> Analysis:
        """Return structured insights for *text*."""

    @abstractmethod
    async def generate_title(self, transcript: str, key_points: list[KeyPoint]) -> str:
        """Return a short title for the note."""


class DirectBackend(PipelineBackend):
    """Calls the provider clients in-process."""

    def __init__(
        self,
        stt: BaseSTT,
        extractor: InsightExtractor,
        titler: TitleGenerator,
    ) -> None:
        self._stt = stt
        self._extractor = extractor
        self._titler = titler

    async def transcribe(self, blob: AudioBlob) -> str:
        return await self._stt.transcribe(blob)

    async def analyze(self, text: str, region_hint: str | None = None) -> Analysis:
        return await self._extractor.extract(text, region_hint=region_hint)

    async def generate_title(self, transcript: str, key_points: list[KeyPoint]) -> str:
        return await self._titler.generate_title(transcript, key_points)


def create_direct_backend(
    llm: BaseLLM | None = None,
    stt: BaseSTT | None = None,
) -> DirectBackend:
    """Build a :class:`DirectBackend` from the configured providers."""
    settings = get_settings()
    llm = llm or create_llm(provider=settings.llm_provider)
    stt = stt or create_stt(provider=settings.stt_provider)
    return DirectBackend(stt=stt, extractor=InsightExtractor(llm), titler=TitleGenerator(llm))


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class PipelineOrchestrator:
    """State machine driving one note from audio to saved record.

    Args:
        backend: Provider calls (in-process or over HTTP).
        store: Note store that saved notes are appended to.
        capture: Microphone capture; created lazily on first ``start_capture``.
    """

    def __init__(
        self,
        backend: PipelineBackend,
        store: NoteStore,
        capture: AudioCapture | None = None,
    ) -> None:
        self._backend = backend
        self._store = store
        self._capture = capture
        self._handle: CaptureHandle | None = None
        self._busy = False

        self.state = PipelineState.idle
        self.audio_blob: AudioBlob | None = None
        self.transcript: str | None = None
        self.analysis: Analysis | None = None
        self.error: AudioNotesError | None = None

    @property
    def busy(self) -> bool:
        """True while ``process_audio`` or ``save_note`` is in flight."""
        return self._busy

    def _require(self, *allowed: PipelineState, action: str) -> None:
        if self.state not in allowed:
            expected = " or ".join(s.value for s in allowed)
            raise PipelineStateError(
                detail=f"Cannot {action} while {self.state.value}; expected {expected}"
            )

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        if self._busy:
            raise PipelineBusyError()
        self._busy = True
        try:
            yield
        finally:
            self._busy = False

    def _fail(self, exc: AudioNotesError, stage: str) -> None:
        self.error = exc
        logger.warning("Pipeline %s failed [%s]: %s", stage, exc.code, exc.detail)

    # ------------------------------------------------------------------
    # Audio intake
    # ------------------------------------------------------------------

    def start_capture(self) -> CaptureHandle:
        """Begin recording from the microphone."""
        self._require(PipelineState.idle, action="start capture")
        if self._capture is None:
            self._capture = AudioCapture()
        self._handle = self._capture.start_capture()
        self.error = None
        self.state = PipelineState.capturing
        return self._handle

    def stop_capture(self) -> AudioBlob:
        """Stop recording and hold the captured audio."""
        self._require(PipelineState.capturing, action="stop capture")
        handle, self._handle = self._handle, None
        try:
            blob = self._capture.stop_capture(handle)
        except AudioNotesError as exc:
            self._fail(exc, "capture")
            self.state = PipelineState.idle
            raise
        except Exception:
            logger.exception("Input stream failed while stopping")
            self.state = PipelineState.idle
            raise
        self.audio_blob = blob
        self.state = PipelineState.captured
        logger.info("Captured %d bytes of audio", blob.size)
        return blob

    def accept_upload(
        self,
        data: bytes,
        content_type: str | None,
        filename: str | None = None,
    ) -> AudioBlob:
        """Use an uploaded file as the note's audio."""
        self._require(PipelineState.idle, action="accept an upload")
        try:
            blob = make_upload_blob(data, content_type, filename)
        except AudioNotesError as exc:
            self._fail(exc, "upload")
            raise
        self.audio_blob = blob
        self.error = None
        self.state = PipelineState.captured
        logger.info("Accepted upload %s (%d bytes, %s)", blob.filename, blob.size, blob.mime_type)
        return blob

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    async def process_audio(self, region_hint: str | None = None) -> Analysis:
        """Transcribe the held audio, then analyze the transcript.

        From ``transcribed`` (a previous analysis failure) only the analysis
        step runs again. On failure the state stays at the last completed
        stage and the typed error is re-raised.

        Raises:
            PipelineStateError: No audio is waiting to be processed.
            PipelineBusyError: Another operation is in flight.
            EmptyResultError: The transcript is blank.
        """
        with self._exclusive():
            self._require(
                PipelineState.captured, PipelineState.transcribed, action="process audio"
            )
            self.error = None

            if self.state == PipelineState.captured:
                self.state = PipelineState.transcribing
                try:
                    transcript = await self._backend.transcribe(self.audio_blob)
                    if not transcript or not transcript.strip():
                        raise EmptyResultError(detail="No speech was detected in the recording")
                except AudioNotesError as exc:
                    self.state = PipelineState.captured
                    self._fail(exc, "transcription")
                    raise
                except Exception:
                    self.state = PipelineState.captured
                    logger.exception("Pipeline transcription failed unexpectedly")
                    raise
                self.transcript = transcript.strip()
                self.state = PipelineState.transcribed
                logger.info("Transcribed %d characters", len(self.transcript))

            self.state = PipelineState.analyzing
            try:
                analysis = await self._backend.analyze(self.transcript, region_hint=region_hint)
            except AudioNotesError as exc:
                self.state = PipelineState.transcribed
                self._fail(exc, "analysis")
                raise
            except Exception:
                self.state = PipelineState.transcribed
                logger.exception("Pipeline analysis failed unexpectedly")
                raise
            self.analysis = analysis
            self.state = PipelineState.analyzed
            return analysis

    async def save_note(self) -> Note:
        """Title the analyzed note and append it to the store.

        All-or-nothing: on any failure nothing is appended and the
        transcript and analysis are kept for another attempt.

        Raises:
            PipelineStateError: There is no analyzed note to save.
            PipelineBusyError: Another operation is in flight.
        """
        with self._exclusive():
            self._require(PipelineState.analyzed, action="save a note")
            if self.transcript is None or self.analysis is None:
                raise PipelineStateError(
                    detail="Nothing to save: transcript or analysis is missing"
                )

            self.error = None
            self.state = PipelineState.title_generating
            try:
                title = await self._backend.generate_title(
                    self.transcript, self.analysis.key_points
                )
                note = self._store.new_note(
                    title=title.strip(),
                    transcription=self.transcript,
                    analysis=self.analysis,
                )
                await self._store.append(note)
            except AudioNotesError as exc:
                self.state = PipelineState.analyzed
                self._fail(exc, "save")
                raise
            except Exception:
                self.state = PipelineState.analyzed
                logger.exception("Pipeline save failed unexpectedly")
                raise

            self.state = PipelineState.saved
            logger.info("Note %s saved as %r", note.id, note.title)
            self._clear()
            return note

    def reset(self) -> None:
        """Discard the in-flight note and return to ``idle``.

        Raises:
            PipelineBusyError: ``process_audio`` or ``save_note`` is in flight.
        """
        if self._busy:
            raise PipelineBusyError()
        if self._capture is not None and self._capture.is_active:
            self._capture.cancel()
        self._handle = None
        self._clear()
        self.error = None

    def _clear(self) -> None:
        self.audio_blob = None
        self.transcript = None
        self.analysis = None
        self.state = PipelineState.idle
