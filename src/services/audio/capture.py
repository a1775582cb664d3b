"""Recording capture for microphone streams and file uploads.

``AudioCapture`` opens one PortAudio input stream (via ``sounddevice``),
collects raw 16-bit PCM chunks in arrival order, and on stop wraps them in
a WAV container. Only one capture may be active at a time and the stream is
always stopped and closed when the capture ends.
"""

import io
import itertools
import logging
import mimetypes
import threading
import wave
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

from src.core.config import get_settings
from src.core.exceptions import (
    CaptureAlreadyActiveError,
    CaptureNotActiveError,
    UnsupportedAudioTypeError,
    ValidationError,
)
from src.core.models import AudioBlob

logger = logging.getLogger(__name__)

SAMPLE_WIDTH = 2  # 16-bit signed PCM


class InputStream(Protocol):
    """The subset of ``sounddevice.InputStream`` that capture relies on."""

    def start(self) -> None: ...

    def stop(self) -> None: ...

    def close(self) -> None: ...


StreamFactory = Callable[[int, int, Callable[[bytes], None]], InputStream]


def sounddevice_stream(
    sample_rate: int,
    channels: int,
    on_chunk: Callable[[bytes], None],
) -> InputStream:
    """Open a microphone input stream that feeds raw int16 PCM to *on_chunk*."""
    import sounddevice as sd

    def callback(indata, frame_count, time_info, status):  # noqa: ARG001
        if status:
            logger.debug("Input stream status: %s", status)
        on_chunk(indata.tobytes())

    return sd.InputStream(
        samplerate=sample_rate,
        channels=channels,
        dtype="int16",
        callback=callback,
    )


def pcm_to_wav(
    pcm_data: bytes,
    sample_rate: int,
    channels: int = 1,
    sample_width: int = SAMPLE_WIDTH,
) -> bytes:
    """Wrap raw PCM bytes in an in-memory WAV container."""
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(sample_width)
        wf.setframerate(sample_rate)
        wf.writeframes(pcm_data)
    return buf.getvalue()


@dataclass(frozen=True)
class CaptureHandle:
    """Identifies one running capture."""

    capture_id: int
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass
class _ActiveCapture:
    handle: CaptureHandle
    stream: InputStream
    chunks: list[bytes] = field(default_factory=list)


class AudioCapture:
    """Microphone capture producing one :class:`AudioBlob` per start/stop cycle.

    Args:
        sample_rate: Capture sample rate in Hz (falls back to settings).
        channels: Number of input channels (falls back to settings).
        stream_factory: Callable opening the input stream; defaults to
            :func:`sounddevice_stream`. Tests inject a fake.
    """

    def __init__(
        self,
        sample_rate: int | None = None,
        channels: int | None = None,
        stream_factory: StreamFactory | None = None,
    ) -> None:
        settings = get_settings()
        self._sample_rate = sample_rate or settings.capture_sample_rate
        self._channels = channels or settings.capture_channels
        self._stream_factory = stream_factory or sounddevice_stream
        self._ids = itertools.count(1)
        # Chunks arrive on the audio driver's thread
        self._lock = threading.Lock()
        self._active: _ActiveCapture | None = None

    @property
    def is_active(self) -> bool:
        return self._active is not None

    def start_capture(self) -> CaptureHandle:
        """Open the microphone and start collecting audio.

        Raises:
            CaptureAlreadyActiveError: Another capture is still running.
        """
        if self._active is not None:
            raise CaptureAlreadyActiveError()

        active = _ActiveCapture(handle=CaptureHandle(capture_id=next(self._ids)), stream=None)

        def on_chunk(data: bytes) -> None:
            if not data:
                return
            with self._lock:
                if self._active is active:
                    active.chunks.append(bytes(data))

        stream = self._stream_factory(self._sample_rate, self._channels, on_chunk)
        active.stream = stream
        with self._lock:
            self._active = active
        try:
            stream.start()
        except Exception:
            self._release(active)
            raise

        logger.info("Capture %s started (%d Hz)", active.handle.capture_id, self._sample_rate)
        return active.handle

    def stop_capture(self, handle: CaptureHandle) -> AudioBlob:
        """Stop the capture identified by *handle* and return its audio.

        Raises:
            CaptureNotActiveError: *handle* is not the running capture.
        """
        active = self._active
        if active is None or active.handle != handle:
            raise CaptureNotActiveError()

        self._release(active)
        pcm = b"".join(active.chunks)
        logger.info(
            "Capture %s stopped: %d chunks, %d bytes",
            handle.capture_id,
            len(active.chunks),
            len(pcm),
        )
        return AudioBlob(
            data=pcm_to_wav(pcm, self._sample_rate, self._channels),
            mime_type="audio/wav",
            filename="recording.wav",
        )

    def cancel(self) -> None:
        """Abort any running capture, discarding its audio."""
        if self._active is not None:
            logger.info("Capture %s cancelled", self._active.handle.capture_id)
            self._release(self._active)

    def _release(self, active: _ActiveCapture) -> None:
        """Detach *active* and close its stream, even if stopping fails."""
        with self._lock:
            if self._active is active:
                self._active = None
        try:
            active.stream.stop()
        finally:
            active.stream.close()


def accept_upload(
    data: bytes,
    content_type: str | None,
    filename: str | None = None,
) -> AudioBlob:
    """Turn an uploaded file into an :class:`AudioBlob`.

    Raises:
        UnsupportedAudioTypeError: The MIME type is not ``audio/*``.
        ValidationError: The file is empty.
    """
    if not content_type or not content_type.lower().startswith("audio/"):
        raise UnsupportedAudioTypeError(content_type)
    if not data:
        raise ValidationError(detail="Uploaded audio file is empty")
    if not filename:
        # The provider infers the container format from the extension
        filename = f"upload{mimetypes.guess_extension(content_type) or '.webm'}"
    return AudioBlob(data=data, mime_type=content_type, filename=filename)
