"""
Abstract base class for Speech-to-Text providers.

All STT implementations must implement this interface, enabling
provider-agnostic transcription in the service layer.
"""

from abc import ABC, abstractmethod

from src.core.models import AudioBlob


class BaseSTT(ABC):
    """Interface that every STT provider must implement."""

    @abstractmethod
    async def transcribe(self, blob: AudioBlob, **kwargs) -> str:
        """Transcribe an audio blob to text.

        Args:
            blob: Captured or uploaded audio.
            **kwargs: Provider-specific options.

        Returns:
            The provider's transcript, verbatim. Emptiness is not an
            error at this layer.
        """
