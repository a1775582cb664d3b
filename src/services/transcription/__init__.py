"""
Transcription module - Speech-to-text abstraction layer.

Factory function for creating STT instances based on provider configuration.
"""

from src.core.exceptions import ConfigurationError

from .base import BaseSTT

__all__ = ["BaseSTT", "create_stt"]


def create_stt(provider: str, **kwargs) -> BaseSTT:
    """
    Factory function to create STT instance based on provider.

    Args:
        provider: STT provider name ("groq")
        **kwargs: Provider-specific configuration

    Returns:
        BaseSTT implementation instance

    Raises:
        ConfigurationError: If provider is unknown
    """
    if provider == "groq":
        from .groq import GroqSTT

        return GroqSTT(**kwargs)
    else:
        raise ConfigurationError(detail=f"Unknown STT provider: {provider}")
