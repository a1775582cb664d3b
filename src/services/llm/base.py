"""
Abstract base class for LLM providers.

All LLM implementations (Groq, Claude, Ollama) must implement this interface,
enabling provider-agnostic insight extraction and title generation.
"""

from abc import ABC, abstractmethod


class BaseLLM(ABC):
    """Interface that every LLM provider must implement.

    Implementations make exactly one request per call and translate
    provider failures into ``ProviderError`` / ``NetworkError`` /
    ``ConfigurationError`` from :mod:`src.core.exceptions`.
    """

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Identifier of the model answering requests."""

    @abstractmethod
    async def generate(self, prompt: str, **kwargs) -> str:
        """Generate a free-form text response.

        Args:
            prompt: The user prompt to send to the model.
            **kwargs: Provider-specific options (system, temperature, max_tokens).

        Returns:
            The model's raw text response.
        """
