"""
Ollama LLM provider implementation.

Uses the Ollama Python SDK (``ollama.AsyncClient``) to interact with a
locally running Ollama server. No API key is involved.
"""

import logging

from ollama import AsyncClient, ResponseError

from src.core.config import get_settings
from src.core.exceptions import NetworkError, ProviderError
from src.services.llm.base import BaseLLM

logger = logging.getLogger(__name__)


class OllamaLLM(BaseLLM):
    """Ollama local LLM provider.

    Connects to a locally running Ollama server via its REST API.
    """

    def __init__(
        self,
        base_url: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
    ) -> None:
        """Initialize the Ollama LLM provider.

        Args:
            base_url: Ollama server URL (falls back to settings if not provided).
            model: Model name to use (e.g. "llama3.2").
            temperature: Sampling temperature for text generation (0.0–1.0).
        """
        settings = get_settings()
        self._base_url = base_url or settings.ollama_base_url
        self._model = model or settings.ollama_model
        self._temperature = (
            temperature if temperature is not None else settings.analysis_temperature
        )
        self._client = AsyncClient(host=self._base_url)

    @property
    def model_name(self) -> str:
        return self._model

    async def generate(self, prompt: str, **kwargs) -> str:
        """Send one chat request to the Ollama server."""
        messages: list[dict[str, str]] = []
        system = kwargs.pop("system", None)
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        temperature = kwargs.pop("temperature", None)
        options: dict = {
            "temperature": temperature if temperature is not None else self._temperature
        }
        max_tokens = kwargs.pop("max_tokens", None)
        if max_tokens:
            options["num_predict"] = max_tokens

        try:
            response = await self._client.chat(
                model=self._model,
                messages=messages,
                options=options,
            )
        except ConnectionError as exc:
            logger.warning("Ollama connection error (%s): %s", self._base_url, exc)
            raise NetworkError(
                detail=f"Failed to connect to Ollama at {self._base_url}: {exc}"
            ) from exc
        except TimeoutError as exc:
            logger.warning("Ollama timeout (%s): %s", self._base_url, exc)
            raise NetworkError(detail=f"Ollama request timed out ({self._base_url}): {exc}") from exc
        except ResponseError as exc:
            logger.error("Ollama response error: %s", exc)
            raise ProviderError(
                detail=f"Ollama error: {exc.status_code} - {exc.error}",
                provider_status=exc.status_code,
                provider_body=exc.error,
            ) from exc

        return response.message.content or ""
