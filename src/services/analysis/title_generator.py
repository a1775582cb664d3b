"""Short title generation for saved notes."""

import logging

from src.core.config import get_settings
from src.core.exceptions import EmptyResultError
from src.core.models import KeyPoint
from src.services.llm.base import BaseLLM

logger = logging.getLogger(__name__)


def build_title_prompt(transcript: str, key_points: list[KeyPoint]) -> str:
    """Build the title prompt, numbering key-point titles in order."""
    if key_points:
        numbered = "\n".join(f"{i}. {point.title}" for i, point in enumerate(key_points, start=1))
    else:
        numbered = "None provided"
    return (
        "Based on the following transcription and key points, generate a concise, "
        "descriptive title (maximum 8 words) that captures the main topic or idea:\n\n"
        f'Transcription: "{transcript}"\n\n'
        f"Key Points: {numbered}\n\n"
        "Generate only the title, nothing else. Make it clear and professional."
    )


class TitleGenerator:
    """Asks the LLM for a short note title.

    Args:
        llm: An LLM provider implementing ``BaseLLM``.
    """

    def __init__(self, llm: BaseLLM, max_tokens: int | None = None) -> None:
        self._llm = llm
        self._max_tokens = max_tokens or get_settings().title_max_tokens

    async def generate_title(self, transcript: str, key_points: list[KeyPoint]) -> str:
        """Return the trimmed title.

        Raises:
            ProviderError: The LLM call failed.
            EmptyResultError: The model returned only whitespace.
        """
        prompt = build_title_prompt(transcript, key_points)
        raw = await self._llm.generate(prompt, max_tokens=self._max_tokens)
        title = (raw or "").strip()
        if not title:
            raise EmptyResultError(detail="No title generated")
        logger.info("Generated title: %s", title)
        return title
