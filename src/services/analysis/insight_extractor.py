"""
Insight extraction service.

Turns a transcript into an :class:`~src.core.models.Analysis` (key points,
optional project analysis, optional constraint questions) with a single
LLM call. The model's reply is parsed as JSON exactly once; there is no
retry and no attempt to repair broken output.
"""

import json
import logging

from pydantic import ValidationError as SchemaValidationError

from src.core.config import get_settings
from src.core.exceptions import MalformedResponseError
from src.core.models import Analysis
from src.services.llm.base import BaseLLM

logger = logging.getLogger(__name__)

ANALYSIS_INSTRUCTIONS = """\
Analyze the following transcribed text and extract key insights. \
Return your response as valid JSON only, no other text.

Return a JSON object with this exact structure:
{
  "keyPoints": [
    {
      "title": "A concise title for the key point",
      "description": "A brief description explaining the key point"
    }
  ],
  "projectAnalysis": "Analysis if this appears to be a project idea (optional)",
  "constraintQuestions": ["Important constraint questions if this is a project idea (optional)"]
}

Requirements:
1. Extract 3-7 main key points with clear titles and descriptions.
2. If this appears to be a project idea, provide a brief analysis.
3. If it's a project idea, generate 2-4 unique, specific constraint questions based on the \
actual content. DO NOT use generic questions. Focus on the specific challenges this \
particular idea would face. Consider aspects like target market validation, technical \
implementation challenges, competitive differentiation, scalability concerns, user adoption \
barriers, or resource requirements.
4. If it is not a project idea, omit projectAnalysis and constraintQuestions.

Make each constraint question specific to the content discussed, not generic business advice.
Return ONLY valid JSON, no markdown or other formatting."""

REGION_INSTRUCTIONS = (
    "The speaker appears to be located in {region}. Where it matters, tailor the "
    "constraint questions to that region (local regulations, market, logistics)."
)


def build_analysis_prompt(text: str, region_hint: str | None = None) -> str:
    """Build the extraction prompt with the transcript embedded verbatim.

    Args:
        text: Raw transcript text.
        region_hint: Optional human-readable location, e.g. ``"Austin, TX, US"``.

    Returns:
        Prompt string for the LLM.
    """
    parts = [ANALYSIS_INSTRUCTIONS]
    if region_hint:
        parts.append(REGION_INSTRUCTIONS.format(region=region_hint))
    parts.append(f'Transcribed text:\n"{text}"')
    return "\n\n".join(parts)


def parse_analysis(raw_text: str) -> Analysis:
    """Parse one model reply into an :class:`Analysis`.

    Raises:
        MalformedResponseError: The reply is not JSON, not an object, or has
            no usable ``keyPoints`` array.
    """
    try:
        data = json.loads(raw_text)
    except json.JSONDecodeError as exc:
        logger.error("Analysis reply is not valid JSON: %s", raw_text[:500])
        raise MalformedResponseError(
            detail="Failed to parse analysis response", raw_text=raw_text
        ) from exc

    if not isinstance(data, dict):
        raise MalformedResponseError(
            detail="Analysis response is not a JSON object", raw_text=raw_text
        )

    try:
        return Analysis.model_validate(data)
    except SchemaValidationError as exc:
        logger.error("Analysis reply has an unexpected shape: %s", exc)
        raise MalformedResponseError(
            detail="Analysis response is missing a non-empty keyPoints array",
            raw_text=raw_text,
        ) from exc


class InsightExtractor:
    """Extracts key points and project insights from transcripts.

    Args:
        llm: An LLM provider implementing ``BaseLLM``.
    """

    def __init__(
        self,
        llm: BaseLLM,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> None:
        settings = get_settings()
        self._llm = llm
        self._temperature = (
            temperature if temperature is not None else settings.analysis_temperature
        )
        self._max_tokens = max_tokens or settings.analysis_max_tokens

    async def extract(self, text: str, region_hint: str | None = None) -> Analysis:
        """Analyze *text* and return the structured result.

        Raises:
            ProviderError: The LLM call failed.
            MalformedResponseError: The reply could not be parsed.
        """
        prompt = build_analysis_prompt(text, region_hint)
        raw_response = await self._llm.generate(
            prompt,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )
        analysis = parse_analysis(raw_response)
        logger.info(
            "Extracted %d key points (%d constraint questions)",
            len(analysis.key_points),
            len(analysis.constraint_questions or []),
        )
        return analysis
