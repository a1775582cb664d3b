"""
Analysis module - LLM-backed insight extraction and title generation.
"""

from .insight_extractor import InsightExtractor
from .title_generator import TitleGenerator

__all__ = ["InsightExtractor", "TitleGenerator"]
