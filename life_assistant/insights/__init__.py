"""
Insight Pipeline Package

records -> extractors -> scoring -> composer -> cache, driven by the engine.
"""

from life_assistant.insights.cache import DEFAULT_TTL, AnalysisCache, local_now
from life_assistant.insights.composer import build_analysis, compose, headline
from life_assistant.insights.engine import InsightEngine
from life_assistant.insights.extractors import EXTRACTORS, extract
from life_assistant.insights.scoring import score

__all__ = [
    "DEFAULT_TTL",
    "EXTRACTORS",
    "AnalysisCache",
    "InsightEngine",
    "build_analysis",
    "compose",
    "extract",
    "headline",
    "score",
    "local_now",
]
