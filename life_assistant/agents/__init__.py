"""AI Agents package."""

from life_assistant.agents.classifier import (
    GeminiIntentClassifier,
    IntentClassification,
    IntentClassifier,
    build_classification_prompt,
    parse_classification_payload,
)

__all__ = [
    "GeminiIntentClassifier",
    "IntentClassification",
    "IntentClassifier",
    "build_classification_prompt",
    "parse_classification_payload",
]
