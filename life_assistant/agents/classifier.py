"""
Intent Classification Agent

CRITICAL BOUNDARIES:
- CAN: Label an utterance with one coarse intent and copy out slot text
- CANNOT: Resolve dates, amounts or categories (the parser does that,
  deterministically)
- CANNOT: Execute anything

The LLM is a TRANSLATOR, not an ORACLE. Whatever it returns is treated
as untrusted text: malformed, empty or failed responses become UNKNOWN,
which the resolver turns into a polite rejection.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Optional

import google.generativeai as genai
from pydantic import BaseModel, Field
from tenacity import retry, stop_after_attempt, wait_exponential

from life_assistant.audit import AuditLogger
from life_assistant.config import GeminiSettings, get_settings
from life_assistant.models.command import IntentLabel, Slot


class IntentClassification(BaseModel):
    """What the classifier says an utterance is."""

    intent: IntentLabel = IntentLabel.UNKNOWN
    slots: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def unknown(cls) -> "IntentClassification":
        return cls(intent=IntentLabel.UNKNOWN)


class IntentClassifier(ABC):
    """The LLM classification client, as this core sees it."""

    @abstractmethod
    async def classify(self, utterance: str) -> IntentClassification:
        """
        Classify one utterance.

        Implementations should return UNKNOWN rather than raise, but
        callers still guard against exceptions.
        """
        pass


def _slot_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def parse_classification_payload(text: Optional[str]) -> IntentClassification:
    """
    Pull {"intent": ..., "slots": {...}} out of a model reply.

    Tolerates prose or code fences around the JSON object. Anything
    that is not a JSON object with a known intent is UNKNOWN; slot
    values that are not scalars are dropped.
    """
    if not text:
        return IntentClassification.unknown()

    start = text.find("{")
    end = text.rfind("}") + 1
    if start < 0 or end <= start:
        return IntentClassification.unknown()

    try:
        data = json.loads(text[start:end])
    except json.JSONDecodeError:
        return IntentClassification.unknown()
    if not isinstance(data, dict):
        return IntentClassification.unknown()

    intent = IntentLabel.parse(data.get("intent"))
    if intent is IntentLabel.UNKNOWN:
        return IntentClassification.unknown()

    raw_slots = data.get("slots")
    slots: dict[str, str] = {}
    if isinstance(raw_slots, dict):
        for key, value in raw_slots.items():
            text_value = _slot_text(value)
            if text_value is not None:
                slots[str(key).strip().lower()] = text_value

    return IntentClassification(intent=intent, slots=slots)


def build_classification_prompt(utterance: str) -> str:
    slot_names = ", ".join(slot.value for slot in Slot)
    return f"""You are classifying a command spoken to a personal life-management app.

Utterance: "{utterance}"

Return a JSON object with two fields:
- intent: one of [RECORD_EXPENSE, RECORD_INCOME, ADD_TODO, CHECK_HABIT, QUERY_SUMMARY, UNKNOWN]
  - RECORD_EXPENSE: the user spent money
  - RECORD_INCOME: the user received money
  - ADD_TODO: the user wants a task on their list
  - CHECK_HABIT: the user completed a habit
  - QUERY_SUMMARY: the user asks for a total, balance, streak or progress
  - UNKNOWN: anything else
- slots: an object whose keys are chosen from [{slot_names}]
  - Copy the user's own words. Do NOT convert dates, amounts or categories.
  - Leave out anything the user did not say.
  - metric (QUERY_SUMMARY only): expense, income, balance, habit_streak, savings_progress or todo_progress

Examples:
"spent 45 on lunch today" ->
{{"intent": "RECORD_EXPENSE", "slots": {{"amount": "45", "category": "lunch", "date": "today"}}}}

"remind me to call the bank next friday" ->
{{"intent": "ADD_TODO", "slots": {{"title": "call the bank", "date": "next friday"}}}}

"did my morning run" ->
{{"intent": "CHECK_HABIT", "slots": {{"habit": "morning run"}}}}

"how much did I spend on transport last month" ->
{{"intent": "QUERY_SUMMARY", "slots": {{"metric": "expense", "category": "transport", "period": "last month"}}}}

Respond with ONLY the JSON object, no explanation."""


class GeminiIntentClassifier(IntentClassifier):
    """
    Intent classifier backed by Google Gemini.

    Transient API failures are retried; a failure that survives the
    retries is logged and reported as UNKNOWN.
    """

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._settings = settings or get_settings().gemini
        self._audit_logger = audit_logger
        self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        self._model = genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
            }
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _generate(self, prompt: str) -> str:
        response = await self._model.generate_content_async(prompt)
        return response.text

    async def classify(self, utterance: str) -> IntentClassification:
        try:
            text = await self._generate(build_classification_prompt(utterance))
        except Exception as e:
            if self._audit_logger:
                await self._audit_logger.log_external_service_error(
                    service="gemini",
                    error_message=str(e),
                )
            return IntentClassification.unknown()

        return parse_classification_payload(text)
