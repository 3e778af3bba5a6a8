"""
Ambiguity Resolver

Decides what the user sees for each parse:
- Rejected           -> an apology
- NeedsClarification -> one focused question about one slot
- Ready              -> passed through untouched

A clarification answer is merged into the session's slot map under the
pending slot and parsed again. Intent classification is not repeated.
"""

import re
from typing import Any, Mapping, Optional

from life_assistant.commands.parser import INTENT_SLOTS, CommandParser
from life_assistant.models.command import (
    ClarificationSession,
    ErrorKind,
    IntentLabel,
    NeedsClarification,
    ParseOutcome,
    Ready,
    Rejected,
    Slot,
)


# Keyed by (intent, slot); (None, slot) is the fallback for any intent.
QUESTIONS: dict[tuple[Optional[IntentLabel], Slot], str] = {
    (IntentLabel.RECORD_EXPENSE, Slot.AMOUNT): "How much did you spend?",
    (IntentLabel.RECORD_INCOME, Slot.AMOUNT): "How much did you receive?",
    (None, Slot.AMOUNT): "How much was it?",
    (None, Slot.CATEGORY): "Which category should this go under?",
    (IntentLabel.CHECK_HABIT, Slot.HABIT): "Which habit did you complete?",
    (None, Slot.HABIT): "Which habit do you mean?",
    (IntentLabel.ADD_TODO, Slot.TITLE): "What is the task?",
    (None, Slot.TITLE): "What should it be called?",
    (None, Slot.METRIC): (
        "What would you like to see: spending, income, balance, "
        "habit streak, savings or tasks?"
    ),
    (None, Slot.PERIOD): "Which period? For example: this week, last month or March.",
    (IntentLabel.ADD_TODO, Slot.DATE): "When is it due?",
    (None, Slot.DATE): "Which day was that? You can say today, yesterday or a weekday.",
    (None, Slot.VALUE): "What number should I record?",
    (None, Slot.PRIORITY): "What priority: high, medium or low?",
    (None, Slot.NOTE): "What note should I add?",
}

REJECTION_MESSAGES: dict[str, str] = {
    "unsupported": (
        "Sorry, I can't help with that yet. You can record an expense or income, "
        "add a task, check in a habit or ask for a summary."
    ),
    "empty": "Sorry, I didn't catch that. Could you say it again?",
    "unavailable": "Sorry, voice commands are not available right now.",
}

# Answers that clear an optional slot back to its default, e.g. "no category"
_SKIP_ANSWER = re.compile(r"^(?:skip|none|nothing|default|never mind|no(?:\s+\w+)?)$")

DEFAULT_REJECTION = "Sorry, I couldn't turn that into an action."


def _join_options(options: list[str]) -> str:
    if len(options) == 1:
        return options[0]
    return ", ".join(options[:-1]) + " or " + options[-1]


def question_for(outcome: NeedsClarification) -> str:
    """The single question to ask for a clarification."""
    session = outcome.session
    slot = outcome.slot

    if outcome.error_kind is ErrorKind.AMBIGUITY and session.candidates:
        return f"Which {slot.value} did you mean: {_join_options(session.candidates)}?"

    question = QUESTIONS.get((session.intent, slot)) or QUESTIONS[(None, slot)]
    given = session.slots.get(slot.value)
    if given is not None:
        return f"I couldn't use \"{given}\". {question}"
    return question


class AmbiguityResolver:
    """
    Wraps the parser with user-facing messages and the clarification loop.

    Usage:
        resolver = AmbiguityResolver(parser)
        outcome = resolver.resolve(intent, slots, utterance)
        if isinstance(outcome, NeedsClarification):
            outcome = resolver.answer(outcome.session, "45")
    """

    def __init__(self, parser: CommandParser):
        self._parser = parser

    def finalize(self, outcome: ParseOutcome) -> ParseOutcome:
        """Attach the user-facing text to a raw parser outcome."""
        if isinstance(outcome, Rejected):
            message = REJECTION_MESSAGES.get(outcome.reason, DEFAULT_REJECTION)
            return outcome.model_copy(update={"message": message})

        if isinstance(outcome, NeedsClarification):
            return outcome.model_copy(update={"question": question_for(outcome)})

        if isinstance(outcome, Ready) and not outcome.preview:
            return outcome.model_copy(update={"preview": outcome.command.describe()})

        return outcome

    def resolve(
        self,
        intent: IntentLabel,
        slots: Optional[Mapping[str, Any]] = None,
        utterance: Optional[str] = None,
    ) -> ParseOutcome:
        return self.finalize(self._parser.parse(intent, slots, utterance))

    def reject(self, reason: str) -> Rejected:
        return self.finalize(Rejected(reason=reason))

    def answer(self, session: ClarificationSession, answer: str) -> ParseOutcome:
        """
        Resume a clarification with the user's answer.

        For an ambiguous name, a number picks the candidate at that
        position (1-based). For an optional slot, a skip word ("skip",
        "none", "no category") drops the value so the default applies.
        """
        value = answer.strip()
        slots = dict(session.slots)
        slot_name = session.pending_slot.value

        optional = not INTENT_SLOTS.get(session.intent, {}).get(session.pending_slot, True)
        if optional and _SKIP_ANSWER.match(" ".join(value.lower().split())):
            slots.pop(slot_name, None)
            return self.resolve(session.intent, slots, session.utterance)

        if session.candidates and value.isdigit():
            index = int(value) - 1
            if 0 <= index < len(session.candidates):
                value = session.candidates[index]

        slots[slot_name] = value
        return self.resolve(session.intent, slots, session.utterance)
