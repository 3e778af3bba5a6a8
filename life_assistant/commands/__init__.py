"""
Command Pipeline Package

(intent, slots) -> parser -> resolver -> executor
"""

from life_assistant.commands.categories import KEYWORD_EXPANSIONS, match_name
from life_assistant.commands.executor import CommandExecutor
from life_assistant.commands.parser import CommandParser, normalize_slots
from life_assistant.commands.resolver import AmbiguityResolver, question_for
from life_assistant.commands.slots import (
    coerce_amount,
    coerce_date,
    coerce_metric,
    coerce_priority,
    resolve_period,
)

__all__ = [
    "KEYWORD_EXPANSIONS",
    "AmbiguityResolver",
    "CommandExecutor",
    "CommandParser",
    "coerce_amount",
    "coerce_date",
    "coerce_metric",
    "coerce_priority",
    "match_name",
    "normalize_slots",
    "question_for",
    "resolve_period",
]
