"""
Fuzzy Name Matching

Resolves a spoken category or habit name against the caller's list of
valid names.

Rules, in order:
1. An exact case-insensitive match wins outright
2. The slot value is expanded through KEYWORD_EXPANSIONS, so everyday
   words reach the canonical category ("lunch" -> "dining")
3. Each valid name scores the length of the longest term that matches
   it by substring; the highest score wins
4. A tie for the highest score is ambiguous: we ask, never guess
"""

import re

from life_assistant.errors import AmbiguityError, SlotValidationError
from life_assistant.models.command import Slot


# Everyday words mapped to the canonical words category names use.
KEYWORD_EXPANSIONS: dict[str, tuple[str, ...]] = {
    # Food
    "breakfast": ("dining", "food", "meal"),
    "lunch": ("dining", "food", "meal"),
    "dinner": ("dining", "food", "meal"),
    "supper": ("dining", "food", "meal"),
    "brunch": ("dining", "food", "meal"),
    "snack": ("dining", "food", "snacks"),
    "snacks": ("dining", "food", "snacks"),
    "restaurant": ("dining", "food", "restaurant"),
    "takeout": ("dining", "food", "delivery"),
    "coffee": ("dining", "food", "drinks", "coffee"),
    "tea": ("dining", "food", "drinks"),
    "drinks": ("dining", "food", "drinks"),
    "groceries": ("groceries", "food", "supermarket"),
    "grocery": ("groceries", "food", "supermarket"),
    # Transport
    "taxi": ("transport", "transportation", "travel"),
    "uber": ("transport", "transportation", "travel"),
    "bus": ("transport", "transportation", "travel"),
    "subway": ("transport", "transportation", "travel"),
    "metro": ("transport", "transportation", "travel"),
    "train": ("transport", "transportation", "travel"),
    "fuel": ("transport", "transportation", "car"),
    "gas": ("transport", "transportation", "car"),
    "parking": ("transport", "transportation", "car"),
    "flight": ("travel", "transport", "transportation"),
    "hotel": ("travel", "accommodation"),
    # Shopping
    "clothes": ("shopping", "clothing"),
    "shoes": ("shopping", "clothing"),
    "electronics": ("shopping", "electronics"),
    # Home
    "rent": ("housing", "rent", "home"),
    "mortgage": ("housing", "home"),
    "electricity": ("utilities", "bills", "housing"),
    "water": ("utilities", "bills", "housing"),
    "internet": ("utilities", "bills", "communication"),
    "phone": ("utilities", "bills", "communication"),
    # Leisure and health
    "movie": ("entertainment", "leisure"),
    "movies": ("entertainment", "leisure"),
    "cinema": ("entertainment", "leisure"),
    "games": ("entertainment", "leisure"),
    "gym": ("health", "fitness", "sports"),
    "doctor": ("health", "medical"),
    "medicine": ("health", "medical"),
    "pharmacy": ("health", "medical"),
    "books": ("education", "learning", "books"),
    "course": ("education", "learning"),
    "tuition": ("education", "learning"),
    # Income
    "salary": ("salary", "wages", "income"),
    "paycheck": ("salary", "wages", "income"),
    "wage": ("salary", "wages", "income"),
    "bonus": ("bonus", "salary", "income"),
    "freelance": ("freelance", "side", "income"),
    "dividend": ("investment", "dividends", "income"),
    "interest": ("investment", "interest", "income"),
}

# Single characters and the like would match almost anything.
MIN_TERM_LENGTH = 2


def expand_terms(value: str) -> list[str]:
    """The value itself, its words, and their keyword expansions, without repeats."""
    text = " ".join(value.lower().split())
    terms = [text]
    for word in re.findall(r"[a-z0-9]+", text):
        terms.append(word)
        terms.extend(KEYWORD_EXPANSIONS.get(word, ()))
    if text in KEYWORD_EXPANSIONS:
        terms.extend(KEYWORD_EXPANSIONS[text])

    unique = []
    for term in terms:
        if len(term) >= MIN_TERM_LENGTH and term not in unique:
            unique.append(term)
    return unique


def _match_length(terms: list[str], name: str) -> int:
    """
    Longest matching substring between any term and a name.

    A term inside the name counts fully. The name inside a term counts
    only as a whole word, so a name "Tea" does not match "steak".
    """
    best = 0
    for term in terms:
        if term in name:
            best = max(best, len(term))
        elif re.search(rf"\b{re.escape(name)}\b", term):
            best = max(best, len(name))
    return best


def match_name(slot: Slot, value: str, valid_names: list[str]) -> str:
    """
    Resolve a spoken name to exactly one valid name.

    Raises:
        SlotValidationError: If nothing matches
        AmbiguityError: If two or more names tie for the best match
    """
    text = " ".join(value.lower().split())
    if not text:
        raise SlotValidationError(slot.value, f"No {slot.value} given")

    for name in valid_names:
        if name.lower() == text:
            return name

    terms = expand_terms(text)
    best_length = 0
    best: list[str] = []
    for name in valid_names:
        length = _match_length(terms, name.lower())
        if length == 0:
            continue
        if length > best_length:
            best_length = length
            best = [name]
        elif length == best_length:
            best.append(name)

    if not best:
        raise SlotValidationError(slot.value, f"No {slot.value} matches '{value}'")
    if len(best) > 1:
        raise AmbiguityError(
            slot.value,
            f"'{value}' matches several {slot.value} names equally well",
            candidates=best,
        )
    return best[0]
