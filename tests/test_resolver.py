"""Tests for the ambiguity resolver."""

from datetime import date
from decimal import Decimal

import pytest

from life_assistant.commands import AmbiguityResolver, CommandParser
from life_assistant.config import CommandSettings
from life_assistant.models.command import (
    IntentLabel,
    NeedsClarification,
    Ready,
    Rejected,
    Slot,
)
from life_assistant.models.insight import Module
from life_assistant.services.repositories import StaticCategoryLookup


@pytest.fixture
def resolver(category_lookup, clock):
    return AmbiguityResolver(CommandParser(category_lookup, settings=CommandSettings(), clock=clock))


@pytest.fixture
def card_resolver(clock):
    lookup = StaticCategoryLookup({
        Module.FINANCE: {"cat-credit": "Credit card", "cat-debit": "Debit card"},
    })
    return AmbiguityResolver(CommandParser(lookup, settings=CommandSettings(), clock=clock))


class TestQuestions:
    """Tests for clarification questions."""

    def test_missing_title(self, resolver):
        """Test the task title question."""
        outcome = resolver.resolve(IntentLabel.ADD_TODO, {})
        assert isinstance(outcome, NeedsClarification)
        assert outcome.question == "What is the task?"

    def test_intent_specific_amount_question(self, resolver):
        """Test that income and expense ask differently."""
        expense = resolver.resolve(IntentLabel.RECORD_EXPENSE, {})
        income = resolver.resolve(IntentLabel.RECORD_INCOME, {})
        assert expense.question == "How much did you spend?"
        assert income.question == "How much did you receive?"

    def test_unusable_value_is_quoted(self, resolver):
        """Test that the question mentions what could not be used."""
        outcome = resolver.resolve(IntentLabel.RECORD_EXPENSE, {"amount": "lots"})
        assert outcome.question == 'I couldn\'t use "lots". How much did you spend?'

    def test_ambiguity_lists_candidates(self, card_resolver):
        """Test the candidate question for tied names."""
        outcome = card_resolver.resolve(IntentLabel.RECORD_EXPENSE, {"amount": "20", "category": "card"})
        assert outcome.question == "Which category did you mean: Credit card or Debit card?"


class TestRejections:
    """Tests for apology messages."""

    def test_unsupported(self, resolver):
        """Test the unsupported intent apology."""
        outcome = resolver.resolve(IntentLabel.UNKNOWN, {})
        assert isinstance(outcome, Rejected)
        assert outcome.message.startswith("Sorry")
        assert "add a task" in outcome.message

    def test_named_reasons(self, resolver):
        """Test the empty and unavailable apologies."""
        assert resolver.reject("empty").message == "Sorry, I didn't catch that. Could you say it again?"
        assert "not available" in resolver.reject("unavailable").message

    def test_unknown_reason_gets_default(self, resolver):
        """Test the fallback apology."""
        assert resolver.reject("other").message == "Sorry, I couldn't turn that into an action."


class TestAnswer:
    """Tests for resuming a clarification."""

    def test_answer_fills_pending_slot(self, resolver):
        """Test that the answer completes the command without losing slots."""
        first = resolver.resolve(IntentLabel.ADD_TODO, {"date": "friday"}, utterance="remind me friday")

        outcome = resolver.answer(first.session, "Call the bank")

        assert isinstance(outcome, Ready)
        assert outcome.command.title == "Call the bank"
        assert outcome.command.due_on == date(2026, 10, 23)
        assert outcome.preview == "Add task: Call the bank, due 2026-10-23"

    def test_answer_moves_to_next_slot(self, resolver):
        """Test that a good answer can reveal the next missing slot."""
        first = resolver.resolve(IntentLabel.RECORD_EXPENSE, {"category": "zebra"})
        assert first.slot == Slot.AMOUNT

        second = resolver.answer(first.session, "12")

        assert isinstance(second, NeedsClarification)
        assert second.slot == Slot.CATEGORY
        assert second.session.slots == {"category": "zebra", "amount": "12"}

    def test_number_picks_candidate(self, card_resolver):
        """Test that "2" picks the second listed candidate."""
        first = card_resolver.resolve(IntentLabel.RECORD_EXPENSE, {"amount": "20", "category": "card"})

        outcome = card_resolver.answer(first.session, "2")

        assert isinstance(outcome, Ready)
        assert outcome.command.category_id == "cat-debit"

    def test_name_answer_resolves_ambiguity(self, card_resolver):
        """Test answering with the full name."""
        first = card_resolver.resolve(IntentLabel.RECORD_EXPENSE, {"amount": "20", "category": "card"})
        outcome = card_resolver.answer(first.session, "credit card")
        assert outcome.command.category_id == "cat-credit"

    @pytest.mark.parametrize("reply", ["skip", "None", "no category", "  never   mind "])
    def test_skip_word_clears_optional_slot(self, resolver, reply):
        """Test that declining an optional slot falls back to its default."""
        first = resolver.resolve(IntentLabel.RECORD_EXPENSE, {"amount": "12", "category": "zebra"})
        assert first.slot == Slot.CATEGORY

        outcome = resolver.answer(first.session, reply)

        assert isinstance(outcome, Ready)
        assert outcome.command.category_id is None
        assert outcome.command.amount == Decimal("12.00")

    def test_skip_word_does_not_clear_required_slot(self, resolver):
        """Test that a required slot is asked again."""
        first = resolver.resolve(IntentLabel.RECORD_EXPENSE, {"category": "lunch"})

        outcome = resolver.answer(first.session, "skip")

        assert isinstance(outcome, NeedsClarification)
        assert outcome.slot == Slot.AMOUNT
