"""
Tests for Life Assistant

Test strategy:
1. Unit tests for individual components (models, extractors, parser)
2. Integration tests for flows (with in-memory repositories)
3. No real API calls in tests (stub classifier)
"""

import pytest
from datetime import date, timedelta
from decimal import Decimal
from uuid import uuid4

from pydantic import TypeAdapter, ValidationError

from life_assistant.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from life_assistant.models.command import (
    AddTodo,
    CheckHabit,
    ClarificationSession,
    IntentLabel,
    NeedsClarification,
    ParseOutcome,
    QuerySummary,
    RecordTransaction,
    Slot,
    SummaryMetric,
    _CommandBase,
)
from life_assistant.models.insight import (
    Analysis,
    AnalysisDetails,
    MetricBundle,
    Module,
    Sentiment,
)
from life_assistant.models.records import (
    SavingsRecord,
    TodoRecord,
    TransactionType,
)

from conftest import TODAY, make_analysis


class TestSentiment:
    """Tests for the score -> sentiment thresholds."""

    def test_every_score_maps_to_its_band(self):
        """Test the thresholds over the whole 0..100 range."""
        for value in range(0, 101):
            sentiment = Sentiment.from_score(value)
            if value >= 70:
                assert sentiment == Sentiment.POSITIVE
            elif value >= 40:
                assert sentiment == Sentiment.NEUTRAL
            else:
                assert sentiment == Sentiment.NEGATIVE

    def test_missing_score_is_neutral(self):
        """Test that an unknown score reads as NEUTRAL."""
        assert Sentiment.from_score(None) == Sentiment.NEUTRAL


class TestInsightModels:
    """Tests for MetricBundle, AnalysisDetails and Analysis."""

    def test_bundle_rejects_empty_window(self):
        """Test that the window end must be after its start."""
        with pytest.raises(ValidationError):
            MetricBundle(module=Module.FINANCE, window_start=TODAY, window_end=TODAY)

    def test_bundle_is_empty_without_records(self):
        """Test is_empty for a domain bundle."""
        bundle = MetricBundle(
            module=Module.HABIT,
            metrics={"record_count": 0.0, "completion_rate": 0.0},
            window_start=TODAY,
            window_end=TODAY + timedelta(days=1),
        )
        assert bundle.is_empty
        assert bundle.window_days == 1

    def test_overall_bundle_is_empty_without_domain_scores(self):
        """Test is_empty for an OVERALL bundle."""
        empty = MetricBundle(module=Module.OVERALL, window_start=TODAY, window_end=TODAY + timedelta(days=1))
        full = MetricBundle(
            module=Module.OVERALL,
            metrics={"finance": 60.0},
            window_start=TODAY,
            window_end=TODAY + timedelta(days=1),
        )
        assert empty.is_empty
        assert not full.is_empty

    def test_details_cannot_carry_motivation_and_encouragement(self):
        """Test that only one closing line is allowed."""
        with pytest.raises(ValidationError):
            AnalysisDetails(motivation="Keep going", encouragement="Well done")

    def test_details_limit_list_lengths(self):
        """Test that each list holds at most three items."""
        with pytest.raises(ValidationError):
            AnalysisDetails(suggestions=["a", "b", "c", "d"])

    def test_analysis_rejects_inconsistent_sentiment(self):
        """Test that POSITIVE cannot be shown with a low score."""
        with pytest.raises(ValidationError):
            Analysis(
                module=Module.FINANCE,
                score=35,
                sentiment=Sentiment.POSITIVE,
                title="Wrong",
                content="Wrong.",
                period_start=TODAY,
                period_end=TODAY + timedelta(days=1),
            )

    def test_analysis_without_score(self):
        """Test that a score-less analysis is allowed."""
        analysis = make_analysis(score=None)
        assert not analysis.has_score
        assert analysis.sentiment == Sentiment.NEUTRAL

    def test_details_serialize_to_json(self):
        """Test that details are plain data."""
        details = AnalysisDetails(highlights=["On budget"], top_priority="Budget")
        data = details.model_dump(mode="json")
        assert data["highlights"] == ["On budget"]
        assert data["motivation"] is None


class TestRecordModels:
    """Tests for domain record shapes."""

    def test_todo_overdue(self):
        """Test the overdue rule for tasks."""
        todo = TodoRecord(title="File taxes", created_on=TODAY - timedelta(days=5), due_on=TODAY - timedelta(days=1))
        assert todo.is_overdue(TODAY)
        assert not todo.is_overdue(TODAY - timedelta(days=1))

    def test_todo_completion_date_requires_completed(self):
        """Test that an open task cannot carry a completion date."""
        with pytest.raises(ValidationError):
            TodoRecord(title="x", created_on=TODAY, completed_on=TODAY)

    def test_savings_movement_cannot_be_zero(self):
        """Test that zero-amount savings movements are rejected."""
        with pytest.raises(ValidationError):
            SavingsRecord(
                plan_id="p1",
                plan_name="Holiday",
                amount=Decimal("0"),
                occurred_on=TODAY,
                target_amount=Decimal("1000"),
            )


class TestCommandModels:
    """Tests for command variants and parse outcomes."""

    def test_intent_label_parse_is_lenient(self):
        """Test IntentLabel.parse with odd inputs."""
        assert IntentLabel.parse(" record_expense ") == IntentLabel.RECORD_EXPENSE
        assert IntentLabel.parse("dance") == IntentLabel.UNKNOWN
        assert IntentLabel.parse(None) == IntentLabel.UNKNOWN
        assert IntentLabel.parse(42) == IntentLabel.UNKNOWN

    def test_record_transaction_rejects_non_positive_amount(self):
        """Test that a command cannot carry a zero amount."""
        with pytest.raises(ValidationError):
            RecordTransaction(
                transaction_type=TransactionType.EXPENSE,
                amount=Decimal("0"),
                occurred_on=TODAY,
            )

    def test_confirmation_policy(self):
        """Test that mutations need confirmation and queries do not."""
        todo = AddTodo(title="Buy milk")
        query = QuerySummary(
            metric=SummaryMetric.EXPENSE,
            period_label="this month",
            period_start=TODAY.replace(day=1),
            period_end=date(2026, 11, 1),
        )
        assert todo.requires_confirmation
        assert not query.requires_confirmation
        assert query.module == Module.FINANCE

    def test_describe(self):
        """Test one-line previews."""
        command = RecordTransaction(
            transaction_type=TransactionType.EXPENSE,
            amount=Decimal("45.00"),
            category_name="Dining",
            occurred_on=TODAY,
        )
        assert command.describe() == "Record expense: Dining, amount 45.00 on 2026-10-18"
        habit = CheckHabit(habit_id="h-run", habit_name="Morning run", checked_on=TODAY)
        assert habit.describe() == "Check in habit: Morning run"

    def test_command_base_is_abstract(self):
        """Test that a command without module and describe cannot be built."""
        class Incomplete(_CommandBase):
            kind: str = "incomplete"

        with pytest.raises(TypeError):
            Incomplete()

    def test_parse_outcome_is_a_tagged_union(self):
        """Test that outcomes round-trip through JSON by their status tag."""
        outcome = NeedsClarification(
            slot=Slot.TITLE,
            question="What is the task?",
            session=ClarificationSession(intent=IntentLabel.ADD_TODO, pending_slot=Slot.TITLE),
        )
        adapter = TypeAdapter(ParseOutcome)
        restored = adapter.validate_json(adapter.dump_json(outcome))
        assert isinstance(restored, NeedsClarification)
        assert restored.session.pending_slot == Slot.TITLE


class TestAuditModels:
    """Tests for audit models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.COMMAND_EXECUTED,
            description="Recorded expense",
        )
        assert event.event_id is not None
        assert event.timestamp is not None
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_builder_command_rejected(self):
        """Test AuditEventBuilder for rejected utterances."""
        correlation_id = uuid4()
        event = AuditEventBuilder.command_rejected(
            intent="UNKNOWN",
            reason="unsupported",
            utterance="play some music",
            correlation_id=correlation_id,
        )
        assert event.event_type == AuditEventType.COMMAND_REJECTED
        assert event.severity == AuditSeverity.WARNING
        assert event.correlation_id == correlation_id
        assert event.details["utterance"] == "play some music"

    def test_audit_event_to_log_dict(self):
        """Test conversion to a structured log dict."""
        event = AuditEventBuilder.analysis_refreshed("finance", None, "NEUTRAL")
        data = event.to_log_dict()
        assert data["event_type"] == "analysis_refreshed"
        assert data["subject"] == "finance"
        assert data["correlation_id"] is None
        assert "no score" in data["description"]
