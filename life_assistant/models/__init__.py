"""
Data Models Package

This package contains all Pydantic models used by Life Assistant.
All data flowing through the system must conform to these schemas.
"""

from life_assistant.models.insight import (
    NEUTRAL_THRESHOLD,
    POSITIVE_THRESHOLD,
    Analysis,
    AnalysisDetails,
    MetricBundle,
    Module,
    Sentiment,
)
from life_assistant.models.records import (
    DiaryRecord,
    HabitCheckinRecord,
    SavingsRecord,
    TodoPriority,
    TodoRecord,
    TransactionRecord,
    TransactionType,
)
from life_assistant.models.command import (
    SLOT_PRIORITY,
    AddTodo,
    CheckHabit,
    ClarificationSession,
    Command,
    ErrorKind,
    ExecutionResult,
    Failed,
    IntentLabel,
    NeedsClarification,
    ParseOutcome,
    QuerySummary,
    Ready,
    RecordTransaction,
    Rejected,
    Slot,
    Success,
    SummaryMetric,
)
from life_assistant.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Insight models
    "NEUTRAL_THRESHOLD",
    "POSITIVE_THRESHOLD",
    "Analysis",
    "AnalysisDetails",
    "MetricBundle",
    "Module",
    "Sentiment",
    # Domain records
    "DiaryRecord",
    "HabitCheckinRecord",
    "SavingsRecord",
    "TodoPriority",
    "TodoRecord",
    "TransactionRecord",
    "TransactionType",
    # Command models
    "SLOT_PRIORITY",
    "AddTodo",
    "CheckHabit",
    "ClarificationSession",
    "Command",
    "ErrorKind",
    "ExecutionResult",
    "Failed",
    "IntentLabel",
    "NeedsClarification",
    "ParseOutcome",
    "QuerySummary",
    "Ready",
    "RecordTransaction",
    "Rejected",
    "Slot",
    "Success",
    "SummaryMetric",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
