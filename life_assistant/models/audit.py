"""
Audit Models for Life Assistant

Every significant action in the system is logged for audit purposes.
This provides:
1. Traceability from utterance to executed command
2. Debugging information when things go wrong
3. A record of rejected utterances, used to grow intent coverage

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Command pipeline
    UTTERANCE_RECEIVED = "utterance_received"
    INTENT_CLASSIFIED = "intent_classified"
    CLASSIFICATION_FAILED = "classification_failed"
    COMMAND_PARSED = "command_parsed"
    CLARIFICATION_REQUESTED = "clarification_requested"
    COMMAND_REJECTED = "command_rejected"
    COMMAND_EXECUTED = "command_executed"
    COMMAND_FAILED = "command_failed"

    # Insight pipeline
    ANALYSIS_REFRESHED = "analysis_refreshed"
    ANALYSIS_INVALIDATED = "analysis_invalidated"
    ANALYSIS_FAILED = "analysis_failed"
    ANALYSES_PURGED = "analyses_purged"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # What the event is about: a module name, a command kind...
    subject: Optional[str] = Field(
        default=None,
        description="Module or command kind this event relates to"
    )

    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID shared by every event of one utterance or refresh"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "subject": self.subject,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.utterance_received(text, correlation_id)
        event = AuditEventBuilder.command_executed("add_todo", "productivity", summary, correlation_id)
    """

    @staticmethod
    def utterance_received(
        utterance: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.UTTERANCE_RECEIVED,
            correlation_id=correlation_id,
            description="Utterance received",
            details={"utterance": utterance[:200]},
            is_user_action=True,
        )

    @staticmethod
    def intent_classified(
        intent: str,
        slot_names: list[str],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INTENT_CLASSIFIED,
            subject=intent,
            correlation_id=correlation_id,
            description=f"Utterance classified as {intent}",
            details={"slots": sorted(slot_names)},
        )

    @staticmethod
    def classification_failed(
        error_message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CLASSIFICATION_FAILED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description="Classification failed; treated as UNKNOWN",
            error_message=error_message,
        )

    @staticmethod
    def command_parsed(
        command_kind: str,
        preview: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COMMAND_PARSED,
            subject=command_kind,
            correlation_id=correlation_id,
            description=f"Command ready: {preview}"[:500],
        )

    @staticmethod
    def clarification_requested(
        intent: str,
        slot: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CLARIFICATION_REQUESTED,
            subject=intent,
            correlation_id=correlation_id,
            description=f"Asked user about slot '{slot}'",
            details={"slot": slot},
        )

    @staticmethod
    def command_rejected(
        intent: str,
        reason: str,
        utterance: Optional[str],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COMMAND_REJECTED,
            severity=AuditSeverity.WARNING,
            subject=intent,
            correlation_id=correlation_id,
            description=f"Utterance rejected: {reason}",
            details={
                "reason": reason,
                "utterance": (utterance or "")[:200],
            },
        )

    @staticmethod
    def command_executed(
        command_kind: str,
        module: str,
        summary: str,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COMMAND_EXECUTED,
            subject=command_kind,
            correlation_id=correlation_id,
            description=summary[:500],
            details={"module": module},
            is_user_action=True,
        )

    @staticmethod
    def command_failed(
        command_kind: str,
        error_kind: str,
        error_message: str,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COMMAND_FAILED,
            severity=AuditSeverity.ERROR,
            subject=command_kind,
            correlation_id=correlation_id,
            description=f"Command failed ({error_kind})",
            error_message=error_message,
            details={"error_kind": error_kind},
        )

    @staticmethod
    def analysis_refreshed(
        module: str,
        score: Optional[int],
        sentiment: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        score_text = "no score" if score is None else f"score {score}"
        return AuditEvent(
            event_type=AuditEventType.ANALYSIS_REFRESHED,
            subject=module,
            correlation_id=correlation_id,
            description=f"Analysis refreshed for {module}: {score_text}, {sentiment}",
            details={"score": score, "sentiment": sentiment},
        )

    @staticmethod
    def analysis_invalidated(
        module: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ANALYSIS_INVALIDATED,
            subject=module,
            correlation_id=correlation_id,
            description=f"Analysis invalidated for {module}",
            details={"reason": reason},
        )

    @staticmethod
    def analysis_failed(
        module: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ANALYSIS_FAILED,
            severity=AuditSeverity.ERROR,
            subject=module,
            correlation_id=correlation_id,
            description=f"Analysis refresh failed for {module}",
            error_message=error_message,
        )

    @staticmethod
    def analyses_purged(
        modules: list[str],
        max_age_days: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ANALYSES_PURGED,
            description=f"Purged {len(modules)} analyses older than {max_age_days} days",
            details={"modules": modules},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={"service": service},
            correlation_id=correlation_id,
        )
