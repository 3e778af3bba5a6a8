"""
Audit Logger

DESIGN DECISION: Every significant action in the system is logged.
This provides:
1. Traceability from utterance to executed command
2. Debugging capability when an analysis refresh fails
3. History of rejected utterances

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

import logging
import sys
from typing import Optional
from uuid import UUID, uuid4

import structlog

from life_assistant.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from life_assistant.services.repositories import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """
    Route the structured log to stdout at the given level.

    structlog hands finished JSON lines to the standard library logger,
    so this only sets the level and a bare message format.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit store (for persistence), when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("life_assistant.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_utterance_received(
        self,
        utterance: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.utterance_received(utterance, correlation_id))

    async def log_intent_classified(
        self,
        intent: str,
        slot_names: list[str],
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.intent_classified(intent, slot_names, correlation_id))

    async def log_classification_failed(
        self,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log a classifier failure that was downgraded to UNKNOWN."""
        await self.log(AuditEventBuilder.classification_failed(error_message, correlation_id))

    async def log_command_parsed(
        self,
        command_kind: str,
        preview: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.command_parsed(command_kind, preview, correlation_id))

    async def log_clarification_requested(
        self,
        intent: str,
        slot: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.clarification_requested(intent, slot, correlation_id))

    async def log_command_rejected(
        self,
        intent: str,
        reason: str,
        utterance: Optional[str],
        correlation_id: UUID,
    ) -> None:
        await self.log(
            AuditEventBuilder.command_rejected(intent, reason, utterance, correlation_id)
        )

    async def log_command_executed(
        self,
        command_kind: str,
        module: str,
        summary: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(
            AuditEventBuilder.command_executed(command_kind, module, summary, correlation_id)
        )

    async def log_command_failed(
        self,
        command_kind: str,
        error_kind: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(
            AuditEventBuilder.command_failed(command_kind, error_kind, error_message, correlation_id)
        )

    async def log_analysis_refreshed(
        self,
        module: str,
        score: Optional[int],
        sentiment: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(
            AuditEventBuilder.analysis_refreshed(module, score, sentiment, correlation_id)
        )

    async def log_analysis_invalidated(
        self,
        module: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.analysis_invalidated(module, reason, correlation_id))

    async def log_analysis_failed(
        self,
        module: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.analysis_failed(module, error_message, correlation_id))

    async def log_analyses_purged(
        self,
        modules: list[str],
        max_age_days: int,
    ) -> None:
        await self.log(AuditEventBuilder.analyses_purged(modules, max_age_days))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log external service error."""
        event = AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (an utterance, a refresh).
    Pass it through all subsequent operations.
    """
    return uuid4()
