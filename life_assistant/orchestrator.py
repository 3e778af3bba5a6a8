"""
Main Orchestrator for Life Assistant

This module ties together all the components and defines the
end-to-end flows for:
1. Insights (records -> metrics -> score -> analysis -> cache)
2. Commands (utterance -> classify -> parse -> clarify -> execute)

DESIGN DECISION: The orchestrator enforces the boundaries:
- No command runs until every required slot is resolved
- A failed command leaves the cached analysis untouched
- Every step is audited

This is the "glue" that ensures the system works correctly
even when individual components might behave unexpectedly.
"""

from datetime import timedelta
from typing import Optional
from uuid import UUID

import structlog

from life_assistant.agents import GeminiIntentClassifier, IntentClassification, IntentClassifier
from life_assistant.audit import AuditLogger, configure_logging, create_correlation_id
from life_assistant.commands import AmbiguityResolver, CommandExecutor, CommandParser
from life_assistant.config import Settings, get_settings, validate_all_settings
from life_assistant.insights import AnalysisCache, InsightEngine, local_now
from life_assistant.insights.cache import Clock
from life_assistant.models.command import (
    ClarificationSession,
    ExecutionResult,
    NeedsClarification,
    ParseOutcome,
    Ready,
    Rejected,
)
from life_assistant.models.insight import Analysis, Module
from life_assistant.services.repositories import (
    AuditStorageInterface,
    CategoryLookup,
    RepositoryRegistry,
    StaticCategoryLookup,
)


logger = structlog.get_logger("life_assistant.orchestrator")


class CommandFlow:
    """
    Orchestrates the command flow.

    Flow:
    1. Utterance -> classifier (intent + raw slots)
    2. Parse -> Ready / NeedsClarification / Rejected
    3. Clarify -> user answers, parse again (no reclassification)
    4. Execute -> exactly one repository call

    The classifier is the only non-deterministic step and its output
    is never trusted past the parser.
    """

    def __init__(
        self,
        resolver: AmbiguityResolver,
        executor: CommandExecutor,
        classifier: Optional[IntentClassifier] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._resolver = resolver
        self._executor = executor
        self._classifier = classifier
        self._audit_logger = audit_logger

    async def _classify(self, utterance: str, correlation_id: UUID) -> IntentClassification:
        try:
            classification = await self._classifier.classify(utterance)
        except Exception as e:
            if self._audit_logger:
                await self._audit_logger.log_classification_failed(str(e), correlation_id)
            return IntentClassification.unknown()

        if self._audit_logger:
            await self._audit_logger.log_intent_classified(
                classification.intent.value,
                list(classification.slots),
                correlation_id,
            )
        return classification

    async def _audit_outcome(
        self,
        outcome: ParseOutcome,
        intent: str,
        utterance: Optional[str],
        correlation_id: UUID,
    ) -> None:
        if not self._audit_logger:
            return
        if isinstance(outcome, Ready):
            await self._audit_logger.log_command_parsed(
                outcome.command.kind, outcome.preview, correlation_id
            )
        elif isinstance(outcome, NeedsClarification):
            await self._audit_logger.log_clarification_requested(
                intent, outcome.slot.value, correlation_id
            )
        elif isinstance(outcome, Rejected):
            await self._audit_logger.log_command_rejected(
                intent, outcome.reason, utterance, correlation_id
            )

    async def submit_utterance(
        self,
        text: str,
        correlation_id: Optional[UUID] = None,
    ) -> ParseOutcome:
        """
        Turn a transcribed utterance into a parse outcome.

        Nothing is executed here; a Ready outcome is handed back so the
        caller can show its preview and then call run_command.
        """
        correlation_id = correlation_id or create_correlation_id()
        utterance = (text or "").strip()

        if self._audit_logger:
            await self._audit_logger.log_utterance_received(utterance, correlation_id)

        if not utterance:
            outcome = self._resolver.reject("empty")
            await self._audit_outcome(outcome, "UNKNOWN", utterance, correlation_id)
            return outcome

        if self._classifier is None:
            outcome = self._resolver.reject("unavailable")
            await self._audit_outcome(outcome, "UNKNOWN", utterance, correlation_id)
            return outcome

        classification = await self._classify(utterance, correlation_id)
        outcome = self._resolver.resolve(
            classification.intent,
            classification.slots,
            utterance=utterance,
        )
        await self._audit_outcome(
            outcome, classification.intent.value, utterance, correlation_id
        )
        return outcome

    async def submit_clarification_answer(
        self,
        session: ClarificationSession,
        answer: str,
        correlation_id: Optional[UUID] = None,
    ) -> ParseOutcome:
        """Resume a clarification with the user's answer."""
        correlation_id = correlation_id or create_correlation_id()
        outcome = self._resolver.answer(session, answer)
        await self._audit_outcome(
            outcome, session.intent.value, session.utterance, correlation_id
        )
        return outcome

    async def run_command(
        self,
        command,
        correlation_id: Optional[UUID] = None,
    ) -> ExecutionResult:
        return await self._executor.execute(command, correlation_id)


class LifeAssistant:
    """
    The exposed interface of the insight and command core.

    Usage:
        assistant = create_assistant(repositories=registry, category_lookup=lookup)
        analysis = await assistant.refresh_analysis(Module.FINANCE)
        outcome = await assistant.submit_utterance("spent 45 on lunch today")
        if isinstance(outcome, Ready):
            result = await assistant.run_command(outcome.command)
    """

    def __init__(
        self,
        engine: InsightEngine,
        command_flow: CommandFlow,
    ):
        self._engine = engine
        self._command_flow = command_flow

    @property
    def engine(self) -> InsightEngine:
        return self._engine

    # Insights

    async def get_analysis(self, module: Module) -> Optional[Analysis]:
        """The cached analysis, stale or not, without computing anything."""
        return self._engine.get(module)

    async def refresh_analysis(self, module: Module, force: bool = False) -> Analysis:
        """A fresh analysis; may await a refresh already in flight."""
        return await self._engine.refresh(module, force=force)

    async def refresh_all(self, force: bool = False) -> dict[Module, Analysis]:
        return await self._engine.refresh_all(force=force)

    async def purge_stale(self) -> list[Module]:
        return await self._engine.purge_stale()

    # Commands

    async def submit_utterance(
        self,
        text: str,
        correlation_id: Optional[UUID] = None,
    ) -> ParseOutcome:
        return await self._command_flow.submit_utterance(text, correlation_id)

    async def submit_clarification_answer(
        self,
        session: ClarificationSession,
        answer: str,
        correlation_id: Optional[UUID] = None,
    ) -> ParseOutcome:
        return await self._command_flow.submit_clarification_answer(
            session, answer, correlation_id
        )

    async def run_command(
        self,
        command,
        correlation_id: Optional[UUID] = None,
    ) -> ExecutionResult:
        return await self._command_flow.run_command(command, correlation_id)


def create_assistant(
    repositories: Optional[RepositoryRegistry] = None,
    category_lookup: Optional[CategoryLookup] = None,
    classifier: Optional[IntentClassifier] = None,
    audit_storage: Optional[AuditStorageInterface] = None,
    settings: Optional[Settings] = None,
    clock: Clock = local_now,
    use_gemini: bool = True,
) -> LifeAssistant:
    """
    Factory function to create a fully wired assistant.

    Args:
        repositories: Domain repositories. In-memory ones if None.
        category_lookup: Valid category and habit names. Empty if None.
        classifier: Intent classifier. If None and use_gemini is set,
                    a Gemini classifier is built from settings.
        audit_storage: Audit persistence. Local-only logging if None.
        settings: Settings root. get_settings() if None.
        clock: Source of "now" for every component.
        use_gemini: Set to False for running without an API key.

    Returns:
        The assistant
    """
    settings = settings or get_settings()
    status = validate_all_settings(settings)
    configure_logging(settings.app.effective_log_level)

    audit_logger = AuditLogger(audit_storage)
    repositories = repositories or RepositoryRegistry.in_memory()
    category_lookup = category_lookup or StaticCategoryLookup()
    insight_settings = settings.insights

    if classifier is None and use_gemini:
        if status["gemini"]:
            classifier = GeminiIntentClassifier(settings.gemini, audit_logger)
        else:
            # Gemini not configured - continue without voice commands
            logger.warning("classifier_not_configured", error=status["gemini_error"])

    cache = AnalysisCache(
        ttl=timedelta(hours=insight_settings.cache_ttl_hours),
        clock=clock,
    )
    engine = InsightEngine(
        repositories=repositories,
        cache=cache,
        settings=insight_settings,
        clock=clock,
        audit_logger=audit_logger,
    )
    parser = CommandParser(category_lookup, settings=settings.commands, clock=clock)
    executor = CommandExecutor(repositories, cache, clock=clock, audit_logger=audit_logger)
    command_flow = CommandFlow(
        resolver=AmbiguityResolver(parser),
        executor=executor,
        classifier=classifier,
        audit_logger=audit_logger,
    )

    return LifeAssistant(engine, command_flow)
