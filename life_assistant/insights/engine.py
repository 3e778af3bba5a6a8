"""
Insight Engine

Drives the insight pipeline for one module:

    repository.query_window -> extract -> score -> compose -> cache

Windows:
- FINANCE covers the calendar month to date
- The other domains cover a rolling window ending today
- OVERALL is built from the domain analyses, not from records

DESIGN DECISION: OVERALL reuses the domain refreshes (through the cache,
so an in-flight or fresh domain analysis is shared, not recomputed). A
domain that is empty or whose refresh failed is left out of the average.
"""

import asyncio
from datetime import date, timedelta
from typing import Optional

from life_assistant.audit import AuditLogger, create_correlation_id
from life_assistant.config import InsightSettings
from life_assistant.errors import DataUnavailableError
from life_assistant.insights.cache import AnalysisCache, Clock, local_now
from life_assistant.insights.composer import build_analysis
from life_assistant.insights.extractors import extract
from life_assistant.insights.scoring import score
from life_assistant.models.insight import Analysis, MetricBundle, Module
from life_assistant.services.repositories import RepositoryRegistry


class InsightEngine:
    """
    Computes, caches and serves analyses.

    Usage:
        engine = InsightEngine(repositories, AnalysisCache())
        analysis = await engine.refresh(Module.HABIT)
    """

    def __init__(
        self,
        repositories: RepositoryRegistry,
        cache: AnalysisCache,
        settings: Optional[InsightSettings] = None,
        clock: Clock = local_now,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._repositories = repositories
        self._cache = cache
        self._settings = settings or InsightSettings()
        self._clock = clock
        self._audit_logger = audit_logger

    @property
    def cache(self) -> AnalysisCache:
        return self._cache

    def today(self) -> date:
        return self._clock().date()

    def window_for(self, module: Module, today: Optional[date] = None) -> tuple[date, date]:
        """
        Half-open [start, end) analysis window for a module, ending after today.

        OVERALL spans the widest domain window.
        """
        today = today or self.today()
        end = today + timedelta(days=1)
        rolling_start = today - timedelta(days=self._settings.rolling_window_days - 1)
        month_start = today.replace(day=1)

        if module is Module.FINANCE:
            return month_start, end
        if module is Module.OVERALL:
            return min(month_start, rolling_start), end
        return rolling_start, end

    async def extract(self, module: Module, today: Optional[date] = None) -> MetricBundle:
        """Read one domain's window and reduce it to a metric bundle."""
        start, end = self.window_for(module, today)
        records = await self._repositories.query_window(module, start, end)
        return extract(module, records, start, end)

    async def _extract_with_data(self, module: Module) -> MetricBundle:
        bundle = await self.extract(module)
        if bundle.is_empty:
            raise DataUnavailableError(module.value)
        return bundle

    async def _overall_bundle(self) -> MetricBundle:
        domains = Module.domains()
        results = await asyncio.gather(
            *(self.refresh(domain) for domain in domains),
            return_exceptions=True,
        )

        metrics: dict[str, float] = {}
        for domain, result in zip(domains, results):
            if isinstance(result, Exception):
                # Already audited by the domain refresh; treated as unknown
                continue
            if result.score is not None:
                metrics[domain.value] = float(result.score)

        start, end = self.window_for(Module.OVERALL)
        return MetricBundle(
            module=Module.OVERALL,
            metrics=metrics,
            window_start=start,
            window_end=end,
        )

    async def compute(self, module: Module) -> Analysis:
        """
        Compute an analysis without touching the cache for this module.

        An empty window yields the insufficient-data analysis
        (score None, NEUTRAL), never an error.
        """
        if module is Module.OVERALL:
            bundle = await self._overall_bundle()
        else:
            try:
                bundle = await self._extract_with_data(module)
            except DataUnavailableError:
                start, end = self.window_for(module)
                bundle = MetricBundle(module=module, window_start=start, window_end=end)

        value, sentiment = score(bundle)
        return build_analysis(bundle, value, sentiment, last_updated=self._clock())

    async def _compute_audited(self, module: Module) -> Analysis:
        try:
            analysis = await self.compute(module)
        except Exception as e:
            if self._audit_logger:
                await self._audit_logger.log_analysis_failed(module.value, str(e))
            raise

        if self._audit_logger:
            await self._audit_logger.log_analysis_refreshed(
                module=module.value,
                score=analysis.score,
                sentiment=analysis.sentiment.value,
            )
        return analysis

    async def refresh(self, module: Module, force: bool = False) -> Analysis:
        """
        Fresh analysis for a module, from cache when possible.

        Concurrent calls for one module share a single computation.
        """
        return await self._cache.refresh(
            module,
            lambda: self._compute_audited(module),
            force=force,
        )

    def get(self, module: Module) -> Optional[Analysis]:
        return self._cache.get(module)

    async def invalidate(self, module: Module, reason: str) -> None:
        self._cache.invalidate(module)
        if self._audit_logger:
            await self._audit_logger.log_analysis_invalidated(module.value, reason)

    async def refresh_all(self, force: bool = False) -> dict[Module, Analysis]:
        """
        Scheduled refresh of every domain, then OVERALL.

        Skipped when the OVERALL analysis is younger than the scheduled
        minimum interval, unless forced. One module failing does not
        stop the others; its previous entry (if any) stays cached.

        Returns:
            The analyses that refreshed successfully (empty when skipped)
        """
        overall = self._cache.get(Module.OVERALL)
        min_interval = timedelta(hours=self._settings.scheduled_min_interval_hours)
        if (
            not force
            and overall is not None
            and not self._cache.is_invalidated(Module.OVERALL)
            and self._clock() - overall.last_updated < min_interval
        ):
            return {}

        correlation_id = create_correlation_id()
        domains = Module.domains()
        results = await asyncio.gather(
            *(self.refresh(domain, force=force) for domain in domains),
            return_exceptions=True,
        )

        refreshed: dict[Module, Analysis] = {}
        for domain, result in zip(domains, results):
            if isinstance(result, Exception):
                if self._audit_logger:
                    await self._audit_logger.log_error(
                        error_type="scheduled_refresh_failed",
                        error_message=str(result),
                        details={"module": domain.value},
                        correlation_id=correlation_id,
                    )
                continue
            refreshed[domain] = result

        try:
            refreshed[Module.OVERALL] = await self.refresh(Module.OVERALL, force=True)
        except Exception as e:
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type="scheduled_refresh_failed",
                    error_message=str(e),
                    details={"module": Module.OVERALL.value},
                    correlation_id=correlation_id,
                )

        return refreshed

    async def purge_stale(self) -> list[Module]:
        """Drop analyses older than the configured purge age."""
        max_age_days = self._settings.stale_purge_days
        purged = self._cache.purge_older_than(timedelta(days=max_age_days), now=self._clock())
        if purged and self._audit_logger:
            await self._audit_logger.log_analyses_purged(
                [module.value for module in purged],
                max_age_days,
            )
        return purged
