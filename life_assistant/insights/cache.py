"""
Analysis Cache

Keyed store of the latest Analysis per module.

An entry is stale when:
1. There is no entry at all
2. now - last_updated exceeds the TTL
3. invalidate() was called for the module since the entry was put

CRITICAL: At most one refresh per module is in flight. A refresh that
arrives while one is running attaches to the running computation and
receives its result (or its exception). Refreshes of different modules
never wait on each other.

The clock is injected; nothing here reads the wall clock directly.
"""

import asyncio
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional

from life_assistant.models.insight import Analysis, Module


DEFAULT_TTL = timedelta(hours=6)

Clock = Callable[[], datetime]


def local_now() -> datetime:
    # Aware and local, so .date() is the device's calendar day
    return datetime.now().astimezone()


def _retrieve_exception(future: asyncio.Future) -> None:
    # Marks a failed shared refresh as handled even if no second caller awaited it
    if not future.cancelled():
        future.exception()


class AnalysisCache:
    """
    In-memory analysis store with TTL, invalidation and refresh deduplication.

    Usage:
        cache = AnalysisCache(ttl=timedelta(hours=6), clock=fake_clock)
        analysis = await cache.refresh(Module.FINANCE, compute_finance)
    """

    def __init__(
        self,
        ttl: timedelta = DEFAULT_TTL,
        clock: Clock = local_now,
    ):
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[Module, Analysis] = {}
        self._invalidated: set[Module] = set()
        self._in_flight: dict[Module, asyncio.Future] = {}
        # Bumped by invalidate(); lets a refresh detect an invalidate that
        # landed while it was computing.
        self._generations: dict[Module, int] = {}

    def get(self, module: Module) -> Optional[Analysis]:
        """The current entry, stale or not."""
        return self._entries.get(module)

    def put(self, module: Module, analysis: Analysis) -> None:
        """Store an analysis, overwriting the previous one and clearing any invalidate."""
        if analysis.module is not module:
            raise ValueError(
                f"Cannot store a {analysis.module.value} analysis under {module.value}"
            )
        self._entries[module] = analysis
        self._invalidated.discard(module)

    def invalidate(self, module: Module) -> None:
        """Mark the entry stale. The entry itself stays readable."""
        self._invalidated.add(module)
        self._generations[module] = self._generations.get(module, 0) + 1

    def is_invalidated(self, module: Module) -> bool:
        return module in self._invalidated

    def is_stale(self, module: Module, now: Optional[datetime] = None) -> bool:
        entry = self._entries.get(module)
        if entry is None or module in self._invalidated:
            return True
        now = now or self._clock()
        return now - entry.last_updated > self.ttl

    def is_refreshing(self, module: Module) -> bool:
        return module in self._in_flight

    async def refresh(
        self,
        module: Module,
        compute: Callable[[], Awaitable[Analysis]],
        force: bool = False,
    ) -> Analysis:
        """
        Return a fresh analysis for a module.

        A fresh cached entry is returned as-is unless force is set. While a
        refresh for the module is in flight, every caller (forced or not)
        awaits that one computation.

        If compute raises, every waiter gets the exception and the cache
        keeps whatever entry it had.
        """
        if not force and not self.is_stale(module):
            return self._entries[module]

        running = self._in_flight.get(module)
        if running is not None:
            # Shielded so a cancelled waiter does not cancel the shared work
            return await asyncio.shield(running)

        future = asyncio.get_running_loop().create_future()
        future.add_done_callback(_retrieve_exception)
        self._in_flight[module] = future
        generation = self._generations.get(module, 0)

        try:
            analysis = await compute()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            future.set_exception(e)
            raise
        else:
            self._entries[module] = analysis
            if self._generations.get(module, 0) == generation:
                self._invalidated.discard(module)
            future.set_result(analysis)
            return analysis
        finally:
            self._in_flight.pop(module, None)

    def purge_older_than(
        self,
        max_age: timedelta,
        now: Optional[datetime] = None,
    ) -> list[Module]:
        """
        Drop entries last updated more than max_age ago.

        Returns:
            The purged modules, in display order
        """
        now = now or self._clock()
        purged = [
            module for module in Module
            if module in self._entries
            and now - self._entries[module].last_updated > max_age
        ]
        for module in purged:
            del self._entries[module]
            self._invalidated.discard(module)
        return purged

    def snapshot(self) -> dict[Module, Analysis]:
        """Copy of every current entry."""
        return dict(self._entries)
