"""Tests for the analysis cache."""

import asyncio
import time
from datetime import datetime, timedelta, timezone

import pytest

from life_assistant.insights.cache import AnalysisCache, local_now
from life_assistant.models.insight import Module

from conftest import NOW, make_analysis


@pytest.fixture
def cache(clock):
    return AnalysisCache(ttl=timedelta(hours=6), clock=clock)


class TestStaleness:
    """Tests for is_stale."""

    def test_missing_entry_is_stale(self, cache):
        """Test that a module never computed is stale."""
        assert cache.get(Module.FINANCE) is None
        assert cache.is_stale(Module.FINANCE)

    def test_ttl_expiry(self, cache, clock):
        """Test that an entry goes stale once older than the TTL."""
        cache.put(Module.FINANCE, make_analysis(last_updated=NOW))
        assert not cache.is_stale(Module.FINANCE)

        clock.advance(hours=6)
        assert not cache.is_stale(Module.FINANCE)

        clock.advance(seconds=1)
        assert cache.is_stale(Module.FINANCE)

    def test_invalidate_keeps_entry_readable(self, cache):
        """Test that invalidate marks stale without deleting."""
        analysis = make_analysis()
        cache.put(Module.FINANCE, analysis)

        cache.invalidate(Module.FINANCE)

        assert cache.is_stale(Module.FINANCE)
        assert cache.is_invalidated(Module.FINANCE)
        assert cache.get(Module.FINANCE) is analysis

    def test_put_clears_invalidation(self, cache):
        """Test that a new entry replaces an invalidated one."""
        cache.put(Module.FINANCE, make_analysis())
        cache.invalidate(Module.FINANCE)
        cache.put(Module.FINANCE, make_analysis(score=50))
        assert not cache.is_stale(Module.FINANCE)

    def test_put_rejects_wrong_module(self, cache):
        """Test that an analysis is only stored under its own module."""
        with pytest.raises(ValueError):
            cache.put(Module.HABIT, make_analysis(module=Module.FINANCE))


class TestRefresh:
    """Tests for refresh()."""

    @pytest.mark.asyncio
    async def test_fresh_entry_is_returned_without_compute(self, cache):
        """Test that refresh does not recompute a fresh entry."""
        analysis = make_analysis()
        cache.put(Module.FINANCE, analysis)
        calls = []

        async def compute():
            calls.append(1)
            return make_analysis(score=10)

        assert await cache.refresh(Module.FINANCE, compute) is analysis
        assert calls == []

    @pytest.mark.asyncio
    async def test_force_recomputes(self, cache):
        """Test that force bypasses a fresh entry."""
        cache.put(Module.FINANCE, make_analysis())
        replacement = make_analysis(score=20)

        async def compute():
            return replacement

        assert await cache.refresh(Module.FINANCE, compute, force=True) is replacement
        assert cache.get(Module.FINANCE) is replacement

    @pytest.mark.asyncio
    async def test_concurrent_refreshes_share_one_compute(self, cache):
        """Test that a second refresh attaches to the one in flight."""
        release = asyncio.Event()
        calls = []
        result = make_analysis()

        async def compute():
            calls.append(1)
            await release.wait()
            return result

        first = asyncio.create_task(cache.refresh(Module.FINANCE, compute))
        await asyncio.sleep(0)
        assert cache.is_refreshing(Module.FINANCE)
        second = asyncio.create_task(cache.refresh(Module.FINANCE, compute, force=True))
        await asyncio.sleep(0)

        release.set()
        a, b = await asyncio.gather(first, second)

        assert len(calls) == 1
        assert a is b is result
        assert not cache.is_refreshing(Module.FINANCE)

    @pytest.mark.asyncio
    async def test_failure_reaches_every_waiter(self, cache):
        """Test that a failing compute fails all waiters and keeps the old entry."""
        previous = make_analysis()
        cache.put(Module.FINANCE, previous)
        cache.invalidate(Module.FINANCE)
        release = asyncio.Event()

        async def compute():
            await release.wait()
            raise RuntimeError("store offline")

        first = asyncio.create_task(cache.refresh(Module.FINANCE, compute))
        await asyncio.sleep(0)
        second = asyncio.create_task(cache.refresh(Module.FINANCE, compute))
        await asyncio.sleep(0)
        release.set()

        results = await asyncio.gather(first, second, return_exceptions=True)

        assert all(isinstance(r, RuntimeError) for r in results)
        assert cache.get(Module.FINANCE) is previous
        assert cache.is_stale(Module.FINANCE)

    @pytest.mark.asyncio
    async def test_invalidate_during_refresh_leaves_entry_stale(self, cache):
        """Test that an invalidate racing a refresh is not lost."""
        release = asyncio.Event()
        result = make_analysis()

        async def compute():
            await release.wait()
            return result

        task = asyncio.create_task(cache.refresh(Module.FINANCE, compute))
        await asyncio.sleep(0)
        cache.invalidate(Module.FINANCE)
        release.set()

        assert await task is result
        assert cache.get(Module.FINANCE) is result
        assert cache.is_stale(Module.FINANCE)

    @pytest.mark.asyncio
    async def test_modules_refresh_independently(self, cache):
        """Test that a slow module does not block another."""
        release = asyncio.Event()

        async def slow():
            await release.wait()
            return make_analysis(module=Module.FINANCE)

        async def fast():
            return make_analysis(module=Module.HABIT)

        slow_task = asyncio.create_task(cache.refresh(Module.FINANCE, slow))
        await asyncio.sleep(0)

        habit = await cache.refresh(Module.HABIT, fast)
        assert habit.module == Module.HABIT
        assert not slow_task.done()

        release.set()
        await slow_task


class TestPurge:
    """Tests for purge_older_than()."""

    def test_purges_only_old_entries(self, cache, clock):
        """Test that entries older than the cutoff are removed."""
        cache.put(Module.FINANCE, make_analysis(last_updated=NOW - timedelta(days=40)))
        cache.put(Module.HABIT, make_analysis(module=Module.HABIT, last_updated=NOW))

        purged = cache.purge_older_than(timedelta(days=30))

        assert purged == [Module.FINANCE]
        assert cache.get(Module.FINANCE) is None
        assert cache.get(Module.HABIT) is not None
        assert set(cache.snapshot()) == {Module.HABIT}


@pytest.mark.skipif(not hasattr(time, "tzset"), reason="needs time.tzset")
class TestLocalNow:
    """Tests for the default clock."""

    @pytest.fixture
    def far_east_zone(self, monkeypatch):
        monkeypatch.setenv("TZ", "Etc/GMT-14")
        time.tzset()
        yield
        monkeypatch.undo()
        time.tzset()

    def test_calendar_day_follows_local_zone(self, far_east_zone):
        """Test that dates come from the local zone, not UTC."""
        now = local_now()
        assert now.utcoffset() == timedelta(hours=14)
        assert now.date() == (datetime.now(timezone.utc) + timedelta(hours=14)).date()
