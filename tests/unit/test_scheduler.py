"""
Unit tests for engine/scheduler.py
"""

import asyncio

import pytest
from unittest.mock import Mock

from bindflow.engine.scheduler import DebounceScheduler


class TestWithoutLoop:
    """Test behaviour when no event loop is running."""

    def test_schedule_returns_false(self):
        """Test nothing is armed without a loop."""
        scheduler = DebounceScheduler()
        callback = Mock()

        assert scheduler.schedule("a.x", 0.01, callback) is False
        assert scheduler.pending_count == 0
        callback.assert_not_called()

    def test_cancel_unknown_key(self):
        scheduler = DebounceScheduler()
        assert scheduler.cancel("a.x") is False
        assert scheduler.cancel_all() == 0


class TestWithLoop:
    """Test timers on the running loop."""

    @pytest.mark.asyncio
    async def test_fires_once_with_key(self):
        scheduler = DebounceScheduler()
        callback = Mock()

        assert scheduler.schedule("a.x", 0.005, callback) is True
        assert scheduler.is_pending("a.x")

        await asyncio.sleep(0.05)

        callback.assert_called_once_with("a.x")
        assert not scheduler.is_pending("a.x")

    @pytest.mark.asyncio
    async def test_rearm_cancels_previous(self):
        """Test re-arming a key replaces its timer."""
        scheduler = DebounceScheduler()
        first = Mock()
        second = Mock()

        scheduler.schedule("a.x", 0.005, first)
        scheduler.schedule("a.x", 0.005, second)
        assert scheduler.pending_keys() == ["a.x"]

        await asyncio.sleep(0.05)

        first.assert_not_called()
        second.assert_called_once_with("a.x")

    @pytest.mark.asyncio
    async def test_keys_are_independent(self):
        scheduler = DebounceScheduler()
        callback = Mock()

        scheduler.schedule("a.x", 0.005, callback)
        scheduler.schedule("b.y", 0.005, callback)
        await asyncio.sleep(0.05)

        assert callback.call_count == 2

    @pytest.mark.asyncio
    async def test_cancel_all(self):
        scheduler = DebounceScheduler()
        callback = Mock()

        scheduler.schedule("a.x", 0.005, callback)
        scheduler.schedule("b.y", 0.005, callback)
        assert scheduler.cancel_all() == 2

        await asyncio.sleep(0.05)
        callback.assert_not_called()
