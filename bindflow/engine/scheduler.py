"""
BINDFLOW Debounce Scheduler

Per-port debounce timers on an asyncio event loop.

Re-arming a key cancels its previous timer, so rapid writes coalesce into a
single firing. All timers belong to the scheduler instance and are cancelled
together by cancel_all().
"""

from __future__ import annotations
from typing import Callable, Dict, List, Optional
import asyncio
import logging

logger = logging.getLogger(__name__)


class DebounceScheduler:
    """Keyed one-shot timers with cancel-on-rearm semantics."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop
        self._timers: Dict[str, asyncio.TimerHandle] = {}

    def _resolve_loop(self) -> Optional[asyncio.AbstractEventLoop]:
        if self._loop is not None:
            return self._loop
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            return None

    def schedule(
        self,
        key: str,
        delay_seconds: float,
        callback: Callable[[str], None],
    ) -> bool:
        """
        (Re)arm the timer for key.

        Returns False when no event loop is available; the caller then
        keeps the work pending until it is flushed.
        """
        self.cancel(key)

        loop = self._resolve_loop()
        if loop is None:
            logger.debug(f"No event loop; {key} stays pending until flush")
            return False

        self._timers[key] = loop.call_later(delay_seconds, self._fire, key, callback)
        return True

    def _fire(self, key: str, callback: Callable[[str], None]) -> None:
        self._timers.pop(key, None)
        callback(key)

    def cancel(self, key: str) -> bool:
        handle = self._timers.pop(key, None)
        if handle is None:
            return False
        handle.cancel()
        return True

    def cancel_all(self) -> int:
        """Cancel every armed timer. Returns count cancelled."""
        count = len(self._timers)
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()
        return count

    def is_pending(self, key: str) -> bool:
        return key in self._timers

    def pending_keys(self) -> List[str]:
        return list(self._timers.keys())

    @property
    def pending_count(self) -> int:
        return len(self._timers)
