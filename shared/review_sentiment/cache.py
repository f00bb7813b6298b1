"""
Per-location result cache and single-flight coordination.

AggregateCache holds the last LocationReport per location in memory so that
re-selecting a location does not repeat the LLM calls. SingleFlight lets
concurrent requests for the same location share one computation.
"""

import asyncio
import logging
import threading
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

from .exceptions import CacheError
from .models import LocationReport

logger = logging.getLogger(__name__)


class AggregateCache:
    """
    In-memory cache keyed by location id.
    
    No eviction: the dashboard touches a handful of locations per session.
    Access is guarded by a lock so the cache can be shared across threads.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, LocationReport] = {}
        self._lock = threading.Lock()

    def get(self, location_id: str) -> Optional[LocationReport]:
        """Return the cached report, or None if absent."""
        with self._lock:
            return self._entries.get(location_id)

    def put(self, location_id: str, report: LocationReport) -> None:
        """Store a report, replacing any previous one (last write wins)."""
        if not location_id:
            raise CacheError("Cannot cache a report without a location id")
        with self._lock:
            self._entries[location_id] = report
        logger.debug(f"Cached report for {location_id}")

    def invalidate(self, location_id: Optional[str] = None) -> None:
        """
        Drop cached data.
        
        Args:
            location_id: Specific location to drop, or None to clear all
        """
        with self._lock:
            if location_id is None:
                self._entries.clear()
            else:
                self._entries.pop(location_id, None)

    def __contains__(self, location_id: object) -> bool:
        with self._lock:
            return location_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


@dataclass
class _Flight:
    task: "asyncio.Task[Any]"
    waiters: int = 0


class SingleFlight:
    """
    Share one in-flight coroutine per key.
    
    The first caller for a key starts the computation; callers arriving while
    it runs await the same task. When a caller is cancelled, the shared task is
    cancelled only if no other caller is still waiting on it.
    
    Must be used from a single event loop.
    """

    def __init__(self) -> None:
        self._flights: Dict[str, _Flight] = {}

    def in_flight(self, key: str) -> bool:
        return key in self._flights

    async def do(self, key: str, fn: Callable[[], Awaitable[Any]]) -> Any:
        """Run fn() for key, or join the run already in progress."""
        flight = self._flights.get(key)
        if flight is None:
            task = asyncio.ensure_future(fn())
            flight = _Flight(task=task)
            self._flights[key] = flight
            task.add_done_callback(lambda t, k=key: self._forget(k, t))
        else:
            logger.debug(f"Joining in-flight computation for {key}")

        flight.waiters += 1
        try:
            return await asyncio.shield(flight.task)
        except asyncio.CancelledError:
            if flight.waiters == 1 and not flight.task.done():
                logger.info(f"Last waiter for {key} left, cancelling computation")
                # Callers arriving while the task unwinds must start a fresh run
                if self._flights.get(key) is flight:
                    del self._flights[key]
                flight.task.cancel()
            raise
        finally:
            flight.waiters -= 1

    def _forget(self, key: str, task: "asyncio.Task[Any]") -> None:
        flight = self._flights.get(key)
        if flight is not None and flight.task is task:
            del self._flights[key]
        # Retrieve the exception so a failure nobody awaited is not reported as unhandled.
        if not task.cancelled():
            task.exception()
