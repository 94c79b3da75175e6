"""Per-key single-flight execution.

Concurrent callers for the same key share one execution: the first becomes
the leader and runs the function, the rest wait for its result. Waiting is
time-bounded; a waiter that times out runs the function itself.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Hashable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _Flight(Generic[T]):
    def __init__(self) -> None:
        self.done = threading.Event()
        self.value: T | None = None
        self.error: BaseException | None = None


class SingleFlight:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._flights: dict[Hashable, _Flight[object]] = {}

    def in_flight(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._flights

    def run(self, key: Hashable, fn: Callable[[], T], *, timeout: float | None = None) -> T:
        """Run ``fn`` once per key across concurrent callers.

        A failure in the leader is raised to the leader and to every caller
        waiting on that flight; nothing is remembered afterwards, so the next
        caller starts a new flight.
        """
        with self._lock:
            flight = self._flights.get(key)
            leader = flight is None
            if flight is None:
                flight = _Flight()
                self._flights[key] = flight

        if leader:
            try:
                flight.value = fn()
                return flight.value  # type: ignore[return-value]
            except BaseException as e:
                flight.error = e
                raise
            finally:
                with self._lock:
                    self._flights.pop(key, None)
                flight.done.set()

        if not flight.done.wait(timeout):
            logger.warning("Timed out after %ss waiting on in-flight computation %r; computing independently", timeout, key)
            return fn()
        if flight.error is not None:
            raise flight.error
        return flight.value  # type: ignore[return-value]
