"""Process-wide rebuild status, held in an injectable coordinator.

Serving code receives the coordinator explicitly and reads ``status()`` to
decide whether to flag its output as possibly incomplete.

Usage:
    coordinator = RebuildCoordinator()
    with coordinator.rebuilding():
        ...  # recompute cached aggregates
    assert not coordinator.is_rebuilding
"""

from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from bricks.exceptions import RebuildInProgressError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

logger = logging.getLogger(__name__)


class RebuildState(Enum):
    IDLE = "idle"
    REBUILDING = "rebuilding"


@dataclass(frozen=True)
class RebuildStatus:
    state: RebuildState
    started_at: float | None = None

    @property
    def is_rebuilding(self) -> bool:
        return self.state is RebuildState.REBUILDING


_IDLE = RebuildStatus(RebuildState.IDLE)


class RebuildCoordinator:
    """State machine ``IDLE -> REBUILDING -> IDLE``.

    Transitions happen under a lock and publish a new immutable status, so a
    reader always sees either the old or the new status, never a mix.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._status = _IDLE

    def status(self) -> RebuildStatus:
        return self._status

    @property
    def is_rebuilding(self) -> bool:
        return self._status.is_rebuilding

    def begin(self) -> RebuildStatus:
        """Enter REBUILDING. Raises RebuildInProgressError if already rebuilding."""
        with self._lock:
            if self._status.is_rebuilding:
                raise RebuildInProgressError(self._status.started_at)
            self._status = RebuildStatus(RebuildState.REBUILDING, started_at=self._clock())
            logger.info("Rebuild started")
            return self._status

    def finish(self) -> None:
        """Return to IDLE. Safe to call when already idle."""
        with self._lock:
            if self._status.is_rebuilding:
                elapsed = self._clock() - (self._status.started_at or 0.0)
                logger.info("Rebuild finished after %.1fs", elapsed)
            self._status = _IDLE

    @contextmanager
    def rebuilding(self) -> Iterator[RebuildStatus]:
        """Hold REBUILDING for the block; an exception still returns to IDLE.

        Cache entries written before the failure are kept.
        """
        status = self.begin()
        try:
            yield status
        except BaseException:
            logger.error("Rebuild aborted; keeping entries written so far")
            raise
        finally:
            self.finish()
