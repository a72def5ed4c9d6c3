from __future__ import annotations

import logging
import time
from typing import Any, Callable


logger = logging.getLogger(__name__)

TickCallback = Callable[[], None]


def next_deadline(due: float, now: float, interval: float) -> float:
    """Deadline of the tick after the one firing at ``due``.

    When the loop fell behind by more than one interval the missed ticks are
    dropped and the schedule is re-anchored on ``now``.
    """
    due += interval
    if now >= due:
        due = now + interval
    return due


class TickScheduler:
    """Drives an engine's one-second countdown."""

    interval: float = 1.0

    def start(self, callback: TickCallback) -> None:
        raise NotImplementedError

    def stop(self) -> None:
        raise NotImplementedError

    @property
    def running(self) -> bool:
        raise NotImplementedError


class ManualTickScheduler(TickScheduler):
    """Ticks only when told to. Used by tests and the manual config mode."""

    def __init__(self) -> None:
        self._callback: TickCallback | None = None

    def start(self, callback: TickCallback) -> None:
        self._callback = callback

    def stop(self) -> None:
        self._callback = None

    @property
    def running(self) -> bool:
        return self._callback is not None

    def advance(self, seconds: int = 1) -> int:
        """Fire up to ``seconds`` ticks; stops early if the engine stopped us."""
        fired = 0
        for _ in range(seconds):
            if self._callback is None:
                break
            self._callback()
            fired += 1
        return fired


class SocketIOTickScheduler(TickScheduler):
    def __init__(
        self,
        socketio: Any,
        interval: float = 1.0,
        poll_sec: float = 0.25,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._socketio = socketio
        self.interval = interval
        self._poll_sec = poll_sec
        self._clock = clock
        self._callback: TickCallback | None = None
        self._running = False
        self._generation = 0

    @property
    def running(self) -> bool:
        return self._running

    def start(self, callback: TickCallback) -> None:
        self._callback = callback
        if self._running:
            return
        self._running = True
        self._generation += 1
        self._socketio.start_background_task(self._run, self._generation)

    def stop(self) -> None:
        self._running = False

    def _run(self, generation: int) -> None:
        due = self._clock() + self.interval
        while self._running and generation == self._generation:
            self._socketio.sleep(self._poll_sec)
            now = self._clock()
            if now < due:
                continue
            due = next_deadline(due, now, self.interval)

            callback = self._callback
            if callback is None:
                continue
            try:
                callback()
            except Exception:
                logger.exception("tick callback failed")
        logger.debug("tick loop %s exited", generation)
