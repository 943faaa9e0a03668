"""Time sources and schedulers shared by the client and the server.

Two interchangeable timelines drive the same ``Server``/``Client`` code:

* ``RealTimeline`` measures a monotonic wall clock and suspends real threads.
  ``time_scale`` is the number of real seconds per model time unit, so a
  service sample of 1.0 sleeps one second at ``time_scale=1`` and 10 ms at
  ``time_scale=0.01``.
* ``VirtualTimeline`` wraps a ``simpy.Environment``: every suspension is a
  SimPy timeout and the clock only moves when ``run_for`` is called.

All timestamps returned by ``now`` are in model time units.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

import simpy

logger = logging.getLogger(__name__)


class RealTimeline:
    """Wall-clock timeline backed by ``time.monotonic`` and threads."""

    def __init__(self, time_scale: float = 1.0):
        if time_scale <= 0:
            raise ValueError("time_scale must be strictly positive.")
        self.time_scale = time_scale
        self._origin = time.monotonic()

    def now(self) -> float:
        return (time.monotonic() - self._origin) / self.time_scale

    def call_later(self, delay: float, callback: Callable[[], None]) -> threading.Timer:
        """Run ``callback`` on its own thread after ``delay`` model units."""
        timer = threading.Timer(delay * self.time_scale, callback)
        timer.daemon = True
        timer.start()
        return timer

    def repeat(
        self,
        next_delay: Callable[[], float],
        action: Callable[[], None],
        is_running: Callable[[], bool],
        name: Optional[str] = None,
    ) -> threading.Thread:
        """
        Loop on a dedicated thread: sleep ``next_delay()``, then ``action()``.

        The loop checks ``is_running`` before each sleep and again after it, so
        no action fires once the flag transition has been observed.
        """

        def loop() -> None:
            while is_running():
                time.sleep(next_delay() * self.time_scale)
                if not is_running():
                    break
                action()
            logger.debug("loop %s finished", name)

        thread = threading.Thread(target=loop, name=name, daemon=True)
        thread.start()
        return thread

    def run_for(self, duration: float) -> None:
        """Block the calling thread for ``duration`` model units."""
        time.sleep(duration * self.time_scale)


class VirtualTimeline:
    """Logical timeline on top of a SimPy environment."""

    def __init__(self, env: Optional[simpy.Environment] = None):
        self.env = env if env is not None else simpy.Environment()

    def now(self) -> float:
        return float(self.env.now)

    def call_later(self, delay: float, callback: Callable[[], None]) -> simpy.Process:
        def waiter():
            yield self.env.timeout(delay)
            callback()

        return self.env.process(waiter())

    def repeat(
        self,
        next_delay: Callable[[], float],
        action: Callable[[], None],
        is_running: Callable[[], bool],
        name: Optional[str] = None,
    ) -> simpy.Process:
        def loop():
            while is_running():
                yield self.env.timeout(next_delay())
                if not is_running():
                    break
                action()
            logger.debug("loop %s finished at t=%.3f", name, self.env.now)

        return self.env.process(loop())

    def run_for(self, duration: float) -> None:
        """Advance the logical clock by ``duration``, firing due events."""
        self.env.run(until=self.env.now + duration)
