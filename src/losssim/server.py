"""Multi-channel loss server with idle-time bookkeeping."""

from __future__ import annotations

import logging
import threading
from dataclasses import asdict, dataclass
from functools import partial
from typing import Dict, Optional, Tuple

from .channels import ChannelPool
from .erlang import check_channels, check_positive
from .timeline import RealTimeline
from .variates import ExponentialSampler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServerStats:
    """Read-only snapshot of the server counters."""

    channels: int
    total_requests: int
    handled_requests: int
    rejected_requests: int
    late_arrivals: int
    total_processing_time: float
    idle_time: float
    busy_time_area: float
    duration: Optional[float]

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


class Server:
    """
    M/M/n/n service station: arrivals take the lowest free channel or are lost.

    Every mutation of the channel pool and of the time accumulators happens
    under ``self._lock``, one lock per instance. Each mutating call first
    reconciles the interval since the previous mutation against the
    occupancy snapshot taken at the end of that mutation, then applies its
    own change and refreshes the snapshot.
    """

    def __init__(
        self,
        n: int,
        mu: float,
        timeline=None,
        sampler: Optional[ExponentialSampler] = None,
        pool: Optional[ChannelPool] = None,
    ):
        check_channels(n)
        check_positive("Service rate mu", mu)
        if pool is not None and len(pool) != n:
            raise ValueError("Channel pool size does not match n.")

        self.n = n
        self.mu = mu
        self.timeline = timeline if timeline is not None else RealTimeline()
        self.sampler = sampler if sampler is not None else ExponentialSampler()
        self.pool = pool if pool is not None else ChannelPool(n)
        self._lock = threading.Lock()

        self._total = 0
        self._handled = 0
        self._rejected = 0
        self._late = 0
        self._processing_time = 0.0
        self._idle_time = 0.0
        self._busy_area = 0.0

        self._previous: Tuple[bool, ...] = (False,) * n
        self._last_update = 0.0
        self._start: Optional[float] = None
        self._end: Optional[float] = None

    # -- lifecycle -----------------------------------------------------

    def start_simulation(self) -> None:
        with self._lock:
            if self._start is not None:
                raise RuntimeError("Simulation already started for this server.")
            now = self.timeline.now()
            self._idle_time = 0.0
            self._busy_area = 0.0
            self._previous = (False,) * self.n
            self._start = now
            self._last_update = now
        logger.debug("server n=%d mu=%.3f started at t=%.3f", self.n, self.mu, now)

    def stop_simulation(self) -> None:
        with self._lock:
            if self._start is None:
                raise RuntimeError("stop_simulation called before start_simulation.")
            if self._end is not None:
                return
            now = self.timeline.now()
            self._reconcile(now)
            self._end = now
        logger.debug(
            "server stopped at t=%.3f: total=%d handled=%d rejected=%d",
            now,
            self._total,
            self._handled,
            self._rejected,
        )

    # -- events --------------------------------------------------------

    def handle_arrival(self) -> Optional[int]:
        """
        Assign one arrival to a channel.

        Returns the claimed channel index, or None if the arrival was
        rejected (or came in after ``stop_simulation``).
        """
        with self._lock:
            if self._start is None:
                raise RuntimeError("handle_arrival called before start_simulation.")
            if self._end is not None:
                self._late += 1
                return None

            self._total += 1
            now = self.timeline.now()
            self._reconcile(now)

            index = self.pool.claim()
            if index is None:
                self._rejected += 1
            else:
                self._handled += 1
                service_time = self.sampler.sample(self.mu)
                self.timeline.call_later(
                    service_time, partial(self.complete_service, index, now)
                )
            self._previous = self.pool.occupancy()
            return index

    def complete_service(self, index: int, claimed_at: float) -> None:
        """Free ``index`` and account for the time it spent busy."""
        with self._lock:
            if self._end is not None:
                # Accumulators are frozen; only give the channel back.
                self.pool.release(index)
                return
            now = self.timeline.now()
            self._reconcile(now)
            self.pool.release(index)
            self._processing_time += now - claimed_at
            self._previous = self.pool.occupancy()

    def _reconcile(self, now: float) -> None:
        """
        Attribute ``now - last_update`` using the previous snapshot. Lock held.

        Callers refresh the snapshot after their claim or release, so it
        always holds the occupancy in force over the interval being closed.
        """
        elapsed = now - self._last_update
        if elapsed > 0:
            busy = sum(self._previous)
            if busy == 0:
                self._idle_time += elapsed
            self._busy_area += busy * elapsed
        self._last_update = now

    # -- accessors -----------------------------------------------------

    @property
    def total_requests(self) -> int:
        return self._total

    @property
    def handled_requests(self) -> int:
        return self._handled

    @property
    def rejected_requests(self) -> int:
        return self._rejected

    @property
    def late_arrivals(self) -> int:
        return self._late

    @property
    def total_processing_time(self) -> float:
        return self._processing_time

    @property
    def idle_time(self) -> float:
        return self._idle_time

    @property
    def busy_time_area(self) -> float:
        """Integral of the number of busy channels over the run."""
        return self._busy_area

    @property
    def duration(self) -> float:
        if self._start is None or self._end is None:
            raise RuntimeError("Simulation duration is only known after stop_simulation.")
        return self._end - self._start

    def stats(self) -> ServerStats:
        with self._lock:
            duration = None
            if self._start is not None and self._end is not None:
                duration = self._end - self._start
            return ServerStats(
                channels=self.n,
                total_requests=self._total,
                handled_requests=self._handled,
                rejected_requests=self._rejected,
                late_arrivals=self._late,
                total_processing_time=self._processing_time,
                idle_time=self._idle_time,
                busy_time_area=self._busy_area,
                duration=duration,
            )
