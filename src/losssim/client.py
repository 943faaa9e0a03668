"""Poisson arrival generator."""

from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

from .erlang import check_positive
from .timeline import RealTimeline
from .variates import ExponentialSampler

logger = logging.getLogger(__name__)

ArrivalObserver = Callable[[], object]


class Client:
    """Emits arrivals separated by Exp(lam) gaps to every subscribed observer."""

    def __init__(self, lam: float, timeline=None, sampler: Optional[ExponentialSampler] = None):
        check_positive("Arrival rate lam", lam)
        self.lam = lam
        self.timeline = timeline if timeline is not None else RealTimeline()
        self.sampler = sampler if sampler is not None else ExponentialSampler()
        self._observers: List[ArrivalObserver] = []
        self._running = threading.Event()
        self.emitted = 0
        self._generation = 0

    @property
    def running(self) -> bool:
        return self._running.is_set()

    def subscribe(self, observer: ArrivalObserver) -> None:
        self._observers.append(observer)

    def unsubscribe(self, observer: ArrivalObserver) -> None:
        self._observers.remove(observer)

    def start(self) -> None:
        if self._running.is_set():
            raise RuntimeError("Client is already running.")
        # A loop from an earlier run may still be asleep; it exits on wake-up
        # because its generation no longer matches.
        self._generation += 1
        generation = self._generation
        self._running.set()
        self.timeline.repeat(
            self._next_interval,
            self._emit,
            lambda: self._running.is_set() and self._generation == generation,
            name=f"client-lam-{self.lam:g}-run-{generation}",
        )
        logger.debug("client lam=%.3f started (run %d)", self.lam, generation)

    def stop(self) -> None:
        """Ask the loop to finish; it notices at its next wake-up."""
        self._running.clear()

    def _next_interval(self) -> float:
        return self.sampler.sample(self.lam)

    def _emit(self) -> None:
        self.emitted += 1
        for observer in list(self._observers):
            observer()
