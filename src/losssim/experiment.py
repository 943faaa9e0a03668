"""One-λ experiments and λ sweeps comparing simulation against Erlang-B."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Dict, Iterable, List, Optional

from tqdm import tqdm

from .client import Client
from .erlang import LossTheory, check_channels, check_positive, loss_theory
from .server import Server, ServerStats
from .timeline import RealTimeline, VirtualTimeline
from .variates import ExponentialSampler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LossParams:
    """Parameters of one experiment, validated on construction."""

    lam: float
    mu: float
    channels: int
    duration: float
    seed: Optional[int] = None
    time_scale: float = 1.0
    realtime: bool = False

    def __post_init__(self) -> None:
        check_positive("Arrival rate lam", self.lam)
        check_positive("Service rate mu", self.mu)
        check_channels(self.channels)
        check_positive("Simulation duration", self.duration)
        check_positive("time_scale", self.time_scale)


@dataclass(frozen=True)
class SimDataPoint:
    """Empirical vs. theoretical metrics for one arrival rate.

    Ratios over ``total_requests`` are None when the run saw no arrivals.
    """

    lam: float
    mu: float
    channels: int
    duration: float
    total_requests: int
    handled_requests: int
    rejected_requests: int
    p0_sim: float
    p0_theory: float
    p_reject_sim: Optional[float]
    p_reject_theory: float
    q_sim: Optional[float]
    q_theory: float
    a_sim: float
    a_theory: float
    n_busy_sim: float
    n_busy_theory: float

    @property
    def available(self) -> bool:
        return self.total_requests > 0

    @classmethod
    def from_run(cls, params: LossParams, stats: ServerStats, theory: LossTheory) -> "SimDataPoint":
        duration = stats.duration
        if duration is None or duration <= 0:
            raise RuntimeError("Run finished without a positive simulated duration.")
        total = stats.total_requests
        p_reject = stats.rejected_requests / total if total else None
        q = stats.handled_requests / total if total else None
        return cls(
            lam=params.lam,
            mu=params.mu,
            channels=params.channels,
            duration=duration,
            total_requests=total,
            handled_requests=stats.handled_requests,
            rejected_requests=stats.rejected_requests,
            p0_sim=stats.idle_time / duration,
            p0_theory=theory.P0,
            p_reject_sim=p_reject,
            p_reject_theory=theory.Preject,
            q_sim=q,
            q_theory=theory.Q,
            a_sim=stats.handled_requests / duration,
            a_theory=theory.A,
            n_busy_sim=stats.busy_time_area / duration,
            n_busy_theory=theory.N,
        )

    def as_dict(self) -> Dict[str, object]:
        payload = asdict(self)
        payload["available"] = self.available
        return payload


def make_timeline(params: LossParams):
    if params.realtime:
        return RealTimeline(time_scale=params.time_scale)
    return VirtualTimeline()


def run_experiment(params: LossParams, timeline=None) -> SimDataPoint:
    """Wire a client to a fresh server, run for ``params.duration`` and collect."""
    theory = loss_theory(params.lam, params.mu, params.channels)
    timeline = timeline if timeline is not None else make_timeline(params)
    root = ExponentialSampler(params.seed)

    server = Server(params.channels, params.mu, timeline=timeline, sampler=root.spawn())
    client = Client(params.lam, timeline=timeline, sampler=root.spawn())
    client.subscribe(server.handle_arrival)

    server.start_simulation()
    client.start()
    try:
        timeline.run_for(params.duration)
    finally:
        client.stop()
        server.stop_simulation()

    point = SimDataPoint.from_run(params, server.stats(), theory)
    logger.debug(
        "lam=%.3f: total=%d rejected=%d p0_sim=%.4f p0_theory=%.4f",
        params.lam,
        point.total_requests,
        point.rejected_requests,
        point.p0_sim,
        point.p0_theory,
    )
    return point


def run_sweep(
    lambdas: Iterable[float],
    mu: float,
    channels: int,
    duration: float,
    seed: Optional[int] = None,
    time_scale: float = 1.0,
    realtime: bool = False,
    progress: bool = False,
) -> List[SimDataPoint]:
    """
    Run one experiment per λ and return the data points in λ order.

    A failing λ is logged and skipped; the rest of the sweep still runs.
    Points whose run saw no arrivals are kept but marked unavailable.
    """
    points: List[SimDataPoint] = []
    for i, lam in enumerate(tqdm(list(lambdas), desc="Sweeping", unit="lam", disable=not progress)):
        try:
            params = LossParams(
                lam=lam,
                mu=mu,
                channels=channels,
                duration=duration,
                seed=None if seed is None else seed + i,
                time_scale=time_scale,
                realtime=realtime,
            )
            point = run_experiment(params)
        except (ValueError, RuntimeError):
            logger.exception("Experiment for lam=%r failed; skipping this point.", lam)
            continue
        if not point.available:
            logger.warning(
                "No arrivals observed for lam=%.3f over duration %.3f; ratios unavailable.",
                lam,
                point.duration,
            )
        points.append(point)
    return points
