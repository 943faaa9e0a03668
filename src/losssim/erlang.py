"""Closed-form metrics for the M/M/n/n loss system (Erlang-B)."""

from __future__ import annotations

import math
import numbers
from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class LossTheory:
    """Bundle of steady-state metrics for an M/M/n/n system."""

    rho: float
    P0: float
    Preject: float
    Q: float
    A: float
    N: float

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


def check_positive(name: str, value: float) -> None:
    """Reject rates and durations that are not finite and strictly positive."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ValueError(f"{name} must be a real number, got {value!r}.")
    if not math.isfinite(value) or value <= 0:
        raise ValueError(f"{name} must be finite and strictly positive, got {value!r}.")


def check_channels(n: int) -> None:
    if isinstance(n, bool) or not isinstance(n, numbers.Integral) or n < 1:
        raise ValueError(f"Number of channels n must be an integer >= 1, got {n!r}.")


def _validate(lam: float, mu: float, n: int) -> None:
    check_positive("Arrival rate lam", lam)
    check_positive("Service rate mu", mu)
    check_channels(n)


def offered_load(lam: float, mu: float) -> float:
    """Return ρ = λ/μ."""
    check_positive("Arrival rate lam", lam)
    check_positive("Service rate mu", mu)
    return lam / mu


def erlang_b(rho: float, n: int) -> float:
    """
    Blocking probability via B(k) = ρ·B(k-1) / (k + ρ·B(k-1)), B(0) = 1.

    The recursion never forms ρ^k or k! and stays in [0, 1] for any n.
    """
    b = 1.0
    for k in range(1, n + 1):
        b = rho * b / (k + rho * b)
    return b


def theoretical_p0(lam: float, mu: float, n: int) -> float:
    """
    P0 = 1 / Σ_{k=0..n} ρ^k / k!.

    Terms are built incrementally (t_k = t_{k-1}·ρ/k). When a term grows
    large the partial sum is rescaled and the scale is kept as a log, so
    heavy loads with hundreds of channels do not overflow.
    """
    _validate(lam, mu, n)
    rho = lam / mu
    term = 1.0
    total = 1.0
    log_scale = 0.0
    for k in range(1, n + 1):
        term *= rho / k
        total += term
        if total > 1e200:
            total /= 1e200
            term /= 1e200
            log_scale += math.log(1e200)
    return math.exp(-(math.log(total) + log_scale))


def theoretical_preject(lam: float, mu: float, n: int) -> float:
    """Erlang-B loss probability (ρ^n / n!)·P0."""
    _validate(lam, mu, n)
    return erlang_b(lam / mu, n)


def theoretical_q(lam: float, mu: float, n: int) -> float:
    """Relative throughput: share of arrivals that get served."""
    return 1.0 - theoretical_preject(lam, mu, n)


def theoretical_a(lam: float, mu: float, n: int) -> float:
    """Absolute throughput λ·Q."""
    return lam * theoretical_q(lam, mu, n)


def theoretical_n(lam: float, mu: float, n: int) -> float:
    """Mean number of busy channels ρ·Q."""
    return (lam / mu) * theoretical_q(lam, mu, n)


def loss_theory(lam: float, mu: float, n: int) -> LossTheory:
    _validate(lam, mu, n)
    rho = lam / mu
    p_reject = erlang_b(rho, n)
    q = 1.0 - p_reject
    return LossTheory(
        rho=rho,
        P0=theoretical_p0(lam, mu, n),
        Preject=p_reject,
        Q=q,
        A=lam * q,
        N=rho * q,
    )


def relative_error(sim_value: float | None, reference_value: float) -> float | None:
    """Return |sim-ref| / ref; None when the empirical value is unavailable."""
    if sim_value is None:
        return None
    if reference_value == 0:
        return 0.0 if sim_value == 0 else float("inf")
    return abs(sim_value - reference_value) / abs(reference_value)
