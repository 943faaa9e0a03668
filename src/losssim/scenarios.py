"""Pre-defined λ sweeps."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Tuple


@dataclass(frozen=True)
class Scenario:
    name: str
    channels: int
    mu: float
    lambdas: Tuple[float, ...]


SCENARIOS: Dict[str, Scenario] = {
    # Three channels, λ from 0.5 to 5.0: ρ runs from light load to ~1.7 per channel.
    "lab": Scenario(
        name="lab",
        channels=3,
        mu=1.0,
        lambdas=(0.5, 1.0, 1.5, 2.0, 2.5, 3.0, 3.5, 4.0, 4.5, 5.0),
    ),
    "single": Scenario(name="single", channels=1, mu=1.0, lambdas=(0.25, 0.5, 1.0, 2.0, 4.0)),
    "trunk": Scenario(
        name="trunk",
        channels=10,
        mu=1.0,
        lambdas=(2.0, 4.0, 6.0, 8.0, 10.0, 12.0, 15.0),
    ),
}


def list_scenarios() -> Iterable[str]:
    """Return available scenario identifiers."""
    return sorted(SCENARIOS.keys())


def get_scenario(name: str) -> Scenario:
    key = name.lower()
    if key not in SCENARIOS:
        raise KeyError(f"Scenario '{name}' is not defined. Available: {list_scenarios()}")
    return SCENARIOS[key]
