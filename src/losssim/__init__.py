"""Simulation utilities for the M/M/n/n loss system."""

from .channels import ChannelPool
from .client import Client
from .erlang import (
    LossTheory,
    erlang_b,
    loss_theory,
    offered_load,
    relative_error,
    theoretical_a,
    theoretical_n,
    theoretical_p0,
    theoretical_preject,
    theoretical_q,
)
from .experiment import LossParams, SimDataPoint, run_experiment, run_sweep
from .scenarios import Scenario, get_scenario, list_scenarios
from .server import Server, ServerStats
from .timeline import RealTimeline, VirtualTimeline
from .variates import ExponentialSampler

__all__ = [
    "ChannelPool",
    "Client",
    "ExponentialSampler",
    "LossParams",
    "LossTheory",
    "RealTimeline",
    "Scenario",
    "Server",
    "ServerStats",
    "SimDataPoint",
    "VirtualTimeline",
    "erlang_b",
    "get_scenario",
    "list_scenarios",
    "loss_theory",
    "offered_load",
    "relative_error",
    "run_experiment",
    "run_sweep",
    "theoretical_a",
    "theoretical_n",
    "theoretical_p0",
    "theoretical_preject",
    "theoretical_q",
]
