"""Command line interface to sweep λ for an M/M/n/n loss system."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Iterable, List, Tuple

import pandas as pd

try:
    from losssim import SimDataPoint, get_scenario, list_scenarios, relative_error, run_sweep
except ModuleNotFoundError:  # pragma: no cover - fallback when executed as package
    from .losssim import SimDataPoint, get_scenario, list_scenarios, relative_error, run_sweep

logger = logging.getLogger("run_sweep")

METRICS = ("p0", "p_reject", "q", "a", "n_busy")


def parse_lambda_list(spec: str) -> List[float]:
    values = []
    for chunk in spec.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        try:
            lam = float(chunk)
        except ValueError as exc:
            raise argparse.ArgumentTypeError(f"Invalid lambda value '{chunk}'.") from exc
        if lam <= 0:
            raise argparse.ArgumentTypeError("Every lambda must be > 0.")
        values.append(lam)
    if not values:
        raise argparse.ArgumentTypeError("Provide at least one arrival rate via --lambdas.")
    return values


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Simulate an M/M/n/n loss system for several arrival rates."
    )
    parser.add_argument(
        "--scenario",
        type=str,
        choices=list(list_scenarios()),
        help="Named sweep preset (channels, mu and lambdas).",
    )
    parser.add_argument("--channels", type=int, help="Number of channels n.")
    parser.add_argument("--mu", type=float, help="Service rate mu.")
    parser.add_argument(
        "--lambdas",
        type=parse_lambda_list,
        help='Comma-separated arrival rates (e.g. "0.5,1,2").',
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=5_000.0,
        help="Length of each run in model time units.",
    )
    parser.add_argument("--seed", type=int, default=None, help="Base random seed (default: OS entropy).")
    parser.add_argument(
        "--realtime",
        action="store_true",
        help="Run on the wall clock with threads instead of virtual SimPy time.",
    )
    parser.add_argument(
        "--time-scale",
        type=float,
        default=1.0,
        dest="time_scale",
        help="Real seconds per model time unit in --realtime mode.",
    )
    parser.add_argument(
        "--outputs",
        type=Path,
        default=Path("outputs/sweep.csv"),
        help="Path where the per-lambda CSV will be written.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        dest="log_level",
    )
    return parser.parse_args()


def resolve_sweep(args: argparse.Namespace) -> Tuple[int, float, List[float]]:
    """Return channels, mu and lambdas, letting explicit flags override the scenario."""
    if args.scenario:
        scenario = get_scenario(args.scenario)
        channels, mu, lambdas = scenario.channels, scenario.mu, list(scenario.lambdas)
    else:
        channels, mu, lambdas = args.channels, args.mu, args.lambdas
    if args.channels is not None:
        channels = args.channels
    if args.mu is not None:
        mu = args.mu
    if args.lambdas is not None:
        lambdas = args.lambdas

    if channels is None or mu is None or lambdas is None:
        raise SystemExit("Either --scenario or all of --channels, --mu and --lambdas must be provided.")
    if channels < 1:
        raise SystemExit("--channels must be >= 1.")
    if mu <= 0:
        raise SystemExit("--mu must be > 0.")
    if args.time_scale <= 0:
        raise SystemExit("--time-scale must be > 0.")
    return channels, mu, lambdas


def to_frame(points: Iterable[SimDataPoint]) -> pd.DataFrame:
    df = pd.DataFrame([p.as_dict() for p in points])
    if df.empty:
        return df
    numeric_cols = [f"{m}_{kind}" for m in METRICS for kind in ("sim", "theory")]
    df[numeric_cols] = df[numeric_cols].apply(pd.to_numeric, errors="coerce")
    return df.sort_values("lam").reset_index(drop=True)


def print_table(points: Iterable[SimDataPoint]) -> None:
    print(f"\n{'lambda':>7} {'total':>7} {'P0 sim':>8} {'P0 teo':>8} {'Prej sim':>9} {'Prej teo':>9} {'err P0':>8}")
    for p in points:
        p_rej = f"{p.p_reject_sim:>9.4f}" if p.p_reject_sim is not None else f"{'n/a':>9}"
        err = relative_error(p.p0_sim, p.p0_theory)
        print(
            f"{p.lam:>7.3f} {p.total_requests:>7d} {p.p0_sim:>8.4f} {p.p0_theory:>8.4f} "
            f"{p_rej} {p.p_reject_theory:>9.4f} {err * 100:>7.2f}%"
        )


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(message)s")
    channels, mu, lambdas = resolve_sweep(args)

    if args.realtime:
        wall = len(lambdas) * args.duration * args.time_scale
        logger.info("Realtime sweep will take about %.1f s of wall-clock time.", wall)

    points = run_sweep(
        lambdas,
        mu=mu,
        channels=channels,
        duration=args.duration,
        seed=args.seed,
        time_scale=args.time_scale,
        realtime=args.realtime,
        progress=True,
    )
    if not points:
        raise SystemExit("No simulation data was produced.")

    df = to_frame(points)
    args.outputs.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(args.outputs, index=False)

    print(f"\nSistema M/M/{channels}/{channels}, mu={mu:g}, duracion={args.duration:g}")
    print_table(points)
    unavailable = [p.lam for p in points if not p.available]
    if unavailable:
        print(f"\nSin llegadas (puntos no disponibles): {unavailable}")
    print(f"\nResultados guardados en {args.outputs.resolve()}")


if __name__ == "__main__":
    main()
