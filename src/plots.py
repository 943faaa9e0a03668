"""Utility to generate figures comparing simulation vs. Erlang-B theory."""

from __future__ import annotations

import argparse
from pathlib import Path

import matplotlib.pyplot as plt
import pandas as pd

PANELS = [
    ("p0", "Probabilidad de inactividad P0", "p0.png"),
    ("p_reject", "Probabilidad de rechazo", "p_reject.png"),
    ("q", "Capacidad relativa Q", "q.png"),
    ("a", "Capacidad absoluta A", "a.png"),
    ("n_busy", "Canales ocupados promedio", "n_busy.png"),
]


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate plots from a lambda sweep.")
    parser.add_argument(
        "--results",
        type=Path,
        default=Path("outputs/sweep.csv"),
        help="CSV produced by src/run_sweep.py.",
    )
    parser.add_argument(
        "--reports-dir",
        type=Path,
        default=Path("reports"),
        help="Directory where PNG files will be saved.",
    )
    return parser.parse_args()


def load_results(path: Path) -> pd.DataFrame:
    if not path.exists():
        raise FileNotFoundError(f"Results file not found: {path}")
    df = pd.read_csv(path)
    if df.empty:
        raise ValueError("Results file is empty. Run the sweep first.")
    return df.sort_values("lam").reset_index(drop=True)


def plot_metric(df: pd.DataFrame, metric: str, title: str, out: Path) -> None:
    """Theory over every λ; simulation only where the point is available."""
    sim = df[df["available"].astype(bool)].dropna(subset=[f"{metric}_sim"])

    fig, ax = plt.subplots(figsize=(8, 4))
    ax.plot(sim["lam"], sim[f"{metric}_sim"], marker="o", label="Experimental")
    ax.plot(df["lam"], df[f"{metric}_theory"], linestyle="--", marker="x", label="Teorica")
    ax.set_xlabel("lambda")
    ax.set_ylabel(metric)
    ax.set_title(title)
    ax.legend()
    fig.tight_layout()
    fig.savefig(out, dpi=150)
    plt.close(fig)


def plot_overview(df: pd.DataFrame, out: Path) -> None:
    fig, axes = plt.subplots(1, len(PANELS), figsize=(4 * len(PANELS), 3.5))
    sim = df[df["available"].astype(bool)]
    for ax, (metric, title, _) in zip(axes, PANELS):
        rows = sim.dropna(subset=[f"{metric}_sim"])
        ax.plot(rows["lam"], rows[f"{metric}_sim"], marker="o", label="sim")
        ax.plot(df["lam"], df[f"{metric}_theory"], linestyle="--", label="teo")
        ax.set_title(title, fontsize=9)
        ax.set_xlabel("lambda")
    axes[0].legend()
    fig.tight_layout()
    fig.savefig(out, dpi=150)
    plt.close(fig)


def main() -> None:
    args = parse_args()
    df = load_results(args.results)
    args.reports_dir.mkdir(parents=True, exist_ok=True)

    for metric, title, filename in PANELS:
        plot_metric(df, metric, title, args.reports_dir / filename)
    plot_overview(df, args.reports_dir / "overview.png")

    print(f"Figuras guardadas en {args.reports_dir.resolve()}")


if __name__ == "__main__":
    main()
