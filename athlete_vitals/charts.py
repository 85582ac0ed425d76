"""Heart-rate trend and sleep-stage doughnut charts rendered with matplotlib."""

from __future__ import annotations

from pathlib import Path
from typing import IO, Any, Mapping, Sequence

from .models import SLEEP_STAGES

SLEEP_STAGE_LABELS = {"awake": "Awake", "light": "Light", "deep": "Deep", "rem": "REM"}
SLEEP_STAGE_COLORS = {"awake": "#4b5563", "light": "#38bdf8", "deep": "#22c55e", "rem": "#a855f7"}
HEART_RATE_COLOR = "#60a5fa"
MAX_X_TICKS = 6


def _pyplot() -> Any:
    import matplotlib

    try:  # Avoid interactive backend requirements in headless contexts.
        matplotlib.use("Agg", force=False)
    except Exception:
        pass
    import matplotlib.pyplot as plt

    return plt


def plot_heart_rate(
    series: Sequence[tuple[str, float | None]],
    destination: Path | IO[bytes],
    *,
    title: str = "Heart rate (bpm)",
) -> Path | IO[bytes]:
    """
    Draw the heart-rate line for the window, one point per sample in input order.

    Absent readings leave a gap in the line instead of dropping to zero.
    """
    plt = _pyplot()
    labels = [timestamp for timestamp, _ in series]
    values = [float("nan") if value is None else value for _, value in series]
    positions = list(range(len(labels)))

    fig, ax = plt.subplots(figsize=(8, 3.5))
    if positions:
        ax.plot(positions, values, marker="o", markersize=2, linewidth=2, color=HEART_RATE_COLOR)
        step = max(1, len(positions) // MAX_X_TICKS)
        ax.set_xticks(positions[::step])
        ax.set_xticklabels(labels[::step])
        plt.setp(ax.get_xticklabels(), rotation=30, ha="right")
    else:
        ax.text(0.5, 0.5, "No heart-rate data", ha="center", va="center", transform=ax.transAxes)
    ax.set_title(title)
    ax.set_ylabel("bpm")
    ax.grid(axis="y", linestyle="--", alpha=0.3)
    fig.tight_layout()
    fig.savefig(destination, dpi=150, format="png")
    plt.close(fig)
    return destination


def plot_sleep_stages(
    counts: Mapping[str, int],
    destination: Path | IO[bytes],
    *,
    title: str = "Sleep stages",
) -> Path | IO[bytes]:
    """Draw the awake/light/deep/REM doughnut; an all-zero tally shows a notice instead."""
    plt = _pyplot()
    values = [int(counts.get(stage, 0)) for stage in SLEEP_STAGES]

    fig, ax = plt.subplots(figsize=(4.5, 4.5))
    if sum(values) > 0:
        ax.pie(
            values,
            labels=[SLEEP_STAGE_LABELS[stage] for stage in SLEEP_STAGES],
            colors=[SLEEP_STAGE_COLORS[stage] for stage in SLEEP_STAGES],
            startangle=90,
            counterclock=False,
            wedgeprops={"width": 0.4},
        )
        ax.set_aspect("equal")
    else:
        ax.text(0.5, 0.5, "No sleep data", ha="center", va="center", transform=ax.transAxes)
        ax.axis("off")
    ax.set_title(title)
    fig.tight_layout()
    fig.savefig(destination, dpi=150, format="png")
    plt.close(fig)
    return destination


def generate_charts(
    heart_rate: Sequence[tuple[str, float | None]],
    sleep_counts: Mapping[str, int],
    *,
    output_dir: Path,
    prefix: str = "athlete",
) -> list[Path]:
    """Write both charts as PNG files into `output_dir` and return their paths."""
    output_dir.mkdir(parents=True, exist_ok=True)
    heart_path = output_dir / f"{prefix}_heart_rate.png"
    sleep_path = output_dir / f"{prefix}_sleep_stages.png"
    plot_heart_rate(heart_rate, heart_path)
    plot_sleep_stages(sleep_counts, sleep_path)
    return [heart_path, sleep_path]
