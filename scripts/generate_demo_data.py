from __future__ import annotations

import argparse
import random
from datetime import date, datetime, timedelta
from pathlib import Path

from athlete_vitals.models import SLEEP_STAGES, Sample
from athlete_vitals.parser import samples_to_csv

ROOT = Path(__file__).resolve().parents[1]
DEFAULT_CSV = ROOT / "demo" / "athlete_demo.csv"
READING_HOURS = (6, 12, 18, 23)
MENSTRUAL_PHASES = ["follicular", "ovulation", "luteal", "luteal_high_symptoms", "menstrual"]


def _build_samples(
    days: int,
    start: date,
    seed: int,
    athlete_name: str,
    *,
    track_cycle: bool = False,
) -> list[Sample]:
    rng = random.Random(seed)
    samples: list[Sample] = []

    for offset in range(days):
        day = start + timedelta(days=offset)
        fatigue = 1 + 0.02 * offset
        phase = MENSTRUAL_PHASES[(offset // 6) % len(MENSTRUAL_PHASES)] if track_cycle else None
        for hour in READING_HOURS:
            overnight = hour == 23
            timestamp = datetime.combine(day, datetime.min.time()).replace(hour=hour)
            samples.append(
                Sample(
                    timestamp=timestamp.strftime("%Y-%m-%d %H:%M"),
                    athlete_name=athlete_name,
                    steps=float(0 if overnight else rng.randint(1500, 5200)),
                    calories=float(rng.randint(90, 650)),
                    active_minutes=float(0 if overnight else rng.randint(5, 45)),
                    heart_rate=float(round(rng.uniform(52, 88) * fatigue)),
                    ecg="normal" if rng.random() > 0.05 else "irregular",
                    spo2=round(rng.uniform(94.0, 99.5), 1),
                    menstrual_phase=phase,
                    stress_level=float(rng.randint(20, 75)),
                    body_fat_pct=round(rng.uniform(11.0, 16.0), 1),
                    muscle_mass_kg=round(rng.uniform(55.0, 66.0), 1),
                    sleep_stage=rng.choice(SLEEP_STAGES) if overnight else None,
                    sleep_apnea_events=float(rng.randint(0, 2)) if overnight else None,
                    systolic_bp=float(rng.randint(108, 134)),
                    diastolic_bp=float(rng.randint(66, 86)),
                    energy_score=float(rng.randint(55, 95)),
                    antioxidant_index=float(rng.randint(35, 85)),
                    fall_detected=rng.random() < 0.01,
                )
            )
    return samples


def _write_csv(path: Path, samples: list[Sample]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(samples_to_csv(samples), encoding="utf-8")


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate a synthetic athlete vitals CSV export.")
    parser.add_argument("--days", type=int, default=7, help="Number of sequential days to generate.")
    parser.add_argument(
        "--start-date",
        type=date.fromisoformat,
        default=(date.today() - timedelta(days=6)).isoformat(),
        help="Start date (YYYY-MM-DD). Defaults to six days before today.",
    )
    parser.add_argument("--seed", type=int, default=42, help="Random seed for reproducibility.")
    parser.add_argument("--athlete-name", default="Demo Athlete", help="Value for the athlete_name column.")
    parser.add_argument("--track-cycle", action="store_true", help="Fill the menstrual_phase column.")
    parser.add_argument("--csv", type=Path, default=DEFAULT_CSV, help="Destination .csv file.")
    args = parser.parse_args()

    if isinstance(args.start_date, str):
        start = date.fromisoformat(args.start_date)
    else:
        start = args.start_date

    samples = _build_samples(
        days=args.days,
        start=start,
        seed=args.seed,
        athlete_name=args.athlete_name,
        track_cycle=args.track_cycle,
    )
    _write_csv(args.csv, samples)

    print(f"Wrote {len(samples)} demo samples to {args.csv}")


if __name__ == "__main__":
    main()
