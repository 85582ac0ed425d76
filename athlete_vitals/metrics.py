from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any, Mapping, Sequence

import pandas as pd

from .models import NUMERIC_FIELDS, SAMPLE_COLUMNS, Sample, date_part


@dataclass(frozen=True)
class Summary:
    """Aggregate statistics over one window of samples."""

    latest: Sample
    sample_count: int
    days: int
    total_steps: float | None
    total_active_minutes: float | None
    total_calories: float | None
    avg_steps_per_day: float | None
    avg_active_minutes_per_day: float | None
    avg_heart_rate: float | None
    avg_spo2: float | None
    avg_stress: float | None
    avg_energy: float | None
    avg_antioxidant: float | None
    apnea_events: float | None
    avg_apnea_per_night: float | None
    sleep_stage_counts: Mapping[str, int] = field(default_factory=dict)

    @property
    def deep_sleep_pct(self) -> float | None:
        return deep_sleep_pct(self.sleep_stage_counts)

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["sleep_stage_counts"] = dict(self.sleep_stage_counts)
        return payload


def samples_to_dataframe(samples: Sequence[Sample]) -> pd.DataFrame:
    """Normalise samples into a DataFrame with NaN for absent numeric values."""
    columns = list(SAMPLE_COLUMNS) + ["date"]
    if not samples:
        return pd.DataFrame(columns=columns)

    records = []
    for sample in samples:
        payload = sample.to_dict()
        payload["date"] = date_part(sample.timestamp)
        records.append(payload)

    df = pd.DataFrame(records, columns=columns)
    for column in NUMERIC_FIELDS:
        df[column] = pd.to_numeric(df[column], errors="coerce")
    return df


def summarize(samples: Sequence[Sample]) -> Summary | None:
    """
    Compute the window summary, or None when there are no samples.

    Averages divide by the number of present values only. "Latest" is the last
    sample as supplied; the caller owns the ordering.
    """
    if not samples:
        return None

    df = samples_to_dataframe(samples)
    days = max(int(df["date"].dropna().nunique()), 1)

    total_steps = _total(df["steps"])
    total_active_minutes = _total(df["active_minutes"])
    apnea_events = _total(df["sleep_apnea_events"])

    return Summary(
        latest=samples[-1],
        sample_count=len(samples),
        days=days,
        total_steps=total_steps,
        total_active_minutes=total_active_minutes,
        total_calories=_total(df["calories"]),
        avg_steps_per_day=_per_day(total_steps, days),
        avg_active_minutes_per_day=_per_day(total_active_minutes, days),
        avg_heart_rate=_average(df["heart_rate"]),
        avg_spo2=_average(df["spo2"]),
        avg_stress=_average(df["stress_level"]),
        avg_energy=_average(df["energy_score"]),
        avg_antioxidant=_average(df["antioxidant_index"]),
        apnea_events=apnea_events,
        avg_apnea_per_night=_per_day(apnea_events, days),
        sleep_stage_counts=_sleep_stage_counts(df["sleep_stage"]),
    )


def deep_sleep_pct(counts: Mapping[str, int]) -> float | None:
    """Share of "deep" among all tallied sleep-stage samples, in percent."""
    total = sum(counts.values())
    if total <= 0:
        return None
    return counts.get("deep", 0) / total * 100.0


def filter_by_date_range(
    samples: Sequence[Sample],
    start: str | date | None,
    end: str | date | None,
) -> list[Sample]:
    """Keep samples whose date part falls inside [start, end]; either bound may be open."""
    lower = _as_day(start)
    upper = _as_day(end)
    window: list[Sample] = []
    for sample in samples:
        day = date_part(sample.timestamp)
        if day is None:
            continue
        if lower and day < lower:
            continue
        if upper and day > upper:
            continue
        window.append(sample)
    return window


def samples_for_date(samples: Sequence[Sample], day: str | date | None) -> list[Sample]:
    target = _as_day(day)
    if not target:
        return []
    return [sample for sample in samples if date_part(sample.timestamp) == target]


def date_bounds(samples: Sequence[Sample]) -> tuple[str, str] | None:
    """Earliest and latest calendar dates present, or None."""
    days = sorted({day for day in (date_part(sample.timestamp) for sample in samples) if day})
    if not days:
        return None
    return days[0], days[-1]


def _as_day(value: str | date | None) -> str | None:
    if value is None:
        return None
    if isinstance(value, date):
        return value.isoformat()
    text = str(value).strip()
    return text or None


def _total(series: pd.Series) -> float | None:
    return _safe_float(series.sum(min_count=1))


def _average(series: pd.Series) -> float | None:
    count = int(series.count())
    if not count:
        return None
    return _safe_float(series.sum() / count)


def _per_day(total: float | None, days: int) -> float | None:
    if total is None:
        return None
    return total / days


def _sleep_stage_counts(stages: pd.Series) -> dict[str, int]:
    counts: dict[str, int] = {}
    for stage in stages.dropna():
        key = str(stage).strip().lower()
        if not key:
            continue
        counts[key] = counts.get(key, 0) + 1
    return counts


def _safe_float(value: Any) -> float | None:
    try:
        if value is None or pd.isna(value):
            return None
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None
