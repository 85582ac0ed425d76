"""Display helpers for single values and "window vs comparison date" deltas.

Precision and unit are per metric; callers pass the settings that belong to
the metric being displayed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

PLACEHOLDER = "n/a"


@dataclass(frozen=True)
class ComparisonDisplay:
    baseline: str
    comparison: str
    delta: str
    label: str

    def __str__(self) -> str:
        return f"{self.baseline} | {self.comparison} {self.label} ({self.delta})"


def format_value(value: float | None, unit: str = "", precision: int = 0) -> str:
    """Render one value with its unit, or the placeholder when absent."""
    if value is None:
        return PLACEHOLDER
    return _with_unit(_fixed(value, precision), unit)


def format_comparison(
    baseline: float | None,
    comparison: float | None,
    unit: str,
    precision: int,
    label: str | None,
) -> ComparisonDisplay | None:
    """
    Build the three-part comparison display.

    Returns None when the baseline, the comparison value or the label is
    missing; the caller then renders its placeholder instead.
    """
    if baseline is None or comparison is None or not label:
        return None
    return ComparisonDisplay(
        baseline=_with_unit(_fixed(baseline, precision), unit),
        comparison=_with_unit(_fixed(comparison, precision), unit),
        delta=_signed(comparison - baseline, precision),
        label=label,
    )


def format_blood_pressure(
    systolic: float | None,
    diastolic: float | None,
    comparison_systolic: float | None = None,
    comparison_diastolic: float | None = None,
    label: str | None = None,
) -> str:
    if systolic is None or diastolic is None:
        return PLACEHOLDER
    current = f"{_fixed(systolic, 0)}/{_fixed(diastolic, 0)}"
    if label and comparison_systolic is not None and comparison_diastolic is not None:
        other = f"{_fixed(comparison_systolic, 0)}/{_fixed(comparison_diastolic, 0)}"
        deltas = (
            f"{_signed(comparison_systolic - systolic, 0)}/"
            f"{_signed(comparison_diastolic - diastolic, 0)}"
        )
        return f"{current} | {other} {label} ({deltas}) mmHg"
    return f"{current} mmHg"


def ecg_status(ecg: str | None) -> str:
    """Latest ECG status; anything empty or "normal" shows as "Normal"."""
    if ecg and ecg.strip() and ecg.strip().lower() != "normal":
        return ecg.strip()
    return "Normal"


def format_ecg(ecg: str | None, comparison_ecg: str | None = None, label: str | None = None) -> str:
    current = ecg_status(ecg)
    if not label or not comparison_ecg:
        return current
    other = comparison_ecg.strip()
    changed = " (changed)" if current != other else ""
    return f"{current} | {other} {label}{changed}"


def format_date_label(day: str | date | None, today: date | None = None) -> str | None:
    """Short human label for a comparison date: "today" or "Jun 3"."""
    if day is None:
        return None
    if isinstance(day, date):
        parsed = day
    else:
        text = str(day).strip()
        if not text:
            return None
        try:
            parsed = date.fromisoformat(text)
        except ValueError:
            return None
    if parsed == (today or date.today()):
        return "today"
    return f"{parsed:%b} {parsed.day}"


def _fixed(value: float, precision: int) -> str:
    return f"{round(float(value), precision) + 0.0:.{precision}f}"


def _signed(delta: float, precision: int) -> str:
    rounded = round(float(delta), precision) + 0.0
    text = f"{rounded:.{precision}f}"
    return f"+{text}" if rounded >= 0 else text


def _with_unit(text: str, unit: str) -> str:
    return f"{text} {unit}" if unit else text
