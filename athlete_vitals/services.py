from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Mapping, Sequence

from .alerts import NO_ALERTS_MESSAGE, alerts_for_summary
from .comparison import (
    PLACEHOLDER,
    ComparisonDisplay,
    format_blood_pressure,
    format_comparison,
    format_date_label,
    format_ecg,
    format_value,
)
from .config import Thresholds, get_config
from .guidance import RoleNotes, build_role_notes
from .metrics import Summary, samples_for_date, summarize
from .models import SLEEP_STAGES, Alert, Role, Sample
from .state import DashboardState, window

NO_DATA_MESSAGE = "No data loaded. Upload a CSV or use the sample datasets."
EMPTY_WINDOW_MESSAGE = "No samples fall inside the selected date range."
SLEEP_CAPTION = "Distribution based on current data window."

ROLE_DESCRIPTIONS: dict[Role, str] = {
    Role.COACH: "Summary of physical load, readiness, and recovery to support training decisions.",
    Role.TRAINER: "Focus on workload, body composition, and recovery balance to guide conditioning.",
    Role.DOCTOR: "Clinical red flags across vitals, sleep apnea, ECG, and fall detection.",
    Role.ATHLETE: "Personal snapshot of readiness, stress, and recovery with clear guidance.",
}


@dataclass(frozen=True)
class CardSpec:
    """How one metric card reads its value out of a summary."""

    key: str
    title: str
    unit: str
    precision: int
    value: Callable[[Summary], float | None]


def _first_present(*values: float | None) -> float | None:
    for value in values:
        if value is not None:
            return value
    return None


CARD_SPECS: tuple[CardSpec, ...] = (
    CardSpec("steps", "Steps / day", "", 0, lambda s: _first_present(s.avg_steps_per_day, s.total_steps)),
    CardSpec(
        "active_minutes",
        "Active minutes / day",
        "min",
        0,
        lambda s: _first_present(s.avg_active_minutes_per_day, s.total_active_minutes),
    ),
    CardSpec("heart_rate", "Avg heart rate", "bpm", 0, lambda s: s.avg_heart_rate),
    CardSpec("spo2", "Avg SpO2", "%", 1, lambda s: s.avg_spo2),
    CardSpec("deep_sleep", "Deep sleep", "%", 0, lambda s: s.deep_sleep_pct),
    CardSpec(
        "apnea_events",
        "Apnea events / night",
        "",
        1,
        lambda s: _first_present(s.avg_apnea_per_night, s.apnea_events),
    ),
    CardSpec("body_fat", "Body fat", "%", 1, lambda s: s.latest.body_fat_pct),
    CardSpec("energy", "Energy score", "/100", 0, lambda s: _first_present(s.latest.energy_score, s.avg_energy)),
    CardSpec("stress", "Avg stress", "/100", 0, lambda s: s.avg_stress),
    CardSpec(
        "antioxidant",
        "Antioxidant index",
        "/100",
        0,
        lambda s: _first_present(s.latest.antioxidant_index, s.avg_antioxidant),
    ),
)


@dataclass(frozen=True)
class MetricCard:
    key: str
    title: str
    value: str
    comparison: ComparisonDisplay | None = None

    @property
    def text(self) -> str:
        return str(self.comparison) if self.comparison else self.value

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "title": self.title,
            "value": self.value,
            "text": self.text,
            "comparison": None
            if self.comparison is None
            else {
                "baseline": self.comparison.baseline,
                "comparison": self.comparison.comparison,
                "delta": self.comparison.delta,
                "label": self.comparison.label,
            },
        }


@dataclass(frozen=True)
class DashboardView:
    """Everything a renderer needs for one dashboard refresh."""

    role: Role
    athlete: str
    summary_line: str
    role_description: str
    status: str | None
    date_from: str | None
    date_to: str | None
    comparison_date: str | None
    comparison_label: str | None
    sample_count: int
    cards: list[MetricCard] = field(default_factory=list)
    notes: RoleNotes = RoleNotes()
    alerts_visible: bool = False
    alerts: list[Alert] = field(default_factory=list)
    heart_rate_series: list[tuple[str, float | None]] = field(default_factory=list)
    sleep_stage_counts: dict[str, int] = field(default_factory=dict)
    sleep_caption: str = SLEEP_CAPTION

    @property
    def has_data(self) -> bool:
        return self.sample_count > 0

    @property
    def alert_messages(self) -> list[str]:
        if not self.alerts_visible:
            return []
        if not self.alerts:
            return [NO_ALERTS_MESSAGE]
        return [alert.message for alert in self.alerts]

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": self.role.value,
            "athlete": self.athlete,
            "summary": self.summary_line,
            "role_description": self.role_description,
            "status": self.status,
            "date_from": self.date_from,
            "date_to": self.date_to,
            "comparison_date": self.comparison_date,
            "comparison_label": self.comparison_label,
            "sample_count": self.sample_count,
            "cards": [card.to_dict() for card in self.cards],
            "notes": self.notes.as_dict(),
            "alerts_visible": self.alerts_visible,
            "alerts": [alert.to_dict() for alert in self.alerts] if self.alerts_visible else [],
            "alert_messages": self.alert_messages,
            "heart_rate": [{"timestamp": ts, "heart_rate": value} for ts, value in self.heart_rate_series],
            "sleep_stages": dict(self.sleep_stage_counts),
            "sleep_caption": self.sleep_caption,
        }


def build_dashboard(
    state: DashboardState,
    *,
    thresholds: Thresholds | None = None,
    today: date | None = None,
) -> DashboardView:
    """Recompute the whole view from `state`; nothing is cached between calls."""
    thresholds = thresholds or get_config().thresholds
    records = window(state)
    summary = summarize(records)
    comparison_label = format_date_label(state.comparison_date, today) if state.comparison_date else None
    comparison_summary = None
    if summary is not None and comparison_label:
        comparison_summary = summarize(samples_for_date(records, state.comparison_date))

    alerts_visible = state.role is Role.DOCTOR
    alerts = alerts_for_summary(summary, thresholds) if (summary is not None and alerts_visible) else []

    return DashboardView(
        role=state.role,
        athlete=state.athlete,
        summary_line=_summary_line(state, records),
        role_description=ROLE_DESCRIPTIONS[state.role],
        status=state.status,
        date_from=state.date_from,
        date_to=state.date_to,
        comparison_date=state.comparison_date,
        comparison_label=comparison_label,
        sample_count=len(records),
        cards=build_cards(summary, comparison_summary, comparison_label),
        notes=build_role_notes(state.role, summary, thresholds),
        alerts_visible=alerts_visible,
        alerts=alerts,
        heart_rate_series=[(sample.timestamp, sample.heart_rate) for sample in records],
        sleep_stage_counts=sleep_distribution(summary),
    )


def build_cards(
    summary: Summary | None,
    comparison: Summary | None = None,
    label: str | None = None,
) -> list[MetricCard]:
    """Metric cards for the window, with a comparison when `comparison` has data."""
    if summary is None:
        cards = [MetricCard(spec.key, spec.title, PLACEHOLDER) for spec in CARD_SPECS]
        cards.append(MetricCard("blood_pressure", "Blood pressure", PLACEHOLDER))
        cards.append(MetricCard("ecg", "ECG", PLACEHOLDER))
        return cards

    show_comparison = comparison is not None and bool(label)
    cards = []
    for spec in CARD_SPECS:
        value = spec.value(summary)
        display = None
        if show_comparison:
            display = format_comparison(value, spec.value(comparison), spec.unit, spec.precision, label)
        cards.append(MetricCard(spec.key, spec.title, format_value(value, spec.unit, spec.precision), display))

    latest = summary.latest
    other = comparison.latest if show_comparison else None
    cards.append(
        MetricCard(
            "blood_pressure",
            "Blood pressure",
            format_blood_pressure(
                latest.systolic_bp,
                latest.diastolic_bp,
                other.systolic_bp if other else None,
                other.diastolic_bp if other else None,
                label if other else None,
            ),
        )
    )
    cards.append(
        MetricCard(
            "ecg",
            "ECG",
            format_ecg(latest.ecg, other.ecg if other else None, label if other else None),
        )
    )
    return cards


def sleep_distribution(summary: Summary | None) -> dict[str, int]:
    """Counts for the four charted stages, zero-filled, in chart order."""
    counts: Mapping[str, int] = summary.sleep_stage_counts if summary else {}
    return {stage: int(counts.get(stage, 0)) for stage in SLEEP_STAGES}


def render_dashboard_text(view: DashboardView) -> str:
    """Render the view as plain text for terminals."""
    lines = [view.summary_line]
    if view.status:
        lines.append(f"Status: {view.status}")
    if view.date_from or view.date_to:
        lines.append(f"Window: {view.date_from or '...'} to {view.date_to or '...'}")
    lines.append(view.role_description)
    lines.append("")
    lines.append(render_cards_table(view.cards))
    if view.has_data:
        lines.append("")
        lines.append("Notes:")
        for category, text in view.notes.as_dict().items():
            if text:
                lines.append(f"  {category.replace('_', ' ')}: {text}")
    if view.alerts_visible:
        lines.append("")
        lines.append("Clinical alerts:")
        lines.extend(f"  - {message}" for message in view.alert_messages)
    return "\n".join(lines)


def render_cards_table(cards: Sequence[MetricCard]) -> str:
    """Render a fixed-width two column table of metric cards."""
    headers = ("metric", "value")
    rows = [{"metric": card.title, "value": card.text} for card in cards]
    widths = {key: len(key) for key in headers}
    for row in rows:
        for key in headers:
            widths[key] = max(widths[key], len(row[key]))

    def _format_line(values: Mapping[str, str]) -> str:
        return "  ".join(values[key].ljust(widths[key]) for key in headers).rstrip()

    header_line = "  ".join(key.upper().ljust(widths[key]) for key in headers).rstrip()
    body = "\n".join(_format_line(row) for row in rows)
    return "\n".join(filter(None, [header_line, body]))


def _summary_line(state: DashboardState, records: Sequence[Sample]) -> str:
    if not records:
        return EMPTY_WINDOW_MESSAGE if state.samples else NO_DATA_MESSAGE
    name = records[0].athlete_name or state.athlete.title()
    start = records[0].day or "?"
    end = records[-1].day or "?"
    return (
        f"{name} - {len(records)} samples from {start} to {end}. "
        f"View tailored for {state.role.value}."
    )
