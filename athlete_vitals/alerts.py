"""Clinical red-flag alerts for the doctor view.

Every rule is evaluated independently against the latest sample and the
window summary, in the fixed order of `alert_rules()`. Several alerts can fire
at once and none suppresses another. A rule whose underlying field is absent
is skipped silently.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from .config import Thresholds, get_config
from .metrics import Summary, summarize
from .models import Alert, Sample, Severity
from .rules import evaluate_condition, hypertensive_condition, summary_metrics

HEART_RATE_ALERT_BPM = 110
LUTEAL_HIGH_SYMPTOMS = "luteal_high_symptoms"
NO_ALERTS_MESSAGE = "No critical alerts from current data window. Continue routine monitoring."


@dataclass(frozen=True)
class AlertRule:
    rule_id: str
    severity: Severity
    condition: Mapping[str, Any]
    template: str


def alert_rules(thresholds: Thresholds) -> list[AlertRule]:
    return [
        AlertRule(
            "resting_heart_rate",
            Severity.HIGH,
            {"metric": "latest.heart_rate", "op": ">", "value": HEART_RATE_ALERT_BPM},
            "Resting heart rate {heart_rate} bpm; consider evaluation for infection, dehydration, or overtraining.",
        ),
        AlertRule(
            "low_spo2",
            Severity.HIGH,
            {"metric": "avg_spo2", "op": "<", "value": thresholds.spo2_low},
            "Average SpO2 {avg_spo2}%; below {spo2_low}% threshold, recommend medical assessment.",
        ),
        AlertRule(
            "hypertension",
            Severity.HIGH,
            hypertensive_condition(thresholds.systolic_high, thresholds.diastolic_high),
            "Blood pressure {systolic_bp}/{diastolic_bp} mmHg; hypertensive range for athlete.",
        ),
        AlertRule(
            "abnormal_ecg",
            Severity.HIGH,
            {"metric": "latest.ecg", "op": "ne_text", "value": "normal"},
            'ECG flagged as "{ecg}"; review trace and consider cardiology referral.',
        ),
        AlertRule(
            "sleep_apnea",
            Severity.MEDIUM,
            {"metric": "apnea_events", "op": ">", "value": thresholds.apnea_events_high},
            "Sleep apnea events: {apnea_events} in window; above threshold, consider sleep clinic discussion.",
        ),
        AlertRule(
            "fall_detected",
            Severity.HIGH,
            {"metric": "latest.fall_detected", "op": "is_true"},
            "Fall detected in recent session; confirm concussion and musculoskeletal assessment were completed.",
        ),
        AlertRule(
            "low_energy",
            Severity.MEDIUM,
            {"metric": "latest.energy_score", "op": "<", "value": thresholds.energy_low},
            "Energy score {energy_score} is low; screen for illness, under-fueling, and overtraining.",
        ),
        AlertRule(
            "low_antioxidant",
            Severity.LOW,
            {"metric": "latest.antioxidant_index", "op": "<", "value": thresholds.antioxidant_low},
            "Antioxidant index {antioxidant_index}; consider nutrition review for recovery support.",
        ),
        AlertRule(
            "luteal_symptoms",
            Severity.MEDIUM,
            {"metric": "latest.menstrual_phase", "op": "eq_text", "value": LUTEAL_HIGH_SYMPTOMS},
            "Reported luteal phase with high symptom burden; coordinate individualized training and medical support.",
        ),
    ]


def build_clinical_alerts(
    samples: Sequence[Sample],
    thresholds: Thresholds | None = None,
) -> list[Alert]:
    """Evaluate every alert rule against `samples`; an empty window yields []."""
    summary = summarize(samples)
    if summary is None:
        return []
    return alerts_for_summary(summary, thresholds)


def alerts_for_summary(summary: Summary, thresholds: Thresholds | None = None) -> list[Alert]:
    thresholds = thresholds or get_config().thresholds
    metrics = summary_metrics(summary)
    values = _message_values(summary, thresholds)
    alerts: list[Alert] = []
    for rule in alert_rules(thresholds):
        if evaluate_condition(rule.condition, metrics):
            alerts.append(Alert(severity=rule.severity, message=rule.template.format(**values), rule_id=rule.rule_id))
    return alerts


def _message_values(summary: Summary, thresholds: Thresholds) -> dict[str, str]:
    latest = summary.latest
    return {
        "heart_rate": _number(latest.heart_rate),
        "avg_spo2": _number(summary.avg_spo2, precision=1),
        "spo2_low": _number(thresholds.spo2_low),
        "systolic_bp": _number(latest.systolic_bp),
        "diastolic_bp": _number(latest.diastolic_bp),
        "ecg": (latest.ecg or "").strip(),
        "apnea_events": _number(summary.apnea_events),
        "energy_score": _number(latest.energy_score),
        "antioxidant_index": _number(latest.antioxidant_index),
    }


def _number(value: float | None, *, precision: int | None = None) -> str:
    if value is None:
        return "n/a"
    if precision is not None:
        return f"{value:.{precision}f}"
    return f"{value:.0f}" if float(value).is_integer() else f"{value:.1f}"
