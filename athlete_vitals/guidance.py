from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from .config import Thresholds, get_config
from .metrics import Summary
from .models import Role
from .rules import evaluate_condition, hypertensive_condition, summary_metrics

NOTE_CATEGORIES: tuple[str, ...] = ("activity", "cardio", "sleep", "body", "stress", "blood_pressure")

# Role-local cutoffs; the shared ones come from `Thresholds`.
ACTIVITY_STEPS_HIGH = 12000
DOCTOR_STEPS_HIGH = 15000
COACH_HR_ELEVATED = 90
TRAINER_ACTIVE_MINUTES_HIGH = 90
TRAINER_SPO2_LOW = 95
TRAINER_DEEP_SLEEP_LOW_PCT = 18
LEAN_BODY_FAT_PCT = 14
TRAINER_MUSCLE_MASS_KG = 60


@dataclass(frozen=True)
class NoteRule:
    """Pick `matched` when the condition holds, otherwise `otherwise`."""

    condition: Mapping[str, Any] | None
    matched: str
    otherwise: str

    def resolve(self, metrics: Mapping[str, Any]) -> str:
        if self.condition is None:
            return self.otherwise
        return self.matched if evaluate_condition(self.condition, metrics) else self.otherwise


@dataclass(frozen=True)
class RoleNotes:
    activity: str = ""
    cardio: str = ""
    sleep: str = ""
    body: str = ""
    stress: str = ""
    blood_pressure: str = ""

    def as_dict(self) -> dict[str, str]:
        return {category: getattr(self, category) for category in NOTE_CATEGORIES}


def _fixed(text: str) -> NoteRule:
    return NoteRule(condition=None, matched=text, otherwise=text)


def _above(metric: str, value: float) -> dict[str, Any]:
    return {"metric": metric, "op": ">", "value": value}


def _below(metric: str, value: float) -> dict[str, Any]:
    return {"metric": metric, "op": "<", "value": value}


def role_rules(thresholds: Thresholds) -> dict[Role, dict[str, NoteRule]]:
    """Six note rules per role, keyed by note category."""
    stress_high = _above("avg_stress", thresholds.stress_high)
    return {
        Role.COACH: {
            "activity": NoteRule(
                _above("total_steps", ACTIVITY_STEPS_HIGH),
                "High activity load; consider a lighter session tomorrow.",
                "Moderate activity; room for higher intensity work.",
            ),
            "cardio": NoteRule(
                _above("avg_heart_rate", COACH_HR_ELEVATED),
                "Elevated average heart rate; monitor for fatigue.",
                "Cardio load within expected range.",
            ),
            "sleep": NoteRule(
                _above("apnea_events", 0),
                "Sleep quality impacted by apnea events; coordinate with medical staff.",
                "Sleep pattern supports current workload.",
            ),
            "body": NoteRule(
                _below("latest.body_fat_pct", LEAN_BODY_FAT_PCT),
                "Lean body composition; emphasize strength maintenance.",
                "Body composition balanced for role; maintain consistency.",
            ),
            "stress": NoteRule(
                stress_high,
                "Training and life stress are accumulating; consider a recovery session.",
                "Stress within acceptable competitive range.",
            ),
            "blood_pressure": _fixed("Escalate to medical staff if symptoms appear."),
        },
        Role.TRAINER: {
            "activity": NoteRule(
                _above("total_active_minutes", TRAINER_ACTIVE_MINUTES_HIGH),
                "Sustained high active minutes; schedule mobility and recovery work.",
                "Active minutes can be increased gradually if needed.",
            ),
            "cardio": NoteRule(
                _below("avg_spo2", TRAINER_SPO2_LOW),
                "Slightly reduced SpO2; prioritize breathing and recovery protocols.",
                "Oxygen saturation suitable for high-intensity sessions.",
            ),
            "sleep": NoteRule(
                _below("deep_sleep_pct", TRAINER_DEEP_SLEEP_LOW_PCT),
                "Deep sleep proportion is low; avoid heavy strength sessions.",
                "Sleep distribution supports progressive overload.",
            ),
            "body": NoteRule(
                _above("latest.muscle_mass_kg", TRAINER_MUSCLE_MASS_KG),
                "Strong lean mass; maintain power and velocity work.",
                "Opportunity to build lean mass with structured strength blocks.",
            ),
            "stress": NoteRule(
                stress_high,
                "Reduce neuromuscular load and emphasize technical drills.",
                "Stress profile compatible with current training density.",
            ),
            "blood_pressure": _fixed("If blood pressure trends up, flag for doctor review."),
        },
        Role.DOCTOR: {
            "activity": NoteRule(
                _above("total_steps", DOCTOR_STEPS_HIGH),
                "Very high ambulatory volume; monitor for overuse injury risk.",
                "Ambulatory load within typical elite ranges.",
            ),
            "cardio": NoteRule(
                _above("avg_heart_rate", thresholds.hr_high),
                f"Average heart rate above {thresholds.hr_high:g} bpm; evaluate for tachycardia causes.",
                "Cardiac metrics stable for current period.",
            ),
            "sleep": NoteRule(
                _above("apnea_events", thresholds.apnea_events_high),
                "Frequent apnea events; consider formal sleep study referral.",
                "Sleep-related breathing appears within acceptable limits.",
            ),
            "body": NoteRule(
                _above("latest.body_fat_pct", thresholds.body_fat_high),
                "Body fat above target; discuss cardiometabolic risk profile.",
                "Body composition not currently elevating clinical risk.",
            ),
            "stress": NoteRule(
                stress_high,
                "High perceived stress; screen for mood, recovery, and support needs.",
                "Perceived stress within expected competitive range.",
            ),
            "blood_pressure": NoteRule(
                hypertensive_condition(thresholds.systolic_high, thresholds.diastolic_high),
                "Blood pressure in hypertensive range; confirm and consider further workup.",
                "Blood pressure not currently in hypertensive range.",
            ),
        },
        Role.ATHLETE: {
            "activity": NoteRule(
                _above("total_steps", ACTIVITY_STEPS_HIGH),
                "You moved a lot today, great work. Protect recovery tonight.",
                "Solid base activity; you can safely push in key sessions.",
            ),
            "cardio": NoteRule(
                _below("avg_spo2", thresholds.spo2_low),
                "Your oxygen levels dipped; focus on breathing and talk to staff if you feel off.",
                "Heart and oxygen numbers look good for training.",
            ),
            "sleep": NoteRule(
                _above("apnea_events", 0),
                "Your watch saw some breathing interruptions; mention this to the doctor.",
                "Your sleep pattern supports your performance goals.",
            ),
            "body": NoteRule(
                _below("latest.body_fat_pct", LEAN_BODY_FAT_PCT),
                "You are very lean; fuel enough around training.",
                "Body composition supports strength and durability.",
            ),
            "stress": NoteRule(
                stress_high,
                "You're carrying a lot of stress; build in short recovery breaks today.",
                "Your stress looks under control; keep your current routines.",
            ),
            "blood_pressure": _fixed("If you ever feel dizzy or unwell, tell staff immediately."),
        },
    }


def build_role_notes(
    role: Role | str,
    summary: Summary | None,
    thresholds: Thresholds | None = None,
) -> RoleNotes:
    """Evaluate the six note rules for `role`; no summary means six empty notes."""
    if summary is None:
        return RoleNotes()
    rules = role_rules(thresholds or get_config().thresholds)[Role.parse(role)]
    metrics = summary_metrics(summary)
    return RoleNotes(**{category: rules[category].resolve(metrics) for category in NOTE_CATEGORIES})
