from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional

NUMERIC_FIELDS: tuple[str, ...] = (
    "steps",
    "calories",
    "active_minutes",
    "heart_rate",
    "spo2",
    "stress_level",
    "body_fat_pct",
    "muscle_mass_kg",
    "sleep_apnea_events",
    "systolic_bp",
    "diastolic_bp",
    "energy_score",
    "antioxidant_index",
)
SAMPLE_COLUMNS: tuple[str, ...] = (
    "timestamp",
    "athlete_name",
    "steps",
    "calories",
    "active_minutes",
    "heart_rate",
    "ecg",
    "spo2",
    "menstrual_phase",
    "stress_level",
    "body_fat_pct",
    "muscle_mass_kg",
    "sleep_stage",
    "sleep_apnea_events",
    "systolic_bp",
    "diastolic_bp",
    "energy_score",
    "antioxidant_index",
    "fall_detected",
)
SLEEP_STAGES: tuple[str, ...] = ("awake", "light", "deep", "rem")

__all__ = [
    "NUMERIC_FIELDS",
    "SAMPLE_COLUMNS",
    "SLEEP_STAGES",
    "parse_iso_date",
    "coerce_number",
    "optional_number",
    "optional_text",
    "coerce_flag",
    "date_part",
    "Sample",
    "Role",
    "Severity",
    "Alert",
    "ValidationError",
]


class ValidationError(ValueError):
    """Raised when user-supplied data cannot be normalised safely."""


def parse_iso_date(value: Any, *, field: str = "date") -> date:
    """
    Parse user-supplied ISO-8601 dates.

    Accepts `datetime.date`, `datetime.datetime`, or strings. Raises `ValidationError`
    with a friendlier message if the payload cannot be parsed.
    """
    if isinstance(value, date):
        return value if not isinstance(value, datetime) else value.date()

    if not isinstance(value, str):
        raise ValidationError(
            f"{field} must be provided as YYYY-MM-DD text; received {value!r}."
        )

    candidate = value.strip()
    if not candidate:
        raise ValidationError(f"{field} cannot be empty.")

    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError as exc:
        raise ValidationError(
            f"{field} must be a valid ISO date (YYYY-MM-DD); received {candidate!r}."
        ) from exc

    return parsed.date()


def coerce_number(
    value: Any,
    *,
    field: str = "value",
    minimum: float | None = None,
    maximum: float | None = None,
    allow_empty: bool = False,
) -> float:
    """
    Convert arbitrary input into a float with guardrails.

    The `minimum` and `maximum` bounds (inclusive) trigger a ValidationError when
    breached. Empty input returns NaN only when `allow_empty` is set.
    """
    if value is None:
        if allow_empty:
            return float("nan")
        raise ValidationError(f"{field} is required.")

    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number; received {value!r}.")

    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            if allow_empty:
                return float("nan")
            raise ValidationError(f"{field} is required.")
        try:
            number = float(stripped)
        except ValueError as exc:
            raise ValidationError(f"{field} must be a number; received {value!r}.") from exc
    else:
        raise ValidationError(f"{field} must be a number; received {value!r}.")

    if minimum is not None and number < minimum:
        raise ValidationError(f"{field} must be >= {minimum}; received {number}.")

    if maximum is not None and number > maximum:
        raise ValidationError(f"{field} must be <= {maximum}; received {number}.")

    return number


def optional_number(value: Any, *, field: str = "value") -> float | None:
    """
    Best-effort numeric coercion: anything that is not a finite number is absent.

    Absent is `None`, never zero.
    """
    try:
        number = coerce_number(value, field=field, allow_empty=True)
    except ValidationError:
        return None
    if not math.isfinite(number):
        return None
    return number


def optional_text(value: Any, *, lower: bool = False) -> str | None:
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    return text.lower() if lower else text


def coerce_flag(value: Any) -> bool:
    """Only a case-insensitive "true" counts as set; everything else is False."""
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() == "true"


def date_part(timestamp: str | None) -> str | None:
    """Return the calendar-date prefix of a "YYYY-MM-DD HH:MM" style timestamp."""
    if not timestamp:
        return None
    head = timestamp.strip().split(" ")[0]
    return head or None


@dataclass(frozen=True)
class Sample:
    """One timestamped biometric observation."""

    timestamp: str = ""
    athlete_name: str = ""
    steps: Optional[float] = None
    calories: Optional[float] = None
    active_minutes: Optional[float] = None
    heart_rate: Optional[float] = None
    ecg: Optional[str] = None
    spo2: Optional[float] = None
    menstrual_phase: Optional[str] = None
    stress_level: Optional[float] = None
    body_fat_pct: Optional[float] = None
    muscle_mass_kg: Optional[float] = None
    sleep_stage: Optional[str] = None
    sleep_apnea_events: Optional[float] = None
    systolic_bp: Optional[float] = None
    diastolic_bp: Optional[float] = None
    energy_score: Optional[float] = None
    antioxidant_index: Optional[float] = None
    fall_detected: bool = False

    @property
    def day(self) -> str | None:
        return date_part(self.timestamp)

    def to_dict(self) -> Dict[str, Any]:
        """Make the sample JSON serialisable."""
        return asdict(self)


class Role(str, Enum):
    COACH = "coach"
    TRAINER = "trainer"
    DOCTOR = "doctor"
    ATHLETE = "athlete"

    @classmethod
    def parse(cls, value: Any) -> "Role":
        if isinstance(value, Role):
            return value
        text = str(value or "").strip().lower()
        try:
            return cls(text)
        except ValueError as exc:
            allowed = ", ".join(role.value for role in cls)
            raise ValidationError(f"role must be one of {allowed}; received {value!r}.") from exc


class Severity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class Alert:
    severity: Severity
    message: str
    rule_id: str = ""

    @property
    def is_severe(self) -> bool:
        return self.severity is Severity.HIGH

    def to_dict(self) -> Dict[str, Any]:
        return {"severity": self.severity.value, "message": self.message, "rule_id": self.rule_id}
