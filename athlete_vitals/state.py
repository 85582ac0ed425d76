"""Dashboard session state as an immutable value.

Every user action is a function that takes the current `DashboardState` and
returns a new one; nothing is patched in place. Derived data (the date
window, summaries, notes, alerts) is always recomputed from the full sample
set held by the state.

Retrieval and parse failures leave the previous sample set untouched and
record a user-visible `status` message instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date
from typing import IO, Any, Iterable

from .config import DEFAULT_ATHLETE, AppConfig
from .env import get_env
from .metrics import date_bounds, filter_by_date_range
from .models import Role, Sample, ValidationError, parse_iso_date
from .parser import parse_csv
from .sources import DataSourceError, read_dataset, read_upload

LOGGER = logging.getLogger(__name__)

DATASET_ERROR_MESSAGE = "Could not load sample CSV. Make sure the data folder is deployed."
UPLOAD_ERROR_MESSAGE = "Unable to read the uploaded file."
PARSE_ERROR_MESSAGE = "Unable to parse CSV. Please check column headers."


@dataclass(frozen=True)
class DashboardState:
    role: Role = Role.COACH
    athlete: str = DEFAULT_ATHLETE
    samples: tuple[Sample, ...] = ()
    date_from: str | None = None
    date_to: str | None = None
    comparison_date: str | None = None
    status: str | None = None


def initial_state() -> DashboardState:
    """Starting state, honouring ATHLETE_VITALS_DEFAULT_ROLE/DEFAULT_ATHLETE."""
    role_text = get_env("DEFAULT_ROLE")
    try:
        role = Role.parse(role_text) if role_text else Role.COACH
    except ValidationError:
        LOGGER.warning("Ignoring invalid default role %r", role_text)
        role = Role.COACH
    athlete = (get_env("DEFAULT_ATHLETE") or DEFAULT_ATHLETE).strip().lower() or DEFAULT_ATHLETE
    return DashboardState(role=role, athlete=athlete)


def window(state: DashboardState) -> list[Sample]:
    """Samples inside the inclusive date range of `state`."""
    if not state.samples:
        return []
    return filter_by_date_range(state.samples, state.date_from, state.date_to)


def with_samples(state: DashboardState, samples: Iterable[Sample]) -> DashboardState:
    """Replace the sample set wholesale and reset the range to its full extent."""
    records = tuple(samples)
    bounds = date_bounds(records)
    date_from, date_to = bounds if bounds else (None, None)
    LOGGER.info("Loaded %d samples (%s to %s)", len(records), date_from, date_to)
    return replace(state, samples=records, date_from=date_from, date_to=date_to, status=None)


def with_role(state: DashboardState, role: Role | str) -> DashboardState:
    return replace(state, role=Role.parse(role), status=None)


def with_athlete(state: DashboardState, athlete: str) -> DashboardState:
    return replace(state, athlete=(athlete or "").strip().lower() or state.athlete, status=None)


def with_date_range(
    state: DashboardState,
    date_from: str | date | None,
    date_to: str | date | None,
) -> DashboardState:
    return replace(
        state,
        date_from=_clean_day(date_from, field="date_from"),
        date_to=_clean_day(date_to, field="date_to"),
        status=None,
    )


def reset_date_range(state: DashboardState) -> DashboardState:
    bounds = date_bounds(state.samples)
    date_from, date_to = bounds if bounds else (None, None)
    return replace(state, date_from=date_from, date_to=date_to, status=None)


def with_comparison_date(state: DashboardState, day: str | date | None) -> DashboardState:
    return replace(state, comparison_date=_clean_day(day, field="comparison_date"), status=None)


def clear_comparison_date(state: DashboardState) -> DashboardState:
    return replace(state, comparison_date=None, status=None)


def with_status(state: DashboardState, message: str | None) -> DashboardState:
    return replace(state, status=message)


def load_text(state: DashboardState, text: str) -> DashboardState:
    try:
        samples = parse_csv(text)
    except ValidationError as exc:
        LOGGER.warning("CSV parse failed: %s", exc)
        return with_status(state, PARSE_ERROR_MESSAGE)
    return with_samples(state, samples)


def load_dataset(state: DashboardState, athlete: str, config: AppConfig | None = None) -> DashboardState:
    """Load a sample dataset; the athlete selection only changes on success."""
    try:
        text = read_dataset(athlete, config)
    except DataSourceError as exc:
        LOGGER.warning("Sample dataset %r unavailable: %s", athlete, exc)
        return with_status(state, DATASET_ERROR_MESSAGE)
    loaded = load_text(state, text)
    if loaded.status:
        return loaded
    return with_athlete(loaded, athlete)


def load_upload(state: DashboardState, stream: IO[Any] | bytes | str) -> DashboardState:
    try:
        text = read_upload(stream)
    except DataSourceError as exc:
        LOGGER.warning("Upload unavailable: %s", exc)
        return with_status(state, UPLOAD_ERROR_MESSAGE)
    return load_text(state, text)


def _clean_day(value: str | date | None, *, field: str = "date") -> str | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_iso_date(value, field=field).isoformat()
