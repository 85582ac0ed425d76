"""CSV ingestion for biometric samples.

Turns loosely-typed delimited text into an ordered list of `Sample` records.
Cells are looked up by header name, so column order does not matter. Cells
that fail numeric coercion become absent (`None`) rather than failing the
row, and a malformed row never aborts the rest of the file.
"""

from __future__ import annotations

import csv
import io
import logging
from typing import Iterable, Mapping, Sequence

from .models import (
    NUMERIC_FIELDS,
    SAMPLE_COLUMNS,
    Sample,
    ValidationError,
    coerce_flag,
    optional_number,
    optional_text,
)

LOGGER = logging.getLogger(__name__)


class CsvParseError(ValidationError):
    """Raised when the text has no header line at all."""


def parse_csv(text: str) -> list[Sample]:
    """Parse CSV text (header row + one sample per line) into samples."""
    lines = [line for line in (text or "").splitlines() if line.strip()]
    if not lines:
        raise CsvParseError("CSV text is empty; a header row is required.")

    # one reader per line so an unbalanced quote cannot swallow later rows
    rows = [next(csv.reader([line])) for line in lines]
    headers = [name.strip() for name in rows[0]]
    unknown = sorted(set(headers) - set(SAMPLE_COLUMNS) - {""})
    if unknown:
        LOGGER.debug("Ignoring unknown CSV columns: %s", ", ".join(unknown))

    samples: list[Sample] = []
    for line_number, cells in enumerate(rows[1:], start=2):
        if len(cells) > len(headers):
            LOGGER.debug("Line %d has %d extra cell(s); ignoring them.", line_number, len(cells) - len(headers))
        record = {
            name: (cells[index].strip() if index < len(cells) else "")
            for index, name in enumerate(headers)
            if name
        }
        samples.append(_sample_from_record(record, line_number=line_number))
    return samples


def _sample_from_record(record: Mapping[str, str], *, line_number: int) -> Sample:
    numbers: dict[str, float | None] = {}
    for name in NUMERIC_FIELDS:
        raw = record.get(name, "")
        value = optional_number(raw, field=name)
        if value is None and raw:
            LOGGER.debug("Line %d: %s=%r is not numeric; treating as absent.", line_number, name, raw)
        numbers[name] = value

    return Sample(
        timestamp=record.get("timestamp", ""),
        athlete_name=record.get("athlete_name", ""),
        ecg=optional_text(record.get("ecg")),
        menstrual_phase=optional_text(record.get("menstrual_phase")),
        sleep_stage=optional_text(record.get("sleep_stage"), lower=True),
        fall_detected=coerce_flag(record.get("fall_detected")),
        **numbers,
    )


def sample_to_row(sample: Sample) -> list[str]:
    """Serialise a sample back to CSV cells in canonical column order."""
    payload = sample.to_dict()
    return [_format_cell(payload[name]) for name in SAMPLE_COLUMNS]


def samples_to_csv(samples: Iterable[Sample], *, columns: Sequence[str] = SAMPLE_COLUMNS) -> str:
    """Render samples as CSV text that `parse_csv` reads back unchanged."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(columns)
    for sample in samples:
        payload = sample.to_dict()
        writer.writerow([_format_cell(payload[name]) for name in columns])
    return buffer.getvalue()


def _format_cell(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if value.is_integer() and abs(value) < 1e15:
            return str(int(value))
        return repr(value)
    return str(value)
