from __future__ import annotations

import logging
from pathlib import Path
from typing import IO, Any

from .config import AppConfig, get_config

LOGGER = logging.getLogger(__name__)


class DataSourceError(RuntimeError):
    """Raised when raw CSV text cannot be obtained."""


def available_datasets(config: AppConfig | None = None) -> list[str]:
    return sorted((config or get_config()).datasets)


def dataset_path(key: str, config: AppConfig | None = None) -> Path:
    datasets = (config or get_config()).datasets
    name = (key or "").strip().lower()
    if name not in datasets:
        known = ", ".join(sorted(datasets)) or "none"
        raise DataSourceError(f"Unknown sample dataset {key!r}; available: {known}.")
    return Path(datasets[name])


def read_dataset(key: str, config: AppConfig | None = None) -> str:
    """Return the CSV text of a configured sample dataset."""
    return read_path(dataset_path(key, config))


def read_path(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8-sig")
    except OSError as exc:
        LOGGER.warning("Could not read CSV file %s: %s", path, exc)
        raise DataSourceError(f"Could not read {path}: {exc}") from exc


def read_upload(stream: IO[Any] | bytes | str) -> str:
    """Decode an uploaded file (binary or text stream, or raw bytes) to text."""
    try:
        payload = stream if isinstance(stream, (bytes, str)) else stream.read()
    except OSError as exc:
        LOGGER.warning("Could not read uploaded file: %s", exc)
        raise DataSourceError(f"Could not read uploaded file: {exc}") from exc

    if isinstance(payload, str):
        return payload
    try:
        return bytes(payload).decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        LOGGER.warning("Uploaded file is not UTF-8 text: %s", exc)
        raise DataSourceError("Uploaded file is not UTF-8 encoded text.") from exc
