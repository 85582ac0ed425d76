from __future__ import annotations

import io
from pathlib import Path

import pytest

from athlete_vitals.config import AppConfig
from athlete_vitals.sources import (
    DataSourceError,
    available_datasets,
    dataset_path,
    read_dataset,
    read_path,
    read_upload,
)


def test_bundled_datasets_are_listed_and_readable() -> None:
    assert available_datasets() == ["alex", "jordan"]
    text = read_dataset(" Alex ")
    assert text.startswith("timestamp,athlete_name")


def test_unknown_dataset_names_known_keys(tmp_path: Path) -> None:
    config = AppConfig(datasets={"sam": tmp_path / "sam.csv"})
    with pytest.raises(DataSourceError, match="available: sam"):
        dataset_path("riley", config)
    with pytest.raises(DataSourceError):
        read_dataset("sam", config)


def test_read_path_strips_bom(tmp_path: Path) -> None:
    path = tmp_path / "bom.csv"
    path.write_bytes("\ufefftimestamp\n2024-06-01 08:00\n".encode("utf-8"))
    assert read_path(path).startswith("timestamp")


def test_read_upload_accepts_streams_bytes_and_text() -> None:
    assert read_upload(io.BytesIO(b"timestamp\n")) == "timestamp\n"
    assert read_upload(io.StringIO("timestamp\n")) == "timestamp\n"
    assert read_upload(b"\xef\xbb\xbftimestamp\n") == "timestamp\n"
    assert read_upload("timestamp\n") == "timestamp\n"
    with pytest.raises(DataSourceError):
        read_upload(b"\xff\xfe\x00bad")
