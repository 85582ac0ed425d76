from __future__ import annotations

import io
from datetime import date
from pathlib import Path

import pytest

from athlete_vitals.charts import generate_charts, plot_heart_rate, plot_sleep_stages
from athlete_vitals.config import Thresholds
from athlete_vitals.reports import generate_dashboard_report
from athlete_vitals.services import build_dashboard
from athlete_vitals.state import DashboardState, load_dataset, with_comparison_date, with_role

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def test_plot_heart_rate_writes_png_with_gaps(tmp_path: Path) -> None:
    series = [("2024-06-01 06:00", 58.0), ("2024-06-01 12:00", None), ("2024-06-01 18:00", 92.0)]
    path = plot_heart_rate(series, tmp_path / "hr.png")
    assert path.read_bytes().startswith(PNG_SIGNATURE)


def test_plot_heart_rate_handles_empty_series() -> None:
    buffer = io.BytesIO()
    plot_heart_rate([], buffer)
    assert buffer.getvalue().startswith(PNG_SIGNATURE)


def test_plot_sleep_stages_with_and_without_data() -> None:
    filled = io.BytesIO()
    plot_sleep_stages({"awake": 1, "light": 3, "deep": 2, "rem": 1}, filled)
    empty = io.BytesIO()
    plot_sleep_stages({}, empty)
    assert filled.getvalue().startswith(PNG_SIGNATURE)
    assert empty.getvalue().startswith(PNG_SIGNATURE)


def test_plot_sleep_stages_draws_doughnut(monkeypatch) -> None:
    import matplotlib.pyplot as plt

    calls: dict[str, object] = {}
    original_subplots = plt.subplots

    def _tracking_subplots(*args, **kwargs):
        fig, ax = original_subplots(*args, **kwargs)
        original_pie = ax.pie

        def _pie(values, **pie_kwargs):
            calls["values"] = list(values)
            calls["wedgeprops"] = pie_kwargs.get("wedgeprops")
            return original_pie(values, **pie_kwargs)

        ax.pie = _pie  # type: ignore[method-assign]
        return fig, ax

    monkeypatch.setattr(plt, "subplots", _tracking_subplots)
    plot_sleep_stages({"rem": 2, "deep": 1, "nap": 5}, io.BytesIO())
    assert calls["values"] == [0, 0, 1, 2]
    assert calls["wedgeprops"] == {"width": 0.4}


def test_generate_charts_writes_both_files(tmp_path: Path) -> None:
    paths = generate_charts(
        [("2024-06-01 06:00", 60.0)],
        {"light": 1},
        output_dir=tmp_path / "plots",
        prefix="alex",
    )
    assert [path.name for path in paths] == ["alex_heart_rate.png", "alex_sleep_stages.png"]
    assert all(path.exists() for path in paths)


def test_generate_dashboard_report_builds_pdf(tmp_path: Path) -> None:
    state = with_role(load_dataset(DashboardState(), "jordan"), "doctor")
    state = with_comparison_date(state, "2024-06-02")
    view = build_dashboard(state, thresholds=Thresholds(), today=date(2024, 6, 10))

    pdf_path = generate_dashboard_report(view, output_dir=tmp_path, generated_on=date(2024, 6, 10))

    assert pdf_path == tmp_path / "vitals_jordan_doctor_2024-06-10.pdf"
    assert pdf_path.read_bytes().startswith(b"%PDF")


def test_generate_dashboard_report_requires_samples(tmp_path: Path) -> None:
    view = build_dashboard(DashboardState(), thresholds=Thresholds())
    with pytest.raises(ValueError):
        generate_dashboard_report(view, output_dir=tmp_path)
