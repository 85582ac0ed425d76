from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from athlete_vitals.alerts import NO_ALERTS_MESSAGE
from athlete_vitals.cli import app

CSV_TEXT = (
    "timestamp,athlete_name,steps,heart_rate,ecg,spo2,systolic_bp,diastolic_bp\n"
    "2024-06-01 08:00,Riley,4000,60,normal,97.0,118,76\n"
    "2024-06-02 08:00,Riley,6000,80,normal,98.0,150,95\n"
)


def test_cli_smoke(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    runner = CliRunner()

    summary_result = runner.invoke(app, ["summary", "--athlete", "alex"])
    assert summary_result.exit_code == 0, summary_result.stdout
    assert "Alex - 12 samples from 2024-06-01 to 2024-06-03. View tailored for coach." in summary_result.stdout
    assert "Notes:" in summary_result.stdout
    assert "Clinical alerts:" not in summary_result.stdout

    doctor_result = runner.invoke(app, ["summary", "--athlete", "alex", "--role", "doctor"])
    assert doctor_result.exit_code == 0, doctor_result.stdout
    assert NO_ALERTS_MESSAGE in doctor_result.stdout

    alerts_result = runner.invoke(app, ["alerts", "--athlete", "jordan"])
    assert alerts_result.exit_code == 0, alerts_result.stdout
    lines = alerts_result.stdout.strip().splitlines()
    assert len(lines) == 9
    assert lines[0].startswith("[HIGH] Resting heart rate 112 bpm")
    assert lines[-1].startswith("[MEDIUM] Reported luteal phase")

    plot_result = runner.invoke(app, ["plot", "--athlete", "alex", "--output-dir", str(tmp_path / "plots")])
    assert plot_result.exit_code == 0, plot_result.stdout
    assert len(list((tmp_path / "plots").glob("*.png"))) == 2

    report_result = runner.invoke(
        app,
        ["report", "--athlete", "jordan", "--role", "doctor", "--output-dir", str(tmp_path / "reports")],
    )
    assert report_result.exit_code == 0, report_result.stdout
    assert list((tmp_path / "reports").glob("vitals_jordan_doctor_*.pdf"))


def test_cli_summary_from_file_with_window_and_comparison(tmp_path: Path) -> None:
    export = tmp_path / "export.csv"
    export.write_text(CSV_TEXT, encoding="utf-8")
    runner = CliRunner()

    result = runner.invoke(
        app,
        ["summary", "--file", str(export), "--role", "doctor", "--compare", "2024-06-01"],
    )
    assert result.exit_code == 0, result.stdout
    assert "Riley - 2 samples" in result.stdout
    assert "70 bpm | 60 bpm Jun 1 (-10)" in result.stdout
    assert "Blood pressure 150/95 mmHg" in result.stdout

    windowed = runner.invoke(app, ["summary", "--file", str(export), "--from", "2024-06-02"])
    assert windowed.exit_code == 0, windowed.stdout
    assert "Riley - 1 samples from 2024-06-02 to 2024-06-02" in windowed.stdout


def test_cli_alerts_healthy_window(tmp_path: Path) -> None:
    export = tmp_path / "export.csv"
    export.write_text(CSV_TEXT, encoding="utf-8")
    result = CliRunner().invoke(app, ["alerts", "--file", str(export), "--to", "2024-06-01"])
    assert result.exit_code == 0, result.stdout
    assert NO_ALERTS_MESSAGE in result.stdout


def test_cli_errors(tmp_path: Path) -> None:
    runner = CliRunner()
    assert runner.invoke(app, ["summary", "--file", str(tmp_path / "missing.csv")]).exit_code == 1
    assert runner.invoke(app, ["summary", "--athlete", "nobody"]).exit_code == 1
    assert runner.invoke(app, ["summary", "--role", "physio"]).exit_code == 2
    assert runner.invoke(app, ["summary", "--from", "June"]).exit_code == 2

    empty = tmp_path / "empty.csv"
    empty.write_text("\n\n", encoding="utf-8")
    assert runner.invoke(app, ["summary", "--file", str(empty)]).exit_code == 1


def test_cli_datasets_and_config(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    runner = CliRunner()

    datasets_result = runner.invoke(app, ["datasets"])
    assert datasets_result.exit_code == 0, datasets_result.stdout
    assert datasets_result.stdout.splitlines()[0].startswith("alex: ")
    assert "jordan: " in datasets_result.stdout
    assert "(missing)" not in datasets_result.stdout

    config_result = runner.invoke(app, ["config"])
    assert config_result.exit_code == 0, config_result.stdout
    assert "Config source: defaults" in config_result.stdout
    assert "hr_high=100" in config_result.stdout
