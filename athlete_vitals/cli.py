from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from .alerts import NO_ALERTS_MESSAGE, build_clinical_alerts
from .charts import generate_charts
from .config import as_dict as config_as_dict, get_config
from .models import ValidationError
from .reports import generate_dashboard_report
from .services import build_dashboard, render_dashboard_text
from .sources import DataSourceError, available_datasets, dataset_path, read_path
from .state import (
    DashboardState,
    initial_state,
    load_dataset,
    load_text,
    window,
    with_athlete,
    with_comparison_date,
    with_date_range,
    with_role,
)

app = typer.Typer(help="Summarise athlete biometric CSV exports for coaches, trainers, doctors and athletes.")

FILE_OPTION_HELP = "CSV export to read instead of a bundled sample dataset."
ATHLETE_OPTION_HELP = "Sample dataset key (see the 'datasets' command)."


def _fail(message: str, *, code: int = 1) -> None:
    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(code=code)


def _load_state(
    *,
    file: Optional[Path],
    athlete: Optional[str],
    role: Optional[str] = None,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    compare: Optional[str] = None,
) -> DashboardState:
    state = initial_state()
    try:
        if role:
            state = with_role(state, role)
    except ValidationError as exc:
        raise typer.BadParameter(str(exc), param_hint="role") from exc

    if file is not None:
        try:
            text = read_path(file.expanduser())
        except DataSourceError as exc:
            _fail(str(exc))
        state = load_text(state, text)
        if athlete and not state.status:
            state = with_athlete(state, athlete)
    else:
        state = load_dataset(state, athlete or state.athlete)

    if state.status:
        _fail(state.status)

    try:
        if date_from or date_to:
            state = with_date_range(state, date_from or state.date_from, date_to or state.date_to)
        if compare:
            state = with_comparison_date(state, compare)
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc
    return state


@app.command()
def summary(
    file: Optional[Path] = typer.Option(None, "--file", "-f", help=FILE_OPTION_HELP),
    athlete: Optional[str] = typer.Option(None, "--athlete", "-a", help=ATHLETE_OPTION_HELP),
    role: Optional[str] = typer.Option(
        None,
        "--role",
        "-r",
        case_sensitive=False,
        help="View to render: coach, trainer, doctor or athlete (defaults to env/ATHLETE_VITALS_DEFAULT_ROLE).",
    ),
    date_from: Optional[str] = typer.Option(None, "--from", help="First day of the window (YYYY-MM-DD)."),
    date_to: Optional[str] = typer.Option(None, "--to", help="Last day of the window (YYYY-MM-DD)."),
    compare: Optional[str] = typer.Option(
        None,
        "--compare",
        "-c",
        help="Compare the window against this single day (YYYY-MM-DD).",
    ),
) -> None:
    """
    Print the dashboard summary, metric cards, role notes and (doctor view) alerts.

    Examples:
        athlete-vitals summary --athlete jordan --role doctor
        athlete-vitals summary --file export.csv --from 2024-06-01 --compare 2024-06-03
    """
    state = _load_state(
        file=file,
        athlete=athlete,
        role=role,
        date_from=date_from,
        date_to=date_to,
        compare=compare,
    )
    typer.echo(render_dashboard_text(build_dashboard(state)))


@app.command()
def alerts(
    file: Optional[Path] = typer.Option(None, "--file", "-f", help=FILE_OPTION_HELP),
    athlete: Optional[str] = typer.Option(None, "--athlete", "-a", help=ATHLETE_OPTION_HELP),
    date_from: Optional[str] = typer.Option(None, "--from", help="First day of the window (YYYY-MM-DD)."),
    date_to: Optional[str] = typer.Option(None, "--to", help="Last day of the window (YYYY-MM-DD)."),
) -> None:
    """
    List clinical red-flag alerts for the selected window, most important rules first.
    """
    state = _load_state(file=file, athlete=athlete, date_from=date_from, date_to=date_to)
    found = build_clinical_alerts(window(state), get_config().thresholds)
    if not found:
        typer.echo(NO_ALERTS_MESSAGE)
        return
    for alert in found:
        typer.secho(
            f"[{alert.severity.value.upper()}] {alert.message}",
            fg=typer.colors.RED if alert.is_severe else typer.colors.YELLOW,
        )


@app.command()
def plot(
    file: Optional[Path] = typer.Option(None, "--file", "-f", help=FILE_OPTION_HELP),
    athlete: Optional[str] = typer.Option(None, "--athlete", "-a", help=ATHLETE_OPTION_HELP),
    date_from: Optional[str] = typer.Option(None, "--from", help="First day of the window (YYYY-MM-DD)."),
    date_to: Optional[str] = typer.Option(None, "--to", help="Last day of the window (YYYY-MM-DD)."),
    output_dir: Path = typer.Option(
        Path("data/plots"),
        "--output-dir",
        "-o",
        help="Destination directory for the PNG charts.",
    ),
) -> None:
    """
    Save the heart-rate trend and sleep-stage charts for the window.
    """
    state = _load_state(file=file, athlete=athlete, date_from=date_from, date_to=date_to)
    view = build_dashboard(state)
    if not view.has_data:
        typer.echo(view.summary_line)
        raise typer.Exit(code=0)

    try:
        paths = generate_charts(
            view.heart_rate_series,
            view.sleep_stage_counts,
            output_dir=output_dir,
            prefix=view.athlete,
        )
    except OSError as exc:
        _fail(f"Could not write charts: {exc}")

    for path in paths:
        typer.echo(f"Saved plot to {path}")


@app.command()
def report(
    file: Optional[Path] = typer.Option(None, "--file", "-f", help=FILE_OPTION_HELP),
    athlete: Optional[str] = typer.Option(None, "--athlete", "-a", help=ATHLETE_OPTION_HELP),
    role: Optional[str] = typer.Option(None, "--role", "-r", case_sensitive=False, help="View to render."),
    date_from: Optional[str] = typer.Option(None, "--from", help="First day of the window (YYYY-MM-DD)."),
    date_to: Optional[str] = typer.Option(None, "--to", help="Last day of the window (YYYY-MM-DD)."),
    compare: Optional[str] = typer.Option(None, "--compare", "-c", help="Comparison day (YYYY-MM-DD)."),
    output_dir: Path = typer.Option(
        Path("reports"),
        "--output-dir",
        "-o",
        help="Destination directory for the generated PDF.",
    ),
) -> None:
    """
    Generate a PDF snapshot of the dashboard for one role.

    Examples:
        athlete-vitals report --athlete alex --role trainer
    """
    state = _load_state(
        file=file,
        athlete=athlete,
        role=role,
        date_from=date_from,
        date_to=date_to,
        compare=compare,
    )
    try:
        pdf_path = generate_dashboard_report(build_dashboard(state), output_dir=output_dir)
    except ValueError as exc:
        _fail(str(exc), code=0)

    typer.echo(f"Report saved to {pdf_path}")


@app.command()
def datasets() -> None:
    """
    List the sample datasets that --athlete can select.
    """
    config = get_config()
    for key in available_datasets(config):
        path = dataset_path(key, config)
        marker = "" if path.exists() else " (missing)"
        typer.echo(f"{key}: {path}{marker}")


@app.command("config")
def config_show() -> None:
    """
    Show the effective configuration (alert thresholds, sample datasets).
    """
    config = config_as_dict()
    typer.echo(f"Config source: {config.get('source')}")
    thresholds = config.get("thresholds", {})
    typer.echo("Thresholds: " + ", ".join(f"{key}={value:g}" for key, value in thresholds.items()))
    datasets_map = config.get("datasets", {})
    typer.echo("Datasets: " + ", ".join(f"{key}={value}" for key, value in datasets_map.items()))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
