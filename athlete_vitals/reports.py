from __future__ import annotations

import tempfile
from datetime import date
from importlib import metadata
from pathlib import Path
from typing import Any
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .charts import plot_heart_rate, plot_sleep_stages
from .config import as_dict as config_as_dict
from .models import Severity
from .services import DashboardView

SEVERITY_COLORS = {
    Severity.HIGH: "#C92A2A",
    Severity.MEDIUM: "#E67700",
    Severity.LOW: "#495057",
}


def generate_dashboard_report(
    view: DashboardView,
    *,
    output_dir: Path = Path("reports"),
    generated_on: date | None = None,
) -> Path:
    """
    Build a one-file PDF snapshot of the dashboard view: cards, notes, alerts and charts.
    """
    if not view.has_data:
        raise ValueError("No samples available to report on.")

    output_dir.mkdir(parents=True, exist_ok=True)
    stamp = (generated_on or date.today()).isoformat()
    pdf_path = output_dir / f"vitals_{_slugify(view.athlete)}_{view.role.value}_{stamp}.pdf"

    with tempfile.TemporaryDirectory() as tmp_dir:
        tmp_dir_path = Path(tmp_dir)
        heart_plot = plot_heart_rate(view.heart_rate_series, tmp_dir_path / "heart_rate.png")
        sleep_plot = plot_sleep_stages(view.sleep_stage_counts, tmp_dir_path / "sleep_stages.png")
        _build_pdf(pdf_path, view, heart_plot, sleep_plot, config_as_dict(), stamp)
    return pdf_path


def _build_pdf(
    destination: Path,
    view: DashboardView,
    heart_plot: Path,
    sleep_plot: Path,
    config_snapshot: dict[str, Any],
    stamp: str,
) -> None:
    story = []
    styles = getSampleStyleSheet()

    story.append(Paragraph(f"Athlete Vitals: {escape(view.athlete.title())} ({view.role.value})", styles["Title"]))
    story.append(Paragraph(escape(view.summary_line), styles["BodyText"]))
    story.append(Paragraph(escape(view.role_description), styles["Italic"]))
    story.append(
        Paragraph(
            f"Generated {stamp} | App v{_app_version()} | Config source: {escape(str(config_snapshot.get('source')))}",
            styles["BodyText"],
        )
    )
    if view.comparison_label:
        story.append(
            Paragraph(f"Compared against {view.comparison_date} ({view.comparison_label}).", styles["BodyText"])
        )
    story.append(Spacer(1, 0.2 * inch))

    table_data = [["Metric", "Value"]]
    table_data.extend([card.title, card.text] for card in view.cards)
    table = Table(table_data, hAlign="LEFT", colWidths=[2.2 * inch, 4.3 * inch])
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#1F3C88")),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("ALIGN", (0, 0), (-1, -1), "LEFT"),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("BOTTOMPADDING", (0, 0), (-1, 0), 8),
                ("BACKGROUND", (0, 1), (-1, -1), colors.whitesmoke),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.lightgrey),
            ]
        )
    )
    story.append(table)
    story.append(Spacer(1, 0.3 * inch))

    story.append(Paragraph("Role Notes", styles["Heading2"]))
    for category, text in view.notes.as_dict().items():
        if text:
            label = category.replace("_", " ").title()
            story.append(Paragraph(f"<b>{label}:</b> {escape(text)}", styles["BodyText"]))

    if view.alerts_visible:
        story.append(Spacer(1, 0.2 * inch))
        story.append(Paragraph("Clinical Alerts", styles["Heading2"]))
        if not view.alerts:
            story.append(Paragraph(escape(view.alert_messages[0]), styles["BodyText"]))
        for alert in view.alerts:
            colour = SEVERITY_COLORS.get(alert.severity, "#000000")
            story.append(
                Paragraph(
                    f'<font color="{colour}"><b>{alert.severity.value.upper()}</b></font> '
                    f"{escape(alert.message)}",
                    styles["BodyText"],
                )
            )

    story.append(Spacer(1, 0.3 * inch))
    story.append(Paragraph("Heart Rate Trend", styles["Heading2"]))
    story.append(Image(str(heart_plot), width=6.5 * inch, height=2.8 * inch))
    story.append(Spacer(1, 0.2 * inch))
    story.append(Paragraph("Sleep Stage Distribution", styles["Heading2"]))
    story.append(Paragraph(escape(view.sleep_caption), styles["BodyText"]))
    story.append(Image(str(sleep_plot), width=3.2 * inch, height=3.2 * inch))

    doc = SimpleDocTemplate(str(destination), pagesize=letter, title=f"Athlete Vitals {view.athlete}")
    doc.build(story)


def _slugify(value: str) -> str:
    cleaned = "".join(char.lower() if char.isalnum() else "_" for char in value.strip())
    slug = "_".join(token for token in cleaned.split("_") if token)
    return slug or "athlete"


def _app_version() -> str:
    try:
        return metadata.version("athlete-vitals")
    except metadata.PackageNotFoundError:  # pragma: no cover - local dev fallback
        return "0.0.0"
