"""Inspection report PDF generation using xhtml2pdf.

Layout is computed up front by ``paginate``: every line carries its font
size, indent and vertical position, and a page break happens as soon as the
cursor drops below the bottom threshold. The Jinja2 template only renders
the resulting pages.
"""

from __future__ import annotations

import asyncio
import io
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from jinja2 import Environment, FileSystemLoader
from xhtml2pdf import pisa

from app.config import ReportConfig, get_settings
from app.models import Inspection

_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
_env = Environment(loader=FileSystemLoader(str(_TEMPLATE_DIR)), autoescape=True)


@dataclass
class Line:
    text: str
    y: float
    size: int = 11
    x: int = 50
    bold: bool = False


@dataclass
class Page:
    lines: list[Line] = field(default_factory=list)


def wrap_text(text: str, max_length: int) -> list[str]:
    """Greedy word wrap; a single over-long word gets a line of its own."""
    lines: list[str] = []
    current = ""
    for word in text.split():
        candidate = f"{current} {word}" if current else word
        if current and len(candidate) > max_length:
            lines.append(current)
            current = word
        else:
            current = candidate
    if current:
        lines.append(current)
    return lines


def _fmt_date(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d") if value else "N/A"


class _Cursor:
    def __init__(self, config: ReportConfig):
        self._config = config
        self.pages: list[Page] = [Page()]
        self.y = config.page_height - config.top_margin

    def skip(self, amount: float) -> None:
        self.y -= amount
        self._maybe_break()

    def write(self, text: str, advance: float, size: int = 11, x: int = 50, bold: bool = False) -> None:
        self.pages[-1].lines.append(Line(text=text, y=self.y, size=size, x=x, bold=bold))
        self.y -= advance
        self._maybe_break()

    def _maybe_break(self) -> None:
        if self.y < self._config.bottom_threshold:
            self.pages.append(Page())
            self.y = self._config.page_height - self._config.top_margin


def paginate(inspection: Inspection, damages: list, config: ReportConfig | None = None) -> list[Page]:
    config = config or get_settings().report
    cur = _Cursor(config)

    cur.write("Property Inspection Report", 40, size=24, bold=True)
    details = [
        f"Inspection ID: {inspection.id}",
        f"Property ID: {inspection.property_id}",
        f"Type: {inspection.inspection_type}",
        f"Status: {inspection.status}",
        f"Scheduled: {_fmt_date(inspection.scheduled_at)}",
        f"Completed: {_fmt_date(inspection.completed_at)}",
        f"Overall Condition: {inspection.overall_condition or 'N/A'}",
    ]
    for detail in details:
        cur.write(detail, 20, size=12)
    cur.skip(20)

    if damages:
        cur.write("Damages Found:", 30, size=16, bold=True)
        for damage in damages:
            cur.write(f"• {damage.damage_type} - {damage.severity} ({damage.room})", 20, x=70)

    if inspection.notes:
        cur.skip(20)
        cur.write("Notes:", 25, size=14, bold=True)
        for line in wrap_text(inspection.notes, config.notes_wrap):
            cur.write(line, 15)

    pages = cur.pages
    if len(pages) > 1 and not pages[-1].lines:
        pages.pop()
    return pages


def _with_offsets(page: Page, config: ReportConfig) -> list[tuple[Line, float]]:
    """Pair each line with the gap above it, in points, for flow layout."""
    out = []
    bottom = 0.0
    for line in page.lines:
        top = config.page_height - line.y - line.size
        out.append((line, max(top - bottom, 0.0)))
        bottom = top + line.size
    return out


def render_html(pages: list[Page], config: ReportConfig | None = None) -> str:
    config = config or get_settings().report
    template = _env.get_template("inspection_report.html.j2")
    return template.render(pages=[_with_offsets(p, config) for p in pages], config=config)


def _html_to_pdf(html: str) -> bytes:
    pdf_buffer = io.BytesIO()
    pisa_status = pisa.CreatePDF(io.StringIO(html), dest=pdf_buffer)
    if pisa_status.err:
        raise RuntimeError(f"PDF generation failed with {pisa_status.err} errors")
    return pdf_buffer.getvalue()


async def generate_inspection_pdf(inspection: Inspection, damages: list) -> bytes:
    """Lay out and render an inspection report. Returns PDF bytes."""
    html = render_html(paginate(inspection, damages))
    return await asyncio.to_thread(_html_to_pdf, html)
