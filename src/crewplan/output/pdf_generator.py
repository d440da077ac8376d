"""PDF generation for timeline output.

This module creates printable PDF timelines showing:
- One lane per worker with availability shading
- Job blocks positioned by the timeline view model
- Conflict highlights and per-worker utilization
"""

from io import BytesIO
from pathlib import Path
from typing import Optional, Union

from crewplan.domain.models import Worker
from crewplan.timeline.axis import Granularity, format_time_12h
from crewplan.timeline.coordinates import Rect
from crewplan.timeline.view_model import TimelineView, WorkerRow

# Color definitions (RGB tuples, 0-1 scale)
COLORS = {
    "job": (0.4, 0.55, 0.85),  # Blue
    "job_conflict": (0.95, 0.75, 0.75),  # Light red
    "conflict_outline": (0.85, 0.1, 0.1),  # Red
    "available": (0.85, 0.95, 0.85),  # Light green
    "lane": (0.95, 0.95, 0.95),  # Light gray
    "grid": (0.7, 0.7, 0.7),  # Gray
}


class PDFGenerator:
    """Generates printable PDF timelines.

    Example:
        >>> generator = PDFGenerator()
        >>> generator.generate(view, workers_map, "week.pdf")
    """

    def __init__(
        self,
        page_width: float = 792,  # Letter landscape width (11")
        page_height: float = 612,  # Letter landscape height (8.5")
        margin: float = 36,  # 0.5 inch margins
        row_height: float = 28,
    ):
        self.page_width = page_width
        self.page_height = page_height
        self.margin = margin
        self.row_height = row_height

    @property
    def timeline_width(self) -> float:
        """Width available for the time axis, after the name column."""
        return self.page_width - 2 * self.margin - 140

    def generate(
        self,
        view: TimelineView,
        workers_map: dict[str, Worker],
        output_path: Union[str, Path],
        title: Optional[str] = None,
    ) -> None:
        """Generate a PDF timeline and save it to file.

        Args:
            view: The timeline view to render.
            workers_map: Dict mapping worker IDs to Worker objects.
            output_path: Path to save the PDF.
            title: Page title; derived from the view range when omitted.
        """
        canvas = self._canvas_module()
        c = canvas.Canvas(str(output_path), pagesize=(self.page_width, self.page_height))
        self._draw_pages(c, view, workers_map, title)
        c.save()

    def generate_to_buffer(
        self,
        view: TimelineView,
        workers_map: dict[str, Worker],
        title: Optional[str] = None,
    ) -> BytesIO:
        """Generate a PDF timeline and return it as a bytes buffer."""
        canvas = self._canvas_module()
        buffer = BytesIO()
        c = canvas.Canvas(buffer, pagesize=(self.page_width, self.page_height))
        self._draw_pages(c, view, workers_map, title)
        c.save()
        buffer.seek(0)
        return buffer

    @staticmethod
    def _canvas_module():
        try:
            from reportlab.pdfgen import canvas
        except ImportError:
            raise ImportError(
                "reportlab is required for PDF generation. "
                "Install with: pip install reportlab"
            )
        return canvas

    def _draw_pages(
        self,
        c,
        view: TimelineView,
        workers_map: dict[str, Worker],
        title: Optional[str],
    ) -> None:
        """Draw the header, axis and worker lanes, paginating rows."""
        header_height = 60
        footer_height = 40
        usable_height = self.page_height - 2 * self.margin - header_height - footer_height
        rows_per_page = max(1, int(usable_height / self.row_height))

        timeline_left = self.margin + 140
        scale = self.timeline_width / view.space.pixel_width

        rows = list(view.rows)
        total_pages = max(1, (len(rows) + rows_per_page - 1) // rows_per_page)

        for page_index in range(total_pages):
            page_rows = rows[page_index * rows_per_page : (page_index + 1) * rows_per_page]

            self._draw_header(c, view, title)
            axis_y = self.page_height - self.margin - header_height
            self._draw_time_axis(c, view, timeline_left, axis_y, scale)

            y = axis_y - 10
            for row in page_rows:
                y -= self.row_height
                self._draw_row(
                    c,
                    row,
                    workers_map,
                    timeline_left,
                    y,
                    self.row_height - 4,
                    scale,
                )

            self._draw_legend(c, self.margin, self.margin + 10)

            c.setFont("Helvetica", 9)
            c.drawCentredString(
                self.page_width / 2,
                self.margin - 10,
                f"Page {page_index + 1} of {total_pages}",
            )
            c.showPage()

    def _draw_header(self, c, view: TimelineView, title: Optional[str]) -> None:
        start = view.space.range_start
        if title is None:
            if view.granularity == Granularity.DAY:
                title = f"Daily Schedule - {start.strftime('%A, %B %d, %Y')}"
            else:
                title = f"Weekly Schedule - week of {start.strftime('%B %d, %Y')}"

        c.setFont("Helvetica-Bold", 16)
        c.drawString(self.margin, self.page_height - self.margin - 20, title)

        c.setFont("Helvetica", 10)
        c.drawString(
            self.margin,
            self.page_height - self.margin - 35,
            f"Workers: {len(view.rows)}    Conflicts: {view.conflict_count}",
        )

    def _draw_time_axis(self, c, view: TimelineView, x: float, y: float, scale: float) -> None:
        """Draw tick marks and labels from the view boundaries."""
        c.setFont("Helvetica", 8)
        c.setStrokeColorRGB(*COLORS["grid"])
        c.setFillColorRGB(0, 0, 0)

        for tick in view.boundaries:
            tick_x = x + tick.position * scale
            c.line(tick_x, y, tick_x, y - 5)
            if tick.position < view.space.pixel_width:
                c.drawCentredString(tick_x, y + 5, tick.label)

    def _draw_row(
        self,
        c,
        row: WorkerRow,
        workers_map: dict[str, Worker],
        timeline_x: float,
        y: float,
        height: float,
        scale: float,
    ) -> None:
        """Draw a single worker lane."""
        worker = workers_map.get(row.worker_id)
        name = worker.name if worker else row.worker_name

        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica", 9)
        c.drawString(self.margin, y + height / 2 - 1, name[:22])
        c.setFont("Helvetica", 7)
        c.drawString(self.margin, y + height / 2 - 9, f"{row.utilization:.0f}% booked")

        c.setFillColorRGB(*COLORS["lane"])
        c.rect(timeline_x, y, self.timeline_width, height, fill=1, stroke=0)

        c.setFillColorRGB(*COLORS["available"])
        for rect in row.availability:
            self._fill(c, rect, timeline_x, y, height, scale)

        for block in row.blocks:
            color = COLORS["job_conflict"] if block.in_conflict else COLORS["job"]
            c.setFillColorRGB(*color)
            bx, bw = self._fill(c, block.rect, timeline_x, y, height, scale)

            if bw > 30:
                text_color = (0, 0, 0) if block.in_conflict else (1, 1, 1)
                c.setFillColorRGB(*text_color)
                c.setFont("Helvetica", 6)
                c.drawString(bx + 2, y + height / 2 + 2, block.job_id[:12])
                c.drawString(bx + 2, y + height / 2 - 6, format_time_12h(block.start))

        c.setStrokeColorRGB(*COLORS["conflict_outline"])
        c.setLineWidth(1.2)
        for marker in row.conflicts:
            mx = timeline_x + marker.rect.x * scale
            c.rect(mx, y, max(1.0, marker.rect.width * scale), height, fill=0, stroke=1)
        c.setLineWidth(1)

    @staticmethod
    def _fill(c, rect: Rect, timeline_x: float, y: float, height: float, scale: float) -> tuple[float, float]:
        bx = timeline_x + rect.x * scale
        bw = max(0.5, rect.width * scale)
        c.rect(bx, y, bw, height, fill=1, stroke=0)
        return bx, bw

    def _draw_legend(self, c, x: float, y: float) -> None:
        legend_items = [
            ("Job", COLORS["job"]),
            ("In conflict", COLORS["job_conflict"]),
            ("Available", COLORS["available"]),
        ]
        c.setFont("Helvetica", 8)
        for label, color in legend_items:
            c.setFillColorRGB(*color)
            c.rect(x, y, 10, 10, fill=1, stroke=0)
            c.setFillColorRGB(0, 0, 0)
            c.drawString(x + 14, y + 2, label)
            x += 80
