"""PDF generation for carpool schedule output.

This module creates printable PDF rosters showing:
- The weekly carpool with each day's driver, passengers and times
- A fairness summary with driving history per member
"""

from io import BytesIO
from pathlib import Path
from typing import Optional, Union

from carpoolhelper.domain.models import (
    SCHOOL_DAYS,
    FairnessMetric,
    ScheduleAssignment,
    WeeklySchedule,
    day_name,
)

# Color definitions (RGB tuples, 0-1 scale)
COLORS = {
    "driver": (0.4, 0.7, 0.4),  # Green
    "passenger": (0.4, 0.4, 0.8),  # Blue
    "unfilled": (0.95, 0.85, 0.85),  # Light red
    "row": (0.95, 0.95, 0.95),  # Light gray
    "debt_positive": (0.8, 0.6, 0.2),  # Orange
    "debt_negative": (0.6, 0.6, 0.6),  # Gray
}


def _require_reportlab():
    try:
        from reportlab.lib.pagesizes import landscape, letter
        from reportlab.pdfgen import canvas
    except ImportError:
        raise ImportError(
            "reportlab is required for PDF generation. "
            "Install with: pip install reportlab"
        )
    return canvas, landscape(letter)


class PDFGenerator:
    """Generates printable weekly carpool rosters.

    Example:
        >>> generator = PDFGenerator()
        >>> generator.generate(schedule, names, "carpool.pdf", fairness_metrics=metrics)
    """

    def __init__(
        self,
        page_width: float = 792,  # Letter landscape width (11")
        page_height: float = 612,  # Letter landscape height (8.5")
        margin: float = 36,  # 0.5 inch margins
    ):
        self.page_width = page_width
        self.page_height = page_height
        self.margin = margin

    def generate(
        self,
        schedule: WeeklySchedule,
        names: dict[str, str],
        output_path: Union[str, Path],
        fairness_metrics: Optional[list[FairnessMetric]] = None,
    ) -> None:
        """Generate the roster PDF and save to file.

        Args:
            schedule: The weekly schedule to render.
            names: Mapping from user id to display name.
            output_path: Path to save the PDF.
            fairness_metrics: When given, a fairness summary page is added.
        """
        canvas, pagesize = _require_reportlab()
        c = canvas.Canvas(str(output_path), pagesize=pagesize)
        self._draw(c, schedule, names, fairness_metrics)
        c.save()

    def generate_to_buffer(
        self,
        schedule: WeeklySchedule,
        names: dict[str, str],
        fairness_metrics: Optional[list[FairnessMetric]] = None,
    ) -> BytesIO:
        """Generate the roster PDF and return it as a bytes buffer."""
        canvas, pagesize = _require_reportlab()
        buffer = BytesIO()
        c = canvas.Canvas(buffer, pagesize=pagesize)
        self._draw(c, schedule, names, fairness_metrics)
        c.save()
        buffer.seek(0)
        return buffer

    def _draw(
        self,
        c,
        schedule: WeeklySchedule,
        names: dict[str, str],
        fairness_metrics: Optional[list[FairnessMetric]],
    ) -> None:
        self._draw_roster_page(c, schedule, names)
        if fairness_metrics:
            self._draw_fairness_page(c, schedule, fairness_metrics)

    def _draw_roster_page(self, c, schedule: WeeklySchedule, names: dict[str, str]) -> None:
        """Draw one row per weekday with driver and passengers."""
        self._draw_header(c, schedule)

        row_height = 70
        top = self.page_height - self.margin - 80
        name_col = self.margin + 110
        time_col = name_col + 170
        passengers_col = time_col + 100

        c.setFont("Helvetica-Bold", 10)
        c.drawString(self.margin, top + 10, "Day")
        c.drawString(name_col, top + 10, "Driver")
        c.drawString(time_col, top + 10, "Time")
        c.drawString(passengers_col, top + 10, "Passengers")

        y = top
        for day_of_week in range(SCHOOL_DAYS):
            y -= row_height
            assignment = schedule.get_assignment_for_day(day_of_week)
            self._draw_day_row(
                c, schedule, assignment, day_of_week, names,
                y, row_height - 6, name_col, time_col, passengers_col,
            )

        c.setFont("Helvetica", 8)
        c.drawString(
            self.margin,
            self.margin,
            f"Generated {schedule.generated_at:%Y-%m-%d %H:%M} by {schedule.generated_by}"
            if schedule.generated_at else f"Generated by {schedule.generated_by}",
        )
        c.showPage()

    def _draw_header(self, c, schedule: WeeklySchedule) -> None:
        """Draw page header with week and status."""
        c.setFont("Helvetica-Bold", 16)
        c.drawString(
            self.margin,
            self.page_height - self.margin - 20,
            f"Carpool Schedule - Week of {schedule.week_start.strftime('%B %d, %Y')}",
        )

        c.setFont("Helvetica", 10)
        c.drawString(
            self.margin,
            self.page_height - self.margin - 35,
            f"Status: {schedule.status.value}   "
            f"Days filled: {len(schedule.assignments)}/{SCHOOL_DAYS}   "
            f"Fairness score: {schedule.fairness_score:.2f}",
        )

    def _draw_day_row(
        self,
        c,
        schedule: WeeklySchedule,
        assignment: Optional[ScheduleAssignment],
        day_of_week: int,
        names: dict[str, str],
        y: float,
        height: float,
        name_col: float,
        time_col: float,
        passengers_col: float,
    ) -> None:
        """Draw a single weekday row."""
        row_width = self.page_width - 2 * self.margin
        background = COLORS["row"] if assignment else COLORS["unfilled"]
        c.setFillColorRGB(*background)
        c.rect(self.margin - 4, y, row_width + 8, height, fill=1, stroke=0)

        text_y = y + height / 2 - 3
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica-Bold", 10)
        c.drawString(self.margin, text_y + 6, day_name(day_of_week))
        c.setFont("Helvetica", 8)
        d = schedule.schedule_dates[day_of_week]
        c.drawString(self.margin, text_y - 6, d.strftime("%b %d"))

        if assignment is None:
            c.setFont("Helvetica-Oblique", 10)
            c.drawString(name_col, text_y, "No carpool")
            return

        c.setFillColorRGB(*COLORS["driver"])
        c.rect(name_col - 10, text_y - 1, 6, 6, fill=1, stroke=0)
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica", 10)
        c.drawString(name_col, text_y, names.get(assignment.driver_id, assignment.driver_id)[:28])

        c.drawString(
            time_col,
            text_y,
            f"{assignment.scheduled_start_time:%H:%M}-{assignment.scheduled_end_time:%H:%M}",
        )

        passenger_names = [names.get(p, p) for p in assignment.passengers]
        c.setFillColorRGB(*COLORS["passenger"])
        c.rect(passengers_col - 10, text_y - 1, 6, 6, fill=1, stroke=0)
        c.setFillColorRGB(0, 0, 0)
        c.drawString(passengers_col, text_y, ", ".join(passenger_names) or "None")

    def _draw_fairness_page(
        self,
        c,
        schedule: WeeklySchedule,
        fairness_metrics: list[FairnessMetric],
    ) -> None:
        """Draw summary page with driving history and fairness debt."""
        c.setFont("Helvetica-Bold", 16)
        c.drawString(
            self.margin,
            self.page_height - self.margin - 20,
            f"Driving Fairness - Week of {schedule.week_start.strftime('%B %d, %Y')}",
        )

        y = self.page_height - self.margin - 60
        columns = [
            ("Member", self.margin),
            ("Driven", self.margin + 200),
            ("Ridden", self.margin + 270),
            ("Score", self.margin + 340),
            ("Debt", self.margin + 410),
        ]
        c.setFont("Helvetica-Bold", 10)
        for label, x in columns:
            c.drawString(x, y, label)
        y -= 18

        bar_x = self.margin + 480
        bar_scale = 200

        c.setFont("Helvetica", 9)
        for metric in fairness_metrics:
            c.setFillColorRGB(0, 0, 0)
            c.drawString(columns[0][1], y, metric.user_name[:32])
            c.drawString(columns[1][1], y, str(metric.driving_assignments))
            c.drawString(columns[2][1], y, str(metric.passenger_assignments))
            c.drawString(columns[3][1], y, f"{metric.fairness_score:.2f}")
            c.drawString(columns[4][1], y, f"{metric.fairness_debt:+.2f}")

            # Debt bar, centered at bar_x + bar_scale / 2
            center = bar_x + bar_scale / 2
            width = max(-1.0, min(1.0, metric.fairness_debt)) * (bar_scale / 2)
            key = "debt_positive" if metric.fairness_debt > 0 else "debt_negative"
            c.setFillColorRGB(*COLORS[key])
            c.rect(min(center, center + width), y - 2, abs(width), 9, fill=1, stroke=0)

            y -= 15
            if y < self.margin + 20:
                c.showPage()
                y = self.page_height - self.margin - 40
                c.setFont("Helvetica", 9)

        c.showPage()
