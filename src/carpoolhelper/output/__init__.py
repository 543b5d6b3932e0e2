"""Output generation for schedules (PDF)."""

from carpoolhelper.output.pdf_generator import PDFGenerator

__all__ = [
    "PDFGenerator",
]
