"""Output generation for timelines."""

from crewplan.output.pdf_generator import PDFGenerator

__all__ = ["PDFGenerator"]
