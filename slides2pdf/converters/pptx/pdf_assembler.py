"""
PDF Page Assembler
==================

Appends one page per slide to a reportlab canvas.

Rendered slides become full-bleed image pages: the page is exactly the size
of the slide canvas (one canvas pixel per PDF point) and the image covers it
with no margin. Slides that failed get a text page of the same size naming
the slide and the error, so page N of the output is always slide N of the
source.
"""

import io
import logging

from PIL import Image
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfgen import canvas

from slides2pdf.converters.data_types import PresentationMetadata
from slides2pdf.converters.util.units import CanvasSize

logger = logging.getLogger(__name__)

ERROR_PAGE_MARGIN = 50
ERROR_HEADING_SIZE = 24
ERROR_TEXT_SIZE = 12
ERROR_TEXT_COLOR = (0.8, 0.0, 0.0)


class PdfDocumentBuilder:
    """
    Append-only PDF document, one page per call.

    Usage:
        builder = PdfDocumentBuilder()
        builder.add_slide_page(image, canvas_size)
        builder.add_error_page(2, "Malformed slide XML", canvas_size)
        pdf_bytes = builder.finish()
    """

    def __init__(self, error_font: str = "Helvetica"):
        self._buffer = io.BytesIO()
        self._canvas = canvas.Canvas(self._buffer, pageCompression=1)
        self._canvas.setCreator("slides2pdf")
        self._error_font = error_font
        self._finished = False
        self.page_count = 0

    def set_metadata(self, metadata: PresentationMetadata) -> None:
        if metadata.title:
            self._canvas.setTitle(metadata.title)
        if metadata.author:
            self._canvas.setAuthor(metadata.author)
        if metadata.subject:
            self._canvas.setSubject(metadata.subject)
        if metadata.keywords:
            self._canvas.setKeywords(metadata.keywords)

    def _start_page(self, canvas_size: CanvasSize) -> None:
        if self._finished:
            raise RuntimeError("PDF document is already finished")
        self._canvas.setPageSize((canvas_size.width, canvas_size.height))

    def _end_page(self) -> None:
        self._canvas.showPage()
        self.page_count += 1

    def add_slide_page(self, image: Image.Image, canvas_size: CanvasSize) -> None:
        """Add a full-bleed page showing ``image``."""
        self._start_page(canvas_size)
        self._canvas.drawImage(
            ImageReader(image),
            0,
            0,
            width=canvas_size.width,
            height=canvas_size.height,
            preserveAspectRatio=False,
        )
        self._end_page()

    def add_error_page(
        self, slide_number: int, message: str, canvas_size: CanvasSize
    ) -> None:
        """Add a page standing in for a slide that could not be rendered."""
        self._start_page(canvas_size)
        pdf = self._canvas
        top = canvas_size.height - ERROR_PAGE_MARGIN

        pdf.setFillColorRGB(0, 0, 0)
        pdf.setFont(self._error_font, ERROR_HEADING_SIZE)
        pdf.drawString(ERROR_PAGE_MARGIN, top - ERROR_HEADING_SIZE, f"Slide {slide_number}")

        pdf.setFillColorRGB(*ERROR_TEXT_COLOR)
        pdf.setFont(self._error_font, ERROR_TEXT_SIZE)
        available = max(canvas_size.width - 2 * ERROR_PAGE_MARGIN, ERROR_TEXT_SIZE)
        text = f"Error processing slide {slide_number}: {message}"
        y = top - ERROR_HEADING_SIZE - 2 * ERROR_TEXT_SIZE
        for line in simpleSplit(text, self._error_font, ERROR_TEXT_SIZE, available):
            if y < ERROR_TEXT_SIZE:
                break
            pdf.drawString(ERROR_PAGE_MARGIN, y, line)
            y -= ERROR_TEXT_SIZE * 1.4
        self._end_page()

    def finish(self) -> bytes:
        if not self._finished:
            self._canvas.save()
            self._finished = True
            logger.debug(f"Assembled PDF with {self.page_count} pages")
        return self._buffer.getvalue()


def assemble_page(
    image: Image.Image, canvas_size: CanvasSize, document: PdfDocumentBuilder
) -> None:
    document.add_slide_page(image, canvas_size)


def assemble_error_page(
    slide_number: int,
    message: str,
    canvas_size: CanvasSize,
    document: PdfDocumentBuilder,
) -> None:
    document.add_error_page(slide_number, message, canvas_size)
