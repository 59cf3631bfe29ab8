"""
PPTX to PDF Conversion
======================

Drives the conversion of one presentation package into a PDF document with
exactly one page per slide.

Pipeline
--------
    1. open the package (fatal: MalformedPackageError)
    2. discover slide parts, sorted by their numeric suffix
       (fatal: NoSlidesFoundError when there are none)
    3. read the shared canvas size, theme colors and document metadata once
    4. for every slide in order:
        - resolve its relationships and layout/master template
        - extract the slide model
        - lay out and rasterize it onto a fresh canvas
        - append the image as a full-bleed page
       Any failure inside this step is confined to the slide: an error page
       naming the slide and the error takes its place.
    5. save the document

Progress
--------
The optional callback receives integers in [0, 100] that never decrease:
0 at start, 10 once the package is open, 20 after slide discovery, an
evenly spaced value before each slide, 95 after the last slide and 100
when the PDF is complete. A callback that raises is logged and ignored.
"""

import io
import logging
from typing import Callable
from xml.etree import ElementTree as ET

from slides2pdf.exceptions import (
    ConversionError,
    NoSlidesFoundError,
    SlideExtractionError,
)
from slides2pdf.converters.data_types import (
    ConversionResult,
    PresentationMetadata,
    SlideOutcome,
)
from slides2pdf.converters.options import DEFAULT_OPTIONS, ConversionOptions
from slides2pdf.converters.pptx.colors import load_theme_colors
from slides2pdf.converters.pptx.ooxml import (
    CP_KEYWORDS,
    DC_CREATOR,
    DC_SUBJECT,
    DC_TITLE,
)
from slides2pdf.converters.pptx.pdf_assembler import (
    PdfDocumentBuilder,
    assemble_error_page,
    assemble_page,
)
from slides2pdf.converters.pptx.rasterizer import rasterize
from slides2pdf.converters.pptx.slide_extractor import extract_slide
from slides2pdf.converters.pptx.template import load_slide_template
from slides2pdf.converters.util.package import CORE_PROPERTIES_PART, Package
from slides2pdf.converters.util.relationships import resolve_part_relationships
from slides2pdf.converters.util.units import CanvasSize, get_slide_canvas_size

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]

PROGRESS_START = 0
PROGRESS_OPENED = 10
PROGRESS_DISCOVERED = 20
PROGRESS_SLIDES_DONE = 95
PROGRESS_COMPLETE = 100


class ProgressReporter:
    """Reports clamped, non-decreasing progress values to an optional callback."""

    def __init__(self, callback: ProgressCallback | None = None):
        self._callback = callback
        self.last_value = -1

    def report(self, value: float) -> None:
        value = min(max(int(value), 0), 100)
        if value < self.last_value:
            value = self.last_value
        self.last_value = value
        if self._callback is None:
            return
        try:
            self._callback(value)
        except Exception as e:
            logger.warning(f"Silently ignoring - Progress callback failed: {e}")

    def slide_started(self, index: int, total: int) -> None:
        """Progress before slide ``index`` (0-based) of ``total``."""
        span = PROGRESS_SLIDES_DONE - PROGRESS_DISCOVERED
        self.report(PROGRESS_DISCOVERED + span * index / total)


def read_presentation_metadata(package: Package) -> PresentationMetadata:
    """Title, author, subject and keywords from ``docProps/core.xml``."""
    metadata = PresentationMetadata()
    try:
        root = package.read_xml_root(CORE_PROPERTIES_PART)
    except ET.ParseError as e:
        logger.warning(f"Silently ignoring - Unreadable document properties: {e}")
        return metadata
    if root is None:
        return metadata

    for attribute, tag in (
        ("title", DC_TITLE),
        ("author", DC_CREATOR),
        ("subject", DC_SUBJECT),
        ("keywords", CP_KEYWORDS),
    ):
        elem = root.find(tag)
        if elem is not None and elem.text:
            setattr(metadata, attribute, elem.text.strip())
    return metadata


def _render_slide(
    package: Package,
    entry: str,
    ordinal: int,
    canvas_size: CanvasSize,
    theme_colors: dict[str, str],
    options: ConversionOptions,
):
    slide_xml = package.read_binary(entry)
    if slide_xml is None:
        raise SlideExtractionError(f"Slide part {entry} is missing", slide_number=ordinal)

    relationships = resolve_part_relationships(package, entry)
    template = load_slide_template(package, relationships, theme_colors, options.dpi)
    model = extract_slide(
        slide_xml,
        relationships,
        package,
        template=template,
        canvas=canvas_size,
        dpi=options.dpi,
        slide_number=ordinal,
        default_font_family=options.default_font_family,
    )
    return rasterize(model, canvas_size)


def _convert_package(
    package: Package,
    reporter: ProgressReporter,
    options: ConversionOptions,
) -> ConversionResult:
    slides = package.slide_entries()
    if not slides:
        raise NoSlidesFoundError()
    reporter.report(PROGRESS_DISCOVERED)

    canvas_size = get_slide_canvas_size(package, options.dpi)
    theme_colors = load_theme_colors(package)
    metadata = read_presentation_metadata(package)

    document = PdfDocumentBuilder(error_font=options.error_font)
    document.set_metadata(metadata)
    result = ConversionResult(
        width=canvas_size.width, height=canvas_size.height, metadata=metadata
    )

    for index, (_, entry) in enumerate(slides):
        ordinal = index + 1
        reporter.slide_started(index, len(slides))
        try:
            image = _render_slide(
                package, entry, ordinal, canvas_size, theme_colors, options
            )
            assemble_page(image, canvas_size, document)
        except Exception as e:
            if isinstance(e, SlideExtractionError):
                error = e
            else:
                error = SlideExtractionError(str(e), slide_number=ordinal, cause=e)
            logger.warning(f"Rendering error page for slide {ordinal} [{entry}]: {error}")
            assemble_error_page(ordinal, str(error), canvas_size, document)
            result.slides.append(
                SlideOutcome(
                    slide_number=ordinal, source=entry, succeeded=False, error=str(error)
                )
            )
            continue
        result.slides.append(SlideOutcome(slide_number=ordinal, source=entry))

    reporter.report(PROGRESS_SLIDES_DONE)
    result.pdf = document.finish()
    return result


def convert_pptx(
    file_like: io.BytesIO,
    path: str | None = None,
    progress_callback: ProgressCallback | None = None,
    *,
    options: ConversionOptions | None = None,
) -> ConversionResult:
    """
    Convert a PowerPoint .pptx package into a PDF document.

    Args:
        file_like: BytesIO object containing the complete package. The
            stream position is reset to the beginning before reading.
        path: Optional filesystem path of the source, used in log messages.
        progress_callback: Called with integer progress values in [0, 100].
        options: Conversion settings, defaults to :data:`DEFAULT_OPTIONS`.

    Returns:
        ConversionResult with the PDF bytes and one SlideOutcome per page.

    Raises:
        MalformedPackageError: The input is not a presentation archive.
        NoSlidesFoundError: The package contains no slide parts.
        ConversionError: Any other failure outside of a single slide.

    Example:
        >>> import io
        >>> with open("presentation.pptx", "rb") as f:
        ...     result = convert_pptx(io.BytesIO(f.read()), path="presentation.pptx")
        >>> print(f"{result.page_count} pages, {len(result.failed_slides)} failed")
    """
    options = options or DEFAULT_OPTIONS
    source = path or "<stream>"
    logger.debug(f"Converting pptx [{source}]")

    reporter = ProgressReporter(progress_callback)
    reporter.report(PROGRESS_START)

    file_like.seek(0)
    package = Package(file_like, limits=options.zip_limits)
    try:
        reporter.report(PROGRESS_OPENED)
        result = _convert_package(package, reporter, options)
    except ConversionError:
        raise
    except Exception as e:
        raise ConversionError(f"Failed to convert [{source}]: {e}", cause=e) from e
    finally:
        package.close()

    reporter.report(PROGRESS_COMPLETE)
    logger.info(
        "Converted PPTX [%s]: %d pages, %d failed slides",
        source,
        result.page_count,
        len(result.failed_slides),
    )
    return result


def convert_presentation_to_document(
    data: bytes,
    progress_callback: ProgressCallback | None = None,
    *,
    options: ConversionOptions | None = None,
) -> bytes:
    """Convert presentation bytes to PDF bytes."""
    return convert_pptx(
        io.BytesIO(data), progress_callback=progress_callback, options=options
    ).pdf
