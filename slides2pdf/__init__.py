"""
slides2pdf: PowerPoint to PDF conversion without an office suite.

Reads Office Open XML presentation packages (.pptx and relatives), renders
every slide onto a raster canvas and assembles the pages into a PDF whose
page count always equals the number of slides. Slides that cannot be
rendered get an error page instead of aborting the conversion.
"""

import io
import logging
from pathlib import Path

from slides2pdf.converters.data_types import (
    ConversionResult,
    PresentationMetadata,
    SlideOutcome,
)
from slides2pdf.converters.options import ConversionOptions
from slides2pdf.router import get_converter, is_supported_file

__version__ = "0.1.0.dev1"

logger = logging.getLogger(__name__)


def convert_pptx(
    file_like: io.BytesIO,
    path: str | None = None,
    progress_callback=None,
    *,
    options: ConversionOptions | None = None,
) -> ConversionResult:
    """Convert a PPTX package to PDF."""
    from slides2pdf.converters.pptx_converter import convert_pptx as _convert_pptx

    return _convert_pptx(file_like, path, progress_callback, options=options)


def convert_presentation_to_document(
    data: bytes,
    progress_callback=None,
    *,
    options: ConversionOptions | None = None,
) -> bytes:
    """Convert presentation bytes to PDF bytes."""
    from slides2pdf.converters.pptx_converter import (
        convert_presentation_to_document as _convert,
    )

    return _convert(data, progress_callback, options=options)


def convert_file(
    path: str | Path,
    output_path: str | Path | None = None,
    progress_callback=None,
    *,
    options: ConversionOptions | None = None,
) -> ConversionResult:
    """
    Convert a presentation file.

    Detects the file type from the path and uses the matching converter.

    Args:
        path: Path to the presentation.
        output_path: Where to write the PDF. Nothing is written when None.
        progress_callback: Called with integer progress values in [0, 100].
        options: Conversion settings.

    Returns:
        ConversionResult with the PDF bytes and per-slide outcomes.

    Raises:
        ConversionFileFormatNotSupportedError: The file type is not supported.
        FileNotFoundError: If the file does not exist.
        MalformedPackageError: The file is not a presentation package.
        NoSlidesFoundError: The presentation has no slides.

    Example:
        >>> import slides2pdf
        >>> result = slides2pdf.convert_file("deck.pptx", "deck.pdf")
        >>> print(result.page_count)
    """
    path = Path(path)
    converter = get_converter(str(path))
    with open(path, "rb") as f:
        result = converter(
            io.BytesIO(f.read()), str(path), progress_callback, options=options
        )
    if output_path is not None:
        Path(output_path).write_bytes(result.pdf)
        logger.debug(f"Wrote {len(result.pdf)} bytes to [{output_path}]")
    return result


__all__ = [
    # Version
    "__version__",
    # Main functions
    "convert_file",
    "convert_pptx",
    "convert_presentation_to_document",
    "is_supported_file",
    "get_converter",
    # Types
    "ConversionOptions",
    "ConversionResult",
    "PresentationMetadata",
    "SlideOutcome",
]
