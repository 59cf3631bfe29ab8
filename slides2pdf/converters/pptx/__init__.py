"""
Presentation Rendering Package
==============================

The stages that turn one slide of an Office Open XML presentation into one
page of a PDF document. The orchestration lives in
:mod:`slides2pdf.converters.pptx_converter`; this package holds the stages.

Stages
------

slide_extractor:
    Parses ``ppt/slides/slideN.xml`` with ElementTree into a SlideModel:
    background, geometric shapes, pictures and text shapes. Layout and
    master placeholders (template) and theme colors (colors) fill in what
    the slide omits.

text_layout:
    Word wraps paragraphs into positioned lines using an injected text
    measuring primitive. Handles alignment, bullets, indent levels, line
    spacing and vertical anchoring.

rasterizer:
    Paints a SlideModel onto a fresh Pillow image in a fixed z-order.
    Fonts are resolved through fonts.

pdf_assembler:
    Appends rendered slides (or error pages) to a reportlab canvas, one
    full-bleed page per slide.

Units
-----
Positions in the package are EMU (914400 per inch). Everything after the
extractor works in canvas pixels at the configured DPI; the PDF uses one
point per canvas pixel, so a 960x540 canvas becomes a 960x540pt page.

Known Limitations
-----------------
- Tables, charts and SmartArt (graphic frames) are not drawn
- Connectors are not drawn
- Only rectangle, ellipse and rounded rectangle geometries are drawn exactly,
  every other preset is drawn as its bounding rectangle
- Gradient fills use their first stop color
- EMF/WMF/SVG media are skipped
- Rotation and flips are ignored

Usage Example
-------------
    >>> from slides2pdf.converters.pptx import extract_slide, rasterize
    >>> from slides2pdf.converters.util.package import open_package
    >>> from slides2pdf.converters.util.relationships import resolve_slide_relationships
    >>> from slides2pdf.converters.util.units import get_slide_canvas_size
    >>>
    >>> with open("slides.pptx", "rb") as f, open_package(f.read()) as package:
    ...     canvas = get_slide_canvas_size(package)
    ...     model = extract_slide(
    ...         package.read_binary("ppt/slides/slide1.xml"),
    ...         resolve_slide_relationships(package, 1),
    ...         package,
    ...         canvas=canvas,
    ...     )
    ...     rasterize(model, canvas).save("slide1.png")

See Also
--------
- slides2pdf.converters.util: Package, relationship and unit helpers
- slides2pdf.converters.data_types: Data structures passed between stages
"""

from slides2pdf.converters.pptx.pdf_assembler import (
    PdfDocumentBuilder,
    assemble_error_page,
    assemble_page,
)
from slides2pdf.converters.pptx.rasterizer import rasterize
from slides2pdf.converters.pptx.slide_extractor import extract_slide
from slides2pdf.converters.pptx.text_layout import layout

__all__ = [
    "PdfDocumentBuilder",
    "assemble_error_page",
    "assemble_page",
    "extract_slide",
    "layout",
    "rasterize",
]
