import logging
from dataclasses import dataclass

from slides2pdf.converters.util.package import PRESENTATION_PART, Package

logger = logging.getLogger(__name__)

P_NS = "{http://schemas.openxmlformats.org/presentationml/2006/main}"
P_SLDSZ = f"{P_NS}sldSz"

EMU_PER_INCH = 914400
EMU_PER_POINT = 12700
POINTS_PER_INCH = 72
DEFAULT_DPI = 96.0

# 16:9 slide, 10in x 5.625in (960 x 540 at 96 DPI)
DEFAULT_SLIDE_WIDTH_EMU = 9144000
DEFAULT_SLIDE_HEIGHT_EMU = 5143500


@dataclass(frozen=True)
class CanvasSize:
    width: int
    height: int


def emu_to_pixels(value: float, dpi: float = DEFAULT_DPI) -> float:
    # multiply first so whole inches convert exactly
    return value * dpi / EMU_PER_INCH


def points_to_pixels(value: float, dpi: float = DEFAULT_DPI) -> float:
    return value * dpi / POINTS_PER_INCH


def get_slide_canvas_size(package: Package, dpi: float = DEFAULT_DPI) -> CanvasSize:
    """Read the slide size declared in ``ppt/presentation.xml``.

    Falls back to a 16:9 canvas when the declaration is missing or
    unusable.
    """
    width_emu, height_emu = DEFAULT_SLIDE_WIDTH_EMU, DEFAULT_SLIDE_HEIGHT_EMU
    try:
        root = package.read_xml_root(PRESENTATION_PART)
        sld_sz = root.find(P_SLDSZ) if root is not None else None
        if sld_sz is not None:
            cx = int(sld_sz.get("cx", "0"))
            cy = int(sld_sz.get("cy", "0"))
            if cx > 0 and cy > 0:
                width_emu, height_emu = cx, cy
    except Exception as e:
        logger.warning(f"Using default slide size, failed to read it: {e}")

    size = CanvasSize(
        width=max(1, round(emu_to_pixels(width_emu, dpi))),
        height=max(1, round(emu_to_pixels(height_emu, dpi))),
    )
    logger.debug(f"Slide canvas size: {size.width}x{size.height} at {dpi} DPI")
    return size
