"""
Shared Image Utilities
======================

Signature sniffing and decoding of media parts embedded in a presentation.

Presentations embed raster images (PNG, JPEG, GIF, BMP, TIFF) next to vector
formats (EMF, WMF, SVG). Only the raster formats can be placed on a slide
canvas; everything else is skipped by the caller.
"""

import io
import logging

from PIL import Image

logger = logging.getLogger(__name__)

# =============================================================================
# Image Signatures for Format Detection
# =============================================================================
PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
JPEG_SIGNATURE = b"\xff\xd8\xff"
GIF_SIGNATURE = b"GIF8"
BMP_SIGNATURE = b"BM"
TIFF_LE_SIGNATURE = b"II\x2a\x00"
TIFF_BE_SIGNATURE = b"MM\x00\x2a"
EMF_SIGNATURE = b" EMF"  # at offset 40
WMF_PLACEABLE_SIGNATURE = b"\xd7\xcd\xc6\x9a"

# Formats the rasterizer can draw
RASTER_TYPES = frozenset({"png", "jpeg", "gif", "bmp", "tiff"})


def detect_image_type(data: bytes) -> tuple[str, str] | None:
    """
    Detect image type from binary data by checking file signatures.

    Args:
        data: Raw image bytes (at least first 8 bytes needed).

    Returns:
        Tuple of (extension, content_type) or None if not recognized.
    """
    if len(data) < 8:
        return None

    if data[:8] == PNG_SIGNATURE:
        return ("png", "image/png")
    if data[:3] == JPEG_SIGNATURE:
        return ("jpeg", "image/jpeg")
    if data[:4] == GIF_SIGNATURE:
        return ("gif", "image/gif")
    if data[:2] == BMP_SIGNATURE:
        return ("bmp", "image/bmp")
    if data[:4] == TIFF_LE_SIGNATURE or data[:4] == TIFF_BE_SIGNATURE:
        return ("tiff", "image/tiff")
    if data[:4] == WMF_PLACEABLE_SIGNATURE:
        return ("wmf", "image/x-wmf")
    if data[40:44] == EMF_SIGNATURE:
        return ("emf", "image/x-emf")
    head = data[:256].lstrip()
    if head.startswith(b"<?xml") or head.startswith(b"<svg"):
        return ("svg", "image/svg+xml")

    return None


def decode_image(data: bytes, name: str = "") -> Image.Image | None:
    """
    Decode a raster media part into an RGBA Pillow image.

    Returns None for vector formats and for data Pillow cannot decode.
    """
    detected = detect_image_type(data)
    if detected is None or detected[0] not in RASTER_TYPES:
        logger.warning(
            f"Silently ignoring - Unsupported media format [{name}]: "
            f"{detected[0] if detected else 'unknown'}"
        )
        return None

    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            return img.convert("RGBA")
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        logger.warning(f"Silently ignoring - Failed to decode image [{name}]: {e}")
        return None
