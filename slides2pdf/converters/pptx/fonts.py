import logging
from functools import lru_cache

from PIL import ImageFont

from slides2pdf.converters.data_types import FontSpec

logger = logging.getLogger(__name__)

# Font files tried when the requested family is not installed. Pillow looks
# file names up in the platform font directories.
FALLBACK_FONT_FILES = {
    (False, False): ["DejaVuSans.ttf", "LiberationSans-Regular.ttf", "arial.ttf"],
    (True, False): ["DejaVuSans-Bold.ttf", "LiberationSans-Bold.ttf", "arialbd.ttf"],
    (False, True): [
        "DejaVuSans-Oblique.ttf",
        "LiberationSans-Italic.ttf",
        "ariali.ttf",
    ],
    (True, True): [
        "DejaVuSans-BoldOblique.ttf",
        "LiberationSans-BoldItalic.ttf",
        "arialbi.ttf",
    ],
}

_STYLE_SUFFIXES = {
    (False, False): ["", "-Regular"],
    (True, False): ["-Bold", " Bold", "bd"],
    (False, True): ["-Italic", " Italic", "i"],
    (True, True): ["-BoldItalic", " Bold Italic", "bi"],
}


def _candidates(family: str, bold: bool, italic: bool) -> list[str]:
    names = []
    compact = family.replace(" ", "")
    for suffix in _STYLE_SUFFIXES[(bold, italic)]:
        for base in dict.fromkeys((compact, compact.lower())):
            names.append(f"{base}{suffix}.ttf")
    names.extend(FALLBACK_FONT_FILES[(bold, italic)])
    # regular faces as a last resort for styled text
    if bold or italic:
        names.extend(FALLBACK_FONT_FILES[(False, False)])
    return names


@lru_cache(maxsize=256)
def load_font(family: str, size: int, bold: bool = False, italic: bool = False):
    """Load a Pillow font for the given face, falling back to bundled fonts."""
    size = max(int(size), 1)
    for name in _candidates(family, bold, italic):
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    logger.debug(f"No TrueType font found for [{family}], using Pillow default font")
    return ImageFont.load_default(size=size)


def font_for(spec: FontSpec):
    return load_font(spec.family, round(spec.size), spec.bold, spec.italic)


def measure_text(text: str, spec: FontSpec) -> float:
    """Advance width of ``text`` in pixels; the layout engine's measuring primitive."""
    if not text:
        return 0.0
    return float(font_for(spec).getlength(text))
