import colorsys
import logging
import re

from slides2pdf.converters.pptx.ooxml import (
    A_CLRSCHEME,
    A_LUMMOD,
    A_LUMOFF,
    A_PRSTCLR,
    A_SCHEMECLR,
    A_SRGBCLR,
    A_SYSCLR,
    int_attr,
    local_name,
)
from slides2pdf.converters.util.package import Package

logger = logging.getLogger(__name__)

THEME_PART_PATTERN = re.compile(r"^ppt/theme/theme(\d+)\.xml$")

# Color map of the default master (clrMap) for the text/background aliases
SCHEME_ALIASES = {"tx1": "dk1", "bg1": "lt1", "tx2": "dk2", "bg2": "lt2"}

PRESET_COLORS = {
    "black": "000000",
    "white": "FFFFFF",
    "red": "FF0000",
    "green": "008000",
    "blue": "0000FF",
    "yellow": "FFFF00",
    "gray": "808080",
    "orange": "FFA500",
}


def load_theme_colors(package: Package) -> dict[str, str]:
    """Load the color scheme of the first theme part.

    Returns mapping like ``{'accent1': 'RRGGBB', 'dk1': 'RRGGBB', ...}``,
    empty when the package carries no usable theme.
    """
    themes = []
    for name in package.list_entries_matching(THEME_PART_PATTERN):
        themes.append((int(THEME_PART_PATTERN.match(name).group(1)), name))
    if not themes:
        return {}
    name = min(themes)[1]

    out: dict[str, str] = {}
    try:
        root = package.read_xml_root(name)
    except Exception as e:
        logger.warning(f"Ignoring unreadable theme [{name}]: {e}")
        return out

    clr = root.find(f".//{A_CLRSCHEME}")
    if clr is None:
        return out

    for child in list(clr):
        # child tag is the scheme key (dk1, lt1, accent1...)
        key = local_name(child.tag)
        srgb = child.find(A_SRGBCLR)
        if srgb is not None and srgb.get("val"):
            out[key] = srgb.get("val").upper()
            continue
        sysc = child.find(A_SYSCLR)
        if sysc is not None and sysc.get("lastClr"):
            out[key] = sysc.get("lastClr").upper()

    logger.debug(f"Loaded {len(out)} theme colors from [{name}]")
    return out


def _apply_luminance(rgb: str, color_elem) -> str:
    lum_mod = color_elem.find(A_LUMMOD)
    lum_off = color_elem.find(A_LUMOFF)
    if lum_mod is None and lum_off is None:
        return rgb
    r, g, b = (int(rgb[i : i + 2], 16) / 255 for i in (0, 2, 4))
    h, lightness, s = colorsys.rgb_to_hls(r, g, b)
    lightness = lightness * int_attr(lum_mod, "val", 100000) / 100000
    lightness += int_attr(lum_off, "val", 0) / 100000
    lightness = min(max(lightness, 0.0), 1.0)
    r, g, b = colorsys.hls_to_rgb(h, lightness, s)
    return "".join(f"{round(c * 255):02X}" for c in (r, g, b))


def resolve_color(parent, theme_colors: dict[str, str] | None = None) -> str | None:
    """Resolve the color child of ``parent`` (a fill or style reference).

    Returns ``RRGGBB`` or None when no color can be determined.
    """
    if parent is None:
        return None
    theme_colors = theme_colors or {}

    for child in parent:
        rgb = None
        if child.tag == A_SRGBCLR:
            rgb = child.get("val")
        elif child.tag == A_SCHEMECLR:
            key = child.get("val", "")
            rgb = theme_colors.get(SCHEME_ALIASES.get(key, key))
        elif child.tag == A_SYSCLR:
            rgb = child.get("lastClr")
        elif child.tag == A_PRSTCLR:
            rgb = PRESET_COLORS.get(child.get("val", ""))
        else:
            continue

        if not rgb or len(rgb) != 6:
            return None
        try:
            int(rgb, 16)
        except ValueError:
            return None
        return _apply_luminance(rgb.upper(), child)
    return None
