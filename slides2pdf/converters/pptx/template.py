"""
Slide Layout and Master Inheritance
===================================

Slides rarely carry everything they display. Placeholders such as the title
usually omit their transform and inherit it from the slide layout, which in
turn may inherit it from the slide master. Backgrounds follow the same
slide -> layout -> master chain.

The template of a slide is resolved once per slide through its relationship
manifest and handed to the content extractor.
"""

import logging
from dataclasses import dataclass, field
from xml.etree import ElementTree as ET

from slides2pdf.exceptions import UnresolvedRelationshipError
from slides2pdf.converters.data_types import Background, Rect
from slides2pdf.converters.pptx.colors import resolve_color
from slides2pdf.converters.pptx.ooxml import (
    A_BLIP,
    A_BLIPFILL,
    A_EXT,
    A_OFF,
    A_SOLIDFILL,
    A_XFRM,
    P_BG,
    P_BGPR,
    P_BGREF,
    P_CSLD,
    P_NVPR,
    P_NVSPPR,
    P_PH,
    P_SP,
    P_SPPR,
    R_EMBED,
    int_attr,
)
from slides2pdf.converters.util.package import Package
from slides2pdf.converters.util.relationships import (
    RT_SLIDE_LAYOUT,
    RT_SLIDE_MASTER,
    RelationshipTable,
    resolve_part_relationships,
)
from slides2pdf.converters.util.units import emu_to_pixels

logger = logging.getLogger(__name__)

# Affine mapping (scale_x, offset_x, scale_y, offset_y) from a shape's
# coordinate space to slide EMU
Transform = tuple[float, float, float, float]
IDENTITY: Transform = (1.0, 0.0, 1.0, 0.0)

# Master placeholders only come in a few types; slide types map onto them
MASTER_TYPE_FALLBACK = {
    "ctrTitle": "title",
    "subTitle": "body",
    "obj": "body",
}


@dataclass(frozen=True)
class PlaceholderInfo:
    ph_type: str = "obj"  # OOXML default when the type attribute is absent
    idx: str = ""


@dataclass
class SlideTemplate:
    background: Background | None = None
    layout_frames: dict[str, Rect] = field(default_factory=dict)
    master_frames: dict[str, Rect] = field(default_factory=dict)
    theme_colors: dict[str, str] = field(default_factory=dict)

    def frame_for(self, placeholder: PlaceholderInfo) -> Rect | None:
        """Inherited frame of a placeholder: layout by idx, layout by type, master."""
        if placeholder.idx and f"idx:{placeholder.idx}" in self.layout_frames:
            return self.layout_frames[f"idx:{placeholder.idx}"]
        key = f"type:{placeholder.ph_type}"
        if key in self.layout_frames:
            return self.layout_frames[key]
        if key in self.master_frames:
            return self.master_frames[key]
        fallback = MASTER_TYPE_FALLBACK.get(placeholder.ph_type)
        if fallback:
            return self.master_frames.get(f"type:{fallback}")
        return None


def placeholder_info(nv_props) -> PlaceholderInfo | None:
    """Read ``p:ph`` below a non-visual properties element (nvSpPr/nvPicPr)."""
    if nv_props is None:
        return None
    nv_pr = nv_props.find(P_NVPR)
    ph = nv_pr.find(P_PH) if nv_pr is not None else None
    if ph is None:
        return None
    return PlaceholderInfo(ph_type=ph.get("type", "obj"), idx=ph.get("idx", ""))


def frame_from_xfrm(
    xfrm, dpi: float, transform: Transform = IDENTITY
) -> Rect | None:
    """Convert an ``a:xfrm`` (offset + extent in EMU) to a pixel frame."""
    if xfrm is None:
        return None
    off = xfrm.find(A_OFF)
    ext = xfrm.find(A_EXT)
    if off is None or ext is None:
        return None
    scale_x, offset_x, scale_y, offset_y = transform
    x = scale_x * int_attr(off, "x") + offset_x
    y = scale_y * int_attr(off, "y") + offset_y
    cx = scale_x * int_attr(ext, "cx")
    cy = scale_y * int_attr(ext, "cy")
    return Rect(
        x=emu_to_pixels(x, dpi),
        y=emu_to_pixels(y, dpi),
        width=emu_to_pixels(cx, dpi),
        height=emu_to_pixels(cy, dpi),
    )


def read_background(
    root: ET.Element,
    relationships: RelationshipTable,
    package: Package | None,
    theme_colors: dict[str, str],
) -> Background | None:
    """Background declared directly on a slide, layout or master part.

    Solid colors win over images; an image whose relationship cannot be
    resolved is dropped.
    """
    c_sld = root.find(P_CSLD)
    bg = c_sld.find(P_BG) if c_sld is not None else None
    if bg is None:
        return None

    bg_pr = bg.find(P_BGPR)
    if bg_pr is not None:
        color = resolve_color(bg_pr.find(A_SOLIDFILL), theme_colors)
        if color:
            return Background(color=color)

        blip_fill = bg_pr.find(A_BLIPFILL)
        blip = blip_fill.find(A_BLIP) if blip_fill is not None else None
        if blip is not None and package is not None:
            try:
                rel = relationships.require(blip.get(R_EMBED))
            except UnresolvedRelationshipError as e:
                logger.debug(f"Skipping background image: {e}")
                return None
            data = package.read_binary(rel.target)
            if data is None:
                logger.debug(f"Skipping background image, missing entry [{rel.target}]")
                return None
            return Background(image=data, image_name=rel.target)
        return None

    # p:bgRef points into the theme's background styles; its color child is
    # the best approximation available without rendering the style
    color = resolve_color(bg.find(P_BGREF), theme_colors)
    if color:
        return Background(color=color)
    return None


def _placeholder_frames(root: ET.Element, dpi: float) -> dict[str, Rect]:
    frames: dict[str, Rect] = {}
    for sp in root.iter(P_SP):
        placeholder = placeholder_info(sp.find(P_NVSPPR))
        if placeholder is None:
            continue
        sp_pr = sp.find(P_SPPR)
        frame = frame_from_xfrm(sp_pr.find(A_XFRM) if sp_pr is not None else None, dpi)
        if frame is None:
            continue
        if placeholder.idx:
            frames.setdefault(f"idx:{placeholder.idx}", frame)
        frames.setdefault(f"type:{placeholder.ph_type}", frame)
    return frames


def _load_part(
    package: Package, relationships: RelationshipTable, type_suffix: str
) -> tuple[str, ET.Element, RelationshipTable] | None:
    rel = relationships.first_of_type(type_suffix)
    if rel is None:
        return None
    try:
        root = package.read_xml_root(rel.target)
    except ET.ParseError as e:
        logger.warning(f"Ignoring unreadable template part [{rel.target}]: {e}")
        return None
    if root is None:
        return None
    return rel.target, root, resolve_part_relationships(package, rel.target)


def load_slide_template(
    package: Package,
    slide_relationships: RelationshipTable,
    theme_colors: dict[str, str] | None = None,
    dpi: float = 96.0,
) -> SlideTemplate:
    """Resolve the layout and master of a slide into a :class:`SlideTemplate`.

    Missing or unreadable layout/master parts leave the corresponding
    inherited values empty.
    """
    template = SlideTemplate(theme_colors=dict(theme_colors or {}))

    layout = _load_part(package, slide_relationships, RT_SLIDE_LAYOUT)
    if layout is None:
        return template
    layout_path, layout_root, layout_rels = layout
    template.layout_frames = _placeholder_frames(layout_root, dpi)
    template.background = read_background(
        layout_root, layout_rels, package, template.theme_colors
    )

    master = _load_part(package, layout_rels, RT_SLIDE_MASTER)
    if master is not None:
        master_path, master_root, master_rels = master
        template.master_frames = _placeholder_frames(master_root, dpi)
        if template.background is None:
            template.background = read_background(
                master_root, master_rels, package, template.theme_colors
            )
        logger.debug(f"Slide template from [{layout_path}] and [{master_path}]")
    return template
