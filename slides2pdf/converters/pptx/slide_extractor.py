"""
Slide Content Extractor
=======================

Parses the XML of one slide (``ppt/slides/slideN.xml``) into a
:class:`SlideModel`: background, geometric shapes, pictures and text shapes
with fully resolved run formatting.

Shape Tree
----------
``p:cSld/p:spTree`` holds the drawable elements in z-order:

    p:sp: Auto shape, text box or placeholder (may carry a p:txBody)
    p:pic: Picture, its image referenced through a:blip/@r:embed
    p:grpSp: Group, children positioned in the group's child space
    p:graphicFrame: Tables, charts, SmartArt (not rendered)
    p:cxnSp: Connectors (not rendered)

Text Body
---------
    a:bodyPr/@anchor: Vertical anchor (t, ctr, b)
    a:p: Paragraph, a:pPr carries alignment, level, spacing and bullets
    a:r: Run, a:rPr carries size (1/100 pt), b, i, u, color and typeface
    a:br: Line break inside a paragraph
    a:fld: Field (slide number, date) with its current text

Failure Policy
--------------
A slide whose XML cannot be parsed raises :class:`SlideExtractionError`.
Single paragraphs, runs, shapes and pictures that fail are skipped and
logged; unresolved relationship ids drop the element that uses them.
"""

import logging
import re
from dataclasses import dataclass, field
from xml.etree import ElementTree as ET

from slides2pdf.exceptions import SlideExtractionError, UnresolvedRelationshipError
from slides2pdf.converters.data_types import (
    Background,
    Paragraph,
    PictureModel,
    PlaceholderRole,
    Rect,
    Run,
    ShapeKind,
    ShapeModel,
    SlideModel,
    TextShape,
)
from slides2pdf.converters.pptx.colors import resolve_color
from slides2pdf.converters.pptx.ooxml import (
    A_BLIP,
    A_BODYPR,
    A_BR,
    A_BUAUTONUM,
    A_BUCHAR,
    A_BUNONE,
    A_CHEXT,
    A_CHOFF,
    A_DEFRPR,
    A_ENDPARARPR,
    A_EXT,
    A_FILLREF,
    A_FLD,
    A_GRADFILL,
    A_GS,
    A_LATIN,
    A_LN,
    A_LNREF,
    A_LNSPC,
    A_NOFILL,
    A_OFF,
    A_P,
    A_PPR,
    A_PRSTGEOM,
    A_R,
    A_RPR,
    A_SOLIDFILL,
    A_SPCAFT,
    A_SPCBEF,
    A_SPCPCT,
    A_SPCPTS,
    A_T,
    A_XFRM,
    P_BLIPFILL,
    P_CNVPR,
    P_CSLD,
    P_CXNSP,
    P_GRAPHICFRAME,
    P_GRPSP,
    P_GRPSPPR,
    P_NVPICPR,
    P_NVSPPR,
    P_PIC,
    P_SP,
    P_SPPR,
    P_SPTREE,
    P_STYLE,
    P_TXBODY,
    R_EMBED,
    XML_SPACE,
    bool_attr,
    int_attr,
)
from slides2pdf.converters.pptx.template import (
    IDENTITY,
    PlaceholderInfo,
    SlideTemplate,
    Transform,
    frame_from_xfrm,
    placeholder_info,
    read_background,
)
from slides2pdf.converters.util.package import Package
from slides2pdf.converters.util.relationships import RelationshipTable
from slides2pdf.converters.util.units import (
    DEFAULT_DPI,
    EMU_PER_POINT,
    CanvasSize,
    points_to_pixels,
)

logger = logging.getLogger(__name__)

TITLE_TYPES = frozenset({"title", "ctrTitle"})
SUBTITLE_TYPES = frozenset({"subTitle"})
BODY_TYPES = frozenset({"body", "obj"})

# Default font sizes in points, applied when neither run nor paragraph says
ROLE_FONT_SIZES = {"title": 32.0, "subtitle": 24.0, "body": 18.0, "none": 18.0}

# Fallback frames (fractions of the canvas) for placeholders nothing positions
ROLE_FRAMES = {
    "title": (0.05, 0.04, 0.90, 0.16),
    "subtitle": (0.10, 0.55, 0.80, 0.20),
    "body": (0.05, 0.22, 0.90, 0.70),
}

GEOMETRY_BY_PRESET: dict[str, ShapeKind] = {
    "rect": "rectangle",
    "ellipse": "ellipse",
    "roundRect": "rounded_rectangle",
}

ALIGNMENTS = {"l": "left", "ctr": "center", "r": "right", "just": "left", "dist": "left"}
ANCHORS = {"t": "top", "ctr": "middle", "b": "bottom"}

DEFAULT_BULLET = "•"
_WHITESPACE = re.compile(r"\s+")


@dataclass
class _ExtractionContext:
    relationships: RelationshipTable
    package: Package | None
    template: SlideTemplate
    canvas: CanvasSize
    dpi: float
    default_font_family: str
    model: SlideModel = field(default_factory=SlideModel)

    @property
    def theme_colors(self) -> dict[str, str]:
        return self.template.theme_colors


def _parse_slide_xml(slide_xml: str | bytes | ET.Element) -> ET.Element:
    if isinstance(slide_xml, ET.Element):
        return slide_xml
    try:
        if isinstance(slide_xml, str):
            slide_xml = slide_xml.encode("utf-8")
        return ET.fromstring(slide_xml)
    except ET.ParseError as exc:
        raise SlideExtractionError(f"Malformed slide XML: {exc}", cause=exc) from exc


##########
# Paints #
##########


def _fill_color(parent, ctx: _ExtractionContext) -> tuple[bool, str | None]:
    """Explicit fill below ``parent``: (declared, color).

    ``declared`` distinguishes an explicit ``a:noFill`` from no fill element.
    """
    if parent is None:
        return False, None
    if parent.find(A_NOFILL) is not None:
        return True, None
    solid = parent.find(A_SOLIDFILL)
    if solid is not None:
        return True, resolve_color(solid, ctx.theme_colors)
    gradient = parent.find(A_GRADFILL)
    if gradient is not None:
        # approximate gradients by their first stop
        stop = gradient.find(f".//{A_GS}")
        return True, resolve_color(stop, ctx.theme_colors)
    return False, None


def _style_color(style, tag: str, ctx: _ExtractionContext) -> str | None:
    if style is None:
        return None
    ref = style.find(tag)
    if ref is None or int_attr(ref, "idx") == 0:
        return None
    return resolve_color(ref, ctx.theme_colors)


def _shape_paint(
    sp_pr, style, ctx: _ExtractionContext
) -> tuple[str | None, str | None, float]:
    declared, fill = _fill_color(sp_pr, ctx)
    if not declared:
        fill = _style_color(style, A_FILLREF, ctx)

    stroke = None
    stroke_width = 1.0
    line = sp_pr.find(A_LN) if sp_pr is not None else None
    if line is not None and line.get("w"):
        stroke_width = int_attr(line, "w", EMU_PER_POINT) / EMU_PER_POINT
    declared, stroke = _fill_color(line, ctx)
    if not declared:
        stroke = _style_color(style, A_LNREF, ctx)
    return fill, stroke, stroke_width


def _geometry_kind(sp_pr) -> tuple[ShapeKind, str]:
    geom = sp_pr.find(A_PRSTGEOM) if sp_pr is not None else None
    preset = geom.get("prst", "rect") if geom is not None else "rect"
    kind = GEOMETRY_BY_PRESET.get(preset)
    if kind is None:
        logger.debug(f"Drawing unsupported preset geometry [{preset}] as rectangle")
        kind = "rectangle"
    return kind, preset


########
# Text #
########


def _role_for(placeholder: PlaceholderInfo | None) -> PlaceholderRole:
    if placeholder is None:
        return "none"
    if placeholder.ph_type in TITLE_TYPES:
        return "title"
    if placeholder.ph_type in SUBTITLE_TYPES:
        return "subtitle"
    if placeholder.ph_type in BODY_TYPES:
        return "body"
    return "none"


def _run_text(t_elem) -> str:
    if t_elem is None:
        return ""
    text = t_elem.text or ""
    if t_elem.get(XML_SPACE) == "preserve":
        return text
    return _WHITESPACE.sub(" ", text)


def _build_run(
    text: str,
    r_pr,
    defaults,
    role: PlaceholderRole,
    ctx: _ExtractionContext,
    is_break: bool = False,
) -> Run:
    size_pt = ROLE_FONT_SIZES[role]
    for props in (defaults, r_pr):
        if props is not None and props.get("sz"):
            size_pt = int_attr(props, "sz", int(size_pt * 100)) / 100

    bold = bool_attr(r_pr, "b")
    if bold is None:
        bold = bool_attr(defaults, "b")
    if bold is None:
        bold = role == "title"
    italic = bool_attr(r_pr, "i") or False
    underline = r_pr is not None and r_pr.get("u", "none") != "none"

    color = None
    for props in (r_pr, defaults):
        if props is not None and color is None:
            color = resolve_color(props.find(A_SOLIDFILL), ctx.theme_colors)

    family = ctx.default_font_family
    latin = r_pr.find(A_LATIN) if r_pr is not None else None
    typeface = latin.get("typeface", "") if latin is not None else ""
    # "+mj-lt"/"+mn-lt" reference theme fonts
    if typeface and not typeface.startswith("+"):
        family = typeface

    return Run(
        text=text,
        font_size=points_to_pixels(size_pt, ctx.dpi),
        bold=bold,
        italic=italic,
        underline=underline,
        color=color or "000000",
        font_family=family,
        is_break=is_break,
    )


def _to_alpha(number: int, upper: bool) -> str:
    letters = ""
    while number > 0:
        number, remainder = divmod(number - 1, 26)
        letters = chr(ord("a") + remainder) + letters
    return letters.upper() if upper else letters


def _to_roman(number: int, upper: bool) -> str:
    numerals = [
        (1000, "m"), (900, "cm"), (500, "d"), (400, "cd"), (100, "c"), (90, "xc"),
        (50, "l"), (40, "xl"), (10, "x"), (9, "ix"), (5, "v"), (4, "iv"), (1, "i"),
    ]
    out = ""
    for value, numeral in numerals:
        while number >= value:
            out += numeral
            number -= value
    return out.upper() if upper else out


def autonumber_glyph(scheme: str, number: int) -> str:
    """Bullet text of an ``a:buAutoNum`` paragraph, e.g. ``arabicPeriod`` -> ``3.``."""
    if scheme.startswith("alphaLc"):
        label = _to_alpha(number, upper=False)
    elif scheme.startswith("alphaUc"):
        label = _to_alpha(number, upper=True)
    elif scheme.startswith("romanLc"):
        label = _to_roman(number, upper=False)
    elif scheme.startswith("romanUc"):
        label = _to_roman(number, upper=True)
    else:
        label = str(number)

    if scheme.endswith("ParenBoth"):
        return f"({label})"
    if scheme.endswith("ParenR"):
        return f"{label})"
    if scheme.endswith("Plain"):
        return label
    return f"{label}."


def _spacing_points(parent) -> float | None:
    if parent is None:
        return None
    points = parent.find(A_SPCPTS)
    if points is not None:
        return int_attr(points, "val") / 100
    return None


def _extract_paragraph(
    p_elem,
    role: PlaceholderRole,
    ctx: _ExtractionContext,
    numbering: dict[int, int],
) -> Paragraph:
    p_pr = p_elem.find(A_PPR)
    defaults = p_pr.find(A_DEFRPR) if p_pr is not None else None
    paragraph = Paragraph(
        default_font_size=_build_run("", None, defaults, role, ctx).font_size
    )

    if p_pr is not None:
        paragraph.alignment = ALIGNMENTS.get(p_pr.get("algn", "l"), "left")
        paragraph.level = max(0, int_attr(p_pr, "lvl"))

        line_spacing = p_pr.find(A_LNSPC)
        pct = line_spacing.find(A_SPCPCT) if line_spacing is not None else None
        if pct is not None and int_attr(pct, "val") > 0:
            paragraph.line_spacing = int_attr(pct, "val") / 100000

        before = _spacing_points(p_pr.find(A_SPCBEF))
        if before is not None:
            paragraph.space_before = points_to_pixels(before, ctx.dpi)
        after = _spacing_points(p_pr.find(A_SPCAFT))
        if after is not None:
            paragraph.space_after = points_to_pixels(after, ctx.dpi)

    # numbering restarts below the current level
    for level in [lvl for lvl in numbering if lvl > paragraph.level]:
        del numbering[level]

    bu_none = p_pr.find(A_BUNONE) if p_pr is not None else None
    bu_char = p_pr.find(A_BUCHAR) if p_pr is not None else None
    bu_auto = p_pr.find(A_BUAUTONUM) if p_pr is not None else None
    if bu_none is not None:
        paragraph.is_bullet = False
    elif bu_auto is not None:
        start = int_attr(bu_auto, "startAt", 1)
        number = numbering.get(paragraph.level, start - 1) + 1
        numbering[paragraph.level] = number
        paragraph.is_bullet = True
        paragraph.bullet_char = autonumber_glyph(
            bu_auto.get("type", "arabicPeriod"), number
        )
    elif bu_char is not None:
        paragraph.is_bullet = True
        paragraph.bullet_char = bu_char.get("char") or DEFAULT_BULLET
    else:
        # body placeholders inherit bulleted list styles from the master
        paragraph.is_bullet = role == "body"
    if bu_auto is None:
        numbering.pop(paragraph.level, None)

    for child in p_elem:
        try:
            if child.tag in (A_R, A_FLD):
                text = _run_text(child.find(A_T))
                if text:
                    paragraph.runs.append(
                        _build_run(text, child.find(A_RPR), defaults, role, ctx)
                    )
            elif child.tag == A_BR:
                paragraph.runs.append(
                    _build_run("", child.find(A_RPR), defaults, role, ctx, is_break=True)
                )
            elif child.tag == A_ENDPARARPR:
                paragraph.default_font_size = _build_run("", child, defaults, role, ctx).font_size
        except Exception as e:
            logger.debug(f"Skipping run on slide {ctx.model.slide_number}: {e}")

    return paragraph


def _extract_text_shape(
    tx_body, frame: Rect, role: PlaceholderRole, ctx: _ExtractionContext
) -> TextShape:
    body_pr = tx_body.find(A_BODYPR)
    anchor = ANCHORS.get(body_pr.get("anchor", "t"), "top") if body_pr is not None else "top"
    shape = TextShape(frame=frame, role=role, anchor=anchor)

    numbering: dict[int, int] = {}
    for p_elem in tx_body.findall(A_P):
        try:
            shape.paragraphs.append(_extract_paragraph(p_elem, role, ctx, numbering))
        except Exception as e:
            logger.debug(f"Skipping paragraph on slide {ctx.model.slide_number}: {e}")
    return shape


##########
# Shapes #
##########


def _default_frame(role: PlaceholderRole, canvas: CanvasSize) -> Rect | None:
    fractions = ROLE_FRAMES.get(role)
    if fractions is None:
        return None
    fx, fy, fw, fh = fractions
    return Rect(
        x=canvas.width * fx,
        y=canvas.height * fy,
        width=canvas.width * fw,
        height=canvas.height * fh,
    )


def _extract_shape(sp, transform: Transform, ctx: _ExtractionContext) -> None:
    placeholder = placeholder_info(sp.find(P_NVSPPR))
    role = _role_for(placeholder)
    sp_pr = sp.find(P_SPPR)
    tx_body = sp.find(P_TXBODY)

    frame = frame_from_xfrm(
        sp_pr.find(A_XFRM) if sp_pr is not None else None, ctx.dpi, transform
    )
    if frame is None and placeholder is not None:
        frame = ctx.template.frame_for(placeholder) or _default_frame(role, ctx.canvas)
    if frame is None:
        logger.debug(f"Skipping shape without position on slide {ctx.model.slide_number}")
        return

    fill, stroke, stroke_width = _shape_paint(sp_pr, sp.find(P_STYLE), ctx)
    if tx_body is None or fill or stroke:
        kind, preset = _geometry_kind(sp_pr)
        ctx.model.shapes.append(
            ShapeModel(
                kind=kind,
                frame=frame,
                preset=preset,
                fill=fill,
                stroke=stroke,
                stroke_width=stroke_width,
            )
        )

    if tx_body is not None:
        text_shape = _extract_text_shape(tx_body, frame, role, ctx)
        if any(paragraph.runs for paragraph in text_shape.paragraphs):
            ctx.model.text_shapes.append(text_shape)


def _extract_picture(pic, transform: Transform, ctx: _ExtractionContext) -> None:
    blip_fill = pic.find(P_BLIPFILL)
    blip = blip_fill.find(A_BLIP) if blip_fill is not None else None
    if blip is None:
        return
    try:
        rel = ctx.relationships.require(blip.get(R_EMBED))
    except UnresolvedRelationshipError as e:
        logger.debug(f"Skipping picture on slide {ctx.model.slide_number}: {e}")
        return

    data = ctx.package.read_binary(rel.target) if ctx.package is not None else None
    if data is None:
        logger.debug(f"Skipping picture, missing media entry [{rel.target}]")
        return

    sp_pr = pic.find(P_SPPR)
    frame = frame_from_xfrm(
        sp_pr.find(A_XFRM) if sp_pr is not None else None, ctx.dpi, transform
    )
    nv_pic_pr = pic.find(P_NVPICPR)
    if frame is None:
        placeholder = placeholder_info(nv_pic_pr)
        frame = ctx.template.frame_for(placeholder) if placeholder is not None else None
    if frame is None:
        logger.debug(f"Skipping picture without position [{rel.target}]")
        return

    c_nv_pr = nv_pic_pr.find(P_CNVPR) if nv_pic_pr is not None else None
    ctx.model.pictures.append(
        PictureModel(
            frame=frame,
            blob=data,
            name=rel.target,
            description=c_nv_pr.get("descr", "") if c_nv_pr is not None else "",
        )
    )


def _group_transform(grp_sp, parent: Transform) -> Transform:
    grp_sp_pr = grp_sp.find(P_GRPSPPR)
    xfrm = grp_sp_pr.find(A_XFRM) if grp_sp_pr is not None else None
    if xfrm is None:
        return parent
    off, ext = xfrm.find(A_OFF), xfrm.find(A_EXT)
    ch_off, ch_ext = xfrm.find(A_CHOFF), xfrm.find(A_CHEXT)
    if off is None or ext is None or ch_off is None or ch_ext is None:
        return parent

    ch_cx, ch_cy = int_attr(ch_ext, "cx"), int_attr(ch_ext, "cy")
    scale_x = int_attr(ext, "cx") / ch_cx if ch_cx else 1.0
    scale_y = int_attr(ext, "cy") / ch_cy if ch_cy else 1.0
    offset_x = int_attr(off, "x") - scale_x * int_attr(ch_off, "x")
    offset_y = int_attr(off, "y") - scale_y * int_attr(ch_off, "y")

    p_sx, p_ox, p_sy, p_oy = parent
    return (p_sx * scale_x, p_sx * offset_x + p_ox, p_sy * scale_y, p_sy * offset_y + p_oy)


def _walk_shape_tree(container, transform: Transform, ctx: _ExtractionContext) -> None:
    for child in container:
        try:
            if child.tag == P_SP:
                _extract_shape(child, transform, ctx)
            elif child.tag == P_PIC:
                _extract_picture(child, transform, ctx)
            elif child.tag == P_GRPSP:
                _walk_shape_tree(child, _group_transform(child, transform), ctx)
            elif child.tag in (P_GRAPHICFRAME, P_CXNSP):
                logger.debug(
                    f"Not rendering graphic frame/connector on slide {ctx.model.slide_number}"
                )
        except Exception as e:
            logger.debug(f"Skipping element on slide {ctx.model.slide_number}: {e}")


def extract_slide(
    slide_xml: str | bytes | ET.Element,
    relationships: RelationshipTable,
    package: Package | None = None,
    *,
    template: SlideTemplate | None = None,
    canvas: CanvasSize | None = None,
    dpi: float = DEFAULT_DPI,
    slide_number: int = 0,
    default_font_family: str = "Arial",
) -> SlideModel:
    """
    Build the :class:`SlideModel` of one slide.

    Args:
        slide_xml: Slide part content (text, bytes or an already parsed root).
        relationships: Relationship table of the slide; every r:embed/r:id
            is resolved through it before being read from the package.
        package: Package the media entries are read from. Without it,
            pictures and background images are skipped.
        template: Inherited layout/master information (frames, background,
            theme colors).
        canvas: Slide canvas size, used for fallback placeholder frames.
        dpi: Resolution of the EMU to pixel conversion.
        slide_number: Used for log messages and copied to the model.
        default_font_family: Family of runs without an explicit typeface.

    Raises:
        SlideExtractionError: The XML is malformed or has no shape tree.
    """
    root = _parse_slide_xml(slide_xml)
    c_sld = root.find(P_CSLD)
    sp_tree = c_sld.find(P_SPTREE) if c_sld is not None else None
    if sp_tree is None:
        raise SlideExtractionError(
            "Slide has no shape tree", slide_number=slide_number or None
        )

    template = template or SlideTemplate()
    if canvas is None:
        canvas = CanvasSize(width=round(10 * dpi), height=round(5.625 * dpi))
    ctx = _ExtractionContext(
        relationships=relationships,
        package=package,
        template=template,
        canvas=canvas,
        dpi=dpi,
        default_font_family=default_font_family,
        model=SlideModel(slide_number=slide_number),
    )

    ctx.model.background = _slide_background(root, ctx)
    _walk_shape_tree(sp_tree, IDENTITY, ctx)

    logger.debug(
        f"Extracted slide {slide_number}: {len(ctx.model.shapes)} shapes, "
        f"{len(ctx.model.pictures)} pictures, {len(ctx.model.text_shapes)} text shapes"
    )
    return ctx.model


def _slide_background(root, ctx: _ExtractionContext) -> Background | None:
    try:
        background = read_background(
            root, ctx.relationships, ctx.package, ctx.theme_colors
        )
    except Exception as e:
        logger.debug(f"Ignoring slide background on slide {ctx.model.slide_number}: {e}")
        background = None
    return background or ctx.template.background
