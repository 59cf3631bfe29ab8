import logging
import unittest
from xml.etree import ElementTree as ET

import pytest

from slides2pdf.exceptions import SlideExtractionError
from slides2pdf.converters.data_types import Rect
from slides2pdf.converters.pptx.colors import load_theme_colors, resolve_color
from slides2pdf.converters.pptx.slide_extractor import autonumber_glyph, extract_slide
from slides2pdf.converters.pptx.template import load_slide_template
from slides2pdf.converters.util.package import open_package
from slides2pdf.converters.util.relationships import (
    RelationshipTable,
    resolve_slide_relationships,
)
from slides2pdf.converters.util.units import CanvasSize

logger = logging.getLogger(__name__)

tc = unittest.TestCase()

A_NS = "http://schemas.openxmlformats.org/drawingml/2006/main"


def _extract(xml: str, **kwargs):
    return extract_slide(xml, RelationshipTable(), **kwargs)


def _solid(color: str) -> str:
    return f'<a:solidFill><a:srgbClr val="{color}"/></a:solidFill>'


###############
# Slide level #
###############


def test_malformed_xml_raises_slide_extraction_error():
    with pytest.raises(SlideExtractionError) as excinfo:
        _extract("<p:sld><p:cSld><p:spTree>", slide_number=3)
    tc.assertIn("Malformed slide XML", str(excinfo.value))
    tc.assertIsInstance(excinfo.value.__cause__, ET.ParseError)


def test_slide_without_shape_tree_raises(deck):
    xml = deck.slide_xml().replace("<p:spTree></p:spTree>", "")
    with pytest.raises(SlideExtractionError):
        _extract(xml)


def test_empty_slide(deck):
    model = _extract(deck.slide_xml(), slide_number=4)
    tc.assertEqual(4, model.slide_number)
    tc.assertIsNone(model.background)
    tc.assertEqual([], model.shapes)
    tc.assertEqual([], model.pictures)
    tc.assertEqual([], model.text_shapes)


def test_solid_background(deck):
    background = f"<p:bg><p:bgPr>{_solid('1F2F3F')}<a:effectLst/></p:bgPr></p:bg>"
    model = _extract(deck.slide_xml(background=background))
    tc.assertEqual("1F2F3F", model.background.color)
    tc.assertIsNone(model.background.image)


def test_background_image_through_relationship(deck):
    png = deck.png_bytes()
    background = (
        '<p:bg><p:bgPr><a:blipFill><a:blip r:embed="rId5"/></a:blipFill></p:bgPr></p:bg>'
    )
    data = deck.package(
        {1: deck.slide_xml(background=background)},
        entries={
            "ppt/slides/_rels/slide1.xml.rels": deck.rels_xml(
                ("rId5", "image", "../media/bg.png")
            ),
            "ppt/media/bg.png": png,
        },
    )
    with open_package(data) as package:
        model = extract_slide(
            package.read_binary("ppt/slides/slide1.xml"),
            resolve_slide_relationships(package, 1),
            package,
        )
    tc.assertEqual(png, model.background.image)
    tc.assertEqual("ppt/media/bg.png", model.background.image_name)


###############
# Text shapes #
###############


def test_title_defaults_to_large_bold_font(deck):
    xml = deck.slide_xml(
        deck.text_shape(deck.paragraph(deck.run("Welcome")), ph_type="title")
    )
    model = _extract(xml, canvas=CanvasSize(960, 540))

    tc.assertEqual(1, len(model.text_shapes))
    shape = model.text_shapes[0]
    tc.assertEqual("title", shape.role)
    tc.assertEqual("Welcome", shape.text)
    run = shape.paragraphs[0].runs[0]
    tc.assertAlmostEqual(32 * 96 / 72, run.font_size)
    tc.assertTrue(run.bold)
    tc.assertFalse(shape.paragraphs[0].is_bullet)
    # no transform anywhere: a default frame near the top of the canvas
    tc.assertLess(shape.frame.y, 540 / 4)
    tc.assertGreater(shape.frame.width, 0)


def test_role_default_font_sizes_are_ordered(deck):
    xml = deck.slide_xml(
        deck.text_shape(deck.paragraph(deck.run("T")), ph_type="ctrTitle"),
        deck.text_shape(deck.paragraph(deck.run("S")), ph_type="subTitle"),
        deck.text_shape(deck.paragraph(deck.run("B")), ph_type="body"),
    )
    model = _extract(xml)
    roles = [shape.role for shape in model.text_shapes]
    tc.assertEqual(["title", "subtitle", "body"], roles)
    sizes = [shape.paragraphs[0].runs[0].font_size for shape in model.text_shapes]
    tc.assertGreater(sizes[0], sizes[1])
    tc.assertGreater(sizes[1], sizes[2])


def test_explicit_run_formatting(deck):
    rpr = (
        f'<a:rPr lang="en-US" sz="2400" b="0" i="1" u="sng">{_solid("C00000")}'
        '<a:latin typeface="Georgia"/></a:rPr>'
    )
    xfrm = deck.xfrm(914400, 914400, 914400 * 4, 914400)
    xml = deck.slide_xml(
        deck.text_shape(deck.paragraph(deck.run("Styled", rpr)), ph_type="title", xfrm=xfrm)
    )
    shape = _extract(xml).text_shapes[0]
    run = shape.paragraphs[0].runs[0]

    tc.assertEqual(32, run.font_size)
    tc.assertFalse(run.bold)
    tc.assertTrue(run.italic)
    tc.assertTrue(run.underline)
    tc.assertEqual("C00000", run.color)
    tc.assertEqual("Georgia", run.font_family)
    tc.assertEqual(Rect(96, 96, 384, 96), shape.frame)


def test_run_joining(deck):
    xml = deck.slide_xml(
        deck.text_shape(
            deck.paragraph(deck.run("Hello"), deck.run("World"))
            + deck.paragraph(deck.run("Hello, "), deck.run("World"))
            + deck.paragraph(deck.run("Bold"), deck.run("."), deck.run(" end")),
            xfrm=deck.xfrm(0, 0, 914400, 914400),
        )
    )
    paragraphs = _extract(xml).text_shapes[0].paragraphs
    tc.assertEqual("Hello World", paragraphs[0].text)
    tc.assertEqual("Hello, World", paragraphs[1].text)
    tc.assertEqual("Bold. end", paragraphs[2].text)


def test_paragraph_properties(deck):
    ppr = (
        '<a:pPr algn="ctr" lvl="2">'
        '<a:lnSpc><a:spcPct val="150000"/></a:lnSpc>'
        '<a:spcBef><a:spcPts val="1200"/></a:spcBef>'
        '<a:spcAft><a:spcPts val="600"/></a:spcAft>'
        '<a:buChar char="-"/>'
        "</a:pPr>"
    )
    xml = deck.slide_xml(
        deck.text_shape(
            deck.paragraph(deck.run("Item"), ppr=ppr)
            + deck.paragraph(deck.run("Right"), ppr='<a:pPr algn="r"/>'),
            xfrm=deck.xfrm(0, 0, 914400, 914400),
            anchor="ctr",
        )
    )
    shape = _extract(xml).text_shapes[0]
    first, second = shape.paragraphs

    tc.assertEqual("middle", shape.anchor)
    tc.assertEqual("none", shape.role)
    tc.assertEqual("center", first.alignment)
    tc.assertEqual(2, first.level)
    tc.assertAlmostEqual(1.5, first.line_spacing)
    tc.assertAlmostEqual(16, first.space_before)
    tc.assertAlmostEqual(8, first.space_after)
    tc.assertTrue(first.is_bullet)
    tc.assertEqual("-", first.bullet_char)

    tc.assertEqual("right", second.alignment)
    tc.assertFalse(second.is_bullet)


def test_body_placeholder_bullets(deck):
    xml = deck.slide_xml(
        deck.text_shape(
            deck.paragraph(deck.run("One"))
            + deck.paragraph(deck.run("Two"))
            + deck.paragraph(deck.run("Plain"), ppr="<a:pPr><a:buNone/></a:pPr>"),
            ph_type="body",
            xfrm=deck.xfrm(0, 0, 914400 * 8, 914400 * 4),
        )
    )
    paragraphs = _extract(xml).text_shapes[0].paragraphs
    tc.assertEqual([True, True, False], [p.is_bullet for p in paragraphs])
    tc.assertEqual("•", paragraphs[0].bullet_char)


def test_auto_numbered_bullets(deck):
    arabic = '<a:pPr><a:buAutoNum type="arabicPeriod"/></a:pPr>'
    alpha = '<a:pPr lvl="1"><a:buAutoNum type="alphaLcParenR"/></a:pPr>'
    xml = deck.slide_xml(
        deck.text_shape(
            deck.paragraph(deck.run("a"), ppr=arabic)
            + deck.paragraph(deck.run("b"), ppr=arabic)
            + deck.paragraph(deck.run("c"), ppr=alpha)
            + deck.paragraph(deck.run("d"), ppr=alpha)
            + deck.paragraph(deck.run("e"), ppr=arabic),
            xfrm=deck.xfrm(0, 0, 914400 * 8, 914400 * 4),
        )
    )
    paragraphs = _extract(xml).text_shapes[0].paragraphs
    tc.assertEqual(
        ["1.", "2.", "a)", "b)", "3."], [p.bullet_char for p in paragraphs]
    )


def test_autonumber_glyph():
    tc.assertEqual("4.", autonumber_glyph("arabicPeriod", 4))
    tc.assertEqual("4)", autonumber_glyph("arabicParenR", 4))
    tc.assertEqual("(4)", autonumber_glyph("arabicParenBoth", 4))
    tc.assertEqual("4", autonumber_glyph("arabicPlain", 4))
    tc.assertEqual("C.", autonumber_glyph("alphaUcPeriod", 3))
    tc.assertEqual("aa.", autonumber_glyph("alphaLcPeriod", 27))
    tc.assertEqual("iv.", autonumber_glyph("romanLcPeriod", 4))
    tc.assertEqual("XIV.", autonumber_glyph("romanUcPeriod", 14))


def test_line_breaks_and_fields(deck):
    paragraph = (
        "<a:p>"
        + deck.run("First")
        + "<a:br/>"
        + deck.run("Second")
        + '<a:fld id="{1}" type="slidenum"><a:t>7</a:t></a:fld>'
        + "</a:p>"
    )
    xml = deck.slide_xml(
        deck.text_shape(paragraph, xfrm=deck.xfrm(0, 0, 914400, 914400))
    )
    runs = _extract(xml).text_shapes[0].paragraphs[0].runs
    tc.assertEqual(["First", "", "Second", "7"], [run.text for run in runs])
    tc.assertEqual([False, True, False, False], [run.is_break for run in runs])


def test_empty_paragraph_keeps_its_size(deck):
    paragraphs = (
        deck.paragraph(deck.run("Text"))
        + '<a:p><a:endParaRPr lang="en-US" sz="3600"/></a:p>'
    )
    xml = deck.slide_xml(
        deck.text_shape(paragraphs, xfrm=deck.xfrm(0, 0, 914400, 914400))
    )
    shape = _extract(xml).text_shapes[0]
    tc.assertEqual(2, len(shape.paragraphs))
    tc.assertEqual([], shape.paragraphs[1].runs)
    tc.assertEqual(48, shape.paragraphs[1].font_size)


def test_shape_without_text_is_not_a_text_shape(deck):
    xml = deck.slide_xml(
        deck.text_shape(
            "<a:p><a:endParaRPr/></a:p>", xfrm=deck.xfrm(0, 0, 914400, 914400)
        )
    )
    tc.assertEqual([], _extract(xml).text_shapes)


##########
# Shapes #
##########


def test_geometric_shapes(deck):
    line = f'<a:ln w="25400">{_solid("0000FF")}</a:ln>'
    xml = deck.slide_xml(
        deck.shape("rect", deck.xfrm(0, 0, 914400, 914400), fill=_solid("FF0000")),
        deck.shape("ellipse", deck.xfrm(0, 0, 914400, 914400), line=line),
        deck.shape("roundRect", deck.xfrm(0, 0, 914400, 914400)),
        deck.shape("star5", deck.xfrm(914400, 0, 457200, 457200)),
    )
    shapes = _extract(xml).shapes

    tc.assertEqual(
        ["rectangle", "ellipse", "rounded_rectangle", "rectangle"],
        [shape.kind for shape in shapes],
    )
    tc.assertEqual("FF0000", shapes[0].fill)
    tc.assertIsNone(shapes[0].stroke)
    tc.assertEqual("0000FF", shapes[1].stroke)
    tc.assertEqual(2.0, shapes[1].stroke_width)
    tc.assertEqual("star5", shapes[3].preset)
    tc.assertEqual(Rect(96, 0, 48, 48), shapes[3].frame)


def test_filled_text_box_also_draws_its_frame(deck):
    sp = deck.text_shape(
        deck.paragraph(deck.run("Boxed")), xfrm=deck.xfrm(0, 0, 914400, 914400)
    ).replace("</a:xfrm>", f"</a:xfrm>{_solid('EEEEEE')}")
    model = _extract(deck.slide_xml(sp))
    tc.assertEqual(1, len(model.shapes))
    tc.assertEqual("EEEEEE", model.shapes[0].fill)
    tc.assertEqual(1, len(model.text_shapes))


def test_group_children_are_mapped_to_slide_space(deck):
    group = (
        "<p:grpSp>"
        '<p:nvGrpSpPr><p:cNvPr id="9" name="Group"/><p:cNvGrpSpPr/><p:nvPr/></p:nvGrpSpPr>'
        "<p:grpSpPr><a:xfrm>"
        '<a:off x="914400" y="914400"/><a:ext cx="1828800" cy="1828800"/>'
        '<a:chOff x="0" y="0"/><a:chExt cx="914400" cy="914400"/>'
        "</a:xfrm></p:grpSpPr>"
        + deck.shape("rect", deck.xfrm(0, 0, 457200, 457200), fill=_solid("00FF00"))
        + "</p:grpSp>"
    )
    shapes = _extract(deck.slide_xml(group)).shapes
    tc.assertEqual(Rect(96, 96, 96, 96), shapes[0].frame)


############
# Pictures #
############


def _picture_deck(deck, rel_target: str | None):
    rels = deck.rels_xml(("rId2", "image", rel_target)) if rel_target else deck.rels_xml()
    xml = deck.slide_xml(
        deck.picture("rId2", deck.xfrm(914400, 0, 914400 * 2, 914400), descr="Logo")
    )
    return deck.package(
        {1: xml},
        entries={
            "ppt/slides/_rels/slide1.xml.rels": rels,
            "ppt/media/image1.png": deck.png_bytes(),
        },
    )


def _extract_first_slide(data: bytes):
    with open_package(data) as package:
        return extract_slide(
            package.read_binary("ppt/slides/slide1.xml"),
            resolve_slide_relationships(package, 1),
            package,
        )


def test_picture_resolved_through_relationships(deck):
    model = _extract_first_slide(_picture_deck(deck, "../media/image1.png"))
    tc.assertEqual(1, len(model.pictures))
    picture = model.pictures[0]
    tc.assertEqual("ppt/media/image1.png", picture.name)
    tc.assertEqual("Logo", picture.description)
    tc.assertEqual(deck.png_bytes(), picture.blob)
    tc.assertEqual(Rect(96, 0, 192, 96), picture.frame)


def test_picture_with_unknown_relationship_is_skipped(deck):
    model = _extract_first_slide(_picture_deck(deck, None))
    tc.assertEqual([], model.pictures)


def test_picture_with_missing_media_entry_is_skipped(deck):
    model = _extract_first_slide(_picture_deck(deck, "../media/image404.png"))
    tc.assertEqual([], model.pictures)


######################
# Templates & themes #
######################


def _template_deck(deck) -> bytes:
    layout = deck.slide_xml(
        deck.text_shape(
            "<a:p/>", ph_type="title", xfrm=deck.xfrm(0, 0, 914400 * 9, 914400)
        )
    )
    master_background = f"<p:bg><p:bgPr>{_solid('112233')}<a:effectLst/></p:bgPr></p:bg>"
    master = deck.slide_xml(
        deck.text_shape(
            "<a:p/>", ph_type="body", xfrm=deck.xfrm(914400, 914400 * 2, 914400 * 4, 914400 * 2)
        ),
        background=master_background,
    )
    slide = deck.slide_xml(
        deck.text_shape(deck.paragraph(deck.run("Inherited title")), ph_type="title"),
        deck.text_shape(
            deck.paragraph(deck.run("Inherited body")), ph_type=""
        ).replace("<p:ph/>", '<p:ph idx="1"/>'),
    )
    return deck.package(
        {1: slide},
        entries={
            "ppt/slides/_rels/slide1.xml.rels": deck.rels_xml(
                ("rId1", "slideLayout", "../slideLayouts/slideLayout1.xml")
            ),
            "ppt/slideLayouts/slideLayout1.xml": layout,
            "ppt/slideLayouts/_rels/slideLayout1.xml.rels": deck.rels_xml(
                ("rId1", "slideMaster", "../slideMasters/slideMaster1.xml")
            ),
            "ppt/slideMasters/slideMaster1.xml": master,
        },
    )


def test_placeholders_inherit_layout_and_master_frames(deck):
    with open_package(_template_deck(deck)) as package:
        relationships = resolve_slide_relationships(package, 1)
        template = load_slide_template(package, relationships)
        model = extract_slide(
            package.read_binary("ppt/slides/slide1.xml"),
            relationships,
            package,
            template=template,
        )

    title, body = model.text_shapes
    tc.assertEqual(Rect(0, 0, 864, 96), title.frame)
    tc.assertEqual(Rect(96, 192, 384, 192), body.frame)
    tc.assertEqual("112233", model.background.color)


def test_template_of_slide_without_layout_is_empty(deck):
    with open_package(deck.package({1: deck.slide_xml()})) as package:
        template = load_slide_template(package, resolve_slide_relationships(package, 1))
    tc.assertIsNone(template.background)
    tc.assertEqual({}, template.layout_frames)
    tc.assertEqual({}, template.master_frames)


def test_theme_colors(deck):
    theme = (
        f'<a:theme xmlns:a="{A_NS}" name="Office"><a:themeElements>'
        '<a:clrScheme name="Office">'
        '<a:dk1><a:sysClr val="windowText" lastClr="000000"/></a:dk1>'
        '<a:lt1><a:sysClr val="window" lastClr="FFFFFF"/></a:lt1>'
        '<a:accent1><a:srgbClr val="4472C4"/></a:accent1>'
        "</a:clrScheme></a:themeElements></a:theme>"
    )
    data = deck.package({1: deck.slide_xml()}, entries={"ppt/theme/theme1.xml": theme})
    with open_package(data) as package:
        colors = load_theme_colors(package)

    tc.assertEqual({"dk1": "000000", "lt1": "FFFFFF", "accent1": "4472C4"}, colors)

    def fill(inner: str):
        return ET.fromstring(f'<a:solidFill xmlns:a="{A_NS}">{inner}</a:solidFill>')

    tc.assertEqual("4472C4", resolve_color(fill('<a:schemeClr val="accent1"/>'), colors))
    tc.assertEqual("000000", resolve_color(fill('<a:schemeClr val="tx1"/>'), colors))
    tc.assertEqual("FFFFFF", resolve_color(fill('<a:schemeClr val="bg1"/>'), colors))
    tc.assertEqual(
        "000000",
        resolve_color(fill('<a:schemeClr val="accent1"><a:lumMod val="0"/></a:schemeClr>'), colors),
    )
    tc.assertEqual(
        "FFFFFF",
        resolve_color(
            fill('<a:srgbClr val="4472C4"><a:lumMod val="0"/><a:lumOff val="100000"/></a:srgbClr>'),
            colors,
        ),
    )
    tc.assertEqual("0000FF", resolve_color(fill('<a:prstClr val="blue"/>')))
    tc.assertIsNone(resolve_color(fill('<a:schemeClr val="accent6"/>'), colors))
    tc.assertIsNone(resolve_color(None))
