"""
Slide Rasterizer
================

Paints a :class:`SlideModel` onto a fresh Pillow canvas sized to the shared
slide canvas.

Z-order is fixed:

    1. background color (white when unset)
    2. background image, stretched to the canvas
    3. geometric shapes, fill then outline
    4. pictures at their frames
    5. text shapes (titles first), bullet, text, underline

Every call allocates its own image so nothing drawn for one slide can leak
into the next.
"""

import logging

from PIL import Image, ImageDraw

from slides2pdf.converters.data_types import (
    LaidOutLine,
    PictureModel,
    Rect,
    ShapeModel,
    SlideModel,
)
from slides2pdf.converters.pptx import fonts
from slides2pdf.converters.pptx.text_layout import (
    MeasureText,
    layout,
    ordered_text_shapes,
)
from slides2pdf.converters.util.image_utils import decode_image
from slides2pdf.converters.util.units import CanvasSize

logger = logging.getLogger(__name__)

WHITE = (255, 255, 255)
# Corner radius of rounded rectangles as a fraction of the shorter side
ROUNDED_CORNER_RATIO = 0.1


def hex_to_rgb(value: str | None, default=WHITE) -> tuple[int, int, int]:
    if not value or len(value) != 6:
        return default
    try:
        return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)
    except ValueError:
        return default


def _box(frame: Rect) -> list[float]:
    # Pillow boxes are inclusive on both ends
    return [frame.x, frame.y, frame.right - 1, frame.bottom - 1]


def _draw_rectangle(draw: ImageDraw.ImageDraw, shape: ShapeModel, fill, outline, width):
    draw.rectangle(_box(shape.frame), fill=fill, outline=outline, width=width)


def _draw_ellipse(draw: ImageDraw.ImageDraw, shape: ShapeModel, fill, outline, width):
    draw.ellipse(_box(shape.frame), fill=fill, outline=outline, width=width)


def _draw_rounded_rectangle(
    draw: ImageDraw.ImageDraw, shape: ShapeModel, fill, outline, width
):
    radius = min(shape.frame.width, shape.frame.height) * ROUNDED_CORNER_RATIO
    draw.rounded_rectangle(
        _box(shape.frame), radius=radius, fill=fill, outline=outline, width=width
    )


_SHAPE_PAINTERS = {
    "rectangle": _draw_rectangle,
    "ellipse": _draw_ellipse,
    "rounded_rectangle": _draw_rounded_rectangle,
}


def _paint_background(image: Image.Image, model: SlideModel) -> None:
    background = model.background
    if background is None or background.image is None:
        return
    decoded = decode_image(background.image, background.image_name)
    if decoded is None:
        return
    stretched = decoded.resize(image.size, Image.LANCZOS)
    image.paste(stretched, (0, 0), stretched)


def _paint_shape(draw: ImageDraw.ImageDraw, shape: ShapeModel) -> None:
    if shape.frame.width < 1 or shape.frame.height < 1:
        return
    painter = _SHAPE_PAINTERS.get(shape.kind, _draw_rectangle)
    fill = hex_to_rgb(shape.fill) if shape.fill else None
    outline = hex_to_rgb(shape.stroke) if shape.stroke else None
    width = max(1, round(shape.stroke_width)) if outline else 0
    # fill first so the outline stays on top of it
    if fill is not None:
        painter(draw, shape, fill, None, 0)
    if outline is not None:
        painter(draw, shape, None, outline, width)


def _paint_picture(image: Image.Image, picture: PictureModel) -> None:
    frame = picture.frame
    width, height = round(frame.width), round(frame.height)
    if width < 1 or height < 1:
        return
    decoded = decode_image(picture.blob, picture.name)
    if decoded is None:
        return
    resized = decoded.resize((width, height), Image.LANCZOS)
    image.paste(resized, (round(frame.x), round(frame.y)), resized)


def _paint_line(draw: ImageDraw.ImageDraw, line: LaidOutLine) -> None:
    if line.bullet is not None:
        bullet = line.bullet
        draw.text(
            (bullet.x, line.baseline),
            bullet.text,
            fill=hex_to_rgb(bullet.run.color, (0, 0, 0)),
            font=fonts.font_for(bullet.run.font),
            anchor="ls",
        )
    for segment in line.segments:
        run = segment.run
        color = hex_to_rgb(run.color, (0, 0, 0))
        draw.text(
            (segment.x, line.baseline),
            segment.text,
            fill=color,
            font=fonts.font_for(run.font),
            anchor="ls",
        )
        if run.underline:
            y = line.baseline + max(1.0, run.font_size * 0.08)
            thickness = max(1, round(run.font_size / 18))
            draw.line(
                [(segment.x, y), (segment.x + segment.width, y)],
                fill=color,
                width=thickness,
            )


def rasterize(
    model: SlideModel,
    canvas_size: CanvasSize,
    measure_text: MeasureText | None = fonts.measure_text,
) -> Image.Image:
    """
    Draw a slide model into a new RGB image of ``canvas_size``.

    Args:
        model: Extracted slide content in canvas pixels.
        canvas_size: Shared canvas of the conversion.
        measure_text: Measuring primitive handed to the layout engine.

    Returns:
        The rendered slide.
    """
    background_color = WHITE
    if model.background is not None and model.background.color:
        background_color = hex_to_rgb(model.background.color)

    image = Image.new("RGB", (canvas_size.width, canvas_size.height), background_color)
    _paint_background(image, model)

    draw = ImageDraw.Draw(image)
    for shape in model.shapes:
        _paint_shape(draw, shape)

    for picture in model.pictures:
        _paint_picture(image, picture)

    for text_shape in ordered_text_shapes(model.text_shapes):
        for line in layout(text_shape, measure_text):
            _paint_line(draw, line)

    logger.debug(f"Rasterized slide {model.slide_number} at {image.size[0]}x{image.size[1]}")
    return image
