"""
Text Layout Engine
==================

Approximates the text frame layout of a presentation renderer with nothing
more than a text measuring primitive.

For every paragraph of a :class:`TextShape` the engine

    1. splits the runs into words (runs may share a word, e.g. ``Hello`` + ``,``),
    2. wraps the words greedily into the available width,
    3. stacks the lines vertically honoring spacing and the frame anchor,
    4. places the bullet glyph in front of the first line of the paragraph.

The measuring primitive is injected (``measure_text(text, font) -> width``),
so the engine itself never touches fonts or pixels. If the primitive fails,
widths are estimated from the character count instead.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, List, Sequence, TypeVar

from slides2pdf.converters.data_types import (
    FontSpec,
    LaidOutLine,
    LineSegment,
    Paragraph,
    Run,
    TextShape,
    VerticalAnchor,
    needs_separator,
)

logger = logging.getLogger(__name__)

MeasureText = Callable[[str, FontSpec], float]

# Fixed inner margin of a text frame, pixels
MARGIN = 5.0
# Line box height as a multiple of the font size
LINE_HEIGHT_RATIO = 1.2
# Bullet indent per level as a multiple of the font size
BULLET_INDENT_RATIO = 1.5
# Portion of the font size above the baseline
ASCENT_RATIO = 0.8
# Average glyph width as a multiple of the font size, used without metrics
FALLBACK_CHAR_WIDTH_RATIO = 0.55

_WHITESPACE_SPLIT = re.compile(r"(\s+)")

T = TypeVar("T")


def estimate_text_width(text: str, font: FontSpec) -> float:
    return len(text) * font.size * FALLBACK_CHAR_WIDTH_RATIO


class _SafeMeasure:
    """Wraps a measuring primitive, degrading to estimates when it fails."""

    def __init__(self, measure_text: MeasureText | None):
        self._measure_text = measure_text
        self.degraded = measure_text is None

    def __call__(self, text: str, font: FontSpec) -> float:
        if not text:
            return 0.0
        if not self.degraded:
            try:
                return float(self._measure_text(text, font))
            except Exception as e:
                logger.warning(f"Text measuring failed, estimating widths instead: {e}")
                self.degraded = True
        return estimate_text_width(text, font)


@dataclass(frozen=True)
class _Piece:
    text: str
    run: Run


# a word is the pieces of one or more runs that touch without whitespace
_Word = tuple[_Piece, ...]


def wrap_words(
    words: Sequence[T],
    available_width: float,
    line_width: Callable[[Sequence[T]], float],
) -> List[List[T]]:
    """
    Greedy word wrap.

    Words are accumulated while the measured line fits; a word that does not
    fit starts a new line. A word wider than the available width still gets
    a line of its own, so no word is ever dropped.
    """
    lines: List[List[T]] = []
    current: List[T] = []
    for word in words:
        candidate = current + [word]
        if current and line_width(candidate) > available_width:
            lines.append(current)
            current = [word]
        else:
            current = candidate
    if current:
        lines.append(current)
    return lines


def wrap_text(
    text: str,
    available_width: float,
    measure_text: MeasureText | None = None,
    font: FontSpec = FontSpec(),
) -> List[str]:
    """Wrap plain text in a single font; words are separated by single spaces."""
    measure = _SafeMeasure(measure_text)
    lines = wrap_words(
        text.split(), available_width, lambda words: measure(" ".join(words), font)
    )
    return [" ".join(line) for line in lines]


def _split_words(runs: Sequence[Run]) -> List[List[_Word]]:
    """Split runs into words, one list per forced line (``a:br``)."""
    segments: List[List[_Word]] = [[]]
    current: List[_Piece] = []
    previous_text = ""

    def flush():
        if current:
            segments[-1].append(tuple(current))
            current.clear()

    for run in runs:
        if run.is_break:
            flush()
            segments.append([])
            previous_text = ""
            continue
        if not run.text:
            continue
        if needs_separator(previous_text, run.text):
            flush()
        for part in _WHITESPACE_SPLIT.split(run.text):
            if not part:
                continue
            if part.isspace():
                flush()
            else:
                current.append(_Piece(part, run))
        previous_text = run.text
    flush()
    return segments


def _word_width(word: _Word, measure: _SafeMeasure) -> float:
    return sum(measure(piece.text, piece.run.font) for piece in word)


def _words_width(words: Sequence[_Word], measure: _SafeMeasure) -> float:
    width = 0.0
    for index, word in enumerate(words):
        if index:
            width += measure(" ", words[index - 1][-1].run.font)
        width += _word_width(word, measure)
    return width


def _segments_for(
    words: Sequence[_Word], x: float, measure: _SafeMeasure
) -> List[LineSegment]:
    """Merge the pieces of a line into segments sharing one run each."""
    segments: List[LineSegment] = []
    for index, word in enumerate(words):
        for position, piece in enumerate(word):
            text = piece.text
            if index and position == 0:
                # the space between words belongs to the segment before it
                text = " " + text
            if segments and segments[-1].run is piece.run:
                segments[-1].text += text
            else:
                if text.startswith(" ") and segments:
                    segments[-1].text += " "
                    text = text[1:]
                segments.append(LineSegment(text=text, x=0.0, width=0.0, run=piece.run))

    cursor = x
    for segment in segments:
        segment.x = cursor
        segment.width = measure(segment.text, segment.run.font)
        cursor += segment.width
    return segments


def indent_for(paragraph: Paragraph) -> tuple[float, float]:
    """(bullet offset, text offset) from the frame's inner left edge."""
    step = paragraph.font_size * BULLET_INDENT_RATIO
    bullet_offset = paragraph.level * step
    text_offset = bullet_offset + (step if paragraph.is_bullet else 0.0)
    return bullet_offset, text_offset


def vertical_offset(anchor: VerticalAnchor, shape_height: float, total_height: float) -> float:
    """Offset of the first line from the top of the frame, never negative."""
    if anchor == "middle":
        offset = (shape_height - total_height) / 2
    elif anchor == "bottom":
        offset = shape_height - total_height
    else:
        offset = MARGIN
    return max(offset, 0.0)


@dataclass
class _ParagraphBlock:
    paragraph: Paragraph
    lines: List[List[_Word]]
    line_height: float
    available_width: float
    text_offset: float
    bullet_offset: float

    @property
    def height(self) -> float:
        line_count = max(len(self.lines), 1)
        return (
            self.paragraph.space_before
            + line_count * self.line_height
            + self.paragraph.space_after
        )


def _layout_paragraph(
    paragraph: Paragraph, frame_width: float, measure: _SafeMeasure
) -> _ParagraphBlock:
    bullet_offset, text_offset = indent_for(paragraph)
    available = max(frame_width - 2 * MARGIN - text_offset, 1.0)

    lines: List[List[_Word]] = []
    for words in _split_words(paragraph.runs):
        wrapped = wrap_words(words, available, lambda ws: _words_width(ws, measure))
        lines.extend(wrapped or [[]])
    # trailing empty line from a paragraph ending in a:br
    while len(lines) > 1 and not lines[-1]:
        lines.pop()

    return _ParagraphBlock(
        paragraph=paragraph,
        lines=lines,
        line_height=paragraph.font_size * LINE_HEIGHT_RATIO * paragraph.line_spacing,
        available_width=available,
        text_offset=text_offset,
        bullet_offset=bullet_offset,
    )


def layout(shape: TextShape, measure_text: MeasureText | None = None) -> List[LaidOutLine]:
    """
    Lay out every paragraph of ``shape`` into positioned lines.

    Args:
        shape: Text shape with its frame in canvas pixels.
        measure_text: ``(text, font) -> width`` primitive of the drawing
            surface. Without it (or when it raises) widths are estimated.

    Returns:
        Lines in drawing order. Empty paragraphs take vertical space but
        produce no line.
    """
    measure = _SafeMeasure(measure_text)
    frame = shape.frame
    blocks = [_layout_paragraph(p, frame.width, measure) for p in shape.paragraphs]

    total_height = sum(block.height for block in blocks)
    cursor = frame.y + vertical_offset(shape.anchor, frame.height, total_height)
    inner_left = frame.x + MARGIN

    laid_out: List[LaidOutLine] = []
    for block in blocks:
        paragraph = block.paragraph
        cursor += paragraph.space_before
        font_size = paragraph.font_size

        bullet_pending = paragraph.is_bullet
        for words in block.lines:
            if not words:
                cursor += block.line_height
                continue

            width = _words_width(words, measure)
            if paragraph.alignment == "center":
                x = inner_left + block.text_offset + (block.available_width - width) / 2
            elif paragraph.alignment == "right":
                x = frame.right - MARGIN - width
            else:
                x = inner_left + block.text_offset

            line = LaidOutLine(
                top=cursor,
                baseline=cursor + font_size * ASCENT_RATIO,
                height=block.line_height,
                segments=_segments_for(words, x, measure),
            )
            if bullet_pending:
                line.bullet = _bullet_segment(block, x, inner_left, line, measure)
                bullet_pending = False
            laid_out.append(line)
            cursor += block.line_height

        if not block.lines:
            cursor += block.line_height
        cursor += paragraph.space_after

    return laid_out


def _bullet_segment(
    block: _ParagraphBlock,
    text_x: float,
    inner_left: float,
    line: LaidOutLine,
    measure: _SafeMeasure,
) -> LineSegment:
    paragraph = block.paragraph
    run = line.segments[0].run
    glyph = paragraph.bullet_char
    width = measure(glyph, run.font)
    if paragraph.alignment == "left":
        x = inner_left + block.bullet_offset
    else:
        # centered and right aligned lines keep the bullet just before the text
        x = text_x - paragraph.font_size
    return LineSegment(text=glyph, x=x, width=width, run=run)


def ordered_text_shapes(shapes: Sequence[TextShape]) -> List[TextShape]:
    """Title shapes first, everything else in document order."""
    return sorted(shapes, key=lambda shape: shape.role != "title")
