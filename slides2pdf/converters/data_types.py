import typing
from dataclasses import dataclass, field
from typing import List, Literal, Optional

###################
# Slide content
###################

ShapeKind = Literal["rectangle", "ellipse", "rounded_rectangle", "picture", "text"]
PlaceholderRole = Literal["title", "subtitle", "body", "none"]
VerticalAnchor = Literal["top", "middle", "bottom"]
Alignment = Literal["left", "center", "right"]

# Characters after which (or before which) no separating space is inferred
TERMINAL_PUNCTUATION = frozenset(",.;:!?")


def needs_separator(previous: str, following: str) -> bool:
    """Whether a space must be inferred between two adjacent runs.

    Runs split purely for formatting reasons keep their own spacing; a
    space is only added when neither side already provides a boundary.
    """
    if not previous or not following:
        return False
    for char in (previous[-1], following[0]):
        if char.isspace() or char in TERMINAL_PUNCTUATION:
            return False
    return True


def join_runs(texts: typing.Iterable[str]) -> str:
    """Concatenate run texts of one paragraph, inferring single spaces."""
    joined = ""
    for text in texts:
        if not text:
            continue
        if needs_separator(joined, text):
            joined += " "
        joined += text
    return joined


@dataclass(frozen=True)
class Rect:
    """Position and size in canvas pixels."""

    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height


@dataclass(frozen=True)
class FontSpec:
    """Font descriptor handed to the text measuring primitive."""

    family: str = "Arial"
    size: float = 18.0  # pixels
    bold: bool = False
    italic: bool = False


@dataclass
class Background:
    color: Optional[str] = None  # "RRGGBB"
    image: Optional[bytes] = None
    image_name: str = ""


@dataclass
class ShapeModel:
    kind: ShapeKind = "rectangle"
    frame: Rect = field(default_factory=Rect)
    preset: str = "rect"  # preset geometry name as written in the slide
    fill: Optional[str] = None
    stroke: Optional[str] = None
    stroke_width: float = 1.0


@dataclass
class PictureModel:
    frame: Rect = field(default_factory=Rect)
    blob: bytes = b""
    name: str = ""  # package entry the image came from
    description: str = ""
    kind: ShapeKind = "picture"


@dataclass
class Run:
    text: str = ""
    font_size: float = 24.0  # pixels
    bold: bool = False
    italic: bool = False
    underline: bool = False
    color: str = "000000"
    font_family: str = "Arial"
    is_break: bool = False  # a:br, forces a new line

    @property
    def font(self) -> FontSpec:
        return FontSpec(
            family=self.font_family,
            size=self.font_size,
            bold=self.bold,
            italic=self.italic,
        )


@dataclass
class Paragraph:
    alignment: Alignment = "left"
    level: int = 0
    is_bullet: bool = False
    bullet_char: str = "•"
    line_spacing: float = 1.0  # multiplier
    space_before: float = 0.0  # pixels
    space_after: float = 0.0  # pixels
    default_font_size: float = 24.0  # pixels, used when there are no runs
    runs: List[Run] = field(default_factory=list)

    @property
    def font_size(self) -> float:
        sizes = [run.font_size for run in self.runs if not run.is_break]
        return max(sizes) if sizes else self.default_font_size

    @property
    def text(self) -> str:
        return join_runs(run.text for run in self.runs if not run.is_break)


@dataclass
class TextShape:
    frame: Rect = field(default_factory=Rect)
    role: PlaceholderRole = "none"
    anchor: VerticalAnchor = "top"
    paragraphs: List[Paragraph] = field(default_factory=list)
    kind: ShapeKind = "text"

    @property
    def text(self) -> str:
        return "\n".join(paragraph.text for paragraph in self.paragraphs)


@dataclass
class SlideModel:
    slide_number: int = 0
    background: Optional[Background] = None
    shapes: List[ShapeModel] = field(default_factory=list)
    pictures: List[PictureModel] = field(default_factory=list)
    text_shapes: List[TextShape] = field(default_factory=list)


###################
# Text layout
###################


@dataclass
class LineSegment:
    """A stretch of one line drawn with a single run's formatting."""

    text: str
    x: float
    width: float
    run: Run


@dataclass
class LaidOutLine:
    top: float
    baseline: float
    height: float
    segments: List[LineSegment] = field(default_factory=list)
    bullet: Optional[LineSegment] = None

    @property
    def text(self) -> str:
        return "".join(segment.text for segment in self.segments)

    @property
    def run(self) -> Optional[Run]:
        """Formatting of the run that owns the start of the line."""
        if self.segments:
            return self.segments[0].run
        if self.bullet is not None:
            return self.bullet.run
        return None


###################
# Conversion result
###################


@dataclass
class PresentationMetadata:
    title: str = ""
    author: str = ""
    subject: str = ""
    keywords: str = ""


@dataclass
class SlideOutcome:
    slide_number: int = 0  # 1-based position in the output document
    source: str = ""  # slide entry, e.g. ppt/slides/slide3.xml
    succeeded: bool = True
    error: str = ""


@dataclass
class ConversionResult:
    pdf: bytes = b""
    width: int = 0
    height: int = 0
    slides: List[SlideOutcome] = field(default_factory=list)
    metadata: PresentationMetadata = field(default_factory=PresentationMetadata)

    @property
    def page_count(self) -> int:
        return len(self.slides)

    @property
    def failed_slides(self) -> List[SlideOutcome]:
        return [slide for slide in self.slides if not slide.succeeded]
