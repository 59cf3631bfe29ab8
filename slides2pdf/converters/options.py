from dataclasses import dataclass, field

from slides2pdf.converters.util.units import DEFAULT_DPI
from slides2pdf.converters.util.zip_bomb import DEFAULT_ZIP_BOMB_LIMITS, ZipBombLimits


@dataclass(frozen=True)
class ConversionOptions:
    """
    Settings of one conversion call.

    dpi drives the EMU to pixel conversion, so it decides both the pixel
    size of each rendered slide and the size of the PDF pages.
    """

    dpi: float = DEFAULT_DPI
    zip_limits: ZipBombLimits = field(default_factory=lambda: DEFAULT_ZIP_BOMB_LIMITS)
    default_font_family: str = "Arial"
    error_font: str = "Helvetica"

    def __post_init__(self):
        if self.dpi <= 0:
            raise ValueError(f"dpi must be positive, got {self.dpi}")


DEFAULT_OPTIONS = ConversionOptions()
