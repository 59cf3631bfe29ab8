"""
Presentation Package Reader
===========================

Read-only access to the ZIP container of an Office Open XML presentation.

A ``.pptx`` file is a ZIP archive of named parts:

    ppt/presentation.xml: Presentation-level properties (slide size)
    ppt/slides/slide1.xml, slide2.xml, ...: Individual slide content
    ppt/slides/_rels/slide1.xml.rels: Per-slide relationships (images, layout)
    ppt/slideLayouts/, ppt/slideMasters/: Layout and master templates
    ppt/theme/theme1.xml: Color scheme
    ppt/media/: Embedded images and media
    docProps/core.xml: Metadata (title, author, dates)

Slide order follows the numeric suffix of the slide part names, never the
enumeration order of the archive directory.
"""

import io
import logging
import re
from typing import Pattern
from xml.etree import ElementTree as ET

from slides2pdf.exceptions import MalformedPackageError, PackageEncryptedError
from slides2pdf.converters.util.encryption import (
    ENCRYPTED,
    LEGACY_PPT,
    sniff_ole_container,
)
from slides2pdf.converters.util.zip_bomb import (
    DEFAULT_ZIP_BOMB_LIMITS,
    ZipBombLimits,
    open_zipfile,
)

logger = logging.getLogger(__name__)

PRESENTATION_PART = "ppt/presentation.xml"
CORE_PROPERTIES_PART = "docProps/core.xml"
SLIDE_PART_PATTERN = re.compile(r"^ppt/slides/slide(\d+)\.xml$")


class Package:
    """Named-entry view over a presentation archive.

    Opening validates the container once; afterwards lookups never raise
    for missing entries and return ``None`` instead.
    """

    def __init__(
        self,
        file_like: io.BytesIO,
        *,
        limits: ZipBombLimits = DEFAULT_ZIP_BOMB_LIMITS,
    ):
        self.file_like = file_like
        try:
            container = sniff_ole_container(file_like)
        except OSError as exc:
            raise MalformedPackageError(
                "Input is a damaged OLE compound file", cause=exc
            ) from exc
        if container == ENCRYPTED:
            raise PackageEncryptedError()
        if container == LEGACY_PPT:
            raise MalformedPackageError(
                "Legacy binary PowerPoint (.ppt) presentations are not supported"
            )
        self._zip = open_zipfile(file_like, limits=limits, source=type(self).__name__)
        # namelist keeps archive order, the set is for lookups
        self._entries = self._zip.namelist()
        self._entry_set = set(self._entries)
        if PRESENTATION_PART not in self._entry_set:
            self._zip.close()
            raise MalformedPackageError(
                f"Presentation manifest {PRESENTATION_PART} is missing"
            )

    @classmethod
    def from_bytes(
        cls, data: bytes, *, limits: ZipBombLimits = DEFAULT_ZIP_BOMB_LIMITS
    ) -> "Package":
        return cls(io.BytesIO(data), limits=limits)

    @property
    def entries(self) -> list[str]:
        return list(self._entries)

    def list_entries_matching(self, pattern: str | Pattern[str]) -> list[str]:
        """Return entry names matching ``pattern`` in archive order."""
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        return [name for name in self._entries if regex.search(name)]

    def read_binary(self, path: str) -> bytes | None:
        if path not in self._entry_set:
            return None
        return self._zip.read(path)

    def read_text(self, path: str) -> str | None:
        data = self.read_binary(path)
        if data is None:
            return None
        # OOXML parts are UTF-8; a BOM sometimes precedes the declaration
        return data.decode("utf-8-sig", errors="replace")

    def read_xml_root(self, path: str) -> ET.Element | None:
        """Parse an entry as XML.

        Raises:
            xml.etree.ElementTree.ParseError: The entry exists but is not XML.
        """
        data = self.read_binary(path)
        if data is None:
            return None
        return ET.fromstring(data)

    def slide_entries(self) -> list[tuple[int, str]]:
        """Return ``(number, entry)`` pairs of all slide parts, ascending by number."""
        slides = []
        for name in self.list_entries_matching(SLIDE_PART_PATTERN):
            match = SLIDE_PART_PATTERN.match(name)
            slides.append((int(match.group(1)), name))
        slides.sort(key=lambda item: item[0])
        logger.debug(f"Discovered {len(slides)} slide parts")
        return slides

    def close(self) -> None:
        self._zip.close()

    def __enter__(self) -> "Package":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def open_package(
    data: bytes | io.BytesIO, *, limits: ZipBombLimits = DEFAULT_ZIP_BOMB_LIMITS
) -> Package:
    """Open presentation bytes (or a binary stream) as a :class:`Package`.

    Raises:
        MalformedPackageError: Not a ZIP archive, or no presentation manifest.
        PackageEncryptedError: The deck is password-protected.
        PackageZipBombError: The archive violates ``limits``.
    """
    if isinstance(data, (bytes, bytearray)):
        return Package.from_bytes(bytes(data), limits=limits)
    return Package(data, limits=limits)
