import io
import logging
import mimetypes
import os
from typing import Callable

from slides2pdf.converters.data_types import ConversionResult
from slides2pdf.exceptions import ConversionFileFormatNotSupportedError

logger = logging.getLogger(__name__)

# Presentation family of Office Open XML; all share the same package layout
mime_type_mapping = {
    "application/vnd.openxmlformats-officedocument.presentationml.presentation": "pptx",
    "application/vnd.ms-powerpoint.presentation.macroEnabled.12": "pptx",
    "application/vnd.openxmlformats-officedocument.presentationml.slideshow": "pptx",
    "application/vnd.openxmlformats-officedocument.presentationml.template": "pptx",
}

# Extensions not every platform's mimetypes table knows
extension_mapping = {
    ".pptx": "pptx",
    ".pptm": "pptx",
    ".ppsx": "pptx",
    ".potx": "pptx",
}

Converter = Callable[..., ConversionResult]


def _get_converter(file_type: str) -> Converter:
    """Return the converter function for a file type (lazy import)."""
    if file_type == "pptx":
        from slides2pdf.converters.pptx_converter import convert_pptx

        return convert_pptx
    else:
        raise RuntimeError(f"No converter for file type: {file_type}")


def _file_type(path: str) -> str | None:
    path = path.lower()
    mime_type, _ = mimetypes.guess_type(path)
    if mime_type is not None and mime_type in mime_type_mapping:
        logger.debug(f"Detected file type by MIME [{mime_type}] for file: {path}")
        return mime_type_mapping[mime_type]
    extension = os.path.splitext(path)[1]
    if extension in extension_mapping:
        logger.debug(f"Detected file type by extension [{extension}] for file: {path}")
        return extension_mapping[extension]
    logger.debug(f"File [{path}] with mime type [{mime_type}] is not supported")
    return None


def is_supported_file(path: str) -> bool:
    """Checks if the path is a supported file"""
    return _file_type(str(path)) is not None


def get_converter(path: str) -> Callable[[io.BytesIO, str | None], ConversionResult]:
    """Analyses the path of a file and returns a suited converter.
       The file does not need to exist (yet). The path or filename alone suffices.

    :returns a converter function taking a file-like object and an optional path
    :raises ConversionFileFormatNotSupportedError: File is not covered by any converter
    """
    file_type = _file_type(str(path))
    if file_type is None:
        raise ConversionFileFormatNotSupportedError(str(path))
    return _get_converter(file_type)
