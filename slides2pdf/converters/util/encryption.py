"""
OLE Container Detection
=======================

A file handed in as a presentation is not always a ZIP archive. Two kinds of
OLE compound files show up in practice:

    encrypted: a password-protected .pptx; the real package sits in the
        EncryptedPackage stream, described by EncryptionInfo
    legacy_ppt: a PowerPoint 97-2003 binary presentation with its
        "PowerPoint Document" stream

Both are recognized before the ZIP reader runs so callers get a precise
error instead of "not a ZIP archive".
"""

import io
import logging

import olefile

logger = logging.getLogger(__name__)

ENCRYPTED = "encrypted"
LEGACY_PPT = "legacy_ppt"
OTHER_OLE = "ole"

ENCRYPTION_STREAMS = ("EncryptionInfo", "EncryptedPackage")
LEGACY_PPT_STREAM = "PowerPoint Document"


def sniff_ole_container(file_like: io.BytesIO) -> str | None:
    """
    Classify ``file_like`` if it is an OLE compound file.

    Returns:
        ``ENCRYPTED``, ``LEGACY_PPT`` or ``OTHER_OLE`` for OLE files, None
        for anything else. The stream is rewound in every case.
    """
    file_like.seek(0)
    try:
        if not olefile.isOleFile(file_like):
            return None
        file_like.seek(0)
        with olefile.OleFileIO(file_like) as ole:
            if any(ole.exists(stream) for stream in ENCRYPTION_STREAMS):
                return ENCRYPTED
            if ole.exists(LEGACY_PPT_STREAM):
                return LEGACY_PPT
            logger.debug(f"OLE container without presentation streams: {ole.listdir()}")
            return OTHER_OLE
    finally:
        file_like.seek(0)


def is_ooxml_encrypted(file_like: io.BytesIO) -> bool:
    """True when ``file_like`` is a password-protected OOXML package."""
    return sniff_ole_container(file_like) == ENCRYPTED
