"""
Archive Guard
=============

Rejects presentation archives whose directory promises far more data than
any authoring tool writes, before a single part is decompressed.

Only the central directory is inspected (entry count, declared sizes and
compression ratios); nothing is inflated here.
"""

from __future__ import annotations

import io
import logging
import zipfile
from dataclasses import dataclass

from slides2pdf.exceptions import MalformedPackageError, PackageZipBombError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ZipBombLimits:
    """
    Upper bounds for a presentation archive.

    Decks full of photos and embedded video are legitimately large, so the
    defaults only reject archives no presentation tool produces.
    """

    max_entries: int = 20_000
    max_total_uncompressed_bytes: int = 2 * 1024 * 1024 * 1024  # 2 GiB
    max_single_uncompressed_bytes: int = 512 * 1024 * 1024  # 512 MiB
    max_total_compression_ratio: float = 200.0
    max_entry_compression_ratio: float = 500.0


DEFAULT_ZIP_BOMB_LIMITS = ZipBombLimits()


@dataclass
class _ArchiveTotals:
    uncompressed: int = 0
    compressed: int = 0

    @property
    def ratio(self) -> float:
        return self.uncompressed / max(self.compressed, 1)


def _where(source: str | None) -> str:
    return f" [{source}]" if source else ""


def _check_entry(info: zipfile.ZipInfo, limits: ZipBombLimits) -> None:
    size = int(info.file_size or 0)
    packed = int(info.compress_size or 0)

    if size > limits.max_single_uncompressed_bytes:
        raise PackageZipBombError(
            f"Part {info.filename} inflates to {size} bytes "
            f"(limit {limits.max_single_uncompressed_bytes})"
        )
    if size == 0:
        return
    if packed <= 0:
        raise PackageZipBombError(
            f"Part {info.filename} declares {size} bytes from an empty stream"
        )
    ratio = size / packed
    if ratio > limits.max_entry_compression_ratio:
        raise PackageZipBombError(
            f"Part {info.filename} compresses {ratio:.1f}:1 "
            f"(limit {limits.max_entry_compression_ratio})"
        )


def validate_zipfile(
    zf: zipfile.ZipFile,
    *,
    limits: ZipBombLimits = DEFAULT_ZIP_BOMB_LIMITS,
    source: str | None = None,
) -> None:
    """
    Check the archive directory against ``limits``.

    Raises:
        PackageZipBombError: The first limit that is exceeded.
    """
    parts = [info for info in zf.infolist() if not info.is_dir()]
    if len(parts) > limits.max_entries:
        raise PackageZipBombError(
            f"Archive has {len(parts)} parts (limit {limits.max_entries})"
            + _where(source)
        )

    totals = _ArchiveTotals()
    for info in parts:
        try:
            _check_entry(info, limits)
        except PackageZipBombError as exc:
            raise PackageZipBombError(str(exc) + _where(source)) from exc
        totals.uncompressed += int(info.file_size or 0)
        totals.compressed += int(info.compress_size or 0)
        if totals.uncompressed > limits.max_total_uncompressed_bytes:
            raise PackageZipBombError(
                f"Archive inflates to more than {limits.max_total_uncompressed_bytes} bytes"
                + _where(source)
            )

    if totals.uncompressed and totals.ratio > limits.max_total_compression_ratio:
        raise PackageZipBombError(
            f"Archive compresses {totals.ratio:.1f}:1 "
            f"(limit {limits.max_total_compression_ratio})" + _where(source)
        )
    logger.debug(
        f"Archive{_where(source)} passed limits: {len(parts)} parts, "
        f"{totals.uncompressed} bytes inflated"
    )


def open_zipfile(
    file_like: io.BytesIO,
    *,
    limits: ZipBombLimits = DEFAULT_ZIP_BOMB_LIMITS,
    source: str | None = None,
) -> zipfile.ZipFile:
    """
    Open a presentation archive and validate it against ``limits``.

    The caller owns the returned ZipFile and must close it.

    Raises:
        MalformedPackageError: The stream is not a ZIP archive.
        PackageZipBombError: The archive violates ``limits``.
    """
    file_like.seek(0)
    try:
        zf = zipfile.ZipFile(file_like, "r")
    except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError) as exc:
        raise MalformedPackageError(
            "Input is not a ZIP archive" + _where(source), cause=exc
        ) from exc
    try:
        validate_zipfile(zf, limits=limits, source=source)
    except PackageZipBombError:
        zf.close()
        raise
    return zf
