"""Expansion of single-member ZIP downloads."""

import logging
import os
import shutil
import tempfile
import zipfile
import zlib
from pathlib import Path

from maxemail.exceptions import ArchiveError

logger = logging.getLogger(__name__)

EXPANDED_SUFFIX = ".csv"


def expanded_path_for(archive_path: str) -> str:
    """Target path of the expanded member: ``.zip`` stripped, ``.csv`` added."""
    source = Path(archive_path)
    stem = source.name
    if stem.lower().endswith(".zip"):
        stem = stem[:-4]
    return str(source.with_name(stem + EXPANDED_SUFFIX))


def expand_single_member(archive_path: str) -> str:
    """Extract the first member of a ZIP archive and delete the archive.

    The remote service only compresses a single CSV file per archive, so
    only the entry at index 0 is extracted. Any further entries are
    ignored.

    Args:
        archive_path: Path to the ZIP archive

    Returns:
        Path of the extracted member, ``<archive without .zip>.csv``

    Raises:
        ArchiveError: If the archive is unreadable, empty, encrypted, or the
            extracted file cannot be moved into place
    """
    target_path = expanded_path_for(archive_path)
    target = Path(target_path)
    target_dir = target.absolute().parent

    try:
        with zipfile.ZipFile(archive_path, "r") as zip_ref:
            members = zip_ref.infolist()
            if not members:
                raise ArchiveError(f"ZIP archive has no entries: {archive_path}")
            if len(members) > 1:
                logger.warning(
                    f"ZIP archive has {len(members)} entries, extracting the first only",
                    extra={"path": archive_path, "entries": len(members)},
                )

            info = members[0]
            if info.flag_bits & 0x1:
                raise ArchiveError(f"ZIP archive is password protected: {archive_path}")

            # Member names never influence the output path
            fd, partial_path = tempfile.mkstemp(
                prefix=target.name + ".", suffix=".part", dir=target_dir
            )
            try:
                with zip_ref.open(info) as source, os.fdopen(fd, "wb") as out_file:
                    shutil.copyfileobj(source, out_file)
                os.replace(partial_path, target_path)
            except BaseException:
                Path(partial_path).unlink(missing_ok=True)
                raise
    except ArchiveError:
        raise
    except (zipfile.BadZipFile, zipfile.LargeZipFile) as e:
        logger.error(
            f"Corrupted ZIP archive: {e}",
            extra={"path": archive_path},
        )
        raise ArchiveError(f"Corrupted ZIP archive: {e}") from e
    except (OSError, EOFError, RuntimeError, zlib.error) as e:
        logger.error(
            f"Failed to extract ZIP archive: {e}",
            extra={"path": archive_path, "error": str(e)},
        )
        raise ArchiveError(f"Extraction failed: {e}") from e

    try:
        Path(archive_path).unlink()
    except OSError as e:
        target.unlink(missing_ok=True)
        raise ArchiveError(f"Unable to remove expanded archive: {e.strerror or e}") from e

    logger.debug(
        f"Expanded {info.filename} to {target_path}",
        extra={"path": target_path, "member": info.filename},
    )
    return target_path
