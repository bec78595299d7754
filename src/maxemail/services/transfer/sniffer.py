"""Content-based MIME type detection using libmagic."""

import logging

from maxemail.exceptions import DetectionError

logger = logging.getLogger(__name__)


def sniff_mime_type(path: str) -> str:
    """Detect the MIME type of a file from its bytes.

    The file name and any transport headers are never consulted.

    Args:
        path: Path to an existing, fully written file

    Returns:
        MIME type string (e.g. "text/csv")

    Raises:
        DetectionError: If libmagic is unavailable or cannot inspect the file
    """
    # libmagic is loaded lazily so that a missing shared library surfaces
    # as a detection failure rather than an import failure
    try:
        import magic
    except ImportError as e:
        raise DetectionError(f"MIME type could not be determined: {e}") from e

    try:
        mime_type = magic.from_file(path, mime=True)
    except (magic.MagicException, OSError) as e:
        logger.error(
            f"Content sniffing failed: {e}",
            extra={"path": path, "error": str(e)},
        )
        raise DetectionError(f"MIME type could not be determined: {e}") from e

    if not mime_type:
        raise DetectionError("MIME type could not be determined")

    return mime_type
