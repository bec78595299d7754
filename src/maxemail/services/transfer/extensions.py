"""
Extension resolution for downloaded files.

Maps a sniffed MIME type to the suffix a download should carry:
- zip: expanded to its CSV member, or kept as .zip when extraction is off
- pdf: .pdf
- csv: .csv
- text/plain: .csv (plain-text exports from the service are always CSV)
- anything else: left without a suffix

Rules are evaluated in order and the first match wins. Compressed payloads
are tested first because some libmagic builds report ambiguous subtypes for
them.
"""

import logging
import os
from dataclasses import dataclass
from typing import Callable, List, Optional

from maxemail.exceptions import LocalIOError
from maxemail.services.transfer.archive_expander import (
    EXPANDED_SUFFIX,
    expand_single_member,
)
from maxemail.services.transfer.models import ResolvedArtifact

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtensionRule:
    """One row of the extension decision table."""

    name: str
    predicate: Callable[[str, bool], bool]
    suffix: str
    expand: bool = False


EXTENSION_RULES: List[ExtensionRule] = [
    ExtensionRule("zip-extract", lambda mime, extract: "zip" in mime and extract, EXPANDED_SUFFIX, expand=True),
    ExtensionRule("zip", lambda mime, extract: "zip" in mime, ".zip"),
    ExtensionRule("pdf", lambda mime, extract: "pdf" in mime, ".pdf"),
    ExtensionRule("csv", lambda mime, extract: "csv" in mime, ".csv"),
    ExtensionRule("plain-text", lambda mime, extract: mime == "text/plain", ".csv"),
]


def decide(mime_type: str, extract: bool = True) -> Optional[ExtensionRule]:
    """
    Pick the extension rule for a sniffed MIME type.

    Args:
        mime_type: MIME type determined from file content
        extract: Whether a zip payload should be expanded

    Returns:
        The first matching rule, or None when no suffix applies

    Examples:
        >>> decide("application/zip").name
        'zip-extract'
        >>> decide("application/zip", extract=False).suffix
        '.zip'
        >>> decide("text/plain").suffix
        '.csv'
        >>> decide("image/png") is None
        True
    """
    normalized_mime = mime_type.lower().split(";")[0].strip()
    for rule in EXTENSION_RULES:
        if rule.predicate(normalized_mime, extract):
            return rule
    return None


def resolve_extension(path: str, mime_type: str, extract: bool = True) -> ResolvedArtifact:
    """
    Rename (or expand) a downloaded file according to its sniffed type.

    A path that already ends with the chosen suffix is left as is, so
    resolving an already resolved artifact is a no-op.

    Raises:
        ArchiveError: If zip expansion fails
        LocalIOError: If the rename fails
    """
    rule = decide(mime_type, extract)
    if rule is None:
        logger.debug(
            f"No extension rule for {mime_type}",
            extra={"path": path, "mime_type": mime_type},
        )
        return ResolvedArtifact(path=path, extension="")

    if rule.expand:
        return ResolvedArtifact(path=expand_single_member(path), extension=rule.suffix)

    if path.lower().endswith(rule.suffix):
        return ResolvedArtifact(path=path, extension=rule.suffix)

    target_path = path + rule.suffix
    try:
        os.rename(path, target_path)
    except OSError as e:
        reason = e.strerror or str(e)
        raise LocalIOError(f"Unable to rename local file: {reason}", reason=reason) from e

    return ResolvedArtifact(path=target_path, extension=rule.suffix)
