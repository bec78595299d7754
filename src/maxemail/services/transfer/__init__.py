"""
Bulk file transfer for the Maxemail API.

Uploads local files against a server-issued file key and downloads files
and exports to local temporary files, naming them by their sniffed content
type and expanding compressed CSV exports.
"""

from maxemail.services.transfer.extensions import EXTENSION_RULES, decide, resolve_extension
from maxemail.services.transfer.helper import TransferHelper
from maxemail.services.transfer.models import (
    DownloadOptions,
    FileHandle,
    ResolvedArtifact,
    ResourceType,
)

__all__ = [
    "TransferHelper",
    "DownloadOptions",
    "FileHandle",
    "ResolvedArtifact",
    "ResourceType",
    "EXTENSION_RULES",
    "decide",
    "resolve_extension",
]
