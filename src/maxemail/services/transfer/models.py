"""
Value models for file transfers.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# Opaque upload slot token issued by the remote initialise call
FileHandle = str


class ResourceType(str, Enum):
    """Downloadable resource categories."""

    FILE = "file"
    LIST_EXPORT = "listexport"
    DATA_EXPORT = "dataexport"

    @property
    def primary_key(self) -> str:
        """Name of the primary key segment in the download path."""
        return "key" if self is ResourceType.FILE else "id"

    def remote_path(self, primary_id: Union[str, int]) -> str:
        """Build the download path, e.g. ``/download/listexport/id/42``."""
        return f"/download/{self.value}/{self.primary_key}/{primary_id}"


class DownloadOptions(BaseModel):
    """Caller options for a download."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    extract: bool = Field(True, description="Expand a zip payload into its CSV member")
    directory: Optional[str] = Field(
        None, alias="dir", description="Target directory, defaults to platform temp dir"
    )


@dataclass(frozen=True)
class ResolvedArtifact:
    """Final local file of a download.

    ``extension`` is the suffix that was applied, empty when the sniffed
    type matched no extension rule.
    """

    path: str
    extension: str = ""
