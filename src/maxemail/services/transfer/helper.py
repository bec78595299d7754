"""
Upload and download pipelines for Maxemail bulk file transfers.

Uploads are two-phase: an initialise call issues a file key, then the file
is sent as one multipart request against that key. Downloads stream a
remote resource into a new temporary file, sniff its content, and resolve
the final extension (expanding single-member zip archives).
"""

import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any, BinaryIO, Mapping, Optional, Union

from maxemail.api.client import RemoteClient
from maxemail.core.config import settings
from maxemail.core.logging import transfer_id_context
from maxemail.exceptions import InvalidInputError, LocalIOError
from maxemail.services.transfer.extensions import resolve_extension
from maxemail.services.transfer.models import (
    DownloadOptions,
    FileHandle,
    ResolvedArtifact,
    ResourceType,
)
from maxemail.services.transfer.sniffer import sniff_mime_type

logger = logging.getLogger(__name__)

# Matches the server's emission granularity
DOWNLOAD_CHUNK_SIZE = 101400


def _os_reason(error: OSError) -> str:
    return error.strerror or str(error)


def _sanitize_id(primary_id: Union[str, int]) -> str:
    """Make a primary id safe for use in a temp file prefix."""
    return re.sub(r"[^a-zA-Z0-9._-]", "_", str(primary_id))[:64]


class TransferHelper:
    """Bulk file transfer helper bound to one remote client."""

    def __init__(
        self,
        remote: RemoteClient,
        logger: Optional[logging.Logger] = None,
        log_level: Union[int, str, None] = None,
    ):
        """Initialize helper.

        Args:
            remote: Remote-call abstraction used for all requests
            logger: Logger for progress events, defaults to this module's
            log_level: Level of progress events, defaults to HELPER_LOG_LEVEL

        Raises:
            InvalidInputError: If the log level is not a known level
        """
        self.remote = remote
        self.logger = logger or logging.getLogger(__name__)
        self.set_log_level(settings.HELPER_LOG_LEVEL if log_level is None else log_level)

    def set_log_level(self, level: Union[int, str]) -> "TransferHelper":
        """Set the level used for transfer progress events."""
        if isinstance(level, str):
            level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise InvalidInputError(f"Unknown log level: {level}")
        self.log_level = level
        return self

    def upload_file(self, path: str) -> FileHandle:
        """Upload a local file.

        Returns the file key to use for list imports, email content, etc.

        Args:
            path: Path to a readable local file

        Returns:
            File key issued by the remote service

        Raises:
            InvalidInputError: If the path is not a readable file
            DetectionError: If the MIME type cannot be determined
            LocalIOError: If the file cannot be opened
            httpx.HTTPError: If either remote call fails
        """
        source = Path(path)
        if not (source.is_file() and os.access(source, os.R_OK)):
            raise InvalidInputError(f"File path is not readable: {path}")

        mime_type = sniff_mime_type(path)

        file_key = self.remote.initialise_upload()
        log_ctxt = {"fileKey": file_key, "path": path}
        token = transfer_id_context.set(file_key)
        try:
            try:
                local = open(path, "rb")
            except OSError as e:
                reason = _os_reason(e)
                raise LocalIOError(f"Unable to open local file: {reason}", reason=reason) from e

            with local:
                self.logger.log(self.log_level, f"Upload file: {file_key}", extra=log_ctxt)
                self.remote.post_multipart(
                    "file_upload",
                    data={"method": "handle", "key": file_key},
                    files={"file": (source.name, local, mime_type)},
                )

            self.logger.log(self.log_level, f"Upload complete: {file_key}", extra=log_ctxt)
        finally:
            transfer_id_context.reset(token)

        return file_key

    def download_file(
        self,
        resource_type: str,
        primary_id: Union[str, int],
        options: Union[DownloadOptions, Mapping[str, Any], None] = None,
        **overrides: Any,
    ) -> ResolvedArtifact:
        """Download a file by resource type.

        Args:
            resource_type: One of ``file``, ``listexport``, ``dataexport``
            primary_id: File key or export id
            options: ``extract`` (expand a zip download, default True) and
                ``dir`` (target directory, default system temp dir)
            **overrides: Individual options, taking precedence over ``options``

        Returns:
            ResolvedArtifact with the final path and applied extension

        Raises:
            InvalidInputError: If the type or options are invalid
            LocalIOError: If the local file cannot be created or written
            DetectionError: If the MIME type cannot be determined
            ArchiveError: If a zip download cannot be expanded
            httpx.HTTPError: If the remote request fails
        """
        try:
            resource = ResourceType(resource_type)
        except ValueError:
            raise InvalidInputError(f"Invalid download type specified: {resource_type}") from None

        opts = self._build_options(options, overrides)
        target_dir = opts.directory or settings.DOWNLOAD_DIR or tempfile.gettempdir()

        try:
            fd, filename = tempfile.mkstemp(
                prefix=f"mxm-{resource.value}-{_sanitize_id(primary_id)}-",
                dir=target_dir,
            )
        except OSError as e:
            reason = _os_reason(e)
            raise LocalIOError(f"Unable to open local file: {reason}", reason=reason) from e

        token = transfer_id_context.set(f"{resource.value}:{primary_id}")
        try:
            return self._fetch_and_resolve(resource, primary_id, fd, filename, opts.extract)
        finally:
            transfer_id_context.reset(token)

    def _fetch_and_resolve(
        self,
        resource: ResourceType,
        primary_id: Union[str, int],
        fd: int,
        filename: str,
        extract: bool,
    ) -> ResolvedArtifact:
        """Fill the temp file, then sniff and rename it.

        The temp file is removed on every exit path other than success,
        including interrupts.
        """
        log_ctxt = {"type": resource.value, "primaryId": primary_id, "path": filename}
        try:
            try:
                with os.fdopen(fd, "wb") as local:
                    self.logger.log(
                        self.log_level,
                        f"Download file '{resource.value}': {primary_id}",
                        extra=log_ctxt,
                    )
                    self._stream_to(resource.remote_path(primary_id), local)

                self.logger.log(
                    self.log_level,
                    f"Download complete '{resource.value}': {primary_id}",
                    extra=log_ctxt,
                )

                mime_type = sniff_mime_type(filename)
                return resolve_extension(filename, mime_type, extract)
            except OSError as e:
                reason = _os_reason(e)
                raise LocalIOError(f"Unable to write to local file: {reason}", reason=reason) from e
        except BaseException:
            self._discard(filename)
            raise

    def _stream_to(self, remote_path: str, local: BinaryIO) -> None:
        """Write the remote body to an open local file in bounded chunks."""
        # Override the API's default "application/json"
        with self.remote.stream_get(remote_path, accept="*") as response:
            for chunk in response.iter_bytes(DOWNLOAD_CHUNK_SIZE):
                try:
                    local.write(chunk)
                except OSError as e:
                    reason = _os_reason(e)
                    raise LocalIOError(
                        f"Unable to write to local file: {reason}", reason=reason
                    ) from e

    @staticmethod
    def _build_options(
        options: Union[DownloadOptions, Mapping[str, Any], None],
        overrides: Mapping[str, Any],
    ) -> DownloadOptions:
        """Merge options and keyword overrides, both normalised to field names."""
        try:
            if not isinstance(options, DownloadOptions):
                options = DownloadOptions.model_validate(dict(options or {}))
            explicit = DownloadOptions.model_validate(dict(overrides))
            return DownloadOptions.model_validate({
                **options.model_dump(exclude_unset=True),
                **explicit.model_dump(exclude_unset=True),
            })
        except ValueError as e:
            raise InvalidInputError(f"Invalid download options: {e}") from e

    def _discard(self, filename: str) -> None:
        """Remove a partial download, keeping the original error."""
        try:
            Path(filename).unlink(missing_ok=True)
        except OSError as e:
            self.logger.warning(
                f"Unable to remove partial download: {e}",
                extra={"path": filename, "error": str(e)},
            )
