"""HTTP client for the Maxemail JSON API."""

import json
import logging
import platform
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

import httpx
from pydantic import BaseModel, Field

from maxemail.api.decoding import unwrap
from maxemail.core.config import settings

logger = logging.getLogger(__name__)

API_PATH = "/api/json/"


class ConnectionConfig(BaseModel):
    """Connection settings for one remote Maxemail endpoint."""

    host: str = Field(..., description="Remote host name")
    user: Optional[str] = Field(None, description="Basic auth username")
    password: Optional[str] = Field(None, description="Basic auth password")
    use_ssl: bool = Field(True, description="Use https instead of http")
    timeout: Optional[float] = Field(
        None, description="Request deadline in seconds, None disables it"
    )

    @classmethod
    def from_settings(cls) -> "ConnectionConfig":
        """Build a config from the environment-backed settings."""
        return cls(
            host=settings.MAXEMAIL_HOST,
            user=settings.MAXEMAIL_USER,
            password=settings.MAXEMAIL_PASS,
            use_ssl=settings.MAXEMAIL_USE_SSL,
            timeout=settings.REQUEST_TIMEOUT,
        )

    @property
    def base_url(self) -> str:
        scheme = "https" if self.use_ssl else "http"
        return f"{scheme}://{self.host}"


class RemoteClient:
    """Remote-call abstraction over a single ``httpx.Client``.

    Exposes the primitives the transfer helper composes: the upload
    initialise call, a multipart POST and a streamed GET. Transport and
    HTTP status errors are raised by httpx and never wrapped.
    """

    def __init__(
        self,
        config: Optional[ConnectionConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize the client.

        Args:
            config: Connection settings. If None, built from settings.
            transport: Optional httpx transport, used for testing.
        """
        self.config = config or ConnectionConfig.from_settings()
        auth = None
        if self.config.user is not None and self.config.password is not None:
            auth = httpx.BasicAuth(self.config.user, self.config.password)

        self._http = httpx.Client(
            base_url=self.config.base_url,
            headers=self.get_headers(),
            auth=auth,
            timeout=self.config.timeout,
            transport=transport,
        )

    def get_headers(self) -> Dict[str, str]:
        """Default request headers."""
        return {
            "Accept": "application/json",
            "User-Agent": (
                f"MxmJsonClient/{settings.SERVICE_VERSION} "
                f"Python/{platform.python_version()}"
            ),
        }

    def call(self, service: str, method: str, **params: Any) -> Any:
        """Call a JSON API method and return the decoded result.

        Args:
            service: API service name (e.g. ``file_upload``)
            method: Method name on the service
            **params: Method parameters; non-string values are JSON encoded

        Returns:
            Decoded JSON response

        Raises:
            httpx.HTTPError: If the request fails or returns an error status
            UnexpectedValueError: If the body is not valid JSON
        """
        data = {"method": method}
        for name, value in params.items():
            data[name] = value if isinstance(value, str) else json.dumps(value)

        logger.debug(
            f"Calling {service}.{method}",
            extra={"service": service, "method": method},
        )
        response = self._http.post(f"{API_PATH}{service}", data=data)
        response.raise_for_status()
        return unwrap(response.content)

    def initialise_upload(self) -> str:
        """Obtain a fresh file key for a subsequent multipart upload."""
        return self.call("file_upload", "initialise")["key"]

    def post_multipart(
        self, service: str, data: Dict[str, str], files: Dict[str, Any]
    ) -> httpx.Response:
        """Send a single multipart request to an API service."""
        response = self._http.post(f"{API_PATH}{service}", data=data, files=files)
        response.raise_for_status()
        return response

    @contextmanager
    def stream_get(self, path: str, accept: Optional[str] = None) -> Iterator[httpx.Response]:
        """Issue a streamed GET, optionally overriding the Accept header.

        The response body is not read; it is closed when the context exits.
        """
        headers = {"Accept": accept} if accept is not None else None
        with self._http.stream("GET", path, headers=headers) as response:
            response.raise_for_status()
            yield response

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "RemoteClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
