"""API client for the GitHub repository contents endpoint."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import httpx

from .config import config
from .exceptions import PayloadShapeError, TransportError
from .models import RemoteEntry, RepoCoordinate

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192


class GitHubContentsClient:
    """Client for listing and fetching files through the GitHub contents API.

    Implements the ``ContentProvider`` protocol used by the tree
    synchronizer. Directory references are listing URLs and content
    references are download URLs, exactly as the API returns them.
    """

    def __init__(
        self,
        api_url: str | None = None,
        user_agent: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the contents client.

        Args:
            api_url: Optional API base URL (uses config if not provided)
            user_agent: Optional User-Agent header (uses config if not provided)
            timeout: Request timeout in seconds (uses config if not provided)
            transport: Optional httpx transport, mainly for tests
        """
        self.api_url = (api_url or config.api_url).rstrip("/")
        self.user_agent = user_agent or config.user_agent
        self.timeout = timeout if timeout is not None else config.timeout
        self._transport = transport
        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                headers={
                    "User-Agent": self.user_agent,
                    "Accept": "application/vnd.github+json",
                },
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """Close the client and release connections."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    def __enter__(self) -> GitHubContentsClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def contents_url(self, coordinate: RepoCoordinate, path: str = "") -> str:
        """Build the listing URL of a path inside a repository.

        Args:
            coordinate: Repository to read from
            path: Path inside the repository (empty for the root)

        Returns:
            Contents API URL
        """
        url = f"{self.api_url}/repos/{coordinate.owner}/{coordinate.repo}/contents"
        path = path.strip("/")
        return f"{url}/{path}" if path else url

    def _raise_for_status(self, response: httpx.Response, url: str) -> None:
        """Translate a non-2xx response into a TransportError."""
        status_code = response.status_code
        if 200 <= status_code < 300:
            return

        if status_code == 403:
            message = f"Access forbidden or rate limited (403) for {url}"
        elif status_code == 404:
            message = f"Not found (404): {url}"
        else:
            message = f"Request failed with status {status_code} for {url}"
        raise TransportError(message, status_code=status_code, url=url)

    def list_directory(self, ref: str) -> list[RemoteEntry]:
        """List a remote directory.

        Args:
            ref: Contents API URL of the directory

        Returns:
            Entries in the order returned by the API

        Raises:
            TransportError: If the request fails or returns a non-2xx status
            PayloadShapeError: If the body is not a JSON array of entries
        """
        client = self._get_client()
        logger.debug(f"Listing {ref}")

        try:
            response = client.get(ref)
        except httpx.RequestError as e:
            raise TransportError(f"Network error for {ref}: {e}", url=ref) from e

        self._raise_for_status(response, ref)

        try:
            payload = response.json()
        except ValueError as e:
            raise PayloadShapeError(
                f"Failed to parse JSON from {ref}: {e}",
                status_code=response.status_code,
                url=ref,
            ) from e

        if not isinstance(payload, list):
            raise PayloadShapeError(
                f"Expected array from {ref}, got {type(payload).__name__}",
                status_code=response.status_code,
                url=ref,
            )

        return [RemoteEntry.from_dict(item) for item in payload]

    @contextmanager
    def open_content(self, ref: str) -> Iterator[Iterator[bytes]]:
        """Open a streaming download of a file.

        Args:
            ref: Download URL of the file

        Yields:
            Iterator over the body in chunks; the body is never fully buffered

        Raises:
            TransportError: If the request fails or returns a non-2xx status
        """
        client = self._get_client()
        logger.debug(f"Fetching {ref}")

        try:
            with client.stream("GET", ref) as response:
                self._raise_for_status(response, ref)
                yield self._iter_chunks(response, ref)
        except httpx.RequestError as e:
            raise TransportError(f"Network error downloading {ref}: {e}", url=ref) from e

    def _iter_chunks(self, response: httpx.Response, ref: str) -> Iterator[bytes]:
        try:
            for chunk in response.iter_bytes(chunk_size=CHUNK_SIZE):
                if chunk:
                    yield chunk
        except httpx.RequestError as e:
            raise TransportError(f"Network error downloading {ref}: {e}", url=ref) from e
