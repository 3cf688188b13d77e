"""Remote blob storage for the schedule document.

This module defines the interface the sync coordinator uses to read and write
one named JSON document, and an implementation backed by the GitHub contents
API. Writes use optimistic concurrency: every write carries the version token
(the blob ``sha``) returned by the previous read or write.
"""

import base64
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union
from urllib.parse import quote

import httpx


logger = logging.getLogger(__name__)


class RemoteError(Exception):
    """The remote store answered with a non-success status or was unreachable."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class AuthenticationError(RemoteError):
    """The access token was rejected."""
    pass


class ConflictError(RemoteError):
    """The write was based on a stale version token.

    Recover by reloading the document and reapplying the change; retrying the
    same write will fail again.
    """
    pass


@dataclass(frozen=True)
class Blob:
    """Raw document bytes plus the version token they were read at."""
    content: bytes
    version: str


class _NotFound:
    def __repr__(self) -> str:
        return "NOT_FOUND"

    def __bool__(self) -> bool:
        return False


NOT_FOUND = _NotFound()

FetchResult = Union[Blob, _NotFound]


class BlobStore(ABC):
    """Read and write one named document with a version token."""

    @abstractmethod
    async def fetch_blob(self, path: str) -> FetchResult:
        """Fetch the document at ``path``.

        Returns:
            The blob, or ``NOT_FOUND`` if the document does not exist yet

        Raises:
            RemoteError: On any other non-success answer
        """
        pass

    @abstractmethod
    async def put_blob(self, path: str, content: bytes, expected_version: Optional[str], message: str) -> str:
        """Write the document at ``path``.

        Args:
            path: Document path inside the store
            content: Raw document bytes
            expected_version: Last-known version token, or None to create
            message: Change description recorded by the store

        Returns:
            The new version token

        Raises:
            ConflictError: If ``expected_version`` is stale
            RemoteError: On any other non-success answer
        """
        pass

    async def aclose(self):
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()


def encode_content(content: bytes) -> str:
    return base64.b64encode(content).decode("ascii")


def decode_content(encoded: str) -> bytes:
    """Decode the API's base64 payload; embedded line breaks are discarded."""
    return base64.b64decode("".join(encoded.split()))


class GitHubContentsStore(BlobStore):
    """Blob store backed by ``/repos/{repo}/contents/{path}``."""

    DEFAULT_API_URL = "https://api.github.com"

    def __init__(
        self,
        token: str,
        repo: str,
        api_url: str = DEFAULT_API_URL,
        branch: Optional[str] = None,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the GitHub contents client.

        Args:
            token: Pre-issued access token, sent as a bearer credential
            repo: Repository in ``owner/name`` form
            api_url: API root, overridable for GitHub Enterprise
            branch: Optional branch; the default branch is used otherwise
            timeout: Transport timeout in seconds
            client: Pre-built client, mainly for tests
        """
        self.repo = repo
        self.api_url = api_url.rstrip("/")
        self.branch = branch
        self.headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github.v3+json",
        }
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout)
        self.logger = logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")

    async def aclose(self):
        if self._owns_client:
            await self.client.aclose()

    def _url(self, path: str) -> str:
        return f"{self.api_url}/repos/{self.repo}/contents/{quote(path.lstrip('/'))}"

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = await self.client.request(method, self._url(path), headers=self.headers, **kwargs)
        except httpx.TimeoutException as e:
            raise RemoteError(f"{method} {path} timed out: {e}") from e
        except httpx.RequestError as e:
            raise RemoteError(f"{method} {path} failed: {e}") from e
        self.logger.info("%s %s -> %s", method, path, response.status_code)
        return response

    def _raise_for_status(self, method: str, path: str, response: httpx.Response):
        status = response.status_code
        if status < 400:
            return
        body = response.text
        message = f"{method} {path} failed with HTTP {status}: {body}"
        if status in (401, 403):
            raise AuthenticationError(message, status, body)
        if status in (409, 412):
            raise ConflictError(message, status, body)
        if status == 422 and "sha" in body:
            # Missing or mismatched sha for an existing file.
            raise ConflictError(message, status, body)
        raise RemoteError(message, status, body)

    async def fetch_blob(self, path: str) -> FetchResult:
        params = {"ref": self.branch} if self.branch else None
        response = await self._request("GET", path, params=params)
        if response.status_code == 404:
            self.logger.info("Document %s does not exist yet", path)
            return NOT_FOUND
        self._raise_for_status("GET", path, response)

        try:
            data: Dict[str, Any] = response.json()
            blob = Blob(content=decode_content(data["content"]), version=data["sha"])
        except (KeyError, TypeError, ValueError) as e:
            raise RemoteError(f"GET {path} returned an unexpected payload: {e}", response.status_code, response.text) from e
        self.logger.debug("Fetched %s at version %s (%d bytes)", path, blob.version[:7], len(blob.content))
        return blob

    async def put_blob(self, path: str, content: bytes, expected_version: Optional[str], message: str) -> str:
        body: Dict[str, Any] = {"message": message, "content": encode_content(content)}
        if expected_version:
            body["sha"] = expected_version
        if self.branch:
            body["branch"] = self.branch

        response = await self._request("PUT", path, json=body)
        self._raise_for_status("PUT", path, response)

        try:
            version = response.json()["content"]["sha"]
        except (KeyError, TypeError, ValueError) as e:
            raise RemoteError(f"PUT {path} returned an unexpected payload: {e}", response.status_code, response.text) from e
        self.logger.debug("Wrote %s, version %s -> %s", path, (expected_version or "new")[:7], version[:7])
        return version
