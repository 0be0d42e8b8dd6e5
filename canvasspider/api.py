"""API client for the Canvas LMS REST API."""

from __future__ import annotations

import logging
import shutil
import threading
from collections.abc import Iterable
from pathlib import Path
from tempfile import SpooledTemporaryFile
from typing import IO, Any, Literal

import httpx

from .exceptions import (
    CanvasAPIError,
    CanvasAuthenticationError,
    CanvasConfigError,
    CanvasDownloadError,
    CanvasInvalidResponseError,
    CanvasNetworkError,
    CanvasNotFoundError,
    CanvasPermissionError,
    CanvasRateLimitError,
)
from .models import Course, FileRecord, FolderRecord
from .utils import DEFAULT_CHUNK_SIZE, DEFAULT_PER_PAGE, DEFAULT_SPOOL_SIZE

logger = logging.getLogger(__name__)

CourseStatus = Literal["completed", "ongoing", "all"]


class CanvasClient:
    """Client for interacting with the Canvas API."""

    def __init__(
        self,
        api_token: str | None,
        api_url: str,
        timeout: float = 30.0,
        per_page: int = DEFAULT_PER_PAGE,
    ):
        """Initialize Canvas API client.

        Args:
            api_token: Canvas access token
            api_url: Base URL of the Canvas instance
                (e.g. https://canvas.instructure.com)
            timeout: Request timeout in seconds (default: 30.0)
            per_page: Page size for list endpoints (default: 100)
        """
        if not api_token:
            raise CanvasConfigError(
                "API token not configured. Set 'authentication' in the YAML "
                "file or the CANVAS_API_TOKEN environment variable."
            )

        self.api_token = api_token
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.per_page = per_page
        self._client: httpx.Client | None = None
        self._client_lock = threading.Lock()

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client, shared by all worker threads."""
        with self._client_lock:
            if self._client is None or self._client.is_closed:
                self._client = httpx.Client(
                    headers={"Authorization": f"Bearer {self.api_token}"},
                    timeout=httpx.Timeout(self.timeout),
                    follow_redirects=True,
                )
            return self._client

    def close(self) -> None:
        """Close the client and release connections."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    def _url(self, endpoint: str) -> str:
        return f"{self.api_url}/api/v1/{endpoint.lstrip('/')}"

    def _raise_for_status(self, e: httpx.HTTPStatusError) -> None:
        """Translate an HTTP error into a canvasspider exception.

        Args:
            e: The HTTP error exception

        Raises:
            CanvasAPIError: Always, a subclass matching the status code
        """
        status_code = e.response.status_code

        if status_code == 401:
            raise CanvasAuthenticationError(
                "Invalid access token or unauthorized access"
            ) from e
        elif status_code == 403:
            raise CanvasPermissionError(
                "Access forbidden - check your permissions"
            ) from e
        elif status_code == 404:
            raise CanvasNotFoundError("Resource not found") from e
        elif status_code == 429:
            raise CanvasRateLimitError(
                "Rate limit exceeded - please try again later"
            ) from e

        error_msg = f"API request failed with status {status_code}"
        try:
            if e.response.content:
                error_data = e.response.json()
                if isinstance(error_data, dict):
                    # Canvas reports {"errors": [{"message": ...}]}
                    errors = error_data.get("errors")
                    msg = error_data.get("message")
                    if isinstance(errors, list) and errors:
                        first = errors[0]
                        msg = first.get("message") if isinstance(first, dict) else msg
                    if msg:
                        error_msg = f"{error_msg}: {msg}"
        except ValueError:
            # If we can't parse the error response, use the status-based message
            pass
        raise CanvasAPIError(error_msg) from e

    def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request and map transport and status errors.

        Args:
            method: HTTP method
            url: Absolute URL
            **kwargs: Additional arguments passed to httpx

        Returns:
            The successful response
        """
        client = self._get_client()
        try:
            response = client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            self._raise_for_status(e)
            raise
        except httpx.RequestError as e:
            raise CanvasNetworkError(f"Network error: {e}") from e
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        content_type = response.headers.get("Content-Type", "")
        if response.content and "application/json" not in content_type:
            # Canvas serves its HTML login page when the token is wrong
            if "text/html" in content_type:
                raise CanvasAuthenticationError(
                    "Invalid access token - server returned HTML instead of JSON"
                )
            raise CanvasInvalidResponseError(
                f"Unexpected response type: {content_type}"
            )
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise CanvasInvalidResponseError(
                "Invalid JSON response from server"
            ) from e

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        """Make an API request and return the decoded JSON body.

        Raises:
            CanvasAPIError: If the request fails
        """
        response = self._send(method, self._url(endpoint), **kwargs)
        return self._json(response)

    def _get_paginated(
        self, endpoint: str, params: dict[str, Any] | None = None
    ) -> list[Any]:
        """Collect every page of a list endpoint.

        Canvas paginates with ``Link: <...>; rel="next"`` headers; the next URL
        already carries all query parameters.
        """
        query: dict[str, Any] = {"per_page": self.per_page}
        if params:
            query.update(params)

        items: list[Any] = []
        url: str | None = self._url(endpoint)
        page = 0
        while url:
            response = self._send("GET", url, params=query if page == 0 else None)
            data = self._json(response)
            if not isinstance(data, list):
                raise CanvasInvalidResponseError(
                    f"Expected a list from {endpoint}, got {type(data).__name__}"
                )
            items.extend(data)
            page += 1
            url = response.links.get("next", {}).get("url")

        logger.debug(f"Fetched {len(items)} item(s) from {endpoint} in {page} page(s)")
        return items

    # =========================
    # Listings
    # =========================

    def list_courses(self, status: CourseStatus = "all") -> list[Course]:
        """List the user's active courses.

        Courses without progress information are always included.

        Args:
            status: ``completed``, ``ongoing`` or ``all``

        Returns:
            List of courses
        """
        data = self._get_paginated(
            "/courses",
            params={"enrollment_state": "active", "include[]": "course_progress"},
        )
        courses = [Course.from_dict(c) for c in data if "id" in c]

        if status == "all":
            return courses
        want_completed = status == "completed"
        return [
            c
            for c in courses
            if not c.has_progress or c.is_completed == want_completed
        ]

    def list_folders(self, course_id: int) -> list[FolderRecord]:
        """List every folder of a course, nested folders included."""
        data = self._get_paginated(f"/courses/{course_id}/folders")
        return [FolderRecord.from_dict(f) for f in data]

    def list_files(self, course_id: int) -> list[FileRecord]:
        """List every file of a course."""
        data = self._get_paginated(f"/courses/{course_id}/files")
        return [FileRecord.from_dict(f) for f in data]

    def get_logged_user(self) -> Any:
        """Get the profile of the token's owner."""
        return self._request("GET", "/users/self/profile")

    def get_quota(self) -> Any:
        """Get the user's personal file storage quota."""
        return self._request("GET", "/users/self/files/quota")

    # =========================
    # Transfers
    # =========================

    def fetch_stream(self, url: str) -> SpooledTemporaryFile:
        """Download a file URL into a spooled temporary buffer.

        The body is read completely and the connection is handed back to the
        pool before this returns. Small files stay in memory, larger ones
        roll over to a temporary file on disk. Pass the buffer to
        :meth:`store_path`, which writes and closes it.

        Raises:
            CanvasDownloadError: If the server refuses the download
            CanvasNetworkError: If the server cannot be reached
        """
        client = self._get_client()
        request = client.build_request("GET", url)
        try:
            response = client.send(request, stream=True)
        except httpx.RequestError as e:
            raise CanvasNetworkError(f"Network error during download: {e}") from e

        buffer = SpooledTemporaryFile(max_size=DEFAULT_SPOOL_SIZE)
        try:
            response.raise_for_status()
            for chunk in response.iter_bytes(chunk_size=DEFAULT_CHUNK_SIZE):
                buffer.write(chunk)
        except httpx.HTTPStatusError as e:
            buffer.close()
            raise CanvasDownloadError(f"Download failed: {e}") from e
        except httpx.RequestError as e:
            buffer.close()
            raise CanvasNetworkError(f"Network error during download: {e}") from e
        except OSError as e:
            buffer.close()
            raise CanvasDownloadError(f"Failed to buffer download: {e}") from e
        finally:
            response.close()

        buffer.seek(0)
        return buffer

    def store_path(
        self, path: str | Path, stream: IO[bytes] | Iterable[bytes]
    ) -> Path:
        """Write downloaded content to a local path.

        Args:
            path: Destination file path
            stream: A buffer from :meth:`fetch_stream`, or any iterable of
                byte chunks

        Returns:
            Path where the file was saved

        Raises:
            CanvasDownloadError: If writing fails
        """
        save_path = Path(path)
        try:
            save_path.parent.mkdir(parents=True, exist_ok=True)
            with open(save_path, "wb") as f:
                if hasattr(stream, "read"):
                    shutil.copyfileobj(stream, f, DEFAULT_CHUNK_SIZE)
                else:
                    for chunk in stream:
                        if chunk:
                            f.write(chunk)
        except OSError as e:
            raise CanvasDownloadError(f"Failed to write file: {e}") from e
        finally:
            if hasattr(stream, "close"):
                stream.close()
        return save_path
