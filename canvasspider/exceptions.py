"""Exceptions raised by canvasspider."""


class CanvasError(Exception):
    """Base class for all canvasspider errors."""


class CanvasConfigError(CanvasError):
    """Raised when the configuration is missing or invalid."""


class TreeAlreadyMaterializedError(CanvasError):
    """Raised when paths of an already materialized tree are rewritten again."""


class CanvasAPIError(CanvasError):
    """Raised when a request to the Canvas API fails."""


class CanvasAuthenticationError(CanvasAPIError):
    """Raised on 401 responses or when the token is rejected."""


class CanvasPermissionError(CanvasAPIError):
    """Raised on 403 responses."""


class CanvasNotFoundError(CanvasAPIError):
    """Raised on 404 responses."""


class CanvasRateLimitError(CanvasAPIError):
    """Raised on 429 responses."""


class CanvasNetworkError(CanvasAPIError):
    """Raised when the server cannot be reached."""


class CanvasInvalidResponseError(CanvasAPIError):
    """Raised when the server returns something that is not the expected JSON."""


class CanvasDownloadError(CanvasAPIError):
    """Raised when fetching or storing a file fails."""
