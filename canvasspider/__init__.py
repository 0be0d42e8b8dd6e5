"""canvasspider - download Canvas LMS course files into a local directory."""

from .api import CanvasClient
from .config import Config, load_config
from .exceptions import (
    CanvasAPIError,
    CanvasAuthenticationError,
    CanvasConfigError,
    CanvasDownloadError,
    CanvasError,
    CanvasInvalidResponseError,
    CanvasNetworkError,
    CanvasNotFoundError,
    CanvasPermissionError,
    CanvasRateLimitError,
    TreeAlreadyMaterializedError,
)
from .utils import format_size, parse_size

__version__ = "0.1.0"

__all__ = [
    "CanvasClient",
    "Config",
    "load_config",
    "CanvasError",
    "CanvasAPIError",
    "CanvasAuthenticationError",
    "CanvasConfigError",
    "CanvasDownloadError",
    "CanvasInvalidResponseError",
    "CanvasNetworkError",
    "CanvasNotFoundError",
    "CanvasPermissionError",
    "CanvasRateLimitError",
    "TreeAlreadyMaterializedError",
    "format_size",
    "parse_size",
]
