"""Configuration loading for canvasspider.

The configuration lives in a YAML file (``main.yaml`` by default). Keys may be
written in camelCase or snake_case. Only ``authentication`` has no default; it
can also be supplied through the ``CANVAS_API_TOKEN`` environment variable.
"""

import logging
import math
import os
import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from .exceptions import CanvasConfigError
from .utils import format_size, normalize_extension, parse_size

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "main.yaml"
DEFAULT_API_URL = "https://canvas.instructure.com"
TOKEN_ENV_VAR = "CANVAS_API_TOKEN"
URL_ENV_VAR = "CANVAS_API_URL"

UPDATE_METHODS = ("newFileOnly", "overwrite")
VERBOSITY_LEVELS = ("mute", "verbose", "vverbose")

# Keys of older configuration files that no longer have any effect
IGNORED_KEYS = ("snapshot_dir", "allow_video", "allow_link")


@dataclass
class Config:
    """Finished configuration consumed by the sync pipeline."""

    authentication: Optional[str] = None
    """Canvas API access token"""

    api_url: str = DEFAULT_API_URL
    """Base URL of the Canvas instance"""

    base_dir: str = "."
    """Root directory of downloaded files"""

    update: str = "newFileOnly"
    """``newFileOnly`` downloads missing files, ``overwrite`` downloads all"""

    verbosity: str = "verbose"

    max_file_size: float = math.inf
    """Largest single file to download, in bytes"""

    max_total_size: float = math.inf
    """Upper bound on the bytes downloaded in one run"""

    course_white_list: list[Union[int, str]] = field(default_factory=list)
    course_black_list: list[Union[int, str]] = field(default_factory=list)

    file_white_list: list[str] = field(default_factory=list)
    file_black_list: list[str] = field(default_factory=list)
    file_extension_white_list: list[str] = field(default_factory=list)
    file_extension_black_list: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.update not in UPDATE_METHODS:
            raise CanvasConfigError(
                f"Invalid update method '{self.update}', "
                f"expected one of: {', '.join(UPDATE_METHODS)}"
            )
        if self.verbosity not in VERBOSITY_LEVELS:
            raise CanvasConfigError(
                f"Invalid verbosity '{self.verbosity}', "
                f"expected one of: {', '.join(VERBOSITY_LEVELS)}"
            )
        self.file_extension_white_list = [
            normalize_extension(e) for e in self.file_extension_white_list
        ]
        self.file_extension_black_list = [
            normalize_extension(e) for e in self.file_extension_black_list
        ]

    @property
    def is_authenticated(self) -> bool:
        return bool(self.authentication)

    def to_yaml_dict(self) -> dict[str, Any]:
        """Convert to a camelCase mapping suitable for writing a YAML file."""
        data: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name in ("max_file_size", "max_total_size"):
                value = "Infinity" if math.isinf(value) else _size_to_str(value)
            data[_to_camel(f.name)] = value
        return data


def _to_snake(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def _to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _size_to_str(value: float) -> str:
    return format_size(value).replace(" ", "").lower()


def _normalize_keys(raw: dict[str, Any]) -> dict[str, Any]:
    """Map camelCase keys of the YAML file to Config field names."""
    known = {f.name for f in fields(Config)}
    # spelling used by templates generated by older versions
    aliases = {"course_whilte_list": "course_white_list"}

    result: dict[str, Any] = {}
    for key, value in raw.items():
        name = _to_snake(str(key))
        name = aliases.get(name, name)
        if name in IGNORED_KEYS:
            logger.debug(f"Ignoring unused configuration key: {key}")
            continue
        if name not in known:
            logger.warning(f"Ignoring unknown configuration key: {key}")
            continue
        result[name] = value
    return result


def build_config(raw: Optional[dict[str, Any]] = None, **overrides: Any) -> Config:
    """Build a Config from a parsed mapping plus keyword overrides.

    Args:
        raw: Mapping parsed from YAML (camelCase or snake_case keys)
        **overrides: Field values that take precedence over ``raw``

    Returns:
        Config instance (authentication is not required here)

    Raises:
        CanvasConfigError: If a value is invalid
    """
    values = _normalize_keys(raw or {})
    values.update({k: v for k, v in overrides.items() if v is not None})

    for size_field in ("max_file_size", "max_total_size"):
        try:
            values[size_field] = parse_size(values.get(size_field))
        except ValueError as e:
            raise CanvasConfigError(f"Invalid {size_field}: {e}") from e

    for list_field in (
        "course_white_list",
        "course_black_list",
        "file_white_list",
        "file_black_list",
        "file_extension_white_list",
        "file_extension_black_list",
    ):
        value = values.get(list_field)
        if value is None:
            values[list_field] = []
        elif not isinstance(value, list):
            raise CanvasConfigError(f"{list_field} must be a list, got {value!r}")

    if values.get("base_dir") is None:
        values.pop("base_dir", None)

    return Config(**values)


def load_config(path: Union[str, Path] = DEFAULT_CONFIG_FILE) -> Config:
    """Load and validate the YAML configuration file.

    Args:
        path: Path to the YAML file

    Returns:
        Validated Config

    Raises:
        CanvasConfigError: If the file is missing, malformed or has no
            authentication
    """
    config_path = Path(path)
    try:
        with open(config_path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except FileNotFoundError as e:
        raise CanvasConfigError(f"YAML file {config_path} doesn't exist") from e
    except yaml.YAMLError as e:
        raise CanvasConfigError(f"Failed to parse {config_path}: {e}") from e

    if not isinstance(raw, dict):
        raise CanvasConfigError(f"{config_path} must contain a mapping")

    # Environment variables only fill in values the file leaves out
    config = build_config(raw)
    if not config.authentication:
        config.authentication = os.environ.get(TOKEN_ENV_VAR)
    if "apiUrl" not in raw and "api_url" not in raw:
        config.api_url = os.environ.get(URL_ENV_VAR, config.api_url)

    if not config.is_authenticated:
        raise CanvasConfigError(
            "Load file error, no authentication information. "
            f"Set 'authentication' in {config_path} or the "
            f"{TOKEN_ENV_VAR} environment variable."
        )

    logger.debug(f"Loaded configuration from {config_path}")
    return config


def render_template(**overrides: Any) -> str:
    """Render a YAML configuration template.

    Args:
        **overrides: Config field values to put in the template

    Returns:
        YAML text
    """
    config = build_config(None, **overrides)
    data = config.to_yaml_dict()
    if not data.get("authentication"):
        data["authentication"] = "<your canvas access token>"
    return yaml.safe_dump(data, sort_keys=False, default_flow_style=False)
