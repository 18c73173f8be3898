"""
Input validation for the extraction entry points.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Union
from urllib.parse import urlparse

from pydantic import ValidationError

from readercore.config import ReadabilityOptions, ResolvedOptions
from readercore.exceptions import InvalidOptions

MAX_URL_LENGTH = 2048
BLOCKED_SCHEMES = ("javascript:", "data:")
ALLOWED_SCHEMES = frozenset({"http", "https"})

OptionsInput = Union[ReadabilityOptions, Mapping[str, Any], None]


def validate_base_url(base_url: Optional[str]) -> Optional[str]:
    """Return the trimmed base URL, or raise ``InvalidOptions``."""
    if base_url is None:
        return None
    if not isinstance(base_url, str):
        raise InvalidOptions("Base URL must be a string")

    url = base_url.strip()
    if url.lower().startswith(BLOCKED_SCHEMES):
        raise InvalidOptions("Invalid base URL scheme")
    if len(url) > MAX_URL_LENGTH:
        raise InvalidOptions(f"Base URL exceeds maximum length of {MAX_URL_LENGTH}")

    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise InvalidOptions(f"Malformed base URL: {e}") from e
    if parsed.scheme.lower() not in ALLOWED_SCHEMES or not parsed.netloc:
        raise InvalidOptions("Base URL must be HTTP(S)")
    return url


def resolve_options(options: OptionsInput) -> ResolvedOptions:
    """Turn caller options into a frozen snapshot with defaults applied."""
    if options is None:
        return ReadabilityOptions().resolve()
    if isinstance(options, ReadabilityOptions):
        return options.resolve()
    if isinstance(options, Mapping):
        try:
            return ReadabilityOptions.model_validate(dict(options)).resolve()
        except ValidationError as e:
            raise InvalidOptions(str(e)) from e
    raise InvalidOptions(f"Unsupported options type: {type(options).__name__}")
