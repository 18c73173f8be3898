"""
HTTP retrieval of documents for the command-line interface.

The extraction engine never touches the network; this module is only used
when the CLI is handed a URL instead of a file.
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import urlparse

import httpx
import structlog

from readercore.config import FetchConfig

logger = structlog.get_logger(__name__)


class FetchError(Exception):
    """Raised when a document cannot be downloaded."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason


def _looks_like_web_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and "." in (parsed.hostname or "")


def try_parse_url(value: str) -> Optional[str]:
    """Return ``value`` as an http(s) URL, or None when it does not look like one.

    Bare hosts such as ``example.com/post`` are retried with an ``https://`` prefix.
    """
    value = value.strip()
    if not value:
        return None
    try:
        if _looks_like_web_url(value):
            return value
        if "://" not in value:
            candidate = f"https://{value}"
            if _looks_like_web_url(candidate):
                return candidate
    except ValueError:
        return None
    return None


def build_client(config: FetchConfig, transport: Optional[httpx.BaseTransport] = None) -> httpx.Client:
    return httpx.Client(
        headers={"Accept": config.accept, "User-Agent": config.user_agent},
        timeout=config.timeout,
        follow_redirects=config.follow_redirects,
        transport=transport,
    )


def fetch_html(url: str, config: Optional[FetchConfig] = None, transport: Optional[httpx.BaseTransport] = None) -> str:
    """Download ``url`` and return the decoded body."""
    config = config or FetchConfig()
    logger.info("Fetching document", url=url)
    with build_client(config, transport) as client:
        try:
            response = client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FetchError(url, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise FetchError(url, str(e) or type(e).__name__) from e
    logger.debug("Fetched document", url=str(response.url), status=response.status_code, bytes=len(response.content))
    return response.text
