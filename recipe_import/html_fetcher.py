"""Fetch remote recipe pages."""

import logging
from dataclasses import dataclass
from typing import Optional

import requests

from recipe_import import config

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """Raised when a page cannot be fetched (transport error or non-2xx status)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class FetchResult:
    html: str
    url: str  # final URL after redirects
    status_code: int


def fetch_html(url: str, timeout: Optional[float] = None) -> FetchResult:
    """Fetch *url* and return its markup.

    Raises:
        FetchError: On network failure or a non-2xx response
    """
    headers = {
        'User-Agent': config.FETCH_USER_AGENT,
        'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
    }
    try:
        response = requests.get(
            url,
            headers=headers,
            timeout=timeout or config.FETCH_TIMEOUT_SECONDS,
            allow_redirects=True,
        )
    except requests.RequestException as e:
        logger.warning("Request failed", extra={"url": url, "error": str(e)})
        raise FetchError(f"Failed to fetch {url}: {e}")

    if not 200 <= response.status_code < 300:
        logger.warning("Non-success status", extra={"url": url, "status_code": response.status_code})
        raise FetchError(
            f"Failed to fetch {url}: HTTP {response.status_code} {response.reason or ''}".rstrip(),
            status_code=response.status_code,
        )

    return FetchResult(html=response.text, url=response.url or url, status_code=response.status_code)
