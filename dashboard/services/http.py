from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Mapping

import httpx

from dashboard.app.config import settings

from .errors import FetchFailedError, InvalidURLError, NetworkTimeoutError

logger = logging.getLogger(__name__)

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)
FEED_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.114 Safari/537.36"
)
BOT_USER_AGENT = "Mozilla/5.0 (compatible; DashboardBot/1.0)"

BROWSER_HEADERS = {
    "User-Agent": BROWSER_USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Referer": "https://www.google.com/",
    "DNT": "1",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "cross-site",
    "Cache-Control": "max-age=0",
}


@contextmanager
def _client_scope(client: httpx.Client | None) -> Iterator[httpx.Client]:
    if client is not None:
        yield client
        return
    with httpx.Client(timeout=settings.HTTP_TIMEOUT_SECONDS, follow_redirects=True) as owned:
        yield owned


def fetch(
    url: str,
    *,
    headers: Mapping[str, str] | None = None,
    params: Mapping[str, str | int] | None = None,
    client: httpx.Client | None = None,
) -> httpx.Response:
    """GET `url` and return the response, raising on transport errors and non-2xx."""
    try:
        with _client_scope(client) as http:
            response = http.get(url, headers=dict(headers or {}), params=params)
    except httpx.TimeoutException as error:
        raise NetworkTimeoutError(url, settings.HTTP_TIMEOUT_SECONDS) from error
    except (httpx.InvalidURL, httpx.UnsupportedProtocol) as error:
        raise InvalidURLError(f"Invalid URL: {url}") from error
    except httpx.HTTPError as error:
        raise FetchFailedError(f"Network error fetching {url}: {error}") from error

    if response.is_error:
        reason = response.reason_phrase or str(response.status_code)
        logger.warning("http.upstream_error url=%s status=%s", url, response.status_code)
        raise FetchFailedError(reason, status_code=response.status_code)
    return response


def fetch_text(url: str, **kwargs) -> str:
    return fetch(url, **kwargs).text
