"""Page fetcher and HTML parser.

Fetches a single URL with browser-like headers and hands the markup to
BeautifulSoup. Does NOT crawl subpages and does NOT render JavaScript.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError

import requests
from bs4 import BeautifulSoup, UnicodeDammit

from errors import (
    FetchConnectionError,
    FetchError,
    FetchTimeoutError,
    ForbiddenError,
    NotFoundError,
    ParseError,
)
from models import FetchedPage
from settings import FETCH_MAX_ATTEMPTS, FETCH_TIMEOUT_SECONDS, MAX_PAGE_BYTES, USER_AGENTS

logger = logging.getLogger(__name__)

_REQUEST_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

# Statuses that usually mean "bot detected"; worth another user agent.
_RETRY_STATUSES = {403, 429}

_CHUNK_BYTES = 16 * 1024


def _user_agents(preferred: str | None) -> list[str]:
    agents = [preferred] if preferred else []
    agents.extend(ua for ua in USER_AGENTS if ua != preferred)
    return agents[: max(1, FETCH_MAX_ATTEMPTS)]


def _timed_out(url: str, timeout: float) -> FetchTimeoutError:
    return FetchTimeoutError(f"Connection to {url} timed out after {timeout:g}s.")


def _read_body(response: requests.Response, url: str, timeout: float, deadline: float) -> bytes:
    """Read the streamed body, giving up at `deadline` or past MAX_PAGE_BYTES."""
    body = bytearray()
    for chunk in response.iter_content(chunk_size=_CHUNK_BYTES):
        if time.monotonic() > deadline:
            raise _timed_out(url, timeout)
        body.extend(chunk)
        if len(body) > MAX_PAGE_BYTES:
            raise FetchError(f"The page at {url} is larger than {MAX_PAGE_BYTES} bytes.")
    return bytes(body)


def _download(url: str, headers: dict, timeout: float, deadline: float):
    remaining = max(deadline - time.monotonic(), 0.001)
    response = requests.get(
        url, timeout=remaining, headers=headers, allow_redirects=True, stream=True
    )
    try:
        if response.status_code >= 400:
            return response, b""
        return response, _read_body(response, url, timeout, deadline)
    finally:
        response.close()


def _fetch_once(url: str, headers: dict, timeout: float, deadline: float):
    """One request, bounded by `deadline` even when the body trickles in."""
    remaining = deadline - time.monotonic()
    if remaining <= 0:
        raise _timed_out(url, timeout)
    executor = ThreadPoolExecutor(max_workers=1)
    try:
        future = executor.submit(_download, url, headers, timeout, deadline)
        return future.result(timeout=remaining)
    except FuturesTimeoutError as exc:
        raise _timed_out(url, timeout) from exc
    except requests.Timeout as exc:
        raise _timed_out(url, timeout) from exc
    except requests.ConnectionError as exc:
        raise FetchConnectionError(
            f"Could not connect to {url}. The site may not exist or is unreachable."
        ) from exc
    except requests.RequestException as exc:
        raise FetchError(f"Failed to reach {url}: {exc}") from exc
    finally:
        # The worker stops on its own at the next chunk past the deadline.
        executor.shutdown(wait=False)


def _decode(response: requests.Response, body: bytes) -> str:
    content_type = response.headers.get("Content-Type", "").lower()
    declared = [response.encoding] if response.encoding and "charset=" in content_type else []
    return UnicodeDammit(body, declared, is_html=True).unicode_markup or ""


def fetch_page(
    url: str,
    timeout: float = FETCH_TIMEOUT_SECONDS,
    user_agent: str | None = None,
) -> FetchedPage:
    """
    Fetch `url` and return the raw page.

    `timeout` bounds the whole fetch, retries and body download included.
    Retries with a different user agent only when the site answers 403/429,
    at most FETCH_MAX_ATTEMPTS times. Every failure raises a FetchError subtype.
    """
    started = time.monotonic()
    deadline = started + timeout
    response = body = None
    for attempt, agent in enumerate(_user_agents(user_agent), start=1):
        headers = dict(_REQUEST_HEADERS, **{"User-Agent": agent})
        response, body = _fetch_once(url, headers, timeout, deadline)
        if response.status_code in _RETRY_STATUSES:
            logger.warning(
                "Fetch blocked url=%s status=%s attempt=%d",
                url,
                response.status_code,
                attempt,
            )
            continue
        break
    duration_ms = int((time.monotonic() - started) * 1000)

    status = response.status_code
    if status in (404, 410):
        raise NotFoundError(f"Page not found ({status}). The URL {url} does not exist.")
    if status == 403:
        raise ForbiddenError(f"Access denied (403). The site {url} is blocking automated analysis.")
    if status >= 400:
        raise FetchError(f"The server at {url} returned HTTP {status}.")

    html = _decode(response, body)
    if not html or not html.strip():
        raise FetchError(f"The server at {url} returned an empty page.")

    logger.info("Fetched url=%s status=%s duration_ms=%d", response.url or url, status, duration_ms)
    return {
        "url": response.url or url,
        "html": html,
        "status_code": status,
        "headers": {str(k).lower(): str(v) for k, v in response.headers.items()},
        "fetch_duration_ms": duration_ms,
    }


def parse_html(html: str) -> BeautifulSoup:
    """Parse markup into a queryable document or raise ParseError."""
    if not html or not html.strip():
        raise ParseError("Empty document; nothing to analyze.")
    try:
        soup = BeautifulSoup(html, "html.parser")
    except Exception as exc:
        raise ParseError(f"Could not parse HTML: {exc}") from exc
    if soup.find() is None:
        raise ParseError("Document contains no HTML elements.")
    return soup
