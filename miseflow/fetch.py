import asyncio
import logging
from typing import Any, Optional

import httpx

from .config import ExtractorSettings
from .errors import FetchError

logger = logging.getLogger(__name__)

HTML_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
JSON_ACCEPT = "application/json,*/*"


def make_client(settings: ExtractorSettings, transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        follow_redirects=True,
        timeout=settings.timeout,
        headers={"User-Agent": settings.user_agent},
        transport=transport,
    )


async def _get(client: httpx.AsyncClient, url: str, accept: str, settings: ExtractorSettings) -> httpx.Response:
    logger.info("Fetching %s", url)
    try:
        # wait_for cancels the in-flight request once the deadline passes
        resp = await asyncio.wait_for(client.get(url, headers={"Accept": accept}), timeout=settings.timeout)
    except asyncio.TimeoutError as e:
        raise FetchError(f"Timed out after {settings.timeout:g}s fetching {url}", url) from e
    except httpx.TimeoutException as e:
        raise FetchError(f"Timed out fetching {url}", url) from e
    except httpx.HTTPError as e:
        raise FetchError(f"Network error for {url}: {e}", url) from e
    except httpx.InvalidURL as e:
        raise FetchError(f"Invalid URL {url}: {e}", url) from e
    if resp.status_code >= 400:
        raise FetchError(f"Request failed ({resp.status_code}) for {url}", url)
    return resp


async def fetch_text(client: httpx.AsyncClient, url: str, settings: ExtractorSettings) -> str:
    resp = await _get(client, url, HTML_ACCEPT, settings)
    return resp.text


async def fetch_json(client: httpx.AsyncClient, url: str, settings: ExtractorSettings) -> Any:
    resp = await _get(client, url, JSON_ACCEPT, settings)
    try:
        return resp.json()
    except ValueError as e:
        raise FetchError(f"Invalid JSON from {url}", url) from e
