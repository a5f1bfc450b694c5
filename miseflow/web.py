import logging
from urllib.parse import urlparse

import httpx

from .config import ExtractorSettings
from .errors import UnsupportedURLError
from .fetch import fetch_text
from .html_extract import parse_recipe_html
from .models import Discovery, ExtractionResult
from .text import safe_hostname

logger = logging.getLogger(__name__)

VIDEO_HOSTS = ("youtube.com", "youtu.be")


def sanitize_url(value: str) -> str:
    """Return a normalized http(s) URL or raise UnsupportedURLError."""
    if not isinstance(value, str) or not value.strip():
        raise UnsupportedURLError("Provide a valid URL.")
    try:
        parsed = urlparse(value.strip())
        parsed.port  # raises ValueError on a malformed port
    except ValueError as e:
        raise UnsupportedURLError(f"Not a URL: {value!r}") from e
    if parsed.scheme.lower() not in ("http", "https") or not parsed.netloc:
        raise UnsupportedURLError(f"Only http(s) URLs are supported: {value!r}")
    return parsed.geturl()


def detect_source_type(url: str) -> str:
    try:
        hostname = (urlparse(url).hostname or "").lower()
    except ValueError:
        return "web"
    if any(host in hostname for host in VIDEO_HOSTS):
        return "youtube"
    return "web"


async def extract_from_web(url: str, client: httpx.AsyncClient, settings: ExtractorSettings) -> ExtractionResult:
    """Fetch an article page and read the recipe out of it.

    Raises FetchError if the page cannot be fetched.
    """
    html = await fetch_text(client, url, settings)
    page = parse_recipe_html(html, url, limit=settings.line_limit)
    logger.debug("Parsed %s via %s", url, page.method)

    if page.author:
        credit = f"Adapted from {page.author}. Keep attribution when republishing."
    else:
        credit = f"Adapted from {safe_hostname(url)}. Keep attribution to the original creator."

    return ExtractionResult(
        detected_type="web",
        title=page.title,
        author=page.author,
        image_url=page.image_url,
        ingredients=page.ingredients,
        steps=page.steps,
        credit_notes=credit,
        discovery=Discovery(
            method=page.method,
            notes=page.notes,
            recipe_links=[url],
            transcript_available=False,
        ),
    )
