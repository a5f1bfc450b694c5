"""Entry point for turning a URL into raw recipe lines."""
import asyncio
import logging
from typing import Optional

import httpx

from .config import ExtractorSettings
from .fetch import make_client
from .models import ExtractionResult
from .rules import DEFAULT_RULES, ParserRules
from .video import extract_from_video
from .web import detect_source_type, extract_from_web, sanitize_url

logger = logging.getLogger(__name__)


async def extract_source(url: str, settings: Optional[ExtractorSettings] = None,
                         client: Optional[httpx.AsyncClient] = None,
                         rules: ParserRules = DEFAULT_RULES) -> ExtractionResult:
    """Classify ``url`` as a web page or a video and run the matching extractor.

    Unsupported URLs fail with UnsupportedURLError before anything is fetched.
    An owned client is created (and closed) when none is passed in.
    """
    settings = settings or ExtractorSettings.from_env()
    url = sanitize_url(url)
    if client is None:
        async with make_client(settings) as owned:
            return await extract_source(url, settings, owned, rules)

    source_type = detect_source_type(url)
    logger.info("Extracting %s source %s", source_type, url)
    if source_type == "youtube":
        return await extract_from_video(url, client, settings, rules)
    return await extract_from_web(url, client, settings)


def extract_source_sync(url: str, settings: Optional[ExtractorSettings] = None) -> ExtractionResult:
    return asyncio.run(extract_source(url, settings))
