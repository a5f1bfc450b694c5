import asyncio
import json
import logging
import re
from typing import Any, List, Optional, Sequence
from urllib.parse import parse_qs, quote, urlparse

import httpx
from bs4 import BeautifulSoup

from .chain import Strategy, run_chain
from .config import ExtractorSettings
from .errors import ExtractionError, UnsupportedURLError
from .fetch import fetch_json, fetch_text
from .html_extract import read_meta
from .models import Discovery, ExtractionResult, TranscriptItem
from .parsing import STEP_MARKER_RE
from .rules import DEFAULT_RULES, ParserRules
from .text import clean_lines, dedupe_strings, extract_urls
from .web import detect_source_type, extract_from_web

logger = logging.getLogger(__name__)

SHORT_DESCRIPTION_RE = re.compile(r'"shortDescription":"((?:\\.|[^"\\])*)"')
LEADING_QTY_RE = re.compile(r"^(\d+(\s+\d+/\d+)?|\d+/\d+|\d+\.\d+)\s+([a-zA-Z]+)\b")

LINKED = "youtube-linked-recipe"
LINKED_TRANSCRIPT = "youtube-linked-recipe+transcript-heuristics"
TRANSCRIPT = "youtube-transcript-heuristics"
DESCRIPTION = "youtube-description-heuristics"

# -----------------------------
# YouTube ids / metadata
# -----------------------------

def get_youtube_video_id(url: Optional[str]) -> Optional[str]:
    """Extract the YouTube video ID from a watch, short-link, embed or shorts URL."""
    if not url:
        return None
    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    host = (parsed.hostname or "").lower()
    segments = [s for s in parsed.path.split("/") if s]
    if "youtu.be" in host:
        return segments[0] if segments else None
    v = parse_qs(parsed.query).get("v")
    if v and v[0]:
        return v[0]
    for marker in ("embed", "shorts"):
        if marker in segments:
            i = segments.index(marker)
            if i + 1 < len(segments):
                return segments[i + 1]
    return None


def watch_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


async def fetch_oembed(client: httpx.AsyncClient, url: str, settings: ExtractorSettings) -> dict:
    endpoint = f"https://www.youtube.com/oembed?url={quote(url, safe='')}&format=json"
    data = await fetch_json(client, endpoint, settings)
    return data if isinstance(data, dict) else {}


def parse_video_description(html: str) -> str:
    """Longer of the embedded shortDescription and the description meta tag."""
    if not html:
        return ""
    short = ""
    m = SHORT_DESCRIPTION_RE.search(html)
    if m:
        try:
            short = json.loads(f'"{m.group(1)}"')
        except ValueError:
            short = m.group(1).replace("\\n", "\n").replace("\\u0026", "&").replace('\\"', '"')
    meta = read_meta(BeautifulSoup(html, "html.parser"), "name", "description")
    return max([short, meta], key=len)


def parse_title_from_html(html: str) -> str:
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    title = read_meta(soup, "property", "og:title")
    if not title and soup.title:
        title = soup.title.get_text(strip=True)
    return title

# -----------------------------
# Transcript (caption tracks via yt-dlp)
# -----------------------------

def probe_video_info(url: str, settings: ExtractorSettings) -> dict:
    from yt_dlp import YoutubeDL
    ydl_opts = {
        "skip_download": True,
        "writesubtitles": True,
        "writeautomaticsub": True,
        "subtitleslangs": list(settings.caption_languages),
        "noplaylist": True,
        "quiet": True,
        "no_warnings": True,
        "socket_timeout": settings.timeout,
    }
    with YoutubeDL(ydl_opts) as ydl:
        info = ydl.extract_info(url, download=False)
    return info or {}


def pick_caption_url(info: dict, languages: Sequence[str]) -> Optional[str]:
    """Manual subtitles beat automatic captions; json3 tracks only."""
    families = {lang.split("-")[0] for lang in languages}
    for pool_key in ("subtitles", "automatic_captions"):
        pool = info.get(pool_key) or {}
        ordered = [lang for lang in languages if lang in pool]
        ordered += [lang for lang in pool if lang.split("-")[0] in families and lang not in ordered]
        for lang in ordered:
            for track in pool.get(lang) or []:
                if track.get("ext") == "json3" and track.get("url"):
                    return track["url"]
    return None


def parse_json3_captions(data: Any) -> List[TranscriptItem]:
    items = []
    events = data.get("events") if isinstance(data, dict) else None
    for event in events or []:
        text = "".join(seg.get("utf8", "") for seg in event.get("segs") or [])
        text = re.sub(r"\s+", " ", text).strip()
        if not text:
            continue
        start = event.get("tStartMs")
        duration = event.get("dDurationMs")
        items.append(TranscriptItem(
            text=text,
            start=start / 1000 if start is not None else None,
            duration=duration / 1000 if duration is not None else None,
        ))
    return items


async def fetch_transcript(client: httpx.AsyncClient, video_id: str, settings: ExtractorSettings) -> List[TranscriptItem]:
    """Empty list when the video exposes no captions; raises on fetch failure."""
    try:
        info = await asyncio.wait_for(
            asyncio.to_thread(probe_video_info, watch_url(video_id), settings),
            timeout=settings.timeout,
        )
    except asyncio.TimeoutError as e:
        raise ExtractionError(f"Timed out probing captions for {video_id}") from e
    track = pick_caption_url(info, settings.caption_languages)
    if not track:
        return []
    return parse_json3_captions(await fetch_json(client, track, settings))

# -----------------------------
# Description / transcript heuristics
# -----------------------------

def is_likely_recipe_link(url: str, rules: ParserRules = DEFAULT_RULES) -> bool:
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    if detect_source_type(url) == "youtube":
        return False
    value = f"{parsed.hostname or ''}{parsed.path}".lower()
    return any(keyword in value for keyword in rules.recipe_link_keywords)


def _description_lines(text: str) -> List[str]:
    return [line.strip() for line in (text or "").splitlines() if line.strip()]


def extract_ingredient_like_lines(text: str) -> List[str]:
    lines = _description_lines(text)
    start = next((i for i, line in enumerate(lines) if re.search(r"\bingredients?\b", line, re.I)), None)
    if start is not None:
        section = []
        for line in lines[start + 1:]:
            if re.match(r"^\s*(instructions?|method|directions?)\b", line, re.I):
                break
            if len(line) < 3:
                continue
            section.append(re.sub(r"^[-*]\s*", "", line))
        if section:
            return section
    return [line for line in lines if LEADING_QTY_RE.match(re.sub(r"^[-*]\s*", "", line))]


def extract_instruction_like_lines(text: str) -> List[str]:
    lines = _description_lines(text)
    start = next((i for i, line in enumerate(lines)
                  if re.search(r"\b(instructions?|directions?|method)\b", line, re.I)), None)
    if start is not None:
        section = []
        for line in lines[start + 1:]:
            if re.match(r"^\s*(notes?|nutrition|serving)\b", line, re.I):
                break
            if len(line) < 8:
                continue
            section.append(STEP_MARKER_RE.sub("", line))
        if section:
            return section
    return [STEP_MARKER_RE.sub("", line) for line in lines if re.match(r"^\d+[\.\)\-\s]", line)]


def _transcript_text(items: List[TranscriptItem]) -> str:
    return " ".join(item.text for item in items if item.text)


def transcript_to_steps(items: List[TranscriptItem], rules: ParserRules = DEFAULT_RULES, limit: int = 18) -> List[str]:
    sentences = [s.strip() for s in re.split(r"(?<=[.!?])\s+", _transcript_text(items)) if s.strip()]
    return dedupe_strings(s for s in sentences if rules.cooking_verb_re.search(s))[:limit]


def transcript_to_ingredients(items: List[TranscriptItem], rules: ParserRules = DEFAULT_RULES,
                              limit: int = 30) -> List[str]:
    units = "|".join(re.escape(u) for u in sorted(rules.transcript_units, key=len, reverse=True))
    pattern = re.compile(
        rf"(\d+(?:\s+\d+/\d+)?|\d+/\d+|\d+\.\d+)\s+(?:{units})\s+([a-zA-Z][a-zA-Z\s-]{{2,40}})", re.I)
    return dedupe_strings(m.group(0) for m in pattern.finditer(_transcript_text(items)))[:limit]


def transcript_ingredient_hints(items: List[TranscriptItem], rules: ParserRules = DEFAULT_RULES,
                                limit: int = 20) -> List[str]:
    text = _transcript_text(items).lower()
    return [f"{hint} (quantity not specified)" for hint in rules.ingredient_hints if hint in text][:limit]

# -----------------------------
# Orchestration
# -----------------------------

def _settled(result: Any, what: str, notes: List[str], fallback: Any) -> Any:
    if isinstance(result, BaseException):
        logger.warning("%s failed: %s", what, result)
        notes.append(f"{what} could not be fetched.")
        return fallback
    return result


async def _find_linked_recipe(candidates: List[str], client: httpx.AsyncClient, settings: ExtractorSettings,
                              notes: List[str]) -> Optional[ExtractionResult]:
    for link in candidates:
        try:
            candidate = await extract_from_web(link, client, settings)
        except ExtractionError as e:
            logger.warning("Linked URL %s failed: %s", link, e)
            notes.append(f"Linked URL could not be parsed: {link}")
            continue
        if candidate.ingredients or candidate.steps:
            logger.info("Recovered recipe from linked URL %s", link)
            notes.append(f"Extracted recipe details from linked URL: {link}")
            return candidate
        notes.append(f"Linked URL had no recipe details: {link}")
    return None


async def extract_from_video(url: str, client: httpx.AsyncClient, settings: ExtractorSettings,
                             rules: ParserRules = DEFAULT_RULES) -> ExtractionResult:
    video_id = get_youtube_video_id(url)
    if not video_id:
        raise UnsupportedURLError("Could not find a YouTube video id in that URL.")
    watch = watch_url(video_id)
    notes: List[str] = []

    oembed_result, page_result, transcript_result = await asyncio.gather(
        fetch_oembed(client, watch, settings),
        fetch_text(client, watch, settings),
        fetch_transcript(client, video_id, settings),
        return_exceptions=True,
    )
    oembed = _settled(oembed_result, "Video metadata", notes, {})
    page_html = _settled(page_result, "Video page", notes, "")
    transcript = _settled(transcript_result, "Transcript", notes, [])

    description = parse_video_description(page_html)
    candidates = [link for link in dedupe_strings(extract_urls(description))
                  if is_likely_recipe_link(link, rules)][:settings.max_recipe_links]
    linked = await _find_linked_recipe(candidates, client, settings, notes)

    from_transcript_ingredients = [
        Strategy("transcript quantities", lambda: clean_lines(
            transcript_to_ingredients(transcript, rules, settings.max_transcript_ingredients),
            settings.line_limit)),
        Strategy("transcript keyword hints", lambda: transcript_ingredient_hints(
            transcript, rules, settings.max_ingredient_hints)),
    ]
    from_transcript_steps = [
        Strategy("transcript sentences", lambda: clean_lines(
            transcript_to_steps(transcript, rules, settings.max_transcript_steps), settings.line_limit)),
    ]

    if linked:
        notes.extend(linked.discovery.notes)
        ingredients, steps, method = list(linked.ingredients), list(linked.steps), LINKED
        # a recipe card may carry only one side; the transcript fills the other
        if not ingredients:
            ingredients = run_chain("ingredients", from_transcript_ingredients, notes, empty=[]).value
        if not steps:
            steps = run_chain("steps", from_transcript_steps, notes, empty=[]).value
        if (ingredients and not linked.ingredients) or (steps and not linked.steps):
            method = LINKED_TRANSCRIPT
    else:
        found = run_chain("ingredients", [
            Strategy("video description", lambda: clean_lines(
                extract_ingredient_like_lines(description), settings.line_limit)),
        ] + from_transcript_ingredients, notes, empty=[])
        found_steps = run_chain("steps", [
            Strategy("video description", lambda: clean_lines(
                extract_instruction_like_lines(description), settings.line_limit)),
        ] + from_transcript_steps, notes, empty=[])
        ingredients, steps = found.value, found_steps.value
        labels = (found.label or "", found_steps.label or "")
        method = TRANSCRIPT if any(label.startswith("transcript") for label in labels) else DESCRIPTION

    if not candidates:
        notes.append("No recipe links detected in video description.")
    elif not linked:
        notes.append("Recipe links were found, but no parsable recipe card was detected.")
    if not transcript:
        notes.append("Transcript unavailable for this video.")

    title = (linked.title if linked else "") or oembed.get("title") or parse_title_from_html(page_html) or "YouTube Recipe"
    author = (linked.author if linked else "") or oembed.get("author_name") or ""
    image_url = (linked.image_url if linked else "") or oembed.get("thumbnail_url") or ""
    if author:
        credit = f"Adapted from YouTube creator {author}. Keep original creator credit."
    else:
        credit = "Adapted from a YouTube source. Keep original creator credit."

    return ExtractionResult(
        detected_type="youtube",
        title=title,
        author=author,
        image_url=image_url,
        ingredients=ingredients,
        steps=steps,
        credit_notes=credit,
        discovery=Discovery(
            method=method,
            notes=notes,
            recipe_links=dedupe_strings([watch] + candidates),
            transcript_available=bool(transcript),
        ),
    )
