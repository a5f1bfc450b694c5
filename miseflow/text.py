import re
from typing import Iterable, List, Optional
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

BULLET_PATTERN = r"^[\-\*•]\s*"
URL_RE = re.compile(r"https?://[^\s<>\"')\]]+", re.I)


def decode_html(value: Optional[str]) -> str:
    """Decode entities and drop any markup, e.g. ``"Mac &amp; <b>cheese</b>"``."""
    if not value:
        return ""
    if "<" not in value and "&" not in value:
        return value.strip()
    return BeautifulSoup(value, "html.parser").get_text().strip()


def sanitize_line(value: str) -> str:
    s = re.sub(r"\s+", " ", decode_html(value))
    s = re.sub(BULLET_PATTERN, "", s)
    s = re.sub(r"^\d+\)\s*", "", s)
    s = re.sub(r"^\d+\.\s+", "", s)
    s = re.sub(r"^\d+-\s+", "", s)
    return s.strip()


def clean_lines(lines: Iterable, limit: int = 60) -> List[str]:
    seen = set()
    cleaned: List[str] = []
    for raw in lines or []:
        if not isinstance(raw, str):
            continue
        line = sanitize_line(raw)
        if not line:
            continue
        key = line.lower()
        if key in seen:
            continue
        seen.add(key)
        cleaned.append(line)
        if len(cleaned) >= limit:
            break
    return cleaned


def dedupe_strings(values: Iterable[Optional[str]]) -> List[str]:
    """Exact-match dedupe keeping first occurrence; blanks are dropped."""
    seen = set()
    out = []
    for value in values or []:
        cleaned = (value or "").strip()
        if not cleaned or cleaned in seen:
            continue
        seen.add(cleaned)
        out.append(cleaned)
    return out


def extract_urls(text: str) -> List[str]:
    if not text:
        return []
    return [re.sub(r"[.,!?]$", "", m) for m in URL_RE.findall(text)]


def absolutize_url(value: str, base: str) -> str:
    if not value:
        return value
    try:
        return urljoin(base, value)
    except ValueError:
        return value


def safe_hostname(url: str) -> str:
    try:
        return urlparse(url).hostname or "source"
    except ValueError:
        return "source"
