import hashlib
import re
from typing import Iterable

from .models import ExtractionResult


def _norm(value: str) -> str:
    return re.sub(r"\s+", " ", (value or "").strip().lower())


def _parts(result: ExtractionResult) -> Iterable[str]:
    yield _norm(result.title)
    yield _norm(result.author)
    yield _norm(result.image_url)
    for group in (result.ingredients, result.steps, result.discovery.recipe_links):
        yield "\x1e".join(_norm(line) for line in group)


def content_fingerprint(result: ExtractionResult) -> str:
    """SHA-256 over the normalized text of an extraction.

    Only used to tell whether a re-extraction changed anything.
    """
    digest = hashlib.sha256()
    for part in _parts(result):
        digest.update(part.encode("utf-8"))
        digest.update(b"\x1f")
    return digest.hexdigest()
