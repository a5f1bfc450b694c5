import json
import logging
from collections import Counter
from pathlib import Path
from typing import Dict, List, Literal, Optional

import httpx
from pydantic import BaseModel

from .config import ExtractorSettings
from .errors import ExtractionError
from .fetch import make_client
from .fingerprint import content_fingerprint
from .models import NormalizedRecipe, RecipeInput
from .pipeline import normalize_recipe
from .sources import extract_source
from .text import dedupe_strings

logger = logging.getLogger(__name__)

Status = Literal["published", "unchanged", "skipped", "failed"]


class BatchOutcome(BaseModel):
    url: str
    status: Status
    reason: str = ""
    slug: str = ""


def read_urls(path: Path) -> List[str]:
    lines = Path(path).read_text(encoding="utf-8").splitlines()
    return dedupe_strings(line for line in lines if line.strip() and not line.strip().startswith("#"))


def _url_key(url: str) -> str:
    return url.strip().lower()


def load_catalog(outdir: Path) -> Dict[str, dict]:
    """Map source URL -> {"slug", "fingerprint"} for recipes already written."""
    catalog: Dict[str, dict] = {}
    outdir = Path(outdir)
    if not outdir.exists():
        return catalog
    for path in sorted(outdir.glob("*.json")):
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("Ignoring unreadable catalog entry %s", path)
            continue
        source_url = ((data.get("recipe") or {}).get("meta") or {}).get("source_url") or ""
        if source_url:
            catalog[_url_key(source_url)] = {"slug": path.stem, "fingerprint": data.get("fingerprint", "")}
    return catalog


def save_recipe(recipe: NormalizedRecipe, fingerprint: str, outdir: Path) -> Path:
    outdir = Path(outdir)
    outdir.mkdir(parents=True, exist_ok=True)
    path = outdir / f"{recipe.meta.slug}.json"
    payload = {"fingerprint": fingerprint, "recipe": recipe.model_dump(mode="json")}
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    return path


async def publish_batch(urls: List[str], outdir: Path, settings: Optional[ExtractorSettings] = None,
                        servings: float = 4, limit: int = 50, republish: bool = False,
                        client: Optional[httpx.AsyncClient] = None) -> List[BatchOutcome]:
    """Extract and store each URL in turn.

    URLs already in the catalog are left alone unless ``republish`` is set;
    a re-extraction whose fingerprint matches the stored one is not rewritten.
    """
    settings = settings or ExtractorSettings.from_env()
    catalog = load_catalog(outdir)
    queue = []
    for url in dedupe_strings(urls):
        if not republish and _url_key(url) in catalog:
            logger.info("Skipping already published %s", url)
            continue
        queue.append(url)
        if len(queue) >= limit:
            break

    if client is None:
        async with make_client(settings) as owned:
            return await _publish(queue, outdir, settings, servings, catalog, owned)
    return await _publish(queue, outdir, settings, servings, catalog, client)


async def _publish(queue: List[str], outdir: Path, settings: ExtractorSettings, servings: float,
                   catalog: Dict[str, dict], client: httpx.AsyncClient) -> List[BatchOutcome]:
    outcomes = []
    for url in queue:
        try:
            result = await extract_source(url, settings, client)
        except ExtractionError as e:
            logger.warning("Extraction failed for %s: %s", url, e)
            outcomes.append(BatchOutcome(url=url, status="failed", reason=str(e)))
            continue

        fingerprint = content_fingerprint(result)
        stored = catalog.get(_url_key(url))
        if stored and stored["fingerprint"] == fingerprint:
            outcomes.append(BatchOutcome(url=url, status="unchanged", slug=stored["slug"]))
            continue
        if not result.is_complete:
            outcomes.append(BatchOutcome(url=url, status="skipped",
                                         reason="No full ingredient/step extraction."))
            continue

        recipe = normalize_recipe(RecipeInput.from_extraction(result, url, servings), result.discovery)
        if stored:
            recipe.meta.slug = stored["slug"]
        save_recipe(recipe, fingerprint, outdir)
        outcomes.append(BatchOutcome(url=url, status="published", slug=recipe.meta.slug))
    return outcomes


def summarize(outcomes: List[BatchOutcome]) -> Dict[str, int]:
    counts = Counter(outcome.status for outcome in outcomes)
    return {status: counts.get(status, 0) for status in ("published", "unchanged", "skipped", "failed")}
