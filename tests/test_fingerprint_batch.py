import asyncio
import json

from conftest import EMPTY_PAGE, JSONLD_PAGE
from miseflow.batch import BatchOutcome, load_catalog, publish_batch, read_urls, summarize
from miseflow.fingerprint import content_fingerprint
from miseflow.models import Discovery, ExtractionResult

GOOD = "https://blog.example.com/chili"
EMPTY = "https://blog.example.com/musings"
MISSING = "https://blog.example.com/gone"


def _result(**kwargs):
    values = dict(detected_type="web", title="Chili", author="Dana", ingredients=["1 lb beef"],
                  steps=["Brown the beef."], discovery=Discovery(recipe_links=[GOOD]))
    values.update(kwargs)
    return ExtractionResult(**values)


def test_fingerprint_ignores_case_and_spacing():
    a = content_fingerprint(_result())
    b = content_fingerprint(_result(title="  CHILI ", ingredients=["1  lb   Beef"]))
    assert a == b
    assert len(a) == 64


def test_fingerprint_changes_with_content():
    base = content_fingerprint(_result())
    assert content_fingerprint(_result(steps=["Brown the beef.", "Serve."])) != base
    assert content_fingerprint(_result(image_url="https://x/y.jpg")) != base
    # moving a line between sections is a change
    assert content_fingerprint(_result(ingredients=[], steps=["1 lb beef", "Brown the beef."])) != base


def test_read_urls(tmp_path):
    path = tmp_path / "urls.txt"
    path.write_text(f"# weekly list\n{GOOD}\n\n{GOOD}\n  {MISSING}  \n", encoding="utf-8")
    assert read_urls(path) == [GOOD, MISSING]


def _publish(client, outdir, settings, urls, **kwargs):
    async def scenario():
        async with client:
            return await publish_batch(urls, outdir, settings, client=client, **kwargs)
    return asyncio.run(scenario())


def test_publish_batch_lifecycle(tmp_path, client_for, settings):
    routes = {GOOD: JSONLD_PAGE, EMPTY: EMPTY_PAGE}
    urls = [GOOD, EMPTY, MISSING]

    first = _publish(client_for(routes), tmp_path, settings, urls)
    assert [(o.url, o.status) for o in first] == [(GOOD, "published"), (EMPTY, "skipped"), (MISSING, "failed")]
    assert first[0].slug == "weeknight-chili"
    assert "404" in first[2].reason
    stored = json.loads((tmp_path / "weeknight-chili.json").read_text(encoding="utf-8"))
    assert stored["recipe"]["meta"]["source_url"] == GOOD
    assert len(stored["fingerprint"]) == 64
    assert load_catalog(tmp_path) == {GOOD: {"slug": "weeknight-chili", "fingerprint": stored["fingerprint"]}}

    second = _publish(client_for(routes), tmp_path, settings, urls)
    assert [o.url for o in second] == [EMPTY, MISSING]

    third = _publish(client_for(routes), tmp_path, settings, [GOOD], republish=True)
    assert [(o.status, o.slug) for o in third] == [("unchanged", "weeknight-chili")]


def test_publish_batch_republish_changed_keeps_slug(tmp_path, client_for, settings):
    _publish(client_for({GOOD: JSONLD_PAGE}), tmp_path, settings, [GOOD])
    changed = JSONLD_PAGE.replace("Weeknight Chili", "Better Chili")
    [outcome] = _publish(client_for({GOOD: changed}), tmp_path, settings, [GOOD], republish=True)
    assert outcome.status == "published"
    assert outcome.slug == "weeknight-chili"
    stored = json.loads((tmp_path / "weeknight-chili.json").read_text(encoding="utf-8"))
    assert stored["recipe"]["meta"]["title"] == "Better Chili"
    assert not (tmp_path / "better-chili.json").exists()


def test_publish_batch_limit(tmp_path, client_for, settings):
    outcomes = _publish(client_for({}), tmp_path, settings, [MISSING, EMPTY, GOOD], limit=2)
    assert [o.url for o in outcomes] == [MISSING, EMPTY]


def test_load_catalog_ignores_unreadable_files(tmp_path):
    (tmp_path / "broken.json").write_text("{nope", encoding="utf-8")
    (tmp_path / "other.json").write_text(json.dumps({"unrelated": True}), encoding="utf-8")
    assert load_catalog(tmp_path) == {}
    assert load_catalog(tmp_path / "missing") == {}


def test_summarize():
    outcomes = [BatchOutcome(url="a", status="published"), BatchOutcome(url="b", status="failed"),
                BatchOutcome(url="c", status="published")]
    assert summarize(outcomes) == {"published": 2, "unchanged": 0, "skipped": 0, "failed": 1}


def test_publish_batch_malformed_url_fails_alone(tmp_path, client_for, settings):
    outcomes = _publish(client_for({GOOD: JSONLD_PAGE}), tmp_path, settings,
                        ["https://blog.example.com:abc/chili", GOOD])
    assert [o.status for o in outcomes] == ["failed", "published"]
