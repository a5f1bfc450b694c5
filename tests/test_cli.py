import json
import logging
import sys

import pytest

from miseflow import cli
from miseflow.batch import BatchOutcome
from miseflow.errors import FetchError
from miseflow.models import Discovery, ExtractionResult, RecipeInput
from miseflow.pipeline import normalize_recipe


def _write_inputs(tmp_path):
    ing = tmp_path / "soup.txt"
    ing.write_text("2 cups chopped carrots, peeled\n1 onion, diced\n", encoding="utf-8")
    steps = tmp_path / "steps.txt"
    steps.write_text("1. Chop the onion.\n2. Simmer the carrots.\n", encoding="utf-8")
    return ing, steps


def test_main_text_flow(monkeypatch, tmp_path, capsys):
    ing, steps = _write_inputs(tmp_path)
    outdir = tmp_path / "out"
    monkeypatch.setattr(sys, "argv", ["prog", "--ingredients", str(ing), "--steps", str(steps),
                                      "--outdir", str(outdir), "--author", "Rosa", "--servings", "6"])
    cli.main()
    data = json.loads((outdir / "recipe.json").read_text(encoding="utf-8"))
    assert data["meta"]["title"] == "soup"
    assert data["meta"]["author"] == "Rosa"
    assert data["meta"]["servings"] == 6
    assert [i["name"] for i in data["ingredients"]] == ["carrots", "onion"]
    assert (outdir / "recipe.md").read_text(encoding="utf-8").startswith("# soup")
    assert "Saved recipe.json and recipe.md" in capsys.readouterr().out


def test_main_missing_ingredients_file(monkeypatch, tmp_path, capsys):
    monkeypatch.setattr(sys, "argv", ["prog", "--ingredients", str(tmp_path / "nope.txt")])
    with pytest.raises(SystemExit) as exc:
        cli.main()
    assert exc.value.code == 2
    assert "Ingredients file not found" in capsys.readouterr().out


def test_main_requires_one_source(monkeypatch):
    monkeypatch.setattr(sys, "argv", ["prog", "--url", "https://a.example.com", "--batch", "urls.txt"])
    with pytest.raises(SystemExit) as exc:
        cli.main()
    assert exc.value.code == 2


def test_main_url_extraction_error(monkeypatch, tmp_path, capsys):
    async def fake_extract(url, settings=None, client=None):
        raise FetchError("Request failed (404) for https://blog.example.com/x", url)

    monkeypatch.setattr(cli, "extract_source", fake_extract)
    monkeypatch.setattr(sys, "argv", ["prog", "--url", "https://blog.example.com/x", "--outdir", str(tmp_path)])
    with pytest.raises(SystemExit) as exc:
        cli.main()
    assert exc.value.code == 2
    assert "Request failed (404)" in capsys.readouterr().out
    assert not (tmp_path / "recipe.json").exists()


def test_main_url_incomplete_extraction_warns(monkeypatch, tmp_path, capsys):
    captured = {}

    async def fake_extract(url, settings=None, client=None):
        captured["timeout"] = settings.timeout
        return ExtractionResult(detected_type="web", title="Half Recipe", ingredients=["1 egg"],
                                discovery=Discovery(method="html-heuristics", recipe_links=[url]))

    monkeypatch.setattr(cli, "extract_source", fake_extract)
    monkeypatch.setattr(sys, "argv", ["prog", "--url", "https://blog.example.com/x", "--outdir", str(tmp_path),
                                      "--title", "Renamed", "--timeout", "3"])
    cli.main()
    out = capsys.readouterr().out
    assert "Extraction is incomplete" in out
    assert captured["timeout"] == 3
    data = json.loads((tmp_path / "recipe.json").read_text(encoding="utf-8"))
    assert data["meta"]["title"] == "Renamed"
    assert data["meta"]["source_url"] == "https://blog.example.com/x"
    assert data["citation"]["extraction_method"] == "html-heuristics"


def test_main_batch_flow(monkeypatch, tmp_path, capsys):
    url_file = tmp_path / "urls.txt"
    url_file.write_text("https://blog.example.com/a\nhttps://blog.example.com/b\n", encoding="utf-8")
    captured = {}

    async def fake_publish(urls, outdir, settings=None, servings=4, limit=50, republish=False, **kwargs):
        captured.update(urls=urls, outdir=outdir, limit=limit, republish=republish)
        return [BatchOutcome(url=urls[0], status="published", slug="a"),
                BatchOutcome(url=urls[1], status="failed", reason="Request failed (500)")]

    monkeypatch.setattr(cli, "publish_batch", fake_publish)
    monkeypatch.setattr(sys, "argv", ["prog", "--batch", str(url_file), "--outdir", str(tmp_path / "site"),
                                      "--republish"])
    cli.main()
    out = capsys.readouterr().out
    assert captured["urls"] == ["https://blog.example.com/a", "https://blog.example.com/b"]
    assert captured["republish"] is True
    assert captured["limit"] == 50
    assert "Published: 1" in out
    assert "Failed: 1" in out


def test_main_batch_nothing_new(monkeypatch, tmp_path, capsys):
    url_file = tmp_path / "urls.txt"
    url_file.write_text("", encoding="utf-8")

    async def fake_publish(urls, outdir, settings=None, **kwargs):
        return []

    monkeypatch.setattr(cli, "publish_batch", fake_publish)
    monkeypatch.setattr(sys, "argv", ["prog", "--batch", str(url_file)])
    cli.main()
    assert "No new URLs to publish." in capsys.readouterr().out


def test_main_batch_limit_flag(monkeypatch, tmp_path):
    url_file = tmp_path / "urls.txt"
    url_file.write_text("https://blog.example.com/a\n", encoding="utf-8")
    captured = {}

    async def fake_publish(urls, outdir, settings=None, limit=50, **kwargs):
        captured["limit"] = limit
        return []

    monkeypatch.setattr(cli, "publish_batch", fake_publish)
    monkeypatch.setattr(sys, "argv", ["prog", "--batch", str(url_file), "--limit", "7"])
    cli.main()
    assert captured["limit"] == 7


def test_save_outputs_and_pretty_print(tmp_path):
    recipe = normalize_recipe(RecipeInput(title="Cake", ingredients_raw="1 cup sugar\n2 eggs",
                                          steps_raw="Mix the sugar and eggs."))
    outdir = tmp_path / "output"
    cli.save_outputs(recipe, outdir)
    assert (outdir / "recipe.json").exists()
    assert (outdir / "recipe.md").exists()
    cli.pretty_print(recipe)


@pytest.mark.parametrize(
    "verbose, debug, level",
    [(False, False, logging.WARNING), (True, False, logging.INFO), (False, True, logging.DEBUG)],
)
def test_configure_logging_levels(verbose, debug, level):
    cli.configure_logging(verbose=verbose, debug=debug)
    assert logging.getLogger().level == level
