import pytest

from miseflow.chain import Strategy, run_chain
from miseflow.text import (
    absolutize_url,
    clean_lines,
    decode_html,
    dedupe_strings,
    extract_urls,
    safe_hostname,
    sanitize_line,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("• 1 cup rice", "1 cup rice"),
        ("- salt", "salt"),
        ("2) Stir well", "Stir well"),
        ("3. Bake", "Bake"),
        ("4- Rest", "Rest"),
        ("Mac &amp; <b>cheese</b>", "Mac & cheese"),
        ("1.5 cups milk", "1.5 cups milk"),
    ],
)
def test_sanitize_line(value, expected):
    assert sanitize_line(value) == expected


def test_clean_lines_dedupes_and_caps():
    lines = ["Salt", "salt", "", None, 3, "Pepper", "Oil"]
    assert clean_lines(lines) == ["Salt", "Pepper", "Oil"]
    assert clean_lines(lines, limit=2) == ["Salt", "Pepper"]
    assert clean_lines(None) == []


def test_decode_html():
    assert decode_html(None) == ""
    assert decode_html("  plain  ") == "plain"
    assert decode_html("Tom &amp; Jerry&#39;s") == "Tom & Jerry's"


def test_dedupe_strings_is_case_sensitive():
    assert dedupe_strings(["a", " a ", "A", None, ""]) == ["a", "A"]


def test_url_helpers():
    text = "Recipe: https://food.example.com/soup. Also (https://x.example.com/a)!"
    assert extract_urls(text) == ["https://food.example.com/soup", "https://x.example.com/a"]
    assert extract_urls("") == []
    assert absolutize_url("/img/a.jpg", "https://blog.example.com/post") == "https://blog.example.com/img/a.jpg"
    assert absolutize_url("", "https://blog.example.com") == ""
    assert safe_hostname("https://Blog.Example.com/x") == "blog.example.com"
    assert safe_hostname("nothing") == "source"


def test_run_chain_first_populated_wins():
    calls = []

    def strategy(label, value):
        def run():
            calls.append(label)
            return value
        return Strategy(label, run)

    notes = []
    outcome = run_chain("ingredients", [strategy("a", []), strategy("b", ["x"]), strategy("c", ["y"])], notes, [])
    assert outcome.value == ["x"]
    assert outcome.label == "b"
    assert outcome.attempted == ["a", "b"]
    assert calls == ["a", "b"]
    assert notes == ["Ingredients: a found nothing.", "Ingredients taken from b."]


def test_run_chain_nothing_found():
    notes = []
    outcome = run_chain("steps", [Strategy("only", lambda: "")], notes, empty=[])
    assert outcome == ([], None, ["only"])
    assert notes == ["Steps: only found nothing."]
