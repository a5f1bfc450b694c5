import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

from bs4 import BeautifulSoup

from .chain import Strategy, run_chain
from .parsing import clean_step_line
from .text import absolutize_url, clean_lines, decode_html

logger = logging.getLogger(__name__)

HEADINGS = ["h1", "h2", "h3", "h4", "h5", "h6"]
INGREDIENT_HEADINGS = ("ingredients",)
STEP_HEADINGS = ("instructions", "directions", "method", "preparation")

MARKUP = "recipe schema (JSON-LD)"
HEADING = "heading section"
MICRODATA = "microdata attributes"

# -----------------------------
# Structured recipe markup (JSON-LD)
# -----------------------------

@dataclass
class MarkupRecipe:
    title: str = ""
    author: str = ""
    image_url: str = ""
    ingredients: List[str] = field(default_factory=list)
    steps: List[str] = field(default_factory=list)


def safe_json_parse(raw: str) -> Optional[Any]:
    try:
        return json.loads(raw)
    except RecursionError:
        return None
    except ValueError:
        pass
    sanitized = re.sub(r"[\x00-\x1f]+", " ", raw.strip().lstrip("\ufeff"))
    try:
        return json.loads(sanitized)
    except (ValueError, RecursionError):
        return None


def _types(value) -> List[str]:
    if not value:
        return []
    if isinstance(value, list):
        return [str(v).lower() for v in value]
    return [str(value).lower()]


def collect_recipe_nodes(node, output: List[dict]) -> List[dict]:
    """Depth-first walk collecting every object whose @type mentions recipe."""
    if isinstance(node, list):
        for item in node:
            collect_recipe_nodes(item, output)
        return output
    if not isinstance(node, dict):
        return output
    if any("recipe" in t for t in _types(node.get("@type"))):
        output.append(node)
    if node.get("@graph"):
        collect_recipe_nodes(node["@graph"], output)
    for key, value in node.items():
        if key != "@graph" and isinstance(value, (dict, list)):
            collect_recipe_nodes(value, output)
    return output


def read_text(value) -> str:
    if not value:
        return ""
    if isinstance(value, str):
        return decode_html(value.strip())
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, dict) and isinstance(value.get("text"), str):
        return decode_html(value["text"].strip())
    return ""


def read_author(value) -> str:
    if not value:
        return ""
    if isinstance(value, str):
        return decode_html(value.strip())
    if isinstance(value, list):
        for item in value:
            name = read_author(item)
            if name:
                return name
        return ""
    if isinstance(value, dict) and isinstance(value.get("name"), str):
        return decode_html(value["name"].strip())
    return ""


def read_image(value) -> str:
    if not value:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        return read_image(value[0])
    if isinstance(value, dict) and isinstance(value.get("url"), str):
        return value["url"]
    return ""


def markup_ingredients(value) -> List[str]:
    if isinstance(value, list):
        return [read_text(item) for item in value]
    if isinstance(value, str):
        return value.splitlines()
    return []


def markup_instructions(value) -> List[str]:
    """Flatten strings, HowToStep objects and nested HowToSection lists."""
    if not value:
        return []
    if isinstance(value, str):
        return value.splitlines()
    if isinstance(value, dict):
        value = [value]
    if not isinstance(value, list):
        return []
    lines = []
    for item in value:
        if isinstance(item, str):
            lines.append(item)
        elif isinstance(item, dict):
            if item.get("text"):
                lines.append(read_text(item["text"]))
            if isinstance(item.get("itemListElement"), list):
                lines.extend(markup_instructions(item["itemListElement"]))
    return lines


def extract_markup_recipe(soup: BeautifulSoup) -> MarkupRecipe:
    nodes: List[dict] = []
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        raw = script.string or script.get_text()
        if not raw or not raw.strip():
            continue
        parsed = safe_json_parse(raw)
        if parsed is None:
            logger.debug("Skipping undecodable JSON-LD block")
            continue
        found: List[dict] = []
        try:
            collect_recipe_nodes(parsed, found)
        except RecursionError:
            logger.debug("Skipping JSON-LD block nested too deeply")
            continue
        nodes.extend(found)
    if not nodes:
        return MarkupRecipe()
    recipe = nodes[0]
    return MarkupRecipe(
        title=read_text(recipe.get("name")),
        author=read_author(recipe.get("author")),
        image_url=read_image(recipe.get("image")),
        ingredients=markup_ingredients(recipe.get("recipeIngredient")),
        steps=markup_instructions(recipe.get("recipeInstructions")),
    )

# -----------------------------
# Page heuristics
# -----------------------------

def read_meta(soup: BeautifulSoup, attr: str, key: str) -> str:
    tag = soup.find("meta", attrs={attr: key})
    if tag and tag.get("content"):
        return tag["content"].strip()
    return ""


def _first_text(soup: BeautifulSoup, selector: str) -> str:
    node = soup.select_one(selector)
    if node is None:
        return ""
    return (node.get("content") or node.get_text(" ", strip=True) or "").strip()


def _first_attr(soup: BeautifulSoup, selector: str, *attrs: str) -> str:
    node = soup.select_one(selector)
    if node is None:
        return ""
    for attr in attrs:
        if node.get(attr):
            return node[attr].strip()
    return ""


def extract_section_by_heading(soup: BeautifulSoup, keywords: Sequence[str], limit: int = 80) -> List[str]:
    """Lines following the first heading that names the section, up to the next heading."""
    for heading in soup.find_all(HEADINGS):
        heading_text = heading.get_text(" ", strip=True).lower()
        if not any(k in heading_text for k in keywords):
            continue
        lines = []
        for sibling in heading.find_next_siblings():
            if sibling.name in HEADINGS:
                break
            if sibling.name in ("ul", "ol"):
                lines.extend(li.get_text(" ", strip=True) for li in sibling.find_all("li"))
            else:
                lines.extend(line.strip() for line in sibling.get_text("\n").splitlines())
        cleaned = clean_lines(lines, limit)
        if cleaned:
            return cleaned
    return []


def _microdata_lines(soup: BeautifulSoup, *props: str) -> List[str]:
    lines = []
    for prop in props:
        lines.extend(node.get_text(" ", strip=True) for node in soup.select(f"[itemprop='{prop}']"))
    return lines


def _microdata_title(soup: BeautifulSoup) -> str:
    """The name property of the Recipe item, not of an author or ingredient nested in it."""
    scope = soup.select_one("[itemscope][itemtype*='Recipe']")
    if scope is None:
        return _first_text(soup, "[itemprop='name']")
    for node in scope.select("[itemprop='name']"):
        owner = node.find_parent(attrs={"itemscope": True})
        if owner is scope:
            return (node.get("content") or node.get_text(" ", strip=True) or "").strip()
    return ""


@dataclass
class ParsedPage:
    title: str = ""
    author: str = ""
    image_url: str = ""
    ingredients: List[str] = field(default_factory=list)
    steps: List[str] = field(default_factory=list)
    ingredient_source: Optional[str] = None
    step_source: Optional[str] = None
    notes: List[str] = field(default_factory=list)

    @property
    def used_markup(self) -> bool:
        return MARKUP in (self.ingredient_source, self.step_source)

    @property
    def method(self) -> str:
        sources = {self.ingredient_source, self.step_source} - {None}
        if sources == {MARKUP}:
            return "jsonld-recipe"
        if MARKUP in sources:
            return "jsonld-recipe+html-heuristics"
        return "html-heuristics"


def _metadata(topic: str, strategies: List[Strategy], notes: List[str]) -> str:
    outcome = run_chain(topic, strategies, empty="")
    if outcome.label and outcome.label != MARKUP:
        notes.append(f"{topic.capitalize()} taken from {outcome.label}.")
    return outcome.value


def parse_recipe_html(html: str, base_url: str = "", limit: int = 80) -> ParsedPage:
    """Pull title, author, image, ingredients and steps out of a recipe page.

    Structured markup is tried first for every field; page heuristics only
    fill what the markup left empty.
    """
    soup = BeautifulSoup(html or "", "html.parser")
    markup = extract_markup_recipe(soup)
    page = ParsedPage()

    page.title = decode_html(_metadata("title", [
        Strategy(MARKUP, lambda: markup.title),
        Strategy("og:title", lambda: read_meta(soup, "property", "og:title")),
        Strategy("twitter:title", lambda: read_meta(soup, "name", "twitter:title")),
        Strategy("microdata name", lambda: _microdata_title(soup)),
        Strategy("first heading", lambda: _first_text(soup, "h1")),
        Strategy("document title", lambda: _first_text(soup, "title")),
    ], page.notes))
    page.author = decode_html(_metadata("author", [
        Strategy(MARKUP, lambda: markup.author),
        Strategy("author meta tag", lambda: read_meta(soup, "name", "author")),
        Strategy("microdata author", lambda: _first_text(soup, "[itemprop='author']")),
    ], page.notes))
    image = _metadata("image", [
        Strategy(MARKUP, lambda: markup.image_url),
        Strategy("og:image", lambda: read_meta(soup, "property", "og:image")),
        Strategy("twitter:image", lambda: read_meta(soup, "name", "twitter:image")),
        Strategy("microdata image", lambda: _first_attr(soup, "[itemprop='image']", "content", "src")),
        Strategy("first image", lambda: _first_attr(soup, "img", "src")),
    ], page.notes)
    page.image_url = absolutize_url(image, base_url) if base_url else image

    ingredients = run_chain("ingredients", [
        Strategy(MARKUP, lambda: clean_lines(markup.ingredients, limit)),
        Strategy(HEADING, lambda: extract_section_by_heading(soup, INGREDIENT_HEADINGS, limit)),
        Strategy(MICRODATA, lambda: clean_lines(
            _microdata_lines(soup, "recipeIngredient", "ingredients"), limit)),
    ], page.notes, empty=[])
    page.ingredients, page.ingredient_source = ingredients.value, ingredients.label

    steps = run_chain("steps", [
        Strategy(MARKUP, lambda: _clean_steps(markup.steps, limit)),
        Strategy(HEADING, lambda: _clean_steps(extract_section_by_heading(soup, STEP_HEADINGS, limit), limit)),
        Strategy(MICRODATA, lambda: _clean_steps(_microdata_lines(soup, "recipeInstructions"), limit)),
    ], page.notes, empty=[])
    page.steps, page.step_source = steps.value, steps.label

    if not page.ingredients:
        page.notes.append("No clear ingredient section detected.")
    if not page.steps:
        page.notes.append("No clear instruction section detected.")
    return page


def _clean_steps(lines: List[str], limit: int) -> List[str]:
    return clean_lines([clean_step_line(line) for line in lines if isinstance(line, str)], limit)
