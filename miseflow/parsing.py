import logging
import re
import uuid
from typing import Iterable, List, Optional, Union

from .models import Ingredient
from .quantity import normalize_unicode_fractions, parse_quantity
from .rules import DEFAULT_RULES, ParserRules

logger = logging.getLogger(__name__)

STEP_MARKER_RE = re.compile(r"^\d+[\.\)\-\s]*")
PAREN_RE = re.compile(r"\(([^)]*)\)")
LEADING_CONNECTOR_RE = re.compile(r"^(?:and|or|&)\s+", re.I)


def _squash(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def normalize_for_match(text: str) -> str:
    return _squash(re.sub(r"[^a-z0-9\s]", " ", (text or "").lower()))


def _split_lines(raw: Union[str, Iterable[str]]) -> List[str]:
    if isinstance(raw, str):
        raw = raw.split("\n")
    return [line.strip() for line in raw if line and line.strip()]

# -----------------------------
# Ingredient lines
# -----------------------------

def infer_category(name: str, rules: ParserRules = DEFAULT_RULES) -> str:
    normalized = normalize_for_match(name)
    for category, words in rules.category_rules:
        if any(word in normalized for word in words):
            return category
    return rules.default_category


def build_keywords(name: str, rules: ParserRules = DEFAULT_RULES) -> List[str]:
    words = [w for w in normalize_for_match(name).split(" ")
             if len(w) > 2 and w not in rules.stopwords]
    return list(dict.fromkeys(words))[:5]


def parse_ingredient_line(line: str, index: int = 0, rules: ParserRules = DEFAULT_RULES) -> Ingredient:
    """Split one free-text ingredient line into quantity, unit, name and prep note.

    Never fails: a line that does not segment becomes the whole-line name.
    """
    cleaned = _squash(normalize_unicode_fractions(line or ""))
    quantity, unit, core = "", "", cleaned
    m = rules.ingredient_line_re.match(cleaned)
    if m:
        quantity = (m.group("qty") or "").strip()
        unit = (m.group("unit") or "").strip()
        core = m.group("core").strip()

    name, _, prep = core.partition(",")
    name, prep = name.strip(), prep.strip()

    parens = [p.strip() for p in PAREN_RE.findall(name) if p.strip()]
    if parens:
        prep = "; ".join([p for p in [prep] + parens if p])
        name = _squash(PAREN_RE.sub(" ", name))

    if not prep:
        found = rules.prep_re.search(core)
        if found:
            prep = found.group(0).lower()

    # "chopped carrots" -> "carrots" when a name survives
    bare = LEADING_CONNECTOR_RE.sub("", _squash(rules.prep_re.sub(" ", name)).strip(" ,;-"))
    if bare:
        name = bare

    if not name:
        name = cleaned or line

    return Ingredient(
        id=f"ing-{index}-{uuid.uuid4().hex[:8]}",
        raw=cleaned,
        quantity_text=quantity,
        quantity_number=parse_quantity(quantity),
        unit=unit,
        name=name,
        prep_note=prep,
        category=infer_category(name, rules),
        keywords=build_keywords(name, rules),
    )


def parse_ingredients(raw: Union[str, Iterable[str]], rules: ParserRules = DEFAULT_RULES) -> List[Ingredient]:
    return [parse_ingredient_line(line, i, rules) for i, line in enumerate(_split_lines(raw))]

# -----------------------------
# Steps
# -----------------------------

def clean_step_line(line: str) -> str:
    return STEP_MARKER_RE.sub("", line.strip()).strip()


def parse_steps(raw: Union[str, Iterable[str]]) -> List[str]:
    steps = [clean_step_line(line) for line in _split_lines(raw)]
    return [s for s in steps if s]


def apply_step_usage(ingredients: List[Ingredient], steps: List[str]) -> List[Ingredient]:
    """Point each ingredient at the first step that mentions it.

    Unmatched ingredients default to the first step (index 0).
    """
    normalized_steps = [normalize_for_match(step) for step in steps]
    for ingredient in ingredients:
        words = ingredient.keywords or [normalize_for_match(ingredient.name)]
        words = [w for w in words if w]
        first: Optional[int] = None
        for index, step in enumerate(normalized_steps):
            if any(word in step for word in words):
                first = index
                break
        if first is None:
            logger.debug("No step mentions %r; defaulting to step 1", ingredient.name)
            first = 0
        ingredient.first_step_index = first
    return ingredients
