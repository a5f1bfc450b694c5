import re
from dataclasses import dataclass, field
from re import Pattern
from typing import Tuple

# -----------------------------
# Rule tables
# -----------------------------

STOPWORDS = (
    "and", "the", "for", "with", "into", "from", "fresh", "large", "small", "medium",
    "optional", "taste", "plus", "more", "divided", "extra", "about", "roughly",
    "finely", "coarsely", "chopped", "diced", "minced", "sliced", "to",
)

# Order matters: earlier rules win ("pepper" is Produce before Spice).
CATEGORY_RULES = (
    ("Produce", ("onion", "garlic", "tomato", "pepper", "lemon", "lime", "herb", "cilantro",
                 "parsley", "spinach", "carrot", "celery", "potato", "scallion", "ginger", "mushroom")),
    ("Protein", ("chicken", "beef", "pork", "fish", "shrimp", "tofu", "egg", "turkey",
                 "salmon", "lamb", "sausage")),
    ("Dairy", ("milk", "cream", "yogurt", "butter", "cheese", "parmesan", "mozzarella", "feta")),
    ("Spice", ("pepper", "paprika", "cumin", "turmeric", "coriander", "cinnamon", "oregano",
               "thyme", "rosemary", "chili", "flake", "powder")),
    ("Pantry", ("oil", "vinegar", "soy", "pasta", "rice", "bean", "flour", "sugar", "salt",
                "stock", "broth", "mustard", "honey", "sauce")),
)

UNITS = (
    "cups", "cup", "tbsp", "tablespoons", "tablespoon", "tsp", "teaspoons", "teaspoon",
    "pounds", "pound", "lbs", "lb", "ounces", "ounce", "oz", "grams", "gram", "g",
    "kilograms", "kilogram", "kg", "ml", "l", "cloves", "clove", "cans", "can",
    "packages", "package", "pkg", "pinch", "dash", "slices", "slice",
)

PREP_VERBS = (
    "minced", "chopped", "diced", "sliced", "julienned", "peeled", "grated", "rinsed",
    "drained", "melted", "softened", "beaten", "whisked", "crushed",
)

KEEP_SEPARATE_PHRASES = ("divided", "for garnish", "for serving", "reserved", "optional topping")
SEPARATE_STEP_PHRASES = ("one at a time", "separately", "set aside")
PREHEAT_WORDS = ("preheat",)

COOKING_VERBS = (
    "add", "mix", "stir", "cook", "bake", "heat", "whisk", "simmer", "season", "serve",
    "chop", "slice", "boil", "pour", "combine", "saute", "sauté",
)

# Unit words recognized inside free-running transcript text.
TRANSCRIPT_UNITS = (
    "cups", "cup", "tbsp", "tablespoons", "tablespoon", "tsp", "teaspoons", "teaspoon",
    "lbs", "lb", "ounces", "ounce", "oz", "grams", "gram", "g", "ml", "cloves", "clove",
)

INGREDIENT_HINTS = (
    "salt", "pepper", "garlic", "onion", "olive oil", "butter", "chicken", "beef",
    "pasta", "rice", "tomato", "lemon",
)

RECIPE_LINK_KEYWORDS = (
    "recipe", "recipes", "cooking", "kitchen", "food", "meal", "dish", "allrecipes",
    "foodnetwork", "seriouseats", "epicurious", "bonappetit",
)

QUANTITY_TOKEN = r"\d+\s+\d+/\d+|\d+/\d+|\d*\.?\d+"


def _alternation(words: Tuple[str, ...]) -> str:
    return "|".join(re.escape(w) for w in sorted(words, key=len, reverse=True))


@dataclass(frozen=True)
class ParserRules:
    """Immutable vocabulary consumed by the parsers and planners.

    Swap in an alternate instance (``dataclasses.replace(DEFAULT_RULES, ...)``)
    to change a table without touching module state.
    """
    stopwords: Tuple[str, ...] = STOPWORDS
    category_rules: Tuple[Tuple[str, Tuple[str, ...]], ...] = CATEGORY_RULES
    default_category: str = "Other"
    units: Tuple[str, ...] = UNITS
    prep_verbs: Tuple[str, ...] = PREP_VERBS
    keep_separate_phrases: Tuple[str, ...] = KEEP_SEPARATE_PHRASES
    separate_step_phrases: Tuple[str, ...] = SEPARATE_STEP_PHRASES
    preheat_words: Tuple[str, ...] = PREHEAT_WORDS
    cooking_verbs: Tuple[str, ...] = COOKING_VERBS
    transcript_units: Tuple[str, ...] = TRANSCRIPT_UNITS
    ingredient_hints: Tuple[str, ...] = INGREDIENT_HINTS
    recipe_link_keywords: Tuple[str, ...] = RECIPE_LINK_KEYWORDS
    _compiled: dict = field(default_factory=dict, init=False, repr=False, compare=False)

    def _pattern(self, key: str, words: Tuple[str, ...]) -> Pattern:
        pat = self._compiled.get(key)
        if pat is None:
            pat = re.compile(rf"\b(?:{_alternation(words)})\b", re.I)
            self._compiled[key] = pat
        return pat

    @property
    def unit_pattern(self) -> str:
        return rf"(?:{_alternation(self.units)})"

    @property
    def ingredient_line_re(self) -> Pattern:
        pat = self._compiled.get("line")
        if pat is None:
            pat = re.compile(
                rf"^\s*(?:(?P<qty>{QUANTITY_TOKEN})\s+)?(?:(?P<unit>{self.unit_pattern})\.?\s+)?(?P<core>.+)$",
                re.I,
            )
            self._compiled["line"] = pat
        return pat

    @property
    def prep_re(self) -> Pattern:
        return self._pattern("prep", self.prep_verbs)

    @property
    def keep_separate_re(self) -> Pattern:
        return self._pattern("keep_separate", self.keep_separate_phrases)

    @property
    def separate_step_re(self) -> Pattern:
        return self._pattern("separate_step", self.separate_step_phrases)

    @property
    def preheat_re(self) -> Pattern:
        return self._pattern("preheat", self.preheat_words)

    @property
    def cooking_verb_re(self) -> Pattern:
        return self._pattern("cooking", self.cooking_verbs)


DEFAULT_RULES = ParserRules()
