"""Recipe normalization: URLs or pasted text in, bowl plans and shopping lists out."""
from .config import ExtractorSettings
from .errors import ExtractionError, FetchError, MiseflowError, UnsupportedURLError
from .models import ExtractionResult, NormalizedRecipe, RecipeInput
from .pipeline import normalize_recipe, to_markdown
from .rules import DEFAULT_RULES, ParserRules
from .sources import extract_source, extract_source_sync

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_RULES",
    "ExtractionError",
    "ExtractionResult",
    "ExtractorSettings",
    "FetchError",
    "MiseflowError",
    "NormalizedRecipe",
    "ParserRules",
    "RecipeInput",
    "UnsupportedURLError",
    "extract_source",
    "extract_source_sync",
    "normalize_recipe",
    "to_markdown",
]
