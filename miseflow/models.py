from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

SourceType = Literal["web", "youtube", "manual"]

# -----------------------------
# Parsed recipe parts
# -----------------------------

class Ingredient(BaseModel):
    id: str
    raw: str
    quantity_text: str = ""
    quantity_number: Optional[float] = None
    unit: str = ""
    name: str
    prep_note: str = ""
    category: str = "Other"
    keywords: List[str] = Field(default_factory=list)
    first_step_index: int = Field(default=0, ge=0)
    bowl_assignment: str = ""  # "Bowl N", "Separate" or "" before planning

class Bowl(BaseModel):
    name: str
    step_index: int
    step_text: str = ""
    ingredient_names: List[str] = Field(default_factory=list)

    @property
    def step_number(self) -> int:
        return self.step_index + 1

class SeparateItem(BaseModel):
    ingredient_name: str
    step_index: int
    reason: str

class BowlPlan(BaseModel):
    bowls: List[Bowl] = Field(default_factory=list)
    separate: List[SeparateItem] = Field(default_factory=list)

class ShoppingItem(BaseModel):
    name: str
    unit: str = ""
    category: str = "Other"
    quantity_number: Optional[float] = None
    quantity_text: str = ""

# -----------------------------
# Extraction
# -----------------------------

class TranscriptItem(BaseModel):
    text: str
    start: Optional[float] = None
    duration: Optional[float] = None

class Discovery(BaseModel):
    method: str = "unknown"
    notes: List[str] = Field(default_factory=list)
    recipe_links: List[str] = Field(default_factory=list)
    transcript_available: bool = False

class ExtractionResult(BaseModel):
    detected_type: SourceType
    title: str = ""
    author: str = ""
    image_url: str = ""
    ingredients: List[str] = Field(default_factory=list)
    steps: List[str] = Field(default_factory=list)
    credit_notes: str = ""
    discovery: Discovery = Field(default_factory=Discovery)

    model_config = {"frozen": True}

    @property
    def is_complete(self) -> bool:
        return bool(self.ingredients) and bool(self.steps)

# -----------------------------
# Normalized recipe
# -----------------------------

class RecipeInput(BaseModel):
    title: str = ""
    author: str = ""
    source_type: SourceType = "manual"
    source_url: str = ""
    servings: Optional[float] = None
    credit_notes: str = ""
    image_url: str = ""
    ingredients_raw: str = ""
    steps_raw: str = ""

    @classmethod
    def from_extraction(cls, result: ExtractionResult, source_url: str = "",
                        servings: Optional[float] = None) -> "RecipeInput":
        return cls(
            title=result.title,
            author=result.author,
            source_type=result.detected_type,
            source_url=source_url,
            servings=servings,
            credit_notes=result.credit_notes,
            image_url=result.image_url,
            ingredients_raw="\n".join(result.ingredients),
            steps_raw="\n".join(result.steps),
        )

class RecipeMeta(BaseModel):
    id: str
    title: str = "Untitled Recipe"
    slug: str = ""
    author: str = ""
    source_type: SourceType = "manual"
    source_url: str = ""
    servings: float = 4
    credit_notes: str = ""
    image_url: str = ""
    normalized_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

class Citation(BaseModel):
    source_type: str
    source_url: str = ""
    author: str = ""
    captured_on: str = ""
    credit_line: str
    extraction_method: str
    references: List[str] = Field(default_factory=list)

class NormalizedRecipe(BaseModel):
    meta: RecipeMeta
    ingredients: List[Ingredient] = Field(default_factory=list)
    steps: List[str] = Field(default_factory=list)
    bowls: List[Bowl] = Field(default_factory=list)
    separate: List[SeparateItem] = Field(default_factory=list)
    mise: List[str] = Field(default_factory=list)
    shopping: Dict[str, List[ShoppingItem]] = Field(default_factory=dict)
    citation: Citation
    discovery: Optional[Discovery] = None
