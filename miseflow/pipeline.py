import re
import uuid
from typing import List, Optional

from .models import Citation, Discovery, NormalizedRecipe, RecipeInput, RecipeMeta
from .parsing import apply_step_usage, parse_ingredients, parse_steps
from .planning import build_bowl_plan, build_mise_list
from .rules import DEFAULT_RULES, ParserRules
from .shopping import build_shopping_list
from .text import dedupe_strings

SOURCE_TYPE_LABELS = {
    "web": "Web Article",
    "youtube": "YouTube Video",
    "manual": "Original Recipe",
}
DEFAULT_SERVINGS = 4


def slugify(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", (value or "").lower()).strip("-")
    return slug[:80].rstrip("-") or "recipe"


def build_citation(meta: RecipeMeta, discovery: Optional[Discovery]) -> Citation:
    if meta.credit_notes:
        credit = meta.credit_notes
    elif meta.author:
        credit = f"Adapted from {meta.author}. Keep attribution when republishing."
    else:
        credit = "Original source credit should be preserved when republishing."
    return Citation(
        source_type=SOURCE_TYPE_LABELS.get(meta.source_type, SOURCE_TYPE_LABELS["manual"]),
        source_url=meta.source_url,
        author=meta.author,
        captured_on=meta.normalized_at.strftime("%B %d, %Y"),
        credit_line=credit,
        extraction_method=discovery.method if discovery else "manual-input",
        references=dedupe_strings([meta.source_url] + (discovery.recipe_links if discovery else [])),
    )


def normalize_recipe(payload: RecipeInput, discovery: Optional[Discovery] = None,
                     rules: ParserRules = DEFAULT_RULES) -> NormalizedRecipe:
    """Run raw ingredient/step text through the whole parse-and-plan chain."""
    ingredients = parse_ingredients(payload.ingredients_raw, rules)
    steps = parse_steps(payload.steps_raw)
    apply_step_usage(ingredients, steps)
    plan = build_bowl_plan(ingredients, steps, rules)

    title = payload.title.strip() or "Untitled Recipe"
    servings = payload.servings if payload.servings and payload.servings > 0 else DEFAULT_SERVINGS
    meta = RecipeMeta(
        id=uuid.uuid4().hex,
        title=title,
        slug=slugify(title),
        author=payload.author.strip(),
        source_type=payload.source_type,
        source_url=payload.source_url.strip(),
        servings=servings,
        credit_notes=payload.credit_notes.strip(),
        image_url=payload.image_url.strip(),
    )
    return NormalizedRecipe(
        meta=meta,
        ingredients=ingredients,
        steps=steps,
        bowls=plan.bowls,
        separate=plan.separate,
        mise=build_mise_list(ingredients, plan.bowls, steps, rules),
        shopping=build_shopping_list(ingredients),
        citation=build_citation(meta, discovery),
        discovery=discovery,
    )

# -----------------------------
# Markdown export
# -----------------------------

def _servings_label(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def to_markdown(recipe: NormalizedRecipe) -> str:
    meta, citation = recipe.meta, recipe.citation
    md: List[str] = [f"# {meta.title}", ""]
    md.append(f"- Servings: {_servings_label(meta.servings)}")
    md.append(f"- Normalized: {meta.normalized_at.isoformat(timespec='seconds')}")
    md.append(f"- Source Type: {citation.source_type}")
    if citation.source_url:
        md.append(f"- Source URL: {citation.source_url}")
    if citation.author:
        md.append(f"- Original Author: {citation.author}")
    md.append(f"- Extraction Method: {citation.extraction_method}")

    md += ["", "## Ingredients", "",
           "| Qty | Unit | Ingredient | Prep | First Step | Bowl |",
           "| --- | --- | --- | --- | --- | --- |"]
    for ing in recipe.ingredients:
        md.append(f"| {ing.quantity_text or '-'} | {ing.unit or '-'} | {ing.name} | {ing.prep_note or '-'} "
                  f"| {ing.first_step_index + 1} | {ing.bowl_assignment or '-'} |")

    md += ["", "## Mise en Place", ""]
    md += [f"- [ ] {task}" for task in recipe.mise]

    md += ["", "## Bowl Plan", ""]
    for bowl in recipe.bowls:
        md.append(f"- **{bowl.name}** for Step {bowl.step_number}: {', '.join(bowl.ingredient_names)}")
    if recipe.separate:
        md.append("- Keep Separate:")
        for item in recipe.separate:
            md.append(f"  - {item.ingredient_name} (Step {item.step_index + 1}): {item.reason}")

    md += ["", "## Steps", ""]
    md += [f"{i}. [ ] {step}" for i, step in enumerate(recipe.steps, 1)]

    md += ["", "## Citation", "", f"- {citation.credit_line}", f"- Captured on: {citation.captured_on}"]
    md += [f"- Reference: {ref}" for ref in citation.references]
    discovery = recipe.discovery
    if discovery and discovery.transcript_available:
        md.append("- Transcript: Available and analyzed.")
    elif meta.source_type == "youtube":
        md.append("- Transcript: Not available from the source.")
    if discovery and discovery.notes:
        md.append("- Source Discovery Notes:")
        md += [f"  - {note}" for note in discovery.notes]
    return "\n".join(md)
