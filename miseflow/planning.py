from typing import Dict, List

from .models import Bowl, BowlPlan, Ingredient, SeparateItem
from .rules import DEFAULT_RULES, ParserRules

SEPARATE_SOURCE_REASON = "Marked as divided or garnish in source."
SEPARATE_STEP_REASON = "Step indicates separate additions."
SEPARATE = "Separate"


def separate_reason(ingredient: Ingredient, step_text: str, rules: ParserRules = DEFAULT_RULES) -> str:
    if rules.keep_separate_re.search(ingredient.raw):
        return SEPARATE_SOURCE_REASON
    if rules.separate_step_re.search(step_text):
        return SEPARATE_STEP_REASON
    return ""


def build_bowl_plan(ingredients: List[Ingredient], steps: List[str],
                    rules: ParserRules = DEFAULT_RULES) -> BowlPlan:
    """Group ingredients into bowls by the step that first uses them.

    Bowls are numbered in step order. Divided/garnish items and items whose
    step adds things separately go to the separate list instead.
    """
    grouped: Dict[int, List[Ingredient]] = {}
    separate: List[SeparateItem] = []

    for ingredient in ingredients:
        step_index = ingredient.first_step_index
        step_text = steps[step_index] if step_index < len(steps) else ""
        reason = separate_reason(ingredient, step_text, rules)
        if reason:
            separate.append(SeparateItem(ingredient_name=ingredient.name, step_index=step_index, reason=reason))
            ingredient.bowl_assignment = SEPARATE
            continue
        grouped.setdefault(step_index, []).append(ingredient)

    bowls = []
    for number, step_index in enumerate(sorted(grouped), 1):
        name = f"Bowl {number}"
        for item in grouped[step_index]:
            item.bowl_assignment = name
        bowls.append(Bowl(
            name=name,
            step_index=step_index,
            step_text=steps[step_index] if step_index < len(steps) else "",
            ingredient_names=[item.name for item in grouped[step_index]],
        ))
    return BowlPlan(bowls=bowls, separate=separate)


def _capitalize(text: str) -> str:
    return text[:1].upper() + text[1:]


def build_mise_list(ingredients: List[Ingredient], bowls: List[Bowl], steps: List[str],
                    rules: ParserRules = DEFAULT_RULES) -> List[str]:
    tasks = []
    preheat = next((step for step in steps if rules.preheat_re.search(step)), None)
    if preheat:
        tasks.append(f'Preheat equipment as noted: "{preheat}"')
    for ingredient in ingredients:
        if ingredient.prep_note:
            tasks.append(f"{_capitalize(ingredient.prep_note)} {ingredient.name}")
    for bowl in bowls:
        tasks.append(f"Stage {bowl.name}: {', '.join(bowl.ingredient_names)} before Step {bowl.step_number}")
    if not tasks:
        tasks.append("Gather all ingredients and cooking tools.")

    seen = set()
    unique = []
    for task in tasks:
        key = task.lower()
        if key in seen:
            continue
        seen.add(key)
        unique.append(task)
    return unique
