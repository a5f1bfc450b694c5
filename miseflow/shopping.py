from typing import Dict, List

from .models import Ingredient, ShoppingItem
from .parsing import normalize_for_match
from .quantity import format_number, parse_quantity


def shopping_key(ingredient: Ingredient) -> str:
    return f"{normalize_for_match(ingredient.name)}|{ingredient.unit.lower()}"


def build_shopping_list(ingredients: List[Ingredient]) -> Dict[str, List[ShoppingItem]]:
    """Merge ingredients by (name, unit) and group them by category.

    Quantities are summed while every contribution parses as a number; the
    first one that does not turns the group into joined text for good.
    """
    merged: Dict[str, ShoppingItem] = {}
    for ingredient in ingredients:
        key = shopping_key(ingredient)
        qty = parse_quantity(ingredient.quantity_text)
        existing = merged.get(key)
        if existing is None:
            merged[key] = ShoppingItem(
                name=ingredient.name,
                unit=ingredient.unit,
                category=ingredient.category,
                quantity_number=qty,
                quantity_text=ingredient.quantity_text,
            )
            continue
        if existing.quantity_number is not None and qty is not None:
            existing.quantity_number += qty
            existing.quantity_text = format_number(existing.quantity_number)
        else:
            existing.quantity_number = None
            existing.quantity_text = " + ".join(
                t for t in (existing.quantity_text, ingredient.quantity_text) if t
            )

    by_category: Dict[str, List[ShoppingItem]] = {}
    for item in merged.values():
        by_category.setdefault(item.category, []).append(item)
    return {
        category: sorted(by_category[category], key=lambda item: item.name.lower())
        for category in sorted(by_category)
    }
