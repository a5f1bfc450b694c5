#!/usr/bin/env python3
import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .batch import publish_batch, read_urls, summarize
from .config import ExtractorSettings
from .errors import ExtractionError
from .models import ExtractionResult, NormalizedRecipe, RecipeInput
from .pipeline import normalize_recipe, to_markdown
from .quantity import format_number
from .sources import extract_source

console = Console()


def configure_logging(verbose: bool = False, debug: bool = False):
    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=debug, show_path=debug)],
        force=True,
    )

# -----------------------------
# Output
# -----------------------------

def save_outputs(recipe: NormalizedRecipe, outdir: Path):
    outdir.mkdir(parents=True, exist_ok=True)
    (outdir / "recipe.json").write_text(recipe.model_dump_json(indent=2), encoding="utf-8")
    (outdir / "recipe.md").write_text(to_markdown(recipe), encoding="utf-8")


def pretty_print(recipe: NormalizedRecipe):
    table = Table(title=recipe.meta.title, box=box.SIMPLE, show_lines=False)
    table.add_column("Section", style="bold cyan", no_wrap=True)
    table.add_column("Content", style="")
    if recipe.ingredients:
        ing_txt = "\n".join(
            f"- {i.quantity_text + ' ' if i.quantity_text else ''}{i.unit + ' ' if i.unit else ''}{i.name}"
            f"{' (' + i.prep_note + ')' if i.prep_note else ''} [{i.bowl_assignment}]"
            for i in recipe.ingredients[:20]
        )
        if len(recipe.ingredients) > 20:
            ing_txt += f"\n… (+{len(recipe.ingredients) - 20} more)"
    else:
        ing_txt = "None"
    table.add_row("Ingredients", ing_txt)
    table.add_row("Mise en place", "\n".join(f"- {task}" for task in recipe.mise) or "None")
    if recipe.steps:
        dir_txt = "\n".join(f"{i + 1}. {s}" for i, s in enumerate(recipe.steps[:12]))
        if len(recipe.steps) > 12:
            dir_txt += f"\n… (+{len(recipe.steps) - 12} more)"
    else:
        dir_txt = "None"
    table.add_row("Steps", dir_txt)
    shopping = []
    for category, items in recipe.shopping.items():
        shopping.append(f"[bold]{category}[/bold]")
        for item in items:
            qty = format_number(item.quantity_number) if item.quantity_number is not None else item.quantity_text
            shopping.append(f"  {qty + ' ' if qty else ''}{item.unit + ' ' if item.unit else ''}{item.name}")
    table.add_row("Shopping", "\n".join(shopping) or "None")
    if recipe.discovery:
        table.add_row("Method", recipe.discovery.method)
    console.print(table)

# -----------------------------
# Modes
# -----------------------------

def process_url(url: str, args, settings: ExtractorSettings) -> NormalizedRecipe:
    try:
        result: ExtractionResult = asyncio.run(extract_source(url, settings))
    except ExtractionError as e:
        console.print(f"[red]{escape(str(e))}")
        sys.exit(2)
    if not result.is_complete:
        console.print("[yellow]Extraction is incomplete: review ingredients and steps before cooking.")
    payload = RecipeInput.from_extraction(result, source_url=url, servings=args.servings)
    if args.title:
        payload.title = args.title
    if args.author:
        payload.author = args.author
    return normalize_recipe(payload, result.discovery)


def process_text(ingredients_file: str, steps_file: Optional[str], args) -> NormalizedRecipe:
    ing_path = Path(ingredients_file).expanduser()
    if not ing_path.exists():
        console.print(f"[red]Ingredients file not found: {ing_path}")
        sys.exit(2)
    steps_raw = ""
    if steps_file:
        steps_path = Path(steps_file).expanduser()
        if not steps_path.exists():
            console.print(f"[red]Steps file not found: {steps_path}")
            sys.exit(2)
        steps_raw = steps_path.read_text(encoding="utf-8")
    payload = RecipeInput(
        title=args.title or ing_path.stem,
        author=args.author or "",
        servings=args.servings,
        ingredients_raw=ing_path.read_text(encoding="utf-8"),
        steps_raw=steps_raw,
    )
    return normalize_recipe(payload)


def process_batch(url_file: str, args, settings: ExtractorSettings):
    path = Path(url_file).expanduser()
    if not path.exists():
        console.print(f"[red]URL list file not found: {path}")
        sys.exit(2)
    urls = read_urls(path)
    outcomes = asyncio.run(publish_batch(
        urls, Path(args.outdir), settings, servings=args.servings or 4, limit=args.limit, republish=args.republish,
    ))
    if not outcomes:
        console.print("No new URLs to publish.")
        return
    for outcome in outcomes:
        colour = {"published": "green", "failed": "red"}.get(outcome.status, "yellow")
        detail = escape(outcome.slug or outcome.reason)
        console.print(f"[{colour}]{outcome.status:<10}[/{colour}] {outcome.url} {detail}")
    counts = summarize(outcomes)
    console.print(", ".join(f"{k.capitalize()}: {v}" for k, v in counts.items()))


def main():
    parser = argparse.ArgumentParser(description="Turn a recipe URL or pasted recipe text into a mise en place plan.")
    g = parser.add_mutually_exclusive_group(required=True)
    g.add_argument("--url", help="Recipe article or YouTube URL")
    g.add_argument("--ingredients", help="Path to a text file with one ingredient per line")
    g.add_argument("--batch", help="Path to a file of source URLs, one per line")
    parser.add_argument("--steps", help="Path to a text file with one step per line (with --ingredients)")
    parser.add_argument("--title", help="Override the recipe title")
    parser.add_argument("--author", help="Override the recipe author")
    parser.add_argument("--servings", type=float, default=None, help="Servings (default 4)")
    parser.add_argument("--outdir", default="output", help="Where to save recipe.json/recipe.md (or batch records)")
    parser.add_argument("--timeout", type=float, help="Per-request timeout in seconds (default 14)")
    parser.add_argument("--limit", type=int, default=50, help="Batch: most URLs to extract in one run (default 50)")
    parser.add_argument("--republish", action="store_true", help="Batch: re-extract URLs already in --outdir")
    parser.add_argument("--verbose", action="store_true", help="Log progress")
    parser.add_argument("--debug", action="store_true", help="Log heuristic decisions")
    args = parser.parse_args()

    configure_logging(verbose=args.verbose, debug=args.debug)
    settings = ExtractorSettings.from_env(timeout=args.timeout)

    if args.batch:
        process_batch(args.batch, args, settings)
        return

    if args.url:
        recipe = process_url(args.url, args, settings)
    else:
        recipe = process_text(args.ingredients, args.steps, args)

    save_outputs(recipe, Path(args.outdir))
    pretty_print(recipe)
    console.print(f"[bold green]Saved recipe.json and recipe.md to {args.outdir}")


if __name__ == "__main__":
    main()
