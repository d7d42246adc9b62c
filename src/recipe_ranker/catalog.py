"""
catalog.py

Browse helpers used by the pages around the recommender: recipe listing,
recipe detail and the ingredient picker.

These read-only calls degrade to an empty answer (and an error log) when
Supabase is unreachable, so a page can still render.
"""
from __future__ import annotations

from typing import List, Optional

from src.recipe_ranker.logging_utils import get_logger
from src.recipe_ranker.schema import IngredientWithCount, RecipeRow
from src.recipe_ranker.storage.ports import IngredientStore, RecipeStore

logger = get_logger("catalog")

DEFAULT_RECIPE_PAGE = 10
DEFAULT_INGREDIENT_PAGE = 100


def get_recipes(
    store: RecipeStore,
    *,
    material_category: Optional[str] = None,
    kind: Optional[str] = None,
    limit: Optional[int] = None,
    offset: int = 0,
) -> List[RecipeRow]:
    """Newest recipes first, optionally filtered by material category / kind."""
    try:
        return store.list_recipes(
            material_category=material_category,
            kind=kind,
            limit=limit or DEFAULT_RECIPE_PAGE,
            offset=max(0, offset),
        )
    except Exception as exc:  # noqa: BLE001
        logger.error(
            "Recipe listing failed: %s",
            exc,
            extra={
                "invoking_func": "get_recipes",
                "invoking_purpose": "List recipes for browsing",
                "next_step": "Return empty page",
                "resolution": "Check Supabase connectivity",
            },
        )
        return []


def get_recipe_by_id(store: RecipeStore, recipe_id: str) -> Optional[RecipeRow]:
    if not recipe_id:
        return None
    try:
        return store.get_recipe_by_id(recipe_id)
    except Exception as exc:  # noqa: BLE001
        logger.error(
            "Recipe %s lookup failed: %s",
            recipe_id,
            exc,
            extra={
                "invoking_func": "get_recipe_by_id",
                "invoking_purpose": "Recipe detail page",
                "next_step": "Treat as not found",
                "resolution": "",
            },
        )
        return None


def search_ingredients(
    store: IngredientStore,
    *,
    search: str = "",
    limit: Optional[int] = None,
    offset: int = 0,
) -> List[IngredientWithCount]:
    """Ingredients whose name contains `search`, most used first across all pages."""
    try:
        rows = store.list_ingredients_with_counts(
            search=(search or "").strip(),
            limit=limit or DEFAULT_INGREDIENT_PAGE,
            offset=max(0, offset),
        )
    except Exception as exc:  # noqa: BLE001
        logger.error(
            "Ingredient search failed: %s",
            exc,
            extra={
                "invoking_func": "search_ingredients",
                "invoking_purpose": "Ingredient picker suggestions",
                "next_step": "Return no suggestions",
                "resolution": "",
            },
        )
        return []

    # Store order (usage count desc) is kept.
    return [IngredientWithCount(name=r["name"], count=int(r.get("count") or 0)) for r in rows if r.get("name")]
