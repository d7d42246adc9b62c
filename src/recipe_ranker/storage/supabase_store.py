"""
supabase_store.py

Supabase implementation of the three read interfaces in ports.py.

Tables:
  ingredients(id, name, embedding)
  recipes(id, title, short_title, raw_ingredients, image_url, ...)
  recipe_ingredients(recipe_id, ingredient_id)

RPCs (pgvector, defined in the database):
  match_recipes(query_embedding, match_threshold, match_count)
  calculate_recipe_similarity(recipe_id, query_embedding)

Errors from postgrest / httpx are not caught here. Callers in the ranking
core decide how a failed round-trip degrades.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from supabase import Client

from src.recipe_ranker.cleaning import filter_safe
from src.recipe_ranker.logging_utils import get_logger
from src.recipe_ranker.schema import RecipeRow

logger = get_logger("supabase_store")

RECIPE_WITH_INGREDIENTS = "*, recipe_ingredients!inner(ingredient:ingredients(id, name))"

# PostgREST max-rows default
INGREDIENT_SCAN_PAGE = 1000


def _ilike_or_filter(names: Sequence[str], *, contains: bool) -> str:
    """Build `name.ilike.x,name.ilike.y` for .or_(); `contains` wraps in %...%."""
    parts: List[str] = []
    for n in names:
        safe = filter_safe(n)
        if not safe:
            continue
        pattern = f"%{safe}%" if contains else safe
        parts.append(f"name.ilike.{pattern}")
    return ",".join(parts)


class SupabaseRecipeRepository:
    def __init__(self, client: Client) -> None:
        self.client = client

    # ------------------------------------------------------------------
    # IngredientStore
    # ------------------------------------------------------------------
    def lookup_ingredients_by_name(self, names: Sequence[str]) -> List[Dict[str, Any]]:
        flt = _ilike_or_filter(names, contains=False)
        if not flt:
            return []
        res = self.client.table("ingredients").select("name, embedding").or_(flt).execute()
        return res.data or []

    def find_ingredients_matching(self, names: Sequence[str]) -> List[Dict[str, Any]]:
        flt = _ilike_or_filter(names, contains=True)
        if not flt:
            return []
        res = self.client.table("ingredients").select("id, name").or_(flt).execute()
        return res.data or []

    def list_ingredients_with_counts(
        self, search: str = "", limit: int = 100, offset: int = 0
    ) -> List[Dict[str, Any]]:
        # PostgREST cannot order by an embedded count, so every matching row is
        # read (in pages) and ranked here before the requested page is cut.
        safe = filter_safe(search or "")
        counted: List[Dict[str, Any]] = []
        start = 0
        while True:
            q = self.client.table("ingredients").select("id, name, recipe_ingredients!inner(recipe_id)")
            if safe:
                q = q.ilike("name", f"%{safe}%")
            res = q.order("name").range(start, start + INGREDIENT_SCAN_PAGE - 1).execute()
            rows = res.data or []
            for row in rows:
                links = row.get("recipe_ingredients") or []
                counted.append({"name": row.get("name") or "", "count": len(links)})
            if len(rows) < INGREDIENT_SCAN_PAGE:
                break
            start += INGREDIENT_SCAN_PAGE

        counted.sort(key=lambda r: (-r["count"], r["name"]))
        return counted[offset : offset + limit]

    # ------------------------------------------------------------------
    # RecipeStore
    # ------------------------------------------------------------------
    def find_recipes_by_ingredient_ids(self, ingredient_ids: Sequence[Any]) -> List[Dict[str, Any]]:
        if not ingredient_ids:
            return []
        res = (
            self.client.table("recipe_ingredients")
            .select("recipe_id, ingredient_id")
            .in_("ingredient_id", list(ingredient_ids))
            .execute()
        )
        return res.data or []

    def get_recipes_by_ids(self, recipe_ids: Sequence[str], limit: Optional[int] = None) -> List[RecipeRow]:
        if not recipe_ids:
            return []
        q = self.client.table("recipes").select(RECIPE_WITH_INGREDIENTS).in_("id", list(recipe_ids))
        if limit is not None:
            q = q.limit(limit)
        res = q.execute()
        return [RecipeRow.from_supabase_row(r) for r in res.data or []]

    def get_recipe_by_id(self, recipe_id: str) -> Optional[RecipeRow]:
        res = (
            self.client.table("recipes")
            .select(RECIPE_WITH_INGREDIENTS)
            .eq("id", recipe_id)
            .limit(1)
            .execute()
        )
        if not res.data:
            return None
        return RecipeRow.from_supabase_row(res.data[0])

    def list_recipes(
        self,
        *,
        material_category: Optional[str] = None,
        kind: Optional[str] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> List[RecipeRow]:
        q = self.client.table("recipes").select(RECIPE_WITH_INGREDIENTS)
        if material_category:
            q = q.eq("material_category", material_category)
        if kind:
            q = q.eq("kind", kind)
        res = q.order("created_at", desc=True).range(offset, offset + limit - 1).execute()
        return [RecipeRow.from_supabase_row(r) for r in res.data or []]

    # ------------------------------------------------------------------
    # VectorSimilarityService
    # ------------------------------------------------------------------
    def match_recipes_by_embedding(
        self, query_embedding: Sequence[float], threshold: float, limit: int
    ) -> List[Dict[str, Any]]:
        res = self.client.rpc(
            "match_recipes",
            {
                "query_embedding": list(query_embedding),
                "match_threshold": float(threshold),
                "match_count": int(limit),
            },
        ).execute()
        rows = res.data or []
        logger.debug(
            "match_recipes threshold=%.2f count=%d returned %d rows",
            threshold,
            limit,
            len(rows),
            extra={
                "invoking_func": "match_recipes_by_embedding",
                "invoking_purpose": "pgvector similarity RPC",
                "next_step": "Return rows to similarity search",
                "resolution": "",
            },
        )
        return rows

    def calculate_recipe_similarity(self, recipe_id: str, query_embedding: Sequence[float]) -> float:
        res = self.client.rpc(
            "calculate_recipe_similarity",
            {"recipe_id": recipe_id, "query_embedding": list(query_embedding)},
        ).execute()
        # The RPC returns a scalar float (or null when the recipe has no embedding)
        data = res.data
        if isinstance(data, list):
            data = data[0] if data else None
        if isinstance(data, dict):
            data = next(iter(data.values()), None)
        return float(data or 0.0)
