"""
ports.py

Read-only collaborator interfaces used by the ranking core.

Scoring code depends on these Protocols only, never on the Supabase client,
so a cached or in-memory implementation can be swapped in without touching
the scoring logic. Implementations may raise on storage/RPC failure; the
ranking modules decide where that failure is absorbed.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, Sequence

from src.recipe_ranker.schema import RecipeRow


class IngredientStore(Protocol):
    def lookup_ingredients_by_name(self, names: Sequence[str]) -> List[Dict[str, Any]]:
        """
        Case-insensitive match of each name, OR-combined.
        Returns raw rows {"name", "embedding"}; embedding may be a string,
        a list or None. Unknown names are simply absent.
        """
        ...

    def find_ingredients_matching(self, names: Sequence[str]) -> List[Dict[str, Any]]:
        """Partial (contains) match of each name. Returns rows {"id", "name"}."""
        ...

    def list_ingredients_with_counts(
        self, search: str = "", limit: int = 100, offset: int = 0
    ) -> List[Dict[str, Any]]:
        """
        Rows {"name", "count"} where count is the number of linked recipes,
        ordered by count desc (then name) across the whole match set before
        limit/offset are applied.
        """
        ...


class RecipeStore(Protocol):
    def find_recipes_by_ingredient_ids(self, ingredient_ids: Sequence[Any]) -> List[Dict[str, Any]]:
        """Join rows {"recipe_id", "ingredient_id"}."""
        ...

    def get_recipes_by_ids(self, recipe_ids: Sequence[str], limit: Optional[int] = None) -> List[RecipeRow]:
        ...

    def get_recipe_by_id(self, recipe_id: str) -> Optional[RecipeRow]:
        ...

    def list_recipes(
        self,
        *,
        material_category: Optional[str] = None,
        kind: Optional[str] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> List[RecipeRow]:
        ...


class VectorSimilarityService(Protocol):
    def match_recipes_by_embedding(
        self, query_embedding: Sequence[float], threshold: float, limit: int
    ) -> List[Dict[str, Any]]:
        """
        Rows {"id", "title", "short_title", "raw_ingredients", "image_url",
        "similarity"} with similarity >= threshold, sorted desc by the service.
        """
        ...

    def calculate_recipe_similarity(self, recipe_id: str, query_embedding: Sequence[float]) -> float:
        """Cosine similarity between one recipe's stored embedding and the query."""
        ...
