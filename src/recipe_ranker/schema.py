from __future__ import annotations

"""
schema.py

Purpose:
    Shared dataclasses for the ranking core.

    These are the "internal contracts" between:
      - storage adapters (Supabase tables + RPCs),
      - the two scoring strategies (lexical overlap, embedding similarity),
      - the hybrid ranker that merges them.

    Nothing in this module talks to Supabase directly.

Objects:
      - IngredientEmbedding (embedding lookup output)
      - RecipeRow (recipe joined with its ingredient names)
      - RecipeScore / ScoredRecipe (lexical matcher output)
      - SimilarRecipe (vector similarity output)
      - RankedCandidate (tagged merge entry)
      - RecommendedRecipe (public result)
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Literal, Optional

SourceKind = Literal["hybrid", "lexical_only", "embedding_only"]


@dataclass
class IngredientEmbedding:
    """One stored ingredient and its decoded vector (None when unusable)."""

    name: str
    embedding: Optional[List[float]] = None


@dataclass
class RecipeRow:
    """A `recipes` row plus the names of its linked ingredients."""

    id: str
    title: str
    short_title: Optional[str] = None
    raw_ingredients: Optional[str] = None
    ingredients: List[str] = field(default_factory=list)
    image_url: Optional[str] = None
    description: Optional[str] = None
    time: Optional[str] = None
    difficulty: Optional[str] = None
    servings: Optional[str] = None
    kind: Optional[str] = None
    material_category: Optional[str] = None
    view_count: int = 0
    recommend_count: int = 0
    scrap_count: int = 0

    # Any other column PostgREST returned (created_at, method, situation, ...)
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_supabase_row(cls, row: Dict[str, Any]) -> "RecipeRow":
        """
        Build from a `recipes` select that embeds
        `recipe_ingredients(ingredient:ingredients(id,name))`.
        """
        data = dict(row)
        links = data.pop("recipe_ingredients", None) or []
        names: List[str] = []
        for link in links:
            ingredient = (link or {}).get("ingredient") or {}
            name = ingredient.get("name")
            if name:
                names.append(name)
        if not names and isinstance(data.get("ingredients"), list):
            names = [str(n) for n in data["ingredients"] if n]
        data.pop("ingredients", None)
        data.pop("embedding", None)

        known = {
            "short_title",
            "raw_ingredients",
            "image_url",
            "description",
            "time",
            "difficulty",
            "servings",
            "kind",
            "material_category",
        }
        counters = {"view_count", "recommend_count", "scrap_count"}

        kwargs: Dict[str, Any] = {
            "id": str(data.pop("id")),
            "title": data.pop("title", None) or "",
            "ingredients": names,
        }
        for key in known:
            if key in data:
                kwargs[key] = data.pop(key)
        for key in counters:
            if key in data:
                kwargs[key] = int(data.pop(key) or 0)
        kwargs["extra"] = data
        return cls(**kwargs)


@dataclass
class RecipeScore:
    match_count: int
    match_ratio: float
    recipe_ingredient_coverage: float
    weighted_score: float


@dataclass
class ScoredRecipe:
    recipe: RecipeRow
    score: RecipeScore


@dataclass
class SimilarRecipe:
    """One row of the `match_recipes` RPC."""

    id: str
    title: str
    short_title: str = ""
    raw_ingredients: str = ""
    image_url: str = ""
    similarity: float = 0.0

    @classmethod
    def from_rpc_row(cls, row: Dict[str, Any]) -> "SimilarRecipe":
        return cls(
            id=str(row["id"]),
            title=row.get("title") or "",
            short_title=row.get("short_title") or "",
            raw_ingredients=row.get("raw_ingredients") or "",
            image_url=row.get("image_url") or "",
            similarity=float(row.get("similarity") or 0.0),
        )


@dataclass
class SimilaritySearchResult:
    recipes: List[SimilarRecipe]
    threshold: Optional[float]
    attempted_thresholds: List[float] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class RankedCandidate:
    """
    One merge entry keyed by recipe id.

    kind:
      - "hybrid":         both strategies contributed a score
      - "lexical_only":   no usable query vector, lexical score only
      - "embedding_only": recipe store unreachable, similarity only
    """

    kind: SourceKind
    id: str
    title: str
    short_title: str
    raw_ingredients: str
    image_url: str
    final_score: float
    embedding_score: Optional[float] = None
    lexical_score: Optional[float] = None
    match_count: int = 0

    def to_recommended(self) -> "RecommendedRecipe":
        return RecommendedRecipe(
            id=self.id,
            title=self.title,
            short_title=self.short_title,
            raw_ingredients=self.raw_ingredients,
            image_url=self.image_url,
            similarity=self.final_score,
        )


@dataclass
class RecommendedRecipe:
    """Public result; `similarity` is the final blended score."""

    id: str
    title: str
    short_title: str = ""
    raw_ingredients: str = ""
    image_url: str = ""
    similarity: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class IngredientWithCount:
    name: str
    count: int
