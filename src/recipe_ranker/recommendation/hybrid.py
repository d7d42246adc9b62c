"""
hybrid.py

Ingredient based recipe recommendation: lexical overlap + embedding
similarity merged into one ranked list.

Flow per request (nothing is cached between requests):
  1) ingredient names -> stored embeddings -> mean -> unit query vector
  2) query vector -> match_recipes with adaptive threshold
  3) lexical matcher (always runs, needs no embeddings)
  4) merge keyed by recipe id:
       embedding-side recipe  -> lexical score computed too
                                 final = 0.5 * similarity + 0.5 * lexical
       lexical-side recipe    -> similarity computed on demand when a query
                                 vector exists, same blend; otherwise
                                 final = lexical weighted_score
  5) sort by final score, keep the top 20

Degradation:
  - any fault on the embedding side -> lexical results only
  - recipe store unreachable while scoring embedding-side recipes
    -> those entries keep final = similarity ("embedding_only")
  - nothing found on either side -> []
No exception escapes recommend(); the worst case is an empty list. The
diagnostics object tells "no matches" apart from "ranking unavailable".
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from src.recipe_ranker.cleaning import normalize_ingredient_names
from src.recipe_ranker.config import RankerConfig
from src.recipe_ranker.embeddings.lookup import resolve_ingredient_embeddings
from src.recipe_ranker.embeddings.vectors import calculate_average_embedding, normalize_embedding
from src.recipe_ranker.logging_utils import get_logger
from src.recipe_ranker.matching.lexical import recommend_recipes_by_lexical_matching, score_recipe
from src.recipe_ranker.schema import RankedCandidate, RecommendedRecipe, ScoredRecipe, SimilarRecipe
from src.recipe_ranker.search.similarity import calculate_embedding_score_for_recipe, find_similar_recipes
from src.recipe_ranker.storage.ports import IngredientStore, RecipeStore, VectorSimilarityService
from src.recipe_ranker.storage.supabase_store import SupabaseRecipeRepository

logger = get_logger("hybrid")


@dataclass
class RecommendationDiagnostics:
    ingredients: List[str] = field(default_factory=list)
    embeddings_resolved: int = 0
    query_vector_dim: Optional[int] = None
    similarity_threshold: Optional[float] = None
    attempted_thresholds: List[float] = field(default_factory=list)
    embedding_candidates: int = 0
    lexical_candidates: int = 0
    embedding_error: Optional[str] = None
    lexical_error: Optional[str] = None
    kinds: Dict[str, int] = field(default_factory=dict)
    returned: int = 0

    @property
    def unavailable(self) -> bool:
        """Empty result caused by a storage failure rather than by no matches."""
        return self.returned == 0 and (self.embedding_error is not None or self.lexical_error is not None)


@dataclass
class RecommendationOutcome:
    recipes: List[RecommendedRecipe]
    diagnostics: RecommendationDiagnostics


class HybridRecommender:
    def __init__(
        self,
        ingredient_store: IngredientStore,
        recipe_store: RecipeStore,
        similarity_service: VectorSimilarityService,
        config: Optional[RankerConfig] = None,
    ) -> None:
        self.ingredient_store = ingredient_store
        self.recipe_store = recipe_store
        self.similarity_service = similarity_service
        self.config = config or RankerConfig()

    @classmethod
    def from_repository(
        cls, repo: SupabaseRecipeRepository, config: Optional[RankerConfig] = None
    ) -> "HybridRecommender":
        """One repository serving all three read interfaces."""
        return cls(repo, repo, repo, config=config)

    # ------------------------------------------------------------------
    # Public APIs
    # ------------------------------------------------------------------
    def recommend(self, ingredient_names: Sequence[str]) -> List[RecommendedRecipe]:
        return self.recommend_with_diagnostics(ingredient_names).recipes

    def recommend_with_diagnostics(self, ingredient_names: Sequence[str]) -> RecommendationOutcome:
        names = normalize_ingredient_names(ingredient_names)
        diag = RecommendationDiagnostics(ingredients=names)
        if not names:
            return RecommendationOutcome(recipes=[], diagnostics=diag)

        logger.info(
            "Hybrid recommendation started: %s",
            ", ".join(names),
            extra={
                "invoking_func": "recommend_with_diagnostics",
                "invoking_purpose": "Recommend recipes for owned ingredients",
                "next_step": "Embedding candidates",
                "resolution": "",
            },
        )

        query_vector, similar = self._embedding_candidates(names, diag)
        lexical = self._lexical_candidates(names, diag)

        if not similar and not lexical:
            logger.info(
                "No candidates from either strategy",
                extra={
                    "invoking_func": "recommend_with_diagnostics",
                    "invoking_purpose": "Recommend recipes for owned ingredients",
                    "next_step": "Return empty list",
                    "resolution": "",
                },
            )
            return RecommendationOutcome(recipes=[], diagnostics=diag)

        merged: Dict[str, RankedCandidate] = {}
        self._merge_embedding_side(names, similar, merged)
        self._merge_lexical_side(lexical, query_vector, merged)

        candidates = list(merged.values())
        if similar or query_vector is not None:
            candidates.sort(key=lambda c: c.final_score, reverse=True)
        # else: lexical-only entries keep the lexical matcher's order
        top = candidates[: self.config.result_limit]

        diag.kinds = dict(Counter(c.kind for c in candidates))
        diag.returned = len(top)
        logger.info(
            "Hybrid result: %d returned of %d merged (%s)",
            len(top),
            len(candidates),
            ", ".join(f"{k}={v}" for k, v in sorted(diag.kinds.items())),
            extra={
                "invoking_func": "recommend_with_diagnostics",
                "invoking_purpose": "Recommend recipes for owned ingredients",
                "next_step": "Return to caller",
                "resolution": "",
            },
        )
        return RecommendationOutcome(recipes=[c.to_recommended() for c in top], diagnostics=diag)

    # ------------------------------------------------------------------
    # Candidate generation
    # ------------------------------------------------------------------
    def _embedding_candidates(
        self, names: List[str], diag: RecommendationDiagnostics
    ) -> Tuple[Optional[List[float]], List[SimilarRecipe]]:
        """
        Returns (query_vector, recipes). query_vector is None when the
        embedding path is unusable, which also disables on-demand similarity.
        """
        try:
            found = resolve_ingredient_embeddings(self.ingredient_store, names)
            vectors = [i.embedding for i in found if i.embedding]
            diag.embeddings_resolved = len(vectors)
            if not vectors:
                logger.info(
                    "No valid ingredient embeddings; using lexical matching only",
                    extra={
                        "invoking_func": "_embedding_candidates",
                        "invoking_purpose": "Embedding side of hybrid ranking",
                        "next_step": "Lexical matching",
                        "resolution": "",
                    },
                )
                return None, []

            average = calculate_average_embedding(vectors)
            if average is None:
                return None, []
            query_vector = normalize_embedding(average)
            diag.query_vector_dim = len(query_vector)

            result = find_similar_recipes(self.similarity_service, query_vector, config=self.config)
            diag.similarity_threshold = result.threshold
            diag.attempted_thresholds = list(result.attempted_thresholds)
            diag.embedding_candidates = len(result.recipes)
            if result.error is not None:
                diag.embedding_error = result.error
                if not result.attempted_thresholds:
                    # The service never answered; on-demand scoring would fail too.
                    return None, []
            return query_vector, result.recipes
        except Exception as exc:  # noqa: BLE001
            diag.embedding_error = repr(exc)
            logger.error(
                "Embedding recommendation failed: %s",
                exc,
                extra={
                    "invoking_func": "_embedding_candidates",
                    "invoking_purpose": "Embedding side of hybrid ranking",
                    "next_step": "Continue with lexical matching only",
                    "resolution": "Check ingredients table / match_recipes RPC",
                },
            )
            return None, []

    def _lexical_candidates(self, names: List[str], diag: RecommendationDiagnostics) -> List[ScoredRecipe]:
        try:
            ranked = recommend_recipes_by_lexical_matching(
                self.ingredient_store, self.recipe_store, names, config=self.config
            )
        except Exception as exc:  # noqa: BLE001
            diag.lexical_error = repr(exc)
            logger.error(
                "Lexical matching failed: %s",
                exc,
                extra={
                    "invoking_func": "_lexical_candidates",
                    "invoking_purpose": "Lexical side of hybrid ranking",
                    "next_step": "Continue with embedding candidates only",
                    "resolution": "Check ingredients / recipe_ingredients tables",
                },
            )
            return []
        diag.lexical_candidates = len(ranked)
        return ranked

    # ------------------------------------------------------------------
    # Merge
    # ------------------------------------------------------------------
    def _blend(self, similarity: float, lexical: float) -> float:
        return self.config.embedding_weight * similarity + self.config.lexical_weight * lexical

    def _merge_embedding_side(
        self,
        names: List[str],
        similar: List[SimilarRecipe],
        merged: Dict[str, RankedCandidate],
    ) -> None:
        if not similar:
            return

        ids = [r.id for r in similar]
        try:
            rows = {r.id: r for r in self.recipe_store.get_recipes_by_ids(ids)}
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Could not load embedding candidates for lexical scoring: %s",
                exc,
                extra={
                    "invoking_func": "_merge_embedding_side",
                    "invoking_purpose": "Score embedding candidates lexically",
                    "next_step": "Rank these by similarity alone",
                    "resolution": "",
                },
            )
            rows = None

        for recipe in similar:
            if recipe.id in merged:
                continue
            if rows is None:
                merged[recipe.id] = RankedCandidate(
                    kind="embedding_only",
                    id=recipe.id,
                    title=recipe.title,
                    short_title=recipe.short_title,
                    raw_ingredients=recipe.raw_ingredients,
                    image_url=recipe.image_url,
                    final_score=recipe.similarity,
                    embedding_score=recipe.similarity,
                )
                continue

            row = rows.get(recipe.id)
            lexical = 0.0
            match_count = 0
            if row is not None:
                score = score_recipe(row, names)
                match_count = score.match_count
                lexical = score.weighted_score if match_count else 0.0

            merged[recipe.id] = RankedCandidate(
                kind="hybrid",
                id=recipe.id,
                title=recipe.title,
                short_title=recipe.short_title,
                raw_ingredients=recipe.raw_ingredients,
                image_url=recipe.image_url,
                final_score=self._blend(recipe.similarity, lexical),
                embedding_score=recipe.similarity,
                lexical_score=lexical,
                match_count=match_count,
            )

    def _merge_lexical_side(
        self,
        lexical: List[ScoredRecipe],
        query_vector: Optional[List[float]],
        merged: Dict[str, RankedCandidate],
    ) -> None:
        for item in lexical:
            recipe = item.recipe
            if recipe.id in merged:
                continue
            weighted = item.score.weighted_score
            common = dict(
                id=recipe.id,
                title=recipe.title,
                short_title=recipe.short_title or "",
                raw_ingredients=recipe.raw_ingredients or "",
                image_url=recipe.image_url or "",
                lexical_score=weighted,
                match_count=item.score.match_count,
            )
            if query_vector is not None:
                similarity = calculate_embedding_score_for_recipe(self.similarity_service, recipe.id, query_vector)
                merged[recipe.id] = RankedCandidate(
                    kind="hybrid",
                    final_score=self._blend(similarity, weighted),
                    embedding_score=similarity,
                    **common,
                )
            else:
                merged[recipe.id] = RankedCandidate(kind="lexical_only", final_score=weighted, **common)
