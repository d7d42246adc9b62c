"""
similarity.py

Embedding-side retrieval on top of the `match_recipes` pgvector RPC.

The cosine computation itself lives in Postgres. This module owns the policy
around it: start at a demanding threshold and step it down until enough
recipes come back or the floor is reached, so an unusual ingredient set
still gets recommendations.

Callers must not invoke this without a query vector.
"""
from __future__ import annotations

from typing import List, Optional, Sequence

from src.recipe_ranker.config import RankerConfig
from src.recipe_ranker.logging_utils import get_logger
from src.recipe_ranker.schema import SimilarRecipe, SimilaritySearchResult
from src.recipe_ranker.storage.ports import VectorSimilarityService

logger = get_logger("similarity")

# Guards float drift when stepping 0.6 -> 0.5 -> 0.4 -> 0.3
_EPS = 1e-9


def find_similar_recipes(
    service: VectorSimilarityService,
    query_embedding: Sequence[float],
    *,
    threshold: Optional[float] = None,
    limit: Optional[int] = None,
    config: Optional[RankerConfig] = None,
) -> SimilaritySearchResult:
    """
    Query at `threshold`; while fewer than `min_similarity_results` rows come
    back, retry at threshold - step, never below the floor.

    A failed RPC stops the relaxation: rows from the last successful attempt
    (possibly none) are returned and the error is recorded on the result.
    """
    if not query_embedding:
        raise ValueError("find_similar_recipes requires a query vector")

    cfg = config or RankerConfig()
    current = cfg.similarity_threshold if threshold is None else float(threshold)
    count = cfg.similarity_match_count if limit is None else int(limit)
    floor = min(cfg.similarity_floor, current)

    attempted: List[float] = []
    recipes: List[SimilarRecipe] = []
    used: Optional[float] = None
    error: Optional[str] = None

    while True:
        try:
            rows = service.match_recipes_by_embedding(query_embedding, current, count)
        except Exception as exc:  # noqa: BLE001
            error = repr(exc)
            logger.error(
                "match_recipes failed at threshold %.2f: %s",
                current,
                exc,
                extra={
                    "invoking_func": "find_similar_recipes",
                    "invoking_purpose": "Retrieve recipes by embedding similarity",
                    "next_step": "Stop relaxing; keep last successful results",
                    "resolution": "Check match_recipes RPC / pgvector index",
                },
            )
            break

        attempted.append(current)
        used = current
        recipes = [SimilarRecipe.from_rpc_row(r) for r in rows]

        if len(recipes) >= cfg.min_similarity_results or current <= floor + _EPS:
            break
        current = max(floor, round(current - cfg.threshold_step, 4))

    logger.info(
        "Similarity search: final threshold %s, %d results after %d attempt(s)",
        "-" if used is None else f"{used:.2f}",
        len(recipes),
        len(attempted),
        extra={
            "invoking_func": "find_similar_recipes",
            "invoking_purpose": "Retrieve recipes by embedding similarity",
            "next_step": "Merge with lexical candidates",
            "resolution": "",
        },
    )
    return SimilaritySearchResult(
        recipes=recipes,
        threshold=used,
        attempted_thresholds=attempted,
        error=error,
    )


def calculate_embedding_score_for_recipe(
    service: VectorSimilarityService,
    recipe_id: str,
    query_embedding: Sequence[float],
) -> float:
    """Similarity of one recipe to the query vector; 0.0 if the RPC fails."""
    try:
        return float(service.calculate_recipe_similarity(recipe_id, query_embedding))
    except Exception as exc:  # noqa: BLE001
        logger.warning(
            "calculate_recipe_similarity failed for recipe %s: %s",
            recipe_id,
            exc,
            extra={
                "invoking_func": "calculate_embedding_score_for_recipe",
                "invoking_purpose": "On-demand similarity for lexical-only candidates",
                "next_step": "Use similarity 0.0 for this recipe",
                "resolution": "",
            },
        )
        return 0.0
