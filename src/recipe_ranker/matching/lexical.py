"""
lexical.py

Ingredient overlap scoring (no embeddings involved).

A user ingredient "matches" a recipe when, after lower-casing and removing
all whitespace, it contains one of the recipe's ingredient names or is
contained by one (symmetric containment: "고기" matches "돼지고기" and
"돼지고기 앞다리살" matches "돼지고기").

Per recipe:
  match_count                 distinct user ingredients that matched
  match_ratio                 match_count / len(user ingredients)
  recipe_ingredient_coverage  recipe ingredients matched by any user
                              ingredient / len(recipe ingredients), 2 dp
  weighted_score              0.40 * match_ratio
                            + 0.35 * user_ingredient_coverage
                            + 0.25 * recipe_ingredient_coverage

Recipes with match_count == 0 never leave this module as candidates.
"""
from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Set

from src.recipe_ranker.cleaning import compact_ingredient_name, compact_ingredient_names, normalize_ingredient_names
from src.recipe_ranker.config import RankerConfig
from src.recipe_ranker.logging_utils import get_logger
from src.recipe_ranker.schema import RecipeRow, RecipeScore, ScoredRecipe
from src.recipe_ranker.storage.ports import IngredientStore, RecipeStore

logger = get_logger("lexical")

MATCH_RATIO_WEIGHT = 0.40
USER_COVERAGE_WEIGHT = 0.35
RECIPE_COVERAGE_WEIGHT = 0.25

DEFAULT_TOP_N = 20


def _contains_either_way(user_ing: str, recipe_ing: str) -> bool:
    return user_ing in recipe_ing or recipe_ing in user_ing


def score_recipe(recipe: RecipeRow, user_ingredients: Sequence[str]) -> RecipeScore:
    """Score one recipe against the raw user ingredient names."""
    users = compact_ingredient_names(user_ingredients)
    recipe_ings = [c for c in (compact_ingredient_name(n) for n in recipe.ingredients) if c]

    match_count = sum(1 for u in users if any(_contains_either_way(u, r) for r in recipe_ings))
    # Recipe side counts its own ingredients, so one recipe ingredient matched
    # by several user ingredients is counted once.
    recipe_matched = sum(1 for r in recipe_ings if any(_contains_either_way(u, r) for u in users))

    n_user = max(1, len(users))
    n_recipe = max(1, len(recipe_ings))

    match_ratio = match_count / n_user
    # Share of what the user owns that this recipe puts to use.
    user_ingredient_coverage = match_count / n_user
    recipe_ingredient_coverage = round(recipe_matched / n_recipe, 2)

    weighted = (
        MATCH_RATIO_WEIGHT * match_ratio
        + USER_COVERAGE_WEIGHT * user_ingredient_coverage
        + RECIPE_COVERAGE_WEIGHT * recipe_ingredient_coverage
    )
    return RecipeScore(
        match_count=match_count,
        match_ratio=match_ratio,
        recipe_ingredient_coverage=recipe_ingredient_coverage,
        weighted_score=weighted,
    )


def calculate_lexical_score_for_recipe(recipe: RecipeRow, user_ingredients: Sequence[str]) -> float:
    """weighted_score for a single recipe, 0.0 when nothing matches."""
    score = score_recipe(recipe, user_ingredients)
    if score.match_count == 0:
        return 0.0
    return score.weighted_score


def rank_recipes_lexically(
    user_ingredients: Sequence[str],
    recipes: Sequence[RecipeRow],
    *,
    top_n: int = DEFAULT_TOP_N,
) -> List[ScoredRecipe]:
    """
    Score, drop zero-match recipes, order by (match_count, weighted_score)
    descending and keep the first top_n.
    """
    if not compact_ingredient_names(user_ingredients):
        return []

    scored: List[ScoredRecipe] = []
    for recipe in recipes:
        score = score_recipe(recipe, user_ingredients)
        if score.match_count == 0:
            continue
        scored.append(ScoredRecipe(recipe=recipe, score=score))

    scored.sort(key=lambda s: (s.score.match_count, s.score.weighted_score), reverse=True)
    return scored[:top_n]


def recommend_recipes_by_lexical_matching(
    ingredient_store: IngredientStore,
    recipe_store: RecipeStore,
    user_ingredients: Sequence[str],
    config: Optional[RankerConfig] = None,
) -> List[ScoredRecipe]:
    """
    Candidate-filtered lexical ranking against storage.

    Steps:
      1) resolve user names to `ingredients` rows (contains match)
      2) collect recipe ids linked through `recipe_ingredients`
      3) fetch those recipes with their ingredient names (bounded)
      4) score + rank

    Storage errors propagate; the hybrid ranker decides how to degrade.
    """
    cfg = config or RankerConfig()
    names = normalize_ingredient_names(user_ingredients)
    if not names:
        return []

    # Both forms: stored names may keep their spaces ("돼지 고기") while
    # scoring compares them compacted.
    lookup_names = list(dict.fromkeys(names + compact_ingredient_names(names)))
    matching = ingredient_store.find_ingredients_matching(lookup_names)
    if not matching:
        logger.info(
            "No ingredient rows match: %s",
            ", ".join(names),
            extra={
                "invoking_func": "recommend_recipes_by_lexical_matching",
                "invoking_purpose": "Rank recipes by ingredient overlap",
                "next_step": "Return no lexical candidates",
                "resolution": "",
            },
        )
        return []

    ingredient_ids = [row["id"] for row in matching if row.get("id") is not None]
    links = recipe_store.find_recipes_by_ingredient_ids(ingredient_ids)

    matched_per_recipe: Dict[str, Set[str]] = {}
    for link in links:
        matched_per_recipe.setdefault(str(link["recipe_id"]), set()).add(str(link["ingredient_id"]))
    if not matched_per_recipe:
        logger.info(
            "No recipes use the matched ingredients (%d rows)",
            len(matching),
            extra={
                "invoking_func": "recommend_recipes_by_lexical_matching",
                "invoking_purpose": "Rank recipes by ingredient overlap",
                "next_step": "Return no lexical candidates",
                "resolution": "",
            },
        )
        return []

    # Most-linked recipes first; the tail past the limit is never fetched.
    candidate_ids = sorted(matched_per_recipe, key=lambda rid: len(matched_per_recipe[rid]), reverse=True)
    candidate_ids = candidate_ids[: cfg.candidate_recipe_limit]
    recipes = recipe_store.get_recipes_by_ids(candidate_ids, limit=cfg.candidate_recipe_limit)
    ranked = rank_recipes_lexically(names, recipes, top_n=cfg.lexical_top_n)

    logger.info(
        "Lexical matching: %d matched ingredients, %d candidate recipes, %d ranked",
        len(matching),
        len(recipes),
        len(ranked),
        extra={
            "invoking_func": "recommend_recipes_by_lexical_matching",
            "invoking_purpose": "Rank recipes by ingredient overlap",
            "next_step": "Merge with embedding candidates",
            "resolution": "",
        },
    )
    return ranked
