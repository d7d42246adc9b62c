"""
recommendation_example.py

Example usage of the HybridRecommender.

Run:
  python -m src.recipe_ranker.recommendation.recommendation_example --ingredients "돼지고기, 두부"

Requires:
  SUPABASE_URL
  SUPABASE_KEY (anon key is enough; SUPABASE_SERVICE_ROLE_KEY also accepted)
"""
from __future__ import annotations

import argparse

from src.recipe_ranker.cleaning import parse_user_ingredients, similarity_to_percent
from src.recipe_ranker.config import RankerConfig, get_supabase_client
from src.recipe_ranker.recommendation.hybrid import HybridRecommender
from src.recipe_ranker.storage.supabase_store import SupabaseRecipeRepository


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--ingredients", required=True, help="comma separated, e.g. '돼지고기,두부'")
    ap.add_argument("--limit", type=int, default=10)
    ap.add_argument("--verbose", action="store_true", help="print ranking diagnostics")
    args = ap.parse_args()

    repo = SupabaseRecipeRepository(get_supabase_client())
    rec = HybridRecommender.from_repository(repo, config=RankerConfig.from_env())

    outcome = rec.recommend_with_diagnostics(parse_user_ingredients(args.ingredients))
    if not outcome.recipes:
        if outcome.diagnostics.unavailable:
            print("Recommendation is temporarily unavailable.")
        else:
            print("No matching recipes.")
    for i, r in enumerate(outcome.recipes[: args.limit], start=1):
        print(f"{i:02d}. {r.title}  match={similarity_to_percent(r.similarity)}")
        if r.short_title:
            print("    -", r.short_title)

    if args.verbose:
        d = outcome.diagnostics
        print(
            f"embeddings={d.embeddings_resolved} threshold={d.similarity_threshold} "
            f"tried={d.attempted_thresholds} embedding={d.embedding_candidates} "
            f"lexical={d.lexical_candidates} kinds={d.kinds}"
        )


if __name__ == "__main__":
    main()
