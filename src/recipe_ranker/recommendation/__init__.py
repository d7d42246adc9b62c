"""
Recommendation layer (recipe_ranker)

This package contains the ingredient based recommender that combines:
  - lexical ingredient overlap (works with no embeddings at all)
  - embedding similarity (pgvector match_recipes RPC)

Scoring stays in Python; storage and the cosine computation stay in Postgres.
The canonical tables are: ingredients, recipes, recipe_ingredients.
"""
