"""
lookup.py

Purpose:
    Resolve user ingredient names to stored embedding vectors.

Design:
  - Data problems are "best effort": a malformed stored embedding or an
    unknown name never raises past get_ingredients_embeddings; the hybrid
    ranker simply gets fewer (or no) vectors and relies on lexical matching.
  - get_ingredients_embeddings turns a failed storage call into [] plus an
    error log. resolve_ingredient_embeddings is the same lookup without
    that guard, for callers (the hybrid ranker) that record the failure.
  - pgvector columns come back from PostgREST as text ("[0.1,0.2,...]"), so
    string values are JSON-decoded before validation.
"""
from __future__ import annotations

import json
from typing import Any, List, Optional, Sequence

from src.recipe_ranker.cleaning import normalize_ingredient_names
from src.recipe_ranker.embeddings.vectors import is_valid_embedding
from src.recipe_ranker.logging_utils import get_logger
from src.recipe_ranker.schema import IngredientEmbedding
from src.recipe_ranker.storage.ports import IngredientStore

logger = get_logger("lookup")


class EmbeddingDecodeError(ValueError):
    """Stored embedding could not be turned into a list of finite floats."""


def decode_embedding(raw: Any) -> Optional[List[float]]:
    """
    Returns:
        list[float], or None when nothing is stored.

    Raises:
        EmbeddingDecodeError when a value is stored but unusable.
    """
    if raw is None:
        return None

    value = raw
    if isinstance(raw, str):
        if not raw.strip():
            return None
        try:
            value = json.loads(raw)
        except ValueError as exc:
            raise EmbeddingDecodeError(f"JSON parse error: {exc}") from exc

    if not isinstance(value, (list, tuple)):
        raise EmbeddingDecodeError(f"not an array after decoding: {type(value).__name__}")
    if not value:
        raise EmbeddingDecodeError("empty array")
    if not is_valid_embedding(value):
        raise EmbeddingDecodeError("non-numeric or non-finite values")
    return [float(v) for v in value]


def get_ingredients_embeddings(store: IngredientStore, ingredient_names: Sequence[str]) -> List[IngredientEmbedding]:
    """
    Look up every name (trimmed, lower-cased) and decode its embedding.

    Returns one IngredientEmbedding per stored row that matched; embedding is
    None when the row has no usable vector. Order is not significant.
    A storage error is logged and yields [].
    """
    try:
        return resolve_ingredient_embeddings(store, ingredient_names)
    except Exception as exc:  # noqa: BLE001
        logger.error(
            "Ingredient embedding lookup failed: %s",
            exc,
            extra={
                "invoking_func": "get_ingredients_embeddings",
                "invoking_purpose": "Resolve ingredient names to embeddings",
                "next_step": "Continue without embeddings",
                "resolution": "Check ingredients table / Supabase connectivity",
            },
        )
        return []


def resolve_ingredient_embeddings(
    store: IngredientStore, ingredient_names: Sequence[str]
) -> List[IngredientEmbedding]:
    """get_ingredients_embeddings without the storage-error guard."""
    names = normalize_ingredient_names(ingredient_names)
    if not names:
        return []

    rows = store.lookup_ingredients_by_name(names)
    if not rows:
        logger.warning(
            "No ingredient rows found for: %s",
            ", ".join(names),
            extra={
                "invoking_func": "resolve_ingredient_embeddings",
                "invoking_purpose": "Resolve ingredient names to embeddings",
                "next_step": "Continue without embeddings",
                "resolution": "",
            },
        )
        return []

    out: List[IngredientEmbedding] = []
    problems: List[str] = []
    for row in rows:
        name = row.get("name") or ""
        try:
            emb = decode_embedding(row.get("embedding"))
        except EmbeddingDecodeError as exc:
            problems.append(f"{name} ({exc})")
            emb = None
        else:
            if emb is None:
                problems.append(f"{name} (null embedding)")
        out.append(IngredientEmbedding(name=name, embedding=emb))

    if problems:
        logger.warning(
            "Ingredients without usable embedding: %s",
            ", ".join(problems),
            extra={
                "invoking_func": "resolve_ingredient_embeddings",
                "invoking_purpose": "Validate decoded embeddings",
                "next_step": "Exclude these from the query vector",
                "resolution": "Backfill ingredients.embedding",
            },
        )

    lengths = sorted({len(i.embedding) for i in out if i.embedding})
    found = sum(1 for i in out if i.embedding)
    logger.info(
        "Resolved %d/%d ingredient embeddings (lengths: %s)",
        found,
        len(rows),
        ", ".join(str(n) for n in lengths) or "-",
        extra={
            "invoking_func": "resolve_ingredient_embeddings",
            "invoking_purpose": "Resolve ingredient names to embeddings",
            "next_step": "Average valid embeddings",
            "resolution": "Mixed lengths are reduced to the dominant one" if len(lengths) > 1 else "",
        },
    )
    return out
