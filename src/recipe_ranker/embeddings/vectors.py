"""
vectors.py

Embedding arithmetic for the query vector:
  calculate_average_embedding -> normalize_embedding

Vectors are plain list[float]; dimensionality is whatever the stored
embeddings carry (discovered at runtime, never hardcoded).
"""
from __future__ import annotations

import math
from collections import Counter
from typing import List, Optional, Sequence

from src.recipe_ranker.logging_utils import get_logger

logger = get_logger("vectors")


def is_valid_embedding(vec: object) -> bool:
    """A list/tuple, non-empty, every element a finite int/float (not bool)."""
    if not isinstance(vec, (list, tuple)) or not vec:
        return False
    for v in vec:
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            return False
        if not math.isfinite(v):
            return False
    return True


def dominant_length(embeddings: Sequence[Sequence[float]]) -> int:
    """
    Most frequent vector length. Ties go to the length seen first, which
    keeps the result deterministic for a given input order.
    """
    counts = Counter(len(e) for e in embeddings)
    best = 0
    best_count = 0
    for e in embeddings:
        n = len(e)
        if counts[n] > best_count:
            best, best_count = n, counts[n]
    return best


def calculate_average_embedding(embeddings: Sequence[Sequence[float]]) -> Optional[List[float]]:
    """
    Element-wise mean of the majority-length subset.

    Returns None (never raises) when there is nothing valid to average.
    Vectors whose length differs from the dominant length are dropped and
    counted in a warning; they are never averaged together.
    """
    if not embeddings:
        return None

    valid = [list(e) for e in embeddings if is_valid_embedding(e)]
    if not valid:
        logger.warning(
            "No valid embedding vectors among %d inputs",
            len(embeddings),
            extra={
                "invoking_func": "calculate_average_embedding",
                "invoking_purpose": "Build query vector from ingredient embeddings",
                "next_step": "Skip embedding path",
                "resolution": "Check ingredients.embedding contents",
            },
        )
        return None

    dim = dominant_length(valid)
    consistent = [e for e in valid if len(e) == dim]

    dropped = len(valid) - len(consistent)
    if dropped:
        logger.warning(
            "Dropped %d embedding(s) with inconsistent length (dominant length: %d)",
            dropped,
            dim,
            extra={
                "invoking_func": "calculate_average_embedding",
                "invoking_purpose": "Build query vector from ingredient embeddings",
                "next_step": "Average the consistent subset",
                "resolution": "Re-embed ingredients with a single model",
            },
        )

    acc = [0.0] * dim
    for e in consistent:
        for i, v in enumerate(e):
            acc[i] += float(v)
    n = float(len(consistent))
    avg = [v / n for v in acc]

    logger.debug(
        "Averaged %d vectors of length %d",
        len(consistent),
        dim,
        extra={
            "invoking_func": "calculate_average_embedding",
            "invoking_purpose": "Build query vector from ingredient embeddings",
            "next_step": "Normalize",
            "resolution": "",
        },
    )
    return avg


def l2_norm(vec: Sequence[float]) -> float:
    return math.sqrt(sum(float(v) * float(v) for v in vec))


def normalize_embedding(vec: Sequence[float]) -> List[float]:
    """Scale to unit length; a zero vector comes back unchanged."""
    magnitude = l2_norm(vec)
    if magnitude == 0:
        return list(vec)
    return [float(v) / magnitude for v in vec]


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    if not a or not b or len(a) != len(b):
        return 0.0
    dot = 0.0
    na = 0.0
    nb = 0.0
    for x, y in zip(a, b):
        dot += float(x) * float(y)
        na += float(x) * float(x)
        nb += float(y) * float(y)
    if na <= 0 or nb <= 0:
        return 0.0
    return dot / (math.sqrt(na) * math.sqrt(nb))
