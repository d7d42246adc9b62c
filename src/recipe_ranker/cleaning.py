from __future__ import annotations

"""
cleaning.py

Purpose:
    Deterministic text helpers for ingredient names typed by users.

    Two normal forms are used across the ranking core:
      - lookup form:   trimmed + lower-cased (what we send to ilike filters)
      - compact form:  lookup form with every whitespace removed
                       (what the lexical matcher compares, so "돼지 고기"
                       and "돼지고기" are the same ingredient)
"""

import math
import re
from typing import Iterable, List, Optional

_WS = re.compile(r"\s+")

# PostgREST uses these as separators inside or=(...) filter strings.
_FILTER_RESERVED = re.compile(r'[,()"\\]')


def normalize_ingredient_name(name: Optional[str]) -> str:
    if not isinstance(name, str):
        return ""
    return _WS.sub(" ", name).strip().lower()


def compact_ingredient_name(name: Optional[str]) -> str:
    return _WS.sub("", normalize_ingredient_name(name))


def normalize_ingredient_names(names: Iterable[Optional[str]]) -> List[str]:
    """Lookup-form names, blanks dropped, duplicates removed (order kept)."""
    seen = set()
    out: List[str] = []
    for n in names or []:
        t = normalize_ingredient_name(n)
        if not t or t in seen:
            continue
        seen.add(t)
        out.append(t)
    return out


def compact_ingredient_names(names: Iterable[Optional[str]]) -> List[str]:
    seen = set()
    out: List[str] = []
    for n in names or []:
        t = compact_ingredient_name(n)
        if not t or t in seen:
            continue
        seen.add(t)
        out.append(t)
    return out


def filter_safe(value: str) -> str:
    """Strip characters that would break a PostgREST or=(...) filter."""
    return _FILTER_RESERVED.sub("", value).strip()


def parse_user_ingredients(text: Optional[str]) -> List[str]:
    """Split a comma separated ingredient string typed in the search box."""
    if not text:
        return []
    return [p.strip() for p in text.split(",") if p.strip()]


def similarity_to_percent(similarity: float) -> str:
    """0.8234 -> '82.3%' (one decimal place)."""
    value = math.floor(float(similarity) * 1000 + 0.5) / 10
    return f"{value:g}%"
