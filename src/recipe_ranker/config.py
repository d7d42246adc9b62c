"""
config.py

Purpose:
    - get_supabase_client(): create a Supabase Python client from environment
      variables.
    - RankerConfig: the ranking knobs (similarity thresholds, blend weights,
      result caps) with defaults and RECIPE_RANKER_* environment overrides.

Usage:
    from src.recipe_ranker.config import get_supabase_client, RankerConfig
"""
from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Dict, Optional

from dotenv import load_dotenv  # Load environment variables from .env file
from supabase import Client, create_client
from supabase.client import ClientOptions

load_dotenv()  # loads .env

ENV_PREFIX = "RECIPE_RANKER_"


def get_supabase_client() -> Client:
    """Create a Supabase client using env vars.

    The ranking core only reads, so the anon key is enough. The service role
    key is accepted as a fallback for local scripts.
    """
    url = os.environ["SUPABASE_URL"]
    key = os.environ.get("SUPABASE_KEY") or os.environ["SUPABASE_SERVICE_ROLE_KEY"]

    timeout = os.environ.get("SUPABASE_TIMEOUT_SECONDS")
    if timeout:
        # A request-level timeout surfaces as a storage error to the ranker.
        options = ClientOptions(postgrest_client_timeout=float(timeout))
        return create_client(url, key, options=options)
    return create_client(url, key)


@dataclass(frozen=True)
class RankerConfig:
    # Similarity search (adaptive threshold relaxation)
    similarity_threshold: float = 0.6
    similarity_floor: float = 0.3
    threshold_step: float = 0.1
    min_similarity_results: int = 5
    similarity_match_count: int = 20

    # Lexical matcher
    candidate_recipe_limit: int = 120
    lexical_top_n: int = 20

    # Hybrid merge
    embedding_weight: float = 0.5
    lexical_weight: float = 0.5
    result_limit: int = 20

    def __post_init__(self) -> None:
        if self.threshold_step <= 0:
            raise ValueError("threshold_step must be positive")
        if self.similarity_floor > self.similarity_threshold:
            raise ValueError("similarity_floor must not exceed similarity_threshold")
        if abs(self.embedding_weight + self.lexical_weight - 1.0) > 1e-9:
            raise ValueError("embedding_weight + lexical_weight must equal 1.0")

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "RankerConfig":
        """Build a config, overriding defaults with RECIPE_RANKER_<FIELD> vars."""
        env = os.environ if environ is None else environ
        overrides = {}
        for f in fields(cls):
            raw = env.get(ENV_PREFIX + f.name.upper())
            if raw is None or not raw.strip():
                continue
            default = f.default
            overrides[f.name] = int(raw) if isinstance(default, int) else float(raw)
        return cls(**overrides)
