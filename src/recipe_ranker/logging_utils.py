# logging_utils.py
"""
Shared structured logging utilities.

Goal:
- One place to define:
  * Run / execution ID
  * Log line format
  * Module "purposes" in human language

Format (one line per log entry):
<RunId>|<Date>|<Time>|<Level>|<File:Line>|<Module.Func>|<ModulePurpose>|
<InvokingFunc>|<InvokingFuncPurpose>|<Detail>|<NextStep>|<Resolution>|<END>

Every ranking request logs through here, so a single RunId groups the
embedding lookup, the similarity RPCs and the lexical queries of one process.
"""

from __future__ import annotations

import datetime
import logging
import os
import uuid
from typing import Dict

RUN_ID: str = uuid.uuid4().hex[:8]

DEFAULT_LEVEL_ENV = "RECIPE_RANKER_LOG_LEVEL"


class StructuredFormatter(logging.Formatter):
    """
    Custom formatter that emits a single '|' separated line conforming
    to the log template above.
    """

    # High-level purposes by module name
    MODULE_PURPOSES: Dict[str, str] = {
        "config": "Create Supabase client and ranking knobs from environment",
        "supabase_store": "Read ingredients, recipes and vector matches from Supabase",
        "lookup": "Resolve ingredient names to stored embedding vectors",
        "vectors": "Average and normalize ingredient embeddings into a query vector",
        "lexical": "Score recipes by ingredient name overlap",
        "similarity": "Retrieve recipes by embedding similarity with threshold relaxation",
        "hybrid": "Merge lexical and embedding candidates into one ranked list",
        "catalog": "Browse recipes and ingredients for the UI layer",
        "recommendation_example": "Command-line demo of ingredient based recommendation",
        "check_supabase": "Reachability check for the Supabase URL",
    }

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        """Format log record into structured pipe-delimited format."""
        dt = datetime.datetime.fromtimestamp(record.created)
        date_str = dt.strftime("%Y-%m-%d")
        time_str = dt.strftime("%H:%M:%S")

        run_id = getattr(record, "run_id", RUN_ID)

        level = record.levelname
        code_location = f"{record.filename}:{record.lineno}"
        func_name = record.funcName
        module_name = record.module
        module_purpose = self.MODULE_PURPOSES.get(module_name, "")

        # Optional extra context supplied via logger calls
        invoking_func = getattr(record, "invoking_func", "")
        invoking_purpose = getattr(record, "invoking_purpose", "")
        next_step = getattr(record, "next_step", "")
        resolution = getattr(record, "resolution", "")

        detail = record.getMessage()
        if record.exc_info:
            detail = f"{detail} | EXC={record.exc_info[1]!r}"

        return (
            f"{run_id}|{date_str}|{time_str}|{level}|{code_location}|"
            f"{module_name}.{func_name}|{module_purpose}|"
            f"{invoking_func}|{invoking_purpose}|"
            f"{detail}|{next_step}|{resolution}|<END>"
        )


def _level_from_env(default: int) -> int:
    raw = (os.environ.get(DEFAULT_LEVEL_ENV) or "").strip().upper()
    if not raw:
        return default
    level = logging.getLevelName(raw)
    return level if isinstance(level, int) else default


def init_logging(level: int = logging.INFO) -> None:
    """
    Initialize root logger once with our StructuredFormatter.

    Call get_logger() from modules instead of calling logging.basicConfig()
    everywhere, so configuration stays central.
    """
    root = logging.getLogger()
    if root.handlers:
        # Already configured – avoid double handlers in REPL / pytest
        return

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())
    root.addHandler(handler)
    root.setLevel(_level_from_env(level))


def get_logger(name: str) -> logging.Logger:
    """
    Return a logger configured with structured formatting.

    Usage:
        logger = get_logger("lexical")
        logger.info(
            "Scored %d candidate recipes",
            n,
            extra={
                "invoking_func": "recommend_recipes_by_lexical_matching",
                "invoking_purpose": "Rank recipes by ingredient overlap",
                "next_step": "Sort and cap results",
                "resolution": "",
            },
        )
    """
    init_logging()
    return logging.getLogger(name)
