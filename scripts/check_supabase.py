"""Reachability check for SUPABASE_URL and the ranking RPCs' REST endpoint.

Run:
  python -m scripts.check_supabase
"""
import os
import sys

import dotenv
import httpx

from src.recipe_ranker.logging_utils import get_logger

dotenv.load_dotenv()

logger = get_logger("check_supabase")

EXTRA = {
    "invoking_func": "__main__",
    "invoking_purpose": "Simple reachability check for Supabase URL",
}


def main() -> int:
    url = os.environ.get("SUPABASE_URL")
    if not url:
        logger.error(
            "SUPABASE_URL environment variable not set",
            extra={**EXTRA, "next_step": "Set SUPABASE_URL in environment or .env", "resolution": ""},
        )
        return 1

    key = os.environ.get("SUPABASE_KEY") or os.environ.get("SUPABASE_SERVICE_ROLE_KEY") or ""
    headers = {"apikey": key} if key else {}
    timeout = float(os.environ.get("SUPABASE_TIMEOUT_SECONDS") or 10)

    try:
        r = httpx.get(url.rstrip("/") + "/rest/v1/", headers=headers, timeout=timeout)
    except httpx.HTTPError as exc:
        logger.error(
            "HTTP request to SUPABASE_URL failed: %s",
            exc,
            extra={**EXTRA, "next_step": "Check network / URL", "resolution": ""},
            exc_info=True,
        )
        return 1

    logger.info(
        "SUPABASE_URL REST status: %d",
        r.status_code,
        extra={**EXTRA, "next_step": "", "resolution": "" if r.status_code < 400 else "Check SUPABASE_KEY"},
    )
    return 0 if r.status_code < 400 else 1


if __name__ == "__main__":
    sys.exit(main())
