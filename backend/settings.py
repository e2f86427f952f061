"""Runtime configuration.

Values can be overridden in a .env file in the backend root, e.g.:

CACHE_TTL_SECONDS=1800
FETCH_TIMEOUT_SECONDS=10
PERSIST_ANALYSES=0
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(dotenv_path=Path(__file__).resolve().parent / ".env")


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() not in {"0", "false", "no", "off"}


CACHE_TTL_SECONDS = float(os.getenv("CACHE_TTL_SECONDS", "3600"))
CACHE_MAX_ENTRIES = int(os.getenv("CACHE_MAX_ENTRIES", "500"))
FETCH_TIMEOUT_SECONDS = float(os.getenv("FETCH_TIMEOUT_SECONDS", "12"))
FETCH_MAX_ATTEMPTS = int(os.getenv("FETCH_MAX_ATTEMPTS", "3"))
MAX_PAGE_BYTES = int(os.getenv("MAX_PAGE_BYTES", str(5 * 1024 * 1024)))
MAX_RECOMMENDATIONS = int(os.getenv("MAX_RECOMMENDATIONS", "8"))
PERSIST_ANALYSES = _env_flag("PERSIST_ANALYSES", "1")
DB_PATH = Path(os.getenv("DB_PATH", str(Path(__file__).parent / "seo_audit.db")))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"

USER_AGENTS = [
    (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/122.0.0.0 Safari/537.36"
    ),
    (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/122.0.0.0 Safari/537.36"
    ),
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
]
