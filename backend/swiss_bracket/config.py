"""
Runtime configuration.

All settings are read from environment variables (a local .env is loaded first).
"""
import os
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()


def get_bool_env(key: str, default: bool = False) -> bool:
    """Get a boolean value from environment variable."""
    value = os.getenv(key, str(default)).lower()
    return value in ("true", "1", "yes", "on")


def get_optional_int_env(key: str) -> Optional[int]:
    value = os.getenv(key, "").strip()
    if not value:
        return None
    return int(value)


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./tournament.db")
SQL_ECHO = get_bool_env("SQL_ECHO", False)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Fixed seed makes every shuffle reproducible
PAIRING_SEED = get_optional_int_env("PAIRING_SEED")

CORS_ORIGINS: List[str] = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
_extra = os.getenv("CORS_ORIGINS", "")
if _extra:
    CORS_ORIGINS.extend(o.strip() for o in _extra.split(",") if o.strip())
