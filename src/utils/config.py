"""
Runtime configuration, read from the environment once at import.
"""

import os


def _flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


DB_PATH = os.getenv("STORE_DB_PATH", "data/store.sqlite")
# seconds a writer waits on a locked database before giving up with Conflict
BUSY_TIMEOUT = float(os.getenv("STORE_BUSY_TIMEOUT", "5"))
SEED_DEMO_DATA = _flag("STORE_SEED", "1")

LANG = os.getenv("STORE_LANG", "ar")
CURRENCY = os.getenv("STORE_CURRENCY", "SAR")

SECRET_KEY = os.getenv("STORE_SECRET", "souq-dev-secret-change-me-before-deploying")
JWT_ALGORITHM = "HS256"
TOKEN_TTL_MINUTES = int(os.getenv("STORE_TOKEN_TTL_MINUTES", str(30 * 24 * 60)))

CART_DIR = os.getenv("STORE_CART_DIR", "data/carts")

RESTOCK_ON_CANCEL = _flag("STORE_RESTOCK_ON_CANCEL")
STRICT_ADMIN_TRANSITIONS = _flag("STORE_STRICT_ADMIN_TRANSITIONS")

LOG_LEVEL = os.getenv("STORE_LOG_LEVEL", "INFO")
DEBUG = bool(os.getenv("DEBUG"))

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
