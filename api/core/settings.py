"""
Environment configuration.

Every value has a placeholder default so the app can be imported without a
configured environment. `.env` is loaded once at startup (see `api/main.py`).
"""

from __future__ import annotations

import os

DEFAULT_IAM_URL = "https://iam.cloud.ibm.com/identity/token"


def _env_str(name: str, default: str) -> str:
    return os.environ.get(name, "").strip() or default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def cloudant_id() -> str:
    return _env_str("CLOUDANT_ID", "<cloudant_id>")


def cloudant_apikey() -> str:
    return _env_str("CLOUDANT_IAM_APIKEY", "<cloudant_apikey>")


def cloudant_url() -> str:
    # Explicit URL wins; otherwise derive the legacy account host.
    return _env_str("CLOUDANT_URL", f"https://{cloudant_id()}.cloudant.com").rstrip("/")


def cloudant_iam_url() -> str:
    return _env_str("CLOUDANT_IAM_URL", DEFAULT_IAM_URL)


def cloudant_timeout_s() -> float:
    return _env_float("CLOUDANT_TIMEOUT_S", 30.0)


def cloudant_find_limit() -> int:
    return max(1, _env_int("CLOUDANT_FIND_LIMIT", 1000))


def db_shop() -> str:
    return _env_str("DB_SHOP", "shop")


def db_news_research() -> str:
    return _env_str("DB_NEWS_RESEARCH", "news_research")


def db_news_twitter() -> str:
    return _env_str("DB_NEWS_TWITTER", "news_twitter")


def db_news_politics() -> str:
    return _env_str("DB_NEWS_POLITICS", "news_politics")


def expected_collections() -> list[str]:
    return [db_shop(), db_news_twitter(), db_news_research(), db_news_politics()]


def host() -> str:
    return _env_str("HOST", "0.0.0.0")


def port() -> int:
    return _env_int("PORT", 3000)


def log_level() -> str:
    return _env_str("LOG_LEVEL", "INFO").upper()
