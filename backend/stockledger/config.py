# backend/stockledger/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = os.environ.get(name)
    if not value:
        return default
    return tuple(item.strip() for item in value.split(",") if item.strip())


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # State is session-scoped: every app instance gets its own in-memory database
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///:memory:",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    BRANDS = _env_list("STOCKLEDGER_BRANDS", ("Finca Don Rafa", "Yuteco", "Ecotact"))

    LOW_STOCK_THRESHOLD = int(os.environ.get("LOW_STOCK_THRESHOLD", "100"))

    # Historical behavior let order confirmation drive stock negative
    ALLOW_NEGATIVE_STOCK = _env_bool("ALLOW_NEGATIVE_STOCK", False)

    # Insight boundary: "stub" (offline rules) or "http"
    INSIGHTS_PROVIDER = os.environ.get("INSIGHTS_PROVIDER", "stub")
    INSIGHTS_URL = os.environ.get("INSIGHTS_URL")
    INSIGHTS_API_KEY = os.environ.get("INSIGHTS_API_KEY")
    INSIGHTS_TIMEOUT_SECONDS = float(os.environ.get("INSIGHTS_TIMEOUT_SECONDS", "10"))

    SEED_DEMO_DATA = _env_bool("SEED_DEMO_DATA", False)

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    ALLOW_NEGATIVE_STOCK = False
    INSIGHTS_PROVIDER = "stub"
    SEED_DEMO_DATA = False
    LOG_LEVEL = "DEBUG"
