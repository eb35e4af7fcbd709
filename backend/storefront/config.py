# backend/storefront/config.py
from __future__ import annotations
import os


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


def _origins_env() -> set[str]:
    origins = {
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:4173",
        "http://127.0.0.1:4173",
    }
    web_origin = os.environ.get("WEB_ORIGIN")
    if web_origin:
        origins.add(web_origin.strip())
    extra = os.environ.get("CORS_ORIGINS", "")
    origins.update(o.strip() for o in extra.split(",") if o.strip())
    return origins


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/storefront.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location (e.g. postgresql+psycopg://...)
        "sqlite:///storefront.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

    # Origins allowed to call the API from the browser checkout
    CORS_ORIGINS = _origins_env()

    # Fees the checkout adds on top of the cart subtotal (cents)
    BASE_FEE_CENTS = _int_env("BASE_FEE_CENTS", 900)
    DELIVERY_FEE_CENTS = _int_env("DELIVERY_FEE_CENTS", 1500)
