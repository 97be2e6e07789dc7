# backend/stockroom/config.py
from __future__ import annotations
import os


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/stockroom.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",  # optional alternative location
        "sqlite:///stockroom.sqlite3",  # default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Role unlock codes for self-registration. Empty means the role cannot be self-assigned.
    ADMIN_CODE = os.environ.get("ADMIN_CODE", "")
    STAFF_CODE = os.environ.get("STAFF_CODE", "")
    COORDINATOR_CODE = os.environ.get("COORDINATOR_CODE", "")

    # List endpoints: default page size when ?limit is omitted
    PAGE_SIZE = _env_int("PAGE_SIZE", 20)

    # Analytics: assumed unit cost as a share of market price when a product has no purchases
    ASSUMED_COST_RATIO = _env_float("ASSUMED_COST_RATIO", 0.75)

    ACCESS_TOKEN_TTL_MINUTES = _env_int("ACCESS_TOKEN_TTL_MINUTES", 60)
    REFRESH_TOKEN_TTL_DAYS = _env_int("REFRESH_TOKEN_TTL_DAYS", 30)

    BCRYPT_ROUNDS = _env_int("BCRYPT_ROUNDS", 12)

    CORS_ORIGINS = {
        origin.strip()
        for origin in os.environ.get(
            "CORS_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173",
        ).split(",")
        if origin.strip()
    }


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    BCRYPT_ROUNDS = 4
    ADMIN_CODE = "admin-unlock"
    STAFF_CODE = "staff-unlock"
    COORDINATOR_CODE = "coordinator-unlock"
