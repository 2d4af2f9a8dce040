"""
Environment-driven settings.

Values are read on each call so tests can monkeypatch the environment.
"""

from __future__ import annotations

import os


def _env_str(name: str, default: str) -> str:
    return os.environ.get(name, default).strip() or default


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


def app_env() -> str:
    return _env_str("APP_ENV", "development")


def log_level() -> str:
    return _env_str("LOG_LEVEL", "INFO").upper()


def port() -> int:
    return _env_int("PORT", 5000)


def frontend_url() -> str:
    return _env_str("FRONTEND_URL", "http://localhost:3000")


def db_host() -> str:
    return _env_str("DB_HOST", "localhost")


def db_port() -> int:
    return _env_int("DB_PORT", 5432)


def db_user() -> str:
    return _env_str("DB_USER", "postgres")


def db_password() -> str:
    # Empty password is a valid value, so no fallback here.
    return os.environ.get("DB_PASSWORD", "")


def db_name() -> str:
    return _env_str("DB_NAME", "portfolio_db")


def db_pool_min() -> int:
    return max(_env_int("DB_POOL_MIN", 0), 0)


def db_pool_max() -> int:
    return max(_env_int("DB_POOL_MAX", 10), 1)


def db_acquire_timeout_s() -> float:
    return _env_float("DB_ACQUIRE_TIMEOUT_S", 60.0)


def db_command_timeout_s() -> float:
    return _env_float("DB_COMMAND_TIMEOUT_S", 30.0)


def bcrypt_rounds() -> int:
    # bcrypt accepts 4..31.
    return min(max(_env_int("BCRYPT_ROUNDS", 12), 4), 31)
