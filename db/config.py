"""
Shared environment-driven configuration helpers for the database and crawler.
"""

from __future__ import annotations

import os
from pathlib import Path

_ENV_FILES = (".env", ".env.local")
_CLOUD_LIKE_ENVS = {"prod", "production", "staging", "cloud"}


def load_env_files(project_root: Path | None = None) -> None:
    """
    Load simple KEY=VALUE pairs from `.env` and `.env.local` (if present).
    Existing process environment variables are not overwritten.
    """

    root = project_root or Path(__file__).resolve().parents[1]
    for filename in _ENV_FILES:
        env_path = root / filename
        if not env_path.exists():
            continue

        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if line.startswith("export "):
                line = line[len("export ") :].strip()
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key and key not in os.environ:
                os.environ[key] = value


def normalize_postgres_url(url: str) -> str:
    """
    Normalize postgres URLs to SQLAlchemy's psycopg driver form.
    """

    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return "postgresql+psycopg://" + url[len(prefix) :]
    return url


def resolve_database_url() -> str:
    """
    Resolve the database URL.

    Priority:
    1) DATABASE_URL
    2) CLOUD_DATABASE_URL when ENVIRONMENT is cloud-like
    3) LOCAL_DATABASE_URL
    """

    load_env_files()

    environment = os.getenv("ENVIRONMENT", "local").strip().lower()
    candidates = ["DATABASE_URL"]
    if environment in _CLOUD_LIKE_ENVS:
        candidates.append("CLOUD_DATABASE_URL")
    candidates.append("LOCAL_DATABASE_URL")

    for name in candidates:
        value = (os.getenv(name) or "").strip()
        if value:
            return normalize_postgres_url(value)

    raise RuntimeError(
        "No database URL configured. Set DATABASE_URL, or configure "
        "LOCAL_DATABASE_URL / CLOUD_DATABASE_URL."
    )


def get_str_env(name: str, default: str) -> str:
    """Stripped value of `name`; blank or unset falls back to `default`."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def get_int_env(name: str, default: int) -> int:
    try:
        return int(get_str_env(name, str(default)))
    except ValueError:
        return default


def get_float_env(name: str, default: float) -> float:
    try:
        return float(get_str_env(name, str(default)))
    except ValueError:
        return default


def get_bool_env(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}
