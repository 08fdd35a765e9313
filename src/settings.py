"""
Runtime configuration.
Built from the process environment (and an optional .env file) once per
request, then passed explicitly to the pieces that need it.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Tuple

from dotenv import load_dotenv

from constants import DEFAULT_SYNC_TABLES

GROQ_API_URL = "https://api.groq.com/openai/v1/chat/completions"
GROQ_MODEL = "llama-3.3-70b-versatile"


def _normalize_db_url(value: str) -> str:
    db_url = (value or "").strip()
    if db_url.startswith("postgres://"):
        db_url = db_url.replace("postgres://", "postgresql://", 1)
    return db_url


def get_conn_str() -> str:
    """Return PostgreSQL connection string.

    Checks POSTGRES_CONNECTION_STRING first, falls back to DATABASE_URL
    (Supabase / Heroku style).  Normalises postgres:// to postgresql://.
    """
    load_dotenv()
    return _normalize_db_url(
        os.getenv("POSTGRES_CONNECTION_STRING") or os.getenv("DATABASE_URL") or ""
    )


def _csv(value: str) -> Tuple[str, ...]:
    return tuple(v.strip() for v in value.split(",") if v.strip())


@dataclass(frozen=True)
class Settings:
    conn_str: str
    groq_api_key: str
    groq_api_url: str = GROQ_API_URL
    groq_model: str = GROQ_MODEL
    completion_timeout: float = 30.0
    sync_tables: Tuple[str, ...] = DEFAULT_SYNC_TABLES
    frontend_origins: Tuple[str, ...] = ("*",)
    run_startup_migrations: bool = False


def load_settings() -> Settings:
    """Read settings from the environment.

    A missing GROQ_API_KEY is not an error here; the completion client
    raises when it is actually needed.
    """
    load_dotenv()
    return Settings(
        conn_str=get_conn_str(),
        groq_api_key=os.getenv("GROQ_API_KEY", "").strip(),
        groq_api_url=os.getenv("GROQ_API_URL", GROQ_API_URL),
        groq_model=os.getenv("GROQ_MODEL", GROQ_MODEL),
        completion_timeout=float(os.getenv("COMPLETION_TIMEOUT_SECONDS", "30")),
        sync_tables=_csv(os.getenv("SYNC_TABLES", "")) or DEFAULT_SYNC_TABLES,
        frontend_origins=_csv(os.getenv("FRONTEND_ORIGINS", "")) or ("*",),
        run_startup_migrations=os.getenv("RUN_STARTUP_MIGRATIONS", "0").strip() == "1",
    )
