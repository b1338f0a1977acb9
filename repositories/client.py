"""
Storage configuration and Supabase client construction.

This module contains *only* configuration loading and the database connection
setup. Nothing is created at import time: callers build a Settings object and
pass the resulting client into the repository classes, and whoever creates the
client is responsible for closing it.

Environment variables:
- STORAGE_BACKEND: "supabase" (default) or "memory"
- SUPABASE_URL: Your Supabase project URL (required for the supabase backend)
- SUPABASE_KEY: Your Supabase API key (use a server-side key only on the backend)
- LOG_LEVEL: logging level name (default: INFO)
- CORS_ORIGINS: comma separated list of allowed origins (default: *)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

# The dependency is `supabase` (supabase-py). If your editor can't resolve it,
# install it in your environment: `pip install supabase`.
from supabase import Client, create_client  # type: ignore[import-not-found]

logger = logging.getLogger(__name__)

# Look for .env in the project root directory
_ENV_PATH = Path(__file__).parent.parent / ".env"

STORAGE_BACKENDS: Tuple[str, ...] = ("supabase", "memory")


@dataclass(frozen=True, slots=True)
class Settings:
    storage_backend: str = "supabase"
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    log_level: str = "INFO"
    cors_origins: Tuple[str, ...] = ("*",)


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from the environment.

    When `environ` is None the project .env file is loaded first and os.environ
    is read; tests pass an explicit mapping instead.

    Raises:
        RuntimeError: unknown backend or missing Supabase credentials.
    """

    if environ is None:
        load_dotenv(dotenv_path=_ENV_PATH)
        environ = os.environ

    backend = environ.get("STORAGE_BACKEND", "supabase").strip().lower()
    if backend not in STORAGE_BACKENDS:
        raise RuntimeError(
            f"Unsupported STORAGE_BACKEND: {backend!r}. "
            f"Use one of: {', '.join(STORAGE_BACKENDS)}."
        )

    supabase_url = environ.get("SUPABASE_URL") or None
    supabase_key = environ.get("SUPABASE_KEY") or None

    if backend == "supabase":
        if not supabase_url:
            raise RuntimeError(
                "Missing environment variable: SUPABASE_URL. "
                "Set SUPABASE_URL to your Supabase project URL."
            )
        if not supabase_key:
            raise RuntimeError(
                "Missing environment variable: SUPABASE_KEY. "
                "Set SUPABASE_KEY to your Supabase API key."
            )

    origins = tuple(
        origin.strip()
        for origin in environ.get("CORS_ORIGINS", "*").split(",")
        if origin.strip()
    )

    return Settings(
        storage_backend=backend,
        supabase_url=supabase_url,
        supabase_key=supabase_key,
        log_level=environ.get("LOG_LEVEL", "INFO").upper(),
        cors_origins=origins or ("*",),
    )


def create_supabase_client(settings: Settings) -> Client:
    """Create the official Supabase client for the configured project."""

    if not settings.supabase_url or not settings.supabase_key:
        raise RuntimeError("Supabase credentials are not configured")
    logger.info("Connecting to Supabase", extra={"supabase_url": settings.supabase_url[:30]})
    return create_client(settings.supabase_url, settings.supabase_key)


def close_supabase_client(client: Client) -> None:
    """Release the HTTP session held by the PostgREST client."""

    postgrest = client.postgrest
    closer = getattr(postgrest, "close", None)
    if callable(closer):
        closer()
    logger.info("Supabase client closed")


__all__ = [
    "Settings",
    "load_settings",
    "create_supabase_client",
    "close_supabase_client",
]
