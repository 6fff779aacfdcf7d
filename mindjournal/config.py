"""
config.py - Environment configuration for the Mind Journal service

Loads a `.env` file (if one can be found) on import and exposes a frozen
`Settings` value built from environment variables. Everything that used to be
a module-level constant (API key, model fallback order, backend choice, GCP
project) lives here so it can be injected instead of read globally.

Environment variables:
- GEMINI_API_KEY: secret for the Generative Language REST API.
- GEMINI_ENDPOINT: base URL that model ids are appended to.
- GEMINI_MODELS: comma separated fallback order, most capable first.
- GENERATION_BACKEND: "gemini_api" (REST, default) or "vertex".
- GCP_PROJECT / GCP_LOCATION: used by the Vertex backend and Firestore.
- GENERATION_TIMEOUT_SECONDS: per-request timeout for outbound model calls.
- COUNSELOR_NAME: persona name used by the chat prompt and context window.
- LOCAL_TIMEZONE: timezone used to bucket entries into calendar days.
- JOURNAL_STORE: "firestore" (default) or "memory".
- LOG_LEVEL: root log level.
"""

import os
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple

from dotenv import load_dotenv, find_dotenv

_logger = logging.getLogger(__name__)
_logger.addHandler(logging.NullHandler())

# --- Load environment variables on import ---
try:
    _env_path = find_dotenv(usecwd=True)
    if _env_path:
        load_dotenv(_env_path, override=False)
        _logger.debug("Loaded .env from %s", _env_path)
    else:
        load_dotenv(override=False)
        _logger.debug("No .env found with find_dotenv(); attempted default load.")
except Exception as e:
    _logger.warning("Error loading .env: %s", e)

DEFAULT_GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models"

# Priority order: try the best model first, degrade to cheaper ones.
DEFAULT_GEMINI_MODELS: Tuple[str, ...] = (
    "gemini-2.5-pro",
    "gemini-2.5-flash",
    "gemini-2.0-flash-lite",
)

BACKEND_GEMINI_API = "gemini_api"
BACKEND_VERTEX = "vertex"
SUPPORTED_BACKENDS = (BACKEND_GEMINI_API, BACKEND_VERTEX)

STORE_FIRESTORE = "firestore"
STORE_MEMORY = "memory"


@dataclass(frozen=True)
class Settings:
    gemini_api_key: Optional[str] = None
    gemini_endpoint: str = DEFAULT_GEMINI_ENDPOINT
    model_ids: Tuple[str, ...] = DEFAULT_GEMINI_MODELS
    generation_backend: str = BACKEND_GEMINI_API
    gcp_project: Optional[str] = None
    gcp_location: str = "us-central1"
    generation_timeout_seconds: float = 60.0
    counselor_name: str = "Mira"
    local_timezone: str = "UTC"
    journal_store: str = STORE_FIRESTORE
    log_level: str = "INFO"


def parse_model_ids(raw: Optional[str]) -> Tuple[str, ...]:
    """
    Turn a comma separated env value into an ordered, de-blanked tuple.
    Falls back to DEFAULT_GEMINI_MODELS when nothing usable is given.
    """
    if not raw:
        return DEFAULT_GEMINI_MODELS
    ids = tuple(part.strip() for part in raw.split(",") if part.strip())
    return ids or DEFAULT_GEMINI_MODELS


def _float_env(name: str, default: float) -> float:
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        _logger.warning("Ignoring non-numeric %s=%r, using %s", name, value, default)
        return default


def load_settings() -> Settings:
    """Build a Settings value from the current environment."""
    backend = os.environ.get("GENERATION_BACKEND", BACKEND_GEMINI_API).strip().lower()
    if backend not in SUPPORTED_BACKENDS:
        _logger.warning("Unknown GENERATION_BACKEND '%s', falling back to %s", backend, BACKEND_GEMINI_API)
        backend = BACKEND_GEMINI_API

    settings = Settings(
        gemini_api_key=os.environ.get("GEMINI_API_KEY"),
        gemini_endpoint=os.environ.get("GEMINI_ENDPOINT", DEFAULT_GEMINI_ENDPOINT).rstrip("/"),
        model_ids=parse_model_ids(os.environ.get("GEMINI_MODELS")),
        generation_backend=backend,
        gcp_project=os.environ.get("GCP_PROJECT"),
        gcp_location=os.environ.get("GCP_LOCATION", "us-central1"),
        generation_timeout_seconds=_float_env("GENERATION_TIMEOUT_SECONDS", 60.0),
        counselor_name=os.environ.get("COUNSELOR_NAME", "Mira"),
        local_timezone=os.environ.get("LOCAL_TIMEZONE", "UTC"),
        journal_store=os.environ.get("JOURNAL_STORE", STORE_FIRESTORE).strip().lower(),
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    )

    _logger.debug(
        "backend=%s, models=%s, api_key_set=%s, store=%s",
        settings.generation_backend,
        ",".join(settings.model_ids),
        bool(settings.gemini_api_key),
        settings.journal_store,
    )
    return settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
