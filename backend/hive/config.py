"""Runtime configuration read from the process environment."""

import os

# purpose: single place for environment-driven settings shared by the app, services and workers
# status: active


def _env_bool(key: str, default: bool = False) -> bool:
    value = os.getenv(key)
    if not value:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if not value:
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise RuntimeError(f"Invalid numeric value for {key}: {value}") from exc


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./hive.db")
TESTING = os.getenv("TESTING") == "1"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
SENTRY_DSN = os.getenv("SENTRY_DSN")

_origins = os.getenv("API_CORS_ORIGINS", "")
CORS_ORIGINS = [origin.strip() for origin in _origins.split(",") if origin.strip()] or [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

USE_REAL_AI = _env_bool("USE_REAL_AI", False)
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4-turbo-preview")
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1").rstrip("/")

# seconds; a timed out generation is handled like any other generator failure
STRUCTURE_GENERATION_TIMEOUT = _env_float("STRUCTURE_GENERATION_TIMEOUT", 60.0)
# transient provider errors are retried by the OpenAI client with backoff
OPENAI_MAX_RETRIES = int(_env_float("OPENAI_MAX_RETRIES", 3))

# slowapi limit string applied per client address to the generation endpoints
STRUCTURE_GENERATE_RATE_LIMIT = os.getenv("STRUCTURE_GENERATE_RATE_LIMIT", "10/minute")
