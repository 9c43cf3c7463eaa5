# Fichier: progression/core/config.py
from pydantic_settings import BaseSettings
from typing import List
from pydantic import ValidationError, field_validator
import sys

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./progression_local.db"
    BACKEND_CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:8000",
        "http://127.0.0.1:5173",
    ]

    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # La clé secrète utilisée pour vérifier les JWTs.
    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Performance instrumentation
    SQLALCHEMY_SLOW_QUERY_THRESHOLD_MS: int = 300
    DATABASE_CONNECTION_MAX_RETRIES: int = 3
    DATABASE_CONNECTION_RETRY_BACKOFF_SECONDS: float = 1.0

    # --- Moteur de progression ---
    CONFLICT_RETRY_ATTEMPTS: int = 3
    DUE_ITEMS_DEFAULT_LIMIT: int = 20
    INTRODUCTION_BATCH_SIZE: int = 10

    class Config:
        env_file = ".env"

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def _normalize_database_url(cls, value: str) -> str:
        """Ensure Postgres URLs use an explicit synchronous driver.

        Managed Postgres providers still expose database URLs using the legacy
        ``postgres://`` scheme, which SQLAlchemy no longer accepts. Those URLs
        (and bare ``postgresql://``) are rewritten to ``postgresql+psycopg2://``
        while SQLite and other backends stay untouched.
        """

        if not isinstance(value, str):
            return value

        replacements = {
            "postgres://": "postgresql+psycopg2://",
            "postgresql://": "postgresql+psycopg2://",
        }

        for prefix, target in replacements.items():
            if value.startswith(prefix):
                return target + value[len(prefix) :]

        return value

    @field_validator("CONFLICT_RETRY_ATTEMPTS", "DUE_ITEMS_DEFAULT_LIMIT", "INTRODUCTION_BATCH_SIZE")
    @classmethod
    def _ensure_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be a positive integer")
        return value

def _log_settings_validation_error(exc: ValidationError) -> None:
    """Pretty-print missing or invalid environment variables.

    The exception bubbles up during module import, which makes it hard to spot
    the variable responsible. The structured error payload is printed before
    the exception is re-raised.
    """

    header = "Configuration error while loading environment variables:"
    print(header, file=sys.stderr)

    details = exc.errors()
    if details:
        for error in details:
            location = ".".join(str(part) for part in error.get("loc", ()))
            message = error.get("msg", "Unknown validation error")
            type_name = error.get("type")
            hint_parts = [message]
            if type_name:
                hint_parts.append(f"(type={type_name})")
            hint = " ".join(hint_parts)
            print(f"  - {location}: {hint}", file=sys.stderr)
    else:
        print(exc, file=sys.stderr)


try:
    settings = Settings()
except ValidationError as exc:  # pragma: no cover - exercised at runtime
    _log_settings_validation_error(exc)
    raise
