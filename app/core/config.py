# Fichier: pharmia/backend/app/core/config.py
from pydantic_settings import BaseSettings
from typing import Optional, List
from pydantic import ValidationError, field_validator
import sys

class Settings(BaseSettings):
    DATABASE_URL: str
    GOOGLE_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-1.5-flash"
    BACKEND_CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
    ]

    ENVIRONMENT: str = "development"

    # La clé secrète pour signer les JWTs.
    SECRET_KEY: str

    # --- Auth configuration ---
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Compte administrateur créé au démarrage (optionnel)
    DEFAULT_ADMIN_EMAIL: Optional[str] = None
    DEFAULT_ADMIN_USERNAME: str = "admin"
    DEFAULT_ADMIN_PASSWORD: Optional[str] = None

    # Coach IA: délai maximal d'un appel au fournisseur, distinct du reste de la requête
    AI_COACH_TIMEOUT_SECONDS: float = 20.0

    # Nombre de tentatives pour le find-or-create des thèmes / systèmes
    TAXONOMY_UPSERT_MAX_ATTEMPTS: int = 3

    # Performance instrumentation
    SQLALCHEMY_SLOW_QUERY_THRESHOLD_MS: int = 300

    class Config:
        env_file = ".env"

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def _normalize_database_url(cls, value: str) -> str:
        """Map legacy and async-driver URLs onto the synchronous drivers we ship.

        Managed Postgres providers still hand out ``postgres://`` URLs, which
        SQLAlchemy no longer understands, and older ``.env`` files carry the
        ``+asyncpg`` / ``+aiosqlite`` variants. The store runs on synchronous
        sessions only, so everything is rewritten to ``postgresql+psycopg2://``
        or plain ``sqlite://``.
        """

        if not isinstance(value, str):
            return value

        replacements = {
            "postgres://": "postgresql+psycopg2://",
            "postgresql://": "postgresql+psycopg2://",
            "postgresql+asyncpg://": "postgresql+psycopg2://",
            "postgresql+psycopg://": "postgresql+psycopg2://",
            "sqlite+aiosqlite://": "sqlite://",
        }

        for prefix, target in replacements.items():
            if value.startswith(prefix):
                return target + value[len(prefix) :]

        return value

def _log_settings_validation_error(exc: ValidationError) -> None:
    """Pretty-print missing or invalid environment variables.

    The exception bubbles up during module import, which makes it hard to
    spot which variable is responsible. We print one line per offending
    field before re-raising.
    """

    header = "Configuration error while loading environment variables:"
    print(header, file=sys.stderr)

    details = exc.errors()
    if details:
        for error in details:
            location = ".".join(str(part) for part in error.get("loc", ()))
            message = error.get("msg", "Unknown validation error")
            type_name = error.get("type")
            hint = f"{message} (type={type_name})" if type_name else message
            print(f"  - {location}: {hint}", file=sys.stderr)
    else:
        print(exc, file=sys.stderr)


try:
    settings = Settings()
except ValidationError as exc:  # pragma: no cover - exercised at runtime
    _log_settings_validation_error(exc)
    raise
