import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Imports de l'application
from app.api.api import api_router
from app.core.ai_service import GeminiProvider
from app.core.config import settings
from app.core.errors import PharmiaError
from app.db.initial_data import init_db
from app.db.migrations import run_migrations
from app.db.session import Database

# --- Configuration du logging ---
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def _sanitize_origin(origin: str | None) -> str | None:
    if not origin:
        return None
    value = origin.strip()
    if not value:
        return None
    if not value.startswith("http"):
        value = f"https://{value}"
    return value.rstrip("/")


def _cors_origins() -> list[str]:
    origins = sorted({o for o in (_sanitize_origin(v) for v in settings.BACKEND_CORS_ORIGINS) if o})
    logger.info("CORS origins configurés: %s", origins)
    return origins


def _prepare_database(database: Database) -> None:
    logger.info("Vérification et création des tables de la base de données...")
    database.create_all()
    run_migrations(database.engine)
    with database.session() as db:
        init_db(db)
    logger.info("✅ Base de données prête.")


# --- Gestionnaires d'erreurs ---
async def pharmia_error_handler(request: Request, exc: PharmiaError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload(), headers=headers)


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        details.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return JSONResponse(
        status_code=400,
        content={"kind": "validation_error", "message": "; ".join(details) or "Requête invalide."},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Erreur inattendue sur %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"kind": "internal_error", "message": "Erreur interne du serveur."},
    )


def create_app(
    database: Optional[Database] = None,
    ai_provider: Optional[GeminiProvider] = None,
) -> FastAPI:
    """Construit l'application; ``database`` / ``ai_provider`` sont injectables (tests, scripts)."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = getattr(app.state, "database", None) is None
        if owned:
            app.state.database = Database()
        _prepare_database(app.state.database)
        try:
            yield
        finally:
            if owned:
                app.state.database.dispose()
                app.state.database = None

    app = FastAPI(title="PharmIA API", openapi_url="/api/openapi.json", lifespan=lifespan)
    app.state.database = database
    app.state.ai_provider = ai_provider or GeminiProvider()

    if ai_provider is None and not app.state.ai_provider.is_configured:
        logger.warning("⚠️ Clé API Google Gemini absente. Le coach IA et le chatbot répondront 503.")

    # --- Configuration des Middlewares ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["Authorization", "Content-Type"],
    )

    app.add_exception_handler(PharmiaError, pharmia_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(api_router, prefix="/api")

    # --- Route Racine ---
    @app.get("/")
    def read_root():
        return {"message": "Welcome to PharmIA API!"}

    return app


app = create_app()
