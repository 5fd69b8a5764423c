import logging
from pathlib import Path

from fastapi import Depends, FastAPI
from fastapi.responses import PlainTextResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.orm import Session

from app.api.webhooks import router as webhooks_router
from app.core.config import settings
from app.core.logging_config import configure_logging
from app.db.deps import get_db
from app.middleware.correlation_id import CorrelationIdMiddleware

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Logistics Quote Bot")

app.add_middleware(CorrelationIdMiddleware)

# Generated quote PDFs and downloaded packing lists
Path(settings.public_dir).mkdir(parents=True, exist_ok=True)
app.mount("/public", StaticFiles(directory=settings.public_dir), name="public")


@app.on_event("startup")
async def startup_event():
    """Run startup checks and validation."""
    from app.db.session import init_db

    # Validate critical settings (fail-fast if missing)
    required_settings = [
        "database_url",
        "whatsapp_verify_token",
        "whatsapp_access_token",
        "whatsapp_phone_number_id",
    ]
    missing = [key for key in required_settings if not getattr(settings, key, None)]
    if missing:
        raise RuntimeError(
            f"Missing required environment variables: {', '.join(missing)}. "
            "Please check your .env file or environment configuration."
        )

    # Production-specific validation (fail-fast if in production)
    if settings.app_env == "production":
        production_errors = []

        # Require WHATSAPP_APP_SECRET in production (for webhook signature verification)
        if not settings.whatsapp_app_secret:
            production_errors.append(
                "WHATSAPP_APP_SECRET is required in production for webhook signature verification. "
                "Set WHATSAPP_APP_SECRET environment variable with your Meta App Secret."
            )

        if settings.whatsapp_dry_run:
            production_errors.append(
                "WHATSAPP_DRY_RUN must be False in production. "
                "Set WHATSAPP_DRY_RUN=false so messages are actually sent."
            )

        if settings.public_base_url.startswith("http://localhost"):
            production_errors.append(
                "PUBLIC_BASE_URL must be the public URL of this service in production. "
                "WhatsApp fetches quote PDFs from it."
            )

        if production_errors:
            error_message = (
                "Production environment validation failed:\n\n"
                + "\n".join(f"  - {error}" for error in production_errors)
                + "\n\n"
                "The application cannot start in production with these missing or invalid settings. "
                "Please fix the configuration and restart."
            )
            logger.error(error_message)
            raise RuntimeError(error_message)

    init_db()

    # Log enabled integrations summary (no secrets)
    logger.info(
        "Startup: Configuration loaded - "
        f"Environment: {settings.app_env}, "
        f"Company: {settings.company_name}, "
        f"Sheets: {settings.google_sheets_enabled}, "
        f"Registry lookup: {bool(settings.registry_api_url)}, "
        f"WhatsApp dry-run: {settings.whatsapp_dry_run}"
    )


@app.get("/", response_class=PlainTextResponse)
def root():
    return f"OK - {settings.company_name} bot active"


@app.get("/health")
def health():
    """
    Health check endpoint with integration visibility.

    Returns 200 immediately - used for basic health checks.
    """
    return {
        "ok": True,
        "whatsapp_dry_run": settings.whatsapp_dry_run,
        "integrations": {
            "google_sheets_enabled": settings.google_sheets_enabled,
            "registry_lookup_enabled": bool(settings.registry_api_url),
        },
    }


@app.get("/ready")
def ready(db: Session = Depends(get_db)):
    """
    Readiness check endpoint - verifies database connectivity.

    Returns 200 if database is accessible, 503 if not.
    """
    from sqlalchemy import text
    from sqlalchemy.exc import SQLAlchemyError

    try:
        db.execute(text("SELECT 1"))
        return {"ok": True, "database": "connected"}
    except SQLAlchemyError as e:
        logger.error(f"Readiness check failed: {e}")
        from fastapi import status
        from fastapi.responses import JSONResponse

        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"ok": False, "database": "disconnected", "error": str(e)},
        )


app.include_router(webhooks_router, prefix="/webhooks")
