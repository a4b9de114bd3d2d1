"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from urllib.parse import urlencode

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from sqlalchemy import text
from starlette.middleware.gzip import GZipMiddleware
from starlette.middleware.sessions import SessionMiddleware

from marketplace.api.v1 import router as api_v1_router
from marketplace.api.v1.interactions import router as interactions_router
from marketplace.config import get_settings
from marketplace.dependencies.auth import NotAuthenticatedException, RegistrationIncompleteException
from marketplace.logging_config import configure_logging
from marketplace.models.base import AsyncSessionLocal, Base, engine
from marketplace.routes.auth import router as auth_router
from marketplace.routes.find_work import router as find_work_router
from marketplace.routes.register import router as register_router
from marketplace.routes.web import router as web_router
from marketplace.services.identity_client import get_identity_client

logger = logging.getLogger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    configure_logging()
    logger.info("Starting %s...", settings.app_name)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables verified")
    yield
    logger.info("Shutting down...")
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    description="Marketplace connecting content creators with businesses",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(GZipMiddleware, minimum_size=500)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.site_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(
    SessionMiddleware,
    secret_key=settings.secret_key,
    same_site="lax",
    https_only=settings.site_url.startswith("https"),
)


@app.exception_handler(NotAuthenticatedException)
async def not_authenticated_handler(request: Request, exc: NotAuthenticatedException):
    return RedirectResponse(f"/?{urlencode({'returnUrl': exc.return_url})}", status_code=303)


@app.exception_handler(RegistrationIncompleteException)
async def registration_incomplete_handler(request: Request, exc: RegistrationIncompleteException):
    return RedirectResponse("/register", status_code=303)


# Include API routers
app.include_router(api_v1_router)
app.include_router(interactions_router)

# Include web routes (HTML pages)
app.include_router(auth_router)
app.include_router(register_router)
app.include_router(find_work_router)
app.include_router(web_router)


@app.get("/health")
async def health_check():
    return {"status": "healthy", "app": settings.app_name}


@app.get("/health/detailed")
async def detailed_health_check():
    checks = {}

    # Database
    try:
        async with AsyncSessionLocal() as session:
            result = await session.execute(text("SELECT 1"))
            result.scalar()
            checks["database"] = {"ok": True}
    except Exception as e:
        checks["database"] = {"ok": False, "message": str(e)}

    # Identity provider
    checks["identity"] = await get_identity_client().health()

    all_ok = all(check.get("ok", False) for check in checks.values())
    status = "healthy" if all_ok else "degraded"

    return {
        "status": status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": checks,
    }
