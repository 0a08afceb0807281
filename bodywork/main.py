"""
FastAPI application entry point for the Bodywork practice backend.

This module creates the FastAPI app instance and registers all routers.
"""

import logging
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from bodywork.config import settings
from bodywork.routes.admin import router as admin_router
from bodywork.routes.auth import router as auth_router
from bodywork.routes.data import router as data_router
from bodywork.routes.health import router as health_router
from bodywork.routes.impersonation import IDENTITY_CHANGED_HEADER
from bodywork.routes.impersonation import router as impersonation_router

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


def _get_cors_origins() -> list[str]:
    """
    Get allowed CORS origins based on environment.

    - production: CORS_ALLOWED_ORIGINS (empty means no web origins)
    - anything else: the local Next.js dev server
    """
    if settings.is_production():
        if not settings.CORS_ALLOWED_ORIGINS:
            logger.warning(
                "CORS_ALLOWED_ORIGINS not set in production. "
                "No web origins allowed."
            )
        else:
            logger.info(f"CORS configured for production with {len(settings.CORS_ALLOWED_ORIGINS)} allowed origins")
        return settings.CORS_ALLOWED_ORIGINS

    # Cookies are credentialed, so "*" is not an option
    origins = settings.CORS_ALLOWED_ORIGINS or ["http://localhost:3000"]
    logger.info(f"CORS configured for {settings.ENVIRONMENT}: {origins}")
    return origins


# Create FastAPI app
app = FastAPI(
    title="Bodywork Practice API",
    description="Backend service for the bodywork practice-management app",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc"
)


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    # ctx may hold exception instances that JSONResponse cannot serialise
    return [
        {key: value for key, value in error.items() if key != "ctx"}
        for error in exc.errors()
    ]


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Log validation errors (without the body, which may hold credentials)."""
    logger.error(
        f"Validation error on {request.method} {request.url.path}: {exc.errors()}"
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "validation_error",
            "details": jsonable_errors(exc),
        }
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=_get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[IDENTITY_CHANGED_HEADER],
)

# Register routers
app.include_router(health_router)
app.include_router(auth_router)
app.include_router(admin_router)
app.include_router(impersonation_router)
app.include_router(data_router)

logger.info("FastAPI app initialized successfully")
