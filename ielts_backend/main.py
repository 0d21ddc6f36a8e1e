"""
IELTS backend - Google sign-in and student profiles

FastAPI application entry point.
"""
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

# Import observability modules
from ielts_backend.config import settings
from ielts_backend.database import engine, get_db, init_models
from ielts_backend.logging_config import configure_logging, get_logger
from ielts_backend.sentry_config import configure_sentry
from ielts_backend.middleware.logging import LoggingMiddleware
from ielts_backend.routes.metrics import router as metrics_router

# Import route modules
from ielts_backend.routes.auth import router as auth_router
from ielts_backend.routes.api import router as api_router

# Initialize logging first
configure_logging()

# Initialize Sentry (if SENTRY_DSN is set)
configure_sentry(settings)

logger = get_logger(component="main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.AUTO_CREATE_TABLES:
        await init_models()
        logger.info("tables_ready")
    yield
    await engine.dispose()


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Google sign-in, student profiles and the admin user list for the IELTS front-end",
    lifespan=lifespan,
)

# Add logging middleware FIRST (runs before other middleware)
app.add_middleware(LoggingMiddleware)

# The static front-end is the only browser origin that calls the JSON API
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_origin],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include metrics endpoint FIRST (so it's always available)
app.include_router(metrics_router)

# Include authentication routes
app.include_router(auth_router)

# Include API routes
app.include_router(api_router)


@app.get("/", response_class=PlainTextResponse)
async def root():
    """Liveness probe."""
    return "Server is Up!"


@app.get("/health")
async def health(db: AsyncSession = Depends(get_db)):
    """Health check including a database round trip."""
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning("health_check_database_unavailable", error=str(e))
        return {"status": "degraded", "database": "unavailable"}

    return {"status": "healthy", "database": "connected"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
