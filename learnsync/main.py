import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from learnsync.exceptions.handlers import (
    application_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)
from learnsync.exceptions.errors import ApplicationException
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.exceptions import RequestValidationError
from learnsync.core.config import settings
from learnsync.database.base import Base
from learnsync.database.connection import engine
import learnsync.models  # noqa: F401  registers tables on Base.metadata

from learnsync.api.v1.routes import (
    import_router,
    activity_router,
    dashboard_router,
    provider_platform_router,
    provider_mapping_router,
    record_router,
)

from learnsync.core.logger import get_logger

logger = get_logger("learnsync")

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 LearnSync API is starting...")
    try:
        if settings.IS_DEVELOPMENT:
            # Production schemas are managed by alembic
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Application database tables ensured.")
    except Exception as e:
        logger.error(f"Failed to initialize application: {e}")
        raise e

    yield

    await engine.dispose()
    logger.info("🛑 LearnSync API is shutting down...")

swagger_ui_parameters = {
    "deepLinking": True,
    "displayRequestDuration": True,
    "tryItOutEnabled": True,
    "filter": True,
    "syntaxHighlight.theme": "arta",
}

app = FastAPI(
    title="LearnSync Backend",
    version="1.0.0",
    lifespan=lifespan,
    description="""
    LearnSync synchronizes users, programs, milestones and activity from external
    learning providers (Canvas, Kolibri) through the provider gateway, and serves
    per-user dashboards and daily activity analytics.

    ## Imports

    Each import endpoint runs one phase for one provider platform and reports
    per-record results. `/sync` runs all phases in order.
    """,
    swagger_ui_parameters=swagger_ui_parameters,
)

# CORS configuration
origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:8000",
    "http://127.0.0.1:8000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(import_router, prefix="/api/v1")
app.include_router(activity_router, prefix="/api/v1")
app.include_router(dashboard_router, prefix="/api/v1")
app.include_router(provider_platform_router, prefix="/api/v1")
app.include_router(provider_mapping_router, prefix="/api/v1")
app.include_router(record_router, prefix="/api/v1")

@app.get("/", include_in_schema=False)
async def root():
    return {
        "message": "LearnSync Backend API",
        "docs": "/docs",
        "development_mode": settings.IS_DEVELOPMENT,
        "version": "1.0.0"
    }

# Exception handlers
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(ApplicationException, application_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

if __name__ == "__main__":
    uvicorn.run(
        "learnsync.main:app",
        host="127.0.0.1",
        port=8000,
        reload=settings.IS_DEVELOPMENT,
        limit_concurrency=20,
        timeout_keep_alive=30,
        timeout_graceful_shutdown=30
    )
