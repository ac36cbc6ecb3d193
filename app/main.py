"""
FastAPI application: contact CRM backend with database pool lifecycle.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from app.config import settings
from app.db.pool import db_pool
from app.db.schema import initialize_schema
from app.infrastructure.observability.logging import get_logger, log_request, setup_logging
from app.middleware import CORSMiddleware, RequestContextMiddleware, SecurityHeadersMiddleware
from app.routes import contacts, health, labels
from app.routes.health import API_VERSION
from app.utils.error_handling import setup_error_handling

# Setup logging before creating the app
setup_logging(log_level=settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the pool and make sure the schema exists; close the pool on shutdown."""
    logger.info("Application starting", environment=settings.environment, debug=settings.debug)

    try:
        logger.info("Initializing database pool")
        await db_pool.initialize()

        logger.info("Ensuring database schema", seed=settings.SEED_SAMPLE_DATA)
        await initialize_schema(seed=settings.SEED_SAMPLE_DATA)

    except Exception as e:
        logger.error("Failed to initialize services", error=str(e))
        try:
            await db_pool.close()
        except Exception as cleanup_error:
            logger.error("Error cleaning up database pool", error=str(cleanup_error))
        raise

    logger.info("Application ready", port=settings.PORT)

    yield

    logger.info("Application shutting down")
    try:
        await db_pool.close()
    except Exception as e:
        logger.error("Error closing database pool", error=str(e))


app = FastAPI(
    title="Contact CRM",
    description="Contacts, labels and filtering for the CRM dashboard",
    version=API_VERSION,
    lifespan=lifespan,
)

setup_error_handling(app)

app.include_router(health.router)
app.include_router(contacts.router)
app.include_router(labels.router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log HTTP requests with timing."""
    start_time = time.time()
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        # unhandled errors reach the 500 handler outside this middleware
        log_request(
            method=request.method,
            path=request.url.path,
            status_code=status_code,
            duration_ms=round((time.time() - start_time) * 1000, 2),
        )


# Last added runs first: request context wraps everything else
app.add_middleware(SecurityHeadersMiddleware, enforce_https=settings.ENFORCE_HTTPS)
app.add_middleware(CORSMiddleware, allowed_origins=settings.cors_origins())
app.add_middleware(RequestContextMiddleware)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
