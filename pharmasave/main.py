from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import RedirectResponse, JSONResponse
from contextlib import asynccontextmanager
import uvicorn
import logging
import sys

from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError
import redis

from pharmasave.core.config import settings
from pharmasave.core.database_utils import get_db_session
from pharmasave.core.exceptions import PharmaSaveError
from pharmasave.core.redis import get_redis
from pharmasave.db.base import Base
from pharmasave.services.s3_service import verify_s3_configuration

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout),
    ]
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("Starting up PharmaSave Backend...")

    # Check database tables
    try:
        with get_db_session() as db:
            existing_tables = inspect(db.bind).get_table_names()
            required_tables = [table.name for table in Base.metadata.tables.values()]
            missing_tables = [table for table in required_tables if table not in existing_tables]

            if missing_tables:
                logger.warning(f"Missing database tables: {missing_tables}")
                logger.warning("Run `alembic upgrade head` before serving traffic")
            else:
                logger.info("All required database tables exist")
    except SQLAlchemyError as e:
        logger.warning(f"Could not check database tables: {e}")

    # Initialize Redis connection
    try:
        redis_client = next(get_redis())
        redis_client.ping()
        logger.info("Redis connection established")
    except redis.RedisError as e:
        logger.warning(f"Redis connection failed, platform config will not be cached: {e}")

    # Verify S3 configuration and access
    ok, msg = verify_s3_configuration()
    if ok:
        logger.info(f"✅ [Startup] Storage check: {msg}")
    else:
        logger.warning(f"⚠️ [Startup] S3 check failed: {msg}")

    yield

    logger.info("✅ PharmaSave Backend shutdown complete")


def create_application() -> FastAPI:
    """Create and configure the FastAPI application"""
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="PharmaSave - Pharmacy surplus marketplace and back office",
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        docs_url=f"{settings.API_V1_STR}/docs",
        redoc_url=f"{settings.API_V1_STR}/redoc",
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )
    logger.info(f"CORS configured for {settings.ENVIRONMENT.value} environment with origins: {settings.CORS_ORIGINS}")

    app.add_middleware(GZipMiddleware, minimum_size=1000)

    from pharmasave.api.v1.api import api_router
    app.include_router(api_router, prefix=settings.API_V1_STR)

    return app


# Create the FastAPI app instance
app = create_application()


@app.get("/", include_in_schema=False)
async def root():
    """Root endpoint that redirects to API documentation"""
    return RedirectResponse(url=f"{settings.API_V1_STR}/docs")


@app.get("/health", tags=["Health Check"])
def health_check():
    """Health check endpoint"""
    try:
        with get_db_session() as db:
            db.execute(text("SELECT 1"))
        db_status = "healthy"
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        db_status = "unhealthy"

    try:
        next(get_redis()).ping()
        redis_status = "healthy"
    except redis.RedisError as e:
        logger.error(f"Redis health check failed: {e}")
        redis_status = "unhealthy"

    ok, s3_message = verify_s3_configuration()

    return {
        "status": "healthy",
        "version": settings.VERSION,
        "project": settings.PROJECT_NAME,
        "database": db_status,
        "redis": redis_status,
        "s3": {"status": "healthy" if ok else "degraded", "message": s3_message}
    }


@app.exception_handler(PharmaSaveError)
async def domain_exception_handler(request: Request, exc: PharmaSaveError):
    """Domain errors that reached the app without being translated by an endpoint"""
    logger.warning(f"{type(exc).__name__}: {exc.message} - {request.url}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": True,
            "message": exc.message,
            "details": exc.details,
            "status_code": exc.status_code
        }
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Global HTTP exception handler"""
    logger.error(f"HTTP {exc.status_code}: {exc.detail} - {request.url}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": True,
            "message": exc.detail,
            "status_code": exc.status_code
        }
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled exceptions"""
    logger.error(f"Unhandled exception: {exc} - {request.url}")
    return JSONResponse(
        status_code=500,
        content={
            "error": True,
            "message": "Internal server error",
            "status_code": 500
        }
    )


if __name__ == "__main__":
    uvicorn.run(
        "pharmasave.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=True,
        log_level="info"
    )
