"""
FastAPI application initialization
"""

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from api.routes import backfill, cron, health, ingest
from core.config import settings
from core.exceptions import ConfigurationError, IngestionError
from core.logging import setup_logging
import logging
from api.middleware import RequestContextMiddleware
from ingestion.scheduler import IngestionScheduler

setup_logging()

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Ad Metrics Ingestion API",
    description="Daily and backfill ingestion of Meta, Pinterest and Google Ads metrics into BigQuery",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(RequestContextMiddleware)

scheduler = IngestionScheduler()


app.include_router(health.router)
app.include_router(cron.router)
app.include_router(backfill.router)
app.include_router(ingest.router)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error(f"Configuration error: {exc.message}", extra={"error_context": exc.to_dict()})
    return JSONResponse(status_code=500, content={"error": exc.message})


@app.exception_handler(IngestionError)
async def ingestion_error_handler(request: Request, exc: IngestionError):
    logger.error(f"Ingestion failed: {exc}", extra={"error_context": exc.to_dict()})
    return JSONResponse(status_code=500, content={"error": exc.message})


@app.on_event("startup")
async def startup_event():
    """Application startup event"""
    logger.info("Starting Ad Metrics Ingestion API")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(
        f"Destination: {settings.GOOGLE_CLOUD_PROJECT_ID or '<unset>'}."
        f"{settings.BIGQUERY_DATASET_ID or '<unset>'}"
    )

    if settings.ENABLE_SCHEDULER:
        scheduler.start()


@app.on_event("shutdown")
async def shutdown_event():
    """Application shutdown event"""
    logger.info("Shutting down Ad Metrics Ingestion API")
    if scheduler.scheduler.running:
        scheduler.stop()


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Ad Metrics Ingestion API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "cron": ["/api/cron/fetch-meta-ads", "/api/cron/fetch-pinterest-ads"],
            "backfill": ["/api/backfill/meta", "/api/backfill/pinterest"],
            "ingest": ["/api/ingest/google-ads"]
        }
    }
