"""
Stringing shop order service

Order creation on payment, the service status pipeline, customer pickup-code
confirmations and the stock ledger.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import subprocess
import os
import sys

# Add shared modules to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../../"))

from shared.core import ExternalProbe, ServiceHealth, setup_logging, RequestLoggingMiddleware, get_logger
from app.core_settings import get_settings
from app.api.routes import router as admin_orders_router, internal_router
from app.api.public import router as public_order_router
from app.api.inventory import router as inventory_router
from app.api.webhooks import router as webhook_router
from app.infrastructure.db import init_models

# Service configuration
SERVICE_NAME = "stringing-service"
SERVICE_VERSION = os.getenv("SERVICE_VERSION", "1.0.0")
SERVICE_DESCRIPTION = "Order lifecycle service for the lacrosse stringing shop"

setup_logging(
    service_name=SERVICE_NAME,
    level=os.getenv("LOG_LEVEL", "INFO")
)

logger = get_logger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle management"""
    logger.info(f"Starting {SERVICE_NAME} version {SERVICE_VERSION}")

    if os.getenv("RUN_MIGRATIONS", "true").lower() == "true":
        try:
            logger.info("Running database migrations")
            result = subprocess.run(
                ["alembic", "upgrade", "head"],
                cwd=os.path.join(os.path.dirname(__file__), ".."),
                capture_output=True,
                text=True,
                check=False
            )
            if result.returncode != 0:
                logger.warning(f"Migration output: {result.stderr}")
            else:
                logger.info("Database migrations completed")
        except OSError as e:
            logger.error(f"Migration error: {e}")

    try:
        init_models()
        logger.info("Database models initialized")
    except Exception as e:
        logger.error(f"Failed to initialize database models: {e}")
        raise

    logger.info(f"{SERVICE_NAME} started successfully")

    yield

    logger.info(f"Shutting down {SERVICE_NAME}")

app = FastAPI(
    title=SERVICE_NAME,
    description=SERVICE_DESCRIPTION,
    version=SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)

def _upstream_probes():
    settings = get_settings()
    return [
        ExternalProbe(
            name="stripe",
            url=settings.STRIPE_API_URL,
            secret=settings.STRIPE_SECRET_KEY,
            headers={"Authorization": f"Bearer {settings.STRIPE_SECRET_KEY}"} if settings.STRIPE_SECRET_KEY else {},
        ),
    ]

health_service = ServiceHealth(
    SERVICE_NAME,
    SERVICE_VERSION,
    database_url=lambda: get_settings().database_url,
    required_env=["STRIPE_SECRET_KEY", "STRIPE_WEBHOOK_SECRET", "JWT_SECRET"],
    probes=_upstream_probes,
    probe_timeout=get_settings().HEALTH_PROBE_TIMEOUT,
)
app.include_router(health_service.create_health_router())

app.include_router(public_order_router)
app.include_router(webhook_router)
app.include_router(inventory_router)
app.include_router(admin_orders_router)
app.include_router(internal_router)

@app.get("/")
async def root():
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "status": "running",
        "docs": "/api/docs"
    }

@app.get("/info")
async def info():
    """Service information endpoint"""
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "description": SERVICE_DESCRIPTION,
        "environment": os.getenv("ENVIRONMENT", "development"),
        "endpoints": {
            "health": "/health",
            "ready": "/health/ready",
            "live": "/health/live",
            "metrics": "/metrics",
            "docs": "/api/docs",
            "webhook": "/webhooks/stripe"
        }
    }
