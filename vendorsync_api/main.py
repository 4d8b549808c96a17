import time
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from vendorsync_api.api import dashboard, health, intake, payments, vendors
from vendorsync_api.application.interfaces.di_container import close_all_services, get_data_service
from vendorsync_api.application.services.data_service import DataService
from shared.utils.exceptions import DataServiceInitializationException
from shared.utils.logging_config import get_logger, setup_logging
from shared.config.settings import settings

setup_logging(
        log_level=settings.log_level,
        log_file=settings.log_file,
        log_to_console=settings.log_to_console
    )

logger = get_logger(__name__)

logger.info(f"Loading environment settings for: {settings.environment}")


async def warmup_services():
    """Load dashboard data so the first request does not pay for it."""
    logger.info("Warming up services...")
    data_service: DataService = get_data_service()
    try:
        await data_service.initialize()
    except DataServiceInitializationException as e:
        # Routes retry the load on first use
        logger.warning(f"Dashboard data not loaded at startup: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting VendorSync API...")
    logger.info(f"API Title: {settings.api_title} Version: {settings.api_version}")

    await warmup_services()

    yield

    # Shutdown
    await close_all_services()
    logger.info("Shutting down VendorSync API...")


app = FastAPI(
    title=settings.api_title,
    description=settings.api_description,
    version=settings.api_version,
    debug=settings.debug,
    lifespan=lifespan
)


# Middleware for request logging
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()

    logger.info(f"Request: {request.method} {request.url.path}")

    response = await call_next(request)

    process_time = time.time() - start_time
    logger.info(
        f"Response: {request.method} {request.url.path} "
        f"Status: {response.status_code} "
        f"Duration: {process_time:.3f}s"
    )
    return response


# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, prefix="/api/v1/health", tags=["health"])
app.include_router(dashboard.router, prefix="/api/v1/dashboard", tags=["dashboard"])
app.include_router(payments.router, prefix="/api/v1/payments", tags=["payments"])
app.include_router(vendors.router, prefix="/api/v1/vendors", tags=["vendors"])
app.include_router(intake.router, prefix="/api/v1/intake", tags=["intake"])


def run_production():
    """Entry point for the CLI script."""
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    run_production()
