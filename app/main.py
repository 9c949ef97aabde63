import asyncio
import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from app.api.routers.routers import api_router
from app.core.config import settings
from app.core.logging_config import configure_logging
from app.dependencies import integrations_client, log_broadcaster
from app.middleware import RequestIDMiddleware

# Load environment variables
load_dotenv()

# Configure logging with request_id support
configure_logging()

# Get logger for this module
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown.

    On startup, starts the broadcast heartbeat task, then yields control for the
    application to run. On shutdown, cancels the heartbeat and closes the
    Integrations HTTP client. Errors during shutdown are logged.
    """
    logger.info(f"Starting {settings.PROJECT_NAME}...")

    heartbeat_task = asyncio.create_task(
        log_broadcaster.run_heartbeat(settings.BROADCAST_HEARTBEAT_INTERVAL_SECONDS)
    )
    logger.info("All services started successfully")

    try:
        yield
    finally:
        logger.info(f"Shutting down {settings.PROJECT_NAME}...")

        try:
            heartbeat_task.cancel()
            try:
                await heartbeat_task
            except asyncio.CancelledError:
                pass

            await integrations_client.aclose()
            logger.info("Integrations client closed")

            logger.info("All services stopped successfully")
        except Exception:
            logger.exception("Error during shutdown")


# Create FastAPI application
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    lifespan=lifespan,
    openapi_url="/openapi.json" if settings.is_local else None,
)

# Add Request ID middleware (must be added first to ensure request_id is available)
app.add_middleware(RequestIDMiddleware)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

# Include all API routes
app.include_router(api_router, prefix=settings.API_V1_PREFIX)


@app.get("/health")
async def health_check():
    try:
        return {
            "status": "healthy",
            "liveSubscribers": log_broadcaster.client_count(),
        }
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Health check failed: {str(e)}")
