# Central API router include file
from fastapi import APIRouter

# Import domain routers
from app.assistant.router import router as assistant_router
from app.log.router import router as log_router

# Create main API router
api_router = APIRouter()

# Include domain routers with prefixes
api_router.include_router(log_router)
api_router.include_router(assistant_router)
