from fastapi import APIRouter

from app.api.v3 import events

# Initialize API router
api_router = APIRouter()

# Include routers from different modules
api_router.include_router(events.router, prefix="/events", tags=["Events"])
