from fastapi import APIRouter
from pgbridge.api.endpoints import health

api_router = APIRouter()

# Combine all sub-routers into one
api_router.include_router(health.router)
