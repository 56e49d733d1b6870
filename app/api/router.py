from fastapi import APIRouter
from app.api.endpoints import feedback, insights, health

api_router = APIRouter()

# Combine all sub-routers into one
api_router.include_router(feedback.router)
api_router.include_router(insights.router)
api_router.include_router(health.router)
