from fastapi import APIRouter
from app.routers import (
    ratings, approvals, goals, gamification, notifications, skills, reports, admin
)

# Centralized API router hub
# Routers are aggregated here, and main.py only imports this single hub.
api_router = APIRouter()

api_router.include_router(ratings.router, tags=["Ratings"])
api_router.include_router(approvals.router, tags=["Approvals"])
api_router.include_router(goals.router, tags=["Goals"])
api_router.include_router(gamification.router, tags=["Gamification"])
api_router.include_router(notifications.router, tags=["Notifications"])
api_router.include_router(skills.router, tags=["Skills"])
api_router.include_router(reports.router, tags=["Reports"])
api_router.include_router(admin.router, tags=["Administration"])
