from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from app.dependencies import get_skills_matrix_service
from app.models.profile import Profile
from app.routers.auth_deps import get_current_user
from app.schemas.gamification import GamificationProfile, LeaderboardEntry
from app.services.skills_matrix import SkillsMatrixService

router = APIRouter(prefix="/gamification", tags=["Gamification"])


@router.get("/me", response_model=GamificationProfile)
def get_my_gamification(
    current_user: Profile = Depends(get_current_user),
    service: SkillsMatrixService = Depends(get_skills_matrix_service),
):
    return service.get_gamification(current_user.id)


@router.get("/leaderboard", response_model=List[LeaderboardEntry])
def get_leaderboard(
    limit: Optional[int] = Query(default=None, ge=1),
    current_user: Profile = Depends(get_current_user),
    service: SkillsMatrixService = Depends(get_skills_matrix_service),
):
    """Top profiles by total XP. The limit is capped by LEADERBOARD_MAX_LIMIT."""
    return service.leaderboard(limit)
