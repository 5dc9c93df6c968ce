from fastapi import APIRouter, Depends, status
from typing import List

from app.core.schemas import ApiResponse
from app.dependencies import get_skills_matrix_service
from app.models.profile import Profile
from app.routers.auth_deps import get_current_user
from app.schemas.goal import Goal, GoalCreate, GoalProgressUpdate, GoalUpdateResult, OverdueCheckResult
from app.services.skills_matrix import SkillsMatrixService

router = APIRouter(prefix="/goals", tags=["Goals"])


@router.post("", response_model=ApiResponse[GoalUpdateResult], status_code=status.HTTP_201_CREATED)
def create_goal(
    payload: GoalCreate,
    current_user: Profile = Depends(get_current_user),
    service: SkillsMatrixService = Depends(get_skills_matrix_service),
):
    """Set a personal goal for a skill. The starting level is the current approved rating."""
    return ApiResponse.ok(service.create_goal(current_user.id, payload))


@router.get("", response_model=List[Goal])
def list_my_goals(
    current_user: Profile = Depends(get_current_user),
    service: SkillsMatrixService = Depends(get_skills_matrix_service),
):
    return service.list_goals(current_user.id)


@router.post("/{goal_id}/progress", response_model=ApiResponse[GoalUpdateResult])
def update_goal_progress(
    goal_id: int,
    payload: GoalProgressUpdate,
    current_user: Profile = Depends(get_current_user),
    service: SkillsMatrixService = Depends(get_skills_matrix_service),
):
    return ApiResponse.ok(service.refresh_goal_progress(current_user.id, goal_id, payload.new_rating))


@router.post("/check-overdue", response_model=OverdueCheckResult)
def check_overdue_goals(
    current_user: Profile = Depends(get_current_user),
    service: SkillsMatrixService = Depends(get_skills_matrix_service),
):
    """Mark the caller's active goals past their target date as overdue."""
    return OverdueCheckResult(updated=service.mark_overdue_goals(current_user.id))
