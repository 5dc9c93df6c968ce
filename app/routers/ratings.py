from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional

from app.core.schemas import ApiResponse
from app.dependencies import get_skills_matrix_service
from app.models.profile import Profile
from app.models.rating import RatingStatus
from app.routers.auth_deps import get_current_user, require_approver
from app.schemas.rating import (
    Rating,
    RatingDraftCreate,
    RatingReviewRequest,
    RatingSubmitRequest,
    RatingTransitionResult,
)
from app.services.skills_matrix import SkillsMatrixService

router = APIRouter(prefix="/ratings", tags=["Ratings"])


@router.post("", response_model=Rating, status_code=status.HTTP_201_CREATED)
def save_draft(
    payload: RatingDraftCreate,
    current_user: Profile = Depends(get_current_user),
    service: SkillsMatrixService = Depends(get_skills_matrix_service),
):
    """Create a draft rating, or revise the open draft for the same skill/subskill."""
    return service.save_draft(current_user.id, payload)


@router.get("", response_model=List[Rating])
def list_my_ratings(
    status_filter: Optional[RatingStatus] = Query(default=None, alias="status"),
    current_user: Profile = Depends(get_current_user),
    service: SkillsMatrixService = Depends(get_skills_matrix_service),
):
    return service.list_ratings(current_user.id, status_filter)


@router.post("/{rating_id}/submit", response_model=Rating)
def submit_rating(
    rating_id: int,
    payload: RatingSubmitRequest,
    current_user: Profile = Depends(get_current_user),
    service: SkillsMatrixService = Depends(get_skills_matrix_service),
):
    return service.submit_rating(current_user.id, rating_id, payload.comment)


@router.post("/{rating_id}/approve", response_model=ApiResponse[RatingTransitionResult])
def approve_rating(
    rating_id: int,
    payload: RatingReviewRequest,
    approver: Profile = Depends(require_approver()),
    service: SkillsMatrixService = Depends(get_skills_matrix_service),
):
    """
    Approve a submitted rating. The response carries every record written with
    the decision: the rating, the notifications and any goals it moved.
    """
    result = service.approve_rating(approver, rating_id, payload.comment)
    return ApiResponse.ok(result, metadata={"goals_updated": len(result.goals)})


@router.post("/{rating_id}/reject", response_model=ApiResponse[RatingTransitionResult])
def reject_rating(
    rating_id: int,
    payload: RatingReviewRequest,
    approver: Profile = Depends(require_approver()),
    service: SkillsMatrixService = Depends(get_skills_matrix_service),
):
    return ApiResponse.ok(service.reject_rating(approver, rating_id, payload.comment))
