from fastapi import APIRouter, Depends, Query
from typing import List

from app.core.config import settings
from app.dependencies import get_approval_queue_service
from app.models.profile import Profile
from app.routers.auth_deps import get_current_user, require_approver
from app.schemas.approvals import ApprovalStats, GroupedApproval, RecentAction
from app.services.approvals import ApprovalQueueService

router = APIRouter(
    prefix="/approvals",
    tags=["Approvals"],
    dependencies=[Depends(require_approver())]
)


@router.get("/pending", response_model=List[GroupedApproval])
def get_pending_approvals(
    team_only: bool = False,
    current_user: Profile = Depends(get_current_user),
    service: ApprovalQueueService = Depends(get_approval_queue_service),
):
    """Submitted ratings awaiting review, grouped by employee. `team_only` narrows to the caller's team."""
    return service.pending_grouped(current_user.id if team_only else None)


@router.get("/recent", response_model=List[RecentAction])
def get_recent_actions(
    limit: int = Query(default=settings.recent_actions_limit, ge=1, le=100),
    service: ApprovalQueueService = Depends(get_approval_queue_service),
):
    return service.recent_actions(limit)


@router.get("/stats", response_model=ApprovalStats)
def get_approval_stats(service: ApprovalQueueService = Depends(get_approval_queue_service)):
    return service.stats()
