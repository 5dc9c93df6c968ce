from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional

from app.models.approval_log import ApprovalAction
from app.models.rating import RatingLevel


class PendingApproval(BaseModel):
    rating_id: int
    owner_id: int
    requester: str
    title: str
    rating_level: RatingLevel
    self_comment: str = ""
    submitted_at: Optional[datetime] = None

class GroupedApproval(BaseModel):
    employee_id: int
    employee_name: str
    email: str
    pending_count: int
    submitted_at: Optional[datetime] = None
    ratings: List[PendingApproval] = Field(default_factory=list)

class RecentAction(BaseModel):
    rating_id: int
    action: ApprovalAction
    title: str
    employee: str
    approver: str
    comment: str = ""
    date: Optional[datetime] = None

class ApprovalStats(BaseModel):
    pending_count: int
    approved_today: int
    rejected_today: int
