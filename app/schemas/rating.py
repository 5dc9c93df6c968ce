from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from datetime import datetime
from typing import List, Optional

from app.models.rating import RatingLevel, RatingStatus, REVIEWED_STATUSES
from app.models.approval_log import ApprovalAction
from app.schemas.goal import Goal
from app.schemas.notification import NotificationRead


class Rating(BaseModel):
    """
    A self-assessed rating for one unit (a subskill, or a skill without subskills).

    Invariants checked on every construction:
    - approver_comment / approved_by / approved_at are set iff the rating was reviewed
    - a submitted rating carries a non-empty self_comment
    """
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    owner_id: int
    skill_id: int
    subskill_id: Optional[int] = None
    rating_level: RatingLevel
    status: RatingStatus = RatingStatus.DRAFT
    self_comment: str = ""
    approver_comment: Optional[str] = None
    approved_by: Optional[int] = None
    created_at: Optional[datetime] = None
    submitted_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None

    @field_validator("self_comment", mode="before")
    @classmethod
    def _none_comment(cls, value):
        return "" if value is None else value

    @model_validator(mode="after")
    def _check_status_invariants(self) -> "Rating":
        review_fields = (self.approver_comment, self.approved_by, self.approved_at)
        if self.status in REVIEWED_STATUSES:
            if any(f is None for f in review_fields):
                raise ValueError(f"A {self.status.value} rating requires approver_comment, approved_by and approved_at")
        elif any(f is not None for f in review_fields):
            raise ValueError(f"A {self.status.value} rating cannot carry review fields")
        if self.status == RatingStatus.SUBMITTED and not self.self_comment.strip():
            raise ValueError("A submitted rating requires a self comment")
        return self

    @property
    def unit_key(self):
        return (self.skill_id, self.subskill_id)


class ApprovalEntry(BaseModel):
    rating_id: Optional[int] = None
    approver_id: int
    action: ApprovalAction
    approver_comment: str
    created_at: datetime


# --- Request bodies ---

class RatingDraftCreate(BaseModel):
    skill_id: int
    subskill_id: Optional[int] = None
    rating_level: RatingLevel
    self_comment: str = ""

class RatingSubmitRequest(BaseModel):
    comment: str = ""

class RatingReviewRequest(BaseModel):
    comment: str = ""


# --- Responses ---

class RatingTransitionResult(BaseModel):
    """Everything committed together with an approve/reject decision."""
    rating: Rating
    notifications: List[NotificationRead] = Field(default_factory=list)
    goals: List[Goal] = Field(default_factory=list)

# Resolve forward references for Pydantic V2
Rating.model_rebuild()
RatingTransitionResult.model_rebuild()
