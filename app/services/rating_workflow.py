"""
Rating state machine: draft -> submitted -> approved | rejected.

Approved and rejected ratings are terminal. A new review cycle for the same
unit starts from a fresh draft. Every function returns new records and leaves
its inputs untouched.
"""
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel

from app.core.exceptions import ValidationError
from app.models.approval_log import ApprovalAction
from app.models.rating import RatingLevel, RatingStatus
from app.schemas.goal import Goal
from app.schemas.rating import ApprovalEntry, Rating
from app.services.goal_progress import GoalProgressOutcome, goals_affected_by, update_progress
from app.services.side_effects import SideEffects, TransitionEvent, TransitionKind, effects_for


class RatingTransition(BaseModel):
    rating: Rating
    approval: ApprovalEntry
    effects: SideEffects


def _require_comment(comment: Optional[str], message: str) -> str:
    if comment is None or not comment.strip():
        raise ValidationError(message)
    return comment.strip()


def new_draft(
    owner_id: int,
    skill_id: int,
    rating_level: RatingLevel,
    self_comment: str = "",
    subskill_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Rating:
    return Rating(
        owner_id=owner_id,
        skill_id=skill_id,
        subskill_id=subskill_id,
        rating_level=rating_level,
        status=RatingStatus.DRAFT,
        self_comment=self_comment or "",
        created_at=now or datetime.now(timezone.utc),
    )


def revise_draft(rating: Rating, rating_level: RatingLevel, self_comment: str = "") -> Rating:
    if rating.status != RatingStatus.DRAFT:
        raise ValidationError(
            f"Only draft ratings can be edited (rating is {rating.status.value})",
            details={"rating_id": rating.id},
        )
    return Rating.model_validate({
        **rating.model_dump(),
        "rating_level": rating_level,
        "self_comment": self_comment or "",
    })


def submit(rating: Rating, comment: Optional[str], now: Optional[datetime] = None) -> Rating:
    comment = _require_comment(comment, "A comment is required to submit a rating")
    if rating.status != RatingStatus.DRAFT:
        raise ValidationError(
            f"Only draft ratings can be submitted (rating is {rating.status.value})",
            details={"rating_id": rating.id},
        )
    return Rating.model_validate({
        **rating.model_dump(),
        "status": RatingStatus.SUBMITTED,
        "self_comment": comment,
        "submitted_at": now or datetime.now(timezone.utc),
    })


def _review(
    rating: Rating,
    approver_id: int,
    comment: Optional[str],
    action: ApprovalAction,
    now: Optional[datetime],
    subject: str,
) -> RatingTransition:
    verb = "approve" if action == ApprovalAction.APPROVED else "reject"
    if rating.status != RatingStatus.SUBMITTED:
        raise ValidationError(
            f"Only submitted ratings can be {action.value} (rating is {rating.status.value})",
            details={"rating_id": rating.id},
        )
    comment = _require_comment(comment, f"A comment is required to {verb} a rating")
    now = now or datetime.now(timezone.utc)

    reviewed = Rating.model_validate({
        **rating.model_dump(),
        "status": RatingStatus(action.value),
        "approved_by": approver_id,
        "approver_comment": comment,
        "approved_at": now,
    })
    kind = TransitionKind.RATING_APPROVED if action == ApprovalAction.APPROVED else TransitionKind.RATING_REJECTED
    effects = effects_for(TransitionEvent(
        kind=kind, owner_id=rating.owner_id, subject=subject, comment=comment, occurred_at=now,
    ))
    approval = ApprovalEntry(
        rating_id=rating.id,
        approver_id=approver_id,
        action=action,
        approver_comment=comment,
        created_at=now,
    )
    return RatingTransition(rating=reviewed, approval=approval, effects=effects)


def approve(rating: Rating, approver_id: int, comment: Optional[str], now: Optional[datetime] = None, subject: str = "your skill") -> RatingTransition:
    return _review(rating, approver_id, comment, ApprovalAction.APPROVED, now, subject)


def reject(rating: Rating, approver_id: int, comment: Optional[str], now: Optional[datetime] = None, subject: str = "your skill") -> RatingTransition:
    return _review(rating, approver_id, comment, ApprovalAction.REJECTED, now, subject)


def goal_updates_for(
    transition: RatingTransition,
    goals: List[Goal],
    subject: str = "your skill",
) -> List[GoalProgressOutcome]:
    """Progress updates triggered by an approval. Rejections move no goal."""
    rating = transition.rating
    if rating.status != RatingStatus.APPROVED:
        return []
    return [
        update_progress(goal, rating.rating_level, now=rating.approved_at, subject=subject)
        for goal in goals_affected_by(rating.skill_id, rating.owner_id, goals)
    ]
