"""
Goal progress calculator.

Progress is the ratio of the current rating's rank to the target rating's
rank, rounded half-up and capped at 100. Milestones are checked in priority
order: completed, then 80%, then 50%.
"""
from datetime import date, datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field

from app.core.exceptions import ValidationError
from app.models.goal import GoalStatus, Milestone
from app.models.rating import RatingLevel
from app.schemas.goal import Goal, GoalProgressEntry
from app.services.side_effects import SideEffects, TransitionEvent, TransitionKind, effects_for

EIGHTY_PERCENT = 80
FIFTY_PERCENT = 50


class GoalProgressOutcome(BaseModel):
    goal: Goal
    history: GoalProgressEntry
    event: TransitionKind
    effects: SideEffects = Field(default_factory=SideEffects)


def rank(level: RatingLevel) -> int:
    return RatingLevel(level).rank


def calculate_progress(current: RatingLevel, target: RatingLevel) -> int:
    current_rank, target_rank = rank(current), rank(target)
    # round half-up on integers
    return min(100, (200 * current_rank + target_rank) // (2 * target_rank))


def milestone_for(progress: int) -> Optional[Milestone]:
    if progress >= 100:
        return Milestone.COMPLETED
    if progress >= EIGHTY_PERCENT:
        return Milestone.EIGHTY_PERCENT
    if progress >= FIFTY_PERCENT:
        return Milestone.FIFTY_PERCENT
    return None


def new_goal(
    owner_id: int,
    skill_id: int,
    current_rating: RatingLevel,
    target_rating: RatingLevel,
    target_date: date,
    motivation_notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Goal:
    now = now or datetime.now(timezone.utc)
    progress = calculate_progress(current_rating, target_rating)
    if progress >= 100:
        raise ValidationError(
            "Target rating must be above the current approved rating",
            details={"current_rating": RatingLevel(current_rating).value, "target_rating": RatingLevel(target_rating).value},
        )
    if target_date < now.date():
        raise ValidationError("Target date cannot be in the past", details={"target_date": target_date.isoformat()})
    return Goal(
        owner_id=owner_id,
        skill_id=skill_id,
        target_rating=target_rating,
        current_rating=current_rating,
        target_date=target_date,
        status=GoalStatus.ACTIVE,
        progress_percentage=progress,
        motivation_notes=motivation_notes,
        created_at=now,
    )


def update_progress(
    goal: Goal,
    new_rating: RatingLevel,
    now: Optional[datetime] = None,
    subject: str = "your skill",
) -> GoalProgressOutcome:
    now = now or datetime.now(timezone.utc)
    new_rating = RatingLevel(new_rating)
    previous_progress = goal.progress_percentage
    progress = calculate_progress(new_rating, goal.target_rating)

    if progress >= 100:
        status, completed_at, kind = GoalStatus.COMPLETED, now, TransitionKind.GOAL_COMPLETED
    elif previous_progress < EIGHTY_PERCENT <= progress:
        status, completed_at, kind = goal.status, None, TransitionKind.GOAL_80_PERCENT
    else:
        status, completed_at, kind = goal.status, None, TransitionKind.GOAL_PROGRESSED

    updated = Goal.model_validate({
        **goal.model_dump(),
        "current_rating": new_rating,
        "progress_percentage": progress,
        "status": status,
        "completed_at": completed_at,
    })
    history = GoalProgressEntry(
        goal_id=goal.id,
        previous_rating=goal.current_rating,
        new_rating=new_rating,
        progress_percentage=progress,
        milestone_reached=milestone_for(progress),
        notes=f"Rating updated from {goal.current_rating.value} to {new_rating.value}",
        created_at=now,
    )
    effects = effects_for(TransitionEvent(kind=kind, owner_id=goal.owner_id, subject=subject, occurred_at=now))
    return GoalProgressOutcome(goal=updated, history=history, event=kind, effects=effects)


def check_overdue(goal: Goal, today: date) -> Goal:
    if goal.status == GoalStatus.ACTIVE and goal.target_date < today:
        return goal.model_copy(update={"status": GoalStatus.OVERDUE})
    return goal


def goals_affected_by(skill_id: int, owner_id: int, goals: List[Goal]) -> List[Goal]:
    """Active goals of `owner_id` that track `skill_id`."""
    return [
        g for g in goals
        if g.owner_id == owner_id and g.skill_id == skill_id and g.status == GoalStatus.ACTIVE
    ]
