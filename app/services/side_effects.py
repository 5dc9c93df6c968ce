"""
Notification and gamification side effects of workflow transitions.

Each transition event maps deterministically to at most one notification and
at most one gamification delta. Nothing here touches the store; the caller
packages the effects into the same unit of work as the transition itself.
"""
import enum
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel

from app.core.config import GamificationSettings, settings
from app.models.notification import NotificationType
from app.schemas.gamification import GamificationDelta, GamificationProfile
from app.schemas.notification import NotificationDraft


class TransitionKind(str, enum.Enum):
    RATING_APPROVED = "rating_approved"
    RATING_REJECTED = "rating_rejected"
    GOAL_CREATED = "goal_created"
    GOAL_PROGRESSED = "goal_progressed"
    GOAL_80_PERCENT = "goal_80_percent"
    GOAL_COMPLETED = "goal_completed"


class TransitionEvent(BaseModel):
    kind: TransitionKind
    owner_id: int
    subject: str = "your skill"
    comment: Optional[str] = None
    occurred_at: datetime


class SideEffects(BaseModel):
    notification: Optional[NotificationDraft] = None
    gamification: Optional[GamificationDelta] = None


def effects_for(event: TransitionEvent, rules: GamificationSettings = None) -> SideEffects:
    rules = rules or settings.gamification
    kind = event.kind

    if kind == TransitionKind.RATING_APPROVED:
        message = f"Your rating for {event.subject} was approved."
        if event.comment:
            message += f" Comment: {event.comment}"
        return SideEffects(notification=NotificationDraft(
            owner_id=event.owner_id,
            title="Rating Approved",
            message=message,
            type=NotificationType.SUCCESS,
        ))

    if kind == TransitionKind.RATING_REJECTED:
        message = f"Your rating for {event.subject} was rejected."
        if event.comment:
            message += f" Reason: {event.comment}"
        return SideEffects(notification=NotificationDraft(
            owner_id=event.owner_id,
            title="Rating Rejected",
            message=message,
            type=NotificationType.WARNING,
        ))

    if kind == TransitionKind.GOAL_CREATED:
        return SideEffects(gamification=GamificationDelta(xp=rules.xp_goal_created, goals_set=1))

    if kind == TransitionKind.GOAL_COMPLETED:
        return SideEffects(
            notification=NotificationDraft(
                owner_id=event.owner_id,
                title="Goal Completed!",
                message=f"Congratulations! You've achieved your {event.subject} goal! +{rules.xp_goal_completed} XP awarded",
                type=NotificationType.SUCCESS,
            ),
            gamification=GamificationDelta(
                xp=rules.xp_goal_completed,
                goals_achieved=1,
                achieved_on=event.occurred_at.date(),
            ),
        )

    if kind == TransitionKind.GOAL_80_PERCENT:
        return SideEffects(notification=NotificationDraft(
            owner_id=event.owner_id,
            title="80% Progress!",
            message=f"You're almost there on {event.subject}! Keep up the great work!",
            type=NotificationType.INFO,
        ))

    return SideEffects()


def level_for(total_xp: int, rules: GamificationSettings = None) -> int:
    rules = rules or settings.gamification
    return max(total_xp, 0) // rules.xp_per_level + 1


def apply_gamification_delta(
    profile: GamificationProfile,
    delta: GamificationDelta,
    rules: GamificationSettings = None,
) -> GamificationProfile:
    """Returns the profile after the delta. `profile` must be freshly fetched."""
    rules = rules or settings.gamification
    total_xp = profile.total_xp + delta.xp
    current_streak = profile.current_streak
    best_streak = profile.best_streak
    last_achieved: Optional[date] = profile.last_goal_achieved_date

    if delta.goals_achieved:
        achieved_on = delta.achieved_on or date.today()
        if last_achieved is not None and 0 <= (achieved_on - last_achieved).days <= rules.streak_window_days:
            current_streak += delta.goals_achieved
        else:
            current_streak = delta.goals_achieved
        best_streak = max(best_streak, current_streak)
        last_achieved = achieved_on

    return profile.model_copy(update={
        "total_xp": total_xp,
        "level": level_for(total_xp, rules),
        "goals_set_count": profile.goals_set_count + delta.goals_set,
        "goals_achieved_count": profile.goals_achieved_count + delta.goals_achieved,
        "current_streak": current_streak,
        "best_streak": best_streak,
        "last_goal_achieved_date": last_achieved,
    })
