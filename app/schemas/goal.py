from pydantic import BaseModel, ConfigDict, Field, model_validator
from datetime import date, datetime
from typing import List, Optional

from app.models.goal import GoalStatus, Milestone
from app.models.rating import RatingLevel
from app.schemas.gamification import GamificationProfile
from app.schemas.notification import NotificationRead


class Goal(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    owner_id: int
    skill_id: int
    target_rating: RatingLevel
    current_rating: RatingLevel
    target_date: date
    status: GoalStatus = GoalStatus.ACTIVE
    progress_percentage: int = 0
    motivation_notes: Optional[str] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @model_validator(mode="after")
    def _check_progress_invariants(self) -> "Goal":
        from app.services.goal_progress import calculate_progress

        expected = calculate_progress(self.current_rating, self.target_rating)
        if self.progress_percentage != expected:
            raise ValueError(
                f"progress_percentage {self.progress_percentage} does not match "
                f"{self.current_rating.value}/{self.target_rating.value} ({expected})"
            )
        if self.status == GoalStatus.COMPLETED:
            if self.progress_percentage < 100 or self.completed_at is None:
                raise ValueError("A completed goal must be at 100% with completed_at set")
        elif self.completed_at is not None:
            raise ValueError("Only completed goals carry completed_at")
        return self


class GoalProgressEntry(BaseModel):
    """One immutable row of goal progress history."""
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    goal_id: Optional[int] = None
    previous_rating: Optional[RatingLevel] = None
    new_rating: RatingLevel
    progress_percentage: int
    milestone_reached: Optional[Milestone] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


# --- Request bodies ---

class GoalCreate(BaseModel):
    skill_id: int
    target_rating: RatingLevel = RatingLevel.HIGH
    target_date: date
    motivation_notes: Optional[str] = None

class GoalProgressUpdate(BaseModel):
    new_rating: RatingLevel


# --- Responses ---

class GoalUpdateResult(BaseModel):
    goal: Goal
    history: Optional[GoalProgressEntry] = None
    notifications: List[NotificationRead] = Field(default_factory=list)
    gamification: Optional[GamificationProfile] = None

class OverdueCheckResult(BaseModel):
    updated: List[Goal] = Field(default_factory=list)

# Resolve forward references for Pydantic V2
Goal.model_rebuild()
GoalUpdateResult.model_rebuild()
