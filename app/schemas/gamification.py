from pydantic import BaseModel, ConfigDict
from datetime import date
from typing import Optional


class GamificationProfile(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    owner_id: int
    total_xp: int = 0
    level: int = 1
    goals_set_count: int = 0
    goals_achieved_count: int = 0
    current_streak: int = 0
    best_streak: int = 0
    last_goal_achieved_date: Optional[date] = None


class GamificationDelta(BaseModel):
    """Increment produced by a goal event; applied read-modify-write to the stored profile."""
    xp: int = 0
    goals_set: int = 0
    goals_achieved: int = 0
    achieved_on: Optional[date] = None


class LeaderboardEntry(BaseModel):
    rank: int
    owner_id: int
    full_name: str
    total_xp: int
    level: int
    goals_achieved_count: int
    current_streak: int
