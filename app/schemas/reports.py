from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import List, Optional

from app.models.rating import RatingLevel


class ReportFilters(BaseModel):
    """Narrow a report to some employees, one department or a creation-date window."""
    employee_ids: Optional[List[int]] = None
    department: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class SkillGapRow(BaseModel):
    employee_id: int
    employee: str
    department: Optional[str] = None
    category: str
    skill: str
    subskill: Optional[str] = None
    current_rating: RatingLevel
    required_rating: RatingLevel
    gap: int = Field(ge=0, description="Levels missing to reach the required rating")

class CategoryGapCount(BaseModel):
    category: str
    gap_count: int

class SkillsGapReport(BaseModel):
    required_rating: RatingLevel
    rows: List[SkillGapRow] = Field(default_factory=list)
    by_category: List[CategoryGapCount] = Field(default_factory=list)


class ProficiencyTrendRow(BaseModel):
    employee_id: int
    employee: str
    skill: str
    self_rating: Optional[RatingLevel] = None
    approved_rating: RatingLevel
    improvement: Optional[int] = None
    last_approved_at: Optional[datetime] = None

class SkillAverage(BaseModel):
    skill: str
    avg_rating: float

class ProficiencyTrendsReport(BaseModel):
    rows: List[ProficiencyTrendRow] = Field(default_factory=list)
    by_skill: List[SkillAverage] = Field(default_factory=list)
