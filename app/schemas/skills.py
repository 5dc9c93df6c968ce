from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    color: str = "#3B82F6"

class CategoryRead(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    color: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class SkillCreate(BaseModel):
    category_id: int
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None

class SkillRead(BaseModel):
    id: int
    category_id: int
    name: str
    description: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class SubskillCreate(BaseModel):
    skill_id: int
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None

class SubskillRead(BaseModel):
    id: int
    skill_id: int
    name: str
    description: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class RatingCounts(BaseModel):
    high: int = 0
    medium: int = 0
    low: int = 0

class CategoryProgressSummary(BaseModel):
    """Derived on demand from the current ratings of one category; never stored."""
    total_items: int = 0
    rated_items: int = 0
    progress_percentage: int = 0
    rating_counts: RatingCounts = Field(default_factory=RatingCounts)
    approved_count: int = 0
    pending_count: int = 0
    rejected_count: int = 0


class ImportRowError(BaseModel):
    line: int
    message: str

class CatalogImportResult(BaseModel):
    rows: int = 0
    success: int = 0
    errors: int = 0
    categories_created: int = 0
    skills_created: int = 0
    subskills_created: int = 0
    failures: List[ImportRowError] = Field(default_factory=list)

class CategoryPreferences(BaseModel):
    """Categories the caller keeps on the dashboard, in display order."""
    visible_category_ids: List[int] = Field(default_factory=list)
