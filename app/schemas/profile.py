from pydantic import BaseModel, ConfigDict, EmailStr, Field
from datetime import datetime
from typing import Optional

from app.models.profile import ProfileRole


class ProfileCreate(BaseModel):
    email: EmailStr
    full_name: str = Field(min_length=2, max_length=50)
    role: ProfileRole = ProfileRole.EMPLOYEE
    department: Optional[str] = None
    tech_lead_id: Optional[int] = None

class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(default=None, min_length=2, max_length=50)
    role: Optional[ProfileRole] = None
    department: Optional[str] = None
    is_active: Optional[bool] = None
    tech_lead_id: Optional[int] = None

class TechLeadAssignment(BaseModel):
    """`null` clears the assignment."""
    tech_lead_id: Optional[int] = None

class ProfileRead(BaseModel):
    id: int
    email: str
    full_name: str
    role: ProfileRole
    department: Optional[str] = None
    is_active: bool
    tech_lead_id: Optional[int] = None
    tech_lead_name: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
