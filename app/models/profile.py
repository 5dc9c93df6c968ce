"""
Profile Model.
The identity itself lives with the upstream auth provider; this row carries
the display data and the role used for approval rights.
"""
from sqlalchemy import Column, Integer, String, Enum, DateTime, Boolean, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from app.database import Base


class ProfileRole(str, enum.Enum):
    """
    Roles, most to least permissions:
    - ADMIN: user management and the skill catalog
    - MANAGEMENT: approvals and the skill catalog
    - TECH_LEAD: approvals
    - EMPLOYEE: self-service ratings and goals
    """
    ADMIN = "admin"
    MANAGEMENT = "management"
    TECH_LEAD = "tech_lead"
    EMPLOYEE = "employee"


APPROVER_ROLES = (ProfileRole.TECH_LEAD, ProfileRole.MANAGEMENT, ProfileRole.ADMIN)
CATALOG_EDITOR_ROLES = (ProfileRole.MANAGEMENT, ProfileRole.ADMIN)


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    full_name = Column(String, nullable=False)
    role = Column(Enum(ProfileRole), default=ProfileRole.EMPLOYEE, nullable=False)
    department = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    tech_lead_id = Column(Integer, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    ratings = relationship("EmployeeRating", foreign_keys="[EmployeeRating.owner_id]", back_populates="owner", cascade="all, delete-orphan")
    goals = relationship("PersonalGoal", back_populates="owner", cascade="all, delete-orphan")
    notifications = relationship("Notification", back_populates="owner", cascade="all, delete-orphan")
    tech_lead = relationship("Profile", remote_side=[id], foreign_keys=[tech_lead_id])

    def __repr__(self):
        return f"<Profile {self.email} ({self.role.value})>"

    @property
    def can_approve(self) -> bool:
        """Check if the profile may approve or reject submitted ratings."""
        return self.role in APPROVER_ROLES

    @property
    def can_edit_catalog(self) -> bool:
        return self.role in CATALOG_EDITOR_ROLES

    @property
    def tech_lead_name(self):
        return self.tech_lead.full_name if self.tech_lead else None
