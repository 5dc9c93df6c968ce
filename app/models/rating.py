from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base
import enum

class RatingLevel(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        """Ordinal used for progress arithmetic: low=1, medium=2, high=3."""
        return _LEVEL_RANKS[self]

_LEVEL_RANKS = {RatingLevel.LOW: 1, RatingLevel.MEDIUM: 2, RatingLevel.HIGH: 3}

class RatingStatus(str, enum.Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"

REVIEWED_STATUSES = (RatingStatus.APPROVED, RatingStatus.REJECTED)

class EmployeeRating(Base):
    __tablename__ = "employee_ratings"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    skill_id = Column(Integer, ForeignKey("skills.id", ondelete="CASCADE"), nullable=False, index=True)
    subskill_id = Column(Integer, ForeignKey("subskills.id", ondelete="CASCADE"), nullable=True, index=True)
    rating_level = Column(String(10), nullable=False)
    status = Column(String(20), default=RatingStatus.DRAFT.value, index=True) # Using String to store enum value for simplicity with SQLite
    self_comment = Column(Text, default="")
    approver_comment = Column(Text, nullable=True)
    approved_by = Column(Integer, ForeignKey("profiles.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)

    owner = relationship("Profile", foreign_keys=[owner_id], back_populates="ratings")
    approver = relationship("Profile", foreign_keys=[approved_by])
    skill = relationship("Skill")
    subskill = relationship("Subskill")
