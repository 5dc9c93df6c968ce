from sqlalchemy import Column, Integer, String, Text, ForeignKey, Date, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base
import enum

class GoalStatus(str, enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"

class Milestone(str, enum.Enum):
    COMPLETED = "completed"
    EIGHTY_PERCENT = "80_percent"
    FIFTY_PERCENT = "50_percent"

class PersonalGoal(Base):
    __tablename__ = "personal_goals"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    skill_id = Column(Integer, ForeignKey("skills.id", ondelete="CASCADE"), nullable=False, index=True)
    target_rating = Column(String(10), nullable=False)
    current_rating = Column(String(10), nullable=False)
    target_date = Column(Date, nullable=False)
    status = Column(String(20), default=GoalStatus.ACTIVE.value, index=True)
    progress_percentage = Column(Integer, default=0)
    motivation_notes = Column(Text, nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    owner = relationship("Profile", back_populates="goals")
    skill = relationship("Skill")
    history = relationship("GoalProgressHistory", back_populates="goal", cascade="all, delete-orphan")

class GoalProgressHistory(Base):
    __tablename__ = "goal_progress_history"

    id = Column(Integer, primary_key=True, index=True)
    goal_id = Column(Integer, ForeignKey("personal_goals.id", ondelete="CASCADE"), nullable=False, index=True)
    previous_rating = Column(String(10), nullable=True)
    new_rating = Column(String(10), nullable=False)
    progress_percentage = Column(Integer, nullable=False)
    milestone_reached = Column(String(20), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    goal = relationship("PersonalGoal", back_populates="history")
