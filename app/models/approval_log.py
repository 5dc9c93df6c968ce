from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime
from sqlalchemy.sql import func
from app.database import Base
import enum

class ApprovalAction(str, enum.Enum):
    APPROVED = "approved"
    REJECTED = "rejected"

class ApprovalLog(Base):
    """Append-only record of every approve/reject decision."""
    __tablename__ = "approval_logs"

    id = Column(Integer, primary_key=True, index=True)
    rating_id = Column(Integer, ForeignKey("employee_ratings.id", ondelete="CASCADE"), nullable=False, index=True)
    approver_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    action = Column(String(20), nullable=False)
    approver_comment = Column(Text, default="")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
