from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, List, Optional

from sqlalchemy import func

from app.core.config import settings
from app.models.approval_log import ApprovalLog, ApprovalAction
from app.models.profile import Profile
from app.models.rating import EmployeeRating, RatingStatus
from app.schemas.approvals import ApprovalStats, GroupedApproval, PendingApproval, RecentAction
from app.services.base import BaseService


def _title(rating: EmployeeRating) -> str:
    title = rating.skill.name if rating.skill else f"Skill {rating.skill_id}"
    if rating.subskill is not None:
        title = f"{title} - {rating.subskill.name}"
    return title


class ApprovalQueueService(BaseService):
    """Read side of the approval workflow: the queue, recent decisions and daily counts."""

    def pending_grouped(self, tech_lead_id: Optional[int] = None) -> List[GroupedApproval]:
        """With `tech_lead_id`, only ratings from profiles assigned to that lead."""
        query = self.db.query(EmployeeRating).filter(EmployeeRating.status == RatingStatus.SUBMITTED.value)
        if tech_lead_id is not None:
            query = query.join(Profile, Profile.id == EmployeeRating.owner_id).filter(Profile.tech_lead_id == tech_lead_id)
        ratings = query.order_by(EmployeeRating.submitted_at, EmployeeRating.id).all()
        groups: Dict[int, GroupedApproval] = {}
        for rating in ratings:
            owner = rating.owner
            group = groups.get(rating.owner_id)
            if group is None:
                group = GroupedApproval(
                    employee_id=rating.owner_id,
                    employee_name=owner.full_name if owner else "Unknown User",
                    email=owner.email if owner else "",
                    pending_count=0,
                    submitted_at=rating.submitted_at,
                )
                groups[rating.owner_id] = group
            group.ratings.append(PendingApproval(
                rating_id=rating.id,
                owner_id=rating.owner_id,
                requester=group.employee_name,
                title=_title(rating),
                rating_level=rating.rating_level,
                self_comment=rating.self_comment or "",
                submitted_at=rating.submitted_at,
            ))
            group.pending_count += 1
        return list(groups.values())

    def pending_count(self) -> int:
        return (
            self.db.query(func.count(EmployeeRating.id))
            .filter(EmployeeRating.status == RatingStatus.SUBMITTED.value)
            .scalar()
        )

    def recent_actions(self, limit: Optional[int] = None) -> List[RecentAction]:
        logs = (
            self.db.query(ApprovalLog)
            .order_by(ApprovalLog.created_at.desc(), ApprovalLog.id.desc())
            .limit(limit or settings.recent_actions_limit)
            .all()
        )
        actions = []
        for log in logs:
            rating = self.db.get(EmployeeRating, log.rating_id)
            approver = self.db.get(Profile, log.approver_id)
            actions.append(RecentAction(
                rating_id=log.rating_id,
                action=ApprovalAction(log.action),
                title=_title(rating) if rating else f"Rating {log.rating_id}",
                employee=rating.owner.full_name if rating and rating.owner else "Unknown",
                approver=approver.full_name if approver else "Unknown",
                comment=log.approver_comment or "",
                date=log.created_at,
            ))
        return actions

    def stats(self, today: Optional[date] = None) -> ApprovalStats:
        today = today or datetime.now(timezone.utc).date()
        start = datetime.combine(today, time.min, tzinfo=timezone.utc)
        end = start + timedelta(days=1)

        def _count(action: ApprovalAction) -> int:
            return (
                self.db.query(func.count(ApprovalLog.id))
                .filter(
                    ApprovalLog.action == action.value,
                    ApprovalLog.created_at >= start,
                    ApprovalLog.created_at < end,
                )
                .scalar()
            )

        return ApprovalStats(
            pending_count=self.pending_count(),
            approved_today=_count(ApprovalAction.APPROVED),
            rejected_today=_count(ApprovalAction.REJECTED),
        )
