"""
RecordStore: the persistence collaborator of the skills matrix workflow.

Reads hand back pydantic domain records. Writes go through `unit_of_work()`,
which commits a transition together with all of its side effects or nothing
at all, and publishes change events only once the commit is confirmed.
"""
import enum
import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, PersistenceError
from app.models.approval_log import ApprovalLog
from app.models.gamification import UserGamification
from app.models.goal import GoalProgressHistory, PersonalGoal
from app.models.notification import Notification
from app.models.rating import EmployeeRating, RatingStatus
from app.models.skill import Skill, SkillCategory, Subskill
from app.schemas.gamification import GamificationDelta, GamificationProfile
from app.schemas.goal import Goal, GoalProgressEntry
from app.schemas.notification import NotificationDraft, NotificationRead
from app.schemas.rating import ApprovalEntry, Rating
from app.services.change_feed import ChangeEvent, ChangeFeed
from app.services.notification import NotificationService
from app.services.side_effects import apply_gamification_delta

logger = logging.getLogger(__name__)


def _copy_fields(record: BaseModel, row, exclude=("id",)):
    for name, value in record.model_dump().items():
        if name in exclude or (name == "created_at" and value is None):
            continue
        setattr(row, name, value.value if isinstance(value, enum.Enum) else value)


class UnitOfWork:
    """Collects the writes of one logical operation inside a single transaction."""

    def __init__(self, db: Session):
        self.db = db
        self.events: List[ChangeEvent] = []

    def _record(self, table: str, entity_id: int, owner_id: Optional[int], op: str):
        self.events.append(ChangeEvent(table=table, entity_id=entity_id, owner_id=owner_id, op=op))

    def save_rating(self, rating: Rating) -> Rating:
        if rating.id is None:
            row = EmployeeRating()
            op = "insert"
        else:
            row = self.db.get(EmployeeRating, rating.id)
            if row is None:
                raise NotFoundError("Rating", rating.id)
            op = "update"
        _copy_fields(rating, row)
        self.db.add(row)
        self.db.flush()
        self._record(EmployeeRating.__tablename__, row.id, row.owner_id, op)
        return rating.model_copy(update={"id": row.id})

    def add_approval_log(self, entry: ApprovalEntry) -> ApprovalLog:
        row = ApprovalLog(
            rating_id=entry.rating_id,
            approver_id=entry.approver_id,
            action=entry.action.value,
            approver_comment=entry.approver_comment,
            created_at=entry.created_at,
        )
        self.db.add(row)
        self.db.flush()
        return row

    def save_goal(self, goal: Goal) -> Goal:
        if goal.id is None:
            row = PersonalGoal()
            op = "insert"
        else:
            row = self.db.get(PersonalGoal, goal.id)
            if row is None:
                raise NotFoundError("Goal", goal.id)
            op = "update"
        _copy_fields(goal, row)
        self.db.add(row)
        self.db.flush()
        self._record(PersonalGoal.__tablename__, row.id, row.owner_id, op)
        return goal.model_copy(update={"id": row.id})

    def add_history(self, entry: GoalProgressEntry, goal_id: int) -> GoalProgressEntry:
        row = GoalProgressHistory(goal_id=goal_id)
        _copy_fields(entry, row, exclude=("id", "goal_id"))
        self.db.add(row)
        self.db.flush()
        return entry.model_copy(update={"id": row.id, "goal_id": goal_id})

    def add_notification(self, draft: NotificationDraft) -> NotificationRead:
        row = NotificationService.create_notification(
            self.db,
            owner_id=draft.owner_id,
            title=draft.title,
            message=draft.message,
            type=draft.type.value,
        )
        self._record(Notification.__tablename__, row.id, row.owner_id, "insert")
        return NotificationRead.model_validate(row)

    def apply_gamification(self, owner_id: int, delta: GamificationDelta) -> GamificationProfile:
        # Read-modify-write against the row as it is now, never a cached copy
        row = _lock_gamification_row(self.db, owner_id)
        op = "update"
        if row is None:
            row = UserGamification(owner_id=owner_id, total_xp=0, level=1, goals_set_count=0,
                                   goals_achieved_count=0, current_streak=0, best_streak=0)
            self.db.add(row)
            self.db.flush()
            op = "insert"
        updated = apply_gamification_delta(GamificationProfile.model_validate(row), delta)
        _copy_fields(updated, row, exclude=("owner_id",))
        self.db.flush()
        self._record(UserGamification.__tablename__, row.id, owner_id, op)
        return updated


def _lock_gamification_row(db: Session, owner_id: int) -> Optional[UserGamification]:
    query = db.query(UserGamification).filter(UserGamification.owner_id == owner_id)
    if db.get_bind().dialect.name == "postgresql":
        query = query.with_for_update()
    return query.populate_existing().first()


class RecordStore:
    def __init__(self, db: Session, feed: Optional[ChangeFeed] = None):
        self.db = db
        self.feed = feed

    @contextmanager
    def unit_of_work(self) -> Iterator[UnitOfWork]:
        uow = UnitOfWork(self.db)
        try:
            yield uow
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Unit of work rolled back: {e}")
            raise PersistenceError(details={"reason": e.__class__.__name__}) from e
        except Exception:
            self.db.rollback()
            raise
        if self.feed is not None:
            for event in uow.events:
                self.feed.publish(event)

    # --- ratings ---

    def find_rating(self, rating_id: int) -> Optional[Rating]:
        row = self.db.get(EmployeeRating, rating_id)
        return Rating.model_validate(row) if row else None

    def get_rating(self, rating_id: int) -> Rating:
        rating = self.find_rating(rating_id)
        if rating is None:
            raise NotFoundError("Rating", rating_id)
        return rating

    def fetch_ratings_by_owner(self, owner_id: int, status: Optional[RatingStatus] = None) -> List[Rating]:
        query = self.db.query(EmployeeRating).filter(EmployeeRating.owner_id == owner_id)
        if status is not None:
            query = query.filter(EmployeeRating.status == status.value)
        return [Rating.model_validate(r) for r in query.order_by(EmployeeRating.id).all()]

    def fetch_ratings_for_unit(self, owner_id: int, skill_id: int, subskill_id: Optional[int]) -> List[Rating]:
        query = self.db.query(EmployeeRating).filter(
            EmployeeRating.owner_id == owner_id,
            EmployeeRating.skill_id == skill_id,
        )
        if subskill_id is None:
            query = query.filter(EmployeeRating.subskill_id.is_(None))
        else:
            query = query.filter(EmployeeRating.subskill_id == subskill_id)
        return [Rating.model_validate(r) for r in query.order_by(EmployeeRating.id).all()]

    def fetch_ratings_for_skill(self, owner_id: int, skill_id: int) -> List[Rating]:
        """Ratings of the skill itself and of all its subskills."""
        rows = (
            self.db.query(EmployeeRating)
            .filter(EmployeeRating.owner_id == owner_id, EmployeeRating.skill_id == skill_id)
            .order_by(EmployeeRating.id)
            .all()
        )
        return [Rating.model_validate(r) for r in rows]

    # --- goals ---

    def find_goal(self, goal_id: int) -> Optional[Goal]:
        row = self.db.get(PersonalGoal, goal_id, populate_existing=True)
        return Goal.model_validate(row) if row else None

    def get_goal(self, goal_id: int) -> Goal:
        goal = self.find_goal(goal_id)
        if goal is None:
            raise NotFoundError("Goal", goal_id)
        return goal

    def fetch_goals_by_owner(self, owner_id: int) -> List[Goal]:
        rows = (
            self.db.query(PersonalGoal)
            .filter(PersonalGoal.owner_id == owner_id)
            .order_by(PersonalGoal.id.desc())
            .all()
        )
        return [Goal.model_validate(r) for r in rows]

    # --- gamification ---

    def get_or_create_gamification(self, owner_id: int) -> GamificationProfile:
        row = _lock_gamification_row(self.db, owner_id)
        if row is not None:
            return GamificationProfile.model_validate(row)
        with self.unit_of_work() as uow:
            profile = uow.apply_gamification(owner_id, GamificationDelta())
        return profile

    # --- catalog ---

    def get_category(self, category_id: int) -> SkillCategory:
        category = self.db.get(SkillCategory, category_id)
        if category is None:
            raise NotFoundError("Category", category_id)
        return category

    def get_skill(self, skill_id: int) -> Skill:
        skill = self.db.get(Skill, skill_id)
        if skill is None:
            raise NotFoundError("Skill", skill_id)
        return skill

    def get_subskill(self, subskill_id: int) -> Subskill:
        subskill = self.db.get(Subskill, subskill_id)
        if subskill is None:
            raise NotFoundError("Subskill", subskill_id)
        return subskill

    def skills_in_category(self, category_id: int) -> List[Skill]:
        return self.db.query(Skill).filter(Skill.category_id == category_id).order_by(Skill.name).all()

    def subskills_of(self, skill_ids: List[int]) -> List[Subskill]:
        if not skill_ids:
            return []
        return self.db.query(Subskill).filter(Subskill.skill_id.in_(skill_ids)).order_by(Subskill.name).all()

    def unit_label(self, skill_id: int, subskill_id: Optional[int] = None) -> str:
        skill = self.db.get(Skill, skill_id)
        label = skill.name if skill else f"skill {skill_id}"
        if subskill_id is not None:
            subskill = self.db.get(Subskill, subskill_id)
            if subskill:
                label = f"{label} - {subskill.name}"
        return label
