"""
SkillsMatrixService: the operations the UI calls.

Each operation loads fresh records from the store, runs the pure workflow
functions, then commits the resulting entity set in one unit of work. The
goal cache is only updated after the store confirms the write.
"""
from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import AccessDeniedError, ValidationError
from app.models.gamification import UserGamification
from app.models.goal import GoalStatus
from app.models.profile import Profile
from app.models.rating import RatingLevel, RatingStatus
from app.schemas.gamification import GamificationProfile, LeaderboardEntry
from app.schemas.goal import Goal, GoalCreate, GoalUpdateResult
from app.schemas.rating import Rating, RatingDraftCreate, RatingTransitionResult
from app.schemas.skills import CategoryProgressSummary
from app.services import category_aggregator, goal_progress, rating_workflow
from app.services.base import BaseService
from app.services.change_feed import ChangeFeed
from app.services.goal_cache import GoalCache
from app.services.side_effects import TransitionEvent, TransitionKind, effects_for
from app.services.store import RecordStore


class SkillsMatrixService(BaseService):
    def __init__(self, db: Session, cache: GoalCache, feed: Optional[ChangeFeed] = None):
        super().__init__(db)
        self.store = RecordStore(db, feed)
        self.cache = cache

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    # --- ratings ---

    def list_ratings(self, owner_id: int, status: Optional[RatingStatus] = None) -> List[Rating]:
        return self.store.fetch_ratings_by_owner(owner_id, status)

    def save_draft(self, owner_id: int, payload: RatingDraftCreate) -> Rating:
        self.store.get_skill(payload.skill_id)
        if payload.subskill_id is not None:
            subskill = self.store.get_subskill(payload.subskill_id)
            if subskill.skill_id != payload.skill_id:
                raise ValidationError(
                    "Subskill does not belong to the selected skill",
                    details={"skill_id": payload.skill_id, "subskill_id": payload.subskill_id},
                )

        existing = self.store.fetch_ratings_for_unit(owner_id, payload.skill_id, payload.subskill_id)
        if any(r.status == RatingStatus.SUBMITTED for r in existing):
            raise ValidationError("A rating for this skill is already awaiting approval")

        drafts = [r for r in existing if r.status == RatingStatus.DRAFT]
        if drafts:
            rating = rating_workflow.revise_draft(drafts[-1], payload.rating_level, payload.self_comment)
        else:
            rating = rating_workflow.new_draft(
                owner_id=owner_id,
                skill_id=payload.skill_id,
                subskill_id=payload.subskill_id,
                rating_level=payload.rating_level,
                self_comment=payload.self_comment,
                now=self._now(),
            )

        with self.store.unit_of_work() as uow:
            saved = uow.save_rating(rating)
        self.log_info(f"Saved draft rating {saved.id} for owner {owner_id}")
        return saved

    def submit_rating(self, owner_id: int, rating_id: int, comment: Optional[str]) -> Rating:
        rating = self.store.get_rating(rating_id)
        if rating.owner_id != owner_id:
            raise AccessDeniedError("You can only submit your own ratings")
        submitted = rating_workflow.submit(rating, comment, now=self._now())

        with self.store.unit_of_work() as uow:
            saved = uow.save_rating(submitted)
        self.log_info(f"Rating {rating_id} submitted for approval")
        return saved

    def approve_rating(self, approver: Profile, rating_id: int, comment: Optional[str]) -> RatingTransitionResult:
        return self._review(approver, rating_id, comment, approve=True)

    def reject_rating(self, approver: Profile, rating_id: int, comment: Optional[str]) -> RatingTransitionResult:
        return self._review(approver, rating_id, comment, approve=False)

    def _review(self, approver: Profile, rating_id: int, comment: Optional[str], approve: bool) -> RatingTransitionResult:
        if not approver.can_approve:
            raise AccessDeniedError("Only tech leads, management or admins can review ratings")

        rating = self.store.get_rating(rating_id)
        subject = self.store.unit_label(rating.skill_id, rating.subskill_id)
        review = rating_workflow.approve if approve else rating_workflow.reject
        transition = review(rating, approver.id, comment, now=self._now(), subject=subject)

        goal_subject = self.store.unit_label(rating.skill_id)
        outcomes = rating_workflow.goal_updates_for(
            transition, self.store.fetch_goals_by_owner(rating.owner_id), subject=goal_subject,
        )

        notifications, goals = [], []
        gamification: Optional[GamificationProfile] = None
        with self.store.unit_of_work() as uow:
            saved = uow.save_rating(transition.rating)
            uow.add_approval_log(transition.approval)
            notifications.append(uow.add_notification(transition.effects.notification))
            for outcome in outcomes:
                goals.append(uow.save_goal(outcome.goal))
                uow.add_history(outcome.history, outcome.goal.id)
                if outcome.effects.notification is not None:
                    notifications.append(uow.add_notification(outcome.effects.notification))
                if outcome.effects.gamification is not None:
                    gamification = uow.apply_gamification(rating.owner_id, outcome.effects.gamification)

        self.cache.merge(rating.owner_id, goals=goals, gamification=gamification)
        self.log_info(
            f"Rating {rating_id} {saved.status.value} by {approver.id}",
            rating_id=rating_id, goals_updated=len(goals),
        )
        return RatingTransitionResult(rating=saved, notifications=notifications, goals=goals)

    # --- goals ---

    def list_goals(self, owner_id: int) -> List[Goal]:
        return self.cache.get_goals(owner_id, self.store)

    def get_gamification(self, owner_id: int) -> GamificationProfile:
        return self.cache.get_gamification(owner_id, self.store)

    def _current_approved_level(self, owner_id: int, skill_id: int) -> RatingLevel:
        # Same scope as approvals moving a goal: the skill and any of its subskills
        approved = [
            r for r in self.store.fetch_ratings_for_skill(owner_id, skill_id)
            if r.status == RatingStatus.APPROVED
        ]
        current = category_aggregator.select_current_rating(approved)
        return current.rating_level if current else RatingLevel.LOW

    def create_goal(self, owner_id: int, payload: GoalCreate) -> GoalUpdateResult:
        self.store.get_skill(payload.skill_id)
        now = self._now()
        goal = goal_progress.new_goal(
            owner_id=owner_id,
            skill_id=payload.skill_id,
            current_rating=self._current_approved_level(owner_id, payload.skill_id),
            target_rating=payload.target_rating,
            target_date=payload.target_date,
            motivation_notes=payload.motivation_notes,
            now=now,
        )
        effects = effects_for(TransitionEvent(kind=TransitionKind.GOAL_CREATED, owner_id=owner_id, occurred_at=now))

        with self.store.unit_of_work() as uow:
            saved = uow.save_goal(goal)
            gamification = uow.apply_gamification(owner_id, effects.gamification)

        self.cache.merge(owner_id, goals=[saved], gamification=gamification)
        self.log_info(f"Goal {saved.id} created for owner {owner_id}")
        return GoalUpdateResult(goal=saved, gamification=gamification)

    def refresh_goal_progress(self, owner_id: int, goal_id: int, new_rating: RatingLevel) -> GoalUpdateResult:
        goal = self.store.get_goal(goal_id)
        if goal.owner_id != owner_id:
            raise AccessDeniedError("You can only update your own goals")
        if goal.status != GoalStatus.ACTIVE:
            raise ValidationError(
                f"Only active goals can progress (goal is {goal.status.value})",
                details={"goal_id": goal_id},
            )
        outcome = goal_progress.update_progress(
            goal, new_rating, now=self._now(), subject=self.store.unit_label(goal.skill_id),
        )

        notifications = []
        gamification = None
        with self.store.unit_of_work() as uow:
            saved = uow.save_goal(outcome.goal)
            history = uow.add_history(outcome.history, saved.id)
            if outcome.effects.notification is not None:
                notifications.append(uow.add_notification(outcome.effects.notification))
            if outcome.effects.gamification is not None:
                gamification = uow.apply_gamification(owner_id, outcome.effects.gamification)

        self.cache.merge(owner_id, goals=[saved], gamification=gamification)
        return GoalUpdateResult(goal=saved, history=history, notifications=notifications, gamification=gamification)

    def mark_overdue_goals(self, owner_id: int, today: Optional[date] = None) -> List[Goal]:
        today = today or date.today()
        changed = []
        for goal in self.store.fetch_goals_by_owner(owner_id):
            checked = goal_progress.check_overdue(goal, today)
            if checked.status != goal.status:
                changed.append(checked)
        if not changed:
            return []

        with self.store.unit_of_work() as uow:
            saved = [uow.save_goal(g) for g in changed]
        self.cache.merge(owner_id, goals=saved)
        self.log_info(f"Marked {len(saved)} goal(s) overdue for owner {owner_id}")
        return saved

    # --- reporting ---

    def aggregate_category(self, owner_id: int, category_id: int) -> CategoryProgressSummary:
        self.store.get_category(category_id)
        skills = self.store.skills_in_category(category_id)
        subskills = self.store.subskills_of([s.id for s in skills])
        ratings = self.store.fetch_ratings_by_owner(owner_id)
        return category_aggregator.aggregate(skills, subskills, ratings)

    def leaderboard(self, limit: Optional[int] = None) -> List[LeaderboardEntry]:
        limit = min(limit or settings.leaderboard_default_limit, settings.leaderboard_max_limit)
        rows = (
            self.db.query(UserGamification, Profile)
            .join(Profile, Profile.id == UserGamification.owner_id)
            .filter(Profile.is_active == True)  # noqa: E712
            .order_by(UserGamification.total_xp.desc(), UserGamification.owner_id)
            .limit(limit)
            .all()
        )
        return [
            LeaderboardEntry(
                rank=position,
                owner_id=gamification.owner_id,
                full_name=profile.full_name,
                total_xp=gamification.total_xp,
                level=gamification.level,
                goals_achieved_count=gamification.goals_achieved_count,
                current_streak=gamification.current_streak,
            )
            for position, (gamification, profile) in enumerate(rows, start=1)
        ]
