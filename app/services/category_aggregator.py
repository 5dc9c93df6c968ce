"""
Per-category rollup of ratings.

A unit is a subskill, or a skill that has no subskills. Each unit counts at
most one rating, picked by `select_current_rating`.
"""
from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from app.models.rating import RatingStatus
from app.schemas.rating import Rating
from app.schemas.skills import CategoryProgressSummary, RatingCounts

# Highest precedence first
STATUS_PRECEDENCE = (RatingStatus.APPROVED, RatingStatus.SUBMITTED, RatingStatus.REJECTED)


def _timestamp(value: Optional[datetime]) -> float:
    if value is None:
        return float("-inf")
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()


def _recency_key(rating: Rating) -> Tuple[float, float, int, int]:
    decided_at = rating.approved_at if rating.status != RatingStatus.SUBMITTED else rating.submitted_at
    return (
        _timestamp(decided_at),
        _timestamp(rating.created_at),
        rating.id if rating.id is not None else -1,
        rating.rating_level.rank,
    )


def select_current_rating(ratings: Iterable[Rating]) -> Optional[Rating]:
    """
    The rating that counts for a unit: the most recent approved one, else the
    most recent submitted one, else the most recent rejected one. Drafts never
    count. The result does not depend on input order.
    """
    by_status: Dict[RatingStatus, List[Rating]] = defaultdict(list)
    for rating in ratings:
        by_status[rating.status].append(rating)
    for status in STATUS_PRECEDENCE:
        if by_status[status]:
            return max(by_status[status], key=_recency_key)
    return None


def aggregate(category_skills: Sequence, all_subskills: Sequence, all_ratings: Sequence[Rating]) -> CategoryProgressSummary:
    subskills_by_skill: Dict[int, List] = defaultdict(list)
    for subskill in all_subskills:
        subskills_by_skill[subskill.skill_id].append(subskill)

    ratings_by_unit: Dict[Tuple[int, Optional[int]], List[Rating]] = defaultdict(list)
    for rating in all_ratings:
        ratings_by_unit[(rating.skill_id, rating.subskill_id)].append(rating)

    units: List[Tuple[int, Optional[int]]] = []
    for skill in category_skills:
        subskills = subskills_by_skill.get(skill.id)
        if subskills:
            units.extend((skill.id, sub.id) for sub in subskills)
        else:
            units.append((skill.id, None))

    counts = RatingCounts()
    approved = pending = rejected = 0
    for unit in units:
        current = select_current_rating(ratings_by_unit.get(unit, ()))
        if current is None:
            continue
        if current.status == RatingStatus.APPROVED:
            approved += 1
            level = current.rating_level.value
            setattr(counts, level, getattr(counts, level) + 1)
        elif current.status == RatingStatus.SUBMITTED:
            pending += 1
        elif current.status == RatingStatus.REJECTED:
            rejected += 1

    total = len(units)
    return CategoryProgressSummary(
        total_items=total,
        rated_items=approved,
        progress_percentage=(200 * approved + total) // (2 * total) if total else 0,
        rating_counts=counts,
        approved_count=approved,
        pending_count=pending,
        rejected_count=rejected,
    )
