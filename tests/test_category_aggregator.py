import itertools
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from app.models.rating import RatingLevel, RatingStatus
from app.schemas.rating import Rating
from app.services.category_aggregator import aggregate, select_current_rating

BASE = datetime(2026, 1, 10, 8, 0, tzinfo=timezone.utc)


def _rating(rating_id, status, level=RatingLevel.MEDIUM, skill_id=1, subskill_id=None, minutes=0):
    at = BASE + timedelta(minutes=minutes)
    fields = dict(
        id=rating_id, owner_id=1, skill_id=skill_id, subskill_id=subskill_id,
        rating_level=level, status=status, created_at=at,
    )
    if status != RatingStatus.DRAFT:
        fields.update(self_comment="evidence", submitted_at=at)
    if status in (RatingStatus.APPROVED, RatingStatus.REJECTED):
        fields.update(approver_comment="ok", approved_by=9, approved_at=at)
    return Rating(**fields)


def test_no_ratings_selects_nothing():
    assert select_current_rating([]) is None
    assert select_current_rating([_rating(1, RatingStatus.DRAFT)]) is None

def test_approved_beats_newer_submitted():
    approved = _rating(1, RatingStatus.APPROVED, minutes=0)
    submitted = _rating(2, RatingStatus.SUBMITTED, minutes=30)
    assert select_current_rating([submitted, approved]) == approved

def test_submitted_beats_rejected():
    rejected = _rating(1, RatingStatus.REJECTED, minutes=60)
    submitted = _rating(2, RatingStatus.SUBMITTED, minutes=0)
    assert select_current_rating([rejected, submitted]) == submitted

def test_most_recent_within_status_wins():
    older = _rating(1, RatingStatus.APPROVED, RatingLevel.LOW, minutes=0)
    newer = _rating(2, RatingStatus.APPROVED, RatingLevel.HIGH, minutes=5)
    assert select_current_rating([newer, older]).id == 2

def test_selection_is_permutation_invariant():
    ratings = [
        _rating(1, RatingStatus.APPROVED, RatingLevel.LOW, minutes=0),
        _rating(2, RatingStatus.APPROVED, RatingLevel.HIGH, minutes=0),
        _rating(3, RatingStatus.SUBMITTED, minutes=10),
        _rating(4, RatingStatus.REJECTED, minutes=20),
        _rating(5, RatingStatus.DRAFT, minutes=30),
    ]
    picks = {select_current_rating(list(p)).id for p in itertools.permutations(ratings)}
    assert picks == {2}

def test_two_subskill_scenario():
    """One approved and one pending subskill: half the category is rated."""
    skills = [SimpleNamespace(id=1, name="Databases")]
    subskills = [SimpleNamespace(id=11, skill_id=1), SimpleNamespace(id=12, skill_id=1)]
    ratings = [
        _rating(1, RatingStatus.APPROVED, RatingLevel.HIGH, subskill_id=11),
        _rating(2, RatingStatus.SUBMITTED, subskill_id=12),
    ]
    summary = aggregate(skills, subskills, ratings)
    assert summary.total_items == 2
    assert summary.rated_items == 1
    assert summary.progress_percentage == 50
    assert summary.pending_count == 1
    assert summary.rating_counts.high == 1
    assert summary.rejected_count == 0

def test_aggregate_is_permutation_invariant():
    skills = [SimpleNamespace(id=1), SimpleNamespace(id=2), SimpleNamespace(id=3)]
    subskills = [SimpleNamespace(id=21, skill_id=2), SimpleNamespace(id=22, skill_id=2)]
    ratings = [
        _rating(1, RatingStatus.APPROVED, RatingLevel.LOW, skill_id=1),
        _rating(2, RatingStatus.APPROVED, RatingLevel.MEDIUM, skill_id=1, minutes=5),
        _rating(3, RatingStatus.REJECTED, skill_id=2, subskill_id=21),
        _rating(4, RatingStatus.APPROVED, RatingLevel.HIGH, skill_id=2, subskill_id=22),
    ]
    results = {aggregate(skills, subskills, list(p)).model_dump_json() for p in itertools.permutations(ratings)}
    assert len(results) == 1

    summary = aggregate(skills, subskills, ratings)
    assert summary.total_items == 4
    assert summary.rated_items == 2
    assert summary.progress_percentage == 50
    assert summary.rating_counts.medium == 1
    assert summary.rating_counts.high == 1
    assert summary.rating_counts.low == 0
    assert summary.rejected_count == 1

def test_ratings_outside_the_category_are_ignored():
    skills = [SimpleNamespace(id=1)]
    ratings = [_rating(1, RatingStatus.APPROVED, skill_id=99)]
    summary = aggregate(skills, [], ratings)
    assert summary.total_items == 1
    assert summary.rated_items == 0

def test_skill_rating_ignored_when_skill_has_subskills():
    skills = [SimpleNamespace(id=1)]
    subskills = [SimpleNamespace(id=11, skill_id=1)]
    ratings = [_rating(1, RatingStatus.APPROVED, skill_id=1)]
    assert aggregate(skills, subskills, ratings).rated_items == 0

def test_empty_category_and_rounding():
    assert aggregate([], [], []).progress_percentage == 0
    skills = [SimpleNamespace(id=i) for i in (1, 2, 3)]
    ratings = [_rating(1, RatingStatus.APPROVED, skill_id=1), _rating(2, RatingStatus.APPROVED, skill_id=2)]
    assert aggregate(skills, [], ratings).progress_percentage == 67
