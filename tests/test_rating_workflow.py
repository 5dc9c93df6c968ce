import pytest
from datetime import datetime, timezone

from pydantic import ValidationError as SchemaValidationError

from app.core.exceptions import ValidationError
from app.models.approval_log import ApprovalAction
from app.models.goal import GoalStatus
from app.models.notification import NotificationType
from app.models.rating import RatingLevel, RatingStatus
from app.schemas.goal import Goal
from app.schemas.rating import Rating
from app.services import rating_workflow

NOW = datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)


def _draft(**overrides):
    fields = dict(owner_id=1, skill_id=10, rating_level=RatingLevel.MEDIUM, now=NOW)
    fields.update(overrides)
    return rating_workflow.new_draft(**fields).model_copy(update={"id": 5})


def _submitted():
    return rating_workflow.submit(_draft(), "Shipped two services this quarter", now=NOW)


def test_new_draft_defaults():
    rating = rating_workflow.new_draft(owner_id=1, skill_id=10, rating_level=RatingLevel.LOW, now=NOW)
    assert rating.status == RatingStatus.DRAFT
    assert rating.self_comment == ""
    assert rating.approved_by is None
    assert rating.created_at == NOW

def test_submit_requires_comment():
    """Submitting with an empty or whitespace comment fails and leaves the draft untouched."""
    draft = _draft()
    for comment in (None, "", "   "):
        with pytest.raises(ValidationError):
            rating_workflow.submit(draft, comment, now=NOW)
    assert draft.status == RatingStatus.DRAFT

def test_submit_moves_draft_to_submitted():
    submitted = _submitted()
    assert submitted.status == RatingStatus.SUBMITTED
    assert submitted.self_comment == "Shipped two services this quarter"
    assert submitted.submitted_at == NOW
    assert submitted.id == 5

def test_submit_rejects_non_draft():
    with pytest.raises(ValidationError):
        rating_workflow.submit(_submitted(), "again", now=NOW)

def test_revise_draft_only_for_drafts():
    revised = rating_workflow.revise_draft(_draft(), RatingLevel.HIGH, "better now")
    assert revised.rating_level == RatingLevel.HIGH
    assert revised.self_comment == "better now"
    with pytest.raises(ValidationError):
        rating_workflow.revise_draft(_submitted(), RatingLevel.LOW)

def test_approve_sets_review_fields_and_notification():
    transition = rating_workflow.approve(_submitted(), approver_id=2, comment="Agreed", now=NOW, subject="Python")
    rating = transition.rating
    assert rating.status == RatingStatus.APPROVED
    assert rating.approved_by == 2
    assert rating.approver_comment == "Agreed"
    assert rating.approved_at == NOW

    assert transition.approval.action == ApprovalAction.APPROVED
    assert transition.approval.rating_id == 5

    notification = transition.effects.notification
    assert notification.owner_id == 1
    assert notification.title == "Rating Approved"
    assert notification.type == NotificationType.SUCCESS
    assert "Python" in notification.message
    assert transition.effects.gamification is None

def test_reject_produces_warning_notification():
    transition = rating_workflow.reject(_submitted(), approver_id=2, comment="Needs evidence", now=NOW)
    assert transition.rating.status == RatingStatus.REJECTED
    assert transition.effects.notification.title == "Rating Rejected"
    assert transition.effects.notification.type == NotificationType.WARNING
    assert "Needs evidence" in transition.effects.notification.message

@pytest.mark.parametrize("review", [rating_workflow.approve, rating_workflow.reject])
def test_review_requires_comment(review):
    with pytest.raises(ValidationError):
        review(_submitted(), approver_id=2, comment="  ", now=NOW)

@pytest.mark.parametrize("review", [rating_workflow.approve, rating_workflow.reject])
def test_review_of_draft_fails_without_side_effects(review):
    """Approving or rejecting a draft is an illegal transition, even with a comment."""
    with pytest.raises(ValidationError):
        review(_draft(), approver_id=2, comment="Looks fine", now=NOW)

def test_reviewed_ratings_are_terminal():
    approved = rating_workflow.approve(_submitted(), approver_id=2, comment="ok", now=NOW).rating
    with pytest.raises(ValidationError):
        rating_workflow.reject(approved, approver_id=2, comment="changed my mind", now=NOW)
    with pytest.raises(ValidationError):
        rating_workflow.submit(approved, "resubmit", now=NOW)

def test_rating_record_enforces_review_fields():
    with pytest.raises(SchemaValidationError):
        Rating(owner_id=1, skill_id=1, rating_level=RatingLevel.LOW, status=RatingStatus.APPROVED)
    with pytest.raises(SchemaValidationError):
        Rating(owner_id=1, skill_id=1, rating_level=RatingLevel.LOW, status=RatingStatus.DRAFT, approved_by=3)
    with pytest.raises(SchemaValidationError):
        Rating(owner_id=1, skill_id=1, rating_level=RatingLevel.LOW, status=RatingStatus.SUBMITTED, self_comment=" ")

def _goal(skill_id=10, owner_id=1, status=GoalStatus.ACTIVE, goal_id=1):
    return Goal(
        id=goal_id, owner_id=owner_id, skill_id=skill_id,
        target_rating=RatingLevel.HIGH, current_rating=RatingLevel.LOW,
        target_date=NOW.date(), status=status, progress_percentage=33,
    )

def test_goal_updates_follow_approval_for_matching_active_goals():
    transition = rating_workflow.approve(_submitted(), approver_id=2, comment="ok", now=NOW)
    goals = [
        _goal(goal_id=1),
        _goal(goal_id=2, skill_id=99),
        _goal(goal_id=3, owner_id=7),
        _goal(goal_id=4, status=GoalStatus.OVERDUE),
    ]
    outcomes = rating_workflow.goal_updates_for(transition, goals)
    assert [o.goal.id for o in outcomes] == [1]
    assert outcomes[0].goal.current_rating == RatingLevel.MEDIUM
    assert outcomes[0].goal.progress_percentage == 67

def test_rejection_moves_no_goal():
    transition = rating_workflow.reject(_submitted(), approver_id=2, comment="no", now=NOW)
    assert rating_workflow.goal_updates_for(transition, [_goal()]) == []
