"""
Service wiring.

The change feed and goal cache are process-wide and live on `app.state`;
services are built per request around the request's database session.
"""
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.services.approvals import ApprovalQueueService
from app.services.catalog import SkillCatalogService
from app.services.change_feed import ChangeFeed
from app.services.goal_cache import GoalCache
from app.services.profiles import ProfileService
from app.services.reports import ReportService
from app.services.skills_matrix import SkillsMatrixService


def get_change_feed(request: Request) -> ChangeFeed:
    return request.app.state.change_feed


def get_goal_cache(request: Request) -> GoalCache:
    return request.app.state.goal_cache


def get_skills_matrix_service(
    db: Session = Depends(get_db),
    cache: GoalCache = Depends(get_goal_cache),
    feed: ChangeFeed = Depends(get_change_feed),
) -> SkillsMatrixService:
    return SkillsMatrixService(db, cache, feed)


def get_approval_queue_service(db: Session = Depends(get_db)) -> ApprovalQueueService:
    return ApprovalQueueService(db)


def get_catalog_service(
    db: Session = Depends(get_db),
    feed: ChangeFeed = Depends(get_change_feed),
) -> SkillCatalogService:
    return SkillCatalogService(db, feed)


def get_profile_service(db: Session = Depends(get_db)) -> ProfileService:
    return ProfileService(db)


def get_report_service(db: Session = Depends(get_db)) -> ReportService:
    return ReportService(db)
