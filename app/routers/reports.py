from datetime import date
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, Response

from app.dependencies import get_report_service
from app.models.rating import RatingLevel
from app.routers.auth_deps import require_approver
from app.schemas.reports import ProficiencyTrendsReport, ReportFilters, SkillsGapReport
from app.services.reports import ReportService, rows_to_csv

router = APIRouter(
    prefix="/reports",
    tags=["Reports"],
    dependencies=[Depends(require_approver())]
)

GAP_COLUMNS = ["employee", "department", "category", "skill", "subskill", "current_rating", "required_rating", "gap"]
TREND_COLUMNS = ["employee", "skill", "self_rating", "approved_rating", "improvement", "last_approved_at"]


def report_filters(
    employee_id: Optional[List[int]] = Query(default=None),
    department: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> ReportFilters:
    return ReportFilters(employee_ids=employee_id, department=department, start_date=start_date, end_date=end_date)


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/skills-gap", response_model=SkillsGapReport)
def skills_gap(
    required_level: RatingLevel = RatingLevel.HIGH,
    format: Literal["json", "csv"] = "json",
    filters: ReportFilters = Depends(report_filters),
    service: ReportService = Depends(get_report_service),
):
    """Approved levels per employee against the required level, with gap counts per category."""
    report = service.skills_gap(filters, required_level)
    if format == "csv":
        return _csv_response(rows_to_csv(report.rows, GAP_COLUMNS), "skills_gap.csv")
    return report


@router.get("/proficiency-trends", response_model=ProficiencyTrendsReport)
def proficiency_trends(
    format: Literal["json", "csv"] = "json",
    filters: ReportFilters = Depends(report_filters),
    service: ReportService = Depends(get_report_service),
):
    report = service.proficiency_trends(filters)
    if format == "csv":
        return _csv_response(rows_to_csv(report.rows, TREND_COLUMNS), "proficiency_trends.csv")
    return report
