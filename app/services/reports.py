"""
Skills analytics over approved ratings: gap analysis against a required
level and per-unit proficiency trends. Reports are computed on request and
never stored.
"""
import csv
import io
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from pydantic import BaseModel

from app.models.profile import Profile
from app.models.rating import EmployeeRating, RatingLevel, RatingStatus
from app.models.skill import Skill, SkillCategory, Subskill
from app.schemas.rating import Rating
from app.schemas.reports import (
    CategoryGapCount,
    ProficiencyTrendRow,
    ProficiencyTrendsReport,
    ReportFilters,
    SkillAverage,
    SkillGapRow,
    SkillsGapReport,
)
from app.services.base import BaseService
from app.services.category_aggregator import select_current_rating

Unit = Tuple[int, int, Optional[int]]  # owner, skill, subskill


def rows_to_csv(rows: Sequence[BaseModel], columns: Sequence[str]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(columns)
    for row in rows:
        data = row.model_dump(mode="json")
        writer.writerow(["" if data[c] is None else data[c] for c in columns])
    return buffer.getvalue()


def _matches(rating: Rating, profile: Profile, filters: ReportFilters) -> bool:
    if filters.employee_ids and profile.id not in filters.employee_ids:
        return False
    if filters.department and profile.department != filters.department:
        return False
    created = rating.created_at.date() if rating.created_at else None
    if created is not None:
        if filters.start_date and created < filters.start_date:
            return False
        if filters.end_date and created > filters.end_date:
            return False
    return True


def _approval_order(rating: Rating):
    return (rating.approved_at, rating.id or 0)


class ReportService(BaseService):
    def _profiles(self) -> Dict[int, Profile]:
        return {p.id: p for p in self.db.query(Profile).filter(Profile.is_active == True).all()}  # noqa: E712

    def _ratings(self, statuses: Iterable[RatingStatus]) -> List[Rating]:
        rows = (
            self.db.query(EmployeeRating)
            .filter(EmployeeRating.status.in_([s.value for s in statuses]))
            .order_by(EmployeeRating.id)
            .all()
        )
        return [Rating.model_validate(r) for r in rows]

    def _labels(self):
        categories = {c.id: c.name for c in self.db.query(SkillCategory).all()}
        skills = {s.id: (s.name, categories.get(s.category_id, "Unknown")) for s in self.db.query(Skill).all()}
        subskills = {s.id: s.name for s in self.db.query(Subskill).all()}
        return skills, subskills

    def _by_unit(self, ratings: List[Rating], profiles: Dict[int, Profile], filters: ReportFilters) -> Dict[Unit, List[Rating]]:
        units: Dict[Unit, List[Rating]] = defaultdict(list)
        for rating in ratings:
            profile = profiles.get(rating.owner_id)
            if profile is None or not _matches(rating, profile, filters):
                continue
            units[(rating.owner_id, rating.skill_id, rating.subskill_id)].append(rating)
        return units

    def skills_gap(self, filters: ReportFilters, required: RatingLevel = RatingLevel.HIGH) -> SkillsGapReport:
        """One row per employee unit with an approved rating, measured against `required`."""
        profiles = self._profiles()
        skills, subskills = self._labels()
        units = self._by_unit(self._ratings([RatingStatus.APPROVED]), profiles, filters)

        rows = []
        gaps_by_category: Dict[str, int] = defaultdict(int)
        for (owner_id, skill_id, subskill_id), ratings in units.items():
            current = select_current_rating(ratings)
            profile = profiles[owner_id]
            skill_name, category_name = skills.get(skill_id, (f"Skill {skill_id}", "Unknown"))
            gap = max(0, required.rank - current.rating_level.rank)
            rows.append(SkillGapRow(
                employee_id=owner_id,
                employee=profile.full_name,
                department=profile.department,
                category=category_name,
                skill=skill_name,
                subskill=subskills.get(subskill_id) if subskill_id is not None else None,
                current_rating=current.rating_level,
                required_rating=required,
                gap=gap,
            ))
            if gap:
                gaps_by_category[category_name] += 1

        rows.sort(key=lambda r: (r.employee, r.category, r.skill, r.subskill or ""))
        self.log_info(f"Skills gap report: {len(rows)} row(s), {sum(gaps_by_category.values())} gap(s)")
        return SkillsGapReport(
            required_rating=required,
            rows=rows,
            by_category=[CategoryGapCount(category=c, gap_count=n) for c, n in sorted(gaps_by_category.items())],
        )

    def proficiency_trends(self, filters: ReportFilters) -> ProficiencyTrendsReport:
        """
        Latest approved level per employee unit next to the latest self rating
        (draft or submitted). Improvement compares the first and latest
        approvals and is empty until a unit has been approved twice.
        """
        profiles = self._profiles()
        skills, subskills = self._labels()
        statuses = [RatingStatus.APPROVED, RatingStatus.SUBMITTED, RatingStatus.DRAFT]
        units = self._by_unit(self._ratings(statuses), profiles, filters)

        rows = []
        ranks_by_skill: Dict[str, List[int]] = defaultdict(list)
        for (owner_id, skill_id, subskill_id), ratings in units.items():
            approved = sorted((r for r in ratings if r.status == RatingStatus.APPROVED), key=_approval_order)
            if not approved:
                continue
            own = [r for r in ratings if r.status != RatingStatus.APPROVED]
            latest = approved[-1]
            label = skills.get(skill_id, (f"Skill {skill_id}",))[0]
            if subskill_id is not None:
                label = f"{label} - {subskills.get(subskill_id, subskill_id)}"

            rows.append(ProficiencyTrendRow(
                employee_id=owner_id,
                employee=profiles[owner_id].full_name,
                skill=label,
                self_rating=own[-1].rating_level if own else None,
                approved_rating=latest.rating_level,
                improvement=latest.rating_level.rank - approved[0].rating_level.rank if len(approved) > 1 else None,
                last_approved_at=latest.approved_at,
            ))
            ranks_by_skill[label].append(latest.rating_level.rank)

        rows.sort(key=lambda r: (r.employee, r.skill))
        return ProficiencyTrendsReport(
            rows=rows,
            by_skill=[
                SkillAverage(skill=skill, avg_rating=round(sum(ranks) / len(ranks), 1))
                for skill, ranks in sorted(ranks_by_skill.items())
            ],
        )
