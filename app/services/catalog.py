import csv
import io
from typing import Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, PersistenceError, ValidationError
from app.models.approval_log import ApprovalLog
from app.models.goal import GoalProgressHistory, PersonalGoal
from app.models.preference import CategoryPreference
from app.models.rating import EmployeeRating
from app.models.skill import Skill, SkillCategory, Subskill
from app.schemas.skills import (
    CatalogImportResult,
    CategoryCreate,
    ImportRowError,
    SkillCreate,
    SubskillCreate,
)
from app.services.base import BaseService
from app.services.change_feed import ChangeEvent, ChangeFeed

CSV_HEADERS = ["Category", "Skill", "Subskill", "Description"]
NAME_MAX_LENGTH = 100
DEFAULT_CATEGORY_COLOR = "#3B82F6"


class SkillCatalogService(BaseService):
    """
    Categories, skills and subskills. Deleting a node removes everything rated
    against it; removed goals are announced on the change feed once committed.
    """

    def __init__(self, db: Session, feed: Optional[ChangeFeed] = None):
        super().__init__(db)
        self.feed = feed

    def _commit(self):
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            self.log_warning(f"Catalog write rejected: {e.orig}")
            raise ValidationError("A record with this name already exists") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            self.log_error(f"Catalog write failed: {e}")
            raise PersistenceError() from e

    def _publish_goal_deletes(self, removed_goals: List[Tuple[int, int]]):
        if self.feed is None:
            return
        for goal_id, owner_id in removed_goals:
            self.feed.publish(ChangeEvent(table=PersonalGoal.__tablename__, entity_id=goal_id, owner_id=owner_id, op="delete"))

    def list_categories(self) -> List[SkillCategory]:
        return self.db.query(SkillCategory).order_by(SkillCategory.name).all()

    def list_skills(self, category_id: Optional[int] = None) -> List[Skill]:
        query = self.db.query(Skill)
        if category_id is not None:
            query = query.filter(Skill.category_id == category_id)
        return query.order_by(Skill.name).all()

    def list_subskills(self, skill_id: Optional[int] = None) -> List[Subskill]:
        query = self.db.query(Subskill)
        if skill_id is not None:
            query = query.filter(Subskill.skill_id == skill_id)
        return query.order_by(Subskill.name).all()

    def create_category(self, payload: CategoryCreate) -> SkillCategory:
        category = SkillCategory(name=payload.name.strip(), description=payload.description, color=payload.color)
        self.db.add(category)
        self._commit()
        self.db.refresh(category)
        self.log_info(f"Created skill category {category.id} ({category.name})")
        return category

    def create_skill(self, payload: SkillCreate) -> Skill:
        if self.db.get(SkillCategory, payload.category_id) is None:
            raise NotFoundError("Category", payload.category_id)
        skill = Skill(category_id=payload.category_id, name=payload.name.strip(), description=payload.description)
        self.db.add(skill)
        self._commit()
        self.db.refresh(skill)
        return skill

    def create_subskill(self, payload: SubskillCreate) -> Subskill:
        if self.db.get(Skill, payload.skill_id) is None:
            raise NotFoundError("Skill", payload.skill_id)
        subskill = Subskill(skill_id=payload.skill_id, name=payload.name.strip(), description=payload.description)
        self.db.add(subskill)
        self._commit()
        self.db.refresh(subskill)
        return subskill

    # --- deletes ---

    def _purge_skills(self, skill_ids: List[int]) -> List[Tuple[int, int]]:
        """Deletes the skills and everything hanging off them. Returns the removed (goal_id, owner_id) pairs."""
        if not skill_ids:
            return []
        removed_goals = [
            (row.id, row.owner_id)
            for row in self.db.query(PersonalGoal.id, PersonalGoal.owner_id).filter(PersonalGoal.skill_id.in_(skill_ids))
        ]
        rating_ids = self.db.query(EmployeeRating.id).filter(EmployeeRating.skill_id.in_(skill_ids))
        goal_ids = self.db.query(PersonalGoal.id).filter(PersonalGoal.skill_id.in_(skill_ids))
        self.db.query(ApprovalLog).filter(ApprovalLog.rating_id.in_(rating_ids.scalar_subquery())).delete(synchronize_session=False)
        self.db.query(GoalProgressHistory).filter(GoalProgressHistory.goal_id.in_(goal_ids.scalar_subquery())).delete(synchronize_session=False)
        self.db.query(EmployeeRating).filter(EmployeeRating.skill_id.in_(skill_ids)).delete(synchronize_session=False)
        self.db.query(PersonalGoal).filter(PersonalGoal.skill_id.in_(skill_ids)).delete(synchronize_session=False)
        self.db.query(Subskill).filter(Subskill.skill_id.in_(skill_ids)).delete(synchronize_session=False)
        self.db.query(Skill).filter(Skill.id.in_(skill_ids)).delete(synchronize_session=False)
        return removed_goals

    def delete_category(self, category_id: int):
        category = self.db.get(SkillCategory, category_id)
        if category is None:
            raise NotFoundError("Category", category_id)
        skill_ids = [s.id for s in self.db.query(Skill.id).filter(Skill.category_id == category_id).all()]
        removed_goals = self._purge_skills(skill_ids)
        for preference in self.db.query(CategoryPreference).all():
            if category_id in preference.visible_category_ids:
                preference.visible_category_ids = [i for i in preference.visible_category_ids if i != category_id]
        self.db.query(SkillCategory).filter(SkillCategory.id == category_id).delete(synchronize_session=False)
        self._commit()
        self.db.expire_all()
        self._publish_goal_deletes(removed_goals)
        self.log_info(f"Deleted category {category_id} with {len(skill_ids)} skill(s) and {len(removed_goals)} goal(s)")

    def delete_skill(self, skill_id: int):
        if self.db.get(Skill, skill_id) is None:
            raise NotFoundError("Skill", skill_id)
        removed_goals = self._purge_skills([skill_id])
        self._commit()
        self.db.expire_all()
        self._publish_goal_deletes(removed_goals)

    def delete_subskill(self, subskill_id: int):
        if self.db.get(Subskill, subskill_id) is None:
            raise NotFoundError("Subskill", subskill_id)
        rating_ids = self.db.query(EmployeeRating.id).filter(EmployeeRating.subskill_id == subskill_id)
        self.db.query(ApprovalLog).filter(ApprovalLog.rating_id.in_(rating_ids.scalar_subquery())).delete(synchronize_session=False)
        self.db.query(EmployeeRating).filter(EmployeeRating.subskill_id == subskill_id).delete(synchronize_session=False)
        self.db.query(Subskill).filter(Subskill.id == subskill_id).delete(synchronize_session=False)
        self._commit()
        self.db.expire_all()

    # --- CSV import / export ---

    def export_csv(self) -> str:
        """
        One row per subskill, per skill without subskills and per empty
        category. Description belongs to the most specific entity on the row.
        """
        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(CSV_HEADERS)
        rows = 0
        for category in self.list_categories():
            skills = self.list_skills(category.id)
            if not skills:
                writer.writerow([category.name, "", "", category.description or ""])
                rows += 1
            for skill in skills:
                subskills = self.list_subskills(skill.id)
                if not subskills:
                    writer.writerow([category.name, skill.name, "", skill.description or ""])
                    rows += 1
                for subskill in subskills:
                    writer.writerow([category.name, skill.name, subskill.name, subskill.description or ""])
                    rows += 1
        self.log_info(f"Exported skill catalog ({rows} rows)")
        return buffer.getvalue()

    def import_csv(self, content: str) -> CatalogImportResult:
        """
        Find-or-create every category/skill/subskill named in the file, matching
        names case-insensitively. Rows without a category are counted as errors
        and skipped; the rest are committed together.
        """
        reader = csv.DictReader(io.StringIO(content))
        fieldnames = [(name or "").strip() for name in (reader.fieldnames or [])]
        if "Category" not in fieldnames:
            raise ValidationError("CSV must have a Category column", details={"expected": CSV_HEADERS})
        reader.fieldnames = fieldnames

        categories: Dict[str, SkillCategory] = {c.name.lower(): c for c in self.db.query(SkillCategory).all()}
        skills: Dict[Tuple[int, str], Skill] = {(s.category_id, s.name.lower()): s for s in self.db.query(Skill).all()}
        subskills: Dict[Tuple[int, str], Subskill] = {(s.skill_id, s.name.lower()): s for s in self.db.query(Subskill).all()}

        result = CatalogImportResult()
        for line, row in enumerate(reader, start=2):
            result.rows += 1
            category_name = (row.get("Category") or "").strip()
            skill_name = (row.get("Skill") or "").strip()
            subskill_name = (row.get("Subskill") or "").strip()
            description = (row.get("Description") or "").strip() or None

            error = self._row_error(category_name, skill_name, subskill_name)
            if error:
                result.errors += 1
                result.failures.append(ImportRowError(line=line, message=error))
                continue

            category = categories.get(category_name.lower())
            if category is None:
                category = SkillCategory(
                    name=category_name,
                    description=description if not skill_name else None,
                    color=DEFAULT_CATEGORY_COLOR,
                )
                self.db.add(category)
                self.db.flush()
                categories[category_name.lower()] = category
                result.categories_created += 1

            if skill_name:
                skill = skills.get((category.id, skill_name.lower()))
                if skill is None:
                    skill = Skill(category_id=category.id, name=skill_name, description=description if not subskill_name else None)
                    self.db.add(skill)
                    self.db.flush()
                    skills[(category.id, skill_name.lower())] = skill
                    result.skills_created += 1

                if subskill_name and (skill.id, subskill_name.lower()) not in subskills:
                    subskill = Subskill(skill_id=skill.id, name=subskill_name, description=description)
                    self.db.add(subskill)
                    self.db.flush()
                    subskills[(skill.id, subskill_name.lower())] = subskill
                    result.subskills_created += 1

            result.success += 1

        self._commit()
        self.log_info(
            f"Imported skill catalog: {result.success} row(s) ok, {result.errors} failed",
            categories_created=result.categories_created,
            skills_created=result.skills_created,
            subskills_created=result.subskills_created,
        )
        return result

    @staticmethod
    def _row_error(category_name: str, skill_name: str, subskill_name: str) -> Optional[str]:
        if not category_name:
            return "Missing category name"
        if subskill_name and not skill_name:
            return "Subskill given without a skill"
        for name in (category_name, skill_name, subskill_name):
            if len(name) > NAME_MAX_LENGTH:
                return f"Name longer than {NAME_MAX_LENGTH} characters: {name[:20]}..."
        return None

    # --- dashboard preferences ---

    def _preference(self, owner_id: int) -> Optional[CategoryPreference]:
        return self.db.query(CategoryPreference).filter(CategoryPreference.owner_id == owner_id).first()

    def visible_categories(self, owner_id: int) -> List[int]:
        preference = self._preference(owner_id)
        return list(preference.visible_category_ids) if preference else []

    def set_visible_categories(self, owner_id: int, category_ids: List[int]) -> List[int]:
        ordered = list(dict.fromkeys(category_ids))
        known = {c.id for c in self.db.query(SkillCategory.id).filter(SkillCategory.id.in_(ordered))} if ordered else set()
        for category_id in ordered:
            if category_id not in known:
                raise NotFoundError("Category", category_id)

        preference = self._preference(owner_id)
        if preference is None:
            preference = CategoryPreference(owner_id=owner_id, visible_category_ids=ordered)
            self.db.add(preference)
        else:
            preference.visible_category_ids = ordered
        self._commit()
        return ordered

    def hide_category(self, owner_id: int, category_id: int) -> List[int]:
        if self.db.get(SkillCategory, category_id) is None:
            raise NotFoundError("Category", category_id)
        remaining = [i for i in self.visible_categories(owner_id) if i != category_id]
        return self.set_visible_categories(owner_id, remaining)
