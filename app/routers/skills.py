from fastapi import APIRouter, Depends, File, Response, UploadFile, status
from typing import List, Optional

from app.core.exceptions import ValidationError
from app.dependencies import get_catalog_service, get_skills_matrix_service
from app.models.profile import Profile
from app.routers.auth_deps import get_current_user, require_catalog_editor
from app.schemas.skills import (
    CatalogImportResult,
    CategoryCreate,
    CategoryPreferences,
    CategoryProgressSummary,
    CategoryRead,
    SkillCreate,
    SkillRead,
    SubskillCreate,
    SubskillRead,
)
from app.services.catalog import SkillCatalogService
from app.services.skills_matrix import SkillsMatrixService

router = APIRouter(prefix="/skills", tags=["Skills"])


# --- Categories ---

@router.get("/categories", response_model=List[CategoryRead])
def list_categories(
    current_user: Profile = Depends(get_current_user),
    service: SkillCatalogService = Depends(get_catalog_service),
):
    return service.list_categories()


@router.post("/categories", response_model=CategoryRead, status_code=status.HTTP_201_CREATED)
def create_category(
    payload: CategoryCreate,
    editor: Profile = Depends(require_catalog_editor()),
    service: SkillCatalogService = Depends(get_catalog_service),
):
    return service.create_category(payload)


@router.delete("/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    category_id: int,
    editor: Profile = Depends(require_catalog_editor()),
    service: SkillCatalogService = Depends(get_catalog_service),
):
    """Deletes the category with its skills, subskills and every rating and goal against them."""
    service.delete_category(category_id)


@router.get("/categories/{category_id}/progress", response_model=CategoryProgressSummary)
def get_category_progress(
    category_id: int,
    current_user: Profile = Depends(get_current_user),
    service: SkillsMatrixService = Depends(get_skills_matrix_service),
):
    """Rollup of the caller's current ratings in one category."""
    return service.aggregate_category(current_user.id, category_id)


# --- Subskills ---

@router.get("/subskills", response_model=List[SubskillRead])
def list_subskills(
    skill_id: Optional[int] = None,
    current_user: Profile = Depends(get_current_user),
    service: SkillCatalogService = Depends(get_catalog_service),
):
    return service.list_subskills(skill_id)


@router.post("/subskills", response_model=SubskillRead, status_code=status.HTTP_201_CREATED)
def create_subskill(
    payload: SubskillCreate,
    editor: Profile = Depends(require_catalog_editor()),
    service: SkillCatalogService = Depends(get_catalog_service),
):
    return service.create_subskill(payload)


@router.delete("/subskills/{subskill_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_subskill(
    subskill_id: int,
    editor: Profile = Depends(require_catalog_editor()),
    service: SkillCatalogService = Depends(get_catalog_service),
):
    service.delete_subskill(subskill_id)


# --- Skills ---

@router.get("", response_model=List[SkillRead])
def list_skills(
    category_id: Optional[int] = None,
    current_user: Profile = Depends(get_current_user),
    service: SkillCatalogService = Depends(get_catalog_service),
):
    return service.list_skills(category_id)


@router.post("", response_model=SkillRead, status_code=status.HTTP_201_CREATED)
def create_skill(
    payload: SkillCreate,
    editor: Profile = Depends(require_catalog_editor()),
    service: SkillCatalogService = Depends(get_catalog_service),
):
    return service.create_skill(payload)


@router.delete("/{skill_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_skill(
    skill_id: int,
    editor: Profile = Depends(require_catalog_editor()),
    service: SkillCatalogService = Depends(get_catalog_service),
):
    service.delete_skill(skill_id)


# --- CSV import / export ---

@router.get("/export")
def export_catalog(
    editor: Profile = Depends(require_catalog_editor()),
    service: SkillCatalogService = Depends(get_catalog_service),
):
    """Category,Skill,Subskill,Description rows for the whole catalog."""
    return Response(
        content=service.export_csv(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="skills_catalog.csv"'},
    )


@router.post("/import", response_model=CatalogImportResult)
async def import_catalog(
    file: UploadFile = File(...),
    editor: Profile = Depends(require_catalog_editor()),
    service: SkillCatalogService = Depends(get_catalog_service),
):
    """Find-or-create the categories, skills and subskills listed in a CSV upload."""
    if not (file.filename or "").lower().endswith(".csv"):
        raise ValidationError(f"Only .csv files can be imported (got {file.filename})")
    raw = await file.read()
    try:
        content = raw.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ValidationError("CSV file must be UTF-8 encoded") from e
    return service.import_csv(content)


# --- Dashboard preferences ---

@router.get("/preferences", response_model=CategoryPreferences)
def get_category_preferences(
    current_user: Profile = Depends(get_current_user),
    service: SkillCatalogService = Depends(get_catalog_service),
):
    return CategoryPreferences(visible_category_ids=service.visible_categories(current_user.id))


@router.put("/preferences", response_model=CategoryPreferences)
def update_category_preferences(
    payload: CategoryPreferences,
    current_user: Profile = Depends(get_current_user),
    service: SkillCatalogService = Depends(get_catalog_service),
):
    return CategoryPreferences(visible_category_ids=service.set_visible_categories(current_user.id, payload.visible_category_ids))


@router.delete("/preferences/{category_id}", response_model=CategoryPreferences)
def hide_category(
    category_id: int,
    current_user: Profile = Depends(get_current_user),
    service: SkillCatalogService = Depends(get_catalog_service),
):
    """Remove one category from the caller's dashboard."""
    return CategoryPreferences(visible_category_ids=service.hide_category(current_user.id, category_id))
