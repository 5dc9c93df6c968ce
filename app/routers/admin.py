from fastapi import APIRouter, Depends, status
from typing import List

from app.dependencies import get_profile_service
from app.routers.auth_deps import require_admin
from app.schemas.profile import ProfileCreate, ProfileRead, ProfileUpdate, TechLeadAssignment
from app.services.profiles import ProfileService

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin())]
)


@router.get("/profiles", response_model=List[ProfileRead])
def list_profiles(service: ProfileService = Depends(get_profile_service)):
    return service.list_profiles()


@router.post("/profiles", response_model=ProfileRead, status_code=status.HTTP_201_CREATED)
def create_profile(payload: ProfileCreate, service: ProfileService = Depends(get_profile_service)):
    """
    Register a profile for an identity managed by the upstream auth provider.
    The returned id is what the provider forwards on each request.
    """
    return service.create_profile(payload)


@router.patch("/profiles/{profile_id}", response_model=ProfileRead)
def update_profile(
    profile_id: int,
    payload: ProfileUpdate,
    service: ProfileService = Depends(get_profile_service),
):
    return service.update_profile(profile_id, payload)


@router.put("/profiles/{profile_id}/tech-lead", response_model=ProfileRead)
def assign_tech_lead(
    profile_id: int,
    payload: TechLeadAssignment,
    service: ProfileService = Depends(get_profile_service),
):
    """Assign the tech lead who reviews this profile's ratings, or clear it."""
    return service.assign_tech_lead(profile_id, payload.tech_lead_id)


@router.get("/profiles/{profile_id}/team", response_model=List[ProfileRead])
def list_team(profile_id: int, service: ProfileService = Depends(get_profile_service)):
    return service.team_of(profile_id)
