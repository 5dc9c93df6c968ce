from typing import List, Optional

from sqlalchemy.exc import IntegrityError

from app.core.exceptions import NotFoundError, ValidationError
from app.models.profile import Profile
from app.schemas.profile import ProfileCreate, ProfileUpdate
from app.services.base import BaseService


class ProfileService(BaseService):
    def list_profiles(self) -> List[Profile]:
        return self.db.query(Profile).order_by(Profile.full_name).all()

    def team_of(self, tech_lead_id: int) -> List[Profile]:
        return (
            self.db.query(Profile)
            .filter(Profile.tech_lead_id == tech_lead_id)
            .order_by(Profile.full_name)
            .all()
        )

    def _check_tech_lead(self, profile_id: Optional[int], tech_lead_id: Optional[int]):
        if tech_lead_id is None:
            return
        if profile_id is not None and tech_lead_id == profile_id:
            raise ValidationError("A profile cannot be its own tech lead")
        lead = self.db.get(Profile, tech_lead_id)
        if lead is None:
            raise NotFoundError("Profile", tech_lead_id)
        if not lead.can_approve or not lead.is_active:
            raise ValidationError(
                f"{lead.full_name} cannot lead a team (role {lead.role.value})",
                details={"tech_lead_id": tech_lead_id},
            )

    def create_profile(self, payload: ProfileCreate) -> Profile:
        email = payload.email.lower()
        if self.db.query(Profile).filter(Profile.email == email).first():
            raise ValidationError(f"A profile for {email} already exists")
        self._check_tech_lead(None, payload.tech_lead_id)
        profile = Profile(
            email=email,
            full_name=payload.full_name.strip(),
            role=payload.role,
            department=payload.department,
            tech_lead_id=payload.tech_lead_id,
            is_active=True,
        )
        self.db.add(profile)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ValidationError(f"A profile for {email} already exists") from e
        self.db.refresh(profile)
        self.log_info(f"Created profile {profile.id} ({profile.role.value})")
        return profile

    def update_profile(self, profile_id: int, payload: ProfileUpdate) -> Profile:
        profile = self.db.get(Profile, profile_id)
        if profile is None:
            raise NotFoundError("Profile", profile_id)
        changes = payload.model_dump(exclude_unset=True)
        if "tech_lead_id" in changes:
            self._check_tech_lead(profile_id, changes["tech_lead_id"])
        for field, value in changes.items():
            setattr(profile, field, value)
        self.db.commit()
        self.db.refresh(profile)
        return profile

    def assign_tech_lead(self, profile_id: int, tech_lead_id: Optional[int]) -> Profile:
        profile = self.update_profile(profile_id, ProfileUpdate(tech_lead_id=tech_lead_id))
        self.log_info(f"Profile {profile_id} tech lead set to {tech_lead_id}")
        return profile
