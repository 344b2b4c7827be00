"""
Profile service: read and upsert an account's profile.

A profile is created on the first write. Reading a profile that
was never written is a NotFound, not an empty profile.
"""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from identity_admin.errors import NotFound
from identity_admin.models.profile import Profile
from identity_admin.schemas.profile import ProfileUpdate
from identity_admin.services.account_service import AccountService
from identity_admin.services.audit_service import (
    AuditActor,
    AuditTrail,
    SYSTEM_ACTOR,
)

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("first_name", "last_name", "phone_number", "bio")


class ProfileService:

    def __init__(
        self,
        db: Session,
        audit: AuditTrail | None = None,
        actor: AuditActor = SYSTEM_ACTOR,
    ):
        self.db = db
        self.audit = audit
        self.actor = actor

    def _find(self, account_id: int) -> Profile | None:
        return self.db.execute(
            select(Profile).where(Profile.account_id == account_id)
        ).scalar_one_or_none()

    def get_profile(self, account_id: int) -> Profile:
        profile = self._find(account_id)
        if not profile:
            raise NotFound(f"User profile not found for user id: {account_id}")
        return profile

    def upsert_profile(self, account_id: int, request: ProfileUpdate) -> Profile:
        """Create the profile if needed, then apply the non-null fields."""
        logger.debug("Upserting profile for user id: %s", account_id)
        profile = self._find(account_id)
        if profile is None:
            account = AccountService(self.db).get_account(account_id)
            profile = Profile(account=account)
            self.db.add(profile)

        changed = []
        for field in PROFILE_FIELDS:
            value = getattr(request, field)
            if value is not None:
                setattr(profile, field, value)
                changed.append(field)

        self.db.flush()
        logger.info("Profile saved for user id: %s", account_id)
        if self.audit is not None:
            self.audit.record(
                "PROFILE_UPDATED", "USER", account_id, {"changed": changed},
                actor=self.actor,
            )
        return profile
