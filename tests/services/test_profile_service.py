"""
Tests for the ProfileService.
"""

import pytest
from sqlalchemy import select

from identity_admin.errors import NotFound
from identity_admin.models.profile import Profile
from identity_admin.schemas.profile import ProfileUpdate
from identity_admin.services.account_service import AccountService
from identity_admin.services.profile_service import ProfileService


class TestProfileService:

    def test_get_before_upsert_raises(self, seeded, make_user):
        alice = make_user("alice")
        with pytest.raises(NotFound):
            ProfileService(seeded).get_profile(alice.id)

    def test_upsert_keeps_fields_left_out(self, seeded, make_user):
        alice = make_user("alice")
        service = ProfileService(seeded)
        service.upsert_profile(alice.id, ProfileUpdate(first_name="Alice", phone_number="555"))
        seeded.commit()

        profile = service.upsert_profile(alice.id, ProfileUpdate(last_name="Liddell"))
        seeded.commit()

        assert profile.first_name == "Alice"
        assert profile.last_name == "Liddell"
        assert profile.phone_number == "555"
        count = seeded.execute(select(Profile).where(Profile.account_id == alice.id)).all()
        assert len(count) == 1

    def test_upsert_for_unknown_account_raises(self, seeded):
        with pytest.raises(NotFound):
            ProfileService(seeded).upsert_profile(9999, ProfileUpdate(bio="x"))

    def test_upsert_is_audited(self, seeded, make_user, audit_trail, recorder):
        alice = make_user("alice")
        ProfileService(seeded, audit_trail).upsert_profile(alice.id, ProfileUpdate(bio="hi"))

        assert recorder.actions() == ["PROFILE_UPDATED"]
        assert recorder.events[0].metadata == {"changed": ["bio"]}

    def test_purge_removes_profile(self, seeded, make_user):
        alice = make_user("alice")
        ProfileService(seeded).upsert_profile(alice.id, ProfileUpdate(bio="hi"))
        seeded.commit()
        accounts = AccountService(seeded)
        accounts.soft_delete(alice.id)
        seeded.commit()

        accounts.purge(alice.id)
        seeded.commit()

        assert seeded.execute(select(Profile)).scalars().all() == []
