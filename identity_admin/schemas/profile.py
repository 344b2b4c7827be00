"""
Pydantic schemas for the current user's profile.
"""

from pydantic import Field

from identity_admin.schemas.common import CamelModel


class ProfileUpdate(CamelModel):
    """Fields left as None keep their stored value."""
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    phone_number: str | None = Field(default=None, max_length=20)
    bio: str | None = None


class ProfileResponse(CamelModel):
    first_name: str | None
    last_name: str | None
    phone_number: str | None
    bio: str | None
