"""
Pydantic schemas for login, refresh and registration.
"""

from pydantic import Field

from identity_admin.schemas.common import CamelModel
from identity_admin.schemas.account import AccountResponse


class LoginRequest(CamelModel):
    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=72)
    remember_me: bool = False


class RegisterRequest(CamelModel):
    username: str = Field(min_length=3, max_length=50)
    email: str = Field(min_length=5, max_length=255)
    password: str = Field(min_length=8, max_length=72)


class AuthResponse(CamelModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int
    user: AccountResponse


class PrincipalResponse(CamelModel):
    id: int
    username: str
    authorities: list[str]
