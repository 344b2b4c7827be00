"""
Principal: the object every authorization decision consults.

It pairs a stored account with the authorities resolved from the
account's current roles and groups.
"""

from dataclasses import dataclass

from identity_admin.errors import Unauthenticated
from identity_admin.models.account import Account
from identity_admin.security.permissions import resolve_authorities


@dataclass(frozen=True)
class Principal:
    account: Account
    authorities: frozenset[str]

    @classmethod
    def from_account(cls, account: Account) -> "Principal":
        return cls(account=account, authorities=resolve_authorities(account))

    @property
    def id(self) -> int:
        return self.account.id

    @property
    def username(self) -> str:
        return self.account.username

    @property
    def password_hash(self) -> str:
        return self.account.password_hash

    def has_authority(self, authority: str) -> bool:
        return authority in self.authorities

    def has_any_authority(self, *authorities: str) -> bool:
        return any(a in self.authorities for a in authorities)

    def ensure_can_authenticate(self) -> None:
        """
        Raise Unauthenticated if any account gate is closed.

        The four gates are independent: an enabled account can still
        be locked, expired, or have expired credentials.
        """
        account = self.account
        if not account.enabled:
            raise Unauthenticated("User account is disabled")
        if account.account_locked:
            raise Unauthenticated("User account is locked")
        if account.account_expired:
            raise Unauthenticated("User account has expired")
        if account.credentials_expired:
            raise Unauthenticated("User credentials have expired")
