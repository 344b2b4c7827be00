"""Authentication and authorization building blocks."""

from identity_admin.security.permissions import (
    resolve_authorities,
    account_graph_options,
)
from identity_admin.security.principal import Principal
from identity_admin.security.tokens import CredentialService

__all__ = [
    "resolve_authorities",
    "account_graph_options",
    "Principal",
    "CredentialService",
]
