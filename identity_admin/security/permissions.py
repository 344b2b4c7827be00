"""
Permission resolution.

An account's authorities come from two places:

    account -> role -> permission
    account -> group -> role -> permission

Each role contributes ROLE_<name> plus one RESOURCE_ACTION
string per permission. The graph has exactly these two fixed
shapes, so resolution is plain nested iteration, not a graph walk.
"""

from sqlalchemy.orm import selectinload

from identity_admin.models.account import Account
from identity_admin.models.group import Group
from identity_admin.models.role import Role


ROLE_PREFIX = "ROLE_"


def role_authority(role_name: str) -> str:
    return f"{ROLE_PREFIX}{role_name}"


def authorities_for_role(role: Role) -> set[str]:
    """Return ROLE_<name> plus the authority of every permission on the role."""
    authorities = {role_authority(role.name)}
    for permission in role.permissions:
        authorities.add(permission.authority)
    return authorities


def resolve_authorities(account: Account) -> frozenset[str]:
    """
    Compute the flattened authority set for an account.

    Duplicates collapse: the same role granted directly and through
    two groups contributes its authorities once. An account with no
    roles and no groups resolves to an empty set, which is a valid
    state, not an error.
    """
    authorities: set[str] = set()

    for role in account.roles:
        authorities |= authorities_for_role(role)

    for group in account.groups:
        for role in group.roles:
            authorities |= authorities_for_role(role)

    return frozenset(authorities)


def account_graph_options():
    """
    Loader options that fetch everything resolve_authorities() touches.

    Without them, resolving one account costs one query per role and
    per group. Use as select(Account).options(*account_graph_options()).
    """
    return (
        selectinload(Account.roles).selectinload(Role.permissions),
        selectinload(Account.groups)
        .selectinload(Group.roles)
        .selectinload(Role.permissions),
    )
