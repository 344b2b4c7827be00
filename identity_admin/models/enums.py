"""
Shared enumerations for database models.

Using Python enums mapped to database enums ensures that
only valid values can be stored. A permission's authority
string is always built from these two closed sets.
"""

import enum


class PermissionResource(str, enum.Enum):
    """What a permission applies to."""
    USER = "USER"
    ROLE = "ROLE"
    PERMISSION = "PERMISSION"
    SYSTEM = "SYSTEM"
    GROUP = "GROUP"


class PermissionAction(str, enum.Enum):
    """What a permission allows."""
    READ = "READ"
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    MANAGE = "MANAGE"
