"""
Shared schema plumbing.

The API speaks camelCase JSON ({"userIds": [...]}, "rememberMe")
while Python code uses snake_case. The alias generator bridges the
two; populate_by_name lets services build schemas with snake_case
keyword arguments.
"""

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PageResponse(CamelModel, Generic[T]):
    """One page of a listing. page is zero-based."""
    items: list[T]
    total: int
    page: int
    size: int
