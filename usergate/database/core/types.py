from typing import ClassVar, Generic, List, Optional, Tuple, TypeVar, Union

from pydantic import BaseModel, Field

T = TypeVar("T")

SortSpec = Union[str, List[Tuple[str, int]]]


class QueryOptions(BaseModel):
    """Options applied to find queries.

    `sort` accepts a beanie sort expression ("-created_at") or a list of (field, direction) pairs.
    """

    sort: Optional[SortSpec] = None
    skip: Optional[int] = Field(default=None, ge=0)
    limit: Optional[int] = Field(default=None, ge=0)


class PaginateParams(BaseModel):
    """Page selection. Pagination is applied only when at least one field is set."""

    page_number: Optional[int] = Field(default=None, ge=1)
    page_size: Optional[int] = Field(default=None, ge=1)

    DEFAULT_PAGE_NUMBER: ClassVar[int] = 1
    DEFAULT_PAGE_SIZE: ClassVar[int] = 10

    @property
    def is_requested(self) -> bool:
        return bool(self.page_number or self.page_size)

    def bounds(self) -> Tuple[int, int]:
        """Return (skip, limit) for the requested page."""
        page_number = self.page_number or self.DEFAULT_PAGE_NUMBER
        page_size = self.page_size or self.DEFAULT_PAGE_SIZE
        return (page_number - 1) * page_size, page_size


class Page(BaseModel, Generic[T]):
    """A slice of results together with the total number of matching documents."""

    data: List[T]
    count: int
