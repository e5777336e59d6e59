"""Offset pagination over cached collections.

Collections are cached whole; a page is a slice of the cached list, so
paging never bypasses the cache.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Annotated, Any, Generic, Sequence, TypeVar

from fastapi import Depends, Query
from pydantic import BaseModel, Field

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


class Page(BaseModel, Generic[T]):
    """One page of a collection."""

    model_config = {"populate_by_name": True}

    content: list[T]
    page: int
    size: int
    total_elements: int = Field(alias="totalElements")
    total_pages: int = Field(alias="totalPages")


@dataclass
class PageParams:
    page: int
    size: int


def page_params(
    page: Annotated[int, Query(ge=0, description="Zero-based page index")] = 0,
    size: Annotated[
        int, Query(ge=1, le=MAX_PAGE_SIZE, description="Items per page")
    ] = DEFAULT_PAGE_SIZE,
) -> PageParams:
    """FastAPI dependency for page/size query parameters."""
    return PageParams(page=page, size=size)


PageParamsDep = Annotated[PageParams, Depends(page_params)]


def to_page(items: Sequence[T], params: PageParams) -> dict[str, Any]:
    """Slice ``items`` into the requested page.

    A page past the end is empty; totals always describe the whole list.
    """
    start = params.page * params.size
    content = list(items[start : start + params.size])
    total = len(items)
    return Page[Any](
        content=content,
        page=params.page,
        size=params.size,
        totalElements=total,
        totalPages=math.ceil(total / params.size) if total else 0,
    ).model_dump(mode="json", by_alias=True)
