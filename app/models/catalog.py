import math
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, computed_field, field_validator

PAGE_SIZE = 24
ELLIPSIS = "..."

PageMarker = Union[int, str]


class Category(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    detail_url: str


class ItemStub(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    detail_url: str


class ItemDetail(ItemStub):
    image_url: Optional[str] = None
    tags: Optional[List[str]] = None

    @classmethod
    def from_stub(cls, stub: ItemStub) -> "ItemDetail":
        return cls(name=stub.name, detail_url=stub.detail_url)

    @computed_field
    @property
    def resolved(self) -> bool:
        return self.image_url is not None


class ListingPage(BaseModel):
    items: List[ItemDetail]
    total_count: int
    page: int = 1
    page_size: int = PAGE_SIZE

    @computed_field
    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.page_size)


class ListingQuery(BaseModel):
    """Selected categories plus the 1-based page number, as carried in the URL."""

    model_config = ConfigDict(frozen=True)

    categories: Tuple[str, ...] = ()
    page: int = 1

    @field_validator("categories")
    @classmethod
    def _dedupe(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        seen: List[str] = []
        for name in value:
            name = name.strip()
            if name and name not in seen:
                seen.append(name)
        return tuple(seen)

    @field_validator("page")
    @classmethod
    def _at_least_one(cls, value: int) -> int:
        return max(1, value)

    @classmethod
    def from_query_params(cls, type: Optional[str] = None, page: Optional[str] = None) -> "ListingQuery":
        categories = tuple(type.split(",")) if type else ()
        try:
            page_number = int(page) if page is not None else 1
        except ValueError:
            page_number = 1
        return cls(categories=categories, page=page_number)

    def to_query_params(self) -> Dict[str, str]:
        params = {"page": str(self.page)}
        if self.categories:
            params["type"] = ",".join(self.categories)
        return params

    def with_page(self, page: int) -> "ListingQuery":
        return ListingQuery(categories=self.categories, page=page)

    def toggle_category(self, name: str) -> "ListingQuery":
        if name in self.categories:
            categories = tuple(c for c in self.categories if c != name)
        else:
            categories = self.categories + (name,)
        return ListingQuery(categories=categories, page=1)


class PaginationView(BaseModel):
    page: int
    total_pages: int
    markers: List[PageMarker]
    prev_page: Optional[int] = None
    next_page: Optional[int] = None


class DetailBatch(BaseModel):
    offset: int
    items: List[ItemDetail]


class ListingState(str, Enum):
    IDLE = "idle"
    FETCHING_LIST = "fetching_list"
    FETCHING_DETAILS = "fetching_details"
    READY = "ready"


class ListingSnapshot(BaseModel):
    epoch: int
    state: ListingState
    query: ListingQuery
    items: List[ItemDetail]
    total_count: int
    pagination: PaginationView
    loading: bool
    loading_images: bool


class ListingResponse(BaseModel):
    listing: ListingPage
    pagination: PaginationView
