"""
Listing data models.

Dataclasses for stored listings and result pages, plus the pydantic input
models that caller-supplied listing and search data is validated against.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import List, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 2000
MAX_PAGE_SIZE = 100
MAX_PAGE = 10_000_000
DEFAULT_PAGE_SIZE = 10


class RoomType(str, Enum):
    """Kinds of room a listing can offer."""
    STUDIO = "studio"
    ONE_BED = "one-bed"
    TWO_BED = "two-bed"
    SHARED = "shared"


@dataclass
class Listing:
    """
    Published sublet offering.

    Attributes:
        id: Listing identifier (UUID)
        owner_id: Account that created the listing
        title: Short title
        price: Rent for the availability window
        deposit: Refundable deposit
        start_date: First available day
        end_date: Last available day (always after start_date)
        location: Free-text location
        room_type: Kind of room offered
        furnished: Whether the room is furnished
        images: Absolute image URLs
        description: Optional long description
        created_at: Creation timestamp
        updated_at: Last modification timestamp
    """
    id: str
    owner_id: str
    title: str
    price: float
    deposit: float
    start_date: date
    end_date: date
    location: str
    room_type: RoomType
    furnished: bool
    created_at: datetime
    updated_at: datetime
    images: List[str] = field(default_factory=list)
    description: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "ownerId": self.owner_id,
            "title": self.title,
            "description": self.description,
            "price": self.price,
            "deposit": self.deposit,
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "durationDays": duration_days(self),
            "location": self.location,
            "roomType": self.room_type.value,
            "furnished": self.furnished,
            "images": list(self.images),
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }


def duration_days(listing: Listing) -> int:
    """Number of days between the listing's start and end dates."""
    return (listing.end_date - listing.start_date).days


def _is_absolute_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _check_image_urls(value: Optional[List[str]]) -> Optional[List[str]]:
    if value is None:
        return value
    bad = [url for url in value if not _is_absolute_url(url)]
    if bad:
        raise ValueError(f"Invalid image URL format: {bad[0]}")
    return value


LISTING_MODEL_CONFIG = ConfigDict(populate_by_name=True, str_strip_whitespace=True, extra="ignore")


class ListingDraft(BaseModel):
    """Fields required to publish a new listing."""

    model_config = LISTING_MODEL_CONFIG

    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH)
    description: Optional[str] = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    price: float = Field(ge=0, allow_inf_nan=False)
    deposit: float = Field(ge=0, allow_inf_nan=False)
    start_date: date = Field(alias="startDate")
    end_date: date = Field(alias="endDate")
    location: str = Field(min_length=1)
    room_type: RoomType = Field(default=RoomType.STUDIO, alias="roomType")
    furnished: bool = False
    images: List[str] = Field(default_factory=list)

    @field_validator("images")
    @classmethod
    def check_images(cls, value: List[str]) -> List[str]:
        return _check_image_urls(value)

    @model_validator(mode="after")
    def check_dates(self) -> "ListingDraft":
        if self.end_date <= self.start_date:
            raise ValueError("End date must be after start date")
        return self


class ListingPatch(BaseModel):
    """
    Partial listing update.

    Only fields the caller actually sent are applied; the end-after-start
    invariant is re-checked by the service against the merged record.
    """

    model_config = LISTING_MODEL_CONFIG

    title: Optional[str] = Field(default=None, min_length=1, max_length=TITLE_MAX_LENGTH)
    description: Optional[str] = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    price: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    deposit: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    start_date: Optional[date] = Field(default=None, alias="startDate")
    end_date: Optional[date] = Field(default=None, alias="endDate")
    location: Optional[str] = Field(default=None, min_length=1)
    room_type: Optional[RoomType] = Field(default=None, alias="roomType")
    furnished: Optional[bool] = None
    images: Optional[List[str]] = None

    @field_validator("images")
    @classmethod
    def check_images(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        return _check_image_urls(value)

    @model_validator(mode="after")
    def reject_nulls(self) -> "ListingPatch":
        for name in self.model_fields_set:
            if name != "description" and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict:
        return {name: getattr(self, name) for name in self.model_fields_set}


class SearchConstraint(BaseModel):
    """Caller-supplied search filters; every filter is optional."""

    model_config = LISTING_MODEL_CONFIG

    start_date: Optional[date] = Field(default=None, alias="startDate")
    end_date: Optional[date] = Field(default=None, alias="endDate")
    min_price: Optional[float] = Field(default=None, ge=0, alias="minPrice", allow_inf_nan=False)
    max_price: Optional[float] = Field(default=None, ge=0, alias="maxPrice", allow_inf_nan=False)
    location: Optional[str] = None
    page: int = Field(default=1, ge=1, le=MAX_PAGE)
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, alias="pageSize")

    @model_validator(mode="after")
    def check_ranges(self) -> "SearchConstraint":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("startDate must not be after endDate")
        if (
            self.min_price is not None
            and self.max_price is not None
            and self.min_price > self.max_price
        ):
            raise ValueError("minPrice must not be greater than maxPrice")
        if self.location == "":
            self.location = None
        return self


@dataclass(frozen=True)
class ListingFilter:
    """Repository-level filter built from a SearchConstraint."""
    available_from: Optional[date] = None
    available_until: Optional[date] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    location: Optional[str] = None


@dataclass
class ListingPage:
    """One page of search results."""
    items: List[Listing]
    total_count: int
    page: int
    page_size: int
    total_pages: int

    def to_dict(self) -> dict:
        return {
            "listings": [listing.to_dict() for listing in self.items],
            "totalCount": self.total_count,
            "currentPage": self.page,
            "pageSize": self.page_size,
            "totalPages": self.total_pages,
        }
