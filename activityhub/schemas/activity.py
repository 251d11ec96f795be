# Activity API request/response schemas

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic import ValidationError as PydanticValidationError

from activityhub.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from activityhub.errors import ValidationError
from activityhub.models.base import to_utc_naive, utc_now
from activityhub.schemas.user import UserInfo

ActivityStatusLiteral = Literal["upcoming", "ongoing", "completed", "cancelled"]
DateFilterLiteral = Literal["today", "tomorrow", "week", "month"]
OrderByLiteral = Literal["start_date", "created_at", "title"]
OrderDirectionLiteral = Literal["asc", "desc"]

# Highest page whose OFFSET ((page - 1) * MAX_PAGE_SIZE) still fits a signed 64-bit integer.
MAX_PAGE = (2**63 - 1) // MAX_PAGE_SIZE + 1


class Coordinates(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class ActivityCreate(BaseModel):
    """Activity creation request. Field order matters: later validators read earlier fields."""

    title: str = Field(..., min_length=3, max_length=100)
    description: str = Field(..., min_length=10, max_length=5000)
    start_date: datetime
    end_date: datetime
    location: str = Field(..., min_length=3, max_length=200)
    max_participants: int = Field(..., ge=1, le=1000)
    category_id: str = Field(..., min_length=1)
    is_private: bool = False
    is_paid: bool = False
    price: Optional[float] = Field(default=None, ge=0, validate_default=True)
    images: List[str] = Field(default_factory=list, max_length=5)
    coordinates: Optional[Coordinates] = None

    @field_validator("start_date")
    @classmethod
    def _start_in_future(cls, v: datetime) -> datetime:
        v = to_utc_naive(v)
        if v <= utc_now():
            raise ValueError("Start date must be in the future")
        return v

    @field_validator("end_date")
    @classmethod
    def _end_after_start(cls, v: datetime, info: ValidationInfo) -> datetime:
        v = to_utc_naive(v)
        start = info.data.get("start_date")
        if start is not None and v <= start:
            raise ValueError("End date must be after start date")
        return v

    @field_validator("price")
    @classmethod
    def _price_for_paid(cls, v: Optional[float], info: ValidationInfo) -> Optional[float]:
        if info.data.get("is_paid") and not (v and v > 0):
            raise ValueError("Price is required for paid activities")
        return v


class StatusUpdateBody(BaseModel):
    status: ActivityStatusLiteral


class CategoryInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str


class ParticipantInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    status: str
    joined_at: datetime
    user: UserInfo


class ActivitySummary(BaseModel):
    """List item. current_participants is the stored counter, not a recount."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: str
    start_date: datetime
    end_date: datetime
    location: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    max_participants: int
    current_participants: int
    status: ActivityStatusLiteral
    is_private: bool
    is_paid: bool
    price: Optional[float] = None
    images: List[str] = []
    creator: UserInfo
    category: CategoryInfo
    created_at: datetime
    updated_at: datetime


class ActivityDetail(ActivitySummary):
    participants: List[ParticipantInfo] = []
    is_participating: bool = False
    time_status: Optional[ActivityStatusLiteral] = None  # what the clock implies; stored status is not auto-updated


class Pagination(BaseModel):
    total: int
    total_pages: int
    current_page: int
    page_size: int
    has_more: bool


class ActivityPage(BaseModel):
    items: List[ActivitySummary]
    pagination: Pagination


class ActivityQuery(BaseModel):
    """Filter + sort + pagination for listing. Each present field becomes one WHERE clause."""

    model_config = ConfigDict(extra="forbid")

    page: int = Field(default=1, ge=1, le=MAX_PAGE)
    limit: int = Field(default=DEFAULT_PAGE_SIZE, ge=1)
    search: Optional[str] = None
    category: Optional[str] = None
    status: Optional[ActivityStatusLiteral] = None
    creator_id: Optional[str] = None
    participant_id: Optional[str] = None
    date: Optional[DateFilterLiteral] = None
    order_by: OrderByLiteral = "start_date"
    order_direction: OrderDirectionLiteral = "asc"

    @field_validator("search", "category", "status", "creator_id", "participant_id", "date", mode="before")
    @classmethod
    def _blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @classmethod
    def parse(cls, **params: Any) -> "ActivityQuery":
        """
        Validate raw parameters. None means "not given" and falls back to the default.

        Raises:
            ValidationError: with one {path, message} entry per invalid field.
        """
        given: Dict[str, Any] = {k: v for k, v in params.items() if v is not None}
        try:
            return cls(**given)
        except PydanticValidationError as e:
            raise ValidationError.from_errors("Invalid query parameters", e.errors()) from None
