from __future__ import annotations

from typing import Any, Literal, get_args

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .contracts import PriceTier, ShopListItem
from .validators import (
    RATING_ANY_SENTINELS,
    coerce_number,
    is_any_sentinel,
    normalize_keywords,
    normalize_price_tier,
    normalize_text,
)

PriceDescriptor = Literal["under", "over", "around", "exact", "cheap", "expensive", "any"]
PRICE_DESCRIPTORS: frozenset[str] = frozenset(get_args(PriceDescriptor))

SUMMARY_MAX_LENGTH = 500


def _section(value: Any) -> Any:
    # nested filter groups arrive as objects; anything else is dropped
    if value is None or isinstance(value, BaseModel | dict):
        return value
    return None


class _FilterModel(BaseModel):
    # Interpreter payloads use camelCase keys; API callers may use either style.
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class PriceFilter(_FilterModel):
    max: float | None = None
    min: float | None = None
    descriptor: PriceDescriptor | None = None

    @field_validator("max", "min", mode="before")
    @classmethod
    def _bound(cls, value):
        return coerce_number(value)

    @field_validator("descriptor", mode="before")
    @classmethod
    def _descriptor(cls, value):
        if not isinstance(value, str):
            return None
        lowered = value.strip().lower()
        return lowered if lowered in PRICE_DESCRIPTORS else None

    @property
    def is_empty(self) -> bool:
        return self.max is None and self.min is None and self.descriptor is None


class DateTimeFilter(_FilterModel):
    date: str | None = None
    time: str | None = None
    day_of_week: str | None = Field(default=None, alias="dayOfWeek")

    @field_validator("date", "time", "day_of_week", mode="before")
    @classmethod
    def _text(cls, value):
        return normalize_text(value)

    @property
    def is_empty(self) -> bool:
        return self.date is None and self.time is None and self.day_of_week is None


class RatingFilter(_FilterModel):
    min: float | None = None

    @field_validator("min", mode="before")
    @classmethod
    def _min(cls, value):
        return coerce_number(value)


class ParsedFilters(_FilterModel):
    """Structured constraints derived from a free-text query. Absent means unconstrained."""

    service_keywords: tuple[str, ...] = Field(default=(), alias="serviceKeywords")
    location_keywords: tuple[str, ...] = Field(default=(), alias="locationKeywords")
    price: PriceFilter | None = None
    date_time: DateTimeFilter | None = Field(default=None, alias="dateTime")
    rating: RatingFilter | None = None
    open_now: bool | None = Field(default=None, alias="openNow")
    other_features: tuple[str, ...] = Field(default=(), alias="otherFeatures")

    @field_validator("service_keywords", "location_keywords", "other_features", mode="before")
    @classmethod
    def _keywords(cls, value):
        return normalize_keywords(value)

    @field_validator("price", "date_time", mode="before")
    @classmethod
    def _sections(cls, value):
        return _section(value)

    @field_validator("rating", mode="before")
    @classmethod
    def _rating(cls, value):
        # a bare star count is the minimum rating
        if isinstance(value, int | float | str) and not isinstance(value, bool):
            number = coerce_number(value)
            return {"min": number} if number is not None else None
        return _section(value)

    @field_validator("open_now", mode="before")
    @classmethod
    def _open_now(cls, value):
        if isinstance(value, bool) or value is None:
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in {"true", "yes"}:
                return True
            if lowered in {"false", "no"}:
                return False
        return None

    @property
    def is_empty(self) -> bool:
        return not (
            self.service_keywords
            or self.location_keywords
            or (self.price is not None and not self.price.is_empty)
            or (self.date_time is not None and not self.date_time.is_empty)
            or (self.rating is not None and self.rating.min is not None)
            or self.open_now is not None
            or self.other_features
        )


class ManualFilters(_FilterModel):
    """Explicit constraints picked in the filter form."""

    service_name: str | None = Field(default=None, alias="serviceName")
    rating_min: float | None = Field(default=None, alias="ratingMin")
    price_tier: PriceTier | None = Field(default=None, alias="priceTier")
    search_term: str | None = Field(default=None, alias="searchTerm")
    location: str | None = None

    @field_validator("service_name", mode="before")
    @classmethod
    def _service_name(cls, value):
        if value is None or is_any_sentinel(value):
            return None
        if not isinstance(value, str):
            raise ValueError("service_name must be a string")
        return value.strip() or None

    @field_validator("rating_min", mode="before")
    @classmethod
    def _rating_min(cls, value):
        # the form sends the string "0" for "any rating"; a numeric 0 is a real floor
        if value is None or is_any_sentinel(value, RATING_ANY_SENTINELS):
            return None
        number = coerce_number(value)
        if number is None:
            raise ValueError("rating_min must be a number")
        return number

    @field_validator("price_tier", mode="before")
    @classmethod
    def _price_tier(cls, value):
        return normalize_price_tier(value)

    @field_validator("search_term", "location", mode="before")
    @classmethod
    def _text(cls, value):
        return normalize_text(value)

    @property
    def is_active(self) -> bool:
        return any(
            value is not None
            for value in (
                self.service_name,
                self.rating_min,
                self.price_tier,
                self.search_term,
                self.location,
            )
        )


class SearchCriteria(ParsedFilters, ManualFilters):
    """Merged, precedence-resolved constraint set evaluated against the catalog."""

    def ai_filters(self) -> ParsedFilters:
        return ParsedFilters.model_validate(
            {name: getattr(self, name) for name in ParsedFilters.model_fields}
        )

    def manual_filters(self) -> ManualFilters:
        return ManualFilters.model_validate(
            {name: getattr(self, name) for name in ManualFilters.model_fields}
        )


class InterpretedQuery(_FilterModel):
    parsed_filters: ParsedFilters = Field(default_factory=ParsedFilters, alias="parsedFilters")
    search_summary: str | None = Field(default=None, alias="searchSummary")
    clarification_needed: str | None = Field(default=None, alias="clarificationNeeded")

    @field_validator("parsed_filters", mode="before")
    @classmethod
    def _parsed(cls, value):
        if isinstance(value, BaseModel | dict):
            return value
        return {}

    @field_validator("search_summary", "clarification_needed", mode="before")
    @classmethod
    def _text(cls, value):
        return normalize_text(value, max_length=SUMMARY_MAX_LENGTH)


class ShopSearchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    query: str | None = Field(default=None, max_length=500)
    filters: ManualFilters | None = None


class ShopSearchResponse(BaseModel):
    results: list[ShopListItem]
    summary: str
    result_count: int
    clarification_needed: str | None = None
    ai_failed: bool = False
    notice: str | None = None
    parsed_filters: dict[str, Any] | None = None
