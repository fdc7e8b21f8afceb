from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

PriceTier = Literal["$", "$$", "$$$"]
Weekday = Literal[
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"
]


# --- Catalog snapshot (read-only during a search) ---
class ServiceOffering(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    price: float = Field(ge=0)
    duration_minutes: int = Field(gt=0)
    description: str | None = None


class AvailabilitySlot(BaseModel):
    model_config = ConfigDict(frozen=True)

    day: Weekday
    open: str = ""
    close: str = ""
    is_available: bool = True


class ShopCatalogEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    address: str
    rating: float | None = Field(default=None, ge=0, le=5)
    price_tier: PriceTier | None = None
    services: tuple[ServiceOffering, ...] = ()
    description: str = ""
    owner_id: str | None = None
    google_maps_link: str | None = None
    photos: tuple[str, ...] = ()
    availability: tuple[AvailabilitySlot, ...] = ()


# --- API payloads ---
class ServiceItem(BaseModel):
    id: str
    name: str
    price: float
    duration_minutes: int
    description: str | None = None


class ShopListItem(BaseModel):
    id: str
    name: str
    address: str
    rating: float | None = None
    price_tier: PriceTier | None = None
    description: str = ""
    cover_photo: str | None = None
    google_maps_link: str | None = None
    services: list[ServiceItem] = Field(default_factory=list)
    starting_price: float | None = None


class ShopDetail(ShopListItem):
    photos: list[str] = Field(default_factory=list)
    availability: list[AvailabilitySlot] = Field(default_factory=list)
