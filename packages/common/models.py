"""Shared pydantic models and enums for Inspectpad."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ItemStatus(str, Enum):
    UNTOUCHED = "untouched"
    PASS = "pass"
    INFO = "info"
    ATTENTION = "attention"
    MODERATE = "moderate"
    DANGEROUS = "dangerous"


ISSUE_STATUSES = frozenset({ItemStatus.ATTENTION, ItemStatus.MODERATE, ItemStatus.DANGEROUS})


class SectionStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


ICON_NAMES = ("home", "kitchen", "bath", "bed", "wind", "zap", "droplet", "sun", "box", "tool")


class ChecklistItem(BaseModel):
    id: str
    label: str
    status: ItemStatus = ItemStatus.UNTOUCHED
    notes: str = ""
    photos: list[str] = Field(default_factory=list)
    options: list[str] | None = None
    selected_option: str | None = None
    is_hidden: bool = False


class ChecklistSection(BaseModel):
    id: str
    title: str
    description: str = ""
    icon_name: str = "home"
    items: list[ChecklistItem] = Field(default_factory=list)
    photo_url: str | None = None
    status: SectionStatus = SectionStatus.PENDING


class InspectionProfile(BaseModel):
    """Root document for one property visit."""

    id: str
    saved_report_id: str | None = None
    short_id: str | None = None
    user_id: str | None = None

    address: str
    google_maps_url: str | None = None
    property_type: str
    floors: int = 1
    baths: int = 1
    bedrooms: int = 1
    sqft: int | None = None
    year_built: str | None = None
    occupancy: str | None = None
    pets: str | None = None

    weather: str | None = None
    temperature_outside: str | None = None
    temperature_inside: str | None = None

    gas_type: str | None = None
    sewer_type: str | None = None
    water_type: str | None = None
    electric_panel: str | None = None
    generator_type: str | None = None

    inspector_name: str
    created_at: datetime
    sections: list[ChecklistSection] = Field(default_factory=list)


class SummaryCounts(BaseModel):
    total: int
    passed: int
    issues: int
    info: int
    remaining: int


class SectionProgress(BaseModel):
    section_id: str
    title: str
    status: SectionStatus
    inspected: int
    total: int
    hidden: int


class ProgressReport(BaseModel):
    inspection_id: str
    progress: int
    summary: SummaryCounts
    sections: list[SectionProgress]


class PropertyDetails(BaseModel):
    """Facts looked up for an address; every field is optional."""

    formatted_address: str | None = None
    google_maps_url: str | None = None
    property_type: str | None = None
    floors: int | None = None
    bedrooms: int | None = None
    baths: int | None = None
    year_built: str | None = None
    sqft: int | None = None
    gas_type: str | None = None
    sewer_type: str | None = None
    water_type: str | None = None
    current_temp: str | None = None
    current_weather: str | None = None

    @property
    def empty(self) -> bool:
        return not any(value is not None for value in self.model_dump().values())


class PropertyLookupRequest(BaseModel):
    address: str = Field(min_length=1)


class InspectionCreateRequest(BaseModel):
    address: str = Field(min_length=1)
    property_type: str = Field(min_length=1)
    google_maps_url: str | None = None
    floors: int = Field(default=1, ge=0)
    baths: int = Field(default=1, ge=0)
    bedrooms: int = Field(default=1, ge=0)
    sqft: int | None = Field(default=None, ge=0)
    year_built: str | None = None
    occupancy: str | None = None
    pets: str | None = None
    weather: str | None = None
    temperature_outside: str | None = None
    temperature_inside: str | None = None
    gas_type: str | None = None
    sewer_type: str | None = None
    water_type: str | None = None
    electric_panel: str | None = None
    generator_type: str | None = None


class ItemStatusUpdate(BaseModel):
    status: ItemStatus


class ItemOptionUpdate(BaseModel):
    selected_option: str


class ItemNotesUpdate(BaseModel):
    notes: str


class ItemVisibilityUpdate(BaseModel):
    is_hidden: bool


class PhotoUpload(BaseModel):
    image: str = Field(min_length=1, description="Data URL or image URL")
    item_id: str | None = None
    analyze: bool = True


class GeneratePrompt(BaseModel):
    prompt: str = Field(min_length=1)


class SaveResponse(BaseModel):
    report_id: str
    short_id: str
    share_url: str
    warning: str | None = None


class Credentials(BaseModel):
    email: str = Field(min_length=3)
    password: str = Field(min_length=6)


class AuthUser(BaseModel):
    id: str
    email: str | None = None


class ApiError(BaseModel):
    code: str
    message: str
    retryable: bool = False
    details: dict[str, Any] = Field(default_factory=dict)
