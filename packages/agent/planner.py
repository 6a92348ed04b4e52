"""Checklist generation, photo notes, and property lookup backed by Gemini.

Every public method degrades instead of raising: a disabled client, an API
failure, or a payload in the wrong shape yields the built-in checklist, an empty
result, or a fixed fallback string.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from packages.agent.defaults import default_sections
from packages.agent.gemini_client import extract_json
from packages.common.ids import new_entity_id
from packages.common.models import (
    ICON_NAMES,
    ISSUE_STATUSES,
    ChecklistItem,
    ChecklistSection,
    ItemStatus,
    PropertyDetails,
)

logger = logging.getLogger(__name__)

FALLBACK_IMAGE_NOTE = "Analyzed image."

PLAN_PROMPT = """
I am a home inspector inspecting a {property_type} style house at {address}.
Details: {floors} floors, {baths} bathrooms, {bedrooms} bedrooms.

Generate a JSON inspection checklist that strictly adheres to the InterNACHI Standards of Practice.

MANDATORY SECTIONS (do not omit): Roof; Exterior; Basement, Foundation, Crawlspace; Heating;
Cooling; Plumbing; Electrical; Fireplace (if applicable); Attic, Insulation & Ventilation;
Doors, Windows & Interior; Appliances.
Items that identify a material or type (roof covering, siding, foundation type, energy source,
heating method, wiring method, insulation type, water supply) must carry an "options" array.

DYNAMIC ADDITIONS:
- Separate sections for individual bathrooms (e.g. Master Bath, Hall Bath) if count > 1.
- Separate sections for bedrooms (e.g. Master Bed, Bed 2) if count > 1.

OUTPUT FORMAT: JSON array of objects.
Icon names must be from: {icons}.
Example:
[
  {{
    "title": "Roof",
    "description": "Covering, flashings, and drainage",
    "iconName": "sun",
    "items": [
      {{ "label": "Roof-Covering Material", "options": ["Asphalt", "Metal"] }},
      {{ "label": "Gutters & Downspouts" }}
    ]
  }}
]
"""

SECTION_PROMPT = """
Create a single home inspection section for: "{prompt}".

Include 5-8 standard inspection items for this area.
If items typically need identification (like material type), include an 'options' array.
Choose a valid icon name from: {icons}.

Output JSON object only (not array).
Format:
{{
  "title": "String",
  "description": "String",
  "iconName": "String",
  "items": [ {{ "label": "String", "options": ["opt1", "opt2"] }} ]
}}
"""

ITEMS_PROMPT = """
For a home inspection section titled "{title}", generate a list of inspection items based on this request: "{prompt}".

Output JSON array of objects.
Format:
[
  {{ "label": "Item Name", "options": ["opt1", "opt2"] }}
]
(Options are optional, include only if relevant for materials/types).
"""

IMAGE_PROMPT = """
You are a home inspector assistant.
Item being inspected: "{label}".
User marked status as: "{status}".

Analyze the image. {instruction}

Output requirement:
- 1 extremely short sentence (under 15 words).
- No filler words like "The image shows".
- Example for defect: "Horizontal crack visible in mid-span of foundation block."
- Example for good: "200 Amp service panel with clear labeling."
"""

DEFECT_INSTRUCTION = "Focus on the specific defect, hazard, or damage visible. Be concise and technical."
IDENTIFY_INSTRUCTION = "Simply identify the material, type, or confirm it appears in good condition."

PROPERTY_PROMPT = """
Find real estate details for the property at: {address}.
Also find the current weather conditions for this location.

If you find conflicting info, pick the most likely or most recent.

CRITICAL: Output strictly valid JSON. Do not include markdown formatting or conversational text.
Target JSON Format:
{{
  "formattedAddress": "string",
  "propertyType": "string (Ranch, Colonial, High Ranch, Bi-Level, Cape Cod...)",
  "floors": number,
  "bedrooms": number,
  "baths": number,
  "yearBuilt": "string",
  "sqft": number,
  "gasType": "Natural Gas | Propane | Oil | Electric",
  "sewerType": "Public Sewer | Septic System",
  "waterType": "Public Water | Well",
  "currentTemp": "string (Fahrenheit)",
  "currentWeather": "string"
}}
"""


class GenerationClient(Protocol):
    @property
    def enabled(self) -> bool: ...

    def generate_text(self, *, prompt: str, temperature: float = 0.2) -> str: ...

    def generate_json(self, *, prompt: str) -> Any: ...

    def describe_image(self, *, image: str | bytes, prompt: str, mime_type: str = "image/jpeg") -> str: ...


class _RawItem(BaseModel):
    label: str = Field(min_length=1)
    options: list[str] | None = None


class _RawSection(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(min_length=1)
    description: str = ""
    icon_name: str = Field(default="home", alias="iconName")
    items: list[_RawItem] = Field(default_factory=list)


class _RawDetails(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    formatted_address: str | None = Field(default=None, alias="formattedAddress")
    property_type: str | None = Field(default=None, alias="propertyType")
    floors: int | None = None
    bedrooms: int | None = None
    baths: int | None = None
    year_built: str | None = Field(default=None, alias="yearBuilt")
    sqft: int | None = None
    gas_type: str | None = Field(default=None, alias="gasType")
    sewer_type: str | None = Field(default=None, alias="sewerType")
    water_type: str | None = Field(default=None, alias="waterType")
    current_temp: str | None = Field(default=None, alias="currentTemp")
    current_weather: str | None = Field(default=None, alias="currentWeather")


def _to_item(raw: _RawItem) -> ChecklistItem:
    return ChecklistItem(id=new_entity_id("item"), label=raw.label, options=raw.options or None)


def _to_section(raw: _RawSection) -> ChecklistSection:
    icon = raw.icon_name if raw.icon_name in ICON_NAMES else "home"
    return ChecklistSection(
        id=new_entity_id("section"),
        title=raw.title,
        description=raw.description,
        icon_name=icon,
        items=[_to_item(item) for item in raw.items],
    )


def normalize_weather(text: str) -> str:
    lowered = text.lower()
    if "rain" in lowered or "drizzle" in lowered:
        return "Rainy"
    if "cloud" in lowered:
        return "Cloudy"
    if "snow" in lowered:
        return "Snowy"
    if "overcast" in lowered:
        return "Overcast"
    return "Sunny"


def normalize_temperature(text: str) -> str:
    return re.sub(r"[^0-9.]", "", text)


class ChecklistPlanner:
    def __init__(self, client: GenerationClient) -> None:
        self.client = client

    def generate_inspection_plan(
        self, address: str, property_type: str, floors: int, baths: int, bedrooms: int
    ) -> list[ChecklistSection]:
        prompt = PLAN_PROMPT.format(
            address=address,
            property_type=property_type,
            floors=floors,
            baths=baths,
            bedrooms=bedrooms,
            icons=list(ICON_NAMES),
        )
        try:
            if not self.client.enabled:
                raise RuntimeError("generation client disabled")
            payload = self.client.generate_json(prompt=prompt)
            if not isinstance(payload, list):
                raise ValueError(f"expected an array of sections, got {type(payload).__name__}")
            sections = [_to_section(_RawSection.model_validate(raw)) for raw in payload]
            if not sections:
                raise ValueError("plan contained no sections")
            return sections
        except (RuntimeError, ValueError, ValidationError) as exc:
            logger.warning("Falling back to default checklist: %s", exc)
            return default_sections()

    def generate_section(self, prompt: str) -> ChecklistSection | None:
        if not self.client.enabled:
            logger.info("Section generation skipped, client disabled")
            return None
        try:
            payload = self.client.generate_json(prompt=SECTION_PROMPT.format(prompt=prompt, icons=list(ICON_NAMES)))
            if isinstance(payload, list) and len(payload) == 1:
                payload = payload[0]
            return _to_section(_RawSection.model_validate(payload))
        except (RuntimeError, ValueError, ValidationError) as exc:
            logger.warning("Error generating single section: %s", exc)
            return None

    def generate_items(self, section_title: str, prompt: str) -> list[ChecklistItem]:
        if not self.client.enabled:
            logger.info("Item generation skipped, client disabled")
            return []
        try:
            payload = self.client.generate_json(prompt=ITEMS_PROMPT.format(title=section_title, prompt=prompt))
            if isinstance(payload, dict):
                payload = payload.get("items", [payload])
            if not isinstance(payload, list):
                raise ValueError("expected an array of items")
            return [_to_item(_RawItem.model_validate(raw)) for raw in payload]
        except (RuntimeError, ValueError, ValidationError) as exc:
            logger.warning("Error generating items: %s", exc)
            return []

    def analyze_image(self, image: str | bytes, item_label: str, status: ItemStatus | str) -> str:
        status = ItemStatus(status)
        instruction = DEFECT_INSTRUCTION if status in ISSUE_STATUSES else IDENTIFY_INSTRUCTION
        prompt = IMAGE_PROMPT.format(label=item_label, status=status.value, instruction=instruction)
        if not self.client.enabled:
            return FALLBACK_IMAGE_NOTE
        try:
            note = self.client.describe_image(image=image, prompt=prompt)
        except (RuntimeError, ValueError) as exc:
            logger.warning("Error analyzing image: %s", exc)
            return FALLBACK_IMAGE_NOTE
        return note or FALLBACK_IMAGE_NOTE

    def detect_property_details(self, address: str) -> PropertyDetails:
        if not self.client.enabled:
            return PropertyDetails()
        try:
            text = self.client.generate_text(prompt=PROPERTY_PROMPT.format(address=address), temperature=0.1)
            payload = extract_json(text)
            if not isinstance(payload, dict):
                raise ValueError("expected an object")
            raw = _RawDetails.model_validate(payload)
        except (RuntimeError, ValueError, ValidationError) as exc:
            logger.warning("Error detecting property details: %s", exc)
            return PropertyDetails()

        details = PropertyDetails(**raw.model_dump())
        if details.current_temp:
            details.current_temp = normalize_temperature(details.current_temp) or None
        if details.current_weather:
            details.current_weather = normalize_weather(details.current_weather)
        return details
