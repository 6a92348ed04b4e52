"""Checklist generation mapping and degradation paths."""

import pytest

from packages.agent.defaults import DEFAULT_CHECKLIST
from packages.agent.gemini_client import decode_image, extract_json
from packages.agent.planner import (
    DEFECT_INSTRUCTION,
    FALLBACK_IMAGE_NOTE,
    IDENTIFY_INSTRUCTION,
    ChecklistPlanner,
    normalize_weather,
)
from packages.common.models import ItemStatus, SectionStatus


class FakeClient:
    def __init__(self, json_payload=None, text="", image_note="", error: Exception | None = None, enabled=True):
        self.json_payload = json_payload
        self.text = text
        self.image_note = image_note
        self.error = error
        self._enabled = enabled
        self.prompts: list[str] = []

    @property
    def enabled(self) -> bool:
        return self._enabled

    def generate_json(self, *, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.json_payload

    def generate_text(self, *, prompt, temperature=0.2):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.text

    def describe_image(self, *, image, prompt, mime_type="image/jpeg"):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.image_note


PLAN = [
    {
        "title": "Roof",
        "description": "Covering, flashings, and drainage",
        "iconName": "sun",
        "items": [
            {"label": "Roof-Covering Material", "options": ["Asphalt", "Metal"]},
            {"label": "Gutters & Downspouts"},
        ],
    },
    {"title": "Master Bath", "description": "Fixtures", "iconName": "sparkles", "items": [{"label": "Toilet"}]},
]


def test_plan_maps_sections_with_fresh_ids() -> None:
    sections = ChecklistPlanner(FakeClient(json_payload=PLAN)).generate_inspection_plan("12 Elm", "Ranch", 1, 2, 3)

    assert [section.title for section in sections] == ["Roof", "Master Bath"]
    roof = sections[0]
    assert roof.status == SectionStatus.PENDING
    assert roof.items[0].options == ["Asphalt", "Metal"]
    assert roof.items[1].options is None
    assert all(item.status == ItemStatus.UNTOUCHED for item in roof.items)
    assert sections[1].icon_name == "home"
    ids = [section.id for section in sections] + [item.id for section in sections for item in section.items]
    assert len(set(ids)) == len(ids)


@pytest.mark.parametrize(
    "client",
    [
        FakeClient(json_payload={"title": "not an array"}),
        FakeClient(json_payload=[{"description": "no title"}]),
        FakeClient(json_payload=[]),
        FakeClient(error=RuntimeError("Gemini generation failed: quota")),
        FakeClient(error=ValueError("Could not parse JSON payload")),
        FakeClient(enabled=False),
    ],
)
def test_plan_falls_back_to_default_checklist(client) -> None:
    sections = ChecklistPlanner(client).generate_inspection_plan("12 Elm", "Ranch", 1, 1, 1)
    assert [section.title for section in sections] == [title for title, _, _ in DEFAULT_CHECKLIST]


def test_default_checklist_ids_are_fresh_per_call() -> None:
    planner = ChecklistPlanner(FakeClient(enabled=False))
    first = planner.generate_inspection_plan("a", "b", 1, 1, 1)
    second = planner.generate_inspection_plan("a", "b", 1, 1, 1)
    assert first[0].id != second[0].id


def test_generate_section_accepts_object_or_single_array() -> None:
    payload = {"title": "Garage", "iconName": "tool", "items": [{"label": "Vehicle door"}]}
    assert ChecklistPlanner(FakeClient(json_payload=payload)).generate_section("garage").title == "Garage"
    assert ChecklistPlanner(FakeClient(json_payload=[payload])).generate_section("garage").title == "Garage"
    assert ChecklistPlanner(FakeClient(json_payload="nonsense")).generate_section("garage") is None
    assert ChecklistPlanner(FakeClient(error=RuntimeError("down"))).generate_section("garage") is None


def test_generate_items_degrades_to_empty() -> None:
    items = ChecklistPlanner(FakeClient(json_payload=[{"label": "Sump pump"}])).generate_items("Plumbing", "sump")
    assert [item.label for item in items] == ["Sump pump"]
    assert ChecklistPlanner(FakeClient(json_payload=[{"nope": 1}])).generate_items("Plumbing", "x") == []
    assert ChecklistPlanner(FakeClient(json_payload=42)).generate_items("Plumbing", "x") == []
    assert ChecklistPlanner(FakeClient(enabled=False)).generate_items("Plumbing", "x") == []


def test_image_prompt_depends_on_status() -> None:
    client = FakeClient(image_note="Horizontal crack in block wall.")
    planner = ChecklistPlanner(client)

    assert planner.analyze_image("data:image/jpeg;base64,AAAA", "Foundation", ItemStatus.DANGEROUS) == (
        "Horizontal crack in block wall."
    )
    planner.analyze_image("data:image/jpeg;base64,AAAA", "Panel", "pass")
    assert DEFECT_INSTRUCTION in client.prompts[0]
    assert IDENTIFY_INSTRUCTION in client.prompts[1]


def test_image_analysis_fallback() -> None:
    assert ChecklistPlanner(FakeClient(error=RuntimeError("x"))).analyze_image("AAAA", "a", "info") == FALLBACK_IMAGE_NOTE
    assert ChecklistPlanner(FakeClient(enabled=False)).analyze_image("AAAA", "a", "info") == FALLBACK_IMAGE_NOTE


def test_property_details_are_normalized() -> None:
    text = (
        "Here is what I found:\n```json\n"
        '{"formattedAddress": "12 Elm St, Springfield, IL", "propertyType": "Ranch", "floors": 1,'
        ' "bedrooms": 3, "baths": 2, "sqft": 1450, "currentTemp": "72°F", "currentWeather": "Light drizzle"}\n```'
    )
    details = ChecklistPlanner(FakeClient(text=text)).detect_property_details("12 Elm")
    assert details.formatted_address == "12 Elm St, Springfield, IL"
    assert details.sqft == 1450
    assert details.current_temp == "72"
    assert details.current_weather == "Rainy"


def test_property_details_failure_is_empty() -> None:
    assert ChecklistPlanner(FakeClient(text="no idea")).detect_property_details("x").empty
    assert ChecklistPlanner(FakeClient(enabled=False)).detect_property_details("x").empty


def test_extract_json_handles_fences_and_chatter() -> None:
    assert extract_json('```json\n[{"label": "a"}]\n```') == [{"label": "a"}]
    assert extract_json('Sure! {"title": "Roof"} Hope that helps.') == {"title": "Roof"}
    with pytest.raises(ValueError):
        extract_json("nothing here")


def test_decode_image_data_url() -> None:
    data, mime = decode_image("data:image/png;base64,aGVsbG8=")
    assert (data, mime) == (b"hello", "image/png")


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("Cloudy skies", "Cloudy"), ("Snow showers", "Snowy"), ("Overcast", "Overcast"), ("Clear", "Sunny")],
)
def test_normalize_weather(raw, expected) -> None:
    assert normalize_weather(raw) == expected
