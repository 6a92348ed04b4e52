import pytest
from fastapi.testclient import TestClient

from apps.api import main
from packages.common.errors import RemoteStoreError
from packages.storage.gateway import ReportGateway
from packages.storage.local import LocalReportStore

SETUP = {
    "address": "12 Elm Street, Springfield",
    "property_type": "Colonial",
    "floors": 2,
    "baths": 2,
    "bedrooms": 3,
    "weather": "Sunny",
}


class StubClient:
    enabled = True

    def generate_json(self, *, prompt):
        if "single home inspection section" in prompt:
            return {"title": "Garage", "iconName": "tool", "items": [{"label": "Vehicle door"}]}
        if "generate a list of inspection items" in prompt:
            return [{"label": "Sump pump"}, {"label": "Expansion tank"}]
        return [
            {
                "title": "Roof",
                "iconName": "sun",
                "items": [{"label": "Roof-Covering Material", "options": ["Asphalt", "Metal"]}, {"label": "Gutters"}],
            },
            {"title": "Plumbing", "iconName": "droplet", "items": [{"label": "Main Water Shut-off"}]},
        ]

    def generate_text(self, *, prompt, temperature=0.2):
        return '{"formattedAddress": "12 Elm St", "bedrooms": 3, "currentWeather": "Partly cloudy"}'

    def describe_image(self, *, image, prompt, mime_type="image/jpeg"):
        return "Asphalt shingles with minor granule loss."


class FailingRemote:
    name = "failing"

    def __init__(self, code: str) -> None:
        self.code = code

    def upsert(self, report_id, short_id, data, user_id=None):
        raise RemoteStoreError(self.code, "rejected")

    def fetch(self, identifier, by_short_id):
        raise RemoteStoreError(self.code, "rejected")


@pytest.fixture
def client(monkeypatch, tmp_path) -> TestClient:
    monkeypatch.setattr(main.planner, "client", StubClient())
    monkeypatch.setattr(
        main,
        "gateway",
        ReportGateway(local=LocalReportStore(tmp_path / "chrp_inspections.json"), auth=main.gateway.auth),
    )
    return TestClient(main.app)


def _start(client: TestClient) -> dict:
    response = client.post("/inspections", json=SETUP)
    assert response.status_code == 201
    return response.json()


def test_health(client) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["remote_store"] == "local-only"


def test_inspection_walkthrough(client) -> None:
    profile = _start(client)
    assert profile["inspector_name"] == "Guest Inspector"
    roof, plumbing = profile["sections"]
    base = f"/inspections/{profile['id']}/sections/{roof['id']}/items"

    response = client.put(f"{base}/{roof['items'][0]['id']}/status", json={"status": "pass"})
    assert response.status_code == 200
    assert response.json()["sections"][0]["status"] == "in-progress"

    response = client.put(f"{base}/{roof['items'][0]['id']}/option", json={"selected_option": "Clay Tile"})
    assert response.json()["sections"][0]["items"][0]["selected_option"] == "Clay Tile"

    client.put(f"{base}/{roof['items'][1]['id']}/visibility", json={"is_hidden": True})
    progress = client.get(f"/inspections/{profile['id']}/progress").json()
    assert progress["summary"]["total"] == 2
    assert progress["progress"] == 50
    assert progress["sections"][0]["hidden"] == 1

    response = client.post(f"/inspections/{profile['id']}/sections/{roof['id']}/show-hidden")
    assert not any(item["is_hidden"] for item in response.json()["sections"][0]["items"])


def test_missing_ids_are_404(client) -> None:
    profile = _start(client)
    section_id = profile["sections"][0]["id"]

    assert client.get("/inspections/nope").status_code == 404
    response = client.put(
        f"/inspections/{profile['id']}/sections/{section_id}/items/nope/status", json={"status": "pass"}
    )
    assert response.status_code == 404


def test_item_photo_appends_ai_note(client) -> None:
    profile = _start(client)
    section = profile["sections"][0]
    item_id = section["items"][0]["id"]
    url = f"/inspections/{profile['id']}/sections/{section['id']}"

    client.put(f"{url}/items/{item_id}/notes", json={"notes": "North slope only"})
    response = client.post(f"{url}/photos", json={"image": "data:image/jpeg;base64,AAAA", "item_id": item_id})
    assert response.status_code == 200

    item = client.get(f"/inspections/{profile['id']}").json()["sections"][0]["items"][0]
    assert item["photos"] == ["data:image/jpeg;base64,AAAA"]
    assert item["notes"] == "North slope only\nAI Note: Asphalt shingles with minor granule loss."

    response = client.delete(f"{url}/items/{item_id}/photos/5")
    assert response.json()["sections"][0]["items"][0]["photos"] == ["data:image/jpeg;base64,AAAA"]
    response = client.delete(f"{url}/items/{item_id}/photos/0")
    assert response.json()["sections"][0]["items"][0]["photos"] == []


def test_cover_photo_replaces(client) -> None:
    profile = _start(client)
    url = f"/inspections/{profile['id']}/sections/{profile['sections'][1]['id']}/photos"
    client.post(url, json={"image": "cover-1"})
    response = client.post(url, json={"image": "cover-2"})
    assert response.json()["sections"][1]["photo_url"] == "cover-2"


def test_generated_sections_and_items(client) -> None:
    profile = _start(client)
    response = client.post(f"/inspections/{profile['id']}/sections", json={"prompt": "detached garage"})
    assert response.json()["sections"][-1]["title"] == "Garage"

    plumbing_id = profile["sections"][1]["id"]
    response = client.post(f"/inspections/{profile['id']}/sections/{plumbing_id}/items", json={"prompt": "basement"})
    labels = [item["label"] for item in response.json()["sections"][1]["items"]]
    assert labels == ["Main Water Shut-off", "Sump pump", "Expansion tank"]


def test_save_and_open_share_link(client) -> None:
    profile = _start(client)
    saved = client.post(f"/inspections/{profile['id']}/save")
    assert saved.status_code == 200
    body = saved.json()
    assert body["warning"] is None
    assert body["share_url"].endswith(f"/?id={body['short_id']}")

    again = client.post(f"/inspections/{profile['id']}/save").json()
    assert (again["report_id"], again["short_id"]) == (body["report_id"], body["short_id"])

    for key in (body["short_id"], body["report_id"]):
        loaded = client.get("/", params={"id": key})
        assert loaded.status_code == 200
        assert loaded.json()["saved_report_id"] == body["report_id"]

    assert client.get("/", params={"id": "doesnotx1"}).status_code == 404


def test_save_warning_and_hard_failure(client, monkeypatch, tmp_path) -> None:
    profile = _start(client)
    local = LocalReportStore(tmp_path / "other.json")

    monkeypatch.setattr(main, "gateway", ReportGateway(local=local, remote=FailingRemote("42501")))
    response = client.post(f"/inspections/{profile['id']}/save")
    assert response.status_code == 200
    assert "Permission denied" in response.json()["warning"]

    monkeypatch.setattr(main, "gateway", ReportGateway(local=local, remote=FailingRemote("XX000")))
    response = client.post(f"/inspections/{profile['id']}/save")
    assert response.status_code == 502
    assert response.json()["code"] == "save_failed"


def test_property_lookup(client) -> None:
    response = client.post("/property-details", json={"address": "12 Elm"})
    assert response.status_code == 200
    assert response.json()["current_weather"] == "Cloudy"


def test_auth_without_configuration(client) -> None:
    response = client.post("/auth/signin", json={"email": "a@b.co", "password": "secret1"})
    assert response.status_code == 401
    assert client.get("/auth/me").json() is None
    assert client.post("/auth/signout").status_code == 200
