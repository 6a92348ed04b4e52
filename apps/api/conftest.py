import os
import sys
import tempfile
from datetime import UTC, datetime
from pathlib import Path

import pytest
from dotenv import load_dotenv

# Add project root to python path for tests
ROOT_DIR = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT_DIR))

# Keep tests local-only and out of the real data directory; set before any app import.
os.environ["INSPECTPAD_DATA_DIR"] = tempfile.mkdtemp(prefix="inspectpad-tests-")
os.environ["SUPABASE_URL"] = ""
os.environ["SUPABASE_ANON_KEY"] = ""
os.environ["GEMINI_API_KEY"] = ""

load_dotenv(dotenv_path=Path(__file__).resolve().parent / ".env")

from packages.common.models import ChecklistItem, ChecklistSection, InspectionProfile  # noqa: E402


def make_profile(sections: list[ChecklistSection] | None = None) -> InspectionProfile:
    return InspectionProfile(
        id="inspection_local1",
        address="12 Elm Street, Springfield",
        property_type="Colonial",
        floors=2,
        baths=2,
        bedrooms=3,
        inspector_name="Guest Inspector",
        created_at=datetime(2026, 5, 1, 9, 30, tzinfo=UTC),
        sections=sections if sections is not None else [],
    )


@pytest.fixture
def profile() -> InspectionProfile:
    roof = ChecklistSection(
        id="s1",
        title="Roof",
        description="Covering, flashings, and drainage",
        icon_name="sun",
        items=[
            ChecklistItem(id="i1", label="Roof-Covering Materials", options=["Asphalt Shingle", "Metal"]),
            ChecklistItem(id="i2", label="Gutters & Downspouts"),
        ],
    )
    plumbing = ChecklistSection(
        id="s2",
        title="Plumbing",
        icon_name="droplet",
        items=[ChecklistItem(id="p1", label="Main Water Shut-off")],
    )
    return make_profile([roof, plumbing])


@pytest.fixture
def empty_profile() -> InspectionProfile:
    return make_profile()
