"""Built-in InterNACHI checklist used when plan generation is unavailable."""

from __future__ import annotations

from packages.common.ids import new_entity_id
from packages.common.models import ChecklistItem, ChecklistSection

# (title, icon, [(label, options)])
DEFAULT_CHECKLIST: list[tuple[str, str, list[tuple[str, list[str] | None]]]] = [
    (
        "Roof",
        "sun",
        [
            ("Roof-Covering Materials", ["Asphalt Shingle", "Wood Shake", "Tile", "Metal", "Slate"]),
            ("Gutters & Downspouts", None),
            ("Vents, Flashing, Skylights & Chimney", None),
        ],
    ),
    (
        "Exterior",
        "home",
        [
            ("Wall-Covering / Siding", ["Vinyl", "Stucco", "Brick Veneer", "Fiber Cement", "Wood"]),
            ("Grading & Surface Drainage", None),
            ("Walkways & Driveways", None),
        ],
    ),
    (
        "Foundation",
        "box",
        [
            ("Foundation Type", ["Poured Concrete", "Block", "Slab", "Stone"]),
            ("Structural Components", None),
        ],
    ),
    (
        "Heating",
        "wind",
        [
            ("Heating Method", ["Forced Air", "Hydronic", "Heat Pump", "Electric"]),
            ("Energy Source", ["Gas", "Oil", "Electric", "Propane"]),
        ],
    ),
    (
        "Electrical",
        "zap",
        [
            ("Service Drop & Conductors", None),
            ("Main Service Disconnect", None),
            ("Wiring Methods", ["Romex/NM", "BX/Armored", "Knob-and-Tube", "Conduit"]),
        ],
    ),
    (
        "Plumbing",
        "droplet",
        [
            ("Main Water Shut-off", None),
            ("Water Heater", None),
        ],
    ),
]


def default_sections() -> list[ChecklistSection]:
    """Fresh copy of the default checklist with new ids."""
    return [
        ChecklistSection(
            id=new_entity_id("section"),
            title=title,
            description="InterNACHI Standard",
            icon_name=icon,
            items=[
                ChecklistItem(id=new_entity_id("item"), label=label, options=options)
                for label, options in items
            ],
        )
        for title, icon, items in DEFAULT_CHECKLIST
    ]
