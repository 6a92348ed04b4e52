"""Pure operations over an inspection profile.

Every mutation returns a new profile snapshot and leaves its input untouched.
When the referenced section or item does not exist the input profile itself is
returned, so ``result is profile`` means "nothing matched".
"""

from __future__ import annotations

import math
from collections.abc import Iterable

from packages.common.ids import new_entity_id
from packages.common.models import (
    ISSUE_STATUSES,
    ChecklistItem,
    ChecklistSection,
    InspectionProfile,
    ItemStatus,
    SectionProgress,
    SectionStatus,
    SummaryCounts,
)

AI_NOTE_PREFIX = "AI Note: "


def find_section(profile: InspectionProfile, section_id: str) -> ChecklistSection | None:
    return next((section for section in profile.sections if section.id == section_id), None)


def find_item(profile: InspectionProfile, section_id: str, item_id: str) -> ChecklistItem | None:
    section = find_section(profile, section_id)
    if section is None:
        return None
    return next((item for item in section.items if item.id == item_id), None)


def derive_section_status(items: Iterable[ChecklistItem]) -> SectionStatus:
    # Hidden items count here; progress and summary counts skip them.
    items = list(items)
    touched = sum(1 for item in items if item.status != ItemStatus.UNTOUCHED)
    if items and touched == len(items):
        return SectionStatus.COMPLETED
    if touched > 0:
        return SectionStatus.IN_PROGRESS
    return SectionStatus.PENDING


def _section_index(profile: InspectionProfile, section_id: str) -> int | None:
    for index, section in enumerate(profile.sections):
        if section.id == section_id:
            return index
    return None


def _item_index(section: ChecklistSection, item_id: str) -> int | None:
    for index, item in enumerate(section.items):
        if item.id == item_id:
            return index
    return None


def _update_item(profile: InspectionProfile, section_id: str, item_id: str, **changes) -> InspectionProfile:
    section_index = _section_index(profile, section_id)
    if section_index is None:
        return profile
    item_index = _item_index(profile.sections[section_index], item_id)
    if item_index is None:
        return profile

    updated = profile.model_copy(deep=True)
    section = updated.sections[section_index]
    section.items[item_index] = section.items[item_index].model_copy(update=changes)
    return updated


def set_item_status(
    profile: InspectionProfile, section_id: str, item_id: str, status: ItemStatus
) -> InspectionProfile:
    updated = _update_item(profile, section_id, item_id, status=ItemStatus(status))
    if updated is profile:
        return profile
    section = updated.sections[_section_index(updated, section_id)]
    section.status = derive_section_status(section.items)
    return updated


def set_item_option(profile: InspectionProfile, section_id: str, item_id: str, option: str) -> InspectionProfile:
    # Not checked against item.options; free-text overrides are allowed.
    return _update_item(profile, section_id, item_id, selected_option=option)


def set_item_notes(profile: InspectionProfile, section_id: str, item_id: str, text: str) -> InspectionProfile:
    return _update_item(profile, section_id, item_id, notes=text)


def append_item_note(profile: InspectionProfile, section_id: str, item_id: str, text: str) -> InspectionProfile:
    """Append a machine-generated note below whatever the inspector wrote."""
    item = find_item(profile, section_id, item_id)
    if item is None:
        return profile
    notes = f"{item.notes}\n{AI_NOTE_PREFIX}{text}" if item.notes else text
    return _update_item(profile, section_id, item_id, notes=notes)


def set_item_visibility(
    profile: InspectionProfile, section_id: str, item_id: str, hidden: bool
) -> InspectionProfile:
    return _update_item(profile, section_id, item_id, is_hidden=hidden)


def show_hidden_items(profile: InspectionProfile, section_id: str) -> InspectionProfile:
    section_index = _section_index(profile, section_id)
    if section_index is None:
        return profile
    updated = profile.model_copy(deep=True)
    for item in updated.sections[section_index].items:
        item.is_hidden = False
    return updated


def add_photo(
    profile: InspectionProfile, section_id: str, image: str, item_id: str | None = None
) -> InspectionProfile:
    """Append to an item's photos, or replace the section cover when no item is given."""
    if item_id is None:
        section_index = _section_index(profile, section_id)
        if section_index is None:
            return profile
        updated = profile.model_copy(deep=True)
        updated.sections[section_index].photo_url = image
        return updated

    item = find_item(profile, section_id, item_id)
    if item is None:
        return profile
    return _update_item(profile, section_id, item_id, photos=[*item.photos, image])


def remove_photo(profile: InspectionProfile, section_id: str, item_id: str, index: int) -> InspectionProfile:
    item = find_item(profile, section_id, item_id)
    if item is None or not 0 <= index < len(item.photos):
        return profile
    photos = [photo for position, photo in enumerate(item.photos) if position != index]
    return _update_item(profile, section_id, item_id, photos=photos)


def _fresh_item(item: ChecklistItem) -> ChecklistItem:
    return item.model_copy(update={"id": new_entity_id("item")}, deep=True)


def append_section(profile: InspectionProfile, section: ChecklistSection) -> InspectionProfile:
    items = [_fresh_item(item) for item in section.items]
    fresh = section.model_copy(
        update={"id": new_entity_id("section"), "items": items, "status": derive_section_status(items)},
        deep=True,
    )
    updated = profile.model_copy(deep=True)
    updated.sections.append(fresh)
    return updated


def append_items(profile: InspectionProfile, section_id: str, items: Iterable[ChecklistItem]) -> InspectionProfile:
    section_index = _section_index(profile, section_id)
    if section_index is None:
        return profile
    updated = profile.model_copy(deep=True)
    section = updated.sections[section_index]
    section.items.extend(_fresh_item(item) for item in items)
    section.status = derive_section_status(section.items)
    return updated


def visible_items(section: ChecklistSection) -> list[ChecklistItem]:
    return [item for item in section.items if not item.is_hidden]


def _all_visible(target: InspectionProfile | ChecklistSection) -> list[ChecklistItem]:
    if isinstance(target, ChecklistSection):
        return visible_items(target)
    return [item for section in target.sections for item in visible_items(section)]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_progress(profile: InspectionProfile) -> int:
    items = _all_visible(profile)
    if not items:
        return 0
    done = sum(1 for item in items if item.status != ItemStatus.UNTOUCHED)
    return _round_half_up(100 * done / len(items))


def compute_section_progress(section: ChecklistSection) -> SectionProgress:
    items = visible_items(section)
    return SectionProgress(
        section_id=section.id,
        title=section.title,
        status=section.status,
        inspected=sum(1 for item in items if item.status != ItemStatus.UNTOUCHED),
        total=len(items),
        hidden=len(section.items) - len(items),
    )


def compute_summary_counts(target: InspectionProfile | ChecklistSection) -> SummaryCounts:
    items = _all_visible(target)
    total = len(items)
    passed = sum(1 for item in items if item.status == ItemStatus.PASS)
    issues = sum(1 for item in items if item.status in ISSUE_STATUSES)
    info = sum(1 for item in items if item.status == ItemStatus.INFO)
    return SummaryCounts(
        total=total,
        passed=passed,
        issues=issues,
        info=info,
        remaining=total - passed - issues - info,
    )
