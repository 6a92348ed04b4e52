"""Base types shared by report stores."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol


@dataclass
class StoredReport:
    """A report row as held by a store."""

    report_id: str
    short_id: str | None
    data: dict[str, Any]
    user_id: str | None = None
    created_at: str | None = None


@dataclass
class SaveResult:
    report_id: str
    short_id: str
    warning: str | None = None


class ReportStore(Protocol):
    name: str

    def fetch(self, identifier: str, by_short_id: bool) -> StoredReport | None:
        """Return the stored report or None when this store does not have it."""
        ...
