"""On-disk fallback store: one JSON map under a fixed storage key."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any

from packages.common.io import read_json, utcnow_iso, write_json
from packages.storage.base import StoredReport

logger = logging.getLogger(__name__)


class LocalReportStore:
    """Best-effort local copy of every saved report.

    Failures are logged and swallowed; callers never see an exception from here.
    """

    name = "local"

    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock = threading.Lock()

    def _load_map(self) -> dict[str, Any]:
        """Return the stored map; a missing file is empty, an unreadable one raises."""
        if not self.path.exists():
            return {}
        payload = read_json(self.path)
        if not isinstance(payload, dict):
            raise ValueError(f"local store at {self.path} is not a map")
        return payload

    def _read_map(self) -> dict[str, Any]:
        try:
            return self._load_map()
        except (OSError, ValueError) as exc:
            logger.warning("Local store read failed (%s): %s", self.path, exc)
            return {}

    def put(self, report_id: str, data: dict[str, Any]) -> bool:
        # Read-modify-write holds the lock end to end.
        with self._lock:
            try:
                records = self._load_map()
            except (OSError, ValueError) as exc:
                # An unreadable map is never overwritten.
                logger.warning("Local backup failed for %s, existing store left untouched: %s", report_id, exc)
                return False
            records[report_id] = {"id": report_id, "data": data, "created_at": utcnow_iso()}
            try:
                write_json(self.path, records)
            except (OSError, TypeError, ValueError) as exc:
                logger.warning("Local backup failed for %s: %s", report_id, exc)
                return False
        return True

    def fetch(self, identifier: str, by_short_id: bool) -> StoredReport | None:
        with self._lock:
            records = self._read_map()
        if not records:
            return None

        if not by_short_id:
            record = records.get(identifier)
            if not isinstance(record, dict):
                return None
            data = record.get("data") or record.get("report_data")
            if not isinstance(data, dict):
                return None
            data = {**data, "saved_report_id": identifier}
            return StoredReport(
                report_id=identifier,
                short_id=data.get("short_id"),
                user_id=data.get("user_id"),
                data=data,
                created_at=record.get("created_at"),
            )

        for key, record in records.items():
            data = record.get("data") if isinstance(record, dict) else None
            if isinstance(data, dict) and data.get("short_id") == identifier:
                return StoredReport(
                    report_id=data.get("saved_report_id") or key,
                    short_id=identifier,
                    user_id=data.get("user_id"),
                    data=data,
                    created_at=record.get("created_at"),
                )
        return None
