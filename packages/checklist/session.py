"""Owned, single-writer holders for live inspection documents."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any

from packages.common.models import InspectionProfile

logger = logging.getLogger(__name__)

Operation = Callable[..., InspectionProfile]


class InspectionSession:
    """Holds the current snapshot of one profile and serializes mutations."""

    def __init__(self, profile: InspectionProfile) -> None:
        self._profile = profile
        self._lock = threading.Lock()

    @property
    def profile(self) -> InspectionProfile:
        return self._profile

    def apply(self, operation: Operation, *args: Any, **kwargs: Any) -> bool:
        """Run a pure operation against the current snapshot.

        Returns False when the operation matched nothing (it returned its input).
        """
        with self._lock:
            updated = operation(self._profile, *args, **kwargs)
            if updated is self._profile:
                return False
            self._profile = updated
            return True

    def replace(self, profile: InspectionProfile) -> None:
        with self._lock:
            self._profile = profile

    def update_fields(self, **changes: Any) -> None:
        with self._lock:
            self._profile = self._profile.model_copy(update=changes)


class SessionRegistry:
    """In-memory sessions keyed by local profile id."""

    def __init__(self) -> None:
        self._sessions: dict[str, InspectionSession] = {}
        self._lock = threading.Lock()

    def open(self, profile: InspectionProfile) -> InspectionSession:
        session = InspectionSession(profile)
        with self._lock:
            self._sessions[profile.id] = session
        return session

    def get(self, inspection_id: str) -> InspectionSession | None:
        with self._lock:
            return self._sessions.get(inspection_id)

    def close(self, inspection_id: str) -> None:
        with self._lock:
            self._sessions.pop(inspection_id, None)

    def patch(self, inspection_id: str, operation: Operation, *args: Any) -> bool:
        """Apply a late result (analysis note, generated items) if the session still exists."""
        session = self.get(inspection_id)
        if session is None:
            logger.info("Dropping patch for closed inspection %s", inspection_id)
            return False
        return session.apply(operation, *args)
