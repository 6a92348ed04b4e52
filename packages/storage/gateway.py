"""Report persistence across the remote row store and the local fallback."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from packages.common.errors import RemoteStoreError, ReportSaveError
from packages.common.ids import is_report_id, new_report_id, new_short_id
from packages.common.models import InspectionProfile
from packages.storage.base import ReportStore, SaveResult, StoredReport
from packages.storage.local import LocalReportStore
from packages.storage.supabase import SupabaseAuth, SupabaseReportStore

logger = logging.getLogger(__name__)

# Remote failures that still count as a successful save because the local copy landed.
RECOVERABLE_REMOTE_ERRORS: dict[str, str] = {
    "42501": (
        "Permission denied. If you are not logged in, you can only save new reports. "
        "Log in to update existing ones. (Report saved locally)"
    ),
    "42P01": "Table 'inspections' does not exist. Please run SQL setup. Report saved locally.",
    "PGRST204": "Schema mismatch (missing column). Please run SQL setup. Report saved locally.",
}


class ReportGateway:
    """Saves to local then remote; loads from remote then local."""

    def __init__(
        self,
        local: LocalReportStore,
        remote: SupabaseReportStore | None = None,
        auth: SupabaseAuth | None = None,
    ) -> None:
        self.local = local
        self.remote = remote
        self.auth = auth

    @property
    def remote_enabled(self) -> bool:
        return self.remote is not None

    def _owner_id(self, profile: InspectionProfile) -> str | None:
        if self.auth is not None:
            user = self.auth.get_current_user()
            if user is not None:
                return user.id
        return profile.user_id

    def save(self, profile: InspectionProfile) -> SaveResult:
        report_id = profile.saved_report_id or new_report_id()
        short_id = profile.short_id or new_short_id()
        user_id = self._owner_id(profile)

        payload = profile.model_copy(
            update={"saved_report_id": report_id, "short_id": short_id, "user_id": user_id}
        ).model_dump(mode="json")

        if not self.local.put(report_id, payload):
            logger.warning("Continuing without local backup for report %s", report_id)

        if self.remote is None:
            logger.info("Remote store not configured, saved %s locally", report_id)
            return SaveResult(report_id=report_id, short_id=short_id)

        try:
            confirmed_id, confirmed_short = self.remote.upsert(report_id, short_id, payload, user_id)
        except RemoteStoreError as exc:
            logger.error("Remote save failed for %s: code=%s message=%s", report_id, exc.code, exc.message)
            warning = RECOVERABLE_REMOTE_ERRORS.get(exc.code)
            if warning is None:
                raise ReportSaveError(f"Remote store error {exc.code}: {exc.message}") from exc
            return SaveResult(report_id=report_id, short_id=short_id, warning=warning)

        return SaveResult(report_id=confirmed_id, short_id=confirmed_short)

    def _chain(self) -> list[ReportStore]:
        stores: list[ReportStore] = []
        if self.remote is not None:
            stores.append(self.remote)
        stores.append(self.local)
        return stores

    def load(self, identifier: str) -> InspectionProfile | None:
        """Load by primary key or short key; None when no store has the report."""
        identifier = identifier.strip()
        if not identifier:
            return None
        by_short_id = not is_report_id(identifier)

        for store in self._chain():
            try:
                stored = store.fetch(identifier, by_short_id)
            except RemoteStoreError as exc:
                logger.warning("%s load error for %s: code=%s message=%s", store.name, identifier, exc.code, exc.message)
                continue
            if stored is None:
                logger.info("%s has no report %s, falling back", store.name, identifier)
                continue
            profile = _hydrate(stored)
            if profile is not None:
                return profile
        return None


def _hydrate(stored: StoredReport) -> InspectionProfile | None:
    data = {
        **stored.data,
        "saved_report_id": stored.report_id,
        "short_id": stored.short_id,
        "user_id": stored.user_id,
    }
    try:
        return InspectionProfile.model_validate(data)
    except ValidationError as exc:
        logger.warning("Stored report %s is not a valid profile: %s", stored.report_id, exc)
        return None
