"""Supabase adapter: report rows over PostgREST and password auth over GoTrue."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from packages.common.errors import AuthError, RemoteStoreError
from packages.common.io import utcnow_iso
from packages.common.models import AuthUser
from packages.storage.base import StoredReport

logger = logging.getLogger(__name__)

TABLE = "inspections"
DEFAULT_TIMEOUT = 15.0


def _error_from_response(response: httpx.Response) -> RemoteStoreError:
    code = f"http_{response.status_code}"
    message = response.text
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        code = str(body.get("code") or code)
        message = body.get("message") or body.get("details") or message
    return RemoteStoreError(code, message)


class SupabaseAuth:
    """Email/password authentication; keeps the current session in memory."""

    def __init__(self, url: str, anon_key: str, client: httpx.Client | None = None) -> None:
        self.base_url = url.rstrip("/")
        self.anon_key = anon_key
        self._client = client or httpx.Client(timeout=DEFAULT_TIMEOUT)
        self._access_token: str | None = None
        self._user: AuthUser | None = None

    @property
    def enabled(self) -> bool:
        return bool(self.base_url and self.anon_key)

    @property
    def access_token(self) -> str | None:
        return self._access_token

    def _headers(self, token: str | None = None) -> dict[str, str]:
        return {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {token or self.anon_key}",
            "Content-Type": "application/json",
        }

    def _post(self, path: str, payload: dict[str, Any] | None = None, token: str | None = None) -> dict[str, Any]:
        if not self.enabled:
            raise AuthError("Supabase not configured")
        try:
            response = self._client.post(f"{self.base_url}{path}", headers=self._headers(token), json=payload or {})
        except httpx.HTTPError as exc:
            raise AuthError(f"Auth request failed: {exc}") from exc
        if response.status_code >= 400:
            message = response.text
            try:
                body = response.json()
                message = body.get("error_description") or body.get("msg") or body.get("message") or message
            except ValueError:
                pass
            raise AuthError(message)
        if not response.content:
            return {}
        return response.json()

    def _remember(self, payload: dict[str, Any]) -> AuthUser | None:
        user_payload = payload.get("user") if isinstance(payload.get("user"), dict) else payload
        token = payload.get("access_token")
        if token:
            self._access_token = token
        if user_payload and user_payload.get("id"):
            self._user = AuthUser(id=user_payload["id"], email=user_payload.get("email"))
        return self._user

    def sign_up(self, email: str, password: str) -> AuthUser | None:
        payload = self._post("/auth/v1/signup", {"email": email, "password": password})
        # Projects with email confirmation return a user but no session.
        return self._remember(payload)

    def sign_in(self, email: str, password: str) -> AuthUser:
        payload = self._post("/auth/v1/token?grant_type=password", {"email": email, "password": password})
        user = self._remember(payload)
        if user is None:
            raise AuthError("Sign-in returned no user")
        return user

    def sign_out(self) -> None:
        if not self.enabled or not self._access_token:
            self._access_token = None
            self._user = None
            return
        try:
            self._post("/auth/v1/logout", token=self._access_token)
        except AuthError as exc:
            logger.warning("Sign-out request failed: %s", exc)
        finally:
            self._access_token = None
            self._user = None

    def get_current_user(self) -> AuthUser | None:
        if not self.enabled or not self._access_token:
            return None
        if self._user is not None:
            return self._user
        try:
            response = self._client.get(f"{self.base_url}/auth/v1/user", headers=self._headers(self._access_token))
        except httpx.HTTPError as exc:
            logger.warning("Could not fetch current user: %s", exc)
            return None
        if response.status_code >= 400:
            return None
        return self._remember(response.json())


class SupabaseReportStore:
    """Rows in the ``inspections`` table, keyed by report id."""

    name = "supabase"

    def __init__(
        self,
        url: str,
        anon_key: str,
        client: httpx.Client | None = None,
        auth: SupabaseAuth | None = None,
    ) -> None:
        self.base_url = url.rstrip("/")
        self.anon_key = anon_key
        self.auth = auth
        self._client = client or httpx.Client(timeout=DEFAULT_TIMEOUT)

    @property
    def table_url(self) -> str:
        return f"{self.base_url}/rest/v1/{TABLE}"

    def _headers(self, **extra: str) -> dict[str, str]:
        token = self.auth.access_token if self.auth else None
        headers = {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {token or self.anon_key}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        headers.update(extra)
        return headers

    def upsert(self, report_id: str, short_id: str, data: dict[str, Any], user_id: str | None = None) -> tuple[str, str]:
        """Insert or update the row for report_id; returns the keys the server confirmed."""
        row: dict[str, Any] = {
            "id": report_id,
            "short_id": short_id,
            "data": data,
            "created_at": utcnow_iso(),
        }
        if user_id:
            row["user_id"] = user_id

        try:
            response = self._client.post(
                self.table_url,
                params={"on_conflict": "id", "select": "id,short_id"},
                headers=self._headers(Prefer="resolution=merge-duplicates,return=representation"),
                json=row,
            )
        except httpx.HTTPError as exc:
            raise RemoteStoreError("network", str(exc)) from exc

        if response.status_code >= 400:
            raise _error_from_response(response)

        rows = response.json() if response.content else []
        confirmed = rows[0] if isinstance(rows, list) and rows else rows
        if not isinstance(confirmed, dict):
            confirmed = {}
        return confirmed.get("id") or report_id, confirmed.get("short_id") or short_id

    def fetch(self, identifier: str, by_short_id: bool) -> StoredReport | None:
        column = "short_id" if by_short_id else "id"
        try:
            response = self._client.get(
                self.table_url,
                params={"select": "data,id,short_id,user_id", column: f"eq.{identifier}"},
                headers=self._headers(),
            )
        except httpx.HTTPError as exc:
            raise RemoteStoreError("network", str(exc)) from exc

        if response.status_code >= 400:
            raise _error_from_response(response)

        rows = response.json()
        if not isinstance(rows, list) or not rows:
            return None
        if len(rows) > 1:
            logger.warning("%d rows share %s=%s; using the first", len(rows), column, identifier)
        row = rows[0]
        if not isinstance(row.get("data"), dict):
            return None
        return StoredReport(
            report_id=row["id"],
            short_id=row.get("short_id"),
            user_id=row.get("user_id"),
            data=row["data"],
        )
