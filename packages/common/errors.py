"""Exception types shared by the storage and API layers."""

from __future__ import annotations


class RemoteStoreError(RuntimeError):
    """Raised when the remote row store rejects or fails a request."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(f"Remote store error {code}: {message}")
        self.code = code
        self.message = message


class ReportSaveError(RuntimeError):
    """Raised when a report could not be saved and no keys can be returned."""


class AuthError(RuntimeError):
    """Raised when the authentication service refuses a request."""
