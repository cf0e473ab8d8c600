"""Error taxonomy for upload operations."""
from __future__ import annotations

from enum import Enum
from typing import Optional


class UploaderError(Exception):
    """Base class for every error raised by guestupload."""


class ConfigurationError(UploaderError):
    """A required setting (destination folder, uploader name) is missing."""


class DuplicateAssetError(UploaderError, ValueError):
    """Two assets in one batch share a display name."""

    def __init__(self, names):
        self.names = sorted(set(names))
        super().__init__(f"Duplicate file names in batch: {', '.join(self.names)}")


class RemoteServiceError(UploaderError):
    """Non-success response from a metadata call (list, create, session start)."""

    def __init__(self, message: str, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(f"{message} (HTTP {status_code})")


class ProtocolError(UploaderError):
    """Provider accepted a call but its response lacks an expected field."""


class TransferFailure(Enum):
    """Why a byte transfer failed."""
    HTTP_STATUS = "http_status"
    NETWORK = "network"
    ABORTED = "aborted"


class TransferError(UploaderError):
    """Byte transfer to an upload session failed or was aborted."""

    def __init__(
        self,
        reason: TransferFailure,
        detail: str,
        status_code: Optional[int] = None,
    ):
        self.reason = reason
        self.detail = detail
        self.status_code = status_code
        super().__init__(detail)

    @classmethod
    def aborted(cls, detail: str = "Upload aborted") -> "TransferError":
        return cls(TransferFailure.ABORTED, detail)

    @property
    def is_aborted(self) -> bool:
        return self.reason is TransferFailure.ABORTED
