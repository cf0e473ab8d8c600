"""
Models for guestupload.

Immutable dataclasses describing what gets uploaded and where.
"""
import asyncio
import mimetypes
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, AsyncIterator, Dict, Optional, Union

DEFAULT_MIME_TYPE = "application/octet-stream"
FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"

# Phone formats missing from some platforms' mime tables
for _type, _ext in (
    ("image/heic", ".heic"),
    ("image/heif", ".heif"),
    ("image/webp", ".webp"),
    ("video/quicktime", ".mov"),
    ("video/mp4", ".m4v"),
    ("video/3gpp", ".3gp"),
    ("video/mp2t", ".mts"),
):
    mimetypes.add_type(_type, _ext)


def guess_mime_type(name: str) -> str:
    """Guess MIME type from a file name."""
    mime_type, _ = mimetypes.guess_type(name)
    return mime_type or DEFAULT_MIME_TYPE


class TransferStatus(Enum):
    """Per-asset transfer status."""
    PENDING = "pending"
    UPLOADING = "uploading"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (TransferStatus.COMPLETED, TransferStatus.ERROR)


@dataclass(frozen=True)
class Asset:
    """Immutable reference to one user-selected file."""
    display_name: str
    byte_length: int
    mime_type: str
    source: Union[Path, bytes] = b""

    @classmethod
    def from_path(
        cls,
        path: Path,
        display_name: Optional[str] = None,
        mime_type: Optional[str] = None,
    ) -> "Asset":
        path = Path(path)
        name = display_name or path.name
        return cls(
            display_name=name,
            byte_length=path.stat().st_size,
            mime_type=mime_type or guess_mime_type(name),
            source=path,
        )

    @classmethod
    def from_bytes(cls, display_name: str, data: bytes, mime_type: Optional[str] = None) -> "Asset":
        return cls(
            display_name=display_name,
            byte_length=len(data),
            mime_type=mime_type or guess_mime_type(display_name),
            source=bytes(data),
        )

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")

    @property
    def is_video(self) -> bool:
        return self.mime_type.startswith("video/")

    @property
    def is_media(self) -> bool:
        return self.is_image or self.is_video

    async def iter_chunks(self, chunk_size: int) -> AsyncIterator[bytes]:
        """Yield raw bytes in chunks; file reads run off the event loop."""
        if isinstance(self.source, bytes):
            for offset in range(0, len(self.source), chunk_size):
                yield self.source[offset:offset + chunk_size]
            return

        handle = await asyncio.to_thread(open, self.source, "rb")
        try:
            while True:
                chunk = await asyncio.to_thread(handle.read, chunk_size)
                if not chunk:
                    break
                yield chunk
        finally:
            handle.close()


@dataclass(frozen=True)
class TransferProgress:
    """Snapshot of one asset's transfer state."""
    display_name: str
    status: TransferStatus = TransferStatus.PENDING
    progress_percent: float = 0.0
    error_detail: Optional[str] = None
    bytes_total: int = 0

    @property
    def bytes_sent(self) -> int:
        return int(self.bytes_total * self.progress_percent / 100)


@dataclass(frozen=True)
class RemoteFile:
    """Descriptor of a file stored by the provider."""
    id: str
    name: str
    size: Optional[int] = None
    mime_type: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "RemoteFile":
        size = data.get("size")
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            size=int(size) if size is not None else None,
            mime_type=data.get("mimeType"),
        )


@dataclass(frozen=True)
class DestinationFolder:
    """Remote folder the batch is uploaded into."""
    id: str
    name: str
    created: bool = False


@dataclass(frozen=True)
class UploadSession:
    """Handle returned by session initiation; opaque to callers."""
    upload_url: str
    owner_token: str
    asset_name: str


@dataclass(frozen=True)
class UploadConfig:
    """Immutable configuration for upload operations."""
    root_folder_id: str = ""
    api_base_url: str = "https://www.googleapis.com/drive/v3"
    upload_base_url: str = "https://www.googleapis.com/upload/drive/v3"
    timeout: float = 60.0
    chunk_size: int = 1024 * 1024  # 1 MiB
    page_size: int = 1000
    # Percent reported while bytes are in flight never reaches 100
    max_in_flight_percent: float = 99.0
