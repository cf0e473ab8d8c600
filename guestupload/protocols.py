"""
Protocols (Interfaces) for Dependency Inversion.

Small, focused interfaces; tests substitute fakes for each.
"""
import asyncio
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Protocol, runtime_checkable

from .models import Asset, DestinationFolder, RemoteFile, UploadSession


@runtime_checkable
class IDriveClient(Protocol):
    """Interface for the storage provider's REST operations."""

    async def list_child_folders(self, owner_token: str, parent_id: str) -> List[Dict[str, Any]]:
        """List folders directly under parent_id."""
        ...

    async def create_folder(self, owner_token: str, name: str, parent_id: str) -> Dict[str, Any]:
        """Create folder under parent_id."""
        ...

    async def initiate_upload(
        self,
        owner_token: str,
        name: str,
        parent_id: str,
        mime_type: str,
        size: int,
    ) -> str:
        """Start resumable session, return session URL."""
        ...

    async def put_content(
        self,
        owner_token: str,
        session_url: str,
        content: AsyncIterator[bytes],
        mime_type: str,
        size: int,
    ) -> Any:
        """Stream bytes to a session URL."""
        ...


@runtime_checkable
class IFolderResolver(Protocol):
    """Interface for destination folder lookup."""

    async def resolve(
        self,
        owner_token: str,
        display_name: str,
        root_folder_id: str,
    ) -> DestinationFolder:
        ...


@runtime_checkable
class ITransfer(Protocol):
    """Interface for single-asset transfers."""

    async def begin_session(self, owner_token: str, asset: Asset, folder_id: str) -> UploadSession:
        ...

    async def send(
        self,
        session: UploadSession,
        asset: Asset,
        on_progress: Optional[Callable[[float], None]] = None,
        abort: Optional[asyncio.Event] = None,
    ) -> RemoteFile:
        ...
