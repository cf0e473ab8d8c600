"""HTTP adapter for Google Drive API operations."""
from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx

from ..exceptions import ProtocolError, RemoteServiceError
from ..models import FOLDER_MIME_TYPE, UploadConfig

logger = logging.getLogger(__name__)

FILE_FIELDS = "id,name,size,mimeType"


def _quote(value: str) -> str:
    """Escape a value for use inside a Drive query string literal."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


def _error_detail(response: httpx.Response) -> str:
    try:
        return str(response.json())
    except ValueError:
        return response.text


def _json_object(response: httpx.Response, what: str) -> Dict[str, Any]:
    """Parse a success body that must be a JSON object."""
    try:
        data = response.json()
    except ValueError as exc:
        raise ProtocolError(f"{what} returned a non-JSON body") from exc
    if not isinstance(data, dict):
        raise ProtocolError(f"{what} returned {type(data).__name__}, expected an object")
    return data


class DriveAPIClient:
    """
    Drive REST client adapter.

    Implements IDriveClient protocol. The owner token is passed to every
    call; the client itself holds no credentials.
    """

    def __init__(self, config: Optional[UploadConfig] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._config = config or UploadConfig()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        self._client = httpx.AsyncClient(timeout=self._config.timeout, transport=self._transport)
        return self

    async def __aexit__(self, *args):
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if not self._client:
            raise RuntimeError("DriveAPIClient not initialized. Use 'async with' context.")
        return self._client

    @staticmethod
    def _auth(owner_token: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {owner_token}"}

    async def list_child_folders(self, owner_token: str, parent_id: str) -> List[Dict[str, Any]]:
        """List non-trashed folders directly under parent_id, in provider order."""
        query = (
            f"'{_quote(parent_id)}' in parents "
            f"and mimeType='{FOLDER_MIME_TYPE}' and trashed=false"
        )
        folders: List[Dict[str, Any]] = []
        page_token = None

        while True:
            params = {
                "q": query,
                "spaces": "drive",
                "fields": "nextPageToken,files(id,name,mimeType)",
                "pageSize": self._config.page_size,
                "supportsAllDrives": "true",
                "includeItemsFromAllDrives": "true",
            }
            if page_token:
                params["pageToken"] = page_token

            response = await self.client.get(
                f"{self._config.api_base_url}/files",
                params=params,
                headers=self._auth(owner_token),
            )
            if not response.is_success:
                raise RemoteServiceError(
                    "Failed to list folders",
                    response.status_code,
                    _error_detail(response),
                )

            data = _json_object(response, "Folder listing")
            folders.extend(data.get("files", []))
            page_token = data.get("nextPageToken")
            if not page_token:
                break

        logger.debug("Listed %s folders under %s", len(folders), parent_id)
        return folders

    async def create_folder(self, owner_token: str, name: str, parent_id: str) -> Dict[str, Any]:
        """Create a folder under parent_id and return its descriptor."""
        response = await self.client.post(
            f"{self._config.api_base_url}/files",
            params={"supportsAllDrives": "true", "fields": "id,name,mimeType"},
            json={"name": name, "mimeType": FOLDER_MIME_TYPE, "parents": [parent_id]},
            headers=self._auth(owner_token),
        )
        if not response.is_success:
            raise RemoteServiceError(
                "Failed to create folder",
                response.status_code,
                _error_detail(response),
            )

        folder = _json_object(response, f"Folder create for {name!r}")
        if not folder.get("id"):
            raise ProtocolError(f"Folder create response for {name!r} has no id")
        return folder

    async def initiate_upload(
        self,
        owner_token: str,
        name: str,
        parent_id: str,
        mime_type: str,
        size: int,
    ) -> str:
        """Start a resumable upload session and return its session URL."""
        response = await self.client.post(
            f"{self._config.upload_base_url}/files",
            params={
                "uploadType": "resumable",
                "supportsAllDrives": "true",
                "fields": FILE_FIELDS,
            },
            json={"name": name, "parents": [parent_id]},
            headers={
                **self._auth(owner_token),
                "X-Upload-Content-Type": mime_type,
                "X-Upload-Content-Length": str(size),
            },
        )
        if not response.is_success:
            raise RemoteServiceError(
                f"Failed to initiate upload of {name}",
                response.status_code,
                _error_detail(response),
            )

        session_url = response.headers.get("Location")
        if not session_url:
            raise ProtocolError(f"No upload URL returned for {name}")
        return session_url

    async def put_content(
        self,
        owner_token: str,
        session_url: str,
        content: AsyncIterator[bytes],
        mime_type: str,
        size: int,
    ) -> httpx.Response:
        """Stream content to a session URL. Status checking is left to the caller."""
        return await self.client.put(
            session_url,
            content=content,
            headers={
                **self._auth(owner_token),
                "Content-Type": mime_type,
                "Content-Length": str(size),
            },
        )
