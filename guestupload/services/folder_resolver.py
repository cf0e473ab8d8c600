"""
Folder Resolver - Single Responsibility: find or create a guest's folder.

Matching is exact and case-sensitive; the first folder in provider order
wins when several share a name.
"""
import asyncio
import logging
import weakref
from typing import Tuple

from ..exceptions import ConfigurationError
from ..models import FOLDER_MIME_TYPE, DestinationFolder

logger = logging.getLogger(__name__)


class FolderResolver:
    """
    Resolve the destination folder for an uploader name.

    Callers sharing one resolver are serialized per (root, name) so they
    observe each other's newly created folder. Separate resolvers (or
    separate processes) can still race and create duplicates.
    """

    def __init__(self, client):
        """
        Args:
            client: Drive client (DriveAPIClient or compatible)
        """
        self._client = client
        # Entries vanish once no caller holds or waits on the lock
        self._locks: "weakref.WeakValueDictionary[Tuple[str, str], asyncio.Lock]" = weakref.WeakValueDictionary()

    def _lock_for(self, root_folder_id: str, display_name: str) -> asyncio.Lock:
        key = (root_folder_id, display_name)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    async def resolve(
        self,
        owner_token: str,
        display_name: str,
        root_folder_id: str,
    ) -> DestinationFolder:
        """
        Return the folder named display_name directly under root_folder_id.

        Raises:
            ConfigurationError: root_folder_id is empty
            RemoteServiceError: list or create call failed
        """
        if not root_folder_id:
            raise ConfigurationError("Destination root folder ID not configured")

        async with self._lock_for(root_folder_id, display_name):
            children = await self._client.list_child_folders(owner_token, root_folder_id)
            for child in children:
                is_folder = child.get("mimeType", FOLDER_MIME_TYPE) == FOLDER_MIME_TYPE
                if is_folder and child.get("name") == display_name:
                    logger.debug("Folder exists: %s (id: %s)", display_name, child["id"])
                    return DestinationFolder(id=child["id"], name=display_name)

            logger.info("Creating folder: %s in parent (id: %s)", display_name, root_folder_id)
            folder = await self._client.create_folder(owner_token, display_name, root_folder_id)
            logger.info("Folder created: %s (id: %s)", display_name, folder["id"])
            return DestinationFolder(id=folder["id"], name=display_name, created=True)
