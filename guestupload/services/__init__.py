"""Services for guestupload."""
from .api_client import DriveAPIClient
from .folder_resolver import FolderResolver
from .transfer import ResumableTransfer

__all__ = [
    "DriveAPIClient",
    "FolderResolver",
    "ResumableTransfer",
]
