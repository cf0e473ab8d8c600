"""
guestupload - sequential photo/video uploads into a shared Google Drive folder.

Each guest gets a folder named after them under the shared root; files are
sent one at a time through resumable upload sessions, and one failed file
never stops the rest of the batch.

Usage:
    from guestupload import UploadOrchestrator, UploadConfig, Asset

    config = UploadConfig(root_folder_id="1AbC...")
    assets = [Asset.from_path(p) for p in paths]

    async with UploadOrchestrator(config) as uploader:
        process = uploader.upload_batch(access_token, "Alice", assets)
        process.on_snapshot(render)
        result = await process.wait()

    if not result.success:
        for asset, error in result.failed:
            print(asset.display_name, error)
"""
from .orchestrator import UploadOrchestrator, BatchUploadProcess, BatchResult, ProcessState
from .models import (
    Asset,
    DestinationFolder,
    RemoteFile,
    TransferProgress,
    TransferStatus,
    UploadConfig,
    UploadSession,
)
from .exceptions import (
    ConfigurationError,
    DuplicateAssetError,
    ProtocolError,
    RemoteServiceError,
    TransferError,
    TransferFailure,
    UploaderError,
)
from .services import DriveAPIClient, FolderResolver, ResumableTransfer

__version__ = "0.1.0"
__all__ = [
    # Main
    "UploadOrchestrator",
    "BatchUploadProcess",
    "BatchResult",
    "ProcessState",
    # Models
    "Asset",
    "DestinationFolder",
    "RemoteFile",
    "TransferProgress",
    "TransferStatus",
    "UploadConfig",
    "UploadSession",
    # Errors
    "UploaderError",
    "ConfigurationError",
    "DuplicateAssetError",
    "RemoteServiceError",
    "ProtocolError",
    "TransferError",
    "TransferFailure",
    # Services
    "DriveAPIClient",
    "FolderResolver",
    "ResumableTransfer",
]
