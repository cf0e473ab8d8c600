"""Core orchestrator - coordinates batch upload workflows."""
from typing import Optional, Sequence

from ..exceptions import ConfigurationError
from ..models import Asset, DestinationFolder, UploadConfig
from ..protocols import IDriveClient
from ..services.api_client import DriveAPIClient
from ..services.folder_resolver import FolderResolver
from ..services.transfer import ResumableTransfer
from .batch_upload import BatchUploadHandler, BatchUploadProcess, ensure_unique_names
from .models import BatchResult
from .progress import SnapshotCallback


class UploadOrchestrator:
    """
    Orchestrates guest uploads using injected services.

    Usage:
        async with UploadOrchestrator(UploadConfig(root_folder_id="...")) as uploader:
            process = uploader.upload_batch(token, "Alice", assets)
            result = await process.wait()

        # Folder already known
        async with UploadOrchestrator(config) as uploader:
            result = await uploader.run(token, assets, folder_id, on_snapshot)
    """

    def __init__(
        self,
        config: Optional[UploadConfig] = None,
        client: Optional[IDriveClient] = None,
    ):
        """
        Initialize orchestrator with dependencies.

        Args:
            config: Upload configuration
            client: Pre-built Drive client; a DriveAPIClient is created otherwise
        """
        self._config = config or UploadConfig()
        self._external_client = client
        self._api_client: Optional[DriveAPIClient] = None
        self._handler: Optional[BatchUploadHandler] = None

    async def __aenter__(self):
        """Initialize services and handlers."""
        if self._external_client is not None:
            client = self._external_client
        else:
            self._api_client = DriveAPIClient(self._config)
            client = await self._api_client.__aenter__()

        resolver = FolderResolver(client)
        transfer = ResumableTransfer(client, self._config)
        self._handler = BatchUploadHandler(resolver, transfer, self._config)
        return self

    async def __aexit__(self, *args):
        """Cleanup resources."""
        if self._api_client:
            await self._api_client.__aexit__(*args)
            self._api_client = None

    @property
    def config(self) -> UploadConfig:
        return self._config

    async def resolve_folder(self, owner_token: str, uploader_name: str) -> DestinationFolder:
        """Find or create the uploader's folder under the configured root."""
        assert self._handler is not None
        return await self._handler.resolve_folder(owner_token, uploader_name)

    async def run(
        self,
        owner_token: str,
        assets: Sequence[Asset],
        folder_id: str,
        on_progress_snapshot: Optional[SnapshotCallback] = None,
    ) -> BatchResult:
        """Upload assets sequentially into folder_id."""
        assert self._handler is not None
        return await self._handler.run(owner_token, assets, folder_id, on_progress_snapshot)

    def upload_batch(
        self,
        owner_token: str,
        uploader_name: str,
        assets: Sequence[Asset],
    ) -> BatchUploadProcess:
        """
        Upload a guest's files into their own folder with event-based progress tracking.

        Returns a BatchUploadProcess that can be started, monitored and cancelled.

        Example:
            process = orchestrator.upload_batch(token, "Alice", assets)
            process.on_file_progress(lambda asset, progress:
                print(f"{asset.display_name}: {progress.progress_percent:.1f}%"))
            process.on_file_fail(lambda asset, error: print(f"Failed: {asset.display_name}: {error}"))
            result = await process.wait()  # wait() starts automatically if needed

        Raises:
            ConfigurationError: uploader_name is blank
            DuplicateAssetError: two assets share a display name
        """
        assert self._handler is not None
        # Blank names are rejected; others are used verbatim as the folder name
        if not (uploader_name or "").strip():
            raise ConfigurationError("Uploader name is required")
        ensure_unique_names(assets)
        return BatchUploadProcess(self._handler, owner_token, uploader_name, assets)
