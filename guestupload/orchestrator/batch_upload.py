"""Batch upload handler - sequential multi-asset upload with partial failures."""
import asyncio
import logging
from enum import Enum
from typing import Any, Callable, Optional, Sequence

from ..exceptions import DuplicateAssetError, UploaderError
from ..models import Asset, DestinationFolder, TransferProgress, TransferStatus, UploadConfig
from ..utils.events import EventEmitter
from .models import BatchResult
from .progress import ProgressTracker, Snapshot, SnapshotCallback

logger = logging.getLogger(__name__)

ABORTED_IN_FLIGHT = "Upload aborted"
ABORTED_BEFORE_START = "Upload aborted: batch cancelled"


class ProcessState(Enum):
    """State of upload process."""
    PENDING = "pending"
    RUNNING = "running"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    FAILED = "failed"


def ensure_unique_names(assets: Sequence[Asset]) -> None:
    """Raise DuplicateAssetError if two assets share a display name."""
    seen = set()
    duplicates = []
    for asset in assets:
        if asset.display_name in seen:
            duplicates.append(asset.display_name)
        seen.add(asset.display_name)
    if duplicates:
        raise DuplicateAssetError(duplicates)


def _describe(error: BaseException) -> str:
    return str(error) if str(error) else f"{type(error).__name__}: {repr(error)}"


class BatchUploadHandler:
    """Uploads assets one at a time into an already resolved folder."""

    def __init__(self, resolver, transfer, config: Optional[UploadConfig] = None):
        """
        Args:
            resolver: FolderResolver
            transfer: ResumableTransfer
            config: UploadConfig
        """
        self._resolver = resolver
        self._transfer = transfer
        self._config = config or UploadConfig()

    async def resolve_folder(self, owner_token: str, uploader_name: str) -> DestinationFolder:
        return await self._resolver.resolve(owner_token, uploader_name, self._config.root_folder_id)

    async def run(
        self,
        owner_token: str,
        assets: Sequence[Asset],
        folder_id: str,
        on_progress_snapshot: Optional[SnapshotCallback] = None,
        abort: Optional[asyncio.Event] = None,
        events: Optional[EventEmitter] = None,
    ) -> BatchResult:
        """
        Upload assets sequentially, in input order.

        A failed asset never stops the batch. Setting abort stops the whole
        batch: the in-flight asset and every asset not yet started end in
        error.
        """
        assets = list(assets)
        ensure_unique_names(assets)
        events = events or EventEmitter()
        tracker = ProgressTracker(
            assets,
            on_progress_snapshot,
            self._config.max_in_flight_percent,
        )
        result = BatchResult()
        tracker.publish()

        if not assets:
            return result

        logger.info("Uploading %s files to folder %s", len(assets), folder_id)
        try:
            for index, asset in enumerate(assets, 1):
                if abort is not None and abort.is_set():
                    break
                logger.info("[%s/%s] %s", index, len(assets), asset.display_name)
                await self._upload_one(owner_token, asset, folder_id, tracker, result, abort, events)
        except asyncio.CancelledError:
            await self._abort_unfinished(assets, tracker, result, events)
            raise

        await self._abort_unfinished(assets, tracker, result, events)
        logger.info(
            "Batch finished: %s uploaded, %s failed",
            len(result.succeeded),
            len(result.failed),
        )
        return result

    async def _upload_one(
        self,
        owner_token: str,
        asset: Asset,
        folder_id: str,
        tracker: ProgressTracker,
        result: BatchResult,
        abort: Optional[asyncio.Event],
        events: EventEmitter,
    ) -> None:
        name = asset.display_name
        tracker.start(name)
        await events.emit("file_start", asset)

        def on_progress(percent: float) -> None:
            record = tracker.advance(name, percent)
            events.emit_sync("file_progress", asset, record)

        try:
            session = await self._transfer.begin_session(owner_token, asset, folder_id)
            remote = await self._transfer.send(session, asset, on_progress, abort)
        except UploaderError as e:
            detail = _describe(e)
            logger.warning("Upload of %s failed: %s", name, detail)
        except Exception as e:
            detail = _describe(e)
            logger.error("Unexpected error uploading %s: %s", name, detail, exc_info=True)
        else:
            tracker.complete(name)
            result.succeeded.append((asset, remote))
            logger.info("Uploaded %s (id: %s)", name, remote.id)
            await events.emit("file_complete", asset, remote)
            return

        tracker.fail(name, detail)
        result.failed.append((asset, detail))
        await events.emit("file_fail", asset, detail)

    async def _abort_unfinished(
        self,
        assets: Sequence[Asset],
        tracker: ProgressTracker,
        result: BatchResult,
        events: EventEmitter,
    ) -> None:
        """Move every non-terminal asset to error."""
        for asset in assets:
            record = tracker.get(asset.display_name)
            if record.status.is_terminal:
                continue
            if record.status is TransferStatus.UPLOADING:
                detail = ABORTED_IN_FLIGHT
            else:
                detail = ABORTED_BEFORE_START
            tracker.fail(asset.display_name, detail)
            result.failed.append((asset, detail))
            await events.emit("file_fail", asset, detail)


class BatchUploadProcess:
    """
    Process object for a guest's batch upload with event-based progress tracking.

    Usage:
        process = orchestrator.upload_batch(token, "Alice", assets)

        # Subscribe to events
        process.on_snapshot(lambda snapshot: render(snapshot))
        process.on_file_complete(lambda asset, remote: print(f"Done: {asset.display_name}"))
        process.on_finish(lambda result: print("All done!"))

        # Start (non-blocking)
        await process.start()

        # Or wait for completion
        result = await process.wait()
    """

    def __init__(
        self,
        handler: BatchUploadHandler,
        owner_token: str,
        uploader_name: str,
        assets: Sequence[Asset],
    ):
        self._handler = handler
        self._owner_token = owner_token
        self._uploader_name = uploader_name
        self._assets = list(assets)
        self._events = EventEmitter()
        self._state = ProcessState.PENDING
        self._task: Optional[asyncio.Task] = None
        self._abort = asyncio.Event()
        self._snapshot: Snapshot = {}
        self._folder: Optional[DestinationFolder] = None
        self._result: Optional[BatchResult] = None
        self._error: Optional[BaseException] = None

    # Event subscription methods
    def on_start(self, callback: Callable[[], None]):
        """Called when upload process starts."""
        self._events.on("start", callback)

    def on_folder_resolved(self, callback: Callable[[DestinationFolder], None]):
        """Called once the destination folder is known."""
        self._events.on("folder", callback)

    def on_snapshot(self, callback: Callable[[Snapshot], None]):
        """Called with an immutable progress snapshot after every state change."""
        self._events.on("snapshot", callback)

    def on_file_start(self, callback: Callable[[Asset], None]):
        """Called when an asset starts uploading."""
        self._events.on("file_start", callback)

    def on_file_progress(self, callback: Callable[[Asset, TransferProgress], None]):
        """Called when an asset's progress updates."""
        self._events.on("file_progress", callback)

    def on_file_complete(self, callback: Callable[[Asset, Any], None]):
        """Called when an asset completes. Receives asset and RemoteFile."""
        self._events.on("file_complete", callback)

    def on_file_fail(self, callback: Callable[[Asset, str], None]):
        """Called when an asset fails. Receives asset and error detail."""
        self._events.on("file_fail", callback)

    def on_finish(self, callback: Callable[[BatchResult], None]):
        """Called when the batch completes (or is cancelled). Receives BatchResult."""
        self._events.on("finish", callback)

    def on_error(self, callback: Callable[[Exception], None]):
        """Called when a batch-fatal error occurs. Receives Exception."""
        self._events.on("error", callback)

    # Control methods
    async def start(self):
        """Start the upload process (non-blocking)."""
        if self._state != ProcessState.PENDING:
            raise RuntimeError(f"Cannot start process in state: {self._state}")

        self._state = ProcessState.RUNNING
        self._task = asyncio.create_task(self._run())
        await self._events.emit("start")

    async def cancel(self):
        """Cancel the batch: abort the in-flight asset and skip the rest."""
        if self._state in (ProcessState.COMPLETED, ProcessState.CANCELLED, ProcessState.FAILED):
            return

        self._abort.set()
        if self._task is None:
            self._state = ProcessState.CANCELLED
            return

        await asyncio.gather(self._task, return_exceptions=True)

    async def wait(self) -> BatchResult:
        """
        Wait for the batch to finish and return its result.

        Raises the batch-fatal error (e.g. folder resolution failure) if any.
        """
        if self._state == ProcessState.PENDING:
            await self.start()

        if self._task:
            await self._task

        if self._error is not None:
            raise self._error

        if self._result is None:
            self._result = BatchResult(
                failed=[(asset, ABORTED_BEFORE_START) for asset in self._assets]
            )
        return self._result

    # State properties
    @property
    def state(self) -> ProcessState:
        """Current state of the process."""
        return self._state

    @property
    def snapshot(self) -> Snapshot:
        """Latest progress snapshot."""
        return self._snapshot

    @property
    def folder(self) -> Optional[DestinationFolder]:
        return self._folder

    @property
    def result(self) -> Optional[BatchResult]:
        """Final result (None if not completed yet)."""
        return self._result

    @property
    def is_running(self) -> bool:
        return self._state == ProcessState.RUNNING

    @property
    def is_cancelled(self) -> bool:
        return self._state == ProcessState.CANCELLED

    # Internal methods
    def _publish(self, snapshot: Snapshot) -> None:
        self._snapshot = snapshot
        self._events.emit_sync("snapshot", snapshot)

    async def _run(self):
        """Internal method that runs the upload process."""
        try:
            folder_id = ""
            if self._assets and not self._abort.is_set():
                self._folder = await self._handler.resolve_folder(self._owner_token, self._uploader_name)
                folder_id = self._folder.id
                await self._events.emit("folder", self._folder)

            result = await self._handler.run(
                self._owner_token,
                self._assets,
                folder_id,
                self._publish,
                abort=self._abort,
                events=self._events,
            )
            result.folder = self._folder
            self._result = result

            if self._abort.is_set():
                self._state = ProcessState.CANCELLED
            else:
                self._state = ProcessState.COMPLETED
            await self._events.drain()
            await self._events.emit("finish", result)

        except asyncio.CancelledError:
            self._state = ProcessState.CANCELLED
            raise
        except Exception as e:
            self._state = ProcessState.FAILED
            self._error = e
            logger.error(f"Upload process failed: {e}", exc_info=True)
            await self._events.drain()
            await self._events.emit("error", e)
