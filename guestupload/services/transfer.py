"""
Resumable Transfer - two-phase upload of a single asset.

Flow:
1. begin_session: declare name + parent folder, receive a session URL
2. send: stream the raw bytes to the session URL, reporting progress

A dropped connection is not resumed; the whole send fails.
"""
import asyncio
import logging
from typing import AsyncIterator, Callable, Optional

import httpx

from ..exceptions import ProtocolError, TransferError, TransferFailure
from ..models import Asset, RemoteFile, UploadConfig, UploadSession

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


class ResumableTransfer:
    """
    Upload one asset through a resumable upload session.

    Usage:
        transfer = ResumableTransfer(client)
        session = await transfer.begin_session(token, asset, folder_id)
        remote = await transfer.send(session, asset, on_progress)
    """

    def __init__(self, client, config: Optional[UploadConfig] = None):
        self._client = client
        self._config = config or UploadConfig()

    async def begin_session(self, owner_token: str, asset: Asset, folder_id: str) -> UploadSession:
        """
        Declare the asset to the provider.

        Raises:
            RemoteServiceError: declaration call failed
            ProtocolError: no session URL in the response
        """
        upload_url = await self._client.initiate_upload(
            owner_token,
            asset.display_name,
            folder_id,
            asset.mime_type,
            asset.byte_length,
        )
        logger.debug("[transfer] Session opened for %s", asset.display_name)
        return UploadSession(
            upload_url=upload_url,
            owner_token=owner_token,
            asset_name=asset.display_name,
        )

    async def _stream(self, asset: Asset, on_progress: Optional[ProgressCallback]) -> AsyncIterator[bytes]:
        total = asset.byte_length
        sent = 0
        last_percent = 0.0

        async for chunk in asset.iter_chunks(self._config.chunk_size):
            yield chunk
            sent += len(chunk)
            percent = min(sent / total * 100, 100.0) if total else 100.0
            if on_progress and percent >= last_percent:
                last_percent = percent
                on_progress(percent)

        if total == 0 and on_progress:
            on_progress(100.0)

    async def send(
        self,
        session: UploadSession,
        asset: Asset,
        on_progress: Optional[ProgressCallback] = None,
        abort: Optional[asyncio.Event] = None,
    ) -> RemoteFile:
        """
        Stream the asset's bytes to the session URL.

        Raises:
            TransferError: non-2xx status, network failure or abort
            ProtocolError: success response without a file descriptor
        """
        request = self._client.put_content(
            session.owner_token,
            session.upload_url,
            self._stream(asset, on_progress),
            asset.mime_type,
            asset.byte_length,
        )

        try:
            if abort is None:
                response = await request
            else:
                response = await self._race_abort(request, abort, asset.display_name)
        except httpx.TransportError as exc:
            detail = str(exc) or type(exc).__name__
            raise TransferError(
                TransferFailure.NETWORK,
                f"Network error during upload: {detail}",
            ) from exc

        if not response.is_success:
            raise TransferError(
                TransferFailure.HTTP_STATUS,
                f"Upload failed: HTTP {response.status_code} {response.reason_phrase}".rstrip(),
                status_code=response.status_code,
            )

        try:
            data = response.json()
            return RemoteFile.from_json(data)
        except (ValueError, KeyError, TypeError) as exc:
            raise ProtocolError(
                f"Upload of {asset.display_name} returned no file descriptor"
            ) from exc

    async def _race_abort(self, request, abort: asyncio.Event, name: str) -> httpx.Response:
        """Await request unless abort is set first; then cancel it."""
        if abort.is_set():
            request.close()
            raise TransferError.aborted()

        request_task = asyncio.ensure_future(request)
        abort_task = asyncio.ensure_future(abort.wait())
        try:
            await asyncio.wait(
                {request_task, abort_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            # Covers outer cancellation too
            for task in (request_task, abort_task):
                if not task.done():
                    task.cancel()

        if request_task.done() and not request_task.cancelled():
            return request_task.result()

        await asyncio.gather(request_task, return_exceptions=True)
        logger.info("[transfer] Aborted %s", name)
        raise TransferError.aborted()

