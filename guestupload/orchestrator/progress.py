"""Per-asset progress state and snapshot publishing."""
from dataclasses import replace
from types import MappingProxyType
from typing import Callable, Dict, Iterable, Mapping, Optional

from ..models import Asset, TransferProgress, TransferStatus

Snapshot = Mapping[str, TransferProgress]
SnapshotCallback = Callable[[Snapshot], None]


class ProgressTracker:
    """
    Sole owner of the progress map for one batch.

    Every state change publishes an immutable snapshot to the subscriber.
    Percent never decreases while uploading and stays below 100 until the
    asset completes.
    """

    def __init__(
        self,
        assets: Iterable[Asset],
        subscriber: Optional[SnapshotCallback] = None,
        max_in_flight_percent: float = 99.0,
    ):
        self._subscriber = subscriber
        self._ceiling = max_in_flight_percent
        self._records: Dict[str, TransferProgress] = {
            asset.display_name: TransferProgress(
                display_name=asset.display_name,
                bytes_total=asset.byte_length,
            )
            for asset in assets
        }

    def snapshot(self) -> Snapshot:
        return MappingProxyType(dict(self._records))

    def get(self, name: str) -> TransferProgress:
        return self._records[name]

    def publish(self) -> None:
        if self._subscriber:
            self._subscriber(self.snapshot())

    def _set(self, name: str, **changes) -> TransferProgress:
        current = self._records[name]
        if current.status.is_terminal:
            raise RuntimeError(f"{name} is already {current.status.value}")
        record = replace(current, **changes)
        self._records[name] = record
        self.publish()
        return record

    def start(self, name: str) -> TransferProgress:
        return self._set(name, status=TransferStatus.UPLOADING)

    def advance(self, name: str, percent: float) -> TransferProgress:
        """Record in-flight progress. Late or regressing reports are ignored."""
        current = self._records[name]
        if current.status is not TransferStatus.UPLOADING:
            return current
        percent = min(max(percent, current.progress_percent), self._ceiling)
        return self._set(name, progress_percent=percent)

    def complete(self, name: str) -> TransferProgress:
        return self._set(name, status=TransferStatus.COMPLETED, progress_percent=100.0)

    def fail(self, name: str, detail: str) -> TransferProgress:
        return self._set(
            name,
            status=TransferStatus.ERROR,
            progress_percent=0.0,
            error_detail=detail,
        )
