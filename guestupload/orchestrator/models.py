"""Orchestrator data models."""
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..models import Asset, DestinationFolder, RemoteFile


@dataclass
class BatchResult:
    """Result of a batch upload."""
    succeeded: List[Tuple[Asset, RemoteFile]] = field(default_factory=list)
    failed: List[Tuple[Asset, str]] = field(default_factory=list)
    folder: Optional[DestinationFolder] = None

    @property
    def success(self) -> bool:
        return not self.failed

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)

    @property
    def succeeded_assets(self) -> List[Asset]:
        return [asset for asset, _ in self.succeeded]

    @property
    def failed_names(self) -> List[str]:
        return [asset.display_name for asset, _ in self.failed]
