"""File collection utilities for batch uploads."""
from pathlib import Path
from typing import Iterable, List, Tuple

from ..models import Asset


class FileCollector:
    """Collects photo and video assets from files and folders."""

    @staticmethod
    def collect_files(folder: Path) -> List[Path]:
        """
        Collect all files recursively, sorted.

        Args:
            folder: Root folder to scan
        """
        return sorted(item for item in Path(folder).rglob("*") if item.is_file())

    @classmethod
    def collect_assets(cls, sources: Iterable[Path]) -> Tuple[List[Asset], List[Path]]:
        """
        Build assets from files and folders, keeping only images and videos.

        Returns:
            (assets, rejected_paths)
        """
        assets: List[Asset] = []
        rejected: List[Path] = []

        for source in sources:
            source = Path(source)
            paths = cls.collect_files(source) if source.is_dir() else [source]
            for path in paths:
                asset = Asset.from_path(path)
                if asset.is_media:
                    assets.append(asset)
                else:
                    rejected.append(path)

        return assets, rejected
