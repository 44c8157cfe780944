from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from reframe.features.provenance.domain.models import ProvenanceRecord


def format_file_size(size_bytes: int) -> str:
    """Human readable size: B, KB, MB or GB with one decimal."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    if size_bytes < 1024 ** 2:
        return f"{size_bytes / 1024:.1f} KB"
    if size_bytes < 1024 ** 3:
        return f"{size_bytes / 1024 ** 2:.1f} MB"
    return f"{size_bytes / 1024 ** 3:.1f} GB"


@dataclass(frozen=True)
class LibraryEntry:
    """
    View over one video file in the storage root.
    Derived on every listing, never stored.
    """
    path: Path
    size_bytes: int
    modified_at: datetime
    record: Optional[ProvenanceRecord] = None

    @property
    def is_processed(self) -> bool:
        return self.record is not None

    @property
    def original_path(self) -> Optional[str]:
        return self.record.original_path if self.record else None

    @property
    def size_label(self) -> str:
        return format_file_size(self.size_bytes)


@dataclass(frozen=True)
class StorageInfo:
    count: int
    total_bytes: int

    @property
    def label(self) -> str:
        noun = "video" if self.count == 1 else "videos"
        return f"{self.count} {noun}, {format_file_size(self.total_bytes)} used"
