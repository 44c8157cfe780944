from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

from .models import ProvenanceRecord


class IProvenanceStore(ABC):
    """
    Contract for lineage persistence.
    A file with a record is "processed"; a file without one is an original.
    """

    @abstractmethod
    def write(self, output_path: Path, record: ProvenanceRecord) -> Path:
        """
        Persists the record for a freshly exported file.

        Raises:
            MetadataWriteError: If a record already exists or cannot be written.
        """
        pass

    @abstractmethod
    def read(self, output_path: Path) -> Optional[ProvenanceRecord]:
        """Returns None (not an error) when the file has no record."""
        pass

    @abstractmethod
    def chain_of(self, output_path: Path) -> List[ProvenanceRecord]:
        """
        Full edit lineage, newest record first, ending at the record whose
        original has no record of its own.

        Raises:
            LineageCycleError: If the links loop or exceed the hop bound.
        """
        pass

    @abstractmethod
    def delete(self, output_path: Path) -> bool:
        """Removes the record, if any. Returns whether one existed."""
        pass

    @abstractmethod
    def sidecar_path(self, output_path: Path) -> Path:
        pass

    @abstractmethod
    def is_sidecar(self, path: Path) -> bool:
        pass

    @abstractmethod
    def output_of(self, sidecar_path: Path) -> Path:
        """Inverse of sidecar_path()."""
        pass
