from abc import ABC, abstractmethod
from pathlib import Path
from typing import List

from .models import LibraryEntry


class ILibraryIndex(ABC):
    """
    Contract for the storage root: the one directory where exports land.
    """

    @abstractmethod
    def list(self) -> List[LibraryEntry]:
        """Video files in the root, most recently modified first."""
        pass

    @abstractmethod
    def delete(self, path: Path) -> None:
        """
        Removes an output and its provenance record.

        Raises:
            PathContainmentError: If `path` is not inside the storage root.
            FileNotFoundError: If there is nothing to delete.
        """
        pass


class IOutputNamer(ABC):
    @abstractmethod
    def next_path(self, suffix: str) -> Path:
        """Returns a fresh output path that no export has used."""
        pass
