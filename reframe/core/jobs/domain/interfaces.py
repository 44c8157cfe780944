from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from uuid import UUID

from reframe.core.common.enums import ExportState
from .models import JobRecord


class IJobJournal(ABC):
    """
    Contract for export job persistence.
    Each row is written only by the job that owns it.
    """

    @abstractmethod
    def open(self, job_id: UUID, source_path: str, payload: Dict[str, Any]) -> None:
        """Creates the row for a job that has not started yet (state IDLE)."""
        pass

    @abstractmethod
    def update(self, job_id: UUID, state: ExportState, progress: float,
               output_path: Optional[str] = None) -> None:
        """Records a non-terminal transition."""
        pass

    @abstractmethod
    def close(self, job_id: UUID, state: ExportState, progress: float,
              output_path: Optional[str] = None,
              error_message: Optional[str] = None,
              warning_message: Optional[str] = None,
              result_meta: Optional[Dict[str, Any]] = None) -> None:
        """Records the terminal state of a job."""
        pass

    @abstractmethod
    def get(self, job_id: UUID) -> Optional[JobRecord]:
        pass

    @abstractmethod
    def recent(self, limit: int = 20) -> List[JobRecord]:
        """Most recently created jobs first."""
        pass
