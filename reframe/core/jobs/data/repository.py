import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from reframe.core.common.enums import ExportState
from ..domain.interfaces import IJobJournal
from ..domain.models import JobRecord
from .sql_models import ExportJobModel

logger = logging.getLogger(__name__)


class SqlJobJournal(IJobJournal):
    """
    SQLAlchemy-backed journal.
    Takes a session factory so tests can bind it to an isolated database.
    """

    def __init__(self, session_factory=None):
        if session_factory is None:
            # Lazy import: the default engine is only built when actually needed
            from reframe.core.database.connection import SessionLocal
            session_factory = SessionLocal
        self.session_factory = session_factory

    def open(self, job_id: UUID, source_path: str, payload: Dict[str, Any]) -> None:
        with self.session_factory() as db:
            db.add(ExportJobModel(
                id=job_id,
                source_path=source_path,
                state=ExportState.IDLE,
                progress=0.0,
                payload=payload,
            ))
            db.commit()
        logger.debug(f"Journal opened for job {job_id}")

    def update(self, job_id: UUID, state: ExportState, progress: float,
               output_path: Optional[str] = None) -> None:
        with self.session_factory() as db:
            job = db.get(ExportJobModel, job_id)
            if not job:
                raise KeyError(f"Export job {job_id} is not journaled")

            if job.started_at is None and state != ExportState.IDLE:
                job.started_at = datetime.now(timezone.utc)
            job.state = state
            job.progress = progress
            if output_path:
                job.output_path = output_path
            db.commit()

    def close(self, job_id: UUID, state: ExportState, progress: float,
              output_path: Optional[str] = None,
              error_message: Optional[str] = None,
              warning_message: Optional[str] = None,
              result_meta: Optional[Dict[str, Any]] = None) -> None:
        with self.session_factory() as db:
            job = db.get(ExportJobModel, job_id)
            if not job:
                raise KeyError(f"Export job {job_id} is not journaled")

            job.state = state
            job.progress = progress
            if output_path:
                job.output_path = output_path
            job.error_message = error_message
            job.warning_message = warning_message
            job.result_meta = result_meta or {}
            job.finished_at = datetime.now(timezone.utc)
            db.commit()

    def get(self, job_id: UUID) -> Optional[JobRecord]:
        with self.session_factory() as db:
            job = db.get(ExportJobModel, job_id)
            return self._to_record(job) if job else None

    def recent(self, limit: int = 20) -> List[JobRecord]:
        with self.session_factory() as db:
            rows = (
                db.query(ExportJobModel)
                .order_by(ExportJobModel.created_at.desc())
                .limit(limit)
                .all()
            )
            return [self._to_record(row) for row in rows]

    @staticmethod
    def _to_record(job: ExportJobModel) -> JobRecord:
        return JobRecord(
            id=job.id,
            source_path=job.source_path,
            state=job.state,
            progress=job.progress,
            output_path=job.output_path,
            payload=job.payload or {},
            result_meta=job.result_meta or {},
            error_message=job.error_message,
            warning_message=job.warning_message,
            created_at=job.created_at,
            started_at=job.started_at,
            finished_at=job.finished_at,
        )
