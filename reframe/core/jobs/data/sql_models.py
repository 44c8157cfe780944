import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, Float, DateTime, Enum as SQLEnum, JSON, Uuid

from reframe.core.database.base import Base
from reframe.core.common.enums import ExportState


def utc_now():
    return datetime.now(timezone.utc)


class ExportJobModel(Base):
    """
    One row per ExportJob.
    The lineage itself lives in the sidecar next to the output; this table
    only records what happened to each run.
    """
    __tablename__ = "export_jobs"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    source_path = Column(String, nullable=False, index=True)
    output_path = Column(String, nullable=True)

    state = Column(SQLEnum(ExportState), default=ExportState.IDLE, nullable=False, index=True)
    progress = Column(Float, default=0.0, nullable=False)

    payload = Column(JSON, default=dict)      # Serialized edits
    result_meta = Column(JSON, default=dict)  # Output size, triviality

    error_message = Column(String, nullable=True)
    warning_message = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utc_now)
    started_at = Column(DateTime(timezone=True), nullable=True)
    finished_at = Column(DateTime(timezone=True), nullable=True)
