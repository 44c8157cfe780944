import uuid
import pytest

from reframe.core.common.enums import ExportState


def test_open_creates_idle_row(journal):
    job_id = uuid.uuid4()
    journal.open(job_id, "/videos/in.mp4", {"rotationAngle": 90})

    record = journal.get(job_id)

    assert record.id == job_id
    assert record.state == ExportState.IDLE
    assert record.progress == 0.0
    assert record.payload == {"rotationAngle": 90}
    assert record.created_at is not None
    assert record.started_at is None and record.finished_at is None


def test_update_then_close(journal):
    job_id = uuid.uuid4()
    journal.open(job_id, "/videos/in.mp4", {})

    journal.update(job_id, ExportState.VALIDATING, 0.0)
    first_start = journal.get(job_id).started_at
    journal.update(job_id, ExportState.EXPORTING, 0.4, output_path="/lib/edited_video_1.mp4")
    journal.close(job_id, ExportState.SUCCEEDED, 1.0, result_meta={"size_bytes": 10})

    record = journal.get(job_id)
    assert record.state == ExportState.SUCCEEDED
    assert record.progress == 1.0
    assert record.output_path == "/lib/edited_video_1.mp4"
    assert record.started_at == first_start
    assert record.finished_at is not None
    assert record.result_meta == {"size_bytes": 10}


def test_close_records_error(journal):
    job_id = uuid.uuid4()
    journal.open(job_id, "/videos/in.mp4", {})
    journal.close(job_id, ExportState.FAILED, 0.2, error_message="trim_end: exceeds source duration")

    record = journal.get(job_id)
    assert record.state == ExportState.FAILED
    assert record.error_message == "trim_end: exceeds source duration"
    assert record.result_meta == {}


def test_unknown_job(journal):
    assert journal.get(uuid.uuid4()) is None
    with pytest.raises(KeyError):
        journal.update(uuid.uuid4(), ExportState.EXPORTING, 0.5)
    with pytest.raises(KeyError):
        journal.close(uuid.uuid4(), ExportState.FAILED, 0.5)


def test_recent_is_newest_first(journal):
    ids = [uuid.uuid4() for _ in range(3)]
    for job_id in ids:
        journal.open(job_id, "/videos/in.mp4", {})

    recent = journal.recent(limit=2)

    assert len(recent) == 2
    assert {r.id for r in recent} <= set(ids)
    assert recent[0].created_at >= recent[1].created_at
