import json
import pytest
from datetime import datetime, timezone
from pathlib import Path

from reframe.core.common.errors import LineageCycleError, MetadataReadError, MetadataWriteError
from reframe.features.edit_parameters.domain.models import EditParameters, NormalizedRect
from reframe.features.provenance.data.sidecar_store import SidecarProvenanceStore
from reframe.features.provenance.domain.models import ProvenanceRecord


def make_video(directory: Path, name: str) -> Path:
    path = directory / name
    path.write_bytes(b"video")
    return path


def record_for(source: Path, **changes) -> ProvenanceRecord:
    fields = {"source_path": source, "trim_start": 0, "trim_end": 5}
    fields.update(changes)
    return ProvenanceRecord.create(
        EditParameters(**fields),
        now=datetime(2026, 3, 1, 12, 30, 15, 123456, tzinfo=timezone.utc),
    )


def test_sidecar_sits_next_to_output(provenance, storage_root):
    output = storage_root / "edited_video_1.mp4"
    assert provenance.sidecar_path(output) == storage_root / "edited_video_1.mp4.meta"


def test_write_then_read_round_trips(provenance, storage_root, source_video):
    output = make_video(storage_root, "edited_video_1.mp4")
    record = record_for(source_video, brightness=10, rotation=90, crop=NormalizedRect(0.1, 0.1, 0.9, 0.9))

    sidecar = provenance.write(output, record)

    assert sidecar.exists()
    assert provenance.read(output) == record


def test_sidecar_json_layout(provenance, storage_root, source_video):
    output = make_video(storage_root, "edited_video_1.mp4")
    provenance.write(output, record_for(source_video, rotation=90, brightness=10))

    data = json.loads(provenance.sidecar_path(output).read_text())

    assert set(data) == {"originalPath", "processedAt", "edits", "version"}
    assert data["originalPath"] == str(source_video)
    assert data["processedAt"] == "2026-03-01T12:30:15.123456+00:00"
    assert data["version"] == "1.0"
    assert data["edits"]["rotationAngle"] == 90
    assert data["edits"]["brightness"] == 10


def test_read_without_sidecar_returns_none(provenance, source_video):
    assert provenance.read(source_video) is None
    assert not provenance.is_processed(source_video)
    assert provenance.original_of(source_video) is None


def test_read_ignores_unknown_fields(provenance, storage_root, source_video):
    output = make_video(storage_root, "edited_video_1.mp4")
    data = record_for(source_video).to_dict()
    data["thumbnail"] = "thumb.jpg"
    data["edits"]["speed"] = 2.0
    provenance.sidecar_path(output).write_text(json.dumps(data))

    assert provenance.read(output) == record_for(source_video)


def test_corrupt_sidecar_is_reported(provenance, storage_root):
    output = make_video(storage_root, "edited_video_1.mp4")
    provenance.sidecar_path(output).write_text("{not json")

    with pytest.raises(MetadataReadError):
        provenance.read(output)


def test_existing_sidecar_is_never_overwritten(provenance, storage_root, source_video):
    output = make_video(storage_root, "edited_video_1.mp4")
    first = record_for(source_video, brightness=5)
    provenance.write(output, first)

    with pytest.raises(MetadataWriteError):
        provenance.write(output, record_for(source_video, brightness=20))

    assert provenance.read(output) == first


def test_write_into_missing_directory_fails_as_metadata_error(provenance, tmp_path, source_video):
    output = tmp_path / "missing" / "edited_video_1.mp4"
    with pytest.raises(MetadataWriteError):
        provenance.write(output, record_for(source_video))


def test_chain_of_three_edits(provenance, storage_root, source_video):
    edit1 = make_video(storage_root, "edited_video_1.mp4")
    edit2 = make_video(storage_root, "edited_video_2.mp4")
    edit3 = make_video(storage_root, "edited_video_3.mp4")
    provenance.write(edit1, record_for(source_video, rotation=90))
    provenance.write(edit2, record_for(edit1, brightness=10))
    provenance.write(edit3, record_for(edit2, contrast=1.5))

    chain = provenance.chain_of(edit3)

    assert len(chain) == 3
    assert [r.original_path for r in chain] == [str(edit2), str(edit1), str(source_video)]
    assert provenance.read(Path(chain[-1].original_path)) is None
    assert provenance.original_of(edit3) == str(edit2)


def test_chain_of_an_original_is_empty(provenance, source_video):
    assert provenance.chain_of(source_video) == []


def test_two_file_cycle_is_detected(provenance, storage_root):
    a = make_video(storage_root, "edited_video_1.mp4")
    b = make_video(storage_root, "edited_video_2.mp4")
    provenance.write(a, record_for(b))
    provenance.write(b, record_for(a))

    with pytest.raises(LineageCycleError):
        provenance.chain_of(a)


def test_hop_bound_is_enforced(storage_root):
    store = SidecarProvenanceStore(max_hops=4)
    paths = [make_video(storage_root, f"edited_video_{i}.mp4") for i in range(7)]
    for newer, older in zip(paths[1:], paths):
        store.write(newer, record_for(older))

    assert len(store.chain_of(paths[4])) == 4
    with pytest.raises(LineageCycleError):
        store.chain_of(paths[6])


def test_delete_removes_only_the_sidecar(provenance, storage_root, source_video):
    output = make_video(storage_root, "edited_video_1.mp4")
    provenance.write(output, record_for(source_video))

    assert provenance.delete(output) is True
    assert output.exists()
    assert provenance.read(output) is None
    assert provenance.delete(output) is False


def test_relative_sources_are_recorded_absolute(provenance, storage_root, source_video, tmp_path, monkeypatch):
    edit1 = make_video(storage_root, "edited_video_1.mp4")
    edit2 = make_video(storage_root, "edited_video_2.mp4")
    monkeypatch.chdir(storage_root)
    provenance.write(edit1, record_for(Path("..") / source_video.name))
    provenance.write(edit2, record_for(Path(edit1.name)))

    monkeypatch.chdir(tmp_path)
    chain = provenance.chain_of(edit2)

    assert [r.original_path for r in chain] == [str(edit1), str(source_video)]
