# File: tests/conftest.py

import os
import sys
from datetime import timedelta
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# 1. Add project root to path
sys.path.append(os.getcwd())

from reframe.core.common.errors import TransformError
from reframe.core.database.base import Base
from reframe.core.jobs.data.repository import SqlJobJournal
from reframe.features.edit_parameters.domain.models import EditParameters
from reframe.features.library.data.local_fs import LocalLibraryIndex
from reframe.features.library.data.naming import TimestampOutputNamer
from reframe.features.provenance.data.sidecar_store import SidecarProvenanceStore
from reframe.features.video_export.domain.interfaces import IFrameTransform
from reframe.features.video_export.service.registry import ActiveExports


class FakeTransform(IFrameTransform):
    """
    Scripted stand-in for FFmpeg.
    Writes `payload` to the output and yields `steps` as progress.
    """

    def __init__(self):
        self.steps = [0.25, 0.5, 0.75, 1.0]
        self.payload = b"transformed-video-bytes"
        self.fail_after = None      # raise TransformError after this many steps
        self.write_output = True
        self.calls = []
        self.closed = False

    def transform(self, source_path, params, output_path):
        self.calls.append((Path(source_path), params, Path(output_path)))
        try:
            with open(output_path, "xb") as f:
                if self.write_output:
                    f.write(self.payload)
            for index, step in enumerate(self.steps):
                if self.fail_after is not None and index >= self.fail_after:
                    raise TransformError("encoder exploded")
                yield step
        except GeneratorExit:
            self.closed = True
            raise


@pytest.fixture
def storage_root(tmp_path):
    root = tmp_path / "EditedVideos"
    root.mkdir()
    return root


@pytest.fixture
def source_video(tmp_path):
    """A fake 10s source; the bytes only matter for the plain-copy path."""
    path = tmp_path / "source.mp4"
    path.write_bytes(b"\x00\x00\x00\x18ftypmp42" + os.urandom(4096))
    return path


@pytest.fixture
def source_duration():
    return timedelta(seconds=10)


@pytest.fixture
def untouched_edits(source_video, source_duration):
    return EditParameters.for_source(source_video, source_duration)


@pytest.fixture
def provenance():
    return SidecarProvenanceStore()


@pytest.fixture
def library(storage_root, provenance):
    return LocalLibraryIndex(storage_root, provenance)


@pytest.fixture
def namer(storage_root):
    return TimestampOutputNamer(storage_root)


@pytest.fixture
def registry():
    return ActiveExports()


@pytest.fixture
def fake_transform():
    return FakeTransform()


@pytest.fixture
def session_factory(tmp_path):
    """Journal database isolated in the test's temp dir."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'journal.db'}",
        connect_args={"check_same_thread": False},
    )
    import reframe.core.jobs.data.sql_models  # noqa: F401
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def journal(session_factory):
    return SqlJobJournal(session_factory)
