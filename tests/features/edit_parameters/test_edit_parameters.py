import pytest
from datetime import timedelta
from pathlib import Path

from reframe.features.edit_parameters.domain.models import (
    FULL_FRAME,
    EditParameters,
    NormalizedRect,
)

DURATION = timedelta(seconds=10)


def test_construction_normalizes_types():
    edits = EditParameters(source_path="/videos/a.mp4", trim_start=2, trim_end=8.5, rotation=450)

    assert edits.source_path == Path("/videos/a.mp4")
    assert edits.trim_start == timedelta(seconds=2)
    assert edits.trim_end == timedelta(seconds=8.5)
    assert edits.rotation == 90


def test_negative_rotation_is_stored_mod_360():
    edits = EditParameters("/videos/a.mp4", 0, 10, rotation=-90)
    assert edits.rotation == 270


def test_value_equality():
    a = EditParameters("/videos/a.mp4", 1, 5, brightness=10, crop=NormalizedRect(0.1, 0.1, 0.9, 0.9))
    b = EditParameters(Path("/videos/a.mp4"), timedelta(seconds=1), timedelta(seconds=5),
                       brightness=10.0, crop=NormalizedRect(0.1, 0.1, 0.9, 0.9))
    assert a == b
    assert hash(a) == hash(b)


def test_fresh_parameters_are_trivial():
    edits = EditParameters.for_source("/videos/a.mp4", DURATION)
    assert edits.is_trivial(DURATION)


def test_full_frame_crop_is_still_trivial():
    edits = EditParameters("/videos/a.mp4", 0, 10, crop=NormalizedRect(0.005, 0.0, 0.995, 1.0))
    assert edits.is_trivial(DURATION)


@pytest.mark.parametrize("changes", [
    {"trim_start": timedelta(milliseconds=500)},
    {"trim_end": timedelta(seconds=9)},
    {"brightness": 0.5},
    {"brightness": -0.001},
    {"contrast": 1.01},
    {"rotation": 90},
    {"crop": NormalizedRect(0.02, 0.0, 1.0, 1.0)},
    {"crop": NormalizedRect(0.0, 0.0, 1.0, 0.95)},
])
def test_any_single_change_is_non_trivial(changes):
    fields = {"source_path": "/videos/a.mp4", "trim_start": 0, "trim_end": 10}
    fields.update(changes)
    assert not EditParameters(**fields).is_trivial(DURATION)


def test_dict_uses_sidecar_wire_keys():
    edits = EditParameters("/videos/a.mp4", 2, 8, brightness=10, contrast=1.5, rotation=90,
                           crop=NormalizedRect(0.1, 0.2, 0.6, 0.7))
    data = edits.to_dict()

    assert data == {
        "inputPath": "/videos/a.mp4",
        "startTime": 2000,
        "endTime": 8000,
        "brightness": 10.0,
        "contrast": 1.5,
        "rotationAngle": 90,
        "cropRect": {"left": 0.1, "top": 0.2, "right": 0.6, "bottom": 0.7},
    }
    assert EditParameters.from_dict(data) == edits


def test_from_dict_ignores_unknown_keys_and_missing_crop():
    data = {"inputPath": "/videos/a.mp4", "startTime": 0, "endTime": 1500,
            "brightness": 0, "contrast": 1, "rotationAngle": 0, "filterPreset": "vivid"}
    edits = EditParameters.from_dict(data)

    assert edits.trim_end == timedelta(milliseconds=1500)
    assert edits.crop is None


def test_color_matrix_scales_by_contrast_and_offsets_by_brightness():
    matrix = EditParameters("/videos/a.mp4", 0, 10, brightness=20, contrast=1.5).color_matrix()

    assert len(matrix) == 20
    for row in range(3):
        assert matrix[row * 5 + row] == 1.5
        assert matrix[row * 5 + 4] == pytest.approx(51.0)
    assert matrix[15:] == [0.0, 0.0, 0.0, 1.0, 0.0]


def test_rect_helpers():
    rect = NormalizedRect.from_ltwh(0.25, 0.1, 0.5, 0.4)

    assert rect.right == pytest.approx(0.75)
    assert rect.bottom == pytest.approx(0.5)
    assert rect.center == (pytest.approx(0.5), pytest.approx(0.3))
    assert FULL_FRAME.covers_full_frame()
    assert not rect.covers_full_frame()


def test_crop_pixels_are_even_and_inside_the_frame():
    x, y, w, h = NormalizedRect(0.1, 0.1, 0.6, 0.55).to_pixels(1921, 1081)

    assert all(v % 2 == 0 for v in (x, y, w, h))
    assert x + w <= 1921
    assert y + h <= 1081
    assert (x, y, w, h) == (192, 108, 960, 486)
