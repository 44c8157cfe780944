import math
import pytest
from datetime import timedelta

from reframe.core.common.errors import ValidationError
from reframe.features.edit_parameters.domain.models import EditParameters, NormalizedRect
from reframe.features.edit_parameters.service.validation import validate

DURATION = timedelta(seconds=10)


def edits(**changes):
    fields = {"source_path": "/videos/a.mp4", "trim_start": 2, "trim_end": 8}
    fields.update(changes)
    return EditParameters(**fields)


def test_valid_parameters_pass():
    valid = validate(edits(brightness=10, rotation=90), DURATION)

    assert valid.edits.brightness == 10
    assert valid.source_duration == DURATION
    assert valid.trim_duration == timedelta(seconds=6)
    assert not valid.is_trivial


def test_duration_may_be_given_in_seconds():
    assert validate(edits(), 10.0).source_duration == DURATION


@pytest.mark.parametrize("changes, field", [
    ({"trim_start": -1}, "trim_start"),
    ({"trim_start": 8, "trim_end": 8}, "trim_start"),
    ({"trim_start": 9, "trim_end": 3}, "trim_start"),
    ({"trim_end": 10.5}, "trim_end"),
    ({"brightness": 50.5}, "brightness"),
    ({"brightness": -51}, "brightness"),
    ({"brightness": math.nan}, "brightness"),
    ({"contrast": 0.49}, "contrast"),
    ({"contrast": 2.01}, "contrast"),
    ({"rotation": 45}, "rotation"),
    ({"crop": NormalizedRect(-0.1, 0.0, 0.5, 0.5)}, "crop"),
    ({"crop": NormalizedRect(0.0, 0.0, 1.2, 0.5)}, "crop"),
    ({"crop": NormalizedRect(0.6, 0.0, 0.4, 0.5)}, "crop"),
    ({"crop": NormalizedRect(0.0, 0.6, 0.5, 0.6)}, "crop"),
    ({"crop": NormalizedRect(0.0, 0.0, 0.05, 0.5)}, "crop"),
    ({"crop": NormalizedRect(0.0, 0.0, 0.5, 0.09)}, "crop"),
])
def test_each_violation_names_its_field(changes, field):
    with pytest.raises(ValidationError) as exc:
        validate(edits(**changes), DURATION)
    assert exc.value.field == field
    assert exc.value.reason


def test_boundaries_are_inclusive():
    valid = validate(edits(trim_start=0, trim_end=10, brightness=-50, contrast=2.0,
                           crop=NormalizedRect(0.0, 0.0, 0.1, 0.1)), DURATION)
    assert valid.edits.contrast == 2.0


def test_only_the_first_violation_is_reported():
    # trim, brightness and contrast are all wrong; trim is checked first
    bad = edits(trim_start=9, trim_end=3, brightness=99, contrast=5)
    with pytest.raises(ValidationError) as exc:
        validate(bad, DURATION)
    assert exc.value.field == "trim_start"

    bad = edits(brightness=99, contrast=5)
    with pytest.raises(ValidationError) as exc:
        validate(bad, DURATION)
    assert exc.value.field == "brightness"


def test_validation_error_is_a_value_error():
    with pytest.raises(ValueError):
        validate(edits(contrast=0), DURATION)
