import math
from datetime import timedelta

from reframe.core.common.errors import ValidationError
from ..domain.models import (
    ALLOWED_ROTATIONS,
    BRIGHTNESS_RANGE,
    CONTRAST_RANGE,
    MIN_CROP_FRACTION,
    Duration,
    EditParameters,
    NormalizedRect,
    ValidParameters,
    to_timedelta,
)

# Float slack for crops produced by the geometry engine
_SIZE_TOLERANCE = 1e-9


def validate(params: EditParameters, source_duration: Duration) -> ValidParameters:
    """
    Checks an edit request against the source it targets.

    Constraints are checked in a fixed order (trim, brightness, contrast,
    rotation, crop) and only the first violation is reported. The editing
    UI changes one control at a time, so the user fixes and resubmits.

    Raises:
        ValidationError: naming the offending field and the reason.
    """
    duration = to_timedelta(source_duration)

    _check_trim(params, duration)
    _check_range("brightness", params.brightness, BRIGHTNESS_RANGE)
    _check_range("contrast", params.contrast, CONTRAST_RANGE)
    _check_rotation(params.rotation)
    if params.crop is not None:
        _check_crop(params.crop)

    return ValidParameters(edits=params, source_duration=duration)


def _check_trim(params: EditParameters, duration: timedelta) -> None:
    if duration <= timedelta(0):
        raise ValidationError("trim_end", f"source duration must be positive, got {duration}")
    if params.trim_start < timedelta(0):
        raise ValidationError("trim_start", f"cannot be negative, got {params.trim_start}")
    if params.trim_start >= params.trim_end:
        raise ValidationError(
            "trim_start", f"must be before trim_end ({params.trim_start} >= {params.trim_end})"
        )
    if params.trim_end > duration:
        raise ValidationError(
            "trim_end", f"exceeds source duration ({params.trim_end} > {duration})"
        )


def _check_range(field: str, value: float, bounds) -> None:
    low, high = bounds
    if not math.isfinite(value):
        raise ValidationError(field, f"must be a finite number, got {value}")
    if not low <= value <= high:
        raise ValidationError(field, f"must be within [{low}, {high}], got {value}")


def _check_rotation(rotation) -> None:
    if rotation not in ALLOWED_ROTATIONS:
        raise ValidationError("rotation", f"must be a multiple of 90 degrees, got {rotation}")


def _check_crop(crop: NormalizedRect) -> None:
    edges = (crop.left, crop.top, crop.right, crop.bottom)
    if not all(math.isfinite(edge) and 0.0 <= edge <= 1.0 for edge in edges):
        raise ValidationError("crop", f"edges must lie within [0, 1], got {edges}")
    if crop.right <= crop.left:
        raise ValidationError("crop", "right edge must be greater than left edge")
    if crop.bottom <= crop.top:
        raise ValidationError("crop", "bottom edge must be greater than top edge")
    if crop.width < MIN_CROP_FRACTION - _SIZE_TOLERANCE:
        raise ValidationError("crop", f"width must be at least {MIN_CROP_FRACTION}, got {crop.width:.4f}")
    if crop.height < MIN_CROP_FRACTION - _SIZE_TOLERANCE:
        raise ValidationError("crop", f"height must be at least {MIN_CROP_FRACTION}, got {crop.height:.4f}")
