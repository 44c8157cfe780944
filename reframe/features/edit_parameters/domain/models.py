from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

# Smallest crop, as a fraction of the frame dimension
MIN_CROP_FRACTION = 0.1

# A crop within this distance of every frame edge counts as "no crop"
FULL_FRAME_EPSILON = 0.01

TRIM_EPSILON = timedelta(milliseconds=1)
COLOR_EPSILON = 1e-6

BRIGHTNESS_RANGE = (-50.0, 50.0)
CONTRAST_RANGE = (0.5, 2.0)
ALLOWED_ROTATIONS = (0, 90, 180, 270)

Duration = Union[timedelta, int, float]


def to_timedelta(value: Duration) -> timedelta:
    """Numbers are read as seconds."""
    if isinstance(value, timedelta):
        return value
    return timedelta(seconds=float(value))


def _to_millis(value: timedelta):
    millis = value / timedelta(milliseconds=1)
    return int(millis) if millis.is_integer() else millis


@dataclass(frozen=True)
class NormalizedRect:
    """
    Value Object for a frame-size-independent rectangle.
    All coordinates are fractions of the frame, origin at the top-left.
    """
    left: float
    top: float
    right: float
    bottom: float

    @classmethod
    def from_ltwh(cls, left: float, top: float, width: float, height: float) -> "NormalizedRect":
        return cls(left, top, left + width, top + height)

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @property
    def center(self) -> Tuple[float, float]:
        return ((self.left + self.right) / 2.0, (self.top + self.bottom) / 2.0)

    def covers_full_frame(self, epsilon: float = FULL_FRAME_EPSILON) -> bool:
        return (
            self.left <= epsilon
            and self.top <= epsilon
            and self.right >= 1.0 - epsilon
            and self.bottom >= 1.0 - epsilon
        )

    def to_pixels(self, frame_width: int, frame_height: int) -> Tuple[int, int, int, int]:
        """
        Converts to an (x, y, width, height) pixel crop.
        Values are rounded down to even numbers because 4:2:0 encoders
        reject odd dimensions.
        """
        def even(value: float) -> int:
            return int(round(value)) // 2 * 2

        width = max(2, even(self.width * frame_width))
        height = max(2, even(self.height * frame_height))
        x = min(even(self.left * frame_width), frame_width - width)
        y = min(even(self.top * frame_height), frame_height - height)
        return max(0, x), max(0, y), width, height

    def to_dict(self) -> Dict[str, float]:
        return {"left": self.left, "top": self.top, "right": self.right, "bottom": self.bottom}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NormalizedRect":
        return cls(
            left=float(data["left"]),
            top=float(data["top"]),
            right=float(data["right"]),
            bottom=float(data["bottom"]),
        )


FULL_FRAME = NormalizedRect(0.0, 0.0, 1.0, 1.0)


@dataclass(frozen=True)
class EditParameters:
    """
    One edit request against a source video.

    Immutable and compared by value. Construction only normalizes types
    (seconds -> timedelta, str -> Path, rotation mod 360); domain checks
    live in validate().
    """
    source_path: Path
    trim_start: timedelta
    trim_end: timedelta
    brightness: float = 0.0
    contrast: float = 1.0
    rotation: int = 0
    crop: Optional[NormalizedRect] = None

    def __post_init__(self):
        # frozen=True: normalize through object.__setattr__
        object.__setattr__(self, "source_path", Path(self.source_path))
        object.__setattr__(self, "trim_start", to_timedelta(self.trim_start))
        object.__setattr__(self, "trim_end", to_timedelta(self.trim_end))
        object.__setattr__(self, "brightness", float(self.brightness))
        object.__setattr__(self, "contrast", float(self.contrast))
        if isinstance(self.rotation, float) and self.rotation.is_integer():
            object.__setattr__(self, "rotation", int(self.rotation))
        object.__setattr__(self, "rotation", self.rotation % 360)

    @classmethod
    def for_source(cls, source_path: Union[str, Path], duration: Duration) -> "EditParameters":
        """The untouched edit set: whole timeline, no filters, no crop."""
        return cls(source_path=Path(source_path), trim_start=timedelta(0), trim_end=to_timedelta(duration))

    @property
    def trim_duration(self) -> timedelta:
        return self.trim_end - self.trim_start

    def has_trim(self, source_duration: Duration) -> bool:
        source_duration = to_timedelta(source_duration)
        return self.trim_start > TRIM_EPSILON or self.trim_end < source_duration - TRIM_EPSILON

    def has_color_adjustment(self) -> bool:
        return abs(self.brightness) > COLOR_EPSILON or abs(self.contrast - 1.0) > COLOR_EPSILON

    def has_crop(self) -> bool:
        return self.crop is not None and not self.crop.covers_full_frame()

    def is_trivial(self, source_duration: Duration) -> bool:
        """True when exporting would be a no-op, so a plain copy is enough."""
        return not (
            self.has_trim(source_duration)
            or self.has_color_adjustment()
            or self.rotation != 0
            or self.has_crop()
        )

    def color_matrix(self) -> List[float]:
        """
        4x5 RGBA color matrix, row-major.
        Scales RGB by contrast and offsets it by brightness (as a percentage
        of the 0-255 channel range); alpha passes through.
        """
        offset = self.brightness / 100.0 * 255.0
        c = self.contrast
        return [
            c, 0.0, 0.0, 0.0, offset,
            0.0, c, 0.0, 0.0, offset,
            0.0, 0.0, c, 0.0, offset,
            0.0, 0.0, 0.0, 1.0, 0.0,
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "inputPath": str(self.source_path),
            "startTime": _to_millis(self.trim_start),
            "endTime": _to_millis(self.trim_end),
            "brightness": self.brightness,
            "contrast": self.contrast,
            "rotationAngle": self.rotation,
            "cropRect": self.crop.to_dict() if self.crop is not None else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EditParameters":
        crop = data.get("cropRect")
        return cls(
            source_path=Path(data["inputPath"]),
            trim_start=timedelta(milliseconds=data["startTime"]),
            trim_end=timedelta(milliseconds=data["endTime"]),
            brightness=data.get("brightness", 0.0),
            contrast=data.get("contrast", 1.0),
            rotation=data.get("rotationAngle", 0),
            crop=NormalizedRect.from_dict(crop) if crop else None,
        )


@dataclass(frozen=True)
class ValidParameters:
    """
    Proof that `edits` passed validate() against `source_duration`.
    Only validate() should build one.
    """
    edits: EditParameters
    source_duration: timedelta

    @property
    def is_trivial(self) -> bool:
        return self.edits.is_trivial(self.source_duration)

    @property
    def trim_duration(self) -> timedelta:
        return self.edits.trim_duration
