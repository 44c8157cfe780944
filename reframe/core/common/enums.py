# File: reframe/core/common/enums.py

from enum import Enum, unique


@unique
class ExportState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    EXPORTING = "exporting"
    WRITING_METADATA = "writing_metadata"
    VERIFYING = "verifying"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (ExportState.SUCCEEDED, ExportState.FAILED, ExportState.CANCELLED)


@unique
class Handle(str, Enum):
    TOP_LEFT = "topLeft"
    TOP_RIGHT = "topRight"
    BOTTOM_LEFT = "bottomLeft"
    BOTTOM_RIGHT = "bottomRight"
    TOP = "top"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"
    CENTER = "center"
    NONE = "none"

    @property
    def is_corner(self) -> bool:
        return self in (Handle.TOP_LEFT, Handle.TOP_RIGHT, Handle.BOTTOM_LEFT, Handle.BOTTOM_RIGHT)

    @property
    def is_edge(self) -> bool:
        return self in (Handle.TOP, Handle.BOTTOM, Handle.LEFT, Handle.RIGHT)
