from dataclasses import dataclass, field
from typing import Tuple

from reframe.core.common.enums import Handle
from reframe.features.edit_parameters.domain.models import FULL_FRAME, NormalizedRect

# Pointer proximity, as a fraction of the frame extent
HANDLE_THRESHOLD = 0.03
CENTER_THRESHOLD = 0.06

# Normalized (x, y) position or displacement
Point = Tuple[float, float]


@dataclass(frozen=True)
class CropRect:
    """
    Authoring state of the crop overlay: the rectangle plus the handle
    currently being dragged (Handle.NONE between gestures).
    The UI replaces its CropRect on every pointer event; nothing mutates.
    """
    rect: NormalizedRect = field(default=FULL_FRAME)
    active_handle: Handle = Handle.NONE

    @property
    def is_dragging(self) -> bool:
        return self.active_handle != Handle.NONE
