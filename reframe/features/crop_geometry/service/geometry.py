import math
from dataclasses import replace
from typing import Dict, Iterable, Tuple

from reframe.core.common.enums import Handle
from reframe.features.edit_parameters.domain.models import (
    FULL_FRAME,
    MIN_CROP_FRACTION,
    NormalizedRect,
)
from ..domain.models import CENTER_THRESHOLD, HANDLE_THRESHOLD, CropRect, Point

_CORNERS = (Handle.TOP_LEFT, Handle.TOP_RIGHT, Handle.BOTTOM_LEFT, Handle.BOTTOM_RIGHT)
_EDGES = (Handle.TOP, Handle.BOTTOM, Handle.LEFT, Handle.RIGHT)

# Which edges each handle drags: (left, top, right, bottom)
_MOVES: Dict[Handle, Tuple[bool, bool, bool, bool]] = {
    Handle.TOP_LEFT: (True, True, False, False),
    Handle.TOP_RIGHT: (False, True, True, False),
    Handle.BOTTOM_LEFT: (True, False, False, True),
    Handle.BOTTOM_RIGHT: (False, False, True, True),
    Handle.TOP: (False, True, False, False),
    Handle.BOTTOM: (False, False, False, True),
    Handle.LEFT: (True, False, False, False),
    Handle.RIGHT: (False, False, True, False),
}


def handle_positions(rect: NormalizedRect) -> Dict[Handle, Point]:
    cx, cy = rect.center
    return {
        Handle.TOP_LEFT: (rect.left, rect.top),
        Handle.TOP_RIGHT: (rect.right, rect.top),
        Handle.BOTTOM_LEFT: (rect.left, rect.bottom),
        Handle.BOTTOM_RIGHT: (rect.right, rect.bottom),
        Handle.TOP: (cx, rect.top),
        Handle.BOTTOM: (cx, rect.bottom),
        Handle.LEFT: (rect.left, cy),
        Handle.RIGHT: (rect.right, cy),
        Handle.CENTER: (cx, cy),
    }


def hit_test(rect: NormalizedRect, point: Point) -> Handle:
    """
    Returns the handle under a pointer-down position.

    Corners win over edges and edges over the center move target; inside a
    group the nearest handle wins, ties going to the first in declaration
    order. Handle.NONE when nothing is within reach.
    """
    positions = handle_positions(rect)

    for group, threshold in ((_CORNERS, HANDLE_THRESHOLD), (_EDGES, HANDLE_THRESHOLD)):
        nearest = _nearest(group, positions, point, threshold)
        if nearest is not None:
            return nearest

    if _distance(positions[Handle.CENTER], point) < CENTER_THRESHOLD:
        return Handle.CENTER
    return Handle.NONE


def apply_delta(rect: NormalizedRect, handle: Handle, delta: Point) -> NormalizedRect:
    """
    Drags `handle` by `delta` and returns the clamped result.

    Only the edges implied by the handle move; Handle.CENTER translates the
    whole rectangle. Edges stay inside [0, 1] and width/height never drop
    below MIN_CROP_FRACTION: a drag that would break either is pulled back,
    never rejected.
    """
    rect = clamp_rect(rect)
    dx, dy = (_finite(component) for component in delta)

    if handle == Handle.CENTER:
        dx = min(max(dx, -rect.left), 1.0 - rect.right)
        dy = min(max(dy, -rect.top), 1.0 - rect.bottom)
        left, right = _span(rect.left + dx, rect.right + dx, pin_low=dx < 0)
        top, bottom = _span(rect.top + dy, rect.bottom + dy, pin_low=dy < 0)
        return NormalizedRect(left, top, right, bottom)

    moves = _MOVES.get(handle)
    if moves is None:
        return rect
    move_left, move_top, move_right, move_bottom = moves

    left, right = rect.left, rect.right
    if move_left:
        left = min(max(left + dx, 0.0), right - MIN_CROP_FRACTION)
        left, right = _span(left, right, pin_low=False)
    elif move_right:
        right = max(min(right + dx, 1.0), left + MIN_CROP_FRACTION)
        left, right = _span(left, right, pin_low=True)

    top, bottom = rect.top, rect.bottom
    if move_top:
        top = min(max(top + dy, 0.0), bottom - MIN_CROP_FRACTION)
        top, bottom = _span(top, bottom, pin_low=False)
    elif move_bottom:
        bottom = max(min(bottom + dy, 1.0), top + MIN_CROP_FRACTION)
        top, bottom = _span(top, bottom, pin_low=True)

    return NormalizedRect(left, top, right, bottom)


def clamp_rect(rect: NormalizedRect) -> NormalizedRect:
    """Coerces any rectangle (inverted, out of range, too small) into a legal crop."""
    left, right = sorted((_unit(rect.left, 0.0), _unit(rect.right, 1.0)))
    top, bottom = sorted((_unit(rect.top, 0.0), _unit(rect.bottom, 1.0)))
    left, right = _grow(left, right)
    top, bottom = _grow(top, bottom)
    return NormalizedRect(left, top, right, bottom)


# --- Authoring transitions over CropRect ---

def press(crop: CropRect, point: Point) -> CropRect:
    return replace(crop, active_handle=hit_test(crop.rect, point))


def drag(crop: CropRect, delta: Point) -> CropRect:
    if not crop.is_dragging:
        return crop
    return replace(crop, rect=apply_delta(crop.rect, crop.active_handle, delta))


def release(crop: CropRect) -> CropRect:
    return replace(crop, active_handle=Handle.NONE)


def reset(crop: CropRect) -> CropRect:
    return CropRect(rect=FULL_FRAME)


# --- Helpers ---

def _nearest(handles: Iterable[Handle], positions: Dict[Handle, Point], point: Point, threshold: float):
    best, best_distance = None, threshold
    for handle in handles:
        distance = _distance(positions[handle], point)
        if distance < best_distance:
            best, best_distance = handle, distance
    return best


def _distance(a: Point, b: Point) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def _finite(value: float) -> float:
    value = float(value)
    return value if math.isfinite(value) else 0.0


def _unit(value: float, fallback: float) -> float:
    value = float(value)
    if not math.isfinite(value):
        return fallback
    return min(max(value, 0.0), 1.0)


def _grow(low: float, high: float) -> Tuple[float, float]:
    """Widens [low, high] to the minimum size, shifting it back inside the frame."""
    if high - low < MIN_CROP_FRACTION:
        if low + MIN_CROP_FRACTION <= 1.0:
            high = low + MIN_CROP_FRACTION
        else:
            low, high = 1.0 - MIN_CROP_FRACTION, 1.0
    return _span(low, high, pin_low=False)


def _span(low: float, high: float, pin_low: bool) -> Tuple[float, float]:
    """
    Absorbs float rounding so that 0 <= low, high <= 1 and
    high - low >= MIN_CROP_FRACTION hold exactly.
    `pin_low` keeps `low` fixed when there is room to move `high`.
    """
    low, high = max(low, 0.0), min(high, 1.0)
    while high - low < MIN_CROP_FRACTION:
        if pin_low and high < 1.0:
            high = min(1.0, math.nextafter(high, math.inf))
        elif low > 0.0:
            low = max(0.0, math.nextafter(low, -math.inf))
        else:
            high = min(1.0, math.nextafter(high, math.inf))
    return low, high
