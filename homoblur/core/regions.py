"""Propagation of rectangles through one or a family of transforms."""

import math

import numpy as np

from .coords import Rect
from .shutter import ShutterOffset, shutter_range


def project_rect(rect: Rect, m: np.ndarray) -> np.ndarray:
    """Homogeneous images of the corners of ``rect`` under ``m``.

    Returns:
        [4, 3] array for corners (x1,y1), (x1,y2), (x2,y2), (x2,y1)
    """
    corners = np.array([
        [rect.x1, rect.y1, 1.0],
        [rect.x1, rect.y2, 1.0],
        [rect.x2, rect.y2, 1.0],
        [rect.x2, rect.y1, 1.0],
    ], dtype=np.float64)
    return corners @ np.asarray(m, dtype=np.float64).T


def bounding_box_of(points: np.ndarray) -> Rect:
    """Axis-aligned bounds of projected corners.

    If the z coordinates do not all share one strict sign, the line at infinity
    crosses the rectangle and the result is the infinite rect.
    """
    z = points[:, 2]
    if not ((z > 0.).all() or (z < 0.).all()):
        return Rect.infinite()
    x = points[:, 0] / z
    y = points[:, 1] / z
    return Rect(float(x.min()), float(y.min()), float(x.max()), float(y.max()))


def transform_rect(rect: Rect, m: np.ndarray) -> Rect:
    return bounding_box_of(project_rect(rect, m))


def transform_region(
    rect: Rect,
    time: float,
    effect,
    invert: bool,
    motion_blur: float,
    directional_blur: bool,
    amount_from: float,
    amount_to: float,
    shutter: float,
    shutter_offset: ShutterOffset,
    shutter_custom_offset: float,
    is_identity: bool,
    directional_blur_count: int = 8,
) -> Rect:
    """Conservative bounds of ``rect`` under the effect's transform(s).

    Corners are tested at the shutter start and end and at every quarter frame
    in between (or at every directional blur step). The union of the tested
    boxes is then grown on each finite side by the largest L-infinity distance
    between consecutive positions of a corner, to cover the motion between
    tested instants.

    Args:
        rect: rectangle in canonical coordinates
        time: frame time
        effect: provides ``get_inverse_transform_canonical(time, amount, invert)``
        invert: flag passed to the effect
        motion_blur: motion blur strength (0 disables blur)
        directional_blur: walk the amount range instead of the shutter
        amount_from, amount_to: directional blur amount range
        shutter, shutter_offset, shutter_custom_offset: shutter interval
        is_identity: effect reports identity at ``time``
        directional_blur_count: directional blur iterations

    Returns:
        the region, or the infinite rect if any tested transform is missing
    """
    has_motion_blur = (shutter != 0. or directional_blur) and motion_blur != 0.

    if has_motion_blur and not directional_blur:
        t, t_end = shutter_range(time, shutter, shutter_offset, shutter_custom_offset)
    else:
        if is_identity:
            return rect
        t = t_end = time

    out = Rect.super_empty()
    last = not has_motion_blur
    expand = 0.0
    amount = 1.0
    dir_blur_iter = 0
    p_prev = None
    while True:
        transform = effect.get_inverse_transform_canonical(
            t, amount_from + amount * (amount_to - amount_from), invert)
        if transform is None:
            return Rect.infinite()
        p = project_rect(rect, transform)
        out = out.union(bounding_box_of(p))

        if p_prev is not None:
            expand = max(expand, float(np.abs(p_prev[:, :2] - p[:, :2]).max()))

        if last:
            break
        p_prev = p
        if directional_blur:
            dir_blur_iter += 1
            amount = 1.0 - dir_blur_iter / directional_blur_count
            last = dir_blur_iter == directional_blur_count
        else:
            t = math.floor(t * 4 + 1) / 4  # next quarter frame
            if t >= t_end:
                t = t_end
                last = True

    return out.expanded(expand, expand)
