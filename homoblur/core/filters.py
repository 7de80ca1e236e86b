"""Region padding for the resampling filter support."""

from typing import Tuple

from .config import FilterType
from .coords import Rect

_HALF_PIXEL_FILTERS = (FilterType.BILINEAR, FilterType.CUBIC)
_CUBIC_FILTERS = (FilterType.KEYS, FilterType.SIMON, FilterType.RIFMAN,
                  FilterType.MITCHELL, FilterType.PARZEN, FilterType.NOTCH)


def filter_support(filter_type: FilterType) -> float:
    """Filter footprint radius beyond the sample position, in pixels."""
    if filter_type in _HALF_PIXEL_FILTERS:
        return 0.5
    if filter_type in _CUBIC_FILTERS:
        return 1.5
    return 0.0


def filter_expand_rod(rod: Rect, pixel_aspect_ratio: float, render_scale: Tuple[float, float],
                      black_outside: bool, project_offset: Tuple[float, float] = (0.0, 0.0),
                      project_size: Tuple[float, float] = (1920.0, 1080.0)) -> Rect:
    """Grow a RoD for the area the resampler writes.

    Black-outside renders get one pixel of black border. Otherwise the edge
    pixels extend over the whole project, so the RoD must contain it.
    """
    if rod.is_empty():
        return rod
    if not black_outside:
        (ox, oy), (w, h) = project_offset, project_size
        return rod.union(Rect(ox, oy, ox + w, oy + h))
    pixel_x = pixel_aspect_ratio / render_scale[0]
    pixel_y = 1.0 / render_scale[1]
    return rod.expanded(pixel_x, pixel_y)


def filter_expand_roi(roi: Rect, src_roi: Rect, pixel_aspect_ratio: float,
                      render_scale: Tuple[float, float], filter_type: FilterType,
                      do_masking: bool, mix: float) -> Rect:
    """Grow a source RoI by the filter support.

    When masking or mixing, the unfiltered source is needed over ``roi`` as
    well, so the result also covers it.
    """
    support = filter_support(filter_type)
    out = src_roi.expanded(support * pixel_aspect_ratio / render_scale[0],
                           support / render_scale[1])
    if do_masking or mix != 1.:
        out = out.union(roi)
    return out
