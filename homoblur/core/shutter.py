"""Shutter interval: which time range a motion-blurred frame integrates over."""

from enum import IntEnum
from typing import Tuple, Union


class ShutterOffset(IntEnum):
    """Position of the shutter interval relative to the frame time."""
    CENTERED = 0
    START = 1
    END = 2
    CUSTOM = 3

    @classmethod
    def parse(cls, value: Union[int, str, "ShutterOffset"]) -> "ShutterOffset":
        """Accept an enum, its integer value, or its (case-insensitive) name."""
        if isinstance(value, str):
            key = value.strip().upper()
            if key == "SYMMETRIC":
                key = "CENTERED"
            try:
                return cls[key]
            except KeyError:
                raise ValueError(f"Unknown shutter offset: {value!r}") from None
        return cls(int(value))


def shutter_range(
    time: float,
    shutter: float,
    offset: ShutterOffset,
    custom_offset: float = 0.0,
) -> Tuple[float, float]:
    """Return ``(t_start, t_end)`` of the shutter interval.

    Args:
        time: frame time
        shutter: shutter duration in frames
        offset: interval placement relative to ``time``
        custom_offset: start offset in frames, used with ``ShutterOffset.CUSTOM``

    Returns:
        (t_start, t_end)
    """
    offset = ShutterOffset.parse(offset)
    if offset == ShutterOffset.CENTERED:
        return time - shutter / 2, time + shutter / 2
    elif offset == ShutterOffset.START:
        return time, time + shutter
    elif offset == ShutterOffset.END:
        return time - shutter, time
    return time + custom_offset, time + custom_offset + shutter
