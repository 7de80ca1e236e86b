"""Host-side descriptions of render requests, clips and fetched images."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple

import numpy as np

from .coords import Rect


class Field(str, Enum):
    """Field (interlacing) requested for a render."""
    NONE = "none"
    BOTH = "both"
    LOWER = "lower"
    UPPER = "upper"

    @property
    def is_fielded(self) -> bool:
        return self in (Field.LOWER, Field.UPPER)


class BitDepth(str, Enum):
    UBYTE = "ubyte"
    USHORT = "ushort"
    HALF = "half"
    FLOAT = "float"


@dataclass(frozen=True)
class RenderArgs:
    """Arguments of one render call."""
    time: float
    render_scale: Tuple[float, float] = (1.0, 1.0)
    field: Field = Field.NONE
    render_window: Optional[Rect] = None
    draft: bool = False


@dataclass(frozen=True)
class ClipInfo:
    """A clip as seen by region queries: format and region of definition."""
    pixel_depth: BitDepth = BitDepth.FLOAT
    components: int = 4
    pixel_aspect_ratio: float = 1.0
    rod: Rect = Rect(0.0, 0.0, 1920.0, 1080.0)
    connected: bool = True
    name: str = "Source"


@dataclass(frozen=True)
class ImageInfo:
    """An image fetched from the host for a render.

    ``transform`` is an optional row-major 3x3 pixel-space matrix, source to
    destination, already attached to the image by an upstream effect.
    """
    pixel_depth: BitDepth = BitDepth.FLOAT
    components: int = 4
    render_scale: Tuple[float, float] = (1.0, 1.0)
    field: Field = Field.NONE
    pixel_aspect_ratio: float = 1.0
    transform: Optional[Sequence[float]] = None

    @property
    def transform_is_identity(self) -> bool:
        if self.transform is None:
            return True
        return bool(np.array_equal(np.asarray(self.transform, dtype=np.float64).reshape(3, 3), np.eye(3)))

    def transform_matrix(self) -> Optional[np.ndarray]:
        if self.transform is None:
            return None
        return np.asarray(self.transform, dtype=np.float64).reshape(3, 3).copy()
