"""homoblur core: homographic transform sampling and region propagation."""

from .config import EngineConfig, FilterType, ParamsType, default_params
from .coords import INFINITE_MAX, INFINITE_MIN, Rect
from .effects import AffineTransform, CornerPin, Mirror, TransformEffect, build_effect
from .engine import HostTransform, TransformEngine, TransformPackage
from .errors import ConfigError, HomoblurError, HostImageError
from .grid import sample_weights, sampling_grids
from .host import BitDepth, ClipInfo, Field, ImageInfo, RenderArgs
from .params import Curve, ParamSet, TransformParams
from .regions import bounding_box_of, project_rect, transform_rect, transform_region
from .sampling import (
    TransformSample,
    TransformSampleSet,
    fade_weights,
    inverse_transforms,
    inverse_transforms_blur,
)
from .shutter import ShutterOffset, shutter_range

__all__ = [
    "EngineConfig",
    "FilterType",
    "ParamsType",
    "default_params",
    "INFINITE_MAX",
    "INFINITE_MIN",
    "Rect",
    "AffineTransform",
    "CornerPin",
    "Mirror",
    "TransformEffect",
    "build_effect",
    "HostTransform",
    "TransformEngine",
    "TransformPackage",
    "ConfigError",
    "HomoblurError",
    "HostImageError",
    "sample_weights",
    "sampling_grids",
    "BitDepth",
    "ClipInfo",
    "Field",
    "ImageInfo",
    "RenderArgs",
    "Curve",
    "ParamSet",
    "TransformParams",
    "bounding_box_of",
    "project_rect",
    "transform_rect",
    "transform_region",
    "TransformSample",
    "TransformSampleSet",
    "fade_weights",
    "inverse_transforms",
    "inverse_transforms_blur",
    "ShutterOffset",
    "shutter_range",
]
