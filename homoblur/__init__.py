"""homoblur: homographic transforms with motion and directional blur.

Main components:
- core: Transform sampling and region propagation (TransformEngine, effects)
- generators: Per-frame scene evaluation to CSV
- codecs: Render package encoding/decoding
"""

from .core import (
    EngineConfig,
    FilterType,
    ParamsType,
    Rect,
    TransformEngine,
    TransformPackage,
    TransformSampleSet,
    AffineTransform,
    CornerPin,
    Mirror,
    TransformEffect,
    build_effect,
    ClipInfo,
    ImageInfo,
    RenderArgs,
    ShutterOffset,
    shutter_range,
    transform_region,
    inverse_transforms,
    inverse_transforms_blur,
    HomoblurError,
    HostImageError,
    ConfigError,
)
from .generators import RegionGenerator
from .codecs import TransformCodec

__version__ = "0.1.0"
__all__ = [
    # Core
    "EngineConfig",
    "FilterType",
    "ParamsType",
    "Rect",
    "TransformEngine",
    "TransformPackage",
    "TransformSampleSet",
    "AffineTransform",
    "CornerPin",
    "Mirror",
    "TransformEffect",
    "build_effect",
    "ClipInfo",
    "ImageInfo",
    "RenderArgs",
    "ShutterOffset",
    "shutter_range",
    "transform_region",
    "inverse_transforms",
    "inverse_transforms_blur",
    "HomoblurError",
    "HostImageError",
    "ConfigError",
    # Generators
    "RegionGenerator",
    # Codecs
    "TransformCodec",
]
