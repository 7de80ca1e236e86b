"""Engine configuration and default parameter tables."""

from dataclasses import dataclass, asdict
from enum import Enum, IntEnum
from typing import Any, Dict, Tuple, Union

from .errors import ConfigError
from .shutter import ShutterOffset

# Upper bound on the number of transforms used for shutter motion blur.
MOTION_BLUR_COUNT = 1000
# Blend steps used for directional blur.
DIRECTIONAL_BLUR_COUNT = 8


class FilterType(IntEnum):
    """Resampling filter requested from the resampler."""
    IMPULSE = 0
    BILINEAR = 1
    CUBIC = 2
    KEYS = 3
    SIMON = 4
    RIFMAN = 5
    MITCHELL = 6
    PARZEN = 7
    NOTCH = 8

    @classmethod
    def parse(cls, value: Union[int, str, "FilterType"]) -> "FilterType":
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise ConfigError(f"Unknown filter: {value!r}") from None
        return cls(int(value))


class ParamsType(str, Enum):
    """Which blur controls a transform effect exposes."""
    NONE = "none"                # no blur parameters (e.g. mirror)
    MOTION_BLUR = "motion_blur"  # shutter motion blur + directional blur toggle
    DIR_BLUR = "dir_blur"        # always directional: amount / centered / fading


@dataclass
class EngineConfig:
    """Configuration of a :class:`~homoblur.core.engine.TransformEngine`.

    project_size / project_offset bound regions of interest that would
    otherwise be infinite.
    """
    motion_blur_count: int = MOTION_BLUR_COUNT
    directional_blur_count: int = DIRECTIONAL_BLUR_COUNT
    project_size: Tuple[float, float] = (1920.0, 1080.0)
    project_offset: Tuple[float, float] = (0.0, 0.0)

    def __post_init__(self):
        if self.motion_blur_count < 2:
            raise ConfigError(f"motion_blur_count must be >= 2, got {self.motion_blur_count}")
        if self.directional_blur_count < 1:
            raise ConfigError(f"directional_blur_count must be >= 1, got {self.directional_blur_count}")
        self.project_size = tuple(float(v) for v in self.project_size)
        self.project_offset = tuple(float(v) for v in self.project_offset)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "EngineConfig":
        valid_keys = set(cls.__dataclass_fields__)
        unknown = set(d) - valid_keys
        if unknown:
            raise ConfigError(f"Unknown engine options: {sorted(unknown)}")
        return cls(**d)


def default_params(params_type: ParamsType = ParamsType.MOTION_BLUR,
                   masked: bool = False) -> Dict[str, Any]:
    """Default parameter values of a generic transform effect.

    Names left out of the table are treated as absent by the engine.
    """
    params_type = ParamsType(params_type)
    if params_type == ParamsType.NONE:
        params: Dict[str, Any] = {}
    else:
        params = {
            "invert": False,
            "filter": FilterType.CUBIC,
            "clamp": False,
            "black_outside": True,
        }
    if params_type == ParamsType.MOTION_BLUR:
        params.update({
            "motion_blur": 0.0,
            "directional_blur": False,
            "shutter": 0.5,
            "shutter_offset": ShutterOffset.START,
            "shutter_custom_offset": 0.0,
        })
    elif params_type == ParamsType.DIR_BLUR:
        params.update({
            "motion_blur": 1.0,
            "amount": 1.0,
            "centered": False,
            "fading": 0.0,
        })
    if masked and params_type != ParamsType.NONE:
        params.update({"mix": 1.0, "mask_invert": False})
    return params
