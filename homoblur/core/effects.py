"""Transform effects: the per-time canonical inverse transform providers.

The engine only relies on :class:`TransformEffect`. Concrete effects compute
their matrix in canonical coordinates from their own parameters and the
directional blur ``amount`` (1 = full effect, 0 = identity).
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Union

import numpy as np

from . import matrix as mat
from .config import ParamsType, default_params
from .errors import ConfigError
from .params import ParamSet, TransformParams


class TransformEffect(ABC):
    """Base class of 2D homographic transform effects."""

    PARAM_DEFAULTS: Dict[str, Any] = {}

    def __init__(
        self,
        params: Union[ParamSet, Dict[str, Any], None] = None,
        params_type: ParamsType = ParamsType.MOTION_BLUR,
        masked: bool = False,
    ):
        self.params_type = ParamsType(params_type)
        self.masked = masked
        values = default_params(self.params_type, masked)
        values.update(self.PARAM_DEFAULTS)
        user = params if isinstance(params, ParamSet) else ParamSet.from_dict(params or {})
        self.params = ParamSet(values)
        for name, value in user.items():
            self.params.set(name, value)

    def snapshot(self, time: float) -> TransformParams:
        """Generic parameters at ``time``, read once."""
        return TransformParams.evaluate(self.params, time)

    def value(self, name: str, time: float) -> float:
        return float(self.params.value_at(name, time, self.PARAM_DEFAULTS.get(name, 0.0)))

    @abstractmethod
    def forward_transform_canonical(self, time: float, amount: float) -> Optional[np.ndarray]:
        """Source -> destination transform in canonical coordinates, or None."""

    @abstractmethod
    def is_identity(self, time: float) -> bool:
        """True when the effect leaves the image untouched at ``time``."""

    def get_inverse_transform_canonical(self, time: float, amount: float = 1.0,
                                        invert: bool = False) -> Optional[np.ndarray]:
        """Destination -> source transform in canonical coordinates.

        With ``invert`` the forward transform is returned instead. Returns None
        when no transform is defined at ``time`` (including a singular one).
        """
        forward = self.forward_transform_canonical(time, amount)
        if forward is None:
            return None
        if invert:
            return forward
        det = mat.determinant(forward)
        if det == 0.:
            return None
        return mat.inverse(forward, det)


class AffineTransform(TransformEffect):
    """Translate / rotate / scale / skew about a center point."""

    PARAM_DEFAULTS = {
        "translate_x": 0.0,
        "translate_y": 0.0,
        "rotate": 0.0,
        "scale_x": 1.0,
        "scale_y": 1.0,
        "skew_x": 0.0,
        "skew_y": 0.0,
        "center_x": 0.0,
        "center_y": 0.0,
    }

    def forward_transform_canonical(self, time: float, amount: float) -> Optional[np.ndarray]:
        tx = self.value("translate_x", time) * amount
        ty = self.value("translate_y", time) * amount
        rot = self.value("rotate", time) * amount
        sx = 1.0 + (self.value("scale_x", time) - 1.0) * amount
        sy = 1.0 + (self.value("scale_y", time) - 1.0) * amount
        kx = self.value("skew_x", time) * amount
        ky = self.value("skew_y", time) * amount
        cx = self.value("center_x", time)
        cy = self.value("center_y", time)
        return (mat.translation(cx + tx, cy + ty) @ mat.rotation(rot) @ mat.skewing(kx, ky)
                @ mat.scaling(sx, sy) @ mat.translation(-cx, -cy))

    def is_identity(self, time: float) -> bool:
        return (self.value("translate_x", time) == 0. and self.value("translate_y", time) == 0. and
                self.value("rotate", time) == 0. and
                self.value("scale_x", time) == 1. and self.value("scale_y", time) == 1. and
                self.value("skew_x", time) == 0. and self.value("skew_y", time) == 0.)


class Mirror(TransformEffect):
    """Flip (horizontal) and/or flop (vertical) about a center point.

    Has no generic transform parameters; ``amount`` is ignored.
    """

    PARAM_DEFAULTS = {"flip": False, "flop": False, "center_x": 0.0, "center_y": 0.0}

    def __init__(self, params=None, masked: bool = False):
        super().__init__(params, params_type=ParamsType.NONE, masked=masked)

    def forward_transform_canonical(self, time: float, amount: float) -> Optional[np.ndarray]:
        flip = bool(self.params.value_at("flip", time))
        flop = bool(self.params.value_at("flop", time))
        cx = self.value("center_x", time)
        cy = self.value("center_y", time)
        return (mat.translation(cx, cy) @ mat.scaling(-1.0 if flip else 1.0, -1.0 if flop else 1.0)
                @ mat.translation(-cx, -cy))

    def is_identity(self, time: float) -> bool:
        return not self.params.value_at("flip", time) and not self.params.value_at("flop", time)


def _corner_defaults() -> Dict[str, float]:
    defaults = {}
    for k, (x, y) in enumerate([(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)], start=1):
        for prefix in ("from", "to"):
            defaults[f"{prefix}{k}_x"] = x
            defaults[f"{prefix}{k}_y"] = y
    return defaults


class CornerPin(TransformEffect):
    """Perspective warp moving four "from" corners onto four "to" corners.

    Parameters are ``from{k}_x``, ``from{k}_y``, ``to{k}_x``, ``to{k}_y`` for
    k = 1..4; ``amount`` blends each "to" corner from its "from" position.
    """

    PARAM_DEFAULTS = _corner_defaults()

    def _quad(self, prefix: str, time: float) -> np.ndarray:
        return np.array([[self.value(f"{prefix}{k}_x", time), self.value(f"{prefix}{k}_y", time)]
                         for k in range(1, 5)], dtype=np.float64)

    def forward_transform_canonical(self, time: float, amount: float) -> Optional[np.ndarray]:
        src = self._quad("from", time)
        dst = src + (self._quad("to", time) - src) * amount
        return mat.homography_from_quads(src, dst)

    def is_identity(self, time: float) -> bool:
        return bool(np.array_equal(self._quad("from", time), self._quad("to", time)))


EFFECTS = {
    "affine": AffineTransform,
    "mirror": Mirror,
    "corner_pin": CornerPin,
}


def build_effect(kind: str, params: Optional[Dict[str, Any]] = None,
                 params_type: Union[ParamsType, str] = ParamsType.MOTION_BLUR,
                 masked: bool = False) -> TransformEffect:
    """Instantiate an effect by name (``affine``, ``mirror``, ``corner_pin``)."""
    try:
        cls = EFFECTS[kind]
    except KeyError:
        raise ConfigError(f"Unknown effect: {kind!r} (expected one of {sorted(EFFECTS)})") from None
    if cls is Mirror:
        return Mirror(params, masked=masked)
    return cls(params, params_type=params_type, masked=masked)
