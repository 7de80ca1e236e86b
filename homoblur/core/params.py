"""Parameter storage and per-call parameter snapshots.

Effect parameters are constants or keyframed :class:`Curve` values held in a
:class:`ParamSet`. The engine reads them once per call into an immutable
:class:`TransformParams` snapshot; a ``None`` field means the effect does not
define that parameter.
"""

import bisect
from dataclasses import dataclass, fields
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .config import FilterType
from .errors import ConfigError
from .shutter import ShutterOffset


class Curve:
    """Piecewise-linear animation curve, held constant outside its keys."""

    def __init__(self, keys: Iterable[Sequence[float]]):
        pts = sorted((float(t), float(v)) for t, v in keys)
        if not pts:
            raise ConfigError("Curve needs at least one key")
        self.times: List[float] = [t for t, _ in pts]
        self.values: List[float] = [v for _, v in pts]

    def value_at(self, time: float) -> float:
        if time <= self.times[0]:
            return self.values[0]
        if time >= self.times[-1]:
            return self.values[-1]
        i = bisect.bisect_right(self.times, time)
        t0, t1 = self.times[i - 1], self.times[i]
        v0, v1 = self.values[i - 1], self.values[i]
        return v0 + (v1 - v0) * (time - t0) / (t1 - t0)

    def to_dict(self) -> Dict[str, Any]:
        return {"keys": [[t, v] for t, v in zip(self.times, self.values)]}

    def __repr__(self) -> str:
        return f"Curve({list(zip(self.times, self.values))!r})"


class ParamSet:
    """Named effect parameters: constants or curves."""

    def __init__(self, values: Optional[Dict[str, Any]] = None):
        self._values: Dict[str, Any] = dict(values or {})

    def __contains__(self, name: str) -> bool:
        return name in self._values

    def __iter__(self):
        return iter(self._values)

    def names(self) -> List[str]:
        return list(self._values)

    def items(self):
        return self._values.items()

    def set(self, name: str, value: Any) -> None:
        self._values[name] = value

    def value_at(self, name: str, time: float, default: Any = None) -> Any:
        if name not in self._values:
            return default
        value = self._values[name]
        if isinstance(value, Curve):
            return value.value_at(time)
        return value

    def to_dict(self) -> Dict[str, Any]:
        out = {}
        for k, v in self._values.items():
            if isinstance(v, Curve):
                out[k] = v.to_dict()
            elif isinstance(v, (FilterType, ShutterOffset)):
                out[k] = v.name.lower()
            else:
                out[k] = v
        return out

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ParamSet":
        """Build from plain data, e.g. a YAML mapping.

        A value is a constant, a ``{"keys": [[t, v], ...]}`` mapping or a list
        of ``[t, v]`` pairs.
        """
        values = {}
        for name, raw in (d or {}).items():
            if isinstance(raw, dict):
                if "keys" not in raw:
                    raise ConfigError(f"Parameter {name!r}: mapping values need 'keys'")
                values[name] = Curve(raw["keys"])
            elif isinstance(raw, list) and raw and all(isinstance(k, (list, tuple)) for k in raw):
                values[name] = Curve(raw)
            else:
                values[name] = raw
        return cls(values)


def _opt_bool(params: ParamSet, name: str, time: float) -> Optional[bool]:
    v = params.value_at(name, time)
    return None if v is None else bool(v)


def _opt_float(params: ParamSet, name: str, time: float) -> Optional[float]:
    v = params.value_at(name, time)
    return None if v is None else float(v)


@dataclass(frozen=True)
class TransformParams:
    """Snapshot of the generic transform parameters at one time."""
    invert: Optional[bool] = None
    filter: Optional[FilterType] = None
    clamp: Optional[bool] = None
    black_outside: Optional[bool] = None
    motion_blur: Optional[float] = None
    shutter: Optional[float] = None
    shutter_offset: Optional[ShutterOffset] = None
    shutter_custom_offset: Optional[float] = None
    directional_blur: Optional[bool] = None
    amount: Optional[float] = None
    centered: Optional[bool] = None
    fading: Optional[float] = None
    mix: Optional[float] = None
    mask_apply: Optional[bool] = None
    mask_invert: Optional[bool] = None

    @classmethod
    def evaluate(cls, params: ParamSet, time: float) -> "TransformParams":
        """Read every generic parameter once at ``time``."""
        filt = params.value_at("filter", time)
        offset = params.value_at("shutter_offset", time)
        try:
            return cls(
                invert=_opt_bool(params, "invert", time),
                filter=None if filt is None else FilterType.parse(filt),
                clamp=_opt_bool(params, "clamp", time),
                black_outside=_opt_bool(params, "black_outside", time),
                motion_blur=_opt_float(params, "motion_blur", time),
                shutter=_opt_float(params, "shutter", time),
                shutter_offset=None if offset is None else ShutterOffset.parse(offset),
                shutter_custom_offset=_opt_float(params, "shutter_custom_offset", time),
                directional_blur=_opt_bool(params, "directional_blur", time),
                amount=_opt_float(params, "amount", time),
                centered=_opt_bool(params, "centered", time),
                fading=_opt_float(params, "fading", time),
                mix=_opt_float(params, "mix", time),
                mask_apply=_opt_bool(params, "mask_apply", time),
                mask_invert=_opt_bool(params, "mask_invert", time),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid transform parameter at t={time}: {e}") from e

    def amount_range(self) -> Tuple[float, float]:
        """Directional blur range ``(amount_from, amount_to)``."""
        amount_to = 1.0 if self.amount is None else self.amount
        amount_from = -amount_to if self.centered else 0.0
        return amount_from, amount_to

    def shutter_settings(self) -> Tuple[float, ShutterOffset, float]:
        """``(shutter, offset, custom_offset)``; zero shutter when undefined."""
        return (
            0.0 if self.shutter is None else self.shutter,
            ShutterOffset.CENTERED if self.shutter_offset is None else self.shutter_offset,
            0.0 if self.shutter_custom_offset is None else self.shutter_custom_offset,
        )

    def to_dict(self) -> Dict[str, Any]:
        out = {}
        for f in fields(self):
            v = getattr(self, f.name)
            if v is None:
                continue
            out[f.name] = v.name.lower() if isinstance(v, (FilterType, ShutterOffset)) else v
        return out
