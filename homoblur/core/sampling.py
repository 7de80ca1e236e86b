"""Temporal sampling of inverse transforms for motion and directional blur.

Transforms are recomputed on every call; nothing is cached across frames.
"""

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

import numpy as np

from . import matrix as mat
from .config import DIRECTIONAL_BLUR_COUNT, MOTION_BLUR_COUNT
from .shutter import ShutterOffset, shutter_range

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransformSample:
    """One pixel-space inverse transform, optionally weighted."""
    matrix: np.ndarray
    weight: Optional[float] = None


class TransformSampleSet:
    """Bounded, ordered sequence of transform samples.

    ``capacity`` is the allocation ceiling; ``len()`` is the used size.
    """

    def __init__(self, capacity: int = MOTION_BLUR_COUNT):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self._samples: List[TransformSample] = []

    def append(self, m: np.ndarray, weight: Optional[float] = None) -> None:
        if len(self._samples) >= self.capacity:
            raise OverflowError(f"TransformSampleSet is full ({self.capacity} samples)")
        self._samples.append(TransformSample(np.asarray(m, dtype=np.float64), weight))

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self) -> Iterator[TransformSample]:
        return iter(self._samples)

    def __getitem__(self, i: int) -> TransformSample:
        return self._samples[i]

    @property
    def matrices(self) -> np.ndarray:
        """[N, 3, 3] stacked matrices."""
        if not self._samples:
            return np.zeros((0, 3, 3), dtype=np.float64)
        return np.stack([s.matrix for s in self._samples])

    @property
    def weights(self) -> Optional[np.ndarray]:
        """[N] weights, or None when the samples are unweighted."""
        if not self._samples or self._samples[0].weight is None:
            return None
        return np.array([s.weight for s in self._samples], dtype=np.float64)

    def all_equal(self) -> bool:
        """True when every sample's 9 coefficients equal the first's exactly."""
        if not self._samples:
            return False
        first = self._samples[0].matrix
        return all(np.array_equal(s.matrix, first) for s in self._samples[1:])

    def collapse(self) -> bool:
        """Truncate to one sample when all samples are identical."""
        if len(self._samples) > 1 and self.all_equal():
            del self._samples[1:]
            return True
        return False

    def map(self, fn) -> None:
        """Replace every matrix ``m`` by ``fn(m)``, keeping weights."""
        self._samples = [TransformSample(fn(s.matrix), s.weight) for s in self._samples]

    def set_weights(self, weights: np.ndarray) -> None:
        if len(weights) != len(self._samples):
            raise ValueError(f"Expected {len(self._samples)} weights, got {len(weights)}")
        self._samples = [TransformSample(s.matrix, float(w)) for s, w in zip(self._samples, weights)]

    @classmethod
    def single(cls, m: np.ndarray) -> "TransformSampleSet":
        out = cls(capacity=1)
        out.append(m)
        return out


def _pixel_conversions(render_scale: Tuple[float, float], fielded: bool,
                       pixel_aspect_ratio: float) -> Tuple[np.ndarray, np.ndarray]:
    sx, sy = render_scale
    return (mat.canonical_to_pixel(pixel_aspect_ratio, sx, sy, fielded),
            mat.pixel_to_canonical(pixel_aspect_ratio, sx, sy, fielded))


def inverse_transforms(
    effect,
    time: float,
    render_scale: Tuple[float, float],
    fielded: bool,
    pixel_aspect_ratio: float,
    invert: bool,
    shutter: float,
    shutter_offset: ShutterOffset,
    shutter_custom_offset: float,
    capacity: int = MOTION_BLUR_COUNT,
) -> TransformSampleSet:
    """Sample the inverse transform over the shutter interval.

    Samples are linearly spaced from t_start to t_end inclusive. A time at
    which the effect has no transform contributes the identity, so one bad
    instant does not cancel the whole motion blur.

    Args:
        effect: provides ``get_inverse_transform_canonical(time, amount, invert)``
        time: frame time
        render_scale: (x, y) render scale
        fielded: render a single field
        pixel_aspect_ratio: source pixel aspect ratio
        invert: effect invert flag
        shutter: shutter duration
        shutter_offset: shutter placement
        shutter_custom_offset: start offset for ``ShutterOffset.CUSTOM``
        capacity: number of samples (at least 2)

    Returns:
        pixel-space inverse transforms, collapsed to one if all are equal
    """
    t_start, t_end = shutter_range(time, shutter, shutter_offset, shutter_custom_offset)
    c2p, p2c = _pixel_conversions(render_scale, fielded, pixel_aspect_ratio)
    samples = TransformSampleSet(capacity)
    failures = 0

    for i in range(capacity):
        # first sample is exactly t_start
        t = t_start if i == 0 else t_start + i * (t_end - t_start) / (capacity - 1)
        canonical = effect.get_inverse_transform_canonical(t, 1.0, invert)
        if canonical is None:
            failures += 1
            samples.append(mat.identity())
        else:
            samples.append(c2p @ canonical @ p2c)

    if failures:
        logger.debug("No transform at %d of %d shutter samples around t=%s; used identity",
                     failures, capacity, time)
    samples.collapse()
    return samples


def inverse_transforms_blur(
    effect,
    time: float,
    render_scale: Tuple[float, float],
    fielded: bool,
    pixel_aspect_ratio: float,
    invert: bool,
    amount_from: float,
    amount_to: float,
    capacity: int = DIRECTIONAL_BLUR_COUNT,
) -> TransformSampleSet:
    """Sample the inverse transform across the directional blur amount range.

    Step ``i`` uses the blend fraction ``a = 1 - (i + 1) / capacity``, so the
    set starts one step below ``amount_to`` and ends exactly at
    ``amount_from`` (Nuke-compatible spacing, not ``1 - i / (capacity - 1)``).

    Each sample is weighted with its raw amount; see :func:`fade_weights`.
    Amounts without a transform are dropped.
    """
    c2p, p2c = _pixel_conversions(render_scale, fielded, pixel_aspect_ratio)
    samples = TransformSampleSet(capacity)

    for i in range(capacity):
        a = 1.0 - (i + 1) / capacity
        amount = amount_from + (amount_to - amount_from) * a
        canonical = effect.get_inverse_transform_canonical(time, amount, invert)
        if canonical is None:
            logger.debug("No transform for directional blur amount %s at t=%s; skipped", amount, time)
            continue
        samples.append(c2p @ canonical @ p2c, weight=amount)

    samples.collapse()
    return samples


def fade_weights(samples: TransformSampleSet, amount_to: float, fading: float) -> None:
    """Turn raw directional blur amounts into fading weights, in place.

    ``fading <= 0`` gives every sample weight 1; otherwise the weight is
    ``(1 - |amount| / amount_to) ** fading``.
    """
    if len(samples) == 0:
        return
    if fading <= 0. or amount_to == 0.:
        samples.set_weights(np.ones(len(samples)))
        return
    amounts = samples.weights
    samples.set_weights(np.power(1.0 - np.abs(amounts) / amount_to, fading))


def single_inverse_transform(
    effect,
    time: float,
    render_scale: Tuple[float, float],
    fielded: bool,
    pixel_aspect_ratio: float,
    invert: bool,
) -> TransformSampleSet:
    """The inverse transform at the frame time, identity when unavailable."""
    canonical = effect.get_inverse_transform_canonical(time, 1.0, invert)
    if canonical is None:
        logger.warning("No transform defined at t=%s; rendering with identity", time)
        return TransformSampleSet.single(mat.identity())
    c2p, p2c = _pixel_conversions(render_scale, fielded, pixel_aspect_ratio)
    return TransformSampleSet.single(c2p @ canonical @ p2c)
