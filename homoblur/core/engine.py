"""TransformEngine: render, region and identity queries of a transform effect."""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

import numpy as np

from . import matrix as mat
from .config import EngineConfig, FilterType
from .coords import INFINITE_MAX, INFINITE_MIN, Rect, to_pixel_enclosing
from .effects import TransformEffect
from .errors import HostImageError
from .filters import filter_expand_rod, filter_expand_roi
from .host import ClipInfo, Field, ImageInfo, RenderArgs
from .params import TransformParams
from .regions import transform_region
from .sampling import (
    TransformSampleSet,
    fade_weights,
    inverse_transforms,
    inverse_transforms_blur,
    single_inverse_transform,
)

logger = logging.getLogger(__name__)


@dataclass
class TransformPackage:
    """Everything the resampler needs to render one frame or tile."""
    samples: TransformSampleSet
    motion_blur: float = 0.0
    black_outside: bool = False
    mix: float = 1.0
    filter: FilterType = FilterType.CUBIC
    clamp: bool = False
    do_masking: bool = False
    mask_invert: bool = False
    render_window: Optional[Rect] = None
    params: Dict = field(default_factory=dict)

    @property
    def weights(self) -> Optional[np.ndarray]:
        return self.samples.weights


@dataclass(frozen=True)
class HostTransform:
    """Forward pixel-space transform the host may concatenate downstream."""
    clip: str
    matrix: np.ndarray

    @property
    def coefficients(self) -> Tuple[float, ...]:
        return mat.to_coefficients(self.matrix)


def _mask_active(p: TransformParams, masked: bool, mask_clip: Optional[ClipInfo]) -> bool:
    return (masked and (p.mask_apply is None or p.mask_apply) and
            mask_clip is not None and mask_clip.connected)


class TransformEngine:
    """Drives a :class:`TransformEffect` for render and region queries.

    Every method takes one parameter snapshot at the start of the call and is
    otherwise stateless, so calls for different tiles or frames may run
    concurrently.
    """

    def __init__(self, effect: TransformEffect, config: Optional[EngineConfig] = None):
        self.effect = effect
        self.config = config or EngineConfig()

    def render(
        self,
        args: RenderArgs,
        dst: Optional[ImageInfo],
        dst_clip: ClipInfo,
        src: Optional[ImageInfo] = None,
        mask_clip: Optional[ClipInfo] = None,
    ) -> TransformPackage:
        """Build the transform package for one render call.

        Args:
            args: render arguments
            dst: destination image handed over by the host
            dst_clip: output clip the image should match
            src: fetched source image, None if the source is not connected
            mask_clip: mask clip of a masked effect

        Returns:
            TransformPackage

        Raises:
            HostImageError: dst (or src) does not match the render request
        """
        if dst is None:
            raise HostImageError("Host did not provide a destination image")
        if dst.pixel_depth != dst_clip.pixel_depth or dst.components != dst_clip.components:
            raise HostImageError("Host gave image with wrong depth or components")
        if (tuple(dst.render_scale) != tuple(args.render_scale) or
                (dst.field != Field.NONE and dst.field != args.field)):
            raise HostImageError("Host gave image with wrong scale or field properties")

        time = args.time
        p = self.effect.snapshot(time)
        motion_blur = 0.0
        black_outside = False
        mix = 1.0
        directional_blur = p.directional_blur is None
        amount_from, amount_to = p.amount_range()

        if src is None:
            samples = TransformSampleSet.single(mat.identity())
        else:
            if src.pixel_depth != dst.pixel_depth or src.components != dst.components:
                raise HostImageError("Host gave source and destination images of different depth or components")

            invert = bool(p.invert)
            black_outside = bool(p.black_outside)
            if self.effect.masked and p.mix is not None:
                mix = p.mix
            if p.motion_blur is not None:
                motion_blur = p.motion_blur
            if p.directional_blur is not None:
                directional_blur = p.directional_blur
            shutter, shutter_offset, shutter_custom_offset = p.shutter_settings()
            if directional_blur:
                shutter = 0.0
            fielded = args.field.is_fielded
            par = src.pixel_aspect_ratio

            if shutter != 0. and motion_blur != 0.:
                samples = inverse_transforms(
                    self.effect, time, args.render_scale, fielded, par, invert,
                    shutter, shutter_offset, shutter_custom_offset,
                    capacity=self.config.motion_blur_count,
                )
            elif directional_blur:
                samples = inverse_transforms_blur(
                    self.effect, time, args.render_scale, fielded, par, invert,
                    amount_from, amount_to,
                    capacity=self.config.directional_blur_count,
                )
                fade_weights(samples, amount_to, 0.0 if p.fading is None else p.fading)
                if len(samples) == 0:
                    logger.warning("No directional blur sample available at t=%s; rendering with identity", time)
                    samples = TransformSampleSet.single(mat.identity())
            else:
                samples = single_inverse_transform(
                    self.effect, time, args.render_scale, fielded, par, invert)

            if len(samples) == 1:
                motion_blur = 0.0

            if not src.transform_is_identity:
                src_transform = src.transform_matrix()
                det = mat.determinant(src_transform)
                if det != 0.:
                    src_inverse = mat.inverse(src_transform, det)
                    samples.map(lambda m: src_inverse @ m)
                else:
                    logger.debug("Singular transform attached to the source image; not composed")

        if args.draft:
            filter_type = FilterType.IMPULSE
        else:
            filter_type = p.filter if p.filter is not None else FilterType.CUBIC
        do_masking = _mask_active(p, self.effect.masked, mask_clip)

        return TransformPackage(
            samples=samples,
            motion_blur=motion_blur,
            black_outside=black_outside,
            mix=mix,
            filter=filter_type,
            clamp=bool(p.clamp),
            do_masking=do_masking,
            mask_invert=do_masking and bool(p.mask_invert),
            render_window=args.render_window,
            params=p.to_dict(),
        )

    def _region(self, rect: Rect, time: float, p: TransformParams, invert: bool,
                is_identity: bool) -> Rect:
        motion_blur = 1.0 if p.motion_blur is None else p.motion_blur
        amount_from, amount_to = p.amount_range()
        directional_blur = True if p.directional_blur is None else p.directional_blur
        shutter, shutter_offset, shutter_custom_offset = p.shutter_settings()
        return transform_region(
            rect, time, self.effect, invert, motion_blur, directional_blur,
            amount_from, amount_to, shutter, shutter_offset, shutter_custom_offset,
            is_identity, directional_blur_count=self.config.directional_blur_count,
        )

    def region_of_definition(
        self,
        time: float,
        render_scale: Tuple[float, float],
        src_clip: Optional[ClipInfo],
        dst_clip: Optional[ClipInfo] = None,
        mask_clip: Optional[ClipInfo] = None,
    ) -> Optional[Rect]:
        """Output RoD in canonical coordinates, None without a source clip."""
        if src_clip is None:
            return None
        src_rod = src_clip.rod
        if src_rod.is_infinite():
            return Rect.infinite()

        p = self.effect.snapshot(time)
        mix = 1.0
        do_masking = _mask_active(p, self.effect.masked, mask_clip)
        if do_masking and p.mix is not None:
            mix = p.mix
            if mix == 0.:
                return src_rod

        # the RoD follows the forward mapping of the source extent
        invert = not bool(p.invert)
        identity = self.effect.is_identity(time)
        rod = self._region(src_rod, time, p, invert, identity)

        # an identity RoD must stay equal to the source RoD
        if not identity:
            par = dst_clip.pixel_aspect_ratio if dst_clip is not None else src_clip.pixel_aspect_ratio
            rod = filter_expand_rod(rod, par, render_scale, bool(p.black_outside),
                                   self.config.project_offset, self.config.project_size)

        if do_masking:
            rod = rod.union(src_rod)
        return rod

    def regions_of_interest(
        self,
        time: float,
        roi: Rect,
        render_scale: Tuple[float, float],
        src_clip: Optional[ClipInfo],
        mask_clip: Optional[ClipInfo] = None,
    ) -> Dict[str, Rect]:
        """Source region needed to render ``roi``, keyed by clip name."""
        if src_clip is None:
            return {}
        p = self.effect.snapshot(time)
        mix = 1.0
        do_masking = _mask_active(p, self.effect.masked, mask_clip)
        if do_masking:
            mix = 1.0 if p.mix is None else p.mix
            if mix == 0.:
                return {src_clip.name: roi}

        src_roi = self._region(roi, time, p, bool(p.invert), self.effect.is_identity(time))
        filter_type = p.filter if p.filter is not None else FilterType.CUBIC
        src_roi = filter_expand_roi(roi, src_roi, src_clip.pixel_aspect_ratio, render_scale,
                                    filter_type, do_masking, mix)

        if src_roi.is_infinite():
            # a RoI cannot be infinite: fall back to the project extent
            (ox, oy), (w, h) = self.config.project_offset, self.config.project_size
            src_roi = Rect(
                ox if src_roi.x1 <= INFINITE_MIN else src_roi.x1,
                oy if src_roi.y1 <= INFINITE_MIN else src_roi.y1,
                ox + w if src_roi.x2 >= INFINITE_MAX else src_roi.x2,
                oy + h if src_roi.y2 >= INFINITE_MAX else src_roi.y2,
            )

        if self.effect.masked and mix != 1.:
            src_roi = src_roi.union(roi)
        return {src_clip.name: src_roi}

    def is_identity(
        self,
        time: float,
        render_scale: Tuple[float, float] = (1.0, 1.0),
        render_window: Optional[Rect] = None,
        mask_clip: Optional[ClipInfo] = None,
    ) -> bool:
        """True when rendering would just copy the source at ``time``."""
        p = self.effect.snapshot(time)

        if p.amount is not None and p.amount == 0.:
            return True

        # with motion blur the transform is assumed not to be identity
        if p.motion_blur is not None:
            motion_blur = p.motion_blur
        else:
            motion_blur = 1.0 if p.invert is not None else 0.0
        shutter = 0.0 if p.shutter is None else p.shutter
        if shutter != 0. and motion_blur != 0.:
            return False

        # values above 1 would be clamped
        if p.clamp:
            return False

        if self.effect.is_identity(time):
            return True

        if self.effect.masked:
            mix = 1.0 if p.mix is None else p.mix
            if mix == 0.:
                return True
            if _mask_active(p, True, mask_clip) and not p.mask_invert and render_window is not None:
                mask_rod = to_pixel_enclosing(mask_clip.rod, render_scale, mask_clip.pixel_aspect_ratio)
                if not render_window.intersects(mask_rod):
                    return True
        return False

    def get_transform(
        self,
        time: float,
        render_scale: Tuple[float, float] = (1.0, 1.0),
        field: Field = Field.NONE,
        src_clip: Optional[ClipInfo] = None,
    ) -> Optional[HostTransform]:
        """Forward pixel-space transform for host-side concatenation.

        Returns None when the effect is masked or its transform is undefined
        or singular at ``time``; the host then renders as usual.
        """
        if self.effect.masked:
            return None
        p = self.effect.snapshot(time)
        inv = self.effect.get_inverse_transform_canonical(time, 1.0, bool(p.invert))
        if inv is None:
            return None
        det = mat.determinant(inv)
        if det == 0.:
            return None
        par = src_clip.pixel_aspect_ratio if src_clip is not None else 1.0
        forward = mat.to_pixel_space(mat.inverse(inv, det), par, render_scale, field.is_fielded)
        return HostTransform(clip=src_clip.name if src_clip is not None else "Source", matrix=forward)
