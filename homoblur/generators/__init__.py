"""homoblur generators: scene evaluation to CSV."""

from .region_generator import FrameRange, RegionGenerator, RenderSpec

__all__ = ["FrameRange", "RegionGenerator", "RenderSpec"]
