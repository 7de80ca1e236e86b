"""homoblur codecs: transform package encoding."""

from .transform import TransformCodec

__all__ = ["TransformCodec"]
