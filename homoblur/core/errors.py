"""Exceptions raised by the transform engine."""


class HomoblurError(Exception):
    """Base class for homoblur errors."""


class HostImageError(HomoblurError):
    """The host handed over an image that does not match the render arguments."""


class ConfigError(HomoblurError, ValueError):
    """Invalid engine, effect or scene configuration."""
