"""Exceptions raised by the terrain core."""


class TerrainError(Exception):
    """Base class for terrain simulation errors."""


class StaleSlopeError(TerrainError):
    """The slope field was read after altitude or water changed."""
