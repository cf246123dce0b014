# fractal_terrain/errors.py

"""Exception types raised by the terrain synthesizer."""


class TerrainError(Exception):
    """Base class for every error raised by fractal_terrain."""


class InvalidParameterError(TerrainError, ValueError):
    """A generation parameter is outside its documented range."""


class BufferCapacityError(InvalidParameterError):
    """A GridBuffer was asked to hold more cells than it was allocated for."""


def require(condition: bool, message: str):
    """Raises InvalidParameterError with `message` unless `condition` holds."""
    if not condition:
        raise InvalidParameterError(message)
