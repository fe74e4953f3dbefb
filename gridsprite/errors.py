"""
errors.py

Fatal extraction errors. Anything recoverable (an axis falling back to the
template, a rejected flood-fill seed) is reported through debug dicts instead.
"""


class ExtractionError(Exception):
    """Base class for errors that make a grid image unusable."""


class GeometryDetectionFailure(ExtractionError):
    """The grid layout could not produce 36 cell rectangles, even after template fallback."""


class InvalidCellDimensions(ExtractionError):
    """A resolved cell rectangle or a derived content width/height is non-positive."""


class ComposeMismatch(ExtractionError):
    """Sprites handed to sheet recomposition do not share one cell size."""
