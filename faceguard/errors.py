"""
errors.py
---------
Exceptions raised by the compositing engine.

All of them are local and synchronous; nothing here is retried internally.
"""


class FaceGuardError(Exception):
    """Base class for every engine error."""


class MissingFaceRegion(FaceGuardError):
    """The detector found no face, so there is nothing to protect."""

    USER_MESSAGE = "No face detected. Please use a front-facing photo."

    def __init__(self, message: str = USER_MESSAGE):
        super().__init__(message)


class DimensionMismatch(FaceGuardError, ValueError):
    """Two buffers that must share a size do not."""

    def __init__(self, expected, actual, what: str = "replacement"):
        self.expected = tuple(expected)
        self.actual = tuple(actual)
        super().__init__(
            f"{what} has size {self.actual[1]}x{self.actual[0]} but the original is "
            f"{self.expected[1]}x{self.expected[0]}; resample before compositing"
        )


class DegenerateGeometry(FaceGuardError, ValueError):
    """A radius, box or asset dimension is zero or negative."""
