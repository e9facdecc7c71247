"""
Error taxonomy shared by every layer.

Each error is also a ValueError so callers that already guard with
``except ValueError`` keep working.
"""


class PixelKitError(Exception):
    """Base class for all pixelkit failures."""


class MalformedInputError(PixelKitError, ValueError):
    """Externally supplied bytes could not be decoded (corrupt / unsupported)."""


class DimensionMismatchError(PixelKitError, ValueError):
    """A two-buffer operation received buffers of unequal width/height."""

    def __init__(self, first: tuple[int, int], second: tuple[int, int]):
        self.first = first
        self.second = second
        super().__init__(
            f"Buffers must have identical dimensions, got "
            f"{first[0]}x{first[1]} and {second[0]}x{second[1]}"
        )


class InvalidParameterError(PixelKitError, ValueError):
    """Structurally invalid argument (even kernel, out-of-range value, bad vector)."""
