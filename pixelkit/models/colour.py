from __future__ import annotations
import math
import numbers
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Sequence, Union

from ..errors import InvalidParameterError


class Channel(IntEnum):
    """Selector for one byte of an RGBA pixel (value = index in the pixel)."""

    RED = 0
    GREEN = 1
    BLUE = 2
    ALPHA = 3

    @classmethod
    def resolve(cls, value: Union["Channel", int, str]) -> "Channel":
        """Accept an enum member, its index or its (case-insensitive) name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise InvalidParameterError(f"Unknown channel: {value!r}") from None
        if isinstance(value, bool) or not isinstance(value, numbers.Integral):
            raise InvalidParameterError(f"Channel must be a Channel, index or name, got {value!r}")
        try:
            return cls(int(value))
        except ValueError:
            raise InvalidParameterError(f"Channel index out of range: {value}") from None


class ColourSpace(Enum):
    """Cylindrical spaces in which per-pixel adjustments can be expressed."""

    HSL = "hsl"
    HSV = "hsv"
    LCH = "lch"

    @classmethod
    def resolve(cls, value: Union["ColourSpace", str]) -> "ColourSpace":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidParameterError(f"Unknown colour space: {value!r}") from None


class BlendMode(Enum):
    """
    Two-buffer blend operators.

    ``OVER`` is the pure compositing mode: top colour placed over the
    bottom weighted by the top alpha.
    """

    MULTIPLY = "multiply"
    SCREEN = "screen"
    OVERLAY = "overlay"
    DIFFERENCE = "difference"
    DARKEN = "darken"
    LIGHTEN = "lighten"
    ADD = "add"
    EXCLUSION = "exclusion"
    SOFT_LIGHT = "soft_light"
    HARD_LIGHT = "hard_light"
    DODGE = "dodge"
    BURN = "burn"
    OVER = "over"

    @classmethod
    def resolve(cls, value: Union["BlendMode", str]) -> "BlendMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower().replace("-", "_"))
        except ValueError:
            raise InvalidParameterError(f"Unknown blend mode: {value!r}") from None


class Comparison(Enum):
    """How ``remove_channel`` compares a channel value with its threshold."""

    BELOW = "below"
    ABOVE = "above"

    @classmethod
    def resolve(cls, value: Union["Comparison", str]) -> "Comparison":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidParameterError(f"Unknown comparison mode: {value!r}") from None


# ─── Colour triples ──────────────────────────────────────────────────────

def _unpack3(values: Sequence, kind: str) -> tuple:
    try:
        length = len(values)
    except TypeError:
        raise InvalidParameterError(f"{kind} expects a sequence of 3 values, got {values!r}") from None
    if length != 3:
        raise InvalidParameterError(f"{kind} expects exactly 3 values, got {length}")
    return tuple(values)


def _finite(value, name: str) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise InvalidParameterError(f"{name} must be a number, got {value!r}") from None
    if not math.isfinite(value):
        raise InvalidParameterError(f"{name} must be finite, got {value}")
    return value


@dataclass(frozen=True)
class Rgb:
    """8-bit sRGB triple."""
    r: int
    g: int
    b: int

    def __post_init__(self):
        for name in ("r", "g", "b"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Integral):
                raise InvalidParameterError(f"Rgb.{name} must be an integer, got {value!r}")
            if not 0 <= value <= 255:
                raise InvalidParameterError(f"Rgb.{name} must be in [0, 255], got {value}")
            object.__setattr__(self, name, int(value))

    @classmethod
    def from_sequence(cls, values: Sequence) -> Rgb:
        if isinstance(values, cls):
            return values
        return cls(*_unpack3(values, "Rgb"))

    def as_tuple(self) -> tuple[int, int, int]:
        return self.r, self.g, self.b


@dataclass(frozen=True)
class Hsl:
    """Hue in degrees [0, 360); saturation / lightness in [0, 1]."""
    h: float
    s: float
    l: float

    def __post_init__(self):
        h = _finite(self.h, "Hsl.h")
        if not 0.0 <= h < 360.0:
            raise InvalidParameterError(f"Hsl.h must be in [0, 360), got {h}")
        for name in ("s", "l"):
            value = _finite(getattr(self, name), f"Hsl.{name}")
            if not 0.0 <= value <= 1.0:
                raise InvalidParameterError(f"Hsl.{name} must be in [0, 1], got {value}")
            object.__setattr__(self, name, value)
        object.__setattr__(self, "h", h)

    @classmethod
    def from_sequence(cls, values: Sequence) -> Hsl:
        return cls(*_unpack3(values, "Hsl"))

    def as_tuple(self) -> tuple[float, float, float]:
        return self.h, self.s, self.l


@dataclass(frozen=True)
class Hsv:
    """Hue in degrees [0, 360); saturation / value in [0, 1]."""
    h: float
    s: float
    v: float

    def __post_init__(self):
        h = _finite(self.h, "Hsv.h")
        if not 0.0 <= h < 360.0:
            raise InvalidParameterError(f"Hsv.h must be in [0, 360), got {h}")
        for name in ("s", "v"):
            value = _finite(getattr(self, name), f"Hsv.{name}")
            if not 0.0 <= value <= 1.0:
                raise InvalidParameterError(f"Hsv.{name} must be in [0, 1], got {value}")
            object.__setattr__(self, name, value)
        object.__setattr__(self, "h", h)

    @classmethod
    def from_sequence(cls, values: Sequence) -> Hsv:
        return cls(*_unpack3(values, "Hsv"))

    def as_tuple(self) -> tuple[float, float, float]:
        return self.h, self.s, self.v


@dataclass(frozen=True)
class Lch:
    """
    CIE-LCh: lightness [0, 100], chroma >= 0, hue in degrees.
    Any finite hue is accepted and normalised into [0, 360).
    """
    l: float
    c: float
    h: float

    def __post_init__(self):
        l = _finite(self.l, "Lch.l")
        c = _finite(self.c, "Lch.c")
        h = _finite(self.h, "Lch.h")
        if not 0.0 <= l <= 100.0:
            raise InvalidParameterError(f"Lch.l must be in [0, 100], got {l}")
        if c < 0.0:
            raise InvalidParameterError(f"Lch.c must be >= 0, got {c}")
        object.__setattr__(self, "l", l)
        object.__setattr__(self, "c", c)
        h %= 360.0
        object.__setattr__(self, "h", 0.0 if h >= 360.0 else h)

    @classmethod
    def from_sequence(cls, values: Sequence) -> Lch:
        return cls(*_unpack3(values, "Lch"))

    def as_tuple(self) -> tuple[float, float, float]:
        return self.l, self.c, self.h
