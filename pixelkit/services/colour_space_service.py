"""
Colour-space conversions (sRGB <-> HSL / HSV / CIE-LCh) and the per-pixel
adjustments expressed in those spaces.

Array functions work on float arrays shaped (..., 3) with sRGB in 0..255,
so the same math serves single colour triples and whole buffers.
"""
from __future__ import annotations

import logging
from typing import Sequence, Union

import numpy as np

from ..errors import InvalidParameterError
from ..models.colour import ColourSpace, Hsl, Hsv, Lch, Rgb
from ..models.pixel_buffer import PixelBuffer, clamp_u8

logger = logging.getLogger(__name__)

# ─── sRGB transfer function (IEC 61966-2-1) ──────────────────────────────
SRGB_DECODE_THRESHOLD = 0.04045
SRGB_ENCODE_THRESHOLD = 0.0031308
SRGB_LINEAR_SLOPE = 12.92
SRGB_GAMMA = 2.4
SRGB_OFFSET = 0.055

# ─── CIE-XYZ, D65 ────────────────────────────────────────────────────────
RGB_TO_XYZ = np.array([
    [0.4124564, 0.3575761, 0.1804375],
    [0.2126729, 0.7151522, 0.0721750],
    [0.0193339, 0.1191920, 0.9503041],
])
XYZ_TO_RGB = np.linalg.inv(RGB_TO_XYZ)
D65_WHITE = np.array([0.95047, 1.0, 1.08883])

# ─── CIE-Lab non-linearity ───────────────────────────────────────────────
LAB_DELTA = 6.0 / 29.0
LAB_EPSILON = LAB_DELTA ** 3              # below this f(t) is linear
LAB_LINEAR_SLOPE = 1.0 / (3.0 * LAB_DELTA ** 2)
LAB_LINEAR_OFFSET = 4.0 / 29.0

# Scale used when an additive [0, 1] level is applied to LCh coordinates.
LCH_LIGHTNESS_SCALE = 100.0
LCH_CHROMA_SCALE = 128.0

ColourLike = Union[Rgb, Sequence[int]]


# ============================================================================
# Array conversions
# ============================================================================

def _hue_from_rgb(r, g, b, mx, delta) -> np.ndarray:
    """Hue in degrees; tie-break R, then G, then B; 0 when achromatic."""
    safe = np.where(delta == 0, 1.0, delta)
    hue = np.where(
        mx == r,
        np.mod((g - b) / safe, 6.0),
        np.where(mx == g, (b - r) / safe + 2.0, (r - g) / safe + 4.0),
    ) * 60.0
    hue = np.where(delta == 0, 0.0, hue)
    return np.where(hue >= 360.0, hue - 360.0, hue)


def rgb_to_hsl(rgb: np.ndarray) -> np.ndarray:
    rgb = np.asarray(rgb, dtype=np.float64) / 255.0
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    mx = rgb.max(axis=-1)
    mn = rgb.min(axis=-1)
    delta = mx - mn
    lightness = (mx + mn) / 2.0

    denom = 1.0 - np.abs(2.0 * lightness - 1.0)
    saturation = np.where(delta == 0, 0.0, delta / np.where(denom == 0, 1.0, denom))
    saturation = np.clip(saturation, 0.0, 1.0)

    return np.stack([_hue_from_rgb(r, g, b, mx, delta), saturation, lightness], axis=-1)


def hsl_to_rgb(hsl: np.ndarray) -> np.ndarray:
    hsl = np.asarray(hsl, dtype=np.float64)
    h, s, l = hsl[..., 0], hsl[..., 1], hsl[..., 2]
    a = s * np.minimum(l, 1.0 - l)

    def channel(n):
        k = np.mod(n + h / 30.0, 12.0)
        return l - a * np.clip(np.minimum(k - 3.0, 9.0 - k), -1.0, 1.0)

    return np.stack([channel(0.0), channel(8.0), channel(4.0)], axis=-1) * 255.0


def rgb_to_hsv(rgb: np.ndarray) -> np.ndarray:
    rgb = np.asarray(rgb, dtype=np.float64) / 255.0
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    mx = rgb.max(axis=-1)
    delta = mx - rgb.min(axis=-1)
    saturation = np.where(mx == 0, 0.0, delta / np.where(mx == 0, 1.0, mx))
    return np.stack([_hue_from_rgb(r, g, b, mx, delta), saturation, mx], axis=-1)


def hsv_to_rgb(hsv: np.ndarray) -> np.ndarray:
    hsv = np.asarray(hsv, dtype=np.float64)
    h, s, v = hsv[..., 0], hsv[..., 1], hsv[..., 2]

    def channel(n):
        k = np.mod(n + h / 60.0, 6.0)
        return v - v * s * np.clip(np.minimum(k, 4.0 - k), 0.0, 1.0)

    return np.stack([channel(5.0), channel(3.0), channel(1.0)], axis=-1) * 255.0


def srgb_to_linear(values: np.ndarray) -> np.ndarray:
    """Gamma-decode sRGB in 0..1."""
    values = np.asarray(values, dtype=np.float64)
    return np.where(
        values <= SRGB_DECODE_THRESHOLD,
        values / SRGB_LINEAR_SLOPE,
        np.power((values + SRGB_OFFSET) / (1.0 + SRGB_OFFSET), SRGB_GAMMA),
    )


def linear_to_srgb(values: np.ndarray) -> np.ndarray:
    """Gamma-encode linear RGB; out-of-gamut values are clipped to 0..1 first."""
    values = np.clip(np.asarray(values, dtype=np.float64), 0.0, 1.0)
    return np.where(
        values <= SRGB_ENCODE_THRESHOLD,
        values * SRGB_LINEAR_SLOPE,
        (1.0 + SRGB_OFFSET) * np.power(values, 1.0 / SRGB_GAMMA) - SRGB_OFFSET,
    )


def _lab_f(t: np.ndarray) -> np.ndarray:
    return np.where(t > LAB_EPSILON, np.cbrt(t), t * LAB_LINEAR_SLOPE + LAB_LINEAR_OFFSET)


def _lab_f_inv(t: np.ndarray) -> np.ndarray:
    return np.where(t > LAB_DELTA, t ** 3, (t - LAB_LINEAR_OFFSET) / LAB_LINEAR_SLOPE)


def rgb_to_lab(rgb: np.ndarray) -> np.ndarray:
    linear = srgb_to_linear(np.asarray(rgb, dtype=np.float64) / 255.0)
    xyz = linear @ RGB_TO_XYZ.T
    f = _lab_f(xyz / D65_WHITE)
    fx, fy, fz = f[..., 0], f[..., 1], f[..., 2]
    return np.stack([116.0 * fy - 16.0, 500.0 * (fx - fy), 200.0 * (fy - fz)], axis=-1)


def lab_to_rgb(lab: np.ndarray) -> np.ndarray:
    lab = np.asarray(lab, dtype=np.float64)
    fy = (lab[..., 0] + 16.0) / 116.0
    fx = fy + lab[..., 1] / 500.0
    fz = fy - lab[..., 2] / 200.0
    xyz = _lab_f_inv(np.stack([fx, fy, fz], axis=-1)) * D65_WHITE
    linear = xyz @ XYZ_TO_RGB.T
    return linear_to_srgb(linear) * 255.0


def rgb_to_lch(rgb: np.ndarray) -> np.ndarray:
    lab = rgb_to_lab(rgb)
    a, b = lab[..., 1], lab[..., 2]
    hue = np.mod(np.degrees(np.arctan2(b, a)), 360.0)
    return np.stack([lab[..., 0], np.hypot(a, b), hue], axis=-1)


def lch_to_rgb(lch: np.ndarray) -> np.ndarray:
    lch = np.asarray(lch, dtype=np.float64)
    hue = np.radians(lch[..., 2])
    chroma = lch[..., 1]
    lab = np.stack([lch[..., 0], chroma * np.cos(hue), chroma * np.sin(hue)], axis=-1)
    return lab_to_rgb(lab)


_FORWARD = {
    ColourSpace.HSL: rgb_to_hsl,
    ColourSpace.HSV: rgb_to_hsv,
    ColourSpace.LCH: rgb_to_lch,
}
_INVERSE = {
    ColourSpace.HSL: hsl_to_rgb,
    ColourSpace.HSV: hsv_to_rgb,
    ColourSpace.LCH: lch_to_rgb,
}
# Index of (hue, saturation-like, lightness-like) coordinates per space.
_HUE, _SAT, _LIGHT = {
    ColourSpace.HSL: 0, ColourSpace.HSV: 0, ColourSpace.LCH: 2,
}, {
    ColourSpace.HSL: 1, ColourSpace.HSV: 1, ColourSpace.LCH: 1,
}, {
    ColourSpace.HSL: 2, ColourSpace.HSV: 2, ColourSpace.LCH: 0,
}


# ============================================================================
# Single-triple API
# ============================================================================

def _rgb_array(colour: ColourLike) -> np.ndarray:
    return np.array(Rgb.from_sequence(colour).as_tuple(), dtype=np.float64)


def _to_rgb_triple(values: np.ndarray) -> Rgb:
    r, g, b = clamp_u8(values).tolist()
    return Rgb(r, g, b)


def to_hsl(colour: ColourLike) -> Hsl:
    h, s, l = rgb_to_hsl(_rgb_array(colour)).tolist()
    return Hsl(h, s, l)


def to_hsv(colour: ColourLike) -> Hsv:
    h, s, v = rgb_to_hsv(_rgb_array(colour)).tolist()
    return Hsv(h, s, v)


def to_lch(colour: ColourLike) -> Lch:
    l, c, h = rgb_to_lch(_rgb_array(colour)).tolist()
    # cbrt/atan2 round-off can land a hair outside the nominal range
    return Lch(min(max(l, 0.0), 100.0), c, h)


def to_rgb(colour: Union[Hsl, Hsv, Lch]) -> Rgb:
    """Convert any cylindrical triple back to 8-bit sRGB (rounded, clamped)."""
    if isinstance(colour, Hsl):
        return _to_rgb_triple(hsl_to_rgb(np.array(colour.as_tuple())))
    if isinstance(colour, Hsv):
        return _to_rgb_triple(hsv_to_rgb(np.array(colour.as_tuple())))
    if isinstance(colour, Lch):
        return _to_rgb_triple(lch_to_rgb(np.array(colour.as_tuple())))
    raise InvalidParameterError(f"Expected an Hsl, Hsv or Lch triple, got {type(colour).__name__}")


# ============================================================================
# Buffer adjustments
# ============================================================================

def _check_level(level: float, name: str = "level") -> float:
    level = float(level)
    if not 0.0 <= level <= 1.0:
        raise InvalidParameterError(f"{name} must be in [0, 1], got {level}")
    return level


def _check_finite(value: float, name: str) -> float:
    value = float(value)
    if not np.isfinite(value):
        raise InvalidParameterError(f"{name} must be finite, got {value}")
    return value


class ColourSpaceService:
    """
    Per-pixel adjustments expressed in a cylindrical colour space.

    Every method converts the colour channels to the target space, applies
    a scalar transform, converts back and returns a **new** buffer whose
    alpha channel is the input's, untouched.
    """

    @staticmethod
    def _transform(buffer: PixelBuffer, space: ColourSpace, fn) -> PixelBuffer:
        coords = _FORWARD[space](buffer.rgb())
        fn(coords)
        return buffer.with_rgb(_INVERSE[space](coords))

    @staticmethod
    def _clamp_lightness(coords: np.ndarray, space: ColourSpace) -> None:
        idx = _LIGHT[space]
        upper = LCH_LIGHTNESS_SCALE if space is ColourSpace.LCH else 1.0
        np.clip(coords[..., idx], 0.0, upper, out=coords[..., idx])

    @staticmethod
    def _clamp_saturation(coords: np.ndarray, space: ColourSpace) -> None:
        idx = _SAT[space]
        # LCh chroma has no fixed upper bound; out-of-gamut results are clipped in RGB.
        upper = np.inf if space is ColourSpace.LCH else 1.0
        np.clip(coords[..., idx], 0.0, upper, out=coords[..., idx])

    def hue_rotate(self, buffer: PixelBuffer, degrees: float, space=ColourSpace.HSL) -> PixelBuffer:
        """Add ``degrees`` to every pixel's hue (wraps modulo 360)."""
        space = ColourSpace.resolve(space)
        degrees = _check_finite(degrees, "degrees")
        logger.debug(f"hue_rotate {degrees} deg in {space.value} on {buffer}")

        def rotate(coords):
            idx = _HUE[space]
            coords[..., idx] = np.mod(coords[..., idx] + degrees, 360.0)

        return self._transform(buffer, space, rotate)

    def saturate(self, buffer: PixelBuffer, level: float, space=ColourSpace.HSL) -> PixelBuffer:
        """Increase saturation (chroma in LCh) by ``level`` of its full range, clamped."""
        return self._shift_saturation(buffer, _check_level(level), ColourSpace.resolve(space))

    def desaturate(self, buffer: PixelBuffer, level: float, space=ColourSpace.HSL) -> PixelBuffer:
        return self._shift_saturation(buffer, -_check_level(level), ColourSpace.resolve(space))

    def _shift_saturation(self, buffer, amount, space):
        logger.debug(f"saturation shift {amount:+} in {space.value} on {buffer}")
        scale = LCH_CHROMA_SCALE if space is ColourSpace.LCH else 1.0

        def shift(coords):
            coords[..., _SAT[space]] += amount * scale
            self._clamp_saturation(coords, space)

        return self._transform(buffer, space, shift)

    def scale_saturation(self, buffer: PixelBuffer, factor: float, space=ColourSpace.HSL) -> PixelBuffer:
        """Multiply saturation (chroma in LCh) by ``factor`` >= 0, clamped."""
        space = ColourSpace.resolve(space)
        factor = _check_finite(factor, "factor")
        if factor < 0:
            raise InvalidParameterError(f"Saturation factor must be >= 0, got {factor}")

        def scale(coords):
            coords[..., _SAT[space]] *= factor
            self._clamp_saturation(coords, space)

        return self._transform(buffer, space, scale)

    def lighten(self, buffer: PixelBuffer, level: float, space=ColourSpace.HSL) -> PixelBuffer:
        """Raise lightness (value in HSV) by ``level`` of its full range, clamped."""
        return self._shift_lightness(buffer, _check_level(level), ColourSpace.resolve(space))

    def darken(self, buffer: PixelBuffer, level: float, space=ColourSpace.HSL) -> PixelBuffer:
        return self._shift_lightness(buffer, -_check_level(level), ColourSpace.resolve(space))

    def _shift_lightness(self, buffer, amount, space):
        logger.debug(f"lightness shift {amount:+} in {space.value} on {buffer}")
        scale = LCH_LIGHTNESS_SCALE if space is ColourSpace.LCH else 1.0

        def shift(coords):
            coords[..., _LIGHT[space]] += amount * scale
            self._clamp_lightness(coords, space)

        return self._transform(buffer, space, shift)

    @staticmethod
    def mix_with_colour(buffer: PixelBuffer, colour: ColourLike, opacity: float) -> PixelBuffer:
        """Linear mix of every pixel towards ``colour``: out = px*(1-o) + colour*o."""
        opacity = _check_level(opacity, "opacity")
        target = _rgb_array(colour)
        return buffer.with_rgb(buffer.rgb() * (1.0 - opacity) + target * opacity)

    @staticmethod
    def gamma_correction(buffer: PixelBuffer, red: float, green: float, blue: float) -> PixelBuffer:
        """
        Per-channel gamma: out = 255 * (in / 255) ** (1 / gamma).
        Gammas must be > 0.
        """
        gammas = np.array([_check_finite(g, "gamma") for g in (red, green, blue)])
        if np.any(gammas <= 0):
            raise InvalidParameterError(f"Gamma values must be > 0, got {tuple(gammas)}")
        return buffer.with_rgb(255.0 * np.power(buffer.rgb() / 255.0, 1.0 / gammas))
