import itertools

import numpy as np
import pytest

from pixelkit.errors import InvalidParameterError
from pixelkit.models.colour import ColourSpace, Hsl, Hsv, Lch, Rgb
from pixelkit.models.pixel_buffer import PixelBuffer, clamp_u8
from pixelkit.services import colour_space_service as css
from pixelkit.services.colour_space_service import ColourSpaceService


@pytest.fixture
def service():
    return ColourSpaceService()


@pytest.fixture(scope="module")
def rgb_grid():
    """Every combination of 0, 17, 34, ..., 255 per channel (16³ triples)."""
    levels = np.arange(0, 256, 17)
    return np.array(list(itertools.product(levels, levels, levels)), dtype=np.float64)


# ─── Single triples ──────────────────────────────────────────────────────

@pytest.mark.parametrize("rgb, expected", [
    ((255, 0, 0), (0.0, 1.0, 0.5)),
    ((0, 255, 0), (120.0, 1.0, 0.5)),
    ((0, 0, 255), (240.0, 1.0, 0.5)),
    ((255, 255, 255), (0.0, 0.0, 1.0)),
    ((0, 0, 0), (0.0, 0.0, 0.0)),
])
def test_to_hsl_primaries(rgb, expected):
    hsl = css.to_hsl(rgb)
    assert hsl.as_tuple() == pytest.approx(expected)


def test_achromatic_has_zero_hue_and_saturation():
    hsl = css.to_hsl(Rgb(77, 77, 77))
    assert hsl.h == 0.0 and hsl.s == 0.0
    assert hsl.l == pytest.approx(77 / 255)


def test_hue_tie_break_prefers_red_then_green():
    # R == G is maximal: hue computed on the red branch → 60°
    assert css.to_hsl((200, 200, 0)).h == pytest.approx(60.0)
    # G == B is maximal: green branch → 180°
    assert css.to_hsl((0, 200, 200)).h == pytest.approx(180.0)


def test_to_rgb_dispatches_on_type():
    assert css.to_rgb(Hsl(240.0, 1.0, 0.5)) == Rgb(0, 0, 255)
    assert css.to_rgb(Hsv(120.0, 1.0, 1.0)) == Rgb(0, 255, 0)
    assert css.to_rgb(Lch(100.0, 0.0, 0.0)) == Rgb(255, 255, 255)
    with pytest.raises(InvalidParameterError):
        css.to_rgb((1, 2, 3))


def test_to_lch_reference_values():
    white = css.to_lch((255, 255, 255))
    assert white.l == pytest.approx(100.0, abs=1e-3)
    assert white.c == pytest.approx(0.0, abs=1e-2)
    red = css.to_lch((255, 0, 0))
    assert red.l == pytest.approx(53.24, abs=0.05)
    assert red.c == pytest.approx(104.55, abs=0.1)
    assert red.h == pytest.approx(40.0, abs=0.1)


@pytest.mark.parametrize("bad", [(1, 2), (1, 2, 3, 4), (256, 0, 0), (-1, 0, 0), (1.5, 0, 0)])
def test_malformed_rgb_vectors_fail_fast(bad):
    with pytest.raises(InvalidParameterError):
        css.to_hsl(bad)


@pytest.mark.parametrize("factory", [
    lambda: Hsl(360.0, 0.5, 0.5),
    lambda: Hsl(10.0, 1.5, 0.5),
    lambda: Hsv(-1.0, 0.5, 0.5),
    lambda: Lch(120.0, 10.0, 0.0),
    lambda: Lch(50.0, -1.0, 0.0),
])
def test_out_of_range_triples_fail_fast(factory):
    with pytest.raises(InvalidParameterError):
        factory()


def test_lch_hue_is_normalised():
    assert Lch(50.0, 10.0, -30.0).h == pytest.approx(330.0)
    assert Lch(50.0, 10.0, 720.0).h == pytest.approx(0.0)


# ─── Round trips over a dense grid ───────────────────────────────────────

@pytest.mark.parametrize("forward, inverse", [
    (css.rgb_to_hsl, css.hsl_to_rgb),
    (css.rgb_to_hsv, css.hsv_to_rgb),
    (css.rgb_to_lch, css.lch_to_rgb),
])
def test_round_trip_within_one(rgb_grid, forward, inverse):
    back = clamp_u8(inverse(forward(rgb_grid))).astype(int)
    assert np.max(np.abs(back - rgb_grid.astype(int))) <= 1


def test_random_round_trip_lch(rng):
    rgb = rng.integers(0, 256, size=(5000, 3)).astype(np.float64)
    back = clamp_u8(css.lch_to_rgb(css.rgb_to_lch(rgb))).astype(int)
    assert np.max(np.abs(back - rgb.astype(int))) <= 1


def test_triple_round_trip():
    for rgb in [(12, 200, 99), (255, 128, 0), (3, 3, 4)]:
        assert abs(np.subtract(css.to_rgb(css.to_hsl(rgb)).as_tuple(), rgb)).max() <= 1
        assert abs(np.subtract(css.to_rgb(css.to_lch(rgb)).as_tuple(), rgb)).max() <= 1


# ─── Buffer adjustments ──────────────────────────────────────────────────

@pytest.mark.parametrize("space", list(ColourSpace))
def test_hue_rotate_360_is_identity(service, random_buffer, space):
    out = service.hue_rotate(random_buffer, 360, space)
    diff = np.abs(out.pixels.astype(int) - random_buffer.pixels.astype(int))
    assert diff.max() <= 1
    np.testing.assert_array_equal(out.alpha, random_buffer.alpha)


@pytest.mark.parametrize("space", [ColourSpace.HSL, ColourSpace.HSV])
def test_hue_rotate_and_back(service, random_buffer, space):
    """
    HSL and HSV round-trip on any colour. LCh only round-trips in gamut
    (see the grey ramp case below): a rotated LCh colour that leaves the
    sRGB gamut is clipped, and rotating back cannot recover it.
    """
    there = service.hue_rotate(random_buffer, 73.5, space)
    back = service.hue_rotate(there, -73.5, space)
    diff = np.abs(back.pixels.astype(int) - random_buffer.pixels.astype(int))
    assert diff.max() <= 1


def test_lch_hue_rotate_and_back_in_gamut(service, gradient_buffer):
    there = service.hue_rotate(gradient_buffer, 73.5, ColourSpace.LCH)
    back = service.hue_rotate(there, -73.5, ColourSpace.LCH)
    diff = np.abs(back.pixels.astype(int) - gradient_buffer.pixels.astype(int))
    assert diff.max() <= 1


def test_hue_rotate_red_to_green(service):
    buf = PixelBuffer.filled(2, 2, (255, 0, 0, 200))
    out = service.hue_rotate(buf, 120)
    assert out.get_pixel(0, 0) == (0, 255, 0, 200)


def test_hue_rotate_does_not_touch_input(service, random_buffer):
    before = random_buffer.copy()
    service.hue_rotate(random_buffer, 90, ColourSpace.LCH)
    assert random_buffer == before


def test_saturation_and_lightness_clamp(service):
    buf = PixelBuffer.filled(1, 1, (200, 100, 100, 255))
    assert service.saturate(buf, 1.0).get_pixel(0, 0)[:3] == (255, 45, 45)
    assert service.desaturate(buf, 1.0).get_pixel(0, 0)[:3] == (150, 150, 150)
    assert service.lighten(buf, 1.0).get_pixel(0, 0)[:3] == (255, 255, 255)
    assert service.darken(buf, 1.0).get_pixel(0, 0)[:3] == (0, 0, 0)


def test_lch_lightness_extremes_on_greys(service, gradient_buffer):
    assert np.all(service.lighten(gradient_buffer, 1.0, "lch").pixels[:, :, :3] >= 254)
    assert np.all(service.darken(gradient_buffer, 1.0, "lch").pixels[:, :, :3] <= 1)


def test_lch_full_desaturation_gives_grey(service, random_buffer):
    grey = service.desaturate(random_buffer, 1.0, ColourSpace.LCH).pixels[:, :, :3].astype(int)
    assert np.max(grey.max(axis=-1) - grey.min(axis=-1)) <= 1


def test_scale_saturation_zero_gives_grey(service, random_buffer):
    out = service.scale_saturation(random_buffer, 0.0, ColourSpace.HSV).pixels[:, :, :3].astype(int)
    assert np.max(out.max(axis=-1) - out.min(axis=-1)) <= 1


@pytest.mark.parametrize("call", [
    lambda s, b: s.saturate(b, 1.5),
    lambda s, b: s.lighten(b, -0.1),
    lambda s, b: s.scale_saturation(b, -1.0),
    lambda s, b: s.hue_rotate(b, float("nan")),
    lambda s, b: s.hue_rotate(b, 10, "cmyk"),
    lambda s, b: s.gamma_correction(b, 1.0, 0.0, 1.0),
    lambda s, b: s.mix_with_colour(b, (1, 2), 0.5),
])
def test_invalid_parameters(service, grey_2x2, call):
    with pytest.raises(InvalidParameterError):
        call(service, grey_2x2)


def test_mix_with_colour(service, grey_2x2):
    out = service.mix_with_colour(grey_2x2, (0, 0, 255), 0.5)
    assert out.get_pixel(0, 0) == (64, 64, 192, 255)


def test_gamma_correction_identity_and_brighten(service, gradient_buffer):
    assert service.gamma_correction(gradient_buffer, 1.0, 1.0, 1.0) == gradient_buffer
    brighter = service.gamma_correction(gradient_buffer, 2.2, 2.2, 2.2)
    assert np.all(brighter.pixels[:, :, :3] >= gradient_buffer.pixels[:, :, :3])
