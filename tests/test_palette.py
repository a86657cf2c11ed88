import numpy as np
import pytest

from mandelview.palette import (
    BLACK,
    RGB,
    SUNSET_STOPS,
    Scheme,
    colorize,
    get_color,
    hsl_to_rgb,
    palette_lut,
    scheme_names,
)

ALL = list(Scheme)


def test_twelve_schemes():
    assert len(ALL) == 12
    assert scheme_names()[0] == "classic"


@pytest.mark.parametrize("scheme", ALL)
@pytest.mark.parametrize("max_iter", [1, 100, 1000])
def test_in_set_is_black(scheme, max_iter):
    assert get_color(max_iter, max_iter, scheme) == BLACK == (0, 0, 0)


@pytest.mark.parametrize("scheme", ALL)
def test_channels_in_range_over_unit_interval(scheme):
    max_iter = 997
    for n in range(max_iter):
        c = get_color(n, max_iter, scheme)
        assert isinstance(c, RGB)
        assert all(isinstance(v, int) and 0 <= v <= 255 for v in c), (n, c)


def test_grayscale_midpoint():
    assert get_color(50, 100, "grayscale") == (127, 127, 127)


def test_classic_starts_at_red():
    assert get_color(0, 100, "classic") == (255, 0, 0)


def test_fire_two_segments():
    assert get_color(25, 100, "fire") == (127, 0, 0)
    assert get_color(75, 100, "fire") == (255, 127, 0)


def test_ocean_and_rainbow_origins():
    assert get_color(0, 10, "ocean") == (0, 50, 55)
    assert get_color(0, 10, "rainbow") == (255, 0, 0)
    # second sixth of the wheel: red falling, green full
    assert get_color(25, 100, "rainbow") == (127, 255, 0)


def test_copper_red_channel_saturates():
    assert get_color(90, 100, "copper").r == 255


def test_ramp_hits_breakpoints():
    pos, colour = SUNSET_STOPS[1]
    assert get_color(35, 100, "sunset") == RGB(*colour)
    assert pos == 0.35


def test_unknown_scheme_falls_back_to_classic():
    assert Scheme.parse("plaid") is Scheme.CLASSIC
    assert Scheme.parse(" FIRE ") is Scheme.FIRE
    assert get_color(30, 100, "plaid") == get_color(30, 100, "classic")


def test_hsl_achromatic():
    assert hsl_to_rgb(123, 0, 50) == (128, 128, 128)
    assert hsl_to_rgb(120, 100, 50) == (0, 255, 0)
    assert hsl_to_rgb(240, 100, 50) == (0, 0, 255)


@pytest.mark.parametrize("scheme", ["neon", "ice", "classic"])
def test_small_ratio_steps_give_small_colour_steps(scheme):
    # these schemes have no designed band edges
    prev = np.array(get_color(0, 2000, scheme), dtype=int)
    for n in range(1, 2000):
        cur = np.array(get_color(n, 2000, scheme), dtype=int)
        assert np.abs(cur - prev).max() <= 8
        prev = cur


@pytest.mark.parametrize("scheme", ["volcanic", "rainbow", "forest"])
def test_lut_matches_get_color(scheme):
    lut = palette_lut(60, scheme)
    assert lut.shape == (61, 3)
    for n in range(61):
        assert tuple(int(v) for v in lut[n]) == get_color(n, 60, scheme)


def test_colorize_builds_rgba_buffer():
    field = np.array([[0, 5], [10, 3]], dtype=np.int32)
    buf = colorize(field, 10, "grayscale")
    assert buf.shape == (2, 2, 4)
    assert buf.dtype == np.uint8
    assert (buf[..., 3] == 255).all()
    assert tuple(buf[1, 0, :3]) == (0, 0, 0)
    assert tuple(buf[0, 1, :3]) == (127, 127, 127)
