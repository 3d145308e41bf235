import numpy as np
import pytest

from skein_colorengine import ColorSpaceEngine, REF_WHITE_HSLUV_D65
from skein_colors import HPLuv, HSLuv, SRGB, as_hpluv, as_hsluv
from skein_gamut import HSLuvEngine, hsluv_bounds, max_chroma_for_lh, max_safe_chroma_for_l


def test_red_in_hsluv():
    hsl = HSLuvEngine.srgb_to_hsluv(np.array([1.0, 0.0, 0.0]))
    np.testing.assert_allclose(hsl, [12.177, 1.0, 0.53237], atol=1e-3)


def test_primaries_sit_on_the_boundary():
    rgb = np.array([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0], [1.0, 1.0, 0.0]])
    np.testing.assert_allclose(HSLuvEngine.srgb_to_hsluv(rgb)[:, 1], 1.0, atol=1e-6)


def test_round_trip():
    rgb = np.random.default_rng(11).random((400, 3))
    np.testing.assert_allclose(HSLuvEngine.hsluv_to_srgb(HSLuvEngine.srgb_to_hsluv(rgb)), rgb, atol=1e-7)
    np.testing.assert_allclose(HSLuvEngine.hpluv_to_srgb(HSLuvEngine.srgb_to_hpluv(rgb)), rgb, atol=1e-7)


def test_hpluv_vivid_exceeds_one():
    assert HSLuvEngine.srgb_to_hpluv(np.array([1.0, 0.0, 0.0]))[1] > 1.0


def test_hsluv_saturation_stays_in_range():
    hsl = HSLuvEngine.srgb_to_hsluv(np.random.default_rng(2).random((200, 3)))
    assert np.all((hsl[:, 1] >= 0.0) & (hsl[:, 1] <= 1.0))
    assert np.all((hsl[:, 2] >= 0.0) & (hsl[:, 2] <= 1.0))


@pytest.mark.parametrize("lch", [[0.0, 0.3, 120.0], [1.0, 0.3, 120.0]])
def test_extreme_lightness_has_no_saturation(lch):
    assert HSLuvEngine.luv_lch_to_hsluv(np.array(lch))[1] == 0.0
    assert HSLuvEngine.luv_lch_to_hpluv(np.array(lch))[1] == 0.0


@pytest.mark.parametrize("hsl", [[200.0, 1.0, 0.0], [200.0, 1.0, 1.0]])
def test_extreme_lightness_has_no_chroma(hsl):
    assert HSLuvEngine.hsluv_to_luv_lch(np.array(hsl))[1] == 0.0


def test_bounds_shape():
    bounds = hsluv_bounds(50.0)
    assert bounds.shape == (6, 2)
    assert np.all(np.isfinite(bounds))


@pytest.mark.parametrize("l", [5.0, 25.0, 50.0, 75.0, 95.0])
def test_safe_chroma_never_exceeds_hue_chroma(l):
    safe = max_safe_chroma_for_l(l)
    assert safe > 0.0
    for h in range(0, 360, 10):
        assert safe <= max_chroma_for_lh(l, float(h)) + 1e-9


def test_full_saturation_is_displayable():
    hsl = np.array([[h, 1.0, l] for h in range(0, 360, 30) for l in (0.2, 0.5, 0.8)], dtype=float)
    luv = ColorSpaceEngine.lch_to_lab(HSLuvEngine.hsluv_to_luv_lch(hsl))
    raw = ColorSpaceEngine.xyz_to_srgb(ColorSpaceEngine.luv_to_xyz(luv, REF_WHITE_HSLUV_D65))
    assert np.all((raw >= -1e-7) & (raw <= 1.0 + 1e-7))


def test_value_types():
    red = as_hsluv(SRGB(1.0, 0.0, 0.0))
    assert red.S == pytest.approx(1.0, abs=1e-6)
    back = red.to_srgb()
    assert (back.r, back.g, back.b) == pytest.approx((1.0, 0.0, 0.0), abs=1e-7)
    assert as_hpluv(SRGB(0.6, 0.6, 0.7)).S < 1.0
    assert isinstance(HPLuv(10.0, 0.5, 0.5).to_srgb(), SRGB)
    assert HSLuv(10.0, 0.0, 0.5).to_luv_lch().C == 0.0
