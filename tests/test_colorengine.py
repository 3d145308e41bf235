import numpy as np
import pytest

from skein_colorengine import (
    ColorSpaceEngine,
    GamutMapping,
    M_LINEAR_TO_XYZ,
    M_XYZ_TO_LINEAR,
    REF_WHITE_D50,
    REF_WHITE_D65,
    SRGB_EXACT,
    SRGB_FAST,
    set_strict_ieee,
)

from _reference import almosteq


@pytest.fixture
def strict_ieee():
    set_strict_ieee(True)
    try:
        yield
    finally:
        set_strict_ieee(False)


# --- Shape contract -------------------------------------------------------

def test_single_row_keeps_rank():
    out = ColorSpaceEngine.srgb_to_xyz(np.array([1.0, 0.0, 0.0]))
    assert out.shape == (3,)


def test_batch_keeps_rank():
    out = ColorSpaceEngine.srgb_to_xyz(np.zeros((7, 3)))
    assert out.shape == (7, 3)


def test_lists_are_accepted():
    out = ColorSpaceEngine.srgb_to_linear([0.5, 0.5, 0.5])
    np.testing.assert_allclose(out, [0.21404114] * 3, atol=1e-7)


@pytest.mark.parametrize("shape", [(10, 5), (4,), (2, 2)])
def test_wrong_trailing_size_raises(shape):
    with pytest.raises(ValueError, match="Expected shape"):
        ColorSpaceEngine.srgb_to_xyz(np.zeros(shape))


# --- Constants ------------------------------------------------------------

def test_reference_whites_are_read_only():
    with pytest.raises(ValueError):
        REF_WHITE_D65[0] = 1.0
    with pytest.raises(ValueError):
        REF_WHITE_D50[0] = 1.0


def test_hub_matrices_are_inverse():
    np.testing.assert_allclose(M_LINEAR_TO_XYZ @ M_XYZ_TO_LINEAR, np.eye(3), atol=1e-9)


# --- Transfer curves ------------------------------------------------------

def test_negative_values_take_linear_branch():
    out = ColorSpaceEngine.srgb_to_linear(np.array([-0.5, 0.02, 0.0]))
    np.testing.assert_allclose(out, [-0.5 / 12.92, 0.02 / 12.92, 0.0])
    back = ColorSpaceEngine.linear_to_srgb(out)
    np.testing.assert_allclose(back, [-0.5, 0.02, 0.0], atol=1e-12)


def test_no_clamping_in_hub():
    xyz = np.array([1.2, 1.1, 1.3])
    rgb = ColorSpaceEngine.xyz_to_srgb(xyz)
    assert not GamutMapping.in_gamut(rgb)
    np.testing.assert_allclose(ColorSpaceEngine.srgb_to_xyz(rgb), xyz, atol=1e-12)


def test_fast_transfer_within_six_steps():
    # Channels are independent, so the worst cube corner is three times the
    # worst level on a full 256-step gray ramp.
    ramp = np.repeat((np.arange(256) / 255.0)[:, None], 3, axis=1)

    for convert in (ColorSpaceEngine.srgb_to_linear, ColorSpaceEngine.linear_to_srgb):
        max_err = np.max(np.abs(convert(ramp, SRGB_EXACT) - convert(ramp, SRGB_FAST)))
        assert 3.0 * max_err <= 6.0 / 255.0


def test_strict_mode_matches_fast_mode(strict_ieee):
    rng = np.random.default_rng(5)
    xyz = rng.random((200, 3))
    lab_strict = ColorSpaceEngine.xyz_to_lab(xyz)
    rgb_strict = ColorSpaceEngine.xyz_to_srgb(xyz)
    set_strict_ieee(False)
    np.testing.assert_allclose(ColorSpaceEngine.xyz_to_lab(xyz), lab_strict, atol=1e-12)
    np.testing.assert_allclose(ColorSpaceEngine.xyz_to_srgb(xyz), rgb_strict, atol=1e-12)


# --- Round trips ----------------------------------------------------------

@pytest.fixture(scope="module")
def display_colors():
    return np.random.default_rng(17).random((500, 3))


@pytest.mark.parametrize("forward, backward", [
    (ColorSpaceEngine.srgb_to_lab, ColorSpaceEngine.lab_to_srgb),
    (ColorSpaceEngine.srgb_to_lch, ColorSpaceEngine.lch_to_srgb),
    (ColorSpaceEngine.srgb_to_luv, ColorSpaceEngine.luv_to_srgb),
    (ColorSpaceEngine.srgb_to_oklab, ColorSpaceEngine.oklab_to_srgb),
    (ColorSpaceEngine.srgb_to_hsv, ColorSpaceEngine.hsv_to_srgb),
    (ColorSpaceEngine.srgb_to_hsl, ColorSpaceEngine.hsl_to_srgb),
])
def test_display_round_trip(display_colors, forward, backward):
    np.testing.assert_allclose(backward(forward(display_colors)), display_colors, atol=1e-8)


def test_d50_round_trip(display_colors):
    lab = ColorSpaceEngine.srgb_to_lab(display_colors, REF_WHITE_D50)
    np.testing.assert_allclose(ColorSpaceEngine.lab_to_srgb(lab, REF_WHITE_D50), display_colors, atol=1e-8)
    luv = ColorSpaceEngine.srgb_to_luv(display_colors, REF_WHITE_D50)
    np.testing.assert_allclose(ColorSpaceEngine.luv_to_srgb(luv, REF_WHITE_D50), display_colors, atol=1e-8)


def test_xyy_round_trip(display_colors):
    xyz = ColorSpaceEngine.srgb_to_xyz(display_colors)
    np.testing.assert_allclose(ColorSpaceEngine.xyY_to_xyz(ColorSpaceEngine.xyz_to_xyY(xyz)), xyz, atol=1e-12)


# --- Degenerate inputs ----------------------------------------------------

def test_black_xyy_takes_white_chromaticity():
    xyy = ColorSpaceEngine.xyz_to_xyY(np.zeros(3))
    np.testing.assert_allclose(xyy, [0.312727, 0.329023, 0.0], atol=1e-6)
    xyy50 = ColorSpaceEngine.xyz_to_xyY(np.zeros(3), REF_WHITE_D50)
    np.testing.assert_allclose(xyy50[:2], REF_WHITE_D50[:2] / REF_WHITE_D50.sum())


def test_xyy_with_zero_y_drops_x_and_z():
    np.testing.assert_array_equal(ColorSpaceEngine.xyY_to_xyz(np.array([0.3, 0.0, 0.5])), [0.0, 0.5, 0.0])


def test_luv_of_black_is_finite():
    luv = ColorSpaceEngine.xyz_to_luv(np.zeros(3))
    np.testing.assert_array_equal(luv, [0.0, 0.0, 0.0])
    np.testing.assert_array_equal(ColorSpaceEngine.luv_to_xyz(luv), [0.0, 0.0, 0.0])


def test_lch_hue_is_zero_for_near_neutral():
    lch = ColorSpaceEngine.lab_to_lch(np.array([0.5, 5e-5, -5e-5]))
    assert lch[2] == 0.0
    lch = ColorSpaceEngine.lab_to_lch(np.array([0.5, 0.0, 0.3]))
    assert lch[1] == pytest.approx(0.3)
    assert lch[2] == pytest.approx(90.0)


def test_lch_hue_is_normalized():
    lch = ColorSpaceEngine.lab_to_lch(np.array([[0.5, 0.1, -0.1], [0.5, -0.1, -0.0001]]))
    assert np.all((lch[:, 2] >= 0.0) & (lch[:, 2] < 360.0))
    assert lch[0, 2] == pytest.approx(315.0)


# --- OkLab ----------------------------------------------------------------

@pytest.mark.parametrize("rgb, expected", [
    ((1, 1, 1), (1.000, 0.000, 0.000)),
    ((1, 0, 0), (0.627955, 0.224863, 0.125846)),
    ((0, 1, 0), (0.86644, -0.233888, 0.179498)),
    ((0, 0, 1), (0.452014, -0.032457, -0.311528)),
    ((0, 1, 1), (0.905399, -0.149444, -0.039398)),
    ((1, 0, 1), (0.701674, 0.274566, -0.169156)),
    ((1, 1, 0), (0.967983, -0.071369, 0.198570)),
    ((0, 0, 0), (0.000000, 0.000000, 0.000000)),
])
def test_linear_rgb_to_oklab(rgb, expected):
    xyz = ColorSpaceEngine.linear_to_xyz(np.array(rgb, dtype=float))
    lab = ColorSpaceEngine.xyz_to_oklab(xyz)
    assert all(almosteq(v, e) for v, e in zip(lab, expected))


OKLAB_XYZ_PAIRS = [
    ((0.950, 1.000, 1.089), (1.000, 0.000, 0.000)),
    ((1.000, 0.000, 0.000), (0.450, 1.236, -0.019)),
    ((0.000, 1.000, 0.000), (0.922, -0.671, 0.263)),
    ((0.000, 0.000, 1.000), (0.153, -1.415, -0.449)),
]


@pytest.mark.parametrize("xyz, lab", OKLAB_XYZ_PAIRS)
def test_xyz_to_oklab(xyz, lab):
    out = ColorSpaceEngine.xyz_to_oklab(np.array(xyz))
    assert all(almosteq(v, e) for v, e in zip(out, lab))


@pytest.mark.parametrize("xyz, lab", OKLAB_XYZ_PAIRS)
def test_oklab_to_xyz(xyz, lab):
    out = ColorSpaceEngine.oklab_to_xyz(np.array(lab))
    assert all(almosteq(v, e) for v, e in zip(out, xyz))


@pytest.mark.parametrize("lab, lch", [
    ((55.0, 0.17, -0.14), (55.0, 0.22, 320.528)),
    ((90.0, 0.32, 0.00), (90.0, 0.32, 0.0)),
    ((10.0, 0.00, -0.40), (10.0, 0.40, 270.0)),
])
def test_oklab_oklch_pairs(lab, lch):
    out = ColorSpaceEngine.oklab_to_oklch(np.array(lab))
    assert all(almosteq(v, e) for v, e in zip(out, lch))
    back = ColorSpaceEngine.oklch_to_oklab(np.array(lch))
    assert all(almosteq(v, e) for v, e in zip(back, lab))


# --- Gamut ----------------------------------------------------------------

def test_in_gamut_and_clip():
    rgb = np.array([[0.0, 0.5, 1.0], [1.0000001, 0.5, 0.5], [-0.1, 2.0, 0.5], [np.nan, 0.0, 0.0]])
    np.testing.assert_array_equal(GamutMapping.in_gamut(rgb), [True, False, False, False])
    clipped = GamutMapping.clip_absolute(rgb[:3])
    np.testing.assert_array_equal(clipped, [[0.0, 0.5, 1.0], [1.0, 0.5, 0.5], [0.0, 1.0, 0.5]])
