import numpy as np
import pytest

from skein_colorengine import REF_WHITE_D50
from skein_colors import (
    HPLuv,
    HSL,
    HSLuv,
    HSV,
    LCh,
    Lab,
    LinearRGB,
    Luv,
    LuvLCh,
    OkLab,
    OkLch,
    RGB255,
    SRGB,
    XYZ,
    XyY,
    almost_equal_rgb,
    ansi_swatch,
    as_hpluv,
    as_hsl,
    as_hsluv,
    as_hsv,
    as_lab,
    as_lch,
    as_linear_rgb,
    as_luv,
    as_luv_lch,
    as_oklab,
    as_oklch,
    as_rgb255,
    as_srgb,
    as_xyy,
    as_xyz,
    blend_hsv,
    blend_lab,
    blend_lch,
    blend_linear_rgb,
    blend_luv,
    blend_luv_lch,
    blend_oklab,
    blend_oklch,
    blend_rgb,
    interp_angle,
    parse_hex,
    to_hex,
)

from _reference import DELTA, REFERENCE, ROW_IDS, almosteq


def _close(actual, expected, tol=DELTA):
    np.testing.assert_allclose(np.asarray(actual, dtype=float), np.asarray(expected, dtype=float), atol=tol)


# --- Reference table: conversions out of sRGB -------------------------------

@pytest.mark.parametrize("row", REFERENCE, ids=ROW_IDS)
class TestReferenceConversions:

    def test_hsl(self, row):
        hsl = as_hsl(SRGB(*row.rgb))
        _close((hsl.H, hsl.S, hsl.L), row.hsl)

    def test_hsv(self, row):
        hsv = as_hsv(SRGB(*row.rgb))
        _close((hsv.H, hsv.S, hsv.V), row.hsv)

    def test_hex(self, row):
        assert to_hex(SRGB(*row.rgb)) == row.hex

    def test_xyz(self, row):
        xyz = as_xyz(SRGB(*row.rgb))
        _close((xyz.X, xyz.Y, xyz.Z), row.xyz)

    def test_xyy(self, row):
        xyy = as_xyy(SRGB(*row.rgb))
        _close((xyy.x, xyy.y, xyy.Y), row.xyy)

    def test_lab(self, row):
        lab = as_lab(SRGB(*row.rgb))
        _close((lab.L, lab.a, lab.b), row.lab)
        lab50 = as_lab(SRGB(*row.rgb), REF_WHITE_D50)
        _close((lab50.L, lab50.a, lab50.b), row.lab50)

    def test_luv(self, row):
        luv = as_luv(SRGB(*row.rgb))
        _close((luv.L, luv.u, luv.v), row.luv)
        luv50 = as_luv(SRGB(*row.rgb), REF_WHITE_D50)
        _close((luv50.L, luv50.u, luv50.v), row.luv50)

    def test_lch(self, row):
        for white, (h, c, l) in ((None, row.hcl), (REF_WHITE_D50, row.hcl50)):
            lch = as_lch(SRGB(*row.rgb)) if white is None else as_lch(SRGB(*row.rgb), white)
            assert almosteq(lch.L, l)
            assert almosteq(lch.C, c) or abs(lch.C - c) < DELTA
            # Hue of a neutral color carries no information.
            if c > 1e-3:
                assert almosteq(lch.h, h)

    def test_rgb255(self, row):
        assert as_rgb255(SRGB(*row.rgb)) == RGB255(*row.rgb255)


# --- Reference table: creation from other spaces ------------------------------

@pytest.mark.parametrize("row", REFERENCE, ids=ROW_IDS)
class TestReferenceCreation:

    def test_hsl(self, row):
        assert almost_equal_rgb(HSL(*row.hsl), SRGB(*row.rgb))

    def test_hsv(self, row):
        assert almost_equal_rgb(HSV(*row.hsv), SRGB(*row.rgb))

    def test_hex(self, row):
        assert almost_equal_rgb(parse_hex(row.hex), SRGB(*row.rgb))
        assert almost_equal_rgb(parse_hex(row.hex.upper()), SRGB(*row.rgb))

    def test_xyz(self, row):
        assert almost_equal_rgb(XYZ(*row.xyz), SRGB(*row.rgb))

    def test_xyy(self, row):
        assert almost_equal_rgb(XyY(*row.xyy), SRGB(*row.rgb))

    def test_lab(self, row):
        assert almost_equal_rgb(Lab(*row.lab), SRGB(*row.rgb))
        assert almost_equal_rgb(SRGB.from_xyz(Lab(*row.lab50).to_xyz(REF_WHITE_D50)), SRGB(*row.rgb))

    def test_luv(self, row):
        assert almost_equal_rgb(Luv(*row.luv), SRGB(*row.rgb))
        assert almost_equal_rgb(SRGB.from_xyz(Luv(*row.luv50).to_xyz(REF_WHITE_D50)), SRGB(*row.rgb))

    def test_lch(self, row):
        h, c, l = row.hcl
        assert almost_equal_rgb(LCh(l, c, h), SRGB(*row.rgb))
        h, c, l = row.hcl50
        assert almost_equal_rgb(SRGB.from_xyz(LCh(l, c, h).to_xyz(REF_WHITE_D50)), SRGB(*row.rgb))

    def test_rgb255(self, row):
        assert almost_equal_rgb(RGB255(*row.rgb255), SRGB(*row.rgb))


# --- Value types ------------------------------------------------------------

def test_values_are_frozen():
    c = SRGB(0.1, 0.2, 0.3)
    with pytest.raises(AttributeError):
        c.r = 0.5


def test_validity_and_clamping():
    c = SRGB(1.2, -0.1, 0.5)
    assert not c.is_valid()
    assert c.clamped() == SRGB(1.0, 0.0, 0.5)
    assert c.clamped().is_valid()
    assert SRGB(0.0, 1.0, 0.5).is_valid()


def test_conversions_do_not_clamp():
    vivid = XYZ(0.2, 0.6, 0.05)
    assert not as_srgb(vivid).is_valid()
    back = as_xyz(as_srgb(vivid))
    _close((back.X, back.Y, back.Z), (0.2, 0.6, 0.05), tol=1e-12)


def test_accessors_return_same_space_unchanged():
    lab = Lab(0.5, 0.1, -0.2)
    assert as_lab(lab) is lab
    lch = LCh(0.5, 0.2, 30.0)
    assert as_lch(lch) is lch
    assert as_oklch(OkLch(0.5, 0.1, 10.0)) == OkLch(0.5, 0.1, 10.0)


@pytest.mark.parametrize("convert, back", [
    (as_linear_rgb, as_srgb),
    (as_lab, as_srgb),
    (as_lch, as_srgb),
    (as_luv, as_srgb),
    (as_luv_lch, as_srgb),
    (as_oklab, as_srgb),
    (as_oklch, as_srgb),
    (as_hsluv, as_srgb),
    (as_hpluv, as_srgb),
    (as_hsl, as_srgb),
    (as_hsv, as_srgb),
    (as_xyy, as_srgb),
])
def test_every_space_round_trips(convert, back):
    for rgb in ((0.2, 0.4, 0.6), (0.9, 0.1, 0.3), (0.7, 0.3, 0.55), (0.1, 0.8, 0.2)):
        out = back(convert(SRGB(*rgb)))
        _close((out.r, out.g, out.b), rgb, tol=1e-7)


def test_lab_and_lch_share_white():
    lab50 = as_lab(SRGB(0.3, 0.6, 0.2), REF_WHITE_D50)
    lch50 = as_lch(SRGB(0.3, 0.6, 0.2), REF_WHITE_D50)
    back = lch50.to_lab()
    _close((back.L, back.a, back.b), (lab50.L, lab50.a, lab50.b), tol=1e-12)


def test_lab_value_reinterpreted_under_other_white():
    lab = Lab(0.6, 0.2, 0.1)
    assert as_lab(lab, REF_WHITE_D50) is lab


def test_oklab_oklch_values():
    lch = OkLab(0.55, 0.17, -0.14).to_oklch()
    assert lch.C == pytest.approx(0.2202, abs=1e-4)
    assert lch.h == pytest.approx(320.528, abs=1e-3)
    assert OkLab(0.9, 0.0, 0.0).to_oklch().h == 0.0


def test_luv_lch_polar_pair():
    lch = LuvLCh(0.5, 0.3, 120.0)
    luv = lch.to_luv()
    assert luv.to_luv_lch().h == pytest.approx(120.0)
    assert luv.to_luv_lch().C == pytest.approx(0.3)


def test_hsluv_values_stay_displayable():
    assert HSLuv(250.0, 1.0, 0.5).to_srgb().is_valid()
    assert HPLuv(30.0, 1.0, 0.6).to_srgb().is_valid()


# --- Hex and 8-bit forms ------------------------------------------------------

@pytest.mark.parametrize("text, expected", [
    ("#000000", SRGB(0, 0, 0)),
    ("#FF0000", SRGB(1, 0, 0)),
    ("#00FF00", SRGB(0, 1, 0)),
    ("#0000FF", SRGB(0, 0, 1)),
    ("#FFFFFF", SRGB(1, 1, 1)),
    ("#fff", SRGB(1.0, 1.0, 1.0)),
    ("#9ff", SRGB(0.6, 1.0, 1.0)),
    ("#f9f", SRGB(1.0, 0.6, 1.0)),
    ("#ff9", SRGB(1.0, 1.0, 0.6)),
    ("#99f", SRGB(0.6, 0.6, 1.0)),
    ("#f99", SRGB(1, 0.6, 0.6)),
    ("#9f9", SRGB(0.6, 1, 0.6)),
    ("#999", SRGB(0.6, 0.6, 0.6)),
    ("#0ff", SRGB(0, 1, 1)),
    ("#f0f", SRGB(1, 0, 1)),
    ("#ff0", SRGB(1, 1, 0)),
    ("#00f", SRGB(0, 0, 1)),
    ("#0f0", SRGB(0, 1, 0)),
    ("#f00", SRGB(1, 0, 0)),
    ("#000", SRGB(0, 0, 0)),
])
def test_parse_hex(text, expected):
    assert parse_hex(text) == expected


@pytest.mark.parametrize("text", ["#12345", "123456", "1234567", "#12345g", "", "#ggg", "#12 456"])
def test_parse_hex_rejects_malformed(text):
    from skein_colors import ColorSpaceError

    with pytest.raises(ColorSpaceError):
        parse_hex(text)


def test_color_space_error_is_value_error():
    from skein_colors import ColorSpaceError

    assert issubclass(ColorSpaceError, ValueError)


def test_short_and_long_hex_agree():
    assert to_hex(parse_hex("#fff")) == to_hex(parse_hex("#ffffff"))
    assert to_hex(parse_hex("#a3c")) == "#aa33cc"


def test_to_hex_clamps_and_rounds_half_up():
    assert to_hex(SRGB(1.5, -0.2, 0.5)) == "#ff0080"
    assert to_hex(SRGB(127.5 / 255.0, 0.0, 0.0)) == "#800000"


def test_nan_channels_map_to_zero():
    assert to_hex(SRGB(float("nan"), 0.5, 1.0)) == "#0080ff"
    assert as_rgb255(SRGB(float("nan"), 0.0, 0.0)) == RGB255(0, 0, 0)
    assert as_rgb255(SRGB(0.2, float("nan"), float("inf"))) == RGB255(51, 0, 255)


def test_rgb255_clamps():
    assert RGB255(300, -4, 12) == RGB255(255, 0, 12)


def test_rgb255_packed():
    c = RGB255.from_packed(0x1A2B3C)
    assert c == RGB255(0x1A, 0x2B, 0x3C)
    assert c.to_packed() == 0x1A2B3C
    assert RGB255.from_packed(0xFF000000 | 0x00FF00) == RGB255(0, 255, 0)


def test_rgb255_to_srgb():
    assert RGB255(255, 0, 51).to_srgb() == SRGB(1.0, 0.0, 0.2)


def test_ansi_swatch():
    assert ansi_swatch(parse_hex("#ff8000")) == "\x1b[48:2::255:128:0m \x1b[49m"


def test_almost_equal_rgb_threshold():
    base = SRGB(0.5, 0.5, 0.5)
    assert almost_equal_rgb(base, SRGB(0.5 + 1 / 255.0, 0.5 + 0.5 / 255.0, 0.5))
    assert not almost_equal_rgb(base, SRGB(0.5 + 2.5 / 255.0, 0.5 + 1 / 255.0, 0.5))


# --- Blends -------------------------------------------------------------------

BLENDS = [
    blend_rgb,
    blend_linear_rgb,
    blend_lab,
    blend_luv,
    blend_oklab,
    blend_hsv,
    blend_lch,
    blend_luv_lch,
    blend_oklch,
]


@pytest.mark.parametrize("blend", BLENDS, ids=lambda f: f.__name__)
def test_blend_endpoints(blend):
    c1, c2 = parse_hex("#1a1a46"), parse_hex("#666666")
    assert to_hex(blend(c1, c2, 0.0)) == "#1a1a46"
    assert to_hex(blend(c1, c2, 1.0)) == "#666666"


@pytest.mark.parametrize("blend", BLENDS, ids=lambda f: f.__name__)
def test_blend_returns_srgb(blend):
    assert isinstance(blend(SRGB(1, 0, 0), SRGB(0, 0, 1)), SRGB)


def test_rgb_blend_midpoint():
    assert blend_rgb(SRGB(0, 0, 0), SRGB(1, 1, 1), 0.5) == SRGB(0.5, 0.5, 0.5)


def test_hsv_blend_adopts_hue_of_chromatic_end():
    mid = as_hsv(blend_hsv(SRGB(0.5, 0.5, 0.5), SRGB(0.0, 0.0, 1.0), 0.5))
    assert mid.H == pytest.approx(240.0)


def test_lch_blend_adopts_hue_of_chromatic_end():
    red = SRGB(1.0, 0.0, 0.0)
    mid = as_lch(blend_lch(SRGB(0.5, 0.5, 0.5), red, 0.5))
    assert mid.h == pytest.approx(as_lch(red).h, abs=0.5)


def test_lch_blend_is_clamped():
    out = blend_lch(SRGB(0.0, 1.0, 0.0), SRGB(1.0, 0.0, 1.0), 0.5)
    assert out.is_valid()


@pytest.mark.parametrize("a0, a1, t, expected", [
    (10.0, 30.0, 0.5, 20.0),
    (350.0, 10.0, 0.5, 0.0),
    (10.0, 350.0, 0.5, 0.0),
    (0.0, 90.0, 0.25, 22.5),
    (90.0, 270.0, 0.0, 90.0),
    (340.0, 20.0, 0.25, 350.0),
])
def test_interp_angle_takes_short_arc(a0, a1, t, expected):
    assert interp_angle(a0, a1, t) == pytest.approx(expected)


def test_interp_angle_endpoint():
    assert interp_angle(300.0, 40.0, 1.0) == pytest.approx(40.0)
