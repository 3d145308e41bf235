# -*- coding: utf-8 -*-
"""
Skein: Spinning perceptual order out of color
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Color Values
============
Immutable per-space color values on top of the array engines.

Every value type can reach the XYZ hub (``to_xyz``) and be built from it
(``from_xyz``). Display-derived types (sRGB, linear RGB, HSL, HSV, RGB255,
HSLuv, HPLuv) additionally expose ``to_srgb`` so that hex and 8-bit values
are not disturbed by a trip through the matrices.

Cross-space work is done by free functions:
    - ``as_<space>(color)`` converts any value into that space.
    - ``blend_<space>(c1, c2, t)`` interpolates in that space.
    - ``parse_hex`` / ``to_hex`` and ``RGB255`` handle the 8-bit forms.

Nothing here clamps unless the name says so (``clamped``, ``to_hex``,
``RGB255``, the HSLuv/HPLuv display path and ``blend_lch``).
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Final, TypeAlias, Union

import numpy as np

from skein_colorengine import (
    ArrayFloat,
    ColorSpaceEngine,
    GamutMapping,
    REF_WHITE_D65,
    REF_WHITE_HSLUV_D65,
    SRGB_EXACT,
    TransferFunction,
)
from skein_gamut import HSLuvEngine

__all__ = [
    # --- Errors ---
    "ColorSpaceError",

    # --- Value types ---
    "SRGB",
    "LinearRGB",
    "XYZ",
    "XyY",
    "Lab",
    "LCh",
    "Luv",
    "LuvLCh",
    "OkLab",
    "OkLch",
    "HSLuv",
    "HPLuv",
    "HSL",
    "HSV",
    "RGB255",
    "Color",

    # --- Accessors ---
    "as_srgb",
    "as_linear_rgb",
    "as_xyz",
    "as_xyy",
    "as_lab",
    "as_lch",
    "as_luv",
    "as_luv_lch",
    "as_oklab",
    "as_oklch",
    "as_hsluv",
    "as_hpluv",
    "as_hsl",
    "as_hsv",
    "as_rgb255",
    "to_array",

    # --- Codecs & helpers ---
    "parse_hex",
    "to_hex",
    "ansi_swatch",
    "almost_equal_rgb",

    # --- Blends ---
    "interp_angle",
    "blend_rgb",
    "blend_linear_rgb",
    "blend_lab",
    "blend_luv",
    "blend_oklab",
    "blend_hsv",
    "blend_lch",
    "blend_luv_lch",
    "blend_oklch",
]


class ColorSpaceError(ValueError):
    """Raised when a textual color cannot be parsed."""


_HEX_DIGITS: Final[frozenset[str]] = frozenset("0123456789abcdefABCDEF")
# Chroma at or below this counts as achromatic when blending in LCh.
_LCH_ACHROMATIC: Final[float] = 0.00015
RGB_DELTA: Final[float] = 1.0 / 255.0


def _row(*values: float) -> ArrayFloat:
    return np.array(values, dtype=np.float64)


def _floats(arr: ArrayFloat) -> tuple[float, float, float]:
    return float(arr[0]), float(arr[1]), float(arr[2])


# =============================================================================
# 1. HUB VALUES
# =============================================================================

@dataclass(slots=True, frozen=True)
class SRGB:
    """Display (gamma-encoded) sRGB, nominally in [0, 1] per channel."""
    r: float
    g: float
    b: float

    def to_srgb(self) -> SRGB:
        return self

    def to_linear_rgb(self, transfer: TransferFunction = SRGB_EXACT) -> LinearRGB:
        return LinearRGB(*_floats(ColorSpaceEngine.srgb_to_linear(_row(self.r, self.g, self.b), transfer)))

    def to_xyz(self, transfer: TransferFunction = SRGB_EXACT) -> XYZ:
        return XYZ(*_floats(ColorSpaceEngine.srgb_to_xyz(_row(self.r, self.g, self.b), transfer)))

    @classmethod
    def from_xyz(cls, xyz: XYZ, transfer: TransferFunction = SRGB_EXACT) -> SRGB:
        return cls(*_floats(ColorSpaceEngine.xyz_to_srgb(_row(xyz.X, xyz.Y, xyz.Z), transfer)))

    def is_valid(self) -> bool:
        """True when every channel lies in [0, 1]."""
        return bool(GamutMapping.in_gamut(_row(self.r, self.g, self.b)))

    def clamped(self) -> SRGB:
        """Returns a copy with every channel clamped to [0, 1]."""
        return SRGB(*_floats(GamutMapping.clip_absolute(_row(self.r, self.g, self.b))))


@dataclass(slots=True, frozen=True)
class LinearRGB:
    """Linear-light sRGB primaries. Unclamped."""
    r: float
    g: float
    b: float

    def to_srgb(self, transfer: TransferFunction = SRGB_EXACT) -> SRGB:
        return SRGB(*_floats(ColorSpaceEngine.linear_to_srgb(_row(self.r, self.g, self.b), transfer)))

    def to_xyz(self) -> XYZ:
        return XYZ(*_floats(ColorSpaceEngine.linear_to_xyz(_row(self.r, self.g, self.b))))

    @classmethod
    def from_xyz(cls, xyz: XYZ) -> LinearRGB:
        return cls(*_floats(ColorSpaceEngine.xyz_to_linear(_row(xyz.X, xyz.Y, xyz.Z))))


@dataclass(slots=True, frozen=True)
class XYZ:
    """CIE 1931 XYZ tristimulus values, Y = 1 for the reference white."""
    X: float
    Y: float
    Z: float

    def to_xyz(self) -> XYZ:
        return self

    @classmethod
    def from_xyz(cls, xyz: XYZ) -> XYZ:
        return xyz


@dataclass(slots=True, frozen=True)
class XyY:
    """CIE xyY: chromaticity (x, y) plus luminance Y."""
    x: float
    y: float
    Y: float

    def to_xyz(self) -> XYZ:
        return XYZ(*_floats(ColorSpaceEngine.xyY_to_xyz(_row(self.x, self.y, self.Y))))

    @classmethod
    def from_xyz(cls, xyz: XYZ, white: ArrayFloat = REF_WHITE_D65) -> XyY:
        """Black takes the chromaticity of ``white``."""
        return cls(*_floats(ColorSpaceEngine.xyz_to_xyY(_row(xyz.X, xyz.Y, xyz.Z), white)))


# =============================================================================
# 2. PERCEPTUAL VALUES
# =============================================================================

@dataclass(slots=True, frozen=True)
class Lab:
    """CIELAB with L in [0, 1] and a, b roughly in [-1, 1]."""
    L: float
    a: float
    b: float

    def to_xyz(self, white: ArrayFloat = REF_WHITE_D65) -> XYZ:
        return XYZ(*_floats(ColorSpaceEngine.lab_to_xyz(_row(self.L, self.a, self.b), white)))

    @classmethod
    def from_xyz(cls, xyz: XYZ, white: ArrayFloat = REF_WHITE_D65) -> Lab:
        return cls(*_floats(ColorSpaceEngine.xyz_to_lab(_row(xyz.X, xyz.Y, xyz.Z), white)))

    def to_lch(self) -> LCh:
        return LCh(*_floats(ColorSpaceEngine.lab_to_lch(_row(self.L, self.a, self.b))))


@dataclass(slots=True, frozen=True)
class LCh:
    """Cylindrical CIELAB (a.k.a. HCL): lightness, chroma, hue in degrees."""
    L: float
    C: float
    h: float

    def to_lab(self) -> Lab:
        return Lab(*_floats(ColorSpaceEngine.lch_to_lab(_row(self.L, self.C, self.h))))

    def to_xyz(self, white: ArrayFloat = REF_WHITE_D65) -> XYZ:
        return self.to_lab().to_xyz(white)

    @classmethod
    def from_xyz(cls, xyz: XYZ, white: ArrayFloat = REF_WHITE_D65) -> LCh:
        return Lab.from_xyz(xyz, white).to_lch()


@dataclass(slots=True, frozen=True)
class Luv:
    """CIELUV with L in [0, 1] and u, v roughly in [-1, 1]."""
    L: float
    u: float
    v: float

    def to_xyz(self, white: ArrayFloat = REF_WHITE_D65) -> XYZ:
        return XYZ(*_floats(ColorSpaceEngine.luv_to_xyz(_row(self.L, self.u, self.v), white)))

    @classmethod
    def from_xyz(cls, xyz: XYZ, white: ArrayFloat = REF_WHITE_D65) -> Luv:
        return cls(*_floats(ColorSpaceEngine.xyz_to_luv(_row(xyz.X, xyz.Y, xyz.Z), white)))

    def to_luv_lch(self) -> LuvLCh:
        return LuvLCh(*_floats(ColorSpaceEngine.lab_to_lch(_row(self.L, self.u, self.v))))


@dataclass(slots=True, frozen=True)
class LuvLCh:
    """Cylindrical CIELUV: lightness, chroma, hue in degrees."""
    L: float
    C: float
    h: float

    def to_luv(self) -> Luv:
        return Luv(*_floats(ColorSpaceEngine.lch_to_lab(_row(self.L, self.C, self.h))))

    def to_xyz(self, white: ArrayFloat = REF_WHITE_D65) -> XYZ:
        return self.to_luv().to_xyz(white)

    @classmethod
    def from_xyz(cls, xyz: XYZ, white: ArrayFloat = REF_WHITE_D65) -> LuvLCh:
        return Luv.from_xyz(xyz, white).to_luv_lch()


@dataclass(slots=True, frozen=True)
class OkLab:
    """Ottosson's OkLab, L in [0, 1]."""
    L: float
    a: float
    b: float

    def to_xyz(self) -> XYZ:
        return XYZ(*_floats(ColorSpaceEngine.oklab_to_xyz(_row(self.L, self.a, self.b))))

    @classmethod
    def from_xyz(cls, xyz: XYZ) -> OkLab:
        return cls(*_floats(ColorSpaceEngine.xyz_to_oklab(_row(xyz.X, xyz.Y, xyz.Z))))

    def to_oklch(self) -> OkLch:
        return OkLch(*_floats(ColorSpaceEngine.oklab_to_oklch(_row(self.L, self.a, self.b))))


@dataclass(slots=True, frozen=True)
class OkLch:
    """Cylindrical OkLab."""
    L: float
    C: float
    h: float

    def to_oklab(self) -> OkLab:
        return OkLab(*_floats(ColorSpaceEngine.oklch_to_oklab(_row(self.L, self.C, self.h))))

    def to_xyz(self) -> XYZ:
        return self.to_oklab().to_xyz()

    @classmethod
    def from_xyz(cls, xyz: XYZ) -> OkLch:
        return OkLab.from_xyz(xyz).to_oklch()


@dataclass(slots=True, frozen=True)
class HSLuv:
    """
    HSLuv: hue in degrees, saturation and lightness in [0, 1].

    Saturation is LuvLCh chroma relative to the largest displayable chroma
    at the same lightness and hue.
    """
    H: float
    S: float
    L: float

    def to_luv_lch(self) -> LuvLCh:
        # LuvLCh is returned as (L, C, h); HSLuv stores (H, S, L).
        return LuvLCh(*_floats(HSLuvEngine.hsluv_to_luv_lch(_row(self.H, self.S, self.L))))

    def to_xyz(self) -> XYZ:
        return self.to_luv_lch().to_xyz(REF_WHITE_HSLUV_D65)

    def to_srgb(self) -> SRGB:
        """Display color, clamped to [0, 1]."""
        return SRGB(*_floats(HSLuvEngine.hsluv_to_srgb(_row(self.H, self.S, self.L))))

    @classmethod
    def from_xyz(cls, xyz: XYZ) -> HSLuv:
        lch = LuvLCh.from_xyz(xyz, REF_WHITE_HSLUV_D65)
        return cls(*_floats(HSLuvEngine.luv_lch_to_hsluv(_row(lch.L, lch.C, lch.h))))


@dataclass(slots=True, frozen=True)
class HPLuv:
    """
    HPLuv: hue in degrees, saturation and lightness in [0, 1].

    Only pastel colors are representable; vivid colors have S > 1.
    """
    H: float
    S: float
    L: float

    def to_luv_lch(self) -> LuvLCh:
        return LuvLCh(*_floats(HSLuvEngine.hpluv_to_luv_lch(_row(self.H, self.S, self.L))))

    def to_xyz(self) -> XYZ:
        return self.to_luv_lch().to_xyz(REF_WHITE_HSLUV_D65)

    def to_srgb(self) -> SRGB:
        """Display color, clamped to [0, 1]."""
        return SRGB(*_floats(HSLuvEngine.hpluv_to_srgb(_row(self.H, self.S, self.L))))

    @classmethod
    def from_xyz(cls, xyz: XYZ) -> HPLuv:
        lch = LuvLCh.from_xyz(xyz, REF_WHITE_HSLUV_D65)
        return cls(*_floats(HSLuvEngine.luv_lch_to_hpluv(_row(lch.L, lch.C, lch.h))))


# =============================================================================
# 3. DISPLAY-DERIVED VALUES
# =============================================================================

@dataclass(slots=True, frozen=True)
class HSL:
    """Hue (degrees), saturation, lightness on display RGB."""
    H: float
    S: float
    L: float

    def to_srgb(self) -> SRGB:
        return SRGB(*_floats(ColorSpaceEngine.hsl_to_srgb(_row(self.H, self.S, self.L))))

    def to_xyz(self) -> XYZ:
        return self.to_srgb().to_xyz()

    @classmethod
    def from_srgb(cls, rgb: SRGB) -> HSL:
        return cls(*_floats(ColorSpaceEngine.srgb_to_hsl(_row(rgb.r, rgb.g, rgb.b))))

    @classmethod
    def from_xyz(cls, xyz: XYZ) -> HSL:
        return cls.from_srgb(SRGB.from_xyz(xyz))


@dataclass(slots=True, frozen=True)
class HSV:
    """Hue (degrees), saturation, value on display RGB."""
    H: float
    S: float
    V: float

    def to_srgb(self) -> SRGB:
        return SRGB(*_floats(ColorSpaceEngine.hsv_to_srgb(_row(self.H, self.S, self.V))))

    def to_xyz(self) -> XYZ:
        return self.to_srgb().to_xyz()

    @classmethod
    def from_srgb(cls, rgb: SRGB) -> HSV:
        return cls(*_floats(ColorSpaceEngine.srgb_to_hsv(_row(rgb.r, rgb.g, rgb.b))))

    @classmethod
    def from_xyz(cls, xyz: XYZ) -> HSV:
        return cls.from_srgb(SRGB.from_xyz(xyz))


@dataclass(slots=True, frozen=True)
class RGB255:
    """8-bit display color. Channels are clamped to [0, 255] on construction."""
    R: int
    G: int
    B: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "R", min(max(int(self.R), 0), 255))
        object.__setattr__(self, "G", min(max(int(self.G), 0), 255))
        object.__setattr__(self, "B", min(max(int(self.B), 0), 255))

    @classmethod
    def from_packed(cls, value: int) -> RGB255:
        """Unpacks ``0xRRGGBB``."""
        return cls((value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF)

    def to_packed(self) -> int:
        return (self.R << 16) | (self.G << 8) | self.B

    @classmethod
    def from_srgb(cls, rgb: SRGB) -> RGB255:
        """Rounds half up; out-of-range channels clamp and NaN maps to 0."""
        scaled = np.nan_to_num(np.array([rgb.r, rgb.g, rgb.b], dtype=np.float64) * 255.0 + 0.5, nan=0.0)
        return cls(*(int(v) for v in np.floor(np.clip(scaled, 0.0, 255.0))))

    def to_srgb(self) -> SRGB:
        return SRGB(self.R / 255.0, self.G / 255.0, self.B / 255.0)

    def to_xyz(self) -> XYZ:
        return self.to_srgb().to_xyz()

    @classmethod
    def from_xyz(cls, xyz: XYZ) -> RGB255:
        return cls.from_srgb(SRGB.from_xyz(xyz))


Color: TypeAlias = Union[
    SRGB, LinearRGB, XYZ, XyY, Lab, LCh, Luv, LuvLCh,
    OkLab, OkLch, HSLuv, HPLuv, HSL, HSV, RGB255,
]


# =============================================================================
# 4. ACCESSORS
# =============================================================================

def to_array(color: Color) -> ArrayFloat:
    """The three components of ``color`` as a float64 array."""
    return np.array(dataclasses.astuple(color), dtype=np.float64)

def as_xyz(color: Color) -> XYZ:
    return color.to_xyz()

def as_srgb(color: Color) -> SRGB:
    """
    Display sRGB of any color value.

    Display-derived values convert directly; everything else goes through
    the XYZ hub. The result is not clamped.
    """
    to_srgb = getattr(color, "to_srgb", None)
    if to_srgb is not None:
        return to_srgb()
    return SRGB.from_xyz(color.to_xyz())

def as_linear_rgb(color: Color, transfer: TransferFunction = SRGB_EXACT) -> LinearRGB:
    if isinstance(color, LinearRGB):
        return color
    if isinstance(color, SRGB):
        return color.to_linear_rgb(transfer)
    return LinearRGB.from_xyz(color.to_xyz())

def as_xyy(color: Color, white: ArrayFloat = REF_WHITE_D65) -> XyY:
    if isinstance(color, XyY):
        return color
    return XyY.from_xyz(color.to_xyz(), white)

def _to_xyz_under(color: Color, white: ArrayFloat) -> XYZ:
    # Lab-family values carry no white of their own; decode them with the
    # one the caller is converting under.
    if isinstance(color, (Lab, LCh, Luv, LuvLCh)):
        return color.to_xyz(white)
    return color.to_xyz()

def as_lab(color: Color, white: ArrayFloat = REF_WHITE_D65) -> Lab:
    """
    CIELAB of any color value.

    Args:
        color: Any Skein color value.
        white: Reference white (default D65).

    Returns:
        Lab with L in [0, 1].
    """
    if isinstance(color, Lab):
        return color
    if isinstance(color, LCh):
        return color.to_lab()
    return Lab.from_xyz(_to_xyz_under(color, white), white)

def as_lch(color: Color, white: ArrayFloat = REF_WHITE_D65) -> LCh:
    if isinstance(color, LCh):
        return color
    return as_lab(color, white).to_lch()

def as_luv(color: Color, white: ArrayFloat = REF_WHITE_D65) -> Luv:
    if isinstance(color, Luv):
        return color
    if isinstance(color, LuvLCh):
        return color.to_luv()
    return Luv.from_xyz(_to_xyz_under(color, white), white)

def as_luv_lch(color: Color, white: ArrayFloat = REF_WHITE_D65) -> LuvLCh:
    if isinstance(color, LuvLCh):
        return color
    return as_luv(color, white).to_luv_lch()

def as_oklab(color: Color) -> OkLab:
    if isinstance(color, OkLab):
        return color
    if isinstance(color, OkLch):
        return color.to_oklab()
    return OkLab.from_xyz(color.to_xyz())

def as_oklch(color: Color) -> OkLch:
    if isinstance(color, OkLch):
        return color
    return as_oklab(color).to_oklch()

def as_hsluv(color: Color) -> HSLuv:
    if isinstance(color, HSLuv):
        return color
    return HSLuv.from_xyz(color.to_xyz())

def as_hpluv(color: Color) -> HPLuv:
    if isinstance(color, HPLuv):
        return color
    return HPLuv.from_xyz(color.to_xyz())

def as_hsl(color: Color) -> HSL:
    if isinstance(color, HSL):
        return color
    return HSL.from_srgb(as_srgb(color))

def as_hsv(color: Color) -> HSV:
    if isinstance(color, HSV):
        return color
    return HSV.from_srgb(as_srgb(color))

def as_rgb255(color: Color) -> RGB255:
    if isinstance(color, RGB255):
        return color
    return RGB255.from_srgb(as_srgb(color))


# =============================================================================
# 5. TEXT & TERMINAL FORMS
# =============================================================================

def parse_hex(text: str) -> SRGB:
    """
    Parses ``#rgb`` or ``#rrggbb`` (case-insensitive).

    Args:
        text: The hex string, including the leading ``#``.

    Returns:
        The display color. Short form scales by 1/15, long form by 1/255.

    Raises:
        ColorSpaceError: On wrong length, missing ``#`` or a non-hex digit.
    """
    if len(text) not in (4, 7):
        raise ColorSpaceError(f"Input string must be in 3 or 6 digit hex form: {text!r}")
    if text[0] != "#":
        raise ColorSpaceError(f"Input string must start with a #: {text!r}")
    digits = text[1:]
    bad = [ch for ch in digits if ch not in _HEX_DIGITS]
    if bad:
        raise ColorSpaceError(f"Invalid hex digit {bad[0]!r} in {text!r}")

    if len(digits) == 3:
        return SRGB(*(int(ch, 16) / 15.0 for ch in digits))
    return SRGB(*(int(digits[i:i + 2], 16) / 255.0 for i in (0, 2, 4)))

def to_hex(color: Color) -> str:
    """``#rrggbb`` in lowercase, channels rounded half up and clamped; NaN maps to 0."""
    rgb = as_srgb(color)
    scaled = np.nan_to_num(np.array([rgb.r, rgb.g, rgb.b], dtype=np.float64) * 255.0 + 0.5, nan=0.0)
    return "#%02x%02x%02x" % tuple(int(v) for v in np.clip(scaled, 0.0, 255.0))

def ansi_swatch(color: Color) -> str:
    """A one-cell true-color terminal swatch of ``color``."""
    rgb = as_rgb255(color)
    return f"\x1b[48:2::{rgb.R}:{rgb.G}:{rgb.B}m \x1b[49m"

def almost_equal_rgb(c1: Color, c2: Color, delta: float = RGB_DELTA) -> bool:
    """True when the summed display channel difference is below ``3 * delta``."""
    a = as_srgb(c1)
    b = as_srgb(c2)
    return abs(a.r - b.r) + abs(a.g - b.g) + abs(a.b - b.b) < 3.0 * delta


# =============================================================================
# 6. BLENDS
# =============================================================================
# t == 0 yields c1, t == 1 yields c2. Every blend returns display sRGB.

def interp_angle(a0: float, a1: float, t: float) -> float:
    """Interpolates between two hues in degrees along the shorter arc."""
    delta = ((a1 - a0) % 360.0 + 540.0) % 360.0 - 180.0
    return (a0 + t * delta + 360.0) % 360.0

def _lerp3(p: tuple[float, ...], q: tuple[float, ...], t: float) -> tuple[float, float, float]:
    return (p[0] + t * (q[0] - p[0]),
            p[1] + t * (q[1] - p[1]),
            p[2] + t * (q[2] - p[2]))

def blend_rgb(c1: Color, c2: Color, t: float = 0.5) -> SRGB:
    """Blend in display RGB. Darkens midpoints; prefer a perceptual space."""
    a, b = as_srgb(c1), as_srgb(c2)
    return SRGB(*_lerp3((a.r, a.g, a.b), (b.r, b.g, b.b), t))

def blend_linear_rgb(c1: Color, c2: Color, t: float = 0.5) -> SRGB:
    a, b = as_linear_rgb(c1), as_linear_rgb(c2)
    return LinearRGB(*_lerp3((a.r, a.g, a.b), (b.r, b.g, b.b), t)).to_srgb()

def blend_lab(c1: Color, c2: Color, t: float = 0.5) -> SRGB:
    a, b = as_lab(c1), as_lab(c2)
    return as_srgb(Lab(*_lerp3((a.L, a.a, a.b), (b.L, b.a, b.b), t)))

def blend_luv(c1: Color, c2: Color, t: float = 0.5) -> SRGB:
    a, b = as_luv(c1), as_luv(c2)
    return as_srgb(Luv(*_lerp3((a.L, a.u, a.v), (b.L, b.u, b.v), t)))

def blend_oklab(c1: Color, c2: Color, t: float = 0.5) -> SRGB:
    a, b = as_oklab(c1), as_oklab(c2)
    return as_srgb(OkLab(*_lerp3((a.L, a.a, a.b), (b.L, b.a, b.b), t)))

def blend_hsv(c1: Color, c2: Color, t: float = 0.5) -> SRGB:
    """Blend in HSV. An achromatic endpoint adopts the other one's hue."""
    a, b = as_hsv(c1), as_hsv(c2)
    h1, h2 = a.H, b.H
    if a.S == 0.0 and b.S != 0.0:
        h1 = h2
    elif b.S == 0.0 and a.S != 0.0:
        h2 = h1
    return HSV(interp_angle(h1, h2, t), a.S + t * (b.S - a.S), a.V + t * (b.V - a.V)).to_srgb()

def blend_lch(c1: Color, c2: Color, t: float = 0.5) -> SRGB:
    """
    Blend in CIE LCh (HCL); usually the smoothest of the blends.

    A near-achromatic endpoint adopts the other one's hue. The result is
    clamped to the display gamut.
    """
    a, b = as_lch(c1), as_lch(c2)
    h1, h2 = a.h, b.h
    if a.C <= _LCH_ACHROMATIC and b.C >= _LCH_ACHROMATIC:
        h1 = h2
    elif b.C <= _LCH_ACHROMATIC and a.C >= _LCH_ACHROMATIC:
        h2 = h1
    mixed = LCh(a.L + t * (b.L - a.L), a.C + t * (b.C - a.C), interp_angle(h1, h2, t))
    return as_srgb(mixed).clamped()

def blend_luv_lch(c1: Color, c2: Color, t: float = 0.5) -> SRGB:
    a, b = as_luv_lch(c1), as_luv_lch(c2)
    return as_srgb(LuvLCh(a.L + t * (b.L - a.L), a.C + t * (b.C - a.C), interp_angle(a.h, b.h, t)))

def blend_oklch(c1: Color, c2: Color, t: float = 0.5) -> SRGB:
    a, b = as_oklch(c1), as_oklch(c2)
    return as_srgb(OkLch(a.L + t * (b.L - a.L), a.C + t * (b.C - a.C), interp_angle(a.h, b.h, t)))
