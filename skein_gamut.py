# -*- coding: utf-8 -*-
"""
Skein: Spinning perceptual order out of color
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

sRGB Gamut Boundary & HSLuv / HPLuv
===================================
The sRGB gamut, seen in the CIELUV chroma plane at a fixed lightness, is a
hexagon bounded by six straight lines (one per RGB channel hitting 0 or 1).
This module derives those lines and uses them to express LuvLCh chroma as
a fraction of what is displayable:

    - HSLuv: saturation = C / max chroma at (L, h). Every hue reaches
      S = 1 at the gamut boundary.
    - HPLuv: saturation = C / largest chroma safe for *all* hues at L.
      Only pastel colors fit; saturated colors exceed S = 1.

Both spaces sit on LuvLCh computed against ``REF_WHITE_HSLUV_D65``.
Lightness is handled on the 0..100 scale inside the boundary math and on
0..1 everywhere else.

References:
    - Boronine, A. "HSLuv: Human-friendly HSL", https://www.hsluv.org
"""

import numpy as np
from numba import njit
from typing import Final

from skein_colorengine import (
    ArrayFloat,
    ColorSpaceEngine,
    GamutMapping,
    M_XYZ_TO_LINEAR,
    REF_WHITE_HSLUV_D65,
    handle_shapes,
)

__all__ = [
    "HSLUV_KAPPA",
    "HSLUV_EPSILON",
    "hsluv_bounds",
    "max_chroma_for_lh",
    "max_safe_chroma_for_l",
    "HSLuvEngine",
]

# CIE constants as used by the reference HSLuv implementation.
HSLUV_KAPPA: Final[float] = 903.2962962962963
HSLUV_EPSILON: Final[float] = 0.0088564516790356308

# Lightness outside (1e-8, 99.9999999) has no chroma to speak of.
_L_MAX: Final[float] = 99.9999999
_L_MIN: Final[float] = 0.00000001
# Finite stand-in for "no edge found yet"; fastmath kernels assume no infinities.
_FAR: Final[float] = 1e300

# Writable copy: numba freezes global arrays as compile-time constants.
_M_XYZ_TO_LINEAR: Final[ArrayFloat] = np.array(M_XYZ_TO_LINEAR, dtype=np.float64)


# =============================================================================
# 1. BOUNDARY KERNELS
# =============================================================================

@njit(cache=True, fastmath=True, error_model="numpy")
def _bounds_kernel(l: float) -> ArrayFloat:
    """
    The six gamut edge lines at lightness ``l`` (0..100 scale).

    Row ``2*i + k`` is the line where linear RGB channel ``i`` equals ``k``,
    stored as (slope, intercept) in the (u, v) chroma plane.
    """
    out = np.empty((6, 2), dtype=np.float64)
    sub1 = (l + 16.0) ** 3 / 1560896.0
    if sub1 > HSLUV_EPSILON:
        sub2 = sub1
    else:
        sub2 = l / HSLUV_KAPPA

    for i in range(3):
        m0 = _M_XYZ_TO_LINEAR[i, 0]
        m1 = _M_XYZ_TO_LINEAR[i, 1]
        m2 = _M_XYZ_TO_LINEAR[i, 2]
        for k in range(2):
            top1 = (284517.0 * m0 - 94839.0 * m2) * sub2
            top2 = (838422.0 * m2 + 769860.0 * m1 + 731718.0 * m0) * l * sub2 - 769860.0 * k * l
            bottom = (632260.0 * m2 - 126452.0 * m1) * sub2 + 126452.0 * k
            out[2 * i + k, 0] = top1 / bottom
            out[2 * i + k, 1] = top2 / bottom
    return out

@njit(cache=True, fastmath=True, error_model="numpy")
def _max_chroma_kernel(l: float, h: float) -> float:
    """Shortest positive ray from the pole at hue ``h`` to any gamut edge."""
    h_rad = h / 360.0 * np.pi * 2.0
    sin_h = np.sin(h_rad)
    cos_h = np.cos(h_rad)
    bounds = _bounds_kernel(l)

    min_length = _FAR
    for j in range(6):
        slope = bounds[j, 0]
        intercept = bounds[j, 1]
        length = intercept / (sin_h - slope * cos_h)
        if length > 0.0 and length < min_length:
            min_length = length
    return min_length

@njit(cache=True, fastmath=True, error_model="numpy")
def _max_safe_chroma_kernel(l: float) -> float:
    """Distance from the pole to the nearest gamut edge (any hue)."""
    bounds = _bounds_kernel(l)

    min_length = _FAR
    for j in range(6):
        slope = bounds[j, 0]
        intercept = bounds[j, 1]
        # Foot of the perpendicular dropped from the pole onto the edge.
        x = intercept / (-1.0 / slope - slope)
        y = intercept + x * slope
        dist = np.sqrt(x * x + y * y)
        if dist < min_length:
            min_length = dist
    return min_length

@njit(cache=True, fastmath=True, error_model="numpy")
def _lch_to_hsluv_kernel(lch: ArrayFloat, pastel: bool) -> ArrayFloat:
    """LuvLCh (0..1) -> HSLuv or HPLuv (H, S, L), 0..1 for S and L."""
    n = lch.shape[0]
    out = np.empty_like(lch)

    for i in range(n):
        l = lch[i, 0] * 100.0
        c = lch[i, 1] * 100.0
        h = lch[i, 2]
        if l > _L_MAX or l < _L_MIN:
            s = 0.0
        elif pastel:
            s = c / _max_safe_chroma_kernel(l) * 100.0
        else:
            s = c / _max_chroma_kernel(l, h) * 100.0

        out[i, 0] = h
        if pastel:
            out[i, 1] = s / 100.0
            out[i, 2] = l / 100.0
        else:
            out[i, 1] = min(max(s / 100.0, 0.0), 1.0)
            out[i, 2] = min(max(l / 100.0, 0.0), 1.0)
    return out

@njit(cache=True, fastmath=True, error_model="numpy")
def _hsluv_to_lch_kernel(hsl: ArrayFloat, pastel: bool) -> ArrayFloat:
    """HSLuv or HPLuv (H, S, L) -> LuvLCh (L, C, h) on the 0..1 scale."""
    n = hsl.shape[0]
    out = np.empty_like(hsl)

    for i in range(n):
        h = hsl[i, 0]
        s = hsl[i, 1] * 100.0
        l = hsl[i, 2] * 100.0
        if l > _L_MAX or l < _L_MIN:
            c = 0.0
        elif pastel:
            c = _max_safe_chroma_kernel(l) / 100.0 * s
        else:
            c = _max_chroma_kernel(l, h) / 100.0 * s

        if pastel:
            out[i, 0] = l / 100.0
        else:
            out[i, 0] = min(max(l / 100.0, 0.0), 1.0)
        out[i, 1] = c / 100.0
        out[i, 2] = h
    return out


# =============================================================================
# 2. SCALAR API
# =============================================================================

def hsluv_bounds(l: float) -> ArrayFloat:
    """
    Returns the six (slope, intercept) gamut edge lines at lightness ``l``.

    Args:
        l: Lightness on the 0..100 scale.

    Returns:
        Array of shape (6, 2).
    """
    return _bounds_kernel(float(l))

def max_chroma_for_lh(l: float, h: float) -> float:
    """
    Largest displayable Luv chroma at lightness ``l`` and hue ``h``.

    Args:
        l: Lightness on the 0..100 scale.
        h: Hue in degrees.

    Returns:
        Chroma on the 0..100 scale.
    """
    return float(_max_chroma_kernel(float(l), float(h)))

def max_safe_chroma_for_l(l: float) -> float:
    """Largest Luv chroma (0..100 scale) displayable at every hue for ``l``."""
    return float(_max_safe_chroma_kernel(float(l)))


# =============================================================================
# 3. ARRAY ENGINE
# =============================================================================

class HSLuvEngine:
    """Array conversions between display sRGB, LuvLCh and HSLuv / HPLuv.

    The sRGB-bound methods go through XYZ and Luv against
    ``REF_WHITE_HSLUV_D65``. Conversions towards sRGB clamp their output,
    since HSLuv and HPLuv only describe displayable colors.
    """

    @staticmethod
    @handle_shapes
    def luv_lch_to_hsluv(lch_array: ArrayFloat) -> ArrayFloat:
        """LuvLCh -> HSLuv. S and L are clamped to [0, 1]."""
        return _lch_to_hsluv_kernel(lch_array, False)

    @staticmethod
    @handle_shapes
    def hsluv_to_luv_lch(hsluv_array: ArrayFloat) -> ArrayFloat:
        """HSLuv -> LuvLCh."""
        return _hsluv_to_lch_kernel(hsluv_array, False)

    @staticmethod
    @handle_shapes
    def luv_lch_to_hpluv(lch_array: ArrayFloat) -> ArrayFloat:
        """LuvLCh -> HPLuv. Saturation may exceed 1 for vivid colors."""
        return _lch_to_hsluv_kernel(lch_array, True)

    @staticmethod
    @handle_shapes
    def hpluv_to_luv_lch(hpluv_array: ArrayFloat) -> ArrayFloat:
        """HPLuv -> LuvLCh."""
        return _hsluv_to_lch_kernel(hpluv_array, True)

    @staticmethod
    def _srgb_to_luv_lch_raw(rgb_array: ArrayFloat) -> ArrayFloat:
        xyz = ColorSpaceEngine._srgb_to_xyz_raw(rgb_array)
        luv = ColorSpaceEngine._xyz_to_luv_raw(xyz, REF_WHITE_HSLUV_D65)
        return ColorSpaceEngine.lab_to_lch(luv)

    @staticmethod
    def _luv_lch_to_srgb_raw(lch_array: ArrayFloat) -> ArrayFloat:
        luv = ColorSpaceEngine.lch_to_lab(lch_array)
        xyz = ColorSpaceEngine._luv_to_xyz_raw(luv, REF_WHITE_HSLUV_D65)
        return GamutMapping.clip_absolute(ColorSpaceEngine._xyz_to_srgb_raw(xyz))

    @staticmethod
    @handle_shapes
    def srgb_to_hsluv(rgb_array: ArrayFloat) -> ArrayFloat:
        """
        Display sRGB -> HSLuv.

        Args:
            rgb_array: Display RGB, shape (N, 3) or (3,).

        Returns:
            (H, S, L) with H in degrees and S, L in [0, 1].
        """
        return _lch_to_hsluv_kernel(HSLuvEngine._srgb_to_luv_lch_raw(rgb_array), False)

    @staticmethod
    @handle_shapes
    def hsluv_to_srgb(hsluv_array: ArrayFloat) -> ArrayFloat:
        """HSLuv -> display sRGB, clamped to [0, 1]."""
        return HSLuvEngine._luv_lch_to_srgb_raw(_hsluv_to_lch_kernel(hsluv_array, False))

    @staticmethod
    @handle_shapes
    def srgb_to_hpluv(rgb_array: ArrayFloat) -> ArrayFloat:
        """Display sRGB -> HPLuv (saturation unclamped)."""
        return _lch_to_hsluv_kernel(HSLuvEngine._srgb_to_luv_lch_raw(rgb_array), True)

    @staticmethod
    @handle_shapes
    def hpluv_to_srgb(hpluv_array: ArrayFloat) -> ArrayFloat:
        """HPLuv -> display sRGB, clamped to [0, 1]."""
        return HSLuvEngine._luv_lch_to_srgb_raw(_hsluv_to_lch_kernel(hpluv_array, True))


# =============================================================================
# Validation Block
# =============================================================================
if __name__ == "__main__":
    print("--- Skein HSLuv Validation ---")

    print("1. Red on the gamut boundary...")
    red = HSLuvEngine.srgb_to_hsluv(np.array([1.0, 0.0, 0.0]))
    print(f"   HSLuv(red) = {red} {'[PASS]' if abs(red[1] - 1.0) < 1e-6 else '[FAIL]'}")

    print("2. Round-trip on random colors...")
    rgb = np.random.default_rng(3).random((1000, 3))
    back = HSLuvEngine.hsluv_to_srgb(HSLuvEngine.srgb_to_hsluv(rgb))
    err = np.max(np.abs(rgb - back))
    print(f"   Max Error: {err:.2e} {'[PASS]' if err < 1e-8 else '[FAIL]'}")

    print("3. Safe chroma never exceeds hue-specific chroma...")
    ok = all(max_safe_chroma_for_l(l) <= max_chroma_for_lh(l, h) + 1e-9
             for l in (10.0, 50.0, 90.0) for h in range(0, 360, 15))
    print(f"   {'[PASS]' if ok else '[FAIL]'}")

    print("--- Validation Complete ---")
