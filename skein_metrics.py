# -*- coding: utf-8 -*-
"""
Skein: Spinning perceptual order out of color
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Color Difference Metrics
========================
Two layers over the same Numba kernels:

1. ``ColorMetrics``: array API on Lab arrays of shape (N, 3) or (3,) with
   1-vs-N broadcasting, parallelized with ``prange``.
2. ``distance_*`` functions: take any two Skein color values, convert them
   into the metric's working space and return a float.

Lab values use the Skein scale (L in [0, 1]). CIE94 and CIEDE2000 scale the
components by 100 internally and scale the result back by 0.01, so every
Lab-based distance lives on the same scale as ``distance_lab``.

Note: CIE94 weights by the *reference* (first) color and is therefore not
symmetric. Neither CIE94 nor CIEDE2000 satisfies the triangle inequality.
"""

from __future__ import annotations

import numpy as np
from numba import njit, float64, prange
from typing import Final, Tuple

from skein_colorengine import ArrayFloat, DEG2RAD, RAD2DEG
from skein_colors import (
    Color,
    as_hpluv,
    as_hsluv,
    as_lab,
    as_linear_rgb,
    as_luv,
    as_oklab,
    as_srgb,
)

__all__ = [
    "ColorMetrics",
    "distance_rgb",
    "distance_linear_rgb",
    "distance_lab",
    "distance_cie76",
    "distance_luv",
    "distance_oklab",
    "distance_hsluv",
    "distance_hpluv",
    "distance_riemersma",
    "distance_cie94",
    "distance_ciede2000",
    "distance_ciede2000_klch",
]

C25_7: Final[float] = 25.0**7
# CIE94 graphic-arts constants (textiles: K1 = 0.048, K2 = 0.014).
CIE94_K1: Final[float] = 0.045
CIE94_K2: Final[float] = 0.015


# =============================================================================
# 1. SCALAR KERNELS
# =============================================================================

@njit(float64(float64, float64, float64, float64, float64, float64, float64, float64, float64), cache=True, fastmath=True)
def _delta_e_2000_single(L1: float, a1: float, b1: float, L2: float, a2: float, b2: float, k_L: float, k_C: float, k_H: float) -> float:
    """Single-pair CIEDE2000 on the Skein Lab scale."""
    L1 *= 100.0; a1 *= 100.0; b1 *= 100.0
    L2 *= 100.0; a2 *= 100.0; b2 *= 100.0

    C1 = np.sqrt(a1 * a1 + b1 * b1)
    C2 = np.sqrt(a2 * a2 + b2 * b2)
    C_bar = (C1 + C2) * 0.5
    C_bar_7 = C_bar**7
    G = 0.5 * (1.0 - np.sqrt(C_bar_7 / (C_bar_7 + C25_7)))
    a1_p = (1.0 + G) * a1
    a2_p = (1.0 + G) * a2
    C1_p = np.sqrt(a1_p * a1_p + b1 * b1)
    C2_p = np.sqrt(a2_p * a2_p + b2 * b2)

    # Hue is 0 only when both a' and b are exactly zero.
    h1_p = 0.0
    if b1 != a1_p or a1_p != 0.0:
        h1_p = np.arctan2(b1, a1_p)
        if h1_p < 0.0:
            h1_p += 2.0 * np.pi
        h1_p *= RAD2DEG
    h2_p = 0.0
    if b2 != a2_p or a2_p != 0.0:
        h2_p = np.arctan2(b2, a2_p)
        if h2_p < 0.0:
            h2_p += 2.0 * np.pi
        h2_p *= RAD2DEG

    dL_p = L2 - L1
    dC_p = C2_p - C1_p
    cp_product = C1_p * C2_p
    dh_p = 0.0
    if cp_product != 0.0:
        dh_p = h2_p - h1_p
        if dh_p > 180.0:
            dh_p -= 360.0
        elif dh_p < -180.0:
            dh_p += 360.0
    dH_p = 2.0 * np.sqrt(cp_product) * np.sin(dh_p * 0.5 * DEG2RAD)

    L_bar_p = (L1 + L2) * 0.5
    C_bar_p = (C1_p + C2_p) * 0.5
    h_bar_p = h1_p + h2_p
    if cp_product != 0.0:
        h_bar_p *= 0.5
        if abs(h1_p - h2_p) > 180.0:
            if h1_p + h2_p < 360.0:
                h_bar_p += 180.0
            else:
                h_bar_p -= 180.0

    T = 1.0 - 0.17 * np.cos((h_bar_p - 30.0) * DEG2RAD) + \
        0.24 * np.cos((2.0 * h_bar_p) * DEG2RAD) + \
        0.32 * np.cos((3.0 * h_bar_p + 6.0) * DEG2RAD) - \
        0.20 * np.cos((4.0 * h_bar_p - 63.0) * DEG2RAD)
    d_theta = 30.0 * np.exp(-((h_bar_p - 275.0) / 25.0)**2)
    C_bar_p_7 = C_bar_p**7
    RC = 2.0 * np.sqrt(C_bar_p_7 / (C_bar_p_7 + C25_7))
    L_term = (L_bar_p - 50.0)**2
    SL = 1.0 + (0.015 * L_term) / np.sqrt(20.0 + L_term)
    SC = 1.0 + 0.045 * C_bar_p
    SH = 1.0 + 0.015 * C_bar_p * T
    RT = -np.sin((2.0 * d_theta) * DEG2RAD) * RC

    tL = dL_p / (k_L * SL)
    tC = dC_p / (k_C * SC)
    tH = dH_p / (k_H * SH)
    return np.sqrt(tL * tL + tC * tC + tH * tH + RT * tC * tH) * 0.01

@njit(float64(float64, float64, float64, float64, float64, float64), cache=True, fastmath=True)
def _delta_e_94_single(L1: float, a1: float, b1: float, L2: float, a2: float, b2: float) -> float:
    """Single-pair CIE94, weighted by the first color."""
    L1 *= 100.0; a1 *= 100.0; b1 *= 100.0
    L2 *= 100.0; a2 *= 100.0; b2 *= 100.0

    dL = L1 - L2
    C1 = np.sqrt(a1 * a1 + b1 * b1)
    C2 = np.sqrt(a2 * a2 + b2 * b2)
    dC = C1 - C2
    da = a1 - a2
    db = b1 - b2
    # dH² = da² + db² - dC² can dip below zero from rounding alone.
    dH_sq = da * da + db * db - dC * dC
    if dH_sq < 0.0:
        dH_sq = 0.0

    SC = 1.0 + CIE94_K1 * C1
    SH = 1.0 + CIE94_K2 * C1
    term_C = dC / SC
    return np.sqrt(dL * dL + term_C * term_C + dH_sq / (SH * SH)) * 0.01

@njit(float64(float64, float64, float64, float64, float64, float64), cache=True, fastmath=True)
def _euclid3(x1: float, y1: float, z1: float, x2: float, y2: float, z2: float) -> float:
    dx = x1 - x2
    dy = y1 - y2
    dz = z1 - z2
    return np.sqrt(dx * dx + dy * dy + dz * dz)


# =============================================================================
# 2. BATCH KERNELS
# =============================================================================

@njit(cache=True, fastmath=True, parallel=True)
def _batch_delta_e_2000(lab1: ArrayFloat, lab2: ArrayFloat, k_L: float, k_C: float, k_H: float) -> ArrayFloat:
    n = len(lab1)
    res = np.empty(n, dtype=np.float64)
    for i in prange(n):
        res[i] = _delta_e_2000_single(lab1[i, 0], lab1[i, 1], lab1[i, 2], lab2[i, 0], lab2[i, 1], lab2[i, 2], k_L, k_C, k_H)
    return res

@njit(cache=True, fastmath=True, parallel=True)
def _batch_delta_e_94(lab1: ArrayFloat, lab2: ArrayFloat) -> ArrayFloat:
    n = len(lab1)
    res = np.empty(n, dtype=np.float64)
    for i in prange(n):
        res[i] = _delta_e_94_single(lab1[i, 0], lab1[i, 1], lab1[i, 2], lab2[i, 0], lab2[i, 1], lab2[i, 2])
    return res

@njit(cache=True, fastmath=True, parallel=True)
def _batch_delta_e_76(lab1: ArrayFloat, lab2: ArrayFloat) -> ArrayFloat:
    n = len(lab1)
    res = np.empty(n, dtype=np.float64)
    for i in prange(n):
        res[i] = _euclid3(lab1[i, 0], lab1[i, 1], lab1[i, 2], lab2[i, 0], lab2[i, 1], lab2[i, 2])
    return res

@njit(cache=True, fastmath=True, parallel=True)
def _condensed_delta_e_2000(lab: ArrayFloat, k_L: float, k_C: float, k_H: float) -> ArrayFloat:
    """
    All pairwise CIEDE2000 values as a condensed vector.

    Pair (i, j) with i < j sits at ``i*n - i*(i+1)/2 + (j - i - 1)``, the
    row-major enumeration order of the upper triangle.
    """
    n = len(lab)
    res = np.empty(n * (n - 1) // 2, dtype=np.float64)
    for i in prange(n):
        base = i * n - i * (i + 1) // 2
        for j in range(i + 1, n):
            res[base + j - i - 1] = _delta_e_2000_single(
                lab[i, 0], lab[i, 1], lab[i, 2], lab[j, 0], lab[j, 1], lab[j, 2], k_L, k_C, k_H
            )
    return res


# =============================================================================
# 3. ARRAY API
# =============================================================================

class ColorMetrics:
    """Color differences between Lab arrays (Skein scale, L in [0, 1])."""

    @staticmethod
    def _prepare_inputs(lab1: ArrayFloat, lab2: ArrayFloat) -> Tuple[ArrayFloat, ArrayFloat]:
        """
        Broadcasting helper.

        A single row on either side is repeated to match the other side.
        ``broadcast_to`` views are materialized so the ``prange`` kernels
        always see dense C-contiguous memory.
        """
        l1 = np.ascontiguousarray(np.atleast_2d(np.asarray(lab1, dtype=np.float64)))
        l2 = np.ascontiguousarray(np.atleast_2d(np.asarray(lab2, dtype=np.float64)))

        if l1.ndim != 2 or l2.ndim != 2 or l1.shape[-1] != 3 or l2.shape[-1] != 3:
            raise ValueError(f"Inputs must have shape (N, 3), got {l1.shape} and {l2.shape}")

        if l1.shape[0] != l2.shape[0]:
            if l1.shape[0] == 1: l1 = np.ascontiguousarray(np.broadcast_to(l1, l2.shape))
            elif l2.shape[0] == 1: l2 = np.ascontiguousarray(np.broadcast_to(l2, l1.shape))
            else: raise ValueError(f"Shapes {l1.shape} and {l2.shape} are not broadcastable.")
        return l1, l2

    @staticmethod
    def _unwrap(res: ArrayFloat, lab1: ArrayFloat, lab2: ArrayFloat) -> ArrayFloat:
        if np.ndim(lab1) == 1 and np.ndim(lab2) == 1:
            return res[0]
        return res

    @staticmethod
    def delta_E_76(lab1: ArrayFloat, lab2: ArrayFloat) -> ArrayFloat:
        """
        CIE 1976 Delta E (Euclidean distance in Lab).

        Args:
            lab1: Reference colors, shape (N, 3) or (3,).
            lab2: Sample colors, shape (N, 3) or (3,).
        """
        l1, l2 = ColorMetrics._prepare_inputs(lab1, lab2)
        return ColorMetrics._unwrap(_batch_delta_e_76(l1, l2), lab1, lab2)

    @staticmethod
    def delta_E_94(lab1: ArrayFloat, lab2: ArrayFloat) -> ArrayFloat:
        """
        CIE 1994 Delta E, graphic-arts weights.

        The weighting functions use the *reference* sample (lab1), making
        the result asymmetric: delta_E_94(a, b) != delta_E_94(b, a).
        """
        l1, l2 = ColorMetrics._prepare_inputs(lab1, lab2)
        return ColorMetrics._unwrap(_batch_delta_e_94(l1, l2), lab1, lab2)

    @staticmethod
    def delta_E_2000(lab1: ArrayFloat, lab2: ArrayFloat,
                     k_L: float = 1.0, k_C: float = 1.0, k_H: float = 1.0) -> ArrayFloat:
        """
        CIEDE2000 color difference.

        Args:
            lab1: Reference colors, shape (N, 3) or (3,).
            lab2: Sample colors, shape (N, 3) or (3,).
            k_L: Parametric lightness weight (default 1.0).
            k_C: Parametric chroma weight (default 1.0).
            k_H: Parametric hue weight (default 1.0).

        Returns:
            Delta E values. Supports broadcasting (e.g., 1 vs N).
        """
        l1, l2 = ColorMetrics._prepare_inputs(lab1, lab2)
        return ColorMetrics._unwrap(_batch_delta_e_2000(l1, l2, k_L, k_C, k_H), lab1, lab2)

    @staticmethod
    def condensed_delta_E_2000(lab: ArrayFloat,
                               k_L: float = 1.0, k_C: float = 1.0, k_H: float = 1.0) -> ArrayFloat:
        """
        Pairwise CIEDE2000 over one set of colors.

        Args:
            lab: Lab colors, shape (N, 3).

        Returns:
            Condensed vector of length N*(N-1)/2, pairs (i, j) with i < j in
            row-major order (the ``scipy.spatial.distance.pdist`` layout).
        """
        arr = np.ascontiguousarray(np.atleast_2d(np.asarray(lab, dtype=np.float64)))
        if arr.ndim != 2 or arr.shape[-1] != 3:
            raise ValueError(f"Expected shape (N, 3), got {arr.shape}")
        if len(arr) < 2:
            return np.empty(0, dtype=np.float64)
        return _condensed_delta_e_2000(arr, k_L, k_C, k_H)


# =============================================================================
# 4. COLOR-LEVEL DISTANCES
# =============================================================================

def distance_rgb(c1: Color, c2: Color) -> float:
    """Euclidean distance in display RGB. Not perceptually meaningful."""
    a, b = as_srgb(c1), as_srgb(c2)
    return float(_euclid3(a.r, a.g, a.b, b.r, b.g, b.b))

def distance_linear_rgb(c1: Color, c2: Color) -> float:
    """Euclidean distance in linear RGB; useful for dithering, not perception."""
    a, b = as_linear_rgb(c1), as_linear_rgb(c2)
    return float(_euclid3(a.r, a.g, a.b, b.r, b.g, b.b))

def distance_lab(c1: Color, c2: Color) -> float:
    """Euclidean distance in CIELAB (D65)."""
    a, b = as_lab(c1), as_lab(c2)
    return float(_euclid3(a.L, a.a, a.b, b.L, b.a, b.b))

distance_cie76 = distance_lab

def distance_luv(c1: Color, c2: Color) -> float:
    a, b = as_luv(c1), as_luv(c2)
    return float(_euclid3(a.L, a.u, a.v, b.L, b.u, b.v))

def distance_oklab(c1: Color, c2: Color) -> float:
    a, b = as_oklab(c1), as_oklab(c2)
    return float(_euclid3(a.L, a.a, a.b, b.L, b.a, b.b))

def distance_hsluv(c1: Color, c2: Color) -> float:
    """Euclidean distance in HSLuv with hue divided by 100."""
    a, b = as_hsluv(c1), as_hsluv(c2)
    return float(_euclid3(a.H / 100.0, a.S, a.L, b.H / 100.0, b.S, b.L))

def distance_hpluv(c1: Color, c2: Color) -> float:
    """Euclidean distance in HPLuv with hue divided by 100."""
    a, b = as_hpluv(c1), as_hpluv(c2)
    return float(_euclid3(a.H / 100.0, a.S, a.L, b.H / 100.0, b.S, b.L))

def distance_riemersma(c1: Color, c2: Color) -> float:
    """
    Thiadmer Riemersma's weighted RGB distance.

    Works on display RGB directly; the red mean shifts weight between the
    red and blue deltas, which tracks CIELUV distances reasonably well.

    References:
        https://www.compuphase.com/cmetric.htm
    """
    a, b = as_srgb(c1), as_srgb(c2)
    r_mean = (a.r + b.r) * 0.5
    dR = a.r - b.r
    dG = a.g - b.g
    dB = a.b - b.b
    return float(np.sqrt((2.0 + r_mean) * dR * dR + 4.0 * dG * dG + (3.0 - r_mean) * dB * dB))

def distance_cie94(c1: Color, c2: Color) -> float:
    """CIE94 with ``c1`` as the reference color."""
    a, b = as_lab(c1), as_lab(c2)
    return float(_delta_e_94_single(a.L, a.a, a.b, b.L, b.a, b.b))

def distance_ciede2000_klch(c1: Color, c2: Color, kL: float = 1.0, kC: float = 1.0, kH: float = 1.0) -> float:
    """
    CIEDE2000 with custom parametric weights.

    Args:
        c1: First color.
        c2: Second color.
        kL: Lightness weight.
        kC: Chroma weight.
        kH: Hue weight.

    Returns:
        The color difference on the Skein Lab scale.
    """
    a, b = as_lab(c1), as_lab(c2)
    return float(_delta_e_2000_single(a.L, a.a, a.b, b.L, b.a, b.b, float(kL), float(kC), float(kH)))

def distance_ciede2000(c1: Color, c2: Color) -> float:
    """CIEDE2000 with kL = kC = kH = 1. The most accurate metric here."""
    return distance_ciede2000_klch(c1, c2, 1.0, 1.0, 1.0)


# =============================================================================
# Validation Block
# =============================================================================
if __name__ == "__main__":
    from skein_colors import Lab, SRGB

    print("--- Skein Metrics Validation ---")

    print("1. Reference pair (white vs. near-white Lab)...")
    w = Lab(1.0, 0.0, 0.0)
    c = Lab(0.931390, -0.353319, -0.108946)
    for name, fn, ref in (("CIE76", distance_cie76, 0.37604638),
                          ("CIE94", distance_cie94, 0.37604638),
                          ("CIEDE2000", distance_ciede2000, 0.23528129)):
        d = fn(w, c)
        print(f"   {name}: {d:.8f} {'[PASS]' if abs(d - ref) < 1e-6 else '[FAIL]'}")

    print("2. Identity...")
    red = SRGB(1.0, 0.0, 0.0)
    print(f"   {'[PASS]' if distance_ciede2000(red, red) == 0.0 else '[FAIL]'}")

    print("3. Array API agrees with scalar path...")
    rng = np.random.default_rng(11)
    lab1 = rng.uniform(-0.5, 0.5, (500, 3)) + np.array([0.5, 0.0, 0.0])
    lab2 = rng.uniform(-0.5, 0.5, (500, 3)) + np.array([0.5, 0.0, 0.0])
    batch = ColorMetrics.delta_E_2000(lab1, lab2)
    scalar = np.array([distance_ciede2000(Lab(*p), Lab(*q)) for p, q in zip(lab1, lab2)])
    err = np.max(np.abs(batch - scalar))
    print(f"   Max diff: {err:.2e} {'[PASS]' if err < 1e-12 else '[FAIL]'}")

    print("--- Validation Complete ---")
