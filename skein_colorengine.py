# -*- coding: utf-8 -*-
"""
Skein: Spinning perceptual order out of color
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Hub Color Engine
================
Array-level conversion core. Every representation in Skein is reached from
two hub forms: linear RGB and CIE XYZ. Display sRGB enters the hub through a
pluggable transfer function, perceptual spaces leave it through their own
adapters.

Scale conventions:
    - sRGB / linear RGB: [0, 1] per channel.
    - Lab / Luv / LCh: lightness in [0, 1], opponent axes roughly [-1, 1]
      (the CIE values divided by 100).
    - Hue angles: degrees in [0, 360).

Nothing in this module clamps. Out-of-gamut values flow through every
transform unchanged; ``GamutMapping`` is the only place where values are
tested or clipped.

Design notes:
    - Public methods accept (3,) or (N, 3) and return the same rank via
      ``handle_shapes``. Internal ``_raw`` methods assume validated (N, 3)
      float64 and are chained by the convenience pipelines.
    - ``set_strict_ieee(True)`` swaps the transfer kernels to
      ``fastmath=False`` variants.
    - The linear RGB <-> XYZ matrices are the exact double-precision sRGB
      primaries, so hex values survive sRGB -> XYZ -> sRGB unchanged.

References:
    - IEC 61966-2-1:1999 (sRGB Standard)
    - CIE 15:2004 "Colorimetry"
    - Ottosson, B. (2020). "A perceptual color space for image processing".
"""

import functools
import numpy as np
import numpy.typing as npt
from numba import njit
from typing import Final, TypeAlias, Callable, NamedTuple, Any

__all__ = [
    # --- Type Aliases ---
    "ArrayFloat",

    # --- Constants ---
    "REF_WHITE_D65",
    "REF_WHITE_D50",
    "REF_WHITE_HSLUV_D65",
    "LAB_EPSILON",
    "LAB_DELTA",
    "HUE_ZERO_GUARD",
    "DEG2RAD",
    "RAD2DEG",

    # --- Configuration ---
    "set_strict_ieee",

    # --- Matrices ---
    "M_LINEAR_TO_XYZ",
    "M_XYZ_TO_LINEAR",
    "M_LINEAR_TO_XYZ_T",
    "M_XYZ_TO_LINEAR_T",
    "M1_XYZ_TO_LMS_OKLAB_T",
    "M1_LMS_TO_XYZ_OKLAB_T",
    "M2_LMS_TO_LAB_OKLAB_T",
    "M2_LAB_TO_LMS_OKLAB_T",

    # --- Transfer functions ---
    "TransferFunction",
    "SRGB_EXACT",
    "SRGB_FAST",

    # --- Decorators ---
    "handle_shapes",

    # --- Classes ---
    "ColorSpaceEngine",
    "GamutMapping",
]

# --- Type Aliases ---
# Kernels compile to float64; other float dtypes are cast on entry.
ArrayFloat: TypeAlias = npt.NDArray[np.floating]


def _frozen(values: list) -> ArrayFloat:
    """Builds a read-only float64 constant array."""
    arr = np.array(values, dtype=np.float64)
    arr.flags.writeable = False
    return arr


# --- Reference Whites (Y = 1.0) ---
# D65: average daylight, the default for every conversion.
REF_WHITE_D65: Final[ArrayFloat] = _frozen([0.95047, 1.00000, 1.08883])
# D50: horizon daylight, the ICC print white.
REF_WHITE_D50: Final[ArrayFloat] = _frozen([0.96422, 1.00000, 0.82521])
# D65 as derived from the sRGB primaries; HSLuv gamut bounds are built on it.
REF_WHITE_HSLUV_D65: Final[ArrayFloat] = _frozen([0.95045592705167, 1.0, 1.089057750759878])

# --- Hub Matrices ---
# Full double-precision sRGB primaries (row-vector form is the transpose).
M_LINEAR_TO_XYZ: Final[ArrayFloat] = _frozen([
    [0.41239079926595948, 0.35758433938387796, 0.18048078840183429],
    [0.21263900587151036, 0.71516867876775593, 0.072192315360733715],
    [0.019330818715591851, 0.11919477979462599, 0.95053215224966058],
])
M_XYZ_TO_LINEAR: Final[ArrayFloat] = _frozen([
    [3.2409699419045214, -1.5373831775700935, -0.49861076029300328],
    [-0.96924363628087983, 1.8759675015077207, 0.041555057407175613],
    [0.055630079696993609, -0.20397695888897657, 1.0569715142428786],
])
M_LINEAR_TO_XYZ_T: Final[ArrayFloat] = np.ascontiguousarray(M_LINEAR_TO_XYZ.T)
M_XYZ_TO_LINEAR_T: Final[ArrayFloat] = np.ascontiguousarray(M_XYZ_TO_LINEAR.T)

# --- OkLab Matrices (XYZ oriented) ---
# The inverses are stored explicitly rather than derived with np.linalg.inv
# so that both directions use the published constants.
_M1_XYZ_TO_LMS = np.array([
    [0.8189330101, 0.3618667424, -0.1288597137],
    [0.0329845436, 0.9293118715, 0.0361456387],
    [0.0482003018, 0.2643662691, 0.6338517070],
], dtype=np.float64)
_M1_LMS_TO_XYZ = np.array([
    [1.2268798733741557, -0.5578149965554813, 0.28139105017721594],
    [-0.04057576262431372, 1.1122868293970594, -0.07171106666151696],
    [-0.07637294974672142, -0.4214933239627916, 1.5869240244272422],
], dtype=np.float64)
_M2_LMS_TO_LAB = np.array([
    [0.2104542553, 0.7936177850, -0.0040720468],
    [1.9779984951, -2.4285922050, 0.4505937099],
    [0.0259040371, 0.7827717662, -0.8086757660],
], dtype=np.float64)
_M2_LAB_TO_LMS = np.array([
    [0.9999999984505196, 0.39633779217376774, 0.2158037580607588],
    [1.0000000088817607, -0.10556134232365633, -0.0638541747717059],
    [1.0000000546724108, -0.08948418209496574, -1.2914855378640917],
], dtype=np.float64)
M1_XYZ_TO_LMS_OKLAB_T: Final[ArrayFloat] = _M1_XYZ_TO_LMS.T.copy()
M1_LMS_TO_XYZ_OKLAB_T: Final[ArrayFloat] = _M1_LMS_TO_XYZ.T.copy()
M2_LMS_TO_LAB_OKLAB_T: Final[ArrayFloat] = _M2_LMS_TO_LAB.T.copy()
M2_LAB_TO_LMS_OKLAB_T: Final[ArrayFloat] = _M2_LAB_TO_LMS.T.copy()

# --- Exact Rational Math Constants ---
# delta = 6/29 is where the Lab companding switches from cubic to linear.
LAB_DELTA: Final[float] = 6.0 / 29.0
LAB_EPSILON: Final[float] = LAB_DELTA * LAB_DELTA * LAB_DELTA  # ~0.008856
# Slope of the linear Lab segment: t/3 * (29/6)^2
_LAB_LINEAR_SLOPE: Final[float] = (29.0 / 6.0) * (29.0 / 6.0) / 3.0
_LAB_LINEAR_OFFSET: Final[float] = 4.0 / 29.0
# Luv lightness below the knee, on the 0..1 scale: (29/3)^3 / 100
_LUV_LINEAR_SLOPE: Final[float] = (29.0 / 3.0) ** 3 / 100.0
# Inverse of the above, applied when L <= 0.08
_LUV_LINEAR_SLOPE_INV: Final[float] = 100.0 * (3.0 / 29.0) ** 3
_LUV_KNEE: Final[float] = 0.08

# |a| and |b| both within this bound -> hue reported as 0.
HUE_ZERO_GUARD: Final[float] = 1e-4
# |X+Y+Z| or |y| below this is treated as black in xyY.
_XYY_BLACK: Final[float] = 1e-14

DEG2RAD: Final[float] = np.pi / 180.0
RAD2DEG: Final[float] = 180.0 / np.pi


# --- Runtime Configuration ---
# When True, transfer kernels use fastmath=False variants that preserve
# strict IEEE 754 semantics (inf / NaN propagation, no reassociation).
#
#     import skein_colorengine as ce
#     ce.set_strict_ieee(True)
_STRICT_IEEE: bool = False

def set_strict_ieee(enabled: bool = True) -> None:
    """
    Toggle between fast (default) and strict IEEE 754 Numba kernels.

    Affects the sRGB transfer functions and the Lab companding kernels.

    Args:
        enabled: If True, use strict IEEE mode.
    """
    global _STRICT_IEEE
    _STRICT_IEEE = bool(enabled)


# =============================================================================
# 1. ROBUST DECORATORS
# =============================================================================

def handle_shapes(func: Callable[..., ArrayFloat]) -> Callable[..., ArrayFloat]:
    """
    Decorator to normalize inputs to (N, 3) float64 and safeguard shape.

    Args:
        func: The function to decorate.

    Returns:
        The wrapped function with shape handling.
        - If input is (3,), returns the first row of the result
        - If input is (N, 3), returns the full result
    """
    @functools.wraps(func)
    def wrapper(arr: ArrayFloat, *args: Any, **kwargs: Any) -> ArrayFloat:
        arr = np.asarray(arr, dtype=np.float64)
        arr_in = np.ascontiguousarray(np.atleast_2d(arr))

        if arr_in.ndim != 2 or arr_in.shape[-1] != 3:
            raise ValueError(f"Expected shape (3,) or (N, 3), got {arr.shape}")

        res = func(arr_in, *args, **kwargs)

        if arr.ndim == 1:
            return res[0]
        return res
    return wrapper


# =============================================================================
# 2. LOW-LEVEL MATH KERNELS (Numba Optimized)
# =============================================================================
# fastmath=True allows reassociation; the strict variants below do not.
# Negative inputs always take the linear branch of the transfer curves.
# error_model="numpy": a degenerate division yields inf/nan, never raises.

@njit(cache=True, fastmath=True, error_model="numpy")
def _gamma_encode_kernel(linear: ArrayFloat) -> ArrayFloat:
    """sRGB OETF (IEC 61966-2-1): linear -> display."""
    out = np.empty_like(linear)
    linear_flat = linear.ravel()
    out_flat = out.ravel()

    for i in range(linear.size):
        v = linear_flat[i]
        if v <= 0.0031308:
            out_flat[i] = 12.92 * v
        else:
            out_flat[i] = 1.055 * (v ** (1.0 / 2.4)) - 0.055
    return out

@njit(cache=True, fastmath=True, error_model="numpy")
def _gamma_decode_kernel(srgb: ArrayFloat) -> ArrayFloat:
    """sRGB EOTF (IEC 61966-2-1): display -> linear."""
    out = np.empty_like(srgb)
    srgb_flat = srgb.ravel()
    out_flat = out.ravel()

    for i in range(srgb.size):
        v = srgb_flat[i]
        if v <= 0.04045:
            out_flat[i] = v / 12.92
        else:
            out_flat[i] = ((v + 0.055) / 1.055) ** 2.4
    return out

@njit(cache=True, fastmath=True, error_model="numpy")
def _lab_f_kernel(t: ArrayFloat) -> ArrayFloat:
    """
    CIELAB companding f(t).

    Cube root above (6/29)^3, linear segment t/3 * (29/6)^2 + 4/29 below.
    """
    out = np.empty_like(t)
    t_flat = t.ravel()
    out_flat = out.ravel()

    for i in range(t.size):
        v = t_flat[i]
        if v > LAB_EPSILON:
            out_flat[i] = v ** (1.0 / 3.0)
        else:
            out_flat[i] = v * _LAB_LINEAR_SLOPE + _LAB_LINEAR_OFFSET
    return out

@njit(cache=True, fastmath=True, error_model="numpy")
def _lab_f_inv_kernel(t: ArrayFloat) -> ArrayFloat:
    """Inverse CIELAB companding: t^3 above 6/29, else 3 (6/29)^2 (t - 4/29)."""
    out = np.empty_like(t)
    t_flat = t.ravel()
    out_flat = out.ravel()

    for i in range(t.size):
        v = t_flat[i]
        if v > LAB_DELTA:
            out_flat[i] = v * v * v
        else:
            out_flat[i] = 3.0 * LAB_DELTA * LAB_DELTA * (v - _LAB_LINEAR_OFFSET)
    return out


# --- Strict IEEE 754 kernel variants (fastmath=False) ---

@njit(cache=True, fastmath=False)
def _gamma_encode_kernel_strict(linear: ArrayFloat) -> ArrayFloat:
    """sRGB OETF, strict IEEE 754 variant."""
    out = np.empty_like(linear)
    linear_flat = linear.ravel()
    out_flat = out.ravel()
    for i in range(linear.size):
        v = linear_flat[i]
        if v <= 0.0031308:
            out_flat[i] = 12.92 * v
        else:
            out_flat[i] = 1.055 * (v ** (1.0 / 2.4)) - 0.055
    return out

@njit(cache=True, fastmath=False)
def _gamma_decode_kernel_strict(srgb: ArrayFloat) -> ArrayFloat:
    """sRGB EOTF, strict IEEE 754 variant."""
    out = np.empty_like(srgb)
    srgb_flat = srgb.ravel()
    out_flat = out.ravel()
    for i in range(srgb.size):
        v = srgb_flat[i]
        if v <= 0.04045:
            out_flat[i] = v / 12.92
        else:
            out_flat[i] = ((v + 0.055) / 1.055) ** 2.4
    return out

@njit(cache=True, fastmath=False)
def _lab_f_kernel_strict(t: ArrayFloat) -> ArrayFloat:
    """Lab f(t), strict IEEE 754 variant."""
    out = np.empty_like(t)
    t_flat = t.ravel()
    out_flat = out.ravel()
    for i in range(t.size):
        v = t_flat[i]
        if v > LAB_EPSILON:
            out_flat[i] = v ** (1.0 / 3.0)
        else:
            out_flat[i] = v * _LAB_LINEAR_SLOPE + _LAB_LINEAR_OFFSET
    return out

@njit(cache=True, fastmath=False)
def _lab_f_inv_kernel_strict(t: ArrayFloat) -> ArrayFloat:
    """Lab f_inv(t), strict IEEE 754 variant."""
    out = np.empty_like(t)
    t_flat = t.ravel()
    out_flat = out.ravel()
    for i in range(t.size):
        v = t_flat[i]
        if v > LAB_DELTA:
            out_flat[i] = v * v * v
        else:
            out_flat[i] = 3.0 * LAB_DELTA * LAB_DELTA * (v - _LAB_LINEAR_OFFSET)
    return out


# --- Polynomial approximations of the sRGB transfer pair ---
# Combined channel error stays within 6/255 of the exact curves over the
# 8-bit cube. Decode is one quartic around 0.5; encode needs three quintic
# segments because the fractional root is much steeper near zero.

@njit(cache=True, fastmath=True, error_model="numpy")
def _approx_gamma_decode_kernel(srgb: ArrayFloat) -> ArrayFloat:
    """Approximate sRGB EOTF."""
    out = np.empty_like(srgb)
    srgb_flat = srgb.ravel()
    out_flat = out.ravel()

    for i in range(srgb.size):
        v = srgb_flat[i]
        v1 = v - 0.5
        v2 = v1 * v1
        v3 = v2 * v1
        v4 = v2 * v2
        out_flat[i] = (-0.248750514614486 + 0.925583310193438 * v
                       + 1.16740237321695 * v2 + 0.280457026598666 * v3
                       - 0.0757991963780179 * v4)
    return out

@njit(cache=True, fastmath=True, error_model="numpy")
def _approx_gamma_encode_kernel(linear: ArrayFloat) -> ArrayFloat:
    """Approximate sRGB OETF (piecewise)."""
    out = np.empty_like(linear)
    linear_flat = linear.ravel()
    out_flat = out.ravel()

    for i in range(linear.size):
        v = linear_flat[i]
        if v > 0.2:
            v1 = v - 0.6
            v2 = v1 * v1
            v3 = v2 * v1
            v4 = v2 * v2
            v5 = v3 * v2
            out_flat[i] = (0.442430344268235 + 0.592178981271708 * v
                           - 0.287864782562636 * v2 + 0.253214392068985 * v3
                           - 0.272557158129811 * v4 + 0.325554383321718 * v5)
        elif v > 0.03:
            v1 = v - 0.115
            v2 = v1 * v1
            v3 = v2 * v1
            v4 = v2 * v2
            v5 = v3 * v2
            out_flat[i] = (0.194915592891669 + 1.55227076330229 * v
                           - 3.93691860257828 * v2 + 18.0679839248761 * v3
                           - 101.468750302746 * v4 + 632.341487393927 * v5)
        else:
            v1 = v - 0.015
            v2 = v1 * v1
            v3 = v2 * v1
            v4 = v2 * v2
            v5 = v3 * v2
            out_flat[i] = (0.0519565234928877 + 5.09316778537561 * v
                           - 99.0338180489702 * v2 + 3484.52322764895 * v3
                           - 150028.083412663 * v4 + 7168008.42971613 * v5)
    return out


# --- Kernel dispatchers ---
# Check the global _STRICT_IEEE flag and delegate to the compiled variant.

def _gamma_encode(linear: ArrayFloat) -> ArrayFloat:
    """Dispatch sRGB OETF to fast or strict kernel."""
    if _STRICT_IEEE:
        return _gamma_encode_kernel_strict(linear)
    return _gamma_encode_kernel(linear)

def _gamma_decode(srgb: ArrayFloat) -> ArrayFloat:
    """Dispatch sRGB EOTF to fast or strict kernel."""
    if _STRICT_IEEE:
        return _gamma_decode_kernel_strict(srgb)
    return _gamma_decode_kernel(srgb)

def _lab_f(t: ArrayFloat) -> ArrayFloat:
    """Dispatch Lab f(t) to fast or strict kernel."""
    t = np.ascontiguousarray(t)
    if _STRICT_IEEE:
        return _lab_f_kernel_strict(t)
    return _lab_f_kernel(t)

def _lab_f_inv(t: ArrayFloat) -> ArrayFloat:
    """Dispatch Lab f_inv(t) to fast or strict kernel."""
    t = np.ascontiguousarray(t)
    if _STRICT_IEEE:
        return _lab_f_inv_kernel_strict(t)
    return _lab_f_inv_kernel(t)


class TransferFunction(NamedTuple):
    """
    A display <-> linear transfer pair.

    Both callables take and return float64 arrays of any shape. The exact
    and polynomial variants are interchangeable wherever ``transfer=`` is
    accepted.
    """
    name: str
    decode: Callable[[ArrayFloat], ArrayFloat]
    encode: Callable[[ArrayFloat], ArrayFloat]


SRGB_EXACT: Final[TransferFunction] = TransferFunction("srgb", _gamma_decode, _gamma_encode)
SRGB_FAST: Final[TransferFunction] = TransferFunction(
    "srgb-fast", _approx_gamma_decode_kernel, _approx_gamma_encode_kernel
)


@njit(cache=True, fastmath=True, error_model="numpy")
def _uv_prime(X: float, Y: float, Z: float) -> tuple[float, float]:
    """
    CIE 1976 u', v' chromaticity of one XYZ triple.

    A zero denominator (black) yields (0, 0).
    """
    denom = X + 15.0 * Y + 3.0 * Z
    if denom == 0.0:
        return 0.0, 0.0
    return 4.0 * X / denom, 9.0 * Y / denom

@njit(cache=True, fastmath=True, error_model="numpy")
def _xyz_to_luv_kernel(xyz: ArrayFloat, Xn: float, Yn: float, Zn: float) -> ArrayFloat:
    """XYZ -> CIELUV on the 0..1 lightness scale."""
    n = xyz.shape[0]
    out = np.empty_like(xyz)
    un, vn = _uv_prime(Xn, Yn, Zn)

    for i in range(n):
        X, Y, Z = xyz[i, 0], xyz[i, 1], xyz[i, 2]
        yr = Y / Yn
        if yr <= LAB_EPSILON:
            L = yr * _LUV_LINEAR_SLOPE
        else:
            L = 1.16 * (yr ** (1.0 / 3.0)) - 0.16
        up, vp = _uv_prime(X, Y, Z)
        out[i, 0] = L
        out[i, 1] = 13.0 * L * (up - un)
        out[i, 2] = 13.0 * L * (vp - vn)
    return out

@njit(cache=True, fastmath=True, error_model="numpy")
def _luv_to_xyz_kernel(luv: ArrayFloat, Xn: float, Yn: float, Zn: float) -> ArrayFloat:
    """CIELUV -> XYZ. L == 0 is black regardless of u, v."""
    n = luv.shape[0]
    out = np.empty_like(luv)
    un, vn = _uv_prime(Xn, Yn, Zn)

    for i in range(n):
        L, u, v = luv[i, 0], luv[i, 1], luv[i, 2]
        if L <= _LUV_KNEE:
            Y = Yn * L * _LUV_LINEAR_SLOPE_INV
        else:
            t = (L + 0.16) / 1.16
            Y = Yn * t * t * t

        X = 0.0
        Z = 0.0
        if L != 0.0:
            ubis = u / (13.0 * L) + un
            vbis = v / (13.0 * L) + vn
            if vbis != 0.0:
                X = Y * 9.0 * ubis / (4.0 * vbis)
                Z = Y * (12.0 - 3.0 * ubis - 20.0 * vbis) / (4.0 * vbis)
        else:
            Y = 0.0

        out[i, 0] = X
        out[i, 1] = Y
        out[i, 2] = Z
    return out

@njit(cache=True, fastmath=True, error_model="numpy")
def _rect_to_polar_kernel(arr: ArrayFloat, zero_guard: float) -> ArrayFloat:
    """
    (L, a, b) -> (L, C, h) for any opponent space.

    Hue is forced to 0 when |a| and |b| are both <= ``zero_guard``.
    """
    n = arr.shape[0]
    out = np.empty_like(arr)

    for i in range(n):
        L, a, b = arr[i, 0], arr[i, 1], arr[i, 2]
        if abs(a) <= zero_guard and abs(b) <= zero_guard:
            h = 0.0
        else:
            h = np.arctan2(b, a) * RAD2DEG
            if h < 0.0:
                h += 360.0
            if h >= 360.0:
                h -= 360.0
        out[i, 0] = L
        out[i, 1] = np.sqrt(a * a + b * b)
        out[i, 2] = h
    return out

@njit(cache=True, fastmath=True, error_model="numpy")
def _polar_to_rect_kernel(arr: ArrayFloat) -> ArrayFloat:
    """(L, C, h) -> (L, a, b)."""
    n = arr.shape[0]
    out = np.empty_like(arr)

    for i in range(n):
        L, C, h = arr[i, 0], arr[i, 1], arr[i, 2]
        h_rad = h * DEG2RAD
        out[i, 0] = L
        out[i, 1] = C * np.cos(h_rad)
        out[i, 2] = C * np.sin(h_rad)
    return out

@njit(cache=True, fastmath=True, error_model="numpy")
def _srgb_to_hsv_kernel(rgb: ArrayFloat) -> ArrayFloat:
    """Display RGB -> HSV. Achromatic colors get hue 0."""
    n = rgb.shape[0]
    out = np.empty_like(rgb)

    for i in range(n):
        r, g, b = rgb[i, 0], rgb[i, 1], rgb[i, 2]
        v = max(r, g, b)
        c = v - min(r, g, b)
        h = 0.0
        if c != 0.0:
            if v == r:
                h = ((g - b) / c) % 6.0
            elif v == g:
                h = (b - r) / c + 2.0
            else:
                h = (r - g) / c + 4.0
            h *= 60.0
            if h < 0.0:
                h += 360.0
        out[i, 0] = h
        out[i, 1] = c / v if v != 0.0 else 0.0
        out[i, 2] = v
    return out

@njit(cache=True, fastmath=True, error_model="numpy")
def _hsv_to_srgb_kernel(hsv: ArrayFloat) -> ArrayFloat:
    """HSV -> display RGB. Hue wraps modulo 360, S and V are clamped."""
    n = hsv.shape[0]
    out = np.empty_like(hsv)

    for i in range(n):
        h = hsv[i, 0] % 360.0
        s = min(max(hsv[i, 1], 0.0), 1.0)
        v = min(max(hsv[i, 2], 0.0), 1.0)

        hp = h / 60.0
        c = v * s
        x = c * (1.0 - abs(hp % 2.0 - 1.0))
        m = v - c
        r = 0.0
        g = 0.0
        b = 0.0
        if hp < 1.0:
            r, g = c, x
        elif hp < 2.0:
            r, g = x, c
        elif hp < 3.0:
            g, b = c, x
        elif hp < 4.0:
            g, b = x, c
        elif hp < 5.0:
            r, b = x, c
        else:
            r, b = c, x
        out[i, 0] = m + r
        out[i, 1] = m + g
        out[i, 2] = m + b
    return out

@njit(cache=True, fastmath=True, error_model="numpy")
def _srgb_to_hsl_kernel(rgb: ArrayFloat) -> ArrayFloat:
    """Display RGB -> HSL. Achromatic colors get hue 0 and saturation 0."""
    n = rgb.shape[0]
    out = np.empty_like(rgb)

    for i in range(n):
        r, g, b = rgb[i, 0], rgb[i, 1], rgb[i, 2]
        hi = max(r, g, b)
        lo = min(r, g, b)
        l = (hi + lo) * 0.5
        h = 0.0
        s = 0.0
        if hi != lo:
            d = hi - lo
            if l < 0.5:
                s = d / (hi + lo)
            else:
                s = d / (2.0 - hi - lo)
            if hi == r:
                h = (g - b) / d
            elif hi == g:
                h = 2.0 + (b - r) / d
            else:
                h = 4.0 + (r - g) / d
            h *= 60.0
            if h < 0.0:
                h += 360.0
        out[i, 0] = h
        out[i, 1] = s
        out[i, 2] = l
    return out

@njit(cache=True, fastmath=True, error_model="numpy")
def _hsl_channel(t: float, t1: float, t2: float) -> float:
    """One channel of the HSL -> RGB reconstruction."""
    if t < 0.0:
        t += 1.0
    if t > 1.0:
        t -= 1.0
    if 6.0 * t < 1.0:
        return t2 + (t1 - t2) * 6.0 * t
    if 2.0 * t < 1.0:
        return t1
    if 3.0 * t < 2.0:
        return t2 + (t1 - t2) * (2.0 / 3.0 - t) * 6.0
    return t2

@njit(cache=True, fastmath=True, error_model="numpy")
def _hsl_to_srgb_kernel(hsl: ArrayFloat) -> ArrayFloat:
    """HSL -> display RGB. Hue wraps modulo 360."""
    n = hsl.shape[0]
    out = np.empty_like(hsl)

    for i in range(n):
        h = (hsl[i, 0] % 360.0) / 360.0
        s, l = hsl[i, 1], hsl[i, 2]
        if s == 0.0:
            out[i, 0] = l
            out[i, 1] = l
            out[i, 2] = l
            continue
        if l < 0.5:
            t1 = l * (1.0 + s)
        else:
            t1 = l + s - l * s
        t2 = 2.0 * l - t1
        out[i, 0] = _hsl_channel(h + 1.0 / 3.0, t1, t2)
        out[i, 1] = _hsl_channel(h, t1, t2)
        out[i, 2] = _hsl_channel(h - 1.0 / 3.0, t1, t2)
    return out


def _white_tuple(white: ArrayFloat) -> tuple[float, float, float]:
    w = np.asarray(white, dtype=np.float64).ravel()
    if w.shape[0] != 3:
        raise ValueError(f"Reference white must have 3 components, got {w.shape[0]}")
    return float(w[0]), float(w[1]), float(w[2])


# =============================================================================
# 3. COLOR SPACE ENGINE
# =============================================================================

class ColorSpaceEngine:
    """Static utility class for hub and perceptual color transformations.

    Core transforms provide both a public ``@handle_shapes`` decorated API
    and an internal ``_raw`` fast-path that assumes pre-validated (N, 3)
    float64 input. Convenience pipelines (e.g. ``srgb_to_lab``) call the
    ``_raw`` variants to avoid redundant shape checks at each stage.
    """

    # =====================================================================
    #  Internal _raw fast-path methods  (assume validated (N, 3) float64)
    # =====================================================================

    @staticmethod
    def _srgb_to_linear_raw(rgb_array: ArrayFloat, transfer: TransferFunction = SRGB_EXACT) -> ArrayFloat:
        return transfer.decode(rgb_array)

    @staticmethod
    def _linear_to_srgb_raw(linear_array: ArrayFloat, transfer: TransferFunction = SRGB_EXACT) -> ArrayFloat:
        return transfer.encode(linear_array)

    @staticmethod
    def _linear_to_xyz_raw(linear_array: ArrayFloat) -> ArrayFloat:
        return np.dot(linear_array, M_LINEAR_TO_XYZ_T)

    @staticmethod
    def _xyz_to_linear_raw(xyz_array: ArrayFloat) -> ArrayFloat:
        return np.dot(xyz_array, M_XYZ_TO_LINEAR_T)

    @staticmethod
    def _srgb_to_xyz_raw(rgb_array: ArrayFloat, transfer: TransferFunction = SRGB_EXACT) -> ArrayFloat:
        """Raw sRGB -> XYZ.  *rgb_array* must be (N, 3) float64."""
        return np.dot(transfer.decode(rgb_array), M_LINEAR_TO_XYZ_T)

    @staticmethod
    def _xyz_to_srgb_raw(xyz_array: ArrayFloat, transfer: TransferFunction = SRGB_EXACT) -> ArrayFloat:
        """Raw XYZ -> sRGB.  *xyz_array* must be (N, 3) float64."""
        linear = np.ascontiguousarray(np.dot(xyz_array, M_XYZ_TO_LINEAR_T))
        return transfer.encode(linear)

    @staticmethod
    def _xyz_to_xyY_raw(xyz_array: ArrayFloat, illuminant: ArrayFloat = REF_WHITE_D65) -> ArrayFloat:
        """Raw XYZ -> xyY.  Black takes the chromaticity of *illuminant*."""
        sum_xyz = np.sum(xyz_array, axis=-1)
        mask = np.abs(sum_xyz) >= _XYY_BLACK
        xyY = np.empty_like(xyz_array)

        white = np.asarray(illuminant, dtype=np.float64)
        white_sum = float(np.sum(white))
        xyY[~mask, 0] = white[0] / white_sum
        xyY[~mask, 1] = white[1] / white_sum

        if np.any(mask):
            inv_sum = 1.0 / sum_xyz[mask]
            xyY[mask, 0] = xyz_array[mask, 0] * inv_sum
            xyY[mask, 1] = xyz_array[mask, 1] * inv_sum
        xyY[:, 2] = xyz_array[:, 1]
        return xyY

    @staticmethod
    def _xyY_to_xyz_raw(xyY_array: ArrayFloat) -> ArrayFloat:
        """Raw xyY -> XYZ.  y ~ 0 yields X = Z = 0."""
        x, y, Y = xyY_array[:, 0], xyY_array[:, 1], xyY_array[:, 2]
        xyz = np.zeros_like(xyY_array)
        xyz[:, 1] = Y
        mask = np.abs(y) >= _XYY_BLACK
        if np.any(mask):
            factor = Y[mask] / y[mask]
            xyz[mask, 0] = x[mask] * factor
            xyz[mask, 2] = (1.0 - x[mask] - y[mask]) * factor
        return xyz

    @staticmethod
    def _xyz_to_lab_raw(xyz_array: ArrayFloat, illuminant: ArrayFloat = REF_WHITE_D65) -> ArrayFloat:
        """Raw XYZ -> Lab (0..1 scale)."""
        f_xyz = _lab_f(xyz_array / illuminant)

        out = np.empty_like(xyz_array)
        out[:, 0] = 1.16 * f_xyz[:, 1] - 0.16
        out[:, 1] = 5.0 * (f_xyz[:, 0] - f_xyz[:, 1])
        out[:, 2] = 2.0 * (f_xyz[:, 1] - f_xyz[:, 2])
        return out

    @staticmethod
    def _lab_to_xyz_raw(lab_array: ArrayFloat, illuminant: ArrayFloat = REF_WHITE_D65) -> ArrayFloat:
        """Raw Lab -> XYZ (0..1 scale)."""
        L, a, b = lab_array[:, 0], lab_array[:, 1], lab_array[:, 2]

        fy = (L + 0.16) / 1.16
        f_xyz = np.empty_like(lab_array)
        f_xyz[:, 0] = fy + a / 5.0
        f_xyz[:, 1] = fy
        f_xyz[:, 2] = fy - b / 2.0

        xyz = _lab_f_inv(f_xyz)
        xyz *= illuminant
        return xyz

    @staticmethod
    def _xyz_to_luv_raw(xyz_array: ArrayFloat, illuminant: ArrayFloat = REF_WHITE_D65) -> ArrayFloat:
        return _xyz_to_luv_kernel(xyz_array, *_white_tuple(illuminant))

    @staticmethod
    def _luv_to_xyz_raw(luv_array: ArrayFloat, illuminant: ArrayFloat = REF_WHITE_D65) -> ArrayFloat:
        return _luv_to_xyz_kernel(luv_array, *_white_tuple(illuminant))

    @staticmethod
    def _xyz_to_oklab_raw(xyz_array: ArrayFloat) -> ArrayFloat:
        """Raw XYZ -> OkLab.  Real cube root keeps the sign of LMS."""
        lms = np.dot(xyz_array, M1_XYZ_TO_LMS_OKLAB_T)
        return np.dot(np.cbrt(lms), M2_LMS_TO_LAB_OKLAB_T)

    @staticmethod
    def _oklab_to_xyz_raw(oklab_array: ArrayFloat) -> ArrayFloat:
        lms_prime = np.dot(oklab_array, M2_LAB_TO_LMS_OKLAB_T)
        return np.dot(lms_prime ** 3, M1_LMS_TO_XYZ_OKLAB_T)

    # =====================================================================
    #  Public API  (shape-safe wrappers)
    # =====================================================================

    # --- Hub ---
    @staticmethod
    @handle_shapes
    def srgb_to_linear(rgb_array: ArrayFloat, transfer: TransferFunction = SRGB_EXACT) -> ArrayFloat:
        """
        Decodes display sRGB to linear RGB.

        Args:
            rgb_array: Display RGB, shape (N, 3) or (3,).
            transfer: ``SRGB_EXACT`` (default) or ``SRGB_FAST``.

        Returns:
            Linear RGB, unclamped.
        """
        return ColorSpaceEngine._srgb_to_linear_raw(rgb_array, transfer)

    @staticmethod
    @handle_shapes
    def linear_to_srgb(linear_array: ArrayFloat, transfer: TransferFunction = SRGB_EXACT) -> ArrayFloat:
        """
        Encodes linear RGB to display sRGB.

        Args:
            linear_array: Linear RGB, shape (N, 3) or (3,).
            transfer: ``SRGB_EXACT`` (default) or ``SRGB_FAST``.

        Returns:
            Display RGB, unclamped.
        """
        return ColorSpaceEngine._linear_to_srgb_raw(linear_array, transfer)

    @staticmethod
    @handle_shapes
    def linear_to_xyz(linear_array: ArrayFloat) -> ArrayFloat:
        """Linear RGB -> CIE XYZ (D65 relative)."""
        return ColorSpaceEngine._linear_to_xyz_raw(linear_array)

    @staticmethod
    @handle_shapes
    def xyz_to_linear(xyz_array: ArrayFloat) -> ArrayFloat:
        """CIE XYZ -> linear RGB. Out-of-gamut values are kept."""
        return ColorSpaceEngine._xyz_to_linear_raw(xyz_array)

    @staticmethod
    @handle_shapes
    def srgb_to_xyz(rgb_array: ArrayFloat, transfer: TransferFunction = SRGB_EXACT) -> ArrayFloat:
        """
        Converts display sRGB [0..1] to XYZ (D65).

        Args:
            rgb_array: Input sRGB data, shape (N, 3) or (3,).
            transfer: Transfer function used for decoding.

        Returns:
            XYZ coordinates.
        """
        return ColorSpaceEngine._srgb_to_xyz_raw(rgb_array, transfer)

    @staticmethod
    @handle_shapes
    def xyz_to_srgb(xyz_array: ArrayFloat, transfer: TransferFunction = SRGB_EXACT) -> ArrayFloat:
        """
        Converts XYZ (D65) to display sRGB.

        Args:
            xyz_array: Input XYZ data, shape (N, 3) or (3,).
            transfer: Transfer function used for encoding.

        Returns:
            sRGB coordinates. Not clamped; test with ``GamutMapping.in_gamut``.
        """
        return ColorSpaceEngine._xyz_to_srgb_raw(xyz_array, transfer)

    # --- Chromaticity ---
    @staticmethod
    @handle_shapes
    def xyz_to_xyY(xyz_array: ArrayFloat, illuminant: ArrayFloat = REF_WHITE_D65) -> ArrayFloat:
        """
        Converts XYZ to xyY (chromaticity + luminance).

        Black (X+Y+Z ~ 0) reports the chromaticity of ``illuminant`` so the
        output is NaN-free.

        Args:
            xyz_array: Input XYZ data, shape (N, 3) or (3,).
            illuminant: Reference white used for black.

        Returns:
            xyY coordinates.
        """
        return ColorSpaceEngine._xyz_to_xyY_raw(xyz_array, illuminant)

    @staticmethod
    @handle_shapes
    def xyY_to_xyz(xyY_array: ArrayFloat) -> ArrayFloat:
        """Converts xyY to XYZ."""
        return ColorSpaceEngine._xyY_to_xyz_raw(xyY_array)

    # --- CIELAB ---
    @staticmethod
    @handle_shapes
    def xyz_to_lab(xyz_array: ArrayFloat, illuminant: ArrayFloat = REF_WHITE_D65) -> ArrayFloat:
        """
        Converts XYZ to CIELAB on the 0..1 lightness scale.

        Args:
            xyz_array: Input XYZ data, shape (N, 3) or (3,).
            illuminant: Reference white point (default D65).

        Returns:
            Lab coordinates.
        """
        return ColorSpaceEngine._xyz_to_lab_raw(xyz_array, illuminant)

    @staticmethod
    @handle_shapes
    def lab_to_xyz(lab_array: ArrayFloat, illuminant: ArrayFloat = REF_WHITE_D65) -> ArrayFloat:
        """
        Converts CIELAB (0..1 scale) to XYZ.

        Args:
            lab_array: Input Lab data, shape (N, 3) or (3,).
            illuminant: Reference white point (default D65).

        Returns:
            XYZ coordinates.
        """
        return ColorSpaceEngine._lab_to_xyz_raw(lab_array, illuminant)

    @staticmethod
    @handle_shapes
    def lab_to_lch(lab_array: ArrayFloat) -> ArrayFloat:
        """
        Converts Lab (or Luv) to its cylindrical (L, C, h) form.

        Hue is 0 when both opponent components are within 1e-4 of zero.
        """
        return _rect_to_polar_kernel(lab_array, HUE_ZERO_GUARD)

    @staticmethod
    @handle_shapes
    def lch_to_lab(lch_array: ArrayFloat) -> ArrayFloat:
        """Converts cylindrical (L, C, h) back to (L, a, b)."""
        return _polar_to_rect_kernel(lch_array)

    # --- CIELUV ---
    @staticmethod
    @handle_shapes
    def xyz_to_luv(xyz_array: ArrayFloat, illuminant: ArrayFloat = REF_WHITE_D65) -> ArrayFloat:
        """
        Converts XYZ to CIELUV on the 0..1 lightness scale.

        Args:
            xyz_array: Input XYZ data.
            illuminant: Reference white point (default D65).

        Returns:
            Luv coordinates.
        """
        return ColorSpaceEngine._xyz_to_luv_raw(xyz_array, illuminant)

    @staticmethod
    @handle_shapes
    def luv_to_xyz(luv_array: ArrayFloat, illuminant: ArrayFloat = REF_WHITE_D65) -> ArrayFloat:
        """
        Converts CIELUV to XYZ. L == 0 is black.

        Args:
            luv_array: Input Luv data.
            illuminant: Reference white point.

        Returns:
            XYZ coordinates.
        """
        return ColorSpaceEngine._luv_to_xyz_raw(luv_array, illuminant)

    # --- OkLab ---
    @staticmethod
    @handle_shapes
    def xyz_to_oklab(xyz_array: ArrayFloat) -> ArrayFloat:
        """
        Converts XYZ to OkLab.

        Args:
            xyz_array: XYZ input (0..1 typical).

        Returns:
            OkLab coordinates (L, a, b).
        """
        return ColorSpaceEngine._xyz_to_oklab_raw(xyz_array)

    @staticmethod
    @handle_shapes
    def oklab_to_xyz(oklab_array: ArrayFloat) -> ArrayFloat:
        """Converts OkLab to XYZ."""
        return ColorSpaceEngine._oklab_to_xyz_raw(oklab_array)

    @staticmethod
    @handle_shapes
    def oklab_to_oklch(oklab_array: ArrayFloat) -> ArrayFloat:
        """OkLab -> OkLch. Hue is 0 only for exactly achromatic input."""
        return _rect_to_polar_kernel(oklab_array, 0.0)

    @staticmethod
    @handle_shapes
    def oklch_to_oklab(oklch_array: ArrayFloat) -> ArrayFloat:
        return _polar_to_rect_kernel(oklch_array)

    # --- Display-derived (HSL / HSV) ---
    @staticmethod
    @handle_shapes
    def srgb_to_hsv(rgb_array: ArrayFloat) -> ArrayFloat:
        """Display RGB -> HSV (H in degrees, S and V in [0, 1])."""
        return _srgb_to_hsv_kernel(rgb_array)

    @staticmethod
    @handle_shapes
    def hsv_to_srgb(hsv_array: ArrayFloat) -> ArrayFloat:
        return _hsv_to_srgb_kernel(hsv_array)

    @staticmethod
    @handle_shapes
    def srgb_to_hsl(rgb_array: ArrayFloat) -> ArrayFloat:
        """Display RGB -> HSL (H in degrees, S and L in [0, 1])."""
        return _srgb_to_hsl_kernel(rgb_array)

    @staticmethod
    @handle_shapes
    def hsl_to_srgb(hsl_array: ArrayFloat) -> ArrayFloat:
        return _hsl_to_srgb_kernel(hsl_array)

    # --- Convenience: sRGB <-> Lab / LCh / Luv / OkLab ---
    # These pipelines use _raw methods internally to avoid redundant
    # shape-checking at each intermediate stage.

    @staticmethod
    @handle_shapes
    def srgb_to_lab(rgb_array: ArrayFloat, illuminant: ArrayFloat = REF_WHITE_D65) -> ArrayFloat:
        """Direct conversion sRGB -> CIELAB."""
        xyz = ColorSpaceEngine._srgb_to_xyz_raw(rgb_array)
        return ColorSpaceEngine._xyz_to_lab_raw(xyz, illuminant)

    @staticmethod
    @handle_shapes
    def lab_to_srgb(lab_array: ArrayFloat, illuminant: ArrayFloat = REF_WHITE_D65) -> ArrayFloat:
        """Direct conversion CIELAB -> sRGB (unclamped)."""
        xyz = ColorSpaceEngine._lab_to_xyz_raw(lab_array, illuminant)
        return ColorSpaceEngine._xyz_to_srgb_raw(xyz)

    @staticmethod
    @handle_shapes
    def srgb_to_lch(rgb_array: ArrayFloat, illuminant: ArrayFloat = REF_WHITE_D65) -> ArrayFloat:
        """Direct conversion sRGB -> CIELCh."""
        xyz = ColorSpaceEngine._srgb_to_xyz_raw(rgb_array)
        lab = ColorSpaceEngine._xyz_to_lab_raw(xyz, illuminant)
        return _rect_to_polar_kernel(lab, HUE_ZERO_GUARD)

    @staticmethod
    @handle_shapes
    def lch_to_srgb(lch_array: ArrayFloat, illuminant: ArrayFloat = REF_WHITE_D65) -> ArrayFloat:
        """Direct conversion CIELCh -> sRGB (unclamped)."""
        lab = _polar_to_rect_kernel(lch_array)
        xyz = ColorSpaceEngine._lab_to_xyz_raw(lab, illuminant)
        return ColorSpaceEngine._xyz_to_srgb_raw(xyz)

    @staticmethod
    @handle_shapes
    def srgb_to_luv(rgb_array: ArrayFloat, illuminant: ArrayFloat = REF_WHITE_D65) -> ArrayFloat:
        """Direct conversion sRGB -> CIELUV."""
        xyz = ColorSpaceEngine._srgb_to_xyz_raw(rgb_array)
        return ColorSpaceEngine._xyz_to_luv_raw(xyz, illuminant)

    @staticmethod
    @handle_shapes
    def luv_to_srgb(luv_array: ArrayFloat, illuminant: ArrayFloat = REF_WHITE_D65) -> ArrayFloat:
        """Direct conversion CIELUV -> sRGB (unclamped)."""
        xyz = ColorSpaceEngine._luv_to_xyz_raw(luv_array, illuminant)
        return ColorSpaceEngine._xyz_to_srgb_raw(xyz)

    @staticmethod
    @handle_shapes
    def srgb_to_oklab(rgb_array: ArrayFloat) -> ArrayFloat:
        """Direct conversion sRGB -> OkLab through the XYZ hub."""
        xyz = ColorSpaceEngine._srgb_to_xyz_raw(rgb_array)
        return ColorSpaceEngine._xyz_to_oklab_raw(xyz)

    @staticmethod
    @handle_shapes
    def oklab_to_srgb(oklab_array: ArrayFloat) -> ArrayFloat:
        """Direct conversion OkLab -> sRGB (unclamped)."""
        xyz = ColorSpaceEngine._oklab_to_xyz_raw(oklab_array)
        return ColorSpaceEngine._xyz_to_srgb_raw(xyz)


# =============================================================================
# 4. GAMUT TESTS
# =============================================================================

class GamutMapping:
    """Explicit gamut handling; the only place where values are clipped."""

    @staticmethod
    @handle_shapes
    def clip_absolute(rgb: ArrayFloat) -> ArrayFloat:
        """Hard clip to [0, 1]."""
        return np.clip(rgb, 0.0, 1.0)

    @staticmethod
    @handle_shapes
    def in_gamut(rgb: ArrayFloat) -> npt.NDArray[np.bool_]:
        """True where every channel lies in [0, 1]. NaN is out of gamut."""
        return np.all((rgb >= 0.0) & (rgb <= 1.0), axis=-1)


# =============================================================================
# Validation Block
# =============================================================================
if __name__ == "__main__":
    print("--- Skein Hub Engine Validation ---")
    rng = np.random.default_rng(7)

    print("1. Testing Round-Trip Stability (XYZ->Lab->XYZ)...")
    xyz_in = rng.random((1000, 3))
    lab = ColorSpaceEngine.xyz_to_lab(xyz_in)
    max_err = np.max(np.abs(xyz_in - ColorSpaceEngine.lab_to_xyz(lab)))
    print(f"   Max Error: {max_err:.2e} {'[PASS]' if max_err < 1e-12 else '[FAIL]'}")

    print("2. Testing Shape Safety...")
    try:
        ColorSpaceEngine.srgb_to_xyz(np.zeros((10, 5)))
    except ValueError as e:
        print(f"   Caught expected error: {e}")

    print("3. Testing CIELUV Round-Trip...")
    luv = ColorSpaceEngine.xyz_to_luv(xyz_in)
    max_err_luv = np.max(np.abs(xyz_in - ColorSpaceEngine.luv_to_xyz(luv)))
    print(f"   Max Error: {max_err_luv:.2e} {'[PASS]' if max_err_luv < 1e-12 else '[FAIL]'}")

    print("4. Testing OkLab Round-Trip...")
    oklab = ColorSpaceEngine.xyz_to_oklab(xyz_in)
    max_err_ok = np.max(np.abs(xyz_in - ColorSpaceEngine.oklab_to_xyz(oklab)))
    print(f"   Max Error: {max_err_ok:.2e} {'[PASS]' if max_err_ok < 1e-8 else '[FAIL]'}")

    print("5. Testing Fast Transfer Accuracy (8-bit ramp)...")
    ramp = np.repeat((np.arange(256.0) / 255.0)[:, None], 3, axis=1)
    fast = ColorSpaceEngine.srgb_to_linear(ramp, transfer=SRGB_FAST)
    exact = ColorSpaceEngine.srgb_to_linear(ramp)
    fast_err = np.max(np.sum(np.abs(fast - exact), axis=1))
    print(f"   Max channel-sum error: {fast_err:.4f} {'[PASS]' if fast_err <= 6.0 / 255.0 else '[FAIL]'}")

    print("6. Testing Strict IEEE mode...")
    lab_fast = ColorSpaceEngine.xyz_to_lab(xyz_in[:10])
    set_strict_ieee(True)
    lab_strict = ColorSpaceEngine.xyz_to_lab(xyz_in[:10])
    set_strict_ieee(False)
    print(f"   Max diff (fast vs strict): {np.max(np.abs(lab_fast - lab_strict)):.2e}")

    print("--- Validation Complete ---")
