# -*- coding: utf-8 -*-
"""
Skein: Spinning perceptual order out of color
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Palette Generator
=================
Constrained palettes by k-medoid clustering of a Lab lattice.

Feasibility:
    A Lab point is feasible when it maps to an in-gamut display color AND
    passes the caller's ``check_color`` predicate. Every color returned by
    ``soft_palette`` is feasible by construction: a cluster mean only
    replaces its medoid when it is feasible itself, otherwise the nearest
    unused lattice sample takes its place.

Randomness:
    Every stochastic entry point accepts ``rng``: a ``numpy.random.Generator``,
    an integer seed, or ``None`` for fresh OS entropy. Equal seeds give
    equal palettes.
"""

from __future__ import annotations

import enum
import math
import warnings
from dataclasses import dataclass
from typing import Callable, Final, Optional, Union

import numpy as np
from scipy.spatial.distance import cdist

from skein_colorengine import ArrayFloat, ColorSpaceEngine, GamutMapping
from skein_colors import HSV, LCh, Lab, SRGB, as_srgb

__all__ = [
    "PaletteGenerationError",
    "PaletteSettings",
    "ClusterState",
    "classify_cluster",
    "lattice_samples",
    "soft_palette",
    "warm_palette",
    "happy_palette",
    "fast_warm_palette",
    "fast_happy_palette",
    "random_warm",
    "random_happy",
    "fast_random_warm",
    "fast_random_happy",
]

RandomSource = Union[np.random.Generator, int, None]
LabPredicate = Callable[[Lab], bool]

# Lattice steps (L, then a/b): coarse and "many samples".
COARSE_STEPS: Final[tuple[float, float]] = (0.05, 0.1)
FINE_STEPS: Final[tuple[float, float]] = (0.01, 0.05)
# Per-component tolerance for "this sample is a current medoid".
_SAME_LAB_TOL: Final[float] = 1e-6


class PaletteGenerationError(ValueError):
    """Raised when fewer feasible lattice samples exist than colors requested."""


def _accept_all(lab: Lab) -> bool:
    return True


@dataclass(frozen=True)
class PaletteSettings:
    """
    Settings for ``soft_palette``.

    Attributes:
        check_color: Extra constraint on Lab candidates (default: accept all).
        iterations: Number of clustering rounds.
        many_samples: Use the fine lattice (about 170k points instead of 9k).
    """
    check_color: LabPredicate = _accept_all
    iterations: int = 50
    many_samples: bool = False

    def __post_init__(self) -> None:
        if self.iterations < 0:
            raise ValueError(f"iterations must be >= 0, got {self.iterations}")


# =============================================================================
# 1. FEASIBILITY & SAMPLING
# =============================================================================

def _feasible_mask(lab_array: ArrayFloat, check_color: LabPredicate) -> np.ndarray:
    """Vectorized gamut test, then the predicate on the in-gamut rows only."""
    mask = GamutMapping.in_gamut(ColorSpaceEngine.lab_to_srgb(lab_array))
    for i in np.flatnonzero(mask):
        row = lab_array[i]
        if not check_color(Lab(float(row[0]), float(row[1]), float(row[2]))):
            mask[i] = False
    return mask

def _is_feasible(lab_row: ArrayFloat, check_color: LabPredicate) -> bool:
    return bool(_feasible_mask(lab_row.reshape(1, 3), check_color)[0])

def lattice_samples(settings: PaletteSettings) -> ArrayFloat:
    """
    Feasible points of the Lab lattice.

    L runs over [0, 1], a and b over [-1, 1], endpoints included.

    Returns:
        Array of shape (M, 3), in L-major, then a, then b order.
    """
    dl, dab = FINE_STEPS if settings.many_samples else COARSE_STEPS
    L = np.arange(round(1.0 / dl) + 1) * dl
    ab = np.arange(round(2.0 / dab) + 1) * dab - 1.0
    grid = np.stack(np.meshgrid(L, ab, ab, indexing="ij"), axis=-1).reshape(-1, 3)
    grid = np.ascontiguousarray(grid)
    return grid[_feasible_mask(grid, settings.check_color)]


# =============================================================================
# 2. PER-CLUSTER STATE MACHINE
# =============================================================================

class ClusterState(enum.Enum):
    HAS_VALID_CENTROID = "has-valid-centroid"
    NEEDS_FALLBACK_MEDOID = "needs-fallback-medoid"


def classify_cluster(
    count: int,
    mean: ArrayFloat,
    medoid: ArrayFloat,
    check_color: LabPredicate,
) -> tuple[ClusterState, ArrayFloat]:
    """
    Decides how a cluster's representative is updated.

    Returns:
        ``(HAS_VALID_CENTROID, mean)`` when the cluster has members and its
        mean is feasible. Otherwise ``(NEEDS_FALLBACK_MEDOID, target)``:
        the nearest unused sample to ``target`` becomes the medoid, where
        ``target`` is the current medoid for an empty cluster and the
        rejected mean otherwise.
    """
    if count == 0:
        return ClusterState.NEEDS_FALLBACK_MEDOID, medoid
    if _is_feasible(mean, check_color):
        return ClusterState.HAS_VALID_CENTROID, mean
    return ClusterState.NEEDS_FALLBACK_MEDOID, mean

def _nearest_unused(samples: ArrayFloat, used: np.ndarray, target: ArrayFloat) -> int:
    candidates = np.flatnonzero(~used)
    if candidates.size == 0:
        return -1
    d = cdist(samples[candidates], target.reshape(1, 3))[:, 0]
    return int(candidates[np.argmin(d)])


# =============================================================================
# 3. K-MEDOID PALETTE
# =============================================================================

def _initial_medoids(samples: ArrayFloat, count: int, rng: np.random.Generator) -> ArrayFloat:
    chosen: list[int] = []
    while len(chosen) < count:
        idx = int(rng.integers(len(samples)))
        if idx not in chosen:
            chosen.append(idx)
    return samples[chosen].copy()

def _to_srgb_list(lab_array: ArrayFloat) -> list[SRGB]:
    rgb = ColorSpaceEngine.lab_to_srgb(lab_array)
    return [SRGB(float(r), float(g), float(b)) for r, g, b in rgb]

def soft_palette(
    count: int,
    settings: Optional[PaletteSettings] = None,
    rng: RandomSource = None,
) -> list[SRGB]:
    """
    Generates ``count`` well-spread colors satisfying ``settings.check_color``.

    Args:
        count: Number of colors, at least 1.
        settings: Constraint and clustering settings (defaults if None).
        rng: Generator, seed or None.

    Returns:
        Exactly ``count`` in-gamut display colors.

    Raises:
        ValueError: If ``count`` < 1.
        PaletteGenerationError: If the lattice holds fewer feasible samples
            than ``count``.
    """
    if count < 1:
        raise ValueError(f"count must be >= 1, got {count}")
    settings = settings or PaletteSettings()
    rng = np.random.default_rng(rng)

    samples = lattice_samples(settings)
    if len(samples) < count:
        raise PaletteGenerationError(
            f"More colors requested ({count}) than samples available ({len(samples)}). "
            f"Use many_samples or relax the color constraint."
        )
    if len(samples) == count:
        warnings.warn(
            f"Only {count} feasible samples exist; returning them without clustering.",
            UserWarning,
            stacklevel=2,
        )
        return _to_srgb_list(samples)

    medoids = _initial_medoids(samples, count, rng)

    for _ in range(settings.iterations):
        clusters = np.argmin(cdist(samples, medoids), axis=1)
        used = np.any(cdist(samples, medoids, "chebyshev") < _SAME_LAB_TOL, axis=1)

        counts = np.bincount(clusters, minlength=count)
        sums = np.stack([np.bincount(clusters, weights=samples[:, j], minlength=count) for j in range(3)], axis=1)

        for k in range(count):
            mean = sums[k] / counts[k] if counts[k] > 0 else medoids[k]
            state, target = classify_cluster(int(counts[k]), mean, medoids[k], settings.check_color)
            if state is ClusterState.HAS_VALID_CENTROID:
                medoids[k] = target
                continue
            idx = _nearest_unused(samples, used, target)
            if idx >= 0:
                medoids[k] = samples[idx]
                used[idx] = True

    return _to_srgb_list(medoids)


# =============================================================================
# 4. PRESETS
# =============================================================================

def _is_warm(lab: Lab) -> bool:
    c = math.hypot(lab.a, lab.b)
    return 0.1 <= c <= 0.4 and 0.2 <= lab.L <= 0.5

def _is_happy(lab: Lab) -> bool:
    c = math.hypot(lab.a, lab.b)
    return 0.3 <= c and 0.4 <= lab.L <= 0.8

def warm_palette(count: int, rng: RandomSource = None) -> list[SRGB]:
    """Dark, muted colors (0.1 <= C <= 0.4, 0.2 <= L <= 0.5)."""
    return soft_palette(count, PaletteSettings(check_color=_is_warm, many_samples=True), rng)

def happy_palette(count: int, rng: RandomSource = None) -> list[SRGB]:
    """Bright, saturated colors (C >= 0.3, 0.4 <= L <= 0.8)."""
    return soft_palette(count, PaletteSettings(check_color=_is_happy, many_samples=True), rng)

def _hue_wheel(count: int, s_range: tuple[float, float], v_range: tuple[float, float],
               rng: RandomSource) -> list[SRGB]:
    if count < 1:
        raise ValueError(f"count must be >= 1, got {count}")
    rng = np.random.default_rng(rng)
    step = 360.0 / count
    return [
        HSV(i * step,
            s_range[0] + rng.random() * s_range[1],
            v_range[0] + rng.random() * v_range[1]).to_srgb()
        for i in range(count)
    ]

def fast_warm_palette(count: int, rng: RandomSource = None) -> list[SRGB]:
    """Evenly spaced hues with random warm S and V. No perceptual guarantee."""
    return _hue_wheel(count, (0.55, 0.2), (0.35, 0.2), rng)

def fast_happy_palette(count: int, rng: RandomSource = None) -> list[SRGB]:
    """Evenly spaced hues with random bright S and V. No perceptual guarantee."""
    return _hue_wheel(count, (0.8, 0.2), (0.65, 0.2), rng)


# =============================================================================
# 5. RANDOM SINGLE COLORS
# =============================================================================

def _random_lch(rng: np.random.Generator, c_range: tuple[float, float],
                l_range: tuple[float, float]) -> SRGB:
    while True:
        h = rng.random() * 360.0
        c = c_range[0] + rng.random() * c_range[1]
        l = l_range[0] + rng.random() * l_range[1]
        candidate = as_srgb(LCh(l, c, h))
        if candidate.is_valid():
            return candidate

def random_warm(rng: RandomSource = None) -> SRGB:
    """A random dark, warm color drawn from a restricted LCh region."""
    return _random_lch(np.random.default_rng(rng), (0.1, 0.3), (0.2, 0.3))

def random_happy(rng: RandomSource = None) -> SRGB:
    """A random bright, pimpy color drawn from a restricted LCh region."""
    return _random_lch(np.random.default_rng(rng), (0.5, 0.3), (0.5, 0.3))

def fast_random_warm(rng: RandomSource = None) -> SRGB:
    """HSV-based warm color; always valid, but less uniform than ``random_warm``."""
    rng = np.random.default_rng(rng)
    return HSV(rng.random() * 360.0, 0.5 + rng.random() * 0.3, 0.3 + rng.random() * 0.3).to_srgb()

def fast_random_happy(rng: RandomSource = None) -> SRGB:
    """HSV-based happy color; always valid, but less uniform than ``random_happy``."""
    rng = np.random.default_rng(rng)
    return HSV(rng.random() * 360.0, 0.7 + rng.random() * 0.3, 0.6 + rng.random() * 0.3).to_srgb()


# =============================================================================
# Validation Block
# =============================================================================
if __name__ == "__main__":
    from skein_colors import as_lch, to_hex

    print("--- Skein Palette Validation ---")

    print("1. Default palette size and gamut...")
    pal = soft_palette(8, rng=42)
    ok = len(pal) == 8 and all(c.is_valid() for c in pal)
    print(f"   {[to_hex(c) for c in pal]} {'[PASS]' if ok else '[FAIL]'}")

    print("2. Warm palette honours its constraint...")
    warm = warm_palette(5, rng=1)
    lch = [as_lch(c) for c in warm]
    ok = all(0.1 - 1e-6 <= x.C <= 0.4 + 1e-6 and 0.2 - 1e-6 <= x.L <= 0.5 + 1e-6 for x in lch)
    print(f"   {[to_hex(c) for c in warm]} {'[PASS]' if ok else '[FAIL]'}")

    print("3. Infeasible request...")
    try:
        soft_palette(10, PaletteSettings(check_color=lambda lab: lab.L > 0.99))
        print("   [FAIL]")
    except PaletteGenerationError as e:
        print(f"   Caught expected error: {e}")

    print("--- Validation Complete ---")
