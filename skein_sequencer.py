# -*- coding: utf-8 -*-
"""
Skein: Spinning perceptual order out of color
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Perceptual Sequencer
====================
Orders a set of colors so that neighbors in the output are perceptually
close.

Pipeline (one pass, no state kept between calls):
    1. Canonical order: distance to black under the same metric, then Lab
       coordinates. The result is the same for any permutation of the input.
    2. Condensed pairwise distances, pairs (i, j) with i < j in row-major
       order.
    3. Stable ascending sort of the edges.
    4. Kruskal's minimum spanning tree over a disjoint-set forest held in
       two integer arrays (parent, rank): union by rank, path halving.
    5. Root = canonical position 0, the color closest to black.
    6. Depth-first preorder walk of the tree, nearest neighbor first,
       lower canonical index on equal weight.

The default CIEDE2000 metric is evaluated in one parallel Numba pass;
any other ``distance(c1, c2) -> float`` is called pair by pair.
"""

from __future__ import annotations

import numpy as np
from numba import njit
from typing import Callable, Sequence, TypeVar

from skein_colorengine import ArrayFloat
from skein_colors import SRGB, Color, as_lab, to_array
from skein_metrics import ColorMetrics, distance_ciede2000

__all__ = [
    "find_root",
    "union_sets",
    "pairwise_distances",
    "spanning_tree_edges",
    "sort_colors",
]

T = TypeVar("T", bound=Color)
DistanceFunc = Callable[[T, T], float]

_BLACK = SRGB(0.0, 0.0, 0.0)


# =============================================================================
# 1. DISJOINT-SET FOREST
# =============================================================================

@njit(cache=True)
def find_root(parent: np.ndarray, x: int) -> int:
    """Root of ``x``. Path halving: every visited node skips to its grandparent."""
    while parent[x] != x:
        parent[x] = parent[parent[x]]
        x = parent[x]
    return x

@njit(cache=True)
def union_sets(parent: np.ndarray, rank: np.ndarray, x: int, y: int) -> bool:
    """
    Merges the sets holding ``x`` and ``y`` (union by rank).

    Returns:
        False if both were already in the same set.
    """
    rx = find_root(parent, x)
    ry = find_root(parent, y)
    if rx == ry:
        return False
    if rank[rx] < rank[ry]:
        parent[rx] = ry
    elif rank[rx] > rank[ry]:
        parent[ry] = rx
    else:
        parent[ry] = rx
        rank[rx] += 1
    return True

@njit(cache=True)
def _kruskal_kernel(edge_u: np.ndarray, edge_v: np.ndarray, n: int) -> np.ndarray:
    parent = np.arange(n)
    rank = np.zeros(n, dtype=np.int64)
    tree = np.empty((n - 1, 2), dtype=np.int64)
    count = 0
    for k in range(len(edge_u)):
        if count == n - 1:
            break
        u = edge_u[k]
        v = edge_v[k]
        if union_sets(parent, rank, u, v):
            tree[count, 0] = u
            tree[count, 1] = v
            count += 1
    return tree[:count]


# =============================================================================
# 2. GRAPH CONSTRUCTION
# =============================================================================

def _check_distances(dist: ArrayFloat) -> None:
    bad = np.isnan(dist) | (dist < 0.0)
    if np.any(bad):
        raise ValueError(f"Distance function returned an invalid value: {dist[np.argmax(bad)]!r}")

def pairwise_distances(colors: Sequence[T], distance: DistanceFunc = distance_ciede2000) -> ArrayFloat:
    """
    Condensed pairwise distance vector.

    Args:
        colors: The colors to compare.
        distance: Metric ``distance(c1, c2) -> float``.

    Returns:
        Length n*(n-1)/2, pairs (i, j) with i < j in row-major order.

    Raises:
        ValueError: If any distance is NaN or negative.
    """
    n = len(colors)
    if distance is distance_ciede2000:
        lab = np.array([to_array(as_lab(c)) for c in colors], dtype=np.float64).reshape(n, 3)
        dist = ColorMetrics.condensed_delta_E_2000(lab)
    else:
        dist = np.fromiter(
            (distance(colors[i], colors[j]) for i in range(n) for j in range(i + 1, n)),
            dtype=np.float64,
            count=n * (n - 1) // 2,
        )
    _check_distances(dist)
    return dist

def spanning_tree_edges(dist: ArrayFloat, n: int) -> np.ndarray:
    """
    Kruskal's minimum spanning tree over a condensed distance vector.

    Ties keep their enumeration order (stable sort).

    Returns:
        Accepted edges as an (n - 1, 2) integer array, in acceptance order.
    """
    if n < 2:
        return np.empty((0, 2), dtype=np.int64)
    rows, cols = np.triu_indices(n, k=1)
    order = np.argsort(dist, kind="stable")
    return _kruskal_kernel(rows[order].astype(np.int64), cols[order].astype(np.int64), n)


# =============================================================================
# 3. SEQUENCING
# =============================================================================

def _condensed_index(i: int, j: int, n: int) -> int:
    """Position of pair (i, j), i < j, in the row-major condensed layout."""
    return i * n - i * (i + 1) // 2 + (j - i - 1)

def _preorder(tree: np.ndarray, dist: ArrayFloat, n: int, root: int) -> list[int]:
    adjacency: list[list[tuple[float, int]]] = [[] for _ in range(n)]
    for u, v in tree:
        u, v = int(u), int(v)
        w = float(dist[_condensed_index(min(u, v), max(u, v), n)])
        adjacency[u].append((w, v))
        adjacency[v].append((w, u))

    visited = [False] * n
    order: list[int] = []
    stack = [root]
    while stack:
        node = stack.pop()
        if visited[node]:
            continue
        visited[node] = True
        order.append(node)
        # Reverse push: nearest neighbor first, lower index on equal weight.
        stack.extend(m for _, m in sorted((e for e in adjacency[node] if not visited[e[1]]), reverse=True))
    return order

def _canonical_order(colors: Sequence[T], to_black: ArrayFloat) -> list[int]:
    """Input positions sorted by (distance to black, Lab coordinates)."""
    keys = [(float(to_black[i]), tuple(to_array(as_lab(c)).tolist())) for i, c in enumerate(colors)]
    return sorted(range(len(keys)), key=keys.__getitem__)

def sort_colors(colors: Sequence[T], distance: DistanceFunc = distance_ciede2000) -> list[T]:
    """
    Reorders colors into a perceptually smooth sequence.

    The colors are first put into a canonical order (distance to black,
    then Lab coordinates), so the result does not depend on input order.

    Args:
        colors: Any sequence of colors. It is not modified.
        distance: Metric used for both the spanning tree and the choice of
            starting color (default CIEDE2000).

    Returns:
        A new list holding the same colors, starting from the darkest one.

    Raises:
        ValueError: If the distance function returns NaN or a negative value.
    """
    items = list(colors)
    n = len(items)
    if n < 2:
        return items

    to_black = np.array([distance(_BLACK, c) for c in items], dtype=np.float64)
    _check_distances(to_black)
    items = [items[i] for i in _canonical_order(items, to_black)]

    dist = pairwise_distances(items, distance)
    tree = spanning_tree_edges(dist, n)

    # Canonical position 0 is the color closest to black.
    return [items[i] for i in _preorder(tree, dist, n, 0)]


# =============================================================================
# Validation Block
# =============================================================================
if __name__ == "__main__":
    from skein_colors import to_hex, parse_hex

    print("--- Skein Sequencer Validation ---")

    palette = [parse_hex(h) for h in ("#ff0000", "#0000ff", "#800000", "#000080", "#ff8080", "#8080ff")]
    ordered = sort_colors(palette)
    print(f"   Order: {[to_hex(c) for c in ordered]}")

    print("1. Permutation...")
    same = sorted(to_hex(c) for c in ordered) == sorted(to_hex(c) for c in palette)
    print(f"   {'[PASS]' if same else '[FAIL]'}")

    print("2. Input-order invariance on a star...")
    star = [parse_hex(h) for h in ("#000000", "#400000", "#000040")]
    forward = [to_hex(c) for c in sort_colors(star)]
    backward = [to_hex(c) for c in sort_colors(star[::-1])]
    print(f"   {forward} {'[PASS]' if forward == backward else '[FAIL]'}")

    print("--- Validation Complete ---")
