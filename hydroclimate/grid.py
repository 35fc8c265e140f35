from __future__ import annotations

import math

import numpy as np

# D8 octants in (dy, dx): N, NE, E, SE, S, SW, W, NW.
OCTANT_OFFSETS: tuple[tuple[int, int], ...] = (
    (-1, 0),
    (-1, 1),
    (0, 1),
    (1, 1),
    (1, 0),
    (1, -1),
    (0, -1),
    (-1, -1),
)


def as_grid(a: np.ndarray, *, name: str = "height") -> np.ndarray:
    g = np.asarray(a, dtype=np.float64)
    if g.ndim != 2:
        raise ValueError(f"{name} must be a 2D array")
    return g


def as_mask(m: np.ndarray | None, shape: tuple[int, int], *, name: str) -> np.ndarray:
    if m is None:
        return np.zeros(shape, dtype=bool)
    mask = np.asarray(m).astype(bool)
    if mask.shape != tuple(shape):
        raise ValueError(f"{name} must match the grid shape")
    return mask


def normalize01(z: np.ndarray) -> np.ndarray:
    """Min/max normalize to [0, 1]; constant arrays become all zeros."""

    z = np.asarray(z, dtype=np.float64)
    if z.size == 0:
        return z.copy()
    zmin = float(np.min(z))
    zmax = float(np.max(z))
    if math.isclose(zmin, zmax):
        return np.zeros_like(z)
    return np.clip((z - zmin) / (zmax - zmin), 0.0, 1.0)


def shifted(p: np.ndarray, dy: int, dx: int, shape: tuple[int, int]) -> np.ndarray:
    """View of a 1-padded array aligned so [y, x] reads the neighbor at (y+dy, x+dx)."""

    H, W = shape
    return p[1 + dy : 1 + dy + H, 1 + dx : 1 + dx + W]


def border_mask(shape: tuple[int, int]) -> np.ndarray:
    H, W = shape
    m = np.zeros((H, W), dtype=bool)
    if H == 0 or W == 0:
        return m
    m[0, :] = True
    m[-1, :] = True
    m[:, 0] = True
    m[:, -1] = True
    return m


def mask_cells(mask: np.ndarray) -> list[tuple[int, int]]:
    """List (y, x) cells of a boolean mask in row-major order."""

    ys, xs = np.nonzero(np.asarray(mask, dtype=bool))
    return [(int(y), int(x)) for y, x in zip(ys, xs)]
