from __future__ import annotations

import heapq
from collections.abc import Iterable

import numpy as np

from hydroclimate.basins import Basin, basin_mask, outlet_mask
from hydroclimate.grid import OCTANT_OFFSETS, as_grid, as_mask, shifted


def fill_pits_priority_flood(
    height: np.ndarray,
    *,
    ocean_mask: np.ndarray,
    basins: Iterable[Basin] = (),
    drain_map_edges: bool = False,
    epsilon: bool = True,
) -> tuple[np.ndarray, np.ndarray]:
    """Fill every depression that is not a preserved basin.

    Returns (filled_height, fill_depth), where fill_depth = filled - height.

    The flood starts from the ocean, from the rim cells of preserved basins
    and (with drain_map_edges, on maps that have an ocean) from the map
    border, and raises each cell it reaches to the level it must spill
    over. Equal levels leave the heap in row-major order, and a reached
    cell's level depends only on the level it was reached from, so the
    result does not depend on that order. With epsilon, cells raised onto
    a flat get the next representable float above their spill level, so every
    reached cell keeps a strictly lower neighbor (Priority-Flood+epsilon,
    Barnes et al. 2014). Preserved basin cells keep their raw elevation.
    Without any seed the grid is returned unchanged.
    """

    h = as_grid(height)
    H, W = h.shape
    ocean = as_mask(ocean_mask, h.shape, name="ocean_mask")
    keep = basin_mask(list(basins), h.shape)

    filled = h.copy()
    if H == 0 or W == 0:
        return filled, np.zeros_like(h)

    # Basin rims: basin cells with an 8-neighbor outside the basin.
    p = np.pad(keep, 1, mode="constant", constant_values=False)
    inner = keep.copy()
    for dy, dx in OCTANT_OFFSETS:
        inner &= shifted(p, dy, dx, h.shape)
    seeds = (outlet_mask(ocean, drain_map_edges=drain_map_edges) & ~keep) | (keep & ~inner)

    visited = seeds | keep
    heap: list[tuple[float, int, int]] = [
        (float(h[y, x]), int(y), int(x)) for y, x in zip(*np.nonzero(seeds))
    ]
    heapq.heapify(heap)

    eps = bool(epsilon)
    while heap:
        v, y, x = heapq.heappop(heap)

        for dy, dx in OCTANT_OFFSETS:
            ny = y + dy
            nx = x + dx
            if ny < 0 or ny >= H or nx < 0 or nx >= W:
                continue
            if visited[ny, nx]:
                continue
            visited[ny, nx] = True
            hv = float(h[ny, nx])
            if hv > v:
                fv = hv
            elif eps:
                fv = float(np.nextafter(v, np.inf))
            else:
                fv = v
            filled[ny, nx] = fv
            heapq.heappush(heap, (fv, ny, nx))

    fill_depth = np.clip(filled - h, 0.0, np.inf)
    return filled, fill_depth
