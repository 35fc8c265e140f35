from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass

import numpy as np

from hydroclimate.grid import OCTANT_OFFSETS, as_grid, as_mask, mask_cells, shifted

logger = logging.getLogger(__name__)

SINK = -1


def flow_direction_d8(
    filled: np.ndarray,
    *,
    ocean_mask: np.ndarray,
    sink_mask: np.ndarray | None = None,
) -> np.ndarray:
    """D8 octant (0..7 = N, NE, E, SE, S, SW, W, NW) of the steepest descent.

    Each cell points at the neighbor with the greatest strictly positive drop;
    equal drops go to the earlier octant. Cells without a lower neighbor, ocean
    cells and cells in sink_mask (preserved basins) get -1.
    """

    h = as_grid(filled, name="filled")
    ocean = as_mask(ocean_mask, h.shape, name="ocean_mask")
    sinks = as_mask(sink_mask, h.shape, name="sink_mask")

    p = np.pad(h, 1, mode="constant", constant_values=np.inf)
    best = np.zeros(h.shape, dtype=np.float64)
    out = np.full(h.shape, SINK, dtype=np.int8)

    for k, (dy, dx) in enumerate(OCTANT_OFFSETS):
        drop = h - shifted(p, dy, dx, h.shape)
        take = drop > best
        best[take] = drop[take]
        out[take] = np.int8(k)

    out[ocean | sinks] = SINK
    return out


def downstream_index(directions: np.ndarray) -> np.ndarray:
    """Flat index of the cell each octant points at (-1 for sinks)."""

    d = np.asarray(directions)
    if d.ndim != 2:
        raise ValueError("directions must be a 2D array")
    if bool(np.any((d < SINK) | (d > 7))):
        raise ValueError("directions must be octants 0..7 or -1")

    H, W = d.shape
    off = np.asarray(OCTANT_OFFSETS, dtype=np.int64)
    ys = np.arange(H, dtype=np.int64)[:, None]
    xs = np.arange(W, dtype=np.int64)[None, :]

    flowing = d >= 0
    k = np.where(flowing, d, 0).astype(np.int64)
    to_y = ys + off[k, 0]
    to_x = xs + off[k, 1]
    inside = (to_y >= 0) & (to_y < H) & (to_x >= 0) & (to_x < W)
    if bool(np.any(flowing & ~inside)):
        raise ValueError("directions point outside the grid")

    out = np.where(flowing, to_y * W + to_x, SINK)
    return out.reshape(-1)


@dataclass(frozen=True)
class FlowAccumulation:
    """Accumulated flow plus the directions it was computed on.

    When direction cycles are found, their cells are forced to sinks and
    `directions` is the corrected copy; `cycle_cells` marks them.
    """

    accumulation: np.ndarray
    directions: np.ndarray
    cycle_cells: np.ndarray

    @property
    def had_cycles(self) -> bool:
        return bool(np.any(self.cycle_cells))


def flow_accumulation_d8(
    directions: np.ndarray,
    *,
    weights: np.ndarray | None = None,
) -> FlowAccumulation:
    """Kahn-order flow accumulation over a D8 direction grid.

    Every cell starts with its own weight (1 by default) and passes its total
    downstream once all of its upstream cells are done. Cells left with
    pending inflow afterwards sit on a direction cycle.
    """

    d = np.asarray(directions)
    ds = downstream_index(d)
    H, W = d.shape
    n = int(H * W)

    if weights is None:
        acc0 = np.ones(n, dtype=np.float64)
    else:
        w = as_grid(weights, name="weights")
        if w.shape != d.shape:
            raise ValueError("weights must have the same shape as directions")
        if not bool(np.all(np.isfinite(w))) or bool(np.any(w < 0.0)):
            raise ValueError("weights must be finite and >= 0")
        acc0 = w.reshape(-1).copy()

    indeg = np.bincount(ds[ds >= 0], minlength=n)

    acc = acc0.tolist()
    down = ds.tolist()
    pending = indeg.tolist()
    queue = deque(int(i) for i in np.flatnonzero(indeg == 0))

    while queue:
        i = queue.popleft()
        j = down[i]
        if j < 0:
            continue
        acc[j] += acc[i]
        pending[j] -= 1
        if pending[j] == 0:
            queue.append(j)

    cycles = (np.asarray(pending, dtype=np.int64) > 0).reshape(H, W)
    fixed = d.astype(np.int8, copy=True)
    if bool(np.any(cycles)):
        logger.warning(
            "flow directions contain cycles; forcing %d cells to sinks",
            int(np.count_nonzero(cycles)),
        )
        fixed[cycles] = SINK

    return FlowAccumulation(
        accumulation=np.asarray(acc, dtype=np.float64).reshape(H, W),
        directions=fixed,
        cycle_cells=cycles,
    )


def river_source_mask(
    filled: np.ndarray,
    accumulation: np.ndarray,
    *,
    mountain_level: float,
    accumulation_threshold: float,
    land_mask: np.ndarray | None = None,
    directions: np.ndarray | None = None,
    headwaters_only: bool = False,
) -> np.ndarray:
    """Cells high enough and wet enough to start a river.

    With headwaters_only, a qualifying cell is dropped when any cell flowing
    into it also qualifies, leaving the first threshold crossing per channel.
    """

    h = as_grid(filled, name="filled")
    a = as_grid(accumulation, name="accumulation")
    if a.shape != h.shape:
        raise ValueError("accumulation must match filled shape")

    m = (h >= float(mountain_level)) & (a >= float(accumulation_threshold))
    if land_mask is not None:
        m &= as_mask(land_mask, h.shape, name="land_mask")

    if not bool(headwaters_only):
        return m
    if directions is None:
        raise ValueError("headwaters_only requires directions")

    ds = downstream_index(directions)
    flat = m.reshape(-1)
    fed = np.zeros(flat.shape, dtype=bool)
    src = flat & (ds >= 0)
    fed[ds[src]] = True
    return (flat & ~fed).reshape(h.shape)


def river_sources(mask: np.ndarray) -> list[tuple[int, int]]:
    return mask_cells(mask)


def erosion_potential(filled: np.ndarray, accumulation: np.ndarray) -> np.ndarray:
    """Elevation times accumulation; a display-only hotspot map."""

    h = as_grid(filled, name="filled")
    a = as_grid(accumulation, name="accumulation")
    if a.shape != h.shape:
        raise ValueError("accumulation must match filled shape")
    return h * a


def adaptive_accumulation_threshold(
    accumulation: np.ndarray,
    *,
    land_mask: np.ndarray | None = None,
    quantile: float = 0.15,
) -> float:
    """Accumulation at a low quantile of wet land cells.

    Uses sorted[int(n * quantile)] over land cells with positive accumulation,
    so small streams already count as rivers. Falls back to 0.1 when there
    are no such cells.
    """

    a = as_grid(accumulation, name="accumulation")
    m = a > 0.0
    if land_mask is not None:
        m &= as_mask(land_mask, a.shape, name="land_mask")
    vals = np.sort(a[m])
    if vals.size == 0:
        return 0.1
    i = min(max(int(vals.size * float(quantile)), 0), vals.size - 1)
    return float(vals[i])


def major_rivers(
    sources: list[tuple[int, int]],
    accumulation: np.ndarray,
    directions: np.ndarray,
    *,
    limit: int = 15,
) -> list[tuple[int, int]]:
    """Keep the `limit` sources whose rivers grow largest.

    A source's rank is the largest accumulation met while following the
    directions down to a sink. Equal ranks keep the order of `sources`.
    """

    a = as_grid(accumulation, name="accumulation")
    ds = downstream_index(directions)
    if a.shape != np.asarray(directions).shape:
        raise ValueError("accumulation must match directions shape")

    flat = a.reshape(-1)
    W = a.shape[1]
    ranked: list[tuple[float, tuple[int, int]]] = []
    for y, x in sources:
        i = int(y) * W + int(x)
        best = float(flat[i])
        # At most one step per cell, even on cyclic directions.
        for _ in range(flat.size):
            i = int(ds[i])
            if i < 0:
                break
            best = max(best, float(flat[i]))
        ranked.append((best, (int(y), int(x))))

    ranked.sort(key=lambda r: -r[0])
    return [cell for _, cell in ranked[: max(int(limit), 0)]]
