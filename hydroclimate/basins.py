from __future__ import annotations

import heapq
import logging
from dataclasses import dataclass, replace

import numpy as np
from scipy import ndimage

from hydroclimate.grid import OCTANT_OFFSETS, as_grid, as_mask, border_mask
from hydroclimate.params import GenerationParameters

logger = logging.getLogger(__name__)

_SQUARE = np.ones((3, 3), dtype=bool)

Cell = tuple[int, int]


@dataclass(frozen=True)
class Basin:
    """A closed depression in the raw heightmap.

    `surface_elevation` is the level at which the depression spills;
    `pour_point` is the lowest cell just outside it (where it would spill).
    """

    id: int
    cells: frozenset[Cell]
    area: int
    depth: float
    center: Cell
    pour_point: Cell
    surface_elevation: float

    def contains(self, cell: Cell) -> bool:
        return (int(cell[0]), int(cell[1])) in self.cells


def spill_levels(height: np.ndarray, *, outlets: np.ndarray) -> np.ndarray:
    """Lowest level from which each cell can drain to an outlet (8-connected).

    Cells unreachable from any outlet are returned as +inf.
    """

    h = as_grid(height)
    H, W = h.shape
    spill = np.full((H, W), np.inf, dtype=np.float64)
    visited = np.asarray(outlets, dtype=bool).copy()

    heap: list[tuple[float, int, int]] = []
    for y, x in zip(*np.nonzero(visited)):
        v = float(h[y, x])
        spill[y, x] = v
        heap.append((v, int(y), int(x)))
    heapq.heapify(heap)

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
            fv = hv if hv >= v else v
            spill[ny, nx] = fv
            heapq.heappush(heap, (fv, ny, nx))
    return spill


def outlet_mask(ocean_mask: np.ndarray, *, drain_map_edges: bool) -> np.ndarray:
    """Cells water can leave the map through.

    The ocean always drains. With drain_map_edges the map border drains too,
    but only on maps that have an ocean: a map without any ocean is landlocked
    and has no outlet at all.
    """

    ocean = np.asarray(ocean_mask, dtype=bool)
    out = ocean.copy()
    if bool(drain_map_edges) and bool(np.any(ocean)):
        out |= border_mask(ocean.shape)
    return out


def _lowest_cell(h: np.ndarray, mask: np.ndarray) -> Cell | None:
    # np.argmin returns the first minimum, i.e. row-major tie-break.
    if not bool(np.any(mask)):
        return None
    vals = np.where(mask, h, np.inf)
    y, x = np.unravel_index(int(np.argmin(vals)), h.shape)
    return int(y), int(x)


def _candidate(
    hw: np.ndarray,
    comp: np.ndarray,
    *,
    origin: Cell,
    pour_point: Cell | None,
    surface: float,
) -> Basin | None:
    """Build an unnumbered basin from a component mask over the window `hw`."""

    if pour_point is None or not bool(np.any(comp)):
        return None
    oy, ox = origin
    cy, cx = _lowest_cell(hw, comp)
    ys, xs = np.nonzero(comp)
    cells = frozenset((int(y) + oy, int(x) + ox) for y, x in zip(ys, xs))
    return Basin(
        id=-1,
        cells=cells,
        area=len(cells),
        depth=float(surface) - float(hw[cy, cx]),
        center=(cy + oy, cx + ox),
        pour_point=pour_point,
        surface_elevation=float(surface),
    )


def basin_candidates(
    height: np.ndarray,
    *,
    ocean_mask: np.ndarray,
    drain_map_edges: bool = False,
) -> list[Basin]:
    """Every closed depression of the raw heightmap, unnumbered and unfiltered."""

    h = as_grid(height)
    H, W = h.shape
    ocean = as_mask(ocean_mask, h.shape, name="ocean_mask")

    outlets = outlet_mask(ocean, drain_map_edges=drain_map_edges)

    if not bool(np.any(outlets)):
        # Landlocked: the whole map is one closed candidate that would
        # overflow at its lowest border cell.
        pour = _lowest_cell(h, border_mask(h.shape))
        surface = float(h[pour]) if pour is not None else float("nan")
        cand = _candidate(
            h, np.ones((H, W), dtype=bool), origin=(0, 0), pour_point=pour, surface=surface
        )
        if cand is None:
            logger.debug("dropping degenerate landlocked basin")
            return []
        return [cand]

    spill = spill_levels(h, outlets=outlets)
    labels, n = ndimage.label(spill > h, structure=_SQUARE)
    if n == 0:
        return []

    out: list[Basin] = []
    for i, sl in enumerate(ndimage.find_objects(labels), start=1):
        if sl is None:
            continue
        # Window grown by one cell so the rim is visible.
        y0 = max(sl[0].start - 1, 0)
        y1 = min(sl[0].stop + 1, H)
        x0 = max(sl[1].start - 1, 0)
        x1 = min(sl[1].stop + 1, W)
        hw = h[y0:y1, x0:x1]
        local = labels[y0:y1, x0:x1] == i
        rim = ndimage.binary_dilation(local, structure=_SQUARE) & ~local

        pour_local = _lowest_cell(hw, rim)
        pour = None if pour_local is None else (pour_local[0] + y0, pour_local[1] + x0)
        surface = float(np.max(spill[y0:y1, x0:x1][local]))

        cand = _candidate(hw, local, origin=(y0, x0), pour_point=pour, surface=surface)
        if cand is None:
            logger.debug("dropping degenerate depression %d (no pour point)", i)
            continue
        out.append(cand)
    return out


def find_basins(
    height: np.ndarray,
    *,
    ocean_mask: np.ndarray,
    params: GenerationParameters,
) -> tuple[list[Basin], list[Basin]]:
    """Split closed depressions into (preserved, released).

    Preserved basins are kept as endorheic lakes; released ones are left for
    the pit filler. Preserved basins are numbered from 0 by
    (center elevation, center row, center column); released ones continue
    the numbering.
    """

    h = as_grid(height)
    cands = basin_candidates(
        h, ocean_mask=ocean_mask, drain_map_edges=bool(params.drain_map_edges)
    )
    cands.sort(key=lambda b: (float(h[b.center]), b.center[0], b.center[1]))

    min_area = int(params.min_basin_area)
    min_depth = float(params.min_basin_depth)
    keep = [b for b in cands if b.area >= min_area and b.depth >= min_depth]
    drop = [b for b in cands if not (b.area >= min_area and b.depth >= min_depth)]

    preserved = [_renumber(b, i) for i, b in enumerate(keep)]
    released = [_renumber(b, len(keep) + i) for i, b in enumerate(drop)]
    return preserved, released


def _renumber(b: Basin, basin_id: int) -> Basin:
    return replace(b, id=int(basin_id))


def basin_id_grid(basins: list[Basin], shape: tuple[int, int]) -> np.ndarray:
    """Basin id per cell, -1 outside every basin."""

    out = np.full(tuple(shape), -1, dtype=np.int32)
    for b in basins:
        if not b.cells:
            continue
        ys, xs = zip(*b.cells)
        out[np.asarray(ys), np.asarray(xs)] = int(b.id)
    return out


def basin_mask(basins: list[Basin], shape: tuple[int, int]) -> np.ndarray:
    out = np.zeros(tuple(shape), dtype=bool)
    for b in basins:
        if b.cells:
            ys, xs = zip(*b.cells)
            out[np.asarray(ys), np.asarray(xs)] = True
    return out
