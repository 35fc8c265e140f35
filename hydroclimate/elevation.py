from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from scipy import ndimage

from hydroclimate.grid import OCTANT_OFFSETS, as_grid, as_mask, border_mask, shifted
from hydroclimate.params import GenerationParameters
from hydroclimate.thresholds import quantile_thresholds

_CROSS = ndimage.generate_binary_structure(2, 1)


@dataclass(frozen=True)
class ElevationLevels:
    sea_level: float
    hill_level: float
    mountain_level: float
    peak_level: float


def ocean_mask_from_border(height: np.ndarray, *, sea_level: float) -> np.ndarray:
    """Cells below sea level that are 4-connected to the map border.

    Enclosed below-sea-level pockets are not ocean; they stay land and become
    basin candidates downstream.
    """

    h = as_grid(height)
    below = h < float(sea_level)
    if not bool(np.any(below)):
        return np.zeros(h.shape, dtype=bool)

    labels, _ = ndimage.label(below, structure=_CROSS)
    edge_labels = np.unique(labels[border_mask(h.shape)])
    edge_labels = edge_labels[edge_labels > 0]
    return np.isin(labels, edge_labels)


def local_minima(
    height: np.ndarray,
    *,
    ocean_mask: np.ndarray,
    exclude: np.ndarray | None = None,
) -> np.ndarray:
    """Non-ocean cells no higher than any in-bounds 8-neighbor.

    Ties count as minima, so a flat plateau is all minima.
    """

    h = as_grid(height)
    ocean = as_mask(ocean_mask, h.shape, name="ocean_mask")
    skip = as_mask(exclude, h.shape, name="exclude")

    p = np.pad(h, 1, mode="constant", constant_values=np.inf)
    minima = np.ones(h.shape, dtype=bool)
    for dy, dx in OCTANT_OFFSETS:
        minima &= h <= shifted(p, dy, dx, h.shape)
    return minima & ~ocean & ~skip


def elevation_levels(
    height: np.ndarray,
    *,
    ocean_mask: np.ndarray,
    sea_level: float,
    params: GenerationParameters,
) -> ElevationLevels:
    """Hill, mountain and peak levels.

    Explicit levels from params win; the rest come from quantiles of the land
    cells (all cells when the map has no land).
    """

    h = as_grid(height)
    land = ~as_mask(ocean_mask, h.shape, name="ocean_mask")
    q = quantile_thresholds(h, mask=land, quantiles=tuple(params.elevation_quantiles))

    def pick(explicit: float | None, fallback: float) -> float:
        return float(fallback) if explicit is None else float(explicit)

    return ElevationLevels(
        sea_level=float(sea_level),
        hill_level=pick(params.hill_level, q.low),
        mountain_level=pick(params.mountain_level, q.medium),
        peak_level=pick(params.peak_level, q.high),
    )
