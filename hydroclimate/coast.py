from __future__ import annotations

import numpy as np
from scipy import ndimage

from hydroclimate.grid import as_grid, as_mask
from hydroclimate.params import GenerationParameters


def distance_to_ocean(ocean_mask: np.ndarray) -> np.ndarray:
    """4-connected step distance to the nearest ocean cell (0 on ocean).

    Without any ocean every cell is +inf.
    """

    ocean = np.asarray(ocean_mask).astype(bool)
    if ocean.ndim != 2:
        raise ValueError("ocean_mask must be a 2D array")
    if not bool(np.any(ocean)):
        return np.full(ocean.shape, np.inf, dtype=np.float64)
    # Taxicab distance over an open grid equals the 4-connected BFS distance.
    d = ndimage.distance_transform_cdt(~ocean, metric="taxicab")
    return np.asarray(d, dtype=np.float64)


def coastal_moisture(
    precipitation: np.ndarray,
    height: np.ndarray,
    *,
    ocean_mask: np.ndarray,
    sea_level: float,
    params: GenerationParameters,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Maritime moisture bonus decaying inland.

    Returns (final precipitation, distance to ocean, bonus). Highlands resist
    the bonus in proportion to their share of the relief above sea level.
    Ocean cells are left unchanged.
    """

    p = as_grid(precipitation, name="precipitation")
    h = as_grid(height)
    if h.shape != p.shape:
        raise ValueError("height must match precipitation shape")
    ocean = as_mask(ocean_mask, h.shape, name="ocean_mask")

    dist = distance_to_ocean(ocean)

    sea_level = float(sea_level)
    span = float(np.max(h)) - sea_level
    if span > 0.0:
        relief = np.clip((h - sea_level) / span, 0.0, 1.0)
    else:
        relief = np.zeros_like(h)
    resist = 1.0 - np.minimum(1.0, relief * float(params.coastal_elevation_resistance))

    bonus = (
        float(params.coastal_max_bonus)
        * np.exp(-dist / float(params.coastal_decay_range))
        * resist
    )
    bonus[ocean] = 0.0

    final = p * (1.0 + bonus)
    return final, dist, bonus
