from __future__ import annotations

import numpy as np

from hydroclimate.grid import as_grid, as_mask
from hydroclimate.params import GenerationParameters
from hydroclimate.winds import prevailing_wind, row_latitudes01


def rain_shadow_factor(
    height: np.ndarray,
    *,
    ocean_mask: np.ndarray,
    sea_level: float,
    params: GenerationParameters,
    wind_x: np.ndarray | None = None,
) -> np.ndarray:
    """Per-cell moisture multiplier in [min_factor, 1] from upwind barriers.

    Each land cell looks up to `rain_shadow_max_distance` cells upwind along
    its row. Every upwind cell that stands above it by more than the barrier
    height (a fraction of the map relief above sea level) removes
    `rain_shadow_blocking_per_cell`, scaled by wind strength. wind_x gives the
    zonal wind per row and defaults to the prevailing wind bands.

    Every upwind cell within reach is sampled, also in the weak-wind
    transition bands. A walk that steps `int(wind * step)` cells would sample
    those bands more sparsely and count each barrier in full; here weak wind
    scales the per-cell reduction instead.
    """

    h = as_grid(height)
    H, W = h.shape
    ocean = as_mask(ocean_mask, h.shape, name="ocean_mask")

    if wind_x is None:
        wind = prevailing_wind(row_latitudes01(H))
    else:
        wind = np.asarray(wind_x, dtype=np.float64).reshape(-1)
        if wind.shape != (H,):
            raise ValueError("wind_x must hold one value per row")

    relief = max(float(np.max(h)) - float(sea_level), 0.0)
    barrier = relief * float(params.rain_shadow_relief_fraction)

    step_dir = np.sign(wind).astype(np.int64)[:, None]
    strength = np.clip(np.abs(wind), 0.0, 1.0)[:, None]
    xs = np.arange(W, dtype=np.int64)[None, :]

    blocked = np.zeros((H, W), dtype=np.float64)
    for step in range(1, int(params.rain_shadow_max_distance) + 1):
        ux = xs - step_dir * step
        inside = (ux >= 0) & (ux < W) & (step_dir != 0)
        up = np.take_along_axis(h, np.clip(ux, 0, W - 1), axis=1)
        blocked += (inside & (up - h > barrier)).astype(np.float64)

    factor = 1.0 - blocked * float(params.rain_shadow_blocking_per_cell) * strength
    factor = np.maximum(factor, float(params.rain_shadow_min_factor))
    factor[ocean] = 1.0
    return factor


def rain_shadow(
    precipitation: np.ndarray,
    height: np.ndarray,
    *,
    ocean_mask: np.ndarray,
    sea_level: float,
    params: GenerationParameters,
    wind_x: np.ndarray | None = None,
) -> tuple[np.ndarray, np.ndarray]:
    """Return (precipitation with rain shadow, shadow factor)."""

    p = as_grid(precipitation, name="precipitation")
    factor = rain_shadow_factor(
        height, ocean_mask=ocean_mask, sea_level=sea_level, params=params, wind_x=wind_x
    )
    if factor.shape != p.shape:
        raise ValueError("precipitation must match height shape")
    return p * factor, factor
