from __future__ import annotations

import numpy as np

# Zonal wind by absolute latitude in degrees: +1 blows east, -1 blows west.
# Trade winds and polar easterlies blow west, westerlies blow east; the
# 5-degree ramps meet at the calm belts near 30 and 60 degrees.
_BAND_EDGES = np.array([0.0, 25.0, 30.0, 35.0, 55.0, 60.0, 65.0, 90.0])
_BAND_WIND = np.array([-1.0, -1.0, 0.0, 1.0, 1.0, 0.0, -1.0, -1.0])


def latitude_degrees(latitude01: np.ndarray | float) -> np.ndarray:
    """Map a 0..1 row position (0 = top edge) to -90..90 degrees."""
    return (np.asarray(latitude01, dtype=np.float64) - 0.5) * 180.0


def row_latitudes01(height: int) -> np.ndarray:
    H = int(height)
    if H <= 0:
        raise ValueError("height must be > 0")
    if H == 1:
        return np.array([0.5], dtype=np.float64)
    return np.arange(H, dtype=np.float64) / float(H - 1)


def prevailing_wind(latitude01: np.ndarray | float) -> np.ndarray:
    a = np.abs(latitude_degrees(latitude01))
    return np.interp(a, _BAND_EDGES, _BAND_WIND)


def wind_band(latitude01: float) -> str:
    a = abs(float(latitude_degrees(latitude01)))
    if a < 30.0:
        return "trade winds"
    if a < 60.0:
        return "westerlies"
    return "polar easterlies"
