from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from hydroclimate.grid import as_grid, normalize01
from hydroclimate.noise import TEMPERATURE_STREAM, noise_field
from hydroclimate.params import GenerationParameters, WorldParameters

# Cooling never takes a summit below this fraction of its lowland value.
_MIN_COOLING_FACTOR = 0.033


def _smoothstep(t: np.ndarray) -> np.ndarray:
    t = np.clip(np.asarray(t, dtype=np.float64), 0.0, 1.0)
    return t * t * (3.0 - 2.0 * t)


@dataclass(frozen=True)
class TemperatureStages:
    latitude_only: np.ndarray
    with_noise: np.ndarray
    with_distance: np.ndarray
    final: np.ndarray


def latitude_only(shape: tuple[int, int], *, axial_tilt: float) -> np.ndarray:
    """Insolation by row: 1 at the thermal equator, 0 half a map away.

    axial_tilt moves the thermal equator by that fraction of the map height.
    """

    H, W = int(shape[0]), int(shape[1])
    if H <= 0 or W <= 0:
        raise ValueError("shape must be positive")

    tilt = float(axial_tilt)
    lat = np.arange(H, dtype=np.float64) / float(H) - 0.5
    tri = np.interp(lat, [tilt - 0.5, tilt, tilt + 0.5], [0.0, 1.0, 0.0])
    rows = normalize01(_smoothstep(tri))
    return np.repeat(rows[:, None], W, axis=1)


def with_noise(latitude: np.ndarray, noise: np.ndarray, *, weight: float) -> np.ndarray:
    lat = as_grid(latitude, name="latitude")
    n = as_grid(noise, name="noise")
    if n.shape != lat.shape:
        raise ValueError("noise must match latitude shape")
    return normalize01(lat + n * float(weight))


def with_distance(temperature: np.ndarray, *, distance_to_star: float) -> np.ndarray:
    """Inverse-square insolation as a gamma curve.

    distance 1.0 leaves the field as is; closer worlds are pushed warmer and
    farther ones colder, before renormalizing.
    """

    t = as_grid(temperature, name="temperature")
    d = float(distance_to_star)
    if d <= 0.0:
        raise ValueError("distance_to_star must be > 0")
    return normalize01(np.power(np.clip(t, 0.0, 1.0), d * d))


def final_temperature(
    temperature: np.ndarray,
    *,
    height: np.ndarray | None = None,
    mountain_level: float | None = None,
    cooling_range: float = 0.3,
    mountain_cooling: bool = False,
) -> np.ndarray:
    t = as_grid(temperature, name="temperature")
    if not bool(mountain_cooling):
        return t.copy()
    if height is None or mountain_level is None:
        raise ValueError("mountain cooling needs height and mountain_level")

    h = as_grid(height)
    if h.shape != t.shape:
        raise ValueError("height must match temperature shape")

    above = np.clip((h - float(mountain_level)) / float(cooling_range), 0.0, 1.0)
    factor = np.maximum(1.0 - above, _MIN_COOLING_FACTOR)
    return normalize01(t * factor)


def temperature_stages(
    shape: tuple[int, int],
    *,
    world: WorldParameters,
    params: GenerationParameters,
    height: np.ndarray | None = None,
    mountain_level: float | None = None,
) -> TemperatureStages:
    lat = latitude_only(shape, axial_tilt=world.axial_tilt)
    n = noise_field(
        shape,
        seed=world.seed,
        stream=TEMPERATURE_STREAM,
        octaves=params.temperature_noise_octaves,
        periods=params.temperature_noise_periods,
    )
    noisy = with_noise(lat, n, weight=params.temperature_noise_weight)
    dist = with_distance(noisy, distance_to_star=world.distance_to_star)
    final = final_temperature(
        dist,
        height=height,
        mountain_level=mountain_level,
        cooling_range=params.mountain_cooling_range,
        mountain_cooling=params.temperature_mountain_cooling,
    )
    return TemperatureStages(
        latitude_only=lat, with_noise=noisy, with_distance=dist, final=final
    )
