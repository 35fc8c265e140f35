from __future__ import annotations

import math
import numbers
from dataclasses import dataclass

from hydroclimate.errors import InvalidInputError


def _check_quantiles(name: str, qs: tuple[float, ...]) -> None:
    if len(qs) != 3:
        raise InvalidInputError(f"{name} must hold exactly 3 values")
    prev = 0.0
    for q in qs:
        q = float(q)
        if not (prev < q < 1.0):
            raise InvalidInputError(
                f"{name} must be strictly increasing inside (0, 1), got {qs}"
            )
        prev = q


@dataclass(frozen=True)
class WorldParameters:
    """Per-world inputs shared by every climate stage.

    axial_tilt shifts the warmest latitude away from the equator (fraction of
    the map height, -0.5..0.5). distance_to_star is relative to a reference
    orbit of 1.0; larger values give a colder world.
    """

    seed: int = 0
    axial_tilt: float = 0.0
    distance_to_star: float = 1.0

    def validate(self) -> None:
        if isinstance(self.seed, bool) or not isinstance(self.seed, numbers.Integral):
            raise InvalidInputError(f"seed must be an integer, got {self.seed!r}")
        tilt = float(self.axial_tilt)
        if not math.isfinite(tilt) or tilt < -0.5 or tilt > 0.5:
            raise InvalidInputError(
                f"axial_tilt must be within [-0.5, 0.5], got {self.axial_tilt}"
            )
        d = float(self.distance_to_star)
        if not math.isfinite(d) or d <= 0.0:
            raise InvalidInputError(
                f"distance_to_star must be finite and > 0, got {self.distance_to_star}"
            )


@dataclass(frozen=True)
class GenerationParameters:
    # Basins and pit filling.
    min_basin_area: int = 100
    min_basin_depth: float = 0.0
    drain_map_edges: bool = True
    epsilon_fill: bool = True

    # Elevation levels; None means "take the land quantile".
    hill_level: float | None = None
    mountain_level: float | None = None
    peak_level: float | None = None
    elevation_quantiles: tuple[float, float, float] = (0.70, 0.85, 0.95)

    # Drainage; a None accumulation threshold means "take the land quantile".
    river_source_accumulation: float | None = 10.0
    river_accumulation_quantile: float = 0.15
    river_headwaters_only: bool = False
    major_river_limit: int = 15
    precipitation_weighted_flow: bool = False

    # Temperature.
    temperature_noise_weight: float = 1.0 / 12.0
    temperature_noise_octaves: int = 8
    temperature_noise_periods: float = 8.0
    temperature_mountain_cooling: bool = False
    mountain_cooling_range: float = 0.3

    # Precipitation.
    precipitation_noise_octaves: int = 6
    precipitation_noise_periods: float = 8.0 / 3.0
    precipitation_gamma: float = 2.0
    precipitation_curve_bonus: float = 0.2
    precipitation_quantiles: tuple[float, float, float] = (0.30, 0.70, 0.95)

    # Rain shadow.
    rain_shadow_max_distance: int = 20
    rain_shadow_blocking_per_cell: float = 0.05
    rain_shadow_min_factor: float = 0.2
    rain_shadow_relief_fraction: float = 0.05

    # Coastal moisture.
    coastal_max_bonus: float = 0.8
    coastal_decay_range: float = 30.0
    coastal_elevation_resistance: float = 1.0

    def validate(self) -> None:
        if int(self.min_basin_area) < 1:
            raise InvalidInputError("min_basin_area must be >= 1")
        if not math.isfinite(float(self.min_basin_depth)) or self.min_basin_depth < 0:
            raise InvalidInputError("min_basin_depth must be finite and >= 0")

        levels = [
            v
            for v in (self.hill_level, self.mountain_level, self.peak_level)
            if v is not None
        ]
        for v in levels:
            if not math.isfinite(float(v)):
                raise InvalidInputError("elevation levels must be finite")
        _check_quantiles("elevation_quantiles", tuple(self.elevation_quantiles))
        _check_quantiles("precipitation_quantiles", tuple(self.precipitation_quantiles))

        acc = self.river_source_accumulation
        if acc is not None and (not math.isfinite(float(acc)) or float(acc) < 0.0):
            raise InvalidInputError("river_source_accumulation must be >= 0")
        if not (0.0 <= float(self.river_accumulation_quantile) < 1.0):
            raise InvalidInputError("river_accumulation_quantile must be within [0, 1)")
        if int(self.major_river_limit) < 0:
            raise InvalidInputError("major_river_limit must be >= 0")

        if int(self.temperature_noise_octaves) < 1 or int(self.precipitation_noise_octaves) < 1:
            raise InvalidInputError("noise octaves must be >= 1")
        if float(self.temperature_noise_periods) <= 0.0 or float(self.precipitation_noise_periods) <= 0.0:
            raise InvalidInputError("noise periods must be > 0")
        if float(self.mountain_cooling_range) <= 0.0:
            raise InvalidInputError("mountain_cooling_range must be > 0")

        if float(self.precipitation_gamma) <= 0.0:
            raise InvalidInputError("precipitation_gamma must be > 0")
        if not (0.0 <= float(self.precipitation_curve_bonus) <= 1.0):
            raise InvalidInputError("precipitation_curve_bonus must be within [0, 1]")

        if int(self.rain_shadow_max_distance) < 0:
            raise InvalidInputError("rain_shadow_max_distance must be >= 0")
        if float(self.rain_shadow_blocking_per_cell) < 0.0:
            raise InvalidInputError("rain_shadow_blocking_per_cell must be >= 0")
        if not (0.0 <= float(self.rain_shadow_min_factor) <= 1.0):
            raise InvalidInputError("rain_shadow_min_factor must be within [0, 1]")
        if float(self.rain_shadow_relief_fraction) < 0.0:
            raise InvalidInputError("rain_shadow_relief_fraction must be >= 0")

        if float(self.coastal_max_bonus) < 0.0:
            raise InvalidInputError("coastal_max_bonus must be >= 0")
        if float(self.coastal_decay_range) <= 0.0:
            raise InvalidInputError("coastal_decay_range must be > 0")
        if float(self.coastal_elevation_resistance) < 0.0:
            raise InvalidInputError("coastal_elevation_resistance must be >= 0")
