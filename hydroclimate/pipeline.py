from __future__ import annotations

import logging
import math
from dataclasses import dataclass, fields
from enum import Enum

import numpy as np

from hydroclimate.basins import Basin, basin_id_grid, find_basins
from hydroclimate.coast import coastal_moisture
from hydroclimate.elevation import (
    ElevationLevels,
    elevation_levels,
    local_minima,
    ocean_mask_from_border,
)
from hydroclimate.errors import InvalidInputError
from hydroclimate.hydrology import (
    adaptive_accumulation_threshold,
    erosion_potential,
    flow_accumulation_d8,
    flow_direction_d8,
    major_rivers,
    river_source_mask,
    river_sources,
)
from hydroclimate.lakes import fill_pits_priority_flood
from hydroclimate.params import GenerationParameters, WorldParameters
from hydroclimate.precipitation import precipitation_base_stages
from hydroclimate.rain_shadow import rain_shadow
from hydroclimate.temperature import temperature_stages
from hydroclimate.thresholds import Thresholds, classify, quantile_thresholds

logger = logging.getLogger(__name__)


class TemperatureStage(str, Enum):
    LATITUDE_ONLY = "latitude_only"
    WITH_NOISE = "with_noise"
    WITH_DISTANCE = "with_distance"
    FINAL = "final"


class PrecipitationStage(str, Enum):
    BASE_NOISE = "base_noise"
    TEMPERATURE_SHAPED = "temperature_shaped"
    BASE = "base"
    WITH_RAIN_SHADOW = "with_rain_shadow"
    FINAL = "final"


@dataclass(frozen=True, eq=False)
class WorldGenerationResult:
    """Every grid produced by one generation run; all arrays are read-only."""

    heightmap: np.ndarray
    sea_level: float
    world: WorldParameters
    params: GenerationParameters
    levels: ElevationLevels
    plates: np.ndarray | None

    # Drainage track.
    ocean_mask: np.ndarray
    local_minima: np.ndarray
    preserved_basins: tuple[Basin, ...]
    basin_ids: np.ndarray
    filled_heightmap: np.ndarray
    fill_depth: np.ndarray
    flow_directions: np.ndarray
    flow_accumulation: np.ndarray
    cycle_cells: np.ndarray
    river_source_mask: np.ndarray
    river_accumulation_threshold: float
    river_sources: tuple[tuple[int, int], ...]
    major_river_sources: tuple[tuple[int, int], ...]
    erosion_potential: np.ndarray

    # Climate track.
    temperature_latitude_only: np.ndarray
    temperature_with_noise: np.ndarray
    temperature_with_distance: np.ndarray
    temperature_final: np.ndarray
    precipitation_base_noise: np.ndarray
    precipitation_temperature_shaped: np.ndarray
    precipitation_base: np.ndarray
    precipitation_with_rain_shadow: np.ndarray
    precipitation_final: np.ndarray
    rain_shadow_factor: np.ndarray
    distance_to_ocean: np.ndarray
    coastal_bonus: np.ndarray
    base_thresholds: Thresholds
    base_classes: np.ndarray
    final_thresholds: Thresholds
    final_classes: np.ndarray

    @property
    def shape(self) -> tuple[int, int]:
        return tuple(self.heightmap.shape)

    def temperature(self, stage: TemperatureStage) -> np.ndarray:
        stage = TemperatureStage(stage)
        return getattr(self, f"temperature_{stage.value}")

    def precipitation(self, stage: PrecipitationStage) -> np.ndarray:
        stage = PrecipitationStage(stage)
        return getattr(self, f"precipitation_{stage.value}")

    def basin_at(self, cell: tuple[int, int]) -> Basin | None:
        y, x = int(cell[0]), int(cell[1])
        H, W = self.shape
        if y < 0 or y >= H or x < 0 or x >= W:
            return None
        i = int(self.basin_ids[y, x])
        return None if i < 0 else self.preserved_basins[i]

    def grids(self) -> dict[str, np.ndarray]:
        """Every (H, W) array of the result keyed by field name."""

        out: dict[str, np.ndarray] = {}
        for f in fields(self):
            v = getattr(self, f.name)
            if isinstance(v, np.ndarray) and v.shape == self.shape:
                out[f.name] = v
        return out


def _frozen(a: np.ndarray) -> np.ndarray:
    out = np.array(a, copy=True)
    out.setflags(write=False)
    return out


def _validate(
    heightmap: np.ndarray,
    sea_level: float,
    world: WorldParameters,
    params: GenerationParameters,
    plates: np.ndarray | None,
) -> np.ndarray:
    try:
        h = np.asarray(heightmap, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"heightmap is not numeric: {exc}") from exc
    if h.ndim != 2:
        raise InvalidInputError(f"heightmap must be a 2D array, got {h.ndim}D")
    if h.shape[0] < 1 or h.shape[1] < 1:
        raise InvalidInputError("heightmap must be at least 1x1")
    if not bool(np.all(np.isfinite(h))):
        raise InvalidInputError("heightmap contains non-finite values")

    if not math.isfinite(float(sea_level)):
        raise InvalidInputError(f"sea_level must be finite, got {sea_level}")

    if plates is not None and np.asarray(plates).shape != h.shape:
        raise InvalidInputError("plates must match heightmap shape")

    world.validate()
    params.validate()
    return h


def generate_world(
    heightmap: np.ndarray,
    *,
    sea_level: float,
    world: WorldParameters,
    params: GenerationParameters | None = None,
    plates: np.ndarray | None = None,
) -> WorldGenerationResult:
    """Run the drainage and climate stages over a raw heightmap.

    Inputs are validated up front and InvalidInputError is raised before any
    stage runs. The plates map, when given, is passed through untouched.
    """

    params = GenerationParameters() if params is None else params
    h = _validate(heightmap, sea_level, world, params, plates)
    sea_level = float(sea_level)
    H, W = h.shape
    logger.info("generating %dx%d world (seed=%d)", W, H, int(world.seed))

    ocean = ocean_mask_from_border(h, sea_level=sea_level)
    land = ~ocean
    levels = elevation_levels(h, ocean_mask=ocean, sea_level=sea_level, params=params)
    minima = local_minima(h, ocean_mask=ocean)
    logger.info(
        "elevation: %d ocean cells, %d local minima",
        int(np.count_nonzero(ocean)),
        int(np.count_nonzero(minima)),
    )

    preserved, released = find_basins(h, ocean_mask=ocean, params=params)
    ids = basin_id_grid(preserved, h.shape)
    in_basin = ids >= 0
    logger.info(
        "basins: %d preserved, %d released to pit filling", len(preserved), len(released)
    )

    filled, fill_depth = fill_pits_priority_flood(
        h,
        ocean_mask=ocean,
        basins=preserved,
        drain_map_edges=params.drain_map_edges,
        epsilon=params.epsilon_fill,
    )
    remaining = local_minima(filled, ocean_mask=ocean, exclude=in_basin)
    logger.info(
        "pit filling: %d cells raised, %d minima left",
        int(np.count_nonzero(fill_depth > 0.0)),
        int(np.count_nonzero(remaining)),
    )

    directions = flow_direction_d8(filled, ocean_mask=ocean, sink_mask=in_basin)

    temps = temperature_stages(
        h.shape,
        world=world,
        params=params,
        height=h,
        mountain_level=levels.mountain_level,
    )
    logger.info("temperature: 4 stages computed")

    precip = precipitation_base_stages(
        temps.final, land_mask=land, seed=world.seed, params=params
    )
    shadowed, shadow = rain_shadow(
        precip.base, h, ocean_mask=ocean, sea_level=sea_level, params=params
    )
    final, dist, bonus = coastal_moisture(
        shadowed, h, ocean_mask=ocean, sea_level=sea_level, params=params
    )
    final_th = quantile_thresholds(
        final, mask=land, quantiles=tuple(params.precipitation_quantiles)
    )
    logger.info(
        "precipitation: %d shadowed cells, thresholds %.4f/%.4f/%.4f",
        int(np.count_nonzero(shadow < 1.0)),
        final_th.low,
        final_th.medium,
        final_th.high,
    )

    weights = final if params.precipitation_weighted_flow else None
    flow = flow_accumulation_d8(directions, weights=weights)
    river_threshold = params.river_source_accumulation
    if river_threshold is None:
        river_threshold = adaptive_accumulation_threshold(
            flow.accumulation, land_mask=land, quantile=params.river_accumulation_quantile
        )
    sources = river_source_mask(
        filled,
        flow.accumulation,
        mountain_level=levels.mountain_level,
        accumulation_threshold=river_threshold,
        land_mask=land & ~in_basin,
        directions=flow.directions,
        headwaters_only=params.river_headwaters_only,
    )
    all_sources = river_sources(sources)
    major = major_rivers(
        all_sources, flow.accumulation, flow.directions, limit=params.major_river_limit
    )
    logger.info(
        "drainage: max accumulation %.1f, %d river sources (%d major)",
        float(np.max(flow.accumulation)),
        len(all_sources),
        len(major),
    )

    return WorldGenerationResult(
        heightmap=_frozen(h),
        sea_level=sea_level,
        world=world,
        params=params,
        levels=levels,
        plates=None if plates is None else _frozen(plates),
        ocean_mask=_frozen(ocean),
        local_minima=_frozen(minima),
        preserved_basins=tuple(preserved),
        basin_ids=_frozen(ids),
        filled_heightmap=_frozen(filled),
        fill_depth=_frozen(fill_depth),
        flow_directions=_frozen(flow.directions),
        flow_accumulation=_frozen(flow.accumulation),
        cycle_cells=_frozen(flow.cycle_cells),
        river_source_mask=_frozen(sources),
        river_accumulation_threshold=float(river_threshold),
        river_sources=tuple(all_sources),
        major_river_sources=tuple(major),
        erosion_potential=_frozen(erosion_potential(filled, flow.accumulation)),
        temperature_latitude_only=_frozen(temps.latitude_only),
        temperature_with_noise=_frozen(temps.with_noise),
        temperature_with_distance=_frozen(temps.with_distance),
        temperature_final=_frozen(temps.final),
        precipitation_base_noise=_frozen(precip.base_noise),
        precipitation_temperature_shaped=_frozen(precip.temperature_shaped),
        precipitation_base=_frozen(precip.base),
        precipitation_with_rain_shadow=_frozen(shadowed),
        precipitation_final=_frozen(final),
        rain_shadow_factor=_frozen(shadow),
        distance_to_ocean=_frozen(dist),
        coastal_bonus=_frozen(bonus),
        base_thresholds=precip.thresholds,
        base_classes=_frozen(precip.classes),
        final_thresholds=final_th,
        final_classes=_frozen(classify(final, final_th)),
    )
