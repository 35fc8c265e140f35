from __future__ import annotations

from hydroclimate.basins import Basin, basin_id_grid, basin_mask, find_basins
from hydroclimate.coast import coastal_moisture, distance_to_ocean
from hydroclimate.elevation import (
    ElevationLevels,
    elevation_levels,
    local_minima,
    ocean_mask_from_border,
)
from hydroclimate.errors import InvalidInputError
from hydroclimate.hydrology import (
    FlowAccumulation,
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
from hydroclimate.pipeline import (
    PrecipitationStage,
    TemperatureStage,
    WorldGenerationResult,
    generate_world,
)
from hydroclimate.precipitation import precipitation_base_stages
from hydroclimate.rain_shadow import rain_shadow
from hydroclimate.temperature import temperature_stages
from hydroclimate.thresholds import Thresholds, classify, quantile_thresholds
from hydroclimate.winds import prevailing_wind, wind_band

__all__ = [
    "Basin",
    "ElevationLevels",
    "FlowAccumulation",
    "GenerationParameters",
    "InvalidInputError",
    "PrecipitationStage",
    "TemperatureStage",
    "Thresholds",
    "WorldGenerationResult",
    "WorldParameters",
    "adaptive_accumulation_threshold",
    "basin_id_grid",
    "basin_mask",
    "classify",
    "coastal_moisture",
    "distance_to_ocean",
    "elevation_levels",
    "erosion_potential",
    "fill_pits_priority_flood",
    "find_basins",
    "flow_accumulation_d8",
    "flow_direction_d8",
    "generate_world",
    "local_minima",
    "major_rivers",
    "ocean_mask_from_border",
    "precipitation_base_stages",
    "prevailing_wind",
    "quantile_thresholds",
    "rain_shadow",
    "river_source_mask",
    "river_sources",
    "temperature_stages",
    "wind_band",
]
