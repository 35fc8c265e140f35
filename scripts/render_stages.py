from __future__ import annotations

import logging
from pathlib import Path

import numpy as np

from hydroclimate.noise import noise_field
from hydroclimate.params import GenerationParameters, WorldParameters
from hydroclimate.pipeline import PrecipitationStage, TemperatureStage, generate_world
from viz.export import array_to_png_bytes, flow_directions_to_png_bytes, result_to_npz_bytes


def _island(size: int, seed: int) -> np.ndarray:
    y, x = np.mgrid[0:size, 0:size].astype(np.float64)
    c = (size - 1) / 2.0
    r = np.sqrt((y - c) ** 2 + (x - c) ** 2) / c
    n = noise_field((size, size), seed=seed, stream=0, octaves=6, periods=5.0)
    return np.clip(1.0 - r, 0.0, 1.0) + 0.35 * n


def main() -> None:
    """Render every retained stage of a sample world to assets/stages/."""

    logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s")

    root = Path(__file__).resolve().parents[1]
    out_dir = root / "assets" / "stages"
    out_dir.mkdir(parents=True, exist_ok=True)

    h = _island(256, seed=0)
    result = generate_world(
        h,
        sea_level=0.3,
        world=WorldParameters(seed=0, axial_tilt=0.08, distance_to_star=1.0),
        params=GenerationParameters(min_basin_area=40),
    )

    land = ~result.ocean_mask
    (out_dir / "heightmap.png").write_bytes(array_to_png_bytes(result.heightmap))
    (out_dir / "filled.png").write_bytes(array_to_png_bytes(result.filled_heightmap))
    (out_dir / "flow_directions.png").write_bytes(
        flow_directions_to_png_bytes(result.flow_directions)
    )
    (out_dir / "flow_accumulation.png").write_bytes(
        array_to_png_bytes(np.log1p(result.flow_accumulation), mask=land)
    )
    (out_dir / "river_sources.png").write_bytes(
        array_to_png_bytes(result.river_source_mask.astype(np.float64))
    )

    for stage in TemperatureStage:
        (out_dir / f"temperature_{stage.value}.png").write_bytes(
            array_to_png_bytes(result.temperature(stage))
        )
    for stage in PrecipitationStage:
        (out_dir / f"precipitation_{stage.value}.png").write_bytes(
            array_to_png_bytes(result.precipitation(stage), mask=land)
        )

    (out_dir / "world.npz").write_bytes(result_to_npz_bytes(result))


if __name__ == "__main__":
    main()
