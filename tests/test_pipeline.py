from __future__ import annotations

import numpy as np
import pytest

from hydroclimate.elevation import local_minima
from hydroclimate.errors import InvalidInputError
from hydroclimate.hydrology import adaptive_accumulation_threshold, downstream_index, major_rivers
from hydroclimate.noise import noise_field
from hydroclimate.params import GenerationParameters, WorldParameters
from hydroclimate.pipeline import PrecipitationStage, TemperatureStage, generate_world


def _island(size: int = 48, seed: int = 3) -> np.ndarray:
    # Noisy dome: low edges (ocean) and a rough interior with real pits.
    y, x = np.mgrid[0:size, 0:size].astype(np.float64)
    c = (size - 1) / 2.0
    r = np.sqrt((y - c) ** 2 + (x - c) ** 2) / c
    n = noise_field((size, size), seed=seed, stream=0, octaves=5, periods=6.0)
    return np.clip(1.0 - r, 0.0, 1.0) + 0.25 * n


WORLD = WorldParameters(seed=5, axial_tilt=0.05, distance_to_star=1.1)


def test_ramp_drains_to_the_ocean_corner() -> None:
    y = np.arange(10, dtype=np.float64)[:, None]
    x = np.arange(10, dtype=np.float64)[None, :]
    z = 1.0 - (y + x) / 18.0

    r = generate_world(z, sea_level=0.1, world=WORLD)
    ocean = r.ocean_mask
    assert sorted(zip(*np.nonzero(ocean))) == [(8, 9), (9, 8), (9, 9)]
    assert r.preserved_basins == ()
    assert np.array_equal(r.filled_heightmap, z)

    d = r.flow_directions
    assert bool(np.all(d[ocean] == -1))
    inner = ~ocean
    inner[9, :] = False
    inner[:, 9] = False
    assert bool(np.all(d[inner] == 3))  # SE
    assert bool(np.all(d[9, :8] == 2))  # E along the bottom edge
    assert bool(np.all(d[:8, 9] == 4))  # S along the right edge

    acc = r.flow_accumulation
    assert abs(float(np.sum(acc[ocean])) - 100.0) < 1e-9
    assert float(acc[0, 0]) == 1.0


def test_flat_map_without_outlet() -> None:
    z = np.full((5, 5), 0.5, dtype=np.float64)

    # No ocean: the map is landlocked even though map edges drain by default.
    assert GenerationParameters().drain_map_edges
    r = generate_world(z, sea_level=0.3, world=WORLD)
    assert not bool(np.any(r.ocean_mask))
    assert r.preserved_basins == ()
    assert np.array_equal(r.filled_heightmap, z)
    assert bool(np.all(r.flow_directions == -1))
    assert bool(np.all(r.flow_accumulation == 1.0))

    r = generate_world(
        z, sea_level=0.3, world=WORLD, params=GenerationParameters(min_basin_area=25)
    )
    assert len(r.preserved_basins) == 1
    b = r.basin_at((2, 2))
    assert b is not None and b.area == 25
    assert bool(np.all(r.flow_directions == -1))


def _slope_to_land_edge() -> np.ndarray:
    # Ocean column, a ridge, then land falling towards the top map edge.
    y = np.arange(20, dtype=np.float64)[:, None]
    z = np.broadcast_to(0.2 + 0.03 * y, (20, 20)).copy()
    z[:, 0] = 0.0
    z[:, 1:3] = 1.0
    return z


def test_land_draining_off_the_map_edge_is_not_a_basin() -> None:
    z = _slope_to_land_edge()
    r = generate_world(z, sea_level=0.1, world=WORLD)

    assert bool(np.all(r.ocean_mask[:, 0]))
    assert r.preserved_basins == ()
    assert bool(np.all(r.basin_ids == -1))
    assert np.array_equal(r.filled_heightmap, z)
    assert bool(np.all(r.flow_directions[1:, 3:] == 0))  # N
    assert bool(np.all(r.flow_accumulation[0, 4:] == 20.0))

    closed = generate_world(
        z, sea_level=0.1, world=WORLD, params=GenerationParameters(drain_map_edges=False)
    )
    assert [b.area for b in closed.preserved_basins] == [17 * 20]


def test_island_invariants() -> None:
    z = _island()
    params = GenerationParameters(min_basin_area=6)
    r = generate_world(z, sea_level=0.3, world=WORLD, params=params)

    ocean = r.ocean_mask
    basins = r.basin_ids >= 0
    assert bool(np.any(ocean))
    assert not bool(np.any(ocean & basins))
    assert not bool(np.any(r.cycle_cells))

    # Filling leaves no pits outside preserved basins.
    assert not bool(np.any(local_minima(r.filled_heightmap, ocean_mask=ocean, exclude=basins)))
    assert bool(np.all(r.filled_heightmap >= z))

    ds = downstream_index(r.flow_directions)
    flat = r.flow_accumulation.reshape(-1)
    for i in np.flatnonzero(ds >= 0):
        assert flat[int(ds[i])] > flat[int(i)]

    for b in r.preserved_basins:
        assert b.area >= 6
        assert r.basin_at(b.center) == b
        assert bool(np.all(r.flow_directions[basins] == -1))

    for cell in r.river_sources:
        assert float(r.filled_heightmap[cell]) >= r.levels.mountain_level
        assert float(r.flow_accumulation[cell]) >= params.river_source_accumulation
        assert not bool(ocean[cell])


def test_adaptive_river_threshold_and_major_rivers() -> None:
    z = _island()
    params = GenerationParameters(
        river_source_accumulation=None, river_headwaters_only=True, major_river_limit=3
    )
    r = generate_world(z, sea_level=0.3, world=WORLD, params=params)

    land = ~r.ocean_mask
    expected = adaptive_accumulation_threshold(r.flow_accumulation, land_mask=land)
    assert r.river_accumulation_threshold == expected
    for cell in r.river_sources:
        assert float(r.flow_accumulation[cell]) >= expected

    assert len(r.major_river_sources) == min(3, len(r.river_sources))
    assert set(r.major_river_sources) <= set(r.river_sources)
    assert list(r.major_river_sources) == major_rivers(
        list(r.river_sources), r.flow_accumulation, r.flow_directions, limit=3
    )

    assert generate_world(z, sea_level=0.3, world=WORLD).river_accumulation_threshold == 10.0


def test_climate_stages_are_exposed_by_enum() -> None:
    r = generate_world(_island(32), sea_level=0.3, world=WORLD)

    for stage in TemperatureStage:
        g = r.temperature(stage)
        assert g.shape == r.shape
        assert float(np.min(g)) >= 0.0 and float(np.max(g)) <= 1.0
    assert r.temperature(TemperatureStage.FINAL) is r.temperature_final
    assert r.precipitation(PrecipitationStage.BASE) is r.precipitation_base
    assert r.precipitation("final") is r.precipitation_final

    land = ~r.ocean_mask
    assert np.array_equal(r.precipitation_final[r.ocean_mask], r.precipitation_with_rain_shadow[r.ocean_mask])
    assert bool(np.all(r.precipitation_final[land] >= r.precipitation_with_rain_shadow[land]))
    th = r.final_thresholds
    assert th.low < th.medium < th.high
    assert set(np.unique(r.final_classes).tolist()) <= {0, 1, 2, 3}


def test_result_arrays_are_read_only() -> None:
    r = generate_world(_island(24), sea_level=0.3, world=WORLD)
    for name, grid in r.grids().items():
        assert not grid.flags.writeable, name
    with pytest.raises(ValueError):
        r.filled_heightmap[0, 0] = 1.0
    assert r.basin_at((-1, 0)) is None


def test_generation_is_deterministic() -> None:
    z = _island(32)
    a = generate_world(z, sea_level=0.3, world=WORLD)
    b = generate_world(z, sea_level=0.3, world=WORLD)
    for name, grid in a.grids().items():
        assert np.array_equal(grid, b.grids()[name]), name
    assert a.preserved_basins == b.preserved_basins
    assert a.river_sources == b.river_sources


def test_plates_pass_through() -> None:
    z = _island(16)
    plates = np.zeros(z.shape, dtype=np.int32)
    plates[:, 8:] = 1
    r = generate_world(z, sea_level=0.3, world=WORLD, plates=plates)
    assert np.array_equal(r.plates, plates)


def test_weighted_flow_uses_precipitation() -> None:
    z = _island(24)
    r = generate_world(
        z,
        sea_level=0.3,
        world=WORLD,
        params=GenerationParameters(precipitation_weighted_flow=True),
    )
    land = ~r.ocean_mask
    assert bool(np.all(r.flow_accumulation[land] >= r.precipitation_final[land] - 1e-12))
    assert not np.allclose(r.flow_accumulation, np.round(r.flow_accumulation))


@pytest.mark.parametrize(
    "heightmap,kwargs",
    [
        (np.zeros(5), {}),
        (np.zeros((0, 3)), {}),
        (np.array([[0.0, np.nan]]), {}),
        (np.zeros((3, 3)), {"sea_level": float("inf")}),
        (np.zeros((3, 3)), {"world": WorldParameters(axial_tilt=0.7)}),
        (np.zeros((3, 3)), {"world": WorldParameters(seed=None)}),
        (np.zeros((3, 3)), {"world": WorldParameters(seed=1.5)}),
        (np.zeros((3, 3)), {"world": WorldParameters(seed=True)}),
        (np.zeros((3, 3)), {"world": WorldParameters(distance_to_star=0.0)}),
        (np.zeros((3, 3)), {"plates": np.zeros((2, 2))}),
        (
            np.zeros((3, 3)),
            {"params": GenerationParameters(precipitation_quantiles=(0.3, 0.2, 0.9))},
        ),
        (np.zeros((3, 3)), {"params": GenerationParameters(min_basin_area=0)}),
        (np.zeros((3, 3)), {"params": GenerationParameters(river_accumulation_quantile=1.0)}),
        (np.zeros((3, 3)), {"params": GenerationParameters(major_river_limit=-1)}),
    ],
)
def test_invalid_inputs_are_rejected(heightmap: np.ndarray, kwargs: dict) -> None:
    args = {"sea_level": 0.0, "world": WorldParameters()}
    args.update(kwargs)
    with pytest.raises(InvalidInputError):
        generate_world(heightmap, **args)
