from __future__ import annotations

import numpy as np

from hydroclimate.params import GenerationParameters, WorldParameters
from hydroclimate.temperature import (
    final_temperature,
    latitude_only,
    temperature_stages,
    with_distance,
    with_noise,
)


def test_latitude_peaks_at_thermal_equator() -> None:
    t = latitude_only((21, 4), axial_tilt=0.0)
    col = t[:, 0]
    assert t.shape == (21, 4)
    assert np.array_equal(t[:, 0], t[:, 3])
    assert int(np.argmax(col)) in (10, 11)
    assert float(col[0]) == 0.0
    assert float(np.max(col)) == 1.0


def test_axial_tilt_moves_the_peak() -> None:
    flat = latitude_only((40, 2), axial_tilt=0.0)[:, 0]
    tilted = latitude_only((40, 2), axial_tilt=0.2)[:, 0]
    assert int(np.argmax(tilted)) > int(np.argmax(flat))


def test_with_noise_stays_normalized() -> None:
    lat = latitude_only((16, 16), axial_tilt=0.0)
    rng = np.random.default_rng(0)
    out = with_noise(lat, rng.uniform(-1.0, 1.0, size=lat.shape), weight=1.0 / 12.0)
    assert float(np.min(out)) == 0.0
    assert float(np.max(out)) == 1.0


def test_distance_to_star_shifts_mean_temperature() -> None:
    g = np.linspace(0.0, 1.0, 50, dtype=np.float64).reshape(5, 10)
    near = with_distance(g, distance_to_star=0.7)
    far = with_distance(g, distance_to_star=1.5)
    assert float(np.mean(far)) < float(np.mean(g)) < float(np.mean(near))
    assert np.allclose(with_distance(g, distance_to_star=1.0), g)


def test_mountain_cooling_is_optional() -> None:
    t = np.full((2, 3), 0.8, dtype=np.float64)
    t[0, 0] = 0.0
    h = np.array([[0.1, 0.2, 0.3], [0.9, 1.0, 0.4]], dtype=np.float64)

    assert np.array_equal(final_temperature(t), t)

    cooled = final_temperature(
        t, height=h, mountain_level=0.5, cooling_range=0.3, mountain_cooling=True
    )
    assert float(cooled[1, 1]) < float(cooled[0, 1])
    assert float(cooled[1, 0]) < float(cooled[0, 1])


def test_temperature_stages_deterministic_and_bounded() -> None:
    world = WorldParameters(seed=11, axial_tilt=0.1, distance_to_star=1.2)
    params = GenerationParameters()
    a = temperature_stages((24, 32), world=world, params=params)
    b = temperature_stages((24, 32), world=world, params=params)

    for grid in (a.latitude_only, a.with_noise, a.with_distance, a.final):
        assert grid.shape == (24, 32)
        assert float(np.min(grid)) >= 0.0
        assert float(np.max(grid)) <= 1.0
    assert np.array_equal(a.final, b.final)

    other = temperature_stages((24, 32), world=WorldParameters(seed=12), params=params)
    assert not np.allclose(a.with_noise, other.with_noise)
