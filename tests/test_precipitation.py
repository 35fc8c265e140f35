from __future__ import annotations

import numpy as np

from hydroclimate.params import GenerationParameters
from hydroclimate.precipitation import precipitation_base_stages, temperature_shaped


def test_temperature_shaping_curve() -> None:
    base = np.full((1, 3), 0.5, dtype=np.float64)
    t = np.array([[0.0, 0.5, 1.0]], dtype=np.float64)
    out = temperature_shaped(base, t, gamma=2.0, curve_bonus=0.2)
    assert np.allclose(out, [[0.1, 0.5 * (0.25 * 0.8 + 0.2), 0.5]])


def test_base_stages_are_normalized_and_classified() -> None:
    rng = np.random.default_rng(0)
    t = rng.random((32, 40), dtype=np.float64)
    land = np.ones(t.shape, dtype=bool)
    land[:, :4] = False

    p = precipitation_base_stages(t, land_mask=land, seed=3, params=GenerationParameters())
    assert float(np.min(p.base_noise)) == 0.0
    assert float(np.max(p.base_noise)) == 1.0
    assert float(np.min(p.base)) == 0.0
    assert float(np.max(p.base)) == 1.0
    assert p.thresholds.low < p.thresholds.medium < p.thresholds.high
    assert set(np.unique(p.classes).tolist()) <= {0, 1, 2, 3}

    n_land = int(np.count_nonzero(land))
    arid = int(np.count_nonzero(p.base[land] < p.thresholds.low))
    assert abs(arid - 0.30 * n_land) <= 2


def test_cold_worlds_are_drier() -> None:
    shape = (24, 24)
    land = np.ones(shape, dtype=bool)
    params = GenerationParameters()
    warm = precipitation_base_stages(np.ones(shape), land_mask=land, seed=1, params=params)
    cold = precipitation_base_stages(np.zeros(shape), land_mask=land, seed=1, params=params)
    assert np.allclose(cold.temperature_shaped, warm.temperature_shaped * 0.2)
    assert np.array_equal(cold.base_noise, warm.base_noise)
