from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from hydroclimate.grid import as_grid, as_mask, normalize01
from hydroclimate.noise import PRECIPITATION_STREAM, noise_field
from hydroclimate.params import GenerationParameters
from hydroclimate.thresholds import Thresholds, classify, quantile_thresholds


@dataclass(frozen=True)
class PrecipitationBase:
    """The first three precipitation stages and the base classification."""

    base_noise: np.ndarray
    temperature_shaped: np.ndarray
    base: np.ndarray
    thresholds: Thresholds
    classes: np.ndarray


def base_noise(shape: tuple[int, int], *, seed: int, params: GenerationParameters) -> np.ndarray:
    n = noise_field(
        shape,
        seed=int(seed),
        stream=PRECIPITATION_STREAM,
        octaves=params.precipitation_noise_octaves,
        periods=params.precipitation_noise_periods,
    )
    return normalize01(n)


def temperature_shaped(
    base: np.ndarray,
    temperature: np.ndarray,
    *,
    gamma: float = 2.0,
    curve_bonus: float = 0.2,
) -> np.ndarray:
    """Scale moisture by how much warm air can hold.

    Cold cells keep `curve_bonus` of their moisture, the warmest keep all of it.
    """

    b = as_grid(base, name="base")
    t = as_grid(temperature, name="temperature")
    if t.shape != b.shape:
        raise ValueError("temperature must match base shape")

    bonus = float(curve_bonus)
    curve = np.power(np.clip(t, 0.0, 1.0), float(gamma)) * (1.0 - bonus) + bonus
    return b * curve


def precipitation_base_stages(
    temperature: np.ndarray,
    *,
    land_mask: np.ndarray,
    seed: int,
    params: GenerationParameters,
) -> PrecipitationBase:
    t = as_grid(temperature, name="temperature")
    land = as_mask(land_mask, t.shape, name="land_mask")

    noise01 = base_noise(t.shape, seed=seed, params=params)
    shaped = temperature_shaped(
        noise01,
        t,
        gamma=params.precipitation_gamma,
        curve_bonus=params.precipitation_curve_bonus,
    )
    base = normalize01(shaped)
    th = quantile_thresholds(
        base, mask=land, quantiles=tuple(params.precipitation_quantiles)
    )
    return PrecipitationBase(
        base_noise=noise01,
        temperature_shaped=shaped,
        base=base,
        thresholds=th,
        classes=classify(base, th),
    )
