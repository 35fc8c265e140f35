from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

CLASS_NAMES = ("arid", "low", "medium", "high")


@dataclass(frozen=True)
class Thresholds:
    """Three strictly increasing cut-points splitting a field into 4 buckets."""

    low: float
    medium: float
    high: float

    @property
    def low_threshold(self) -> float:
        return self.low

    @property
    def medium_threshold(self) -> float:
        return self.medium

    @property
    def high_threshold(self) -> float:
        return self.high

    def as_array(self) -> np.ndarray:
        return np.array([self.low, self.medium, self.high], dtype=np.float64)


def quantile_thresholds(
    values: np.ndarray,
    *,
    mask: np.ndarray | None = None,
    quantiles: tuple[float, float, float] = (0.30, 0.70, 0.95),
) -> Thresholds:
    """Quantile cut-points over the masked cells (all cells if none are masked).

    Each cut-point is `sorted[floor(q * (n - 1))]`. Repeated values are pushed
    apart by one ulp so `low < medium < high` always holds.
    """

    v = np.asarray(values, dtype=np.float64)
    if mask is not None:
        m = np.asarray(mask).astype(bool)
        if m.shape != v.shape:
            raise ValueError("mask must match values shape")
        if bool(np.any(m)):
            v = v[m]
    v = v.reshape(-1)
    if v.size == 0:
        raise ValueError("values must not be empty")

    qs = [float(q) for q in quantiles]
    if len(qs) != 3:
        raise ValueError("expected 3 quantiles")
    prev = 0.0
    for q in qs:
        if not (prev < q < 1.0):
            raise ValueError("quantiles must be strictly increasing inside (0, 1)")
        prev = q

    s = np.sort(v, kind="mergesort")
    n = int(s.size)
    cuts = [float(s[int(math.floor(q * (n - 1)))]) for q in qs]
    for i in (1, 2):
        if cuts[i] <= cuts[i - 1]:
            cuts[i] = float(np.nextafter(cuts[i - 1], np.inf))
    return Thresholds(low=cuts[0], medium=cuts[1], high=cuts[2])


def classify(values: np.ndarray, thresholds: Thresholds) -> np.ndarray:
    """Bucket codes: 0 below low, 1 below medium, 2 below high, 3 otherwise."""

    v = np.asarray(values, dtype=np.float64)
    codes = np.searchsorted(thresholds.as_array(), v, side="right")
    return codes.astype(np.uint8)
