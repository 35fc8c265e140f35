from __future__ import annotations

import numpy as np
import pytest

from hydroclimate.thresholds import Thresholds, classify, quantile_thresholds


def test_quantile_thresholds_partition_counts() -> None:
    rng = np.random.default_rng(0)
    v = rng.random(1000, dtype=np.float64)
    th = quantile_thresholds(v, quantiles=(0.30, 0.70, 0.95))

    assert th.low < th.medium < th.high
    assert abs(int(np.count_nonzero(v < th.low)) - 300) <= 2
    assert abs(int(np.count_nonzero(v < th.medium)) - 700) <= 2
    assert abs(int(np.count_nonzero(v < th.high)) - 950) <= 2


def test_quantile_thresholds_strict_on_constant_values() -> None:
    th = quantile_thresholds(np.full((5, 10), 0.5, dtype=np.float64))
    assert th.low == 0.5
    assert th.low < th.medium < th.high


def test_quantile_thresholds_respect_mask() -> None:
    v = np.array([[0.0, 0.0, 10.0, 11.0, 12.0, 13.0]], dtype=np.float64)
    mask = v > 5.0
    th = quantile_thresholds(v, mask=mask, quantiles=(0.25, 0.5, 0.75))
    assert th.low >= 10.0


def test_quantile_thresholds_empty_mask_uses_all_cells() -> None:
    v = np.arange(10, dtype=np.float64).reshape(2, 5)
    a = quantile_thresholds(v, mask=np.zeros(v.shape, dtype=bool))
    b = quantile_thresholds(v)
    assert a == b


def test_quantile_thresholds_rejects_bad_quantiles() -> None:
    v = np.arange(10, dtype=np.float64)
    with pytest.raises(ValueError):
        quantile_thresholds(v, quantiles=(0.5, 0.3, 0.9))
    with pytest.raises(ValueError):
        quantile_thresholds(v, quantiles=(0.0, 0.3, 0.9))


def test_classify_buckets() -> None:
    th = Thresholds(low=0.2, medium=0.5, high=0.8)
    codes = classify(np.array([0.1, 0.2, 0.6, 0.9]), th)
    assert codes.tolist() == [0, 1, 2, 3]
    assert codes.dtype == np.uint8
    assert th.low_threshold == 0.2
    assert th.high_threshold == 0.8
