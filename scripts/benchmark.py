from __future__ import annotations

import logging
import time

import numpy as np

from hydroclimate.noise import noise_field
from hydroclimate.params import GenerationParameters, WorldParameters
from hydroclimate.pipeline import generate_world


def _timeit(label: str, fn) -> float:
    t0 = time.perf_counter()
    fn()
    t1 = time.perf_counter()
    ms = (t1 - t0) * 1000.0
    print(f"{label}: {ms:.2f} ms")
    return ms


def _heightmap(size: int, seed: int) -> np.ndarray:
    z = noise_field((size, size), seed=seed, stream=0, octaves=5, periods=4.0)
    return (z + 1.0) * 0.5


def main() -> None:
    """Quick CPU benchmark of the full generation run.

    Heap-based pit filling dominates; expect roughly linear-log growth with
    the cell count.
    """

    logging.basicConfig(level=logging.WARNING)
    world = WorldParameters(seed=0, axial_tilt=0.1, distance_to_star=1.0)

    for size in (128, 256, 512):
        h = _heightmap(size, seed=0)
        _timeit(
            f"generate_world {size}x{size}",
            lambda: generate_world(h, sea_level=0.45, world=world),
        )

    h = _heightmap(256, seed=0)
    _timeit(
        "generate_world 256x256 (closed edges, weighted flow)",
        lambda: generate_world(
            h,
            sea_level=0.45,
            world=world,
            params=GenerationParameters(
                drain_map_edges=False, precipitation_weighted_flow=True
            ),
        ),
    )


if __name__ == "__main__":
    main()
