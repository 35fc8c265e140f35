from __future__ import annotations

import numpy as np

# Independent noise streams derived from one world seed.
TEMPERATURE_STREAM = 1
PRECIPITATION_STREAM = 2

# Eight unit gradients at 45 degree steps.
_ANGLES = np.arange(8, dtype=np.float64) * (np.pi / 4.0)
_GRADIENTS = np.stack([np.cos(_ANGLES), np.sin(_ANGLES)], axis=1)


def _quintic(t: np.ndarray) -> np.ndarray:
    return t * t * t * (t * (t * 6.0 - 15.0) + 10.0)


def _lattice_noise(perm: np.ndarray, x: np.ndarray, y: np.ndarray) -> np.ndarray:
    """Gradient noise for one octave; zero on integer lattice points."""

    fx = np.floor(x)
    fy = np.floor(y)
    x0 = fx.astype(np.int64) & 255
    y0 = fy.astype(np.int64) & 255
    x1 = (x0 + 1) & 255
    y1 = (y0 + 1) & 255
    dx = x - fx
    dy = y - fy

    def corner(xi: np.ndarray, yi: np.ndarray, ox: float, oy: float) -> np.ndarray:
        g = _GRADIENTS[perm[perm[xi] + yi] & 7]
        return g[..., 0] * (dx - ox) + g[..., 1] * (dy - oy)

    u = _quintic(dx)
    v = _quintic(dy)
    bottom = corner(x0, y0, 0.0, 0.0) * (1.0 - u) + corner(x1, y0, 1.0, 0.0) * u
    top = corner(x0, y1, 0.0, 1.0) * (1.0 - u) + corner(x1, y1, 1.0, 1.0) * u
    return bottom * (1.0 - v) + top * v


def noise_field(
    shape: tuple[int, int],
    *,
    seed: int,
    stream: int,
    octaves: int,
    periods: float,
    lacunarity: float = 2.0,
    persistence: float = 0.5,
) -> np.ndarray:
    """Sample fBm over a grid, roughly in [-1, 1].

    `periods` is the number of base-octave noise cells spanned by the map
    height; x uses the same spacing so features stay isotropic. Each stream
    gets its own permutation and sample origin so temperature and
    precipitation noise are uncorrelated.
    """

    H, W = int(shape[0]), int(shape[1])
    if H <= 0 or W <= 0:
        raise ValueError("shape must be positive")

    rng = np.random.default_rng([int(seed) & 0xFFFFFFFF, int(stream)])
    p = rng.permutation(256).astype(np.int64)
    perm = np.concatenate([p, p])
    ox, oy = (float(v) for v in rng.uniform(0.0, 4096.0, size=2))

    step = float(periods) / float(H)
    xs = np.arange(W, dtype=np.float64) * step + ox
    ys = np.arange(H, dtype=np.float64) * step + oy
    xg, yg = np.meshgrid(xs, ys)

    total = np.zeros((H, W), dtype=np.float64)
    amp = 1.0
    freq = 1.0
    amp_sum = 0.0
    for _ in range(max(int(octaves), 1)):
        total += amp * _lattice_noise(perm, xg * freq, yg * freq)
        amp_sum += amp
        amp *= float(persistence)
        freq *= float(lacunarity)
    return total / amp_sum
