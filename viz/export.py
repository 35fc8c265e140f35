from __future__ import annotations

import io

import numpy as np
from PIL import Image

from hydroclimate.pipeline import WorldGenerationResult


def array_to_png_bytes(z: np.ndarray, *, mask: np.ndarray | None = None) -> bytes:
    """Convert a 2D array to an 8-bit grayscale PNG.

    Values are min/max normalized to [0, 255] over the unmasked cells; masked
    out cells are black. Degenerate (constant) arrays become all zeros.
    Non-finite values (e.g. distance to a missing ocean) count as masked.
    """

    z = np.asarray(z, dtype=np.float64)
    if z.ndim != 2:
        raise ValueError("expected a 2D array")

    keep = np.isfinite(z)
    if mask is not None:
        m = np.asarray(mask).astype(bool)
        if m.shape != z.shape:
            raise ValueError("mask must match array shape")
        keep &= m

    img = np.zeros(z.shape, dtype=np.uint8)
    if bool(np.any(keep)):
        zmin = float(np.min(z[keep]))
        zmax = float(np.max(z[keep]))
        if zmax != zmin:
            zn = (z[keep] - zmin) / (zmax - zmin)
            img[keep] = np.clip(zn * 255.0, 0.0, 255.0).astype(np.uint8)

    out = io.BytesIO()
    Image.fromarray(img).save(out, format="PNG")
    return out.getvalue()


def flow_directions_to_png_bytes(directions: np.ndarray) -> bytes:
    """Octants 0..7 as evenly spaced gray levels; sinks are black."""

    d = np.asarray(directions)
    if d.ndim != 2:
        raise ValueError("expected a 2D array")
    img = np.where(d >= 0, (d.astype(np.int32) + 1) * 31, 0).astype(np.uint8)

    out = io.BytesIO()
    Image.fromarray(img).save(out, format="PNG")
    return out.getvalue()


def array_to_npy_bytes(z: np.ndarray) -> bytes:
    z = np.asarray(z)
    out = io.BytesIO()
    np.save(out, z)
    return out.getvalue()


def result_to_npz_bytes(result: WorldGenerationResult) -> bytes:
    """All retained grids of a generation run in one compressed archive."""

    out = io.BytesIO()
    np.savez_compressed(out, **result.grids())
    return out.getvalue()
