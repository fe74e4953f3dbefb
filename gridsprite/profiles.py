"""
profiles.py

1-D signals across the rows or columns of a grid image. Dividers are many
pixels long, so sampling every Nth pixel across the axis loses nothing that
matters and keeps large images cheap.
"""

from dataclasses import dataclass

import numpy as np

from .raster import luminance

AXES = ("rows", "cols")


@dataclass(frozen=True, eq=False)
class AxisProfiles:
    brightness: np.ndarray
    saturation: np.ndarray
    darkness: np.ndarray


def smooth_profile(profile: np.ndarray) -> np.ndarray:
    """3-tap triangular [1, 2, 1] / 4 smoothing with edge replication."""
    p = np.asarray(profile, dtype=np.float32)
    if p.size < 3:
        return p.copy()
    padded = np.concatenate([p[:1], p, p[-1:]])
    return ((padded[:-2] + 2.0 * padded[1:-1] + padded[2:]) * 0.25).astype(np.float32)


def build_profiles(
    rgba: np.ndarray,
    axis: str,
    *,
    stride: int = 2,
    dark_luma: float = 64.0,
) -> AxisProfiles:
    """
    axis="rows" gives one value per image row, axis="cols" one per column.

    brightness: mean luma
    saturation: mean (max - min) / max, 0 for black
    darkness:   share of sampled pixels with luma < dark_luma
    """
    if axis not in AXES:
        raise ValueError(f"axis must be one of {AXES}, got {axis!r}")
    s = max(1, int(stride))

    if axis == "rows":
        sample = rgba[:, ::s, :3]
        reduce_axis = 1
    else:
        sample = rgba[::s, :, :3]
        reduce_axis = 0

    a = sample.astype(np.float32)
    luma = luminance(a)
    vmax = a.max(axis=2)
    vmin = a.min(axis=2)
    sat = np.where(vmax > 0, (vmax - vmin) / np.maximum(vmax, 1.0), 0.0)

    brightness = luma.mean(axis=reduce_axis)
    saturation = sat.mean(axis=reduce_axis)
    darkness = (luma < float(dark_luma)).mean(axis=reduce_axis)

    return AxisProfiles(
        brightness=smooth_profile(brightness),
        saturation=smooth_profile(saturation),
        darkness=smooth_profile(darkness),
    )
