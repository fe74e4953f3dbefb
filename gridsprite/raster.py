"""
raster.py

RGBA buffers are plain numpy arrays: uint8, shape (H, W, 4), row-major.
These helpers convert at the edges (Pillow in, Pillow out) so the rest of the
engine only ever sees arrays.
"""

from pathlib import Path
from typing import Union

from PIL import Image
import numpy as np

LUMA = np.array([0.299, 0.587, 0.114], dtype=np.float32)

ImageLike = Union[Image.Image, np.ndarray]


def to_rgba_array(img: ImageLike) -> np.ndarray:
    """Return a fresh (H, W, 4) uint8 copy of a Pillow image or an RGB/RGBA/L array."""
    if isinstance(img, Image.Image):
        return np.array(img.convert("RGBA"), dtype=np.uint8)

    arr = np.asarray(img)
    if arr.dtype != np.uint8:
        raise ValueError(f"Expected a uint8 pixel buffer, got {arr.dtype}")
    if arr.ndim == 2:
        arr = np.stack([arr, arr, arr], axis=2)
    if arr.ndim != 3 or arr.shape[2] not in (3, 4):
        raise ValueError(f"Expected an (H, W, 3|4) pixel buffer, got shape {arr.shape}")
    if arr.shape[2] == 3:
        alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
        return np.concatenate([arr, alpha], axis=2)
    return arr.copy()


def load_rgba(path: Union[str, Path]) -> np.ndarray:
    with Image.open(path) as im:
        return to_rgba_array(im)


def to_image(rgba: np.ndarray) -> Image.Image:
    return Image.fromarray(np.ascontiguousarray(rgba, dtype=np.uint8))


def luminance(rgb_f: np.ndarray) -> np.ndarray:
    """Rec. 601 luma for a float (..., 3) array."""
    return rgb_f @ LUMA
