"""
islands.py

Drop small disconnected opaque blobs (flood-fill leftovers, JPEG ringing)
from a finished sprite. The largest component is the sprite body and is
always kept.
"""

from typing import Dict, Tuple

import numpy as np
from scipy import ndimage

# 4-connected: diagonal neighbors are separate blobs
FOUR_CONNECTED = ndimage.generate_binary_structure(2, 1)


def label_components(mask: np.ndarray) -> Tuple[np.ndarray, Dict[int, int]]:
    """
    Label 4-connected components of a boolean mask.
    Returns (labels, areas): labels is 0 outside the mask, areas maps label -> pixel count.
    """
    labels, n = ndimage.label(np.asarray(mask, dtype=np.bool_), structure=FOUR_CONNECTED)
    labels = labels.astype(np.int32, copy=False)
    if n == 0:
        return labels, {}

    counts = np.bincount(labels.ravel(), minlength=n + 1)
    return labels, {lbl: int(counts[lbl]) for lbl in range(1, n + 1)}


def prune_islands(rgba: np.ndarray, min_area: int) -> Tuple[np.ndarray, Dict[str, float]]:
    """Zero every opaque component smaller than min_area, except the largest one."""
    out = rgba.copy()
    opaque = rgba[..., 3] > 0
    labels, areas = label_components(opaque)
    if not areas:
        return out, {"components": 0.0, "pruned": 0.0, "pruned_px": 0.0}

    largest = max(areas, key=lambda k: (areas[k], -k))
    small = [lbl for lbl, area in areas.items() if area < int(min_area) and lbl != largest]
    pruned_px = 0
    if small:
        drop = np.isin(labels, small)
        pruned_px = int(drop.sum())
        out[drop] = 0

    dbg = {
        "components": float(len(areas)),
        "pruned": float(len(small)),
        "pruned_px": float(pruned_px),
        "largest_area": float(areas[largest]),
    }
    return out, dbg
