"""
segment.py

Background mask for one cell.

1) Seed a flood fill from 8 fixed spots (4 corners + 4 edge midpoints), inset
   past the divider bleed at the cell border.
2) Each seed gets its own anchor color: the per-channel median of a small
   patch around it. A seed is skipped when its pixel disagrees with its own
   anchor (noise), or when its anchor disagrees with the border color of the
   whole cell (flat art touching the border).
3) The fill admits a pixel only if it is close to THAT seed's anchor, never to
   the neighbor it came from, so it cannot creep along a smooth gradient into
   the character.
4) Interior void pass: anything left that is very close to the median
   background color is background too (holes between limbs never touch the
   border).
"""

from typing import Dict, List, Optional, Tuple

import numpy as np
from scipy import ndimage

from .config import ExtractionConfig
from .islands import FOUR_CONNECTED


# ---------------------------
# Flood fill (4-connected)
# ---------------------------
def flood_fill_from_seed(mask: np.ndarray, sy: int, sx: int) -> np.ndarray:
    """The 4-connected component of `mask` that contains (sy, sx)."""
    h, w = mask.shape
    if not (0 <= sy < h and 0 <= sx < w) or not mask[sy, sx]:
        return np.zeros((h, w), dtype=np.bool_)

    labels, _ = ndimage.label(mask, structure=FOUR_CONNECTED)
    return labels == labels[sy, sx]

# ---------------------------
# Seeds and anchors
# ---------------------------
def seed_positions(h: int, w: int, inset: int) -> List[Tuple[int, int]]:
    """(y, x) for the 4 corners then the 4 edge midpoints, clamped for tiny cells."""
    iy = max(0, min(int(inset), (h - 1) // 2))
    ix = max(0, min(int(inset), (w - 1) // 2))
    top, mid_y, bot = iy, h // 2, h - 1 - iy
    left, mid_x, right = ix, w // 2, w - 1 - ix
    return [
        (top, left), (top, right), (bot, left), (bot, right),
        (top, mid_x), (bot, mid_x), (mid_y, left), (mid_y, right),
    ]


def anchor_color(rgb: np.ndarray, y: int, x: int, radius: int) -> np.ndarray:
    """Per-channel median of the (2r+1)^2 patch around (y, x)."""
    h, w, _ = rgb.shape
    r = max(0, int(radius))
    patch = rgb[max(0, y - r):min(h, y + r + 1), max(0, x - r):min(w, x + r + 1), :]
    return np.median(patch.reshape(-1, 3).astype(np.float32), axis=0)


def _dist2(rgb_f: np.ndarray, color: np.ndarray) -> np.ndarray:
    d = rgb_f - color.astype(np.float32)[None, None, :]
    return np.sum(d * d, axis=2)


def background_color(rgb: np.ndarray, mask: np.ndarray, max_samples: int) -> Optional[np.ndarray]:
    """
    Per-channel median of at most max_samples background pixels, sampled with a
    fixed stride so the result is deterministic.
    """
    idx = np.flatnonzero(mask)
    if idx.size == 0:
        return None
    step = max(1, int(idx.size) // max(1, int(max_samples)))
    sample = rgb.reshape(-1, 3)[idx[::step]].astype(np.float32)
    return np.median(sample, axis=0)



def border_color(rgb: np.ndarray, opaque: np.ndarray, inset: int) -> Optional[np.ndarray]:
    """
    Per-channel median of the opaque pixels on the ring the seeds sit on.
    Art rarely covers most of that ring, so this is the cell's background.
    """
    h, w = opaque.shape
    iy = max(0, min(int(inset), (h - 1) // 2))
    ix = max(0, min(int(inset), (w - 1) // 2))
    ring = np.zeros((h, w), dtype=np.bool_)
    ring[iy, ix:w - ix] = True
    ring[h - 1 - iy, ix:w - ix] = True
    ring[iy:h - iy, ix] = True
    ring[iy:h - iy, w - 1 - ix] = True
    ring &= opaque
    if not ring.any():
        return None
    return np.median(rgb[ring].astype(np.float32), axis=0)


# ---------------------------
# Segmentation
# ---------------------------
def segment_background(
    rgba: np.ndarray,
    config: ExtractionConfig,
) -> Tuple[np.ndarray, Optional[np.ndarray], Dict[str, float]]:
    """
    Returns (mask, bg_color, dbg). mask is True for background. bg_color is
    None when no seed was accepted; the cell is then all foreground except
    pixels that were already transparent.
    """
    h, w = rgba.shape[:2]
    rgb = rgba[..., :3]
    rgb_f = rgb.astype(np.float32)

    # Already transparent in the source: nothing to keep there.
    transparent = rgba[..., 3] == 0
    filled = np.zeros((h, w), dtype=np.bool_)

    tol2 = float(config.background_tolerance) ** 2
    consensus = border_color(rgb, ~transparent, config.seed_inset)
    seeds_used = seeds_rejected = seeds_covered = 0

    for sy, sx in seed_positions(h, w, config.seed_inset):
        if transparent[sy, sx] or filled[sy, sx]:
            seeds_covered += 1
            continue

        anchor = anchor_color(rgb, sy, sx, config.anchor_radius)
        if float(np.sum((rgb_f[sy, sx] - anchor) ** 2)) > tol2:
            seeds_rejected += 1
            continue
        # The whole patch is art: a flat block reaching the cell border.
        if consensus is not None and float(np.sum((anchor - consensus) ** 2)) > tol2:
            seeds_rejected += 1
            continue

        near_anchor = _dist2(rgb_f, anchor) <= tol2
        filled |= flood_fill_from_seed(near_anchor | transparent, sy, sx) & ~transparent
        seeds_used += 1

    bg = transparent | filled
    edge_pct = float(bg.mean() * 100.0) if bg.size else 0.0

    # Transparent pixels carry arbitrary RGB, so only filled pixels vote.
    bg_rgb = background_color(rgb, filled, config.max_background_samples)
    void_px = 0
    if bg_rgb is not None:
        void = (~bg) & (_dist2(rgb_f, bg_rgb) <= float(config.interior_tolerance) ** 2)
        void_px = int(void.sum())
        bg = bg | void

    dbg = {
        "seeds_used": float(seeds_used),
        "seeds_rejected": float(seeds_rejected),
        "seeds_covered": float(seeds_covered),
        "edge_bg_pct": edge_pct,
        "interior_void_px": float(void_px),
        "bg_pct": float(bg.mean() * 100.0) if bg.size else 0.0,
    }
    return bg, bg_rgb, dbg
