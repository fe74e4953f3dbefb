"""
bands.py

Find divider bands in a 1-D profile.

Three ways in, all returning inclusive [start, end] pixel ranges:
- valley band: local minimum near an expected position (dark grid lines)
- peak band:   local maximum near an expected position, expanded with a
               threshold relative to the peak so anti-aliased halos do not
               widen it
- threshold runs + merging: every run past a threshold, with runs separated
  by a small gap fused (grid line + header strip become one divider)

A locator returns None when nothing in the window passes its threshold; the
caller decides what to fall back to.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np


@dataclass(frozen=True)
class Band:
    start: int
    end: int  # inclusive

    @property
    def width(self) -> int:
        return self.end - self.start + 1

    @property
    def center(self) -> float:
        return (self.start + self.end) / 2.0


def _window(n: int, center: int, radius: int):
    lo = max(0, int(center) - int(radius))
    hi = min(n - 1, int(center) + int(radius))
    return lo, hi


def find_valley_band(profile: np.ndarray, center: int, radius: int, threshold: float) -> Optional[Band]:
    n = int(profile.size)
    if n == 0:
        return None
    lo, hi = _window(n, center, radius)
    if lo > hi:
        return None

    idx = lo + int(np.argmin(profile[lo:hi + 1]))
    if float(profile[idx]) >= threshold:
        return None

    start = idx
    while start > 0 and float(profile[start - 1]) < threshold:
        start -= 1
    end = idx
    while end < n - 1 and float(profile[end + 1]) < threshold:
        end += 1
    return Band(start, end)


def find_peak_band(
    profile: np.ndarray,
    center: int,
    radius: int,
    threshold: float,
    peak_fraction: float = 0.5,
) -> Optional[Band]:
    n = int(profile.size)
    if n == 0:
        return None
    lo, hi = _window(n, center, radius)
    if lo > hi:
        return None

    idx = lo + int(np.argmax(profile[lo:hi + 1]))
    peak = float(profile[idx])
    if peak <= threshold:
        return None

    local = peak * float(peak_fraction)
    start = idx
    while start > 0 and float(profile[start - 1]) > local:
        start -= 1
    end = idx
    while end < n - 1 and float(profile[end + 1]) > local:
        end += 1
    return Band(start, end)


def find_threshold_bands(profile: np.ndarray, threshold: float) -> List[Band]:
    """Every maximal run of samples strictly above threshold, left to right."""
    above = np.asarray(profile) > threshold
    if not above.any():
        return []

    edges = np.diff(above.astype(np.int8))
    starts = (np.nonzero(edges == 1)[0] + 1).tolist()
    ends = np.nonzero(edges == -1)[0].tolist()
    if above[0]:
        starts.insert(0, 0)
    if above[-1]:
        ends.append(int(above.size) - 1)
    return [Band(int(s), int(e)) for s, e in zip(starts, ends)]


def merge_bands(bands: Sequence[Band], max_gap: int) -> List[Band]:
    """Fuse bands whose gap (pixels strictly between them) is <= max_gap."""
    merged: List[Band] = []
    for b in sorted(bands, key=lambda z: z.start):
        if merged and b.start - merged[-1].end - 1 <= max_gap:
            last = merged[-1]
            merged[-1] = Band(last.start, max(last.end, b.end))
        else:
            merged.append(b)
    return merged


def nearest_band(bands: Sequence[Band], center: float, radius: float) -> Optional[Band]:
    best: Optional[Band] = None
    best_d: Optional[float] = None
    for b in bands:
        d = abs(b.center - float(center))
        if d > radius:
            continue
        if best_d is None or d < best_d:
            best, best_d = b, d
    return best
