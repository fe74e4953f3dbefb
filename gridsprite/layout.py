"""
layout.py

Resolve the 36 content rectangles of a 6×6 grid image.

Per axis:
1) Scale the template's 7 divider positions to the image size.
2) Run every Detector near each expected divider. Positions a detector cannot
   find fall back to the expected band and are flagged.
3) Score each detector's line set (spacing uniformity, fallback share,
   oversized bands) and keep the best one whose content spans can be formed.
4) If nothing usable remains, the axis falls back to template proportions.

Rows and columns are resolved independently, so a grid can come out with
detected columns and template rows (or the reverse).
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

import numpy as np

from .bands import Band, find_peak_band, find_threshold_bands, find_valley_band, merge_bands, nearest_band
from .config import ExtractionConfig, TemplateGeometry
from .errors import GeometryDetectionFailure, InvalidCellDimensions
from .poses import COLS, ROWS, TOTAL_CELLS
from .preprocess import posterize
from .profiles import AxisProfiles, build_profiles

GRID = 6  # cells per axis (COLS == ROWS)

# Scoring weights
FALLBACK_PENALTY = 0.5
OVERSIZE_PENALTY = 0.5
OVERSIZE_FACTOR = 3.0
OVERSIZE_SLACK = 2  # px, so 1-2px template lines are not flagged for small wobble

MIN_AXIS_PX = 2 * GRID + 1

Span = Tuple[int, int]  # (start, length)


class Detector(Enum):
    BRIGHTNESS = "brightness"  # valley band on mean luma
    SATURATION = "saturation"  # peak band on |saturation - median|
    DARKNESS = "darkness"      # merged threshold runs on the dark-pixel share


@dataclass(frozen=True)
class CellRect:
    x: int
    y: int
    w: int
    h: int


@dataclass(frozen=True)
class LineSet:
    detector: Detector
    bands: Tuple[Band, ...]
    fell_back: Tuple[bool, ...]

    @property
    def fallback_count(self) -> int:
        return sum(1 for f in self.fell_back if f)


@dataclass(frozen=True)
class AxisLayout:
    spans: Tuple[Span, ...]
    detector: Optional[Detector]  # None = template fallback
    score: float

    @property
    def fallback(self) -> bool:
        return self.detector is None


# ---------------------------
# Template geometry
# ---------------------------
def _axis_template(geometry: TemplateGeometry, axis: str) -> Tuple[int, int, int, int]:
    """(pitch, total length, lead, content) in template pixels. Rows lead with a header."""
    d = geometry.divider_thickness
    if axis == "cols":
        content, lead = geometry.content_width, 0
    else:
        content, lead = geometry.content_height, geometry.header_height
    pitch = content + lead + d
    return pitch, GRID * pitch + d, lead, content


def expected_bands(axis_len: int, geometry: TemplateGeometry, axis: str) -> List[Band]:
    """
    The 7 template dividers scaled to axis_len. Row dividers 0..5 include the
    header strip below the line; divider 6 is the closing line only.
    """
    pitch, total, lead, _ = _axis_template(geometry, axis)
    scale = float(axis_len) / float(total)
    d = geometry.divider_thickness

    out: List[Band] = []
    for i in range(GRID + 1):
        thick = d + (lead if i < GRID else 0)
        start = min(axis_len - 1, int(round(i * pitch * scale)))
        end = int(round((i * pitch + thick) * scale)) - 1
        end = min(axis_len - 1, max(start, end))
        out.append(Band(start, end))
    return out


def _lead_px(axis_len: int, geometry: TemplateGeometry, axis: str) -> int:
    pitch, total, lead, _ = _axis_template(geometry, axis)
    if lead == 0:
        return 0
    return int(round((geometry.divider_thickness + lead) * float(axis_len) / float(total)))


def _spans_from_bands(bands: List[Band], lead_px: int) -> List[Span]:
    spans: List[Span] = []
    for k in range(GRID):
        a, b = bands[k], bands[k + 1]
        start = a.end + 1
        if lead_px:
            # Header may have been missed (only the line detected): skip it anyway.
            start = max(start, a.start + lead_px)
        spans.append((start, b.start - start))
    return spans


def _content_spans(
    bands: List[Band],
    axis_len: int,
    geometry: TemplateGeometry,
    axis: str,
    config: ExtractionConfig,
) -> Optional[List[Span]]:
    """Content spans between detected dividers, or None if they cannot form 6 plausible cells."""
    for a, b in zip(bands, bands[1:]):
        if b.start <= a.end:
            return None

    _, total, _, content = _axis_template(geometry, axis)
    exp_len = content * float(axis_len) / float(total)
    lo = config.min_span_fraction * exp_len
    hi = (2.0 - config.min_span_fraction) * exp_len

    spans = _spans_from_bands(bands, _lead_px(axis_len, geometry, axis))
    for _, length in spans:
        if length < lo or length > hi:
            return None
    return spans


def _finalize_spans(spans: List[Span], config: ExtractionConfig, axis: str) -> Tuple[Span, ...]:
    inset = int(config.aa_inset)
    out = [(s + inset, length - 2 * inset) for s, length in spans]
    for i, (_, length) in enumerate(out):
        if length <= 0:
            raise InvalidCellDimensions(
                f"{axis} span {i} is {length}px after a {inset}px anti-alias inset"
            )
    if config.uniform_spans:
        m = min(length for _, length in out)
        out = [(s + (length - m) // 2, m) for s, length in out]
    return tuple(out)


def template_spans(axis_len: int, geometry: TemplateGeometry, axis: str, config: ExtractionConfig) -> Tuple[Span, ...]:
    bands = expected_bands(axis_len, geometry, axis)
    return _finalize_spans(_spans_from_bands(bands, _lead_px(axis_len, geometry, axis)), config, axis)


# ---------------------------
# Detection
# ---------------------------
def detector_signal(profiles: AxisProfiles, detector: Detector, config: ExtractionConfig) -> Tuple[np.ndarray, float]:
    """The profile a detector reads and its per-image threshold."""
    if detector is Detector.BRIGHTNESS:
        p = profiles.brightness
        return p, float(config.valley_fraction) * float(np.median(p))

    if detector is Detector.SATURATION:
        sat = profiles.saturation
        dev = np.abs(sat - float(np.median(sat))).astype(np.float32)
        return dev, max(float(config.saturation_contrast), 2.0 * float(np.median(dev)))

    p = profiles.darkness
    m = float(np.median(p))
    return p, max(float(config.dark_fraction), m + (1.0 - m) * 0.5)


def locate_lines(
    signal: np.ndarray,
    threshold: float,
    detector: Detector,
    expected: List[Band],
    radius: int,
    config: ExtractionConfig,
) -> LineSet:
    runs: List[Band] = []
    if detector is Detector.DARKNESS:
        runs = merge_bands(find_threshold_bands(signal, threshold), config.band_merge_gap)

    bands: List[Band] = []
    fell_back: List[bool] = []
    for exp in expected:
        c = int(round(exp.center))
        if detector is Detector.BRIGHTNESS:
            b = find_valley_band(signal, c, radius, threshold)
        elif detector is Detector.SATURATION:
            b = find_peak_band(signal, c, radius, threshold, config.peak_fraction)
        else:
            b = nearest_band(runs, exp.center, radius)

        if b is None:
            bands.append(exp)
            fell_back.append(True)
        else:
            bands.append(b)
            fell_back.append(False)
    return LineSet(detector, tuple(bands), tuple(fell_back))


def score_lines(lines: LineSet, expected: List[Band]) -> float:
    """
    Lower is better:
      coefficient of variation of divider spacing
      + FALLBACK_PENALTY * share of positions that fell back
      + OVERSIZE_PENALTY * share of detected bands far wider than expected
    """
    n = len(lines.bands)
    starts = np.array([b.start for b in lines.bands], dtype=np.float64)
    gaps = np.diff(starts)
    if gaps.size == 0 or bool((gaps <= 0).any()):
        return math.inf

    cv = float(gaps.std() / gaps.mean())

    oversize = 0
    for b, e, fb in zip(lines.bands, expected, lines.fell_back):
        if not fb and b.width > OVERSIZE_FACTOR * e.width + OVERSIZE_SLACK:
            oversize += 1

    return cv + FALLBACK_PENALTY * (lines.fallback_count / n) + OVERSIZE_PENALTY * (oversize / n)


def resolve_axis(
    profiles: AxisProfiles,
    axis_len: int,
    geometry: TemplateGeometry,
    axis: str,
    config: ExtractionConfig,
) -> Tuple[AxisLayout, Dict[str, float]]:
    expected = expected_bands(axis_len, geometry, axis)
    pitch, total, _, _ = _axis_template(geometry, axis)
    radius = max(1, int(round(config.search_radius * pitch * float(axis_len) / float(total))))

    dbg: Dict[str, float] = {f"{axis}_search_radius": float(radius)}
    best: Optional[Tuple[float, Detector, List[Span]]] = None

    for det in Detector:
        signal, thr = detector_signal(profiles, det, config)
        lines = locate_lines(signal, thr, det, expected, radius, config)
        spans = _content_spans(list(lines.bands), axis_len, geometry, axis, config)
        score = score_lines(lines, expected) if spans is not None else math.inf

        dbg[f"{axis}_{det.value}_threshold"] = float(thr)
        dbg[f"{axis}_{det.value}_found"] = float(len(expected) - lines.fallback_count)
        dbg[f"{axis}_{det.value}_score"] = float(score)

        # A line set that found nothing is just the template in disguise.
        if spans is None or lines.fallback_count == len(expected):
            continue
        if best is None or score < best[0]:
            best = (score, det, spans)

    if best is None:
        layout = AxisLayout(template_spans(axis_len, geometry, axis, config), None, math.inf)
    else:
        score, det, spans = best
        layout = AxisLayout(_finalize_spans(spans, config, axis), det, score)
    return layout, dbg


def resolve_grid(
    rgba: np.ndarray,
    geometry: TemplateGeometry,
    config: ExtractionConfig,
) -> Tuple[List[CellRect], Dict[str, object]]:
    """
    36 content rectangles, row-major, plus a debug dict describing which
    detector won on each axis.
    """
    if rgba.ndim != 3 or rgba.shape[2] != 4:
        raise GeometryDetectionFailure(f"Expected an RGBA buffer, got shape {rgba.shape}")
    h, w = int(rgba.shape[0]), int(rgba.shape[1])
    if h < MIN_AXIS_PX or w < MIN_AXIS_PX:
        raise GeometryDetectionFailure(f"Image {w}x{h} is too small for a {COLS}x{ROWS} grid")

    det_img = posterize(rgba, config.posterize_bits) if config.posterize_bits < 8 else rgba

    layouts: Dict[str, AxisLayout] = {}
    dbg: Dict[str, object] = {"width": float(w), "height": float(h)}
    for axis, axis_len in (("rows", h), ("cols", w)):
        profiles = build_profiles(det_img, axis, stride=config.sample_stride, dark_luma=config.dark_luma)
        layout, axis_dbg = resolve_axis(profiles, axis_len, geometry, axis, config)
        layouts[axis] = layout
        dbg.update(axis_dbg)
        dbg[f"{axis}_detector"] = layout.detector.value if layout.detector else "template"
        dbg[f"{axis}_fallback"] = layout.fallback
        dbg[f"{axis}_score"] = float(layout.score)

    rects = [
        CellRect(x, y, cw, rh)
        for (y, rh) in layouts["rows"].spans
        for (x, cw) in layouts["cols"].spans
    ]
    if len(rects) != TOTAL_CELLS:
        raise GeometryDetectionFailure(f"Resolved {len(rects)} cells, expected {TOTAL_CELLS}")
    return rects, dbg


def template_cell_rects(
    width: int,
    height: int,
    geometry: TemplateGeometry,
    config: ExtractionConfig,
) -> List[CellRect]:
    """Template-proportional layout scaled to width x height (both axes fallen back)."""
    rows = template_spans(height, geometry, "rows", config)
    cols = template_spans(width, geometry, "cols", config)
    return [CellRect(x, y, cw, rh) for (y, rh) in rows for (x, cw) in cols]
