"""
extract.py

Grid image in, 36 transparent sprites out.

    resolve_grid (once, whole image)
      -> per cell: crop -> segment_background -> decontaminate
                   -> strike colors -> prune_islands -> posterize output

Cells are independent once their rectangles are known, so they are processed
on a bounded thread pool. Output order is always row-major by cell index.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from PIL import Image
import numpy as np

from .config import ExtractionConfig, TemplateGeometry
from .decontaminate import decontaminate
from .errors import ComposeMismatch, InvalidCellDimensions
from .islands import prune_islands
from .layout import CellRect, resolve_grid
from .poses import CELL_LABELS, COLS, ROWS, TOTAL_CELLS
from .preprocess import posterize, strike_colors
from .raster import ImageLike, to_image, to_rgba_array
from .segment import segment_background


@dataclass(frozen=True, eq=False)
class ExtractedSprite:
    cell_index: int
    label: str
    pixels: np.ndarray  # (H, W, 4) uint8

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def to_image(self) -> Image.Image:
        return to_image(self.pixels)


def crop_cell(rgba: np.ndarray, rect: CellRect) -> np.ndarray:
    if rect.w <= 0 or rect.h <= 0:
        raise InvalidCellDimensions(f"Cell rect {rect} has no area")
    return rgba[rect.y:rect.y + rect.h, rect.x:rect.x + rect.w].copy()


def clean_cell(cell: np.ndarray, config: ExtractionConfig) -> Tuple[np.ndarray, Dict[str, float]]:
    """Background removal + edge cleanup for one cropped cell."""
    mask, bg_rgb, dbg = segment_background(cell, config)

    out = decontaminate(
        cell,
        mask,
        bg_rgb,
        radius=config.decontam_radius,
        tolerance=config.background_tolerance,
        color_weight=config.color_alpha_weight,
    )

    if config.strike_colors:
        out = strike_colors(out, config.strike_colors, config.strike_tolerance)

    out, island_dbg = prune_islands(out, config.min_island_area)
    dbg.update(island_dbg)

    if config.posterize_output and config.posterize_bits < 8:
        out = posterize(out, config.posterize_bits)
    return out, dbg


def _check_labels(labels: Sequence[str]) -> List[str]:
    labels = list(labels)
    if len(labels) != TOTAL_CELLS:
        raise ValueError(f"Expected {TOTAL_CELLS} labels, got {len(labels)}")
    return labels


def extract_cells(
    rgba: np.ndarray,
    rects: Sequence[CellRect],
    config: ExtractionConfig,
    labels: Sequence[str] = CELL_LABELS,
) -> List[ExtractedSprite]:
    """Crop and clean every rect. rects must be the 36 row-major cells of resolve_grid."""
    labels = _check_labels(labels)
    if len(rects) != TOTAL_CELLS:
        raise ValueError(f"Expected {TOTAL_CELLS} cell rects, got {len(rects)}")

    cells = [crop_cell(rgba, r) for r in rects]

    def work(cell: np.ndarray) -> np.ndarray:
        return clean_cell(cell, config)[0]

    if config.workers > 1:
        with ThreadPoolExecutor(max_workers=config.workers, thread_name_prefix="cell") as pool:
            cleaned = list(pool.map(work, cells))
    else:
        cleaned = [work(c) for c in cells]

    return [
        ExtractedSprite(cell_index=i, label=labels[i], pixels=px)
        for i, px in enumerate(cleaned)
    ]


def extract_sprites(
    image: ImageLike,
    geometry: TemplateGeometry,
    config: Optional[ExtractionConfig] = None,
    labels: Sequence[str] = CELL_LABELS,
) -> List[ExtractedSprite]:
    """Full pipeline: one grid image in, 36 sprites out, ordered by cell index."""
    cfg = config or ExtractionConfig()
    labels = _check_labels(labels)
    rgba = to_rgba_array(image)
    rects, _ = resolve_grid(rgba, geometry, cfg)
    return extract_cells(rgba, rects, cfg, labels)


# ---------------------------
# Recompose
# ---------------------------
def compose_sprite_sheet(
    sprites: Sequence[ExtractedSprite],
    *,
    order: Optional[Sequence[int]] = None,
    mirrored: Iterable[int] = (),
) -> np.ndarray:
    """
    Lay sprites out as a flat 6×6 RGBA sheet (no dividers, no headers).

    order[i] names the cell index shown at grid position i (frame swapping);
    by default every sprite sits at its own cell_index. Cells in `mirrored`
    are flipped horizontally. Positions with no sprite stay transparent.
    """
    if not sprites:
        raise ComposeMismatch("No sprites to compose")

    cell_h, cell_w = sprites[0].height, sprites[0].width
    by_index: Dict[int, ExtractedSprite] = {}
    for s in sprites:
        if (s.height, s.width) != (cell_h, cell_w):
            raise ComposeMismatch(
                f"Sprite {s.cell_index} is {s.width}x{s.height}, expected {cell_w}x{cell_h}"
            )
        if not 0 <= s.cell_index < TOTAL_CELLS:
            raise ComposeMismatch(f"Cell index {s.cell_index} is outside 0..{TOTAL_CELLS - 1}")
        if s.cell_index in by_index:
            raise ComposeMismatch(f"Duplicate cell index {s.cell_index}")
        by_index[s.cell_index] = s

    if order is None:
        layout = list(range(TOTAL_CELLS))
    else:
        layout = [int(i) for i in order]
        if sorted(layout) != list(range(TOTAL_CELLS)):
            raise ComposeMismatch(f"order must be a permutation of 0..{TOTAL_CELLS - 1}")

    flip = set(int(i) for i in mirrored)
    sheet = np.zeros((ROWS * cell_h, COLS * cell_w, 4), dtype=np.uint8)
    for pos, idx in enumerate(layout):
        s = by_index.get(idx)
        if s is None:
            continue
        px = s.pixels[:, ::-1] if idx in flip else s.pixels
        r, c = divmod(pos, COLS)
        sheet[r * cell_h:(r + 1) * cell_h, c * cell_w:(c + 1) * cell_w] = px
    return sheet
