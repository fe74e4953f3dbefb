"""
gridsprite

Recover 36 transparent character sprites from a 6×6 pose grid returned by an
image model.
"""

from .config import PRESETS, TEMPLATE_2K, TEMPLATE_4K, ExtractionConfig, TemplateGeometry
from .errors import ComposeMismatch, ExtractionError, GeometryDetectionFailure, InvalidCellDimensions
from .extract import ExtractedSprite, compose_sprite_sheet, extract_cells, extract_sprites
from .layout import CellRect, Detector, resolve_grid, template_cell_rects
from .poses import CELL_LABELS, COLS, ROWS, TOTAL_CELLS

__version__ = "0.1.0"

__all__ = [
    "CELL_LABELS",
    "COLS",
    "ROWS",
    "TOTAL_CELLS",
    "PRESETS",
    "TEMPLATE_2K",
    "TEMPLATE_4K",
    "CellRect",
    "ComposeMismatch",
    "Detector",
    "ExtractedSprite",
    "ExtractionConfig",
    "ExtractionError",
    "GeometryDetectionFailure",
    "InvalidCellDimensions",
    "TemplateGeometry",
    "compose_sprite_sheet",
    "extract_cells",
    "extract_sprites",
    "resolve_grid",
    "template_cell_rects",
]
