"""
config.py

Immutable inputs for one extraction run:

- TemplateGeometry: the grid as authored in the template sent to the model.
  Used for expected divider positions and fallback geometry only; the image
  that comes back is never assumed to match it pixel for pixel.
- ExtractionConfig: every tunable that changes output. Passed by value into
  the pipeline entry points.
"""

from dataclasses import dataclass
from typing import Tuple

from .errors import InvalidCellDimensions

RGB = Tuple[int, int, int]


@dataclass(frozen=True)
class TemplateGeometry:
    content_width: int
    content_height: int
    header_height: int
    divider_thickness: int

    def __post_init__(self):
        if self.content_width <= 0 or self.content_height <= 0:
            raise InvalidCellDimensions(
                f"Template content must be positive, got {self.content_width}x{self.content_height}"
            )
        if self.header_height < 0:
            raise ValueError(f"header_height must be >= 0, got {self.header_height}")
        if self.divider_thickness < 1:
            raise ValueError(f"divider_thickness must be >= 1, got {self.divider_thickness}")

    @classmethod
    def from_cell_size(
        cls,
        cell_width: int,
        cell_height: int,
        header_height: int,
        divider_thickness: int,
    ) -> "TemplateGeometry":
        """
        Build geometry from a total cell height (header included), the way
        template presets are usually written down.
        """
        content_h = int(cell_height) - int(header_height)
        if content_h <= 0:
            raise InvalidCellDimensions(
                f"Header height {header_height} leaves no content in a {cell_height}px cell"
            )
        return cls(int(cell_width), content_h, int(header_height), int(divider_thickness))

    @property
    def width(self) -> int:
        """Width of the full 6-column template image."""
        return 6 * self.content_width + 7 * self.divider_thickness

    @property
    def height(self) -> int:
        return 6 * (self.content_height + self.header_height) + 7 * self.divider_thickness


TEMPLATE_2K = TemplateGeometry(content_width=468, content_height=450, header_height=18, divider_thickness=2)
TEMPLATE_4K = TemplateGeometry(content_width=680, content_height=656, header_height=24, divider_thickness=3)

PRESETS = {"2k": TEMPLATE_2K, "4k": TEMPLATE_4K}


@dataclass(frozen=True)
class ExtractionConfig:
    # Grid detection
    search_radius: float = 0.2         # fraction of the cell pitch searched around each expected divider
    sample_stride: int = 2             # profiles sample every Nth pixel across the axis
    dark_luma: float = 64.0            # luminance below this counts as "ink"
    valley_fraction: float = 0.6       # brightness valley must dip below this share of the median
    saturation_contrast: float = 0.15  # minimum saturation deviation for a peak band
    peak_fraction: float = 0.5         # peak band expands while above this share of the peak
    dark_fraction: float = 0.6         # minimum darkness share for a dark band
    band_merge_gap: int = 3
    min_span_fraction: float = 0.5
    aa_inset: int = 3
    uniform_spans: bool = True
    posterize_bits: int = 4            # detection copy only; 8 disables

    # Background removal
    background_tolerance: float = 45.0
    interior_tolerance: float = 25.0
    seed_inset: int = 3
    anchor_radius: int = 2
    max_background_samples: int = 4096

    # Edge cleanup
    decontam_radius: int = 4
    color_alpha_weight: float = 0.7
    min_island_area: int = 16

    # Output edits
    posterize_output: bool = False
    strike_colors: Tuple[RGB, ...] = ()
    strike_tolerance: float = 30.0

    workers: int = 4

    def __post_init__(self):
        if not 1 <= int(self.posterize_bits) <= 8:
            raise ValueError(f"posterize_bits must be in 1..8, got {self.posterize_bits}")
        if self.search_radius <= 0:
            raise ValueError("search_radius must be positive")
        if self.sample_stride < 1:
            raise ValueError("sample_stride must be >= 1")
        if not 0.0 < self.min_span_fraction < 1.0:
            raise ValueError("min_span_fraction must be in (0, 1)")
        if self.background_tolerance < 0 or self.interior_tolerance < 0:
            raise ValueError("tolerances must be >= 0")
        if self.interior_tolerance > self.background_tolerance:
            raise ValueError(
                f"interior_tolerance ({self.interior_tolerance}) must not exceed "
                f"background_tolerance ({self.background_tolerance})"
            )
        if not 0.0 <= self.color_alpha_weight <= 1.0:
            raise ValueError("color_alpha_weight must be in [0, 1]")
        if self.aa_inset < 0 or self.decontam_radius < 0 or self.min_island_area < 0:
            raise ValueError("aa_inset, decontam_radius and min_island_area must be >= 0")
        if self.workers < 1:
            raise ValueError("workers must be >= 1")
