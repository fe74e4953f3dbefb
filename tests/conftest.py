from typing import Optional, Tuple

from PIL import Image, ImageDraw
import numpy as np
import pytest

from gridsprite.config import ExtractionConfig, TemplateGeometry

MAGENTA = (255, 0, 255)
INK = (0, 0, 0)
ART = (40, 160, 70)

# 254 x 266 template: 40x36 content, 6px header, 2px lines
SMALL = TemplateGeometry(content_width=40, content_height=36, header_height=6, divider_thickness=2)


def render_grid(
    geometry: TemplateGeometry = SMALL,
    *,
    size: Optional[Tuple[int, int]] = None,
    background=MAGENTA,
    ink=INK,
    art=ART,
) -> np.ndarray:
    """
    A filled template: ink grid lines and headers (with a white "text" stroke),
    flat background content, one ellipse of art centered in every cell.
    """
    cw, ch = geometry.content_width, geometry.content_height
    hh, d = geometry.header_height, geometry.divider_thickness

    img = Image.new("RGB", (geometry.width, geometry.height), ink)
    draw = ImageDraw.Draw(img)
    for idx in range(36):
        r, c = divmod(idx, 6)
        x0 = d + c * (cw + d)
        y0 = d + r * (ch + hh + d)
        if hh:
            draw.rectangle([x0, y0, x0 + cw - 1, y0 + hh - 1], fill=ink)
            ty = y0 + hh // 2
            draw.line([(x0 + cw * 2 // 5, ty), (x0 + cw * 3 // 5, ty)], fill=(255, 255, 255))

        cy0 = y0 + hh
        draw.rectangle([x0, cy0, x0 + cw - 1, cy0 + ch - 1], fill=background)
        rad = min(cw, ch) // 4
        cx, cy = x0 + cw // 2, cy0 + ch // 2
        draw.ellipse([cx - rad, cy - rad, cx + rad, cy + rad], fill=art)

    if size is not None:
        img = img.resize(size, Image.NEAREST)
    return np.array(img.convert("RGBA"), dtype=np.uint8)


@pytest.fixture
def small_geometry() -> TemplateGeometry:
    return SMALL


@pytest.fixture
def small_config() -> ExtractionConfig:
    return ExtractionConfig(aa_inset=2, workers=1)


@pytest.fixture
def small_grid() -> np.ndarray:
    return render_grid(SMALL)
