#!/usr/bin/env python3
"""
slice_grid.py

Slice a generated 6×6 pose grid into per-pose transparent PNGs.

GOAL (robust to model distortion):
1) Find the real grid lines even when the model moved or resized them
   (falls back to template proportions per axis when it cannot).
2) Crop each cell's content below its header strip.
3) Remove the flat background by anchored flood fill from the cell border,
   including enclosed background holes.
4) Clean the edge halo (decontaminate) and drop stray specks.

Dependencies:
- Pillow
- numpy
"""

import argparse
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from PIL import ImageDraw

from gridsprite.config import PRESETS, ExtractionConfig, TemplateGeometry
from gridsprite.errors import ExtractionError
from gridsprite.extract import compose_sprite_sheet, extract_cells
from gridsprite.layout import resolve_grid
from gridsprite.poses import CELL_LABELS, TOTAL_CELLS, parse_labels_tsv, pose_id
from gridsprite.raster import load_rgba, to_image


def parse_hex_color(text: str) -> Tuple[int, int, int]:
    s = text.strip().lstrip("#")
    if len(s) != 6:
        raise argparse.ArgumentTypeError(f"Expected RRGGBB, got {text!r}")
    try:
        return int(s[0:2], 16), int(s[2:4], 16), int(s[4:6], 16)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected RRGGBB, got {text!r}")


def parse_index_list(text: str) -> List[int]:
    return [int(t) for t in text.replace(",", " ").split() if t]


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        description="Slice a 6x6 pose grid into 36 transparent sprites (grid detection, anchored background removal, edge decontamination)."
    )

    ap.add_argument("--grid", required=True,
                    help="Grid image returned by the model. (required)")
    ap.add_argument("--out", default="sprites",
                    help="Output directory for sprite PNGs. (default: sprites)")
    ap.add_argument("--labels", default="",
                    help="TSV with one pose label per line in column 1 (36 rows). Default: built-in pose table.")
    ap.add_argument("--overwrite", action="store_true",
                    help="Overwrite existing PNGs.")

    ap.add_argument("--preset", choices=sorted(PRESETS), default="2k",
                    help="Template geometry preset. (default: 2k)")
    ap.add_argument("--cell_w", type=int, default=0, help="Override template content width.")
    ap.add_argument("--cell_h", type=int, default=0, help="Override template content height.")
    ap.add_argument("--header_h", type=int, default=-1, help="Override template header height.")
    ap.add_argument("--border", type=int, default=0, help="Override template divider thickness.")

    ap.add_argument("--tolerance", type=float, default=45.0,
                    help="Background color tolerance for the border flood fill. (default: 45)")
    ap.add_argument("--interior_tolerance", type=float, default=25.0,
                    help="Tighter tolerance for enclosed background holes. (default: 25)")
    ap.add_argument("--decontam_radius", type=int, default=4,
                    help="Edge decontamination radius in px. (default: 4)")
    ap.add_argument("--min_island", type=int, default=16,
                    help="Drop opaque specks smaller than this many px. (default: 16)")
    ap.add_argument("--aa_inset", type=int, default=3,
                    help="Pixels trimmed from every cell edge. (default: 3)")
    ap.add_argument("--posterize_bits", type=int, default=4,
                    help="Bits per channel for the detection copy, 8 = off. (default: 4)")
    ap.add_argument("--posterize_output", action="store_true",
                    help="Also posterize the exported sprites.")
    ap.add_argument("--strike", type=parse_hex_color, action="append", default=[],
                    help="Extra color (RRGGBB) to make transparent. Repeatable.")
    ap.add_argument("--workers", type=int, default=4,
                    help="Cells processed in parallel. (default: 4)")

    ap.add_argument("--sheet", default="",
                    help="Also write the recomposed 6x6 sheet (no grid lines) to this path.")
    ap.add_argument("--mirror", type=parse_index_list, default=[],
                    help="Cell indices to flip horizontally in the sheet, e.g. '9,10,11'.")
    ap.add_argument("--order", type=parse_index_list, default=None,
                    help="36 cell indices giving the sheet order.")

    ap.add_argument("--debug_detect", default="",
                    help="Write a debug PNG showing the resolved cell rects to this path.")
    ap.add_argument("--debug_list", action="store_true",
                    help="Print the resolved rect list (index, label, x, y, w, h).")
    return ap


def geometry_from_args(args: argparse.Namespace) -> TemplateGeometry:
    base = PRESETS[args.preset]
    return TemplateGeometry(
        content_width=args.cell_w or base.content_width,
        content_height=args.cell_h or base.content_height,
        header_height=args.header_h if args.header_h >= 0 else base.header_height,
        divider_thickness=args.border or base.divider_thickness,
    )


def config_from_args(args: argparse.Namespace) -> ExtractionConfig:
    return ExtractionConfig(
        background_tolerance=args.tolerance,
        interior_tolerance=min(args.interior_tolerance, args.tolerance),
        decontam_radius=args.decontam_radius,
        min_island_area=args.min_island,
        aa_inset=args.aa_inset,
        posterize_bits=args.posterize_bits,
        posterize_output=args.posterize_output,
        strike_colors=tuple(args.strike),
        workers=args.workers,
    )


def main(argv: Optional[Sequence[str]] = None):
    args = build_parser().parse_args(argv)

    if args.labels:
        labels = parse_labels_tsv(Path(args.labels).read_text(encoding="utf-8"))
        if len(labels) != TOTAL_CELLS:
            raise SystemExit(f"Expected {TOTAL_CELLS} labels in {args.labels}, found {len(labels)}")
    else:
        labels = list(CELL_LABELS)

    try:
        geometry = geometry_from_args(args)
        cfg = config_from_args(args)
    except (ValueError, ExtractionError) as e:
        raise SystemExit(f"Bad settings: {e}")

    grid = load_rgba(args.grid)
    H, W = grid.shape[:2]

    try:
        rects, detect_dbg = resolve_grid(grid, geometry, cfg)
        sprites = extract_cells(grid, rects, cfg, labels)
    except ExtractionError as e:
        raise SystemExit(f"Extraction failed for {args.grid}: {e}")

    if args.debug_list:
        for i, r in enumerate(rects):
            print(f"{i:02d}\t{labels[i]}\t{r.x},{r.y}\t{r.w}x{r.h}")

    if args.debug_detect:
        dbg_img = to_image(grid).convert("RGB")
        d = ImageDraw.Draw(dbg_img)
        for i, r in enumerate(rects):
            d.rectangle([r.x, r.y, r.x + r.w - 1, r.y + r.h - 1], outline=(0, 255, 0), width=2)
            d.text((r.x + 4, r.y + 4), str(i), fill=(0, 255, 0))

        p = Path(args.debug_detect)
        p.parent.mkdir(parents=True, exist_ok=True)
        dbg_img.save(p)
        print(f"Debug detection image written: {p}")
        print(f"Detection debug: {detect_dbg}")

    out_dir = Path(args.out)
    out_dir.mkdir(parents=True, exist_ok=True)

    saved = skipped = 0
    for s in sprites:
        out_path = out_dir / f"{s.cell_index:02d}_{pose_id(s.label)}.png"
        if out_path.exists() and not args.overwrite:
            skipped += 1
            continue
        s.to_image().save(out_path, "PNG")
        saved += 1

    if args.sheet:
        try:
            sheet = compose_sprite_sheet(sprites, order=args.order, mirrored=args.mirror)
        except ExtractionError as e:
            raise SystemExit(f"Sheet not written: {e}")
        p = Path(args.sheet)
        p.parent.mkdir(parents=True, exist_ok=True)
        to_image(sheet).save(p, "PNG")
        print(f"Sheet written: {p}")

    print(f"Grid: {args.grid} ({W}x{H}) | preset: {args.preset}")
    print(
        f"Rows: {detect_dbg['rows_detector']} | Cols: {detect_dbg['cols_detector']} "
        f"| Cell: {sprites[0].width}x{sprites[0].height}"
    )
    print(f"Saved: {saved} | Skipped: {skipped} | Out: {out_dir}")


if __name__ == "__main__":
    main()
