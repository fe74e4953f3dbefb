import numpy as np

from gridsprite.config import ExtractionConfig
from gridsprite.segment import anchor_color, flood_fill_from_seed, seed_positions, segment_background

MAGENTA = (255, 0, 255)


def _cell(h=60, w=60, color=MAGENTA):
    rgba = np.zeros((h, w, 4), dtype=np.uint8)
    rgba[..., :3] = color
    rgba[..., 3] = 255
    return rgba


def test_seed_positions_are_corners_then_midpoints():
    seeds = seed_positions(40, 50, 3)
    assert seeds[:4] == [(3, 3), (3, 46), (36, 3), (36, 46)]
    assert seeds[4:] == [(3, 25), (36, 25), (20, 3), (20, 46)]


def test_seed_positions_clamp_on_tiny_cells():
    for y, x in seed_positions(3, 2, 5):
        assert 0 <= y < 3 and 0 <= x < 2


def test_anchor_color_is_a_median_that_ignores_one_outlier():
    rgba = _cell(10, 10)
    rgba[5, 5, :3] = (0, 0, 0)
    assert anchor_color(rgba[..., :3], 5, 5, 2).tolist() == [255.0, 0.0, 255.0]


def test_flood_fill_from_seed_stays_in_its_component():
    mask = np.ones((5, 5), dtype=np.bool_)
    mask[:, 2] = False
    filled = flood_fill_from_seed(mask, 0, 0)
    assert filled[:, :2].all()
    assert not filled[:, 2:].any()
    assert not flood_fill_from_seed(mask, 0, 2).any()


def test_flat_background_around_a_square():
    rgba = _cell()
    rgba[20:40, 20:40, :3] = (20, 20, 20)

    mask, bg_rgb, dbg = segment_background(rgba, ExtractionConfig())

    expected = np.ones((60, 60), dtype=np.bool_)
    expected[20:40, 20:40] = False
    assert np.array_equal(mask, expected)
    assert bg_rgb.tolist() == [255.0, 0.0, 255.0]
    assert dbg["seeds_used"] == 1.0
    assert dbg["seeds_covered"] == 7.0


def test_each_seed_anchors_its_own_part_of_a_gradient():
    rgba = _cell()
    # Red channel drifts 255 -> 196 left to right: wider than one tolerance.
    ramp = np.linspace(255, 196, 60).round().astype(np.uint8)
    rgba[..., 0] = ramp[None, :]
    rgba[20:40, 20:40, :3] = (20, 20, 20)

    mask, _, dbg = segment_background(rgba, ExtractionConfig(background_tolerance=45.0))

    assert dbg["seeds_used"] >= 2.0
    assert mask[:, :20].all() and mask[:, 40:].all()
    assert not mask[20:40, 20:40].any()


def test_interior_void_is_reclaimed():
    rgba = _cell()
    # A ring of art with a background-colored hole that never touches the border.
    rgba[15:45, 15:45, :3] = (30, 120, 200)
    rgba[25:35, 25:35, :3] = MAGENTA

    mask, _, dbg = segment_background(rgba, ExtractionConfig())

    assert mask[25:35, 25:35].all()
    assert not mask[15:25, 15:45].any()
    assert dbg["interior_void_px"] == 100.0


def test_interior_pass_uses_the_tighter_tolerance():
    rgba = _cell()
    rgba[15:45, 15:45, :3] = (30, 120, 200)
    # 35 away from the background: inside the edge tolerance, outside the interior one.
    rgba[25:35, 25:35, :3] = (220, 0, 255)

    mask, _, _ = segment_background(rgba, ExtractionConfig(background_tolerance=45.0, interior_tolerance=25.0))

    assert not mask[25:35, 25:35].any()


def test_seed_that_disagrees_with_its_anchor_is_skipped():
    rgba = _cell()
    rgba[3, 3, :3] = (0, 0, 0)
    rgba[20:40, 20:40, :3] = (20, 20, 20)

    mask, _, dbg = segment_background(rgba, ExtractionConfig(seed_inset=3))

    assert dbg["seeds_rejected"] == 1.0
    assert dbg["seeds_used"] == 1.0
    assert not mask[3, 3]
    assert mask[0, 0] and mask[59, 59]


def test_already_transparent_pixels_are_background():
    rgba = _cell()
    rgba[20:40, 20:40, :3] = (20, 20, 20)
    rgba[0:5, :, 3] = 0
    rgba[0:5, :, :3] = (20, 20, 20)

    mask, _, _ = segment_background(rgba, ExtractionConfig())

    assert mask[0:5].all()


def test_no_usable_seed_means_no_background():
    rgba = _cell()
    rng = np.random.RandomState(7)
    rgba[..., :3] = rng.randint(0, 256, size=(60, 60, 3)).astype(np.uint8)

    mask, bg_rgb, dbg = segment_background(rgba, ExtractionConfig(background_tolerance=5.0, interior_tolerance=5.0))

    assert bg_rgb is None
    assert not mask.any()
    assert dbg["seeds_used"] == 0.0


def test_flat_art_under_a_border_seed_is_kept():
    rgba = _cell()
    # Reaches the bottom edge and covers the bottom-mid seed at (56, 30).
    rgba[40:60, 10:50, :3] = (40, 160, 70)

    mask, bg_rgb, dbg = segment_background(rgba, ExtractionConfig())

    assert not mask[40:60, 10:50].any()
    assert mask[:40].all()
    assert bg_rgb.tolist() == [255.0, 0.0, 255.0]
    assert dbg["seeds_rejected"] == 1.0


def test_background_color_ignores_transparent_pixels():
    rgba = _cell()
    # Most of the cell is already transparent, with black RGB underneath.
    rgba[0:40, :, :3] = 0
    rgba[0:40, :, 3] = 0
    # Near-black outline ink that must not be taken for a background hole.
    rgba[44:54, 20:40, :3] = (10, 10, 10)

    mask, bg_rgb, _ = segment_background(rgba, ExtractionConfig())

    assert bg_rgb.tolist() == [255.0, 0.0, 255.0]
    assert mask[0:40].all()
    assert not mask[44:54, 20:40].any()
