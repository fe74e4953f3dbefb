import numpy as np
import pytest

from gridsprite.bands import (
    Band,
    find_peak_band,
    find_threshold_bands,
    find_valley_band,
    merge_bands,
    nearest_band,
)
from gridsprite.profiles import build_profiles, smooth_profile


def test_smooth_profile_keeps_constant_signal():
    p = np.full(10, 7.0, dtype=np.float32)
    assert np.allclose(smooth_profile(p), 7.0)


def test_smooth_profile_spreads_single_spike():
    p = np.array([0, 0, 4, 0, 0], dtype=np.float32)
    assert smooth_profile(p).tolist() == [0.0, 1.0, 2.0, 1.0, 0.0]


def test_smooth_profile_does_not_mutate_input():
    p = np.array([0, 0, 4, 0, 0], dtype=np.float32)
    smooth_profile(p)
    assert p.tolist() == [0, 0, 4, 0, 0]


def test_row_profiles_flag_a_black_row():
    rgba = np.full((10, 8, 4), 255, dtype=np.uint8)
    rgba[5, :, :3] = 0

    prof = build_profiles(rgba, "rows", stride=2)

    assert prof.darkness[5] == pytest.approx(0.5)
    assert prof.darkness[4] == pytest.approx(0.25)
    assert prof.darkness[0] == pytest.approx(0.0)
    assert prof.brightness[5] == pytest.approx(127.5, rel=1e-3)
    assert prof.brightness[0] == pytest.approx(255.0, rel=1e-3)


def test_column_profiles_average_down_each_column():
    rgba = np.zeros((10, 4, 4), dtype=np.uint8)
    rgba[..., 0] = 255  # pure red: saturation 1
    rgba[..., 3] = 255
    rgba[9, :, :3] = 255  # one white row

    prof = build_profiles(rgba, "cols", stride=1)

    assert prof.saturation.shape == (4,)
    assert prof.saturation == pytest.approx([0.9] * 4)


def test_build_profiles_rejects_unknown_axis():
    with pytest.raises(ValueError):
        build_profiles(np.zeros((4, 4, 4), dtype=np.uint8), "diagonal")


def _valley_profile():
    p = np.full(20, 100.0, dtype=np.float32)
    p[8:11] = [10.0, 5.0, 10.0]
    return p


def test_valley_band_expands_while_below_threshold():
    assert find_valley_band(_valley_profile(), 9, 4, 50.0) == Band(8, 10)


def test_valley_band_not_found_when_nothing_dips_below_threshold():
    assert find_valley_band(_valley_profile(), 9, 4, 4.0) is None


def test_valley_band_only_searches_its_window():
    assert find_valley_band(_valley_profile(), 2, 3, 50.0) is None


def test_peak_band_uses_threshold_relative_to_peak():
    p = np.full(20, 0.1, dtype=np.float32)
    p[9], p[10], p[11] = 0.4, 1.0, 0.4

    # The halo at 0.4 passes the global threshold but not half the peak.
    assert find_peak_band(p, 10, 5, 0.2, peak_fraction=0.5) == Band(10, 10)
    assert find_peak_band(p, 10, 5, 0.2, peak_fraction=0.3) == Band(9, 11)
    assert find_peak_band(p, 10, 5, 1.5) is None


def test_threshold_bands_and_merging():
    p = np.array([0, 1, 1, 0, 0, 1, 0, 0, 0, 0, 1], dtype=np.float32)

    bands = find_threshold_bands(p, 0.5)
    assert bands == [Band(1, 2), Band(5, 5), Band(10, 10)]
    assert merge_bands(bands, 2) == [Band(1, 5), Band(10, 10)]
    assert merge_bands(bands, 1) == bands


def test_threshold_bands_empty_when_nothing_crosses():
    assert find_threshold_bands(np.zeros(5, dtype=np.float32), 0.5) == []


def test_nearest_band_within_radius():
    bands = [Band(0, 3), Band(40, 45), Band(90, 91)]
    assert nearest_band(bands, 44.0, 10) == Band(40, 45)
    assert nearest_band(bands, 65.0, 10) is None


def test_band_width_and_center():
    b = Band(4, 7)
    assert b.width == 4
    assert b.center == 5.5
