"""
Tests for relief passes: volcanoes, noise, slope, erosion and consolidation.
"""

import pytest
import numpy as np
from py_terrain.core.terrain import TerrainState
from py_terrain.core.relief import (
    place_volcano,
    add_relief_noise,
    calculate_slope,
    soil_erosion,
    water_to_land,
)


class TestVolcanoPlacement:
    """Test volcanic cone placement."""

    @pytest.fixture
    def flat_state(self):
        """An all-zero 32x32 terrain."""
        return TerrainState.create(32, 32, 2, base_altitude=0)

    def test_volcano_isolation(self, flat_state):
        """Test peak value and zero altitude outside the cone radius."""
        place_volcano(flat_state, 16, 16, height=50, cap=30, slope=5)

        altitude = flat_state.interior_altitude()
        assert altitude[16, 16] == 30

        xs, ys = np.meshgrid(np.arange(32), np.arange(32), indexing="ij")
        distance = np.sqrt((xs - 16) ** 2 + (ys - 16) ** 2)
        assert np.all(altitude[distance > 10] == 0)

    def test_cone_profile(self, flat_state):
        """Test that altitude falls off linearly below the cap."""
        place_volcano(flat_state, 16, 16, height=50, cap=30, slope=5)

        assert flat_state.altitude[20, 16] == 30  # 50 - 5*4 = 30, at the cap
        assert flat_state.altitude[22, 16] == 20
        assert flat_state.altitude[25, 16] == 5
        assert flat_state.altitude[26, 16] == 0

    def test_volcanoes_accumulate(self, flat_state):
        """Test that overlapping cones add up."""
        place_volcano(flat_state, 16, 16, height=40, cap=40, slope=10)
        place_volcano(flat_state, 16, 16, height=40, cap=40, slope=10)
        assert flat_state.altitude[16, 16] == 80
        assert flat_state.altitude[17, 16] == 60

    def test_cells_outside_grid_are_skipped(self, flat_state):
        """Test that a cone centred off the map only raises domain cells."""
        place_volcano(flat_state, -2, 4, height=40, cap=40, slope=10)

        assert flat_state.altitude[0, 4] == 20
        assert flat_state.altitude[1, 4] == 10
        # Border cells are never written
        assert flat_state.altitude[-1, 4] == 0
        assert flat_state.altitude[-2, 4] == 0

    @pytest.mark.parametrize("height,slope", [(0, 10), (-20, 10), (40, 0), (5, 10)])
    def test_degenerate_volcanoes(self, flat_state, height, slope):
        """Test that empty cones leave the terrain unchanged."""
        place_volcano(flat_state, 16, 16, height=height, cap=100, slope=slope)
        if height <= 0 or slope <= 0:
            assert np.all(flat_state.altitude.flat == 0)
        else:
            # Radius 0: only the centre is raised
            assert flat_state.altitude[16, 16] == 5
            assert flat_state.altitude.total() == 5

    def test_placement_invalidates_slope(self, flat_state):
        """Test that changing altitude marks the slope field stale."""
        calculate_slope(flat_state)
        place_volcano(flat_state, 16, 16, height=40, cap=40, slope=10)
        assert not flat_state.slope_valid


class TestEndToEndScenario:
    """Small worked example on an 8x8 map with a border of 2."""

    @pytest.fixture
    def state(self):
        state = TerrainState.create(8, 8, 2, base_altitude=0)
        place_volcano(state, 4, 4, height=40, cap=40, slope=10)
        return state

    def test_cone_values(self, state):
        """Test altitudes along the x axis through the peak."""
        assert state.altitude[4, 4] == 40
        assert state.altitude[5, 4] == 30
        assert state.altitude[6, 4] == 20
        assert state.altitude[7, 4] == 10
        assert state.altitude[8, 4] == 0

    def test_slope_at_peak_and_flank(self, state):
        """Test that the slope vanishes on the peak and points back uphill on the flank."""
        calculate_slope(state)

        peak = state.slope_dir[4, 4]
        assert peak[0] == pytest.approx(0.0)
        assert peak[1] == pytest.approx(0.0)
        assert state.slope_dir[5, 4][0] < 0
        assert state.slope_dir[3, 4][0] > 0


class TestNoise:
    """Test random relief noise."""

    def test_noise_range(self):
        """Test increments stay in range and the border is untouched."""
        state = TerrainState.create(16, 16, 2, base_altitude=0)
        add_relief_noise(state, np.random.default_rng(7))

        altitude = state.interior_altitude()
        assert altitude.min() >= 0
        assert altitude.max() <= 9
        assert len(np.unique(altitude)) > 1
        state.altitude.interior[...] = 0
        assert state.altitude.total() == 0

    def test_noise_is_reproducible(self):
        """Test that the same seed gives the same noise."""
        a = TerrainState.create(16, 16, 2)
        b = TerrainState.create(16, 16, 2)
        add_relief_noise(a, np.random.default_rng(3))
        add_relief_noise(b, np.random.default_rng(3))
        assert np.array_equal(a.altitude.flat, b.altitude.flat)


class TestSlope:
    """Test central-difference slope computation."""

    def test_flat_terrain_has_no_slope(self):
        """Test that a flat map including its border has zero slope everywhere."""
        state = TerrainState.create(10, 10, 2)
        calculate_slope(state)
        assert np.all(state.interior_slope() == 0)
        assert state.slope_valid

    def test_slope_includes_water(self):
        """Test that standing water raises the surface used for the slope."""
        state = TerrainState.create(10, 10, 2)
        state.water_depth[5, 4] = 12
        calculate_slope(state)
        assert tuple(state.slope_dir[4, 4]) == (12.0, 0.0)
        assert tuple(state.slope_dir[5, 3]) == (0.0, 12.0)

    def test_slope_reads_border(self):
        """Test that edge cells see the border sentinel."""
        state = TerrainState.create(10, 10, 2, base_altitude=0)
        state.altitude[-1, 3] = 50
        calculate_slope(state)
        assert state.slope_dir[0, 3][0] == -50


class TestErosion:
    """Test 5-point diffusion erosion."""

    def test_erosion_fixed_point(self):
        """Test that a constant grid, border included, is unchanged."""
        state = TerrainState.create(12, 9, 2, base_altitude=250)
        before = state.altitude.array.copy()
        soil_erosion(state)
        assert np.array_equal(state.altitude.array, before)

    def test_spike_spreads_to_neighbours(self):
        """Test a single spike averages into its 4-neighbourhood."""
        state = TerrainState.create(9, 9, 2, base_altitude=0)
        state.altitude[4, 4] = 500
        soil_erosion(state)

        assert state.altitude[4, 4] == 100
        for x, y in [(3, 4), (5, 4), (4, 3), (4, 5)]:
            assert state.altitude[x, y] == 100
        assert state.altitude[3, 3] == 0
        assert state.altitude.total() == 500

    def test_uses_single_snapshot(self):
        """Test against a reference computed from an untouched copy."""
        state = TerrainState.create(16, 12, 2, base_altitude=100)
        rng = np.random.default_rng(11)
        state.altitude.interior[...] = rng.integers(0, 5000, size=(16, 12))
        a = state.altitude.array.astype(np.int64)

        expected = (
            a[2:18, 2:14] + a[1:17, 2:14] + a[3:19, 2:14] + a[2:18, 1:13] + a[2:18, 3:15]
        ) // 5

        soil_erosion(state)
        assert np.array_equal(state.interior_altitude(), expected)

    def test_truncates_toward_zero(self):
        """Test that negative averages round toward zero."""
        state = TerrainState.create(9, 9, 2, base_altitude=0)
        state.altitude[4, 4] = -7
        soil_erosion(state)
        assert state.altitude[4, 4] == -1
        assert state.altitude[5, 4] == -1

    def test_border_reset_to_sentinel(self):
        """Test that the new altitude grid's border holds the base altitude."""
        state = TerrainState.create(9, 9, 2, base_altitude=100)
        state.altitude.fill_border(0)
        soil_erosion(state)
        assert state.altitude[-1, 0] == 100
        assert state.altitude[9, 10] == 100


class TestWaterToLand:
    """Test consolidation of water into altitude."""

    def test_water_settles(self):
        """Test that water is added to altitude and cleared."""
        state = TerrainState.create(6, 6, 2, base_altitude=10)
        state.water_depth[2, 3] = 40
        state.water_depth[0, 0] = 5
        calculate_slope(state)

        water_to_land(state)

        assert state.altitude[2, 3] == 50
        assert state.altitude[0, 0] == 15
        assert state.altitude[1, 1] == 10
        assert np.all(state.water_depth.flat == 0)
        assert not state.slope_valid
