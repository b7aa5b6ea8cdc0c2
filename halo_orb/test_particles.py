"""
Tests for the particle arena

Covers construction, the per-frame advance (lifetime wrap, respawn, motion),
recoloring and the render buffers handed to the GPU shell.
"""

import math

import numpy as np
import pytest

from .core import Formation, MovementBehavior, spiral_point
from .particles import ParticleField
from .themes import SOLDIER_THEMES, InvalidConfig, color_to_rgb


# ============================================================================
# Test Fixtures
# ============================================================================

@pytest.fixture
def spartan():
    return SOLDIER_THEMES['spartan']


@pytest.fixture
def field(spartan):
    """2000 Spartan particles with a fixed seed"""
    return ParticleField(2000, spartan, rng=np.random.default_rng(42))


# ============================================================================
# Construction
# ============================================================================

class TestConstruction:

    @pytest.mark.parametrize("count", [0, -5, 1.5, True, None])
    def test_rejects_bad_count(self, spartan, count):
        with pytest.raises(InvalidConfig, match="Particle count"):
            ParticleField(count, spartan)

    def test_rejects_bad_theme(self):
        with pytest.raises(InvalidConfig):
            ParticleField(10, "spartan")

    def test_arrays_share_index_space(self, field):
        assert field.count == 2000
        assert field.positions.shape == (2000, 3)
        assert field.velocities.shape == (2000, 3)
        assert field.colors.shape == (2000, 3)
        assert field.sizes.shape == (2000,)
        assert field.lifetimes.shape == (2000,)

    def test_initial_lifetimes_in_range(self, field):
        assert np.all((field.lifetimes >= 0.0) & (field.lifetimes < 1.0))

    def test_initial_positions_are_read_only(self, field):
        with pytest.raises(ValueError):
            field.initial_positions[0, 0] = 99.0

    def test_seeded_layout_is_reproducible(self, spartan):
        a = ParticleField(500, spartan, rng=np.random.default_rng(3))
        b = ParticleField(500, spartan, rng=np.random.default_rng(3))

        np.testing.assert_array_equal(a.positions, b.positions)
        np.testing.assert_array_equal(a.colors, b.colors)
        np.testing.assert_array_equal(a.lifetimes, b.lifetimes)

    def test_colors_between_primary_and_secondary(self, field, spartan):
        primary = np.array(color_to_rgb(spartan.primary_color))
        secondary = np.array(color_to_rgb(spartan.secondary_color))
        expected = primary + (secondary - primary) * field.color_mix[:, np.newaxis]

        np.testing.assert_allclose(field.colors, expected)


# ============================================================================
# Formation Distribution
# ============================================================================

class TestFormations:

    def test_distribution_matches_weights(self, spartan):
        field = ParticleField(20000, spartan, rng=np.random.default_rng(9))
        counts = field.formation_counts()

        assert counts[Formation.SPHERICAL] / 20000 == pytest.approx(0.4, abs=0.02)
        assert counts[Formation.RING_BAND] / 20000 == pytest.approx(0.3, abs=0.02)
        assert counts[Formation.SPIRAL] / 20000 == pytest.approx(0.3, abs=0.02)

    def test_positions_match_their_formation(self, field):
        initial = field.initial_positions

        spherical = initial[field.formations == Formation.SPHERICAL]
        radii = np.linalg.norm(spherical, axis=1)
        assert np.all((radii >= 1.5 - 1e-9) & (radii < 4.5))

        band = initial[field.formations == Formation.RING_BAND]
        radial = np.hypot(band[:, 0], band[:, 2])
        assert np.all((radial >= 2.0 - 1e-9) & (radial < 4.0))
        assert np.all(np.abs(band[:, 1]) <= 0.25)

        spiral = initial[field.formations == Formation.SPIRAL]
        t = (spiral[:, 1] + 2.0) / 0.2
        np.testing.assert_allclose(spiral_point(t), spiral, atol=1e-9)


# ============================================================================
# Advance
# ============================================================================

class TestAdvance:

    def test_one_reference_step(self, field):
        """Lifetimes gain the fixed step and positions stay finite"""
        before = field.lifetimes.copy()
        wrapped = field.advance(0.016)

        assert np.all(np.isfinite(field.positions))
        np.testing.assert_allclose(field.lifetimes[~wrapped], before[~wrapped] + 0.005)
        assert np.all(field.lifetimes[wrapped] == 0.0)

    def test_alive_particles_drift_by_velocity(self, field):
        field.lifetimes[:] = 0.5
        before = field.positions.copy()
        field.advance(0.016)

        np.testing.assert_allclose(field.positions, before + field.velocities)

    def test_step_scales_with_dt(self, field):
        field.lifetimes[:] = 0.5
        field.advance(0.032)
        np.testing.assert_allclose(field.lifetimes, 0.51)

    def test_wrap_respawns_near_anchor(self, field):
        field.positions += 10.0
        field.lifetimes[:] = 0.999
        wrapped = field.advance(0.016)

        assert wrapped.all()
        assert np.all(field.lifetimes == 0.0)
        assert np.all(np.abs(field.positions - field.initial_positions) <= 0.25)
        assert np.all(field.respawn_counts == 1)

    def test_lifetime_exactly_at_boundary_wraps(self, field):
        field.lifetimes[:] = 0.995
        field.advance(0.016)
        assert np.all(field.lifetimes < 1.0)

    def test_lifetimes_stay_in_range_over_many_frames(self, field):
        for dt in [0.016] * 200 + [0.5, 0.1, 1.0 / 30] * 20:
            field.advance(dt)
            assert np.all((field.lifetimes >= 0.0) & (field.lifetimes < 1.0))
        assert np.all(np.isfinite(field.positions))

    @pytest.mark.parametrize("behavior", [None] + list(MovementBehavior))
    @pytest.mark.parametrize("dt", [-0.016, 0.0, math.nan, math.inf])
    def test_unusable_dt_changes_nothing(self, field, dt, behavior):
        field.behavior = behavior
        field.lifetimes[:] = 0.1
        positions = field.positions.copy()
        lifetimes = field.lifetimes.copy()

        wrapped = field.advance(dt)

        assert not wrapped.any()
        np.testing.assert_array_equal(field.positions, positions)
        np.testing.assert_array_equal(field.lifetimes, lifetimes)

    def test_time_accumulates(self, field):
        field.advance(0.016)
        field.advance(0.020)
        assert field.time == pytest.approx(0.036)

    def test_behavior_moves_alive_particles(self, spartan):
        field = ParticleField(100, spartan, rng=np.random.default_rng(1),
                              behavior=MovementBehavior.ORBITAL)
        field.lifetimes[:] = 0.1
        field.advance(0.016)

        radial = np.hypot(field.positions[:, 0], field.positions[:, 2])
        assert np.all((radial >= 1.5 - 1e-9) & (radial <= 2.5 + 1e-9))

    @pytest.mark.parametrize("behavior", [
        MovementBehavior.FLOWING,
        MovementBehavior.GEOMETRIC,
        MovementBehavior.CHAOTIC,
    ])
    def test_behavior_drift_is_frame_rate_independent(self, spartan, behavior):
        """One second at 30fps and at 120fps ends in about the same place"""
        def drift(fps):
            field = ParticleField(50, spartan, rng=np.random.default_rng(4), behavior=behavior)
            field.velocities[:] = 0.0
            field.lifetimes[:] = 0.1
            start = field.positions.copy()
            for _ in range(fps):
                field.advance(1.0 / fps)
            return field.positions - start

        slow, fast = drift(30), drift(120)

        assert np.abs(fast).max() > 0.1
        assert np.linalg.norm(fast) == pytest.approx(np.linalg.norm(slow), rel=0.1)
        np.testing.assert_allclose(fast, slow, atol=0.12)


# ============================================================================
# Recolor and Render Buffers
# ============================================================================

class TestRecolor:

    def test_recolor_without_reshuffle_keeps_mix(self, field):
        covenant = SOLDIER_THEMES['covenant']
        mix = field.color_mix.copy()
        field.recolor(covenant, reshuffle=False)

        primary = np.array(color_to_rgb(covenant.primary_color))
        secondary = np.array(color_to_rgb(covenant.secondary_color))
        np.testing.assert_array_equal(field.color_mix, mix)
        np.testing.assert_allclose(field.colors, primary + (secondary - primary) * mix[:, np.newaxis])

    def test_recolor_with_reshuffle_draws_new_mix(self, field):
        mix = field.color_mix.copy()
        field.recolor(SOLDIER_THEMES['covenant'], reshuffle=True)
        assert not np.array_equal(field.color_mix, mix)

    def test_recolor_rejects_bad_theme_without_change(self, field):
        colors = field.colors.copy()
        with pytest.raises(InvalidConfig):
            field.recolor(None)
        np.testing.assert_array_equal(field.colors, colors)


class TestBuffers:

    def test_buffers_are_float32_and_read_only(self, field):
        buffers = field.buffers

        assert buffers.count == 2000
        for array in (buffers.positions, buffers.colors, buffers.sizes):
            assert array.dtype == np.float32
            with pytest.raises(ValueError):
                array[0] = 0.0

    def test_dirty_flag(self, field):
        assert field.needs_upload
        field.mark_uploaded()
        assert not field.needs_upload

        field.advance(0.016)
        assert field.needs_upload

    def test_buffers_follow_positions(self, field):
        field.advance(0.016)
        np.testing.assert_allclose(field.buffers.positions, field.positions, rtol=1e-6, atol=1e-6)
