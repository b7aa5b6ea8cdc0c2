"""
Tests for the HaloOrb orchestrator

Exercises the public surface a host uses: update(dt), apply_theme(theme),
transition_to(theme, duration) and the read-only frame accessors.
"""

import dataclasses
import math

import numpy as np
import pytest

from .config import OrbConfig
from .core import MovementBehavior
from .halo import FrameState, HaloOrb, create_halo_orb
from .themes import SOLDIER_THEMES, InvalidConfig, Theme, color_to_rgb


SMALL = OrbConfig(particle_count=300)


@pytest.fixture
def halo():
    return HaloOrb(SOLDIER_THEMES['spartan'], config=SMALL, rng=7)


def theme_uniforms(halo):
    """Every theme-derived uniform except particle colors"""
    return (
        halo.orb_uniforms()['primary_color'],
        halo.orb_uniforms()['secondary_color'],
        [r['ring_color'] for r in halo.rings.uniforms()],
        halo.glow_uniforms()['glow_color'],
        halo.glow_uniforms()['glow_intensity'],
    )


# ============================================================================
# Construction
# ============================================================================

class TestConstruction:

    def test_defaults_to_spartan(self):
        halo = HaloOrb(config=SMALL)
        assert halo.theme.name == 'Spartan'
        assert halo.particles.count == 300
        assert len(halo.rings) == 3

    def test_default_config_particle_count(self):
        assert HaloOrb(rng=0).particles.count == 2000

    def test_invalid_config_raises(self):
        with pytest.raises(InvalidConfig):
            HaloOrb(config=OrbConfig(particle_count=0))

    def test_invalid_theme_raises(self):
        bad = dataclasses.replace(SOLDIER_THEMES['spartan'], primary_color=-1)
        with pytest.raises(InvalidConfig):
            HaloOrb(bad, config=SMALL)

    def test_create_by_name(self):
        halo = create_halo_orb('Flood', config=SMALL, seed=1)
        assert halo.theme.primary_color == 0x88ff00

    def test_create_unknown_name_raises(self):
        with pytest.raises(InvalidConfig):
            create_halo_orb('grunt')

    def test_seed_reproduces_animation(self):
        a = HaloOrb(config=SMALL, rng=5)
        b = HaloOrb(config=SMALL, rng=5)
        for _ in range(30):
            a.update(0.016)
            b.update(0.016)

        np.testing.assert_array_equal(a.particle_buffers().positions, b.particle_buffers().positions)
        assert [t.matrix.tolist() for t in a.ring_transforms()] == \
            [t.matrix.tolist() for t in b.ring_transforms()]


# ============================================================================
# Update
# ============================================================================

class TestUpdate:

    def test_update_advances_every_component(self, halo):
        halo.update(0.016)

        assert halo.time == pytest.approx(0.016)
        assert halo.frame_count == 1
        assert halo.orb.time == pytest.approx(0.016)
        assert halo.particles.time == pytest.approx(0.016)
        assert halo.rings.time == pytest.approx(0.016)
        assert halo.glow.time == pytest.approx(0.016)
        assert halo.group_rotation == pytest.approx(0.002)

    def test_update_order(self, halo, monkeypatch):
        """Orb, then particles, then rings, then glow"""
        calls = []
        for name in ('orb', 'particles', 'rings', 'glow'):
            component = getattr(halo, name)

            def recording(dt, _name=name, _advance=component.advance):
                calls.append(_name)
                return _advance(dt)

            monkeypatch.setattr(component, 'advance', recording)

        halo.update(0.016)
        halo.update(0.016)

        assert calls == ['orb', 'particles', 'rings', 'glow'] * 2
        assert halo.orb.time == pytest.approx(0.032)

    @pytest.mark.parametrize("dt", [-1.0, math.nan, math.inf])
    def test_update_never_raises(self, halo, dt):
        halo.update(dt)
        assert halo.time == 0.0
        assert halo.frame_count == 1
        assert np.all(np.isfinite(halo.particle_buffers().positions))

    def test_pulse_intensity_bounded(self, halo):
        for _ in range(500):
            halo.update(0.033)
            assert 0.0 <= halo.pulse_intensity <= 1.0

    def test_frame_state(self, halo):
        halo.update(0.016)
        state = halo.frame_state()

        assert isinstance(state, FrameState)
        assert state.time == pytest.approx(0.016)
        assert state.background_color == color_to_rgb(0x001133)
        assert state.particle_intensity == 1.0
        assert state.particles.count == 300
        assert len(state.rings) == 3
        assert len(state.ring_transforms) == 3
        assert state.orb_rotation == (halo.orb.rotation_x, halo.orb.rotation_y)


# ============================================================================
# Themes
# ============================================================================

class TestApplyTheme:

    def test_spartan_to_covenant_primary(self, halo):
        halo.update(0.016)
        assert halo.orb_uniforms()['primary_color'] == color_to_rgb(0x0099ff)

        halo.apply_theme(SOLDIER_THEMES['covenant'])
        covenant = color_to_rgb(0x9900ff)

        assert halo.orb_uniforms()['primary_color'] == covenant
        assert all(r['ring_color'] == covenant for r in halo.rings.uniforms())
        assert halo.glow_uniforms()['glow_color'] == covenant
        assert halo.glow_uniforms()['glow_intensity'] == 1.0
        assert halo.frame_state().background_color == color_to_rgb(0x330033)

    def test_particle_colors_retinted(self, halo):
        covenant = SOLDIER_THEMES['covenant']
        halo.apply_theme(covenant)

        primary = np.array(color_to_rgb(covenant.primary_color))
        secondary = np.array(color_to_rgb(covenant.secondary_color))
        expected = primary + (secondary - primary) * halo.particles.color_mix[:, np.newaxis]
        np.testing.assert_allclose(halo.particle_buffers().colors, expected, rtol=1e-6, atol=1e-6)

    def test_apply_is_idempotent(self, halo):
        covenant = SOLDIER_THEMES['covenant']
        halo.apply_theme(covenant)
        first = theme_uniforms(halo)
        halo.apply_theme(covenant)

        assert theme_uniforms(halo) == first
        assert halo.theme == covenant

    def test_apply_without_reshuffle_keeps_particle_colors(self):
        halo = HaloOrb(config=dataclasses.replace(SMALL, reshuffle_colors_on_theme=False), rng=3)
        flood = SOLDIER_THEMES['flood']
        halo.apply_theme(flood)
        colors = halo.particle_buffers().colors.copy()
        halo.apply_theme(flood)

        np.testing.assert_array_equal(halo.particle_buffers().colors, colors)

    def test_invalid_theme_leaves_state_unchanged(self, halo):
        before = theme_uniforms(halo)
        colors = halo.particle_buffers().colors.copy()

        with pytest.raises(InvalidConfig):
            halo.apply_theme(Theme(0x1000000, 0, 0))

        assert theme_uniforms(halo) == before
        assert halo.theme.name == 'Spartan'
        np.testing.assert_array_equal(halo.particle_buffers().colors, colors)

    def test_custom_theme(self, halo):
        mono = Theme(0xffffff, 0x000000, 0x000000, glow_intensity=0.0, name='Mono')
        halo.apply_theme(mono)

        assert halo.orb_uniforms()['primary_color'] == (1.0, 1.0, 1.0)
        assert halo.glow_uniforms()['glow_intensity'] == 0.0


class TestTransitions:

    def test_transition_reaches_target(self, halo):
        covenant = SOLDIER_THEMES['covenant']
        halo.transition_to(covenant, duration=0.1)
        assert halo.in_transition

        for _ in range(10):
            halo.update(0.016)

        assert not halo.in_transition
        assert halo.theme == covenant
        assert halo.orb_uniforms()['primary_color'] == color_to_rgb(0x9900ff)

    def test_transition_passes_through_blend(self, halo):
        halo.transition_to(SOLDIER_THEMES['covenant'], duration=1.0)
        halo.update(0.5)

        primary = halo.orb_uniforms()['primary_color']
        assert primary not in (color_to_rgb(0x0099ff), color_to_rgb(0x9900ff))
        assert halo.glow_uniforms()['glow_intensity'] == pytest.approx(0.9)

    def test_transition_keeps_mix_factors(self, halo):
        mix = halo.particles.color_mix.copy()
        halo.transition_to(SOLDIER_THEMES['flood'], duration=1.0)
        halo.update(0.2)
        np.testing.assert_array_equal(halo.particles.color_mix, mix)

    def test_zero_duration_applies_immediately(self, halo):
        halo.transition_to(SOLDIER_THEMES['forerunner'], duration=0)
        assert not halo.in_transition
        assert halo.theme.name == 'Forerunner'

    def test_apply_cancels_transition(self, halo):
        halo.transition_to(SOLDIER_THEMES['covenant'], duration=1.0)
        halo.apply_theme(SOLDIER_THEMES['flood'])
        halo.update(2.0)

        assert not halo.in_transition
        assert halo.theme.name == 'Flood'

    def test_invalid_transition_target_raises(self, halo):
        with pytest.raises(InvalidConfig):
            halo.transition_to(Theme(0, 0, 0, particle_intensity=-1.0), duration=1.0)
        assert not halo.in_transition


class TestBehaviors:

    def test_disabled_by_default(self, halo):
        assert halo.particles.behavior is None

    def test_theme_selects_behavior(self):
        config = dataclasses.replace(SMALL, enable_behaviors=True)
        halo = HaloOrb(SOLDIER_THEMES['spartan'], config=config, rng=1)
        assert halo.particles.behavior is MovementBehavior.ORBITAL

        halo.apply_theme(SOLDIER_THEMES['flood'])
        assert halo.particles.behavior is MovementBehavior.CHAOTIC

    def test_unnamed_theme_has_no_behavior(self):
        config = dataclasses.replace(SMALL, enable_behaviors=True)
        halo = HaloOrb(Theme(0x00ff00, 0x0000ff, 0), config=config, rng=1)
        assert halo.particles.behavior is None
