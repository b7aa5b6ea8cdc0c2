"""
HaloOrb - Orchestrator

Owns the orb body, particle field, rings and glow shell as one scene unit.
The host calls ``update(dt)`` once per frame and ``apply_theme(theme)`` on a
theme change; renderers read ``frame_state()`` in between.
"""

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple, Union

import numpy as np

from .components import GlowShell, OrbBody, RingEnsemble, RingTransform
from .config import OrbConfig
from .core import behavior_from_name, frame_scale, sanitize_dt
from .particles import ParticleBuffers, ParticleField
from .themes import (
    Theme,
    color_to_rgb,
    get_theme,
    get_theme_effect,
    interpolate_theme,
    validate_theme,
)


@dataclass(frozen=True)
class FrameState:
    """Everything a renderer needs for one frame

    Attributes:
        time: Orchestrator clock in seconds
        group_rotation: Whole-ensemble yaw
        orb: Orb uniforms (time, pulse_intensity, colors)
        orb_rotation: (rotation_x, rotation_y)
        particles: Particle render buffers
        particle_intensity: Theme particle brightness
        rings: Per-ring uniforms
        ring_transforms: Per-ring orientation
        glow: Glow uniforms
        background_color: Normalized RGB clear color
    """
    time: float
    group_rotation: float
    orb: Dict[str, object]
    orb_rotation: Tuple[float, float]
    particles: ParticleBuffers
    particle_intensity: float
    rings: List[Dict[str, object]]
    ring_transforms: List[RingTransform]
    glow: Dict[str, object]
    background_color: Tuple[float, float, float]


@dataclass
class _ThemeTransition:
    start: Theme
    target: Theme
    duration: float
    elapsed: float = 0.0


class HaloOrb:
    """Composite energy orb

    Args:
        theme: Initial theme (defaults to config.default_theme from the catalog)
        config: Construction parameters
        rng: Random source, or an int seed, shared by every component
        catalog: Theme catalog used to resolve the default theme

    Raises:
        InvalidConfig: for an invalid config or theme
    """

    def __init__(
        self,
        theme: Optional[Theme] = None,
        config: Optional[OrbConfig] = None,
        rng: Union[np.random.Generator, int, None] = None,
        catalog: Optional[Mapping[str, Theme]] = None
    ):
        self.config = config if config is not None else OrbConfig()
        self.config.validate()

        if theme is None:
            theme = get_theme(self.config.default_theme, catalog)
        validate_theme(theme)

        if rng is None or isinstance(rng, (int, np.integer)):
            rng = np.random.default_rng(rng)
        self.rng = rng

        cfg = self.config
        self.orb = OrbBody(theme, radius=cfg.orb_radius, reference_step=cfg.reference_step)
        self.particles = ParticleField(
            cfg.particle_count,
            theme,
            orb_radius=cfg.orb_radius,
            rng=rng,
            reference_step=cfg.reference_step,
            lifetime_step=cfg.lifetime_step,
            jitter=cfg.respawn_jitter,
            velocity_range=cfg.velocity_range,
        )
        self.rings = RingEnsemble(theme, ring_count=cfg.ring_count, rng=rng,
                                  reference_step=cfg.reference_step)
        self.glow = GlowShell(theme, orb_radius=cfg.orb_radius)

        self.time = 0.0
        self.frame_count = 0
        self.group_rotation = 0.0
        self._theme = theme
        self._transition: Optional[_ThemeTransition] = None
        self._select_behavior(theme)

    # ------------------------------------------------------------------
    # Frame update
    # ------------------------------------------------------------------

    def update(self, dt: float) -> None:
        """Advance the whole ensemble by one frame

        Order: theme transition, orb, particles, rings, glow. Never raises.

        Args:
            dt: Elapsed seconds since the previous frame
        """
        dt = sanitize_dt(dt)
        self.time += dt
        self.frame_count += 1

        if self._transition is not None:
            self._step_transition(dt)

        self.orb.advance(dt)
        self.particles.advance(dt)
        self.rings.advance(dt)
        self.glow.advance(dt)

        self.group_rotation += self.config.group_spin * frame_scale(dt, self.config.reference_step)

    # ------------------------------------------------------------------
    # Themes
    # ------------------------------------------------------------------

    @property
    def theme(self) -> Theme:
        return self._theme

    @property
    def in_transition(self) -> bool:
        return self._transition is not None

    def apply_theme(self, theme: Theme) -> None:
        """Swap every theme-derived color at once

        Cancels any running transition. Particle color mixes are redrawn
        when config.reshuffle_colors_on_theme is set.

        Raises:
            InvalidConfig: if the theme is invalid (nothing is changed)
        """
        validate_theme(theme)
        self._transition = None
        self._apply(theme, reshuffle=self.config.reshuffle_colors_on_theme)

    def transition_to(self, theme: Theme, duration: float) -> None:
        """Blend from the current theme to another over duration seconds

        Intermediate frames keep each particle's mix factor; the final frame
        applies the target exactly like apply_theme.

        Raises:
            InvalidConfig: if the theme is invalid
        """
        validate_theme(theme)
        if not duration or duration <= 0:
            self.apply_theme(theme)
            return
        self._transition = _ThemeTransition(start=self._theme, target=theme, duration=float(duration))

    def _step_transition(self, dt: float) -> None:
        transition = self._transition
        transition.elapsed += dt
        progress = min(1.0, transition.elapsed / transition.duration)

        if progress >= 1.0:
            self._transition = None
            self._apply(transition.target, reshuffle=self.config.reshuffle_colors_on_theme)
        else:
            self._apply(interpolate_theme(transition.start, transition.target, progress), reshuffle=False)

    def _apply(self, theme: Theme, reshuffle: bool) -> None:
        # Everything derived first, then assigned with nothing able to fail in between
        primary = color_to_rgb(theme.primary_color)
        secondary = color_to_rgb(theme.secondary_color)

        self.particles.recolor(theme, reshuffle=reshuffle)
        self.orb.set_colors(primary, secondary)
        self.rings.set_color(primary)
        self.glow.set_color(primary, float(theme.glow_intensity))
        self._theme = theme
        self._select_behavior(theme)

    def _select_behavior(self, theme: Theme) -> None:
        if not self.config.enable_behaviors:
            self.particles.behavior = None
            return
        effect = get_theme_effect(theme)
        self.particles.behavior = behavior_from_name(effect.particle_movement) if effect else None

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------

    @property
    def pulse_intensity(self) -> float:
        return self.orb.pulse_intensity

    def particle_buffers(self) -> ParticleBuffers:
        return self.particles.buffers

    def ring_transforms(self) -> List[RingTransform]:
        return self.rings.transforms()

    def orb_uniforms(self) -> Dict[str, object]:
        return self.orb.uniforms()

    def glow_uniforms(self) -> Dict[str, object]:
        return self.glow.uniforms()

    def frame_state(self) -> FrameState:
        """Snapshot of the current frame for renderers"""
        return FrameState(
            time=self.time,
            group_rotation=self.group_rotation,
            orb=self.orb.uniforms(),
            orb_rotation=(self.orb.rotation_x, self.orb.rotation_y),
            particles=self.particles.buffers,
            particle_intensity=float(self._theme.particle_intensity),
            rings=self.rings.uniforms(),
            ring_transforms=self.rings.transforms(),
            glow=self.glow.uniforms(),
            background_color=color_to_rgb(self._theme.background_color),
        )


def create_halo_orb(
    theme_name: str = 'spartan',
    config: Optional[OrbConfig] = None,
    seed: Optional[int] = None,
    catalog: Optional[Mapping[str, Theme]] = None
) -> HaloOrb:
    """Build a HaloOrb from a catalog theme name

    Raises:
        InvalidConfig: if the theme name is unknown
    """
    theme = get_theme(theme_name, catalog)
    return HaloOrb(theme=theme, config=config, rng=seed, catalog=catalog)
