"""
Particle Field - Stateful Component

Owns every particle as a fixed-size arena of parallel numpy arrays indexed by
particle id. Particles never get destroyed: when a particle's lifetime wraps
it respawns in place near its formation anchor.

Render buffers (position, color, size) are float32 copies refreshed in bulk
after every change, with a dirty flag telling the backend to re-upload.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .core import (
    Formation,
    MovementBehavior,
    apply_movement_behavior,
    choose_formations,
    frame_scale,
    mix_colors,
    respawn_jitter,
    sample_sizes,
    sample_velocities,
    sanitize_dt,
    seed_formation_positions,
)
from .themes import InvalidConfig, Theme, color_to_rgb, validate_theme


@dataclass(frozen=True)
class ParticleBuffers:
    """Read-only render data, all in the same index space

    Attributes:
        positions: (N, 3) float32
        colors: (N, 3) float32, normalized RGB
        sizes: (N,) float32
    """
    positions: np.ndarray
    colors: np.ndarray
    sizes: np.ndarray

    @property
    def count(self) -> int:
        return len(self.sizes)


def _read_only(array: np.ndarray) -> np.ndarray:
    array.setflags(write=False)
    return array


class ParticleField:
    """N point-sprite particles seeded into spherical, ring and spiral formations

    Args:
        count: Number of particles (fixed for the field's lifetime)
        theme: Theme supplying the primary/secondary color pair
        orb_radius: Inner radius of the spherical formation
        rng: Random source; pass a seeded Generator for reproducible layouts
        reference_step: Frame step the per-step increments are tuned for
        lifetime_step: Lifetime added per reference step
        jitter: Half-extent of the per-axis respawn offset
        velocity_range: Half-extent of the per-axis drift velocity
        behavior: Optional theme movement layered on top of the Euler step

    Raises:
        InvalidConfig: if count <= 0 or the theme is invalid
    """

    def __init__(
        self,
        count: int,
        theme: Theme,
        orb_radius: float = 1.5,
        rng: Optional[np.random.Generator] = None,
        reference_step: float = 0.016,
        lifetime_step: float = 0.005,
        jitter: float = 0.25,
        velocity_range: float = 0.01,
        behavior: Optional[MovementBehavior] = None
    ):
        self.orb_radius = orb_radius
        self.rng = rng if rng is not None else np.random.default_rng()
        self.reference_step = reference_step
        self.lifetime_step = lifetime_step
        self.jitter = jitter
        self.velocity_range = velocity_range
        self.behavior = behavior
        self.time = 0.0
        self.needs_upload = True

        self.initialize(count, theme)

    def initialize(self, count: int, theme: Theme) -> None:
        """Allocate and seed all particles

        Side effects:
        - Replaces every per-particle array
        - Marks buffers dirty

        Raises:
            InvalidConfig: if count <= 0 or the theme is invalid
        """
        if isinstance(count, bool) or not isinstance(count, (int, np.integer)) or count <= 0:
            raise InvalidConfig(f"Particle count must be a positive integer, got {count!r}")
        validate_theme(theme)

        rng = self.rng
        self.count = int(count)
        self.formations = choose_formations(rng, self.count)
        self.initial_positions = seed_formation_positions(rng, self.formations, self.orb_radius)
        self.initial_positions.setflags(write=False)
        self.positions = self.initial_positions.copy()
        self.velocities = sample_velocities(rng, self.count, self.velocity_range)
        self.color_mix = rng.random(self.count)
        self.colors = mix_colors(color_to_rgb(theme.primary_color),
                                 color_to_rgb(theme.secondary_color),
                                 self.color_mix)
        self.sizes = sample_sizes(rng, self.count)
        # Random phase so the population does not respawn in lockstep
        self.lifetimes = rng.random(self.count)
        self.respawn_counts = np.zeros(self.count, dtype=np.int64)
        self.time = 0.0

        self._refresh_buffers()

    # ------------------------------------------------------------------
    # Per-frame update
    # ------------------------------------------------------------------

    def advance(self, dt: float) -> np.ndarray:
        """Age, move and respawn every particle

        Never raises: a negative or non-finite dt advances nothing.

        Args:
            dt: Elapsed seconds since the previous frame

        Returns:
            Boolean mask of particles that respawned during this step
        """
        scale = frame_scale(dt, self.reference_step)
        self.time += sanitize_dt(dt)

        self.lifetimes += self.lifetime_step * scale
        wrapped = self.lifetimes >= 1.0
        alive = ~wrapped

        # Respawn near the anchor, not exactly on it, to avoid visible popping
        n_wrapped = int(wrapped.sum())
        if n_wrapped:
            self.lifetimes[wrapped] = 0.0
            self.positions[wrapped] = (
                self.initial_positions[wrapped]
                + respawn_jitter(self.rng, n_wrapped, self.jitter)
            )
            self.respawn_counts[wrapped] += 1

        self.positions[alive] += self.velocities[alive] * scale

        if self.behavior is not None and scale > 0.0 and alive.any():
            indices = np.flatnonzero(alive)
            self.positions[alive] = apply_movement_behavior(
                self.behavior, self.positions[alive], self.time, indices, scale
            )

        self._refresh_buffers()
        return wrapped

    # ------------------------------------------------------------------
    # Theme handling
    # ------------------------------------------------------------------

    def recolor(self, theme: Theme, reshuffle: bool = True) -> None:
        """Re-tint particles for a new theme

        The new color array is built before it replaces the old one, so a
        reader never sees a mix of old and new colors.

        Args:
            theme: New theme
            reshuffle: Draw fresh mix factors (sparkle on theme change)
                instead of reusing the stored ones
        """
        validate_theme(theme)
        mix = self.rng.random(self.count) if reshuffle else self.color_mix
        colors = mix_colors(color_to_rgb(theme.primary_color),
                            color_to_rgb(theme.secondary_color),
                            mix)
        self.color_mix = mix
        self.colors = colors
        self._refresh_buffers()

    # ------------------------------------------------------------------
    # Render data
    # ------------------------------------------------------------------

    def _refresh_buffers(self) -> None:
        self._buffers = ParticleBuffers(
            positions=_read_only(self.positions.astype(np.float32)),
            colors=_read_only(self.colors.astype(np.float32)),
            sizes=_read_only(self.sizes.astype(np.float32)),
        )
        self.needs_upload = True

    @property
    def buffers(self) -> ParticleBuffers:
        """Current render buffers (read-only)"""
        return self._buffers

    def mark_uploaded(self) -> None:
        """Called by the backend once the current buffers are on the GPU"""
        self.needs_upload = False

    def formation_counts(self) -> dict:
        """Number of particles seeded into each formation"""
        return {f: int((self.formations == f).sum()) for f in Formation}
