"""
Orb Components - Parametric Scene Elements

OrbBody, RingEnsemble and GlowShell hold only clocks, accumulated rotations
and theme colors. Everything a renderer needs is exposed through
``uniforms()`` / ``transforms()`` snapshots built from the core formulas.
"""

import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np

from .core import (
    RING_HALF_WIDTH,
    RING_TILT_JITTER,
    euler_xyz,
    frame_scale,
    glow_pulse_factor,
    pulse_intensity,
    ring_angle,
    ring_base_radius,
    ring_opacity,
    ring_phase_speed,
    ring_spin_step,
    rotation_y,
    sanitize_dt,
)
from .themes import InvalidConfig, Theme, color_to_rgb, validate_theme

RGB = Tuple[float, float, float]


# ============================================================================
# Orb Body
# ============================================================================

class OrbBody:
    """The central pulsing sphere

    Args:
        theme: Theme supplying primary/secondary colors
        radius: Sphere radius
        reference_step: Frame step the rotation deltas are tuned for
    """

    ROTATION_Y_STEP = 0.005
    ROTATION_X_STEP = 0.002

    def __init__(self, theme: Theme, radius: float = 1.5, reference_step: float = 0.016):
        validate_theme(theme)
        self.radius = radius
        self.reference_step = reference_step
        self.time = 0.0
        self.rotation_x = 0.0
        self.rotation_y = 0.0
        self.primary_color = color_to_rgb(theme.primary_color)
        self.secondary_color = color_to_rgb(theme.secondary_color)

    @property
    def pulse_intensity(self) -> float:
        """Derived from time, never stored"""
        return pulse_intensity(self.time)

    def advance(self, dt: float) -> None:
        """Accumulate time and rotation"""
        scale = frame_scale(dt, self.reference_step)
        self.time += sanitize_dt(dt)
        self.rotation_y += self.ROTATION_Y_STEP * scale
        self.rotation_x += self.ROTATION_X_STEP * scale

    def set_colors(self, primary: RGB, secondary: RGB) -> None:
        self.primary_color = primary
        self.secondary_color = secondary

    def model_matrix(self) -> np.ndarray:
        return euler_xyz(self.rotation_x, self.rotation_y, 0.0)

    def uniforms(self) -> Dict[str, object]:
        """Shader inputs for the orb"""
        return {
            'time': self.time,
            'pulse_intensity': self.pulse_intensity,
            'primary_color': self.primary_color,
            'secondary_color': self.secondary_color,
        }


# ============================================================================
# Ring Ensemble
# ============================================================================

@dataclass(frozen=True)
class RingElement:
    """One rotating annulus

    Attributes:
        index: Position in the ensemble (0 = innermost)
        base_radius: Center-line radius
        half_width: Half thickness of the band
        opacity: Base opacity
        phase_speed: Angular speed of the time-derived rotation (rad/s)
        tilt: Tilt about X, fixed at construction
        phase_offset: Yaw about Y, fixed at construction
    """
    index: int
    base_radius: float
    half_width: float
    opacity: float
    phase_speed: float
    tilt: float
    phase_offset: float

    @property
    def inner_radius(self) -> float:
        return self.base_radius - self.half_width

    @property
    def outer_radius(self) -> float:
        return self.base_radius + self.half_width


@dataclass(frozen=True)
class RingTransform:
    """Orientation of one ring at a point in time

    Attributes:
        index: Ring index
        angle: Time-derived rotation (applied in the vertex stage)
        spin: Accumulated spin about the ring's own Z axis
        matrix: 4x4 model matrix (tilt, phase offset and spin)
    """
    index: int
    angle: float
    spin: float
    matrix: np.ndarray


class RingEnsemble:
    """K concentric rings with independent rotation rates

    Args:
        theme: Theme supplying the ring color (primary)
        ring_count: Number of rings
        rng: Random source for the one-time tilt jitter
        reference_step: Frame step the spin increments are tuned for

    Raises:
        InvalidConfig: if ring_count < 0
    """

    def __init__(
        self,
        theme: Theme,
        ring_count: int = 3,
        rng: Optional[np.random.Generator] = None,
        reference_step: float = 0.016
    ):
        if isinstance(ring_count, bool) or not isinstance(ring_count, int) or ring_count < 0:
            raise InvalidConfig(f"Ring count must be a non-negative integer, got {ring_count!r}")
        validate_theme(theme)

        rng = rng if rng is not None else np.random.default_rng()
        self.reference_step = reference_step
        self.time = 0.0
        self.color = color_to_rgb(theme.primary_color)

        self.rings: List[RingElement] = []
        for i in range(ring_count):
            self.rings.append(RingElement(
                index=i,
                base_radius=ring_base_radius(i),
                half_width=RING_HALF_WIDTH,
                opacity=ring_opacity(i),
                phase_speed=ring_phase_speed(i),
                tilt=math.pi / 2 + (rng.random() - 0.5) * (2.0 * RING_TILT_JITTER),
                phase_offset=rng.random() * math.pi,
            ))
        self.spins = np.zeros(ring_count, dtype=np.float64)

    def __len__(self) -> int:
        return len(self.rings)

    def advance(self, dt: float) -> None:
        """Advance the clock and each ring's spin"""
        scale = frame_scale(dt, self.reference_step)
        self.time += sanitize_dt(dt)
        for ring in self.rings:
            self.spins[ring.index] += ring_spin_step(ring.index) * scale

    def angles(self) -> List[float]:
        return [ring_angle(self.time, ring.index) for ring in self.rings]

    def transforms(self) -> List[RingTransform]:
        """Current orientation of every ring"""
        result = []
        for ring in self.rings:
            spin = float(self.spins[ring.index])
            result.append(RingTransform(
                index=ring.index,
                angle=ring_angle(self.time, ring.index),
                spin=spin,
                matrix=euler_xyz(ring.tilt, ring.phase_offset, spin),
            ))
        return result

    def set_color(self, color: RGB) -> None:
        self.color = color

    def uniforms(self) -> List[Dict[str, object]]:
        """Shader inputs per ring"""
        return [
            {
                'time': self.time,
                'angle': ring_angle(self.time, ring.index),
                'ring_color': self.color,
                'opacity': ring.opacity,
            }
            for ring in self.rings
        ]


# ============================================================================
# Glow Shell
# ============================================================================

class GlowShell:
    """Large inverted shell giving the orb its rim light

    Drawn back faces only, additive, without depth testing so it never
    hides anything.
    """

    def __init__(self, theme: Theme, orb_radius: float = 1.5):
        validate_theme(theme)
        self.radius = orb_radius * 2.0
        self.time = 0.0
        self.color = color_to_rgb(theme.primary_color)
        self.intensity = float(theme.glow_intensity)

    def advance(self, dt: float) -> None:
        self.time += sanitize_dt(dt)

    @property
    def pulse_factor(self) -> float:
        return glow_pulse_factor(self.time)

    def set_color(self, color: RGB, intensity: float) -> None:
        self.color = color
        self.intensity = intensity

    def uniforms(self) -> Dict[str, object]:
        return {
            'time': self.time,
            'glow_color': self.color,
            'glow_intensity': self.intensity,
        }


def group_rotation_matrix(angle: float) -> np.ndarray:
    """Whole-ensemble yaw"""
    return rotation_y(angle)
