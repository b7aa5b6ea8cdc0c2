"""
Halo Orb - Functional Core

Pure functions for animation math, formation sampling and geometry.
No side effects, no GPU operations - only calculations.

Follows functional core, imperative shell pattern:
- This module: Pure transformations (testable, predictable)
- shell.py: GPU operations (side effects)

Randomness is always drawn from a caller-supplied numpy Generator so a
seeded generator reproduces the exact same layout.
"""

import math
from enum import Enum, IntEnum
from typing import Optional, Tuple

import numpy as np


# ============================================================================
# Time Step Scaling
# ============================================================================

def frame_scale(dt: float, reference_step: float) -> float:
    """Ratio of elapsed time to the reference step

    Per-step increments (lifetime, rotation deltas, velocities) are multiplied
    by this so animation speed does not depend on the frame rate.

    Args:
        dt: Elapsed seconds since the previous frame
        reference_step: Step the increments were tuned for (0.016 = ~60fps)

    Returns:
        dt / reference_step, or 0.0 for negative or non-finite dt
    """
    if not math.isfinite(dt) or dt <= 0.0:
        return 0.0
    return dt / reference_step


def sanitize_dt(dt: float) -> float:
    """Clamp a frame delta to a usable non-negative finite value"""
    if not math.isfinite(dt) or dt <= 0.0:
        return 0.0
    return float(dt)


def pulse_intensity(time: float) -> float:
    """Breathing scalar for the orb: 0.5 + 0.5 * sin(2t)

    Bounded in [0, 1] with period pi.
    """
    value = 0.5 + 0.5 * math.sin(2.0 * time)
    # Guard rounding drift at the extremes
    return min(1.0, max(0.0, value))


# ============================================================================
# Color Mixing
# ============================================================================

def mix_colors(
    primary: Tuple[float, float, float],
    secondary: Tuple[float, float, float],
    mix: np.ndarray
) -> np.ndarray:
    """Linearly interpolate primary -> secondary for each mix factor

    Args:
        primary: Normalized RGB at mix = 0
        secondary: Normalized RGB at mix = 1
        mix: (N,) mix factors

    Returns:
        (N, 3) float array of colors
    """
    p = np.asarray(primary, dtype=np.float64)
    s = np.asarray(secondary, dtype=np.float64)
    mix = np.asarray(mix, dtype=np.float64).reshape(-1, 1)
    return p + (s - p) * mix


# ============================================================================
# Formation Seeding
# ============================================================================

class Formation(IntEnum):
    """Initial spatial distribution of a particle"""
    SPHERICAL = 0
    RING_BAND = 1
    SPIRAL = 2


# Cumulative draw thresholds: 40% spherical, 30% ring, 30% spiral
FORMATION_THRESHOLDS = (0.4, 0.7)

RING_BAND_RADIUS = (2.0, 4.0)
RING_BAND_HALF_HEIGHT = 0.25
SPHERICAL_SHELL_DEPTH = 3.0
SPIRAL_TURNS_PARAM = 4.0 * math.pi


def choose_formations(rng: np.random.Generator, count: int) -> np.ndarray:
    """Draw a formation class for every particle

    Returns:
        (count,) int array of Formation values
    """
    draw = rng.random(count)
    formations = np.full(count, Formation.SPIRAL, dtype=np.int8)
    formations[draw < FORMATION_THRESHOLDS[1]] = Formation.RING_BAND
    formations[draw < FORMATION_THRESHOLDS[0]] = Formation.SPHERICAL
    return formations


def sample_spherical(rng: np.random.Generator, count: int, orb_radius: float) -> np.ndarray:
    """Points in a thick shell around the orb

    Radius in [orb_radius, orb_radius + 3), azimuth in [0, 2pi),
    polar angle in [0, pi).
    """
    radius = orb_radius + rng.random(count) * SPHERICAL_SHELL_DEPTH
    theta = rng.random(count) * math.pi * 2.0
    phi = rng.random(count) * math.pi

    return np.stack([
        radius * np.sin(phi) * np.cos(theta),
        radius * np.sin(phi) * np.sin(theta),
        radius * np.cos(phi),
    ], axis=1)


def sample_ring_band(rng: np.random.Generator, count: int) -> np.ndarray:
    """Points in a flat band: radius in [2, 4), height in [-0.25, 0.25)"""
    low, high = RING_BAND_RADIUS
    radius = low + rng.random(count) * (high - low)
    angle = rng.random(count) * math.pi * 2.0
    height = (rng.random(count) - 0.5) * (2.0 * RING_BAND_HALF_HEIGHT)

    return np.stack([
        radius * np.cos(angle),
        height,
        radius * np.sin(angle),
    ], axis=1)


def spiral_point(t: np.ndarray) -> np.ndarray:
    """Archimedean spiral: radius 1 + 0.1t, rising 0.2t - 2"""
    t = np.asarray(t, dtype=np.float64)
    radius = 1.0 + t * 0.1
    return np.stack([
        radius * np.cos(t),
        t * 0.2 - 2.0,
        radius * np.sin(t),
    ], axis=-1)


def sample_spiral(rng: np.random.Generator, count: int) -> np.ndarray:
    """Points along the spiral arm, parameter t in [0, 4pi)"""
    return spiral_point(rng.random(count) * SPIRAL_TURNS_PARAM)


def seed_formation_positions(
    rng: np.random.Generator,
    formations: np.ndarray,
    orb_radius: float
) -> np.ndarray:
    """Place every particle according to its formation class

    Returns:
        (N, 3) float array of initial positions
    """
    positions = np.zeros((len(formations), 3), dtype=np.float64)

    for formation in Formation:
        mask = formations == formation
        n = int(mask.sum())
        if n == 0:
            continue
        if formation == Formation.SPHERICAL:
            positions[mask] = sample_spherical(rng, n, orb_radius)
        elif formation == Formation.RING_BAND:
            positions[mask] = sample_ring_band(rng, n)
        else:
            positions[mask] = sample_spiral(rng, n)

    return positions


def sample_velocities(rng: np.random.Generator, count: int, velocity_range: float = 0.01) -> np.ndarray:
    """Per-axis uniform drift in [-velocity_range, velocity_range)"""
    return (rng.random((count, 3)) - 0.5) * (2.0 * velocity_range)


def sample_sizes(rng: np.random.Generator, count: int) -> np.ndarray:
    """Sprite sizes in [1, 4)"""
    return rng.random(count) * 3.0 + 1.0


def respawn_jitter(rng: np.random.Generator, count: int, jitter: float = 0.25) -> np.ndarray:
    """Per-axis uniform offsets in [-jitter, jitter) for respawned particles"""
    return (rng.random((count, 3)) - 0.5) * (2.0 * jitter)


# ============================================================================
# Theme-Specific Movement Behaviors
# ============================================================================

class MovementBehavior(str, Enum):
    """Theme-specific particle motion layered on top of the Euler step"""
    ORBITAL = 'orbital'
    FLOWING = 'flowing'
    GEOMETRIC = 'geometric'
    CHAOTIC = 'chaotic'


def behavior_from_name(name: Optional[str]) -> Optional[MovementBehavior]:
    """Map a theme effect's movement name to a behavior (None if unknown)"""
    if not name:
        return None
    try:
        return MovementBehavior(name.lower())
    except ValueError:
        return None


def apply_movement_behavior(
    behavior: MovementBehavior,
    positions: np.ndarray,
    time: float,
    indices: np.ndarray,
    scale: float = 1.0
) -> np.ndarray:
    """Compute new positions for a theme behavior

    Offset behaviors add their per-reference-step offset times scale, so the
    drift over a span of time does not depend on the frame rate. ORBITAL is
    a function of time alone and ignores scale.

    Args:
        behavior: Which motion to apply
        positions: (N, 3) current positions of the affected particles
        time: Elapsed animation time
        indices: (N,) particle ids (phase offsets are derived from them)
        scale: dt / reference_step for this advance

    Returns:
        (N, 3) new positions
    """
    i = np.asarray(indices, dtype=np.float64)

    if behavior == MovementBehavior.ORBITAL:
        # Absolute placement on a breathing orbit
        radius = 2.0 + np.sin(time + i * 0.1) * 0.5
        angle = time * 0.5 + i * 0.628
        return np.stack([
            radius * np.cos(angle),
            np.sin(time * 2.0 + i * 0.1) * 0.3,
            radius * np.sin(angle),
        ], axis=1)

    if behavior == MovementBehavior.FLOWING:
        flow = time * 0.3 + i * 0.1
        offset = np.stack([
            np.sin(flow) * 0.02,
            np.cos(flow * 1.3) * 0.02,
            np.sin(flow * 0.7) * 0.02,
        ], axis=1)
    elif behavior == MovementBehavior.GEOMETRIC:
        phase = time + i * 0.314
        precision = np.sin(phase) * 0.01
        offset = np.stack([
            precision,
            np.cos(phase * 2.0) * 0.01,
            precision,
        ], axis=1)
    elif behavior == MovementBehavior.CHAOTIC:
        offset = np.stack([
            np.sin(time * 3.0 + i * 0.7) * 0.05,
            np.cos(time * 2.3 + i * 0.4) * 0.04,
            np.sin(time * 1.7 + i * 0.9) * 0.03,
        ], axis=1)
    else:
        raise ValueError(f"Unknown movement behavior: {behavior!r}")

    return positions + offset * scale


# ============================================================================
# Ring Parameters
# ============================================================================

RING_HALF_WIDTH = 0.05
RING_TILT_JITTER = 0.25


def ring_base_radius(index: int) -> float:
    """Radius of ring i: 2.5 + 0.8i"""
    return 2.5 + 0.8 * index


def ring_opacity(index: int) -> float:
    """Opacity of ring i: 0.6 - 0.15i, never negative"""
    return max(0.0, 0.6 - 0.15 * index)


def ring_phase_speed(index: int) -> float:
    """Angular speed of ring i: 0.5 + 0.2i rad/s"""
    return 0.5 + 0.2 * index


def ring_angle(time: float, index: int) -> float:
    """Time-derived rotation angle of ring i"""
    return time * ring_phase_speed(index)


def ring_spin_step(index: int) -> float:
    """Spin added to ring i per reference step"""
    return 0.01 * (index + 1)


def ring_band_intensity(time, u):
    """Animated banding along the ring: sin(2t + 10u) * 0.3 + 0.7"""
    return np.sin(time * 2.0 + np.asarray(u) * 10.0) * 0.3 + 0.7


# ============================================================================
# Shading Contracts
# ============================================================================
# Reference formulas for the shaders in shaders.py. A backend may produce
# pixels any way it likes as long as it matches these over time.

ORB_WOBBLE_AMPLITUDES = (0.012, 0.008)
ORB_PULSE_DISPLACEMENT = 0.1


def orb_displacement(
    position: np.ndarray,
    normal: np.ndarray,
    time: float,
    pulse: float
) -> np.ndarray:
    """Displace orb vertices along their normals

    Wobble from sin of time and surface coordinate (combined amplitude
    <= 0.02), plus pulse * 0.1 outward.
    """
    position = np.asarray(position, dtype=np.float64)
    normal = np.asarray(normal, dtype=np.float64)
    a1, a2 = ORB_WOBBLE_AMPLITUDES
    wobble = (
        np.sin(time * 2.0 + position[..., 0] * 5.0) * a1
        + np.sin(time * 3.0 + position[..., 1] * 4.0) * a2
    )
    amount = wobble + pulse * ORB_PULSE_DISPLACEMENT
    return position + normal * amount[..., np.newaxis]


def fresnel(normal_z):
    """Rim term (1 - n.z)^2 for a viewer along +z"""
    return (1.0 - np.asarray(normal_z, dtype=np.float64)) ** 2


def orb_fragment_color(
    position: np.ndarray,
    normal_z,
    time: float,
    pulse: float,
    primary: Tuple[float, float, float],
    secondary: Tuple[float, float, float]
) -> np.ndarray:
    """Orb surface color

    Primary/secondary mixed by an animated pattern, pushed toward a bright
    primary at the rim, plus a pulse-tinted additive term.

    Returns:
        (..., 4) RGBA
    """
    position = np.asarray(position, dtype=np.float64)
    p = np.asarray(primary, dtype=np.float64)
    s = np.asarray(secondary, dtype=np.float64)

    rim = fresnel(normal_z)[..., np.newaxis]
    pattern1 = np.sin(time * 2.0 + position[..., 0] * 10.0) * 0.5 + 0.5
    pattern2 = np.sin(time * 1.5 + position[..., 1] * 8.0) * 0.5 + 0.5
    energy = (pattern1 * pattern2)[..., np.newaxis]

    color = p + (s - p) * energy
    color = color + (p * 2.0 - color) * rim
    color = color + p * pulse * 0.5

    alpha = 0.8 + rim * 0.2
    return np.concatenate([color, alpha], axis=-1)


def glow_pulse_factor(time: float) -> float:
    """Glow breathing: sin(2t) * 0.2 + 0.8"""
    return math.sin(time * 2.0) * 0.2 + 0.8


def glow_rim_intensity(normal_z, time: float):
    """Glow brightness for a normal; strongest where the shell faces away"""
    rim = np.maximum(0.7 - np.asarray(normal_z, dtype=np.float64), 0.0) ** 2
    return rim * glow_pulse_factor(time)


def sprite_falloff(distance):
    """Radial point-sprite alpha: 1 at center, 0.8 at 0.3, 0 at the edge

    Args:
        distance: Normalized distance from sprite center (0 to 1)
    """
    d = np.clip(np.asarray(distance, dtype=np.float64), 0.0, 1.0)
    inner = 1.0 - (d / 0.3) * 0.2
    outer = 0.8 * (1.0 - (d - 0.3) / 0.7)
    return np.where(d < 0.3, inner, outer)


def animated_sprite_size(size, position: np.ndarray, time: float):
    """Twinkling sprite size: size * (1 + 0.3 sin(3t + x + y))"""
    position = np.asarray(position, dtype=np.float64)
    return np.asarray(size) * (1.0 + np.sin(time * 3.0 + position[..., 0] + position[..., 1]) * 0.3)


# ============================================================================
# Transforms
# ============================================================================

def rotation_x(angle: float) -> np.ndarray:
    """4x4 rotation about the X axis"""
    c, s = math.cos(angle), math.sin(angle)
    return np.array([
        [1, 0, 0, 0],
        [0, c, -s, 0],
        [0, s, c, 0],
        [0, 0, 0, 1],
    ], dtype=np.float64)


def rotation_y(angle: float) -> np.ndarray:
    """4x4 rotation about the Y axis"""
    c, s = math.cos(angle), math.sin(angle)
    return np.array([
        [c, 0, s, 0],
        [0, 1, 0, 0],
        [-s, 0, c, 0],
        [0, 0, 0, 1],
    ], dtype=np.float64)


def rotation_z(angle: float) -> np.ndarray:
    """4x4 rotation about the Z axis"""
    c, s = math.cos(angle), math.sin(angle)
    return np.array([
        [c, -s, 0, 0],
        [s, c, 0, 0],
        [0, 0, 1, 0],
        [0, 0, 0, 1],
    ], dtype=np.float64)


def euler_xyz(x: float, y: float, z: float) -> np.ndarray:
    """Rotation matrix for intrinsic X, then Y, then Z angles"""
    return rotation_x(x) @ rotation_y(y) @ rotation_z(z)


def perspective_matrix(fov_degrees: float, aspect: float, near: float, far: float) -> np.ndarray:
    """Right-handed OpenGL perspective projection"""
    f = 1.0 / math.tan(math.radians(fov_degrees) / 2.0)
    return np.array([
        [f / aspect, 0, 0, 0],
        [0, f, 0, 0],
        [0, 0, (far + near) / (near - far), (2.0 * far * near) / (near - far)],
        [0, 0, -1, 0],
    ], dtype=np.float64)


def look_at_matrix(eye, target, up=(0.0, 1.0, 0.0)) -> np.ndarray:
    """View matrix for a camera at eye looking toward target"""
    eye = np.asarray(eye, dtype=np.float64)
    target = np.asarray(target, dtype=np.float64)
    up = np.asarray(up, dtype=np.float64)

    forward = target - eye
    forward /= np.linalg.norm(forward)
    side = np.cross(forward, up)
    side /= np.linalg.norm(side)
    true_up = np.cross(side, forward)

    view = np.identity(4)
    view[0, :3] = side
    view[1, :3] = true_up
    view[2, :3] = -forward
    view[:3, 3] = -view[:3, :3] @ eye
    return view


# ============================================================================
# Mesh Generation
# ============================================================================

def build_uv_sphere(radius: float, segments: int) -> Tuple[np.ndarray, np.ndarray]:
    """Latitude/longitude sphere

    Args:
        radius: Sphere radius
        segments: Longitude segments (latitude uses the same count)

    Returns:
        (vertices, indices)
        - vertices: (V, 6) float32 array of position + normal
        - indices: (T * 3,) uint32 triangle indices
    """
    rings = segments
    lat = np.linspace(0.0, math.pi, rings + 1)
    lon = np.linspace(0.0, 2.0 * math.pi, segments + 1)
    phi, theta = np.meshgrid(lat, lon, indexing='ij')

    normals = np.stack([
        -np.cos(theta) * np.sin(phi),
        np.cos(phi),
        np.sin(theta) * np.sin(phi),
    ], axis=-1).reshape(-1, 3)
    vertices = np.concatenate([normals * radius, normals], axis=1).astype('f4')

    indices = []
    row = segments + 1
    for r in range(rings):
        for c in range(segments):
            a = r * row + c
            b = a + row
            indices.extend((a, b, a + 1, b, b + 1, a + 1))

    return vertices, np.array(indices, dtype='u4')


def build_ring_mesh(inner_radius: float, outer_radius: float, segments: int) -> Tuple[np.ndarray, np.ndarray]:
    """Flat annulus in the XY plane

    Texture u/v follow the position scaled by the outer radius into [0, 1],
    so u sweeps across the ring and drives the banding pattern.

    Returns:
        (vertices, indices)
        - vertices: (V, 5) float32 array of position + uv
        - indices: (T * 3,) uint32 triangle indices
    """
    angles = np.linspace(0.0, 2.0 * math.pi, segments + 1)
    rows = []
    for radius in (inner_radius, outer_radius):
        x = radius * np.cos(angles)
        y = radius * np.sin(angles)
        u = (x / outer_radius + 1.0) / 2.0
        v = (y / outer_radius + 1.0) / 2.0
        rows.append(np.stack([x, y, np.zeros_like(x), u, v], axis=1))
    vertices = np.concatenate(rows).astype('f4')

    indices = []
    outer = segments + 1
    for c in range(segments):
        a, b = c, c + outer
        indices.extend((a, b, a + 1, b, b + 1, a + 1))

    return vertices, np.array(indices, dtype='u4')
