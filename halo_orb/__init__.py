"""
Halo Orb Package

Themed, animated energy orb (core sphere, particles, rings, glow) using the
functional core, imperative shell pattern.

Modules:
- themes: Theme records, validation, catalog and interpolation
- core: Pure numpy formulas (formations, behaviors, shading, matrices, meshes)
- particles: Particle arena with lifetime wrap and respawn
- components: Orb body, ring ensemble and glow shell state
- halo: HaloOrb orchestrator (update / apply_theme / frame_state)
- config: OrbConfig and YAML loading
- shaders: GLSL sources
- shell: GPU operations and I/O (imperative side effects)
"""

from .themes import (
    InvalidConfig,
    Theme,
    ThemeEffect,
    SOLDIER_THEMES,
    THEME_EFFECTS,
    validate_theme,
    color_to_rgb,
    parse_color,
    interpolate_color,
    interpolate_theme,
    create_gradient_themes,
    get_theme,
    get_theme_effect,
)

from .core import (
    Formation,
    MovementBehavior,
    frame_scale,
    pulse_intensity,
)

from .config import (
    OrbConfig,
    load_orb_config,
    load_theme_catalog,
)

from .particles import ParticleBuffers, ParticleField
from .components import OrbBody, RingEnsemble, RingTransform, GlowShell
from .halo import FrameState, HaloOrb, create_halo_orb

from .shell import (
    OrbRenderer,
    render_halo,
    read_framebuffer,
    save_frame,
    render_halo_to_file,
    render_frames_to_array,
)

__all__ = [
    # Themes
    'InvalidConfig',
    'Theme',
    'ThemeEffect',
    'SOLDIER_THEMES',
    'THEME_EFFECTS',
    'validate_theme',
    'color_to_rgb',
    'parse_color',
    'interpolate_color',
    'interpolate_theme',
    'create_gradient_themes',
    'get_theme',
    'get_theme_effect',

    # Core
    'Formation',
    'MovementBehavior',
    'frame_scale',
    'pulse_intensity',

    # Config
    'OrbConfig',
    'load_orb_config',
    'load_theme_catalog',

    # Components
    'ParticleBuffers',
    'ParticleField',
    'OrbBody',
    'RingEnsemble',
    'RingTransform',
    'GlowShell',
    'FrameState',
    'HaloOrb',
    'create_halo_orb',

    # Shell
    'OrbRenderer',
    'render_halo',
    'read_framebuffer',
    'save_frame',
    'render_halo_to_file',
    'render_frames_to_array',
]
