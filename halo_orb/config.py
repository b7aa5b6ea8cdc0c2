"""
Halo Orb Configuration

OrbConfig holds every tunable constant of the ensemble. Values can be
overridden from the ``orb:`` section of a YAML file, and the theme catalog
can be loaded from its ``themes:`` section (see halo_orb/haloconfig.yaml).
"""

import dataclasses
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from .themes import InvalidConfig, Theme, parse_color, validate_theme

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "haloconfig.yaml"


@dataclass(frozen=True)
class OrbConfig:
    """Construction parameters for a HaloOrb

    Attributes:
        orb_radius: Radius of the central sphere (glow is 2x this)
        particle_count: Number of particles, fixed for the orb's lifetime
        ring_count: Number of concentric rings
        reference_step: Frame step (seconds) all per-step increments assume
        lifetime_step: Particle lifetime gained per reference step
        respawn_jitter: Per-axis half-extent of the respawn offset
        velocity_range: Per-axis half-extent of particle drift velocity
        group_spin: Whole-ensemble yaw per reference step
        orb_segments: Orb sphere tessellation
        glow_segments: Glow sphere tessellation
        ring_segments: Ring tessellation
        enable_behaviors: Layer theme movement behaviors over the Euler step
        reshuffle_colors_on_theme: Draw new particle color mixes on theme change
        default_theme: Catalog key used when no theme is given
    """
    orb_radius: float = 1.5
    particle_count: int = 2000
    ring_count: int = 3
    reference_step: float = 0.016
    lifetime_step: float = 0.005
    respawn_jitter: float = 0.25
    velocity_range: float = 0.01
    group_spin: float = 0.002
    orb_segments: int = 64
    glow_segments: int = 32
    ring_segments: int = 64
    enable_behaviors: bool = False
    reshuffle_colors_on_theme: bool = True
    default_theme: str = 'spartan'

    def validate(self) -> bool:
        """Check every field

        Returns:
            True if valid, raises InvalidConfig if invalid
        """
        for name in ('particle_count', 'orb_segments', 'glow_segments', 'ring_segments'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise InvalidConfig(f"{name} must be a positive integer, got {value!r}")

        if isinstance(self.ring_count, bool) or not isinstance(self.ring_count, int) or self.ring_count < 0:
            raise InvalidConfig(f"ring_count must be a non-negative integer, got {self.ring_count!r}")

        for name in ('orb_radius', 'reference_step', 'lifetime_step'):
            if not _is_number(getattr(self, name)) or getattr(self, name) <= 0:
                raise InvalidConfig(f"{name} must be positive, got {getattr(self, name)!r}")

        for name in ('respawn_jitter', 'velocity_range', 'group_spin'):
            if not _is_number(getattr(self, name)) or getattr(self, name) < 0:
                raise InvalidConfig(f"{name} must be non-negative, got {getattr(self, name)!r}")

        return True


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


# ============================================================================
# YAML Loading
# ============================================================================

def _load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    path = Path(path)
    if not path.exists():
        raise InvalidConfig(f"Config file not found: {path}")

    with open(path) as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise InvalidConfig(f"Could not parse {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidConfig(f"{path} must contain a mapping at the top level")
    return data


def orb_config_from_dict(data: Dict[str, Any]) -> OrbConfig:
    """Build an OrbConfig from a plain mapping, rejecting unknown keys"""
    known = {f.name for f in dataclasses.fields(OrbConfig)}
    unknown = set(data) - known
    if unknown:
        raise InvalidConfig(f"Unknown orb config keys: {sorted(unknown)}")

    config = OrbConfig(**data)
    config.validate()
    return config


def load_orb_config(path: Union[str, Path] = DEFAULT_CONFIG_PATH) -> OrbConfig:
    """Read the ``orb:`` section of a YAML file

    A file without an ``orb:`` section yields the defaults.
    """
    data = _load_yaml(path)
    section = data.get('orb') or {}
    if not isinstance(section, dict):
        raise InvalidConfig("'orb' section must be a mapping")
    return orb_config_from_dict(section)


def theme_from_dict(name: str, data: Dict[str, Any]) -> Theme:
    """Build and validate a Theme from a YAML record

    Colors may be ints or hex strings; intensities default to 1.0.
    """
    if not isinstance(data, dict):
        raise InvalidConfig(f"Theme {name!r} must be a mapping")

    for key in ('primary_color', 'secondary_color', 'background_color'):
        if key not in data:
            raise InvalidConfig(f"Theme {name!r} is missing {key}")

    theme = Theme(
        primary_color=parse_color(data['primary_color'], f"{name}.primary_color"),
        secondary_color=parse_color(data['secondary_color'], f"{name}.secondary_color"),
        background_color=parse_color(data['background_color'], f"{name}.background_color"),
        particle_intensity=data.get('particle_intensity', 1.0),
        glow_intensity=data.get('glow_intensity', 1.0),
        ring_speed=data.get('ring_speed', 1.0),
        name=str(data.get('name', name.capitalize())),
        description=str(data.get('description', '')),
    )

    validate_theme(theme)
    return theme


def load_theme_catalog(path: Union[str, Path] = DEFAULT_CONFIG_PATH) -> Dict[str, Theme]:
    """Read the ``themes:`` section of a YAML file into name -> Theme"""
    data = _load_yaml(path)
    section = data.get('themes')
    if not section or not isinstance(section, dict):
        raise InvalidConfig(f"No themes defined in {path}")
    return {str(name): theme_from_dict(str(name), record) for name, record in section.items()}
