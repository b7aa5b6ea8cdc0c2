"""
Theme Types - Shared Contract

Defines the theme records consumed by every orb component, the reference
catalog, and the pure helpers that validate and interpolate them.

Type Hierarchy:
    Theme (colors + intensities) → applied wholesale by HaloOrb
    ThemeEffect (behavior metadata) → selects particle movement per theme
"""

import math
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple


class InvalidConfig(ValueError):
    """Raised when a particle count, theme or config value is unusable"""


MAX_COLOR = 0xFFFFFF


@dataclass(frozen=True)
class Theme:
    """Visual identity of the whole ensemble

    Immutable - a theme change replaces the record, it never mutates it.

    Attributes:
        primary_color: 24-bit RGB int (orb, rings, glow tint)
        secondary_color: 24-bit RGB int (particle and orb mix target)
        background_color: 24-bit RGB int (clear color)
        particle_intensity: Particle brightness multiplier (>= 0)
        glow_intensity: Glow shell brightness multiplier (>= 0)
        ring_speed: Advisory ring speed for hosts (>= 0); ring motion
            always follows the fixed per-ring phase speeds
        name: Display name
        description: Human-readable description
    """
    primary_color: int
    secondary_color: int
    background_color: int
    particle_intensity: float = 1.0
    glow_intensity: float = 1.0
    ring_speed: float = 1.0
    name: str = ""
    description: str = ""


@dataclass(frozen=True)
class ThemeEffect:
    """Behavior metadata attached to a named theme

    Attributes:
        particle_movement: One of 'orbital', 'flowing', 'geometric', 'chaotic'
        special_effect: Effect identifier for hosts that support it
        sound_profile: Sound identifier for hosts that support it
        energy_pattern: Pattern identifier for hosts that support it
    """
    particle_movement: str
    special_effect: str = ""
    sound_profile: str = ""
    energy_pattern: str = ""


# ============================================================================
# Validation Functions
# ============================================================================

def validate_color(value, field_name: str = "color") -> bool:
    """Validate a 24-bit RGB integer

    Returns:
        True if valid, raises InvalidConfig if invalid
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidConfig(f"{field_name} must be an integer RGB value, got {value!r}")
    if not (0 <= value <= MAX_COLOR):
        raise InvalidConfig(f"{field_name} {value:#x} out of range [0x000000, 0xffffff]")
    return True


def validate_intensity(value, field_name: str = "intensity") -> bool:
    """Validate a non-negative finite scalar

    Returns:
        True if valid, raises InvalidConfig if invalid
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidConfig(f"{field_name} must be a number, got {value!r}")
    if not math.isfinite(value):
        raise InvalidConfig(f"{field_name} must be finite, got {value}")
    if value < 0:
        raise InvalidConfig(f"{field_name} {value} must be non-negative")
    return True


def validate_theme(theme: Theme) -> bool:
    """Validate every field of a Theme

    Args:
        theme: Theme to validate

    Returns:
        True if valid, raises InvalidConfig if invalid
    """
    if not isinstance(theme, Theme):
        raise InvalidConfig(f"Expected Theme, got {type(theme).__name__}")

    validate_color(theme.primary_color, "primary_color")
    validate_color(theme.secondary_color, "secondary_color")
    validate_color(theme.background_color, "background_color")
    validate_intensity(theme.particle_intensity, "particle_intensity")
    validate_intensity(theme.glow_intensity, "glow_intensity")
    validate_intensity(theme.ring_speed, "ring_speed")

    return True


# ============================================================================
# Color Conversion
# ============================================================================

def split_color(color: int) -> Tuple[int, int, int]:
    """Split a 24-bit color into (r, g, b) bytes"""
    return ((color >> 16) & 255, (color >> 8) & 255, color & 255)


def color_to_rgb(color: int) -> Tuple[float, float, float]:
    """Convert a 24-bit color to normalized RGB floats (0.0 to 1.0)

    Examples:
        >>> color_to_rgb(0xff0000)
        (1.0, 0.0, 0.0)
    """
    r, g, b = split_color(color)
    return (r / 255.0, g / 255.0, b / 255.0)


def parse_color(value, field_name: str = "color") -> int:
    """Parse a color from an int or a hex string ('0x0099ff', '#0099ff', '0099ff')

    Raises:
        InvalidConfig: if the value cannot be parsed or is out of range
    """
    if isinstance(value, str):
        text = value.strip().lower()
        if text.startswith("#"):
            text = text[1:]
        elif text.startswith("0x"):
            text = text[2:]
        try:
            value = int(text, 16)
        except ValueError:
            raise InvalidConfig(f"{field_name} {value!r} is not a hex color") from None
    validate_color(value, field_name)
    return value


# ============================================================================
# Interpolation
# ============================================================================

def interpolate_color(color1: int, color2: int, factor: float) -> int:
    """Blend two 24-bit colors channel by channel, rounding to whole bytes

    Args:
        color1: Start color (factor = 0)
        color2: End color (factor = 1)
        factor: Blend amount

    Returns:
        24-bit color
    """
    r1, g1, b1 = split_color(color1)
    r2, g2, b2 = split_color(color2)

    # Round half up, keep each channel a byte
    def mix(a: int, b: int) -> int:
        return min(255, max(0, int(math.floor(a + (b - a) * factor + 0.5))))

    return (mix(r1, r2) << 16) | (mix(g1, g2) << 8) | mix(b1, b2)


def interpolate_theme(theme1: Theme, theme2: Theme, factor: float) -> Theme:
    """Blend every color and scalar of two themes

    The result keeps the name of whichever theme it is closer to.
    """
    def lerp(a: float, b: float) -> float:
        return a + (b - a) * factor

    closer = theme1 if factor < 0.5 else theme2
    return Theme(
        primary_color=interpolate_color(theme1.primary_color, theme2.primary_color, factor),
        secondary_color=interpolate_color(theme1.secondary_color, theme2.secondary_color, factor),
        background_color=interpolate_color(theme1.background_color, theme2.background_color, factor),
        particle_intensity=lerp(theme1.particle_intensity, theme2.particle_intensity),
        glow_intensity=lerp(theme1.glow_intensity, theme2.glow_intensity),
        ring_speed=lerp(theme1.ring_speed, theme2.ring_speed),
        name=closer.name,
        description=closer.description,
    )


def create_gradient_themes(theme1: Theme, theme2: Theme, steps: int = 10) -> List[Theme]:
    """Build steps + 1 themes going from theme1 to theme2 inclusive

    Raises:
        InvalidConfig: if steps < 1
    """
    if steps < 1:
        raise InvalidConfig(f"Gradient needs at least 1 step, got {steps}")
    return [interpolate_theme(theme1, theme2, i / steps) for i in range(steps + 1)]


# ============================================================================
# Reference Catalog
# ============================================================================

SOLDIER_THEMES: Dict[str, Theme] = {
    'spartan': Theme(
        primary_color=0x0099ff,      # Blue
        secondary_color=0xff6600,    # Orange energy
        background_color=0x001133,   # Deep blue space
        particle_intensity=1.0,
        glow_intensity=0.8,
        ring_speed=1.0,
        name='Spartan',
        description="Iconic blue and orange energy signature with particle effects.",
    ),
    'covenant': Theme(
        primary_color=0x9900ff,      # Purple plasma
        secondary_color=0xff0099,    # Pink energy
        background_color=0x330033,   # Dark purple
        particle_intensity=1.2,
        glow_intensity=1.0,
        ring_speed=0.7,
        name='Covenant',
        description="Alien plasma technology with ethereal purple and pink energy patterns.",
    ),
    'forerunner': Theme(
        primary_color=0x00ffcc,      # Cyan/teal
        secondary_color=0xffffff,    # Pure white
        background_color=0x002244,   # Deep teal
        particle_intensity=0.8,
        glow_intensity=1.2,
        ring_speed=1.5,
        name='Forerunner',
        description="Ancient hard-light technology with crystalline cyan and white harmonics.",
    ),
    'flood': Theme(
        primary_color=0x88ff00,      # Sickly green
        secondary_color=0xffff00,    # Toxic yellow
        background_color=0x221100,   # Dark brown/green
        particle_intensity=1.5,
        glow_intensity=0.6,
        ring_speed=2.0,
        name='Flood',
        description="Corrupted biomass energy with infectious green and yellow spore-like particles.",
    ),
}

THEME_EFFECTS: Dict[str, ThemeEffect] = {
    'spartan': ThemeEffect('orbital', 'shield_flare', 'tech_hum', 'stable'),
    'covenant': ThemeEffect('flowing', 'plasma_burst', 'alien_resonance', 'pulsing'),
    'forerunner': ThemeEffect('geometric', 'hard_light_construct', 'harmonic_tone', 'crystalline'),
    'flood': ThemeEffect('chaotic', 'spore_explosion', 'organic_writhing', 'infected'),
}


def get_theme(name: str, catalog: Optional[Mapping[str, Theme]] = None) -> Theme:
    """Look up a theme by catalog key (case-insensitive)

    Raises:
        InvalidConfig: if the name is not in the catalog
    """
    catalog = SOLDIER_THEMES if catalog is None else catalog
    key = name.strip().lower()
    for candidate, theme in catalog.items():
        if candidate.lower() == key:
            return theme
    raise InvalidConfig(f"Unknown theme {name!r}, expected one of {sorted(catalog)}")


def get_theme_effect(theme: Theme) -> Optional[ThemeEffect]:
    """Find the effect record for a theme by its display name"""
    return THEME_EFFECTS.get(theme.name.lower())
