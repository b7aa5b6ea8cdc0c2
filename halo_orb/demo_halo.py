"""
Halo Orb Demo

Renders a short sequence of orb frames to PNG files, optionally cycling
through the theme catalog with smooth transitions.

Usage:
    python -m halo_orb.demo_halo --frames 120 --theme covenant
    python -m halo_orb.demo_halo --cycle-themes --output /tmp/orb_frames
"""

import argparse
import sys
import time
from pathlib import Path
from typing import Optional, Sequence

from .config import OrbConfig, load_orb_config, load_theme_catalog
from .halo import create_halo_orb
from .shell import OrbRenderer, render_halo, save_frame
from .themes import SOLDIER_THEMES, InvalidConfig


def render_demo(
    output_dir: str,
    frames: int = 120,
    fps: int = 60,
    width: int = 800,
    height: int = 600,
    theme_name: str = 'spartan',
    cycle_themes: bool = False,
    seed: Optional[int] = None,
    config_path: Optional[str] = None,
    verbose: bool = True,
    enable_timing: bool = False
) -> int:
    """Render orb frames to numbered PNG files

    When cycling, the orb blends into the next catalog theme every
    ``frames / len(catalog)`` frames over a quarter of that span.

    Args:
        output_dir: Directory receiving frame_0000.png, frame_0001.png, ...
        frames: Number of frames to render
        fps: Simulated frame rate (dt = 1 / fps)
        width: Frame width in pixels
        height: Frame height in pixels
        theme_name: Starting catalog theme
        cycle_themes: Transition through every catalog theme
        seed: Random seed for a reproducible orb
        config_path: YAML file with ``orb:`` and ``themes:`` sections
        verbose: Print progress information
        enable_timing: Print per-pass GPU timings at the end

    Returns:
        Number of frames written

    Raises:
        InvalidConfig: for a bad config file or unknown theme
    """
    if frames <= 0 or fps <= 0:
        raise InvalidConfig(f"frames and fps must be positive, got {frames} and {fps}")

    if config_path:
        config = load_orb_config(config_path)
        catalog = load_theme_catalog(config_path)
    else:
        config = OrbConfig()
        catalog = SOLDIER_THEMES

    halo = create_halo_orb(theme_name, config=config, seed=seed, catalog=catalog)

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    dt = 1.0 / fps

    theme_names = list(catalog)
    segment = max(1, frames // len(theme_names))
    current = theme_names.index(theme_name.lower()) if theme_name.lower() in theme_names else 0

    if verbose:
        print("=" * 60)
        print("Rendering Halo Orb")
        print("=" * 60)
        print(f"Theme: {halo.theme.name}")
        print(f"Output: {output_dir}")
        print(f"Resolution: {width}x{height} @ {fps} FPS")
        print(f"Particles: {config.particle_count}, Rings: {config.ring_count}")
        print()
        print("Initializing GPU context...")

    start_time = time.time()

    with OrbRenderer(width, height, config=config, enable_timing=enable_timing) as renderer:
        for frame in range(frames):
            if cycle_themes and frame > 0 and frame % segment == 0:
                current = (current + 1) % len(theme_names)
                target = catalog[theme_names[current]]
                halo.transition_to(target, duration=segment * dt * 0.25)
                if verbose:
                    print(f"  → {target.name}")

            halo.update(dt)
            render_halo(renderer, halo)
            save_frame(renderer, str(output_dir / f"frame_{frame:04d}.png"))

            if verbose and (frame + 1) % fps == 0:
                print(f"  {frame + 1}/{frames} frames")

        if enable_timing:
            renderer.print_timing_summary()

    if verbose:
        elapsed = time.time() - start_time
        render_fps = frames / elapsed if elapsed > 0 else 0.0
        print(f"✓ {frames} frames in {elapsed:.2f}s ({render_fps:.1f} FPS)")

    return frames


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description='Render an animated Halo-style energy orb to PNG frames',
        epilog="""
Examples:
  halo-orb-demo                          # 120 Spartan frames in ./orb_frames
  halo-orb-demo --theme flood --fps 30   # Flood theme at 30 FPS
  halo-orb-demo --cycle-themes           # Blend through every theme
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument('--frames', type=int, default=120,
                        help='Number of frames to render (default: 120)')
    parser.add_argument('--fps', type=int, default=60,
                        help='Frames per second (default: 60)')
    parser.add_argument('--width', type=int, default=800,
                        help='Frame width (default: 800)')
    parser.add_argument('--height', type=int, default=600,
                        help='Frame height (default: 600)')
    parser.add_argument('--theme', default='spartan',
                        help='Starting theme (default: spartan)')
    parser.add_argument('--cycle-themes', action='store_true',
                        help='Transition through every theme in the catalog')
    parser.add_argument('--seed', type=int, default=None,
                        help='Random seed for a reproducible orb')
    parser.add_argument('--config', default=None,
                        help='YAML config with orb: and themes: sections')
    parser.add_argument('--output', default='orb_frames',
                        help='Output directory for PNG frames (default: orb_frames)')
    parser.add_argument('--timing', action='store_true',
                        help='Print per-pass render timings')
    parser.add_argument('--quiet', action='store_true',
                        help='Suppress progress output')

    args = parser.parse_args(argv)

    try:
        render_demo(
            output_dir=args.output,
            frames=args.frames,
            fps=args.fps,
            width=args.width,
            height=args.height,
            theme_name=args.theme,
            cycle_themes=args.cycle_themes,
            seed=args.seed,
            config_path=args.config,
            verbose=not args.quiet,
            enable_timing=args.timing
        )
    except InvalidConfig as e:
        print(f"ERROR: {e}")
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
