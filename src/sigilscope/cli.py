"""
CLI entry point for sigilscope.

Usage:
    sigilscope sigil <category> [options]
    sigilscope nebula <attractor> [options]
    sigilscope list
    python -m sigilscope ...
"""

import argparse
import sys
import time
from pathlib import Path

from sigilscope.core.attractor import ATTRACTOR_INFO, AttractorType
from sigilscope.core.dna import PATTERN_PRESETS, PLATFORM_DNA, DNARegistry, get_platform_color
from sigilscope.core.sigil import generate_sigil
from sigilscope.render.encoder import encode_video, save_gif, save_image
from sigilscope.render.nebula import NebulaRenderConfig, NebulaRenderer
from sigilscope.render.sigil import SigilRenderConfig, SigilRenderer

# Map profile to defaults
PROFILES = {
    "low": {"width": 1280, "height": 720, "fps": 30, "quality": "fast"},
    "medium": {"width": 1920, "height": 1080, "fps": 60, "quality": "medium"},
    "high": {"width": 3840, "height": 2160, "fps": 60, "quality": "high"},
}


def _progress_bar(current: int, total: int, width: int = 35):
    """Print a progress bar to stdout."""
    pct = current / max(total, 1) * 100
    filled = int(width * current / max(total, 1))
    bar = "#" * filled + "-" * (width - filled)
    if sys.stdout.isatty():
        sys.stdout.write(f"\r[{bar}] {pct:5.1f}%  frame {current}/{total}")
        sys.stdout.flush()
        if current >= total:
            sys.stdout.write("\n")
    else:
        if current % max(1, total // 20) == 0 or current >= total:
            print(f"{pct:5.1f}%  frame {current}/{total}", flush=True)


def _fail(message: str):
    print(f"Error: {message}", file=sys.stderr)
    sys.exit(1)


def _summary(output: Path, started: float, frames: int = 1):
    elapsed = time.time() - started
    size_kb = output.stat().st_size / 1024
    print(f"\nDone! {size_kb:.1f} KB")
    if frames > 1:
        print(f"  Render+encode took {elapsed:.1f}s ({frames / max(elapsed, 0.01):.1f} fps)")
    else:
        print(f"  Took {elapsed:.2f}s")
    print(f"  Output: {output}")


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------

def cmd_sigil(args) -> None:
    registry = None
    color = args.color
    if args.platform:
        registry = DNARegistry.for_platform(args.platform)
        color = color or get_platform_color(args.platform, args.category)

    sigil = generate_sigil(
        args.category,
        instance_id=args.id,
        color=color,
        size=args.size,
        registry=registry,
    )

    label = args.category if not args.id else f"{args.category}:{args.id}"
    print(f"Sigil: {label}")
    print(f"  Pattern: {sigil.dna.pattern.value}, particles: {len(sigil)}")
    print(f"  Color: {sigil.color}")

    config = SigilRenderConfig(
        width=args.size,
        height=args.size,
        background=args.background,
        pulse=args.pulse,
        glitch_level=args.glitch,
    )
    renderer = SigilRenderer(sigil, config)

    output = args.output
    if output is None:
        slug = label.replace(":", "_").replace(" ", "_").lower()
        output = Path(f"{slug}.gif" if args.frames > 1 else f"{slug}.png")

    t0 = time.time()
    if args.frames > 1 or output.suffix.lower() == ".gif":
        frames = max(args.frames, 1)
        save_gif(
            renderer.render_frames(frames),
            output,
            fps=config.fps,
            scale=args.scale,
            progress_callback=_progress_bar,
            total_frames=frames,
        )
        _summary(output, t0, frames)
    else:
        save_image(renderer.render_frame(0), output, scale=args.scale)
        _summary(output, t0)


def cmd_nebula(args) -> None:
    p_cfg = PROFILES[args.profile]
    width = args.width or p_cfg["width"]
    height = args.height or p_cfg["height"]
    fps = args.fps or p_cfg["fps"]
    quality = args.quality or p_cfg["quality"]

    config = NebulaRenderConfig(
        width=width,
        height=height,
        fps=fps,
        attractor=args.attractor,
        particle_count=args.particles,
        core_ratio=args.core_ratio,
        scale=args.scale,
        color=args.color,
        rotation_speed=args.rotation_speed,
        glow_enabled=not args.no_glow,
        vignette_strength=0.0 if args.no_vignette else 0.3,
        glitch_level=args.glitch,
    )

    output = args.output
    if output is None:
        output = Path(f"{config.attractor.value}_nebula.mp4")

    info = ATTRACTOR_INFO[config.attractor]
    print(f"Nebula: {info.name} ({info.character})")
    t0 = time.time()
    renderer = NebulaRenderer(config, seed=args.seed)
    print(f"  Particles: {len(renderer.particles)} ({renderer.particles.core_count} core)")
    print(f"  Cloud took {time.time() - t0:.1f}s")

    t1 = time.time()
    suffix = output.suffix.lower()
    if suffix == ".png":
        print(f"\nRendering frame {args.start} at {width}x{height}")
        save_image(renderer.render_frame(args.start), output)
        _summary(output, t1)
        return

    total_frames = args.frames
    print(f"\nRendering {total_frames} frames at {width}x{height} @ {fps}fps")
    frame_gen = renderer.render_frames(total_frames, start=args.start)

    if suffix == ".gif":
        save_gif(frame_gen, output, fps=fps, progress_callback=_progress_bar,
                 total_frames=total_frames)
    else:
        print(f"  Profile: {args.profile}, Quality: {quality}")
        encode_video(
            frame_iterator=frame_gen,
            output_path=output,
            width=width,
            height=height,
            fps=fps,
            quality=quality,
            total_frames=total_frames,
            progress_callback=_progress_bar,
        )
    _summary(output, t1, total_frames)


def cmd_list(args) -> None:
    print("Pattern presets:")
    for name, dna in PATTERN_PRESETS.items():
        print(
            f"  {name:<14} particles={dna.base_particles:<3} spread={dna.spread:<5} "
            f"glitch={dna.glitch_chance:<5} core={'yes' if dna.has_core else 'no'}"
        )

    print("\nPlatforms:")
    for platform, (table, fallback) in PLATFORM_DNA.items():
        print(f"  {platform:<14} {len(table)} categories, fallback {fallback}")

    print("\nAttractors:")
    for kind, info in ATTRACTOR_INFO.items():
        lo, hi = info.recommended_density
        print(f"  {kind.value:<10} {info.name:<20} {lo}-{hi} particles  {info.use_case}")


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sigilscope",
        description="Deterministic particle sigils and attractor nebulae",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # sigil
    sp = sub.add_parser("sigil", help="Render a category or instance sigil")
    sp.add_argument("category", help="Category/domain name")
    sp.add_argument("--id", default=None, help="Instance id for a per-entity variant")
    sp.add_argument("--size", type=int, default=48, help="Icon size in px (default: 48)")
    sp.add_argument("--color", default=None, help='RGB triplet ("202, 165, 84"), #hex or token')
    sp.add_argument(
        "--platform", default=None, choices=sorted(PLATFORM_DNA),
        help="Use a platform's category mapping and colours",
    )
    sp.add_argument("--scale", type=int, default=1, help="Nearest-neighbour upscale factor")
    sp.add_argument("--background", default=None, help="Background colour (default: transparent)")
    sp.add_argument("--frames", type=int, default=1, help="Animate N frames to a GIF")
    sp.add_argument("--pulse", type=float, default=0.0, help="Breathing depth 0-1")
    sp.add_argument("--glitch", type=int, default=0, choices=range(5), help="Glitch level 0-4")
    sp.add_argument("-o", "--output", type=Path, default=None, help="Output PNG/GIF path")
    sp.set_defaults(func=cmd_sigil)

    # nebula
    np_ = sub.add_parser("nebula", help="Render a volumetric attractor nebula")
    np_.add_argument(
        "attractor", choices=[t.value for t in AttractorType],
        help="Attractor type",
    )
    np_.add_argument("--particles", type=int, default=1000, help="Particle count (default: 1000)")
    np_.add_argument("--core-ratio", type=float, default=0.2, help="Fraction of core particles")
    np_.add_argument("--scale", type=float, default=1.0, help="Cloud radius multiplier")
    np_.add_argument("--color", default="202, 165, 84", help="Particle colour")
    np_.add_argument(
        "--rotation-speed", type=float, default=0.0003,
        help="Rotation per frame in radians (default: 0.0003)",
    )
    np_.add_argument("--seed", type=int, default=None, help="Seed (default: from attractor name)")
    np_.add_argument("--frames", type=int, default=300, help="Frame count (default: 300)")
    np_.add_argument("--start", type=int, default=0, help="First frame index")
    np_.add_argument(
        "-p", "--profile", type=str, default="medium",
        choices=["low", "medium", "high"],
        help="Target profile (low: 720p 30fps, medium: 1080p 60fps, high: 4k 60fps)",
    )
    np_.add_argument("--width", type=int, default=None, help="Video width (overrides profile)")
    np_.add_argument("--height", type=int, default=None, help="Video height (overrides profile)")
    np_.add_argument("-f", "--fps", type=int, default=None, help="Frames per second (overrides profile)")
    np_.add_argument(
        "-q", "--quality", type=str, default=None,
        choices=["high", "medium", "fast"],
        help="Encoding quality (defaults to profile quality)",
    )
    np_.add_argument("--no-glow", action="store_true", help="Disable glow")
    np_.add_argument("--no-vignette", action="store_true", help="Disable vignette")
    np_.add_argument("--glitch", type=int, default=0, choices=range(5), help="Glitch level 0-4")
    np_.add_argument("-o", "--output", type=Path, default=None, help="Output MP4/GIF/PNG path")
    np_.set_defaults(func=cmd_nebula)

    # list
    lp = sub.add_parser("list", help="List pattern presets and attractors")
    lp.set_defaults(func=cmd_list)

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    if getattr(args, "frames", 1) < 1:
        _fail(f"--frames must be at least 1, got {args.frames}")

    try:
        args.func(args)
    except (ValueError, RuntimeError) as exc:
        _fail(str(exc))


if __name__ == "__main__":
    main()
