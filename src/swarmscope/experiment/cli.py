"""
CLI entry point for the particle swarm renderer.

Usage:
    swarmscope "https://example.com" [options]
    swarmscope "some text" --mode text [options]
    swarmscope --image logo.png [options]
"""

import argparse
import sys
import time
from pathlib import Path

from swarmscope.experiment.bitmap import QR_LEVELS, BitmapError, make_source
from swarmscope.experiment.config import SwarmConfig, load_config
from swarmscope.experiment.encoder import encode_video
from swarmscope.experiment.phases import Phase
from swarmscope.experiment.renderer import RenderConfig, SwarmRenderer
from swarmscope.io.exporter import TrajectoryExporter

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


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="swarmscope",
        description="Render a particle swarm that assembles into a QR code, text or an image",
    )

    parser.add_argument("text", nargs="?", default=None, help="Payload to encode, or the lettering with --mode text")
    parser.add_argument("--image", type=Path, default=None, help="Assemble an image file instead of text")
    parser.add_argument(
        "--mode", type=str, default="qr", choices=["qr", "text"],
        help="Shape to assemble from the text: a QR code (default) or the lettering itself",
    )
    parser.add_argument(
        "--qr-level", type=str, default="M", choices=list(QR_LEVELS),
        help="QR error-correction level (default: M)",
    )
    parser.add_argument(
        "-o", "--output", type=Path, default=None,
        help="Output MP4 path (default: swarm.mp4)",
    )
    parser.add_argument("--config", type=Path, default=None, help="JSON file of swarm settings")

    # Resolution & Profile
    parser.add_argument(
        "-p", "--profile", type=str, default="medium",
        choices=list(PROFILES),
        help="Target profile (low: 720p 30fps, medium: 1080p 60fps, high: 4k 60fps)",
    )
    parser.add_argument("--width", type=int, default=None, help="Video width (overrides profile)")
    parser.add_argument("--height", type=int, default=None, help="Video height (overrides profile)")
    parser.add_argument("-f", "--fps", type=int, default=None, help="Frames per second (overrides profile)")

    # Choreography
    parser.add_argument(
        "-d", "--duration", type=float, default=40.0,
        help="Clip length in seconds (default: 40, about one full cycle)",
    )
    parser.add_argument(
        "--start-phase", type=str, default=None,
        choices=[p.value for p in Phase],
        help="Force the swarm into this phase before the first frame",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed")

    # Post-processing
    parser.add_argument("--no-glow", action="store_true", help="Disable glow")
    parser.add_argument("--aberration", action="store_true", help="Enable chromatic aberration")
    parser.add_argument("--no-vignette", action="store_true", help="Disable vignette")

    # Output extras
    parser.add_argument("--audio", type=Path, default=None, help="Audio file to mux into the clip")
    parser.add_argument(
        "--export-trajectory", type=Path, default=None,
        help="Also write per-frame particle positions as JSON",
    )
    parser.add_argument(
        "-q", "--quality", type=str, default=None,
        choices=["high", "medium", "fast"],
        help="Encoding quality (defaults to profile quality)",
    )
    return parser


def main(argv: list[str] | None = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.text is None and args.image is None:
        parser.error("give some text or --image")
    if args.image is not None and not args.image.exists():
        print(f"Error: Image file not found: {args.image}", file=sys.stderr)
        sys.exit(1)
    if args.audio is not None and not args.audio.exists():
        print(f"Error: Audio file not found: {args.audio}", file=sys.stderr)
        sys.exit(1)

    swarm_cfg = SwarmConfig()
    if args.config is not None:
        if not args.config.exists():
            print(f"Error: Config file not found: {args.config}", file=sys.stderr)
            sys.exit(1)
        try:
            swarm_cfg = load_config(args.config)
        except ValueError as e:
            print(f"Error: Invalid config {args.config}: {e}", file=sys.stderr)
            sys.exit(1)

    p_cfg = PROFILES[args.profile]
    width = args.width or p_cfg["width"]
    height = args.height or p_cfg["height"]
    fps = args.fps or p_cfg["fps"]
    quality = args.quality or p_cfg["quality"]
    output = args.output or Path("swarm.mp4")

    config = RenderConfig(
        width=width,
        height=height,
        fps=fps,
        glow_enabled=not args.no_glow,
        aberration_enabled=args.aberration,
        vignette_strength=0.0 if args.no_vignette else 0.25,
    )
    source = make_source(args.mode, image=args.image, qr_level=args.qr_level)
    renderer = SwarmRenderer(config, swarm_cfg, seed=args.seed, source=source)

    # Step 1: Build the target shape
    label = args.image if args.image is not None else repr(args.text)
    print(f"Building targets from {label}")
    try:
        renderer.load_text(args.text or "")
    except BitmapError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    print(f"  Particles: {renderer.engine.count}")

    if args.start_phase:
        renderer.set_phase(args.start_phase)

    # Step 2: Render
    total_frames = max(1, int(args.duration * fps))
    print(f"\nRendering {total_frames} frames at {width}x{height} @ {fps}fps")

    exporter = TrajectoryExporter() if args.export_trajectory else None

    def frames():
        for frame in renderer.render_frames(total_frames, progress_callback=_progress_bar):
            if exporter is not None:
                exporter.capture(renderer.engine)
            yield frame

    # Step 3: Encode
    t1 = time.time()
    encode_video(
        frame_iterator=frames(),
        output_path=output,
        width=width,
        height=height,
        fps=fps,
        quality=quality,
        audio_path=args.audio,
        duration=args.duration if args.audio is not None else None,
        total_frames=total_frames,
    )
    elapsed = time.time() - t1
    renderer.dispose()

    if exporter is not None:
        path = exporter.export(args.export_trajectory, fps)
        print(f"  Trajectory: {path}")

    file_size_mb = output.stat().st_size / 1024 / 1024
    print(f"\nDone! {file_size_mb:.1f} MB")
    print(f"  Render+encode took {elapsed:.1f}s ({total_frames / max(elapsed, 0.01):.1f} fps)")
    print(f"  Output: {output}")


if __name__ == "__main__":
    main()
