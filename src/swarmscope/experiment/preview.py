"""
Live preview window for the particle swarm.

Usage:
    swarmscope-preview "https://example.com" [--width 960 --height 540]
    swarmscope-preview "some text" --mode text

Keys:
    1-4     jump to wander / assemble / hold / disperse
    R       rebuild the target shape
    Esc, Q  quit
"""

import argparse
import sys
from pathlib import Path

import numpy as np
import pygame

from swarmscope.experiment.bitmap import QR_LEVELS, BitmapError, make_source
from swarmscope.experiment.config import SwarmConfig, load_config
from swarmscope.experiment.phases import Phase
from swarmscope.experiment.renderer import RenderConfig, SwarmRenderer

PHASE_KEYS = {
    pygame.K_1: Phase.WANDER,
    pygame.K_2: Phase.ASSEMBLE,
    pygame.K_3: Phase.HOLD,
    pygame.K_4: Phase.DISPERSE,
}


def phase_for_key(key: int) -> Phase | None:
    return PHASE_KEYS.get(key)


def frame_to_surface(frame: np.ndarray) -> pygame.Surface:
    """(H, W, 3) uint8 frame to a pygame Surface (pygame is column-major)."""
    return pygame.surfarray.make_surface(np.transpose(frame, (1, 0, 2)))


def rebuild(renderer: SwarmRenderer, text: str) -> bool:
    """Rebuild the target shape; on failure report it and keep the current swarm."""
    try:
        return renderer.load_text(text)
    except BitmapError as e:
        print(f"Rebuild failed: {e}", file=sys.stderr)
        return False


def run(renderer: SwarmRenderer, text: str, max_fps: int = 60):
    pygame.init()
    screen = pygame.display.set_mode((renderer.cfg.width, renderer.cfg.height), pygame.RESIZABLE)
    pygame.display.set_caption("swarmscope")
    clock = pygame.time.Clock()

    running = True
    while running:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.VIDEORESIZE:
                renderer.resize(event.w, event.h)
                screen = pygame.display.set_mode((event.w, event.h), pygame.RESIZABLE)
            elif event.type == pygame.KEYDOWN:
                if event.key in (pygame.K_ESCAPE, pygame.K_q):
                    running = False
                elif event.key == pygame.K_r:
                    rebuild(renderer, text)
                elif phase_for_key(event.key) is not None:
                    renderer.set_phase(phase_for_key(event.key))

        dt = clock.tick(max_fps) / 1000.0
        renderer.update(dt)
        frame = renderer.polisher.apply(renderer.get_raw_field())
        screen.blit(frame_to_surface(frame), (0, 0))
        pygame.display.set_caption(
            f"swarmscope - {renderer.engine.phase.current.value} "
            f"({renderer.engine.count} particles, {clock.get_fps():.0f} fps)"
        )
        pygame.display.flip()

    renderer.dispose()
    pygame.quit()


def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(
        prog="swarmscope-preview",
        description="Live preview of the particle swarm",
    )
    parser.add_argument("text", nargs="?", default="swarmscope", help="Text to assemble")
    parser.add_argument("--image", type=Path, default=None, help="Assemble an image file instead of text")
    parser.add_argument("--mode", type=str, default="qr", choices=["qr", "text"], help="QR code or lettering")
    parser.add_argument("--qr-level", type=str, default="M", choices=list(QR_LEVELS))
    parser.add_argument("--config", type=Path, default=None, help="JSON file of swarm settings")
    parser.add_argument("--width", type=int, default=960)
    parser.add_argument("--height", type=int, default=540)
    parser.add_argument("--fps", type=int, default=60, help="Frame rate cap")
    parser.add_argument("--seed", type=int, default=None)
    args = parser.parse_args(argv)

    swarm_cfg = SwarmConfig()
    if args.config is not None:
        try:
            swarm_cfg = load_config(args.config)
        except (OSError, ValueError) as e:
            print(f"Error: Invalid config {args.config}: {e}", file=sys.stderr)
            sys.exit(1)

    source = make_source(args.mode, image=args.image, qr_level=args.qr_level)
    config = RenderConfig(width=args.width, height=args.height, fps=args.fps)
    renderer = SwarmRenderer(config, swarm_cfg, seed=args.seed, source=source)

    try:
        renderer.load_text(args.text)
    except BitmapError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    print(f"{renderer.engine.count} particles")

    run(renderer, args.text, max_fps=args.fps)


if __name__ == "__main__":
    main()
