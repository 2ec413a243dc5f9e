#!/usr/bin/env python3

"""
Web Pet - autonomous companion simulation

Usage:
    python -m web_pet [--sprites sheet.png] [--config pet.json] [--state state.json]
    python -m web_pet --headless 60      (simulate 60 s without a window)

Controls (window mode):
    Click on pet  - Pet it
    L             - Play
    Space         - Pause / resume
    I             - Toggle info panel
    ESC/Q         - Quit
"""

import argparse
import logging
import sys

from .config import CompanionConfig
from .controller import PetController


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog="web_pet", description="Web Pet companion")
    parser.add_argument("--sprites", help="Spritesheet image (placeholder frames if omitted)")
    parser.add_argument("--config", help="JSON config file")
    parser.add_argument("--state", help="JSON file used to persist the pet")
    parser.add_argument("--seed", type=int, help="Random seed")
    parser.add_argument("--scale", type=int, default=2, help="Sprite upscale factor")
    parser.add_argument("--headless", type=float, metavar="SECONDS",
                        help="Simulate without a window for SECONDS")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def run_headless(controller: PetController, seconds: float):
    """Drive the controller with a synthetic 60 Hz clock and print a summary."""
    # Slightly over 1000/60 so float drift never drops a tick
    step = 17.0
    now = controller.scheduler.last_update
    end = now + seconds * 1000.0
    actions = {}

    while now < end:
        now += step
        if controller.frame(now):
            kind = controller.scheduler.current_action.type.value
            actions[kind] = actions.get(kind, 0) + 1

    status = controller.status()
    print(f"Simulated {seconds:.0f}s")
    print(f"Final action: {status['action']} ({status['frame']})")
    print(f"Position: ({status['position']['x']:.0f}, {status['position']['y']:.0f})")
    for kind, count in sorted(actions.items()):
        print(f"  {kind:6s} {count} ticks")
    for achievement_id, ratio in status["achievements"].items():
        print(f"  {achievement_id:13s} {ratio * 100:5.1f}%")


def main(argv=None):
    args = parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG,
                            format="%(asctime)s %(name)s %(levelname)s %(message)s")

    try:
        config = CompanionConfig.load(args.config) if args.config else CompanionConfig()
        overrides = {}
        if args.seed is not None:
            overrides["seed"] = args.seed
        if args.state:
            overrides["storage_path"] = args.state
        if overrides:
            config = config.updated(overrides)
    except (OSError, TypeError, ValueError) as e:
        print(f"Error: Invalid config: {e}")
        sys.exit(1)

    controller = PetController(config)

    if args.headless is not None:
        run_headless(controller, args.headless)
        controller.shutdown()
        return

    from .animation.sprite_sheet import SpriteSheet
    from .viewer import PetViewer

    sprites = SpriteSheet(args.sprites, scale=args.scale)
    if args.sprites and not sprites.loaded:
        print(f"Warning: Could not load spritesheet '{args.sprites}', using placeholders")

    PetViewer(controller, sprites).run()


if __name__ == "__main__":
    main()
