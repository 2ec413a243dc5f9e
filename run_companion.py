#!/usr/bin/env python3
"""
Web Pet - pygame window

Usage:
    python run_companion.py [spritesheet.png] [state.json]

Example:
    python run_companion.py assets/pet.png ~/.web_pet/state.json

Controls:
    Click on pet  - Pet it
    L             - Play
    Space         - Pause / resume
    I             - Toggle info panel
    ESC/Q         - Quit

Requisites:
    pip install pillow pygame
"""

import sys
from pathlib import Path

from web_pet.animation.sprite_sheet import SpriteSheet
from web_pet.config import CompanionConfig
from web_pet.controller import PetController
from web_pet.viewer import PetViewer


def main():
    if len(sys.argv) >= 2:
        sprite_path = sys.argv[1]
    else:
        # Look for a default spritesheet
        default_paths = ["assets/pet.png"]
        sprite_path = None
        for path in default_paths:
            if Path(path).exists():
                sprite_path = path
                break

    if sprite_path and not Path(sprite_path).exists():
        print(f"Warning: Spritesheet not found '{sprite_path}', using placeholders")
        sprite_path = None

    config = CompanionConfig()
    if len(sys.argv) >= 3:
        config = config.updated({"storage_path": str(Path(sys.argv[2]).expanduser())})
        print(f"Persisting pet to {config.storage_path}")

    controller = PetController(config)
    traits = controller.scheduler.personality.base_traits
    print(f"\nPet created: playfulness {traits.playfulness:.0f}, "
          f"energy {traits.energy_level:.0f}, friendliness {traits.friendliness:.0f}")

    PetViewer(controller, SpriteSheet(sprite_path, scale=2)).run()


if __name__ == "__main__":
    main()
