"""
Pygame viewer - a desktop window standing in for the web page

Draws the pet on a plain background and feeds it the same inputs the
browser extension would: display refreshes, pets, play requests and
pause/resume.

Controls:
    Click on pet  - Pet it
    L             - Throw a toy (play)
    Space         - Pause / resume
    I             - Toggle info panel
    ESC/Q         - Quit
"""

import pygame

from .animation.sprite_sheet import SpriteSheet
from .controller import PetController
from .events import AchievementCompleted

# Colors
WHITE = (255, 255, 255)
BLACK = (0, 0, 0)
BACKGROUND = (235, 232, 224)
YELLOW = (255, 255, 0)


class PetViewer:
    """Main viewer application"""

    def __init__(self, controller: PetController, sprites: SpriteSheet):
        pygame.init()

        self.controller = controller
        self.sprites = sprites

        config = controller.config
        self.screen_width = int(config.viewport_width)
        self.screen_height = int(config.viewport_height)
        self.screen = pygame.display.set_mode((self.screen_width, self.screen_height),
                                              pygame.RESIZABLE)
        pygame.display.set_caption("Web Pet")

        self.font = pygame.font.Font(None, 24)
        self.small_font = pygame.font.Font(None, 18)
        self.clock = pygame.time.Clock()
        self.running = True
        self.show_info = True

        # Surfaces converted from PIL frames, keyed by frame id
        self._surfaces = {}

        # Latest achievement banner: (text, shown until ms)
        self.banner = None
        controller.events.subscribe(AchievementCompleted, self._on_achievement)

    def _on_achievement(self, event: AchievementCompleted):
        self.banner = (f"Achievement: {event.name}", pygame.time.get_ticks() + 4000)

    def _surface_for(self, frame_id: str) -> pygame.Surface:
        surface = self._surfaces.get(frame_id)
        if surface is None:
            image = self.sprites.get_frame(frame_id)
            surface = pygame.image.frombytes(image.tobytes(), image.size, "RGBA")
            self._surfaces[frame_id] = surface
        return surface

    def _pet_rect(self) -> pygame.Rect:
        position = self.controller.scheduler.position
        width, height = self.sprites.size
        # Position is the pet's feet: centre-bottom of the sprite
        return pygame.Rect(int(position.x - width / 2), int(position.y - height),
                           width, height)

    def handle_events(self):
        """Process pygame events"""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False

            elif event.type == pygame.VIDEORESIZE:
                self.screen_width, self.screen_height = event.w, event.h
                self.screen = pygame.display.set_mode((self.screen_width, self.screen_height),
                                                      pygame.RESIZABLE)
                self.controller.handle_message({
                    "type": "UPDATE_SETTINGS",
                    "settings": {"viewport_width": event.w, "viewport_height": event.h},
                })

            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                if self._pet_rect().collidepoint(event.pos):
                    self.controller.handle_message({"type": "INTERACT", "interaction": "pet"})

            elif event.type == pygame.KEYDOWN:
                if event.key in (pygame.K_ESCAPE, pygame.K_q):
                    self.running = False
                elif event.key == pygame.K_SPACE:
                    kind = "RESUME" if self.controller.scheduler.paused else "PAUSE"
                    self.controller.handle_message({"type": kind})
                elif event.key == pygame.K_l:
                    self.controller.handle_message({
                        "type": "INTERACT", "interaction": "play", "target": "toy"})
                elif event.key == pygame.K_i:
                    self.show_info = not self.show_info

    def draw_ui(self):
        """Draw UI overlays"""
        if self.show_info:
            status = self.controller.status()
            traits = status["traits"]
            info_lines = [
                f"Action: {status['action']}",
                f"Frame: {status['frame']}",
                f"Playfulness: {traits['playfulness']:.0f}",
                f"Energy: {traits['energyLevel']:.0f}",
                f"Friendliness: {traits['friendliness']:.0f}",
                f"Pets: {self.controller.scheduler.stats.total_pets}",
                f"Paused: {status['paused']}",
                f"FPS: {int(self.clock.get_fps())}",
            ]

            y = 10
            for line in info_lines:
                text = self.small_font.render(line, True, WHITE)
                text_rect = text.get_rect(topleft=(10, y))
                pygame.draw.rect(self.screen, BLACK, text_rect.inflate(8, 4))
                self.screen.blit(text, text_rect)
                y += 25

        if self.banner and pygame.time.get_ticks() < self.banner[1]:
            text = self.font.render(self.banner[0], True, YELLOW)
            text_rect = text.get_rect(midtop=(self.screen_width // 2, 10))
            pygame.draw.rect(self.screen, BLACK, text_rect.inflate(12, 6))
            self.screen.blit(text, text_rect)

        help_line = "Click pet: Pet | L: Play | Space: Pause | I: Info | ESC/Q: Quit"
        text = self.small_font.render(help_line, True, WHITE)
        text_rect = text.get_rect(topleft=(10, self.screen_height - 30))
        pygame.draw.rect(self.screen, BLACK, text_rect.inflate(8, 4))
        self.screen.blit(text, text_rect)

    def draw(self):
        """Draw everything"""
        self.screen.fill(BACKGROUND)
        frame_id = self.controller.scheduler.current_frame()
        self.screen.blit(self._surface_for(frame_id), self._pet_rect())
        self.draw_ui()
        pygame.display.flip()

    def run(self):
        """Main loop"""
        while self.running:
            self.handle_events()
            self.controller.frame()
            self.draw()
            self.clock.tick(60)

        self.controller.shutdown()
        pygame.quit()
