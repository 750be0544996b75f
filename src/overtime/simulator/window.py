"""
Simulator window using pygame.

Draws the run, plays its sound cues and turns keyboard/mouse input into
commands. The frame clock is what advances the game's scheduler.
"""

import pygame
import asyncio
import logging

from overtime.audio.engine import AudioEngine
from overtime.config import Settings
from overtime.core.events import Event, EventType
from overtime.core.state import State
from overtime.game.clock import STAGES
from overtime.game.entities import Box, Entity, EntityKind
from overtime.game.machine import GameStateMachine
from overtime.game.presenter import Presenter
from overtime.game.run_state import FinalStats, RunSnapshot
from overtime.game.sounds import SoundEvent

logger = logging.getLogger(__name__)

# Longest frame fed to the scheduler; a stalled window must not teleport entities
MAX_FRAME_MS = 100

COLORS = {
    "street": (135, 190, 235),
    "subway": (40, 40, 55),
    "ground_street": (90, 90, 90),
    "ground_subway": (70, 60, 50),
    "player": (240, 200, 120),
    "player_glow": (255, 255, 160),
    "text": (240, 240, 250),
    "panel": (20, 20, 30),
    EntityKind.OBSTACLE: (220, 80, 60),
    EntityKind.MOON: (250, 230, 120),
    EntityKind.COFFEE: (150, 100, 60),
    EntityKind.LAPTOP: (120, 180, 255),
    EntityKind.JASMINE: (255, 140, 200),
}

GLYPHS = {
    "barrier": "#",
    "stop_sign": "X",
    "warning": "!",
    "siren": "*",
    EntityKind.MOON: "C",
    EntityKind.COFFEE: "c",
    EntityKind.LAPTOP: "L",
    EntityKind.JASMINE: "J",
}


class SimulatorWindow(Presenter):
    """
    Desktop window for playing a run.

    Keyboard Mapping:
        SPACE / left click: Jump
        ENTER: Start / restart
        M: Mute
        L: Toggle log panel
        ESC: Exit
    """

    BANNER_MS = 2000

    def __init__(
        self,
        settings: Settings,
        machine: GameStateMachine,
        audio: AudioEngine | None = None,
    ) -> None:
        super().__init__()
        self.settings = settings
        self.config = settings.simulator
        self.machine = machine
        self.event_bus = machine.event_bus
        self.audio = audio

        self._screen: pygame.Surface | None = None
        self._clock: pygame.time.Clock | None = None
        self._font: pygame.font.Font | None = None
        self._big_font: pygame.font.Font | None = None
        self._running = False
        self._frame_count = 0

        # Latest state pushed by the game
        self._snapshot: RunSnapshot = machine.snapshot()
        self._backdrop = "street"
        self._banner: str | None = None
        self._banner_until = 0.0
        self._office_prompt: str | None = None
        self._final: FinalStats | None = None
        self._invulnerable = False
        self._glowing = False

        # Log viewer
        self._show_log = False
        self._log_buffer: list[str] = []
        self._max_log_lines = 12
        self._setup_log_capture()

        self.attach(self.event_bus)
        logger.info("SimulatorWindow created")

    def _setup_log_capture(self) -> None:
        """Setup log capturing for the log viewer."""
        class SimulatorLogHandler(logging.Handler):
            def __init__(self, window: 'SimulatorWindow'):
                super().__init__()
                self.window = window

            def emit(self, record):
                msg = self.format(record)
                self.window._log_buffer.append(msg)
                if len(self.window._log_buffer) > self.window._max_log_lines * 2:
                    self.window._log_buffer = self.window._log_buffer[-self.window._max_log_lines:]

        handler = SimulatorLogHandler(self)
        handler.setLevel(logging.INFO)
        handler.setFormatter(logging.Formatter('%(levelname).1s %(name)s: %(message)s'))
        logging.getLogger().addHandler(handler)
        self._log_handler = handler

    # ----- Presenter hooks -----

    def on_display_update(self, snapshot: RunSnapshot) -> None:
        self._snapshot = snapshot

    def on_stage_changed(self, stage: int, label: str) -> None:
        self._backdrop = STAGES[stage].backdrop
        if stage > 1:
            self._show_banner(label)

    def on_office_reached(self, prompt: str) -> None:
        self._office_prompt = prompt

    def on_state_changed(self, old: str, new: str) -> None:
        if new != State.OFFICE_REACHED.name:
            self._office_prompt = None
        if new == State.OVERTIME.name:
            self._show_banner("OVERTIME!")
        if new == State.RUNNING.name:
            self._final = None

    def on_player_changed(self, jumping: bool, invulnerable: bool, glowing: bool) -> None:
        self._invulnerable = invulnerable
        self._glowing = glowing

    def on_sound_event(self, sound: SoundEvent) -> None:
        if self.audio is not None:
            self.audio.play(sound)

    def on_run_ended(self, stats: FinalStats, was_overtime: bool) -> None:
        self._final = stats

    def _show_banner(self, text: str) -> None:
        self._banner = text
        self._banner_until = pygame.time.get_ticks() + self.BANNER_MS

    # ----- Setup -----

    def _init_pygame(self) -> None:
        """Initialize pygame and create window."""
        pygame.init()
        pygame.display.set_caption(self.config.title)

        flags = pygame.DOUBLEBUF
        if self.config.fullscreen:
            flags |= pygame.FULLSCREEN

        self._screen = pygame.display.set_mode((self.config.width, self.config.height), flags)
        self._clock = pygame.time.Clock()

        pygame.font.init()
        self._font = pygame.font.SysFont(None, 24)
        self._big_font = pygame.font.SysFont(None, 48)

        logger.info(f"Pygame initialized: {self.config.width}x{self.config.height}")

    # ----- Input -----

    def _handle_events(self) -> None:
        """Process pygame events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self._running = False

            elif event.type == pygame.KEYDOWN:
                self._handle_keydown(event)

            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                self.machine.jump_command()

    def _handle_keydown(self, event: pygame.event.Event) -> None:
        key = event.key

        if key == pygame.K_ESCAPE:
            self._running = False
        elif key == pygame.K_SPACE:
            self.machine.jump_command()
        elif key == pygame.K_RETURN:
            if self.machine.state is State.IDLE:
                self.machine.start()
            else:
                self.machine.restart()
        elif key == pygame.K_l:
            self._show_log = not self._show_log
        elif key == pygame.K_m and self.audio is not None:
            self.audio.set_muted(not self.audio.muted)

    # ----- Rendering -----

    def _to_screen(self, box: Box) -> pygame.Rect:
        """Map a playfield box (y up) onto the window (y down)."""
        g = self.settings.geometry
        scale = min(self.config.width / g.viewport_width, self.config.height / g.viewport_height)
        ox = (self.config.width - g.viewport_width * scale) / 2
        oy = (self.config.height - g.viewport_height * scale) / 2
        return pygame.Rect(
            int(ox + box.left * scale),
            int(oy + (g.viewport_height - box.top) * scale),
            max(1, int(box.width * scale)),
            max(1, int(box.height * scale)),
        )

    def _render(self) -> None:
        assert self._screen is not None
        g = self.settings.geometry
        self._screen.fill(COLORS[self._backdrop])

        ground = self._to_screen(Box(0, 0, g.viewport_width, g.ground_y))
        self._screen.fill(COLORS[f"ground_{self._backdrop}"], ground)

        now = self.machine.scheduler.now
        for entity in self.machine.entities:
            self._render_entity(entity, now)

        self._render_player()
        self._render_hud()
        self._render_overlays()
        if self._show_log:
            self._render_log_panel()

        pygame.display.flip()

    def _render_entity(self, entity: Entity, now: float) -> None:
        rect = self._to_screen(entity.box_at(now))
        color = COLORS[entity.kind]
        if entity.kind is EntityKind.OBSTACLE:
            pygame.draw.rect(self._screen, color, rect)
            glyph = GLYPHS.get(entity.variant, "?")
        else:
            pygame.draw.ellipse(self._screen, color, rect)
            glyph = GLYPHS[entity.kind]
        self._blit_center(self._font, glyph, rect.center, (10, 10, 10))

    def _render_player(self) -> None:
        rect = self._to_screen(self.machine.player.box)
        color = COLORS["player_glow"] if self._glowing else COLORS["player"]
        if self._invulnerable:
            # Half opacity while recovering from a hit
            surface = pygame.Surface(rect.size, pygame.SRCALPHA)
            surface.fill((*color, 128))
            self._screen.blit(surface, rect.topleft)
        else:
            pygame.draw.rect(self._screen, color, rect, border_radius=6)

    def _render_hud(self) -> None:
        s = self._snapshot
        hud = (
            f"Moons {s.moons}   Coffee {s.coffee_count}   Laptops {s.laptop_count}   "
            f"Lives {s.lives}   Time {s.elapsed_seconds}s   Stage {s.stage}"
        )
        if s.overtime_active:
            hud += "   OVERTIME"
        self._screen.blit(self._font.render(hud, True, COLORS["text"]), (12, 10))

    def _render_overlays(self) -> None:
        center = (self.config.width // 2, self.config.height // 2)

        if self._banner and pygame.time.get_ticks() < self._banner_until:
            self._blit_center(self._big_font, self._banner, (center[0], 80), COLORS["text"])

        state = self.machine.state
        if state is State.IDLE:
            self._panel(["OVERTIME RUNNER", "ENTER to start, SPACE to jump"])
        elif state is State.OFFICE_REACHED and self._office_prompt:
            self._panel(["You reached the office!", self._office_prompt])
        elif state is State.ENDED and self._final is not None:
            f = self._final
            title = "Overtime Ended!" if f.was_overtime else "Mission Complete!"
            self._panel([
                title,
                f"Moons {f.moons}  Coffee {f.coffee_count}  Laptops {f.laptop_count}",
                f"Time {f.elapsed_seconds}s",
                "ENTER to play again",
            ])

    def _panel(self, lines: list[str]) -> None:
        w, h = self.config.width * 2 // 3, 60 + 40 * len(lines)
        rect = pygame.Rect((self.config.width - w) // 2, (self.config.height - h) // 2, w, h)
        panel = pygame.Surface(rect.size, pygame.SRCALPHA)
        panel.fill((*COLORS["panel"], 200))
        self._screen.blit(panel, rect.topleft)
        for i, line in enumerate(lines):
            font = self._big_font if i == 0 else self._font
            self._blit_center(font, line, (rect.centerx, rect.top + 40 + i * 40), COLORS["text"])

    def _render_log_panel(self) -> None:
        lines = self._log_buffer[-self._max_log_lines:]
        y = self.config.height - 18 * (len(lines) + 1)
        for line in lines:
            self._screen.blit(self._font.render(line[:110], True, COLORS["text"]), (12, y))
            y += 18

    def _blit_center(self, font: pygame.font.Font, text: str, pos: tuple[int, int], color) -> None:
        surface = font.render(text, True, color)
        self._screen.blit(surface, surface.get_rect(center=pos))

    # ----- Main loop -----

    async def run(self) -> None:
        """Main simulator loop."""
        self._init_pygame()
        self._running = True

        logger.info("Simulator started")

        while self._running:
            self._handle_events()

            if self._clock:
                delta_ms = min(self._clock.get_time(), MAX_FRAME_MS)
                self.machine.scheduler.advance(delta_ms)

            await self.event_bus.process_queue()

            self._render()

            if self._clock:
                self._clock.tick(self.config.fps)

            self._frame_count += 1

            # Yield to other tasks
            await asyncio.sleep(0)

        self._cleanup()

    def _cleanup(self) -> None:
        self.event_bus.emit(Event(EventType.SHUTDOWN, data={"frames": self._frame_count}, source="simulator"))
        self.detach()
        logging.getLogger().removeHandler(self._log_handler)
        if self.audio is not None:
            self.audio.cleanup()
        pygame.quit()
        logger.info("Simulator closed")

    def stop(self) -> None:
        """Stop the simulator."""
        self._running = False
