import queue
import time

import pygame

from ..game.scheduler import SchedulerState
from ..logger import get_logger
from ..note_types import CalibrationState, NoteState
from ..note_utils import get_note_name

# Get logger for this module
logger = get_logger(__name__)

HEADER_HEIGHT = 80
NOTE_WIDTH = 36
NOTE_HEIGHT = 24


class PygameUI:
    """Pygame-based UI for Pitchfall"""

    def __init__(self, width=1024, height=768, frame_rate=60):
        """Initialize the Pygame UI"""
        self.screen = None
        self.width = width
        self.height = height
        self.frame_rate = frame_rate
        self.bg_color = (20, 20, 30)
        self.text_color = (255, 255, 0)
        self.secondary_color = (180, 255, 180)
        self.error_color = (255, 90, 60)
        self.deck_color = (0, 122, 255)
        self.note_color = (255, 200, 0)
        self.at_deck_color = (255, 120, 0)
        self.lane_color = (45, 45, 60)
        self.initialized = False
        self.clock = None

        # Fonts
        self.title_font = None
        self.medium_font = None
        self.small_font = None

        logger.debug("Initializing PygameUI")

    def init_screen(self):
        """Initialize the Pygame screen and resources"""
        try:
            pygame.init()
            self.screen = pygame.display.set_mode((self.width, self.height))
            pygame.display.set_caption("Pitchfall")

            self.title_font = pygame.font.SysFont("Arial", 56, bold=True)
            self.medium_font = pygame.font.SysFont("Arial", 32)
            self.small_font = pygame.font.SysFont("Arial", 18)

            self.clock = pygame.time.Clock()
            self.initialized = True
            logger.info("Pygame UI initialized successfully")
            return self.screen

        except pygame.error as e:
            logger.error(f"Failed to initialize Pygame: {e}")
            self.cleanup()
            raise

    def draw_text(self, text, font, color, center):
        surface = font.render(text, True, color)
        rect = surface.get_rect(center=center)
        self.screen.blit(surface, rect)

    def draw_noise_measurement(self):
        self.draw_text("Pitchfall", self.title_font, self.text_color, (self.width / 2, 150))
        self.draw_text(
            "Measuring background noise... please stay quiet.",
            self.medium_font,
            self.secondary_color,
            (self.width / 2, self.height / 2),
        )

    def draw_calibration(self, progress):
        """Draw the calibration hint and a progress bar."""
        self.draw_text("Calibration", self.title_font, self.text_color, (self.width / 2, 150))

        color = self.error_color if progress.issue else self.secondary_color
        self.draw_text(progress.hint, self.medium_font, color, (self.width / 2, self.height / 2))

        bar_width = self.width * 0.6
        bar_x = (self.width - bar_width) / 2
        bar_y = self.height / 2 + 60
        pygame.draw.rect(self.screen, self.lane_color, (bar_x, bar_y, bar_width, 24))
        pygame.draw.rect(
            self.screen,
            self.deck_color,
            (bar_x, bar_y, bar_width * progress.fraction, 24),
        )

        if progress.state is CalibrationState.ERROR:
            self.draw_text(
                "Press R to start calibration again",
                self.small_font,
                (200, 200, 200),
                (self.width / 2, bar_y + 60),
            )

    def draw_play_area(self, engine):
        """Draw lanes, the deck line, falling notes and feedback."""
        instrument = engine.instrument
        scheduler = engine.scheduler

        # Lanes with the note each position expects
        for position_id in instrument.positions():
            x = instrument.position_of(position_id)
            pygame.draw.line(
                self.screen,
                self.lane_color,
                (x, HEADER_HEIGHT),
                (x, HEADER_HEIGHT + scheduler.play_area_extent),
            )
            label = get_note_name(instrument.expected_frequency(position_id) or 0)
            surface = self.small_font.render(label, True, (200, 200, 200))
            self.screen.blit(
                surface,
                surface.get_rect(midtop=(x, HEADER_HEIGHT + scheduler.play_area_extent + 8)),
            )

        deck_y = HEADER_HEIGHT + instrument.deck_reference_position()
        pygame.draw.line(self.screen, self.deck_color, (0, deck_y), (self.width, deck_y), 3)

        for note in scheduler.active_notes:
            color = self.at_deck_color if note.state is NoteState.AT_DECK else self.note_color
            # current_offset is the leading (bottom) edge
            rect = pygame.Rect(0, 0, NOTE_WIDTH, NOTE_HEIGHT)
            rect.midbottom = (note.position or 0, HEADER_HEIGHT + note.current_offset)
            pygame.draw.rect(self.screen, color, rect, border_radius=4)

        # Header
        pygame.draw.rect(self.screen, (30, 30, 40), pygame.Rect(0, 0, self.width, HEADER_HEIGHT))
        if scheduler.song is not None:
            surface = self.medium_font.render(scheduler.song.title, True, (200, 200, 255))
            self.screen.blit(surface, surface.get_rect(midleft=(20, HEADER_HEIGHT / 2)))
        if scheduler.feedback:
            surface = self.medium_font.render(scheduler.feedback, True, self.secondary_color)
            self.screen.blit(
                surface, surface.get_rect(midright=(self.width - 20, HEADER_HEIGHT / 2))
            )

        if scheduler.state is SchedulerState.FINISHED:
            self.draw_text(
                "Press SPACE to play again",
                self.small_font,
                (200, 200, 200),
                (self.width / 2, self.height - 20),
            )

    def update_display(self, engine):
        """Redraw the whole screen for the engine's current state."""
        if not self.initialized or not self.screen:
            return

        self.screen.fill(self.bg_color)
        if engine.voicing_threshold is None:
            self.draw_noise_measurement()
        elif not engine.instrument.is_ready():
            self.draw_calibration(engine.calibration.progress)
        else:
            self.draw_play_area(engine)
        pygame.display.flip()

    def drain_readings(self, readings, engine):
        """Feed queued readings from the audio thread into the engine."""
        try:
            while True:
                frequency, amplitude, timestamp = readings.get_nowait()
                engine.push_pitch(frequency, amplitude, timestamp)
        except queue.Empty:
            pass

    def run(self, engine, pitch_input, song=None):
        """Run the frame loop until the window is closed.

        Args:
            engine: PitchEngine to drive
            pitch_input: Source of pitch readings (started and stopped here)
            song: Song to play once the instrument is ready
        """
        if not self.initialized:
            self.init_screen()

        readings = queue.Queue()
        if not pitch_input.start(lambda f, a, t: readings.put((f, a, t))):
            logger.error("Pitch input failed to start")
            self.cleanup()
            return

        if song is not None:
            engine.start_song(song)

        logger.info("Starting frame loop")
        running = True
        try:
            while running:
                for event in pygame.event.get():
                    if event.type == pygame.QUIT:
                        running = False
                    elif event.type == pygame.KEYDOWN:
                        if event.key == pygame.K_ESCAPE:
                            running = False
                        elif event.key == pygame.K_r:
                            engine.recalibrate()
                            if song is not None:
                                engine.start_song(song)
                        elif event.key == pygame.K_SPACE and song is not None:
                            if engine.scheduler.state is SchedulerState.FINISHED:
                                engine.start_song(song)

                self.drain_readings(readings, engine)
                engine.tick(time.monotonic())
                self.update_display(engine)
                self.clock.tick(self.frame_rate)
        finally:
            logger.info("Frame loop ended")
            pitch_input.stop()
            self.cleanup()

    def cleanup(self):
        """Clean up Pygame resources"""
        if self.initialized:
            pygame.quit()
            self.initialized = False
            logger.info("Pygame resources cleaned up")
