import logging
import sys

import easygui
import numpy as np
import pygame

from pathlib import Path
from typing import Optional

from chippy.config import Config
from chippy.constants import SCREEN_HEIGHT, SCREEN_WIDTH
from chippy.errors import Chip8Error
from chippy.scheduler import Scheduler
from chippy.state import MachineState

logger = logging.getLogger(__name__)

SCALED_SCREEN_WIDTH = 800
SCALED_SCREEN_HEIGHT = 400
FRAMES_PER_SECOND = 60
SOUND_FREQUENCY = 44100
SOUND_BUFFER = 4096
TONE_HZ = 550
GAMES_PATH = str(Path.cwd().joinpath("*.ch8"))
GAME_FILE_TYPES = [["*.ch8", "*.chip8", "CHIP-8"]]

COLOUR_PALETTE = [(0, 0, 0), (0, 255, 0)]

# Original layout:
# 1 2 3 C
# 4 5 6 D
# 7 8 9 E
# A 0 B F
KEY_LOOKUP = {
    pygame.K_1: 1,
    pygame.K_q: 4,
    pygame.K_a: 7,
    pygame.K_z: 10,
    pygame.K_2: 2,
    pygame.K_w: 5,
    pygame.K_s: 8,
    pygame.K_x: 0,
    pygame.K_3: 3,
    pygame.K_e: 6,
    pygame.K_d: 9,
    pygame.K_c: 11,
    pygame.K_4: 12,
    pygame.K_r: 13,
    pygame.K_f: 14,
    pygame.K_v: 15,
}


def make_tone_wave(frequency: int = SOUND_FREQUENCY, tone: int = TONE_HZ, amplitude: int = SOUND_BUFFER) -> np.ndarray:
    """
    Build one second of a sine wave at the given tone.
    :return: The samples, ready for pygame.sndarray.
    """
    length = frequency / tone
    omega = np.pi * 2 / length
    x_values = np.arange(int(length)) * omega
    one_cycle = amplitude * np.sin(x_values)
    return np.resize(one_cycle, (frequency,)).astype(np.int16)


def frame_to_surface_array(frame: np.ndarray) -> np.ndarray:
    """
    Turn a row-major frame buffer into the column-major layout pygame surfaces use.
    """
    return frame.reshape((SCREEN_HEIGHT, SCREEN_WIDTH)).T


class Tone:
    """
    Plays a continuous tone while enabled; this is the audio side of the sound timer.
    """
    def __init__(self, sound):
        self.sound = sound
        self.playing = False

    @classmethod
    def create(cls) -> "Tone":
        return cls(pygame.sndarray.make_sound(make_tone_wave()))

    def set_enabled(self, status: bool) -> None:
        if status and not self.playing:
            self.sound.play(-1)
            self.playing = True
            logger.debug("Starting sound.")
        elif not status and self.playing:
            self.sound.stop()
            self.playing = False
            logger.debug("Stopping sound.")


class Display:
    """
    Scaled window showing the frame buffer.
    """
    def __init__(self, screen: pygame.Surface):
        self.screen = screen
        self.inter_screen = pygame.Surface((SCREEN_WIDTH, SCREEN_HEIGHT), 0, 8)
        self.inter_screen.set_palette(COLOUR_PALETTE)

    @classmethod
    def create(cls) -> "Display":
        pygame.display.set_caption("ChipPy")
        screen = pygame.display.set_mode((SCALED_SCREEN_WIDTH, SCALED_SCREEN_HEIGHT), 0, 8)
        screen.set_palette(COLOUR_PALETTE)
        return cls(screen)

    def draw(self, frame: np.ndarray) -> None:
        pygame.surfarray.blit_array(self.inter_screen, frame_to_surface_array(frame))
        pygame.transform.scale(self.inter_screen, (SCALED_SCREEN_WIDTH, SCALED_SCREEN_HEIGHT), self.screen)
        pygame.display.flip()


class Frontend:
    """
    Wires a machine to a pygame window, the speakers and the keyboard.
    """
    def __init__(self, config: Optional[Config] = None):
        pygame.mixer.init(SOUND_FREQUENCY, -16, 1, SOUND_BUFFER)
        pygame.init()
        pygame.display.init()

        self.state = MachineState(config)
        self.display = Display.create()
        self.tone = Tone.create()
        self.scheduler = Scheduler(self.state, audio=self.tone.set_enabled, on_error=self.report_error)
        self.clock = pygame.time.Clock()
        self.selecting_game = False
        self.error: Optional[Chip8Error] = None

    def report_error(self, error: Chip8Error) -> None:
        """
        Remember the error which halted the program; it is shown from the event loop thread.
        """
        self.error = error

    def load_game(self, path: Optional[str] = None) -> bool:
        """
        Stop any currently running game, load the selected game into memory, and start it up.
        :param path: The game to load, a file picker is shown if not provided.
        :return: True if a game was started.
        """
        self.scheduler.stop()

        if path is None:
            self.selecting_game = True
            path = easygui.fileopenbox(title="Select a Game", default=GAMES_PATH, filetypes=GAME_FILE_TYPES)
            self.selecting_game = False

        if not path:
            easygui.msgbox("Pick a game to play!  Press the L key to re-open the game picker.", "No Game Selected")
            return False

        game = Path(path)
        if not game.exists():
            easygui.msgbox(f"Game could not be loaded as the path does not exist!  Path: {game}.", "Game Not Found")
            return False

        with self.scheduler.lock:
            self.state.reset()
            try:
                self.state.load_program_file(game)
            except Chip8Error as error:
                easygui.msgbox(str(error), "Game Not Loaded")
                return False

        pygame.display.set_caption(game.stem)
        self.error = None
        self.scheduler.start()
        return True

    def refresh_display(self) -> bool:
        """
        Redraw the window if the machine has a new frame.  The lock is only held while taking the frame.
        :return: True if the window was redrawn.
        """
        with self.scheduler.lock:
            frame = self.state.get_display_buffer()
        if frame is None:
            return False

        self.display.draw(frame)
        return True

    def handle_key(self, key: int, pressed: bool) -> None:
        hex_key = KEY_LOOKUP.get(key)
        if hex_key is None:
            return

        with self.scheduler.lock:
            self.state.update_key_state(hex_key, pressed)

    def event_loop(self, path: Optional[str] = None) -> None:
        """
        Loop which handles all events and spawns the first game picker to get started.
        """
        self.load_game(path)

        while True:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    self.scheduler.stop()
                    pygame.quit()
                    sys.exit(0)
                elif event.type == pygame.KEYDOWN or event.type == pygame.KEYUP:
                    pressed = event.type == pygame.KEYDOWN

                    if pressed and event.key == pygame.K_l and not self.selecting_game:
                        self.load_game()
                        continue

                    self.handle_key(event.key, pressed)

            if self.error is not None:
                error, self.error = self.error, None
                easygui.msgbox(f"The game stopped: {error}.  Press the L key to load another game.", "Game Halted")

            self.refresh_display()
            self.clock.tick(FRAMES_PER_SECOND)
