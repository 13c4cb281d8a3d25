import logging
import random

import numpy as np

from pathlib import Path
from typing import List, Optional, Union

from chippy.config import Config
from chippy.constants import (
    ADDRESS_MASK,
    DIGIT_SPRITES,
    GAME_START_ADDRESS,
    GLYPH_START_ADDRESS,
    KEY_COUNT,
    MEMORY_SIZE,
    REGISTER_COUNT,
    SCREEN_HEIGHT,
    SCREEN_WIDTH,
    STACK_SIZE,
    WORD_MASK,
)
from chippy.errors import ProgramTooLargeError, StackOverflowError, StackUnderflowError

logger = logging.getLogger(__name__)


class MachineState:
    """
    Everything a running CHIP-8 program can observe or modify.
    The state holds no behaviour beyond keeping its own invariants; the instruction handlers and the scheduler act on it.
    """
    def __init__(self, config: Optional[Config] = None):
        """
        Constructor.
        :param config: The behavioural toggles to run with, the defaults if not provided.
        """
        self.config = config or Config()
        self.rng = random.Random(self.config.random_seed)

        self.memory = bytearray(MEMORY_SIZE)
        self.registers = bytearray(REGISTER_COUNT)
        self.index_register = 0
        self.program_counter = GAME_START_ADDRESS
        self.call_stack: List[int] = [0] * STACK_SIZE
        self.stack_pointer = 0
        self.frame_buffer = np.zeros(SCREEN_WIDTH * SCREEN_HEIGHT, np.uint8)
        self.redraw_pending = False
        self.delay_timer = 0
        self.sound_timer = 0
        self.key_states: List[bool] = [False] * KEY_COUNT

        self.reset()

    def reset(self) -> None:
        """
        Restore the canonical zero state and load the digit sprites.
        """
        self.memory[:] = bytes(MEMORY_SIZE)
        self.registers[:] = bytes(REGISTER_COUNT)
        self.index_register = 0
        self.program_counter = GAME_START_ADDRESS
        self.call_stack = [0] * STACK_SIZE
        self.stack_pointer = 0
        self.frame_buffer.fill(0)
        self.redraw_pending = False
        self.delay_timer = 0
        self.sound_timer = 0
        self.key_states = [False] * KEY_COUNT

        self.load_digit_sprites()

    def load_digit_sprites(self) -> None:
        """
        Load the sprites for the hexadecimal digits 0-f into memory.
        """
        self.memory[GLYPH_START_ADDRESS:GLYPH_START_ADDRESS + len(DIGIT_SPRITES)] = DIGIT_SPRITES

    def load_program(self, program: bytes) -> None:
        """
        Copy a program image verbatim into memory, starting at the game start address.
        :param program: The raw bytes of the program.
        """
        capacity = MEMORY_SIZE - GAME_START_ADDRESS
        if len(program) > capacity:
            raise ProgramTooLargeError(len(program), capacity)

        self.memory[GAME_START_ADDRESS:GAME_START_ADDRESS + len(program)] = program
        logger.info(f"Loaded a program of {len(program)} bytes at {hex(GAME_START_ADDRESS)}.")

    def load_program_file(self, path: Union[str, Path]) -> None:
        """
        Load the program stored in the given file.
        :param path: The path of the program file.
        """
        path = Path(path)
        logger.debug(f"Loading program at path {path}.")
        with path.open("rb") as file:
            self.load_program(file.read())

    def read_opcode(self, address: Optional[int] = None) -> int:
        """
        Read the big-endian opcode stored at the given address.
        :param address: The address of the high byte, the program counter if not provided.
        :return: The 16 bit opcode.
        """
        if address is None:
            address = self.program_counter
        high = self.memory[address & ADDRESS_MASK]
        low = self.memory[(address + 1) & ADDRESS_MASK]
        return (high << 8) | low

    def push_return_address(self, address: int) -> None:
        """
        Push an address onto the call stack.
        :param address: The address to push.
        """
        if self.stack_pointer >= STACK_SIZE:
            raise StackOverflowError(program_counter=self.program_counter)

        self.call_stack[self.stack_pointer] = address & WORD_MASK
        self.stack_pointer += 1

    def pop_return_address(self) -> int:
        """
        Pop the most recently pushed address off the call stack.
        :return: The popped address.
        """
        if self.stack_pointer <= 0:
            raise StackUnderflowError(program_counter=self.program_counter)

        self.stack_pointer -= 1
        address = self.call_stack[self.stack_pointer]
        self.call_stack[self.stack_pointer] = 0
        return address

    def get_display_buffer(self) -> Optional[np.ndarray]:
        """
        Hand the frame buffer to the display if it changed since it was last consumed.
        :return: A copy of the frame buffer, None if no redraw is pending.
        """
        if not self.redraw_pending:
            return None

        self.redraw_pending = False
        return self.frame_buffer.copy()

    def update_key_state(self, key: int, pressed: bool) -> None:
        """
        Store the state of one of the hexadecimal keys.
        :param key: The key, 0 to 15.
        :param pressed: True if the key is held down, False otherwise.
        """
        if not 0 <= key < KEY_COUNT:
            raise ValueError(f"Key {key} is not one of the {KEY_COUNT} hexadecimal keys.")

        self.key_states[key] = bool(pressed)
        logger.debug(f"Key State Changed.  Key: {key}, Pressed: {pressed}.")

    def pixel(self, x: int, y: int) -> int:
        """
        Get the pixel at the given coordinates, wrapping around the edges of the screen.
        """
        return int(self.frame_buffer[(x % SCREEN_WIDTH) + (y % SCREEN_HEIGHT) * SCREEN_WIDTH])
