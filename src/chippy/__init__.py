"""CHIP-8 interpreter core."""

from chippy.config import Config
from chippy.decoder import Instruction, decode
from chippy.errors import (
    Chip8Error,
    EmptyOpcodeError,
    ProgramTooLargeError,
    StackOverflowError,
    StackUnderflowError,
    UnknownOpcodeError,
    UnsupportedOperationError,
)
from chippy.instructions import execute
from chippy.scheduler import Scheduler
from chippy.state import MachineState

__all__ = [
    "Config",
    "Instruction",
    "decode",
    "execute",
    "MachineState",
    "Scheduler",
    "Chip8Error",
    "EmptyOpcodeError",
    "ProgramTooLargeError",
    "StackOverflowError",
    "StackUnderflowError",
    "UnknownOpcodeError",
    "UnsupportedOperationError",
]
