from dataclasses import dataclass
from typing import Optional

from chippy.constants import OPCODE_DELAY, TIMER_DELAY


@dataclass(frozen=True)
class Config:
    """
    Behavioural toggles and cadence of the emulator, fixed for the lifetime of a machine.
    :param shift_uses_source_y: True if 8XY6 / 8XYE shift register Y into register X, False to shift register X in place.
    :param auto_increment_index_on_bulk_transfer: True if FX55 / FX65 advance register I by X + 1 afterwards.
    :param cycle_delay: Seconds between two executed opcodes.
    :param timer_delay: Seconds between two decrements of the delay and sound timers.
    :param random_seed: Seed for the random opcode, None to seed from the system.
    """
    shift_uses_source_y: bool = False
    auto_increment_index_on_bulk_transfer: bool = True
    cycle_delay: float = OPCODE_DELAY
    timer_delay: float = TIMER_DELAY
    random_seed: Optional[int] = None

    def __post_init__(self):
        if self.cycle_delay <= 0:
            raise ValueError(f"The cycle delay must be positive, got {self.cycle_delay}.")
        if self.timer_delay <= 0:
            raise ValueError(f"The timer delay must be positive, got {self.timer_delay}.")
