import logging
import threading

from typing import Callable, Optional

from chippy.errors import Chip8Error
from chippy.instructions import execute
from chippy.state import MachineState

logger = logging.getLogger(__name__)

AudioCallback = Callable[[bool], None]
ErrorCallback = Callable[[Chip8Error], None]


class Scheduler:
    """
    Drives a machine: one timer chain fetches and runs opcodes, another counts the delay and sound timers down at 60Hz.
    Both chains run on their own threads and are serialized through a single lock around the machine state.
    """
    def __init__(self, state: MachineState, audio: Optional[AudioCallback] = None, on_error: Optional[ErrorCallback] = None):
        """
        Constructor.
        :param state: The machine to drive.
        :param audio: Called with True while the sound timer is running, False otherwise.
        :param on_error: Called with the error which halted the program.  Errors are raised to the caller if not provided.
        """
        self.state = state
        self.audio = audio
        self.on_error = on_error
        self.lock = threading.RLock()
        self.last_error: Optional[Chip8Error] = None

        self.opcode_timer: Optional[threading.Timer] = None
        self.countdown_timer: Optional[threading.Timer] = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    # region Ticks
    def cycle(self, only_while_running: bool = False) -> bool:
        """
        Fetch the opcode at the program counter and execute it, then report the sound state.
        :param only_while_running: Skip the opcode if the scheduler has been stopped.
        :return: True if the opcode ran, False if it was skipped or halted the program.
        """
        with self.lock:
            if only_while_running and not self._running:
                return False

            program_counter = self.state.program_counter
            opcode = self.state.read_opcode()
            try:
                execute(self.state, opcode)
            except Chip8Error as error:
                if error.opcode is None:
                    error.opcode = opcode
                if error.program_counter is None:
                    error.program_counter = program_counter
                halted_by = error
            else:
                halted_by = None
                self.set_audio(self.state.sound_timer != 0)

        if halted_by is not None:
            self.halt(halted_by)
            return False
        return True

    def tick_timers(self) -> None:
        """
        Decrement the delay and sound timers, neither going below 0.
        """
        with self.lock:
            if self.state.delay_timer > 0:
                self.state.delay_timer -= 1
            if self.state.sound_timer > 0:
                self.state.sound_timer -= 1

    def run_cycles(self, count: int) -> int:
        """
        Synchronously execute opcodes without the timer threads.
        :param count: The maximum number of opcodes to execute.
        :return: The number of opcodes which ran before the program halted, if it did.
        """
        for executed in range(count):
            if not self.cycle():
                return executed
        return count

    def halt(self, error: Chip8Error) -> None:
        """
        Stop the program because of a fatal error and hand the error over.
        """
        logger.error(f"Halting: {error}.")
        self.last_error = error
        self.stop()
        if self.on_error is None:
            raise error
        self.on_error(error)

    def set_audio(self, status: bool) -> None:
        if self.audio is not None:
            self.audio(status)
    # endregion

    # region Timers
    def start(self) -> None:
        """
        Start executing opcodes and counting the timers down.  Does nothing if already running.
        """
        with self.lock:
            if self._running:
                return
            self._running = True
            self.last_error = None
            self.toggle_all_timers(True)
        logger.info(f"Started execution at {hex(self.state.program_counter)}.")

    def stop(self) -> None:
        """
        Stop executing opcodes and counting the timers down, and silence the audio.
        Once this returns no tick will touch the machine state.  Safe to call when not running.
        """
        with self.lock:
            was_running = self._running
            self._running = False
            pending = [timer for timer in (self.opcode_timer, self.countdown_timer) if timer is not None]
            self.toggle_all_timers(False)

        current = threading.current_thread()
        for timer in pending:
            if timer is not current and timer.is_alive():
                timer.join()

        self.set_audio(False)
        if was_running:
            logger.info("Stopped execution.")

    def toggle_all_timers(self, status: bool) -> None:
        """
        Start / stop both timers.
        :param status: True if the timers should be started, False otherwise.
        """
        self.toggle_opcode_timer(status)
        self.toggle_countdown_timer(status)

    def toggle_opcode_timer(self, status: bool) -> None:
        """
        Start / stop the opcode timer.
        :param status: True if the timer should be started, False otherwise.
        """
        if self.opcode_timer:
            self.opcode_timer.cancel()
            self.opcode_timer = None

        if status:
            self.opcode_timer = threading.Timer(self.state.config.cycle_delay, self.on_opcode_timer)
            self.opcode_timer.daemon = True
            self.opcode_timer.start()

    def toggle_countdown_timer(self, status: bool) -> None:
        """
        Start / stop the countdown timer.
        :param status: True if the timer should be started, False otherwise.
        """
        if self.countdown_timer:
            self.countdown_timer.cancel()
            self.countdown_timer = None

        if status:
            self.countdown_timer = threading.Timer(self.state.config.timer_delay, self.on_countdown_timer)
            self.countdown_timer.daemon = True
            self.countdown_timer.start()

    def on_opcode_timer(self) -> None:
        if not self.cycle(only_while_running=True):
            return

        with self.lock:
            if self._running:
                self.toggle_opcode_timer(True)

    def on_countdown_timer(self) -> None:
        with self.lock:
            if not self._running:
                return
            self.tick_timers()
            self.toggle_countdown_timer(True)
    # endregion
