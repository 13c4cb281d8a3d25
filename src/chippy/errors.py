from typing import Optional


class Chip8Error(Exception):
    """
    Base class for every condition which halts the running program.
    """
    def __init__(self, message: str, opcode: Optional[int] = None, program_counter: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.opcode = opcode
        self.program_counter = program_counter

    def __str__(self) -> str:
        details = []
        if self.opcode is not None:
            details.append(f"opcode {self.opcode:#06x}")
        if self.program_counter is not None:
            details.append(f"program counter {self.program_counter:#05x}")
        if not details:
            return self.message
        return f"{self.message} ({', '.join(details)})"


class UnknownOpcodeError(Chip8Error):
    def __init__(self, opcode: int, program_counter: Optional[int] = None):
        super().__init__("Unknown opcode", opcode, program_counter)


class EmptyOpcodeError(Chip8Error):
    """
    Raised when 0x0000 is fetched, which usually means execution ran past the end of the program.
    """
    def __init__(self, program_counter: Optional[int] = None):
        super().__init__("Empty opcode", 0, program_counter)


class UnsupportedOperationError(Chip8Error):
    """
    Raised for the 0NNN family; native machine code routines are not emulated.
    """
    def __init__(self, opcode: int, program_counter: Optional[int] = None):
        super().__init__("Machine code routines are not supported", opcode, program_counter)


class StackOverflowError(Chip8Error):
    def __init__(self, opcode: Optional[int] = None, program_counter: Optional[int] = None):
        super().__init__("Call stack is full", opcode, program_counter)


class StackUnderflowError(Chip8Error):
    def __init__(self, opcode: Optional[int] = None, program_counter: Optional[int] = None):
        super().__init__("Tried to return from a subroutine when the stack is empty", opcode, program_counter)


class ProgramTooLargeError(Chip8Error):
    def __init__(self, size: int, capacity: int):
        super().__init__(f"Program of {size} bytes does not fit in the {capacity} bytes available")
        self.size = size
        self.capacity = capacity
