from enum import Enum

from chippy.constants import LOWER_CHAR_MASK, WORD_MASK
from chippy.errors import EmptyOpcodeError, UnknownOpcodeError


class Instruction(Enum):
    """
    Every opcode shape understood by the interpreter.
    """
    CALL_MACHINE_CODE = "0NNN"
    CLEAR_SCREEN = "00E0"
    RETURN_FROM_SUBROUTINE = "00EE"
    GOTO = "1NNN"
    CALL_SUBROUTINE = "2NNN"
    IF_EQUAL = "3XNN"
    IF_NOT_EQUAL = "4XNN"
    IF_REGISTER_EQUAL = "5XY0"
    SET_REGISTER_VALUE = "6XNN"
    ADD_VALUE = "7XNN"
    SET_REGISTER_VALUE_OTHER_REGISTER = "8XY0"
    SET_REGISTER_BITWISE_OR = "8XY1"
    SET_REGISTER_BITWISE_AND = "8XY2"
    SET_REGISTER_BITWISE_XOR = "8XY3"
    ADD_OTHER_REGISTER = "8XY4"
    SUBTRACT_FROM_FIRST_REGISTER = "8XY5"
    BIT_SHIFT_RIGHT = "8XY6"
    SUBTRACT_FROM_SECOND_REGISTER = "8XY7"
    BIT_SHIFT_LEFT = "8XYE"
    IF_REGISTER_NOT_EQUAL = "9XY0"
    SET_REGISTER_I = "ANNN"
    GOTO_ADDITION = "BNNN"
    RANDOM_BITWISE_AND = "CXNN"
    DRAW_SPRITE = "DXYN"
    IF_KEY_PRESSED = "EX9E"
    IF_KEY_NOT_PRESSED = "EXA1"
    GET_DELAY_TIMER = "FX07"
    WAIT_FOR_KEY_PRESS = "FX0A"
    SET_DELAY_TIMER = "FX15"
    SET_SOUND_TIMER = "FX18"
    REGISTER_I_ADDITION = "FX1E"
    SET_REGISTER_I_TO_HEX_SPRITE_ADDRESS = "FX29"
    BINARY_CODED_DECIMAL = "FX33"
    REGISTER_DUMP = "FX55"
    REGISTER_LOAD = "FX65"


# Families which need the trailing nibble or byte to tell their members apart
_ARITHMETIC = {
    0x0: Instruction.SET_REGISTER_VALUE_OTHER_REGISTER,
    0x1: Instruction.SET_REGISTER_BITWISE_OR,
    0x2: Instruction.SET_REGISTER_BITWISE_AND,
    0x3: Instruction.SET_REGISTER_BITWISE_XOR,
    0x4: Instruction.ADD_OTHER_REGISTER,
    0x5: Instruction.SUBTRACT_FROM_FIRST_REGISTER,
    0x6: Instruction.BIT_SHIFT_RIGHT,
    0x7: Instruction.SUBTRACT_FROM_SECOND_REGISTER,
    0xE: Instruction.BIT_SHIFT_LEFT,
}

_KEYS = {
    0x9E: Instruction.IF_KEY_PRESSED,
    0xA1: Instruction.IF_KEY_NOT_PRESSED,
}

_MISC = {
    0x07: Instruction.GET_DELAY_TIMER,
    0x0A: Instruction.WAIT_FOR_KEY_PRESS,
    0x15: Instruction.SET_DELAY_TIMER,
    0x18: Instruction.SET_SOUND_TIMER,
    0x1E: Instruction.REGISTER_I_ADDITION,
    0x29: Instruction.SET_REGISTER_I_TO_HEX_SPRITE_ADDRESS,
    0x33: Instruction.BINARY_CODED_DECIMAL,
    0x55: Instruction.REGISTER_DUMP,
    0x65: Instruction.REGISTER_LOAD,
}

_SINGLE_SHAPE = {
    0x1: Instruction.GOTO,
    0x2: Instruction.CALL_SUBROUTINE,
    0x3: Instruction.IF_EQUAL,
    0x4: Instruction.IF_NOT_EQUAL,
    0x5: Instruction.IF_REGISTER_EQUAL,
    0x6: Instruction.SET_REGISTER_VALUE,
    0x7: Instruction.ADD_VALUE,
    0x9: Instruction.IF_REGISTER_NOT_EQUAL,
    0xA: Instruction.SET_REGISTER_I,
    0xB: Instruction.GOTO_ADDITION,
    0xC: Instruction.RANDOM_BITWISE_AND,
    0xD: Instruction.DRAW_SPRITE,
}


def decode(opcode: int) -> Instruction:
    """
    Identify the instruction encoded by an opcode.  No machine state is read.
    :param opcode: The 16 bit opcode.
    :return: The instruction the opcode encodes.
    """
    if not 0 <= opcode <= WORD_MASK:
        raise UnknownOpcodeError(opcode)

    family = opcode >> 12

    if family == 0x0:
        if opcode == 0x0000:
            raise EmptyOpcodeError()
        if opcode == 0x00E0:
            return Instruction.CLEAR_SCREEN
        if opcode == 0x00EE:
            return Instruction.RETURN_FROM_SUBROUTINE
        return Instruction.CALL_MACHINE_CODE

    if family == 0x8:
        instruction = _ARITHMETIC.get(opcode & LOWER_CHAR_MASK)
    elif family == 0xE:
        instruction = _KEYS.get(opcode & 0xFF)
    elif family == 0xF:
        instruction = _MISC.get(opcode & 0xFF)
    else:
        instruction = _SINGLE_SHAPE.get(family)

    if instruction is None:
        raise UnknownOpcodeError(opcode)
    return instruction
