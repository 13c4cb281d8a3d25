import logging

from typing import Callable, Dict, Optional, Tuple

from chippy.constants import (
    ADDRESS_MASK,
    BYTE_MASK,
    FLAG_REGISTER,
    GLYPH_HEIGHT,
    GLYPH_START_ADDRESS,
    KEY_COUNT,
    LOWER_CHAR_MASK,
    SCREEN_HEIGHT,
    SCREEN_WIDTH,
    SPRITE_WIDTH,
    WORD_MASK,
)
from chippy.decoder import Instruction, decode
from chippy.errors import UnsupportedOperationError
from chippy.state import MachineState

logger = logging.getLogger(__name__)

Handler = Callable[[MachineState, int], None]


# region Helpers
def get_register_x(opcode: int) -> int:
    """
    Get the first register operand (second nibble) of the given opcode.
    """
    return (opcode >> 8) & LOWER_CHAR_MASK


def get_register_y(opcode: int) -> int:
    """
    Get the second register operand (third nibble) of the given opcode.
    """
    return (opcode >> 4) & LOWER_CHAR_MASK


def get_value(opcode: int) -> int:
    return opcode & BYTE_MASK


def get_address(opcode: int) -> int:
    return opcode & ADDRESS_MASK


def bounded_subtract(minuend: int, subtrahend: int) -> Tuple[int, int]:
    """
    Subtract the subtrahend from the minuend, bounded by the confines of a byte.
    :param minuend: The integer from which to subtract.
    :param subtrahend: The integer to subtract.
    :return: The result of the subtraction and the not borrow (1 if there was no borrow, 0 otherwise).
    """
    difference_of_registers = minuend - subtrahend
    result = difference_of_registers % 256
    not_borrow = 1 if difference_of_registers >= 0 else 0
    return result, not_borrow


def skip_if(state: MachineState, condition: bool) -> None:
    """
    Advance past the current opcode, and past the next one as well if the condition holds.
    """
    if condition:
        state.program_counter = (state.program_counter + 4) & WORD_MASK
        logger.debug("Instruction skipped.")
    else:
        state.program_counter = (state.program_counter + 2) & WORD_MASK
        logger.debug("Instruction not skipped.")


def advance(state: MachineState) -> None:
    state.program_counter = (state.program_counter + 2) & WORD_MASK
# endregion


# region Opcodes
def opcode_call_machine_code(state: MachineState, opcode: int) -> None:
    """
    Call the machine code routine at the given address.  Native routines cannot be run, so this always fails.
    """
    raise UnsupportedOperationError(opcode, state.program_counter)


def opcode_clear_screen(state: MachineState, opcode: int) -> None:
    """
    Clear the screen.
    """
    state.frame_buffer.fill(0)
    state.redraw_pending = True
    advance(state)
    logger.debug(f"Execute Opcode {opcode:04x}: Clearing the screen.")


def opcode_return_from_subroutine(state: MachineState, opcode: int) -> None:
    """
    Return from the current subroutine, resuming after the opcode which called it.
    """
    return_address = state.pop_return_address()
    state.program_counter = (return_address + 2) & WORD_MASK
    logger.debug(f"Execute Opcode {opcode:04x}: Return from subroutine, continue at {hex(state.program_counter)}.")


def opcode_goto(state: MachineState, opcode: int) -> None:
    """
    Jump to the provided address.
    """
    address = get_address(opcode)
    state.program_counter = address
    logger.debug(f"Execute Opcode {opcode:04x}: Jump to address {hex(address)}.")


def opcode_call_subroutine(state: MachineState, opcode: int) -> None:
    """
    Call the subroutine at the given address.  The address of this opcode is pushed onto the stack.
    """
    address = get_address(opcode)
    state.push_return_address(state.program_counter)
    state.program_counter = address
    logger.debug(f"Execute Opcode {opcode:04x}: Call subroutine at address {hex(address)}.")


def opcode_if_equal(state: MachineState, opcode: int) -> None:
    """
    Skip the next instruction if the value of the provided register is equal to the provided value.
    """
    register = get_register_x(opcode)
    register_value = state.registers[register]
    value = get_value(opcode)
    logger.debug(f"Execute Opcode {opcode:04x}: Skip next instruction if register {register}'s value ({register_value}) is {value}.")
    skip_if(state, register_value == value)


def opcode_if_not_equal(state: MachineState, opcode: int) -> None:
    """
    Skip the next instruction if the value of the provided register is not equal to the provided value.
    """
    register = get_register_x(opcode)
    register_value = state.registers[register]
    value = get_value(opcode)
    logger.debug(f"Execute Opcode {opcode:04x}: Skip next instruction if register {register}'s value ({register_value}) is not {value}.")
    skip_if(state, register_value != value)


def opcode_if_register_equal(state: MachineState, opcode: int) -> None:
    """
    Skip the next instruction if the values of the two provided registers are equal.
    """
    first_register = get_register_x(opcode)
    second_register = get_register_y(opcode)
    first_register_value = state.registers[first_register]
    second_register_value = state.registers[second_register]
    logger.debug(f"Execute Opcode {opcode:04x}: Skip next instruction if register {first_register}'s value ({first_register_value}) is equal to register {second_register}'s value ({second_register_value}).")
    skip_if(state, first_register_value == second_register_value)


def opcode_set_register_value(state: MachineState, opcode: int) -> None:
    """
    Set the value of the provided register to the provided value.
    """
    register = get_register_x(opcode)
    value = get_value(opcode)
    state.registers[register] = value
    advance(state)
    logger.debug(f"Execute Opcode {opcode:04x}: Set the value of register {register} to {value}.")


def opcode_add_value(state: MachineState, opcode: int) -> None:
    """
    Adds the provided value to the value of the provided register.  The carry flag (register 15) is not set.
    """
    register = get_register_x(opcode)
    value = get_value(opcode)
    state.registers[register] = (state.registers[register] + value) & BYTE_MASK
    advance(state)
    logger.debug(f"Execute Opcode {opcode:04x}: Add {value} to the value of register {register}.")


def opcode_set_register_value_other_register(state: MachineState, opcode: int) -> None:
    """
    Set the value of the first provided register to the value of the second provided register.
    """
    first_register = get_register_x(opcode)
    second_register = get_register_y(opcode)
    second_register_value = state.registers[second_register]
    state.registers[first_register] = second_register_value
    advance(state)
    logger.debug(f"Execute Opcode {opcode:04x}: Set the value of register {first_register} to the value of register {second_register}'s value ({second_register_value}).")


def opcode_set_register_bitwise_or(state: MachineState, opcode: int) -> None:
    """
    Sets the value of the first provided register to the bitwise or of itself and the value of the second provided register.
    """
    first_register = get_register_x(opcode)
    second_register = get_register_y(opcode)
    first_register_value = state.registers[first_register]
    second_register_value = state.registers[second_register]
    result = first_register_value | second_register_value
    state.registers[first_register] = result
    advance(state)
    logger.debug(f"Execute Opcode {opcode:04x}: Set the value of register {first_register} to the bitwise or of itself and the value of register {second_register} ({first_register_value} | {second_register_value} = {result}).")


def opcode_set_register_bitwise_and(state: MachineState, opcode: int) -> None:
    """
    Sets the value of the first provided register to the bitwise and of itself and the value of the second provided register.
    """
    first_register = get_register_x(opcode)
    second_register = get_register_y(opcode)
    first_register_value = state.registers[first_register]
    second_register_value = state.registers[second_register]
    result = first_register_value & second_register_value
    state.registers[first_register] = result
    advance(state)
    logger.debug(f"Execute Opcode {opcode:04x}: Set the value of register {first_register} to the bitwise and of itself and the value of register {second_register} ({first_register_value} & {second_register_value} = {result}).")


def opcode_set_register_bitwise_xor(state: MachineState, opcode: int) -> None:
    """
    Sets the value of the first provided register to the bitwise xor of itself and the value of the second provided register.
    """
    first_register = get_register_x(opcode)
    second_register = get_register_y(opcode)
    first_register_value = state.registers[first_register]
    second_register_value = state.registers[second_register]
    result = first_register_value ^ second_register_value
    state.registers[first_register] = result
    advance(state)
    logger.debug(f"Execute Opcode {opcode:04x}: Set the value of register {first_register} to the bitwise xor of itself and the value of register {second_register} ({first_register_value} ^ {second_register_value} = {result}).")


def opcode_add_other_register(state: MachineState, opcode: int) -> None:
    """
    Sets the value of the first provided register to the sum of itself and the value of the second provided register.  The carry flag (register 15) is set.
    """
    first_register = get_register_x(opcode)
    second_register = get_register_y(opcode)
    first_register_value = state.registers[first_register]
    second_register_value = state.registers[second_register]
    sum_of_registers = first_register_value + second_register_value
    result = sum_of_registers & BYTE_MASK
    carry = 1 if sum_of_registers > BYTE_MASK else 0
    state.registers[FLAG_REGISTER] = carry
    state.registers[first_register] = result
    advance(state)
    logger.debug(f"Execute Opcode {opcode:04x}: Set the value of register {first_register} to the sum of itself and the value of register {second_register} ({first_register_value} + {second_register_value} = {result}, carry = {carry}).")


def opcode_subtract_from_first_register(state: MachineState, opcode: int) -> None:
    """
    Sets the value of the first provided register to the difference of itself and the value of the second provided register.  The not borrow flag (register 15) is set.
    """
    first_register = get_register_x(opcode)
    second_register = get_register_y(opcode)
    first_register_value = state.registers[first_register]
    second_register_value = state.registers[second_register]
    result, not_borrow = bounded_subtract(first_register_value, second_register_value)
    state.registers[FLAG_REGISTER] = not_borrow
    state.registers[first_register] = result
    advance(state)
    logger.debug(f"Execute Opcode {opcode:04x}: Set the value of register {first_register} to the difference of itself and the value of register {second_register} ({first_register_value} - {second_register_value} = {result}, not borrow = {not_borrow}).")


def opcode_subtract_from_second_register(state: MachineState, opcode: int) -> None:
    """
    Sets the value of the first provided register to the difference of the value of the second provided register and itself.  The not borrow flag (register 15) is set.
    """
    first_register = get_register_x(opcode)
    second_register = get_register_y(opcode)
    first_register_value = state.registers[first_register]
    second_register_value = state.registers[second_register]
    result, not_borrow = bounded_subtract(second_register_value, first_register_value)
    state.registers[FLAG_REGISTER] = not_borrow
    state.registers[first_register] = result
    advance(state)
    logger.debug(f"Execute Opcode {opcode:04x}: Set the value of register {first_register} to the difference of the value of register {second_register} and itself ({second_register_value} - {first_register_value} = {result}, not borrow = {not_borrow}).")


def opcode_bit_shift_right(state: MachineState, opcode: int) -> None:
    """
    Shift the source register to the right by 1 and store the result in the first provided register.
    The source is the second provided register if the configuration asks for it, the first one otherwise.
    Register 15 is set to the least significant bit before the operation.
    """
    target_register = get_register_x(opcode)
    source_register = get_register_y(opcode) if state.config.shift_uses_source_y else target_register
    source_register_value = state.registers[source_register]
    bit_shift = source_register_value >> 1
    least_significant_bit = source_register_value & 1
    state.registers[FLAG_REGISTER] = least_significant_bit
    state.registers[target_register] = bit_shift
    advance(state)
    logger.debug(f"Execute Opcode {opcode:04x}: Shift the value of register {source_register} to the right by 1 into register {target_register} ({source_register_value} >> 1 = {bit_shift}, previous least significant bit = {least_significant_bit}).")


def opcode_bit_shift_left(state: MachineState, opcode: int) -> None:
    """
    Shift the source register to the left by 1 and store the result in the first provided register.
    The source is the second provided register if the configuration asks for it, the first one otherwise.
    Register 15 is set to the most significant bit before the operation.
    """
    target_register = get_register_x(opcode)
    source_register = get_register_y(opcode) if state.config.shift_uses_source_y else target_register
    source_register_value = state.registers[source_register]
    bit_shift = (source_register_value << 1) & BYTE_MASK
    most_significant_bit = (source_register_value & 128) >> 7
    state.registers[FLAG_REGISTER] = most_significant_bit
    state.registers[target_register] = bit_shift
    advance(state)
    logger.debug(f"Execute Opcode {opcode:04x}: Shift the value of register {source_register} to the left by 1 into register {target_register} ({source_register_value} << 1 = {bit_shift}, previous most significant bit = {most_significant_bit}).")


def opcode_if_register_not_equal(state: MachineState, opcode: int) -> None:
    """
    Skip the next instruction if the values of the two provided registers differ.
    """
    first_register = get_register_x(opcode)
    second_register = get_register_y(opcode)
    first_register_value = state.registers[first_register]
    second_register_value = state.registers[second_register]
    logger.debug(f"Execute Opcode {opcode:04x}: Skip next instruction if register {first_register}'s value ({first_register_value}) is not equal to register {second_register}'s value ({second_register_value}).")
    skip_if(state, first_register_value != second_register_value)


def opcode_set_register_i(state: MachineState, opcode: int) -> None:
    """
    Sets the value of register I to the provided address.
    """
    address = get_address(opcode)
    state.index_register = address
    advance(state)
    logger.debug(f"Execute Opcode {opcode:04x}: Set register I to {hex(address)}.")


def opcode_goto_addition(state: MachineState, opcode: int) -> None:
    """
    Jump to the provided address plus the value of register 0.
    """
    address = get_address(opcode)
    register_value = state.registers[0]
    state.program_counter = (address + register_value) & WORD_MASK
    logger.debug(f"Execute Opcode {opcode:04x}: Jump to the provided address plus the value of register 0 ({hex(address)} + {hex(register_value)} = {hex(state.program_counter)}).")


def opcode_random_bitwise_and(state: MachineState, opcode: int) -> None:
    """
    Set the value of the provided register to the bitwise and of the provided value and a random number [0, 255].
    """
    register = get_register_x(opcode)
    value = get_value(opcode)
    random_value = state.rng.randint(0, BYTE_MASK)
    result = value & random_value
    state.registers[register] = result
    advance(state)
    logger.debug(f"Execute Opcode {opcode:04x}: Set the value of register {register} to the bitwise and of the provided value and a random number [0, 255] ({value} & {random_value} = {result}).")


def opcode_draw_sprite(state: MachineState, opcode: int) -> None:
    """
    Draws the sprite with the provided height found at the address denoted by the value of register I to the provided x and y coordinates.
    Pixels are XORed onto the screen, wrapping around both edges.
    The collision flag (register 15) is set to 1 if a pixel was unset, 0 otherwise.
    """
    register_x = get_register_x(opcode)
    register_y = get_register_y(opcode)
    register_x_value = state.registers[register_x]
    register_y_value = state.registers[register_y]
    height = opcode & LOWER_CHAR_MASK
    pixel_unset = 0
    for row in range(height):
        byte = state.memory[(state.index_register + row) & ADDRESS_MASK]
        y_coordinate = (register_y_value + row) % SCREEN_HEIGHT
        for column in range(SPRITE_WIDTH):
            pixel = (byte >> (SPRITE_WIDTH - 1 - column)) & 1
            if not pixel:
                continue
            x_coordinate = (register_x_value + column) % SCREEN_WIDTH
            cell = x_coordinate + y_coordinate * SCREEN_WIDTH
            if state.frame_buffer[cell]:
                pixel_unset = 1
            state.frame_buffer[cell] ^= 1
    state.registers[FLAG_REGISTER] = pixel_unset
    state.redraw_pending = True
    advance(state)
    logger.debug(f"Execute Opcode {opcode:04x}: Drawing the sprite with a height of {height} and found at address {hex(state.index_register)} to the screen at the x-coordinate from the value of register {register_x} and y-coordinate from the value of register {register_y} ({register_x_value, register_y_value}), collision = {pixel_unset}.")


def opcode_if_key_pressed(state: MachineState, opcode: int) -> None:
    """
    Skip the next instruction if the key represented by the value of the provided register is pressed.
    """
    register = get_register_x(opcode)
    key = state.registers[register]
    pressed = key < KEY_COUNT and state.key_states[key]
    logger.debug(f"Execute Opcode {opcode:04x}: Skip next instruction if the key represented by the value of register {register} ({key}) is pressed ({pressed}).")
    skip_if(state, pressed)


def opcode_if_key_not_pressed(state: MachineState, opcode: int) -> None:
    """
    Skip the next instruction if the key represented by the value of the provided register is not pressed.
    """
    register = get_register_x(opcode)
    key = state.registers[register]
    pressed = key < KEY_COUNT and state.key_states[key]
    logger.debug(f"Execute Opcode {opcode:04x}: Skip next instruction if the key represented by the value of register {register} ({key}) is not pressed ({pressed}).")
    skip_if(state, not pressed)


def opcode_get_delay_timer(state: MachineState, opcode: int) -> None:
    """
    Sets the value of the provided register to the value of the delay timer.
    """
    register = get_register_x(opcode)
    state.registers[register] = state.delay_timer
    advance(state)
    logger.debug(f"Execute Opcode {opcode:04x}: Set the value of register {register} to the value of the delay timer ({state.delay_timer}).")


def opcode_wait_for_key_press(state: MachineState, opcode: int) -> None:
    """
    Store the lowest pressed key in the provided register.  If no key is pressed the program counter is left alone,
    so the same opcode runs again on the next cycle.
    """
    register = get_register_x(opcode)
    for key, pressed in enumerate(state.key_states):
        if pressed:
            state.registers[register] = key
            advance(state)
            logger.debug(f"Execute Opcode {opcode:04x}: Key {key} is pressed, storing it in register {register}.")
            return

    logger.debug(f"Execute Opcode {opcode:04x}: Waiting for a keypress to store in register {register}.")


def opcode_set_delay_timer(state: MachineState, opcode: int) -> None:
    """
    Sets the delay timer to the value of the provided register.
    """
    register = get_register_x(opcode)
    register_value = state.registers[register]
    state.delay_timer = register_value
    advance(state)
    logger.debug(f"Execute Opcode {opcode:04x}: Set the value of the delay timer to value of register {register} ({register_value}).")


def opcode_set_sound_timer(state: MachineState, opcode: int) -> None:
    """
    Sets the sound timer to the value of the provided register; a tone plays while it is above 0.
    """
    register = get_register_x(opcode)
    register_value = state.registers[register]
    state.sound_timer = register_value
    advance(state)
    logger.debug(f"Execute Opcode {opcode:04x}: Set the value of the sound timer to value of register {register} ({register_value}).")


def opcode_register_i_addition(state: MachineState, opcode: int) -> None:
    """
    Add the value of the provided register to register I.  The overflow flag (register 15) is set if the sum leaves the 12 bit address space.
    """
    register = get_register_x(opcode)
    register_value = state.registers[register]
    register_i_value = state.index_register
    sum_of_registers = register_i_value + register_value
    overflow = 1 if sum_of_registers > ADDRESS_MASK else 0
    state.index_register = sum_of_registers & WORD_MASK
    state.registers[FLAG_REGISTER] = overflow
    advance(state)
    logger.debug(f"Execute Opcode {opcode:04x}: Adds the value of register {register} to the value of register I ({register_i_value} + {register_value} = {state.index_register}, overflow = {overflow}).")


def opcode_set_register_i_to_hex_sprite_address(state: MachineState, opcode: int) -> None:
    """
    Sets the value of register I to the address of the hexadecimal sprite represented by the value in the provided register.
    Only the low nibble of the register selects the digit.
    """
    register = get_register_x(opcode)
    register_value = state.registers[register]
    if register_value > LOWER_CHAR_MASK:
        logger.warning(f"Register {register} holds {register_value}, which is not a hexadecimal digit; using {register_value & LOWER_CHAR_MASK}.")
    state.index_register = (register_value & LOWER_CHAR_MASK) * GLYPH_HEIGHT + GLYPH_START_ADDRESS
    advance(state)
    logger.debug(f"Execute Opcode {opcode:04x}: Set the value of register I to the address ({hex(state.index_register)}) of the hexadecimal sprite represented by the value of register {register} ({register_value}).")


def opcode_binary_coded_decimal(state: MachineState, opcode: int) -> None:
    """
    Store the Binary Coded Decimal representation of the value of the provided register in memory, starting at the value of register I.
    Hundreds digit stored in memory at the location of the value of register I.
    Tens digit stored in memory at the location of the value of register I + 1.
    Units digit stored in memory at the location of the value of register I + 2.
    """
    register = get_register_x(opcode)
    register_value = state.registers[register]
    hundreds = register_value // 100 % 10
    tens = register_value // 10 % 10
    units = register_value % 10
    for offset, digit in enumerate((hundreds, tens, units)):
        state.memory[(state.index_register + offset) & ADDRESS_MASK] = digit
    advance(state)
    logger.debug(f"Execute Opcode {opcode:04x}: Store the Binary Coded Decimal representation of the value of register {register} ({register_value}), starting at the value of register I ({hex(state.index_register)}), ({hundreds}, {tens}, {units}).")


def opcode_register_dump(state: MachineState, opcode: int) -> None:
    """
    Store the values of all registers from register 0 to the provided register in memory, starting at the value of register I.
    Register I is then advanced past the stored bytes if the configuration asks for it.
    """
    last_register = get_register_x(opcode)
    logger.debug(f"Execute Opcode {opcode:04x}: Dumping the values of all registers from register 0 to register {last_register} into memory, starting at the value of register I ({hex(state.index_register)}).")
    for register in range(last_register + 1):
        target_address = (state.index_register + register) & ADDRESS_MASK
        state.memory[target_address] = state.registers[register]
    if state.config.auto_increment_index_on_bulk_transfer:
        state.index_register = (state.index_register + last_register + 1) & WORD_MASK
    advance(state)


def opcode_register_load(state: MachineState, opcode: int) -> None:
    """
    Load the values of all registers from register 0 to the provided register from memory, starting at the value of register I.
    Register I is then advanced past the loaded bytes if the configuration asks for it.
    """
    last_register = get_register_x(opcode)
    logger.debug(f"Execute Opcode {opcode:04x}: Loading the values of all registers from register 0 to register {last_register} from memory, starting at the value of register I ({hex(state.index_register)}).")
    for register in range(last_register + 1):
        target_address = (state.index_register + register) & ADDRESS_MASK
        state.registers[register] = state.memory[target_address]
    if state.config.auto_increment_index_on_bulk_transfer:
        state.index_register = (state.index_register + last_register + 1) & WORD_MASK
    advance(state)
# endregion


HANDLERS: Dict[Instruction, Handler] = {
    Instruction.CALL_MACHINE_CODE: opcode_call_machine_code,
    Instruction.CLEAR_SCREEN: opcode_clear_screen,
    Instruction.RETURN_FROM_SUBROUTINE: opcode_return_from_subroutine,
    Instruction.GOTO: opcode_goto,
    Instruction.CALL_SUBROUTINE: opcode_call_subroutine,
    Instruction.IF_EQUAL: opcode_if_equal,
    Instruction.IF_NOT_EQUAL: opcode_if_not_equal,
    Instruction.IF_REGISTER_EQUAL: opcode_if_register_equal,
    Instruction.SET_REGISTER_VALUE: opcode_set_register_value,
    Instruction.ADD_VALUE: opcode_add_value,
    Instruction.SET_REGISTER_VALUE_OTHER_REGISTER: opcode_set_register_value_other_register,
    Instruction.SET_REGISTER_BITWISE_OR: opcode_set_register_bitwise_or,
    Instruction.SET_REGISTER_BITWISE_AND: opcode_set_register_bitwise_and,
    Instruction.SET_REGISTER_BITWISE_XOR: opcode_set_register_bitwise_xor,
    Instruction.ADD_OTHER_REGISTER: opcode_add_other_register,
    Instruction.SUBTRACT_FROM_FIRST_REGISTER: opcode_subtract_from_first_register,
    Instruction.BIT_SHIFT_RIGHT: opcode_bit_shift_right,
    Instruction.SUBTRACT_FROM_SECOND_REGISTER: opcode_subtract_from_second_register,
    Instruction.BIT_SHIFT_LEFT: opcode_bit_shift_left,
    Instruction.IF_REGISTER_NOT_EQUAL: opcode_if_register_not_equal,
    Instruction.SET_REGISTER_I: opcode_set_register_i,
    Instruction.GOTO_ADDITION: opcode_goto_addition,
    Instruction.RANDOM_BITWISE_AND: opcode_random_bitwise_and,
    Instruction.DRAW_SPRITE: opcode_draw_sprite,
    Instruction.IF_KEY_PRESSED: opcode_if_key_pressed,
    Instruction.IF_KEY_NOT_PRESSED: opcode_if_key_not_pressed,
    Instruction.GET_DELAY_TIMER: opcode_get_delay_timer,
    Instruction.WAIT_FOR_KEY_PRESS: opcode_wait_for_key_press,
    Instruction.SET_DELAY_TIMER: opcode_set_delay_timer,
    Instruction.SET_SOUND_TIMER: opcode_set_sound_timer,
    Instruction.REGISTER_I_ADDITION: opcode_register_i_addition,
    Instruction.SET_REGISTER_I_TO_HEX_SPRITE_ADDRESS: opcode_set_register_i_to_hex_sprite_address,
    Instruction.BINARY_CODED_DECIMAL: opcode_binary_coded_decimal,
    Instruction.REGISTER_DUMP: opcode_register_dump,
    Instruction.REGISTER_LOAD: opcode_register_load,
}

_missing = set(Instruction) - set(HANDLERS)
if _missing:
    raise RuntimeError(f"Instructions without a handler: {sorted(instruction.name for instruction in _missing)}.")


def execute(state: MachineState, opcode: int, instruction: Optional[Instruction] = None) -> Instruction:
    """
    Route the provided opcode to the handler of its instruction.
    :param state: The machine to run the opcode against.
    :param opcode: The opcode to execute.
    :param instruction: The already decoded instruction, decoded here if not provided.
    :return: The executed instruction.
    """
    if instruction is None:
        instruction = decode(opcode)
    HANDLERS[instruction](state, opcode)
    return instruction
