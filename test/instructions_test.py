from unittest import mock

import pytest

from chippy import instructions
from chippy.config import Config
from chippy.constants import GAME_START_ADDRESS, GLYPH_START_ADDRESS, INTERPRETER_END_ADDRESS
from chippy.decoder import Instruction
from chippy.errors import StackOverflowError, StackUnderflowError, UnsupportedOperationError
from chippy.instructions import HANDLERS, bounded_subtract, execute
from chippy.state import MachineState

NEXT = GAME_START_ADDRESS + 2
SKIPPED = GAME_START_ADDRESS + 4


class TestHelperMethods:
    def test_bounded_subtract(self):
        assert bounded_subtract(10, 3) == (7, 1)
        assert bounded_subtract(3, 3) == (0, 1)
        assert bounded_subtract(3, 10) == (249, 0)

    def test_register_operands(self):
        assert instructions.get_register_x(0x8AB4) == 0xA
        assert instructions.get_register_y(0x8AB4) == 0xB
        assert instructions.get_value(0x8AB4) == 0xB4
        assert instructions.get_address(0x8AB4) == 0xAB4

    def test_every_instruction_has_a_handler(self):
        assert set(HANDLERS) == set(Instruction), "Instruction table is not exhaustive."

    def test_every_handler_is_documented(self):
        undocumented = [handler.__name__ for handler in HANDLERS.values() if not handler.__doc__]
        assert not undocumented, f"Handlers without a summary: {undocumented}."


class TestFlowOpcodes:
    def setup_method(self):
        self.state = MachineState()

    def test_opcode_call_machine_code(self):
        with pytest.raises(UnsupportedOperationError) as error:
            execute(self.state, 0x0D52)
        assert error.value.opcode == 0x0D52
        assert error.value.program_counter == GAME_START_ADDRESS
        assert self.state.program_counter == GAME_START_ADDRESS, "Program counter moved on a failed opcode."

    def test_opcode_clear_screen(self):
        self.state.frame_buffer[100] = 1
        execute(self.state, 0x00E0)
        assert not self.state.frame_buffer.any(), "Screen was not cleared."
        assert self.state.redraw_pending, "Clearing the screen did not request a redraw."
        assert self.state.program_counter == NEXT

    def test_opcode_goto(self):
        execute(self.state, 0x14E5)
        assert self.state.program_counter == 0x4E5, "Program counter incorrect after jump opcode."

    def test_opcode_call_and_return(self):
        execute(self.state, 0x2578)
        assert self.state.program_counter == 0x578, "Program counter incorrect after subroutine call."
        assert self.state.stack_pointer == 1 and self.state.call_stack[0] == GAME_START_ADDRESS, "Calling address not added to the stack."

        execute(self.state, 0x2A23)
        assert self.state.program_counter == 0xA23, "Program counter incorrect after subroutine call."
        assert self.state.stack_pointer == 2 and self.state.call_stack[1] == 0x578, "Calling address not added to the stack."
        assert self.state.call_stack[0] == GAME_START_ADDRESS, "Earlier stack value was modified."

        execute(self.state, 0x00EE)
        assert self.state.program_counter == 0x57A, "Return did not resume after the calling opcode."
        assert self.state.stack_pointer == 1

        execute(self.state, 0x00EE)
        assert self.state.program_counter == NEXT, "Return did not resume after the calling opcode."
        assert self.state.stack_pointer == 0

    def test_opcode_return_from_subroutine_empty_stack(self):
        with pytest.raises(StackUnderflowError):
            execute(self.state, 0x00EE)
        assert self.state.program_counter == GAME_START_ADDRESS, "Program counter moved on a failed return."

    def test_opcode_call_subroutine_full_stack(self):
        for _ in range(16):
            execute(self.state, 0x2200)
        with pytest.raises(StackOverflowError):
            execute(self.state, 0x2300)
        assert self.state.program_counter == GAME_START_ADDRESS, "Program counter moved on a failed call."

    def test_opcode_if_equal(self):
        execute(self.state, 0x3698)
        assert self.state.program_counter == NEXT, "Instruction was skipped despite register value not matching."

        self.state.program_counter = GAME_START_ADDRESS
        self.state.registers[6] = 0x98
        execute(self.state, 0x3698)
        assert self.state.program_counter == SKIPPED, "Next instruction was not skipped when it should have been."

    def test_opcode_if_equal_scenario(self):
        self.state.registers[0xA] = 5
        execute(self.state, 0x3A05)
        assert self.state.program_counter == SKIPPED

        self.state.program_counter = GAME_START_ADDRESS
        self.state.registers[0xA] = 6
        execute(self.state, 0x3A05)
        assert self.state.program_counter == NEXT

    def test_opcode_if_not_equal(self):
        self.state.registers[6] = 0x98
        execute(self.state, 0x4698)
        assert self.state.program_counter == NEXT, "Instruction was skipped despite register value matching."

        self.state.program_counter = GAME_START_ADDRESS
        self.state.registers[6] = 0xFF
        execute(self.state, 0x4698)
        assert self.state.program_counter == SKIPPED, "Next instruction was not skipped when it should have been."

    def test_opcode_if_register_equal(self):
        self.state.registers[10] = 0x11
        self.state.registers[4] = 0x12
        execute(self.state, 0x5A40)
        assert self.state.program_counter == NEXT, "Instruction was skipped despite register values not matching."

        self.state.program_counter = GAME_START_ADDRESS
        self.state.registers[4] = 0x11
        execute(self.state, 0x5A40)
        assert self.state.program_counter == SKIPPED, "Next instruction was not skipped when it should have been."

    def test_opcode_if_register_not_equal(self):
        self.state.registers[10] = 0x40
        self.state.registers[4] = 0x40
        execute(self.state, 0x9A40)
        assert self.state.program_counter == NEXT, "Instruction was skipped despite register values matching."

        self.state.program_counter = GAME_START_ADDRESS
        self.state.registers[4] = 0x12
        execute(self.state, 0x9A40)
        assert self.state.program_counter == SKIPPED, "Next instruction was not skipped when it should have been."

    def test_opcode_goto_addition(self):
        self.state.registers[0] = 20
        execute(self.state, 0xB5B2)
        assert self.state.program_counter == 0x5B2 + 20, "Program counter incorrect after jump opcode."


class TestArithmeticOpcodes:
    def setup_method(self):
        self.state = MachineState()

    def test_opcode_set_register_value(self):
        execute(self.state, 0x6A05)
        for index, register in enumerate(self.state.registers):
            if index == 0xA:
                assert register == 5, "Register not set to correct value."
            else:
                assert register == 0, "Different register than target had its value modified."
        assert self.state.program_counter == NEXT

    def test_opcode_add_value(self):
        self.state.registers[11] = 10
        execute(self.state, 0x7B05)
        assert self.state.registers[11] == 15, "Register addition failed."

        execute(self.state, 0x7BFA)
        assert self.state.registers[11] == 9, "Register addition overflow did not work as expected."
        assert self.state.registers[15] == 0, "Carry bit was set when it should not be modified by this instruction."
        assert self.state.program_counter == SKIPPED

    def test_opcode_set_register_value_other_register(self):
        self.state.registers[8] = 47
        execute(self.state, 0x8480)
        assert self.state.registers[4] == 47 and self.state.registers[8] == 47, "Register not set to correct value."

    @pytest.mark.parametrize("opcode, expected", [(0x8481, 0xEE), (0x8482, 0x88), (0x8483, 0x66)])
    def test_opcode_bitwise(self, opcode, expected):
        self.state.registers[4] = 0xCC
        self.state.registers[8] = 0xAA
        execute(self.state, opcode)
        assert self.state.registers[4] == expected, "Register not set to correct value."
        assert self.state.registers[8] == 0xAA, "Second register value was modified when it should not have been."
        assert self.state.program_counter == NEXT

    def test_opcode_add_other_register_scenario(self):
        self.state.registers[0xA] = 5
        self.state.registers[0xB] = 3
        execute(self.state, 0x8AB4)
        assert self.state.registers[0xA] == 8
        assert self.state.registers[0xF] == 0
        assert self.state.program_counter == NEXT

    def test_opcode_add_other_register(self):
        for first, second in [(0, 0), (200, 33), (200, 55), (200, 56), (255, 255), (128, 128), (1, 254)]:
            for x, y in [(0, 1), (4, 8), (14, 3)]:
                state = MachineState()
                state.registers[x] = first
                state.registers[y] = second
                execute(state, 0x8004 | (x << 8) | (y << 4))
                assert state.registers[x] == (first + second) % 256, "Sum stored incorrectly."
                assert state.registers[15] == (1 if first + second > 255 else 0), "Carry flag set incorrectly."

    def test_opcode_subtract_from_first_register(self):
        for first, second in [(0, 0), (10, 3), (3, 10), (255, 0), (0, 255), (128, 129)]:
            for x, y in [(0, 1), (4, 8), (14, 3)]:
                state = MachineState()
                state.registers[x] = first
                state.registers[y] = second
                execute(state, 0x8005 | (x << 8) | (y << 4))
                assert state.registers[x] == (first - second) % 256, "Difference stored incorrectly."
                assert state.registers[15] == (0 if first - second < 0 else 1), "Not borrow flag set incorrectly."

    def test_opcode_subtract_from_second_register(self):
        for first, second in [(0, 0), (10, 3), (3, 10), (255, 0), (0, 255), (128, 129)]:
            for x, y in [(0, 1), (4, 8), (14, 3)]:
                state = MachineState()
                state.registers[x] = first
                state.registers[y] = second
                execute(state, 0x8007 | (x << 8) | (y << 4))
                assert state.registers[x] == (second - first) % 256, "Difference stored incorrectly."
                assert state.registers[15] == (0 if second - first < 0 else 1), "Not borrow flag set incorrectly."

    def test_flag_register_as_target_keeps_result(self):
        self.state.registers[15] = 200
        self.state.registers[1] = 100
        execute(self.state, 0x8F14)
        assert self.state.registers[15] == 0x2C, "Sum should win over the carry flag when register 15 is the target."

    def test_flag_register_as_subtraction_target_keeps_result(self):
        self.state.registers[15] = 5
        self.state.registers[1] = 10
        execute(self.state, 0x8F15)
        assert self.state.registers[15] == 251, "Difference should win over the not borrow flag when register 15 is the target."


class TestShiftOpcodes:
    @pytest.mark.parametrize("shift_uses_source_y", [False, True])
    def test_opcode_bit_shift_right(self, shift_uses_source_y):
        for value in [0, 1, 2, 0x81, 0xFE, 0xFF]:
            state = MachineState(Config(shift_uses_source_y=shift_uses_source_y))
            state.registers[4] = value if not shift_uses_source_y else 0x55
            state.registers[8] = value
            execute(state, 0x8486)
            assert state.registers[4] == value >> 1, "Shifted value stored incorrectly."
            assert state.registers[15] == value & 1, "Least significant bit was set incorrectly."
            assert state.registers[8] == value, "Source register was modified."
            assert state.program_counter == NEXT

    @pytest.mark.parametrize("shift_uses_source_y", [False, True])
    def test_opcode_bit_shift_left(self, shift_uses_source_y):
        for value in [0, 1, 0x40, 0x80, 0x81, 0xFF]:
            state = MachineState(Config(shift_uses_source_y=shift_uses_source_y))
            state.registers[4] = value if not shift_uses_source_y else 0x55
            state.registers[8] = value
            execute(state, 0x848E)
            assert state.registers[4] == (value << 1) & 0xFF, "Shifted value stored incorrectly."
            assert state.registers[15] == value >> 7, "Most significant bit was set incorrectly."
            assert state.registers[8] == value, "Source register was modified."

    def test_shift_ignores_y_by_default(self):
        state = MachineState()
        state.registers[4] = 0x04
        state.registers[8] = 0xFF
        execute(state, 0x8486)
        assert state.registers[4] == 0x02, "Register Y was used as the source."
        assert state.registers[15] == 0

    def test_shift_right_into_flag_register_keeps_result(self):
        state = MachineState()
        state.registers[15] = 0x06
        execute(state, 0x8F06)
        assert state.registers[15] == 0x03, "Shifted value should win over the flag when register 15 is the target."

    def test_shift_left_into_flag_register_keeps_result(self):
        state = MachineState()
        state.registers[15] = 0x81
        execute(state, 0x8F0E)
        assert state.registers[15] == 0x02, "Shifted value should win over the flag when register 15 is the target."


class TestIndexOpcodes:
    def setup_method(self):
        self.state = MachineState()

    def test_opcode_set_register_i(self):
        execute(self.state, 0xA491)
        assert self.state.index_register == 0x491, "Register I set to the wrong value."
        assert self.state.program_counter == NEXT

    def test_opcode_register_i_addition(self):
        self.state.index_register = 4050
        self.state.registers[7] = 50
        execute(self.state, 0xF71E)
        assert self.state.index_register == 4100, "Register I was clamped instead of kept."
        assert self.state.registers[7] == 50, "Value of register was changed when it was not the target of the addition."
        assert self.state.registers[15] == 1, "Overflow flag was not set correctly."

        self.state.index_register = 4000
        execute(self.state, 0xF71E)
        assert self.state.index_register == 4050, "Register I set to the wrong value."
        assert self.state.registers[15] == 0, "Overflow flag was not set correctly."

    def test_opcode_register_i_addition_wraps_at_sixteen_bits(self):
        self.state.index_register = 0xFFFF
        self.state.registers[1] = 2
        execute(self.state, 0xF11E)
        assert self.state.index_register == 1
        assert self.state.registers[15] == 1

    def test_opcode_set_register_i_to_hex_sprite_address(self):
        self.state.registers[4] = 11
        execute(self.state, 0xF429)
        assert self.state.index_register == GLYPH_START_ADDRESS + 55, "Register I was not set to the correct address for the given sprite."
        assert self.state.memory[self.state.index_register:self.state.index_register + 5] == bytes.fromhex("e090e090e0"), "Register I does not point at the B sprite."

    def test_opcode_set_register_i_to_hex_sprite_address_out_of_range(self, caplog):
        self.state.registers[4] = 0x1B
        execute(self.state, 0xF429)
        assert self.state.index_register == GLYPH_START_ADDRESS + 55, "Only the low nibble should select the sprite."
        assert any(record.levelname == "WARNING" for record in caplog.records), "Out of range digit was not reported."

    def test_opcode_binary_coded_decimal(self):
        self.state.index_register = 3123
        for value, digits in [(135, (1, 3, 5)), (68, (0, 6, 8)), (5, (0, 0, 5))]:
            self.state.registers[12] = value
            execute(self.state, 0xFC33)
            assert self.state.index_register == 3123, "Register I was modified when it should be left untouched."
            assert tuple(self.state.memory[3123:3126]) == digits, "Digits stored incorrectly."
        for index, byte in enumerate(self.state.memory):
            if index >= INTERPRETER_END_ADDRESS and not 3123 <= index <= 3125:
                assert byte == 0, "Non-targeted ram address was changed when it shouldn't have been."

    def test_opcode_binary_coded_decimal_all_values(self):
        for value in range(256):
            self.state.registers[0] = value
            self.state.index_register = 0x300
            execute(self.state, 0xF033)
            hundreds, tens, units = self.state.memory[0x300:0x303]
            assert hundreds * 100 + tens * 10 + units == value, f"Digits of {value} do not add back up."
            assert all(digit < 10 for digit in (hundreds, tens, units))

    @pytest.mark.parametrize("auto_increment", [True, False])
    def test_opcode_register_dump(self, auto_increment):
        state = MachineState(Config(auto_increment_index_on_bulk_transfer=auto_increment))
        last_register = 12
        state.index_register = 2000
        for register in range(last_register + 1):
            state.registers[register] = (register + 1) * 10
        execute(state, 0xFC55)
        expected_i = 2000 + last_register + 1 if auto_increment else 2000
        assert state.index_register == expected_i, "Register I was not updated according to the configuration."
        for index, byte in enumerate(state.memory):
            if 2000 <= index <= 2000 + last_register:
                assert byte == (index - 2000 + 1) * 10, "Register was not dumped correctly."
            elif index >= INTERPRETER_END_ADDRESS:
                assert byte == 0, "Non-targeted memory address was modified."
        assert state.program_counter == NEXT

    @pytest.mark.parametrize("auto_increment", [True, False])
    def test_opcode_register_load(self, auto_increment):
        state = MachineState(Config(auto_increment_index_on_bulk_transfer=auto_increment))
        last_register = 12
        state.index_register = 2000
        for byte in range(last_register + 1):
            state.memory[2000 + byte] = (byte + 1) * 10
        execute(state, 0xFC65)
        expected_i = 2000 + last_register + 1 if auto_increment else 2000
        assert state.index_register == expected_i, "Register I was not updated according to the configuration."
        for index, register in enumerate(state.registers):
            if index <= last_register:
                assert register == (index + 1) * 10, "Register value was not loaded correctly."
            else:
                assert register == 0, "Non-targeted register was modified."

    def test_opcode_register_dump_wraps_memory(self):
        self.state.index_register = 0xFFE
        for register in range(4):
            self.state.registers[register] = register + 1
        execute(self.state, 0xF355)
        assert self.state.memory[0xFFE] == 1 and self.state.memory[0xFFF] == 2
        assert self.state.memory[0x000] == 3 and self.state.memory[0x001] == 4, "Dump past the end of memory did not wrap."


class TestRandomOpcode:
    def test_opcode_random_bitwise_and(self):
        state = MachineState(Config(random_seed=1))
        for _ in range(50):
            execute(state, 0xC40F)
            assert state.registers[4] & 0xF0 == 0, "Mask was not applied to the random number."

        state.program_counter = GAME_START_ADDRESS
        execute(state, 0xC400)
        assert state.registers[4] == 0
        assert state.program_counter == NEXT

    def test_opcode_random_bitwise_and_is_seeded(self):
        first = MachineState(Config(random_seed=42))
        second = MachineState(Config(random_seed=42))
        for _ in range(10):
            execute(first, 0xC1FF)
            execute(second, 0xC1FF)
            assert first.registers[1] == second.registers[1], "Same seed produced different numbers."

    def test_opcode_random_uses_state_generator(self):
        state = MachineState()
        with mock.patch.object(state.rng, "randint", return_value=0xAB) as mock_method:
            execute(state, 0xC3F0)
        mock_method.assert_called_once_with(0, 255)
        assert state.registers[3] == 0xA0


class TestDrawOpcode:
    def setup_method(self):
        self.state = MachineState()

    def lit(self):
        return {(index % 64, index // 64) for index, value in enumerate(self.state.frame_buffer) if value}

    def test_opcode_draw_sprite_digit_zero(self):
        self.state.index_register = GLYPH_START_ADDRESS
        execute(self.state, 0xDAB5)
        expected = {(x, 0) for x in range(4)} | {(x, 4) for x in range(4)} | {(0, y) for y in range(1, 4)} | {(3, y) for y in range(1, 4)}
        assert self.lit() == expected, "Sprite pattern drawn incorrectly."
        assert self.state.registers[15] == 0, "Collision reported on an empty screen."
        assert self.state.redraw_pending, "Drawing did not request a redraw."
        assert self.state.program_counter == NEXT

        self.state.redraw_pending = False
        execute(self.state, 0xDAB5)
        assert self.lit() == set(), "Drawing the sprite twice did not restore the screen."
        assert self.state.registers[15] == 1, "Erasing the sprite did not report a collision."
        assert self.state.redraw_pending

    def test_opcode_draw_sprite_restores_existing_pixels(self):
        self.state.frame_buffer[64 * 10 + 10] = 1
        self.state.frame_buffer[64 * 31 + 63] = 1
        before = self.state.frame_buffer.copy()
        self.state.registers[1] = 8
        self.state.registers[2] = 9
        self.state.index_register = GLYPH_START_ADDRESS + 40
        execute(self.state, 0xD125)
        execute(self.state, 0xD125)
        assert (self.state.frame_buffer == before).all(), "Drawing twice did not restore the previous screen."

    def test_opcode_draw_sprite_wraps(self):
        self.state.memory[0x300] = 0xFF
        self.state.memory[0x301] = 0x80
        self.state.index_register = 0x300
        self.state.registers[0] = 60
        self.state.registers[1] = 31
        execute(self.state, 0xD012)
        expected = {(x % 64, 31) for x in range(60, 68)} | {(60, 0)}
        assert self.lit() == expected, "Sprite did not wrap around the screen edges."

    def test_opcode_draw_sprite_collision(self):
        self.state.frame_buffer[3] = 1
        self.state.memory[0x300] = 0x10
        self.state.index_register = 0x300
        execute(self.state, 0xD001)
        assert self.state.registers[15] == 1, "Collision was not reported."
        assert self.state.frame_buffer[3] == 0, "Colliding pixel was not turned off."

    def test_opcode_draw_sprite_no_collision_on_unset_pixel(self):
        self.state.frame_buffer[3] = 1
        self.state.registers[15] = 1
        self.state.memory[0x300] = 0x80
        self.state.index_register = 0x300
        execute(self.state, 0xD001)
        assert self.state.registers[15] == 0, "Collision flag left set."
        assert self.state.frame_buffer[0] == 1 and self.state.frame_buffer[3] == 1


class TestInputOpcodes:
    def setup_method(self):
        self.state = MachineState()

    def test_opcode_if_key_pressed(self):
        self.state.registers[6] = 6
        execute(self.state, 0xE69E)
        assert self.state.program_counter == NEXT, "Instruction was skipped despite key not pressed."

        self.state.program_counter = GAME_START_ADDRESS
        self.state.key_states[6] = True
        execute(self.state, 0xE69E)
        assert self.state.program_counter == SKIPPED, "Next instruction was not skipped when it should have been."

    def test_opcode_if_key_not_pressed(self):
        self.state.registers[6] = 6
        self.state.key_states[6] = True
        execute(self.state, 0xE6A1)
        assert self.state.program_counter == NEXT, "Instruction was skipped despite key pressed."

        self.state.program_counter = GAME_START_ADDRESS
        self.state.key_states[6] = False
        execute(self.state, 0xE6A1)
        assert self.state.program_counter == SKIPPED, "Next instruction was not skipped when it should have been."

    def test_opcode_if_key_with_non_key_value(self):
        self.state.registers[2] = 0x20
        execute(self.state, 0xE29E)
        assert self.state.program_counter == NEXT, "A value which is not a key counted as pressed."

    def test_opcode_wait_for_key_press(self):
        execute(self.state, 0xF90A)
        assert self.state.program_counter == GAME_START_ADDRESS, "Program counter moved without a keypress."
        execute(self.state, 0xF90A)
        assert self.state.program_counter == GAME_START_ADDRESS, "Program counter moved without a keypress."

        self.state.key_states[0xC] = True
        self.state.key_states[0x5] = True
        execute(self.state, 0xF90A)
        assert self.state.registers[9] == 5, "Lowest pressed key was not stored."
        assert self.state.program_counter == NEXT, "Program counter did not move after the keypress."


class TestTimerOpcodes:
    def setup_method(self):
        self.state = MachineState()

    def test_opcode_get_delay_timer(self):
        self.state.delay_timer = 55
        execute(self.state, 0xF307)
        for index, register in enumerate(self.state.registers):
            if index == 3:
                assert register == 55, "Register not set to correct value."
            else:
                assert register == 0, "Different register than target had its value modified."

    def test_opcode_set_delay_timer(self):
        self.state.registers[3] = 44
        execute(self.state, 0xF315)
        assert self.state.delay_timer == 44, "Delay timer was not set correctly."
        assert self.state.program_counter == NEXT

    def test_opcode_set_sound_timer(self):
        self.state.registers[3] = 44
        execute(self.state, 0xF318)
        assert self.state.sound_timer == 44, "Sound timer was not set correctly."
        assert self.state.delay_timer == 0, "Delay timer was modified."


class TestOpcodeRouting:
    def setup_method(self):
        self.state = MachineState()

    def test_execute_routes_by_instruction(self):
        handler = mock.Mock()
        with mock.patch.dict(HANDLERS, {Instruction.GOTO: handler}):
            instruction = execute(self.state, 0x132A)
        handler.assert_called_once_with(self.state, 0x132A)
        assert instruction is Instruction.GOTO

    def test_execute_uses_provided_instruction(self):
        handler = mock.Mock()
        with mock.patch.dict(HANDLERS, {Instruction.CLEAR_SCREEN: handler}):
            execute(self.state, 0x132A, Instruction.CLEAR_SCREEN)
        handler.assert_called_once_with(self.state, 0x132A)
