"""Tests for control flow instructions."""

import pytest
import jax.numpy as jnp
from chip8vm import execute, step, load_program, StackOverflow, StackUnderflow, STACK_SIZE


class TestJump:
    """Test jump instructions."""

    def test_execute_jump(self, fresh_state):
        """1NNN - Jump to address."""
        state = execute(fresh_state, 0x1001)
        assert state.pc == 1

    def test_jump_with_offset(self, fresh_state):
        """BNNN - Jump to NNN + V0."""
        state = fresh_state.replace(V=fresh_state.V.at[0].set(0x10))
        state = execute(state, 0xB300)
        assert state.pc == 0x310

    def test_jump_with_offset_masks_address(self, fresh_state):
        """BNNN - The sum wraps to 12 bits."""
        state = fresh_state.replace(V=fresh_state.V.at[0].set(0xFF))
        state = execute(state, 0xBFFF)
        assert state.pc == (0xFFF + 0xFF) & 0xFFF

    def test_jump_with_offset_ignores_other_registers(self, fresh_state):
        """BNNN - Only V0 is added."""
        state = fresh_state.replace(V=fresh_state.V.at[3].set(0x20))
        state = execute(state, 0xB340)
        assert state.pc == 0x340


class TestSkipInstructions:
    """Test all skip instruction variants."""

    def test_skip_if_equal_immediate_true(self, fresh_state):
        """3XNN - Should skip when VX == NN."""
        state = fresh_state.replace(V=fresh_state.V.at[5].set(0x42))
        initial_pc = state.pc

        state = execute(state, 0x3542)
        assert state.pc == initial_pc + 2

    def test_skip_if_equal_immediate_false(self, fresh_state):
        """3XNN - Should not skip when VX != NN."""
        state = fresh_state.replace(V=fresh_state.V.at[5].set(0x41))
        initial_pc = state.pc

        state = execute(state, 0x3542)
        assert state.pc == initial_pc

    def test_skip_if_not_equal_immediate_true(self, fresh_state):
        """4XNN - Should skip when VX != NN."""
        state = fresh_state.replace(V=fresh_state.V.at[3].set(0x10))
        initial_pc = state.pc

        state = execute(state, 0x4320)
        assert state.pc == initial_pc + 2

    def test_skip_if_not_equal_immediate_false(self, fresh_state):
        """4XNN - Should not skip when VX == NN."""
        state = fresh_state.replace(V=fresh_state.V.at[3].set(0x20))
        initial_pc = state.pc

        state = execute(state, 0x4320)
        assert state.pc == initial_pc

    def test_skip_if_equal_register_true(self, fresh_state):
        """5XY0 - Should skip when VX == VY."""
        state = fresh_state.replace(V=fresh_state.V.at[1].set(0x55).at[2].set(0x55))
        initial_pc = state.pc

        state = execute(state, 0x5120)
        assert state.pc == initial_pc + 2

    def test_skip_if_equal_register_false(self, fresh_state):
        """5XY0 - Should not skip when VX != VY."""
        state = fresh_state.replace(V=fresh_state.V.at[1].set(0x55).at[2].set(0x44))
        initial_pc = state.pc

        state = execute(state, 0x5120)
        assert state.pc == initial_pc

    def test_skip_if_not_equal_register_true(self, fresh_state):
        """9XY0 - Should skip when VX != VY."""
        state = fresh_state.replace(V=fresh_state.V.at[7].set(0xAA).at[8].set(0xBB))
        initial_pc = state.pc

        state = execute(state, 0x9780)
        assert state.pc == initial_pc + 2

    def test_skip_if_not_equal_register_false(self, fresh_state):
        """9XY0 - Should not skip when VX == VY."""
        state = fresh_state.replace(V=fresh_state.V.at[7].set(0xAA).at[8].set(0xAA))
        initial_pc = state.pc

        state = execute(state, 0x9780)
        assert state.pc == initial_pc


class TestKeySkips:
    """Test EX9E / EXA1."""

    def test_skip_if_key_pressed(self, fresh_state):
        """EX9E - Skip if key pressed."""
        state = execute(fresh_state, 0x6005)  # V0 = 5
        state = state.replace(keypad=state.keypad.at[5].set(True))
        initial_pc = state.pc

        state = execute(state, 0xE09E)
        assert state.pc == initial_pc + 2

    def test_no_skip_if_key_released(self, fresh_state):
        """EX9E - No skip when the key is up."""
        state = execute(fresh_state, 0x6005)
        initial_pc = state.pc

        state = execute(state, 0xE09E)
        assert state.pc == initial_pc

    def test_skip_if_key_not_pressed(self, fresh_state):
        """EXA1 - Skip if key not pressed."""
        state = execute(fresh_state, 0x6005)
        initial_pc = state.pc

        state = execute(state, 0xE0A1)
        assert state.pc == initial_pc + 2

    def test_no_skip_if_key_held(self, fresh_state):
        """EXA1 - No skip when the key is down."""
        state = execute(fresh_state, 0x6005)
        state = state.replace(keypad=state.keypad.at[5].set(True))
        initial_pc = state.pc

        state = execute(state, 0xE0A1)
        assert state.pc == initial_pc

    def test_key_index_uses_low_nibble(self, fresh_state):
        """EX9E - VX = 0x15 selects key 5."""
        state = execute(fresh_state, 0x6015)
        state = state.replace(keypad=state.keypad.at[5].set(True))
        initial_pc = state.pc

        state = execute(state, 0xE09E)
        assert state.pc == initial_pc + 2


class TestSubroutines:
    """Test CALL / RET nesting."""

    def test_call_pushes_current_pc(self, fresh_state):
        """2NNN - Pushes the PC as it stands when CALL executes."""
        state = fresh_state.replace(pc=fresh_state.pc + 2)  # as after fetch

        state = execute(state, 0x2ABC)

        assert state.pc == 0xABC
        assert state.stack.data[0] == 0x202

    def test_nested_calls_unwind(self, fresh_state):
        """16 nested calls return in reverse order."""
        state = fresh_state
        return_addresses = []
        for depth in range(STACK_SIZE):
            state = state.replace(pc=state.pc + 2)
            return_addresses.append(int(state.pc))
            state = execute(state, 0x2400 + depth * 0x10)

        assert state.stack.pointer == STACK_SIZE

        for expected in reversed(return_addresses):
            state = execute(state, 0x00EE)
            assert state.pc == expected

        assert state.stack.pointer == 0

    def test_seventeenth_call_overflows(self, fresh_state):
        state = fresh_state
        for _ in range(STACK_SIZE):
            state = execute(state, 0x2300)

        with pytest.raises(StackOverflow):
            execute(state, 0x2300)

    def test_return_underflow(self, fresh_state):
        with pytest.raises(StackUnderflow):
            execute(fresh_state, 0x00EE)

    def test_call_in_last_word_returns_past_memory(self, fresh_state):
        """A CALL at 0xFFE returns to 0x1000, not to address 0."""
        state = load_program(fresh_state, bytes([0x23, 0x00]), offset=0xFFE)
        state = load_program(state, bytes([0x00, 0xEE]), offset=0x300)
        state = state.replace(pc=jnp.asarray(0xFFE, dtype=jnp.uint16))

        state, _ = step(state)
        assert state.stack.data[0] == 0x1000
        state, _ = step(state)

        assert int(state.pc) == 0x1000
        assert state.stack.pointer == 0
