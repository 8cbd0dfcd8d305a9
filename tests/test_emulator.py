"""Tests for the fetch/step cycle, timers, keys and loading."""

import pytest
import jax.numpy as jnp
from chip8vm import (
    fetch, step, tick_timers, set_key, load_program, load_rom, framebuffer_bytes,
    DecodeError, MemoryBoundsError, StackUnderflow, PROGRAM_START,
)
from chip8vm.decode import SetImmediate
from chip8vm.errors import check_memory_range


class TestFetch:
    """Test instruction fetch."""

    def test_fetch_big_endian(self, fresh_state):
        state = load_program(fresh_state, bytes([0x12, 0x34]))

        state, instruction = fetch(state)

        assert instruction == 0x1234
        assert state.pc == PROGRAM_START + 2

    def test_fetch_last_word(self, fresh_state):
        state = fresh_state.replace(pc=jnp.asarray(0xFFE, dtype=jnp.uint16))
        state, _ = fetch(state)
        assert state.pc == 0x1000

    def test_fetch_past_memory(self, fresh_state):
        state = fresh_state.replace(pc=jnp.asarray(0xFFF, dtype=jnp.uint16))
        with pytest.raises(MemoryBoundsError):
            fetch(state)


class TestStep:
    """Test single cycles."""

    def test_step_returns_operation(self, fresh_state):
        state = load_program(fresh_state, bytes([0x60, 0x10]))

        state, op = step(state)

        assert op == SetImmediate(x=0, nn=0x10)
        assert state.V[0] == 16
        assert state.pc == 0x202

    def test_decode_error_reports_address(self, fresh_state):
        state = load_program(fresh_state, bytes([0x00, 0x01]))

        with pytest.raises(DecodeError) as excinfo:
            step(state)

        assert excinfo.value.address == 0x200
        assert excinfo.value.instruction == 0x0001

    def test_execution_fault_reports_instruction(self, fresh_state):
        state = load_program(fresh_state, bytes([0x60, 0x01, 0x00, 0xEE]))
        state, _ = step(state)

        with pytest.raises(StackUnderflow) as excinfo:
            step(state)

        assert excinfo.value.address == 0x202
        assert excinfo.value.instruction == 0x00EE
        assert "0x00EE" in str(excinfo.value)

    def test_skip_advances_past_next_instruction(self, fresh_state):
        program = bytes([0x30, 0x00, 0x60, 0x99, 0x61, 0x01])  # SE V0,0 ; LD V0 ; LD V1
        state = load_program(fresh_state, program)

        state, _ = step(state)
        assert state.pc == 0x204

        state, _ = step(state)
        assert state.V[0] == 0
        assert state.V[1] == 1


class TestTimers:
    """Test timer ticks."""

    def test_tick_at_zero_stays_zero(self, fresh_state):
        state = tick_timers(fresh_state)
        assert state.delay_timer == 0
        assert state.sound_timer == 0

    def test_tick_counts_down(self, fresh_state):
        state = fresh_state.replace(
            delay_timer=jnp.asarray(5, dtype=jnp.uint8),
            sound_timer=jnp.asarray(2, dtype=jnp.uint8),
        )
        values = []
        for _ in range(6):
            state = tick_timers(state)
            values.append((int(state.delay_timer), int(state.sound_timer)))

        assert values == [(4, 1), (3, 0), (2, 0), (1, 0), (0, 0), (0, 0)]


class TestKeys:
    """Test keypad updates."""

    def test_set_and_release(self, fresh_state):
        state = set_key(fresh_state, 0xF, True)
        assert state.keypad[0xF]

        state = set_key(state, 0xF, False)
        assert not state.keypad[0xF]

    def test_press_outside_wait_is_not_latched(self, fresh_state):
        state = set_key(fresh_state, 3, True)
        assert not jnp.any(state.key_latch)

    @pytest.mark.parametrize("key", [-1, 16, 100])
    def test_out_of_range_key(self, fresh_state, key):
        with pytest.raises(ValueError):
            set_key(fresh_state, key, True)


class TestLoading:
    """Test program loading."""

    def test_load_program(self, fresh_state):
        state = load_program(fresh_state, bytes([1, 2, 3]))
        assert [int(b) for b in state.memory[0x200:0x203]] == [1, 2, 3]
        assert state.memory[0x1FF] == 0

    def test_load_maximum_program(self, fresh_state):
        state = load_program(fresh_state, bytes([0xAA]) * (4096 - 0x200))
        assert state.memory[0xFFF] == 0xAA

    def test_load_oversized_program(self, fresh_state):
        with pytest.raises(MemoryBoundsError):
            load_program(fresh_state, bytes(4096 - 0x200 + 1))

    def test_load_rom(self, fresh_state, tmp_path):
        rom = tmp_path / "test.ch8"
        rom.write_bytes(bytes([0x00, 0xE0]))

        state = load_rom(fresh_state, str(rom))

        assert state.memory[0x201] == 0xE0

    def test_memory_range_defaults_to_memory_size(self):
        check_memory_range(0, 4096)
        with pytest.raises(MemoryBoundsError):
            check_memory_range(0xFFE, 0x1001)


class TestFramebufferBytes:
    """Test the packed framebuffer layout."""

    def test_blank(self, fresh_state):
        assert framebuffer_bytes(fresh_state.display) == bytes(256)

    def test_pixel_positions(self, fresh_state):
        display = fresh_state.display.at[0, 0].set(True).at[9, 2].set(True).at[63, 31].set(True)

        packed = framebuffer_bytes(display)

        assert packed[0] == 0x80
        assert packed[2 * 8 + 1] == 0x40  # byte row*8 + x//8, bit 7 - x%8
        assert packed[31 * 8 + 7] == 0x01
        assert sum(bin(b).count("1") for b in packed) == 3
