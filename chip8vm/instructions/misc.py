"""CHIP-8 miscellaneous instructions (Fxxx)."""

import jax.numpy as jnp
from chip8vm.state import EmulatorState
from chip8vm.decode import (
    GetDelayTimer, WaitForKey, SetDelayTimer, SetSoundTimer, AddToIndex,
    FontCharacter, StoreBCD, StoreRegisters, LoadRegisters,
)
from chip8vm.constants import FONT_START, FONT_CHAR_SIZE, MEMORY_SIZE
from chip8vm.errors import check_memory_range


def execute_get_delay_timer(state: EmulatorState, instruction: GetDelayTimer) -> EmulatorState:
    """FX07 - Set VX to delay timer value."""
    return state.replace(V=state.V.at[instruction.x].set(state.delay_timer))


def execute_set_delay_timer(state: EmulatorState, instruction: SetDelayTimer) -> EmulatorState:
    """FX15 - Set delay timer to VX."""
    return state.replace(delay_timer=state.V[instruction.x])


def execute_set_sound_timer(state: EmulatorState, instruction: SetSoundTimer) -> EmulatorState:
    """FX18 - Set sound timer to VX."""
    return state.replace(sound_timer=state.V[instruction.x])


def execute_add_to_index(state: EmulatorState, instruction: AddToIndex) -> EmulatorState:
    """FX1E - Add VX to I register.

    The sum is kept as a 16-bit value; instructions that read memory
    through I check the range when they use it.
    """
    new_i = (int(state.I) + int(state.V[instruction.x])) & 0xFFFF
    return state.replace(I=jnp.asarray(new_i, dtype=jnp.uint16))


def execute_wait_for_key(state: EmulatorState, instruction: WaitForKey) -> EmulatorState:
    """FX0A - Wait for key press.

    The wait is polled: PC is rewound onto this instruction until a key goes
    from released to pressed after the wait was armed. ``set_key`` records
    such transitions in ``key_latch``. A key already held when the wait is
    armed does not count; it has to be released and pressed again.
    """
    def rewind(state):
        return state.replace(pc=state.pc - 2)

    if not state.waiting_for_key:
        return rewind(state.replace(waiting_for_key=True, key_latch=jnp.zeros_like(state.key_latch)))

    if not jnp.any(state.key_latch):
        return rewind(state)

    pressed_key = int(jnp.argmax(state.key_latch))
    return state.replace(
        V=state.V.at[instruction.x].set(pressed_key),
        waiting_for_key=False,
        key_latch=jnp.zeros_like(state.key_latch),
    )


def execute_font_character(state: EmulatorState, instruction: FontCharacter) -> EmulatorState:
    """FX29 - Set I to location of sprite for digit VX."""
    digit = int(state.V[instruction.x]) & 0xF
    font_address = FONT_START + digit * FONT_CHAR_SIZE
    return state.replace(I=jnp.asarray(font_address, dtype=jnp.uint16))


def execute_bcd_conversion(state: EmulatorState, instruction: StoreBCD) -> EmulatorState:
    """FX33 - Store BCD representation of VX at I, I+1, I+2."""
    value = int(state.V[instruction.x])
    start = int(state.I)
    check_memory_range(start, start + 3, MEMORY_SIZE)

    digits = jnp.array([value // 100, (value // 10) % 10, value % 10], dtype=jnp.uint8)
    return state.replace(memory=state.memory.at[start:start + 3].set(digits))


def execute_store_registers(state: EmulatorState, instruction: StoreRegisters) -> EmulatorState:
    """FX55 - Store V0 through VX in memory starting at I."""
    count = instruction.x + 1
    start = int(state.I)
    check_memory_range(start, start + count, MEMORY_SIZE)
    return state.replace(memory=state.memory.at[start:start + count].set(state.V[:count]))


def execute_load_registers(state: EmulatorState, instruction: LoadRegisters) -> EmulatorState:
    """FX65 - Load V0 through VX from memory starting at I."""
    count = instruction.x + 1
    start = int(state.I)
    check_memory_range(start, start + count, MEMORY_SIZE)
    return state.replace(V=state.V.at[:count].set(state.memory[start:start + count]))
