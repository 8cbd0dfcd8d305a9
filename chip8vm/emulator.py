"""Main CHIP-8 emulator execution engine."""

import jax.numpy as jnp
from chip8vm.state import EmulatorState
from chip8vm.decode import (
    Instruction, decode,
    NoOperation, ClearScreen, Return, Jump, Call,
    SkipIfEqualImmediate, SkipIfNotEqualImmediate, SkipIfEqualRegister,
    SetImmediate, AddImmediate,
    Move, Or, And, Xor, AddRegister, Subtract, ShiftRight, SubtractReverse, ShiftLeft,
    SkipIfNotEqualRegister, SetIndex, JumpWithOffset, Random, Draw,
    SkipIfKeyPressed, SkipIfKeyNotPressed,
    GetDelayTimer, WaitForKey, SetDelayTimer, SetSoundTimer, AddToIndex,
    FontCharacter, StoreBCD, StoreRegisters, LoadRegisters,
)
from chip8vm.constants import PROGRAM_START, MEMORY_SIZE, NUM_KEYS
from chip8vm.errors import Chip8Error, MemoryBoundsError, check_memory_range
from chip8vm.instructions.system import execute_no_op, execute_clear_screen, execute_return
from chip8vm.instructions.control_flow import (
    execute_jump, execute_call, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register,
    execute_skip_if_not_equal_register, execute_jump_with_offset,
    execute_skip_if_key_pressed, execute_skip_if_key_not_pressed,
)
from chip8vm.instructions.alu import execute_alu_operation
from chip8vm.instructions.memory import execute_set, execute_add, execute_set_index, execute_random
from chip8vm.instructions.display import execute_display
from chip8vm.instructions.misc import (
    execute_get_delay_timer, execute_wait_for_key, execute_set_delay_timer,
    execute_set_sound_timer, execute_add_to_index, execute_font_character,
    execute_bcd_conversion, execute_store_registers, execute_load_registers,
)

HANDLERS = {
    NoOperation: execute_no_op,
    ClearScreen: execute_clear_screen,
    Return: execute_return,
    Jump: execute_jump,
    Call: execute_call,
    SkipIfEqualImmediate: execute_skip_if_equal_immediate,
    SkipIfNotEqualImmediate: execute_skip_if_not_equal_immediate,
    SkipIfEqualRegister: execute_skip_if_equal_register,
    SetImmediate: execute_set,
    AddImmediate: execute_add,
    Move: execute_alu_operation,
    Or: execute_alu_operation,
    And: execute_alu_operation,
    Xor: execute_alu_operation,
    AddRegister: execute_alu_operation,
    Subtract: execute_alu_operation,
    ShiftRight: execute_alu_operation,
    SubtractReverse: execute_alu_operation,
    ShiftLeft: execute_alu_operation,
    SkipIfNotEqualRegister: execute_skip_if_not_equal_register,
    SetIndex: execute_set_index,
    JumpWithOffset: execute_jump_with_offset,
    Random: execute_random,
    Draw: execute_display,
    SkipIfKeyPressed: execute_skip_if_key_pressed,
    SkipIfKeyNotPressed: execute_skip_if_key_not_pressed,
    GetDelayTimer: execute_get_delay_timer,
    WaitForKey: execute_wait_for_key,
    SetDelayTimer: execute_set_delay_timer,
    SetSoundTimer: execute_set_sound_timer,
    AddToIndex: execute_add_to_index,
    FontCharacter: execute_font_character,
    StoreBCD: execute_bcd_conversion,
    StoreRegisters: execute_store_registers,
    LoadRegisters: execute_load_registers,
}


def execute(state: EmulatorState, instruction) -> EmulatorState:
    """Execute single CHIP-8 instruction.

    ``instruction`` is either a decoded operation or a raw 16-bit word.
    PC is expected to point past the instruction already.
    """
    if isinstance(instruction, (int, jnp.ndarray)):
        instruction = decode(int(instruction))
    return HANDLERS[type(instruction)](state, instruction)


def _pack_u16(high: int, low: int) -> int:
    """Pack two bytes into a 16-bit word."""
    return (high << 8) | low


def fetch(state: EmulatorState) -> tuple[EmulatorState, int]:
    """Fetch next instruction from memory and advance PC."""
    pc = int(state.pc)
    if pc + 2 > MEMORY_SIZE:
        raise MemoryBoundsError(pc, pc + 2, address=pc)
    instruction = _pack_u16(int(state.memory[pc]), int(state.memory[pc + 1]))
    return state.replace(pc=state.pc + 2), instruction


def step(state: EmulatorState) -> tuple[EmulatorState, Instruction]:
    """Run one fetch-decode-execute cycle.

    Returns the new state and the operation that was executed. Faults are
    annotated with the address and bits of the instruction that raised them.
    """
    address = int(state.pc)
    state, instruction = fetch(state)
    try:
        op = decode(instruction, address)
        return execute(state, op), op
    except Chip8Error as error:
        raise error.locate(address, instruction)


def tick_timers(state: EmulatorState) -> EmulatorState:
    """Decrement delay and sound timers toward zero."""
    delay_timer = max(int(state.delay_timer) - 1, 0)
    sound_timer = max(int(state.sound_timer) - 1, 0)
    return state.replace(
        delay_timer=jnp.asarray(delay_timer, dtype=jnp.uint8),
        sound_timer=jnp.asarray(sound_timer, dtype=jnp.uint8),
    )


def set_key(state: EmulatorState, key: int, pressed: bool) -> EmulatorState:
    """Set the pressed state of one keypad key."""
    if not 0 <= key < NUM_KEYS:
        raise ValueError(f"Key index must be in 0..{NUM_KEYS - 1}, got {key}")

    key_latch = state.key_latch
    if pressed and state.waiting_for_key and not state.keypad[key]:
        key_latch = key_latch.at[key].set(True)
    return state.replace(keypad=state.keypad.at[key].set(bool(pressed)), key_latch=key_latch)


def load_program(state: EmulatorState, data: bytes, offset: int = PROGRAM_START) -> EmulatorState:
    """Copy raw program bytes into memory starting at ``offset``."""
    check_memory_range(offset, offset + len(data), MEMORY_SIZE)
    if not data:
        return state
    rom_array = jnp.array(list(data), dtype=jnp.uint8)
    new_memory = state.memory.at[offset:offset + len(data)].set(rom_array)
    return state.replace(memory=new_memory)


def load_rom(state: EmulatorState, filename: str) -> EmulatorState:
    """Load ROM data into CHIP-8 memory starting at 0x200."""
    with open(filename, 'rb') as f:
        rom_data = f.read()
    return load_program(state, rom_data)


def framebuffer_bytes(display: jnp.ndarray) -> bytes:
    """Pack a (64, 32) display into 8 bytes per row, MSB leftmost."""
    rows = jnp.packbits(jnp.asarray(display, dtype=jnp.uint8).T, axis=1)
    return bytes(rows.reshape(-1).tolist())
