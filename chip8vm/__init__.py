"""CHIP-8 virtual machine package."""

from chip8vm.state import EmulatorState, StackState, create_state
from chip8vm.emulator import (
    execute, fetch, step, tick_timers, set_key, load_program, load_rom, framebuffer_bytes,
)
from chip8vm.decode import Instruction, decode, format_instruction, disassemble
from chip8vm.errors import Chip8Error, DecodeError, StackOverflow, StackUnderflow, MemoryBoundsError
from chip8vm.machine import Machine
from chip8vm.constants import *
from chip8vm.rendering import display_to_rgb, create_color_scheme

__all__ = [
    "EmulatorState",
    "StackState",
    "create_state",
    "fetch",
    "execute",
    "step",
    "tick_timers",
    "set_key",
    "load_program",
    "load_rom",
    "framebuffer_bytes",
    "Instruction",
    "decode",
    "format_instruction",
    "disassemble",
    "Chip8Error",
    "DecodeError",
    "StackOverflow",
    "StackUnderflow",
    "MemoryBoundsError",
    "Machine",
    "PROGRAM_START",
    "FONT_START",
    "MEMORY_SIZE",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
    "display_to_rgb",
    "create_color_scheme",
]
