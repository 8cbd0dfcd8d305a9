"""Stateful CHIP-8 machine for host driver loops.

The functional core (``emulator.step`` and friends) returns new states; a
``Machine`` owns one state and exposes the host interface: load a program,
run cycles, tick timers at the host's 60 Hz, feed key state and poll the
framebuffer. It does no timing or sleeping of its own.
"""

import os
from typing import Optional

import jax
import jax.numpy as jnp

from chip8vm import emulator
from chip8vm.constants import MEMORY_SIZE
from chip8vm.decode import format_instruction
from chip8vm.errors import Chip8Error
from chip8vm.logging import MachineLogger, get_logger
from chip8vm.state import EmulatorState, create_state


class Machine:
    """A single CHIP-8 machine instance."""

    def __init__(
        self,
        rng: Optional[jax.Array] = None,
        logger: Optional[MachineLogger] = None,
        trace: bool = False,
    ):
        self.state: EmulatorState = create_state(rng)
        self.logger = logger or get_logger()
        self.trace = trace
        self.cycles = 0

    def load(self, data: bytes) -> None:
        """Copy a program image into memory at 0x200."""
        self.state = emulator.load_program(self.state, data)
        self.logger.log_load(len(data))

    def load_rom(self, filename: str) -> None:
        self.state = emulator.load_rom(self.state, filename)
        self.logger.log_load(os.path.getsize(filename), filename)

    def step(self) -> None:
        """Run one fetch-decode-execute cycle."""
        address = int(self.state.pc)
        tracing = self.trace and self.logger.is_enabled_for("DEBUG") and address + 2 <= MEMORY_SIZE
        if tracing:
            raw = (int(self.state.memory[address]) << 8) | int(self.state.memory[address + 1])
        try:
            self.state, op = emulator.step(self.state)
        except Chip8Error as error:
            self.logger.log_fault(error)
            raise
        self.cycles += 1
        if tracing:
            self.logger.log_instruction(address, raw, format_instruction(op))

    def run(self, max_cycles: Optional[int] = None) -> int:
        """Step until PC leaves memory or ``max_cycles`` cycles have run.

        Returns:
            Number of cycles executed.
        """
        if max_cycles is not None and max_cycles < 0:
            raise ValueError(f"max_cycles must be non-negative, got {max_cycles}")

        executed = 0
        while int(self.state.pc) < MEMORY_SIZE:
            if max_cycles is not None and executed >= max_cycles:
                break
            self.step()
            executed += 1
        return executed

    def tick_timers(self) -> None:
        self.state = emulator.tick_timers(self.state)

    def set_key(self, index: int, pressed: bool) -> None:
        self.state = emulator.set_key(self.state, index, pressed)

    def framebuffer(self) -> jnp.ndarray:
        """Read-only (64, 32) boolean view of the display, indexed [x, y]."""
        return self.state.display

    def framebuffer_bytes(self) -> bytes:
        return emulator.framebuffer_bytes(self.state.display)

    @property
    def registers(self) -> list[int]:
        return [int(v) for v in self.state.V]

    @property
    def pc(self) -> int:
        return int(self.state.pc)

    @property
    def index(self) -> int:
        return int(self.state.I)

    @property
    def sp(self) -> int:
        return int(self.state.stack.pointer)

    @property
    def delay_timer(self) -> int:
        return int(self.state.delay_timer)

    @property
    def sound_timer(self) -> int:
        return int(self.state.sound_timer)

    @property
    def sound_active(self) -> bool:
        """True while the sound timer is running."""
        return self.sound_timer > 0

    @property
    def waiting_for_key(self) -> bool:
        return bool(self.state.waiting_for_key)
