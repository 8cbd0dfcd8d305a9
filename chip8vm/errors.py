"""CHIP-8 machine faults.

Every fault is fatal: the cycle that raised it is abandoned and the host is
expected to stop the machine. ``step`` annotates the error with the address
and raw bits of the instruction that triggered it.
"""

from typing import Optional

from chip8vm.constants import MEMORY_SIZE


class Chip8Error(Exception):
    """Base error for machine faults."""

    def __init__(self, detail: str, address: Optional[int] = None, instruction: Optional[int] = None):
        super().__init__(detail)
        self.detail = detail
        self.address = address
        self.instruction = instruction

    def locate(self, address: int, instruction: int) -> "Chip8Error":
        """Attach the faulting instruction unless already known."""
        if self.address is None:
            self.address = address
        if self.instruction is None:
            self.instruction = instruction
        return self

    def __str__(self) -> str:
        if self.address is None:
            return self.detail
        if self.instruction is None:
            return f"{self.detail} (at 0x{self.address:03X})"
        return f"{self.detail} (instruction 0x{self.instruction:04X} at 0x{self.address:03X})"


class DecodeError(Chip8Error):
    """Raised when an instruction matches no known opcode."""

    def __init__(self, instruction: int, address: Optional[int] = None):
        super().__init__(f"unknown instruction 0x{instruction:04X}", address, instruction)


class StackOverflow(Chip8Error):
    """Raised by CALL when all stack slots are in use."""


class StackUnderflow(Chip8Error):
    """Raised by RET with an empty stack."""


class MemoryBoundsError(Chip8Error):
    """Raised when an address range extends past the top of memory."""

    def __init__(self, start: int, end: int, address: Optional[int] = None, instruction: Optional[int] = None):
        super().__init__(f"memory range 0x{start:03X}..0x{end:03X} out of bounds", address, instruction)
        self.start = start
        self.end = end


def check_memory_range(start: int, end: int, memory_size: int = MEMORY_SIZE) -> None:
    """Raise MemoryBoundsError unless ``[start, end)`` lies inside memory."""
    if start < 0 or end > memory_size:
        raise MemoryBoundsError(start, end)
