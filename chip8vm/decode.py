"""CHIP-8 instruction decoding.

Each instruction decodes to one frozen record whose fields hold the operands
already extracted from the raw word:

* ``x``, ``y`` -- register indices (second and third nibble)
* ``n`` -- 4-bit immediate (fourth nibble)
* ``nn`` -- 8-bit immediate (low byte)
* ``nnn`` -- 12-bit address (low three nibbles)
"""

from typing import Iterator, Optional, Union

from chex import dataclass

from chip8vm.constants import PROGRAM_START
from chip8vm.errors import DecodeError


@dataclass(frozen=True)
class NoOperation:
    """0000 - Do nothing."""


@dataclass(frozen=True)
class ClearScreen:
    """00E0 - CLS."""


@dataclass(frozen=True)
class Return:
    """00EE - RET."""


@dataclass(frozen=True)
class Jump:
    """1NNN - JP addr."""
    nnn: int


@dataclass(frozen=True)
class Call:
    """2NNN - CALL addr."""
    nnn: int


@dataclass(frozen=True)
class SkipIfEqualImmediate:
    """3XNN - SE Vx, byte."""
    x: int
    nn: int


@dataclass(frozen=True)
class SkipIfNotEqualImmediate:
    """4XNN - SNE Vx, byte."""
    x: int
    nn: int


@dataclass(frozen=True)
class SkipIfEqualRegister:
    """5XY0 - SE Vx, Vy."""
    x: int
    y: int


@dataclass(frozen=True)
class SetImmediate:
    """6XNN - LD Vx, byte."""
    x: int
    nn: int


@dataclass(frozen=True)
class AddImmediate:
    """7XNN - ADD Vx, byte."""
    x: int
    nn: int


@dataclass(frozen=True)
class Move:
    """8XY0 - LD Vx, Vy."""
    x: int
    y: int


@dataclass(frozen=True)
class Or:
    """8XY1 - OR Vx, Vy."""
    x: int
    y: int


@dataclass(frozen=True)
class And:
    """8XY2 - AND Vx, Vy."""
    x: int
    y: int


@dataclass(frozen=True)
class Xor:
    """8XY3 - XOR Vx, Vy."""
    x: int
    y: int


@dataclass(frozen=True)
class AddRegister:
    """8XY4 - ADD Vx, Vy."""
    x: int
    y: int


@dataclass(frozen=True)
class Subtract:
    """8XY5 - SUB Vx, Vy."""
    x: int
    y: int


@dataclass(frozen=True)
class ShiftRight:
    """8XY6 - SHR Vx."""
    x: int
    y: int


@dataclass(frozen=True)
class SubtractReverse:
    """8XY7 - SUBN Vx, Vy."""
    x: int
    y: int


@dataclass(frozen=True)
class ShiftLeft:
    """8XYE - SHL Vx."""
    x: int
    y: int


@dataclass(frozen=True)
class SkipIfNotEqualRegister:
    """9XY0 - SNE Vx, Vy."""
    x: int
    y: int


@dataclass(frozen=True)
class SetIndex:
    """ANNN - LD I, addr."""
    nnn: int


@dataclass(frozen=True)
class JumpWithOffset:
    """BNNN - JP V0, addr."""
    nnn: int


@dataclass(frozen=True)
class Random:
    """CXNN - RND Vx, byte."""
    x: int
    nn: int


@dataclass(frozen=True)
class Draw:
    """DXYN - DRW Vx, Vy, nibble."""
    x: int
    y: int
    n: int


@dataclass(frozen=True)
class SkipIfKeyPressed:
    """EX9E - SKP Vx."""
    x: int


@dataclass(frozen=True)
class SkipIfKeyNotPressed:
    """EXA1 - SKNP Vx."""
    x: int


@dataclass(frozen=True)
class GetDelayTimer:
    """FX07 - LD Vx, DT."""
    x: int


@dataclass(frozen=True)
class WaitForKey:
    """FX0A - LD Vx, K."""
    x: int


@dataclass(frozen=True)
class SetDelayTimer:
    """FX15 - LD DT, Vx."""
    x: int


@dataclass(frozen=True)
class SetSoundTimer:
    """FX18 - LD ST, Vx."""
    x: int


@dataclass(frozen=True)
class AddToIndex:
    """FX1E - ADD I, Vx."""
    x: int


@dataclass(frozen=True)
class FontCharacter:
    """FX29 - LD F, Vx."""
    x: int


@dataclass(frozen=True)
class StoreBCD:
    """FX33 - LD B, Vx."""
    x: int


@dataclass(frozen=True)
class StoreRegisters:
    """FX55 - LD [I], Vx."""
    x: int


@dataclass(frozen=True)
class LoadRegisters:
    """FX65 - LD Vx, [I]."""
    x: int


Instruction = Union[
    NoOperation, ClearScreen, Return, Jump, Call,
    SkipIfEqualImmediate, SkipIfNotEqualImmediate, SkipIfEqualRegister,
    SetImmediate, AddImmediate,
    Move, Or, And, Xor, AddRegister, Subtract, ShiftRight, SubtractReverse, ShiftLeft,
    SkipIfNotEqualRegister, SetIndex, JumpWithOffset, Random, Draw,
    SkipIfKeyPressed, SkipIfKeyNotPressed,
    GetDelayTimer, WaitForKey, SetDelayTimer, SetSoundTimer, AddToIndex,
    FontCharacter, StoreBCD, StoreRegisters, LoadRegisters,
]

_SYSTEM_OPS = {
    0x0000: NoOperation,
    0x00E0: ClearScreen,
    0x00EE: Return,
}

_ALU_OPS = {
    0x0: Move,
    0x1: Or,
    0x2: And,
    0x3: Xor,
    0x4: AddRegister,
    0x5: Subtract,
    0x6: ShiftRight,
    0x7: SubtractReverse,
    0xE: ShiftLeft,
}

_KEY_OPS = {
    0x9E: SkipIfKeyPressed,
    0xA1: SkipIfKeyNotPressed,
}

_MISC_OPS = {
    0x07: GetDelayTimer,
    0x0A: WaitForKey,
    0x15: SetDelayTimer,
    0x18: SetSoundTimer,
    0x1E: AddToIndex,
    0x29: FontCharacter,
    0x33: StoreBCD,
    0x55: StoreRegisters,
    0x65: LoadRegisters,
}

_MNEMONICS = {
    NoOperation: "NOP",
    ClearScreen: "CLS",
    Return: "RET",
    Jump: "JP 0x{nnn:03X}",
    Call: "CALL 0x{nnn:03X}",
    SkipIfEqualImmediate: "SE V{x:X}, 0x{nn:02X}",
    SkipIfNotEqualImmediate: "SNE V{x:X}, 0x{nn:02X}",
    SkipIfEqualRegister: "SE V{x:X}, V{y:X}",
    SetImmediate: "LD V{x:X}, 0x{nn:02X}",
    AddImmediate: "ADD V{x:X}, 0x{nn:02X}",
    Move: "LD V{x:X}, V{y:X}",
    Or: "OR V{x:X}, V{y:X}",
    And: "AND V{x:X}, V{y:X}",
    Xor: "XOR V{x:X}, V{y:X}",
    AddRegister: "ADD V{x:X}, V{y:X}",
    Subtract: "SUB V{x:X}, V{y:X}",
    ShiftRight: "SHR V{x:X}",
    SubtractReverse: "SUBN V{x:X}, V{y:X}",
    ShiftLeft: "SHL V{x:X}",
    SkipIfNotEqualRegister: "SNE V{x:X}, V{y:X}",
    SetIndex: "LD I, 0x{nnn:03X}",
    JumpWithOffset: "JP V0, 0x{nnn:03X}",
    Random: "RND V{x:X}, 0x{nn:02X}",
    Draw: "DRW V{x:X}, V{y:X}, {n}",
    SkipIfKeyPressed: "SKP V{x:X}",
    SkipIfKeyNotPressed: "SKNP V{x:X}",
    GetDelayTimer: "LD V{x:X}, DT",
    WaitForKey: "LD V{x:X}, K",
    SetDelayTimer: "LD DT, V{x:X}",
    SetSoundTimer: "LD ST, V{x:X}",
    AddToIndex: "ADD I, V{x:X}",
    FontCharacter: "LD F, V{x:X}",
    StoreBCD: "LD B, V{x:X}",
    StoreRegisters: "LD [I], V{x:X}",
    LoadRegisters: "LD V{x:X}, [I]",
}


def decode(instruction: int, address: Optional[int] = None) -> Instruction:
    """Decode 16-bit instruction into its operation record.

    Raises:
        DecodeError: if the bit pattern is not a CHIP-8 instruction.
    """
    instruction = int(instruction) & 0xFFFF
    opcode = (instruction & 0xF000) >> 12
    x = (instruction & 0x0F00) >> 8
    y = (instruction & 0x00F0) >> 4
    n = instruction & 0x000F
    nn = instruction & 0x00FF
    nnn = instruction & 0x0FFF

    if opcode == 0x0:
        if instruction in _SYSTEM_OPS:
            return _SYSTEM_OPS[instruction]()
    elif opcode == 0x1:
        return Jump(nnn=nnn)
    elif opcode == 0x2:
        return Call(nnn=nnn)
    elif opcode == 0x3:
        return SkipIfEqualImmediate(x=x, nn=nn)
    elif opcode == 0x4:
        return SkipIfNotEqualImmediate(x=x, nn=nn)
    elif opcode == 0x5:
        if n == 0:
            return SkipIfEqualRegister(x=x, y=y)
    elif opcode == 0x6:
        return SetImmediate(x=x, nn=nn)
    elif opcode == 0x7:
        return AddImmediate(x=x, nn=nn)
    elif opcode == 0x8:
        if n in _ALU_OPS:
            return _ALU_OPS[n](x=x, y=y)
    elif opcode == 0x9:
        if n == 0:
            return SkipIfNotEqualRegister(x=x, y=y)
    elif opcode == 0xA:
        return SetIndex(nnn=nnn)
    elif opcode == 0xB:
        return JumpWithOffset(nnn=nnn)
    elif opcode == 0xC:
        return Random(x=x, nn=nn)
    elif opcode == 0xD:
        return Draw(x=x, y=y, n=n)
    elif opcode == 0xE:
        if nn in _KEY_OPS:
            return _KEY_OPS[nn](x=x)
    elif nn in _MISC_OPS:
        return _MISC_OPS[nn](x=x)

    raise DecodeError(instruction, address)


def format_instruction(op: Instruction) -> str:
    """Render a decoded instruction as its conventional mnemonic."""
    return _MNEMONICS[type(op)].format(**op)


def disassemble(program: bytes, start: int = PROGRAM_START) -> Iterator[tuple[int, int, str]]:
    """Yield ``(address, raw, text)`` for each word of a program image.

    Words that do not decode are rendered as ``DW`` data, a trailing odd
    byte as ``DB``.
    """
    for offset in range(0, len(program) - 1, 2):
        raw = (program[offset] << 8) | program[offset + 1]
        try:
            text = format_instruction(decode(raw))
        except DecodeError:
            text = f"DW 0x{raw:04X}"
        yield start + offset, raw, text

    if len(program) % 2:
        last = program[-1]
        yield start + len(program) - 1, last, f"DB 0x{last:02X}"
