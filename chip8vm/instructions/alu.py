"""CHIP-8 ALU operations (8xxx).

Each ALU function maps the operand values ``(vx, vy)`` to ``(result, vf)``
where ``vf`` is None for operations that leave the flag register alone.
"""

from typing import Optional

from chip8vm.state import EmulatorState
from chip8vm.constants import FLAG_REGISTER
from chip8vm.decode import (
    Move, Or, And, Xor, AddRegister, Subtract, ShiftRight, SubtractReverse, ShiftLeft,
)


def alu_set(vx: int, vy: int) -> tuple[int, Optional[int]]:
    """8XY0 - Set: VX = VY."""
    return vy, None


def alu_or(vx: int, vy: int) -> tuple[int, Optional[int]]:
    """8XY1 - Binary OR: VX |= VY."""
    return vx | vy, None


def alu_and(vx: int, vy: int) -> tuple[int, Optional[int]]:
    """8XY2 - Binary AND: VX &= VY."""
    return vx & vy, None


def alu_xor(vx: int, vy: int) -> tuple[int, Optional[int]]:
    """8XY3 - Logical XOR: VX ^= VY."""
    return vx ^ vy, None


def alu_add(vx: int, vy: int) -> tuple[int, int]:
    """8XY4 - Add: VX += VY, set carry flag."""
    result = vx + vy
    carry = int(result > 255)
    return result & 0xFF, carry


def alu_sub_xy(vx: int, vy: int) -> tuple[int, int]:
    """8XY5 - Subtract: VX -= VY, VF = not borrow."""
    borrow_flag = int(vx >= vy)
    result = (vx - vy) & 0xFF
    return result, borrow_flag


def alu_shift_right(vx: int, vy: int) -> tuple[int, int]:
    """8XY6 - Shift right: VX >>= 1."""
    shifted_bit = vx & 1
    result = vx >> 1
    return result, shifted_bit


def alu_sub_yx(vx: int, vy: int) -> tuple[int, int]:
    """8XY7 - Subtract: VX = VY - VX, VF = not borrow."""
    borrow_flag = int(vy >= vx)
    result = (vy - vx) & 0xFF
    return result, borrow_flag


def alu_shift_left(vx: int, vy: int) -> tuple[int, int]:
    """8XYE - Shift left: VX <<= 1."""
    shifted_bit = (vx & 0x80) >> 7
    result = (vx << 1) & 0xFF
    return result, shifted_bit


ALU_FUNCTIONS = {
    Move: alu_set,
    Or: alu_or,
    And: alu_and,
    Xor: alu_xor,
    AddRegister: alu_add,
    Subtract: alu_sub_xy,
    ShiftRight: alu_shift_right,
    SubtractReverse: alu_sub_yx,
    ShiftLeft: alu_shift_left,
}


def execute_alu_operation(state: EmulatorState, instruction) -> EmulatorState:
    """8XYN - ALU operations dispatcher."""
    vx = int(state.V[instruction.x])
    vy = int(state.V[instruction.y])

    result, vf = ALU_FUNCTIONS[type(instruction)](vx, vy)

    # VF is written last so the flag wins when X is F
    new_V = state.V.at[instruction.x].set(result)
    if vf is not None:
        new_V = new_V.at[FLAG_REGISTER].set(vf)
    return state.replace(V=new_V)
