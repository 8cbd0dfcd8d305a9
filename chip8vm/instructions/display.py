"""CHIP-8 display operations."""

import jax.numpy as jnp
from chip8vm.state import EmulatorState
from chip8vm.decode import Draw
from chip8vm.constants import SCREEN_WIDTH, SCREEN_HEIGHT, SPRITE_WIDTH, MEMORY_SIZE, FLAG_REGISTER
from chip8vm.errors import check_memory_range

# Sprites are placed on an oversized canvas and cropped, clipping at the
# right and bottom edges.
MAX_SPRITE_HEIGHT = 15
CANVAS_SHAPE = (SCREEN_WIDTH + SPRITE_WIDTH, SCREEN_HEIGHT + MAX_SPRITE_HEIGHT)


def sprite_layer(sprite_rows: jnp.ndarray, sprite_x: int, sprite_y: int) -> jnp.ndarray:
    """Expand sprite bytes into a (64, 32) boolean layer at (x, y)."""
    height = sprite_rows.shape[0]
    bits = jnp.unpackbits(sprite_rows[:, None], axis=1).astype(jnp.bool_)
    canvas = jnp.zeros(CANVAS_SHAPE, dtype=jnp.bool_)
    canvas = canvas.at[sprite_x:sprite_x + SPRITE_WIDTH, sprite_y:sprite_y + height].set(bits.T)
    return canvas[:SCREEN_WIDTH, :SCREEN_HEIGHT]


def execute_display(state: EmulatorState, instruction: Draw) -> EmulatorState:
    """DXYN - Draw sprite at (VX, VY) with height N, VF = collision."""
    sprite_x = int(state.V[instruction.x]) % SCREEN_WIDTH
    sprite_y = int(state.V[instruction.y]) % SCREEN_HEIGHT

    start = int(state.I)
    end = start + instruction.n
    check_memory_range(start, end, MEMORY_SIZE)

    if instruction.n == 0:
        return state.replace(V=state.V.at[FLAG_REGISTER].set(0))

    sprite = sprite_layer(state.memory[start:end], sprite_x, sprite_y)
    collision = jnp.any(state.display & sprite)

    return state.replace(
        display=state.display ^ sprite,
        V=state.V.at[FLAG_REGISTER].set(int(collision)),
    )
