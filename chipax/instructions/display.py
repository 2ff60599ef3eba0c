"""CHIP-8 display operations."""

import jax.numpy as jnp
from chipax.state import MachineState, Fault
from chipax.decode import DecodedInstruction
from chipax.constants import SCREEN_WIDTH, SCREEN_HEIGHT, SPRITE_WIDTH, MEMORY_SIZE, FLAG_REGISTER

# Pre-computed coordinate grids for display operations
xx, yy = jnp.meshgrid(jnp.arange(SCREEN_WIDTH), jnp.arange(SCREEN_HEIGHT), indexing='ij')


def execute_display(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """DXYN - Draw sprite at (VX, VY) with height N.

    Sprite rows come from ``memory[I:I + N]``. Each pixel wraps around the
    screen edges on its own, so a sprite drawn near a corner continues on
    the opposite side. VF is set when any lit pixel is switched off.
    Reading sprite rows past the end of memory is an address fault.
    """
    sprite_x = jnp.astype(state.V[instruction.x], jnp.int32) % SCREEN_WIDTH
    sprite_y = jnp.astype(state.V[instruction.y], jnp.int32) % SCREEN_HEIGHT
    height = jnp.astype(instruction.n, jnp.int32)
    index = jnp.astype(state.I, jnp.int32)

    # Offset of every screen cell inside the (wrapped) sprite rectangle
    col_offset = (xx - sprite_x) % SCREEN_WIDTH
    row_offset = (yy - sprite_y) % SCREEN_HEIGHT
    in_sprite = (col_offset < SPRITE_WIDTH) & (row_offset < height)

    addresses = jnp.minimum(index + row_offset, MEMORY_SIZE - 1)
    sprite_bytes = jnp.astype(state.memory[addresses], jnp.int32)
    sprite = (((sprite_bytes >> (SPRITE_WIDTH - 1 - jnp.minimum(col_offset, SPRITE_WIDTH - 1))) & 1) == 1) & in_sprite

    collision = jnp.any(state.display & sprite)
    out_of_range = (height > 0) & (index + height > MEMORY_SIZE)

    return state.replace(
        display=state.display ^ sprite,
        V=state.V.at[FLAG_REGISTER].set(jnp.astype(collision, jnp.uint8)),
        fault=jnp.where(out_of_range, int(Fault.ADDRESS_OUT_OF_RANGE), state.fault).astype(jnp.uint8),
    )
