"""CHIP-8 memory and register operations."""

import jax
import jax.numpy as jnp
from chipax.state import MachineState
from chipax.decode import DecodedInstruction


def execute_set(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """6XKK - Set VX = KK."""
    return state.replace(V=state.V.at[instruction.x].set(jnp.astype(instruction.kk, jnp.uint8)))


def execute_add(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """7XKK - Add KK to VX, wrapping at 256. VF is untouched."""
    total = jnp.astype(state.V[instruction.x], jnp.int32) + instruction.kk
    return state.replace(V=state.V.at[instruction.x].set(jnp.astype(total & 0xFF, jnp.uint8)))


def execute_set_index(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """ANNN - Set I = NNN."""
    return state.replace(I=jnp.astype(instruction.nnn, jnp.uint16))


def random_byte(rng: jax.Array) -> tuple[jax.Array, jnp.ndarray]:
    """Draw a uniform byte, returning the advanced key and the value."""
    key, subkey = jax.random.split(rng)
    value = jax.random.randint(subkey, shape=(), minval=0, maxval=256, dtype=jnp.int32)
    return key, jnp.astype(value, jnp.uint8)


def execute_random(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """CXKK - Set VX = random & KK."""
    key, value = random_byte(state.rng)
    masked = value & jnp.astype(instruction.kk, jnp.uint8)
    return state.replace(V=state.V.at[instruction.x].set(masked), rng=key)
