"""CHIP-8 machine state structures."""

import enum
import time

import jax
import jax.numpy as jnp
from flax.struct import PyTreeNode, field

from chipax.constants import (
    MEMORY_SIZE, PROGRAM_START, FONT_START, FONT_DATA, SCREEN_WIDTH, SCREEN_HEIGHT,
    STACK_SIZE, NUM_REGISTERS, NUM_KEYS,
)


class Fault(enum.IntEnum):
    """Condition raised by the last executed cycle.

    Codes from ``ADDRESS_OUT_OF_RANGE`` upwards are fatal: the faulting
    instruction is rolled back and the host is expected to stop stepping.
    """
    NONE = 0
    UNKNOWN_INSTRUCTION = 1
    ADDRESS_OUT_OF_RANGE = 2
    STACK_OVERFLOW = 3
    STACK_UNDERFLOW = 4


FIRST_FATAL_FAULT = Fault.ADDRESS_OUT_OF_RANGE


class StackState(PyTreeNode):
    """Stack state for subroutine calls."""
    data: jnp.ndarray
    pointer: jnp.ndarray


class MachineState(PyTreeNode):
    """Main CHIP-8 machine state.

    Registers follow the usual CHIP-8 names: ``V`` is the 16-slot register
    file (``V[0xF]`` doubles as the carry/borrow/collision flag) and ``I``
    is the index register. ``display`` is indexed ``[x, y]``.
    """
    rng: jax.Array
    memory: jnp.ndarray
    pc: jnp.ndarray
    display: jnp.ndarray
    stack: StackState
    delay_timer: jnp.ndarray
    sound_timer: jnp.ndarray
    keypad: jnp.ndarray
    V: jnp.ndarray
    I: jnp.ndarray
    current_instruction: jnp.ndarray
    fault: jnp.ndarray
    awaiting_key: jnp.ndarray
    halt_on_unknown: bool = field(pytree_node=False, default=False)
    wrap_stack: bool = field(pytree_node=False, default=False)

    @property
    def is_faulted(self) -> bool:
        """Whether the last cycle stopped on a fatal fault."""
        return int(self.fault) >= FIRST_FATAL_FAULT


def time_seeded_key() -> jax.Array:
    """PRNG key seeded from the wall clock."""
    return jax.random.PRNGKey(time.time_ns() & 0xFFFFFFFF)


def create_state(
    rng: jax.Array | None = None,
    halt_on_unknown: bool = False,
    wrap_stack: bool = False,
) -> MachineState:
    """Create initial machine state with font data loaded."""
    if rng is None:
        rng = time_seeded_key()

    memory = jnp.zeros(MEMORY_SIZE, dtype=jnp.uint8)
    memory = memory.at[FONT_START:FONT_START + len(FONT_DATA)].set(jnp.asarray(FONT_DATA))

    return MachineState(
        rng=rng,
        memory=memory,
        pc=jnp.asarray(PROGRAM_START, dtype=jnp.uint16),
        display=jnp.zeros((SCREEN_WIDTH, SCREEN_HEIGHT), dtype=jnp.bool_),
        stack=StackState(
            data=jnp.zeros(STACK_SIZE, dtype=jnp.uint16),
            pointer=jnp.zeros((), dtype=jnp.uint8),
        ),
        delay_timer=jnp.zeros((), dtype=jnp.uint8),
        sound_timer=jnp.zeros((), dtype=jnp.uint8),
        keypad=jnp.zeros(NUM_KEYS, dtype=jnp.bool_),
        V=jnp.zeros(NUM_REGISTERS, dtype=jnp.uint8),
        I=jnp.zeros((), dtype=jnp.uint16),
        current_instruction=jnp.zeros((), dtype=jnp.uint16),
        fault=jnp.asarray(Fault.NONE, dtype=jnp.uint8),
        awaiting_key=jnp.zeros((), dtype=jnp.bool_),
        halt_on_unknown=halt_on_unknown,
        wrap_stack=wrap_stack,
    )


def with_fault(state: MachineState, fault: Fault) -> MachineState:
    """Record ``fault`` on the state."""
    if isinstance(fault, Fault):
        fault = int(fault)
    return state.replace(fault=jnp.asarray(fault, dtype=jnp.uint8))
