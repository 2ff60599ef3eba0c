"""CHIP-8 stack operations."""

import jax.numpy as jnp
from chipax.constants import STACK_SIZE
from chipax.state import StackState, Fault


def push(stack: StackState, address: jnp.ndarray, wrap: bool = False) -> tuple[StackState, jnp.ndarray]:
    """Push address onto stack.

    Returns the new stack and a fault code. A full stack is left untouched
    and reports ``STACK_OVERFLOW`` unless ``wrap`` is set, in which case the
    pointer wraps around and the oldest frame is overwritten.
    """
    pointer = stack.pointer.astype(jnp.int32)
    overflow = pointer >= STACK_SIZE
    if wrap:
        slot = pointer % STACK_SIZE
        new_pointer = (pointer + 1) % STACK_SIZE
        fault = jnp.asarray(int(Fault.NONE), dtype=jnp.uint8)
    else:
        slot = jnp.minimum(pointer, STACK_SIZE - 1)
        new_pointer = jnp.where(overflow, pointer, pointer + 1)
        fault = jnp.where(overflow, int(Fault.STACK_OVERFLOW), int(Fault.NONE)).astype(jnp.uint8)

    new_data = stack.data.at[slot].set(jnp.astype(address, jnp.uint16))
    return stack.replace(data=new_data, pointer=new_pointer.astype(jnp.uint8)), fault


def pop(stack: StackState, wrap: bool = False) -> tuple[StackState, jnp.ndarray, jnp.ndarray]:
    """Pop address from stack.

    Returns the new stack, the popped address and a fault code. Popping an
    empty stack reports ``STACK_UNDERFLOW`` unless ``wrap`` is set.
    """
    pointer = stack.pointer.astype(jnp.int32)
    underflow = pointer <= 0
    if wrap:
        new_pointer = (pointer - 1) % STACK_SIZE
        fault = jnp.asarray(int(Fault.NONE), dtype=jnp.uint8)
    else:
        new_pointer = jnp.where(underflow, pointer, pointer - 1)
        fault = jnp.where(underflow, int(Fault.STACK_UNDERFLOW), int(Fault.NONE)).astype(jnp.uint8)

    popped_address = stack.data[new_pointer]
    return stack.replace(pointer=new_pointer.astype(jnp.uint8)), popped_address, fault
