"""CHIP-8 control flow instructions."""

import jax
import jax.lax
import jax.numpy as jnp
from chipax.constants import NUM_KEYS
from chipax.state import MachineState
from chipax.decode import DecodedInstruction
from chipax.stack import push
from chipax.instructions.system import unknown_instruction


def execute_jump(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """1NNN - Jump to address NNN."""
    return state.replace(pc=jnp.astype(instruction.nnn, jnp.uint16))


def execute_call(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """2NNN - Call subroutine at NNN."""
    stack, fault = push(state.stack, state.pc, wrap=state.wrap_stack)
    state = state.replace(stack=stack, fault=fault)
    return execute_jump(state, instruction)


def make_skip_instruction(condition_fn):
    """Factory for skip instructions."""
    def skip_instruction(state: MachineState, instruction: DecodedInstruction) -> MachineState:
        condition = condition_fn(state, instruction)
        return jax.lax.cond(
            condition,
            lambda s: s.replace(pc=jnp.astype(s.pc + 2, jnp.uint16)),
            lambda s: s,
            state
        )
    return skip_instruction


execute_skip_if_equal_immediate = make_skip_instruction(
    lambda state, inst: state.V[inst.x] == inst.kk
)

execute_skip_if_not_equal_immediate = make_skip_instruction(
    lambda state, inst: state.V[inst.x] != inst.kk
)

execute_skip_if_equal_register = make_skip_instruction(
    lambda state, inst: state.V[inst.x] == state.V[inst.y]
)

execute_skip_if_not_equal_register = make_skip_instruction(
    lambda state, inst: state.V[inst.x] != state.V[inst.y]
)


def execute_jump_with_offset(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """BNNN - Jump to address NNN + V0.

    The target is not masked to 12 bits; a target past the end of memory
    faults on the next fetch.
    """
    jump_address = jnp.astype(instruction.nnn, jnp.uint16) + jnp.astype(state.V[0], jnp.uint16)
    return state.replace(pc=jump_address)


def key_pressed(state: MachineState, key: jnp.ndarray) -> jnp.ndarray:
    """Whether ``key`` is held. Values past 0xF name no key and read as released."""
    key = jnp.astype(key, jnp.int32)
    return (key < NUM_KEYS) & state.keypad[jnp.minimum(key, NUM_KEYS - 1)]


execute_skip_if_key_pressed = make_skip_instruction(
    lambda state, inst: key_pressed(state, state.V[inst.x])
)

execute_skip_if_key_not_pressed = make_skip_instruction(
    lambda state, inst: ~key_pressed(state, state.V[inst.x])
)


def execute_key_instruction(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """Dispatch keypad skip instructions (EXxx)."""
    switch_index = jnp.where(
        instruction.kk == 0x9E, 0,
        jnp.where(instruction.kk == 0xA1, 1, 2)
    )
    return jax.lax.switch(
        switch_index,
        [
            execute_skip_if_key_pressed,
            execute_skip_if_key_not_pressed,
            unknown_instruction,
        ],
        state, instruction
    )
