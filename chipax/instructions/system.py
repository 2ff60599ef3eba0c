"""CHIP-8 system instructions (0x0xxx)."""

import jax
import jax.lax
import jax.numpy as jnp
from chipax.state import MachineState, Fault, with_fault
from chipax.decode import DecodedInstruction
from chipax.stack import pop


def unknown_instruction(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """Unrecognized instruction: no-op that reports the fault."""
    return with_fault(state, Fault.UNKNOWN_INSTRUCTION)


def execute_clear_screen(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """00E0 - Clear display."""
    return state.replace(display=jnp.zeros_like(state.display))


def execute_return(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """00EE - Return from subroutine."""
    stack, address, fault = pop(state.stack, wrap=state.wrap_stack)
    return state.replace(stack=stack, pc=address, fault=fault)


def execute_system_instruction(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """Dispatch system instructions."""
    return jax.lax.cond(
        0x00E0 == instruction.raw,
        execute_clear_screen,
        lambda state, instruction: jax.lax.cond(
            0x00EE == instruction.raw,
            execute_return,
            unknown_instruction,
            state, instruction
        ),
        state, instruction
    )
