"""CHIP-8 miscellaneous instructions (Fxxx)."""

import jax
import jax.lax
import jax.numpy as jnp
import numpy as np
from chipax.state import MachineState, Fault
from chipax.decode import DecodedInstruction
from chipax.constants import FONT_START, FONT_GLYPH_SIZE, MEMORY_SIZE, REGISTER_BLOCK_SIZE
from chipax.instructions.system import unknown_instruction


def execute_get_delay_timer(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """FX07 - Set VX to delay timer value."""
    return state.replace(V=state.V.at[instruction.x].set(state.delay_timer))


def execute_set_delay_timer(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """FX15 - Set delay timer to VX."""
    return state.replace(delay_timer=state.V[instruction.x])


def execute_set_sound_timer(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """FX18 - Set sound timer to VX."""
    return state.replace(sound_timer=state.V[instruction.x])


def execute_add_to_index(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """FX1E - Add VX to I register. No flag, wraps at 16 bits."""
    new_i = jnp.astype(state.I, jnp.int32) + jnp.astype(state.V[instruction.x], jnp.int32)
    return state.replace(I=jnp.astype(new_i & 0xFFFF, jnp.uint16))


def execute_wait_for_key(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """FX0A - Wait for key press.

    With no key held the instruction rewinds the program counter so the next
    cycle polls again, and flags the state as awaiting input.
    """
    def key_pressed_action(state):
        pressed_key = jnp.argmax(state.keypad)
        return state.replace(
            V=state.V.at[instruction.x].set(jnp.astype(pressed_key, jnp.uint8)),
            awaiting_key=jnp.zeros((), dtype=jnp.bool_),
        )

    def wait_action(state):
        return state.replace(
            pc=jnp.astype(state.pc - 2, jnp.uint16),
            awaiting_key=jnp.ones((), dtype=jnp.bool_),
        )

    return jax.lax.cond(jnp.any(state.keypad), key_pressed_action, wait_action, state)


def execute_font_character(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """FX29 - Set I to location of sprite for digit VX."""
    font_address = FONT_START + jnp.astype(state.V[instruction.x], jnp.int32) * FONT_GLYPH_SIZE
    return state.replace(I=jnp.astype(font_address, jnp.uint16))


def execute_bcd_conversion(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """FX33 - Store BCD representation of VX at I, I+1, I+2."""
    value = jnp.astype(state.V[instruction.x], jnp.int32)

    digits = jnp.array([
        value // 100,
        (value // 10) % 10,
        value % 10
    ]).astype(jnp.uint8)

    indices = jnp.arange(3) + jnp.astype(state.I, jnp.int32)
    out_of_range = indices[-1] >= MEMORY_SIZE
    new_memory = state.memory.at[indices].set(digits, mode='drop')
    return state.replace(
        memory=new_memory,
        fault=jnp.where(out_of_range, int(Fault.ADDRESS_OUT_OF_RANGE), state.fault).astype(jnp.uint8),
    )


def _register_block(state: MachineState) -> jnp.ndarray:
    return jnp.astype(state.I, jnp.int32) + jnp.arange(REGISTER_BLOCK_SIZE)


def execute_store_registers(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """FX55 - Store all registers in memory starting at I.

    Slots that would land past the end of memory are not written.
    """
    new_memory = state.memory.at[_register_block(state)].set(state.V, mode='drop')
    return state.replace(memory=new_memory)


def execute_load_registers(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """FX65 - Load all registers from memory starting at I.

    Registers whose source address lies past the end of memory keep their value.
    """
    addresses = _register_block(state)
    memory_values = state.memory.at[addresses].get(mode='fill', fill_value=0)
    new_V = jnp.where(addresses < MEMORY_SIZE, memory_values, state.V)
    return state.replace(V=new_V)


MISC_OPERATIONS = [
    execute_get_delay_timer,
    execute_wait_for_key,
    execute_set_delay_timer,
    execute_set_sound_timer,
    execute_add_to_index,
    execute_font_character,
    execute_bcd_conversion,
    execute_store_registers,
    execute_load_registers,
    unknown_instruction,
]

# Low byte -> position in MISC_OPERATIONS; everything unmapped is unknown.
MISC_TABLE = np.full(256, len(MISC_OPERATIONS) - 1, dtype=np.int32)
MISC_TABLE[[0x07, 0x0A, 0x15, 0x18, 0x1E, 0x29, 0x33, 0x55, 0x65]] = np.arange(len(MISC_OPERATIONS) - 1)


def execute_misc_instruction(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """Dispatch misc instructions through the low-byte table."""
    return jax.lax.switch(
        jnp.asarray(MISC_TABLE)[instruction.kk],
        MISC_OPERATIONS,
        state, instruction
    )
