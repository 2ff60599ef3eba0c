"""Main CHIP-8 emulator execution engine."""

from functools import partial

import jax
import jax.lax
import jax.numpy as jnp
import numpy as np
from chipax.state import MachineState, Fault, FIRST_FATAL_FAULT, with_fault
from chipax.decode import decode
from chipax.constants import PROGRAM_START, MEMORY_SIZE, MAX_ROM_SIZE
from chipax.errors import RomTooLargeError, raise_for_fault, fault_address
from chipax.logging import logger, scan_with_progress
from chipax.instructions.system import execute_system_instruction
from chipax.instructions.control_flow import (
    execute_jump, execute_call, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register,
    execute_skip_if_not_equal_register, execute_jump_with_offset,
    execute_key_instruction
)
from chipax.instructions.alu import execute_alu_operation
from chipax.instructions.memory import execute_set, execute_add, execute_set_index, execute_random
from chipax.instructions.display import execute_display
from chipax.instructions.misc import execute_misc_instruction


FAMILY_HANDLERS = [
    execute_system_instruction,
    execute_jump,
    execute_call,
    execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate,
    execute_skip_if_equal_register,
    execute_set,
    execute_add,
    execute_alu_operation,
    execute_skip_if_not_equal_register,
    execute_set_index,
    execute_jump_with_offset,
    execute_random,
    execute_display,
    execute_key_instruction,
    execute_misc_instruction,
]


def _is_fatal(state: MachineState) -> jnp.ndarray:
    return state.fault >= int(FIRST_FATAL_FAULT)


def _keep_unless_fatal(before: MachineState, after: MachineState) -> MachineState:
    """Discard every change in ``after`` if it carries a fatal fault."""
    fatal = _is_fatal(after)
    restored = jax.tree.map(lambda old, new: jnp.where(fatal, old, new), before, after)
    return restored.replace(fault=after.fault, current_instruction=after.current_instruction)


def _clear_status(state: MachineState) -> MachineState:
    return state.replace(
        fault=jnp.asarray(int(Fault.NONE), dtype=jnp.uint8),
        awaiting_key=jnp.zeros((), dtype=jnp.bool_),
    )


@jax.jit
def execute(state: MachineState, instruction: int) -> MachineState:
    """Execute single CHIP-8 instruction.

    The instruction becomes ``state.current_instruction`` and is dispatched on
    its high nibble. Any fault left by an earlier instruction is cleared
    first. A fatal fault leaves the rest of the state untouched.
    """
    state = _clear_status(state).replace(
        current_instruction=jnp.asarray(instruction, dtype=jnp.uint16)
    )
    decoded_instruction = decode(state.current_instruction)

    new_state = jax.lax.switch(
        decoded_instruction.opcode,
        FAMILY_HANDLERS,
        state, decoded_instruction
    )
    return _keep_unless_fatal(state, new_state)


def _pack_u16(high: jnp.uint8, low: jnp.uint8) -> jnp.uint16:
    """Pack two bytes into uint16."""
    return (high.astype(jnp.uint16) << 8) | low.astype(jnp.uint16)


def fetch(state: MachineState) -> tuple[MachineState, jnp.uint16]:
    """Fetch next instruction from memory and advance the program counter.

    Callers are responsible for checking that ``pc + 1`` is inside memory;
    ``cycle`` does so before fetching.
    """
    pc = jnp.astype(state.pc, jnp.int32)
    instruction = _pack_u16(
        state.memory[jnp.minimum(pc, MEMORY_SIZE - 1)],
        state.memory[jnp.minimum(pc + 1, MEMORY_SIZE - 1)],
    )
    return state.replace(
        pc=jnp.astype(state.pc + 2, jnp.uint16),
        current_instruction=instruction,
    ), instruction


def _count_down(timer: jnp.ndarray) -> jnp.ndarray:
    return jnp.where(timer > 0, timer - 1, timer).astype(jnp.uint8)


def tick_timers(state: MachineState) -> MachineState:
    """Decrement the delay and sound timers, stopping at zero."""
    return state.replace(
        delay_timer=_count_down(state.delay_timer),
        sound_timer=_count_down(state.sound_timer),
    )


@jax.jit
def cycle(state: MachineState) -> MachineState:
    """Run one fetch, execute, timer-tick cycle.

    Pure and compiled. A fatal fault rolls the whole cycle back so
    that ``pc`` still points at the faulting instruction.
    """
    state = _clear_status(state)

    def run_cycle(state):
        state, instruction = fetch(state)
        state = execute(state, instruction)
        return tick_timers(state)

    def fetch_out_of_range(state):
        return with_fault(state, Fault.ADDRESS_OUT_OF_RANGE)

    in_range = jnp.astype(state.pc, jnp.int32) + 1 < MEMORY_SIZE
    new_state = jax.lax.cond(in_range, run_cycle, fetch_out_of_range, state)
    return _keep_unless_fatal(state, new_state)


def report_fault(state: MachineState) -> MachineState:
    """Surface the fault recorded by the last cycle to the host.

    Unknown instructions are logged and skipped unless the state was created
    with ``halt_on_unknown``. Fatal faults are logged and raised.
    """
    fault = int(state.fault)
    if fault == Fault.NONE:
        return state

    address = fault_address(state)
    instruction = int(state.current_instruction)
    if fault == Fault.UNKNOWN_INSTRUCTION and not state.halt_on_unknown:
        logger.warning(f"Unknown instruction 0x{instruction:04X} at 0x{address:03X}, skipped")
        return state

    logger.error(f"{Fault(fault).name} at 0x{address:03X} (instruction 0x{instruction:04X})")
    raise_for_fault(state)
    return state


def step(state: MachineState) -> MachineState:
    """Run exactly one cycle and report its fault, if any."""
    return report_fault(cycle(state))


def _should_stop(state: MachineState) -> jnp.ndarray:
    if state.halt_on_unknown:
        return state.fault != int(Fault.NONE)
    return _is_fatal(state)


def _run_cycle(state: MachineState, _):
    state = jax.lax.cond(_should_stop(state), lambda s: s, cycle, state)
    return state, None


@partial(jax.jit, static_argnums=(1, 2))
def run_n_cycles(state: MachineState, n: int, progress: bool = False) -> MachineState:
    """Run ``n`` cycles in a single scan. Stops early, as no-ops, on a halting fault."""
    body = scan_with_progress(n)(_run_cycle) if progress else _run_cycle
    state, _ = jax.lax.scan(body, state, jnp.arange(n))
    return state


def run(state: MachineState, num_cycles: int, progress: bool = False) -> MachineState:
    """Run ``num_cycles`` cycles and report a halting fault.

    Unknown instructions hit mid-run are skipped silently; use ``step`` to
    get a diagnostic for each one.
    """
    if num_cycles <= 0:
        return state
    state = state.replace(fault=jnp.asarray(int(Fault.NONE), dtype=jnp.uint8))
    state = run_n_cycles(state, num_cycles, progress)
    if bool(_should_stop(state)):
        return report_fault(state)
    return state


def load_rom_bytes(state: MachineState, rom_data: bytes) -> MachineState:
    """Load a program image into memory starting at 0x200."""
    if len(rom_data) > MAX_ROM_SIZE:
        raise RomTooLargeError(
            f"ROM is {len(rom_data)} bytes, at most {MAX_ROM_SIZE} fit in program memory"
        )
    if not rom_data:
        return state
    rom_array = jnp.asarray(np.frombuffer(bytes(rom_data), dtype=np.uint8))
    new_memory = state.memory.at[PROGRAM_START:PROGRAM_START + len(rom_data)].set(rom_array)
    return state.replace(memory=new_memory)


def load_rom(state: MachineState, filename: str) -> MachineState:
    """Load ROM data into CHIP-8 memory starting at 0x200."""
    with open(filename, 'rb') as f:
        rom_data = f.read()
    logger.info(f"Loaded {filename} ({len(rom_data)} bytes)")
    return load_rom_bytes(state, rom_data)
