"""CHIP-8 ALU operations (8xxx).

Every operation maps ``(vx, vy, vf)`` to ``(result, vf)``. Operations that
do not touch the flag hand ``vf`` back unchanged. VF is always written
before VX, and all but 8XY4 read their operands again after that write.
"""

import jax
import jax.lax
import jax.numpy as jnp
import numpy as np
from chipax.constants import FLAG_REGISTER
from chipax.state import MachineState
from chipax.decode import DecodedInstruction
from chipax.instructions.system import unknown_instruction


def alu_set(vx, vy, vf):
    """8XY0 - Set: VX = VY."""
    return vy, vf


def alu_or(vx, vy, vf):
    """8XY1 - Binary OR: VX |= VY."""
    return vx | vy, vf


def alu_and(vx, vy, vf):
    """8XY2 - Binary AND: VX &= VY."""
    return vx & vy, vf


def alu_xor(vx, vy, vf):
    """8XY3 - Logical XOR: VX ^= VY."""
    return vx ^ vy, vf


def alu_add(vx, vy, vf):
    """8XY4 - Add: VX += VY, VF = carry."""
    total = vx + vy
    carry = jnp.astype(total > 0xFF, jnp.int32)
    return total & 0xFF, carry


def alu_sub_xy(vx, vy, vf):
    """8XY5 - Subtract: VX -= VY, VF = 1 when VX > VY."""
    not_borrow = jnp.astype(vx > vy, jnp.int32)
    return (vx - vy) & 0xFF, not_borrow


def alu_shift_right(vx, vy, vf):
    """8XY6 - Shift right: VX >>= 1, VF = bit shifted out."""
    return vx >> 1, vx & 1


def alu_sub_yx(vx, vy, vf):
    """8XY7 - Subtract: VX = VY - VX, VF = 1 when VY > VX."""
    not_borrow = jnp.astype(vy > vx, jnp.int32)
    return (vy - vx) & 0xFF, not_borrow


def alu_shift_left(vx, vy, vf):
    """8XYE - Shift left: VX <<= 1, VF = bit shifted out."""
    return (vx << 1) & 0xFF, (vx >> 7) & 1


ALU_OPERATIONS = [
    alu_set, alu_or, alu_and, alu_xor, alu_add,
    alu_sub_xy, alu_shift_right, alu_sub_yx, alu_shift_left,
]

# Low nibble -> position in ALU_OPERATIONS; -1 marks an undefined operation.
ALU_TABLE = np.full(16, -1, dtype=np.int32)
ALU_TABLE[[0x0, 0x1, 0x2, 0x3, 0x4, 0x5, 0x6, 0x7, 0xE]] = np.arange(len(ALU_OPERATIONS))

# 8XY4 adds the operands it read before the carry lands in VF. Every other
# operation reads VX and VY again after the flag write.
READS_AFTER_FLAG = np.ones(len(ALU_OPERATIONS), dtype=bool)
READS_AFTER_FLAG[ALU_OPERATIONS.index(alu_add)] = False


def execute_alu(state: MachineState, instruction: DecodedInstruction, op_index) -> MachineState:
    """Run ALU operation ``op_index`` on VX and VY.

    VF is written first. The result is then computed from the registers as
    they stand after that write and stored in VX.
    """
    vx = jnp.astype(state.V[instruction.x], jnp.int32)
    vy = jnp.astype(state.V[instruction.y], jnp.int32)
    vf = jnp.astype(state.V[FLAG_REGISTER], jnp.int32)

    _, flag = jax.lax.switch(op_index, ALU_OPERATIONS, vx, vy, vf)
    flagged_V = state.V.at[FLAG_REGISTER].set(jnp.astype(flag, jnp.uint8))

    reread = jnp.asarray(READS_AFTER_FLAG)[op_index]
    vx = jnp.where(reread, jnp.astype(flagged_V[instruction.x], jnp.int32), vx)
    vy = jnp.where(reread, jnp.astype(flagged_V[instruction.y], jnp.int32), vy)
    result, _ = jax.lax.switch(op_index, ALU_OPERATIONS, vx, vy, flag)

    new_V = flagged_V.at[instruction.x].set(jnp.astype(result, jnp.uint8))
    return state.replace(V=new_V)


def execute_alu_operation(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """8XYN - ALU operations dispatcher."""
    op_index = jnp.asarray(ALU_TABLE)[instruction.n]

    return jax.lax.cond(
        op_index >= 0,
        lambda s, i: execute_alu(s, i, op_index),
        unknown_instruction,
        state, instruction
    )
