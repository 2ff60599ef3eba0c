"""CHIP-8 instruction decoding."""

from chex import dataclass


def nnn(instruction):
    """Lowest 12 bits: address or 12-bit immediate."""
    return instruction & 0x0FFF


def n(instruction):
    """Lowest nibble: 4-bit immediate (sprite height)."""
    return instruction & 0x000F


def x(instruction):
    """Second nibble: first register operand."""
    return (instruction & 0x0F00) >> 8


def y(instruction):
    """Third nibble: second register operand."""
    return (instruction & 0x00F0) >> 4


def kk(instruction):
    """Lowest byte: 8-bit immediate."""
    return instruction & 0x00FF


def family(instruction):
    """Highest nibble: the opcode family."""
    return (instruction & 0xF000) >> 12


@dataclass(frozen=True)
class DecodedInstruction:
    """Decoded CHIP-8 instruction with extracted operands."""
    raw: int
    opcode: int  # First nibble
    x: int       # Second nibble (VX register)
    y: int       # Third nibble (VY register)
    n: int       # Fourth nibble (4-bit immediate)
    kk: int      # Last byte (8-bit immediate)
    nnn: int     # Last 12 bits (12-bit address)


def decode(instruction: int) -> DecodedInstruction:
    """Decode 16-bit instruction into components."""
    return DecodedInstruction(
        raw=instruction,
        opcode=family(instruction),
        x=x(instruction),
        y=y(instruction),
        n=n(instruction),
        kk=kk(instruction),
        nnn=nnn(instruction)
    )
