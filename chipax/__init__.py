"""CHIP-8 virtual machine package."""

from chipax.state import MachineState, StackState, Fault, create_state
from chipax.emulator import execute, fetch, cycle, tick_timers, step, run, load_rom, load_rom_bytes
from chipax.decode import DecodedInstruction, decode
from chipax.errors import (
    MachineError, UnknownInstructionError, AddressOutOfRangeError,
    StackOverflowError, StackUnderflowError, RomTooLargeError,
)
from chipax.constants import *
from chipax.rendering import display_to_rgb, create_color_scheme, save_frame, display_to_text

__all__ = [
    "MachineState",
    "StackState",
    "Fault",
    "create_state",
    "fetch",
    "execute",
    "cycle",
    "tick_timers",
    "step",
    "run",
    "load_rom",
    "load_rom_bytes",
    "DecodedInstruction",
    "decode",
    "MachineError",
    "UnknownInstructionError",
    "AddressOutOfRangeError",
    "StackOverflowError",
    "StackUnderflowError",
    "RomTooLargeError",
    "PROGRAM_START",
    "FONT_START",
    "MEMORY_SIZE",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
    "display_to_rgb",
    "create_color_scheme",
    "save_frame",
    "display_to_text",
]
