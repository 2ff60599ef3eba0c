"""Host-side exceptions for CHIP-8 machine faults."""

from chipax.state import MachineState, Fault


class MachineError(Exception):
    """Base error for faults raised by the machine."""

    def __init__(self, address: int, instruction: int, message: str = "", state: MachineState | None = None):
        self.address = address
        self.instruction = instruction
        self.state = state
        super().__init__(message or f"{self.describe()} at 0x{address:03X} (instruction 0x{instruction:04X})")

    def describe(self) -> str:
        return "machine fault"


class UnknownInstructionError(MachineError):
    """Raised for an unrecognized instruction when the state halts on them."""

    def describe(self) -> str:
        return "unknown instruction"


class AddressOutOfRangeError(MachineError):
    """Raised when an instruction reads or writes outside memory."""

    def describe(self) -> str:
        return "address out of range"


class StackOverflowError(MachineError):
    """Raised when a call is made with all stack frames in use."""

    def describe(self) -> str:
        return "stack overflow"


class StackUnderflowError(MachineError):
    """Raised when returning with an empty stack."""

    def describe(self) -> str:
        return "stack underflow"


class RomTooLargeError(ValueError):
    """Raised when a program image does not fit in program memory."""


FAULT_ERRORS = {
    Fault.UNKNOWN_INSTRUCTION: UnknownInstructionError,
    Fault.ADDRESS_OUT_OF_RANGE: AddressOutOfRangeError,
    Fault.STACK_OVERFLOW: StackOverflowError,
    Fault.STACK_UNDERFLOW: StackUnderflowError,
}


def fault_address(state: MachineState) -> int:
    """Address of the instruction that raised the current fault.

    Fatal faults roll the whole cycle back, leaving ``pc`` on the faulting
    instruction; an unknown instruction has already been stepped over.
    """
    if state.is_faulted:
        return int(state.pc)
    return (int(state.pc) - 2) & 0xFFFF


def raise_for_fault(state: MachineState) -> None:
    """Raise the exception matching ``state.fault``, if any."""
    fault = Fault(int(state.fault))
    if fault == Fault.NONE:
        return
    raise FAULT_ERRORS[fault](fault_address(state), int(state.current_instruction), state=state)
