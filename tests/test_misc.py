"""Tests for miscellaneous instructions (Fxxx)."""

import jax.numpy as jnp
import pytest
from chipax import execute, Fault, FONT_START
from conftest import set_registers, setup_sprite_in_memory


class TestTimers:
    """Test timer-related instructions."""

    def test_misc_timer_instructions(self, fresh_state):
        """Timer set and get operations."""
        state = execute(fresh_state, 0x6030)  # V0 = 48
        state = execute(state, 0xF015)  # delay timer = V0
        assert state.delay_timer == 48

        state = execute(state, 0x6120)  # V1 = 32
        state = execute(state, 0xF118)  # sound timer = V1
        assert state.sound_timer == 32
        assert state.delay_timer == 48

        state = execute(state, 0xF207)  # V2 = delay timer
        assert state.V[2] == 48


class TestBCD:
    """Test BCD conversion."""

    @pytest.mark.parametrize("value, digits", [
        (156, (1, 5, 6)),
        (0, (0, 0, 0)),
        (255, (2, 5, 5)),
        (7, (0, 0, 7)),
        (40, (0, 4, 0)),
    ])
    def test_bcd(self, fresh_state, value, digits):
        state = set_registers(fresh_state, V4=value)
        state = execute(state, 0xA300)
        state = execute(state, 0xF433)

        assert tuple(int(d) for d in state.memory[0x300:0x303]) == digits

    def test_bcd_past_end_of_memory_faults(self, fresh_state):
        state = set_registers(fresh_state, V0=123)
        state = execute(state, 0xAFFE)
        state = execute(state, 0xF033)

        assert state.fault == Fault.ADDRESS_OUT_OF_RANGE
        assert state.memory[0xFFE] == 0
        assert state.memory[0xFFF] == 0


class TestFont:
    """Test font character addressing."""

    def test_font_all_characters(self, fresh_state):
        state = fresh_state

        for digit in range(16):
            state = execute(state, 0x6000 | digit)
            state = execute(state, 0xF029)
            assert state.I == FONT_START + digit * 5, f"Font address wrong for digit {digit:X}"

    def test_font_loaded_at_startup(self, fresh_state):
        assert [int(b) for b in fresh_state.memory[0x50:0x55]] == [0xF0, 0x90, 0x90, 0x90, 0xF0]
        assert [int(b) for b in fresh_state.memory[0x9B:0xA0]] == [0xF0, 0x80, 0xF0, 0x80, 0x80]
        assert fresh_state.memory[0x4F] == 0
        assert fresh_state.memory[0xA0] == 0


class TestIndexAdd:
    """Test FX1E."""

    def test_add_to_index(self, fresh_state):
        state = set_registers(fresh_state, V0=0x10, VF=0x09)
        state = execute(state, 0xA300)
        state = execute(state, 0xF01E)

        assert state.I == 0x310
        assert state.V[15] == 0x09  # VF untouched

    def test_add_to_index_past_12_bits(self, fresh_state):
        """I is not masked to 12 bits and no flag is set."""
        state = set_registers(fresh_state, V0=0xFF)
        state = execute(state, 0xAF80)
        state = execute(state, 0xF01E)

        assert state.I == 0x107F
        assert state.V[15] == 0


class TestRegisterBlock:
    """Test FX55/FX65."""

    def test_store_writes_all_registers(self, fresh_state):
        values = list(range(1, 17))
        state = fresh_state.replace(V=jnp.array(values, dtype=jnp.uint8))
        state = execute(state, 0xA400)
        state = execute(state, 0xF055)

        assert [int(v) for v in state.memory[0x400:0x410]] == values
        assert state.I == 0x400

    def test_store_then_load_round_trip(self, fresh_state):
        values = [0xFF, 0x00, 0x12, 0x80, 0x7F, 0x01, 0xAA, 0x55,
                  0x10, 0x20, 0x30, 0x40, 0x50, 0x60, 0x70, 0x99]
        for index in (0x200, 0x300, 0xFF0):
            state = fresh_state.replace(V=jnp.array(values, dtype=jnp.uint8))
            state = execute(state, 0xA000 | index)
            state = execute(state, 0xF555)
            state = state.replace(V=jnp.zeros(16, dtype=jnp.uint8))
            state = execute(state, 0xF565)

            assert [int(v) for v in state.V] == values

    def test_store_truncates_at_end_of_memory(self, fresh_state):
        """Only the slots that fit below 0x1000 are written."""
        state = fresh_state.replace(V=jnp.arange(1, 17, dtype=jnp.uint8))
        state = execute(state, 0xAFFC)
        state = execute(state, 0xF055)

        assert state.fault == Fault.NONE
        assert [int(v) for v in state.memory[0xFFC:]] == [1, 2, 3, 4]

    def test_load_truncates_at_end_of_memory(self, fresh_state):
        """Registers without a source byte keep their value."""
        state = setup_sprite_in_memory(fresh_state, 0xFFE, [0xAB, 0xCD])
        state = state.replace(V=jnp.full(16, 0x11, dtype=jnp.uint8))
        state = execute(state, 0xAFFE)
        state = execute(state, 0xF065)

        assert state.fault == Fault.NONE
        assert state.V[0] == 0xAB
        assert state.V[1] == 0xCD
        assert all(int(v) == 0x11 for v in state.V[2:])

    def test_block_past_memory_is_noop(self, fresh_state):
        """With I beyond memory nothing is copied."""
        state = set_registers(fresh_state, V0=0x42)
        state = execute(state, 0xAFFF)
        state = execute(state, 0xF01E)  # I = 0x1041
        before = state.memory

        state = execute(state, 0xF055)
        assert jnp.array_equal(state.memory, before)

        state = execute(state, 0xF065)
        assert state.V[0] == 0x42


class TestWaitForKey:
    """Test FX0A."""

    def test_wait_for_key_blocking(self, fresh_state):
        """No key held: pc rewinds so the instruction repeats."""
        initial_pc = fresh_state.pc

        state = execute(fresh_state, 0xF00A)

        assert state.pc == initial_pc - 2
        assert state.awaiting_key

    def test_wait_for_key_pressed(self, fresh_state):
        """A held key is stored and execution continues."""
        state = fresh_state.replace(keypad=fresh_state.keypad.at[7].set(True))
        initial_pc = state.pc

        state = execute(state, 0xF30A)

        assert state.V[3] == 7
        assert state.pc == initial_pc
        assert not state.awaiting_key

    def test_lowest_key_wins(self, fresh_state):
        keypad = fresh_state.keypad.at[0xC].set(True).at[0x4].set(True)
        state = execute(fresh_state.replace(keypad=keypad), 0xF10A)
        assert state.V[1] == 4


def test_unknown_misc_instruction(fresh_state):
    state = set_registers(fresh_state, V0=0x12)
    state = execute(state, 0xF0FF)

    assert state.fault == Fault.UNKNOWN_INSTRUCTION
    assert state.V[0] == 0x12
