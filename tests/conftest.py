"""Test configuration and fixtures for CHIP-8 machine tests."""

import jax
import pytest
import jax.numpy as jnp
from chipax import create_state


@pytest.fixture
def fresh_state():
    """Provide a fresh machine state for each test."""
    return create_state(jax.random.PRNGKey(0))


@pytest.fixture
def halting_state():
    """Provide a state that raises on unknown instructions."""
    return create_state(jax.random.PRNGKey(0), halt_on_unknown=True)


@pytest.fixture
def wrapping_state():
    """Provide a state whose stack pointer wraps instead of faulting."""
    return create_state(jax.random.PRNGKey(0), wrap_stack=True)


def setup_sprite_in_memory(state, address, sprite_bytes):
    """Helper to put sprite data in memory."""
    return state.replace(
        memory=state.memory.at[address:address+len(sprite_bytes)].set(
            jnp.array(sprite_bytes, dtype=jnp.uint8)
        )
    )


def set_registers(state, **registers):
    """Helper to set registers by name, e.g. V1=0x10, VF=1."""
    V = state.V
    for name, value in registers.items():
        V = V.at[int(name[1:], 16)].set(value)
    return state.replace(V=V)


def load_program(state, words, address=0x200):
    """Helper to write 16-bit instruction words into memory."""
    data = []
    for word in words:
        data.extend([(word >> 8) & 0xFF, word & 0xFF])
    return setup_sprite_in_memory(state, address, data)
