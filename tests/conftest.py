"""Test configuration and fixtures for CHIP-8 machine tests."""

import io

import pytest
import jax.numpy as jnp
from chip8vm import create_state, Machine
from chip8vm.logging import MachineLogger


@pytest.fixture
def fresh_state():
    """Provide a fresh emulator state for each test."""
    return create_state()


@pytest.fixture
def log_stream():
    return io.StringIO()


@pytest.fixture
def quiet_logger(log_stream):
    """Logger writing to an in-memory stream."""
    return MachineLogger(log_level="DEBUG", use_colors=False, show_timestamps=False, stream=log_stream)


@pytest.fixture
def machine(quiet_logger):
    """Provide a fresh machine that logs to memory."""
    return Machine(logger=quiet_logger)


def setup_sprite_in_memory(state, address, sprite_bytes):
    """Helper to put sprite data in memory."""
    return state.replace(
        memory=state.memory.at[address:address+len(sprite_bytes)].set(
            jnp.array(sprite_bytes, dtype=jnp.uint8)
        )
    )
