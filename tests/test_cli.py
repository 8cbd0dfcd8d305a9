"""Tests for the headless command-line driver."""

import pytest
from omegaconf import OmegaConf
from chip8vm.cli import RunConfig, run


@pytest.fixture
def rom(tmp_path):
    path = tmp_path / "prog.ch8"
    path.write_bytes(bytes([
        0x60, 0x05,  # LD V0, 5
        0xF0, 0x15,  # LD DT, V0
        0xA0, 0x50,  # LD I, 0x050
        0xD1, 0x15,  # DRW V1, V1, 5
        0x12, 0x08,  # JP 0x208
    ]))
    return str(path)


def make_config(rom, **overrides):
    return OmegaConf.structured(RunConfig(rom=rom, **overrides))


def test_run_headless(rom, quiet_logger, log_stream, capsys):
    status = run(make_config(rom, cycles=40, timer_interval=10, dump_screen=True), quiet_logger)

    assert status == 0
    output = log_stream.getvalue()
    assert "Executed 40 cycles" in output
    assert "DT=1" in output
    screen = capsys.readouterr().out.split("\n")
    assert screen[0].startswith("####.")


def test_disassemble(rom, quiet_logger, capsys):
    status = run(make_config(rom, disassemble=True), quiet_logger)

    assert status == 0
    listing = capsys.readouterr().out
    assert "200: 6005  LD V0, 0x05" in listing
    assert "208: 1208  JP 0x208" in listing


def test_fault_exit_status(tmp_path, quiet_logger, log_stream):
    path = tmp_path / "bad.ch8"
    path.write_bytes(bytes([0x00, 0xEE]))

    status = run(make_config(str(path)), quiet_logger)

    assert status == 1
    assert "StackUnderflow" in log_stream.getvalue()


def test_screenshot(rom, quiet_logger, tmp_path):
    target = tmp_path / "shot.png"

    status = run(make_config(rom, cycles=4, screenshot=str(target)), quiet_logger)

    assert status == 0
    assert target.exists()


def test_invalid_timer_interval(rom, quiet_logger):
    with pytest.raises(ValueError):
        run(make_config(rom, timer_interval=0), quiet_logger)
