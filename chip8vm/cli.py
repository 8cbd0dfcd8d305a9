"""Headless command-line driver.

Usage::

    python -m chip8vm rom=game.ch8 cycles=600 trace=true log_level=DEBUG
    python -m chip8vm rom=game.ch8 disassemble=true
"""

import sys
from dataclasses import dataclass
from typing import Optional

import hydra
import jax
from hydra.core.config_store import ConfigStore
from omegaconf import DictConfig, MISSING

from chip8vm.constants import MEMORY_SIZE
from chip8vm.decode import disassemble
from chip8vm.errors import Chip8Error
from chip8vm.logging import MachineLogger, build_tqdm_progress_bar, get_logger
from chip8vm.machine import Machine
from chip8vm.rendering import display_to_text, save_screenshot


@dataclass
class RunConfig:
    rom: str = MISSING
    cycles: int = 600
    # Cycles between timer ticks; 10 cycles per 60 Hz tick is ~600 instructions/s
    timer_interval: int = 10
    trace: bool = False
    log_level: str = "INFO"
    seed: int = 0
    progress: bool = False
    disassemble: bool = False
    dump_screen: bool = False
    screenshot: Optional[str] = None


cs = ConfigStore.instance()
cs.store(name="config", node=RunConfig)


def print_listing(filename: str) -> None:
    with open(filename, "rb") as f:
        program = f.read()
    for address, raw, text in disassemble(program):
        print(f"{address:03X}: {raw:04X}  {text}")


def run(cfg: DictConfig, logger: Optional[MachineLogger] = None) -> int:
    """Run a ROM headless according to ``cfg``; returns the exit status."""
    logger = logger or get_logger()
    logger.set_level(cfg.log_level)

    if cfg.timer_interval < 1:
        raise ValueError(f"timer_interval must be >= 1, got {cfg.timer_interval}")

    if cfg.disassemble:
        print_listing(cfg.rom)
        return 0

    machine = Machine(rng=jax.random.PRNGKey(cfg.seed), logger=logger, trace=cfg.trace)
    machine.load_rom(cfg.rom)

    update = close = None
    if cfg.progress and cfg.cycles > 0:
        update, close = build_tqdm_progress_bar(cfg.cycles)

    executed = 0
    try:
        while executed < cfg.cycles and machine.pc < MEMORY_SIZE:
            machine.step()
            executed += 1
            if executed % cfg.timer_interval == 0:
                machine.tick_timers()
            if update is not None:
                update(executed)
    except Chip8Error:
        logger.log_state(machine.state, level="ERROR")
        return 1
    finally:
        if close is not None:
            close(executed)

    logger.info(f"Executed {executed} cycles")
    logger.log_state(machine.state)

    if cfg.dump_screen:
        print(display_to_text(machine.framebuffer()))
    if cfg.screenshot:
        save_screenshot(machine.framebuffer(), cfg.screenshot)
        logger.info(f"Screenshot saved to {cfg.screenshot}")
    return 0


@hydra.main(version_base=None, config_name="config")
def main(cfg: DictConfig) -> None:
    status = run(cfg)
    if status:
        sys.exit(status)
