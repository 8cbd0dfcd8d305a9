"""Console logging utilities for the CHIP-8 machine.

This module provides a small leveled console logger, a machine-specific
logger with helpers for traces, faults and register dumps, and a tqdm
progress bar builder for long headless runs.
"""

import time
import sys
from typing import Callable, Optional, Tuple

from tqdm import tqdm


class ConsoleLogger:
    """Flexible console logger with levels, colors and timestamps."""

    def __init__(
        self,
        name: str = "chip8vm",
        log_level: str = "INFO",
        use_colors: bool = True,
        show_timestamps: bool = True,
        stream=None,
    ):
        self.name = name
        self.log_level = log_level.upper()
        self.stream = stream
        out = stream if stream is not None else sys.stdout
        self.use_colors = use_colors and hasattr(out, "isatty") and out.isatty()
        self.show_timestamps = show_timestamps
        self.start_time = time.time()

        self.colors = (
            {
                "DEBUG": "\033[36m",
                "INFO": "\033[32m",
                "WARNING": "\033[33m",
                "ERROR": "\033[31m",
                "CRITICAL": "\033[35m",
                "RESET": "\033[0m"
            }
            if self.use_colors
            else {
                k: ""
                for k in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL", "RESET"]
            }
        )

        self.level_order = {
            "DEBUG": 0,
            "INFO": 1,
            "WARNING": 2,
            "ERROR": 3,
            "CRITICAL": 4,
        }

    def is_enabled_for(self, level: str) -> bool:
        """Check if message should be logged based on current log level."""
        return self.level_order.get(level.upper(), 1) >= self.level_order.get(
            self.log_level, 1
        )

    def set_level(self, log_level: str):
        self.log_level = log_level.upper()

    def _format_message(self, level: str, message: str) -> str:
        """Format log message with timestamp, level, and colors."""
        timestamp = (
            f"[{time.time() - self.start_time:8.2f}s]" if self.show_timestamps else ""
        )
        level_str = f"[{level:>8s}]"
        name_str = f"[{self.name}]"

        if self.use_colors:
            color = self.colors.get(level.upper(), "")
            reset = self.colors["RESET"]
            level_str = f"{color}{level_str}{reset}"

        return f"{timestamp}{level_str}{name_str} {message}"

    def log(self, level: str, message: str):
        """Log a message at the specified level."""
        if self.is_enabled_for(level):
            formatted = self._format_message(level, message)
            print(formatted, file=self.stream if self.stream is not None else sys.stdout, flush=True)

    def debug(self, message: str):
        """Log debug message."""
        self.log("DEBUG", message)

    def info(self, message: str):
        """Log info message."""
        self.log("INFO", message)

    def warning(self, message: str):
        """Log warning message."""
        self.log("WARNING", message)

    def error(self, message: str):
        """Log error message."""
        self.log("ERROR", message)

    def critical(self, message: str):
        """Log critical message."""
        self.log("CRITICAL", message)


class MachineLogger(ConsoleLogger):
    """Logger with helpers for machine traces, faults and state dumps."""

    def log_load(self, size: int, filename: Optional[str] = None):
        source = filename or "buffer"
        self.info(f"Loaded {size} bytes from {source}")

    def log_instruction(self, address: int, raw: int, text: str):
        self.debug(f"0x{address:03X}  {raw:04X}  {text}")

    def log_fault(self, error: Exception):
        self.error(f"{type(error).__name__}: {error}")

    def log_state(self, state, level: str = "INFO"):
        """Dump registers, timers and stack pointer."""
        if not self.is_enabled_for(level):
            return
        registers = [int(v) for v in state.V]
        self.log(
            level,
            f"PC=0x{int(state.pc):03X} I=0x{int(state.I):03X} SP={int(state.stack.pointer)} "
            f"DT={int(state.delay_timer)} ST={int(state.sound_timer)}",
        )
        for row in range(0, 16, 4):
            cells = " ".join(f"V{i:X}={registers[i]:02X}" for i in range(row, row + 4))
            self.log(level, f"  {cells}")


_logger: Optional[MachineLogger] = None


def get_logger() -> MachineLogger:
    """Return the shared package logger."""
    global _logger
    if _logger is None:
        _logger = MachineLogger()
    return _logger


def build_tqdm_progress_bar(
    n: int,
    print_rate: Optional[int] = None,
    desc: str = None,
    **kwargs,
) -> Tuple[Callable, Callable]:
    """Build a tqdm progress bar updated in batches of ``print_rate`` cycles.

    Returns ``(update, close)``; ``update`` takes the number of cycles
    completed so far.
    """
    if desc is None:
        desc = f"Running ({n:,} cycles)"

    for kwarg in ("total", "mininterval", "maxinterval", "miniters"):
        kwargs.pop(kwarg, None)

    if print_rate is None:
        print_rate = max(1, min(n // 20, 50))
    else:
        print_rate = max(1, min(print_rate, n))

    bar = tqdm(total=n, desc=desc, unit="cycle", **kwargs)
    reported = [0]

    def update(done: int):
        if done - reported[0] >= print_rate or done == n:
            bar.update(done - reported[0])
            reported[0] = done

    def close(done: int):
        if done > reported[0]:
            bar.update(done - reported[0])
            reported[0] = done
        bar.close()

    return update, close
