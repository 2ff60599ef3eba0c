"""Console diagnostics for chipax.

``logger`` reports faults, ROM loads and saved frames. ``scan_with_progress``
drives a tqdm bar from inside a compiled ``jax.lax.scan`` through io_callback.
"""

import time
import sys
from typing import Callable, Tuple

import jax
import jax.numpy as jnp
from jax.experimental import io_callback

from tqdm import tqdm


LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

LEVEL_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
RESET_COLOR = "\033[0m"


class ConsoleLogger:
    """Levelled console logger with run-relative timestamps.

    Colors are only used when the output stream is a terminal.
    """

    def __init__(
        self,
        name: str = "chipax",
        log_level: str = "INFO",
        use_colors: bool = True,
        show_timestamps: bool = True,
        stream=None,
    ):
        self.name = name
        self.stream = stream
        self.use_colors = use_colors
        self.show_timestamps = show_timestamps
        self.start_time = time.time()
        self.set_level(log_level)

    def set_level(self, log_level: str):
        level = log_level.upper()
        if level not in LEVELS:
            raise ValueError(f"Unknown log level '{log_level}'")
        self.log_level = level

    def _output(self):
        return self.stream or sys.stdout

    def _format_message(self, level: str, message: str) -> str:
        level_str = f"[{level:>8s}]"
        output = self._output()
        if self.use_colors and hasattr(output, "isatty") and output.isatty():
            level_str = f"{LEVEL_COLORS[level]}{level_str}{RESET_COLOR}"

        timestamp = f"[{time.time() - self.start_time:8.2f}s]" if self.show_timestamps else ""
        return f"{timestamp}{level_str}[{self.name}] {message}"

    def log(self, level: str, message: str):
        level = level.upper()
        if LEVELS.index(level) >= LEVELS.index(self.log_level):
            print(self._format_message(level, message), file=self._output(), flush=True)

    def debug(self, message: str):
        self.log("DEBUG", message)

    def info(self, message: str):
        self.log("INFO", message)

    def warning(self, message: str):
        self.log("WARNING", message)

    def error(self, message: str):
        self.log("ERROR", message)

    def critical(self, message: str):
        self.log("CRITICAL", message)


logger = ConsoleLogger()


def build_tqdm_progress_bar(n: int) -> Tuple[Callable, Callable]:
    """Build the open and advance hooks of a cycle progress bar.

    The bar is advanced every ``n // 20`` cycles (at most 50) and once more
    for the remainder, then closed after cycle ``n - 1``.
    """
    print_rate = max(1, min(n // 20, 50))
    bars = {}

    def _open():
        bars["cycles"] = tqdm(total=n, desc=f"Running {n:,} cycles", unit="cycle")

    def _advance(steps):
        bars["cycles"].update(int(steps))

    def _close():
        bars.pop("cycles").close()

    def open_progress_bar(iter_num):
        jax.lax.cond(
            iter_num == 0,
            lambda: io_callback(_open, None, ordered=True),
            lambda: None,
        )

    def advance_progress_bar(iter_num):
        done = iter_num + 1
        steps = jnp.where(done % print_rate == 0, print_rate, n % print_rate)
        jax.lax.cond(
            (done % print_rate == 0) | (done == n),
            lambda: io_callback(_advance, None, steps, ordered=True),
            lambda: None,
        )
        jax.lax.cond(
            done == n,
            lambda: io_callback(_close, None, ordered=True),
            lambda: None,
        )

    return open_progress_bar, advance_progress_bar


def scan_with_progress(n: int) -> Callable:
    """Decorate a ``jax.lax.scan`` body over ``jnp.arange(n)`` with a progress bar."""
    open_progress_bar, advance_progress_bar = build_tqdm_progress_bar(n)

    def _scan_progress_decorator(func):
        def wrapper_with_progress(carry, iter_num):
            open_progress_bar(iter_num)
            result = func(carry, iter_num)
            advance_progress_bar(iter_num)
            return result

        return wrapper_with_progress

    return _scan_progress_decorator
