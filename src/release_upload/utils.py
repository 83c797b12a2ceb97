"""Shared utilities for the CLI implementation."""

from __future__ import annotations

import logging
import os
import sys
import time
from pathlib import Path
from typing import Callable, Mapping, NoReturn, Optional, TypeVar

import click
from rich.console import Console, RenderableType

CHECKMARK = "\033[92;1m✔\033[0m"
CROSS = "\033[31m✘\033[0m"
INFO = "\033[94;1mi\033[0m"
WARNING = "○"
DEBUG_PREFIX = "\033[95m◆\033[0m"

CHECKMARK_PREFIX = f"{CHECKMARK} "
CROSS_PREFIX = f"{CROSS} "
INFO_PREFIX = f"{INFO} "
WARNING_PREFIX = f"{WARNING} "
DEBUG_PREFIX_WITH_SPACE = f"{DEBUG_PREFIX} "
BOLD = "\033[1m"
RESET = "\033[0m"

OUTPUT_FILE_ENV = "GITHUB_OUTPUT"

_LOGGER_NAME = "release_upload"
_LOGGER = logging.getLogger(_LOGGER_NAME)

T = TypeVar("T")

console = Console(stderr=True)


def configure_logging(debug: bool = False) -> logging.Logger:
    """Configure the shared logger used across the CLI."""
    level = logging.DEBUG if debug else logging.INFO
    _LOGGER.setLevel(level)
    while _LOGGER.handlers:
        handler = _LOGGER.handlers.pop()
        handler.close()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler.setLevel(level)
    _LOGGER.addHandler(handler)
    _LOGGER.propagate = False
    return _LOGGER


def _log(prefix: str, message: str, level: int) -> None:
    logger = logging.getLogger(_LOGGER_NAME)
    lines = message.splitlines() or [""]
    for line in lines:
        if line:
            logger.log(level, f"{prefix}{line}")
        else:
            logger.log(level, prefix.rstrip())


def log_info(message: str) -> None:
    """Log an informational message with the standardized prefix."""
    _log(INFO_PREFIX, message, logging.INFO)


def log_success(message: str) -> None:
    """Log a success message with the standardized prefix."""
    _log(CHECKMARK_PREFIX, message, logging.INFO)


def log_error(message: str) -> None:
    """Log an error message with the standardized prefix."""
    _log(CROSS_PREFIX, message, logging.ERROR)


def log_warning(message: str) -> None:
    """Log a warning message with the standardized prefix."""
    _log(WARNING_PREFIX, message, logging.WARNING)


def log_debug(message: str) -> None:
    """Log a debug message with the standardized prefix."""
    _log(DEBUG_PREFIX_WITH_SPACE, message, logging.DEBUG)


def abort_on_user_interrupt(exc: BaseException | None = None) -> NoReturn:
    """Log a standardized cancellation message and exit the command."""

    log_error("operation cancelled by user (Ctrl+C).")
    raise click.exceptions.Exit(130) from exc


def format_bold(text: str) -> str:
    """Return text wrapped in ANSI bold styling."""
    return f"{BOLD}{text}{RESET}"


def print_renderable(renderable: RenderableType) -> None:
    """Print a Rich renderable to the stderr console."""
    console.print(renderable)


def emit_output(content: str, *, newline: bool = True) -> None:
    """Emit raw command output to stdout for machine consumption."""
    click.echo(content, nl=newline, err=False)


def write_step_outputs(
    outputs: Mapping[str, str],
    *,
    env: Mapping[str, str] | None = None,
) -> Optional[Path]:
    """Record step outputs for the surrounding workflow.

    Outputs are appended as ``name=value`` lines to the file named by
    ``GITHUB_OUTPUT``. Outside of a workflow run the same lines go to stdout.
    Returns the output file path, if one was used.
    """

    env_mapping = env if env is not None else os.environ
    lines = [f"{name}={value}" for name, value in outputs.items()]
    if not lines:
        return None
    target = env_mapping.get(OUTPUT_FILE_ENV, "").strip()
    if not target:
        for line in lines:
            emit_output(line)
        return None
    path = Path(target)
    with path.open("a", encoding="utf-8") as handle:
        for line in lines:
            handle.write(f"{line}\n")
    log_debug(f"wrote {len(lines)} step outputs to {path}.")
    return path


def retry(
    operation: Callable[[], T],
    *,
    attempts: int,
    should_retry: Callable[[T], bool],
    delay: float = 0.0,
    on_retry: Callable[[int, T], None] | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run ``operation`` up to ``attempts`` times while ``should_retry`` holds.

    The wait before attempt ``n + 1`` is ``delay * n`` seconds. The result of
    the final attempt is returned whether or not it succeeded.
    """

    if attempts < 1:
        raise ValueError("attempts must be at least 1")
    result = operation()
    attempt = 1
    while attempt < attempts and should_retry(result):
        if on_retry is not None:
            on_retry(attempt, result)
        if delay > 0:
            sleep(delay * attempt)
        result = operation()
        attempt += 1
    return result
