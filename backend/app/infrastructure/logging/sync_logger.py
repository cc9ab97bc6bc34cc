"""Colored sync logger — ANSI-colored console logging for the analysis sync engine.

Tags every line with the storage tier or phase it concerns, making it easy
to follow one synchronization cycle in the terminal.

Color scheme:
    🟢 Green   — Local cache
    🔵 Blue    — Remote store
    🟡 Yellow  — Record aggregation
    🟣 Magenta — Generation service
    🟠 Cyan    — Verification / persistence
    🔴 Red     — Errors
    ⚪ Gray    — Timing / details
"""

import logging
import time
from contextlib import contextmanager
from typing import Any


# ── ANSI Color Codes ─────────────────────────────────────────────────

class _Colors:
    """ANSI escape codes for terminal colors."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    MAGENTA = "\033[95m"
    CYAN = "\033[96m"
    WHITE = "\033[97m"
    GRAY = "\033[90m"


# ── Sync Stage Definitions ───────────────────────────────────────────

class SyncStage:
    """Predefined sync stages with colors and icons."""

    CACHE = ("CACHE", _Colors.GREEN, "💾")
    REMOTE = ("REMOTE", _Colors.BLUE, "☁️")
    AGGREGATE = ("AGGREGATE", _Colors.YELLOW, "📄")
    GENERATE = ("GENERATE", _Colors.MAGENTA, "🤖")
    VERIFY = ("VERIFY", _Colors.CYAN, "🔍")
    PERSIST = ("PERSIST", _Colors.CYAN, "📝")
    ERROR = ("ERROR", _Colors.RED, "❌")
    COMPLETE = ("COMPLETE", _Colors.GREEN, "✅")


def _details(kwargs: dict[str, Any]) -> str:
    return " | ".join(f"{k}={v}" for k, v in kwargs.items())


# ── SyncLogger ───────────────────────────────────────────────────────

class SyncLogger:
    """Color-coded logger for analysis synchronization cycles.

    Usage:
        slog = SyncLogger("AnalysisSyncController")
        slog.step(SyncStage.CACHE, "Cached analysis found", user="u1")
        with slog.timed_step(SyncStage.GENERATE, "Generating analysis"):
            result = await client.generate(request)
    """

    def __init__(self, component_name: str):
        self._logger = logging.getLogger(component_name)

    def step(self, stage: tuple[str, str, str], message: str, **kwargs: Any) -> None:
        """Log one event of a sync stage in its color."""
        label, color, icon = stage
        formatted = (
            f"{color}{_Colors.BOLD}{icon} [{label}]{_Colors.RESET} "
            f"{color}{message}{_Colors.RESET}"
        )
        if kwargs:
            formatted += f" {_Colors.GRAY}({_details(kwargs)}){_Colors.RESET}"
        self._logger.info(formatted)

    def step_complete(self, stage: tuple[str, str, str], message: str, **kwargs: Any) -> None:
        """Log the successful completion of a sync stage."""
        label, color, icon = stage
        formatted = (
            f"{color}{icon} [{label}]{_Colors.RESET} "
            f"{_Colors.GREEN}✓ {message}{_Colors.RESET}"
        )
        if kwargs:
            formatted += f" {_Colors.GRAY}({_details(kwargs)}){_Colors.RESET}"
        self._logger.info(formatted)

    def warning(self, stage: tuple[str, str, str], message: str, error: Exception | None = None) -> None:
        """Log a degraded-but-handled condition (storage tier)."""
        label, color, icon = stage
        formatted = f"{color}{icon} [{label}]{_Colors.RESET} {_Colors.YELLOW}⚠ {message}{_Colors.RESET}"
        if error:
            formatted += f" {_Colors.DIM}→ {type(error).__name__}: {error}{_Colors.RESET}"
        self._logger.warning(formatted)

    def step_error(self, stage: tuple[str, str, str], message: str, error: Exception | None = None) -> None:
        """Log a failed sync stage in red."""
        label, _, icon = stage
        formatted = (
            f"{_Colors.RED}{_Colors.BOLD}❌ [{label}]{_Colors.RESET} "
            f"{_Colors.RED}{message}{_Colors.RESET}"
        )
        if error:
            formatted += f" {_Colors.DIM}→ {type(error).__name__}: {error}{_Colors.RESET}"
        self._logger.error(formatted)

    def detail(self, message: str, **kwargs: Any) -> None:
        """Log additional detail (gray/dimmed)."""
        formatted = f"   {_Colors.GRAY}├─ {message}{_Colors.RESET}"
        if kwargs:
            formatted += f" {_Colors.DIM}({_details(kwargs)}){_Colors.RESET}"
        self._logger.info(formatted)

    @contextmanager
    def timed_step(self, stage: tuple[str, str, str], message: str, **kwargs: Any):
        """Context manager that logs start/end with elapsed time."""
        self.step(stage, message, **kwargs)
        start = time.perf_counter()
        try:
            yield
        except BaseException as e:
            elapsed = time.perf_counter() - start
            self.step_error(stage, f"{message} — failed after {elapsed:.2f}s", error=e)
            raise
        else:
            elapsed = time.perf_counter() - start
            self.step_complete(stage, f"{message} — {elapsed:.2f}s", **kwargs)
