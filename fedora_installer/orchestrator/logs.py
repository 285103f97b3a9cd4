# fedora_installer/orchestrator/logs.py
from __future__ import annotations
import sys
from typing import Optional

from loguru import logger

from .context import RunContext

# name -> (severity, colour); SUCCESS/WARNING/ERROR come with loguru
_LEVELS = {
    "VERBOSE": (15, "<cyan>"),
    "STEP": (21, "<blue><bold>"),
    "BACKUP": (22, "<yellow>"),
}

_CONSOLE_FMT = "<level>[{level: <7}]</level> {message}"
_FILE_FMT = "[{time:YYYY-MM-DD HH:mm:ss}] {level: <7} {message}"


def register_levels() -> None:
    for name, (no, color) in _LEVELS.items():
        try:
            logger.level(name)
        except ValueError:
            logger.level(name, no=no, color=color)


def setup_logging(ctx: Optional[RunContext] = None, level: str = "VERBOSE", sink=None) -> None:
    """Console sink always; install.log in the state dir once a real (non dry-run) context exists."""
    register_levels()
    logger.remove()
    logger.add(sink or sys.stderr, level=level, format=_CONSOLE_FMT, colorize=sink is None)
    if ctx is not None and not ctx.dry_run:
        ctx.state_dir.mkdir(parents=True, exist_ok=True)
        logger.add(str(ctx.log_file), level="DEBUG", format=_FILE_FMT, encoding="utf-8")


def header(title: str) -> None:
    bar = "═" * 62
    logger.info(bar)
    logger.info(f"  {title}")
    logger.info(bar)


register_levels()
