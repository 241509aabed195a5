"""Console logging setup for the allocator CLI.

Rich formatting is used on an interactive terminal; redirected output gets a
plain, greppable line format instead.
"""

from __future__ import annotations

import logging
import sys

from rich.logging import RichHandler


def resolve_level(level_name: str | None, default: int = logging.INFO) -> int:
    if not level_name:
        return default
    resolved = logging.getLevelName(level_name.upper())
    if isinstance(resolved, int):
        return resolved
    return default


def configure_console_logging(level_name: str | None = None) -> None:
    level = resolve_level(level_name, logging.WARNING if sys.stderr.isatty() else logging.INFO)

    if sys.stderr.isatty():
        handler: logging.Handler = RichHandler(rich_tracebacks=True, markup=True)
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
    handler.setLevel(level)

    logging.basicConfig(level=min(level, logging.INFO), handlers=[handler], force=True)
