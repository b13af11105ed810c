# Districts
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""Root logging setup shared by the CLI and HTTP app."""
from __future__ import annotations
import logging
import os

_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def _resolve_level() -> int:
    level_name = os.getenv("DISTRICTS_LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_name, logging.INFO)


def configure_root_logger(*, level: str | int | None = None) -> None:
    """Configure the root logger with the shared formatter and level.

    ``level`` falls back to ``DISTRICTS_LOG_LEVEL`` (default ``INFO``). A stream
    handler is added only once, so repeated calls just adjust the level.
    """

    if level is None:
        resolved_level = _resolve_level()
    elif isinstance(level, int):
        resolved_level = level
    else:
        resolved_level = getattr(logging, str(level).upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(resolved_level)
    if not any(isinstance(handler, logging.StreamHandler) for handler in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
