# Districts
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""Common utilities shared across districts components."""

from .logs import configure_root_logger

__all__ = [
    "configure_root_logger",
]
