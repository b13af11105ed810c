# Districts
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

from .builder import build_tree, serialize_tree
from .normalize import normalize
from .sync import DistrictSync, SyncOutcome, SyncState, run_sync

__all__ = [
    "build_tree",
    "serialize_tree",
    "normalize",
    "DistrictSync",
    "SyncOutcome",
    "SyncState",
    "run_sync",
]
