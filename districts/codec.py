# Districts
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""Composite identifier helpers.

Identifiers carry two decimal digits per hierarchy level: ``440103`` is
province ``44``, city ``4401`` and district ``440103``.
"""

from __future__ import annotations

from typing import Optional

from districts.errors import MalformedIdentifier
from districts.types import Code

DIGITS_PER_LEVEL = 2
MAX_DEPTH = 2


def width(depth: int) -> int:
    return DIGITS_PER_LEVEL * (depth + 1)


def encode(raw_id: str, depth: int) -> Code:
    """Return the canonical code of ``raw_id`` at ``depth`` (0=province)."""

    if depth < 0 or depth > MAX_DEPTH:
        raise MalformedIdentifier(raw_id, depth, f"depth {depth} is outside 0..{MAX_DEPTH}")
    raw = (raw_id or "").strip()
    size = width(depth)
    head = raw[:size]
    if len(head) < size:
        raise MalformedIdentifier(raw_id, depth, f"identifier {raw_id!r} is shorter than {size} digits")
    if not head.isdigit():
        raise MalformedIdentifier(raw_id, depth, f"identifier {raw_id!r} is not decimal")
    if depth == 0:
        return int(head)
    return head


def prefix(code: Code) -> str:
    """Render a canonical code as its fixed-width string."""

    if isinstance(code, int):
        return f"{code:0{DIGITS_PER_LEVEL}d}"
    return str(code)


def depth_from_level(level: Optional[int]) -> Optional[int]:
    # level tags are 1-based (1=province); depth is 0-based
    if level is None:
        return None
    return level - 1
