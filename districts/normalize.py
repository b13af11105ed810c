# Districts
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""Detect the upstream response shape and expose it behind one accessor.

The district API has returned the same dataset in three layouts over time:

- ``TripleArraySource``: ``[provinces, cities, districts]``, nothing nested;
  children are found by identifier prefix.
- ``DepthTaggedSource``: records carry ``level`` (1..3); nesting under
  ``children``/``districts`` is trusted, records without nesting fall back to
  prefix association against the flat list.
- ``NestedSource``: provinces nest cities nest districts; depth is position.

The shape is picked once by :func:`normalize`; the builder only talks to
``roots``, ``children_of`` and ``depth_of``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Sequence, Tuple, Union

from districts.codec import depth_from_level, width
from districts.errors import EmptyResult
from districts.types import DivisionRecord

LOG = logging.getLogger(__name__)

# Keys checked, in order, when the upstream result is an object instead of an array.
RESULT_KEYS: Tuple[str, ...] = ("result", "districts", "list", "data")


def _prefix_matches(pool: Iterable[DivisionRecord], parent: DivisionRecord, size: int) -> Tuple[DivisionRecord, ...]:
    head = parent.id[:size]
    if len(head) < size:
        return ()
    return tuple(record for record in pool if record is not parent and record.id.startswith(head))


@dataclass(frozen=True)
class TripleArraySource:
    provinces: Tuple[DivisionRecord, ...]
    cities: Tuple[DivisionRecord, ...] = ()
    districts: Tuple[DivisionRecord, ...] = ()

    shape = "triple_array"

    @property
    def roots(self) -> Tuple[DivisionRecord, ...]:
        return self.provinces

    def children_of(self, record: DivisionRecord, depth: int) -> Sequence[DivisionRecord]:
        if depth == 0:
            return _prefix_matches(self.cities, record, width(0))
        if depth == 1:
            return _prefix_matches(self.districts, record, width(1))
        return ()

    def depth_of(self, record: DivisionRecord, position: int) -> int:
        return position


@dataclass(frozen=True)
class DepthTaggedSource:
    records: Tuple[DivisionRecord, ...]

    shape = "depth_tagged"

    @property
    def roots(self) -> Tuple[DivisionRecord, ...]:
        return tuple(record for record in self.records if record.level == 1)

    def children_of(self, record: DivisionRecord, depth: int) -> Sequence[DivisionRecord]:
        if record.has_nested:
            return record.children
        child_level = depth + 2
        pool = (candidate for candidate in self.records if candidate.level == child_level)
        return _prefix_matches(pool, record, width(depth))

    def depth_of(self, record: DivisionRecord, position: int) -> int:
        explicit = depth_from_level(record.level)
        return position if explicit is None else explicit


@dataclass(frozen=True)
class NestedSource:
    records: Tuple[DivisionRecord, ...]

    shape = "nested"

    @property
    def roots(self) -> Tuple[DivisionRecord, ...]:
        return self.records

    def children_of(self, record: DivisionRecord, depth: int) -> Sequence[DivisionRecord]:
        return record.children

    def depth_of(self, record: DivisionRecord, position: int) -> int:
        return position


DivisionSource = Union[TripleArraySource, DepthTaggedSource, NestedSource]


def locate_records(result: Any) -> Optional[list]:
    """Return the top-level record array inside ``result``, if there is one."""

    if isinstance(result, list):
        return result
    if isinstance(result, Mapping):
        for key in RESULT_KEYS:
            value = result.get(key)
            if isinstance(value, list):
                return value
    return None


def _parse_records(items: Any) -> Tuple[DivisionRecord, ...]:
    if not isinstance(items, list):
        return ()
    records = [DivisionRecord.from_payload(item) for item in items if isinstance(item, Mapping)]
    dropped = len(items) - len(records)
    if dropped:
        LOG.warning("Dropped %d non-object entries from upstream records", dropped)
    return tuple(records)


def normalize(result: Any) -> DivisionSource:
    """Pick the source variant for an upstream ``result`` value.

    Raises :class:`EmptyResult` when no record array can be located or when the
    chosen variant has no top-level records.
    """

    items = locate_records(result)
    if items is None:
        raise EmptyResult("no division array found in upstream result")

    source: DivisionSource
    if items and isinstance(items[0], list):
        levels = [_parse_records(part) for part in items[:3]]
        while len(levels) < 3:
            levels.append(())
        source = TripleArraySource(provinces=levels[0], cities=levels[1], districts=levels[2])
    else:
        records = _parse_records(items)
        if records and records[0].level is not None:
            source = DepthTaggedSource(records=records)
        else:
            source = NestedSource(records=records)

    if not source.roots:
        raise EmptyResult(f"upstream result ({source.shape}) has no top-level divisions")
    LOG.info("Upstream result shape: %s (%d top-level records)", source.shape, len(source.roots))
    return source
