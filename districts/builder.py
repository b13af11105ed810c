# Districts
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from districts import codec
from districts.errors import EmptyResult, MalformedIdentifier
from districts.normalize import DivisionSource
from districts.types import DivisionNode, DivisionRecord

LOG = logging.getLogger(__name__)


@dataclass
class SkippedRecord:
    identifier: str
    depth: int
    reason: str


@dataclass
class BuildReport:
    roots: int = 0
    nodes: int = 0
    skipped: List[SkippedRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "roots": self.roots,
            "nodes": self.nodes,
            "skipped": [s.__dict__ for s in self.skipped],
        }


def _skip(report: BuildReport, record: DivisionRecord, depth: int, reason: str) -> None:
    LOG.warning("Skipping division %r at depth %d: %s", record.id, depth, reason)
    report.skipped.append(SkippedRecord(identifier=record.id, depth=depth, reason=reason))


def _build_node(
    source: DivisionSource,
    record: DivisionRecord,
    position: int,
    parent_depth: int,
    parent_prefix: Optional[str],
    report: BuildReport,
) -> Optional[DivisionNode]:
    depth = source.depth_of(record, position)
    if depth > codec.MAX_DEPTH:
        # towns and below are not part of the tree
        return None
    if depth <= parent_depth:
        _skip(report, record, position, f"level tag places it at depth {depth}")
        return None
    try:
        code = codec.encode(record.id, depth)
    except MalformedIdentifier as exc:
        _skip(report, record, depth, str(exc))
        return None
    own_prefix = codec.prefix(code)
    if parent_prefix is not None and not own_prefix.startswith(parent_prefix):
        _skip(report, record, depth, f"not under parent {parent_prefix}")
        return None

    node = DivisionNode(code=code, name=record.display_name)
    report.nodes += 1
    if depth < codec.MAX_DEPTH:
        for child in source.children_of(record, depth):
            built = _build_node(source, child, depth + 1, depth, own_prefix, report)
            if built is not None:
                node.children.append(built)
    return node


def build_tree(source: DivisionSource, report: Optional[BuildReport] = None) -> List[DivisionNode]:
    """Build province → city → district nodes from a normalized source.

    Records whose identifier cannot be encoded are skipped together with their
    subtree.  Raises :class:`EmptyResult` when every top-level record is skipped.
    """

    report = report if report is not None else BuildReport()
    roots: Sequence[DivisionRecord] = source.roots
    report.roots = len(roots)
    tree: List[DivisionNode] = []
    for record in roots:
        node = _build_node(source, record, 0, -1, None, report)
        if node is not None:
            tree.append(node)
    if not tree:
        raise EmptyResult(f"all {len(roots)} top-level divisions were skipped")
    LOG.info(
        "Built %d provinces (%d nodes, %d skipped)", len(tree), report.nodes, len(report.skipped)
    )
    return tree


def serialize_tree(tree: Sequence[DivisionNode]) -> bytes:
    payload = [node.to_dict() for node in tree]
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
