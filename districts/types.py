# Districts
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

# Upstream field names that may hold nested child records, in lookup order.
CHILD_FIELDS: Tuple[str, ...] = ("children", "districts")

Code = Union[int, str]


def _coerce_level(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _coerce_point(value: Any) -> Optional[Dict[str, float]]:
    if not isinstance(value, Mapping):
        return None
    try:
        return {"lat": float(value["lat"]), "lng": float(value["lng"])}
    except (KeyError, TypeError, ValueError):
        return None


@dataclass(frozen=True)
class DivisionRecord:
    """One raw upstream division, with any nested children already parsed."""

    id: str
    name: str = ""
    fullname: str = ""
    level: Optional[int] = None
    children: Tuple["DivisionRecord", ...] = ()
    has_nested: bool = False
    location: Optional[Dict[str, float]] = None
    pinyin: Tuple[str, ...] = ()

    @property
    def display_name(self) -> str:
        return self.fullname or self.name

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "DivisionRecord":
        nested: List[DivisionRecord] = []
        # An empty list under one field name must not hide children under the next.
        for name in CHILD_FIELDS:
            raw_children = payload.get(name)
            if isinstance(raw_children, list):
                nested = [cls.from_payload(item) for item in raw_children if isinstance(item, Mapping)]
                if nested:
                    break
        raw_id = payload.get("id")
        pinyin = payload.get("pinyin") or ()
        return cls(
            id="" if raw_id is None else str(raw_id).strip(),
            name=str(payload.get("name") or ""),
            fullname=str(payload.get("fullname") or ""),
            level=_coerce_level(payload.get("level")),
            children=tuple(nested),
            has_nested=bool(nested),
            location=_coerce_point(payload.get("location") or payload.get("cpoint")),
            pinyin=tuple(str(p) for p in pinyin) if isinstance(pinyin, (list, tuple)) else (),
        )


@dataclass
class DivisionNode:
    code: Code
    name: str
    children: List["DivisionNode"] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"c": self.code, "n": self.name}
        if self.children:
            out["children"] = [child.to_dict() for child in self.children]
        return out
