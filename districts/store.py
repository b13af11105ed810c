# Districts
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""Key/value object storage for the serialized tree.

Objects are written whole: a reader sees either the previous version or the
new one, never a partial body.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Mapping, Optional, Protocol, runtime_checkable

from districts.errors import StoreWriteError

LOG = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class ObjectMeta:
    key: str
    size: int
    etag: str
    uploaded: datetime
    content_type: str = DEFAULT_CONTENT_TYPE
    custom_metadata: Dict[str, str] = field(default_factory=dict)

    def to_header(self) -> Dict[str, object]:
        return {
            "key": self.key,
            "size": self.size,
            "etag": self.etag,
            "uploaded": self.uploaded.isoformat(),
            "content_type": self.content_type,
            "custom_metadata": dict(self.custom_metadata),
        }

    @classmethod
    def from_header(cls, header: Mapping[str, object]) -> "ObjectMeta":
        uploaded = datetime.fromisoformat(str(header["uploaded"]))
        if uploaded.tzinfo is None:
            uploaded = uploaded.replace(tzinfo=timezone.utc)
        custom = header.get("custom_metadata") or {}
        return cls(
            key=str(header["key"]),
            size=int(header["size"]),  # type: ignore[arg-type]
            etag=str(header["etag"]),
            uploaded=uploaded,
            content_type=str(header.get("content_type") or DEFAULT_CONTENT_TYPE),
            custom_metadata={str(k): str(v) for k, v in dict(custom).items()},  # type: ignore[arg-type]
        )


@dataclass(frozen=True)
class StoredObject:
    meta: ObjectMeta
    body: bytes


@runtime_checkable
class ObjectStore(Protocol):
    """Storage collaborator contract used by the sync run and the read routes."""

    def get(self, key: str) -> Optional[StoredObject]:
        ...

    def head(self, key: str) -> Optional[ObjectMeta]:
        ...

    def put(
        self,
        key: str,
        data: bytes,
        *,
        content_type: str = DEFAULT_CONTENT_TYPE,
        custom_metadata: Optional[Mapping[str, str]] = None,
    ) -> ObjectMeta:
        ...


def _make_meta(
    key: str, data: bytes, content_type: str, custom_metadata: Optional[Mapping[str, str]]
) -> ObjectMeta:
    return ObjectMeta(
        key=key,
        size=len(data),
        etag=hashlib.sha1(data).hexdigest(),
        uploaded=datetime.now(timezone.utc),
        content_type=content_type,
        custom_metadata={str(k): str(v) for k, v in (custom_metadata or {}).items()},
    )


class MemoryObjectStore:
    def __init__(self) -> None:
        self._objects: Dict[str, StoredObject] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[StoredObject]:
        with self._lock:
            return self._objects.get(key)

    def head(self, key: str) -> Optional[ObjectMeta]:
        obj = self.get(key)
        return obj.meta if obj else None

    def put(
        self,
        key: str,
        data: bytes,
        *,
        content_type: str = DEFAULT_CONTENT_TYPE,
        custom_metadata: Optional[Mapping[str, str]] = None,
    ) -> ObjectMeta:
        meta = _make_meta(key, bytes(data), content_type, custom_metadata)
        with self._lock:
            self._objects[key] = StoredObject(meta=meta, body=bytes(data))
        return meta


class FilesystemObjectStore:
    """One file per key: a JSON metadata line, a newline, then the raw body.

    Writes land in a temp file beside the target and are moved into place with
    ``os.replace``.
    """

    def __init__(self, root: os.PathLike[str] | str) -> None:
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        cleaned = key.strip().lstrip("/")
        if not cleaned or ".." in Path(cleaned).parts:
            raise ValueError(f"invalid object key: {key!r}")
        return self.root / cleaned

    def _read(self, key: str, *, with_body: bool) -> Optional[StoredObject]:
        path = self._path(key)
        if not path.exists():
            return None
        with path.open("rb") as fh:
            header_line = fh.readline()
            body = fh.read() if with_body else b""
        meta = ObjectMeta.from_header(json.loads(header_line.decode("utf-8")))
        return StoredObject(meta=meta, body=body)

    def get(self, key: str) -> Optional[StoredObject]:
        return self._read(key, with_body=True)

    def head(self, key: str) -> Optional[ObjectMeta]:
        obj = self._read(key, with_body=False)
        return obj.meta if obj else None

    def put(
        self,
        key: str,
        data: bytes,
        *,
        content_type: str = DEFAULT_CONTENT_TYPE,
        custom_metadata: Optional[Mapping[str, str]] = None,
    ) -> ObjectMeta:
        path = self._path(key)
        meta = _make_meta(key, bytes(data), content_type, custom_metadata)
        header = json.dumps(meta.to_header(), ensure_ascii=False, separators=(",", ":"))
        tmp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("wb") as fh:
                fh.write(header.encode("utf-8"))
                fh.write(b"\n")
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, path)
        except OSError as exc:
            try:
                if tmp_path.exists():
                    tmp_path.unlink()
            except OSError:
                pass
            raise StoreWriteError(f"failed to write object {key!r}: {exc}") from exc
        LOG.info("Stored object %s (%d bytes)", key, meta.size)
        return meta


def open_store(store_dir: Optional[str]) -> ObjectStore:
    if store_dir:
        return FilesystemObjectStore(store_dir)
    LOG.warning("No store_dir configured; using an in-memory object store")
    return MemoryObjectStore()
