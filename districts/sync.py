# Districts
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""One synchronization run: fetch, normalize, build, persist.

A run walks ``Idle → Fetching → Normalizing → Building → Persisting → Done`` and
can stop in ``Failed`` from any stage.  The stored object is written only in
``Persisting``, so a failed run leaves the previous tree in place.  Runs are
never retried here; the caller (scheduler, HTTP trigger, CLI) decides what to do
with the terminal reason.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from districts.builder import BuildReport, build_tree, serialize_tree
from districts.config import SyncConfig
from districts.errors import MissingCredential, StoreWriteError, SyncError, SyncInProgress
from districts.normalize import normalize
from districts.store import ObjectMeta, ObjectStore
from districts.upstream import UpstreamEnvelope, fetch_districts

LOG = logging.getLogger(__name__)

CONTENT_TYPE = "application/json"

_SYNC_LOCK = threading.Lock()

Fetcher = Callable[[SyncConfig, Optional[str]], UpstreamEnvelope]


class SyncState(str, Enum):
    IDLE = "Idle"
    FETCHING = "Fetching"
    NORMALIZING = "Normalizing"
    BUILDING = "Building"
    PERSISTING = "Persisting"
    DONE = "Done"
    FAILED = "Failed"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class SyncOutcome:
    state: SyncState = SyncState.IDLE
    error: Optional[SyncError] = None
    transitions: List[SyncState] = field(default_factory=lambda: [SyncState.IDLE])
    started_at: datetime = field(default_factory=_utc_now)
    finished_at: Optional[datetime] = None
    shape: Optional[str] = None
    report: Optional[BuildReport] = None
    meta: Optional[ObjectMeta] = None

    @property
    def ok(self) -> bool:
        return self.state is SyncState.DONE

    @property
    def reason(self) -> Optional[str]:
        return self.error.reason if self.error else None

    @property
    def failed_during(self) -> Optional[SyncState]:
        if self.state is not SyncState.FAILED or len(self.transitions) < 2:
            return None
        return self.transitions[-2]

    def enter(self, state: SyncState) -> None:
        LOG.info("Sync stage: %s -> %s", self.state.value, state.value)
        self.state = state
        self.transitions.append(state)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "reason": self.reason,
            "error": self.error.to_dict() if self.error else None,
            "failed_during": self.failed_during.value if self.failed_during else None,
            "transitions": [s.value for s in self.transitions],
            "started_at": iso_timestamp(self.started_at),
            "finished_at": iso_timestamp(self.finished_at) if self.finished_at else None,
            "shape": self.shape,
            "report": self.report.to_dict() if self.report else None,
            "updated_at": self.meta.custom_metadata.get("updatedAt") if self.meta else None,
        }


class DistrictSync:
    def __init__(
        self,
        config: SyncConfig,
        store: ObjectStore,
        fetcher: Optional[Fetcher] = None,
    ) -> None:
        self.config = config
        self.store = store
        self.fetcher: Fetcher = fetcher or fetch_districts

    def run(self, caller_identity: Optional[str] = None) -> SyncOutcome:
        """Run once and return the outcome; raises only :class:`SyncInProgress`."""

        if not _SYNC_LOCK.acquire(blocking=False):
            raise SyncInProgress("a district sync is already running in this process")
        try:
            return self._run(caller_identity)
        finally:
            _SYNC_LOCK.release()

    def _run(self, caller_identity: Optional[str]) -> SyncOutcome:
        outcome = SyncOutcome()
        LOG.info("Starting districts sync into %s", self.config.object_key)
        try:
            if not self.config.api_key:
                raise MissingCredential("map API key is not configured (DISTRICTS_MAP_KEY)")

            outcome.enter(SyncState.FETCHING)
            envelope = self.fetcher(self.config, caller_identity or self.config.caller_identity)

            outcome.enter(SyncState.NORMALIZING)
            source = normalize(envelope.result)
            outcome.shape = source.shape

            outcome.enter(SyncState.BUILDING)
            report = BuildReport()
            outcome.report = report
            tree = build_tree(source, report)
            body = serialize_tree(tree)

            outcome.enter(SyncState.PERSISTING)
            outcome.meta = self._persist(body, envelope, report, len(tree))
        except SyncError as exc:
            outcome.error = exc
            outcome.enter(SyncState.FAILED)
            outcome.finished_at = _utc_now()
            LOG.error("Districts sync failed (%s): %s", exc.reason, exc)
            return outcome

        outcome.enter(SyncState.DONE)
        outcome.finished_at = _utc_now()
        LOG.info("Districts sync completed successfully")
        return outcome

    def _persist(
        self, body: bytes, envelope: UpstreamEnvelope, report: BuildReport, provinces: int
    ) -> ObjectMeta:
        metadata = {
            "updatedAt": iso_timestamp(_utc_now()),
            "provinces": str(provinces),
            "nodes": str(report.nodes),
            "skipped": str(len(report.skipped)),
        }
        if envelope.data_version:
            metadata["dataVersion"] = envelope.data_version
        try:
            return self.store.put(
                self.config.object_key,
                body,
                content_type=CONTENT_TYPE,
                custom_metadata=metadata,
            )
        except StoreWriteError:
            raise
        except Exception as exc:
            raise StoreWriteError(f"failed to write {self.config.object_key!r}: {exc}") from exc


def run_sync(
    config: SyncConfig,
    store: ObjectStore,
    *,
    fetcher: Optional[Fetcher] = None,
    caller_identity: Optional[str] = None,
) -> SyncOutcome:
    return DistrictSync(config, store, fetcher=fetcher).run(caller_identity=caller_identity)


def last_updated(store: ObjectStore, key: str) -> Optional[datetime]:
    """Completion time of the stored tree, or ``None`` when nothing is stored."""

    meta = store.head(key)
    if meta is None:
        return None
    stamp = meta.custom_metadata.get("updatedAt")
    if stamp:
        try:
            return datetime.fromisoformat(stamp.replace("Z", "+00:00"))
        except ValueError:
            LOG.warning("Ignoring unparseable updatedAt %r on %s", stamp, key)
    return meta.uploaded
