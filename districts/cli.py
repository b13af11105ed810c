# Districts
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""Command line entry points for one-off syncs and status checks."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Optional, Sequence

from districts.common import configure_root_logger
from districts.config import SyncConfig
from districts.errors import SyncInProgress
from districts.store import ObjectStore, open_store
from districts.sync import iso_timestamp, last_updated, run_sync

LOG = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_BUSY = 2


def _cmd_sync(args: argparse.Namespace, config: SyncConfig, store: ObjectStore) -> int:
    try:
        outcome = run_sync(config, store, caller_identity=args.caller_identity)
    except SyncInProgress as exc:
        LOG.warning("%s", exc)
        return EXIT_BUSY
    if args.json:
        print(json.dumps(outcome.to_dict(), ensure_ascii=False, indent=2))
    if not outcome.ok:
        LOG.error("sync failed: %s", outcome.error)
        return EXIT_FAILED
    return EXIT_OK


def _cmd_status(args: argparse.Namespace, config: SyncConfig, store: ObjectStore) -> int:
    updated = last_updated(store, config.object_key)
    if updated is None:
        print(f"{config.object_key}: never updated")
    else:
        print(f"{config.object_key}: last updated {iso_timestamp(updated)}")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Administrative-division sync")
    parser.add_argument("--log-level", default=None, help="Override DISTRICTS_LOG_LEVEL")
    parser.add_argument("--store-dir", default=None, help="Directory of the object store")
    sub = parser.add_subparsers(dest="command", required=True)

    sync_p = sub.add_parser("sync", help="Fetch, rebuild and store the district tree once")
    sync_p.add_argument("--caller-identity", default=None, help="Referer sent upstream")
    sync_p.add_argument("--json", action="store_true", help="Print the run outcome as JSON")
    sync_p.set_defaults(func=_cmd_sync)

    status_p = sub.add_parser("status", help="Show when the stored tree was last updated")
    status_p.set_defaults(func=_cmd_status)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_root_logger(level=args.log_level)

    config = SyncConfig.from_env()
    store_dir = args.store_dir or config.store_dir
    store = open_store(store_dir)
    LOG.debug("resolved config: %s", dict(config.redacted(), store_dir=store_dir))
    return args.func(args, config, store)


if __name__ == "__main__":
    sys.exit(main())
