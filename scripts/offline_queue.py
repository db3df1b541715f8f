"""Inspect and drain a file-backed offline mutation queue.

Reads configuration from a YAML settings file (``--config``) or from the
OFFLINE_SYNC_* environment variables.

Usage:
    python scripts/offline_queue.py status
    python scripts/offline_queue.py list
    python scripts/offline_queue.py --config ~/.offline-sync/settings.yaml drain
    python scripts/offline_queue.py clear --yes
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

from offline_sync_queue import (
    AiohttpTransport,
    FileKeyValueStore,
    OfflineQueueError,
    OfflineSyncService,
    SyncConfig,
)
from offline_sync_queue.logging_utils import PACKAGE_LOGGER, configure_sync_logging
from offline_sync_queue.sync import ConnectivityMonitor, InvalidationNotifier

logger = logging.getLogger(f"{PACKAGE_LOGGER}.cli")


def load_config(path: Path | None) -> SyncConfig:
    if path is not None:
        return SyncConfig.from_file(path)
    return SyncConfig.from_environment()


def build_service(config: SyncConfig) -> OfflineSyncService:
    """Build a service that treats the client as online; no probe runs."""
    return OfflineSyncService(
        FileKeyValueStore(config.resolved_storage_path()),
        AiohttpTransport(
            config.api_base_url,
            auth_token=config.auth_token,
            timeout_s=config.request_timeout_s,
        ),
        monitor=ConnectivityMonitor(initially_online=True, debounce_s=0),
        policy=config.retry_policy(),
        notifier=InvalidationNotifier(on_notify=print),
        queue_key=config.queue_key,
        on_evicted=lambda m: print(f"  evicted {m.id} ({m.type.value} {m.entity.value})"),
    )


def _format_timestamp(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000, timezone.utc).isoformat(timespec="seconds")


async def run(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    service = build_service(config)
    await service.store.load()

    try:
        if args.command == "status":
            print(json.dumps(service.status(), indent=2))

        elif args.command == "list":
            mutations = await service.pending()
            if not mutations:
                print("Queue is empty")
            for m in mutations:
                print(
                    f"{m.id}  {m.type.value:<6} {m.entity.value:<7} "
                    f"retries={m.retry_count}  queued={_format_timestamp(m.timestamp)}"
                )

        elif args.command == "drain":
            print(f"Draining {len(service.store)} mutation(s) against {config.api_base_url}")
            result = await service.sync_now()
            if result is not None:
                print(json.dumps(result.to_dict(), indent=2))
                return 0 if result.success else 2

        elif args.command == "clear":
            if not args.yes:
                print("Refusing to clear without --yes", file=sys.stderr)
                return 1
            removed = await service.clear()
            print(f"Removed {removed} mutation(s)")

        return 0
    finally:
        await service.teardown()


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Inspect and drain the offline mutation queue",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show queue length and last sync
  python scripts/offline_queue.py status

  # Replay queued writes against the configured backend
  python scripts/offline_queue.py --config settings.yaml drain
        """,
    )
    parser.add_argument("--config", type=Path, help="YAML settings file (offline_sync section)")
    parser.add_argument("--json-logs", action="store_true", help="Emit structured JSON logs")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("status", help="Show queue status")
    subparsers.add_parser("list", help="List pending mutations in order")
    subparsers.add_parser("drain", help="Run one drain now")
    clear_parser = subparsers.add_parser("clear", help="Drop every pending mutation")
    clear_parser.add_argument("--yes", action="store_true", help="Confirm clearing")

    args = parser.parse_args()

    level = logging.DEBUG if args.verbose else logging.INFO
    configure_sync_logging(level, json_lines=args.json_logs, stream=sys.stderr)
    logging.getLogger("aiohttp").setLevel(logging.WARNING)

    try:
        exit_code = asyncio.run(run(args))
    except OfflineQueueError as e:
        logger.error(f"{e.message} {e.details}")
        exit_code = 1
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
