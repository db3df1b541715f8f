"""
Logging helpers for the offline sync queue.

Sync components log with plain ``logging.getLogger(__name__)``. Records
about a single pending mutation carry its context through
``MutationLoggerAdapter``; the drain summary carries counters through
``drain_context``. ``SyncLogFormatter`` renders both as JSON lines, with
the mutation and drain fields grouped under their own keys so a log
collector can filter on ``mutation.id`` or ``drain.evicted``.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO, TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .models import PendingMutation

PACKAGE_LOGGER = "offline_sync_queue"

# Record attributes grouped under "mutation" and "drain" in JSON output
MUTATION_FIELDS = ("mutation_id", "entity", "mutation_type", "retry_count", "action", "reason")
DRAIN_FIELDS = ("synced", "retried", "evicted", "requests", "duration_ms")

_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message"}


def mutation_context(mutation: PendingMutation, **fields: Any) -> dict[str, Any]:
    """Log context identifying one pending mutation."""
    context = {
        "mutation_id": mutation.id,
        "entity": mutation.entity.value,
        "mutation_type": mutation.type.value,
        "retry_count": mutation.retry_count,
    }
    context.update(fields)
    return context


def drain_context(result: Any) -> dict[str, Any]:
    """Log context summarizing a finished drain (anything shaped like DrainResult)."""
    return {
        "synced": len(result.synced),
        "retried": len(result.retried),
        "evicted": len(result.evicted),
        "requests": result.requests,
        "duration_ms": result.duration_ms,
    }


def _jsonable(value: Any) -> Any:
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value


class SyncLogFormatter(logging.Formatter):
    """
    Single-line JSON formatter for sync logs.

    Output keys:
    - ts, level, logger, msg
    - mutation: mutation_id, entity, mutation_type, retry_count, action, reason
    - drain: synced, retried, evicted, requests, duration_ms
    - any other ``extra`` fields at top level
    - exception, when the record carries one
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }

        extras = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        }

        mutation = {k: _jsonable(extras.pop(k)) for k in MUTATION_FIELDS if k in extras}
        if mutation:
            entry["mutation"] = mutation

        drain = {k: _jsonable(extras.pop(k)) for k in DRAIN_FIELDS if k in extras}
        if drain:
            entry["drain"] = drain

        for key, value in extras.items():
            entry[key] = _jsonable(value)

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry)


def configure_sync_logging(
    level: int = logging.INFO,
    json_lines: bool = True,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """Attach one handler to the package logger.

    Calling it again replaces the handler instead of stacking another.

    Args:
        level: Level for the package logger
        json_lines: Emit ``SyncLogFormatter`` JSON; plain text otherwise
        stream: Destination (stdout by default)

    Returns:
        The package logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in [h for h in logger.handlers if getattr(h, "_sync_handler", False)]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler._sync_handler = True  # type: ignore[attr-defined]
    if json_lines:
        handler.setFormatter(SyncLogFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(levelname)s  %(name)s  %(message)s"))

    logger.addHandler(handler)
    logger.setLevel(level)
    return logger


class MutationLoggerAdapter(logging.LoggerAdapter):
    """
    Logger adapter stamping records with the mutation they concern.

    Usage:
        >>> log = MutationLoggerAdapter(logger, mutation)
        >>> log.warning("Will retry", extra={"action": "retry", "reason": "HTTP 503"})
    """

    def __init__(self, logger: logging.Logger, mutation: PendingMutation, **fields: Any):
        super().__init__(logger, mutation_context(mutation, **fields))

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs
