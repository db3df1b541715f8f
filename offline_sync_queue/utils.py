"""Shared utility functions for the offline sync queue.

This module contains helpers used by several sync components.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)

Hook = Callable[..., Awaitable[Any] | Any]


async def call_hook(hook: Hook, *args: Any, name: str | None = None) -> bool:
    """Call a host-supplied hook that may be sync or async.

    Hooks are fire-and-forget: a failing hook is logged and reported
    through the return value, never raised to the caller.

    Args:
        hook: Callable returning None or an awaitable
        *args: Arguments passed to the hook
        name: Label used in the error log (defaults to the hook's name)

    Returns:
        True if the hook completed, False if it raised
    """
    try:
        result = hook(*args)
        if inspect.isawaitable(result):
            await result
        return True
    except Exception as e:
        label = name or getattr(hook, "__name__", repr(hook))
        logger.error(f"Hook {label} failed: {e}")
        return False
