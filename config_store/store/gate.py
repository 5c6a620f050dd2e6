"""
Profile Config Store - Serialized Access Gate

Admits one read-modify-write operation at a time against the document.

Guarantees:
- FIFO admission: asyncio.Lock wakes waiters in arrival order
- A failing operation releases the gate like a successful one
- An admitted operation runs to completion even if its caller is cancelled;
  a caller cancelled while still queued leaves without running
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from config_store.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class SerializedAccessGate:
    """Mutual exclusion with FIFO admission for store operations."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._admitted = 0

    @property
    def admitted(self) -> int:
        """Number of operations admitted so far."""
        return self._admitted

    def locked(self) -> bool:
        """Whether an operation currently holds the gate."""
        return self._lock.locked()

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        name: str = "operation",
    ) -> T:
        """Run *operation* once every earlier caller has finished.

        Args:
            operation: Zero-argument coroutine function
            name: Label used in log events

        Returns:
            Whatever *operation* returns

        Raises:
            Whatever *operation* raises; the gate is released either way.
        """
        async with self._lock:
            self._admitted += 1
            task = asyncio.ensure_future(operation())
            try:
                return await asyncio.shield(task)
            except asyncio.CancelledError:
                if not task.done():
                    logger.warning("gate_caller_cancelled", operation=name)
                    await _run_to_completion(task)
                raise


async def _run_to_completion(task: asyncio.Future[T]) -> None:
    # Hold the gate until the admitted operation has finished its write.
    while not task.done():
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            continue
    if not task.cancelled() and task.exception() is not None:
        logger.warning(
            "gate_orphaned_operation_failed",
            error=str(task.exception()),
        )
