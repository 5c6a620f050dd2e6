"""Snapshot notifications for the UI layer.

Listeners receive a ConfigSnapshot after every successful mutation. They may
be plain callables or coroutine functions, and are called outside the gate so
they are free to call back into the store.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from typing import Union

from config_store.core.logging import get_logger
from config_store.document.models import ConfigSnapshot

logger = get_logger(__name__)

SnapshotListener = Callable[[ConfigSnapshot], Union[None, Awaitable[None]]]


class ChangeNotifier:
    """Small callback hub for config snapshots."""

    def __init__(self) -> None:
        self._listeners: list[SnapshotListener] = []

    def __len__(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register *listener*.

        Returns:
            A function that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def publish(self, snapshot: ConfigSnapshot) -> None:
        """Deliver *snapshot* to every listener in subscription order.

        The mutation that produced the snapshot is already persisted, so a
        failing listener is logged and the remaining listeners still run.
        """
        for listener in list(self._listeners):
            try:
                result = listener(snapshot.model_copy(deep=True))
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(
                    "snapshot_listener_failed",
                    listener=getattr(listener, "__qualname__", repr(listener)),
                )
