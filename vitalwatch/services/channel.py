"""
Single-consumer channel between the alert core and the outside sink.

The engine and repeating decorators only ever call ``publish``; one consumer task
drains the queue into handlers (logging, paging, UI), so the core never depends on
a handler's threading model or latency.
"""

import asyncio
import inspect
from collections import deque
from collections.abc import Awaitable, Callable, Sequence

from vitalwatch.domain.models import AlertLike
from vitalwatch.observability import logger

AlertHandler = Callable[[AlertLike], None] | Callable[[AlertLike], Awaitable[None]]

_CLOSE = object()


def log_alert_handler(alert: AlertLike) -> None:
    """Default handler: record the alert as a structured log event."""
    logger.warning(
        "patient_alert",
        patient_id=alert.patient_id,
        condition=alert.condition,
        timestamp=alert.timestamp,
    )


class AlertChannel:
    """asyncio.Queue backed alert channel with one consumer."""

    def __init__(
        self,
        handlers: Sequence[AlertHandler] | None = None,
        max_size: int = 0,
        history_size: int = 1000,
    ) -> None:
        self.handlers: list[AlertHandler] = list(handlers) if handlers else [log_alert_handler]
        self._queue: asyncio.Queue[object] = asyncio.Queue(maxsize=max_size)
        self.history: deque[AlertLike] = deque(maxlen=history_size)
        self.dropped = 0
        self._closed = False
        self.logger = logger.bind(component="alert_channel")

    def publish(self, alert: AlertLike) -> None:
        """Sink callable handed to the core. Never blocks; drops when a bounded queue is full."""
        try:
            self._queue.put_nowait(alert)
        except asyncio.QueueFull:
            self.dropped += 1
            self.logger.warning(
                "alert_channel_full",
                patient_id=alert.patient_id,
                condition=alert.condition,
                dropped=self.dropped,
            )

    __call__ = publish

    def pending(self) -> int:
        return self._queue.qsize()

    def close(self) -> None:
        """Ask the consumer to exit once everything published so far is dispatched."""
        self._closed = True
        try:
            self._queue.put_nowait(_CLOSE)
        except asyncio.QueueFull:
            pass  # consumer notices _closed once the backlog is drained

    async def consume(self) -> None:
        """Dispatch published alerts to every handler until ``close()`` is called."""
        self.logger.info("alert_channel_consumer_started", handlers=len(self.handlers))
        try:
            while True:
                item = await self._queue.get()
                if item is _CLOSE:
                    break
                await self._dispatch(item)  # type: ignore[arg-type]
                if self._closed and self._queue.empty():
                    break
        finally:
            self.logger.info("alert_channel_consumer_stopped", delivered=len(self.history))

    def drain_nowait(self) -> list[AlertLike]:
        """Take every queued alert without dispatching it."""
        alerts: list[AlertLike] = []
        while not self._queue.empty():
            item = self._queue.get_nowait()
            if item is not _CLOSE:
                alerts.append(item)  # type: ignore[arg-type]
        return alerts

    async def _dispatch(self, alert: AlertLike) -> None:
        self.history.append(alert)
        for handler in self.handlers:
            try:
                if inspect.iscoroutinefunction(handler):
                    await handler(alert)
                else:
                    handler(alert)
            except Exception as e:
                self.logger.error(
                    "alert_dispatch_failed",
                    error=str(e),
                    patient_id=alert.patient_id,
                    condition=alert.condition,
                )
