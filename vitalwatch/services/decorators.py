"""
Alert decorators: wrappers that add behavior around an inner alert without changing it.

A decorator holds exactly one inner AlertLike (possibly another decorator) and
delegates the core fields to it. Triggering the outermost wrapper delivers that
wrapper to the sink, so the composed condition text reaches the sink intact.
"""

import asyncio
from typing import TYPE_CHECKING

from vitalwatch.domain.models import Alert, AlertLike, AlertSink
from vitalwatch.observability import logger

if TYPE_CHECKING:
    from vitalwatch.services.alert_engine import AlertEngine


class AlertDecorator:
    """Base wrapper delegating every field and the trigger behavior to the inner alert."""

    def __init__(self, inner: AlertLike) -> None:
        self.inner = inner

    @property
    def patient_id(self) -> int:
        return self.inner.patient_id

    @property
    def condition(self) -> str:
        return self.inner.condition

    @property
    def timestamp(self) -> int:
        return self.inner.timestamp

    @property
    def root(self) -> Alert:
        return self.inner.root

    def trigger(self, sink: AlertSink, outer: AlertLike | None = None) -> None:
        self.inner.trigger(sink, outer if outer is not None else self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.inner!r})"


class PriorityDecorator(AlertDecorator):
    """Appends a priority annotation to the condition. Pure transform, no side effects."""

    def __init__(self, inner: AlertLike, level: str) -> None:
        super().__init__(inner)
        self.level = level

    @property
    def condition(self) -> str:
        return f"{self.inner.condition} (Priority Level: {self.level})"


class RepeatingDecorator(AlertDecorator):
    """
    Re-fires the inner alert on a fixed interval while its rule still holds.

    The first trigger delegates to the inner alert and starts a private timer task.
    On every tick the patient's current readings are re-evaluated: if the original
    rule still fires the alert is re-emitted to the sink, otherwise the tick is
    logged as stabilized and the timer keeps running until ``stop()``.

    Ticks of different instances are not coordinated with each other or with the
    periodic evaluation driver; duplicate deliveries are acceptable.
    """

    def __init__(
        self,
        inner: AlertLike,
        interval_seconds: float,
        engine: "AlertEngine",
        patient_id: int | None = None,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        super().__init__(inner)
        self.interval_seconds = interval_seconds
        self.engine = engine
        self._patient_id = patient_id if patient_id is not None else inner.patient_id
        self._task: asyncio.Task[None] | None = None
        self._stopped = False
        self.refire_count = 0
        self.logger = logger.bind(
            component="repeating_alert", patient_id=self._patient_id, condition=self.root.condition
        )

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def trigger(self, sink: AlertSink, outer: AlertLike | None = None) -> None:
        """Fire once through the inner alert, then schedule re-checks. Requires a running loop."""
        # Resolve the loop first so a missing loop fails before anything is delivered
        loop = asyncio.get_running_loop()
        delivered = outer if outer is not None else self
        self.inner.trigger(sink, delivered)
        if self._stopped or self._task is not None:
            return

        self._task = loop.create_task(
            self._repeat(sink, delivered), name=f"repeat-alert-{self._patient_id}"
        )
        self.logger.info("repeating_alert_scheduled", interval_seconds=self.interval_seconds)

    def stop(self) -> None:
        """Cancel future ticks. Safe to call repeatedly or before the alert was ever triggered."""
        if self._stopped:
            return
        self._stopped = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self.logger.info("repeating_alert_stopped", refires=self.refire_count)

    async def _repeat(self, sink: AlertSink, delivered: AlertLike) -> None:
        condition = self.root.condition
        while not self._stopped:
            await asyncio.sleep(self.interval_seconds)
            if self._stopped:
                break

            try:
                if self.engine.condition_holds(self._patient_id, condition):
                    self.inner.trigger(sink, delivered)
                    self.refire_count += 1
                    self.logger.info("alert_refired", refires=self.refire_count)
                else:
                    self.logger.info("condition_stabilized")
            except Exception as e:
                # Next tick re-evaluates from scratch
                self.logger.exception("repeating_alert_tick_failed", error=str(e))
