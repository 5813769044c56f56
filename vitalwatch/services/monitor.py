"""
Periodic evaluation driver.

On every tick the monitor evaluates each patient known to the ReadingStore at that
moment. Fired alerts flow through the AlertChannel into its handlers. When
configured, alerts are annotated with a priority level and wrapped in a
RepeatingDecorator; at most one repeater runs per (patient, condition).
"""

import asyncio
import time
from collections.abc import AsyncIterator

from vitalwatch.config import AppConfig, get_config
from vitalwatch.domain.models import Alert, AlertLike, EvaluationReport
from vitalwatch.observability import logger
from vitalwatch.services.alert_engine import AlertEngine
from vitalwatch.services.channel import AlertChannel
from vitalwatch.services.decorators import PriorityDecorator, RepeatingDecorator
from vitalwatch.services.reading_store import ReadingStore


def _loop_running() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


class PatientMonitor:
    """Owns the store, engine and channel, and re-evaluates every patient on a fixed cadence."""

    def __init__(
        self,
        config: AppConfig | None = None,
        store: ReadingStore | None = None,
        channel: AlertChannel | None = None,
    ) -> None:
        self.config = config or get_config()
        self.store = store or ReadingStore()
        self.channel = channel or AlertChannel(max_size=self.config.monitoring.channel_max_size)
        self.engine = AlertEngine(
            self.store,
            self.channel.publish,
            thresholds=self.config.thresholds,
            decorate=self._decorate,
        )
        self.repeaters: dict[tuple[int, str], RepeatingDecorator] = {}
        self.logger = logger.bind(component="patient_monitor")
        self._is_running = False

    def _decorate(self, alert: Alert) -> AlertLike:
        monitoring = self.config.monitoring
        decorated: AlertLike = alert

        level = monitoring.priority_levels.get(alert.condition)
        if level is not None:
            decorated = PriorityDecorator(decorated, level)

        interval = monitoring.repeat_interval_seconds
        key = (alert.patient_id, alert.condition)
        if interval is not None and _loop_running():
            active = self.repeaters.get(key)
            if active is None or not active.is_running:
                repeater = RepeatingDecorator(decorated, interval, self.engine, alert.patient_id)
                self.repeaters[key] = repeater
                decorated = repeater
        return decorated

    def run_cycle(self) -> EvaluationReport:
        """Evaluate every patient known at call time once."""
        start = time.perf_counter()
        patient_ids = sorted(self.store.all_patient_ids())
        alerts_fired = 0

        for patient_id in patient_ids:
            try:
                alerts_fired += len(self.engine.evaluate(patient_id))
            except Exception as e:
                self.logger.exception(
                    "patient_evaluation_failed", patient_id=patient_id, error=str(e)
                )

        duration = time.perf_counter() - start
        self.logger.info(
            "evaluation_cycle_completed",
            patients_evaluated=len(patient_ids),
            alerts_fired=alerts_fired,
            duration_seconds=round(duration, 3),
        )
        return EvaluationReport(
            patients_evaluated=len(patient_ids),
            alerts_fired=alerts_fired,
            duration_seconds=duration,
        )

    async def run_continuously(self) -> AsyncIterator[EvaluationReport]:
        """Yield one report per tick until ``stop()`` is called or the iterator is closed."""
        interval = self.config.monitoring.evaluation_interval_seconds
        self.logger.info("continuous_evaluation_starting", interval_seconds=interval)
        self._is_running = True

        try:
            while self._is_running:
                cycle_start = time.perf_counter()
                yield self.run_cycle()

                elapsed = time.perf_counter() - cycle_start
                sleep_time = max(0.0, interval - elapsed)
                if sleep_time > 0:
                    await asyncio.sleep(sleep_time)
                else:
                    self.logger.warning(
                        "evaluation_slower_than_interval",
                        elapsed_seconds=round(elapsed, 3),
                        interval_seconds=interval,
                    )
        except asyncio.CancelledError:
            self.logger.info("continuous_evaluation_cancelled")
            raise
        finally:
            self._is_running = False

    async def stop(self) -> None:
        """Stop the evaluation loop and every repeating alert timer."""
        self.logger.info("stopping_patient_monitor", repeaters=len(self.repeaters))
        self._is_running = False
        for repeater in self.repeaters.values():
            repeater.stop()
        self.repeaters.clear()
