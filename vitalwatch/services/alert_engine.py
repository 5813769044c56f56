"""
Alert evaluation engine: the single entry point for "evaluate this patient now".

The engine holds no per-patient state. Every call re-reads the patient's full
history from the ReadingStore and runs, in order: the systolic trend scan, the
diastolic trend scan, the hypotensive hypoxemia correlation, then every reading
through the rule owning its kind. Each produced alert is handed to the sink.
"""

import time
from collections.abc import Callable

from vitalwatch.config import AlertThresholds
from vitalwatch.domain.models import Alert, AlertLike, AlertSink, Reading, ReadingKind
from vitalwatch.observability import logger
from vitalwatch.services.correlation import CorrelationEvaluator
from vitalwatch.services.reading_store import ReadingStore
from vitalwatch.services.rules import RuleSet
from vitalwatch.services.trend import TrendEvaluator

AlertDecoration = Callable[[Alert], AlertLike]


class AlertEngine:
    """Runs every evaluator over one patient's readings and emits fired alerts."""

    def __init__(
        self,
        store: ReadingStore,
        sink: AlertSink,
        thresholds: AlertThresholds | None = None,
        decorate: AlertDecoration | None = None,
    ) -> None:
        self.store = store
        self.sink = sink
        self.thresholds = thresholds or AlertThresholds()
        self.decorate = decorate
        self.rules = RuleSet.from_thresholds(self.thresholds)
        self.systolic_trend = TrendEvaluator(ReadingKind.SYSTOLIC_PRESSURE, self.thresholds)
        self.diastolic_trend = TrendEvaluator(ReadingKind.DIASTOLIC_PRESSURE, self.thresholds)
        self.correlation = CorrelationEvaluator(self.thresholds)
        self.logger = logger.bind(component="alert_engine")

    def collect(self, patient_id: int) -> list[Alert]:
        """Raw alerts for the patient's current history, without emitting them."""
        readings = self.store.all_readings(patient_id)
        return self._run_evaluators(readings)

    def evaluate(self, patient_id: int) -> list[AlertLike]:
        """Evaluate a patient and pass every fired alert (decorated if configured) to the sink."""
        start = time.perf_counter()
        fired: list[AlertLike] = []

        for raw in self.collect(patient_id):
            alert = self.decorate(raw) if self.decorate else raw
            alert.trigger(self.sink)
            fired.append(alert)
            self.logger.info(
                "alert_fired",
                patient_id=patient_id,
                condition=alert.condition,
                timestamp=alert.timestamp,
            )

        self.logger.debug(
            "patient_evaluated",
            patient_id=patient_id,
            alerts=len(fired),
            duration_seconds=round(time.perf_counter() - start, 6),
        )
        return fired

    def condition_holds(self, patient_id: int, condition: str) -> bool:
        """Whether a rule producing ``condition`` still fires on the patient's current readings."""
        return any(a.condition == condition for a in self.collect(patient_id))

    def _run_evaluators(self, readings: list[Reading]) -> list[Alert]:
        alerts: list[Alert] = []
        alerts.extend(self.systolic_trend.evaluate(readings))
        alerts.extend(self.diastolic_trend.evaluate(readings))
        alerts.extend(self.correlation.evaluate(readings))
        for reading in readings:
            alert = self.rules.evaluate(reading)
            if alert is not None:
                alerts.append(alert)
        return alerts
