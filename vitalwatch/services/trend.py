"""Consecutive-sample delta detection for blood pressure series."""

from collections.abc import Iterable

from vitalwatch.config import AlertThresholds
from vitalwatch.domain.models import Alert, Reading, ReadingKind

_TREND_LABELS = {
    ReadingKind.SYSTOLIC_PRESSURE: "SYSTOLIC",
    ReadingKind.DIASTOLIC_PRESSURE: "DIASTOLIC",
}


def trend_condition(kind: ReadingKind) -> str:
    return f"{_TREND_LABELS[kind]} blood pressure difference exceeds threshold"


class TrendEvaluator:
    """
    Scans one pressure kind in time order and fires when two consecutive samples
    differ by strictly more than ``pressure_delta``.

    The full series is rescanned on every call; nothing is remembered between calls.
    """

    def __init__(self, kind: ReadingKind, thresholds: AlertThresholds) -> None:
        if kind not in _TREND_LABELS:
            raise ValueError(f"Trend evaluation only supports pressure kinds, got {kind}")
        self.kind = kind
        self.max_delta = thresholds.pressure_delta
        self.condition = trend_condition(kind)

    def evaluate(self, readings: Iterable[Reading]) -> list[Alert]:
        series = sorted((r for r in readings if r.kind == self.kind), key=lambda r: r.timestamp)

        alerts: list[Alert] = []
        for previous, current in zip(series, series[1:]):
            if abs(current.value - previous.value) > self.max_delta:
                alerts.append(
                    Alert(
                        patient_id=current.patient_id,
                        condition=self.condition,
                        timestamp=current.timestamp,
                    )
                )
        return alerts
