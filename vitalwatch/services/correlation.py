"""
Hypotensive hypoxemia detection across two aligned time series.

Systolic pressure and oxygen saturation readings are sorted independently and
merge-joined on exact timestamp equality. A matched pair fires only when both
values breach their thresholds at once. There is no tolerance window.
"""

from collections.abc import Iterable

from vitalwatch.config import AlertThresholds
from vitalwatch.domain.models import Alert, Reading, ReadingKind

HYPOTENSIVE_HYPOXEMIA = "Hypotensive Hypoxemia Alert"


class CorrelationEvaluator:
    """Two-cursor merge-join of systolic and saturation readings."""

    condition = HYPOTENSIVE_HYPOXEMIA

    def __init__(self, thresholds: AlertThresholds) -> None:
        self.systolic_low = thresholds.correlation_systolic_low
        self.saturation_low = thresholds.correlation_saturation_low

    def evaluate(self, readings: Iterable[Reading]) -> list[Alert]:
        systolic: list[Reading] = []
        saturation: list[Reading] = []
        for reading in readings:
            if reading.kind == ReadingKind.SYSTOLIC_PRESSURE:
                systolic.append(reading)
            elif reading.kind == ReadingKind.OXYGEN_SATURATION:
                saturation.append(reading)
        systolic.sort(key=lambda r: r.timestamp)
        saturation.sort(key=lambda r: r.timestamp)

        alerts: list[Alert] = []
        i = j = 0
        while i < len(systolic) and j < len(saturation):
            pressure, oxygen = systolic[i], saturation[j]
            if pressure.timestamp == oxygen.timestamp:
                if self._breaches(pressure, oxygen):
                    alerts.append(
                        Alert(
                            patient_id=pressure.patient_id,
                            condition=self.condition,
                            timestamp=pressure.timestamp,
                        )
                    )
                i += 1
                j += 1
            elif pressure.timestamp < oxygen.timestamp:
                i += 1
            else:
                j += 1
        return alerts

    def _breaches(self, pressure: Reading, oxygen: Reading) -> bool:
        return pressure.value < self.systolic_low and oxygen.value < self.saturation_low
