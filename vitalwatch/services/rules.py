"""
Single-reading rule evaluators, one per vital-sign kind.

Each evaluator is a stateless callable ``Reading -> Alert | None`` built from an
explicit AlertThresholds value. ``RuleSet`` is the dispatch table keyed by kind;
readings whose kind has no evaluator produce no alert.
"""

from collections.abc import Callable, Mapping

from vitalwatch.config import AlertThresholds
from vitalwatch.domain.models import Alert, Kind, Reading, ReadingKind

RuleEvaluator = Callable[[Reading], Alert | None]

SYSTOLIC_TOO_LOW = "SYSTOLIC TOO LOW"
SYSTOLIC_TOO_HIGH = "SYSTOLIC TOO HIGH"
DIASTOLIC_TOO_LOW = "DIASTOLIC TOO LOW"
DIASTOLIC_TOO_HIGH = "DIASTOLIC TOO HIGH"
SATURATION_TOO_LOW = "OXYGEN SATURATION TOO LOW"
ECG_ABOVE_AVERAGE = "ECG ABOVE AVERAGE"


def _alert(reading: Reading, condition: str) -> Alert:
    return Alert(patient_id=reading.patient_id, condition=condition, timestamp=reading.timestamp)


class BloodPressureRule:
    """Inclusive low/high bounds for one pressure kind (systolic or diastolic)."""

    def __init__(
        self, kind: ReadingKind, low: float, high: float, low_text: str, high_text: str
    ) -> None:
        self.kind = kind
        self.low = low
        self.high = high
        self.low_text = low_text
        self.high_text = high_text

    def __call__(self, reading: Reading) -> Alert | None:
        if reading.kind != self.kind:
            return None
        if reading.value <= self.low:
            return _alert(reading, self.low_text)
        if reading.value >= self.high:
            return _alert(reading, self.high_text)
        return None


class OxygenSaturationRule:
    """Fires when saturation drops strictly below the threshold."""

    kind = ReadingKind.OXYGEN_SATURATION

    def __init__(self, threshold: float) -> None:
        self.threshold = threshold

    def __call__(self, reading: Reading) -> Alert | None:
        if reading.kind == self.kind and reading.value < self.threshold:
            return _alert(reading, SATURATION_TOO_LOW)
        return None


class ECGRule:
    """Fires when ECG amplitude reaches the threshold."""

    kind = ReadingKind.ECG

    def __init__(self, threshold: float) -> None:
        self.threshold = threshold

    def __call__(self, reading: Reading) -> Alert | None:
        if reading.kind == self.kind and reading.value >= self.threshold:
            return _alert(reading, ECG_ABOVE_AVERAGE)
        return None


class RuleSet:
    """Dispatch table from reading kind to its evaluator."""

    def __init__(self, evaluators: Mapping[Kind, RuleEvaluator]) -> None:
        self._evaluators = dict(evaluators)

    @classmethod
    def from_thresholds(cls, thresholds: AlertThresholds) -> "RuleSet":
        return cls(
            {
                ReadingKind.SYSTOLIC_PRESSURE: BloodPressureRule(
                    ReadingKind.SYSTOLIC_PRESSURE,
                    thresholds.systolic_low,
                    thresholds.systolic_high,
                    SYSTOLIC_TOO_LOW,
                    SYSTOLIC_TOO_HIGH,
                ),
                ReadingKind.DIASTOLIC_PRESSURE: BloodPressureRule(
                    ReadingKind.DIASTOLIC_PRESSURE,
                    thresholds.diastolic_low,
                    thresholds.diastolic_high,
                    DIASTOLIC_TOO_LOW,
                    DIASTOLIC_TOO_HIGH,
                ),
                ReadingKind.OXYGEN_SATURATION: OxygenSaturationRule(thresholds.saturation_low),
                ReadingKind.ECG: ECGRule(thresholds.ecg_high),
            }
        )

    def evaluate(self, reading: Reading) -> Alert | None:
        """Run the evaluator owning the reading's kind; unknown kinds yield None."""
        evaluator = self._evaluators.get(reading.kind)
        if evaluator is None:
            return None
        return evaluator(reading)
