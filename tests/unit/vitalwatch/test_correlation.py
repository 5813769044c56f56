"""Tests for the hypotensive hypoxemia merge-join."""

import pytest

from vitalwatch.config import AlertThresholds
from vitalwatch.domain.models import Reading, ReadingKind
from vitalwatch.services.correlation import HYPOTENSIVE_HYPOXEMIA, CorrelationEvaluator


def systolic(value: float, timestamp: int) -> Reading:
    return Reading(
        patient_id=1, value=value, kind=ReadingKind.SYSTOLIC_PRESSURE, timestamp=timestamp
    )


def saturation(value: float, timestamp: int) -> Reading:
    return Reading(
        patient_id=1, value=value, kind=ReadingKind.OXYGEN_SATURATION, timestamp=timestamp
    )


@pytest.fixture
def evaluator() -> CorrelationEvaluator:
    return CorrelationEvaluator(AlertThresholds())


def test_fires_when_both_breach_at_same_timestamp(evaluator: CorrelationEvaluator) -> None:
    alerts = evaluator.evaluate([systolic(80.0, 100), saturation(0.80, 100)])

    assert len(alerts) == 1
    assert alerts[0].condition == HYPOTENSIVE_HYPOXEMIA
    assert alerts[0].timestamp == 100
    assert alerts[0].patient_id == 1


@pytest.mark.parametrize(
    "pressure_value,oxygen_value",
    [(80.0, 0.95), (120.0, 0.80), (90.0, 0.80), (80.0, 0.92)],
)
def test_single_axis_breach_does_not_fire(
    evaluator: CorrelationEvaluator, pressure_value: float, oxygen_value: float
) -> None:
    assert evaluator.evaluate([systolic(pressure_value, 5), saturation(oxygen_value, 5)]) == []


def test_no_tolerance_window(evaluator: CorrelationEvaluator) -> None:
    assert evaluator.evaluate([systolic(80.0, 100), saturation(0.80, 101)]) == []


def test_merge_join_matches_unsorted_interleaved_series(evaluator: CorrelationEvaluator) -> None:
    readings = [
        saturation(0.80, 40),
        systolic(80.0, 30),
        systolic(85.0, 10),
        saturation(0.85, 10),
        saturation(0.99, 20),
        systolic(70.0, 40),
        systolic(60.0, 25),
        Reading(patient_id=1, value=0.5, kind=ReadingKind.ECG, timestamp=10),
    ]

    alerts = evaluator.evaluate(readings)

    assert [a.timestamp for a in alerts] == [10, 40]


def test_empty_input(evaluator: CorrelationEvaluator) -> None:
    assert evaluator.evaluate([]) == []
    assert evaluator.evaluate([systolic(50.0, 1)]) == []
