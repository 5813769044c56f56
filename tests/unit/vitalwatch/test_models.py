"""Tests for the reading and alert domain models."""

import pytest

from vitalwatch.domain.models import Alert, AlertLike, Reading, ReadingKind


class TestReadingKind:
    @pytest.mark.parametrize(
        "label,expected",
        [
            ("systolicpressure", ReadingKind.SYSTOLIC_PRESSURE),
            ("SystolicPressure", ReadingKind.SYSTOLIC_PRESSURE),
            ("DiastolicPressure", ReadingKind.DIASTOLIC_PRESSURE),
            ("Saturation", ReadingKind.OXYGEN_SATURATION),
            ("OxygenSaturation", ReadingKind.OXYGEN_SATURATION),
            ("ECG", ReadingKind.ECG),
        ],
    )
    def test_labels_map_to_known_kinds(self, label: str, expected: ReadingKind) -> None:
        assert ReadingKind.from_label(label) is expected

    def test_unknown_label_is_kept_verbatim(self) -> None:
        assert ReadingKind.from_label("HeartRate") == "HeartRate"
        assert not isinstance(ReadingKind.from_label("HeartRate"), ReadingKind)


class TestReading:
    def test_reading_is_immutable(self) -> None:
        reading = Reading(patient_id=1, value=120.0, kind=ReadingKind.ECG, timestamp=5)

        with pytest.raises(ValueError, match="frozen"):
            reading.value = 10.0  # type: ignore[misc]

    def test_other_kind_reading(self) -> None:
        reading = Reading(patient_id=1, value=72.0, kind="HeartRate", timestamp=5)
        assert reading.kind == "HeartRate"

    def test_equal_readings_compare_structurally(self) -> None:
        a = Reading(patient_id=1, value=1.0, kind=ReadingKind.ECG, timestamp=5)
        b = Reading(patient_id=1, value=1.0, kind=ReadingKind.ECG, timestamp=5)
        assert a == b

    @pytest.mark.parametrize("patient_id,timestamp", [(0, 1), (1, -1)])
    def test_rejects_out_of_range_fields(self, patient_id: int, timestamp: int) -> None:
        with pytest.raises(ValueError):
            Reading(patient_id=patient_id, value=1.0, kind=ReadingKind.ECG, timestamp=timestamp)


class TestAlert:
    def test_trigger_delivers_itself(self) -> None:
        alert = Alert(patient_id=3, condition="ECG ABOVE AVERAGE", timestamp=10)
        delivered: list[AlertLike] = []

        alert.trigger(delivered.append)

        assert delivered == [alert]
        assert alert.root is alert
        assert isinstance(alert, AlertLike)
