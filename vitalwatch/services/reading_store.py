"""
Append-only, per-patient, time-ordered storage of vital-sign readings.

Readings are kept sorted on insert, so range queries never depend on the order
adapters delivered them in. Equal timestamps keep insertion order.

Concurrency: a registry lock guards creation of a patient's series and each series
has its own lock. Readers copy a slice under that lock, so a range query always sees
a consistent snapshot and never a half-appended reading.
"""

import bisect
import itertools
import math
import threading
from dataclasses import dataclass, field

from pydantic import ValidationError

from vitalwatch.domain.models import MAX_TIMESTAMP, InvalidReading, Kind, Reading, ReadingKind
from vitalwatch.observability import logger

MIN_TIMESTAMP = 0


@dataclass
class _PatientSeries:
    """Sorted readings for one patient plus the sort keys used for bisection."""

    lock: threading.Lock = field(default_factory=threading.Lock)
    keys: list[tuple[int, int]] = field(default_factory=list)
    readings: list[Reading] = field(default_factory=list)


class ReadingStore:
    """Process-wide in-memory reading log. Grows only by append."""

    def __init__(self) -> None:
        self._series: dict[int, _PatientSeries] = {}
        self._registry_lock = threading.Lock()
        self._sequence = itertools.count()
        self.logger = logger.bind(component="reading_store")

    def append(self, patient_id: int, value: float, kind: Kind, timestamp: int) -> Reading:
        """
        Store one reading for a patient, creating the patient's series on first use.

        Raises:
            InvalidReading: value is NaN, timestamp is negative, or the reading
                otherwise fails validation.
        """
        if timestamp < 0:
            self.logger.warning(
                "reading_rejected", patient_id=patient_id, reason="negative_timestamp"
            )
            raise InvalidReading(f"Reading timestamp must be non-negative, got {timestamp}")

        if isinstance(kind, str) and not isinstance(kind, ReadingKind):
            kind = ReadingKind.from_label(kind)

        try:
            reading = Reading(patient_id=patient_id, value=value, kind=kind, timestamp=timestamp)
        except ValidationError as e:
            self.logger.warning("reading_rejected", patient_id=patient_id, reason=str(e))
            raise InvalidReading(str(e)) from e

        # Checked after validation so "nan" strings, Decimal and numpy NaNs are caught too
        if math.isnan(reading.value):
            self.logger.warning("reading_rejected", patient_id=patient_id, reason="nan_value")
            raise InvalidReading(f"Reading value for patient {patient_id} is not a number")

        series = self._get_or_create(patient_id)
        with series.lock:
            key = (reading.timestamp, next(self._sequence))
            index = bisect.bisect_right(series.keys, key)
            series.keys.insert(index, key)
            series.readings.insert(index, reading)

        self.logger.debug(
            "reading_appended",
            patient_id=patient_id,
            kind=str(getattr(kind, "value", kind)),
            timestamp=timestamp,
        )
        return reading

    def range_query(
        self, patient_id: int, start: int = MIN_TIMESTAMP, end: int = MAX_TIMESTAMP
    ) -> list[Reading]:
        """Readings with start <= timestamp <= end, ascending. Unknown patients yield []."""
        series = self._series.get(patient_id)
        if series is None or start > end:
            return []

        with series.lock:
            lo = bisect.bisect_left(series.keys, (start,))
            # (end + 1,) sorts after every (end, seq) key
            hi = bisect.bisect_left(series.keys, (end + 1,))
            return series.readings[lo:hi]

    def all_readings(self, patient_id: int) -> list[Reading]:
        """Full history for a patient, ascending by timestamp."""
        return self.range_query(patient_id, MIN_TIMESTAMP, MAX_TIMESTAMP)

    def all_patient_ids(self) -> set[int]:
        """Snapshot of the patient ids known at call time."""
        with self._registry_lock:
            return set(self._series)

    def _get_or_create(self, patient_id: int) -> _PatientSeries:
        series = self._series.get(patient_id)
        if series is not None:
            return series
        with self._registry_lock:
            series = self._series.get(patient_id)
            if series is None:
                series = _PatientSeries()
                self._series[patient_id] = series
                self.logger.info("patient_registered", patient_id=patient_id)
            return series
