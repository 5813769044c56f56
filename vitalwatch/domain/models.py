"""
Domain models for patient vital-sign monitoring.

These models represent the core clinical concepts and are framework-agnostic.
Readings and raw alerts are frozen pydantic models; alert decorators implement
the same AlertLike protocol so a chain of wrappers reads like a single alert.
"""

from collections.abc import Callable
from datetime import UTC, datetime
from enum import Enum
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field


class InvalidReading(ValueError):
    """Raised when a reading cannot be stored (NaN value, negative timestamp, bad id)."""


class ReadingKind(str, Enum):
    """Vital-sign categories the engine has rules for."""

    SYSTOLIC_PRESSURE = "systolicpressure"
    DIASTOLIC_PRESSURE = "diastolicpressure"
    OXYGEN_SATURATION = "saturation"
    ECG = "ecg"

    @classmethod
    def _missing_(cls, value: object) -> "ReadingKind | None":
        if not isinstance(value, str):
            return None
        key = value.strip().lower().replace("_", "").replace(" ", "")
        return _KIND_ALIASES.get(key)

    @classmethod
    def from_label(cls, label: str) -> "ReadingKind | str":
        """Map a raw record label to a known kind, keeping unknown labels verbatim."""
        try:
            return cls(label)
        except ValueError:
            return label


_KIND_ALIASES: dict[str, ReadingKind] = {
    "systolicpressure": ReadingKind.SYSTOLIC_PRESSURE,
    "systolic": ReadingKind.SYSTOLIC_PRESSURE,
    "diastolicpressure": ReadingKind.DIASTOLIC_PRESSURE,
    "diastolic": ReadingKind.DIASTOLIC_PRESSURE,
    "saturation": ReadingKind.OXYGEN_SATURATION,
    "oxygensaturation": ReadingKind.OXYGEN_SATURATION,
    "bloodsaturation": ReadingKind.OXYGEN_SATURATION,
    "ecg": ReadingKind.ECG,
}

# Timestamps are signed 64-bit milliseconds since epoch.
MAX_TIMESTAMP = 2**63 - 1

# Any label outside ReadingKind is carried as a plain string ("other" readings).
Kind = ReadingKind | str


class Reading(BaseModel):
    """One timestamped vital-sign sample."""

    model_config = ConfigDict(frozen=True)

    patient_id: int = Field(ge=1)
    value: float
    kind: Kind = Field(union_mode="left_to_right")
    timestamp: int = Field(ge=0, le=MAX_TIMESTAMP, description="Milliseconds since epoch")


AlertSink = Callable[["AlertLike"], object]


@runtime_checkable
class AlertLike(Protocol):
    """Anything that can be delivered to an alert sink: a raw alert or a decorator chain."""

    @property
    def patient_id(self) -> int: ...

    @property
    def condition(self) -> str: ...

    @property
    def timestamp(self) -> int: ...

    @property
    def root(self) -> "Alert": ...

    def trigger(self, sink: AlertSink, outer: "AlertLike | None" = None) -> None: ...


class Alert(BaseModel):
    """Immutable record that a rule fired for a patient at a point in time."""

    model_config = ConfigDict(frozen=True)

    patient_id: int
    condition: str
    timestamp: int

    @property
    def root(self) -> "Alert":
        return self

    def trigger(self, sink: AlertSink, outer: AlertLike | None = None) -> None:
        # The outermost wrapper is what gets delivered, so its composed condition survives.
        sink(outer if outer is not None else self)


class EvaluationReport(BaseModel):
    """Summary of one periodic evaluation cycle."""

    patients_evaluated: int = Field(ge=0)
    alerts_fired: int = Field(ge=0)
    duration_seconds: float = Field(ge=0.0)
    generated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
