"""
File-based batch ingestion adapter.

Reads vital-sign records written one per line as::

    Patient ID: 1, Timestamp: 1714376789050, Label: SystolicPressure, Data: 120.0

A trailing ``%`` on the data field marks a percentage and is stored as a fraction.
Malformed lines are rejected here, before they reach ``ReadingStore.append``.
"""

from pathlib import Path
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

from vitalwatch.domain.models import InvalidReading, Kind, ReadingKind
from vitalwatch.observability import logger
from vitalwatch.services.reading_store import ReadingStore

ValueT = TypeVar("ValueT")
ErrorT = TypeVar("ErrorT", bound=BaseException)


class Result(Generic[ValueT, ErrorT]):
    """
    Explicit error handling without exceptions for expected failures.

    A malformed line in an input file is ordinary business, not an exceptional
    event, so the parser reports it as a value the reader can count and log.
    """

    def __init__(self, value: ValueT | None = None, error: ErrorT | None = None) -> None:
        if value is not None and error is not None:
            raise ValueError("Result cannot have both value and error")
        if value is None and error is None:
            raise ValueError("Result must have either value or error")
        self._value: ValueT | None = value
        self._error: ErrorT | None = error

    @classmethod
    def ok(cls, value: ValueT) -> "Result[ValueT, ErrorT]":
        return cls(value=value)

    @classmethod
    def err(cls, error: ErrorT) -> "Result[ValueT, ErrorT]":
        return cls(error=error)

    def is_ok(self) -> bool:
        return self._error is None

    def is_err(self) -> bool:
        return self._error is not None

    def unwrap(self) -> ValueT:
        if self._error is not None:
            raise self._error
        return self._value  # type: ignore[return-value]

    def unwrap_err(self) -> ErrorT:
        if self._error is None:
            raise ValueError("Called unwrap_err() on an Ok value")
        return self._error


class MalformedRecord(ValueError):
    """A line that cannot be turned into a reading."""


class ParsedRecord(BaseModel):
    patient_id: int = Field(ge=1)
    timestamp: int = Field(ge=0)
    kind: Kind = Field(union_mode="left_to_right")
    value: float


class IngestionSummary(BaseModel):
    accepted: int = 0
    rejected: int = 0
    files: int = 0


_FIELDS = ("patient id", "timestamp", "label", "data")


def parse_record(line: str) -> Result[ParsedRecord, MalformedRecord]:
    """Parse one record line into its fields."""
    fields: dict[str, str] = {}
    for part in line.strip().split(","):
        name, sep, raw = part.partition(":")
        if not sep:
            return Result.err(MalformedRecord(f"Field without label: {part.strip()!r}"))
        fields[name.strip().lower()] = raw.strip()

    missing = [name for name in _FIELDS if not fields.get(name)]
    if missing:
        return Result.err(MalformedRecord(f"Missing fields: {', '.join(missing)}"))

    data = fields["data"]
    scale = 1.0
    if data.endswith("%"):
        data, scale = data[:-1].strip(), 0.01

    try:
        record = ParsedRecord(
            patient_id=int(fields["patient id"]),
            timestamp=int(fields["timestamp"]),
            kind=ReadingKind.from_label(fields["label"]),
            value=float(data) * scale,
        )
    except ValueError as e:
        # pydantic.ValidationError is a ValueError too
        return Result.err(MalformedRecord(f"Invalid record {line.strip()!r}: {e}"))

    if record.value != record.value:
        return Result.err(MalformedRecord(f"Data is not a number: {line.strip()!r}"))
    return Result.ok(record)


class FileDataReader:
    """Reads one record file, or every ``*.txt``/``*.csv`` file in a directory, into a store."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.logger = logger.bind(component="file_reader", path=str(self.path))

    def files(self) -> list[Path]:
        if self.path.is_dir():
            return sorted(
                p for p in self.path.iterdir() if p.is_file() and p.suffix in {".txt", ".csv"}
            )
        if self.path.is_file():
            return [self.path]
        raise FileNotFoundError(f"No such file or directory: {self.path}")

    def read_into(self, store: ReadingStore) -> IngestionSummary:
        summary = IngestionSummary()
        for file_path in self.files():
            summary.files += 1
            with file_path.open(encoding="utf-8") as handle:
                for line_number, line in enumerate(handle, start=1):
                    if not line.strip():
                        continue
                    result = parse_record(line)
                    if result.is_err():
                        summary.rejected += 1
                        self.logger.warning(
                            "record_rejected",
                            file=file_path.name,
                            line=line_number,
                            error=str(result.unwrap_err()),
                        )
                        continue

                    record = result.unwrap()
                    try:
                        store.append(record.patient_id, record.value, record.kind, record.timestamp)
                    except InvalidReading as e:
                        summary.rejected += 1
                        self.logger.warning(
                            "record_rejected", file=file_path.name, line=line_number, error=str(e)
                        )
                        continue
                    summary.accepted += 1

        self.logger.info(
            "file_ingestion_completed",
            files=summary.files,
            accepted=summary.accepted,
            rejected=summary.rejected,
        )
        return summary
