"""Ingestion adapters that validate raw records before they reach the ReadingStore."""

from .file_reader import FileDataReader, IngestionSummary, MalformedRecord, parse_record

__all__ = ["FileDataReader", "IngestionSummary", "MalformedRecord", "parse_record"]
