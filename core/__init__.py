"""Core data models, aggregation and utilities for corpus triage."""

from .models import (
    BinaryFormat,
    ExtractionError,
    ExtractionResult,
    NotABinaryError,
    RegionCategory,
    RunState,
    ScanReport,
    ScanTask,
)
from .aggregator import Aggregator, ProgressCounter
from .cancellation import CancellationToken
from .utils import FINGERPRINT_SIZE, compute_digest, detect_format, format_report, validate_root

__all__ = [
    "BinaryFormat",
    "ExtractionError",
    "ExtractionResult",
    "NotABinaryError",
    "RegionCategory",
    "RunState",
    "ScanReport",
    "ScanTask",
    "Aggregator",
    "ProgressCounter",
    "CancellationToken",
    "FINGERPRINT_SIZE",
    "compute_digest",
    "detect_format",
    "format_report",
    "validate_root",
]
