"""Shared data models used by the scanning pipeline and the MCP tools."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class BinaryFormat(str, Enum):
    MACHO = "Mach-O"
    ELF = "ELF"
    PE = "PE"
    UNKNOWN = "UNKNOWN"


class RegionCategory(str, Enum):
    CODE = "code"
    STRINGS = "strings"


class RunState(str, Enum):
    IDLE = "idle"
    COUNTING = "counting"
    SCANNING = "scanning"
    DRAINING = "draining"
    REPORTING = "reporting"
    TERMINATED = "terminated"


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class ExtractionError(Exception):
    """A candidate file could not be turned into regions (unreadable, short read)."""


class NotABinaryError(ExtractionError):
    """The file is not a parseable binary of a supported format."""


# ---------------------------------------------------------------------------
# Core models
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ScanTask:
    """One candidate file, identified by its absolute path."""

    path: str


@dataclass
class ExtractionResult:
    """Regions pulled out of a single binary.

    A category missing from ``regions`` (or mapped to ``None``) means the
    binary has no such region. An empty buffer is still a present region.
    """

    path: str
    format: BinaryFormat
    regions: dict[RegionCategory, bytes | None] = field(default_factory=dict)

    def present(self) -> dict[RegionCategory, bytes]:
        return {cat: buf for cat, buf in self.regions.items() if buf is not None}


@dataclass
class ScanReport:
    """Finalized frequency tables plus run statistics."""

    tables: dict[RegionCategory, dict[str, int]]
    candidates: int = 0
    processed: int = 0
    skipped: int = 0
    discarded: int = 0
    interrupted: bool = False
    reason: str = ""
    elapsed_seconds: float = 0.0

    def table(self, category: RegionCategory) -> dict[str, int]:
        return self.tables.get(category, {})

    def to_dict(self) -> dict[str, Any]:
        return {
            "tables": {cat.value: dict(t) for cat, t in self.tables.items()},
            "candidates": self.candidates,
            "processed": self.processed,
            "skipped": self.skipped,
            "discarded": self.discarded,
            "interrupted": self.interrupted,
            "reason": self.reason,
            "elapsed_seconds": round(self.elapsed_seconds, 3),
        }
