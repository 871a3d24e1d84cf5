"""Utility helpers: root validation, format detection, digests, report text."""

from __future__ import annotations

import hashlib
from pathlib import Path

from .models import BinaryFormat, RegionCategory, ScanReport

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Every EvilQuest sample seen so far has exactly this size, which separates
# them from anything else mixed into the same tree.
FINGERPRINT_SIZE = 172792

PE_MAGIC = b"MZ"
ELF_MAGIC = b"\x7fELF"

MACHO_MAGICS = {
    b"\xfe\xed\xfa\xce",  # MH_MAGIC
    b"\xce\xfa\xed\xfe",  # MH_CIGAM
    b"\xfe\xed\xfa\xcf",  # MH_MAGIC_64
    b"\xcf\xfa\xed\xfe",  # MH_CIGAM_64
    b"\xca\xfe\xba\xbe",  # FAT_MAGIC
    b"\xbe\xba\xfe\xca",  # FAT_CIGAM
}

HEADER_SIZE = 4

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_root(path: str) -> Path:
    """Ensure *path* exists (file or directory) and return it resolved.

    Raises ``FileNotFoundError`` otherwise.
    """
    p = Path(path).expanduser().resolve()
    if not p.exists():
        raise FileNotFoundError(f"Path not found: {p}")
    return p


def detect_format(data: bytes) -> BinaryFormat:
    """Detect binary format from magic bytes."""
    if data[:4] in MACHO_MAGICS:
        return BinaryFormat.MACHO
    if data[:4] == ELF_MAGIC:
        return BinaryFormat.ELF
    if data[:2] == PE_MAGIC:
        return BinaryFormat.PE
    return BinaryFormat.UNKNOWN


def compute_digest(data: bytes) -> str:
    """Return the sha256 hex digest of *data*."""
    return hashlib.sha256(data).hexdigest()


def format_report(report: ScanReport) -> str:
    """Render both frequency tables, most frequent digest first."""
    lines: list[str] = []
    for category in RegionCategory:
        table = report.table(category)
        lines.append(f"{category.value} map ({len(table)} unique)")
        for digest, count in sorted(table.items(), key=lambda kv: (-kv[1], kv[0])):
            lines.append(f"{digest} {count}")
    if report.interrupted:
        lines.append(
            f"[!] scan interrupted ({report.reason or 'cancelled'}): "
            f"{report.processed}/{report.candidates} files analysed"
        )
    return "\n".join(lines)
