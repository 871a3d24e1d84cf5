"""Shared fixtures: a tiny fake binary format and a corpus builder."""

from __future__ import annotations

import struct
from pathlib import Path
from typing import Callable

import pytest

from core.models import BinaryFormat, ExtractionResult, NotABinaryError, RegionCategory, ScanReport
from pipeline.coordinator import ShutdownCoordinator

SAMPLE_SIZE = 256
FAKE_MAGIC = b"FAKEBIN\x00"
_LENGTHS = struct.Struct("<ii")


def make_sample(code: bytes | None, strings: bytes | None, size: int = SAMPLE_SIZE) -> bytes:
    """Encode a fake binary; ``None`` leaves the region out entirely."""
    header = FAKE_MAGIC + _LENGTHS.pack(
        -1 if code is None else len(code),
        -1 if strings is None else len(strings),
    )
    body = header + (code or b"") + (strings or b"")
    assert len(body) <= size
    return body + b"\x00" * (size - len(body))


def fake_extract(path: str) -> ExtractionResult:
    with open(path, "rb") as fh:
        data = fh.read()
    if not data.startswith(FAKE_MAGIC):
        raise NotABinaryError("missing fake magic")
    code_len, str_len = _LENGTHS.unpack_from(data, len(FAKE_MAGIC))
    offset = len(FAKE_MAGIC) + _LENGTHS.size
    regions: dict[RegionCategory, bytes | None] = {}
    if code_len >= 0:
        regions[RegionCategory.CODE] = data[offset:offset + code_len]
        offset += code_len
    if str_len >= 0:
        regions[RegionCategory.STRINGS] = data[offset:offset + str_len]
    return ExtractionResult(path=path, format=BinaryFormat.UNKNOWN, regions=regions)


@pytest.fixture
def write_sample(tmp_path: Path) -> Callable[..., Path]:
    def _write(relpath: str, code: bytes | None = b"code", strings: bytes | None = b"strings",
               size: int = SAMPLE_SIZE) -> Path:
        path = tmp_path / relpath
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(make_sample(code, strings, size))
        return path
    return _write


@pytest.fixture
def write_file(tmp_path: Path) -> Callable[[str, bytes], Path]:
    def _write(relpath: str, data: bytes) -> Path:
        path = tmp_path / relpath
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return path
    return _write


def run_scan(root, jobs: int = 1, extractor=fake_extract) -> tuple[ScanReport, list[ScanReport]]:
    reports: list[ScanReport] = []
    coordinator = ShutdownCoordinator(
        root,
        extractor=extractor,
        jobs=jobs,
        report_sink=reports.append,
        fingerprint_size=SAMPLE_SIZE,
        show_progress=False,
    )
    report = coordinator.run()
    return report, reports
