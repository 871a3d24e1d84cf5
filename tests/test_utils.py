"""
Tests for core.utils
====================
Run with:  pytest tests/test_utils.py -v
"""

from __future__ import annotations

import hashlib

import pytest

from core.models import BinaryFormat, RegionCategory, ScanReport
from core.utils import compute_digest, detect_format, format_report, validate_root


class TestDetectFormat:
    @pytest.mark.parametrize("magic", [
        b"\xfe\xed\xfa\xce", b"\xce\xfa\xed\xfe",
        b"\xfe\xed\xfa\xcf", b"\xcf\xfa\xed\xfe",
        b"\xca\xfe\xba\xbe",
    ])
    def test_macho(self, magic):
        assert detect_format(magic + b"\x00" * 12) == BinaryFormat.MACHO

    def test_elf(self):
        assert detect_format(b"\x7fELF\x02\x01") == BinaryFormat.ELF

    def test_pe(self):
        assert detect_format(b"MZ\x90\x00") == BinaryFormat.PE

    def test_unknown(self):
        assert detect_format(b"hello world") == BinaryFormat.UNKNOWN
        assert detect_format(b"") == BinaryFormat.UNKNOWN


class TestComputeDigest:
    def test_is_sha256_hex(self):
        assert compute_digest(b"abc") == hashlib.sha256(b"abc").hexdigest()

    def test_identical_bytes_identical_digest(self):
        assert compute_digest(bytes(bytearray(b"xyz"))) == compute_digest(b"xyz")
        assert compute_digest(b"xyz") != compute_digest(b"xyZ")

    def test_empty_buffer_has_a_digest(self):
        assert len(compute_digest(b"")) == 64


class TestValidateRoot:
    def test_missing_path_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            validate_root(str(tmp_path / "nope"))

    def test_accepts_files_and_directories(self, tmp_path):
        f = tmp_path / "f.bin"
        f.write_bytes(b"x")
        assert validate_root(str(tmp_path)) == tmp_path.resolve()
        assert validate_root(str(f)) == f.resolve()


class TestFormatReport:
    def test_prints_both_tables_even_when_empty(self):
        text = format_report(ScanReport(tables={RegionCategory.CODE: {}, RegionCategory.STRINGS: {}}))
        assert "code map (0 unique)" in text
        assert "strings map (0 unique)" in text

    def test_orders_by_count_then_digest(self):
        report = ScanReport(tables={
            RegionCategory.CODE: {"bb": 1, "aa": 1, "cc": 3},
            RegionCategory.STRINGS: {},
        })
        lines = format_report(report).splitlines()
        assert lines[1:4] == ["cc 3", "aa 1", "bb 1"]

    def test_mentions_interruption(self):
        report = ScanReport(
            tables={RegionCategory.CODE: {}, RegionCategory.STRINGS: {}},
            candidates=10, processed=4, interrupted=True, reason="received SIGINT",
        )
        assert "interrupted (received SIGINT): 4/10" in format_report(report)
