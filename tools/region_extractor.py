"""
Region Extractor MCP Server
───────────────────────────
Pulls the two regions used for clustering out of a binary:
  • CODE:    Mach-O __text, ELF .text, PE .text
  • STRINGS: Mach-O __cstring, ELF .rodata, PE .rdata

Mach-O is parsed with *lief*, ELF with *pyelftools*, PE with *pefile*.
Anything else raises ``NotABinaryError``; the scan pipeline treats that as
"no regions for this file".

Exposed as a FastMCP server so a single sample can be inspected from an
MCP client without running a full corpus scan.
"""

from __future__ import annotations

import os
from typing import Any

import lief
import pefile
from elftools.common.exceptions import ELFError
from elftools.elf.elffile import ELFFile
from fastmcp import FastMCP

from core.models import (
    BinaryFormat,
    ExtractionError,
    ExtractionResult,
    NotABinaryError,
    RegionCategory,
)
from core.utils import HEADER_SIZE, compute_digest, detect_format

lief.logging.set_level(lief.logging.LEVEL.ERROR)

# ---------------------------------------------------------------------------
# MCP server instance
# ---------------------------------------------------------------------------

mcp = FastMCP("region-extractor")

# ---------------------------------------------------------------------------
# Section names per format
# ---------------------------------------------------------------------------

REGION_SECTIONS: dict[BinaryFormat, dict[RegionCategory, str]] = {
    BinaryFormat.MACHO: {
        RegionCategory.CODE: "__text",
        RegionCategory.STRINGS: "__cstring",
    },
    BinaryFormat.ELF: {
        RegionCategory.CODE: ".text",
        RegionCategory.STRINGS: ".rodata",
    },
    BinaryFormat.PE: {
        RegionCategory.CODE: ".text",
        RegionCategory.STRINGS: ".rdata",
    },
}

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def extract_regions(path: str) -> ExtractionResult:
    """Return the CODE and STRINGS regions of the binary at *path*.

    Raises ``NotABinaryError`` for unsupported or unparseable files and
    ``ExtractionError`` when a region cannot be read in full.
    """
    with open(path, "rb") as fh:
        header = fh.read(HEADER_SIZE)
    fmt = detect_format(header)

    if fmt == BinaryFormat.MACHO:
        regions = _macho_regions(path)
    elif fmt == BinaryFormat.ELF:
        regions = _elf_regions(path)
    elif fmt == BinaryFormat.PE:
        regions = _pe_regions(path)
    else:
        raise NotABinaryError(f"unrecognised magic {header.hex() or '(empty file)'}")

    return ExtractionResult(path=path, format=fmt, regions=regions)


def region_digests_impl(file_path: str) -> dict[str, Any]:
    """Digest and size of each region of one binary (plain callable)."""
    result = extract_regions(file_path)
    regions: dict[str, Any] = {}
    for category in RegionCategory:
        buf = result.regions.get(category)
        regions[category.value] = None if buf is None else {
            "section": REGION_SECTIONS[result.format][category],
            "size": len(buf),
            "sha256": compute_digest(buf),
        }
    return {"path": result.path, "format": result.format.value, "regions": regions}


@mcp.tool()
def region_digests(file_path: str) -> dict[str, Any]:
    """Extract the code and string-table regions of a Mach-O, ELF or PE binary.

    Returns the detected format and, per region, the section name, its size
    and the sha256 of its bytes (null when the binary lacks the region).
    """
    return region_digests_impl(file_path)


# ---------------------------------------------------------------------------
# Format-specific extractors (private)
# ---------------------------------------------------------------------------


def _check_complete(name: str, data: bytes, expected: int) -> bytes:
    if len(data) < expected:
        raise ExtractionError(f"short read of {name}: {len(data)} of {expected} bytes")
    return data


def _macho_regions(path: str) -> dict[RegionCategory, bytes | None]:
    try:
        fat = lief.MachO.parse(path)
    except Exception as exc:
        raise NotABinaryError(f"Mach-O parse failed: {exc}") from exc
    if fat is None or fat.size == 0:
        raise NotABinaryError("Mach-O parse failed")
    # universal binaries with several slices are not EvilQuest samples
    if fat.size > 1:
        raise NotABinaryError(f"fat Mach-O with {fat.size} slices")
    binary = fat.at(0)

    regions: dict[RegionCategory, bytes | None] = {}
    for category, name in REGION_SECTIONS[BinaryFormat.MACHO].items():
        sec = binary.get_section(name)
        if sec is None:
            continue
        regions[category] = _check_complete(name, bytes(sec.content), sec.size)
    return regions


def _elf_regions(path: str) -> dict[RegionCategory, bytes | None]:
    regions: dict[RegionCategory, bytes | None] = {}
    try:
        with open(path, "rb") as fh:
            file_size = os.fstat(fh.fileno()).st_size
            elf = ELFFile(fh)
            for category, name in REGION_SECTIONS[BinaryFormat.ELF].items():
                sec = elf.get_section_by_name(name)
                if sec is None:
                    continue
                if sec["sh_type"] == "SHT_NOBITS":
                    regions[category] = b""
                    continue
                # header values are untrusted: never read past the end of the file
                if sec["sh_offset"] + sec["sh_size"] > file_size:
                    raise ExtractionError(
                        f"{name} spans {sec['sh_offset']}+{sec['sh_size']} bytes, "
                        f"past end of file ({file_size})"
                    )
                regions[category] = _check_complete(name, sec.data(), sec["sh_size"])
    except (ELFError, ValueError, OverflowError, MemoryError) as exc:
        raise NotABinaryError(f"ELF parse failed: {exc}") from exc
    return regions


def _pe_regions(path: str) -> dict[RegionCategory, bytes | None]:
    try:
        pe = pefile.PE(path, fast_load=True)
    except pefile.PEFormatError as exc:
        raise NotABinaryError(f"PE parse failed: {exc}") from exc

    try:
        wanted = {name: cat for cat, name in REGION_SECTIONS[BinaryFormat.PE].items()}
        regions: dict[RegionCategory, bytes | None] = {}
        for sec in pe.sections:
            name = sec.Name.rstrip(b"\x00").decode(errors="replace")
            category = wanted.get(name)
            if category is None or category in regions:
                continue
            regions[category] = _check_complete(name, sec.get_data(), sec.SizeOfRawData)
        return regions
    finally:
        pe.close()


# ---------------------------------------------------------------------------
# Standalone entry-point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    mcp.run()
