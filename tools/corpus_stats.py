"""
Corpus Stats MCP Server
───────────────────────
Runs a full corpus scan and returns the digest frequency tables:
  • code region digest -> number of samples sharing it
  • string-table digest -> number of samples sharing it
plus candidate / processed / skipped counts.

Runs without signal handlers or a progress bar; the MCP client owns the
request lifecycle.
"""

from __future__ import annotations

from typing import Any

from fastmcp import FastMCP

from core.models import ScanReport
from core.utils import validate_root
from pipeline.coordinator import ShutdownCoordinator
from tools.region_extractor import extract_regions

# ---------------------------------------------------------------------------
# MCP server instance
# ---------------------------------------------------------------------------

mcp = FastMCP("corpus-stats")

# ---------------------------------------------------------------------------
# Tool
# ---------------------------------------------------------------------------


def scan_corpus_impl(root: str, jobs: int = 1) -> dict[str, Any]:
    """Scan *root* and return the report as a dict (plain callable)."""
    reports: list[ScanReport] = []
    coordinator = ShutdownCoordinator(
        validate_root(root),
        extractor=extract_regions,
        jobs=jobs,
        report_sink=reports.append,
        show_progress=False,
    )
    coordinator.run()
    return reports[0].to_dict()


@mcp.tool()
def scan_corpus(root: str, jobs: int = 1) -> dict[str, Any]:
    """Scan a file or folder for fingerprint-sized samples and cluster them.

    Returns, per region (code, strings), a mapping of sha256 digest to the
    number of samples whose region has exactly those bytes.
    """
    return scan_corpus_impl(root, jobs)


# ---------------------------------------------------------------------------
# Standalone entry-point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    mcp.run()
