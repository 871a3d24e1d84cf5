"""MCP tool servers for sample triage."""

from .region_extractor import mcp as region_mcp
from .corpus_stats import mcp as corpus_mcp

__all__ = [
    "region_mcp",
    "corpus_mcp",
]
