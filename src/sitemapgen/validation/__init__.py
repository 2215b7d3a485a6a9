"""Sitemap protocol validation."""

from .report import BatchReport, FileReport, Severity, ValidationFinding, format_file_size
from .validator import SitemapValidator, detect_kind, read_sitemap_bytes

__all__ = [
    "BatchReport",
    "FileReport",
    "Severity",
    "SitemapValidator",
    "ValidationFinding",
    "detect_kind",
    "format_file_size",
    "read_sitemap_bytes",
]
