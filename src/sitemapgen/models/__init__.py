"""Sitemapgen configuration, data and event models."""

from .config import (
    MAX_URLS_PER_SITEMAP,
    SITEMAP_NAMESPACE,
    ByteSize,
    ChangeFreq,
    DiscoveryConfig,
    EntryConfig,
    LastmodStrategy,
    OutputConfig,
    SitemapConfig,
    ValidationConfig,
    build_config,
)
from .events import EventType, RunStats, SitemapEvent
from .items import (
    DiscoveryCandidate,
    DocumentKind,
    IndexEntry,
    SiteItem,
    SitemapChunk,
    SitemapDocument,
    format_w3c_datetime,
)

__all__ = [
    # Config
    "ByteSize",
    "ChangeFreq",
    "DiscoveryConfig",
    "EntryConfig",
    "LastmodStrategy",
    "MAX_URLS_PER_SITEMAP",
    "OutputConfig",
    "SITEMAP_NAMESPACE",
    "SitemapConfig",
    "ValidationConfig",
    "build_config",
    # Events
    "EventType",
    "RunStats",
    "SitemapEvent",
    # Items
    "DiscoveryCandidate",
    "DocumentKind",
    "IndexEntry",
    "SiteItem",
    "SitemapChunk",
    "SitemapDocument",
    "format_w3c_datetime",
]
