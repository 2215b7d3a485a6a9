"""
sitemapgen - Generate and validate sitemaps for built static sites.

Usage:
    from sitemapgen import SitemapGenerator, build_config

    config = build_config(
        site_url="https://example.com/",
        public_dir="dist",
    )

    async for event in SitemapGenerator(config).run():
        print(event)
"""

__version__ = "1.0.0"

from .core.generator import SitemapGenerator, generate_blocking
from .exceptions import (
    ArtifactWriteError,
    ConfigurationError,
    DiscoveryError,
    LimitExceeded,
    ProtocolViolation,
    SitemapError,
)
from .models.config import (
    ChangeFreq,
    DiscoveryConfig,
    EntryConfig,
    LastmodStrategy,
    OutputConfig,
    SitemapConfig,
    ValidationConfig,
    build_config,
)
from .models.events import EventType, RunStats, SitemapEvent
from .validation import BatchReport, FileReport, SitemapValidator

__all__ = [
    "__version__",
    # Core
    "SitemapGenerator",
    "generate_blocking",
    # Config
    "SitemapConfig",
    "DiscoveryConfig",
    "EntryConfig",
    "OutputConfig",
    "ValidationConfig",
    "ChangeFreq",
    "LastmodStrategy",
    "build_config",
    # Events
    "EventType",
    "SitemapEvent",
    "RunStats",
    # Validation
    "SitemapValidator",
    "FileReport",
    "BatchReport",
    # Errors
    "SitemapError",
    "ConfigurationError",
    "DiscoveryError",
    "LimitExceeded",
    "ProtocolViolation",
    "ArtifactWriteError",
]
